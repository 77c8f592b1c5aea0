"""
Toggl Reports API schemas.

Defines the query parameters of the detailed report endpoint and the models
of its paginated response and error body.
"""
from datetime import date, datetime
from typing import Optional, List, Dict
from urllib.parse import urlencode
from pydantic import BaseModel, Field, validator


class ReportsParams(BaseModel):
    """Query parameters shared by all report endpoints."""
    user_agent: str = Field(..., min_length=1, description="Application name or contact email")
    workspace_id: int = Field(..., description="Workspace whose data is reported")
    since: Optional[date] = Field(None, description="First day, defaults to today - 6 days")
    until: Optional[date] = Field(None, description="Last day, at most one year after since")
    billable: Optional[str] = Field(None, pattern="^(yes|no|both)$", description="Billable filter")
    client_ids: Optional[List[int]] = Field(None, description="Client IDs, 0 selects entries without client")
    project_ids: Optional[List[int]] = Field(None, description="Project IDs, 0 selects entries without project")
    user_ids: Optional[List[int]] = Field(None, description="User IDs")
    members_of_group_ids: Optional[List[int]] = Field(None, description="Limit user_ids to these groups")
    or_members_of_group_ids: Optional[List[int]] = Field(None, description="Extend user_ids with these groups")
    tag_ids: Optional[List[int]] = Field(None, description="Tag IDs, 0 selects entries without tags")
    task_ids: Optional[List[int]] = Field(None, description="Task IDs, 0 selects entries without task")
    time_entry_ids: Optional[List[int]] = Field(None, description="Time entry IDs")
    description: Optional[str] = Field(None, description="Matches time entry descriptions")
    without_description: Optional[bool] = Field(None, description="Drop entries without description")
    order_field: Optional[str] = Field(None, description="Sort field, e.g. date, description, duration, user")
    order_desc: Optional[str] = Field(None, pattern="^(on|off)$", description="Descending order switch")
    distinct_rates: Optional[str] = Field(None, pattern="^(on|off)$", description="Distinct rates switch")
    rounding: Optional[str] = Field(None, pattern="^(on|off)$", description="Apply workspace rounding")
    display_hours: Optional[str] = Field(None, pattern="^(decimal|minutes)$", description="Hours format")

    @validator('until')
    def validate_span(cls, v, values):
        """Reject spans longer than the one year the API allows."""
        since = values.get('since')
        if v is not None and since is not None:
            if v < since:
                raise ValueError('until is before since')
            if (v - since).days > 365:
                raise ValueError('date span exceeds one year')
        return v

    def query_params(self) -> Dict[str, str]:
        """Flatten the set parameters into query string values."""
        params = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            elif isinstance(value, (date, datetime)):
                params[key] = value.isoformat()
            elif isinstance(value, list):
                params[key] = ",".join(str(item) for item in value)
            else:
                params[key] = str(value)
        return params

    def to_url(self, base_url: str) -> str:
        return f"{base_url}?{urlencode(self.query_params())}"


class ReportsDetailedParams(ReportsParams):
    """Parameters of the detailed report, which is paginated."""
    page: int = Field(1, ge=1, description="Page number")


class TotalCurrency(BaseModel):
    """Billable total in one currency."""
    currency: Optional[str] = Field(None, description="Currency code")
    amount: Optional[float] = Field(None, description="Billed amount")


class ReportTimeEntry(BaseModel):
    """Time entry row of the detailed report."""
    id: int = Field(..., description="Time entry ID")
    pid: Optional[int] = Field(None, description="Project ID")
    project: Optional[str] = Field(None, description="Project name")
    client: Optional[str] = Field(None, description="Client name")
    tid: Optional[int] = Field(None, description="Task ID")
    task: Optional[str] = Field(None, description="Task name")
    uid: int = Field(..., description="User ID")
    user: str = Field(..., description="Full name of the user")
    description: Optional[str] = Field(None, description="Time entry description")
    start: datetime = Field(..., description="Start time")
    end: Optional[datetime] = Field(None, description="End time")
    dur: int = Field(..., description="Duration in milliseconds")
    updated: datetime = Field(..., description="Last update timestamp")
    use_stop: bool = Field(..., description="Whether the stop time is saved")
    is_billable: bool = Field(..., description="Whether the entry was billable")
    billable: Optional[float] = Field(None, description="Billed amount")
    cur: Optional[str] = Field(None, description="Billed amount currency")
    tags: List[str] = Field(default_factory=list, description="Tag names")
    project_color: Optional[str] = Field(None, description="Project color id")
    project_hex_color: Optional[str] = Field(None, description="Project hex color")


class Report(BaseModel):
    """One page of the detailed report."""
    total_grand: Optional[int] = Field(None, description="Total time in milliseconds")
    total_billable: Optional[int] = Field(None, description="Billable time in milliseconds")
    total_count: int = Field(..., description="Entries across all pages")
    per_page: int = Field(..., description="Entries per page")
    total_currencies: List[TotalCurrency] = Field(default_factory=list, description="Totals per currency")
    data: List[ReportTimeEntry] = Field(default_factory=list, description="Entries of this page")


class ReportsErrorDetail(BaseModel):
    """Error detail of the reports API."""
    message: str
    tip: Optional[str] = None
    code: int


class ReportsErrorJson(BaseModel):
    """Error body of the reports API."""
    error: ReportsErrorDetail
