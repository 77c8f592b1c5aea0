"""
Toggl REST payload schemas.

Defines the request/response models exchanged with the Toggl v8 API for
users, workspaces, clients, projects, tags and time entries.
"""
from datetime import datetime, timezone
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field


class User(BaseModel):
    """Authenticated user as returned by ``GET /me``."""
    id: int = Field(..., description="User ID")
    api_token: str = Field(..., description="API token")
    default_wid: int = Field(..., description="Default workspace ID")
    email: EmailStr = Field(..., description="Email address")
    fullname: str = Field(..., description="Full name")
    jquery_timeofday_format: str = Field("H:i", description="Time of day format for jQuery")
    jquery_date_format: str = Field("m/d/Y", description="Date format for jQuery")
    timeofday_format: str = Field("H:mm", description="Time of day format")
    date_format: str = Field("MM/DD/YYYY", description="Date format")
    store_start_and_stop_time: bool = Field(True, description="Whether start and stop time are saved")
    beginning_of_week: int = Field(1, ge=0, le=6, description="First day of the week, 0 is Sunday")
    language: str = Field("en_US", description="User language")
    image_url: str = Field("", description="Profile image URL")
    sidebar_piechart: bool = Field(False, description="Whether the sidebar piechart is shown")
    at: datetime = Field(..., description="Last update timestamp")
    send_product_emails: bool = Field(False, description="Product email opt-in")
    send_weekly_report: bool = Field(False, description="Weekly report opt-in")
    send_timer_notifications: bool = Field(False, description="Timer notification opt-in")
    openid_enabled: bool = Field(False, description="Whether Google sign-in is enabled")
    timezone: str = Field("UTC", description="User timezone")

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """Envelope of the ``GET /me`` response."""
    since: Optional[int] = Field(None, description="Server timestamp of the response")
    data: User = Field(..., description="Current user")


class Workspace(BaseModel):
    """Workspace schema."""
    id: Optional[int] = Field(None, description="Workspace ID, omitted on creation")
    name: str = Field(..., min_length=1, description="Workspace name")
    premium: bool = Field(False, description="Whether someone pays for the workspace")
    admin: bool = Field(False, description="Whether the requesting user is a workspace admin")
    default_hourly_rate: float = Field(0, ge=0, description="Default hourly rate")
    default_currency: str = Field("USD", description="Default currency")
    only_admins_may_create_projects: bool = Field(False, description="Only admins may create projects")
    only_admins_see_billable_rates: bool = Field(False, description="Only admins see billable rates")
    rounding: int = Field(1, description="Rounding type: -1 down, 0 nearest, 1 up")
    rounding_minutes: int = Field(0, ge=0, description="Minutes to round to")
    at: datetime = Field(..., description="Last update timestamp")
    logo_url: Optional[str] = Field(None, description="Logo URL, omitted when unset")

    class Config:
        from_attributes = True


class Client(BaseModel):
    """Client schema."""
    id: Optional[int] = Field(None, description="Client ID, omitted on creation")
    wid: int = Field(..., description="Workspace ID")
    name: str = Field(..., min_length=1, description="Client name")
    at: datetime = Field(..., description="Last update timestamp")
    notes: Optional[str] = Field(None, description="Free-form notes")

    class Config:
        from_attributes = True


class Project(BaseModel):
    """Project schema."""
    id: Optional[int] = Field(None, description="Project ID, omitted on creation")
    name: str = Field(..., min_length=1, description="Project name, unique for client and workspace")
    wid: int = Field(..., description="Workspace ID")
    cid: Optional[int] = Field(None, description="Client ID")
    active: bool = Field(True, description="Whether the project is not archived")
    is_private: bool = Field(True, description="Whether only project users may access the project")
    template: Optional[bool] = Field(None, description="Whether the project can be used as a template")
    template_id: Optional[int] = Field(None, description="Template the project was created from")
    billable: Optional[bool] = Field(None, description="Whether the project is billable")
    auto_estimates: Optional[bool] = Field(None, description="Whether estimates come from task estimates")
    estimated_hours: Optional[int] = Field(None, ge=0, description="Estimated hours")
    at: datetime = Field(..., description="Last update timestamp")
    color: str = Field("0", description="Color id")
    rate: Optional[float] = Field(None, ge=0, description="Hourly rate")
    created_at: datetime = Field(..., description="Creation timestamp")

    class Config:
        from_attributes = True


class Tag(BaseModel):
    """Tag schema."""
    id: Optional[int] = Field(None, description="Tag ID, omitted on creation")
    name: str = Field(..., min_length=1, description="Tag name, unique in workspace")
    wid: int = Field(..., description="Workspace ID")

    class Config:
        from_attributes = True


class TimeEntry(BaseModel):
    """
    Time entry schema.

    ``duration`` is in seconds. While an entry is running it holds the
    negated start time in seconds since the epoch, so the elapsed time is
    ``now + duration``.
    """
    id: Optional[int] = Field(None, description="Time entry ID, omitted on creation")
    description: Optional[str] = Field(None, description="Work description")
    wid: Optional[int] = Field(None, description="Workspace ID, required without pid or tid")
    pid: Optional[int] = Field(None, description="Project ID")
    tid: Optional[int] = Field(None, description="Task ID")
    billable: Optional[bool] = Field(None, description="Whether time is billable")
    start: datetime = Field(..., description="Start time")
    stop: Optional[datetime] = Field(None, description="Stop time (null for running timer)")
    duration: int = Field(..., description="Duration in seconds, negative while running")
    created_with: Optional[str] = Field(None, description="Name of the client application")
    tags: Optional[List[str]] = Field(None, description="Tag names")
    duronly: Optional[bool] = Field(None, description="Whether only the duration is shown")
    at: Optional[datetime] = Field(None, description="Last update timestamp, response only")

    class Config:
        from_attributes = True

    @property
    def is_running(self) -> bool:
        return self.duration < 0

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        """Seconds worked so far, resolving running timers against ``now``."""
        if not self.is_running:
            return self.duration
        now = now or datetime.now(timezone.utc)
        return int(now.timestamp()) + self.duration


class TimeEntryRequest(BaseModel):
    """Body of ``POST /time_entries``."""
    time_entry: TimeEntry


class TimeEntryResponse(BaseModel):
    """Envelope of a single time entry response."""
    data: TimeEntry


# Toggl's v8 error body is a bare list of messages.
DefaultErrorJson = List[str]
