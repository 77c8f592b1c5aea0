"""
Toggl REST API client.

Wraps the Toggl v8 API and the detailed reports endpoint behind typed
methods. Responses are validated with the pydantic models in
``toggl_ledger.schemas`` and failures are reported through the
``toggl_ledger.toggl.errors`` hierarchy.
"""
import json
import logging
from datetime import datetime
from typing import Any, Iterator, List, Optional, get_origin

import requests
from pydantic import TypeAdapter, ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    TOGGL_API_URL, TOGGL_REPORTS_API_URL, TOGGL_TIMEOUT_SECONDS, TOGGL_USER_AGENT
)
from ..schemas.reports import Report, ReportsDetailedParams, ReportsErrorJson, ReportTimeEntry
from ..schemas.toggl import (
    Client, DefaultErrorJson, Project, Tag, TimeEntry, TimeEntryRequest,
    TimeEntryResponse, User, UserResponse, Workspace
)
from .errors import NetworkError, ParsingError, ServerError

logger = logging.getLogger(__name__)


class TogglApi:
    """Client for a single Toggl account, authenticated by API token."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        api_url: str = TOGGL_API_URL,
        reports_url: str = TOGGL_REPORTS_API_URL,
        timeout: float = TOGGL_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.reports_url = reports_url
        self.timeout = timeout
        self.session = session or self._create_session()

    @staticmethod
    def _create_session() -> requests.Session:
        """
        Create a session that retries throttled and failed requests.

        Only idempotent methods are retried so a time entry is never
        created twice.
        """
        session = requests.Session()
        retry_strategy = Retry(
            total=3,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _request(self, method: str, url: str, params: Optional[dict] = None,
                 body: Optional[dict] = None) -> requests.Response:
        logger.debug(f"Requesting: {method} {url}")
        try:
            return self.session.request(
                method,
                url,
                params=params,
                json=body,
                auth=(self.api_key, "api_token"),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(exc) from exc

    def _get_json(self, response: requests.Response, blob_type: Any,
                  error_type: Any = DefaultErrorJson) -> Any:
        """
        Decode a response into ``blob_type``.

        Args:
            response: HTTP response to decode
            blob_type: Type of a successful payload
            error_type: Shape of the endpoint's error body

        Returns:
            The validated payload

        Raises:
            ServerError: Non-200 status, or a 200 carrying an error body
            ParsingError: Body matches neither the payload nor the error shape
        """
        try:
            text = response.text
        except requests.RequestException as exc:
            raise ParsingError("Couldn't fetch response text.", exc) from exc

        if response.status_code != 200:
            raise ServerError(
                response.status_code,
                text=text,
                parsed_json=self._parse_error(text, error_type)
            )

        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise ParsingError(text, exc) from exc

        # Toggl answers ``null`` when a list is empty
        if payload is None and get_origin(blob_type) is list:
            return []

        try:
            return TypeAdapter(blob_type).validate_python(payload)
        except ValidationError as blob_exc:
            errors = self._parse_error(text, error_type)
            if errors is None:
                raise ParsingError(text, blob_exc) from blob_exc
            raise ServerError(response.status_code, parsed_json=errors) from blob_exc

    @staticmethod
    def _parse_error(text: str, error_type: Any) -> Any:
        """Return ``text`` decoded as ``error_type``, or None if it is not one."""
        try:
            return TypeAdapter(error_type).validate_json(text)
        except ValidationError:
            return None

    # PUBLIC_INTERFACE
    def me(self) -> User:
        """Get the authenticated user."""
        response = self._request("GET", f"{self.api_url}/me")
        return self._get_json(response, UserResponse).data

    # PUBLIC_INTERFACE
    def workspaces_get_all(self) -> List[Workspace]:
        """Get all workspaces the user belongs to."""
        response = self._request("GET", f"{self.api_url}/workspaces")
        return self._get_json(response, List[Workspace])

    # PUBLIC_INTERFACE
    def workspaces_projects_all(self, wid: int) -> List[Project]:
        """Get the projects of a workspace."""
        response = self._request("GET", f"{self.api_url}/workspaces/{wid}/projects")
        return self._get_json(response, List[Project])

    # PUBLIC_INTERFACE
    def workspaces_tags_all(self, wid: int) -> List[Tag]:
        """Get the tags of a workspace."""
        response = self._request("GET", f"{self.api_url}/workspaces/{wid}/tags")
        return self._get_json(response, List[Tag])

    # PUBLIC_INTERFACE
    def workspaces_clients_all(self, wid: int) -> List[Client]:
        """Get the clients of a workspace."""
        response = self._request("GET", f"{self.api_url}/workspaces/{wid}/clients")
        return self._get_json(response, List[Client])

    # PUBLIC_INTERFACE
    def time_entries_range(self, start_date: Optional[datetime] = None,
                           end_date: Optional[datetime] = None) -> List[TimeEntry]:
        """
        Get time entries started in a date range.

        Without bounds the API returns the entries of the last nine days.

        Args:
            start_date: Inclusive lower bound
            end_date: Exclusive upper bound

        Returns:
            List[TimeEntry]: Matching time entries
        """
        params = {}
        if start_date is not None:
            params["start_date"] = start_date.isoformat()
        if end_date is not None:
            params["end_date"] = end_date.isoformat()
        response = self._request("GET", f"{self.api_url}/time_entries", params=params or None)
        return self._get_json(response, List[TimeEntry])

    # PUBLIC_INTERFACE
    def time_entry_create(self, time_entry: TimeEntry) -> TimeEntryResponse:
        """
        Create a time entry.

        Unset fields are left out of the request. ``created_with`` is
        required by the API and defaults to the configured user agent.

        Args:
            time_entry: Entry to create; ``start`` and ``duration`` are required

        Returns:
            TimeEntryResponse: The stored entry as echoed by the server
        """
        if time_entry.created_with is None:
            time_entry = time_entry.model_copy(update={"created_with": TOGGL_USER_AGENT})
        body = TimeEntryRequest(time_entry=time_entry).model_dump(mode="json", exclude_none=True)
        response = self._request("POST", f"{self.api_url}/time_entries", body=body)
        return self._get_json(response, TimeEntryResponse)

    # PUBLIC_INTERFACE
    def get_reports_detailed(self, params: ReportsDetailedParams) -> Report:
        """Get one page of the detailed report."""
        response = self._request("GET", self.reports_url, params=params.query_params())
        return self._get_json(response, Report, error_type=ReportsErrorJson)

    # PUBLIC_INTERFACE
    def iter_reports_detailed(self, params: ReportsDetailedParams) -> Iterator[ReportTimeEntry]:
        """
        Iterate over every entry of the detailed report, page by page.

        Stops once ``total_count`` entries were returned or a page is empty.
        """
        page = params.page
        seen = 0
        while True:
            report = self.get_reports_detailed(params.model_copy(update={"page": page}))
            if not report.data:
                return
            for entry in report.data:
                yield entry
            seen += len(report.data)
            if seen >= report.total_count:
                return
            page += 1
