"""
Pytest configuration and fixtures for toggl-ledger testing.

Provides an in-memory SQLite store per test, sample Toggl payloads, and a
Toggl client wired to a mocked HTTP session.
"""
from typing import Dict, Generator, List, Tuple
from unittest.mock import Mock

import pytest
import requests
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from toggl_ledger.database.connection import create_tables, make_engine, make_session_factory
from toggl_ledger.database.models import User, Workspace
from toggl_ledger.toggl.client import TogglApi

API_URL = "https://toggl.test/api/v8"
REPORTS_URL = "https://toggl.test/reports/api/v2/details"


@pytest.fixture(scope="function")
def engine() -> Generator[Engine, None, None]:
    """Create a fresh in-memory database with all tables."""
    test_engine = make_engine("sqlite://")
    create_tables(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    TestingSessionLocal = make_session_factory(engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def account(db_session: Session) -> Tuple[User, Workspace]:
    """A committed user whose default workspace they own."""
    user = User(
        id=1,
        api_token="token-1",
        default_wid_id=10,
        email="ada@toggl-ledger.io",
        fullname="Ada Lovelace",
        jquery_timeofday_format="H:i",
        jquery_date_format="m/d/Y",
        timeofday_format="H:mm",
        date_format="MM/DD/YYYY",
        language="en_US",
        image_url="https://assets.toggl-ledger.io/ada.png",
        timezone="Europe/London",
    )
    workspace = Workspace(id=10, name="Analytical Engines", user_id=1)
    db_session.add_all([user, workspace])
    db_session.commit()
    return user, workspace


@pytest.fixture
def sample_user_data() -> Dict:
    """Sample ``GET /me`` payload."""
    return {
        "since": 1700000000,
        "data": {
            "id": 1,
            "api_token": "token-1",
            "default_wid": 10,
            "email": "ada@toggl-ledger.io",
            "fullname": "Ada Lovelace",
            "jquery_timeofday_format": "H:i",
            "jquery_date_format": "m/d/Y",
            "timeofday_format": "H:mm",
            "date_format": "MM/DD/YYYY",
            "store_start_and_stop_time": True,
            "beginning_of_week": 1,
            "language": "en_US",
            "image_url": "https://assets.toggl-ledger.io/ada.png",
            "sidebar_piechart": False,
            "at": "2024-01-10T08:00:00+00:00",
            "send_product_emails": False,
            "send_weekly_report": True,
            "send_timer_notifications": True,
            "openid_enabled": False,
            "timezone": "Europe/London"
        }
    }


@pytest.fixture
def sample_workspace_data() -> Dict:
    """Sample workspace payload."""
    return {
        "id": 10,
        "name": "Analytical Engines",
        "premium": True,
        "admin": True,
        "default_hourly_rate": 75.0,
        "default_currency": "GBP",
        "only_admins_may_create_projects": False,
        "only_admins_see_billable_rates": True,
        "rounding": 1,
        "rounding_minutes": 15,
        "at": "2024-01-10T08:00:00+00:00"
    }


@pytest.fixture
def sample_client_data() -> Dict:
    """Sample client payload."""
    return {
        "id": 300,
        "wid": 10,
        "name": "Babbage & Co",
        "at": "2024-01-10T08:00:00+00:00",
        "notes": "Pays in pounds"
    }


@pytest.fixture
def sample_project_data() -> Dict:
    """Sample project payload."""
    return {
        "id": 100,
        "name": "Difference Engine",
        "wid": 10,
        "cid": 300,
        "active": True,
        "is_private": False,
        "template": False,
        "billable": True,
        "auto_estimates": False,
        "estimated_hours": 120,
        "at": "2024-01-10T08:00:00+00:00",
        "color": "5",
        "hex_color": "#2da608",
        "rate": 90.0,
        "created_at": "2024-01-01T08:00:00+00:00"
    }


@pytest.fixture
def sample_tag_data() -> List[Dict]:
    """Sample tag payloads."""
    return [
        {"id": 200, "name": "research", "wid": 10},
        {"id": 201, "name": "writing", "wid": 10}
    ]


@pytest.fixture
def sample_time_entry_data() -> Dict:
    """Sample time entry payload."""
    return {
        "id": 5000,
        "wid": 10,
        "pid": 100,
        "billable": True,
        "start": "2024-01-15T09:00:00+00:00",
        "stop": "2024-01-15T11:30:00+00:00",
        "duration": 9000,
        "description": "Notes on the engine",
        "created_with": "toggl-ledger",
        "tags": ["research", "writing"],
        "duronly": False,
        "at": "2024-01-15T11:30:00+00:00"
    }


@pytest.fixture
def http_session() -> Mock:
    """HTTP session double; tests set ``request.return_value``."""
    return Mock(spec=requests.Session)


@pytest.fixture
def api(http_session: Mock) -> TogglApi:
    """Toggl client bound to the mocked HTTP session."""
    return TogglApi("test-token", session=http_session, api_url=API_URL, reports_url=REPORTS_URL)
