"""
Command-line interface tests.

Tests drive ``main`` with argument lists, replacing the Toggl client with a
stub so no request leaves the process.
"""
from datetime import date, datetime, timezone
from typing import Dict, List
from unittest.mock import Mock, patch

import pytest
from sqlalchemy import inspect

from toggl_ledger import cli
from toggl_ledger.database.connection import make_engine
from toggl_ledger.schemas import toggl as schemas
from toggl_ledger.schemas.reports import Report
from toggl_ledger.toggl.errors import NetworkError, ServerError


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(cli, "TOGGL_API_KEY", "test-token")


@pytest.fixture
def toggl_api(api_key):
    """Patch the CLI's client class; yields the instance the CLI will use."""
    with patch("toggl_ledger.cli.TogglApi") as api_class:
        yield api_class.return_value


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'ledger.db'}"


class TestInitDb:
    """Test cases for ``init-db``."""

    def test_creates_tables(self, database_url: str, capsys):
        assert cli.main(["--database-url", database_url, "init-db"]) == 0

        tables = set(inspect(make_engine(database_url)).get_table_names())
        assert {"users", "workspaces", "time_entrys", "time_entry_tag_join"} <= tables
        assert "Initialized database" in capsys.readouterr().out

    def test_needs_no_api_key(self, database_url: str, monkeypatch):
        monkeypatch.setattr(cli, "TOGGL_API_KEY", None)

        assert cli.main(["--database-url", database_url, "init-db"]) == 0


class TestApiCommands:
    """Test cases for commands that talk to Toggl."""

    def test_missing_api_key(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "TOGGL_API_KEY", None)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["show"])

        assert exc_info.value.code == 2
        assert "TOGGL_API_KEY" in capsys.readouterr().err

    def test_show(self, toggl_api: Mock, capsys, sample_workspace_data: Dict,
                  sample_project_data: Dict, sample_tag_data: List[Dict]):
        toggl_api.workspaces_get_all.return_value = [schemas.Workspace(**sample_workspace_data)]
        toggl_api.workspaces_projects_all.return_value = [
            schemas.Project(**sample_project_data),
            schemas.Project(**{**sample_project_data, "id": 101, "name": "Analytical Engine", "active": False}),
        ]
        toggl_api.workspaces_tags_all.return_value = [schemas.Tag(**data) for data in sample_tag_data]

        assert cli.main(["show"]) == 0

        out = capsys.readouterr().out
        assert "Workspace 10: Analytical Engines" in out
        assert "[100] Difference Engine\n" in out
        assert "[101] Analytical Engine (archived)" in out
        assert "[201] writing" in out

    def test_show_without_workspaces(self, toggl_api: Mock, capsys):
        toggl_api.workspaces_get_all.return_value = []

        assert cli.main(["show"]) == 0
        assert "No workspaces found" in capsys.readouterr().out

    def test_api_failure_exit_code(self, toggl_api: Mock):
        toggl_api.workspaces_get_all.side_effect = ServerError(403, parsed_json=["Forbidden"])

        assert cli.main(["show"]) == 1

    def test_network_failure_exit_code(self, toggl_api: Mock):
        toggl_api.workspaces_get_all.side_effect = NetworkError(ConnectionError("refused"))

        assert cli.main(["show"]) == 1

    def test_sync(self, toggl_api: Mock, database_url: str, capsys, sample_user_data: Dict,
                  sample_workspace_data: Dict):
        toggl_api.me.return_value = schemas.User(**sample_user_data["data"])
        toggl_api.workspaces_get_all.return_value = [schemas.Workspace(**sample_workspace_data)]
        toggl_api.workspaces_clients_all.return_value = []
        toggl_api.workspaces_projects_all.return_value = []
        toggl_api.workspaces_tags_all.return_value = []
        toggl_api.time_entries_range.return_value = []

        code = cli.main(["--database-url", database_url, "sync",
                         "--since", "2024-01-01", "--until", "2024-01-31"])

        assert code == 0
        toggl_api.time_entries_range.assert_called_once_with(
            datetime(2024, 1, 1, tzinfo=timezone.utc),
            datetime(2024, 2, 1, tzinfo=timezone.utc),
        )
        assert '"workspaces": 1' in capsys.readouterr().out

    def test_sync_rejects_reversed_span(self, toggl_api: Mock, database_url: str, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--database-url", database_url, "sync", "--since", "2024-02-01", "--until", "2024-01-01"])

        assert exc_info.value.code == 2
        assert "--since must not be after --until" in capsys.readouterr().err
        toggl_api.me.assert_not_called()

    def test_sync_conflict_exit_code(self, toggl_api: Mock, database_url: str, sample_user_data: Dict,
                                     sample_workspace_data: Dict):
        toggl_api.me.return_value = schemas.User(**{**sample_user_data["data"], "default_wid": 99})
        toggl_api.workspaces_get_all.return_value = [schemas.Workspace(**sample_workspace_data)]

        assert cli.main(["--database-url", database_url, "sync"]) == 1

    def test_log(self, toggl_api: Mock, capsys, sample_time_entry_data: Dict):
        toggl_api.time_entry_create.return_value = schemas.TimeEntryResponse(
            data=schemas.TimeEntry(**sample_time_entry_data)
        )

        code = cli.main(["log", "--description", "Notes on the engine", "--start", "2024-01-15T09:00:00",
                         "--duration", "9000", "--workspace-id", "10", "--tag", "research", "--tag", "writing"])

        assert code == 0
        entry = toggl_api.time_entry_create.call_args.args[0]
        assert entry.start == datetime(2024, 1, 15, 9, tzinfo=timezone.utc)
        assert entry.stop == datetime(2024, 1, 15, 11, 30, tzinfo=timezone.utc)
        assert entry.tags == ["research", "writing"]
        assert entry.billable is None
        assert "Created time entry 5000" in capsys.readouterr().out

    def test_report(self, toggl_api: Mock, capsys):
        toggl_api.iter_reports_detailed.return_value = iter(Report(
            total_count=1,
            per_page=50,
            data=[{
                "id": 1,
                "project": "Difference Engine",
                "uid": 1,
                "user": "Ada Lovelace",
                "description": "Notes on the engine",
                "start": "2024-01-15T09:00:00+00:00",
                "dur": 5400000,
                "updated": "2024-01-15T10:30:00+00:00",
                "use_stop": True,
                "is_billable": False,
            }],
        ).data)

        code = cli.main(["report", "--workspace-id", "10", "--since", "2024-01-01", "--until", "2024-01-31"])

        assert code == 0
        params = toggl_api.iter_reports_detailed.call_args.args[0]
        assert params.workspace_id == 10
        assert params.since == date(2024, 1, 1)
        assert "1:30:00  Difference Engine  Notes on the engine" in capsys.readouterr().out

    def test_report_rejects_reversed_span(self, toggl_api: Mock):
        code = cli.main(["report", "--workspace-id", "10", "--since", "2024-02-01", "--until", "2024-01-01"])

        assert code == 1
        toggl_api.iter_reports_detailed.assert_not_called()
