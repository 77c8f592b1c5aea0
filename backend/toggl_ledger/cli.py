"""
Command-line interface for toggl-ledger.

Subcommands create the local store, mirror the account into it, show
workspace data straight from the API, log new time entries and print the
detailed report.
"""
import argparse
import logging
import sys
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from pydantic import ValidationError

from . import __version__
from .config import DATABASE_URL, LOG_LEVEL, SQL_ECHO, TOGGL_API_KEY, TOGGL_USER_AGENT
from .database.connection import create_tables, make_engine, make_session_factory, session_scope
from .exceptions import LedgerError
from .schemas.reports import ReportsDetailedParams
from .schemas.toggl import TimeEntry
from .sync import SyncService
from .toggl.client import TogglApi
from .toggl.errors import ApiError

logger = logging.getLogger(__name__)


def _utc_datetime(value: str) -> datetime:
    """Parse an ISO timestamp, reading naive values as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _day_start(day: Optional[date]) -> Optional[datetime]:
    if day is None:
        return None
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _format_duration(seconds: int) -> str:
    hours, rest = divmod(max(seconds, 0), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toggl-ledger",
        description="Mirror a Toggl account into a local relational store",
    )
    parser.add_argument("--database-url", default=DATABASE_URL, help="SQLAlchemy URL of the local store")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the local tables")
    subparsers.add_parser("show", help="Print the projects and tags of the first workspace")

    sync_parser = subparsers.add_parser("sync", help="Mirror the account into the local store")
    sync_parser.add_argument("--since", type=date.fromisoformat, help="First day of time entries (YYYY-MM-DD)")
    sync_parser.add_argument("--until", type=date.fromisoformat, help="Last day of time entries (YYYY-MM-DD)")

    log_parser = subparsers.add_parser("log", help="Create a time entry")
    log_parser.add_argument("--description", required=True, help="Work description")
    log_parser.add_argument("--start", type=_utc_datetime, required=True, help="Start time (ISO 8601)")
    log_parser.add_argument("--duration", type=int, required=True, help="Duration in seconds")
    log_parser.add_argument("--workspace-id", type=int, help="Workspace ID")
    log_parser.add_argument("--project-id", type=int, help="Project ID")
    log_parser.add_argument("--tag", action="append", dest="tags", help="Tag name, may be repeated")
    log_parser.add_argument("--billable", action="store_true", help="Mark the entry billable")

    report_parser = subparsers.add_parser("report", help="Print the detailed report")
    report_parser.add_argument("--workspace-id", type=int, required=True, help="Workspace ID")
    report_parser.add_argument("--since", type=date.fromisoformat, help="First day (YYYY-MM-DD)")
    report_parser.add_argument("--until", type=date.fromisoformat, help="Last day (YYYY-MM-DD)")

    return parser


def cmd_init_db(args: argparse.Namespace) -> int:
    engine = make_engine(args.database_url, echo=SQL_ECHO)
    create_tables(engine)
    print(f"Initialized database at {args.database_url}")
    return 0


def cmd_show(args: argparse.Namespace, api: TogglApi) -> int:
    workspaces = api.workspaces_get_all()
    if not workspaces:
        print("No workspaces found")
        return 0

    workspace = workspaces[0]
    print(f"Workspace {workspace.id}: {workspace.name}")
    print("Projects:")
    for project in api.workspaces_projects_all(workspace.id):
        print(f"  [{project.id}] {project.name}{'' if project.active else ' (archived)'}")
    print("Tags:")
    for tag in api.workspaces_tags_all(workspace.id):
        print(f"  [{tag.id}] {tag.name}")
    return 0


def cmd_sync(args: argparse.Namespace, api: TogglApi) -> int:
    engine = make_engine(args.database_url, echo=SQL_ECHO)
    create_tables(engine)
    factory = make_session_factory(engine)

    until = _day_start(args.until + timedelta(days=1)) if args.until else None
    with session_scope(factory) as db:
        summary = SyncService(api, db).sync_all(_day_start(args.since), until)

    print(summary.model_dump_json(indent=2))
    return 0


def cmd_log(args: argparse.Namespace, api: TogglApi) -> int:
    entry = TimeEntry(
        description=args.description,
        wid=args.workspace_id,
        pid=args.project_id,
        billable=args.billable or None,
        start=args.start,
        stop=args.start + timedelta(seconds=args.duration) if args.duration >= 0 else None,
        duration=args.duration,
        tags=args.tags,
    )
    created = api.time_entry_create(entry).data
    print(f"Created time entry {created.id}")
    return 0


def cmd_report(args: argparse.Namespace, api: TogglApi) -> int:
    params = ReportsDetailedParams(
        user_agent=TOGGL_USER_AGENT,
        workspace_id=args.workspace_id,
        since=args.since,
        until=args.until,
    )
    for row in api.iter_reports_detailed(params):
        print(
            f"{row.start.isoformat()}  {_format_duration(row.dur // 1000)}  "
            f"{row.project or '-'}  {row.description or '(no description)'}"
        )
    return 0


COMMANDS = {
    "show": cmd_show,
    "sync": cmd_sync,
    "log": cmd_log,
    "report": cmd_report,
}


# PUBLIC_INTERFACE
def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI.

    Args:
        argv: Arguments, defaults to ``sys.argv[1:]``

    Returns:
        int: Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "sync" and args.since and args.until and args.since > args.until:
        parser.error("--since must not be after --until")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if args.command == "init-db":
        return cmd_init_db(args)

    if not TOGGL_API_KEY:
        parser.error("TOGGL_API_KEY is not set")

    try:
        return COMMANDS[args.command](args, TogglApi(TOGGL_API_KEY))
    except ApiError as e:
        logger.error(f"Toggl API request failed: {e}")
    except LedgerError as e:
        logger.error(f"Local store rejected the data: {e}")
    except ValidationError as e:
        logger.error(f"Invalid arguments: {e}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
