"""
Mirror a Toggl account into the local ledger.

Pulls the authenticated user, their workspaces with clients, projects and
tags, and a window of time entries, and upserts them through
``LedgerRepository``. Running a sync twice leaves the store unchanged.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .database.models import Project, Workspace
from .database.repository import LedgerRepository
from .schemas import toggl as schemas
from .toggl.client import TogglApi

logger = logging.getLogger(__name__)


class SyncSummary(BaseModel):
    """Counts of records written by a sync run."""
    users: int = Field(0, description="Users upserted")
    workspaces: int = Field(0, description="Workspaces upserted")
    clients: int = Field(0, description="Clients upserted")
    projects: int = Field(0, description="Projects upserted")
    tags: int = Field(0, description="Tags upserted")
    time_entries: int = Field(0, description="Time entries upserted")
    skipped_tags: List[str] = Field(default_factory=list, description="Tag names with no local tag")


class SyncService:
    """Copies remote Toggl records into the local store."""

    def __init__(self, api: TogglApi, db: Session):
        self.api = api
        self.db = db
        self.repository = LedgerRepository(db)

    # PUBLIC_INTERFACE
    def sync_account(self) -> Tuple[schemas.User, List[schemas.Workspace]]:
        """
        Store the authenticated user and the workspaces they belong to.

        Both sides of the user/workspace reference are written in one
        transaction.

        Raises:
            RecordConflict: If the user's default workspace is not among them
        """
        user = self.api.me()
        workspaces = self.api.workspaces_get_all()

        self.repository.upsert_user(user)
        for workspace in workspaces:
            self.repository.upsert_workspace(workspace, owner_id=user.id)
        self.repository.commit()

        logger.info(f"Synced user {user.id} with {len(workspaces)} workspace(s)")
        return user, workspaces

    # PUBLIC_INTERFACE
    def sync_workspace(self, wid: int, owner_id: int, summary: Optional[SyncSummary] = None) -> SyncSummary:
        """Store the clients, projects and tags of one workspace."""
        summary = summary or SyncSummary()

        clients = self.api.workspaces_clients_all(wid)
        projects = self.api.workspaces_projects_all(wid)
        tags = self.api.workspaces_tags_all(wid)

        for client in clients:
            self.repository.upsert_client(client, owner_id=owner_id)
        for project in projects:
            self.repository.upsert_project(project)
        removed = self.repository.reconcile_tags(wid, tags)
        if removed:
            logger.info(f"Workspace {wid}: removed {removed} tag(s) deleted remotely")
        # Tag name checks query the table, so each upsert is flushed.
        for tag in tags:
            self.repository.upsert_tag(tag, owner_id=owner_id)
            self.db.flush()
        self.repository.commit()

        summary.clients += len(clients)
        summary.projects += len(projects)
        summary.tags += len(tags)
        logger.info(
            f"Synced workspace {wid}: {len(clients)} client(s), "
            f"{len(projects)} project(s), {len(tags)} tag(s)"
        )
        return summary

    # PUBLIC_INTERFACE
    def sync_time_entries(self, start: Optional[datetime] = None, end: Optional[datetime] = None,
                          summary: Optional[SyncSummary] = None) -> SyncSummary:
        """
        Store time entries started in ``[start, end)`` and link their tags.

        References to workspaces or projects missing from the store are
        cleared, and tag names without a stored tag are skipped; both are
        logged as warnings.
        """
        summary = summary or SyncSummary()
        entries = self.api.time_entries_range(start, end)

        for remote in entries:
            remote = self._drop_dangling_references(remote)
            entry = self.repository.upsert_time_entry(remote)
            skipped = self.repository.set_entry_tags(entry, remote.tags or [])
            if skipped:
                logger.warning(f"Time entry {remote.id}: no local tag for {', '.join(skipped)}")
                summary.skipped_tags.extend(skipped)
        self.repository.commit()

        summary.time_entries += len(entries)
        logger.info(f"Synced {len(entries)} time entr{'y' if len(entries) == 1 else 'ies'}")
        return summary

    def _drop_dangling_references(self, remote: schemas.TimeEntry) -> schemas.TimeEntry:
        updates = {}
        if remote.wid is not None and self.db.get(Workspace, remote.wid) is None:
            logger.warning(f"Time entry {remote.id}: unknown workspace {remote.wid}")
            updates["wid"] = None
        if remote.pid is not None and self.db.get(Project, remote.pid) is None:
            logger.warning(f"Time entry {remote.id}: unknown project {remote.pid}")
            updates["pid"] = None
        return remote.model_copy(update=updates) if updates else remote

    # PUBLIC_INTERFACE
    def sync_all(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> SyncSummary:
        """
        Mirror the whole account.

        Args:
            start: Lower bound for time entries
            end: Upper bound for time entries

        Returns:
            SyncSummary: Counts of the records written
        """
        user, workspaces = self.sync_account()
        summary = SyncSummary(users=1, workspaces=len(workspaces))

        for workspace in workspaces:
            self.sync_workspace(workspace.id, owner_id=user.id, summary=summary)

        self.sync_time_entries(start, end, summary=summary)
        return summary
