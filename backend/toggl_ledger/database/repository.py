"""
Repository for reading and writing ledger records.

Translates validated Toggl payloads into rows, keeps upserts idempotent and
turns constraint failures into ``toggl_ledger.exceptions`` errors.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import RecordConflict, RecordNotFound
from ..schemas import toggl as schemas
from .models import Client, Project, Tag, TimeEntry, TimeEntryTag, User, Workspace

logger = logging.getLogger(__name__)


class LedgerRepository:
    """Ledger operations bound to one database session."""

    def __init__(self, db: Session):
        self.db = db

    # PUBLIC_INTERFACE
    def get(self, model, key):
        """
        Get a row by primary key.

        Raises:
            RecordNotFound: If no row has this key
        """
        record = self.db.get(model, key)
        if record is None:
            raise RecordNotFound(model.__name__, key)
        return record

    def _upsert(self, model, key: int, values: dict):
        record = self.db.get(model, key)
        if record is None:
            record = model(id=key, **values)
            self.db.add(record)
        else:
            for field, value in values.items():
                setattr(record, field, value)
        return record

    # PUBLIC_INTERFACE
    def upsert_user(self, user: schemas.User) -> User:
        """Insert or update a user from its API payload."""
        values = user.model_dump(exclude={"id", "default_wid"})
        values["email"] = str(user.email)
        values["default_wid_id"] = user.default_wid
        return self._upsert(User, user.id, values)

    # PUBLIC_INTERFACE
    def upsert_workspace(self, workspace: schemas.Workspace, owner_id: int) -> Workspace:
        """Insert or update a workspace owned by ``owner_id``."""
        values = workspace.model_dump(exclude={"id"})
        values["user_id"] = owner_id
        return self._upsert(Workspace, workspace.id, values)

    # PUBLIC_INTERFACE
    def upsert_client(self, client: schemas.Client, owner_id: int) -> Client:
        """Insert or update a client owned by ``owner_id``."""
        values = client.model_dump(exclude={"id", "notes"})
        values["user_id"] = owner_id
        return self._upsert(Client, client.id, values)

    # PUBLIC_INTERFACE
    def upsert_project(self, project: schemas.Project) -> Project:
        """Insert or update a project."""
        return self._upsert(Project, project.id, project.model_dump(exclude={"id"}))

    # PUBLIC_INTERFACE
    def upsert_tag(self, tag: schemas.Tag, owner_id: int) -> Tag:
        """
        Insert or update a tag owned by ``owner_id``.

        Raises:
            RecordConflict: If another tag already uses the name in the workspace
        """
        existing_tag = self.db.query(Tag).filter(
            Tag.wid == tag.wid,
            Tag.name == tag.name,
            Tag.id != tag.id
        ).first()

        if existing_tag:
            raise RecordConflict(f"Tag '{tag.name}' already exists in workspace {tag.wid}")

        return self._upsert(Tag, tag.id, {"name": tag.name, "wid": tag.wid, "user_id": owner_id})

    # PUBLIC_INTERFACE
    def reconcile_tags(self, wid: int, remote_tags: List[schemas.Tag]) -> int:
        """
        Prepare a workspace's local tags for the remote tag set.

        Tags whose id is gone remotely are deleted along with their links.
        Tags renamed remotely get a placeholder name, so names can move
        between ids before the upserts run.

        Args:
            wid: Workspace ID
            remote_tags: Every tag the workspace has remotely

        Returns:
            int: Number of local tags deleted
        """
        remote_names = {tag.id: tag.name for tag in remote_tags}
        removed = 0

        for tag in self.db.query(Tag).filter(Tag.wid == wid).all():
            if tag.id not in remote_names:
                self.db.delete(tag)
                removed += 1
            elif tag.name != remote_names[tag.id]:
                tag.name = f"~renaming~{tag.id}"

        self.db.flush()
        return removed

    # PUBLIC_INTERFACE
    def upsert_time_entry(self, entry: schemas.TimeEntry) -> TimeEntry:
        """Insert or update a time entry; tag names are handled by ``set_entry_tags``."""
        values = entry.model_dump(exclude={"id", "tid", "tags"})
        values["description"] = entry.description or ""
        return self._upsert(TimeEntry, entry.id, values)

    # PUBLIC_INTERFACE
    def create_tag(self, wid: int, name: str, user_id: int, tag_id: Optional[int] = None) -> Tag:
        """
        Create a tag in a workspace.

        Args:
            wid: Workspace ID
            name: Tag name, unique within the workspace
            user_id: Owning user ID
            tag_id: Explicit ID, assigned by the database when omitted

        Returns:
            Tag: The new, flushed tag

        Raises:
            RecordConflict: If the workspace already has a tag with this name
        """
        existing_tag = self.db.query(Tag).filter(Tag.wid == wid, Tag.name == name).first()

        if existing_tag:
            raise RecordConflict(f"Tag '{name}' already exists in workspace {wid}")

        tag = Tag(id=tag_id, wid=wid, name=name, user_id=user_id)
        self.db.add(tag)
        self.db.flush()
        return tag

    # PUBLIC_INTERFACE
    def attach_tag(self, time_entry_id: int, tag_id: int) -> TimeEntryTag:
        """
        Tag a time entry.

        Raises:
            RecordNotFound: If the entry or the tag does not exist
            RecordConflict: If the entry already carries the tag
        """
        self.get(TimeEntry, time_entry_id)
        self.get(Tag, tag_id)

        existing_link = self.db.query(TimeEntryTag).filter(
            TimeEntryTag.time_entry_id == time_entry_id,
            TimeEntryTag.tag_id == tag_id
        ).first()

        if existing_link:
            raise RecordConflict(f"Time entry {time_entry_id} already has tag {tag_id}")

        link = TimeEntryTag(time_entry_id=time_entry_id, tag_id=tag_id)
        self.db.add(link)
        self.db.flush()
        return link

    # PUBLIC_INTERFACE
    def set_entry_tags(self, entry: TimeEntry, names: Iterable[str]) -> List[str]:
        """
        Make the entry's tags match ``names``.

        Names are resolved within the entry's workspace. Links to tags no
        longer named are removed, and an entry without a workspace keeps no
        links at all.

        Returns:
            List[str]: Names with no matching tag, which were skipped
        """
        wanted = set(names)

        tags = {}
        if wanted and entry.wid is not None:
            tags = {
                tag.name: tag
                for tag in self.db.query(Tag).filter(Tag.wid == entry.wid, Tag.name.in_(wanted)).all()
            }

        for link in list(entry.tag_links):
            if link.tag.name not in tags:
                entry.tag_links.remove(link)

        linked = {link.tag.name for link in entry.tag_links}
        for name, tag in tags.items():
            if name not in linked:
                entry.tag_links.append(TimeEntryTag(tag=tag))

        return sorted(wanted - set(tags))

    # PUBLIC_INTERFACE
    def commit(self):
        """
        Commit the session.

        Raises:
            RecordConflict: If the database rejects the transaction
        """
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.error(f"Commit rejected: {exc.orig}")
            raise RecordConflict(str(exc.orig)) from exc

    def list_workspaces(self) -> List[Workspace]:
        return self.db.query(Workspace).order_by(Workspace.name).all()

    def list_clients(self, wid: int) -> List[Client]:
        return self.db.query(Client).filter(Client.wid == wid).order_by(Client.name).all()

    def list_projects(self, wid: int, active: Optional[bool] = None) -> List[Project]:
        query = self.db.query(Project).filter(Project.wid == wid)
        if active is not None:
            query = query.filter(Project.active == active)
        return query.order_by(Project.name).all()

    def list_tags(self, wid: int) -> List[Tag]:
        return self.db.query(Tag).filter(Tag.wid == wid).order_by(Tag.name).all()

    def list_time_entries(self, wid: Optional[int] = None, since: Optional[datetime] = None,
                          until: Optional[datetime] = None) -> List[TimeEntry]:
        """List time entries by start time, optionally within a workspace and window."""
        query = self.db.query(TimeEntry)
        if wid is not None:
            query = query.filter(TimeEntry.wid == wid)
        if since is not None:
            query = query.filter(TimeEntry.start >= since)
        if until is not None:
            query = query.filter(TimeEntry.start < until)
        return query.order_by(TimeEntry.start).all()

    def tags_for_entry(self, time_entry_id: int) -> List[Tag]:
        return self.db.query(Tag).join(TimeEntryTag).filter(
            TimeEntryTag.time_entry_id == time_entry_id
        ).order_by(Tag.name).all()
