"""
SQLAlchemy database models for the Toggl ledger.

Declares the local mirror of a Toggl account: workspaces, users, clients,
projects, time entries, tags and the time entry/tag join table. Primary keys
are the ids Toggl assigns, so rows are always inserted with explicit ids.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Text, Numeric,
    ForeignKey, UniqueConstraint, PrimaryKeyConstraint, Index, TypeDecorator
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utc_now() -> datetime:
    """Timezone-aware current time, used as the default for timestamps."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert a timestamp to UTC, reading naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timestamp stored in UTC and loaded timezone-aware, whatever the backend keeps."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


class User(Base):
    """Toggl account with its display and notification preferences."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    api_token = Column(String(255), nullable=False)
    # Users and workspaces reference each other; the check is deferred to
    # commit so both rows can be written in one transaction.
    default_wid_id = Column(
        Integer,
        ForeignKey(
            "workspaces.id",
            name="fk_user_default_workspace",
            use_alter=True,
            deferrable=True,
            initially="DEFERRED",
        ),
        nullable=False,
    )
    email = Column(String(255), nullable=False)
    fullname = Column(String(255), nullable=False)
    jquery_timeofday_format = Column(String(50), nullable=False)
    jquery_date_format = Column(String(50), nullable=False)
    timeofday_format = Column(String(50), nullable=False)
    date_format = Column(String(50), nullable=False)
    store_start_and_stop_time = Column(Boolean, nullable=False, default=True)
    beginning_of_week = Column(Integer, nullable=False, default=1)
    language = Column(String(50), nullable=False)
    image_url = Column(Text, nullable=False)
    sidebar_piechart = Column(Boolean, nullable=False, default=False)
    at = Column(UTCDateTime, nullable=False, default=utc_now)
    send_product_emails = Column(Boolean, nullable=False, default=False)
    send_weekly_report = Column(Boolean, nullable=False, default=False)
    send_timer_notifications = Column(Boolean, nullable=False, default=False)
    openid_enabled = Column(Boolean, nullable=False, default=False)
    timezone = Column(String(100), nullable=False)

    # Relationships
    default_workspace = relationship("Workspace", foreign_keys=[default_wid_id], viewonly=True)
    workspaces = relationship("Workspace", back_populates="owner", foreign_keys="Workspace.user_id")
    clients = relationship("Client", back_populates="owner")
    tags = relationship("Tag", back_populates="owner")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class Workspace(Base):
    """Organizational container with billing defaults and feature flags."""
    __tablename__ = "workspaces"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    premium = Column(Boolean, nullable=False, default=False)
    admin = Column(Boolean, nullable=False, default=False)
    default_hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    default_currency = Column(String(10), nullable=False, default="USD")
    only_admins_may_create_projects = Column(Boolean, nullable=False, default=False)
    only_admins_see_billable_rates = Column(Boolean, nullable=False, default=False)
    rounding = Column(Integer, nullable=False, default=1)
    rounding_minutes = Column(Integer, nullable=False, default=0)
    at = Column(UTCDateTime, nullable=False, default=utc_now)
    logo_url = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Relationships
    owner = relationship("User", back_populates="workspaces", foreign_keys=[user_id])
    tags = relationship("Tag", back_populates="workspace", cascade="all, delete-orphan")
    time_entries = relationship("TimeEntry", back_populates="workspace")

    def __repr__(self):
        return f"<Workspace(id={self.id}, name='{self.name}')>"


class Client(Base):
    """Customer record scoped to a workspace."""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    wid = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    at = Column(UTCDateTime, nullable=False, default=utc_now)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Relationships
    owner = relationship("User", back_populates="clients")

    # Constraints
    __table_args__ = (
        Index('idx_client_workspace', 'wid'),
    )

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}', wid={self.wid})>"


class Project(Base):
    """Billable or non-billable unit of work inside a workspace."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    wid = Column(Integer, nullable=False)
    cid = Column(Integer, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    is_private = Column(Boolean, nullable=False, default=True)
    template = Column(Boolean, nullable=True)
    template_id = Column(Integer, nullable=True)
    billable = Column(Boolean, nullable=True)
    auto_estimates = Column(Boolean, nullable=True)
    estimated_hours = Column(Integer, nullable=True)
    at = Column(UTCDateTime, nullable=False, default=utc_now)
    color = Column(String(32), nullable=False, default="0")
    rate = Column(Numeric(10, 2), nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    # Relationships
    time_entries = relationship("TimeEntry", back_populates="project")

    # Constraints
    __table_args__ = (
        Index('idx_project_workspace_client', 'wid', 'cid'),
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}', wid={self.wid})>"


class TimeEntry(Base):
    """A recorded interval of work.

    A negative ``duration`` marks a running timer: its value is the start of
    the entry as negated seconds since the epoch.
    """
    __tablename__ = "time_entrys"

    id = Column(Integer, primary_key=True)
    description = Column(Text, nullable=False, default="")
    wid = Column(Integer, ForeignKey("workspaces.id"), nullable=True)
    pid = Column(Integer, ForeignKey("projects.id"), nullable=True)
    billable = Column(Boolean, nullable=True)
    start = Column(UTCDateTime, nullable=False)
    stop = Column(UTCDateTime, nullable=True)
    duration = Column(Integer, nullable=False)
    created_with = Column(String(255), nullable=True)
    duronly = Column(Boolean, nullable=True)
    at = Column(UTCDateTime, nullable=True)

    # Relationships
    workspace = relationship("Workspace", back_populates="time_entries")
    project = relationship("Project", back_populates="time_entries")
    tag_links = relationship("TimeEntryTag", back_populates="time_entry", cascade="all, delete-orphan")
    tags = relationship("Tag", secondary="time_entry_tag_join", viewonly=True, order_by="Tag.name")

    # Constraints
    __table_args__ = (
        Index('idx_time_entry_workspace_start', 'wid', 'start'),
        Index('idx_time_entry_project', 'pid'),
    )

    @property
    def is_running(self) -> bool:
        return self.duration is not None and self.duration < 0

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        """Seconds worked so far, resolving running timers against ``now``."""
        if not self.is_running:
            return self.duration
        now = now or utc_now()
        return int(now.timestamp()) + self.duration

    def __repr__(self):
        return f"<TimeEntry(id={self.id}, wid={self.wid}, pid={self.pid})>"


class Tag(Base):
    """Label for time entries, unique by name within a workspace."""
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    wid = Column(Integer, ForeignKey("workspaces.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Relationships
    workspace = relationship("Workspace", back_populates="tags")
    owner = relationship("User", back_populates="tags")
    entry_links = relationship("TimeEntryTag", back_populates="tag", cascade="all, delete-orphan")

    # Constraints
    __table_args__ = (
        UniqueConstraint('wid', 'name', name='uq_tag_name_per_workspace'),
    )

    def __repr__(self):
        return f"<Tag(id={self.id}, name='{self.name}', wid={self.wid})>"


class TimeEntryTag(Base):
    """Association table for time entries and tags."""
    __tablename__ = "time_entry_tag_join"

    time_entry_id = Column(Integer, ForeignKey("time_entrys.id"), nullable=False)
    tag_id = Column(Integer, ForeignKey("tags.id"), nullable=False)

    # Relationships
    time_entry = relationship("TimeEntry", back_populates="tag_links")
    tag = relationship("Tag", back_populates="entry_links")

    # Constraints
    __table_args__ = (
        PrimaryKeyConstraint('tag_id', 'time_entry_id', name='pk_time_entry_tag'),
        UniqueConstraint('time_entry_id', 'tag_id', name='uq_time_entry_tag'),
    )

    def __repr__(self):
        return f"<TimeEntryTag(time_entry_id={self.time_entry_id}, tag_id={self.tag_id})>"
