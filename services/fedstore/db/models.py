"""
SQLAlchemy database models for fedstore.

All models use:
- UUIDv7 primary keys (time-sortable)
- snake_case column names
- Plural table names
- TIMESTAMPTZ with UTC for all timestamps
- Hard deletes (no soft delete columns)

Users and groups are scoped by realm. A user row is a local cache of an
external identity; it never carries a password.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def generate_uuid7() -> uuid.UUID:
    """Generate a UUIDv7 (time-sortable UUID)."""
    # UUIDv7: timestamp in first 48 bits, version in bits 48-51, random in rest
    import time

    timestamp_ms = int(time.time() * 1000)
    rand_bytes = uuid.uuid4().bytes[6:]

    # Construct UUIDv7
    uuid_bytes = (
        timestamp_ms.to_bytes(6, "big")
        + bytes([0x70 | (rand_bytes[0] & 0x0F)])  # Version 7
        + bytes([0x80 | (rand_bytes[1] & 0x3F)])  # Variant
        + rand_bytes[2:]
    )
    return uuid.UUID(bytes=uuid_bytes)


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all models."""

    type_annotation_map = {
        dict[str, Any]: JSON,
    }


user_group_memberships = Table(
    "user_group_memberships",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", Uuid, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
)


class Group(Base):
    """Group mirrored from the external directory.

    The path is the external group name prefixed with "/". (realm_id, path)
    is unique so concurrent imports converge on a single row.
    """

    __tablename__ = "groups"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid7)
    realm_id: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (UniqueConstraint("realm_id", "path", name="uq_groups_realm_path"),)


class User(Base):
    """Local cached identity.

    federation_link holds the id of the federation provider that imported
    the row. Linked rows are only ever written by that provider.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid7)
    realm_id: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)

    # Never NULL: missing directory attributes are stored as ""
    email: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    federation_link: Mapped[str | None] = mapped_column(String(63), nullable=True)

    # selectin: async sessions can't lazy-load on attribute access
    groups: Mapped[list[Group]] = relationship(
        secondary=user_group_memberships,
        lazy="selectin",
        order_by=Group.path,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("realm_id", "username", name="uq_users_realm_username"),
        Index("ix_users_federation_link", "federation_link"),
    )


class AuditLog(Base):
    """Audit log for authentication events."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid7)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )

    # Event classification
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # 'auth'
    action: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )  # 'login', 'login_failed'

    # Actor
    actor_type: Mapped[str] = mapped_column(String(20), nullable=False)  # 'user', 'system'
    actor_id: Mapped[str | None] = mapped_column(String(255), nullable=True)  # username
    actor_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)

    # Scope
    realm_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider_id: Mapped[str | None] = mapped_column(String(63), nullable=True)

    # Request context
    request_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    # Additional details
    details: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    # Result
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_audit_logs_timestamp_event", "timestamp", "event_type"),
        Index("ix_audit_logs_actor", "actor_type", "actor_id"),
    )
