"""SQLAlchemy ORM models."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Uuid as SA_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from core.clock import utcnow


class Base(DeclarativeBase):
    """Base class for all remote-store ORM models."""

    pass


class EventModel(Base):
    """Event model."""

    __tablename__ = "events"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    event_code: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(String(255))
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (CheckConstraint("starts_at <= expires_at", name="ck_events_window"),)


class EventProfileModel(Base):
    """Attendee profile model (one per session per event)."""

    __tablename__ = "event_profiles"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    event_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender_identity: Mapped[str] = mapped_column(String(20), nullable=False)
    interested_in: Mapped[str | None] = mapped_column(String(20))
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    interests: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    about_me: Mapped[str | None] = mapped_column(Text)
    height_cm: Mapped[int | None] = mapped_column(Integer)
    profile_photo_url: Mapped[str | None] = mapped_column(String(500))
    profile_color: Mapped[str | None] = mapped_column(String(7))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("event_id", "session_id", name="uq_event_profiles_session"),
        Index("ix_event_profiles_visible", "event_id", "is_visible"),
    )


class LikeModel(Base):
    """Directed like edge."""

    __tablename__ = "likes"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    event_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    liker_session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    liked_session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    from_profile_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("event_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    to_profile_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("event_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_mutual: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    liker_notified_of_match: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    liked_notified_of_match: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "event_id", "liker_session_id", "liked_session_id", name="uq_likes_pair"
        ),
        CheckConstraint("liker_session_id <> liked_session_id", name="ck_likes_not_self"),
        Index("ix_likes_liked", "event_id", "liked_session_id"),
    )


class MessageModel(Base):
    """Chat message model."""

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    event_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    from_profile_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("event_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    to_profile_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("event_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    seen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_messages_conversation", "event_id", "from_profile_id", "to_profile_id"),
    )


class BlockedMatchModel(Base):
    """Block between two sessions."""

    __tablename__ = "blocked_matches"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    event_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    blocker_session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    blocked_session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "event_id", "blocker_session_id", "blocked_session_id", name="uq_blocked_pair"
        ),
    )


class KickedUserModel(Base):
    """Session removed from an event."""

    __tablename__ = "kicked_users"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    event_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (UniqueConstraint("event_id", "session_id", name="uq_kicked_session"),)
