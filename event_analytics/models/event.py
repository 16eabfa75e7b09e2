# models/event.py

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text

from event_analytics.models.account import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True, nullable=False)
    application_id = Column(String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)

    # type and display name start out identical; name may be relabelled later
    type = Column(String(100), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    url = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)
    device = Column(String(100), nullable=True, index=True)
    ip_address = Column(String(45), nullable=True)
    user_id = Column(String(100), nullable=True, index=True)

    # canonical JSON text; "metadata" is reserved on declarative classes
    event_metadata = Column("metadata", Text, nullable=True)

    # client-side occurrence time vs. storage time
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)

    __table_args__ = (
        Index("ix_events_app_type_timestamp", "application_id", "type", "timestamp"),
        Index("ix_events_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"Event(id={self.id!r}, application_id={self.application_id!r}, "
            f"type={self.type!r}, user_id={self.user_id!r}, timestamp={self.timestamp!r})"
        )
