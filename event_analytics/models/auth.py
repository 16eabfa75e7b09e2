# models/auth.py

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Index

from event_analytics.models.account import Base  # reuse Base from models/account.py


class AccessKey(Base):
    __tablename__ = "access_keys"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)

    # Store only a hash of the key, never the plaintext
    key_hash = Column(String(64), nullable=False, unique=True, index=True)
    # first characters of the plaintext, enough to tell keys apart in a UI
    key_prefix = Column(String(12), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_access_keys_app_active", "application_id", "is_active"),
    )
