# models/account.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import DeclarativeBase

APP_TYPES = ("website", "mobile", "desktop")


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=_uuid)

    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False, unique=True, index=True)

    # bcrypt hash, null for accounts created through a federated login
    password_hash = Column(String(100), nullable=True)
    google_id = Column(String(100), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    def __repr__(self) -> str:
        return f"Account(id={self.id!r}, email={self.email!r})"


class Application(Base):
    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=_uuid)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    domain = Column(String(255), nullable=True)
    type = Column(String(20), nullable=False)  # website|mobile|desktop

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    __table_args__ = (
        Index("ix_applications_account_created", "account_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"Application(id={self.id!r}, account_id={self.account_id!r}, name={self.name!r}, type={self.type!r})"
