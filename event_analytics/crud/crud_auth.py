# crud_auth.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from event_analytics.core.errors import ConflictError
from event_analytics.models.account import Account
from event_analytics.models.auth import AccessKey
from event_analytics.security.hashing import sha256_hex, generate_api_key, display_prefix
from event_analytics.security.passwords import hash_password, verify_password


@dataclass(frozen=True)
class AccountIdentity:
    account_id: str
    email: str


@dataclass(frozen=True)
class ApplicationIdentity:
    app_id: str
    account_id: str
    access_key_id: int


def create_account(db: Session, name: str, email: str, password: str) -> Account:
    if get_account_by_email(db, email) is not None:
        raise ConflictError("An account with this email already exists")

    row = Account(name=name, email=email.lower(), password_hash=hash_password(password))
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("An account with this email already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        raise e
    return row


def get_account(db: Session, account_id: str) -> Optional[Account]:
    return db.query(Account).filter(Account.id == account_id).first()


def get_account_by_email(db: Session, email: str) -> Optional[Account]:
    return db.query(Account).filter(Account.email == email.strip().lower()).first()


def authenticate_account(db: Session, email: str, password: str) -> Optional[Account]:
    row = get_account_by_email(db, email)
    if not row or not verify_password(password, row.password_hash or ""):
        return None
    return row


def update_account_name(db: Session, account: Account, name: str) -> Account:
    account.name = name
    try:
        db.commit()
        db.refresh(account)
    except SQLAlchemyError as e:
        db.rollback()
        raise e
    return account


def create_access_key(
    db: Session,
    application_id: str,
    ttl_days: int,
    commit: bool = True,
) -> tuple[AccessKey, str]:
    api_key_plain = generate_api_key()

    row = AccessKey(
        application_id=application_id,
        key_hash=sha256_hex(api_key_plain),
        key_prefix=display_prefix(api_key_plain),
        is_active=True,
        expires_at=datetime.now(timezone.utc) + timedelta(days=ttl_days),
    )
    db.add(row)
    if commit:
        db.commit()
        db.refresh(row)
    else:
        db.flush()
    return row, api_key_plain


def find_valid_access_key(db: Session, api_key_plain: str, now: Optional[datetime] = None) -> Optional[AccessKey]:
    if not api_key_plain:
        return None

    now = now or datetime.now(timezone.utc)
    # exact match: surrounding whitespace is part of the presented key
    key_hash = sha256_hex(api_key_plain)
    return (
        db.query(AccessKey)
        .filter(
            AccessKey.key_hash == key_hash,
            AccessKey.is_active == True,  # noqa: E712
            AccessKey.expires_at > now,
        )
        .first()
    )


def get_active_access_key(db: Session, application_id: str, now: Optional[datetime] = None) -> Optional[AccessKey]:
    now = now or datetime.now(timezone.utc)
    return (
        db.query(AccessKey)
        .filter(
            AccessKey.application_id == application_id,
            AccessKey.is_active == True,  # noqa: E712
            AccessKey.expires_at > now,
        )
        .order_by(AccessKey.created_at.desc(), AccessKey.id.desc())
        .first()
    )


def active_access_keys_by_app(db: Session, application_ids: Iterable[str]) -> Dict[str, List[AccessKey]]:
    ids = list(application_ids)
    grouped: Dict[str, List[AccessKey]] = {app_id: [] for app_id in ids}
    if not ids:
        return grouped

    rows = (
        db.query(AccessKey)
        .filter(
            AccessKey.application_id.in_(ids),
            AccessKey.is_active == True,  # noqa: E712
            AccessKey.expires_at > datetime.now(timezone.utc),
        )
        .order_by(AccessKey.id)
        .all()
    )
    for row in rows:
        grouped[row.application_id].append(row)
    return grouped


def deactivate_access_keys(db: Session, application_id: str, commit: bool = True) -> int:
    # no filter on the previous state: revoking twice is harmless
    touched = (
        db.query(AccessKey)
        .filter(AccessKey.application_id == application_id)
        .update({AccessKey.is_active: False}, synchronize_session="fetch")
    )
    if commit:
        db.commit()
    return int(touched or 0)
