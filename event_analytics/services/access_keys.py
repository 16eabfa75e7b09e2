# services/access_keys.py

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_analytics.core.config import API_KEY_TTL_DAYS
from event_analytics.core.errors import ConflictError, CredentialError
from event_analytics.crud.crud_auth import (
    ApplicationIdentity,
    create_access_key,
    deactivate_access_keys,
    find_valid_access_key,
    get_active_access_key,
)
from event_analytics.models.account import Application
from event_analytics.models.auth import AccessKey

logger = logging.getLogger(__name__)

INVALID_KEY_MESSAGE = "Invalid or expired API key"


class AccessKeyManager:
    """
    Issues, revokes, rotates and resolves the API keys of an Application.

    At most one valid active key exists per Application: issue() refuses when
    one is present and rotate() swaps keys inside a single transaction.
    """

    def __init__(self, db: Session, ttl_days: int = API_KEY_TTL_DAYS):
        self.db = db
        self.ttl_days = ttl_days

    def issue(self, app_id: str) -> Tuple[AccessKey, str]:
        if get_active_access_key(self.db, app_id) is not None:
            raise ConflictError("An active API key already exists for this app, regenerate it instead")

        try:
            row, plain = create_access_key(self.db, application_id=app_id, ttl_days=self.ttl_days)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info("Issued API key %s for app %s", row.id, app_id)
        return row, plain

    def revoke(self, app_id: str) -> int:
        try:
            touched = deactivate_access_keys(self.db, application_id=app_id)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info("Revoked %d API key(s) for app %s", touched, app_id)
        return touched

    def rotate(self, app_id: str) -> Tuple[AccessKey, str]:
        try:
            deactivate_access_keys(self.db, application_id=app_id, commit=False)
            row, plain = create_access_key(self.db, application_id=app_id, ttl_days=self.ttl_days, commit=False)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info("Rotated API key for app %s, new key %s", app_id, row.id)
        return row, plain

    def resolve(self, raw_key: Optional[str]) -> ApplicationIdentity:
        # wrong, revoked and expired keys all look the same to the caller
        row = find_valid_access_key(self.db, raw_key or "")
        if row is None:
            raise CredentialError(INVALID_KEY_MESSAGE)

        app = self.db.query(Application).filter(Application.id == row.application_id).first()
        if app is None:
            raise CredentialError(INVALID_KEY_MESSAGE)
        return ApplicationIdentity(app_id=app.id, account_id=app.account_id, access_key_id=row.id)

    def active_key(self, app_id: str) -> Optional[AccessKey]:
        return get_active_access_key(self.db, app_id)
