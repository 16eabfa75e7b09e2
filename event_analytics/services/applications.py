# services/applications.py

import logging
from typing import List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_analytics.core.errors import NotFoundError
from event_analytics.crud.crud_apps import (
    create_application,
    delete_application,
    get_owned_application,
    list_applications,
    update_application,
)
from event_analytics.crud.crud_auth import (
    AccountIdentity,
    active_access_keys_by_app,
    create_access_key,
    deactivate_access_keys,
)
from event_analytics.models.account import Application
from event_analytics.models.auth import AccessKey
from event_analytics.schemas.app import ApplicationCreate, ApplicationUpdate
from event_analytics.services.access_keys import AccessKeyManager

logger = logging.getLogger(__name__)

APP_NOT_FOUND = "App not found or you do not have access"


class ApplicationService:
    def __init__(self, db: Session, keys: AccessKeyManager):
        self.db = db
        self.keys = keys

    def register(self, identity: AccountIdentity, data: ApplicationCreate) -> Tuple[Application, AccessKey, str]:
        """Creates the Application and its first key in one transaction."""
        try:
            app = create_application(self.db, account_id=identity.account_id, app=data, commit=False)
            key, plain = create_access_key(self.db, application_id=app.id, ttl_days=self.keys.ttl_days, commit=False)
            self.db.commit()
            self.db.refresh(app)
            self.db.refresh(key)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info("Registered app %s for account %s", app.id, identity.account_id)
        return app, key, plain

    def get(self, identity: AccountIdentity, app_id: str) -> Application:
        app = get_owned_application(self.db, account_id=identity.account_id, app_id=app_id)
        if app is None:
            raise NotFoundError(APP_NOT_FOUND)
        return app

    def list_with_keys(self, identity: AccountIdentity) -> List[Tuple[Application, List[AccessKey]]]:
        apps = list_applications(self.db, account_id=identity.account_id)
        keys = active_access_keys_by_app(self.db, [a.id for a in apps])
        return [(a, keys[a.id]) for a in apps]

    def update(self, identity: AccountIdentity, app_id: str, data: ApplicationUpdate) -> Application:
        app = self.get(identity, app_id)
        return update_application(self.db, app, data)

    def delete(self, identity: AccountIdentity, app_id: str) -> None:
        app = self.get(identity, app_id)

        # keys are revoked and the app removed together, or not at all
        try:
            deactivate_access_keys(self.db, application_id=app.id, commit=False)
            delete_application(self.db, app, commit=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Deleting app %s failed, rolled back", app_id)
            raise
        logger.info("Deleted app %s for account %s", app_id, identity.account_id)
