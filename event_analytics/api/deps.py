from typing import Optional

from fastapi import Depends
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from event_analytics.core.cache import AggregateCache, get_cache
from event_analytics.core.database import get_db
from event_analytics.core.errors import CredentialError
from event_analytics.crud.crud_auth import AccountIdentity, ApplicationIdentity, get_account
from event_analytics.security.tokens import decode_access_token
from event_analytics.services.access_keys import AccessKeyManager
from event_analytics.services.aggregation import AggregationService
from event_analytics.services.applications import ApplicationService
from event_analytics.services.ingestion import EventIngestionService

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


def get_key_manager(db: Session = Depends(get_db)) -> AccessKeyManager:
    return AccessKeyManager(db)


def get_application_service(
    db: Session = Depends(get_db),
    keys: AccessKeyManager = Depends(get_key_manager),
) -> ApplicationService:
    return ApplicationService(db, keys)


def get_ingestion_service(db: Session = Depends(get_db)) -> EventIngestionService:
    return EventIngestionService(db)


def get_aggregation_service(
    db: Session = Depends(get_db),
    cache: AggregateCache = Depends(get_cache),
) -> AggregationService:
    return AggregationService(db, cache)


def get_application_identity(
    api_key: Optional[str] = Depends(api_key_header),
    keys: AccessKeyManager = Depends(get_key_manager),
) -> ApplicationIdentity:
    if not api_key:
        raise CredentialError("API key is required")
    return keys.resolve(api_key)


def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AccountIdentity:
    if credentials is None:
        raise CredentialError("Authentication token is required")

    account_id = decode_access_token(credentials.credentials)
    account = get_account(db, account_id)
    if not account:
        raise CredentialError("Invalid token")
    return AccountIdentity(account_id=account.id, email=account.email)
