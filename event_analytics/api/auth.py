# api/auth.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from event_analytics.api.deps import get_application_service, get_current_account
from event_analytics.core.database import get_db
from event_analytics.core.errors import CredentialError, NotFoundError
from event_analytics.crud.crud_auth import AccountIdentity, authenticate_account, create_account
from event_analytics.schemas.app import (
    AccessKeyIssued,
    AccessKeyRead,
    AppIdRequest,
    ApplicationCreate,
    ApplicationRegistered,
)
from event_analytics.schemas.auth import LoginRequest, SignupRequest, TokenResponse
from event_analytics.security.tokens import create_access_token
from event_analytics.services.applications import ApplicationService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=201)
def signup_route(payload: SignupRequest, db: Session = Depends(get_db)):
    account = create_account(db, name=payload.name, email=payload.email, password=payload.password)
    token = TokenResponse(access_token=create_access_token(account.id, account.email))
    return {"success": True, "data": token.model_dump(by_alias=True)}


@router.post("/login")
def login_route(payload: LoginRequest, db: Session = Depends(get_db)):
    account = authenticate_account(db, email=payload.email, password=payload.password)
    if not account:
        raise CredentialError("Invalid email or password")
    token = TokenResponse(access_token=create_access_token(account.id, account.email))
    return {"success": True, "data": token.model_dump(by_alias=True)}


@router.get("/me")
def me_route(account: AccountIdentity = Depends(get_current_account)):
    return {"success": True, "data": {"accountId": account.account_id, "email": account.email}}


@router.post("/register", status_code=201)
def register_app_route(
    payload: ApplicationCreate,
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    app, key, plain = service.register(account, payload)
    registered = ApplicationRegistered(app_id=app.id, api_key=plain, expires_at=key.expires_at)
    return {"success": True, "data": registered.model_dump(by_alias=True, mode="json")}


@router.get("/api-key")
def get_api_key_route(
    app_id: str = Query(..., min_length=1, alias="appId"),
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    app = service.get(account, app_id)
    key = service.keys.active_key(app.id)
    if key is None:
        raise NotFoundError("No active API key found")
    return {"success": True, "data": AccessKeyRead.model_validate(key).model_dump(by_alias=True, mode="json")}


@router.post("/revoke")
def revoke_api_key_route(
    payload: AppIdRequest,
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    app = service.get(account, payload.app_id)
    service.keys.revoke(app.id)
    return {"success": True, "message": "API key(s) revoked successfully"}


@router.post("/regenerate", status_code=201)
def regenerate_api_key_route(
    payload: AppIdRequest,
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    app = service.get(account, payload.app_id)
    row, plain = service.keys.rotate(app.id)
    issued = AccessKeyIssued(api_key=plain, expires_at=row.expires_at)
    return {"success": True, "data": issued.model_dump(by_alias=True, mode="json")}
