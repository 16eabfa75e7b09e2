# api/apps.py

from fastapi import APIRouter, Depends

from event_analytics.api.deps import get_application_service, get_current_account
from event_analytics.crud.crud_auth import AccountIdentity
from event_analytics.schemas.app import AccessKeyIssued, AccessKeyRead, ApplicationRead, ApplicationUpdate
from event_analytics.services.applications import ApplicationService

router = APIRouter(prefix="/apps", tags=["apps"])


def _app_payload(app, keys=()) -> dict:
    data = ApplicationRead.model_validate(app)
    data.api_keys = [AccessKeyRead.model_validate(k) for k in keys]
    return data.model_dump(by_alias=True, mode="json")


@router.get("")
def list_apps_route(
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    rows = service.list_with_keys(account)
    return {"success": True, "data": [_app_payload(app, keys) for app, keys in rows]}


@router.get("/{app_id}")
def get_app_route(
    app_id: str,
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    app = service.get(account, app_id)
    key = service.keys.active_key(app.id)
    return {"success": True, "data": _app_payload(app, [key] if key else [])}


@router.put("/{app_id}")
def update_app_route(
    app_id: str,
    payload: ApplicationUpdate,
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    app = service.update(account, app_id, payload)
    return {"success": True, "message": "App updated successfully", "data": _app_payload(app)}


@router.delete("/{app_id}")
def delete_app_route(
    app_id: str,
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    service.delete(account, app_id)
    return {"success": True, "message": "App deleted successfully"}


@router.post("/{app_id}/api-key", status_code=201)
def issue_api_key_route(
    app_id: str,
    account: AccountIdentity = Depends(get_current_account),
    service: ApplicationService = Depends(get_application_service),
):
    app = service.get(account, app_id)
    row, plain = service.keys.issue(app.id)
    issued = AccessKeyIssued(api_key=plain, expires_at=row.expires_at)
    return {"success": True, "data": issued.model_dump(by_alias=True, mode="json")}
