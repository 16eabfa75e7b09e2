# api/users.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from event_analytics.api.deps import get_current_account
from event_analytics.core.database import get_db
from event_analytics.core.errors import NotFoundError
from event_analytics.crud.crud_auth import AccountIdentity, get_account, update_account_name
from event_analytics.schemas.auth import AccountRead, ProfileUpdate

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile")
def get_profile_route(
    account: AccountIdentity = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    row = get_account(db, account.account_id)
    if not row:
        raise NotFoundError("Account not found")
    return {"success": True, "data": AccountRead.model_validate(row).model_dump(by_alias=True, mode="json")}


@router.put("/profile")
def update_profile_route(
    payload: ProfileUpdate,
    account: AccountIdentity = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    row = get_account(db, account.account_id)
    if not row:
        raise NotFoundError("Account not found")
    update_account_name(db, row, payload.name)
    return {"success": True, "message": "Profile updated successfully"}
