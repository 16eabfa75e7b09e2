# crud_apps.py

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_analytics.models.account import Application
from event_analytics.schemas.app import ApplicationCreate, ApplicationUpdate


def create_application(db: Session, account_id: str, app: ApplicationCreate, commit: bool = True) -> Application:
    db_obj = Application(
        account_id=account_id,
        name=app.name,
        domain=app.domain,
        type=app.type,
    )
    db.add(db_obj)
    if commit:
        db.commit()
        db.refresh(db_obj)
    else:
        db.flush()
    return db_obj


def get_owned_application(db: Session, account_id: str, app_id: str) -> Optional[Application]:
    if not app_id:
        return None
    return (
        db.query(Application)
        .filter(Application.id == app_id, Application.account_id == account_id)
        .first()
    )


def list_applications(db: Session, account_id: str) -> List[Application]:
    return (
        db.query(Application)
        .filter(Application.account_id == account_id)
        .order_by(Application.created_at.asc())
        .all()
    )


def update_application(db: Session, db_obj: Application, update: ApplicationUpdate) -> Application:
    payload = update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in payload.items():
        setattr(db_obj, field, value)

    try:
        db.commit()
        db.refresh(db_obj)
        return db_obj
    except SQLAlchemyError as e:
        db.rollback()
        raise e


def delete_application(db: Session, db_obj: Application, commit: bool = True) -> None:
    db.delete(db_obj)
    if commit:
        db.commit()
    else:
        db.flush()
