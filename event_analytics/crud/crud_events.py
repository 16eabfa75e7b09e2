# crud_events.py

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from event_analytics.models.event import Event


def as_utc(dt: datetime) -> datetime:
    # naive values are taken to be UTC already
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def create_event(
    db: Session,
    application_id: str,
    event_type: str,
    url: Optional[str],
    referrer: Optional[str],
    device: Optional[str],
    ip_address: Optional[str],
    user_id: Optional[str],
    metadata: Optional[str],
    timestamp: datetime,
) -> Event:
    db_obj = Event(
        application_id=application_id,
        type=event_type,
        name=event_type,
        url=url,
        referrer=referrer,
        device=device,
        ip_address=ip_address,
        user_id=user_id,
        event_metadata=metadata,
        timestamp=as_utc(timestamp),
    )

    try:
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj
    except SQLAlchemyError as e:
        db.rollback()
        raise e


def _apply_filters(
    q: Query,
    app_id: Optional[str] = None,
    event_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    user_id: Optional[str] = None,
) -> Query:
    if app_id is not None:
        q = q.filter(Event.application_id == app_id)
    if event_type is not None:
        q = q.filter(Event.type == event_type)
    if user_id is not None:
        q = q.filter(Event.user_id == user_id)

    if start is not None and end is not None:
        q = q.filter(Event.timestamp.between(as_utc(start), as_utc(end)))
    elif start is not None:
        q = q.filter(Event.timestamp >= as_utc(start))
    elif end is not None:
        q = q.filter(Event.timestamp <= as_utc(end))
    return q


def count_events(
    db: Session,
    app_id: Optional[str] = None,
    event_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    user_id: Optional[str] = None,
) -> int:
    q = _apply_filters(db.query(func.count(Event.id)), app_id, event_type, start, end, user_id)
    return int(q.scalar() or 0)


def count_distinct_users(
    db: Session,
    app_id: Optional[str] = None,
    event_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> int:
    q = _apply_filters(db.query(func.count(func.distinct(Event.user_id))), app_id, event_type, start, end)
    return int(q.scalar() or 0)


def device_breakdown(
    db: Session,
    app_id: Optional[str] = None,
    event_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Tuple[Optional[str], int]]:
    q = _apply_filters(db.query(Event.device, func.count(Event.id)), app_id, event_type, start, end)
    return [(device, int(n)) for device, n in q.group_by(Event.device).all()]


def type_breakdown(db: Session, app_id: str) -> List[Tuple[str, int]]:
    n = func.count(Event.id)
    rows = (
        db.query(Event.type, n)
        .filter(Event.application_id == app_id)
        .group_by(Event.type)
        .order_by(n.desc(), Event.type)
        .all()
    )
    return [(t, int(c)) for t, c in rows]


def daily_type_counts(
    db: Session,
    app_id: str,
    event_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Tuple[object, str, int]]:
    day = func.date(Event.timestamp)
    q = _apply_filters(db.query(day, Event.type, func.count(Event.id)), app_id, event_type, start, end)
    rows = q.group_by(day, Event.type).order_by(day.asc(), Event.type).all()
    return [(d, t, int(c)) for d, t, c in rows]


def latest_event_for_user(db: Session, user_id: str) -> Optional[Event]:
    return (
        db.query(Event)
        .filter(Event.user_id == user_id)
        .order_by(Event.created_at.desc(), Event.id.desc())
        .first()
    )
