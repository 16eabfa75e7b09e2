# services/aggregation.py

import json
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from event_analytics.core.cache import AggregateCache
from event_analytics.core.config import SUMMARY_CACHE_TTL_SECONDS
from event_analytics.core.errors import AuthorizationError, NotFoundError
from event_analytics.crud.crud_apps import get_owned_application
from event_analytics.crud.crud_auth import AccountIdentity
from event_analytics.crud.crud_events import (
    count_distinct_users,
    count_events,
    daily_type_counts,
    device_breakdown,
    latest_event_for_user,
    type_breakdown,
)
from event_analytics.models.account import Application

logger = logging.getLogger(__name__)

NO_ACCESS = "You do not have access to this app"
UNKNOWN = "Unknown"


def summary_cache_key(event_type: str, app_id: str, start: Optional[datetime], end: Optional[datetime]) -> str:
    def _bound(v: Optional[datetime]) -> str:
        return v.isoformat() if v is not None else "all"

    return f"event_summary:{event_type}:{app_id}:{_bound(start)}:{_bound(end)}"


def parse_metadata(raw: Any) -> Optional[Dict[str, Any]]:
    """Stored metadata as a dict, or None when absent or unreadable."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Error parsing metadata: %s", e)
        return None
    if not isinstance(parsed, dict):
        logger.warning("Ignoring metadata that is not an object: %r", parsed)
        return None
    return parsed


class AggregationService:
    def __init__(
        self,
        db: Session,
        cache: AggregateCache,
        ttl_seconds: int = SUMMARY_CACHE_TTL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _authorize(self, identity: AccountIdentity, app_id: str) -> Application:
        app = get_owned_application(self.db, account_id=identity.account_id, app_id=app_id)
        if app is None:
            raise AuthorizationError(NO_ACCESS)
        return app

    def summarize(
        self,
        identity: AccountIdentity,
        event_type: str,
        app_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        self._authorize(identity, app_id)

        key = summary_cache_key(event_type, app_id, start, end)
        cached = self.cache.get(key)
        if cached:
            try:
                return json.loads(cached)
            except ValueError:
                logger.warning("Discarding unreadable cache entry %s", key)

        filters = dict(app_id=app_id, event_type=event_type, start=start, end=end)
        device_data: Dict[str, int] = {}
        for device, n in device_breakdown(self.db, **filters):
            name = device or "unknown"
            device_data[name] = device_data.get(name, 0) + n

        result = {
            "event": event_type,
            "count": count_events(self.db, **filters),
            "uniqueUsers": count_distinct_users(self.db, **filters),
            "deviceData": device_data,
        }

        self.cache.set(key, json.dumps(result), self.ttl_seconds)
        return result

    def user_stats(self, user_id: str) -> Dict[str, Any]:
        total = count_events(self.db, user_id=user_id)
        if total == 0:
            raise NotFoundError("No data found for this user")

        latest = latest_event_for_user(self.db, user_id)
        device_details: Dict[str, str] = {"browser": UNKNOWN, "os": UNKNOWN}

        metadata = parse_metadata(latest.event_metadata)
        if metadata is not None:
            device_details["browser"] = metadata.get("browser") or UNKNOWN
            device_details["os"] = metadata.get("os") or UNKNOWN
        elif latest.device:
            device_details["device"] = latest.device

        return {
            "userId": user_id,
            "totalEvents": total,
            "deviceDetails": device_details,
            "ipAddress": latest.ip_address,
        }

    def account_summary(self, identity: AccountIdentity, app_id: str) -> Dict[str, Any]:
        # computed fresh every time, unlike summarize()
        self._authorize(identity, app_id)

        now = self._clock()
        start_of_today = now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
        last_30_days = now - timedelta(days=30)

        return {
            "totalEvents": count_events(self.db, app_id=app_id),
            "todayEvents": count_events(self.db, app_id=app_id, start=start_of_today),
            "monthlyEvents": count_events(self.db, app_id=app_id, start=last_30_days),
            "eventTypes": [{"type": t, "count": n} for t, n in type_breakdown(self.db, app_id)],
        }

    def event_timeseries(
        self,
        identity: AccountIdentity,
        app_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        event_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        self._authorize(identity, app_id)

        rows = daily_type_counts(self.db, app_id=app_id, event_type=event_type, start=start, end=end)
        return [
            {"date": d.isoformat() if isinstance(d, date) else str(d), "type": t, "count": n}
            for d, t, n in rows
        ]
