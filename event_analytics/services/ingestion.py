# services/ingestion.py

import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from event_analytics.crud.crud_auth import ApplicationIdentity
from event_analytics.crud.crud_events import create_event
from event_analytics.models.event import Event
from event_analytics.schemas.event import EventCollect, EventMetadata
from event_analytics.security.hashing import canonical_json

logger = logging.getLogger(__name__)


def normalize_metadata(value: Any) -> Optional[str]:
    """
    Returns the stored text form of event metadata.

    Objects are serialized canonically; strings are parsed and re-emitted the
    same way, so a string and its equivalent object store identical text.
    """
    if value is None:
        return None
    if isinstance(value, EventMetadata):
        return canonical_json(value.model_dump(exclude_unset=True))
    if isinstance(value, str):
        value = json.loads(value)
    return canonical_json(dict(value))


class EventIngestionService:
    def __init__(self, db: Session):
        self.db = db

    def collect(self, identity: ApplicationIdentity, payload: EventCollect) -> Event:
        # one row per call; retried submissions are stored again
        event = create_event(
            self.db,
            application_id=identity.app_id,
            event_type=payload.event,
            url=payload.url,
            referrer=payload.referrer,
            device=payload.device,
            ip_address=str(payload.ip_address),
            user_id=payload.user_id,
            metadata=normalize_metadata(payload.event_metadata),
            timestamp=payload.timestamp,
        )
        logger.debug("Stored event %s (%s) for app %s", event.id, event.type, identity.app_id)
        return event
