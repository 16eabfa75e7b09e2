# seed_events.py

import os
import random
import sys
from datetime import datetime, timezone, timedelta

from event_analytics.core.database import SessionLocal
from event_analytics.crud.crud_auth import ApplicationIdentity
from event_analytics.schemas.event import EventCollect
from event_analytics.services.ingestion import EventIngestionService

EVENT_TYPES = ["page_view", "page_view", "page_view", "click", "signup", "purchase"]
DEVICES = ["desktop", "mobile", "tablet"]
BROWSERS = ["Chrome", "Firefox", "Safari", "Edge"]
OSES = ["Windows", "macOS", "Linux", "iOS", "Android"]
PATHS = ["/", "/pricing", "/docs", "/blog", "/signup", "/checkout"]


def main():
    if len(sys.argv) < 2:
        raise SystemExit("usage: python -m event_analytics.scripts.seed_events <app_id>")

    app_id = sys.argv[1]
    random.seed(7)
    n_events = int(os.environ.get("SEED_N_EVENTS", "500"))
    n_users = int(os.environ.get("SEED_N_USERS", "40"))
    days_back = int(os.environ.get("SEED_DAYS_BACK", "45"))

    # seeding writes straight through the ingestion service, no key lookup
    identity = ApplicationIdentity(app_id=app_id, account_id="", access_key_id=0)

    db = SessionLocal()
    try:
        service = EventIngestionService(db)
        now = datetime.now(timezone.utc)

        for _ in range(n_events):
            metadata = None
            if random.random() < 0.8:
                metadata = {"browser": random.choice(BROWSERS), "os": random.choice(OSES)}

            payload = EventCollect(
                event=random.choice(EVENT_TYPES),
                url="https://demo.example.com" + random.choice(PATHS),
                referrer=random.choice([None, "https://www.google.com/", "https://news.ycombinator.com/"]),
                device=random.choice(DEVICES),
                ipAddress=f"203.0.113.{random.randint(1, 254)}",
                userId=None if random.random() < 0.1 else f"user-{random.randint(1, n_users)}",
                timestamp=now - timedelta(days=random.random() * days_back),
                metadata=metadata,
            )
            service.collect(identity, payload)

        print(f"Seeded {n_events} events for app {app_id}.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
