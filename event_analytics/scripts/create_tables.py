# create_tables.py

from event_analytics.core.database import engine
from event_analytics.models.account import Base
import event_analytics.models.auth  # noqa: F401
import event_analytics.models.event  # noqa: F401


def main() -> None:
    Base.metadata.create_all(bind=engine)
    print("Tables created")


if __name__ == "__main__":
    main()
