# event_analytics/scripts/bootstrap_app.py
import os

from event_analytics.core.database import SessionLocal
from event_analytics.crud.crud_auth import AccountIdentity, create_account, get_account_by_email
from event_analytics.schemas.app import ApplicationCreate
from event_analytics.security.tokens import create_access_token
from event_analytics.services.access_keys import AccessKeyManager
from event_analytics.services.applications import ApplicationService

DEFAULT_EMAIL = "demo@example.com"
DEFAULT_NAME = "Demo Owner"
DEFAULT_APP = "Demo Site"


def main() -> None:
    email = os.getenv("BOOTSTRAP_EMAIL", DEFAULT_EMAIL)
    password = os.getenv("BOOTSTRAP_PASSWORD", "demo-password")

    with SessionLocal() as db:
        account = get_account_by_email(db, email)
        if account is None:
            account = create_account(db, name=DEFAULT_NAME, email=email, password=password)

        service = ApplicationService(db, AccessKeyManager(db))
        identity = AccountIdentity(account_id=account.id, email=account.email)
        app, key, plain = service.register(
            identity,
            ApplicationCreate(name=DEFAULT_APP, domain="demo.example.com", type="website"),
        )

    print("\nBOOTSTRAP APP (save these, the API key is shown once):")
    print(f"account={email} app_id={app.id}")
    print(f"api_key={plain} expires_at={key.expires_at.isoformat()}")
    print(f"bearer={create_access_token(identity.account_id, identity.email)}\n")


if __name__ == "__main__":
    main()
