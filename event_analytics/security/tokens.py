# security/tokens.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from event_analytics.core.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET
from event_analytics.core.errors import CredentialError


def create_access_token(account_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES))
    payload = {
        "sub": account_id,
        "email": email,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Returns the account id carried by a bearer token.

    Raises CredentialError for a malformed, expired or wrongly typed token.
    """
    if not token or not token.strip():
        raise CredentialError("Authentication token is required")
    try:
        claims = jwt.decode(token.strip(), JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise CredentialError("Invalid token") from e

    if claims.get("type") != "access" or not claims.get("sub"):
        raise CredentialError("Invalid token")
    return str(claims["sub"])
