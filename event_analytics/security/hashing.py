# security/hashing.py

import hashlib
import json
import secrets
from typing import Any

API_KEY_PREFIX = "ea_"


def sha256_hex(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def generate_api_key() -> str:
    return API_KEY_PREFIX + secrets.token_urlsafe(32)


def display_prefix(api_key_plain: str, length: int = 10) -> str:
    return api_key_plain[:length]
