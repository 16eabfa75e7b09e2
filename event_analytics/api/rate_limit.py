"""Fixed-window rate limiting for the collection endpoint."""

import logging
import time
from typing import Optional

from fastapi import Depends, Request

from event_analytics.api.deps import api_key_header
from event_analytics.core.cache import AggregateCache, get_cache
from event_analytics.core.config import RATE_LIMIT_POINTS, RATE_LIMIT_WINDOW_SECONDS
from event_analytics.core.errors import RateLimitError
from event_analytics.security.hashing import sha256_hex

logger = logging.getLogger(__name__)


def rate_limit_key(request: Request, api_key: Optional[str], window_seconds: int, now: Optional[float] = None) -> str:
    # hash the key so raw secrets never land in redis
    if api_key:
        subject = "key:" + sha256_hex(api_key)
    else:
        subject = "ip:" + (request.client.host if request.client else "unknown")
    bucket = int((now if now is not None else time.time()) // window_seconds)
    return f"rate_limit:{subject}:{bucket}"


def rate_limit_collect(
    request: Request,
    api_key: Optional[str] = Depends(api_key_header),
    cache: AggregateCache = Depends(get_cache),
) -> None:
    key = rate_limit_key(request, api_key, RATE_LIMIT_WINDOW_SECONDS)
    count = cache.incr_window(key, RATE_LIMIT_WINDOW_SECONDS)
    # no redis, no limit
    if count is None:
        return
    if count > RATE_LIMIT_POINTS:
        logger.info("Rate limit exceeded for %s", key)
        raise RateLimitError("Too many requests, please try again later")
