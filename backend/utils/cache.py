"""
utils/cache.py — Redis connection probe and ETag helpers for cached content.
"""

import hashlib
import json
from typing import Optional

from fastapi import Request

from logging_config import get_logger

logger = get_logger(__name__)

_clients: dict = {}


def get_redis(url: str):
    """Return a connected Redis client for *url*, or None when it cannot be reached."""
    if url in _clients:
        return _clients[url]
    import redis as _redis_lib

    client = _redis_lib.from_url(url, socket_connect_timeout=1, decode_responses=True)
    try:
        client.ping()
    except _redis_lib.exceptions.RedisError as exc:
        logger.warning("redis.unavailable", url=url, error=str(exc))
        return None
    _clients[url] = client
    logger.info("redis.connected", url=url)
    return client


def content_etag(payload) -> str:
    """Quoted MD5 over the canonical JSON form of a content payload."""
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return '"%s"' % hashlib.md5(body.encode("utf-8")).hexdigest()


def etag_matches(request: Request, etag: Optional[str]) -> bool:
    return bool(etag) and request.headers.get("if-none-match") == etag
