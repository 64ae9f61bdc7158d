"""
Redis cache for serialized quote listings.

Every operation degrades to a miss when Redis is disabled or unreachable,
so callers never need to handle cache errors.
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

import redis
from flask import Flask
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_DECIMAL_TAG = "__decimal__"


def _encode(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return {_DECIMAL_TAG: str(obj)}
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"{type(obj).__name__} cannot be cached")


def _decode(obj: dict) -> Any:
    if _DECIMAL_TAG in obj:
        return Decimal(obj[_DECIMAL_TAG])
    return obj


def dumps(value: Any) -> str:
    """JSON with Decimals kept exact."""
    return json.dumps(value, default=_encode)


def loads(raw: str) -> Any:
    return json.loads(raw, object_hook=_decode)


class CacheService:
    """
    Namespaced Redis cache.

    Keys are ``{prefix}:{module}:{key}``, e.g. ``dealquote:price_quotes:deal:42``.
    """

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self.prefix = "dealquote"
        self.default_ttl = 60
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self.prefix = app.config.get('CACHE_KEY_PREFIX', self.prefix)
        self.default_ttl = app.config.get('CACHE_DEFAULT_TTL', self.default_ttl)

        if not app.config.get('CACHE_ENABLED', True):
            logger.info("[CACHE] Disabled by CACHE_ENABLED")
            return

        url = app.config.get('REDIS_URL', 'redis://redis:6379/0')
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            client.ping()
        except RedisError as e:
            logger.warning(f"[CACHE] Redis at {url} unreachable ({e}); running without cache")
            return
        self.client = client
        logger.info(f"[CACHE] Connected to {url}")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def key(self, module: str, key: str) -> str:
        return f"{self.prefix}:{module}:{key}"

    def get(self, module: str, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw = self.client.get(self.key(module, key))
            return None if raw is None else loads(raw)
        except (RedisError, ValueError) as e:
            logger.warning(f"[CACHE] Read of {self.key(module, key)} failed: {e}")
            return None

    def set(self, module: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.setex(self.key(module, key), ttl or self.default_ttl, dumps(value))
            return True
        except (RedisError, TypeError) as e:
            logger.warning(f"[CACHE] Write of {self.key(module, key)} failed: {e}")
            return False

    def delete(self, module: str, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.delete(self.key(module, key))
            logger.debug(f"[CACHE] Invalidated {self.key(module, key)}")
            return True
        except RedisError as e:
            logger.warning(f"[CACHE] Delete of {self.key(module, key)} failed: {e}")
            return False

    def memoize(self, module: str, key: str, loader_fn: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, or call ``loader_fn`` and cache its result. Loader errors propagate."""
        cached = self.get(module, key)
        if cached is not None:
            return cached
        value = loader_fn()
        self.set(module, key, value, ttl)
        return value


def init_cache(app: Flask) -> CacheService:
    """Create the cache and register it as ``app.extensions['cache']``."""
    cache = CacheService(app)
    app.extensions['cache'] = cache
    return cache
