import json
import logging
from typing import Any, Iterable, Optional

import redis

from exam_engine.core.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


def presentation_key(exam_id: int) -> str:
    return f"exam:{exam_id}:presentation"


class PresentationCache:
    """JSON cache of rendered exams. Failures are logged, never raised."""

    def __init__(self, client=None, ttl: Optional[int] = None, enabled: Optional[bool] = None):
        self.client = client if client is not None else redis_client
        self.ttl = ttl or settings.PRESENTATION_CACHE_TTL
        self.enabled = settings.CACHE_ENABLED if enabled is None else enabled

    def get(self, exam_id: int) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw = self.client.get(presentation_key(exam_id))
        except redis.RedisError as e:
            logger.error(f"Cache get error: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.error(f"Discarding unreadable cache entry for exam {exam_id}")
            return None

    def set(self, exam_id: int, value: Any) -> None:
        if not self.enabled:
            return
        try:
            self.client.set(presentation_key(exam_id), json.dumps(value), ex=self.ttl)
        except redis.RedisError as e:
            logger.error(f"Cache set error: {e}")

    def invalidate(self, exam_ids: Iterable[int]) -> int:
        keys = [presentation_key(e) for e in exam_ids]
        if not self.enabled or not keys:
            return 0
        try:
            return int(self.client.delete(*keys) or 0)
        except redis.RedisError as e:
            logger.error(f"Cache delete error: {e}")
            return 0


_cache: Optional[PresentationCache] = None


def get_presentation_cache() -> PresentationCache:
    global _cache
    if _cache is None:
        _cache = PresentationCache()
    return _cache


def set_presentation_cache(cache: Optional[PresentationCache]) -> None:
    global _cache
    _cache = cache
