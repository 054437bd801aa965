"""
Redis Match Result Cache

Caches full MatchResult records per (job, profile) pair so repeated
recommendation requests for an unchanged profile skip re-scoring.

Cache Key Pattern:
    - match:{job_id}:{profile_hash} - serialized MatchResult
    - match:{job_id}:{job_hash}:{profile_hash} - same, for job content
      supplied by the caller rather than stored under its id

Redis is optional: every operation degrades to a miss (or a no-op) when
Redis is unreachable, and errors are logged as warnings rather than raised.

Usage:
    cache = await get_cache()

    profile_hash = hash_content(profile.model_dump(mode="json"))
    job_hash = hash_content(job.model_dump(mode="json"))
    result = await cache.get_match_result(job.id, profile_hash, job_hash)
    if result is None:
        result = scorer.score(profile, job)
        await cache.set_match_result(job.id, profile_hash, result, job_hash)
"""

import json
import hashlib
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis

from app.config import get_settings
from app.services.matcher import MatchResult

logger = logging.getLogger(__name__)


def hash_content(*args: Any) -> str:
    """
    Generate a 16-character hex hash from content.

    Dict keys are sorted so equal profiles hash equally regardless of
    field order.

    Args:
        *args: Content to hash (will be JSON serialized)

    Returns:
        16-character hex string
    """
    content = json.dumps(args, sort_keys=True, default=str)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


def match_key(job_id: str, profile_hash: str, job_hash: Optional[str] = None) -> str:
    if job_hash:
        return f"match:{job_id}:{job_hash}:{profile_hash}"
    return f"match:{job_id}:{profile_hash}"


class MatchCache:
    """
    Redis cache for match results with graceful degradation.

    Attributes:
        redis: Async Redis client (created lazily)
        ttl: Expiry for cached results in seconds
        stats: Hit/miss counters
    """

    def __init__(self, redis_url: str, ttl: Optional[int] = None):
        self.redis_url = redis_url
        self.ttl = get_settings().match_cache_ttl_seconds if ttl is None else ttl
        self.redis: Optional[redis.Redis] = None
        self.stats: Dict[str, int] = {"hits": 0, "misses": 0}

    async def _ensure_connected(self) -> Optional[redis.Redis]:
        """Ensure Redis connection is established."""
        if self.redis is None:
            try:
                self.redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
            except Exception as e:
                logger.warning(f"Failed to connect to Redis: {e}")
                return None
        return self.redis

    async def get_match_result(
        self,
        job_id: str,
        profile_hash: str,
        job_hash: Optional[str] = None,
    ) -> Optional[MatchResult]:
        """
        Get cached match result for a job-profile pair.

        Args:
            job_id: Job identifier
            profile_hash: Hash of profile content
            job_hash: Hash of job content, when jobs are not stored by id

        Returns:
            MatchResult or None on miss/error
        """
        try:
            client = await self._ensure_connected()
            if not client:
                return None

            cached = await client.get(match_key(job_id, profile_hash, job_hash))

            if cached:
                self.stats["hits"] += 1
                return MatchResult.from_dict(json.loads(cached))

            self.stats["misses"] += 1
            return None

        except Exception as e:
            logger.warning(f"Redis get error (match cache): {e}")
            self.stats["misses"] += 1
            return None

    async def set_match_result(
        self,
        job_id: str,
        profile_hash: str,
        result: MatchResult,
        job_hash: Optional[str] = None,
    ) -> bool:
        """
        Cache a match result.

        Returns:
            True if cached successfully
        """
        try:
            client = await self._ensure_connected()
            if not client:
                return False

            await client.setex(
                match_key(job_id, profile_hash, job_hash),
                self.ttl,
                json.dumps(result.to_dict()),
            )
            return True

        except Exception as e:
            logger.warning(f"Redis set error (match cache): {e}")
            return False

    async def invalidate_profile_matches(self, profile_hash: str) -> int:
        """
        Invalidate all cached results for a profile.

        Returns:
            Number of keys deleted
        """
        try:
            client = await self._ensure_connected()
            if not client:
                return 0

            keys = [key async for key in client.scan_iter(match=f"match:*:{profile_hash}")]

            if keys:
                return await client.delete(*keys)
            return 0

        except Exception as e:
            logger.warning(f"Redis delete error: {e}")
            return 0

    async def health_check(self) -> bool:
        try:
            client = await self._ensure_connected()
            if not client:
                return False

            await client.ping()
            return True

        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    def get_stats(self) -> Dict[str, Any]:
        """Hit/miss counters plus hit rate."""
        hits = self.stats["hits"]
        misses = self.stats["misses"]
        total = hits + misses

        return {
            "hits": hits,
            "misses": misses,
            "total": total,
            "hit_rate": hits / total if total > 0 else 0.0,
        }

    async def close(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.close()
            self.redis = None


_cache_instance: Optional[MatchCache] = None


async def get_cache(redis_url: Optional[str] = None) -> MatchCache:
    """
    Get or create cache singleton.

    Args:
        redis_url: Optional Redis URL (uses settings if not provided)
    """
    global _cache_instance

    if _cache_instance is None:
        url = redis_url or get_settings().redis_url
        _cache_instance = MatchCache(redis_url=url)

    return _cache_instance
