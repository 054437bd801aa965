"""
Tests for Redis Match Result Cache

Tests cover:
- Hash functions for key generation
- Match result get/set (key format, TTL, serialization)
- Profile invalidation
- Graceful degradation when Redis is unavailable
- Hit/miss statistics
"""

import pytest
import json
from unittest.mock import AsyncMock, MagicMock, patch
from typing import List

from app.services.cache import (
    MatchCache,
    get_cache,
    hash_content,
    match_key,
)
from app.services.matcher import MatchBreakdown, MatchResult


def make_result(job_id: str = "job-123", score: int = 82) -> MatchResult:
    return MatchResult(
        job_id=job_id,
        match_score=score,
        match_breakdown=MatchBreakdown(
            skills_match=90,
            experience_match=100,
            location_match=70,
            salary_match=70,
            culture_match=50,
            technology_match=100,
        ),
        missing_skills=("Perforce",),
        recommended_skills=("Perforce",),
        improvement_areas=("culture_match",),
    )


class TestHashContent:
    """Test content hashing for cache keys."""

    def test_hash_content_returns_16_char_hex(self):
        """Hash should return 16-character hex string."""
        result = hash_content("test content")
        assert len(result) == 16
        assert all(c in "0123456789abcdef" for c in result)

    def test_hash_content_deterministic(self):
        content = {"skills": ["Unity", "C#"], "experience_years": 4}
        assert hash_content(content) == hash_content(content)

    def test_hash_content_different_for_different_input(self):
        assert hash_content({"skills": ["Unity"]}) != hash_content({"skills": ["Unreal"]})

    def test_hash_content_handles_dict(self):
        """Dict key order should not matter."""
        assert hash_content({"a": 1, "b": 2}) == hash_content({"b": 2, "a": 1})

    def test_match_key_format(self):
        assert match_key("job-1", "abc") == "match:job-1:abc"

    def test_match_key_with_job_hash(self):
        assert match_key("job-1", "abc", "f00d") == "match:job-1:f00d:abc"


class AsyncIteratorMock:
    """Mock async iterator for scan_iter."""

    def __init__(self, items: List):
        self.items = items
        self.index = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.index >= len(self.items):
            raise StopAsyncIteration
        item = self.items[self.index]
        self.index += 1
        return item


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.scan_iter = MagicMock(return_value=AsyncIteratorMock([]))
    redis.ping = AsyncMock(return_value=True)
    redis.close = AsyncMock()
    return redis


@pytest.fixture
def cache_service(mock_redis):
    """Create MatchCache instance with mock Redis."""
    cache = MatchCache(redis_url="redis://localhost:6379", ttl=3600)
    cache.redis = mock_redis
    return cache


class TestMatchResultCache:
    """Test match result get/set."""

    @pytest.mark.asyncio
    async def test_get_match_result_cache_miss(self, cache_service, mock_redis):
        """Should return None on cache miss."""
        mock_redis.get.return_value = None

        result = await cache_service.get_match_result("job-123", "profile-abc")

        assert result is None
        mock_redis.get.assert_called_once_with("match:job-123:profile-abc")

    @pytest.mark.asyncio
    async def test_get_match_result_cache_hit(self, cache_service, mock_redis):
        """Should rebuild the MatchResult on hit."""
        cached = make_result()
        mock_redis.get.return_value = json.dumps(cached.to_dict())

        result = await cache_service.get_match_result("job-123", "profile-abc")

        assert result == cached
        assert result.match_breakdown.skills_match == 90
        assert result.missing_skills == ("Perforce",)

    @pytest.mark.asyncio
    async def test_set_match_result_with_ttl(self, cache_service, mock_redis):
        """Should set the result with the configured TTL."""
        await cache_service.set_match_result("job-123", "profile-abc", make_result())

        mock_redis.setex.assert_called_once()
        key, ttl, payload = mock_redis.setex.call_args[0]
        assert key == "match:job-123:profile-abc"
        assert ttl == 3600
        assert json.loads(payload)["match_score"] == 82

    @pytest.mark.asyncio
    async def test_job_hash_separates_entries(self, cache_service, mock_redis):
        """Same job id with different content must not share a key."""
        await cache_service.set_match_result("job-123", "abc", make_result(), "v1")
        await cache_service.get_match_result("job-123", "abc", "v2")

        assert mock_redis.setex.call_args[0][0] == "match:job-123:v1:abc"
        mock_redis.get.assert_called_once_with("match:job-123:v2:abc")

    def test_default_ttl_from_settings(self):
        from app.config import get_settings

        cache = MatchCache(redis_url="redis://localhost:6379")

        assert cache.ttl == get_settings().match_cache_ttl_seconds


class TestCacheInvalidation:
    """Test invalidation of a profile's cached results."""

    @pytest.mark.asyncio
    async def test_invalidate_profile_matches(self, cache_service, mock_redis):
        """Should delete every key for the profile hash."""
        mock_redis.scan_iter.return_value = AsyncIteratorMock(
            ["match:job1:abc123", "match:job2:abc123"]
        )
        mock_redis.delete.return_value = 2

        result = await cache_service.invalidate_profile_matches("abc123")

        assert result == 2
        mock_redis.scan_iter.assert_called_once_with(match="match:*:abc123")
        mock_redis.delete.assert_called_once_with("match:job1:abc123", "match:job2:abc123")

    @pytest.mark.asyncio
    async def test_invalidate_with_no_keys(self, cache_service, mock_redis):
        mock_redis.scan_iter.return_value = AsyncIteratorMock([])

        result = await cache_service.invalidate_profile_matches("abc123")

        assert result == 0
        mock_redis.delete.assert_not_called()


class TestCacheGracefulDegradation:
    """Test behavior when Redis is unavailable."""

    @pytest.mark.asyncio
    async def test_get_returns_none_on_redis_error(self, cache_service, mock_redis):
        """Should return None instead of raising on Redis error."""
        mock_redis.get.side_effect = Exception("Connection refused")

        result = await cache_service.get_match_result("job-123", "profile-abc")

        assert result is None
        assert cache_service.stats["misses"] == 1

    @pytest.mark.asyncio
    async def test_set_returns_false_on_redis_error(self, cache_service, mock_redis):
        mock_redis.setex.side_effect = Exception("Connection refused")

        result = await cache_service.set_match_result("job-123", "abc", make_result())

        assert result is False

    @pytest.mark.asyncio
    async def test_invalidate_returns_zero_on_redis_error(self, cache_service, mock_redis):
        mock_redis.scan_iter.side_effect = Exception("Connection refused")

        assert await cache_service.invalidate_profile_matches("abc") == 0

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_a_miss(self, cache_service, mock_redis):
        """Unparseable cached payloads should be treated as misses."""
        mock_redis.get.return_value = "{not json"

        assert await cache_service.get_match_result("job-123", "abc") is None

    @pytest.mark.asyncio
    async def test_connection_failure_returns_none(self):
        """Should return None when the client cannot be created."""
        cache = MatchCache(redis_url="redis://invalid:6379")

        with patch("app.services.cache.redis.from_url", side_effect=Exception("bad url")):
            result = await cache.get_match_result("job-123", "abc")

        assert result is None

    @pytest.mark.asyncio
    async def test_health_check_failure(self, cache_service, mock_redis):
        mock_redis.ping.side_effect = Exception("Connection refused")

        assert await cache_service.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_success(self, cache_service, mock_redis):
        assert await cache_service.health_check() is True


class TestCacheStats:
    """Test hit/miss statistics."""

    @pytest.mark.asyncio
    async def test_stats_track_hits_and_misses(self, cache_service, mock_redis):
        mock_redis.get.return_value = json.dumps(make_result().to_dict())
        await cache_service.get_match_result("job-1", "abc")

        mock_redis.get.return_value = None
        await cache_service.get_match_result("job-2", "abc")
        await cache_service.get_match_result("job-3", "abc")

        stats = cache_service.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 2
        assert stats["total"] == 3
        assert stats["hit_rate"] == pytest.approx(1 / 3)

    def test_stats_empty(self, cache_service):
        assert cache_service.get_stats()["hit_rate"] == 0.0

    @pytest.mark.asyncio
    async def test_close_releases_client(self, cache_service, mock_redis):
        await cache_service.close()

        mock_redis.close.assert_called_once()
        assert cache_service.redis is None


class TestGetCache:
    """Test the cache singleton factory."""

    @pytest.mark.asyncio
    async def test_get_cache_returns_singleton(self):
        import app.services.cache as cache_module

        cache_module._cache_instance = None
        try:
            first = await get_cache("redis://localhost:6379")
            second = await get_cache()
            assert first is second
            assert first.redis_url == "redis://localhost:6379"
        finally:
            cache_module._cache_instance = None
