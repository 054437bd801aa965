"""
Tests for the matching and studio search API.

Redis is replaced by an in-memory mock so endpoints can be exercised
without a running server.

Run with: cd backend && pytest tests/test_api.py -v
"""
import json

import pytest
from unittest.mock import AsyncMock, patch


@pytest.fixture
def fake_cache():
    """MatchCache backed by a dict-like mock Redis client."""
    from app.services.cache import MatchCache

    store = {}

    async def get(key):
        return store.get(key)

    async def setex(key, ttl, value):
        store[key] = value
        return True

    redis = AsyncMock()
    redis.get = AsyncMock(side_effect=get)
    redis.setex = AsyncMock(side_effect=setex)
    redis.ping = AsyncMock(return_value=True)

    cache = MatchCache(redis_url="redis://localhost:6379", ttl=60)
    cache.redis = redis
    cache.store = store
    return cache


@pytest.fixture
def client(fake_cache):
    from fastapi.testclient import TestClient
    from app.main import app

    getter = AsyncMock(return_value=fake_cache)
    with patch("app.api.matching.get_cache", getter), patch("app.main.get_cache", getter):
        yield TestClient(app)


@pytest.fixture
def profile():
    return {
        "skills": ["Unity", "C#", "Git"],
        "experienceYears": 4,
        "interests": ["indie"],
        "location": "Seattle, WA",
        "salaryExpectation": {"min": 80000, "max": 100000},
        "workStyle": "hybrid",
        "technologies": ["Unity"],
    }


@pytest.fixture
def jobs():
    return [
        {
            "id": "strong",
            "requirements": ["Unity", "C#", "Git"],
            "technologies": ["Unity"],
            "experienceLevel": "mid",
            "location": "Seattle, WA",
            "salary": {"min": 85000, "max": 95000},
            "studioType": "Indie",
        },
        {
            "id": "weak",
            "requirements": ["Houdini", "Maya", "ZBrush"],
            "experienceLevel": "director",
            "location": "Boise, ID",
            "salary": "Competitive",
        },
    ]


@pytest.fixture
def studios():
    return [
        {"id": "ubisoft", "name": "Ubisoft", "headquarters": "Paris, France", "size": "10,000+"},
        {"id": "supercell", "name": "Supercell", "headquarters": "Helsinki, Finland",
         "size": "201-500", "technologies": ["Unity"]},
        {"id": "tiny", "name": "Tiny Pixel", "headquarters": "Melbourne, Australia", "size": "5",
         "commonRoles": ["Artist"]},
    ]


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "cache": "connected"}


class TestMatchingAPI:
    """Tests for /matching endpoints."""

    def test_score(self, client, profile, jobs):
        from app.services.matcher import score

        response = client.post("/matching/score", json={"profile": profile, "job": jobs[0]})

        assert response.status_code == 200
        data = response.json()
        assert data == score(profile, jobs[0]).to_dict()
        assert data["strengths"] == []

    def test_score_rejects_missing_job(self, client, profile):
        response = client.post("/matching/score", json={"profile": profile})

        assert response.status_code == 422

    def test_recommend_filters_and_caches(self, client, fake_cache, profile, jobs):
        """Results below 60 are dropped and every scored job is cached."""
        response = client.post("/matching/recommend", json={"profile": profile, "jobs": jobs})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["results"][0]["job_id"] == "strong"
        assert len(fake_cache.store) == 2
        assert all(key.startswith("match:") for key in fake_cache.store)

    def test_recommend_serves_cached_results(self, client, fake_cache, profile, jobs):
        from app.services.cache import hash_content
        from app.schemas import CandidateProfile, JobPosting

        profile_hash = hash_content(CandidateProfile.model_validate(profile).model_dump(mode="json"))
        job_hash = hash_content(JobPosting.model_validate(jobs[0]).model_dump(mode="json"))
        cached = client.post(
            "/matching/score", json={"profile": profile, "job": jobs[0]}
        ).json()
        cached["match_score"] = 61
        fake_cache.store[f"match:strong:{job_hash}:{profile_hash}"] = json.dumps(cached)

        response = client.post(
            "/matching/recommend", json={"profile": profile, "jobs": [jobs[0]]}
        )

        assert response.json()["results"][0]["match_score"] == 61
        assert fake_cache.stats["hits"] == 1

    def test_recommend_rescored_when_job_content_changes(self, client, fake_cache, profile, jobs):
        """A job resent under the same id with new requirements is not served stale."""
        changed = dict(jobs[0], requirements=["Haskell", "Erlang", "OCaml"])

        first = client.post("/matching/recommend", json={"profile": profile, "jobs": [jobs[0]]})
        second = client.post("/matching/recommend", json={"profile": profile, "jobs": [changed]})
        direct = client.post("/matching/score", json={"profile": profile, "job": changed}).json()

        assert first.json()["total"] == 1
        assert direct["missing_skills"] == ["Haskell", "Erlang", "OCaml"]
        assert direct["match_score"] < 60
        assert second.json()["total"] == 0
        assert len(fake_cache.store) == 2
        assert fake_cache.stats["hits"] == 0

    def test_recommend_survives_redis_outage(self, client, fake_cache, profile, jobs):
        fake_cache.redis.get.side_effect = Exception("Connection refused")
        fake_cache.redis.setex.side_effect = Exception("Connection refused")

        response = client.post("/matching/recommend", json={"profile": profile, "jobs": jobs})

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_recommend_limit_validated(self, client, profile, jobs):
        response = client.post(
            "/matching/recommend", json={"profile": profile, "jobs": jobs, "limit": 0}
        )

        assert response.status_code == 422

    def test_skill_gaps(self, client, profile, jobs):
        response = client.post("/matching/skill-gaps", json={"profile": profile, "jobs": jobs})

        assert response.status_code == 200
        data = response.json()
        assert data["missing_critical_skills"] == ["Houdini", "Maya", "ZBrush"]
        assert data["strength_areas"] == ["Unity", "C#", "Git"]
        assert data["recommended_learning"][0]["priority"] == "high"


class TestStudiosAPI:
    """Tests for /studios endpoints."""

    def test_index_and_search(self, client, studios):
        response = client.post("/studios/index", json={"studios": studios})

        assert response.status_code == 200
        assert response.json() == {"indexed": 3}

        response = client.get("/studios/search", params={"q": "supercel"})
        data = response.json()
        assert data["results"][0]["id"] == "supercell"
        assert data["results"][0]["match_type"] == "name-prefix"

    def test_index_skips_records_without_id(self, client, studios):
        response = client.post("/studios/index", json={"studios": studios + [{"name": "No Id"}]})

        assert response.json() == {"indexed": 3}

    def test_filtered_listing(self, client, studios):
        client.post("/studios/index", json={"studios": studios})

        response = client.get("/studios/search", params={"region": "Europe"})

        assert [r["id"] for r in response.json()["results"]] == ["supercell", "ubisoft"]

    def test_multiple_filters(self, client, studios):
        client.post("/studios/index", json={"studios": studios})

        response = client.get(
            "/studios/search", params=[("size", "Indie"), ("size", "Large"), ("role", "ART")]
        )

        assert [r["id"] for r in response.json()["results"]] == ["tiny"]

    def test_invalid_filter_value(self, client):
        response = client.get("/studios/search", params={"region": "Mars"})

        assert response.status_code == 422

    def test_limit_bounds(self, client):
        assert client.get("/studios/search", params={"q": "a", "limit": 0}).status_code == 422
        assert client.get("/studios/search", params={"q": "a", "limit": 101}).status_code == 422
