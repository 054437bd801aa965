"""
Matching API - candidate/job scoring endpoints

Endpoints:
    POST /matching/score - Score one profile against one job
    POST /matching/recommend - Rank jobs for a profile (cached per job/profile)
    POST /matching/skill-gaps - Skill gap analysis across target jobs

Profiles and jobs are coerced leniently: unknown enum values become None and
malformed lists become empty, so only structurally invalid bodies are 422s.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.config import get_settings
from app.schemas import CandidateProfile, JobPosting
from app.services.cache import get_cache, hash_content
from app.services.matcher import MatchResult, get_default_scorer
from app.services.skill_gaps import SkillGapAnalyzer

logger = logging.getLogger(__name__)
router = APIRouter()


# ==============================================================================
# Request/Response Models
# ==============================================================================

class ScoreRequest(BaseModel):
    """Request body for scoring a single job."""
    profile: CandidateProfile
    job: JobPosting


class MatchBreakdownResponse(BaseModel):
    skills_match: float
    experience_match: float
    location_match: float
    salary_match: float
    culture_match: float
    technology_match: float


class MatchResultResponse(BaseModel):
    """Response model for one scored job."""
    job_id: str
    match_score: int
    match_breakdown: MatchBreakdownResponse
    missing_skills: List[str]
    recommended_skills: List[str]
    strengths: List[str]
    improvement_areas: List[str]


class RecommendRequest(BaseModel):
    """Request body for job recommendations."""
    profile: CandidateProfile
    jobs: List[JobPosting] = Field(default_factory=list)
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        le=100,
        description="Maximum results (defaults to recommend_default_limit)"
    )


class RecommendResponse(BaseModel):
    results: List[MatchResultResponse]
    total: int


class SkillGapRequest(BaseModel):
    """Request body for skill gap analysis."""
    profile: CandidateProfile
    jobs: List[JobPosting] = Field(default_factory=list)


class LearningRecommendationResponse(BaseModel):
    skill: str
    priority: str
    resources: List[str]
    estimated_time_to_learn: str


class SkillGapResponse(BaseModel):
    """Response model for skill gap analysis."""
    missing_critical_skills: List[str]
    missing_preferred_skills: List[str]
    strength_areas: List[str]
    recommended_learning: List[LearningRecommendationResponse]


# ==============================================================================
# Endpoints
# ==============================================================================

@router.post("/score", response_model=MatchResultResponse)
async def score_job(request: ScoreRequest):
    """Score a candidate profile against a single job posting."""
    result = get_default_scorer().score(request.profile, request.job)
    return result.to_dict()


@router.post("/recommend", response_model=RecommendResponse)
async def recommend_jobs(request: RecommendRequest):
    """
    Rank jobs for a profile.

    Each (job content, profile) result is looked up in the match cache first and
    stored after scoring; a Redis outage only costs the lookup.
    """
    scorer = get_default_scorer()
    cache = await get_cache()
    limit = request.limit or get_settings().recommend_default_limit
    profile_hash = hash_content(request.profile.model_dump(mode="json"))

    results: List[MatchResult] = []
    for job in request.jobs:
        # jobs without an id cannot be keyed
        if not job.id:
            results.append(scorer.score(request.profile, job))
            continue

        # jobs arrive in the request, so the key covers their content
        job_hash = hash_content(job.model_dump(mode="json"))
        result = await cache.get_match_result(job.id, profile_hash, job_hash)
        if result is None:
            result = scorer.score(request.profile, job)
            await cache.set_match_result(job.id, profile_hash, result, job_hash)
        results.append(result)

    ranked = scorer.rank(results, limit)
    logger.info(f"Recommended {len(ranked)} of {len(request.jobs)} jobs")

    return RecommendResponse(
        results=[r.to_dict() for r in ranked],
        total=len(ranked),
    )


@router.post("/skill-gaps", response_model=SkillGapResponse)
async def analyze_skill_gaps(request: SkillGapRequest):
    """Identify missing critical and preferred skills across target jobs."""
    analysis = SkillGapAnalyzer().analyze(request.profile, list(request.jobs))
    return analysis.to_dict()
