"""
Job Matching Service - Candidate/Job Fit Scoring

This module implements a multi-factor matching algorithm that calculates
how well a job posting matches a candidate profile.

Match Score Composition (default weights):
    - Skills Match (35%): Critical/preferred requirement coverage
    - Experience Match (25%): Years vs. the job level's expected range
    - Location Match (15%): Work style and geographic fit
    - Salary Match (10%): Overlap of salary ranges
    - Culture Match (10%): Studio type interests and employer recognition
    - Technology Match (5%): Engine/tool overlap

Score Range: 0-100 where higher = better match

Every sub-score is total: missing or malformed input yields a neutral
default rather than an exception.

Complexity Analysis:
    - score: O(r * k) where r=requirements + technologies, k=candidate skills
    - recommend: O(n * r * k) where n=jobs; candidate terms are folded once
"""

import logging
import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from app.config import get_settings
from app.schemas.common import SalaryRange, UnstructuredSalary
from app.schemas.job import ExperienceLevel, JobPosting, StudioType
from app.schemas.profile import CandidateProfile, WorkStyle
from app.services.similarity import TermSimilarityResolver, get_default_resolver

logger = logging.getLogger(__name__)

# Expected years of experience per job level (inclusive)
EXPERIENCE_RANGES: Dict[ExperienceLevel, Tuple[float, float]] = {
    ExperienceLevel.ENTRY: (0, 2),
    ExperienceLevel.JUNIOR: (1, 3),
    ExperienceLevel.MID: (3, 6),
    ExperienceLevel.SENIOR: (5, 10),
    ExperienceLevel.PRINCIPAL: (8, 15),
    ExperienceLevel.DIRECTOR: (10, 20),
}

# Major game development hubs
GAMING_HUBS = (
    "san francisco",
    "los angeles",
    "seattle",
    "austin",
    "montreal",
    "london",
    "tokyo",
)

# Studio type -> (interest keywords, bonus)
STUDIO_TYPE_INTERESTS: Dict[StudioType, Tuple[frozenset, int]] = {
    StudioType.AAA: (
        frozenset({"aaa", "large team", "big budget", "console", "blockbuster"}),
        20,
    ),
    StudioType.INDIE: (
        frozenset({"indie", "small team", "creative freedom", "innovation", "experimental"}),
        20,
    ),
    StudioType.MOBILE: (
        frozenset({"mobile", "casual games", "f2p", "social games"}),
        15,
    ),
}

RECOGNIZED_STUDIOS = (
    "epic games",
    "blizzard",
    "valve",
    "riot games",
    "nintendo",
    "sony",
    "microsoft",
)

CRITICAL_SHARE = 70
PREFERRED_SHARE = 30
NEUTRAL_SCORE = 70
IMPROVEMENT_THRESHOLD = 70
MAX_RECOMMENDED_SKILLS = 5


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (round() uses banker's rounding)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class MatchWeights:
    """Relative weight of each sub-score; must sum to 1.0."""

    skills: float = 0.35
    experience: float = 0.25
    location: float = 0.15
    salary: float = 0.10
    culture: float = 0.10
    technology: float = 0.05

    def __post_init__(self) -> None:
        total = sum(getattr(self, f.name) for f in fields(self))
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"Match weights must sum to 1.0, got {total:.4f}")

    @classmethod
    def from_settings(cls) -> "MatchWeights":
        settings = get_settings()
        return cls(
            skills=settings.weight_skills,
            experience=settings.weight_experience,
            location=settings.weight_location,
            salary=settings.weight_salary,
            culture=settings.weight_culture,
            technology=settings.weight_technology,
        )


@dataclass(frozen=True)
class MatchBreakdown:
    """Six sub-scores, each 0-100."""

    skills_match: float
    experience_match: float
    location_match: float
    salary_match: float
    culture_match: float
    technology_match: float

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def weighted_total(self, weights: MatchWeights) -> float:
        return (
            self.skills_match * weights.skills
            + self.experience_match * weights.experience
            + self.location_match * weights.location
            + self.salary_match * weights.salary
            + self.culture_match * weights.culture
            + self.technology_match * weights.technology
        )


@dataclass(frozen=True)
class SkillsMatch:
    """Skills sub-score with the requirement entries behind it."""

    score: float
    matched: Tuple[str, ...] = ()
    missing_critical: Tuple[str, ...] = ()
    missing_preferred: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of scoring one candidate against one job.

    Attributes:
        job_id: Scored job identifier
        match_score: Weighted composite score (0-100)
        match_breakdown: Individual sub-scores
        missing_skills: Job requirements/technologies the candidate lacks
        recommended_skills: First five missing skills, in job order
        strengths: Reserved; always empty until its semantics are defined
        improvement_areas: Breakdown keys scoring below 70, weakest first
    """

    job_id: str
    match_score: int
    match_breakdown: MatchBreakdown
    missing_skills: Tuple[str, ...] = ()
    recommended_skills: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    improvement_areas: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "job_id": self.job_id,
            "match_score": self.match_score,
            "match_breakdown": self.match_breakdown.to_dict(),
            "missing_skills": list(self.missing_skills),
            "recommended_skills": list(self.recommended_skills),
            "strengths": list(self.strengths),
            "improvement_areas": list(self.improvement_areas),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchResult":
        return cls(
            job_id=data["job_id"],
            match_score=data["match_score"],
            match_breakdown=MatchBreakdown(**data["match_breakdown"]),
            missing_skills=tuple(data.get("missing_skills", ())),
            recommended_skills=tuple(data.get("recommended_skills", ())),
            strengths=tuple(data.get("strengths", ())),
            improvement_areas=tuple(data.get("improvement_areas", ())),
        )


def _coverage(
    entries: Sequence[str],
    folded_skills: Sequence[str],
    resolver: TermSimilarityResolver,
) -> Tuple[List[str], List[str]]:
    """Split entries into (matched, missing) against the candidate's skills."""
    matched, missing = [], []
    for entry in entries:
        if resolver.matches_any(entry, folded_skills):
            matched.append(entry)
        else:
            missing.append(entry)
    return matched, missing


def match_skills(
    folded_skills: Sequence[str],
    critical: Sequence[str],
    preferred: Sequence[str],
    resolver: Optional[TermSimilarityResolver] = None,
) -> SkillsMatch:
    """
    Score requirement coverage with must-haves weighted 70/30 over nice-to-haves.

    An empty half contributes its full share, so a job with no requirements
    scores 100.

    Args:
        folded_skills: Candidate skills, already folded
        critical: Must-have requirements
        preferred: Nice-to-have requirements
        resolver: Term comparison (default resolver if None)

    Returns:
        SkillsMatch with score 0-100 and the unmatched entries per half
    """
    resolver = resolver or get_default_resolver()

    critical_matched, missing_critical = _coverage(critical, folded_skills, resolver)
    preferred_matched, missing_preferred = _coverage(preferred, folded_skills, resolver)

    if critical:
        critical_score = len(critical_matched) / len(critical) * CRITICAL_SHARE
    else:
        critical_score = CRITICAL_SHARE

    if preferred:
        preferred_score = len(preferred_matched) / len(preferred) * PREFERRED_SHARE
    else:
        preferred_score = PREFERRED_SHARE

    return SkillsMatch(
        score=min(100, round_half_up(critical_score + preferred_score)),
        matched=tuple(critical_matched + preferred_matched),
        missing_critical=tuple(missing_critical),
        missing_preferred=tuple(missing_preferred),
    )


def match_experience(years: float, level: Optional[ExperienceLevel]) -> float:
    """
    Calculate experience match score (0-100).

    Inside the level's range scores 100; each year outside the nearest
    bound costs 10 points, floored at 20. Unknown level is neutral (70).
    """
    expected = EXPERIENCE_RANGES.get(level) if level is not None else None
    if expected is None:
        return NEUTRAL_SCORE

    low, high = expected
    if low <= years <= high:
        return 100

    distance = low - years if years < low else years - high
    return max(20, 100 - distance * 10)


def match_location(
    candidate_location: Optional[str],
    work_style: Optional[WorkStyle],
    job_location: str,
    job_remote: bool,
) -> float:
    """
    Calculate location match score (0-100).

    Checks run in order and the first hit wins: work style vs. remote flag,
    missing data (60), containment (100), shared comma-separated part (80),
    gaming hub (70), anything else (50).
    """
    if work_style == WorkStyle.REMOTE:
        return 100 if job_remote else 30
    if work_style == WorkStyle.ONSITE and job_remote:
        return 40

    if not candidate_location or not candidate_location.strip():
        return 60
    if not job_location or not job_location.strip():
        return 60

    candidate_lower = candidate_location.strip().lower()
    job_lower = job_location.strip().lower()

    if candidate_lower in job_lower or job_lower in candidate_lower:
        return 100

    candidate_parts = {p.strip() for p in candidate_lower.split(",") if p.strip()}
    job_parts = {p.strip() for p in job_lower.split(",") if p.strip()}
    if candidate_parts & job_parts:
        return 80

    if any(hub in job_lower for hub in GAMING_HUBS):
        return 70

    return 50


def match_salary(
    expectation: Optional[SalaryRange],
    job_salary: Optional[Union[SalaryRange, UnstructuredSalary]],
) -> float:
    """
    Calculate salary match score (0-100).

    Args:
        expectation: Candidate's expected range
        job_salary: Job range, free text, or None

    Returns:
        100 when the job range sits inside the expectation, 60-100 for
        partial overlap, a distance-scaled 20-100 without overlap, and a
        neutral 70 when either side is missing or unstructured.
    """
    if expectation is None or not isinstance(job_salary, SalaryRange):
        return NEUTRAL_SCORE

    user_min, user_max = expectation.min, expectation.max
    job_min, job_max = job_salary.min, job_salary.max

    if job_min >= user_min and job_max <= user_max:
        return 100

    if job_max >= user_min and job_min <= user_max:
        user_range = max(1, user_max - user_min)
        overlap = min(job_max, user_max) - max(job_min, user_min)
        return max(60, 60 + (overlap / user_range) * 40)

    gap = user_min - job_max if job_max < user_min else job_min - user_max
    average = (user_min + user_max) / 2
    if average <= 0:
        return 20
    return max(20, round_half_up(100 - (gap / average) * 100))


def match_culture(
    interests: Iterable[str],
    company: Optional[str],
    studio_type: Optional[StudioType],
) -> float:
    """Calculate culture fit (0-100) from studio type interests and employer recognition."""
    score = 60

    if studio_type is not None and studio_type in STUDIO_TYPE_INTERESTS:
        keywords, bonus = STUDIO_TYPE_INTERESTS[studio_type]
        interests_lower = {i.strip().lower() for i in interests}
        if interests_lower & keywords:
            score += bonus

    if company:
        company_lower = company.lower()
        if any(studio in company_lower for studio in RECOGNIZED_STUDIOS):
            score += 10

    return min(100, score)


def match_technology(
    folded_technologies: Sequence[str],
    job_technologies: Sequence[str],
    resolver: Optional[TermSimilarityResolver] = None,
) -> float:
    """Calculate technology overlap score (60-100); 80 when the job lists none."""
    if not job_technologies:
        return 80

    resolver = resolver or get_default_resolver()
    matched = sum(
        1 for tech in job_technologies if resolver.matches_any(tech, folded_technologies)
    )
    pct = matched / len(job_technologies)
    return round_half_up(60 + min(40, pct * 40))


def analyze_missing_skills(
    folded_skills: Sequence[str],
    requirements: Sequence[str],
    technologies: Sequence[str],
    resolver: Optional[TermSimilarityResolver] = None,
) -> List[str]:
    """
    List job requirements and technologies the candidate has no similar skill for.

    Entries keep job order; case-insensitive duplicates are reported once.
    """
    resolver = resolver or get_default_resolver()
    missing = []
    seen = set()
    for entry in list(requirements) + list(technologies):
        key = resolver.fold(entry)
        if not key or key in seen:
            continue
        seen.add(key)
        if not resolver.matches_any(entry, folded_skills):
            missing.append(entry)
    return missing


def identify_improvement_areas(breakdown: MatchBreakdown) -> List[str]:
    """Return breakdown keys below 70, weakest first."""
    weak = [(k, v) for k, v in breakdown.to_dict().items() if v < IMPROVEMENT_THRESHOLD]
    weak.sort(key=lambda item: item[1])
    return [key for key, _ in weak]


def coerce_profile(profile: Any) -> CandidateProfile:
    if isinstance(profile, CandidateProfile):
        return profile
    if isinstance(profile, Mapping):
        try:
            return CandidateProfile.model_validate(dict(profile))
        except ValidationError as e:
            logger.debug(f"Profile coerced to defaults: {e}")
    return CandidateProfile()


def coerce_job(job: Any) -> JobPosting:
    if isinstance(job, JobPosting):
        return job
    if isinstance(job, Mapping):
        try:
            return JobPosting.model_validate(dict(job))
        except ValidationError as e:
            logger.debug(f"Job coerced to defaults: {e}")
    return JobPosting()


@dataclass(frozen=True)
class _PreparedProfile:
    profile: CandidateProfile
    folded_skills: Tuple[str, ...] = field(default=())
    folded_technologies: Tuple[str, ...] = field(default=())


class MatchScorer:
    """
    Weighted candidate/job scorer.

    Attributes:
        weights: Sub-score weights (from settings if not given)
        resolver: Term comparison shared by every skill/technology check
        critical_ratio: Leading share of requirements treated as must-have
        min_recommend_score: Lowest score recommend() keeps

    Example:
        >>> scorer = MatchScorer()
        >>> result = scorer.score(profile, job)
        >>> result.match_score
        82
    """

    def __init__(
        self,
        weights: Optional[MatchWeights] = None,
        resolver: Optional[TermSimilarityResolver] = None,
        critical_ratio: Optional[float] = None,
        min_recommend_score: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.weights = weights or MatchWeights.from_settings()
        self.resolver = resolver or get_default_resolver()
        self.critical_ratio = (
            settings.critical_requirement_ratio if critical_ratio is None else critical_ratio
        )
        self.min_recommend_score = (
            settings.recommend_min_score if min_recommend_score is None else min_recommend_score
        )

    def _prepare(self, profile: Any) -> _PreparedProfile:
        candidate = coerce_profile(profile)
        return _PreparedProfile(
            profile=candidate,
            folded_skills=self.resolver.fold_all(candidate.skills),
            folded_technologies=self.resolver.fold_all(candidate.technologies),
        )

    def score(self, profile: Any, job: Any) -> MatchResult:
        """
        Score one candidate against one job.

        Args:
            profile: CandidateProfile or a mapping with its fields
            job: JobPosting or a mapping with its fields

        Returns:
            MatchResult; never raises on malformed data
        """
        return self._score_prepared(self._prepare(profile), coerce_job(job))

    def _score_prepared(self, prepared: _PreparedProfile, job: JobPosting) -> MatchResult:
        profile = prepared.profile
        critical, preferred = job.split_requirements(self.critical_ratio)

        skills = match_skills(prepared.folded_skills, critical, preferred, self.resolver)
        breakdown = MatchBreakdown(
            skills_match=skills.score,
            experience_match=match_experience(profile.experience_years, job.experience_level),
            location_match=match_location(
                profile.location, profile.work_style, job.location, job.remote
            ),
            salary_match=match_salary(profile.salary_expectation, job.salary),
            culture_match=match_culture(profile.interests, job.company, job.studio_type),
            technology_match=match_technology(
                prepared.folded_technologies, job.technologies, self.resolver
            ),
        )

        total = round_half_up(breakdown.weighted_total(self.weights))
        missing = analyze_missing_skills(
            prepared.folded_skills, job.all_requirements, job.technologies, self.resolver
        )

        logger.debug(
            f"Scored job {job.id!r}: {total} "
            f"(missing critical={len(skills.missing_critical)}, "
            f"missing preferred={len(skills.missing_preferred)})"
        )

        return MatchResult(
            job_id=job.id,
            match_score=max(0, min(100, total)),
            match_breakdown=breakdown,
            missing_skills=tuple(missing),
            recommended_skills=tuple(missing[:MAX_RECOMMENDED_SKILLS]),
            strengths=(),
            improvement_areas=tuple(identify_improvement_areas(breakdown)),
        )

    def recommend(
        self,
        profile: Any,
        jobs: Any,
        limit: int = 10,
    ) -> List[MatchResult]:
        """
        Rank jobs for a candidate.

        Args:
            profile: Candidate profile
            jobs: Sequence of job postings (non-sequences count as empty)
            limit: Maximum number of results

        Returns:
            Results with match_score >= min_recommend_score, best first
        """
        if not isinstance(jobs, (list, tuple)) or limit <= 0:
            return []

        prepared = self._prepare(profile)
        results = [self._score_prepared(prepared, coerce_job(job)) for job in jobs]
        return self.rank(results, limit)

    def rank(self, results: Sequence[MatchResult], limit: int = 10) -> List[MatchResult]:
        """Keep results at or above min_recommend_score, best first, stable on ties."""
        if limit <= 0:
            return []

        kept = [r for r in results if r.match_score >= self.min_recommend_score]
        kept.sort(key=lambda r: r.match_score, reverse=True)

        logger.debug(f"Recommended {min(len(kept), limit)} of {len(results)} jobs")
        return kept[:limit]


_default_scorer: Optional[MatchScorer] = None


def get_default_scorer() -> MatchScorer:
    """Get or create the scorer singleton configured from settings."""
    global _default_scorer

    if _default_scorer is None:
        _default_scorer = MatchScorer()

    return _default_scorer


def score(profile: Any, job: Any) -> MatchResult:
    return get_default_scorer().score(profile, job)


def recommend(profile: Any, jobs: Any, limit: int = 10) -> List[MatchResult]:
    return get_default_scorer().recommend(profile, jobs, limit)
