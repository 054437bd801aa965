"""
Skill Gap Analysis Service

This service identifies missing skills between a candidate profile and a
set of target jobs, enabling:
- Better job targeting
- Learning recommendations

The analysis considers:
- Frequency of each requirement across the target jobs
- Whether the candidate already has a similar skill (synonyms and
  containment via TermSimilarityResolver)

Usage:
    analyzer = SkillGapAnalyzer()
    analysis = analyzer.analyze(profile, jobs)
    # analysis.missing_critical_skills -> ["Unity"]
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from app.config import get_settings
from app.schemas.job import JobPosting
from app.services.matcher import coerce_job, coerce_profile
from app.services.similarity import TermSimilarityResolver, get_default_resolver

logger = logging.getLogger(__name__)

# skill -> (resources, estimated time to learn)
LEARNING_RESOURCES: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "unity": (
        ("Unity Learn", "Coursera Unity Courses", "YouTube Unity Tutorials"),
        "2-3 months",
    ),
    "unreal engine": (
        ("Unreal Online Learning", "Unreal Engine Documentation", "Udemy Unreal Courses"),
        "3-4 months",
    ),
    "c++": (
        ("learncpp.com", "Game Programming Patterns", "Effective Modern C++"),
        "4-6 months",
    ),
    "c#": (
        ("Microsoft Learn C#", "Unity C# Scripting Tutorials"),
        "2-3 months",
    ),
    "game design": (
        ("Game Design Workshop", "Extra Credits", "Game Design Documents"),
        "3-6 months",
    ),
    "git": (
        ("Pro Git", "GitHub Skills"),
        "2-4 weeks",
    ),
}

DEFAULT_CRITICAL_RESOURCES = ("Online courses", "Documentation", "Practice projects")
DEFAULT_PREFERRED_RESOURCES = ("Online tutorials", "Community resources")
DEFAULT_LEARNING_TIME = "1-3 months"


@dataclass(frozen=True)
class LearningRecommendation:
    """
    Suggested learning step for one missing skill.

    Attributes:
        skill: Skill name as written in the job postings
        priority: high for critical gaps, medium for preferred gaps
        resources: Where to learn it
        estimated_time_to_learn: Rough duration
    """
    skill: str
    priority: str
    resources: Tuple[str, ...]
    estimated_time_to_learn: str

    def to_dict(self) -> dict:
        return {
            "skill": self.skill,
            "priority": self.priority,
            "resources": list(self.resources),
            "estimated_time_to_learn": self.estimated_time_to_learn,
        }


@dataclass(frozen=True)
class SkillGapAnalysis:
    """
    Skill gaps across a set of target jobs.

    Attributes:
        missing_critical_skills: Missing requirements common across the jobs
        missing_preferred_skills: Missing requirements seen in fewer jobs
        strength_areas: Requirements the candidate already covers
        recommended_learning: One recommendation per missing skill
    """
    missing_critical_skills: Tuple[str, ...] = ()
    missing_preferred_skills: Tuple[str, ...] = ()
    strength_areas: Tuple[str, ...] = ()
    recommended_learning: Tuple[LearningRecommendation, ...] = field(default=())

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "missing_critical_skills": list(self.missing_critical_skills),
            "missing_preferred_skills": list(self.missing_preferred_skills),
            "strength_areas": list(self.strength_areas),
            "recommended_learning": [r.to_dict() for r in self.recommended_learning],
        }


class SkillGapAnalyzer:
    """
    Analyzes skill gaps between a candidate profile and target jobs.

    Attributes:
        resolver: Term comparison used to decide whether a skill is covered
        critical_ratio: Share of jobs a missing requirement must appear in
            to count as critical
    """

    def __init__(
        self,
        resolver: Optional[TermSimilarityResolver] = None,
        critical_ratio: Optional[float] = None,
    ):
        self.resolver = resolver or get_default_resolver()
        self.critical_ratio = (
            get_settings().critical_gap_ratio if critical_ratio is None else critical_ratio
        )

    def analyze(self, profile: Any, jobs: Any) -> SkillGapAnalysis:
        """
        Calculate skill gaps between a profile and target jobs.

        Args:
            profile: CandidateProfile or mapping
            jobs: Sequence of JobPosting or mappings

        Returns:
            SkillGapAnalysis; empty when there are no jobs

        Example:
            >>> analysis = analyzer.analyze(
            ...     {"skills": ["C#"]},
            ...     [{"id": "1", "requirements": ["Unity", "C#"]}]
            ... )
            >>> analysis.missing_critical_skills
            ('Unity',)
        """
        if not isinstance(jobs, (list, tuple)) or not jobs:
            return SkillGapAnalysis()

        candidate = coerce_profile(profile)
        folded_skills = self.resolver.fold_all(candidate.skills)
        postings: List[JobPosting] = [coerce_job(job) for job in jobs]

        # requirement (folded) -> first-seen spelling, and job counts
        spelling: Dict[str, str] = {}
        frequency: Dict[str, int] = {}
        for posting in postings:
            seen_in_job = set()
            for requirement in posting.all_requirements:
                key = self.resolver.fold(requirement)
                if not key or key in seen_in_job:
                    continue
                seen_in_job.add(key)
                spelling.setdefault(key, requirement)
                frequency[key] = frequency.get(key, 0) + 1

        missing_critical: List[str] = []
        missing_preferred: List[str] = []
        strengths: List[str] = []

        for key, requirement in spelling.items():
            if self.resolver.matches_any(requirement, folded_skills):
                strengths.append(requirement)
            elif frequency[key] / len(postings) >= self.critical_ratio:
                missing_critical.append(requirement)
            else:
                missing_preferred.append(requirement)

        logger.debug(
            f"Skill gaps over {len(postings)} jobs: "
            f"{len(missing_critical)} critical, {len(missing_preferred)} preferred"
        )

        return SkillGapAnalysis(
            missing_critical_skills=tuple(missing_critical),
            missing_preferred_skills=tuple(missing_preferred),
            strength_areas=tuple(strengths),
            recommended_learning=tuple(
                recommend_learning(missing_critical, missing_preferred)
            ),
        )


def recommend_learning(
    critical_skills: List[str],
    preferred_skills: List[str],
) -> List[LearningRecommendation]:
    """
    Generate learning recommendations for missing skills.

    Critical skills come first with high priority; preferred skills follow
    with medium priority. Unknown skills get generic resources.
    """
    recommendations = []

    for skill in critical_skills:
        resources, duration = LEARNING_RESOURCES.get(
            skill.strip().lower(), (DEFAULT_CRITICAL_RESOURCES, DEFAULT_LEARNING_TIME)
        )
        recommendations.append(LearningRecommendation(skill, "high", resources, duration))

    for skill in preferred_skills:
        resources, duration = LEARNING_RESOURCES.get(
            skill.strip().lower(), (DEFAULT_PREFERRED_RESOURCES, DEFAULT_LEARNING_TIME)
        )
        recommendations.append(LearningRecommendation(skill, "medium", resources, duration))

    return recommendations


def analyze_skill_gaps(profile: Any, jobs: Any) -> SkillGapAnalysis:
    """Module-level shortcut using a settings-configured analyzer."""
    return SkillGapAnalyzer().analyze(profile, jobs)
