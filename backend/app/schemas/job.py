import math
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import field_validator

from app.schemas.common import (
    RecordModel,
    Salary,
    coerce_bool,
    coerce_enum,
    coerce_optional_str,
    coerce_salary,
    coerce_str,
    coerce_str_list,
)


class ExperienceLevel(str, Enum):
    ENTRY = "entry"
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    PRINCIPAL = "principal"
    DIRECTOR = "director"


class StudioType(str, Enum):
    AAA = "AAA"
    INDIE = "Indie"
    MOBILE = "Mobile"


class JobPosting(RecordModel):
    """
    Job posting attributes consumed by the match scorer.

    Requirements are ordered: when no explicit critical/preferred split is
    given, the leading share of ``requirements`` is treated as must-have.

    Attributes:
        id: Job identifier
        requirements: Ordered requirement list, must-haves first
        critical_requirements: Explicit must-have requirements
        preferred_requirements: Explicit nice-to-have requirements
        technologies: Engines, tools and languages used on the job
        experience_level: entry, junior, mid, senior, principal or director
        location: Job location string
        remote: Whether the job can be done remotely
        salary: Salary range or free-text salary
        company: Hiring company name
        studio_type: AAA, Indie or Mobile
    """

    id: str = ""
    requirements: Tuple[str, ...] = ()
    critical_requirements: Tuple[str, ...] = ()
    preferred_requirements: Tuple[str, ...] = ()
    technologies: Tuple[str, ...] = ()
    experience_level: Optional[ExperienceLevel] = None
    location: str = ""
    remote: bool = False
    salary: Optional[Salary] = None
    company: Optional[str] = None
    studio_type: Optional[StudioType] = None

    @field_validator(
        "requirements",
        "critical_requirements",
        "preferred_requirements",
        "technologies",
        mode="before",
    )
    @classmethod
    def _coerce_lists(cls, value: Any) -> Tuple[str, ...]:
        return coerce_str_list(value)

    @field_validator("id", "location", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("company", mode="before")
    @classmethod
    def _coerce_company(cls, value: Any) -> Optional[str]:
        return coerce_optional_str(value)

    @field_validator("remote", mode="before")
    @classmethod
    def _coerce_remote(cls, value: Any) -> bool:
        return coerce_bool(value)

    @field_validator("salary", mode="before")
    @classmethod
    def _coerce_salary(cls, value: Any) -> Optional[dict]:
        return coerce_salary(value)

    @field_validator("experience_level", mode="before")
    @classmethod
    def _coerce_level(cls, value: Any) -> Optional[ExperienceLevel]:
        return coerce_enum(ExperienceLevel, value)

    @field_validator("studio_type", mode="before")
    @classmethod
    def _coerce_studio_type(cls, value: Any) -> Optional[StudioType]:
        return coerce_enum(StudioType, value)

    @property
    def has_explicit_split(self) -> bool:
        return bool(self.critical_requirements or self.preferred_requirements)

    @property
    def all_requirements(self) -> Tuple[str, ...]:
        """Every requirement, must-haves first."""
        if self.has_explicit_split:
            return self.critical_requirements + self.preferred_requirements
        return self.requirements

    def split_requirements(
        self, critical_ratio: float = 0.7
    ) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        """
        Return (critical, preferred) requirements.

        Explicit lists win. Otherwise the first ceil(ratio * n) entries of
        ``requirements`` are critical and the remainder preferred.
        """
        if self.has_explicit_split:
            return self.critical_requirements, self.preferred_requirements
        # round first: 0.7 * 10 is 7.000000000000001 in binary floating point
        cutoff = math.ceil(round(critical_ratio * len(self.requirements), 9))
        return self.requirements[:cutoff], self.requirements[cutoff:]
