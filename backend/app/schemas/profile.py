from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import field_validator

from app.schemas.common import (
    RecordModel,
    SalaryRange,
    coerce_enum,
    coerce_optional_str,
    coerce_salary_range,
    coerce_str_list,
    to_number,
)


class WorkStyle(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"


class CandidateProfile(RecordModel):
    """
    Candidate attributes consumed by the match scorer.

    Attributes:
        skills: Ordered skill names, free text
        experience_years: Years of professional experience
        interests: Free-text interests used for culture fit
        location: Preferred location (e.g. "Seattle, WA")
        salary_expectation: Expected salary range
        work_style: remote, hybrid or onsite
        technologies: Engines, tools and languages used
    """

    skills: Tuple[str, ...] = ()
    experience_years: float = 0.0
    interests: Tuple[str, ...] = ()
    location: Optional[str] = None
    salary_expectation: Optional[SalaryRange] = None
    work_style: Optional[WorkStyle] = None
    technologies: Tuple[str, ...] = ()

    @field_validator("skills", "interests", "technologies", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Tuple[str, ...]:
        return coerce_str_list(value)

    @field_validator("experience_years", mode="before")
    @classmethod
    def _coerce_years(cls, value: Any) -> float:
        number = to_number(value)
        return max(0.0, number) if number is not None else 0.0

    @field_validator("location", mode="before")
    @classmethod
    def _coerce_location(cls, value: Any) -> Optional[str]:
        return coerce_optional_str(value)

    @field_validator("salary_expectation", mode="before")
    @classmethod
    def _coerce_salary(cls, value: Any) -> Optional[dict]:
        return coerce_salary_range(value)

    @field_validator("work_style", mode="before")
    @classmethod
    def _coerce_work_style(cls, value: Any) -> Optional[WorkStyle]:
        return coerce_enum(WorkStyle, value)
