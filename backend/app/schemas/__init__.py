from app.schemas.common import SalaryRange, UnstructuredSalary
from app.schemas.profile import CandidateProfile, WorkStyle
from app.schemas.job import JobPosting, ExperienceLevel, StudioType
from app.schemas.studio import (
    OrganizationRecord,
    NormalizedAttributes,
    NormalizedEntity,
    Region,
    SizeBucket,
    RoleCategory,
)

__all__ = [
    "SalaryRange",
    "UnstructuredSalary",
    "CandidateProfile",
    "WorkStyle",
    "JobPosting",
    "ExperienceLevel",
    "StudioType",
    "OrganizationRecord",
    "NormalizedAttributes",
    "NormalizedEntity",
    "Region",
    "SizeBucket",
    "RoleCategory",
]
