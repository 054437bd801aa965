from enum import Enum
from typing import Any, FrozenSet, Optional, Tuple

from pydantic import AliasChoices, Field, field_validator

from app.schemas.common import RecordModel, coerce_str, coerce_str_list


class Region(str, Enum):
    NORTH_AMERICA = "North America"
    EUROPE = "Europe"
    ASIA = "Asia"
    OCEANIA = "Oceania"
    OTHER = "Other"


class SizeBucket(str, Enum):
    INDIE = "Indie"
    SMALL = "Small"
    MID = "Mid"
    LARGE = "Large"
    ENTERPRISE = "Enterprise"


class RoleCategory(str, Enum):
    ENGINEERING = "ENGINEERING"
    DESIGN = "DESIGN"
    ART = "ART"
    PRODUCTION = "PRODUCTION"
    AUDIO = "AUDIO"
    DATA_ANALYTICS = "DATA_ANALYTICS"
    COMMUNITY = "COMMUNITY"
    OTHER = "OTHER"


class OrganizationRecord(RecordModel):
    """Raw studio record as delivered by the ingestion layer."""

    id: str = ""
    name: str = ""
    description: str = ""
    headquarters: str = Field(
        default="", validation_alias=AliasChoices("headquarters", "location")
    )
    size: str = ""
    games: Tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("games", "products")
    )
    technologies: Tuple[str, ...] = ()
    common_roles: Tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("common_roles", "commonRoles", "roles")
    )
    region: Optional[Region] = None

    @field_validator("id", "name", "description", "headquarters", "size", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("games", "technologies", "common_roles", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Tuple[str, ...]:
        return coerce_str_list(value)

    @field_validator("region", mode="before")
    @classmethod
    def _coerce_region(cls, value: Any) -> Optional[Region]:
        """Accept a region by value, any case; anything else means infer it."""
        if isinstance(value, Region):
            return value
        text = coerce_str(value).strip().lower()
        for region in Region:
            if region.value.lower() == text:
                return region
        return None


class NormalizedAttributes(RecordModel):
    """Derived, canonical search attributes of a studio."""

    region: Region = Region.OTHER
    size_bucket: SizeBucket = SizeBucket.MID
    categories: Tuple[str, ...] = ()
    tech_tags: Tuple[str, ...] = ()
    role_categories: Tuple[RoleCategory, ...] = ()
    search_tokens: FrozenSet[str] = frozenset()


class NormalizedEntity(RecordModel):
    """
    A studio record paired with its normalized attributes.

    Computed once at ingestion; re-derive from the raw record on update
    rather than editing in place.
    """

    record: OrganizationRecord
    normalized: NormalizedAttributes

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    def to_raw(self) -> OrganizationRecord:
        return self.record
