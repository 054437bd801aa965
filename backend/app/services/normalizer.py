"""
Studio Normalization - canonical search attributes for studio records

Derives, once per record at ingestion time:
    - region: an explicit record region, else headquarters keywords
    - size_bucket: from the free-text size descriptor
    - tech_tags: technologies mapped to one canonical spelling
    - role_categories: common roles mapped to a fixed category set
    - categories: optional taxonomy membership
    - search_tokens: lowercase text used by the fuzzy search index

Normalization is pure and deterministic: the same record and configuration
always produce the same NormalizedEntity. Records are re-normalized on
update, never patched in place.

Usage:
    normalizer = EntityNormalizer.from_corpus(records)
    entity = normalizer.normalize(records[0])
    entity.normalized.region  # Region.NORTH_AMERICA
"""

import logging
import re
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Pattern, Tuple

from pydantic import ValidationError

from app.schemas.studio import (
    NormalizedAttributes,
    NormalizedEntity,
    OrganizationRecord,
    Region,
    RoleCategory,
    SizeBucket,
)

logger = logging.getLogger(__name__)

# Checked in order; first hit wins
REGION_PATTERNS: Tuple[Tuple[Region, Pattern], ...] = (
    (
        Region.NORTH_AMERICA,
        re.compile(
            r"seattle|los angeles|irvine|austin|new york|san francisco|san diego|"
            r"redmond|bellevue|raleigh|usa|u\.s\.|united states|california|"
            r"washington|texas|montreal|vancouver|toronto|quebec|canada"
        ),
    ),
    (
        Region.EUROPE,
        re.compile(
            r"london|paris|berlin|france|germany|poland|warsaw|sweden|stockholm|"
            r"helsinki|copenhagen|europe|amsterdam|netherlands|finland|denmark|"
            r"united kingdom|\buk\b|england|scotland|guildford|prague|czech"
        ),
    ),
    (
        Region.ASIA,
        re.compile(
            r"tokyo|kyoto|osaka|japan|seoul|korea|shanghai|beijing|shenzhen|"
            r"china|singapore|taipei|taiwan|asia"
        ),
    ),
    (
        Region.OCEANIA,
        re.compile(
            r"sydney|melbourne|brisbane|adelaide|perth|australia|"
            r"auckland|wellington|new zealand|oceania"
        ),
    ),
)

# Upper headcount bound per bucket (inclusive)
SIZE_THRESHOLDS: Tuple[Tuple[int, SizeBucket], ...] = (
    (10, SizeBucket.INDIE),
    (50, SizeBucket.SMALL),
    (200, SizeBucket.MID),
    (1000, SizeBucket.LARGE),
)

SIZE_KEYWORDS: Tuple[Tuple[Pattern, SizeBucket], ...] = (
    (re.compile(r"enterprise"), SizeBucket.ENTERPRISE),
    (re.compile(r"large"), SizeBucket.LARGE),
    (re.compile(r"\bmid\b|mid-size|midsize|medium"), SizeBucket.MID),
    (re.compile(r"small"), SizeBucket.SMALL),
    (re.compile(r"indie|startup|solo"), SizeBucket.INDIE),
)

_NUMBER = re.compile(r"(\d[\d,]*)\s*(\+?)")

# Checked in order; first hit wins
ROLE_RULES: Tuple[Tuple[Pattern, RoleCategory], ...] = (
    (
        re.compile(
            r"engineer|programmer|developer|architect|devops|platform|"
            r"backend|frontend|full\s*stack"
        ),
        RoleCategory.ENGINEERING,
    ),
    (re.compile(r"designer|design|\bux\b|\bui\b|level|quest|narrative|writer"), RoleCategory.DESIGN),
    (re.compile(r"artist|\bart\b|animator|vfx|modeler|concept"), RoleCategory.ART),
    (re.compile(r"producer|product|project|scrum|manager|director"), RoleCategory.PRODUCTION),
    (re.compile(r"audio|sound|music|voice|composer"), RoleCategory.AUDIO),
    (re.compile(r"data|analyst|analytics|scientist|research"), RoleCategory.DATA_ANALYTICS),
    (re.compile(r"community|marketing|social|relations|content"), RoleCategory.COMMUNITY),
)


def infer_region(headquarters: str) -> Region:
    """Infer a region from a headquarters string; Other when nothing matches."""
    hq = (headquarters or "").lower()
    for region, pattern in REGION_PATTERNS:
        if pattern.search(hq):
            return region
    return Region.OTHER


def _bucket_for_headcount(headcount: int) -> SizeBucket:
    for upper, bucket in SIZE_THRESHOLDS:
        if headcount <= upper:
            return bucket
    return SizeBucket.ENTERPRISE


def size_to_bucket(size_desc: str) -> SizeBucket:
    """
    Map a size descriptor to a bucket.

    Headcounts win over keywords: the largest number in the text is used,
    and a trailing "+" means "more than". Descriptors with neither a number
    nor a keyword fall back to Mid.

    Examples:
        "1-10" -> Indie, "51-200" -> Mid, "1000+" -> Enterprise,
        "Large studio" -> Large, "" -> Mid
    """
    text = (size_desc or "").lower()

    headcounts = []
    for digits, plus in _NUMBER.findall(text):
        value = int(digits.replace(",", ""))
        headcounts.append(value + 1 if plus else value)
    if headcounts:
        return _bucket_for_headcount(max(headcounts))

    for pattern, bucket in SIZE_KEYWORDS:
        if pattern.search(text):
            return bucket

    return SizeBucket.MID


def map_role_to_category(role: str) -> RoleCategory:
    r = (role or "").lower()
    for pattern, category in ROLE_RULES:
        if pattern.search(r):
            return category
    return RoleCategory.OTHER


def build_tech_canonical(records: Iterable[OrganizationRecord]) -> Dict[str, str]:
    """
    Build a case-insensitive technology table from a corpus.

    The first spelling seen for each technology becomes canonical, so
    "unreal engine" and "Unreal Engine" collapse to whichever came first.
    """
    canonical: Dict[str, str] = {}
    for record in records:
        for tech in record.technologies:
            key = tech.strip().lower()
            if key and key not in canonical:
                canonical[key] = tech.strip()
    return canonical


def build_search_tokens(
    record: OrganizationRecord,
    region: Region,
    size_bucket: SizeBucket,
    categories: Iterable[str],
    tech_tags: Iterable[str],
    role_categories: Iterable[RoleCategory],
) -> FrozenSet[str]:
    """Lowercase set of every textual field plus the derived attributes."""
    base: List[str] = [record.name, record.description, record.headquarters]
    base.extend(record.games)
    base.extend(record.technologies)
    base.extend(record.common_roles)
    base.append(region.value)
    base.append(size_bucket.value)
    base.extend(categories)
    base.extend(tech_tags)
    base.extend(rc.value for rc in role_categories)
    return frozenset(s.strip().lower() for s in base if s and s.strip())


class NormalizerConfig:
    """
    Immutable lookup tables used by EntityNormalizer.

    Attributes:
        tech_canonical: lowercase technology -> canonical spelling
        categories: category -> studio ids belonging to it
    """

    def __init__(
        self,
        tech_canonical: Optional[Mapping[str, str]] = None,
        categories: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> None:
        self.tech_canonical = MappingProxyType(
            {k.strip().lower(): v for k, v in (tech_canonical or {}).items()}
        )
        self.categories = MappingProxyType(
            {cat: tuple(ids) for cat, ids in (categories or {}).items()}
        )

        category_index: Dict[str, List[str]] = {}
        for category, ids in self.categories.items():
            for studio_id in ids:
                category_index.setdefault(studio_id, []).append(category)
        self._category_index = MappingProxyType(
            {sid: tuple(sorted(cats)) for sid, cats in category_index.items()}
        )

    def categories_for(self, studio_id: str) -> Tuple[str, ...]:
        return self._category_index.get(studio_id, ())


class EntityNormalizer:
    """
    Derives NormalizedEntity values from raw studio records.

    Example:
        >>> normalizer = EntityNormalizer()
        >>> entity = normalizer.normalize(OrganizationRecord(id="x", name="X"))
        >>> entity.normalized.size_bucket
        <SizeBucket.MID: 'Mid'>
    """

    def __init__(self, config: Optional[NormalizerConfig] = None) -> None:
        self.config = config or NormalizerConfig()

    @classmethod
    def from_corpus(
        cls,
        records: Iterable[OrganizationRecord],
        categories: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> "EntityNormalizer":
        """Create a normalizer whose tech table is built from the given records."""
        return cls(NormalizerConfig(build_tech_canonical(records), categories))

    def canonical_tech(self, tech: str) -> str:
        cleaned = tech.strip()
        return self.config.tech_canonical.get(cleaned.lower(), cleaned)

    def normalize(self, raw: Any) -> NormalizedEntity:
        """
        Normalize one studio record.

        Args:
            raw: OrganizationRecord or mapping with its fields

        Returns:
            NormalizedEntity wrapping the record
        """
        record = coerce_record(raw)

        region = record.region or infer_region(record.headquarters)
        size_bucket = size_to_bucket(record.size)
        categories = self.config.categories_for(record.id)
        tech_tags = tuple(
            sorted({self.canonical_tech(t) for t in record.technologies if t.strip()})
        )
        role_categories = tuple(
            sorted(
                {map_role_to_category(r) for r in record.common_roles if r.strip()},
                key=lambda rc: rc.value,
            )
        )
        search_tokens = build_search_tokens(
            record, region, size_bucket, categories, tech_tags, role_categories
        )

        return NormalizedEntity(
            record=record,
            normalized=NormalizedAttributes(
                region=region,
                size_bucket=size_bucket,
                categories=categories,
                tech_tags=tech_tags,
                role_categories=role_categories,
                search_tokens=search_tokens,
            ),
        )

    def normalize_all(self, records: Iterable[Any]) -> List[NormalizedEntity]:
        return [self.normalize(r) for r in records]


def coerce_record(raw: Any) -> OrganizationRecord:
    if isinstance(raw, OrganizationRecord):
        return raw
    if isinstance(raw, NormalizedEntity):
        return raw.to_raw()
    if isinstance(raw, Mapping):
        try:
            return OrganizationRecord.model_validate(dict(raw))
        except ValidationError as e:
            logger.debug(f"Studio record coerced to defaults: {e}")
    return OrganizationRecord()


def normalize(raw: Any, normalizer: Optional[EntityNormalizer] = None) -> NormalizedEntity:
    """Normalize a single record (empty tech table unless a normalizer is given)."""
    return (normalizer or EntityNormalizer()).normalize(raw)


def normalize_all(
    records: Iterable[Any],
    categories: Optional[Mapping[str, Iterable[str]]] = None,
) -> List[NormalizedEntity]:
    """
    Normalize a corpus, building the technology table from the corpus itself.

    Args:
        records: OrganizationRecord values or mappings
        categories: Optional category -> studio ids taxonomy

    Returns:
        One NormalizedEntity per record, in input order
    """
    parsed = [coerce_record(r) for r in records]
    normalizer = EntityNormalizer.from_corpus(parsed, categories)
    entities = normalizer.normalize_all(parsed)
    logger.debug(
        f"Normalized {len(entities)} studios "
        f"({len(normalizer.config.tech_canonical)} canonical technologies)"
    )
    return entities
