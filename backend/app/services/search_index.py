"""
Studio Search Index - Prefix Index with Tiered Fuzzy Ranking

This module implements typo-tolerant studio search over normalized studio
records:
1. A prefix index mapping token prefixes to studio ids (candidate recall)
2. Tiered classification of each candidate by match quality
3. Levenshtein distance as tie-breaker within a tier

Architecture:
    Query → [Prefix lookup] → Candidate ids
                    ↓
        Classify: exact > name-exact > name-prefix > token-prefix
                  > name-contains > token-contains > fuzzy
                    ↓
        Sort: score desc, distance asc, name length asc

Key Classes:
    - SearchIndex: immutable prefix -> ids mapping
    - StudioSearchService: owns the current (index, entities) snapshot

Complexity:
    - build: O(t * p) where t=tokens (and words) across studios, p=max prefix length
    - query: O(c * t * q) where c=candidates, q=query length (Levenshtein)
"""

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from rapidfuzz.distance import Levenshtein

from app.config import get_settings
from app.schemas.studio import NormalizedEntity, Region, RoleCategory, SizeBucket
from app.services.normalizer import normalize_all

logger = logging.getLogger(__name__)

MATCH_SCORES: Dict[str, int] = {
    "exact": 100,
    "name-exact": 95,
    "name-prefix": 85,
    "token-prefix": 75,
    "name-contains": 65,
    "token-contains": 55,
}

FUZZY_BASE_SCORE = 45
FUZZY_MIN_SCORE = 10
FUZZY_PENALTY_PER_EDIT = 10


class SearchIndex:
    """
    Immutable prefix index over studio search tokens.

    Every prefix (length 1..max_prefix_length) of every search token, and of
    every whitespace-separated word inside a token, maps to the ids of the
    studios carrying it. Keys are derived purely from search tokens, so the
    index can be rebuilt from the normalized records at any time.

    Attributes:
        max_prefix_length: Longest prefix stored
    """

    def __init__(
        self,
        prefixes: Mapping[str, FrozenSet[str]],
        max_prefix_length: int,
    ) -> None:
        self._prefixes = MappingProxyType(dict(prefixes))
        self.max_prefix_length = max_prefix_length

    @classmethod
    def empty(cls, max_prefix_length: int = 12) -> "SearchIndex":
        return cls({}, max_prefix_length)

    def __len__(self) -> int:
        return len(self._prefixes)

    def __contains__(self, prefix: str) -> bool:
        return prefix in self._prefixes

    def lookup(self, prefix: str) -> FrozenSet[str]:
        return self._prefixes.get(prefix, frozenset())

    def keys(self) -> Iterable[str]:
        return self._prefixes.keys()


@dataclass(frozen=True)
class RankedResult:
    """
    One ranked search hit.

    Attributes:
        id: Studio id
        score: Tier score (100 exact ... 10 weakest fuzzy)
        distance: Levenshtein tie-breaker within the tier
        match_type: Tier name
        entity: The matched studio
    """
    id: str
    score: int
    distance: int
    match_type: str
    entity: NormalizedEntity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.entity.name,
            "score": self.score,
            "distance": self.distance,
            "match_type": self.match_type,
            "region": self.entity.normalized.region.value,
            "size_bucket": self.entity.normalized.size_bucket.value,
            "tech_tags": list(self.entity.normalized.tech_tags),
            "role_categories": [rc.value for rc in self.entity.normalized.role_categories],
        }


def _index_terms(token: str) -> Set[str]:
    terms = {token}
    terms.update(word for word in token.split() if word)
    return terms


def build(
    entities: Iterable[NormalizedEntity],
    max_prefix_length: Optional[int] = None,
) -> SearchIndex:
    """
    Build a fresh prefix index.

    Args:
        entities: Normalized studios
        max_prefix_length: Longest prefix stored (settings default if None)

    Returns:
        A new SearchIndex; previous indexes are never merged into it
    """
    if max_prefix_length is None:
        max_prefix_length = get_settings().search_max_prefix_length
    max_prefix_length = max(1, max_prefix_length)

    buckets: Dict[str, Set[str]] = {}
    for entity in entities:
        for token in entity.normalized.search_tokens:
            for term in _index_terms(token):
                for length in range(1, min(len(term), max_prefix_length) + 1):
                    buckets.setdefault(term[:length], set()).add(entity.id)

    return SearchIndex(
        {prefix: frozenset(ids) for prefix, ids in buckets.items()},
        max_prefix_length,
    )


def fuzzy_threshold(query_length: int, ratio: Optional[float] = None) -> int:
    """Maximum edit distance accepted for a fuzzy match; longer queries allow more."""
    if ratio is None:
        ratio = get_settings().fuzzy_threshold_ratio
    return max(1, math.floor(query_length * ratio))


def _substring_distance(q: str, text: str) -> int:
    pos = text.find(q)
    return Levenshtein.distance(q, text[pos:pos + len(q)])


def classify(
    q: str,
    entity: NormalizedEntity,
    threshold_ratio: Optional[float] = None,
) -> Optional[Tuple[str, int, int]]:
    """
    Classify how a studio matches a folded query.

    Returns:
        (match_type, score, distance), or None if the studio does not match
    """
    tokens = sorted(entity.normalized.search_tokens)
    name = entity.name.strip().lower()

    if q in entity.normalized.search_tokens:
        return "exact", MATCH_SCORES["exact"], 0

    if name == q:
        return "name-exact", MATCH_SCORES["name-exact"], 0

    if name.startswith(q):
        return "name-prefix", MATCH_SCORES["name-prefix"], 0

    prefixed = [t for t in tokens if t.startswith(q)]
    if prefixed:
        distance = min(Levenshtein.distance(q, t) for t in prefixed)
        return "token-prefix", MATCH_SCORES["token-prefix"], distance

    if q in name:
        return "name-contains", MATCH_SCORES["name-contains"], _substring_distance(q, name)

    containing = [t for t in tokens if q in t]
    if containing:
        distance = min(_substring_distance(q, t) for t in containing)
        return "token-contains", MATCH_SCORES["token-contains"], distance

    # whole tokens and their single words
    candidates: Set[str] = set()
    for token in tokens:
        candidates.update(_index_terms(token))
    if name:
        candidates.add(name)
    if not candidates:
        return None
    distance = min(Levenshtein.distance(q, c) for c in candidates)
    if distance <= fuzzy_threshold(len(q), threshold_ratio):
        score = max(FUZZY_MIN_SCORE, FUZZY_BASE_SCORE - distance * FUZZY_PENALTY_PER_EDIT)
        return "fuzzy", score, distance

    return None


def _entity_map(entities: Any) -> Mapping[str, NormalizedEntity]:
    if isinstance(entities, Mapping):
        return entities
    if isinstance(entities, (list, tuple)):
        return {e.id: e for e in entities if isinstance(e, NormalizedEntity)}
    return {}


def query(
    q: str,
    index: SearchIndex,
    entities: Any,
    threshold_ratio: Optional[float] = None,
) -> List[RankedResult]:
    """
    Rank studios against a free-text query.

    Args:
        q: Query text; blank queries return []
        index: Prefix index built from the same entities
        entities: Mapping of id -> NormalizedEntity, or a sequence of them
        threshold_ratio: Fuzzy tolerance per query character (settings default)

    Returns:
        Results sorted by score desc, distance asc, name length asc

    Example:
        >>> results = query("blizard", index, entities)
        >>> results[0].match_type
        'fuzzy'
    """
    if not isinstance(q, str) or not q.strip():
        return []

    folded = q.strip().lower()
    by_id = _entity_map(entities)
    if not by_id or index is None:
        return []

    candidate_ids: Set[str] = set()
    for length in range(1, min(len(folded), index.max_prefix_length) + 1):
        candidate_ids |= index.lookup(folded[:length])

    results: List[RankedResult] = []
    for entity_id in candidate_ids:
        entity = by_id.get(entity_id)
        if entity is None:
            continue
        match = classify(folded, entity, threshold_ratio)
        if match is None:
            continue
        match_type, score, distance = match
        results.append(RankedResult(entity_id, score, distance, match_type, entity))

    results.sort(key=lambda r: (-r.score, r.distance, len(r.entity.name), r.entity.name))

    logger.debug(
        f"Query {folded!r}: {len(candidate_ids)} candidates, {len(results)} matches"
    )
    return results


@dataclass(frozen=True)
class StudioFilters:
    """
    Faceted filters applied after ranking.

    Empty facets do not filter. Technology filters match when any studio
    tech tag contains any requested technology (case-insensitive).
    """
    regions: Tuple[Region, ...] = ()
    size_buckets: Tuple[SizeBucket, ...] = ()
    tech_tags: Tuple[str, ...] = ()
    role_categories: Tuple[RoleCategory, ...] = ()

    def is_empty(self) -> bool:
        return not (self.regions or self.size_buckets or self.tech_tags or self.role_categories)

    def matches(self, entity: NormalizedEntity) -> bool:
        attrs = entity.normalized

        if self.regions and attrs.region not in self.regions:
            return False

        if self.size_buckets and attrs.size_bucket not in self.size_buckets:
            return False

        if self.tech_tags:
            wanted = [t.strip().lower() for t in self.tech_tags if t.strip()]
            tags = [t.lower() for t in attrs.tech_tags]
            if wanted and not any(w in tag for w in wanted for tag in tags):
                return False

        if self.role_categories:
            if not set(self.role_categories) & set(attrs.role_categories):
                return False

        return True


@dataclass(frozen=True)
class _Snapshot:
    index: SearchIndex
    entities: Mapping[str, NormalizedEntity] = field(default_factory=dict)


class StudioSearchService:
    """
    Owner of the live studio index.

    Rebuilds create a complete new (index, entities) snapshot and publish it
    with a single assignment, so in-flight queries keep reading the snapshot
    they started with and removed studios never linger in the index.

    Example:
        >>> service = StudioSearchService()
        >>> service.rebuild(records)
        >>> service.search("ubisoft")[0].entity.name
        'Ubisoft'
    """

    def __init__(
        self,
        max_prefix_length: Optional[int] = None,
        threshold_ratio: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.max_prefix_length = (
            settings.search_max_prefix_length if max_prefix_length is None else max_prefix_length
        )
        self.threshold_ratio = (
            settings.fuzzy_threshold_ratio if threshold_ratio is None else threshold_ratio
        )
        self._snapshot = _Snapshot(SearchIndex.empty(self.max_prefix_length))

    @property
    def index(self) -> SearchIndex:
        return self._snapshot.index

    @property
    def entities(self) -> Mapping[str, NormalizedEntity]:
        return self._snapshot.entities

    def __len__(self) -> int:
        return len(self._snapshot.entities)

    def rebuild(
        self,
        records: Iterable[Any],
        categories: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> int:
        """
        Normalize records and replace the current snapshot.

        Args:
            records: Raw studio records (models or mappings)
            categories: Optional category -> studio ids taxonomy

        Returns:
            Number of studios indexed
        """
        self.load(normalize_all(records, categories))
        return len(self)

    def load(self, entities: Iterable[NormalizedEntity]) -> None:
        """Index already-normalized studios, replacing the current snapshot."""
        entities = list(entities)
        by_id = MappingProxyType({e.id: e for e in entities if e.id})
        if len(by_id) < len(entities):
            logger.warning(f"Skipped {len(entities) - len(by_id)} studios without a unique id")
        snapshot = _Snapshot(build(by_id.values(), self.max_prefix_length), by_id)
        self._snapshot = snapshot
        logger.info(
            f"Studio index rebuilt: {len(by_id)} studios, {len(snapshot.index)} prefixes"
        )

    def search(
        self,
        q: str,
        filters: Optional[StudioFilters] = None,
        limit: Optional[int] = None,
    ) -> List[RankedResult]:
        """
        Search the current snapshot.

        A blank query with filters lists every matching studio by name;
        a blank query without filters returns [].
        """
        snapshot = self._snapshot

        if isinstance(q, str) and q.strip():
            results = query(q, snapshot.index, snapshot.entities, self.threshold_ratio)
        elif filters is not None and not filters.is_empty():
            results = [
                RankedResult(e.id, 0, 0, "filter", e)
                for e in sorted(snapshot.entities.values(), key=lambda e: e.name.lower())
            ]
        else:
            return []

        if filters is not None and not filters.is_empty():
            results = [r for r in results if filters.matches(r.entity)]

        if limit is not None:
            results = results[:max(0, limit)]
        return results


_search_service: Optional[StudioSearchService] = None


def get_search_service() -> StudioSearchService:
    """Get or create the studio search singleton."""
    global _search_service

    if _search_service is None:
        _search_service = StudioSearchService()

    return _search_service
