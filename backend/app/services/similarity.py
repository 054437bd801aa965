"""
Term Similarity - decides whether two skill/technology terms mean the same thing

Resolution order (first match wins):
    1. Exact match after case-folding and trimming
    2. Synonym table lookup ("javascript" <-> "js", "c++" <-> "cpp")
    3. Bounded containment: one term contains the other and both are
       longer than two characters ("unity" in "unity 3d")

Known limitation:
    Containment is a heuristic and produces false positives for short
    words embedded in longer ones ("art" in "party"). Terms of two
    characters or fewer never match by containment, so "c" does not
    match "css".

Complexity:
    - are_similar: O(s + l) where s=synonym groups, l=term length
    - matches_any: O(k) calls to are_similar, k=candidate terms
"""

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

# Canonical term -> synonyms. Keys and synonyms are lowercase.
DEFAULT_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "javascript": ("js", "node.js", "nodejs"),
    "typescript": ("ts",),
    "c++": ("cpp", "c plus plus"),
    "c#": ("csharp", "c sharp"),
    "python": ("py",),
    "photoshop": ("ps", "adobe photoshop"),
    "git": ("version control", "source control"),
    "unreal engine": ("ue4", "ue5", "unreal"),
    "unity": ("unity3d",),
    "maya": ("autodesk maya", "3ds max"),
    "3ds max": ("3dsmax", "3d studio max"),
    "blender": ("blender 3d",),
    "hlsl": ("shader programming",),
    "perforce": ("p4", "helix core"),
    "ui/ux": ("ux", "ui design", "user experience"),
}

MIN_CONTAINMENT_LENGTH = 3


class SynonymTable:
    """
    Immutable canonical-term -> synonym-set mapping.

    Injected into TermSimilarityResolver so tests and locale variants can
    supply their own vocabulary without touching module state.
    """

    def __init__(self, entries: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        source = DEFAULT_SYNONYMS if entries is None else entries
        groups: Dict[str, FrozenSet[str]] = {}
        for canonical, synonyms in source.items():
            key = canonical.strip().lower()
            groups[key] = frozenset(s.strip().lower() for s in synonyms if s.strip())
        self._groups = MappingProxyType(groups)

    @property
    def groups(self) -> Mapping[str, FrozenSet[str]]:
        return self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def related(self, a: str, b: str) -> bool:
        """True if a and b are a canonical/synonym pair or share a synonym set."""
        for canonical, synonyms in self._groups.items():
            if canonical == a and b in synonyms:
                return True
            if canonical == b and a in synonyms:
                return True
            if a in synonyms and b in synonyms:
                return True
        return False


class TermSimilarityResolver:
    """
    Pure, symmetric term comparison used for every skill/technology check.

    Example:
        >>> resolver = TermSimilarityResolver()
        >>> resolver.are_similar("JavaScript", "js")
        True
        >>> resolver.are_similar("Unity", "Unreal")
        False
    """

    def __init__(self, synonyms: Optional[SynonymTable] = None) -> None:
        self.synonyms = synonyms or SynonymTable()

    @staticmethod
    def fold(term) -> str:
        """Case-fold and trim a term; non-strings fold to an empty string."""
        if not isinstance(term, str):
            return ""
        return term.strip().lower()

    def are_similar_folded(self, a: str, b: str) -> bool:
        """Compare two already-folded terms."""
        if not a or not b:
            return False
        if a == b:
            return True
        if self.synonyms.related(a, b):
            return True
        if len(a) >= MIN_CONTAINMENT_LENGTH and len(b) >= MIN_CONTAINMENT_LENGTH:
            return a in b or b in a
        return False

    def are_similar(self, a, b) -> bool:
        return self.are_similar_folded(self.fold(a), self.fold(b))

    def matches_any(self, term, folded_terms: Iterable[str]) -> bool:
        """
        Check whether term is similar to any of the pre-folded terms.

        Fold the candidate side once with fold_all() when comparing one
        candidate against many jobs.
        """
        folded = self.fold(term)
        return any(self.are_similar_folded(folded, other) for other in folded_terms)

    def fold_all(self, terms: Iterable) -> Tuple[str, ...]:
        return tuple(f for f in (self.fold(t) for t in terms) if f)


_default_resolver: Optional[TermSimilarityResolver] = None


def get_default_resolver() -> TermSimilarityResolver:
    """Get or create the resolver singleton built on DEFAULT_SYNONYMS."""
    global _default_resolver

    if _default_resolver is None:
        _default_resolver = TermSimilarityResolver()

    return _default_resolver


def are_similar(a: str, b: str) -> bool:
    """Module-level shortcut using the default synonym table."""
    return get_default_resolver().are_similar(a, b)
