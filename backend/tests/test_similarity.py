"""
Tests for term similarity resolution.

Run with: cd backend && pytest tests/test_similarity.py -v
"""
import pytest


class TestAreSimilar:
    """Tests for exact, synonym and containment matching."""

    def test_synonym_match(self):
        """JavaScript and js share a synonym group."""
        from app.services.similarity import are_similar

        assert are_similar("JavaScript", "js") is True

    def test_different_engines_do_not_match(self):
        from app.services.similarity import are_similar

        assert are_similar("Unity", "Unreal") is False

    def test_exact_match_ignores_case_and_whitespace(self):
        from app.services.similarity import are_similar

        assert are_similar("  Python ", "python") is True

    def test_synonyms_of_same_canonical_match_each_other(self):
        """Two synonyms of one canonical term should match without the canonical."""
        from app.services.similarity import are_similar

        assert are_similar("ue4", "UE5") is True
        assert are_similar("cpp", "c plus plus") is True

    def test_containment_match(self):
        from app.services.similarity import are_similar

        assert are_similar("Unity", "Unity 3D") is True
        assert are_similar("Unreal Engine 5", "unreal engine") is True

    def test_short_terms_do_not_match_by_containment(self):
        """Terms of two characters or fewer never use containment."""
        from app.services.similarity import are_similar

        assert are_similar("C", "CSS") is False
        assert are_similar("go", "godot") is False

    def test_containment_false_positive_is_known(self):
        """Containment is a heuristic; short words inside longer ones still match."""
        from app.services.similarity import are_similar

        assert are_similar("art", "party") is True

    def test_empty_and_non_string_terms(self):
        from app.services.similarity import are_similar

        assert are_similar("", "") is False
        assert are_similar("", "python") is False
        assert are_similar(None, "python") is False
        assert are_similar(42, "42") is False

    @pytest.mark.parametrize("a,b", [
        ("javascript", "js"),
        ("javascript", "node.js"),
        ("javascript", "nodejs"),
        ("typescript", "ts"),
        ("c++", "cpp"),
        ("c++", "c plus plus"),
        ("c#", "csharp"),
        ("c#", "c sharp"),
        ("python", "py"),
        ("unreal engine", "ue4"),
        ("unreal engine", "ue5"),
        ("unreal engine", "unreal"),
        ("unity", "unity3d"),
        ("photoshop", "ps"),
        ("photoshop", "adobe photoshop"),
        ("maya", "autodesk maya"),
        ("maya", "3ds max"),
        ("autodesk maya", "3ds max"),
        ("git", "version control"),
        ("git", "source control"),
    ])
    def test_default_synonym_pairs(self, a, b):
        from app.services.similarity import are_similar

        assert are_similar(a, b) is True
        assert are_similar(b.upper(), a) is True

    @pytest.mark.parametrize("a,b", [
        ("JavaScript", "js"),
        ("Unity", "Unreal"),
        ("C++", "cpp"),
        ("C", "CSS"),
        ("Unity", "Unity 3D"),
        ("Photoshop", "Adobe Photoshop"),
        ("", "git"),
        ("version control", "source control"),
    ])
    def test_symmetry(self, a, b):
        """are_similar(a, b) == are_similar(b, a) for all inputs."""
        from app.services.similarity import are_similar

        assert are_similar(a, b) == are_similar(b, a)


class TestSynonymTable:
    """Tests for injectable synonym configuration."""

    def test_default_table_loaded(self):
        from app.services.similarity import SynonymTable, DEFAULT_SYNONYMS

        table = SynonymTable()

        assert len(table) == len(DEFAULT_SYNONYMS)
        assert "js" in table.groups["javascript"]

    def test_custom_table_replaces_defaults(self):
        """A resolver built on a custom table should not know the defaults."""
        from app.services.similarity import SynonymTable, TermSimilarityResolver

        resolver = TermSimilarityResolver(SynonymTable({"Houdini": ["SideFX"]}))

        assert resolver.are_similar("houdini", "sidefx") is True
        assert resolver.are_similar("JavaScript", "js") is False

    def test_table_is_immutable(self):
        from app.services.similarity import SynonymTable

        table = SynonymTable()

        with pytest.raises(TypeError):
            table.groups["rust"] = frozenset({"rs"})

    def test_source_mapping_changes_do_not_leak(self):
        from app.services.similarity import SynonymTable

        entries = {"lua": ["luajit"]}
        table = SynonymTable(entries)
        entries["lua"].append("love2d")

        assert table.related("lua", "love2d") is False


class TestResolverHelpers:
    """Tests for folding and batch comparison helpers."""

    def test_fold_all_drops_empty_and_non_strings(self):
        from app.services.similarity import TermSimilarityResolver

        folded = TermSimilarityResolver().fold_all([" Unity ", "", None, "C#", 7])

        assert folded == ("unity", "c#")

    def test_matches_any(self):
        from app.services.similarity import TermSimilarityResolver

        resolver = TermSimilarityResolver()
        skills = resolver.fold_all(["C#", "Unity", "git"])

        assert resolver.matches_any("csharp", skills) is True
        assert resolver.matches_any("Version Control", skills) is True
        assert resolver.matches_any("Houdini", skills) is False
        assert resolver.matches_any("Unity", ()) is False

    def test_default_resolver_is_singleton(self):
        from app.services.similarity import get_default_resolver

        assert get_default_resolver() is get_default_resolver()
