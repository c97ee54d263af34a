"""Tests for edit-distance string similarity."""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from treeguard.similarity import levenshtein_distance, string_similarity


# ============================================================================
# Levenshtein Distance Tests
# ============================================================================

class TestLevenshteinDistance:
    """Tests for the raw edit distance."""

    def test_classic_example(self):
        """kitten -> sitting takes two substitutions and one insertion."""
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_empty_strings(self):
        """Distance to an empty string is the other string's length."""
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("", "") == 0

    def test_identical(self):
        """Identical strings have distance 0."""
        assert levenshtein_distance("smith", "smith") == 0

    def test_single_edits(self):
        """Insertion, deletion and substitution each cost 1."""
        assert levenshtein_distance("jon", "john") == 1
        assert levenshtein_distance("john", "jon") == 1
        assert levenshtein_distance("john", "joan") == 1


# ============================================================================
# Similarity Tests
# ============================================================================

class TestStringSimilarity:
    """Tests for normalized similarity in [0, 1]."""

    def test_missing_input_scores_zero(self):
        """None or empty input yields 0 instead of failing."""
        assert string_similarity(None, "John") == 0.0
        assert string_similarity("John", None) == 0.0
        assert string_similarity("", "John") == 0.0
        assert string_similarity(None, None) == 0.0

    def test_blank_after_trim_scores_zero(self):
        """Whitespace-only strings fall into the no-similarity path."""
        assert string_similarity("   ", "John") == 0.0
        assert string_similarity("   ", "  ") == 0.0

    def test_case_and_whitespace_insensitive(self):
        """Normalized-equal strings are a perfect match."""
        assert string_similarity("  John ", "john") == 1.0
        assert string_similarity("BOSTON", "boston") == 1.0

    def test_partial_match(self):
        """One edit over four characters is 75% similar."""
        assert string_similarity("Jon", "John") == pytest.approx(0.75)

    def test_completely_different(self):
        """Strings with no characters in place score 0."""
        assert string_similarity("abc", "xyz") == 0.0

    @pytest.mark.parametrize("a,b", [
        ("John Smith", "Jon Smyth"),
        ("Boston, MA", "Boston"),
        ("Anna", "Hannah"),
        ("x", "a much longer string"),
    ])
    def test_symmetry(self, a, b):
        """similarity(a, b) == similarity(b, a)."""
        assert string_similarity(a, b) == string_similarity(b, a)

    @pytest.mark.parametrize("value", ["a", "John", " Mary Ann ", "Zürich"])
    def test_reflexivity(self, value):
        """Any non-empty string is fully similar to itself."""
        assert string_similarity(value, value) == 1.0

    def test_result_in_range(self):
        """Scores always stay within [0, 1]."""
        for a, b in [("a", "bcdef"), ("smith", "smyth"), ("", "")]:
            assert 0.0 <= string_similarity(a, b) <= 1.0
