"""Unit tests for tag filters and cleaning modes."""

import pytest

from mongocache.tags import (
    TAG_FILTERS,
    CleaningMode,
    matching_any_tags_filter,
    matching_tags_filter,
    normalize_tags,
    not_matching_tags_filter,
)


class TestCleaningMode:
    """Test cleaning mode coercion."""

    def test_from_string_value(self):
        assert CleaningMode.from_value("old") is CleaningMode.OLD
        assert CleaningMode.from_value("notMatchingTag") is CleaningMode.NOT_MATCHING_TAG

    def test_from_member(self):
        assert CleaningMode.from_value(CleaningMode.ALL) is CleaningMode.ALL

    def test_invalid_mode(self):
        """Test unknown modes raise ValueError listing valid modes."""
        with pytest.raises(ValueError, match="Invalid cleaning mode"):
            CleaningMode.from_value("everything")

    def test_uses_tags(self):
        assert CleaningMode.MATCHING_TAG.uses_tags
        assert CleaningMode.MATCHING_ANY_TAG.uses_tags
        assert not CleaningMode.ALL.uses_tags
        assert not CleaningMode.OLD.uses_tags

    def test_every_tag_mode_has_filter(self):
        assert set(TAG_FILTERS) == {m for m in CleaningMode if m.uses_tags}


class TestTagFilters:
    """Test MongoDB filters for tag selection."""

    def test_matching_is_superset(self):
        assert matching_tags_filter(["x", "y"]) == {"tags": {"$all": ["x", "y"]}}

    def test_not_matching(self):
        assert not_matching_tags_filter(["x"]) == {"tags": {"$nin": ["x"]}}

    def test_matching_any(self):
        assert matching_any_tags_filter(["x", "y"]) == {"tags": {"$in": ["x", "y"]}}


class TestNormalizeTags:
    """Test tag argument normalization."""

    def test_none_is_empty(self):
        assert normalize_tags(None) == []

    def test_keeps_order_and_duplicates(self):
        assert normalize_tags(("b", "a", "b")) == ["b", "a", "b"]

    def test_single_string_rejected(self):
        """Test that a bare string is not split into characters."""
        with pytest.raises(TypeError):
            normalize_tags("users")

    def test_non_string_tag_rejected(self):
        with pytest.raises(TypeError, match="Tag must be a string"):
            normalize_tags(["ok", 3])
