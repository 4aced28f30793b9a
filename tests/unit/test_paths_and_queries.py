"""
Tests for folder containment and query construction.
"""

import pytest

from appdrive.drive_integration.paths import split_path, is_sub_path, is_in_path, normalize_path
from appdrive.drive_integration.query import appfolder_query, escape_literal


class TestSplitPath:
    """Test path segmentation."""

    def test_root(self):
        """Test that the root has no segments."""
        assert split_path("") == []
        assert split_path("/") == []

    def test_nested(self):
        """Test splitting a nested path."""
        assert split_path("a/b/c") == ["a", "b", "c"]

    def test_surrounding_separators_ignored(self):
        """Test that leading and trailing separators are dropped."""
        assert split_path("/a/b/") == ["a", "b"]
        assert normalize_path("/a/b/") == "a/b"


class TestContainment:
    """Test the prefix containment rule."""

    def test_strict_prefix_is_in_path(self):
        """Test that a file deeper than the query folder is contained."""
        assert is_sub_path(["a", "b", "c"], ["a", "b"])
        assert is_in_path("a/b/c", "a/b")

    def test_shorter_candidate_is_not_in_path(self):
        """Test that a shallower file is not contained."""
        assert not is_sub_path(["a"], ["a", "b"])
        assert not is_in_path("a", "a/b")

    def test_equal_paths(self):
        """Test that identical paths are contained."""
        assert is_in_path("a/b", "a/b")

    def test_everything_in_root(self):
        """Test that every path is in the root."""
        assert is_in_path("x/y/z", "")
        assert is_in_path("", "")

    def test_segment_mismatch(self):
        """Test that segments are compared whole, not as string prefixes."""
        assert not is_in_path("ab/c", "a")
        assert not is_in_path("x/a/b", "a/b")


class TestQuery:
    """Test Drive query construction."""

    def test_folder_query(self):
        """Test the listing query."""
        assert appfolder_query() == "'appfolder' in parents"

    def test_title_query(self):
        """Test the lookup query."""
        assert appfolder_query("notes.txt") == "'appfolder' in parents and title = 'notes.txt'"

    @pytest.mark.parametrize("value, expected", [
        ("it's", "it\\'s"),
        ("back\\slash", "back\\\\slash"),
        ("' or title != '", "\\' or title != \\'"),
    ])
    def test_escape_literal(self, value, expected):
        """Test escaping of quotes and backslashes."""
        assert escape_literal(value) == expected
