"""Tests for log_classifier.py"""

import logging
import tempfile
from pathlib import Path

import pytest

from log_classifier import bucket_for, classify


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestBucketFor:
    """Tests for the filename bucketing rule."""

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("access-2024-01-01.log", "access"),
            ("error-x.log", "error"),
            ("2024-01-01.log", "date"),
            ("readme.txt", None),
            ("app.log", None),
            ("2024-1-01.log", None),
            ("2024-01-01.log.gz", None),
            ("x2024-01-01.log", None),
            ("\uff12\uff10\uff12\uff14-\uff10\uff11-\uff10\uff11.log", None),
            ("2024-01-01.log\n", None),
        ],
    )
    def test_bucket_names(self, filename, expected):
        """Each naming convention should map to its bucket."""
        assert bucket_for(filename) == expected

    def test_access_prefix_wins_over_error(self):
        """Prefix checks run in priority order."""
        assert bucket_for("access-error-1.log") == "access"


class TestClassify:
    """Tests for classify function."""

    def test_groups_files_by_convention(self, temp_dir):
        """Should place matching .log files in their buckets and ignore the rest."""
        for name in [
            "access-1.log",
            "access-2.log",
            "error-1.log",
            "2024-01-01.log",
            "service.log",
            "readme.txt",
            "access-old.log.gz",
        ]:
            (temp_dir / name).write_text("x")

        buckets = classify(temp_dir)

        assert set(buckets) == {"access", "error", "date"}
        assert sorted(p.name for p in buckets["access"]) == ["access-1.log", "access-2.log"]
        assert [p.name for p in buckets["error"]] == ["error-1.log"]
        assert [p.name for p in buckets["date"]] == ["2024-01-01.log"]

    def test_does_not_recurse(self, temp_dir):
        """Should only look at the top level of the directory."""
        sub = temp_dir / "out"
        sub.mkdir()
        (sub / "access-1.log").write_text("x")

        assert classify(temp_dir) == {}

    def test_skips_directories_matching_pattern(self, temp_dir):
        """A directory named like a log file is not a candidate."""
        (temp_dir / "access-dir.log").mkdir()

        assert classify(temp_dir) == {}

    def test_returns_full_paths(self, temp_dir):
        """Bucket members should be usable paths inside the directory."""
        (temp_dir / "error-a.log").write_text("x")

        [path] = classify(temp_dir)["error"]

        assert path == temp_dir / "error-a.log"
        assert path.exists()

    def test_missing_directory_logs_and_returns_empty(self, temp_dir, caplog):
        """A scan failure should be logged, not raised."""
        missing = temp_dir / "nope"

        with caplog.at_level(logging.ERROR):
            result = classify(missing)

        assert result == {}
        assert "Failed to scan log directory" in caplog.text

    def test_files_are_never_modified(self, temp_dir):
        """Classification is read-only."""
        for name in ["access-1.log", "readme.txt"]:
            (temp_dir / name).write_text("content")

        classify(temp_dir)

        assert sorted(p.name for p in temp_dir.iterdir()) == ["access-1.log", "readme.txt"]
