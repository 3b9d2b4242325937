"""
Unit tests for the disk reaper.

The selection rule is tested as a pure function; the reaper itself runs
against a small in-memory store and, once, against a real directory.
"""

import logging
import os
from pathlib import Path

import pytest

from cctv_offload.core.offload.models import LocalFile
from cctv_offload.core.offload.ports import DiskUsageError
from cctv_offload.core.offload.reaper import reap_disk, select_for_removal
from cctv_offload.infrastructure.video import LocalVideoDirectory, WalkDiskUsageProbe


def files(*pairs: tuple[str, int]) -> list[LocalFile]:
    """Build newest-first LocalFiles from (name, size) pairs."""
    count = len(pairs)
    return [
        LocalFile(path=Path(name), size_bytes=size, modified_at=float(count - i))
        for i, (name, size) in enumerate(pairs)
    ]


class FakeVideoStore:
    def __init__(self, reapable, fail_on=()):
        self._reapable = reapable
        self._fail_on = set(fail_on)
        self.deleted: list[Path] = []

    def list_reapable(self):
        return list(self._reapable)

    def list_uploadable(self, min_age_seconds, max_age_seconds):
        return []

    def delete(self, local_file):
        if local_file.path in self._fail_on:
            raise PermissionError(f"cannot remove {local_file.path}")
        self.deleted.append(local_file.path)


class FixedProbe:
    def __init__(self, total):
        self.total = total

    def total_bytes(self, directory):
        return self.total


class BrokenProbe:
    def total_bytes(self, directory):
        raise DiskUsageError("du failed")


# ---------------------------------------------------------------------------
# Selection Rule
# ---------------------------------------------------------------------------

class TestSelectForRemoval:
    """Tests for the newest-first running-total rule."""

    def test_worked_example(self):
        """
        Limit 100, newest to oldest A=40, B=30, C=50, D=20.
        A+B=70 fits, C would make 120 so it goes, D makes 90 and stays.
        """
        selected = select_for_removal(
            files(("A", 40), ("B", 30), ("C", 50), ("D", 20)),
            limit_bytes=100,
        )
        assert [f.name for f in selected] == ["C"]

    def test_nothing_selected_when_everything_fits(self):
        selected = select_for_removal(files(("A", 40), ("B", 60)), limit_bytes=100)
        assert selected == []

    def test_exactly_at_limit_is_kept(self):
        """Only exceeding the limit removes a file."""
        selected = select_for_removal(files(("A", 50), ("B", 50)), limit_bytes=100)
        assert selected == []

    def test_newest_file_bigger_than_limit_is_removed(self):
        selected = select_for_removal(files(("A", 150), ("B", 10)), limit_bytes=100)
        assert [f.name for f in selected] == ["A"]

    @pytest.mark.parametrize("sizes,limit", [
        ([40, 30, 50, 20], 100),
        ([10] * 30, 95),
        ([500, 1, 2, 3, 400, 7], 450),
        ([90, 90, 90], 100),
    ])
    def test_kept_files_fit_under_limit(self, sizes, limit):
        """Whatever is removed, what remains never exceeds the limit."""
        local_files = files(*[(f"f{i}", s) for i, s in enumerate(sizes)])
        removed = {f.path for f in select_for_removal(local_files, limit)}
        kept = sum(f.size_bytes for f in local_files if f.path not in removed)
        assert kept <= limit

    def test_oldest_files_go_first_when_sizes_are_equal(self):
        """With uniform sizes the removed files are a suffix of the listing."""
        local_files = files(*[(f"f{i}", 10) for i in range(10)])
        selected = select_for_removal(local_files, limit_bytes=45)
        assert [f.name for f in selected] == [f"f{i}" for i in range(4, 10)]


# ---------------------------------------------------------------------------
# Reaper
# ---------------------------------------------------------------------------

class TestReapDisk:
    """Tests for reap_disk against fake collaborators."""

    def test_under_limit_does_nothing(self):
        store = FakeVideoStore(files(("A", 80)))
        report = reap_disk(store, FixedProbe(80), Path("/videos"), limit_bytes=100)

        assert not report.triggered
        assert store.deleted == []

    def test_at_limit_does_nothing(self):
        store = FakeVideoStore(files(("A", 100)))
        report = reap_disk(store, FixedProbe(100), Path("/videos"), limit_bytes=100)
        assert not report.triggered

    def test_over_limit_removes_selected_files(self, caplog):
        caplog.set_level(logging.INFO)
        store = FakeVideoStore(files(("A", 40), ("B", 30), ("C", 50), ("D", 20)))

        report = reap_disk(store, FixedProbe(140), Path("/videos"), limit_bytes=100)

        assert report.triggered
        assert store.deleted == [Path("C")]
        assert report.bytes_freed == 50
        assert report.remaining_bytes == 90
        assert "Disk at or over high water mark of 100 bytes." in caplog.messages
        assert "Removing file: C" in caplog.messages

    def test_failed_delete_is_logged_and_run_continues(self):
        store = FakeVideoStore(
            files(("A", 60), ("B", 60), ("C", 60)),
            fail_on={Path("B")},
        )

        report = reap_disk(store, FixedProbe(180), Path("/videos"), limit_bytes=100)

        assert report.failed == [Path("B")]
        assert report.removed == [Path("C")]
        assert store.deleted == [Path("C")]
        assert report.remaining_bytes == 120

    def test_unmeasurable_directory_skips_reaping(self):
        store = FakeVideoStore(files(("A", 500)))
        report = reap_disk(store, BrokenProbe(), Path("/videos"), limit_bytes=100)

        assert not report.triggered
        assert store.deleted == []

    def test_reaps_real_directory(self, tmp_path):
        """End to end on disk: the large middle-aged file is removed."""
        now = 1_700_000_000
        for name, size, age in [
            ("CAM01-a.mkv", 40, 10),
            ("CAM01-b.mkv", 30, 20),
            ("CAM02-c.mkv", 50, 30),
            ("CAM03-d.mkv", 20, 40),
        ]:
            path = tmp_path / name
            path.write_bytes(b"x" * size)
            os.utime(path, (now - age, now - age))

        store = LocalVideoDirectory(tmp_path, clock=lambda: now)
        report = reap_disk(store, WalkDiskUsageProbe(), tmp_path, limit_bytes=100)

        assert report.triggered
        assert sorted(p.name for p in tmp_path.iterdir()) == [
            "CAM01-a.mkv", "CAM01-b.mkv", "CAM03-d.mkv",
        ]
