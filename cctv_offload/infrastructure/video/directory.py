"""
The camera's video directory and the local tools around it.

Covers the local half of the offload run:
1. Measure the directory (du, or a Python walk when du isn't wanted)
2. List segments by modification time for the reaper and the selector
3. Ask lsof whether the motion detector still has a segment open
"""

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import Callable

from ...core.offload.models import LocalFile
from ...core.offload.ports import DiskUsageError, DiskUsageProbe, OpenFileChecker

logger = logging.getLogger(__name__)


class LocalVideoDirectory:
    """
    Video segments written by the motion detector.

    Reapable files are the top-level ``reap_glob`` matches; upload
    candidates are ``upload_glob`` matches anywhere below the root.
    Files that vanish between listing and stat are skipped; the camera
    process and other runs may be deleting too.
    """

    def __init__(
        self,
        root: Path,
        reap_glob: str = "*.m??",
        upload_glob: str = "CAM*.m??",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._root = root
        self._reap_glob = reap_glob
        self._upload_glob = upload_glob
        self._clock = clock

    def _snapshot(self, paths) -> list[LocalFile]:
        files = []
        for path in paths:
            try:
                st = path.stat()
            except FileNotFoundError:
                continue
            if not path.is_file():
                continue
            files.append(LocalFile(path=path, size_bytes=st.st_size, modified_at=st.st_mtime))
        return files

    def list_reapable(self) -> list[LocalFile]:
        """Top-level segments, newest first."""
        if not self._root.is_dir():
            return []
        files = self._snapshot(self._root.glob(self._reap_glob))
        files.sort(key=lambda f: f.modified_at, reverse=True)
        return files

    def list_uploadable(self, min_age_seconds: float, max_age_seconds: float) -> list[LocalFile]:
        """Camera segments with min_age < age < max_age, oldest first."""
        if not self._root.is_dir():
            return []
        now = self._clock()
        files = [
            f for f in self._snapshot(self._root.rglob(self._upload_glob))
            if min_age_seconds < f.age_seconds(now) < max_age_seconds
        ]
        files.sort(key=lambda f: f.modified_at)
        return files

    def delete(self, local_file: LocalFile) -> None:
        local_file.path.unlink()


# ---------------------------------------------------------------------------
# Disk usage
# ---------------------------------------------------------------------------

class DuDiskUsageProbe:
    """Directory size via ``du --bytes -xs``."""

    def __init__(self, du_path: str = "du") -> None:
        self._du = du_path

    def total_bytes(self, directory: Path) -> int:
        try:
            result = subprocess.run(
                [self._du, "--bytes", "-xs", str(directory)],
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            raise DiskUsageError(f"du not found: {self._du}")

        if result.returncode != 0:
            raise DiskUsageError(f"du failed: {result.stderr.strip()}")

        # output is "<bytes>\t<path>"
        try:
            return int(result.stdout.split()[0])
        except (IndexError, ValueError):
            raise DiskUsageError(f"Unexpected du output: {result.stdout!r}")


class WalkDiskUsageProbe:
    """
    Directory size by walking it in Python.

    Like ``du -x`` it stays on the directory's filesystem and doesn't
    follow symlinks. Apparent sizes are summed.
    """

    def total_bytes(self, directory: Path) -> int:
        try:
            root_dev = directory.stat().st_dev
        except OSError as e:
            raise DiskUsageError(f"Cannot stat {directory}: {e}")

        total = 0
        for dirpath, dirnames, filenames in os.walk(directory):
            # prune mount points
            dirnames[:] = [
                d for d in dirnames
                if _same_device(os.path.join(dirpath, d), root_dev)
            ]
            for filename in filenames:
                try:
                    st = os.lstat(os.path.join(dirpath, filename))
                except FileNotFoundError:
                    continue
                total += st.st_size
        return total


def _same_device(path: str, device: int) -> bool:
    try:
        return os.lstat(path).st_dev == device
    except FileNotFoundError:
        return False


# ---------------------------------------------------------------------------
# Open file check
# ---------------------------------------------------------------------------

class LsofOpenFileChecker:
    """
    Open-file check via lsof.

    lsof exits 0 when at least one process has the file open and 1
    otherwise.
    """

    def __init__(self, lsof_path: str = "lsof") -> None:
        if shutil.which(lsof_path) is None:
            raise RuntimeError(
                "lsof not found. Install with: apt-get install lsof"
            )
        self._lsof = lsof_path
        logger.info("lsof open file checker initialized")

    def is_open(self, path: Path) -> bool:
        result = subprocess.run(
            [self._lsof, str(path)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return result.returncode == 0


# ---------------------------------------------------------------------------
# Factory Functions
# ---------------------------------------------------------------------------

def create_disk_usage_probe(method: str = "du", du_path: str = "du") -> DiskUsageProbe:
    """
    Factory function for the directory size probe.

    Args:
        method: "du" to shell out, "walk" to measure in Python
        du_path: Path to the du binary
    """
    if method == "walk":
        return WalkDiskUsageProbe()

    return DuDiskUsageProbe(du_path)


def create_open_file_checker(lsof_path: str = "lsof") -> OpenFileChecker:
    """Factory function for the open file check."""
    return LsofOpenFileChecker(lsof_path)
