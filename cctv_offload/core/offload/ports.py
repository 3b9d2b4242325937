"""
Interfaces to the outside world.

Each external tool the offload run depends on is a Protocol here, so the
pipeline can be exercised with in-memory fakes and the real tools can be
swapped (rclone for S3, du for a Python walk) without touching the core.
"""

from pathlib import Path
from typing import Protocol

from .models import LocalFile


class DiskUsageError(Exception):
    """Raised when the size of the video directory cannot be measured."""
    pass


class RemoteStoreError(Exception):
    """Raised when a remote list, copy or delete fails."""
    pass


class DiskUsageProbe(Protocol):
    """Measures how much space a directory tree takes."""

    def total_bytes(self, directory: Path) -> int:
        """Recursive size of ``directory`` in bytes."""
        ...


class OpenFileChecker(Protocol):
    """Answers whether some process still holds a file open."""

    def is_open(self, path: Path) -> bool:
        ...


class LocalVideoStore(Protocol):
    """The camera's output directory."""

    def list_reapable(self) -> list[LocalFile]:
        """Files the reaper may delete, newest first."""
        ...

    def list_uploadable(self, min_age_seconds: float, max_age_seconds: float) -> list[LocalFile]:
        """Camera files strictly older than min_age and strictly newer than max_age."""
        ...

    def delete(self, local_file: LocalFile) -> None:
        """Remove the file. Raises OSError on failure."""
        ...


class RemoteLister(Protocol):

    def list_recent(self, max_age_minutes: int) -> list[str]:
        """Paths of remote entries modified within the last ``max_age_minutes``."""
        ...


class RemoteCopier(Protocol):

    def copy(self, local_path: Path, sub_path: str) -> None:
        """Copy a local file under ``sub_path``. Raises RemoteStoreError."""
        ...


class RemoteDeleter(Protocol):

    def delete_older_than(self, sub_path: str, min_age_days: int) -> None:
        """Delete every entry under ``sub_path`` older than ``min_age_days``. Raises RemoteStoreError."""
        ...


class RemoteStore(RemoteLister, RemoteCopier, RemoteDeleter, Protocol):
    """A remote store that can do all three."""
    pass
