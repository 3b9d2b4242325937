"""
Domain models for the video offload run.

These models have no dependencies on the tools that move the files
(rclone, boto3, lsof). The core only ever sees these values.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

PREFIX_LENGTH = 5


@dataclass(frozen=True)
class LocalFile:
    """
    A video segment on the local disk.

    Frozen because a listing is a snapshot: if the file changes we list
    it again rather than mutate the old value.
    """
    path: Path
    size_bytes: int
    modified_at: float  # epoch seconds

    @property
    def name(self) -> str:
        return self.path.name

    def age_seconds(self, now: float) -> float:
        return now - self.modified_at


@dataclass(frozen=True)
class CameraChannel:
    """A camera, identified by filename prefix, and where its files go."""
    prefix: str
    sub_path: str
    expires: bool = True

    def __post_init__(self) -> None:
        if len(self.prefix) != PREFIX_LENGTH:
            raise ValueError(f"Channel prefix must be {PREFIX_LENGTH} characters")
        if not self.sub_path.strip("/"):
            raise ValueError("Channel sub-path cannot be empty")


@dataclass(frozen=True)
class OffloadPolicy:
    """Every tunable the pipeline needs, in one place."""
    video_dir: Path
    disk_limit_bytes: int
    recent_window_minutes: int
    settle_minutes: int
    remote_expiry_days: int
    channels: tuple[CameraChannel, ...] = ()

    def __post_init__(self) -> None:
        if self.disk_limit_bytes <= 0:
            raise ValueError("Disk limit must be positive")
        if self.settle_minutes >= self.recent_window_minutes:
            raise ValueError("Settle window must be shorter than the recent window")

    def channel_for(self, filename: str) -> Optional[CameraChannel]:
        """Look up the channel by the first five characters of a filename."""
        prefix = filename[:PREFIX_LENGTH]
        for channel in self.channels:
            if channel.prefix == prefix:
                return channel
        return None

    @property
    def expiring_channels(self) -> list[CameraChannel]:
        return [c for c in self.channels if c.expires]


@dataclass
class ReapReport:
    """What the disk reaper did."""
    triggered: bool = False
    directory_bytes: int = 0
    removed: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)
    bytes_freed: int = 0
    remaining_bytes: int = 0


@dataclass
class UploadReport:
    """
    Outcome of one pass over the upload candidates.

    Every candidate lands in exactly one of these lists.
    """
    copied: list[str] = field(default_factory=list)
    already_uploaded: list[str] = field(default_factory=list)
    open_files: list[str] = field(default_factory=list)
    unrecognized: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def copy_count(self) -> int:
        return len(self.copied)


@dataclass
class ExpiryReport:
    """Sub-paths the expirer ran against."""
    expired: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    """Everything one run did, for the end-of-run message and for tests."""
    reap: ReapReport = field(default_factory=ReapReport)
    uploaded_set_size: int = 0
    upload: UploadReport = field(default_factory=UploadReport)
    expiry: ExpiryReport = field(default_factory=ExpiryReport)

    @property
    def message(self) -> str:
        return format_copy_summary(self.upload.copy_count)


def format_copy_summary(count: int) -> str:
    """End-of-run line: pluralized count of copied files."""
    if count == 0:
        return "No files copied."
    if count == 1:
        return "Copied 1 file."
    return f"Copied {count} files."
