"""
Video offload logic.

Contains the domain models, the ports to the external tools, and the
four run steps (reaper, inventory, selector, expirer) plus the pipeline
that sequences them.
"""

from .models import (
    CameraChannel,
    ExpiryReport,
    LocalFile,
    OffloadPolicy,
    ReapReport,
    RunSummary,
    UploadReport,
    format_copy_summary,
)
from .ports import (
    DiskUsageError,
    DiskUsageProbe,
    LocalVideoStore,
    OpenFileChecker,
    RemoteCopier,
    RemoteDeleter,
    RemoteLister,
    RemoteStore,
    RemoteStoreError,
)
from .pipeline import OffloadPipeline

__all__ = [
    "CameraChannel",
    "ExpiryReport",
    "LocalFile",
    "OffloadPolicy",
    "ReapReport",
    "RunSummary",
    "UploadReport",
    "format_copy_summary",
    "DiskUsageError",
    "DiskUsageProbe",
    "LocalVideoStore",
    "OpenFileChecker",
    "RemoteCopier",
    "RemoteDeleter",
    "RemoteLister",
    "RemoteStore",
    "RemoteStoreError",
    "OffloadPipeline",
]
