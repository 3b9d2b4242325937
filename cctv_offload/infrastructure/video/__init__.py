"""
Local video directory infrastructure.

Wraps the camera's output directory and the local tools around it:
- Listing segments by modification time
- Directory size via du (or a Python walk)
- Open file detection via lsof
"""

from .directory import (
    DuDiskUsageProbe,
    LocalVideoDirectory,
    LsofOpenFileChecker,
    WalkDiskUsageProbe,
    create_disk_usage_probe,
    create_open_file_checker,
)

__all__ = [
    "DuDiskUsageProbe",
    "LocalVideoDirectory",
    "LsofOpenFileChecker",
    "WalkDiskUsageProbe",
    "create_disk_usage_probe",
    "create_open_file_checker",
]
