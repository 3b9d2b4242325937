"""
Remote object storage for offloaded video.

Supports any rclone remote (default) and S3-compatible storage via boto3.
Includes mock mode for local development without credentials.
"""

from .client import (
    MockRemoteStore,
    RcloneRemoteStore,
    S3RemoteConfig,
    S3RemoteStore,
    create_remote_store,
    join_remote_path,
)

__all__ = [
    "MockRemoteStore",
    "RcloneRemoteStore",
    "S3RemoteConfig",
    "S3RemoteStore",
    "create_remote_store",
    "join_remote_path",
]
