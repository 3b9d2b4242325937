"""
Remote object storage for offloaded video.

Two real backends and one mock:
- rclone: shells out to the rclone CLI, so any of its remotes works
  (OneDrive, Google Drive, SFTP, ...). This is the default.
- S3: talks to S3-compatible storage (Cloudflare R2, AWS S3, MinIO)
  directly through boto3.
- Mock: in-memory, for local development and tests.

All three satisfy the core's RemoteStore protocol: list recent entries,
copy a file under a sub-path, delete entries older than an age.
"""

import logging
import mimetypes
import posixpath
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.offload.ports import RemoteStore, RemoteStoreError

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


def join_remote_path(base: str, *parts: str) -> str:
    """
    Join an rclone-style remote path.

    ``onedrive:`` + ``fhd_lobby`` is ``onedrive:fhd_lobby``, while
    ``onedrive:CCTV`` + ``fhd_lobby`` is ``onedrive:CCTV/fhd_lobby``.
    """
    path = base
    for part in parts:
        part = part.strip("/")
        if not part:
            continue
        if not path or path.endswith(":"):
            path = path + part
        else:
            path = path.rstrip("/") + "/" + part
    return path


# ---------------------------------------------------------------------------
# rclone
# ---------------------------------------------------------------------------

class RcloneRemoteStore:
    """
    Remote store backed by the rclone CLI.

    rclone handles credentials, transfer and retries. We only build the
    command lines and turn a non-zero exit into RemoteStoreError.
    """

    def __init__(
        self,
        remote: str,
        rclone_path: str = "rclone",
        config_path: Optional[str] = None,
    ) -> None:
        """
        Initialize the store and check rclone is runnable.

        Args:
            remote: rclone remote and base path, e.g. ``onedrive:CCTV/799LEH``
            rclone_path: Path to the rclone binary (default assumes it's in PATH)
            config_path: Alternate rclone config file
        """
        self._remote = remote
        self._base_cmd = [rclone_path]
        if config_path:
            self._base_cmd.extend(["--config", config_path])

        try:
            result = subprocess.run(
                [rclone_path, "version"],
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            raise RuntimeError(
                "rclone not found. Install with: apt-get install rclone"
            )
        if result.returncode != 0:
            raise RuntimeError("rclone not working properly")

        logger.info("rclone remote store initialized", extra={"remote": remote})

    @property
    def remote(self) -> str:
        return self._remote

    def _run(self, *args: str) -> str:
        cmd = [*self._base_cmd, *args]
        logger.debug("Running rclone", extra={"cmd": cmd})

        result = subprocess.run(cmd, capture_output=True, text=True)

        if result.returncode != 0:
            raise RemoteStoreError(
                f"rclone {args[0]} failed ({result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout

    def list_recent(self, max_age_minutes: int) -> list[str]:
        """
        List files modified within ``max_age_minutes``, recursively.

        ``lsf`` prints one path per line relative to the remote, which is
        all the inventory needs.
        """
        output = self._run(
            "lsf",
            "--recursive",
            "--files-only",
            "--max-age", f"{max_age_minutes}m",
            self._remote,
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def copy(self, local_path: Path, sub_path: str) -> None:
        """Copy one file into ``<remote>/<sub_path>/``."""
        self._run("copy", str(local_path), join_remote_path(self._remote, sub_path))
        logger.debug(
            "Copied file",
            extra={"file": local_path.name, "sub_path": sub_path}
        )

    def delete_older_than(self, sub_path: str, min_age_days: int) -> None:
        """Delete files under ``<remote>/<sub_path>`` older than ``min_age_days``."""
        self._run(
            "delete",
            "--min-age", f"{min_age_days}d",
            join_remote_path(self._remote, sub_path),
        )


# ---------------------------------------------------------------------------
# S3-compatible storage
# ---------------------------------------------------------------------------

@dataclass
class S3RemoteConfig:
    """
    Configuration for S3-compatible storage.

    ``endpoint_url`` is None for AWS S3 and the account endpoint for R2
    (``https://<account_id>.r2.cloudflarestorage.com``). With no
    ``region``, R2-style endpoints get ``auto`` and AWS gets boto3's own
    region resolution.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    prefix: str = ""


def resolve_region(config: S3RemoteConfig) -> Optional[str]:
    if config.region:
        return config.region
    return "auto" if config.endpoint_url else None


class S3RemoteStore:
    """
    Remote store on S3-compatible object storage, via boto3.

    Sub-paths map to key prefixes: ``<prefix>/<sub_path>/<filename>``.
    Ages are taken from each object's LastModified.
    """

    def __init__(
        self,
        config: S3RemoteConfig,
        client: Any = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._config = config
        self._clock = clock

        if client is None:
            # R2 requires v4 signatures
            boto_config = Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            )
            client = boto3.client(
                "s3",
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                region_name=resolve_region(config),
                config=boto_config,
            )
        self._s3_client = client

        logger.info(
            "S3 remote store initialized",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    def _key_prefix(self, sub_path: str = "") -> str:
        prefix = posixpath.join(self._config.prefix.strip("/"), sub_path.strip("/"))
        prefix = prefix.strip("/")
        return f"{prefix}/" if prefix else ""

    def _iter_objects(self, prefix: str):
        paginator = self._s3_client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._config.bucket_name, Prefix=prefix):
            yield from page.get("Contents", [])

    def list_recent(self, max_age_minutes: int) -> list[str]:
        """Keys under the configured prefix modified within ``max_age_minutes``."""
        cutoff = self._clock() - timedelta(minutes=max_age_minutes)
        try:
            return [
                obj["Key"]
                for obj in self._iter_objects(self._key_prefix())
                if obj["LastModified"] >= cutoff
            ]
        except (BotoCoreError, ClientError) as e:
            raise RemoteStoreError(f"List failed: {e}") from e

    def copy(self, local_path: Path, sub_path: str) -> None:
        """Upload one file to ``<prefix>/<sub_path>/<name>``."""
        key = self._key_prefix(sub_path) + local_path.name
        content_type = mimetypes.guess_type(local_path.name)[0] or "application/octet-stream"

        try:
            self._s3_client.upload_file(
                str(local_path),
                self._config.bucket_name,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError) as e:
            raise RemoteStoreError(f"Upload failed: {e}") from e

        logger.debug("Uploaded video", extra={"key": key})

    def delete_older_than(self, sub_path: str, min_age_days: int) -> None:
        """Delete every object under the sub-path older than ``min_age_days``."""
        cutoff = self._clock() - timedelta(days=min_age_days)

        try:
            expired = [
                {"Key": obj["Key"]}
                for obj in self._iter_objects(self._key_prefix(sub_path))
                if obj["LastModified"] < cutoff
            ]

            for start in range(0, len(expired), DELETE_BATCH_SIZE):
                batch = expired[start:start + DELETE_BATCH_SIZE]
                response = self._s3_client.delete_objects(
                    Bucket=self._config.bucket_name,
                    Delete={"Objects": batch, "Quiet": True},
                )
                errors = response.get("Errors", [])
                if errors:
                    raise RemoteStoreError(
                        f"Delete failed for {len(errors)} objects, first: {errors[0].get('Key')}"
                    )
        except (BotoCoreError, ClientError) as e:
            raise RemoteStoreError(f"Delete failed: {e}") from e

        logger.info(
            "Deleted expired objects",
            extra={"sub_path": sub_path, "count": len(expired)}
        )


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockRemoteStore:
    """
    In-memory remote store.

    Entries are kept as ``{sub_path: {filename: modified_at}}`` with
    epoch-second timestamps from an injectable clock, so tests can age
    entries without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, dict[str, float]] = {}
        logger.info("Initialized mock remote store (in-memory)")

    def add(self, sub_path: str, name: str, modified_at: Optional[float] = None) -> None:
        """Seed an entry, as if uploaded at ``modified_at``."""
        when = self._clock() if modified_at is None else modified_at
        self._entries.setdefault(sub_path.strip("/"), {})[name] = when

    def names(self, sub_path: str) -> set[str]:
        return set(self._entries.get(sub_path.strip("/"), {}))

    def list_recent(self, max_age_minutes: int) -> list[str]:
        cutoff = self._clock() - max_age_minutes * 60
        return [
            f"{sub_path}/{name}"
            for sub_path, files in sorted(self._entries.items())
            for name, modified_at in sorted(files.items())
            if modified_at >= cutoff
        ]

    def copy(self, local_path: Path, sub_path: str) -> None:
        if not local_path.is_file():
            raise RemoteStoreError(f"Local file not found: {local_path}")
        self.add(sub_path, local_path.name)

    def delete_older_than(self, sub_path: str, min_age_days: int) -> None:
        cutoff = self._clock() - min_age_days * 86400
        files = self._entries.get(sub_path.strip("/"), {})
        for name in [n for n, modified_at in files.items() if modified_at < cutoff]:
            del files[name]


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_remote_store(settings, mock_mode: bool = False) -> RemoteStore:
    """
    Create the remote store the settings ask for.

    Args:
        settings: Settings with the remote_* / rclone_* / s3_* fields
        mock_mode: If True, return the in-memory store

    Returns:
        RemoteStore implementation (rclone, S3 or Mock)
    """
    if mock_mode:
        return MockRemoteStore()

    if settings.remote_backend == "s3":
        return S3RemoteStore(S3RemoteConfig(
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            bucket_name=settings.s3_bucket_name,
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
            prefix=settings.s3_prefix,
        ))

    return RcloneRemoteStore(
        settings.remote_store,
        rclone_path=settings.rclone_path,
        config_path=settings.rclone_config,
    )
