"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (prefixed ``CCTV_``)
with defaults matching the camera host this tool was written for.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without a real remote store.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.offload.models import CameraChannel, OffloadPolicy


DEFAULT_CHANNELS = {
    "CAM01": "southwest_corner",
    "CAM02": "garage_side_entrance",
    "CAM03": "fhd_parking_area",
    "CAM04": "fhd_lobby",
}


class Settings(BaseSettings):
    """
    Offload settings loaded from environment variables.

    Dicts and lists (``channels``, ``expiring_channels``) are given as JSON
    in the environment, e.g. ``CCTV_CHANNELS='{"CAM01": "front_door"}'``.
    """

    # Local side
    video_dir: Path = Field(
        default=Path("/cctv/data/motion"),
        description="Directory the motion detector writes video segments into"
    )
    disk_limit_bytes: int = Field(
        default=8 * 10**11,
        gt=0,
        description="High water mark for the video directory. 1GB = 10^9, 1TB = 10^12."
    )
    reap_glob: str = Field(
        default="*.m??",
        description="Top-level files the disk reaper may delete"
    )
    upload_glob: str = Field(
        default="CAM*.m??",
        description="Files (searched recursively) eligible for upload"
    )
    disk_usage_method: Literal["du", "walk"] = Field(
        default="du",
        description="Measure the directory with du(1) or by walking it in Python"
    )
    du_path: str = Field(default="du", description="Path to the du binary")
    lsof_path: str = Field(default="lsof", description="Path to the lsof binary")

    # Selection windows
    recent_window_minutes: int = Field(
        default=60,
        gt=0,
        description="Files modified less than this many minutes ago are candidates. Also used for the remote listing."
    )
    settle_minutes: int = Field(
        default=2,
        ge=0,
        description="Files modified less than this many minutes ago may still be open and are left alone"
    )

    # Remote side
    remote_backend: Literal["rclone", "s3"] = Field(
        default="rclone",
        description="Which remote store implementation to use"
    )
    remote_mock_mode: bool = Field(
        default=False,
        description="Use an in-memory remote store. Enables local dev without cloud credentials."
    )
    remote_store: str = Field(
        default="onedrive:CCTV/799LEH",
        description="rclone remote and base path the channel sub-paths live under"
    )
    remote_expiry_days: int = Field(
        default=14,
        gt=0,
        description="Remote copies older than this are deleted"
    )
    rclone_path: str = Field(default="rclone", description="Path to the rclone binary")
    rclone_config: Optional[str] = Field(
        default=None,
        description="Alternate rclone config file (rclone --config)"
    )
    channels: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_CHANNELS),
        description="5-character filename prefix -> remote sub-path"
    )
    expiring_channels: list[str] = Field(
        default_factory=lambda: ["CAM01", "CAM02", "CAM03"],
        description="Prefixes whose sub-paths get old files deleted. The lobby camera is kept forever."
    )

    # S3-compatible storage (R2, S3, MinIO)
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Endpoint URL. Leave empty for AWS S3."
    )
    s3_bucket_name: str = Field(default="", description="Bucket holding the channel prefixes")
    s3_prefix: str = Field(default="", description="Key prefix the channel sub-paths live under")
    s3_access_key_id: str = Field(default="", description="Access key ID")
    s3_secret_access_key: str = Field(default="", description="Secret access key")
    s3_region: Optional[str] = Field(
        default=None,
        description="Region. Defaults to 'auto' when an endpoint is set (R2), otherwise boto3's own default."
    )

    # Run coordination
    lock_file: Path = Field(
        default=Path("/tmp/cctv-offload.lock"),
        description="File locked for the duration of a run"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix="CCTV_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("channels")
    @classmethod
    def _check_prefixes(cls, value: dict[str, str]) -> dict[str, str]:
        for prefix in value:
            if len(prefix) != 5:
                raise ValueError(f"channel prefix must be 5 characters: {prefix!r}")
        return value

    @model_validator(mode="after")
    def _check_windows(self) -> "Settings":
        if self.settle_minutes >= self.recent_window_minutes:
            raise ValueError("settle_minutes must be smaller than recent_window_minutes")
        unknown = [p for p in self.expiring_channels if p not in self.channels]
        if unknown:
            raise ValueError(f"expiring_channels not in channels: {', '.join(unknown)}")
        return self

    @property
    def channel_list(self) -> list[CameraChannel]:
        """Channels in configuration order, with their expiry flag."""
        expiring = set(self.expiring_channels)
        return [
            CameraChannel(prefix=prefix, sub_path=sub_path, expires=prefix in expiring)
            for prefix, sub_path in self.channels.items()
        ]

    def to_policy(self) -> OffloadPolicy:
        """Build the framework-free policy object the core works with."""
        return OffloadPolicy(
            video_dir=self.video_dir,
            disk_limit_bytes=self.disk_limit_bytes,
            recent_window_minutes=self.recent_window_minutes,
            settle_minutes=self.settle_minutes,
            remote_expiry_days=self.remote_expiry_days,
            channels=tuple(self.channel_list),
        )

    def validate_required_fields(self) -> list[str]:
        """
        Return the settings the chosen remote backend needs but lacks.

        This is separate from Pydantic validation because requirements
        depend on the backend and on mock mode.
        """
        missing = []

        if self.remote_mock_mode:
            return missing

        if self.remote_backend == "rclone":
            if not self.remote_store:
                missing.append("CCTV_REMOTE_STORE")
        elif self.remote_backend == "s3":
            if not self.s3_bucket_name:
                missing.append("CCTV_S3_BUCKET_NAME")
            if not self.s3_access_key_id:
                missing.append("CCTV_S3_ACCESS_KEY_ID")
            if not self.s3_secret_access_key:
                missing.append("CCTV_S3_SECRET_ACCESS_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. For tests, call
    get_settings.cache_clear() to reset.
    """
    return Settings()
