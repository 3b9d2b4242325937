"""Unit tests for configuration loading and validation."""

import os

import pytest
from pydantic import ValidationError

from cctv_offload.config.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep stray CCTV_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("CCTV_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestDefaults:

    def test_defaults_match_the_camera_host(self):
        settings = Settings(_env_file=None)

        assert str(settings.video_dir) == "/cctv/data/motion"
        assert settings.disk_limit_bytes == 800_000_000_000
        assert settings.remote_store == "onedrive:CCTV/799LEH"
        assert settings.remote_expiry_days == 14
        assert settings.recent_window_minutes == 60
        assert settings.settle_minutes == 2

    def test_default_channels(self):
        settings = Settings(_env_file=None)
        assert settings.channels == {
            "CAM01": "southwest_corner",
            "CAM02": "garage_side_entrance",
            "CAM03": "fhd_parking_area",
            "CAM04": "fhd_lobby",
        }

    def test_lobby_is_not_expired_by_default(self):
        policy = Settings(_env_file=None).to_policy()
        assert [c.sub_path for c in policy.expiring_channels] == [
            "southwest_corner", "garage_side_entrance", "fhd_parking_area",
        ]


class TestEnvironment:

    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("CCTV_VIDEO_DIR", "/srv/motion")
        monkeypatch.setenv("CCTV_DISK_LIMIT_BYTES", "5000")
        monkeypatch.setenv("CCTV_REMOTE_MOCK_MODE", "true")

        settings = Settings(_env_file=None)

        assert str(settings.video_dir) == "/srv/motion"
        assert settings.disk_limit_bytes == 5000
        assert settings.remote_mock_mode

    def test_channels_from_json(self, monkeypatch):
        monkeypatch.setenv("CCTV_CHANNELS", '{"CAM07": "back_gate"}')
        monkeypatch.setenv("CCTV_EXPIRING_CHANNELS", '["CAM07"]')

        policy = Settings(_env_file=None).to_policy()

        assert [(c.prefix, c.sub_path, c.expires) for c in policy.channels] == [
            ("CAM07", "back_gate", True),
        ]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidation:

    def test_settle_window_must_be_shorter_than_recent_window(self):
        with pytest.raises(ValidationError, match="settle_minutes"):
            Settings(_env_file=None, settle_minutes=60, recent_window_minutes=60)

    def test_channel_prefix_must_be_five_characters(self):
        with pytest.raises(ValidationError, match="5 characters"):
            Settings(_env_file=None, channels={"CAM1": "x"}, expiring_channels=[])

    def test_expiring_channel_must_exist(self):
        with pytest.raises(ValidationError, match="CAM09"):
            Settings(_env_file=None, expiring_channels=["CAM09"])

    def test_disk_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, disk_limit_bytes=0)


class TestRequiredFields:

    def test_rclone_defaults_are_complete(self):
        assert Settings(_env_file=None).validate_required_fields() == []

    def test_s3_needs_bucket_and_credentials(self):
        settings = Settings(_env_file=None, remote_backend="s3")
        assert settings.validate_required_fields() == [
            "CCTV_S3_BUCKET_NAME",
            "CCTV_S3_ACCESS_KEY_ID",
            "CCTV_S3_SECRET_ACCESS_KEY",
        ]

    def test_mock_mode_needs_nothing(self):
        settings = Settings(_env_file=None, remote_backend="s3", remote_mock_mode=True)
        assert settings.validate_required_fields() == []
