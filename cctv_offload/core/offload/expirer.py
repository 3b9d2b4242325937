"""Remote expirer: delete old remote copies, one channel sub-path at a time."""

import logging

from .models import CameraChannel, ExpiryReport
from .ports import RemoteDeleter, RemoteStoreError

logger = logging.getLogger(__name__)


def expire_remote(
    deleter: RemoteDeleter,
    channels: list[CameraChannel],
    expiry_days: int,
) -> ExpiryReport:
    """Delete entries older than ``expiry_days`` under each channel's sub-path."""
    report = ExpiryReport()

    for channel in channels:
        logger.info(f"  deleting old files under {channel.sub_path}")
        try:
            deleter.delete_older_than(channel.sub_path, expiry_days)
        except RemoteStoreError as e:
            # keep going, the other cameras still need expiring
            logger.error(
                "Failed to expire remote files",
                extra={"sub_path": channel.sub_path, "error": str(e)}
            )
            report.failed.append(channel.sub_path)
            continue
        report.expired.append(channel.sub_path)

    return report
