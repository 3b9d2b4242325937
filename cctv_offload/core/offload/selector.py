"""
Upload selector: copy each closed, recent camera file to its channel.

A file is a candidate when it was modified inside the recent window but
not inside the settle window (the motion detector may still be writing
it). Candidates already on the remote, or still held open, are skipped.
The rest are routed by their 5-character prefix.
"""

import logging

from .models import OffloadPolicy, UploadReport
from .ports import LocalVideoStore, OpenFileChecker, RemoteCopier, RemoteStoreError

logger = logging.getLogger(__name__)


def upload_new_files(
    store: LocalVideoStore,
    checker: OpenFileChecker,
    copier: RemoteCopier,
    policy: OffloadPolicy,
    uploaded: set[str],
) -> UploadReport:
    """
    Copy every eligible candidate and report what happened to each.

    ``uploaded`` is read, never modified: it is the inventory taken at
    the start of the run.
    """
    report = UploadReport()
    candidates = store.list_uploadable(
        min_age_seconds=policy.settle_minutes * 60,
        max_age_seconds=policy.recent_window_minutes * 60,
    )

    for candidate in candidates:
        name = candidate.name

        if name in uploaded:
            logger.info(f"  Skipping {name} (already uploaded)")
            report.already_uploaded.append(name)
            continue

        if checker.is_open(candidate.path):
            logger.info(f"  Skipping open file: {name}")
            report.open_files.append(name)
            continue

        logger.info(f"  {name}")

        channel = policy.channel_for(name)
        if channel is None:
            logger.warning(
                f"Unexpected file prefix encountered: {name}",
                extra={"file": name}
            )
            report.unrecognized.append(name)
            continue

        try:
            copier.copy(candidate.path, channel.sub_path)
        except RemoteStoreError as e:
            logger.error(
                "Failed to copy file",
                extra={"file": name, "sub_path": channel.sub_path, "error": str(e)}
            )
            report.failed.append(name)
            continue

        report.copied.append(name)

    return report
