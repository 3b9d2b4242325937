"""
Disk reaper: keep the camera directory under its high water mark.

The camera never stops writing, so when the disk fills up something has
to go. Newest footage is the most valuable, so we walk the files
newest-first and keep each one as long as the running total still fits
under the limit. Anything that would push the total over is deleted.

Note this is not "delete oldest until under": a small old file can
survive when a larger, newer one was removed before it.
"""

import logging
from pathlib import Path

from .models import LocalFile, ReapReport
from .ports import DiskUsageError, DiskUsageProbe, LocalVideoStore

logger = logging.getLogger(__name__)


def select_for_removal(files_newest_first: list[LocalFile], limit_bytes: int) -> list[LocalFile]:
    """
    Pick the files to delete so the kept files fit under ``limit_bytes``.

    Pure function: walks ``files_newest_first`` with a running total,
    and every file whose size would take the total past the limit is
    selected (and its size given back).
    """
    selected: list[LocalFile] = []
    space_taken = 0

    for local_file in files_newest_first:
        space_taken += local_file.size_bytes
        if space_taken > limit_bytes:
            selected.append(local_file)
            space_taken -= local_file.size_bytes

    return selected


def reap_disk(
    store: LocalVideoStore,
    probe: DiskUsageProbe,
    directory: Path,
    limit_bytes: int,
) -> ReapReport:
    """
    Delete old videos if the directory is over ``limit_bytes``.

    The directory size is measured as a whole (including files the reaper
    never touches), but only reapable files are counted in the running
    total. Failed deletes are logged and the run moves on.
    """
    report = ReapReport()
    try:
        report.directory_bytes = probe.total_bytes(directory)
    except DiskUsageError as e:
        logger.error(
            "Could not measure video directory, skipping disk reaper",
            extra={"directory": str(directory), "error": str(e)}
        )
        return report

    if report.directory_bytes <= limit_bytes:
        logger.debug(
            "Disk under high water mark",
            extra={"bytes": report.directory_bytes, "limit": limit_bytes}
        )
        return report

    report.triggered = True
    logger.info(f"Disk at or over high water mark of {limit_bytes} bytes.")

    files = store.list_reapable()
    to_remove = select_for_removal(files, limit_bytes)

    for local_file in to_remove:
        logger.info(f"Removing file: {local_file.path}")
        try:
            store.delete(local_file)
        except OSError as e:
            logger.error(
                "Failed to remove file",
                extra={"path": str(local_file.path), "error": str(e)}
            )
            report.failed.append(local_file.path)
            continue
        report.removed.append(local_file.path)
        report.bytes_freed += local_file.size_bytes

    removed = set(report.removed)
    report.remaining_bytes = sum(f.size_bytes for f in files if f.path not in removed)

    logger.info(
        "Disk reaper finished",
        extra={
            "removed": len(report.removed),
            "failed": len(report.failed),
            "bytes_freed": report.bytes_freed,
        }
    )

    return report
