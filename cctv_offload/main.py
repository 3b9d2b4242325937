"""
Command-line entry point.

Meant to be run by cron or a systemd timer every 15-20 minutes. It takes
no arguments; everything comes from ``CCTV_*`` environment variables or
a ``.env`` file (see ``cctv_offload.config.settings``).

    cctv-offload
    python -m cctv_offload.main

Exit status: 0 after a run (even if some copies failed), 1 if another
run holds the lock, 2 on configuration errors.
"""

import logging
import sys
from typing import Optional

from pydantic import ValidationError

from .config.settings import Settings, get_settings
from .core.offload import OffloadPipeline
from .infrastructure.locking import AlreadyRunningError, RunLock
from .infrastructure.storage import create_remote_store
from .infrastructure.video import (
    LocalVideoDirectory,
    create_disk_usage_probe,
    create_open_file_checker,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

EXIT_OK = 0
EXIT_ALREADY_RUNNING = 1
EXIT_CONFIG_ERROR = 2

logger = logging.getLogger(__name__)


def console_handlers() -> list[logging.Handler]:
    """Progress lines go to stdout, warnings and errors to stderr."""
    progress = logging.StreamHandler(sys.stdout)
    progress.addFilter(lambda record: record.levelno < logging.WARNING)
    problems = logging.StreamHandler(sys.stderr)
    problems.setLevel(logging.WARNING)
    return [progress, problems]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(format=LOG_FORMAT, level=level.upper(), handlers=console_handlers())


def build_pipeline(settings: Settings) -> OffloadPipeline:
    """
    Wire the real tools into a pipeline.

    Raises RuntimeError if a required binary (rclone, lsof) is missing.
    """
    return OffloadPipeline(
        policy=settings.to_policy(),
        local_store=LocalVideoDirectory(
            settings.video_dir,
            reap_glob=settings.reap_glob,
            upload_glob=settings.upload_glob,
        ),
        disk_probe=create_disk_usage_probe(settings.disk_usage_method, settings.du_path),
        open_file_checker=create_open_file_checker(settings.lsof_path),
        remote_store=create_remote_store(settings, mock_mode=settings.remote_mock_mode),
    )


def run(settings: Settings, pipeline: Optional[OffloadPipeline] = None) -> int:
    """
    Run the offload once under the single-instance lock.

    Returns the process exit status. ``pipeline`` is built from
    ``settings`` unless one is passed in.
    """
    lock = RunLock(settings.lock_file)
    try:
        lock.acquire()
    except AlreadyRunningError:
        logger.error("Multiple instances of cctv-offload prohibited.")
        return EXIT_ALREADY_RUNNING
    except OSError as e:
        logger.error(f"Cannot open lock file {settings.lock_file}: {e}")
        return EXIT_CONFIG_ERROR

    try:
        if pipeline is None:
            missing = settings.validate_required_fields()
            if missing:
                logger.error(
                    f"Missing required configuration: {', '.join(missing)}",
                    extra={"missing_fields": missing}
                )
                return EXIT_CONFIG_ERROR
            try:
                pipeline = build_pipeline(settings)
            except RuntimeError as e:
                logger.error(f"Cannot start offload: {e}")
                return EXIT_CONFIG_ERROR

        pipeline.run()
    finally:
        lock.release()

    return EXIT_OK


def main() -> None:
    try:
        settings = get_settings()
    except ValidationError as e:
        configure_logging()
        logger.error(f"Invalid configuration:\n{e}")
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(settings.log_level)
    sys.exit(run(settings))


if __name__ == "__main__":
    main()
