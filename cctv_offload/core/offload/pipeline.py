"""
The offload run: reap, inventory, upload, expire.

``OffloadPipeline`` holds the ports and the policy and runs the four
steps in strict order. It owns no global state: the uploaded-set and the
copy count live in the values each step returns.
"""

import logging
import time
from datetime import datetime
from typing import Callable

from .expirer import expire_remote
from .inventory import build_uploaded_set
from .models import OffloadPolicy, RunSummary
from .ports import DiskUsageProbe, LocalVideoStore, OpenFileChecker, RemoteStore
from .reaper import reap_disk
from .selector import upload_new_files

logger = logging.getLogger(__name__)

BANNER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def banner(label: str, when: datetime) -> str:
    """``=== START 2020-11-22 10:15:00 ===`` style run marker."""
    return f"=== {label} {when.strftime(BANNER_TIME_FORMAT)} ==="


class OffloadPipeline:
    """
    One offload run over a camera directory and a remote store.

    All collaborators are injected. Production wiring happens in
    ``cctv_offload.main``; tests pass fakes.
    """

    def __init__(
        self,
        policy: OffloadPolicy,
        local_store: LocalVideoStore,
        disk_probe: DiskUsageProbe,
        open_file_checker: OpenFileChecker,
        remote_store: RemoteStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policy = policy
        self._local = local_store
        self._probe = disk_probe
        self._checker = open_file_checker
        self._remote = remote_store
        self._clock = clock

    def run(self) -> RunSummary:
        """Run all four steps and log the start/end banners and summary."""
        policy = self._policy
        summary = RunSummary()

        logger.info(banner("START", datetime.fromtimestamp(self._clock())))

        summary.reap = reap_disk(
            self._local,
            self._probe,
            policy.video_dir,
            policy.disk_limit_bytes,
        )

        uploaded = build_uploaded_set(self._remote, policy.recent_window_minutes)
        summary.uploaded_set_size = len(uploaded)

        summary.upload = upload_new_files(
            self._local,
            self._checker,
            self._remote,
            policy,
            uploaded,
        )

        summary.expiry = expire_remote(
            self._remote,
            policy.expiring_channels,
            policy.remote_expiry_days,
        )

        logger.info(summary.message)
        logger.info(banner("END", datetime.fromtimestamp(self._clock())))

        return summary
