"""Exclusive, non-blocking flock held for the length of one run."""

import fcntl
import logging
import os
from pathlib import Path
from typing import IO, Optional

logger = logging.getLogger(__name__)


class AlreadyRunningError(Exception):
    """Raised when another run holds the lock."""

    def __init__(self, lock_file: Path) -> None:
        super().__init__(f"Lock already held: {lock_file}")
        self.lock_file = lock_file


class RunLock:
    """
    Context manager around ``flock(LOCK_EX | LOCK_NB)``.

    The lock belongs to the open file description, so it is dropped by
    the kernel if the process dies without reaching ``release``. The
    lock file itself is left in place; unlinking it would let a
    concurrent run lock a fresh inode.
    """

    def __init__(self, lock_file: Path) -> None:
        self._lock_file = lock_file
        self._handle: Optional[IO[str]] = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        """Take the lock or raise AlreadyRunningError."""
        handle = open(self._lock_file, "a+")
        try:
            fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            handle.close()
            raise AlreadyRunningError(self._lock_file)

        handle.seek(0)
        handle.truncate()
        handle.write(str(os.getpid()))
        handle.flush()
        self._handle = handle

        logger.debug("Run lock acquired", extra={"lock_file": str(self._lock_file)})

    def release(self) -> None:
        if self._handle is None:
            return
        fcntl.flock(self._handle, fcntl.LOCK_UN)
        self._handle.close()
        self._handle = None

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
