"""
Single-instance run lock.

Overlapping runs would race on the same candidates and deletes, so a
run holds an exclusive flock for its whole duration.
"""

from .lock import AlreadyRunningError, RunLock

__all__ = ["AlreadyRunningError", "RunLock"]
