"""
Remote inventory: what has already been uploaded recently.

Runs overlap on purpose (every 15-20 minutes against a 60 minute
window), so most candidates in a run were already copied by the last
one. Listing the remote once up front saves re-sending them.
"""

import logging
import posixpath

from .ports import RemoteLister, RemoteStoreError

logger = logging.getLogger(__name__)


def build_uploaded_set(lister: RemoteLister, max_age_minutes: int) -> set[str]:
    """
    Basenames of remote entries modified within ``max_age_minutes``.

    A failed listing gives an empty set. The run then re-offers every
    candidate and relies on the remote copy skipping identical files.
    """
    try:
        entries = lister.list_recent(max_age_minutes)
    except RemoteStoreError as e:
        logger.error(
            "Failed to list remote files, continuing without inventory",
            extra={"error": str(e)}
        )
        return set()

    uploaded = {posixpath.basename(entry.rstrip("/")) for entry in entries}
    uploaded.discard("")

    logger.debug("Remote inventory built", extra={"count": len(uploaded)})
    return uploaded
