"""Redaction of delete capabilities from snapshots."""

from dashsnap.domain.snapshots.models import Snapshot


def redact(snapshot: Snapshot) -> Snapshot:
    """Clear the delete key and external delete URL in place.

    Applied whenever the caller has only proven possession of the read key,
    so a reader cannot escalate to deleting the snapshot.
    """
    snapshot.delete_key = ""
    snapshot.external_delete_url = ""
    return snapshot
