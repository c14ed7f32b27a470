"""Pairs local and remote records by filename and decides sync direction."""

import logging
from collections import Counter
from typing import Dict, List

from ...models import FileRecord, SyncDirection, SyncPair

logger = logging.getLogger(__name__)


def classify_direction(local: FileRecord, remote: FileRecord) -> SyncDirection:
    """Decide which way metadata flows for a matched pair.

    The newer side wins; unknown modification times count as epoch-zero.

    Args:
        local: Local record
        remote: Remote record

    Returns:
        TO_REMOTE if local is newer, TO_LOCAL if remote is newer, else NONE
    """
    local_time = local.modified_or_epoch
    remote_time = remote.modified_or_epoch
    if local_time > remote_time:
        return SyncDirection.TO_REMOTE
    if remote_time > local_time:
        return SyncDirection.TO_LOCAL
    return SyncDirection.NONE


class MatchEngine:
    """Matches records across sides by case-insensitive filename."""

    def match(
        self, local_records: List[FileRecord], remote_records: List[FileRecord]
    ) -> List[SyncPair]:
        """Build sync pairs for files present on both sides.

        When several remote files share a filename, the first one in
        remote scan order is used. Files found on one side only produce
        no pair.

        Args:
            local_records: Records from the local scan
            remote_records: Records from the remote scan

        Returns:
            One SyncPair per matched local record, in local order
        """
        remote_by_key: Dict[str, FileRecord] = {}
        for record in remote_records:
            remote_by_key.setdefault(record.match_key, record)

        self._log_ambiguous(remote_records)

        pairs = []
        for local in local_records:
            remote = remote_by_key.get(local.match_key)
            if remote is None:
                continue
            pairs.append(SyncPair(local, remote, classify_direction(local, remote)))

        logger.info(
            "Matched %d of %d local files against %d remote files",
            len(pairs),
            len(local_records),
            len(remote_records),
        )
        return pairs

    @staticmethod
    def pending(pairs: List[SyncPair]) -> List[SyncPair]:
        """Filter pairs down to those that need a transfer."""
        return [pair for pair in pairs if pair.needs_sync]

    @staticmethod
    def _log_ambiguous(remote_records: List[FileRecord]) -> None:
        counts = Counter(record.match_key for record in remote_records)
        for key, count in counts.items():
            if count > 1:
                logger.warning(
                    "%d remote files named %r; using the first one found", count, key
                )
