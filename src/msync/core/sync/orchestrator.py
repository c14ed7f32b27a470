"""Sync orchestrator driving one metadata reconciliation run.

A run walks through these phases:
1. Refreshing: scan both sides from scratch
2. Matching: pair records by filename and keep those needing a transfer
3. Confirming: wait for the caller to accept the preview
4. Applying: transfer pairs one at a time, stopping at the first failure
5. Completed / Failed: terminal until the next run
"""

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from ...exceptions import MsyncError, SyncStateError
from ...models import (
    FileRecord,
    RunStatus,
    Side,
    SyncDirection,
    SyncPair,
    SyncPreview,
)
from ..device.session import DeviceSession
from ..tags.codec import TagCodec
from .match_engine import MatchEngine
from .progress import ProgressListener, ProgressReporter
from .staging import RemoteStagingController

if TYPE_CHECKING:
    from ..filesystem.scanner import DirectoryScanner

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[SyncPreview], bool]


class OrchestratorPhase(str, Enum):
    """Phases of a sync run."""

    IDLE = "idle"
    REFRESHING = "refreshing"
    MATCHING = "matching"
    CONFIRMING = "confirming"
    APPLYING = "applying"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether the run has ended."""
        return self in (OrchestratorPhase.COMPLETED, OrchestratorPhase.FAILED)


@dataclass
class SyncResult:
    """Result of a sync run."""

    phase: OrchestratorPhase = OrchestratorPhase.IDLE
    preview: SyncPreview | None = None
    pairs: List[SyncPair] = dataclass_field(default_factory=list)
    applied: List[SyncPair] = dataclass_field(default_factory=list)
    failed_pair: SyncPair | None = None
    error_message: str | None = None
    local_records: List[FileRecord] | None = None
    remote_records: List[FileRecord] | None = None
    errors: List[str] = dataclass_field(default_factory=list)

    @property
    def success(self) -> bool:
        """Whether the run completed without errors."""
        return self.phase == OrchestratorPhase.COMPLETED and not self.errors

    def add_error(self, error: str) -> None:
        """Add an error message."""
        self.errors.append(error)
        logger.error(error)

    def get_summary(self) -> dict[str, Any]:
        """Get summary of sync run."""
        summary: dict[str, Any] = {
            "success": self.success,
            "phase": self.phase.value,
            "errors": len(self.errors),
            "applied": len(self.applied),
        }

        if self.preview:
            summary["preview"] = {
                "matched": self.preview.total_matched,
                "total": self.preview.total,
                "to_remote": self.preview.to_remote,
                "to_local": self.preview.to_local,
            }

        if self.failed_pair:
            summary["failed"] = {
                "file": self.failed_pair.filename,
                "error": self.error_message,
            }

        return summary


class SyncOrchestrator:
    """Runs refresh, match, confirm and apply for one local/remote root pair."""

    def __init__(
        self,
        scanner: "DirectoryScanner",
        match_engine: MatchEngine | None = None,
        staging: RemoteStagingController | None = None,
        codec: TagCodec | None = None,
        reporter: ProgressReporter | None = None,
    ):
        """Initialize sync orchestrator.

        Args:
            scanner: Directory scanner for both sides
            match_engine: Match engine (a default one if omitted)
            staging: Remote staging controller (the scanner's if omitted)
            codec: Tag codec for local files (the scanner's if omitted)
            reporter: Progress reporter (a new one if omitted)
        """
        self.scanner = scanner
        self.match_engine = match_engine or MatchEngine()
        self.staging = staging or scanner.staging
        self.codec = codec or scanner.codec
        self.reporter = reporter or ProgressReporter()

        self._phase = OrchestratorPhase.IDLE
        self._result = SyncResult()
        self._local_root = ""
        self._remote_root = ""
        self._session: Optional[DeviceSession] = None

    @property
    def phase(self) -> OrchestratorPhase:
        """Current phase."""
        return self._phase

    @property
    def result(self) -> SyncResult:
        """Result of the current or last run."""
        return self._result

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener; returns an unsubscribe callable."""
        return self.reporter.subscribe(listener)

    def _set_phase(self, phase: OrchestratorPhase) -> None:
        logger.debug("Sync phase: %s -> %s", self._phase.value, phase.value)
        self._phase = phase
        self._result.phase = phase

    def _require_phase(self, expected: OrchestratorPhase, operation: str) -> None:
        if self._phase != expected:
            raise SyncStateError(
                f"Cannot {operation} while {self._phase.value} "
                f"(expected {expected.value})"
            )

    def prepare(
        self, local_root: str, remote_root: str, session: DeviceSession
    ) -> SyncResult:
        """Refresh both sides and compute the pairs that need a transfer.

        Args:
            local_root: Local library root
            remote_root: Device library root
            session: Active device session

        Returns:
            SyncResult in phase CONFIRMING (preview set), COMPLETED
            (nothing to do) or FAILED (a scan failed)

        Raises:
            SyncStateError: If a run is already in progress
        """
        if self._phase.is_terminal:
            self._phase = OrchestratorPhase.IDLE
        self._require_phase(OrchestratorPhase.IDLE, "start a sync")

        self._result = SyncResult()
        self._local_root = local_root
        self._remote_root = remote_root
        self._session = session
        self.reporter.reset()

        self._set_phase(OrchestratorPhase.REFRESHING)
        self.reporter.emit(RunStatus.RUNNING)
        try:
            local_records, remote_records = self._refresh(session)
        except MsyncError as e:
            return self._fail(f"Refresh failed: {e}")

        self._set_phase(OrchestratorPhase.MATCHING)
        matched = self.match_engine.match(local_records, remote_records)
        pending = self.match_engine.pending(matched)
        self._result.pairs = pending
        self._result.preview = SyncPreview.from_pairs(matched, pending)

        if not pending:
            logger.info("Nothing to sync (%d matched pairs up to date)", len(matched))
            self._result.local_records = local_records
            self._result.remote_records = remote_records
            self._set_phase(OrchestratorPhase.COMPLETED)
            self.reporter.emit(RunStatus.SUCCEEDED)
            return self._result

        logger.info(
            "%d files to sync (%d to device, %d to local)",
            self._result.preview.total,
            self._result.preview.to_remote,
            self._result.preview.to_local,
        )
        self._set_phase(OrchestratorPhase.CONFIRMING)
        return self._result

    def decline(self) -> SyncResult:
        """Abandon the previewed run without changing anything.

        Raises:
            SyncStateError: If no run is waiting for confirmation
        """
        self._require_phase(OrchestratorPhase.CONFIRMING, "decline")
        logger.info("Sync declined")
        self._set_phase(OrchestratorPhase.IDLE)
        self.reporter.emit(RunStatus.IDLE)
        return self._result

    def apply(self) -> SyncResult:
        """Transfer every pending pair in order, stopping at the first error.

        Pairs applied before a failure stay applied.

        Returns:
            SyncResult in phase COMPLETED or FAILED

        Raises:
            SyncStateError: If no run is waiting for confirmation
        """
        self._require_phase(OrchestratorPhase.CONFIRMING, "apply")
        session = self._session
        if session is None:
            raise SyncStateError("Cannot apply without a device session")

        self._set_phase(OrchestratorPhase.APPLYING)
        pairs = self._result.pairs
        total = len(pairs)

        for index, pair in enumerate(pairs, start=1):
            self.reporter.emit(RunStatus.RUNNING, index, total, pair.filename)
            try:
                self._transfer(pair, session)
            except (MsyncError, OSError) as e:
                self._result.failed_pair = pair
                return self._fail(f"{pair.filename}: {e}", index, total, pair.filename)
            self._result.applied.append(pair)

        logger.info("Sync complete: %d files transferred", total)
        self._set_phase(OrchestratorPhase.COMPLETED)
        self._final_refresh(session)
        self.reporter.emit(RunStatus.SUCCEEDED, total, total)
        return self._result

    def sync(
        self,
        local_root: str,
        remote_root: str,
        session: DeviceSession,
        confirm: ConfirmCallback,
    ) -> SyncResult:
        """Run a complete sync with a confirmation callback as review gate.

        Args:
            local_root: Local library root
            remote_root: Device library root
            session: Active device session
            confirm: Called with the preview; returns True to proceed

        Returns:
            SyncResult of the run
        """
        result = self.prepare(local_root, remote_root, session)
        if self._phase != OrchestratorPhase.CONFIRMING or result.preview is None:
            return result
        if confirm(result.preview):
            return self.apply()
        return self.decline()

    def _refresh(
        self, session: DeviceSession
    ) -> tuple[List[FileRecord], List[FileRecord]]:
        local_records = self.scanner.scan(self._local_root, Side.LOCAL)
        remote_records = self.scanner.scan(
            self._remote_root, Side.REMOTE, session=session
        )
        return local_records, remote_records

    def _final_refresh(self, session: DeviceSession) -> None:
        try:
            local_records, remote_records = self._refresh(session)
        except MsyncError as e:
            logger.warning("Final refresh failed: %s", e)
            return
        self._result.local_records = local_records
        self._result.remote_records = remote_records

    def _transfer(self, pair: SyncPair, session: DeviceSession) -> None:
        """Copy the full metadata snapshot from the newer side to the older."""
        if pair.direction == SyncDirection.TO_REMOTE:
            source = self.codec.read(pair.local.identity, side=Side.LOCAL)
            logger.info("Syncing %s -> device", pair.filename)
            self.staging.write_remote(session, pair.remote.identity, source.to_update())
        elif pair.direction == SyncDirection.TO_LOCAL:
            source = self.staging.read_remote(session, pair.remote.identity)
            logger.info("Syncing device -> %s", pair.filename)
            self.codec.write(pair.local.identity, source.to_update())

    def _fail(
        self,
        message: str,
        current_index: int = 0,
        total_count: int = 0,
        filename: str = "",
    ) -> SyncResult:
        self._result.error_message = message
        self._result.add_error(message)
        self._set_phase(OrchestratorPhase.FAILED)
        self.reporter.emit(
            RunStatus.FAILED, current_index, total_count, filename, message
        )
        return self._result
