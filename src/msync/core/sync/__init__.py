"""Synchronization module.

Handles remote staging, matching, progress reporting and orchestration.
"""

from .match_engine import MatchEngine, classify_direction
from .orchestrator import (
    ConfirmCallback,
    OrchestratorPhase,
    SyncOrchestrator,
    SyncResult,
)
from .progress import ProgressListener, ProgressReporter
from .staging import RemoteStagingController

__all__ = [
    # Staging
    "RemoteStagingController",
    # Matching
    "MatchEngine",
    "classify_direction",
    # Progress
    "ProgressListener",
    "ProgressReporter",
    # Orchestration
    "ConfirmCallback",
    "OrchestratorPhase",
    "SyncOrchestrator",
    "SyncResult",
]
