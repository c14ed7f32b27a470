"""Progress reporting for sync runs.

Listeners receive every ``SyncRunProgress`` in emission order. There is
no throttling: one event per transfer is the contract.
"""

import logging
from typing import Callable, List, Optional

from ...models import RunStatus, SyncRunProgress

logger = logging.getLogger(__name__)

# Type alias for progress listener function
ProgressListener = Callable[[SyncRunProgress], None]


class ProgressReporter:
    """Fans out sync progress to subscribed listeners."""

    def __init__(self) -> None:
        """Initialize progress reporter."""
        self._listeners: List[ProgressListener] = []
        self._last: Optional[SyncRunProgress] = None

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a listener.

        Args:
            listener: Function to call with every progress update

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def last(self) -> Optional[SyncRunProgress]:
        """Most recent update, if any."""
        return self._last

    def reset(self) -> None:
        """Forget the update of the previous run."""
        self._last = None

    def emit(
        self,
        phase: RunStatus,
        current_index: int = 0,
        total_count: int = 0,
        current_filename: str = "",
        error_message: Optional[str] = None,
    ) -> SyncRunProgress:
        """Build a progress update and send it to every listener.

        Args:
            phase: Run status to report
            current_index: 1-based position of the current item
            total_count: Number of items in the queue
            current_filename: File being processed
            error_message: Error text for failed runs

        Returns:
            The emitted update
        """
        update = SyncRunProgress(
            current_index=current_index,
            total_count=total_count,
            current_filename=current_filename,
            phase=phase,
            error_message=error_message,
        )
        self._last = update
        logger.debug("Progress: %s", update)

        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception as e:
                logger.error("Error in progress listener: %s", e)
        return update

