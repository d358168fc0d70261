"""
Progress tracking and reporting.
Reports fractional completion of a translation run after every batch.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, Any, List
from datetime import datetime

from config.logging_config import get_logger

logger = get_logger(__name__)


# Type alias for progress callbacks: receives a fraction in [0, 1]
ProgressCallback = Callable[[float], None]


@dataclass
class ProgressState:
    """Current progress state."""
    total_replicas: int = 0
    batch_size: int = 0
    completed_batches: int = 0
    progress: float = 0.0
    finished: bool = False
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def elapsed_seconds(self) -> float:
        """Get elapsed time in seconds."""
        return (datetime.now() - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_replicas": self.total_replicas,
            "batch_size": self.batch_size,
            "completed_batches": self.completed_batches,
            "progress": self.progress,
            "finished": self.finished,
            "elapsed_seconds": self.elapsed_seconds,
        }


class ProgressTracker:
    """
    Tracks progress of one translation run.

    Every finished batch adds ``batch_size / total_replicas``, using the
    configured batch size even for a short last batch, so the running total
    may pass 1.0. Callbacks see every value below 1.0 and then exactly one
    final 1.0 from finish().

    Usage:
        tracker = ProgressTracker(total_replicas=120, batch_size=50)
        tracker.add_callback(store_callback)

        tracker.start()            # reports 0.0
        for batch in batches:
            # ... translate ...
            tracker.advance()      # 0.416..., 0.833...
        tracker.finish()           # 1.0
    """

    def __init__(
        self,
        total_replicas: int,
        batch_size: int,
        job_id: str = "",
        callback: Optional[ProgressCallback] = None,
    ):
        """
        Initialize progress tracker.

        Args:
            total_replicas: Number of replicas in the document
            batch_size: Configured replicas per batch
            job_id: Job identifier for log messages
            callback: Optional first callback
        """
        self.job_id = job_id
        self.state = ProgressState(total_replicas=total_replicas, batch_size=batch_size)
        self.increment = batch_size / total_replicas if total_replicas else 1.0
        self._callbacks: List[ProgressCallback] = []
        if callback is not None:
            self._callbacks.append(callback)

        logger.debug(f"ProgressTracker created: {job_id} ({total_replicas} replicas)")

    def add_callback(self, callback: ProgressCallback):
        """Add progress callback."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: ProgressCallback):
        """Remove progress callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    @property
    def progress(self) -> float:
        return self.state.progress

    def start(self):
        """Reset to zero and report it."""
        self.state.started_at = datetime.now()
        self.state.progress = 0.0
        self.state.completed_batches = 0
        self.state.finished = False
        self._notify(0.0)

    def advance(self) -> float:
        """Record one finished batch. Returns the running total."""
        self.state.completed_batches += 1
        self.state.progress += self.increment
        if self.state.progress < 1.0:
            self._notify(self.state.progress)
        return self.state.progress

    def finish(self):
        """Clamp to 1.0 and report completion."""
        self.state.progress = 1.0
        self.state.finished = True
        self._notify(1.0)

        logger.info(
            f"Progress complete: {self.job_id or '-'} "
            f"({self.state.completed_batches} batches, {self.state.elapsed_seconds:.1f}s)"
        )

    def _notify(self, value: float):
        """Notify all callbacks."""
        for callback in self._callbacks:
            try:
                callback(value)
            except Exception as e:
                logger.error(f"Progress callback error: {e}")

    def get_state(self) -> Dict[str, Any]:
        """Get current state as dictionary."""
        return {"job_id": self.job_id, **self.state.to_dict()}


def create_logging_callback(job_id: str = "", log_every: float = 0.1) -> ProgressCallback:
    """
    Create a callback that logs whenever progress crosses another
    ``log_every`` step.
    """
    last = {"step": -1}

    def callback(value: float):
        step = int(value / log_every) if log_every > 0 else 0
        if step > last["step"] or value >= 1.0:
            last["step"] = step
            logger.info(f"Progress {job_id or '-'}: {value * 100:.1f}%")

    return callback
