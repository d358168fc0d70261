"""
Batch translation sub-modules.
Scheduling, the oracle client, progress and cancellation for one job.
"""

from .scheduler import Batch, make_batches, count_batches, validate_batch_size
from .cancellation import CancellationToken
from .progress_tracker import (
    ProgressTracker,
    ProgressState,
    ProgressCallback,
    create_logging_callback,
)
from .translation_client import (
    BatchTranslator,
    RetryPolicy,
    OracleStatus,
    OracleStatusCallback,
)
from .orchestrator import SubtitleOrchestrator, OrchestratorConfig, OrchestratorResult

__all__ = [
    # Scheduling
    'Batch',
    'make_batches',
    'count_batches',
    'validate_batch_size',
    # Cancellation
    'CancellationToken',
    # Progress tracking
    'ProgressTracker',
    'ProgressState',
    'ProgressCallback',
    'create_logging_callback',
    # Oracle client
    'BatchTranslator',
    'RetryPolicy',
    'OracleStatus',
    'OracleStatusCallback',
    # Orchestrator
    'SubtitleOrchestrator',
    'OrchestratorConfig',
    'OrchestratorResult',
]
