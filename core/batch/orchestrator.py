"""
Translation run orchestrator.

Runs the whole pipeline for one job:
parse -> batch -> translate each batch in order -> concatenate.

Batches are dispatched strictly one at a time. That keeps the output in
source order and holds each job to a single outstanding oracle call.
"""

from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
import time

from config.logging_config import get_logger
from config.constants import (
    BATCH_SEPARATOR,
    DEFAULT_BATCH_SIZE,
)

from ..srt_parser import parse_replicas
from .scheduler import make_batches, validate_batch_size
from .progress_tracker import ProgressTracker, ProgressCallback, create_logging_callback
from .cancellation import CancellationToken
from .translation_client import BatchTranslator

logger = get_logger(__name__)


@dataclass
class OrchestratorConfig:
    """Configuration for SubtitleOrchestrator."""
    batch_size: int = DEFAULT_BATCH_SIZE
    separator: str = BATCH_SEPARATOR
    strict_parsing: bool = False


@dataclass
class OrchestratorResult:
    """Result from one translation run."""
    job_id: str
    translated_text: str
    replica_count: int = 0
    batch_count: int = 0
    duration_seconds: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)


class SubtitleOrchestrator:
    """
    Orchestrates one subtitle translation run.

    Usage:
        orchestrator = SubtitleOrchestrator(translator, OrchestratorConfig(batch_size=50))
        result = await orchestrator.process(
            text=srt_text,
            language="French",
            context="Period drama",
            progress_callback=on_progress,
            cancel_token=token,
        )
    """

    def __init__(
        self,
        translator: BatchTranslator,
        config: Optional[OrchestratorConfig] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            translator: Batch translator wrapping the oracle
            config: Orchestrator configuration
        """
        self.config = config or OrchestratorConfig()
        validate_batch_size(self.config.batch_size)
        self.translator = translator

    async def process(
        self,
        text: str,
        language: str,
        context: str = "",
        job_id: str = "",
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> OrchestratorResult:
        """
        Translate a subtitle document.

        Raises:
            TranslationCancelledError: token fired; partial output is discarded
            OracleUnavailableError: a batch exhausted its retries
        """
        start = time.time()
        batch_size = self.config.batch_size

        replicas = parse_replicas(text, strict=self.config.strict_parsing)
        batches = make_batches(replicas, batch_size)

        logger.info(
            f"Translating {job_id or 'document'}: {len(replicas)} replicas "
            f"in {len(batches)} batches of {batch_size} -> {language}"
        )

        tracker = ProgressTracker(
            total_replicas=len(replicas),
            batch_size=batch_size,
            job_id=job_id,
            callback=progress_callback,
        )
        tracker.add_callback(create_logging_callback(job_id))
        tracker.start()

        parts: List[str] = []
        for batch in batches:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            translated = await self.translator.translate_batch(
                batch, language, context, cancel_token=cancel_token
            )
            parts.append(translated + self.config.separator)

            progress = tracker.advance()
            logger.debug(
                f"Batch {batch.index + 1}/{len(batches)} done "
                f"({min(progress, 1.0) * 100:.0f}%)"
            )

        tracker.finish()

        return OrchestratorResult(
            job_id=job_id,
            translated_text="".join(parts),
            replica_count=len(replicas),
            batch_count=len(batches),
            duration_seconds=time.time() - start,
            metadata={
                "oracle_calls": self.translator.total_calls,
                "oracle_retries": self.translator.total_retries,
            },
        )
