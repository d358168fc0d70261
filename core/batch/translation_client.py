"""
Translation client.

Sends one batch to the translation oracle and returns its text, retrying
the same batch when the oracle fails.

Retry behaviour is a small state machine driven by RetryPolicy:

    attempt -> ok                       -> oracle AVAILABLE, return text
    attempt -> error, attempts left     -> oracle RETRYING, back off, retry
    attempt -> error, attempts used up  -> oracle UNAVAILABLE, raise

RetryPolicy.unbounded() keeps retrying forever every 10 seconds.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from config.constants import (
    ORACLE_RETRY_DELAY,
    ORACLE_BACKOFF_FACTOR,
    ORACLE_MAX_RETRY_DELAY,
    ORACLE_MAX_ATTEMPTS,
)
from config.logging_config import get_logger

from ..errors import (
    OracleUnavailableError,
    TransientOracleError,
    TranslationCancelledError,
)
from .cancellation import CancellationToken
from .scheduler import Batch

logger = get_logger(__name__)


class OracleStatus(str, Enum):
    """Health of the oracle as seen by one job"""
    AVAILABLE = "available"
    RETRYING = "retrying"
    UNAVAILABLE = "unavailable"


# Receives (status, consecutive failed attempts, last error message)
OracleStatusCallback = Callable[[OracleStatus, int, Optional[str]], None]
SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass
class RetryPolicy:
    """When and how long to wait before retrying a failed batch."""
    max_attempts: Optional[int] = ORACLE_MAX_ATTEMPTS   # None or 0 = no limit
    base_delay: float = ORACLE_RETRY_DELAY
    backoff_factor: float = ORACLE_BACKOFF_FACTOR
    max_delay: float = ORACLE_MAX_RETRY_DELAY

    @classmethod
    def unbounded(cls, delay: float = ORACLE_RETRY_DELAY) -> "RetryPolicy":
        """Retry forever at a fixed interval."""
        return cls(max_attempts=None, base_delay=delay, backoff_factor=1.0, max_delay=delay)

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.oracle_max_attempts or None,
            base_delay=settings.oracle_retry_delay,
            backoff_factor=settings.oracle_backoff_factor,
            max_delay=settings.oracle_max_retry_delay,
        )

    @property
    def is_bounded(self) -> bool:
        return bool(self.max_attempts)

    def delay_for(self, failed_attempts: int) -> float:
        """Delay after the n-th consecutive failure (n >= 1)."""
        delay = self.base_delay * (self.backoff_factor ** max(0, failed_attempts - 1))
        return min(delay, self.max_delay)

    def should_retry(self, failed_attempts: int) -> bool:
        return not self.is_bounded or failed_attempts < self.max_attempts


class BatchTranslator:
    """
    Translates batches through one oracle provider.

    Usage:
        translator = BatchTranslator(provider, RetryPolicy(max_attempts=5))
        text = await translator.translate_batch(batch, "French", "Sitcom, 1998")
    """

    def __init__(
        self,
        provider: Any,
        retry_policy: Optional[RetryPolicy] = None,
        model: Optional[str] = None,
        status_callback: Optional[OracleStatusCallback] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Args:
            provider: Object with async translate_subtitles(text, target_lang, context, model)
            retry_policy: Retry policy (bounded default)
            model: Model identifier passed on every call
            status_callback: Told about every oracle status change
            sleep: Injectable sleep (tests fast-forward backoff with it)
        """
        self.provider = provider
        self.retry_policy = retry_policy or RetryPolicy()
        self.model = model
        self.status_callback = status_callback
        self._sleep = sleep

        self.total_calls = 0
        self.total_retries = 0

    async def translate_batch(
        self,
        batch: Batch,
        language: str,
        context: str = "",
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """
        Translate one batch, retrying per policy.

        Raises:
            OracleUnavailableError: bounded policy ran out of attempts
            TranslationCancelledError: the token fired mid-call or mid-backoff
        """
        text = batch.text
        failed = 0

        while True:
            try:
                translated = await self._attempt(text, language, context, cancel_token, failed + 1)
            except TranslationCancelledError:
                raise
            except TransientOracleError as e:
                failed += 1
                self.total_retries += 1

                if not self.retry_policy.should_retry(failed):
                    logger.error(
                        f"Oracle unavailable: batch {batch.index} failed {failed} times, giving up"
                    )
                    self._report(OracleStatus.UNAVAILABLE, failed, e.message)
                    raise OracleUnavailableError(
                        f"Oracle unavailable after {failed} attempts: {e.message}",
                        attempts=failed,
                    ) from e

                delay = self.retry_policy.delay_for(failed)
                logger.warning(
                    f"Translation error on batch {batch.index} (attempt {failed}), "
                    f"retrying in {delay:.0f} seconds: {e.message}"
                )
                self._report(OracleStatus.RETRYING, failed, e.message)

                if cancel_token is not None:
                    await cancel_token.sleep(delay, self._sleep)
                else:
                    await self._sleep(delay)
                continue

            if failed:
                logger.info(f"Batch {batch.index} succeeded after {failed} retries")
                self._report(OracleStatus.AVAILABLE, 0, None)
            return translated

    async def _attempt(
        self,
        text: str,
        language: str,
        context: str,
        cancel_token: Optional[CancellationToken],
        attempt: int,
    ) -> str:
        """One oracle call. Any failure comes back as TransientOracleError."""
        self.total_calls += 1
        call = self.provider.translate_subtitles(text, language, context, model=self.model)
        try:
            if cancel_token is not None:
                response = await cancel_token.run(call)
            else:
                response = await call
        except (TranslationCancelledError, asyncio.CancelledError):
            raise
        except Exception as e:
            raise TransientOracleError(f"{type(e).__name__}: {e}", attempt=attempt) from e

        content = getattr(response, "content", response)
        if not content:
            raise TransientOracleError("Oracle returned an empty response", attempt=attempt)
        return content

    def _report(self, status: OracleStatus, attempts: int, error: Optional[str]):
        if self.status_callback is None:
            return
        try:
            self.status_callback(status, attempts, error)
        except Exception as e:
            logger.error(f"Oracle status callback error: {e}")
