"""
Cooperative cancellation for translation runs.

A CancellationToken is created per job and threaded through the batch loop.
The loop checks it before every batch; the translation client also races it
against the in-flight oracle call and the retry sleep so a cancel does not
have to wait for either to finish.
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from config.logging_config import get_logger

from ..errors import TranslationCancelledError

logger = get_logger(__name__)


class CancellationToken:
    """
    One-shot cancellation signal.

    Usage:
        token = CancellationToken()
        ...
        token.raise_if_cancelled()           # checkpoint
        text = await token.run(oracle_call)  # preemptible await
        ...
        token.cancel("user request")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None
        self.cancelled_at: Optional[datetime] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "Translation cancelled"):
        if self._event.is_set():
            return
        self.reason = reason
        self.cancelled_at = datetime.now()
        self._event.set()
        logger.debug(f"Cancellation requested: {reason}")

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise TranslationCancelledError(self.reason or "Translation cancelled")

    async def wait(self):
        await self._event.wait()

    async def run(self, awaitable: Awaitable[Any]) -> Any:
        """
        Await ``awaitable`` unless the token fires first.

        On cancellation the pending work is cancelled and
        TranslationCancelledError is raised.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work.done():
            return work.result()

        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        raise TranslationCancelledError(self.reason or "Translation cancelled")

    async def sleep(
        self,
        delay: float,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Sleep that wakes up early, raising, when the token fires."""
        await self.run(sleep(delay))
