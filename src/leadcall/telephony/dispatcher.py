"""
Call dispatcher: one provider wrapped in bounded exponential-backoff retry.

Attempts are counted from 1 and the wait after attempt n is
base_delay * 2**n (0.5 s, then 1.0 s with the defaults). The wait goes
through an injectable async sleep, so an enclosing cancel scope aborts it.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import anyio

from leadcall.shared.exceptions import ConfigurationError
from leadcall.shared.logging import get_logger
from leadcall.telephony.interface import CallProvider, CallRequest, CallResult

logger = get_logger(__name__)

MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 0.25

SleepFn = Callable[[float], Awaitable[None]]


class CallDispatcher:
    """Places calls through a provider, retrying transient failures."""

    def __init__(
        self,
        provider: CallProvider,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY_SECONDS,
        sleep: SleepFn = anyio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._provider = provider
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep = sleep

    @property
    def provider(self) -> CallProvider:
        return self._provider

    def backoff_delay(self, attempt: int) -> float:
        return self._base_delay * (2**attempt)

    async def dispatch(self, request: CallRequest) -> CallResult:
        """Create the call, retrying up to the attempt ceiling.

        ConfigurationError is raised immediately: retrying cannot fix it.
        Any other error is retried and the last one re-raised once the
        ceiling is reached.
        """
        attempt = 1
        while True:
            try:
                return await self._provider.create_call(request)
            except ConfigurationError:
                logger.error(
                    "Call provider misconfigured; not retrying",
                    extra={"provider": self._provider.name, "lead_id": request.context.lead_id},
                )
                raise
            except Exception as e:
                if attempt >= self._max_attempts:
                    logger.error(
                        "Call dispatch failed after all attempts",
                        extra={
                            "provider": self._provider.name,
                            "lead_id": request.context.lead_id,
                            "attempts": attempt,
                            "error": str(e),
                        },
                    )
                    raise

                delay = self.backoff_delay(attempt)
                logger.warning(
                    "Call dispatch failed, retrying",
                    extra={
                        "provider": self._provider.name,
                        "lead_id": request.context.lead_id,
                        "attempt": attempt,
                        "max_attempts": self._max_attempts,
                        "delay_seconds": delay,
                        "error": str(e),
                    },
                )
                await self._sleep(delay)
                attempt += 1
