"""
Retry, timeout and fallback policy around the model extractor.

Each attempt is bounded by a timeout; failed attempts are retried with
bounded exponential backoff using tenacity. When the attempts are used up
the deterministic keyword extractor takes over so the session is never
abandoned because the model is down.
"""

import asyncio
import logging
from typing import Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from travel_agents.shared.errors import ExtractionError, OperationTimeoutError
from travel_agents.planning.extraction.base import (
    ExtractionRequest,
    ExtractionResult,
    TripInfoExtractor,
)


logger = logging.getLogger(__name__)


class ResilientExtractor:
    """
    Wraps a primary extractor with timeout, retry and fallback.

    Attributes:
        primary: Usually the ModelTripInfoExtractor
        fallback: Deterministic extractor used after retries are exhausted,
            or None to surface the failure as ExtractionError
        timeout_seconds: Bound on a single attempt
        max_attempts: Attempts before giving up on the primary
        retry_min_wait / retry_max_wait: Backoff bounds in seconds
    """

    def __init__(
        self,
        primary: TripInfoExtractor,
        fallback: Optional[TripInfoExtractor] = None,
        timeout_seconds: float = 20,
        max_attempts: int = 3,
        retry_min_wait: float = 1,
        retry_max_wait: float = 8,
    ):
        self.primary = primary
        self.fallback = fallback
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait

    async def _attempt(self, request: ExtractionRequest) -> ExtractionResult:
        try:
            return await asyncio.wait_for(
                self.primary.extract(request), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise OperationTimeoutError(
                f"Extraction timed out after {self.timeout_seconds}s"
            ) from e

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Extraction attempt {retry_state.attempt_number} failed, retrying | error={error}"
        )

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """
        Extract with the primary, falling back once retries are exhausted.

        Raises:
            ExtractionError: If every attempt failed and no fallback is set
        """
        retryer = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=1, min=self.retry_min_wait, max=self.retry_max_wait
            ),
            retry=retry_if_exception_type((ExtractionError, OperationTimeoutError)),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            return await retryer(self._attempt, request)
        except (ExtractionError, OperationTimeoutError) as e:
            if self.fallback is None:
                raise ExtractionError(
                    f"Extraction failed after {self.max_attempts} attempts: {e}"
                ) from e
            logger.warning(
                f"Extraction failed after {self.max_attempts} attempts, "
                f"using keyword fallback | error={e}"
            )
            return await self.fallback.extract(request)
