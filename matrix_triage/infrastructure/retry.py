"""Retry with exponential backoff for provider calls.

Transient failures (5xx, 429, network errors with no status) are retried
with a delay of ``base_delay * 2**attempt``. Any other 4xx stops the loop
immediately. Once the loop ends without success the last error is
classified into a user-facing ``LLMProviderError``, or re-raised unchanged
if it matches no category.

Sleeping uses ``asyncio.sleep`` so other coroutines keep running between
attempts.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from ..config import settings
from .error_classifier import (
    UNKNOWN_ERROR_MESSAGE,
    ClassifiedError,
    ErrorCategory,
    LLMProviderError,
    MissingCredentialsError,
    classify_error,
    extract_status_code,
    is_retryable_status,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    """Total number of attempts, including the first."""

    base_delay: float = 1.0
    """Delay in seconds after the first failed attempt."""

    exponential_base: float = 2.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")

    @classmethod
    def from_settings(cls) -> "RetryConfig":
        """Create config from application settings."""
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
        )


class RetryMetrics:
    """Counters for retry activity, reported by the health endpoint."""

    def __init__(self) -> None:
        self.total_retries = 0
        self.successful_retries = 0
        self.exhausted_retries = 0
        self.retries_by_provider: Dict[str, int] = defaultdict(int)

    def record_retry(self, provider: str, success: bool) -> None:
        """Record the outcome of a retry attempt."""
        self.total_retries += 1
        self.retries_by_provider[provider] += 1
        if success:
            self.successful_retries += 1

    def record_exhausted(self, provider: str) -> None:
        """Record a call that failed on every attempt."""
        self.exhausted_retries += 1
        self.retries_by_provider.setdefault(provider, 0)

    def get_summary(self) -> Dict[str, Any]:
        """Get metrics summary."""
        success_rate = (
            self.successful_retries / self.total_retries if self.total_retries else 0.0
        )
        return {
            "total_retries": self.total_retries,
            "successful_retries": self.successful_retries,
            "exhausted_retries": self.exhausted_retries,
            "success_rate": success_rate,
            "retries_by_provider": dict(self.retries_by_provider),
        }


def calculate_backoff_delay(
    attempt: int, base_delay: float, exponential_base: float = 2.0
) -> float:
    """Delay before the attempt following ``attempt`` (zero-based)."""
    return base_delay * (exponential_base**attempt)


class RetryExecutor:
    """Runs provider calls with retry, backoff and error classification."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        metrics: Optional[RetryMetrics] = None,
    ):
        self.config = config or RetryConfig.from_settings()
        self.metrics = metrics or RetryMetrics()

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        provider: str = "unknown",
    ) -> T:
        """Run ``operation`` until it succeeds or retrying is pointless.

        Args:
            operation: Zero-argument coroutine function performing one attempt
            provider: Provider name, for logging and classification

        Returns:
            The operation's result

        Raises:
            MissingCredentialsError: Propagated immediately, never retried
            LLMProviderError: The terminal failure, classified
            Exception: The terminal failure unchanged, when it is unclassified
        """
        last_error: Optional[BaseException] = None

        for attempt in range(self.config.max_attempts):
            try:
                result = await operation()
            except MissingCredentialsError:
                raise
            except Exception as e:
                last_error = e
                if attempt > 0:
                    self.metrics.record_retry(provider, success=False)

                status = extract_status_code(e)
                if not is_retryable_status(status):
                    logger.warning(
                        f"{provider} call failed with non-retryable status {status}: {e}",
                        extra={"provider": provider, "status_code": status},
                    )
                    break

                if attempt < self.config.max_attempts - 1:
                    delay = calculate_backoff_delay(
                        attempt, self.config.base_delay, self.config.exponential_base
                    )
                    logger.warning(
                        f"{provider} attempt {attempt + 1}/{self.config.max_attempts} "
                        f"failed, retrying in {delay:.2f}s: {e}",
                        extra={"provider": provider, "attempt": attempt + 1},
                    )
                    await asyncio.sleep(delay)
                else:
                    self.metrics.record_exhausted(provider)
                    logger.error(
                        f"{provider} call failed after {self.config.max_attempts} attempts: {e}",
                        extra={"provider": provider, "attempt": attempt + 1},
                    )
            else:
                if attempt > 0:
                    self.metrics.record_retry(provider, success=True)
                    logger.info(f"{provider} call succeeded on attempt {attempt + 1}")
                return result

        raise self._translate(last_error, provider)

    @staticmethod
    def _translate(error: Optional[BaseException], provider: str) -> BaseException:
        """Map the terminal error to the exception the caller should see."""
        if error is None:
            return LLMProviderError(
                ClassifiedError(
                    category=ErrorCategory.UNKNOWN,
                    provider=provider,
                    original_error="None",
                    message=UNKNOWN_ERROR_MESSAGE,
                ),
                original_exception=None,
            )

        classified = classify_error(error, provider)
        if classified is None:
            return error

        logger.error(
            f"Classified {provider} failure: {classified}",
            extra={"provider": provider, "status_code": classified.status_code},
        )
        translated = LLMProviderError(classified, original_exception=error)
        translated.__cause__ = error
        return translated
