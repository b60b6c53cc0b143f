"""Retry and error-classification infrastructure for provider calls."""

from .error_classifier import (
    BatchSizeExceededError,
    ClassifiedError,
    ErrorCategory,
    IncompleteAssessmentError,
    InvalidBatchError,
    LLMProviderError,
    MissingCredentialsError,
    ResponseParseError,
    TriageError,
    classify_error,
    extract_status_code,
)
from .retry import RetryConfig, RetryExecutor, RetryMetrics, calculate_backoff_delay

__all__ = [
    "BatchSizeExceededError",
    "ClassifiedError",
    "ErrorCategory",
    "IncompleteAssessmentError",
    "InvalidBatchError",
    "LLMProviderError",
    "MissingCredentialsError",
    "ResponseParseError",
    "RetryConfig",
    "RetryExecutor",
    "RetryMetrics",
    "TriageError",
    "calculate_backoff_delay",
    "classify_error",
    "extract_status_code",
]
