"""Error classification for LLM API failures.

The two providers fail in different shapes (SDK exceptions carrying an
integer code, raw HTTP status errors, string status markers). This module
normalizes all of them into a single taxonomy with user-facing messages, so
callers never branch on provider identity to interpret a failure.
"""

import re
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Categories of triage errors."""

    MISSING_CREDENTIALS = "missing_credentials"  # No API key available
    RATE_LIMIT = "rate_limit"  # 429 / quota exhausted
    AUTHENTICATION = "authentication"  # 401/403, invalid or unprivileged key
    INVALID_REQUEST = "invalid_request"  # 400-class, malformed input
    SERVER_ERROR = "server_error"  # Provider 5xx
    PARSE_ERROR = "parse_error"  # Payload did not match the expected shape
    UNKNOWN = "unknown"  # Unclassified errors


# User-facing messages. These are rendered directly by the client.
MISSING_GEMINI_KEY_MESSAGE = "未检测到 API Key。请在设置中输入您的 Google Gemini API Key。"
MISSING_SILICONFLOW_KEY_MESSAGE = "未检测到 SiliconFlow API Key。请在设置中输入您的 SiliconFlow API Key。"
RATE_LIMIT_MESSAGE = (
    "API 调用频率受限 (429)。免费版 API Key 每分钟请求次数有限，或您的配额已用尽。"
    "请休息几分钟后再试。"
)
AUTHENTICATION_MESSAGE = (
    "API Key 无效或无权限 (401/403)。请检查设置中配置的 Key 是否正确，"
    "或是否已为对应项目开通服务。"
)
INVALID_REQUEST_MESSAGE = "请求格式错误 (400)。请检查输入内容是否过长或包含特殊字符。"
SERVER_ERROR_MESSAGE = "AI 服务端暂时不可用 (5xx)。请稍后重试。"
UNKNOWN_ERROR_MESSAGE = "调用 AI 服务时发生未知错误。"
PARSE_ERROR_MESSAGE = "AI 返回的数据格式无法解析，请重试。"


class ClassifiedError:
    """A classified API error with category and user-facing message."""

    def __init__(
        self,
        category: ErrorCategory,
        provider: str,
        original_error: str,
        message: str,
        status_code: Optional[int] = None,
        is_retryable: bool = False,
    ):
        """Initialize classified error.

        Args:
            category: Error category
            provider: LLM provider name (gemini, siliconflow)
            original_error: Original error type name
            message: Human-readable error message
            status_code: HTTP-like status code, if one was found
            is_retryable: Whether retrying later may succeed
        """
        self.category = category
        self.provider = provider
        self.original_error = original_error
        self.message = message
        self.status_code = status_code
        self.is_retryable = is_retryable

    def __str__(self) -> str:
        """String representation of classified error."""
        return f"{self.provider}: {self.category.value} - {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "category": self.category.value,
            "provider": self.provider,
            "original_error": self.original_error,
            "message": self.message,
            "status_code": self.status_code,
            "is_retryable": self.is_retryable,
        }


class TriageError(Exception):
    """Base class for errors surfaced to triage callers.

    Attributes:
        category: Error category
        message: User-facing message
    """

    category = ErrorCategory.UNKNOWN

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MissingCredentialsError(TriageError):
    """No API key is available for the selected provider."""

    category = ErrorCategory.MISSING_CREDENTIALS

    def __init__(self, message: str, provider: str):
        self.provider = provider
        super().__init__(message)


class LLMProviderError(TriageError):
    """Exception raised after a provider failure has been classified.

    Attributes:
        classified_error: The classified error with category and message
        original_exception: The original exception that was raised
    """

    def __init__(
        self,
        classified_error: ClassifiedError,
        original_exception: Optional[BaseException],
    ):
        self.classified_error = classified_error
        self.original_exception = original_exception
        self.category = classified_error.category
        super().__init__(classified_error.message)


class ResponseParseError(TriageError, ValueError):
    """The provider call succeeded but its payload did not match the expected shape."""

    category = ErrorCategory.PARSE_ERROR

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{PARSE_ERROR_MESSAGE} ({detail})")


class InvalidBatchError(TriageError, ValueError):
    """A batch request is malformed (e.g. duplicate correlation ids)."""

    category = ErrorCategory.INVALID_REQUEST


class BatchSizeExceededError(InvalidBatchError):
    """A batch call exceeded the task ceiling."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"批量分析最多支持 {limit} 个任务，当前为 {size} 个。")


class IncompleteAssessmentError(TriageError, ValueError):
    """Classification was requested before every question was answered.

    Attributes:
        task_ids: Tasks (batch ids, or the task name for single-task calls)
            with missing questions or answers
    """

    category = ErrorCategory.INVALID_REQUEST

    def __init__(self, task_ids: list[str]):
        self.task_ids = task_ids
        super().__init__(
            f"以下任务的问题尚未全部回答，无法进行分析: {', '.join(task_ids)}"
        )


# Markers found in provider error messages or status strings
RATE_LIMIT_PATTERNS = [
    r"resource_exhausted",
    r"quota",
    r"rate.*limit",
    r"too.*many.*requests",
    r"\b429\b",
]

AUTH_PATTERNS = [
    r"permission_denied",
    r"api.*key.*not.*valid",
    r"invalid.*api.*key",
    r"unauthenticated",
]

INVALID_REQUEST_PATTERNS = [
    r"invalid_argument",
]


def _as_status(value: Any) -> Optional[int]:
    """Return value as an HTTP-like status code, or None if it isn't one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def extract_status_code(error: BaseException) -> Optional[int]:
    """Find an HTTP-like status code on an exception.

    Checked in priority order: an explicit ``status_code``/``status`` field,
    the nested ``response.status_code``/``response.status``, then a generic
    ``code`` field. Non-integer values (e.g. ``"RESOURCE_EXHAUSTED"``) are
    skipped.

    Args:
        error: The exception to inspect

    Returns:
        The status code, or None if none is present
    """
    for attr in ("status_code", "status"):
        status = _as_status(getattr(error, attr, None))
        if status is not None:
            return status

    response = getattr(error, "response", None)
    if response is not None:
        for attr in ("status_code", "status"):
            status = _as_status(getattr(response, attr, None))
            if status is not None:
                return status

    return _as_status(getattr(error, "code", None))


def is_retryable_status(status_code: Optional[int]) -> bool:
    """Whether a failure with this status should be retried.

    Every 4xx except 429 is permanent, including 401 and 403.
    """
    if status_code is None:
        return True
    return not (400 <= status_code < 500 and status_code != 429)


def _error_text(error: BaseException) -> str:
    """Message text plus any string status marker, lowercased."""
    parts = [str(error)]
    status = getattr(error, "status", None)
    if isinstance(status, str):
        parts.append(status)
    return " ".join(parts).lower()


def _match_patterns(text: str, patterns: list[str]) -> bool:
    """Check if text matches any of the given regex patterns."""
    return any(re.search(pattern, text, re.IGNORECASE) for pattern in patterns)


def classify_error(error: BaseException, provider: str) -> Optional[ClassifiedError]:
    """Classify a terminal provider failure.

    Args:
        error: The last exception seen by the retry loop
        provider: Provider name (gemini, siliconflow)

    Returns:
        ClassifiedError, or None when the error matches no category and must
        be propagated unchanged
    """
    status = extract_status_code(error)
    text = _error_text(error)
    error_type = type(error).__name__

    if status == 429 or _match_patterns(text, RATE_LIMIT_PATTERNS):
        return ClassifiedError(
            category=ErrorCategory.RATE_LIMIT,
            provider=provider,
            original_error=error_type,
            message=RATE_LIMIT_MESSAGE,
            status_code=status,
            is_retryable=True,
        )

    if status in (401, 403) or _match_patterns(text, AUTH_PATTERNS):
        return ClassifiedError(
            category=ErrorCategory.AUTHENTICATION,
            provider=provider,
            original_error=error_type,
            message=AUTHENTICATION_MESSAGE,
            status_code=status,
        )

    if status == 400 or _match_patterns(text, INVALID_REQUEST_PATTERNS):
        return ClassifiedError(
            category=ErrorCategory.INVALID_REQUEST,
            provider=provider,
            original_error=error_type,
            message=INVALID_REQUEST_MESSAGE,
            status_code=status,
        )

    if status is not None and status >= 500:
        return ClassifiedError(
            category=ErrorCategory.SERVER_ERROR,
            provider=provider,
            original_error=error_type,
            message=SERVER_ERROR_MESSAGE,
            status_code=status,
            is_retryable=True,
        )

    return None
