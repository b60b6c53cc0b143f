"""Eisenhower matrix task triage backed by Gemini or SiliconFlow."""

from .models import (
    AIModel,
    AIProvider,
    AnalysisResult,
    BatchAnalysisResult,
    BatchTaskInput,
    ProviderConfig,
    QuadrantType,
    Question,
    Task,
    TaskInput,
    TaskStats,
)
from .triage import TaskTriager

__version__ = "0.1.0"

__all__ = [
    "AIModel",
    "AIProvider",
    "AnalysisResult",
    "BatchAnalysisResult",
    "BatchTaskInput",
    "ProviderConfig",
    "QuadrantType",
    "Question",
    "Task",
    "TaskInput",
    "TaskStats",
    "TaskTriager",
]
