"""JSON response schemas for structured completions.

Gemini enforces these server-side; SiliconFlow receives them as format
instructions in the system message.
"""

from typing import Any, Dict, Sequence

from ..models import QuadrantType

QUADRANT_VALUES = [quadrant.value for quadrant in QuadrantType]

_STRING = {"type": "STRING"}

_BILINGUAL_TEXT = {
    "type": "OBJECT",
    "properties": {"cn": _STRING, "en": _STRING},
    "required": ["cn", "en"],
}

QUESTIONS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "questions": {
            "type": "ARRAY",
            "items": _STRING,
            "description": "3个极简短的是非题，中文，不超过15字",
        }
    },
    "required": ["questions"],
}


def _text_schema(bilingual: bool) -> Dict[str, Any]:
    return _BILINGUAL_TEXT if bilingual else _STRING


def analysis_schema(bilingual: bool = True) -> Dict[str, Any]:
    """Schema for a single-task classification."""
    text = _text_schema(bilingual)
    return {
        "type": "OBJECT",
        "properties": {
            "isImportant": {"type": "BOOLEAN"},
            "isUrgent": {"type": "BOOLEAN"},
            "quadrantName": {"type": "STRING", "enum": QUADRANT_VALUES},
            "reasoning": text,
            "steps": {
                "type": "ARRAY",
                "items": text,
                "description": "3-5个可执行步骤",
            },
            "advice": text,
        },
        "required": [
            "isImportant",
            "isUrgent",
            "quadrantName",
            "reasoning",
            "steps",
            "advice",
        ],
    }


def batch_questions_schema(task_ids: Sequence[str]) -> Dict[str, Any]:
    """Schema for batch questions: one required array property per task id."""
    return {
        "type": "OBJECT",
        "properties": {
            task_id: {"type": "ARRAY", "items": _STRING} for task_id in task_ids
        },
        "required": list(task_ids),
    }


def batch_analysis_schema(bilingual: bool = True) -> Dict[str, Any]:
    """Schema for batch classification results."""
    text = _text_schema(bilingual)
    return {
        "type": "OBJECT",
        "properties": {
            "results": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "taskId": _STRING,
                        "quadrantName": {"type": "STRING", "enum": QUADRANT_VALUES},
                        "reasoning": text,
                        "advice": text,
                    },
                    "required": ["taskId", "quadrantName", "reasoning", "advice"],
                },
            }
        },
        "required": ["results"],
    }
