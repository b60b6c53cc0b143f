"""Response parsing and validation.

Every provider payload goes through the same path, whether or not the
provider enforced a schema: strip markdown fences, parse JSON, check the
required keys, then build the typed result. Only the single-task question
list has a silent fallback; every other shape problem raises
``ResponseParseError``.
"""

import json
import logging
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from ..infrastructure.error_classifier import ResponseParseError
from ..models import AnalysisResult, BatchAnalysisResult, QuadrantType
from .prompts import QUESTIONS_PER_TASK

logger = logging.getLogger(__name__)

# Used when the model returns no questions, so the wizard is never blocked.
DEFAULT_QUESTIONS: List[str] = [
    "必须今天处理完吗？",
    "这是你的核心目标吗？",
    "不做会有严重后果吗？",
]

ANALYSIS_REQUIRED_FIELDS = [
    "isImportant",
    "isUrgent",
    "quadrantName",
    "reasoning",
    "steps",
    "advice",
]

BATCH_ANALYSIS_REQUIRED_FIELDS = ["taskId", "quadrantName", "reasoning", "advice"]


def strip_code_fences(content: str) -> str:
    """Remove a leading ```/```json fence and a trailing ``` fence."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_json_payload(raw: str) -> Any:
    """
    Parse a raw provider payload as JSON.

    Args:
        raw: Raw text returned by the provider

    Returns:
        The decoded JSON value

    Raises:
        ResponseParseError: If the payload is empty or not valid JSON
    """
    content = strip_code_fences(raw or "")
    if not content:
        raise ResponseParseError("Empty response from AI")
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        logger.debug(f"Unparseable response was: {content[:500]}")
        raise ResponseParseError(f"Failed to parse JSON response: {e}") from e


def _require_object(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _require_fields(data: Dict[str, Any], required: Sequence[str]) -> None:
    missing = [field for field in required if field not in data or data[field] is None]
    if missing:
        raise ResponseParseError(f"Missing required fields in response: {missing}")


def _require_bool(data: Dict[str, Any], field: str) -> bool:
    value = data[field]
    if not isinstance(value, bool):
        raise ResponseParseError(f"Field '{field}' must be a boolean, got {value!r}")
    return value


def parse_quadrant(value: Any) -> QuadrantType:
    """
    Convert a quadrant name to QuadrantType.

    Raises:
        ResponseParseError: If the value is not exactly one of the four names
    """
    if isinstance(value, str):
        try:
            return QuadrantType(value.strip())
        except ValueError:
            pass
    raise ResponseParseError(f"Unrecognized quadrant: {value!r}")


def _string_list(value: Any, field: str) -> List[str]:
    if not isinstance(value, list) or not all(
        isinstance(item, str) and item.strip() for item in value
    ):
        raise ResponseParseError(f"Field '{field}' must be a list of non-empty strings")
    return [item.strip() for item in value]


def parse_questions_response(raw: str) -> List[str]:
    """
    Parse a single-task question list.

    An absent or empty ``questions`` array falls back to DEFAULT_QUESTIONS.

    Args:
        raw: Raw provider payload

    Returns:
        Question texts in the order returned

    Raises:
        ResponseParseError: If the payload is not JSON, not an object, or the
            questions field is present but malformed
    """
    data = _require_object(parse_json_payload(raw))
    questions = data.get("questions")
    if not questions:
        logger.warning("Response contained no questions, using default question set")
        return list(DEFAULT_QUESTIONS)
    return _string_list(questions, "questions")


def parse_analysis_response(raw: str) -> AnalysisResult:
    """
    Parse a single-task classification.

    The importance/urgency flags are passed through as the model returned
    them; they are not re-derived from the quadrant.

    Args:
        raw: Raw provider payload

    Returns:
        AnalysisResult

    Raises:
        ResponseParseError: If any required field is missing or invalid
    """
    data = _require_object(parse_json_payload(raw))
    _require_fields(data, ANALYSIS_REQUIRED_FIELDS)

    if not isinstance(data["steps"], list):
        raise ResponseParseError("Field 'steps' must be a list")

    try:
        return AnalysisResult(
            quadrant=parse_quadrant(data["quadrantName"]),
            is_important=_require_bool(data, "isImportant"),
            is_urgent=_require_bool(data, "isUrgent"),
            reasoning=data["reasoning"],
            steps=data["steps"],
            advice=data["advice"],
        )
    except ValidationError as e:
        raise ResponseParseError(f"Invalid analysis response: {e.errors()[0]['msg']}") from e


def parse_batch_questions_response(
    raw: str, task_ids: Sequence[str]
) -> Dict[str, List[str]]:
    """
    Parse batch questions keyed by task id.

    Correlation is by exact id match. Tasks the model left out, or returned
    with other than QUESTIONS_PER_TASK questions, are omitted from the result
    (classification will refuse them until they are assessed); unknown keys
    are ignored.

    Args:
        raw: Raw provider payload
        task_ids: Correlation ids sent in the prompt

    Returns:
        Question texts keyed by task id, in input order

    Raises:
        ResponseParseError: If the payload is malformed or matches no task
    """
    data = _require_object(parse_json_payload(raw))

    unknown = [key for key in data if key not in task_ids]
    if unknown:
        logger.warning(f"Ignoring questions for unknown task ids: {unknown}")

    questions_map: Dict[str, List[str]] = {}
    for task_id in task_ids:
        value = data.get(task_id)
        if not value:
            logger.warning(f"No questions returned for task {task_id}")
            continue
        questions = _string_list(value, task_id)
        if len(questions) != QUESTIONS_PER_TASK:
            logger.warning(
                f"Expected {QUESTIONS_PER_TASK} questions for task {task_id}, "
                f"got {len(questions)}"
            )
            continue
        questions_map[task_id] = questions

    if not questions_map:
        raise ResponseParseError("Response contained questions for none of the tasks")
    return questions_map


def parse_batch_analysis_response(
    raw: str, task_ids: Sequence[str]
) -> List[BatchAnalysisResult]:
    """
    Parse batch classification results.

    Accepts ``{"results": [...]}`` or a bare array. Each element is matched
    back to its task by ``taskId``; elements for unknown ids and duplicates
    are dropped. Every task sent must come back, otherwise the whole batch
    fails so the caller can retry it.

    Args:
        raw: Raw provider payload
        task_ids: Correlation ids sent in the prompt

    Returns:
        Results in input task order

    Raises:
        ResponseParseError: If the payload is malformed, an element is
            missing a required field, or any task has no result
    """
    data = parse_json_payload(raw)
    if isinstance(data, dict) and isinstance(data.get("results"), list):
        items = data["results"]
    elif isinstance(data, list):
        items = data
    else:
        raise ResponseParseError("Expected a results array")

    by_id: Dict[str, BatchAnalysisResult] = {}
    for index, item in enumerate(items):
        item = _require_object(item)
        _require_fields(item, BATCH_ANALYSIS_REQUIRED_FIELDS)
        task_id = str(item["taskId"])
        if task_id not in task_ids:
            logger.warning(f"Ignoring result {index + 1} for unknown task id {task_id!r}")
            continue
        if task_id in by_id:
            logger.warning(f"Ignoring duplicate result for task {task_id}")
            continue
        try:
            by_id[task_id] = BatchAnalysisResult(
                task_id=task_id,
                quadrant=parse_quadrant(item["quadrantName"]),
                reasoning=item["reasoning"],
                advice=item["advice"],
            )
        except ValidationError as e:
            raise ResponseParseError(
                f"Invalid result for task {task_id}: {e.errors()[0]['msg']}"
            ) from e

    missing = [task_id for task_id in task_ids if task_id not in by_id]
    if missing:
        raise ResponseParseError(f"No classification returned for tasks: {missing}")

    return [by_id[task_id] for task_id in task_ids]
