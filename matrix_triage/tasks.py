"""Task records built from triage results, and summary statistics."""

import logging
import time
import uuid
from typing import Dict, List, Optional, Sequence

from .models import (
    AnalysisResult,
    BatchAnalysisResult,
    BatchTaskInput,
    QuadrantType,
    Task,
    TaskInput,
    TaskStats,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def _new_task_id() -> str:
    """Persistent task id, distinct from any batch correlation id."""
    return str(uuid.uuid4())


def build_task(
    task_input: TaskInput,
    analysis: AnalysisResult,
    created_at: Optional[int] = None,
) -> Task:
    """
    Materialize a single-task classification as a Task record.

    Args:
        task_input: The task as entered
        analysis: Classification result for the task
        created_at: Creation time in epoch milliseconds (default: now)

    Returns:
        A new, uncompleted Task with a fresh id
    """
    return Task(
        id=_new_task_id(),
        name=task_input.name,
        estimated_time=task_input.estimated_time,
        created_at=created_at if created_at is not None else _now_ms(),
        quadrant=analysis.quadrant,
        is_important=analysis.is_important,
        is_urgent=analysis.is_urgent,
        reasoning=analysis.reasoning,
        steps=list(analysis.steps),
        advice=analysis.advice,
    )


def build_batch_tasks(
    batch_inputs: Sequence[BatchTaskInput],
    batch_results: Sequence[BatchAnalysisResult],
    created_at: Optional[int] = None,
) -> List[Task]:
    """
    Materialize batch classification results as Task records.

    Results are matched to inputs by correlation id. Importance and urgency
    come from the quadrant, since batch results carry no flags. The
    correlation id is not reused as the persistent id.

    Args:
        batch_inputs: Tasks as entered, with correlation ids
        batch_results: Classification results keyed by ``task_id``
        created_at: Creation time in epoch milliseconds (default: now)

    Returns:
        Tasks in input order; inputs without a result are skipped
    """
    timestamp = created_at if created_at is not None else _now_ms()
    results_by_id: Dict[str, BatchAnalysisResult] = {
        result.task_id: result for result in batch_results
    }

    tasks = []
    for task_input in batch_inputs:
        result = results_by_id.get(task_input.id)
        if result is None:
            logger.warning(f"No result for batch task {task_input.id}, skipping")
            continue
        is_important, is_urgent = result.quadrant.flags
        tasks.append(
            Task(
                id=_new_task_id(),
                name=task_input.name,
                estimated_time=task_input.estimated_time,
                created_at=timestamp,
                quadrant=result.quadrant,
                is_important=is_important,
                is_urgent=is_urgent,
                reasoning=result.reasoning,
                advice=result.advice,
            )
        )
    return tasks


def complete_task(task: Task, completed: bool = True, at: Optional[int] = None) -> Task:
    """Return a copy of the task with its completion state set."""
    if completed:
        stamp = at if at is not None else _now_ms()
        return task.model_copy(update={"is_completed": True, "completed_at": stamp})
    return task.model_copy(update={"is_completed": False, "completed_at": None})


def summarize_tasks(tasks: Sequence[Task]) -> TaskStats:
    """
    Compute completion and per-quadrant counts.

    All four quadrants are always present in ``by_quadrant``.
    """
    by_quadrant = {quadrant: 0 for quadrant in QuadrantType}
    completed = 0
    for task in tasks:
        by_quadrant[task.quadrant] += 1
        if task.is_completed:
            completed += 1

    total = len(tasks)
    return TaskStats(
        total=total,
        completed=completed,
        completion_rate=completed / total if total else 0.0,
        by_quadrant=by_quadrant,
    )
