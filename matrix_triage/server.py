#!/usr/bin/env python3
"""
HTTP surface for the browser client.

Exposes the triage entry points as JSON endpoints. Provider configuration
travels with every request, so the service holds no per-user state.

Run with:
  python -m matrix_triage.server
"""
import logging
from typing import Dict, List, Union

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .infrastructure.error_classifier import ErrorCategory, TriageError
from .logging_config import setup_logging
from .models import (
    AnalysisResult,
    AnswerMap,
    BatchAnalysisResult,
    BatchTaskInput,
    CamelModel,
    ProviderConfig,
    Question,
    Task,
    TaskInput,
)
from .tasks import build_batch_tasks
from .triage import TaskTriager

logger = logging.getLogger(__name__)

app = FastAPI(title="Eisenhower Matrix Triage Service")

# Categories without an entry fall through to 500
STATUS_BY_CATEGORY: Dict[ErrorCategory, int] = {
    ErrorCategory.MISSING_CREDENTIALS: 401,
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.RATE_LIMIT: 429,
    ErrorCategory.INVALID_REQUEST: 400,
    ErrorCategory.PARSE_ERROR: 502,
    ErrorCategory.SERVER_ERROR: 503,
}

_triager = TaskTriager()


def get_triager() -> TaskTriager:
    """Dependency returning the shared triager."""
    return _triager


class QuestionsRequest(CamelModel):
    """Request model for single-task question generation."""

    task: TaskInput
    config: ProviderConfig = ProviderConfig()


class QuestionsResponse(CamelModel):
    questions: List[Question]


class ClassifyRequest(CamelModel):
    """Request model for single-task classification."""

    task: TaskInput
    questions: List[Union[Question, str]]
    answers: AnswerMap
    config: ProviderConfig = ProviderConfig()


class BatchQuestionsRequest(CamelModel):
    """Request model for batch question generation."""

    tasks: List[BatchTaskInput]
    config: ProviderConfig = ProviderConfig()


class BatchQuestionsResponse(CamelModel):
    questions: Dict[str, List[str]]


class BatchClassifyRequest(CamelModel):
    """Request model for batch classification."""

    tasks: List[BatchTaskInput]
    questions: Dict[str, List[str]]
    answers: Dict[str, AnswerMap]
    config: ProviderConfig = ProviderConfig()


class BatchClassifyResponse(CamelModel):
    results: List[BatchAnalysisResult]
    tasks: List[Task]


class ConnectionTestRequest(CamelModel):
    config: ProviderConfig


class ConnectionTestResponse(CamelModel):
    ok: bool


@app.exception_handler(TriageError)
async def triage_error_handler(request: Request, exc: TriageError) -> JSONResponse:
    """Render triage failures with their user-facing message."""
    status_code = STATUS_BY_CATEGORY.get(exc.category, 500)
    logger.warning(
        f"{request.url.path} failed ({exc.category.value}): {exc.message}",
        extra={"status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "category": exc.category.value},
    )


@app.get("/health")
async def health_check(triager: TaskTriager = Depends(get_triager)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "matrix-triage",
        "retries": triager.metrics.get_summary(),
    }


@app.post(
    "/questions", response_model=QuestionsResponse, response_model_by_alias=True
)
async def generate_questions(
    request: QuestionsRequest, triager: TaskTriager = Depends(get_triager)
):
    """Generate assessment questions for one task."""
    questions = await triager.generate_questions(request.task, request.config)
    return QuestionsResponse(questions=questions)


@app.post("/classify", response_model=AnalysisResult, response_model_by_alias=True)
async def classify_task(
    request: ClassifyRequest, triager: TaskTriager = Depends(get_triager)
):
    """Classify one task from its answered questions."""
    return await triager.classify_task(
        request.task, request.questions, request.answers, request.config
    )


@app.post(
    "/batch/questions",
    response_model=BatchQuestionsResponse,
    response_model_by_alias=True,
)
async def generate_batch_questions(
    request: BatchQuestionsRequest, triager: TaskTriager = Depends(get_triager)
):
    """Generate assessment questions for several tasks in one call."""
    questions = await triager.generate_batch_questions(request.tasks, request.config)
    return BatchQuestionsResponse(questions=questions)


@app.post(
    "/batch/classify",
    response_model=BatchClassifyResponse,
    response_model_by_alias=True,
)
async def classify_batch(
    request: BatchClassifyRequest, triager: TaskTriager = Depends(get_triager)
):
    """Classify a batch and materialize the results as tasks."""
    results = await triager.classify_batch(
        request.tasks, request.questions, request.answers, request.config
    )
    return BatchClassifyResponse(
        results=results, tasks=build_batch_tasks(request.tasks, results)
    )


@app.post(
    "/connection-test",
    response_model=ConnectionTestResponse,
    response_model_by_alias=True,
)
async def connection_test(
    request: ConnectionTestRequest, triager: TaskTriager = Depends(get_triager)
):
    """Verify the configured provider answers."""
    ok = await triager.test_connection(request.config)
    return ConnectionTestResponse(ok=ok)


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    uvicorn.run(app, host=settings.host, port=settings.port)
