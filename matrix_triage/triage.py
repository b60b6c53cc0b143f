"""Task triage orchestration.

This module implements the entry points the client calls to walk a task
through the Eisenhower matrix: generate assessment questions, classify from
the answers, and the batch equivalents. Each call runs
prompt build -> provider call (with retry) -> parse, and holds no state
between calls beyond retry counters.
"""

import logging
import time
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from .config import Settings, settings as default_settings
from .generation.parsers import (
    parse_analysis_response,
    parse_batch_analysis_response,
    parse_batch_questions_response,
    parse_questions_response,
)
from .generation.prompts import (
    QUESTIONS_PER_TASK,
    SYSTEM_PROMPT,
    build_batch_classification_prompt,
    build_batch_questions_prompt,
    build_classification_prompt,
    build_questions_prompt,
)
from .generation.schemas import (
    QUESTIONS_SCHEMA,
    analysis_schema,
    batch_analysis_schema,
    batch_questions_schema,
)
from .infrastructure.error_classifier import (
    BatchSizeExceededError,
    IncompleteAssessmentError,
    InvalidBatchError,
)
from .infrastructure.retry import RetryConfig, RetryExecutor, RetryMetrics
from .models import (
    AnalysisResult,
    AnswerMap,
    BatchAnalysisResult,
    BatchTaskInput,
    ProviderConfig,
    Question,
    TaskInput,
)
from .providers.base import BaseLLMProvider, CompletionRequest
from .providers.factory import create_provider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderConfig, Settings], BaseLLMProvider]


def _question_texts(questions: Sequence[Union[Question, str]]) -> List[str]:
    """Question texts from Question objects or plain strings."""
    return [q.text if isinstance(q, Question) else q for q in questions]


def _is_fully_answered(
    questions: Sequence[str],
    answers: Optional[AnswerMap],
    expected_count: Optional[int] = None,
) -> bool:
    """Whether every question has a yes/no answer keyed by its index.

    With ``expected_count`` the task must also carry exactly that many questions.
    """
    if not questions or not answers:
        return False
    if expected_count is not None and len(questions) != expected_count:
        return False
    return all(isinstance(answers.get(str(i)), bool) for i in range(len(questions)))


class TaskTriager:
    """Orchestrates question generation and quadrant classification.

    A provider is built fresh for every call from the caller's
    ``ProviderConfig``, so configuration changes take effect immediately and
    concurrent calls share nothing but the retry counters.
    """

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        retry_config: Optional[RetryConfig] = None,
        metrics: Optional[RetryMetrics] = None,
        provider_factory: ProviderFactory = create_provider,
    ):
        """Initialize the triager.

        Args:
            app_settings: Service settings (default: global settings)
            retry_config: Retry behavior (default: from settings)
            metrics: Retry counters (default: fresh instance)
            provider_factory: Builds a provider from a config
        """
        self.settings = app_settings or default_settings
        self.executor = RetryExecutor(
            retry_config
            or RetryConfig(
                max_attempts=self.settings.retry_max_attempts,
                base_delay=self.settings.retry_base_delay,
            ),
            metrics,
        )
        self._provider_factory = provider_factory

    @property
    def metrics(self) -> RetryMetrics:
        """Retry counters for this triager."""
        return self.executor.metrics

    async def _call(
        self,
        config: ProviderConfig,
        prompt: str,
        schema: Dict,
        operation: str,
    ) -> str:
        # Raises MissingCredentialsError before any network call
        provider = self._provider_factory(config, self.settings)
        provider_name = provider.get_provider_name()
        request = CompletionRequest(
            prompt=prompt,
            response_schema=schema,
            temperature=config.creativity,
            system_prompt=SYSTEM_PROMPT,
        )

        start_time = time.perf_counter()
        try:
            raw = await self.executor.execute(
                lambda: provider.complete(request), provider=provider_name
            )
        finally:
            await provider.close()
        latency = time.perf_counter() - start_time
        logger.info(
            f"{operation} completed via {provider_name} ({provider.model}) in {latency:.2f}s",
            extra={"provider": provider_name, "operation": operation},
        )
        return raw

    def _check_batch(self, tasks: Sequence[BatchTaskInput]) -> List[str]:
        """Enforce the batch ceiling and unique ids; return the ids in order."""
        if len(tasks) > self.settings.batch_max_tasks:
            raise BatchSizeExceededError(len(tasks), self.settings.batch_max_tasks)
        task_ids = [task.id for task in tasks]
        if len(set(task_ids)) != len(task_ids):
            raise InvalidBatchError("批量任务 ID 重复，请重新开始批量分析。")
        return task_ids

    async def generate_questions(
        self, task: TaskInput, config: ProviderConfig
    ) -> List[Question]:
        """
        Generate yes/no assessment questions for one task.

        Args:
            task: The task to assess
            config: Provider configuration

        Returns:
            Questions with ids "0", "1", ... in the order the model returned them

        Raises:
            MissingCredentialsError: No API key available (not retried)
            LLMProviderError: Classified provider failure
            ResponseParseError: Malformed payload (not retried)
        """
        prompt = build_questions_prompt(task, config)
        raw = await self._call(config, prompt, QUESTIONS_SCHEMA, "generate_questions")
        texts = parse_questions_response(raw)
        return [Question(id=str(index), text=text) for index, text in enumerate(texts)]

    async def classify_task(
        self,
        task: TaskInput,
        questions: Sequence[Union[Question, str]],
        answers: AnswerMap,
        config: ProviderConfig,
    ) -> AnalysisResult:
        """
        Classify one task into a quadrant from its answered questions.

        Args:
            task: The task being classified
            questions: Questions as generated (Question objects or texts)
            answers: Answers keyed by question id ("0", "1", ...)
            config: Provider configuration

        Returns:
            AnalysisResult

        Raises:
            IncompleteAssessmentError: A question has no answer (no network call)
            MissingCredentialsError: No API key available
            LLMProviderError: Classified provider failure
            ResponseParseError: Malformed payload
        """
        texts = _question_texts(questions)
        if not _is_fully_answered(texts, answers):
            raise IncompleteAssessmentError([task.name])

        prompt = build_classification_prompt(task, texts, answers, config)
        raw = await self._call(
            config, prompt, analysis_schema(config.bilingual_output), "classify_task"
        )
        result = parse_analysis_response(raw)
        logger.info(f"Task '{task.name}' classified as {result.quadrant.value}")
        return result

    async def generate_batch_questions(
        self, tasks: Sequence[BatchTaskInput], config: ProviderConfig
    ) -> Dict[str, List[str]]:
        """
        Generate assessment questions for several tasks in one call.

        Args:
            tasks: Batch tasks with unique correlation ids
            config: Provider configuration

        Returns:
            Question texts keyed by task id. Tasks the model skipped are absent.

        Raises:
            BatchSizeExceededError: More tasks than the batch ceiling (checked
                before anything else)
            InvalidBatchError: Duplicate correlation ids
            MissingCredentialsError: No API key available
            LLMProviderError: Classified provider failure
            ResponseParseError: Malformed payload
        """
        task_ids = self._check_batch(tasks)
        if not tasks:
            return {}

        prompt = build_batch_questions_prompt(tasks, config)
        raw = await self._call(
            config,
            prompt,
            batch_questions_schema(task_ids),
            "generate_batch_questions",
        )
        questions_map = parse_batch_questions_response(raw, task_ids)
        logger.info(
            f"Generated questions for {len(questions_map)}/{len(tasks)} batch tasks",
            extra={"task_count": len(tasks)},
        )
        return questions_map

    async def classify_batch(
        self,
        tasks: Sequence[BatchTaskInput],
        questions_map: Mapping[str, List[str]],
        answers_map: Mapping[str, AnswerMap],
        config: ProviderConfig,
    ) -> List[BatchAnalysisResult]:
        """
        Classify every task of a batch in a single provider call.

        Args:
            tasks: Batch tasks with unique correlation ids
            questions_map: Question texts keyed by task id
            answers_map: Answers keyed by task id, then question index
            config: Provider configuration

        Returns:
            Results in input task order, correlated by taskId

        Raises:
            BatchSizeExceededError: More tasks than the batch ceiling
            InvalidBatchError: Duplicate correlation ids
            IncompleteAssessmentError: A task lacks its QUESTIONS_PER_TASK
                questions or any of their answers (no network call)
            MissingCredentialsError: No API key available
            LLMProviderError: Classified provider failure
            ResponseParseError: Malformed payload
        """
        task_ids = self._check_batch(tasks)
        if not tasks:
            return []

        incomplete = [
            task.id
            for task in tasks
            if not _is_fully_answered(
                questions_map.get(task.id, []),
                answers_map.get(task.id),
                expected_count=QUESTIONS_PER_TASK,
            )
        ]
        if incomplete:
            raise IncompleteAssessmentError(incomplete)

        prompt = build_batch_classification_prompt(
            tasks, questions_map, answers_map, config
        )
        raw = await self._call(
            config,
            prompt,
            batch_analysis_schema(config.bilingual_output),
            "classify_batch",
        )
        results = parse_batch_analysis_response(raw, task_ids)
        logger.info(
            f"Classified {len(results)}/{len(tasks)} batch tasks",
            extra={"task_count": len(tasks)},
        )
        return results

    async def test_connection(self, config: ProviderConfig) -> bool:
        """
        Check credentials and reachability with one minimal completion.

        Never raises: any failure is logged and reported as False.

        Args:
            config: Provider configuration

        Returns:
            True if the provider answered
        """
        provider = None
        try:
            provider = self._provider_factory(config, self.settings)
            await provider.ping()
            return True
        except Exception as e:
            logger.error(
                f"{config.ai_provider.value} connection test failed: {e}",
                extra={"provider": config.ai_provider.value},
            )
            return False
        finally:
            if provider is not None:
                await provider.close()
