"""Data models for task triage.

Wire names are camelCase (the browser client's shape); every model also
accepts snake_case field names from Python callers.
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class QuadrantType(str, Enum):
    """Eisenhower matrix quadrants."""

    DO = "Do"  # Important & Urgent
    PLAN = "Plan"  # Important & Not Urgent
    DELEGATE = "Delegate"  # Not Important & Urgent
    ELIMINATE = "Eliminate"  # Not Important & Not Urgent

    @property
    def flags(self) -> Tuple[bool, bool]:
        """(is_important, is_urgent) pair that defines this quadrant."""
        return _QUADRANT_FLAGS[self]

    @property
    def label(self) -> "BilingualText":
        """Display label for the quadrant."""
        return _QUADRANT_LABELS[self]

    @classmethod
    def from_flags(cls, is_important: bool, is_urgent: bool) -> "QuadrantType":
        """Look up the quadrant for an importance/urgency pair."""
        by_flags = {flags: quadrant for quadrant, flags in _QUADRANT_FLAGS.items()}
        return by_flags[(bool(is_important), bool(is_urgent))]


class AIProvider(str, Enum):
    """Supported LLM backends."""

    GEMINI = "gemini"
    SILICONFLOW = "siliconflow"


class AIModel(str, Enum):
    """Gemini model tier."""

    FLASH = "flash"
    PRO = "pro"


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BilingualText(BaseModel):
    """Text available in Chinese and, optionally, English."""

    cn: str
    en: Optional[str] = None


# Fields documented as bilingual may arrive as either shape.
TextValue = Union[BilingualText, str]

DEFAULT_LANGUAGE = "cn"


def resolve_text(value: Union[TextValue, Dict[str, Any], None], language: str = DEFAULT_LANGUAGE) -> str:
    """Resolve a bilingual field for the given language.

    A bare string is returned unchanged. For the object form the preferred
    language is used when present, otherwise ``cn``.

    Args:
        value: Plain string, BilingualText, or a raw ``{"cn", "en"}`` dict
        language: Preferred language key ("cn" or "en")

    Returns:
        The resolved text (empty string for None)
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, BilingualText):
        value = value.model_dump()
    preferred = value.get(language)
    if preferred:
        return preferred
    return value.get(DEFAULT_LANGUAGE) or ""


def new_batch_id() -> str:
    """Generate a fresh batch correlation id.

    Ids are short, unique within a session, and safe to use as JSON object keys.
    """
    return f"t{uuid.uuid4().hex[:8]}"


_QUADRANT_FLAGS: Dict[QuadrantType, Tuple[bool, bool]] = {
    QuadrantType.DO: (True, True),
    QuadrantType.PLAN: (True, False),
    QuadrantType.DELEGATE: (False, True),
    QuadrantType.ELIMINATE: (False, False),
}

_QUADRANT_LABELS: Dict[QuadrantType, BilingualText] = {
    QuadrantType.DO: BilingualText(cn="马上做", en="Do"),
    QuadrantType.PLAN: BilingualText(cn="计划做", en="Plan"),
    QuadrantType.DELEGATE: BilingualText(cn="授权做", en="Delegate"),
    QuadrantType.ELIMINATE: BilingualText(cn="减少做", en="Eliminate"),
}


class ProviderConfig(CamelModel):
    """Per-call provider configuration, owned by the caller's settings store.

    Frozen: a config is read once at the start of an orchestration call.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    ai_provider: AIProvider = AIProvider.GEMINI
    gemini_api_key: str = ""
    ai_model: AIModel = AIModel.FLASH
    silicon_flow_api_key: str = ""
    silicon_flow_model: str = ""
    creativity: float = Field(default=0.7, ge=0.0, le=1.0)
    custom_prompt: str = ""
    user_context: str = ""
    bilingual_output: bool = True


class TaskInput(CamelModel):
    """A task as entered by the user, before triage."""

    name: str
    estimated_time: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that the task name is not empty or whitespace-only."""
        if not v.strip():
            raise ValueError("Task name must not be empty")
        return v.strip()


class BatchTaskInput(TaskInput):
    """A task in a batch session, tagged with a temporary correlation id."""

    id: str = Field(default_factory=new_batch_id)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate that the correlation id is not blank."""
        if not v.strip():
            raise ValueError("Batch task id must not be empty")
        return v


class Question(CamelModel):
    """A yes/no assessment question."""

    id: str
    text: str


class AnalysisResult(CamelModel):
    """Quadrant classification for a single task."""

    quadrant: QuadrantType
    is_important: bool
    is_urgent: bool
    reasoning: TextValue
    steps: List[TextValue] = Field(default_factory=list)
    advice: TextValue


class BatchAnalysisResult(CamelModel):
    """Quadrant classification for one task of a batch. Batch mode has no steps."""

    task_id: str
    quadrant: QuadrantType
    reasoning: TextValue
    advice: TextValue


class Task(CamelModel):
    """A triaged task ready for the task store."""

    id: str
    name: str
    estimated_time: str
    created_at: int
    quadrant: QuadrantType
    is_important: bool
    is_urgent: bool
    reasoning: TextValue
    steps: Optional[List[TextValue]] = None
    advice: TextValue
    is_completed: bool = False
    completed_at: Optional[int] = None


class TaskStats(CamelModel):
    """Summary statistics over a set of tasks."""

    total: int
    completed: int
    completion_rate: float
    by_quadrant: Dict[QuadrantType, int]


# Type aliases for the answer maps
AnswerMap = Dict[str, bool]
BatchQuestionMap = Dict[str, List[str]]
BatchAnswerMap = Dict[str, AnswerMap]
