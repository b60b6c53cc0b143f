"""Tests for structured-output schemas."""

from matrix_triage.generation.schemas import (
    QUADRANT_VALUES,
    QUESTIONS_SCHEMA,
    analysis_schema,
    batch_analysis_schema,
    batch_questions_schema,
)


def test_quadrant_enum_is_closed():
    assert QUADRANT_VALUES == ["Do", "Plan", "Delegate", "Eliminate"]
    assert analysis_schema()["properties"]["quadrantName"]["enum"] == QUADRANT_VALUES


def test_questions_schema_requires_questions():
    assert QUESTIONS_SCHEMA["required"] == ["questions"]


def test_analysis_schema_text_shape():
    bilingual = analysis_schema(bilingual=True)["properties"]["reasoning"]
    plain = analysis_schema(bilingual=False)["properties"]["reasoning"]

    assert bilingual["type"] == "OBJECT"
    assert bilingual["required"] == ["cn", "en"]
    assert plain == {"type": "STRING"}


def test_batch_questions_schema_one_property_per_id():
    schema = batch_questions_schema(["t1", "t2"])

    assert set(schema["properties"]) == {"t1", "t2"}
    assert schema["required"] == ["t1", "t2"]


def test_batch_analysis_schema_has_no_steps():
    item = batch_analysis_schema()["properties"]["results"]["items"]

    assert "steps" not in item["properties"]
    assert item["required"] == ["taskId", "quadrantName", "reasoning", "advice"]
