"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import json
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any, Generator

import pytest

from answer_checker.config import Settings, get_settings
from answer_checker.models import AnswerKey, Question, QuestionType


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Ensure each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ==============================================================================
# Question Fixtures
# ==============================================================================


@pytest.fixture
def mcq_question() -> Question:
    """MCQ worth 3 marks with 1 negative mark."""
    return Question(
        question_id="1",
        type=QuestionType.MCQ,
        correct_answers=("A",),
        marks=Decimal("3"),
        negative_marks=Decimal("1"),
        explanation="Option A is the only figure with rotational symmetry.",
    )


@pytest.fixture
def msq_question() -> Question:
    """MSQ with two correct options, worth 4 marks with 1 negative mark."""
    return Question(
        question_id="2",
        type=QuestionType.MSQ,
        correct_answers=("A", "C"),
        marks=Decimal("4"),
        negative_marks=Decimal("1"),
        explanation="Both A and C use complementary colours.",
    )


@pytest.fixture
def nat_question() -> Question:
    """NAT worth 3 marks; its negative marks must never apply."""
    return Question(
        question_id="3",
        type=QuestionType.NAT,
        correct_answers=("42",),
        marks=Decimal("3"),
        negative_marks=Decimal("1"),
        explanation="Count the visible faces of the stacked cubes.",
    )


@pytest.fixture
def sample_answer_key(
    mcq_question: Question, msq_question: Question, nat_question: Question
) -> AnswerKey:
    """Answer key with one question of each type."""
    return AnswerKey(
        key_name="UCEED 2024 Part A",
        questions=(mcq_question, msq_question, nat_question),
        image_url="https://example.com/keys/uceed-2024.jpg",
    )


# ==============================================================================
# Extraction Output Fixtures
# ==============================================================================


@pytest.fixture
def sample_extraction_data() -> dict[str, Any]:
    """Answer key as returned by the extraction service (camelCase keys)."""
    return {
        "questions": [
            {
                "questionId": "1",
                "type": "MCQ",
                "correctAnswers": ["A"],
                "marks": 3,
                "negativeMarks": 1,
                "explanation": "Option A is the only figure with rotational symmetry.",
            },
            {
                "questionId": "2",
                "type": "MSQ",
                "correctAnswers": ["A", "C"],
                "marks": 4,
                "negativeMarks": 1,
                "explanation": "Both A and C use complementary colours.",
            },
            {
                "questionId": "3",
                "type": "NAT",
                "correctAnswers": ["42"],
                "marks": 3,
                "negativeMarks": 0,
                "explanation": "Count the visible faces of the stacked cubes.",
            },
        ]
    }


@pytest.fixture
def sample_extraction_json(sample_extraction_data: dict[str, Any]) -> str:
    return json.dumps(sample_extraction_data)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings with explicit values."""
    return Settings(
        default_marks=Decimal("3"),
        default_negative_marks=Decimal("1"),
        log_level="WARNING",
        report_directory=temp_dir / "reports",
    )


# ==============================================================================
# File Fixtures
# ==============================================================================


@pytest.fixture
def answer_key_file(temp_dir: Path, sample_extraction_json: str) -> Path:
    """Write the sample answer key to a JSON file."""
    file_path = temp_dir / "uceed_2024.json"
    file_path.write_text(sample_extraction_json, encoding="utf-8")
    return file_path


@pytest.fixture
def responses_file(temp_dir: Path) -> Path:
    """A response sheet: MCQ correct, MSQ partial, NAT left blank."""
    file_path = temp_dir / "responses.json"
    file_path.write_text(json.dumps({"1": "a", "2": ["A"]}), encoding="utf-8")
    return file_path
