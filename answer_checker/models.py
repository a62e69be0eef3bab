"""
Pydantic models for the Answer Checker system.

These models define the strict schemas for:
- Questions and answer keys extracted from exam answer-key images
- Grading verdicts for a single submitted answer
- Attempts and score summaries for a checking session

All models are frozen; a grading call never mutates its inputs.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


def _to_decimal(v: Any) -> Any:
    """Convert numeric values to Decimal for precision."""
    if isinstance(v, Decimal) or isinstance(v, bool):
        return v
    if isinstance(v, (int, float, str)):
        try:
            return Decimal(str(v).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid numeric value: {v!r}") from e
    return v


# ==============================================================================
# Question Models
# ==============================================================================


class QuestionType(str, Enum):
    """Answer type of a question."""

    MCQ = "MCQ"  # Single correct option
    MSQ = "MSQ"  # One or more correct options, partial credit
    NAT = "NAT"  # Numeric answer, exact string match


class Feedback(str, Enum):
    """Coarse classification of a grading outcome."""

    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"


class Question(BaseModel):
    """
    A single question from an answer key.

    Constructed at the ingestion boundary from loosely-typed extraction
    output, so the validators coerce the common shapes (integer IDs,
    a bare string instead of a list of answers, lower-case types).
    """

    model_config = ConfigDict(frozen=True, strict=True)

    question_id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the question, unique within an answer key",
    )

    type: QuestionType = Field(
        ...,
        description="Answer type (MCQ, MSQ or NAT)",
    )

    correct_answers: tuple[str, ...] = Field(
        ...,
        min_length=1,
        description="Canonical correct answer tokens",
    )

    marks: Decimal = Field(
        ...,
        ge=0,
        description="Marks awarded for a fully correct response",
    )

    negative_marks: Decimal = Field(
        default=Decimal(0),
        ge=0,
        description="Magnitude deducted for a penalized incorrect response",
    )

    explanation: str = Field(
        default="",
        description="Rationale shown after grading; not used for scoring",
    )

    @field_validator("question_id", mode="before")
    @classmethod
    def coerce_question_id(cls, v: Any) -> Any:
        if isinstance(v, (int, str)) and not isinstance(v, bool):
            return str(v).strip()
        return v

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> Any:
        """Accept type names case-insensitively."""
        if isinstance(v, str):
            try:
                return QuestionType(v.strip().upper())
            except ValueError:
                raise ValueError(
                    f"Unsupported question type '{v}'. "
                    f"Expected one of: {[t.value for t in QuestionType]}"
                ) from None
        return v

    @field_validator("correct_answers", mode="before")
    @classmethod
    def coerce_correct_answers(cls, v: Any) -> Any:
        """Accept a single answer or a sequence; drop blank entries."""
        if isinstance(v, (str, int, float)) and not isinstance(v, bool):
            v = [v]
        if isinstance(v, (list, tuple)):
            answers = (str(a).strip() for a in v if a is not None)
            return tuple(a for a in answers if a)
        return v

    @model_validator(mode="before")
    @classmethod
    def split_msq_answer_string(cls, data: Any) -> Any:
        """An MSQ key given as one string ("A,C") lists its options comma-separated."""
        if not isinstance(data, dict):
            return data
        answers = data.get("correct_answers")
        type_ = data.get("type")
        if isinstance(type_, QuestionType):
            type_ = type_.value
        if isinstance(answers, str) and str(type_).strip().upper() == QuestionType.MSQ.value:
            return {**data, "correct_answers": answers.split(",")}
        return data

    @field_validator("marks", "negative_marks", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Any:
        return _to_decimal(v)

    @field_validator("explanation", mode="before")
    @classmethod
    def coerce_explanation(cls, v: Any) -> Any:
        return "" if v is None else v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def correct_answers_display(self) -> str:
        """Correct answers joined for display."""
        return ", ".join(self.correct_answers)


class AnswerKey(BaseModel):
    """
    An answer key: the set of questions extracted from one image.

    Question IDs must be unique within the key.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    key_name: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Name of the answer key",
    )

    questions: tuple[Question, ...] = Field(
        ...,
        min_length=1,
        description="Questions in answer-key order",
    )

    image_url: str | None = Field(
        default=None,
        description="Reference image the key was extracted from",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def question_count(self) -> int:
        return len(self.questions)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_marks(self) -> Decimal:
        """Sum of full marks over all questions."""
        return sum((q.marks for q in self.questions), Decimal(0))

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "AnswerKey":
        """Ensure no duplicate question IDs."""
        ids = [q.question_id for q in self.questions]
        if len(ids) != len(set(ids)):
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            raise ValueError(f"Duplicate question IDs found: {duplicates}")
        return self

    def get_question(self, question_id: str) -> Question | None:
        """Look up a question by ID, or None if the key has no such question."""
        wanted = str(question_id).strip()
        for question in self.questions:
            if question.question_id == wanted:
                return question
        return None


# ==============================================================================
# Grading Result Models
# ==============================================================================


class GradeResult(BaseModel):
    """
    The verdict for one submitted answer.

    `feedback` is the coarse classification callers branch on;
    `message` is for display only.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    is_correct: bool = Field(
        ...,
        description="True only when the response earns full marks",
    )

    score: Decimal = Field(
        ...,
        description="Signed score: penalty, zero, partial or full marks",
    )

    feedback: Feedback = Field(
        ...,
        description="correct, partial or incorrect",
    )

    message: str = Field(
        ...,
        min_length=1,
        description="Human-readable summary of the outcome",
    )

    max_score: Decimal = Field(
        default=Decimal(0),
        ge=0,
        description="Full marks available for the question",
    )

    @field_validator("score", "max_score", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Any:
        return _to_decimal(v)


# ==============================================================================
# Session Models
# ==============================================================================


class Attempt(BaseModel):
    """One graded answer within a checking session."""

    model_config = ConfigDict(frozen=True, strict=True)

    question_id: str
    submitted: str
    result: GradeResult
    attempt_number: int = Field(default=1, ge=1)
    revealed: bool = Field(
        default=False,
        description="Whether the correct answer and explanation were shown",
    )


class ScoreSummary(BaseModel):
    """Totals over the latest attempt of each question."""

    model_config = ConfigDict(frozen=True, strict=True)

    attempts: tuple[Attempt, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_score(self) -> Decimal:
        return sum((a.result.score for a in self.attempts), Decimal(0))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_possible(self) -> Decimal:
        return sum((a.result.max_score for a in self.attempts), Decimal(0))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def correct_count(self) -> int:
        return self._count(Feedback.CORRECT)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def partial_count(self) -> int:
        return self._count(Feedback.PARTIAL)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def incorrect_count(self) -> int:
        return self._count(Feedback.INCORRECT)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percentage(self) -> float:
        """Overall percentage; may be negative under negative marking."""
        if self.total_possible == 0:
            return 0.0
        return float(self.total_score / self.total_possible * 100)

    def _count(self, feedback: Feedback) -> int:
        return sum(1 for a in self.attempts if a.result.feedback == feedback)
