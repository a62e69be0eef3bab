"""
Answer key validation module.

Checks a parsed answer key for the mistakes extraction tends to make:
wrong answer counts for the question type, non-numeric NAT answers,
repeated MSQ options, and questions worth nothing.
"""

from decimal import Decimal, InvalidOperation
from typing import Sequence

from answer_checker.grading import normalize_answer
from answer_checker.models import AnswerKey, Question, QuestionType


class AnswerKeyValidationError(Exception):
    """Raised when answer key validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        message = "Answer key validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


class AnswerKeyValidator:
    """
    Validates answer keys for consistency with their question types.

    Checks:
    1. MCQ and NAT questions have exactly one correct answer
    2. NAT answers are numeric
    3. MSQ options are distinct
    4. Every question is worth more than zero marks
    5. No two question IDs collide
    """

    def validate(self, answer_key: AnswerKey) -> tuple[bool, list[str]]:
        """
        Validate an answer key and return any issues found.

        Args:
            answer_key: The answer key to validate.

        Returns:
            Tuple of (is_valid, list of issues).
        """
        issues: list[str] = []

        for question in answer_key.questions:
            issues.extend(self._validate_question(question))

        issues.extend(self._check_duplicates(answer_key.questions))

        return len(issues) == 0, issues

    def validate_or_raise(self, answer_key: AnswerKey) -> None:
        """
        Validate an answer key and raise if invalid.

        Raises:
            AnswerKeyValidationError: If validation fails.
        """
        is_valid, issues = self.validate(answer_key)
        if not is_valid:
            raise AnswerKeyValidationError(issues)

    def _validate_question(self, question: Question) -> list[str]:
        """Validate a single question."""
        issues: list[str] = []
        prefix = f"Question {question.question_id} ({question.type.value})"
        answers = question.correct_answers

        if question.type in (QuestionType.MCQ, QuestionType.NAT) and len(answers) != 1:
            issues.append(
                f"{prefix}: Expected exactly one correct answer, found {len(answers)} "
                f"({question.correct_answers_display})"
            )

        if question.type == QuestionType.NAT:
            for answer in answers:
                if not _is_number(answer):
                    issues.append(f"{prefix}: Answer '{answer}' is not numeric")
            if question.negative_marks > 0:
                issues.append(
                    f"{prefix}: Negative marks ({question.negative_marks}) are ignored "
                    "for numerical answers"
                )

        if question.type == QuestionType.MSQ:
            normalized = [normalize_answer(a) for a in answers]
            if len(normalized) != len(set(normalized)):
                issues.append(f"{prefix}: Correct options repeat ({question.correct_answers_display})")
            for answer in answers:
                if "," in answer:
                    issues.append(
                        f"{prefix}: Option '{answer}' contains a comma and can never be selected"
                    )

        if question.marks == 0:
            issues.append(f"{prefix}: Question is worth zero marks")

        return issues

    def _check_duplicates(self, questions: Sequence[Question]) -> list[str]:
        """Check for question IDs that collide once case is ignored."""
        issues: list[str] = []
        seen_ids: dict[str, int] = {}

        for i, question in enumerate(questions, start=1):
            key = question.question_id.strip().casefold()
            if key in seen_ids:
                issues.append(
                    f"Duplicate question ID: '{question.question_id}' "
                    f"(appears at positions {seen_ids[key]} and {i})"
                )
            else:
                seen_ids[key] = i

        return issues


def _is_number(value: str) -> bool:
    try:
        return Decimal(value.strip()).is_finite()
    except InvalidOperation:
        return False
