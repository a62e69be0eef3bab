"""
Grading engine - the core of the answer checker.

Maps a submitted answer and a question definition to a GradeResult under
exam-style marking rules:

- MCQ: full marks when correct, negative marks otherwise.
- NAT: full marks when the answer matches exactly, zero otherwise.
- MSQ: full marks when every correct option is selected, proportional
  partial credit for a subset, negative marks if any selection is wrong.

`grade` is pure and total: it reads only its arguments, builds a fresh
result, and never raises for a well-formed Question.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Callable

from answer_checker.models import Feedback, GradeResult, Question, QuestionType

logger = logging.getLogger(__name__)


def normalize_answer(value: str) -> str:
    """Normalize an answer token: strip surrounding whitespace, upper-case."""
    return value.strip().upper()


def split_selections(submitted: str) -> list[str]:
    """Split a comma-separated MSQ response into normalized, non-empty tokens."""
    tokens = (normalize_answer(token) for token in submitted.split(","))
    return [token for token in tokens if token]


def grade(submitted: str, question: Question) -> GradeResult:
    """
    Grade a submitted answer against a question.

    Args:
        submitted: Raw answer text. For MSQ, options are comma-separated.
        question: The question to grade against.

    Returns:
        A new GradeResult.
    """
    submitted = submitted or ""

    if not submitted.strip():
        return _result(
            question,
            is_correct=False,
            score=Decimal(0),
            feedback=Feedback.INCORRECT,
            message="Please provide an answer.",
        )

    grader = _GRADERS.get(question.type) if isinstance(question.type, QuestionType) else None
    if grader is None:
        logger.warning(
            "Question %s has unrecognized type %r; scoring as incorrect",
            question.question_id,
            question.type,
        )
        return _result(
            question,
            is_correct=False,
            score=Decimal(0),
            feedback=Feedback.INCORRECT,
            message=f"Unknown question type '{question.type}'. This answer cannot be graded.",
        )

    return grader(submitted, question)


def _grade_mcq(submitted: str, question: Question) -> GradeResult:
    """Single correct option; any wrong answer is penalized."""
    correct = {normalize_answer(a) for a in question.correct_answers}
    if normalize_answer(submitted) in correct:
        return _result(
            question,
            is_correct=True,
            score=question.marks,
            feedback=Feedback.CORRECT,
            message=f"Correct! You earned {question.marks} marks.",
        )

    return _result(
        question,
        is_correct=False,
        score=-question.negative_marks,
        feedback=Feedback.INCORRECT,
        message=f"Incorrect. You lost {question.negative_marks} marks.",
    )


def _grade_nat(submitted: str, question: Question) -> GradeResult:
    """Exact string match after normalization; never penalized."""
    correct = {normalize_answer(a) for a in question.correct_answers}
    if normalize_answer(submitted) in correct:
        return _result(
            question,
            is_correct=True,
            score=question.marks,
            feedback=Feedback.CORRECT,
            message=f"Correct! You earned {question.marks} marks.",
        )

    return _result(
        question,
        is_correct=False,
        score=Decimal(0),
        feedback=Feedback.INCORRECT,
        message="Incorrect. Numerical answers carry no negative marks.",
    )


def _grade_msq(submitted: str, question: Question) -> GradeResult:
    """
    Multiple select with partial credit.

    One wrong selection voids all partial credit and applies the full
    negative marks.
    """
    correct = {normalize_answer(a) for a in question.correct_answers}
    selected = set(split_selections(submitted))

    wrong = selected - correct
    if wrong:
        return _result(
            question,
            is_correct=False,
            score=-question.negative_marks,
            feedback=Feedback.INCORRECT,
            message=(
                f"Incorrect selection(s): {', '.join(sorted(wrong))}. "
                f"You lost {question.negative_marks} marks."
            ),
        )

    correct_count = len(selected)
    total_correct = len(correct)

    if correct_count == total_correct:
        return _result(
            question,
            is_correct=True,
            score=question.marks,
            feedback=Feedback.CORRECT,
            message=f"Perfect! You selected all correct options and earned {question.marks} marks.",
        )

    if correct_count > 0:
        score = question.marks * correct_count / total_correct
        return _result(
            question,
            is_correct=False,
            score=score,
            feedback=Feedback.PARTIAL,
            message=(
                f"Partially correct. You selected {correct_count} out of "
                f"{total_correct} correct options. Score: {score:.2f} marks."
            ),
        )

    # Only separators were submitted, e.g. ", ,"
    return _result(
        question,
        is_correct=False,
        score=Decimal(0),
        feedback=Feedback.INCORRECT,
        message="No options selected.",
    )


def _result(
    question: Question,
    *,
    is_correct: bool,
    score: Decimal,
    feedback: Feedback,
    message: str,
) -> GradeResult:
    # -Decimal(0) is Decimal('-0'); keep zero scores unsigned
    if score == 0:
        score = Decimal(0)
    return GradeResult(
        is_correct=is_correct,
        score=score,
        feedback=feedback,
        message=message,
        max_score=_max_score(question),
    )


def _max_score(question: Question) -> Decimal:
    marks = getattr(question, "marks", None)
    if isinstance(marks, (int, float, str)) and not isinstance(marks, bool):
        try:
            marks = Decimal(str(marks).strip())
        except InvalidOperation:
            return Decimal(0)
    if isinstance(marks, Decimal) and marks.is_finite() and marks >= 0:
        return marks
    return Decimal(0)


_GRADERS: dict[QuestionType, Callable[[str, Question], GradeResult]] = {
    QuestionType.MCQ: _grade_mcq,
    QuestionType.NAT: _grade_nat,
    QuestionType.MSQ: _grade_msq,
}
