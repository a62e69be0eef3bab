"""
Answer-checking session.

Holds the state of one practice run over an answer key: which questions
were attempted, how often, and whether the solution was revealed.
Grading itself is delegated to the pure `grade` function.
"""

import logging

from answer_checker.grading import grade
from answer_checker.models import AnswerKey, Attempt, Question, ScoreSummary

logger = logging.getLogger(__name__)


class QuestionNotFoundError(LookupError):
    """Raised when a question ID is not in the answer key."""

    def __init__(self, question_id: str, key_name: str | None = None):
        self.question_id = question_id
        self.key_name = key_name
        where = f" in '{key_name}'" if key_name else ""
        super().__init__(f"Question '{question_id}' not found{where}")


class CheckSession:
    """
    Checks answers against one answer key.

    Attempts are kept in order; the latest attempt per question is the
    one that counts towards the summary.
    """

    def __init__(self, answer_key: AnswerKey):
        self._answer_key = answer_key
        self._attempts: list[Attempt] = []

    @property
    def answer_key(self) -> AnswerKey:
        return self._answer_key

    @property
    def attempts(self) -> tuple[Attempt, ...]:
        return tuple(self._attempts)

    def question(self, question_id: str) -> Question:
        """
        Resolve a question by ID.

        Raises:
            QuestionNotFoundError: If the key has no such question.
        """
        question = self._answer_key.get_question(question_id)
        if question is None:
            raise QuestionNotFoundError(question_id, self._answer_key.key_name)
        return question

    def check(self, question_id: str, submitted: str) -> Attempt:
        """
        Grade an answer and record the attempt.

        Args:
            question_id: ID of the question being answered.
            submitted: Raw answer text.

        Returns:
            The recorded Attempt.

        Raises:
            QuestionNotFoundError: If the key has no such question.
        """
        question = self.question(question_id)
        result = grade(submitted, question)

        attempt = Attempt(
            question_id=question.question_id,
            submitted=submitted,
            result=result,
            attempt_number=self._attempt_count(question.question_id) + 1,
        )
        self._attempts.append(attempt)

        logger.debug(
            "Question %s attempt %d: %s (%s)",
            attempt.question_id,
            attempt.attempt_number,
            result.feedback.value,
            result.score,
        )
        return attempt

    def reveal(self, question_id: str) -> Question:
        """
        Mark the latest attempt at a question as revealed.

        Returns:
            The question, for displaying its answers and explanation.
        """
        question = self.question(question_id)
        for i in range(len(self._attempts) - 1, -1, -1):
            attempt = self._attempts[i]
            if attempt.question_id == question.question_id:
                self._attempts[i] = attempt.model_copy(update={"revealed": True})
                break
        return question

    def next_question_id(self, question_id: str) -> str | None:
        """Return the ID after the given one in key order, or None at the end."""
        current = self.question(question_id)
        questions = self._answer_key.questions
        position = questions.index(current)
        if position + 1 < len(questions):
            return questions[position + 1].question_id
        return None

    def latest_attempt(self, question_id: str) -> Attempt | None:
        wanted = str(question_id).strip()
        for attempt in reversed(self._attempts):
            if attempt.question_id == wanted:
                return attempt
        return None

    def summary(self) -> ScoreSummary:
        """Summarize the latest attempt of each question, in key order."""
        latest = (self.latest_attempt(q.question_id) for q in self._answer_key.questions)
        return ScoreSummary(attempts=tuple(a for a in latest if a is not None))

    def _attempt_count(self, question_id: str) -> int:
        return sum(1 for a in self._attempts if a.question_id == question_id)
