"""
Answer key loader.

Parses the JSON produced by the answer-key extraction service into a
validated AnswerKey. This is the ingestion boundary: loosely-typed
extraction output is coerced into strict Question models here, so the
grading engine only ever sees well-formed questions.
"""

import json
import logging
import re
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from answer_checker.config import Settings, get_settings
from answer_checker.models import AnswerKey, Question, QuestionType

logger = logging.getLogger(__name__)


class AnswerKeyError(Exception):
    """Raised when an answer key cannot be parsed or validated."""

    def __init__(
        self,
        message: str,
        source: str | Path | None = None,
        index: int | None = None,
    ):
        self.source = str(source) if source is not None else None
        self.index = index
        if index is not None:
            message = f"Question {index}: {message}"
        if source is not None:
            message = f"{source}: {message}"
        super().__init__(message)


# Extraction output uses camelCase keys; snake_case is accepted too.
_FIELD_ALIASES: dict[str, str] = {
    "questionId": "question_id",
    "question_id": "question_id",
    "id": "question_id",
    "type": "type",
    "correctAnswers": "correct_answers",
    "correct_answers": "correct_answers",
    "answers": "correct_answers",
    "marks": "marks",
    "negativeMarks": "negative_marks",
    "negative_marks": "negative_marks",
    "explanation": "explanation",
}


class AnswerKeyLoader:
    """
    Loads answer keys from extraction output.

    Accepts either ``{"questions": [...]}`` or a full stored record
    ``{"key_name": ..., "questions": [...], "image_url": ...}``, optionally
    wrapped in a markdown code block or surrounded by prose.
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()

    def load(self, file_path: Path | str) -> AnswerKey:
        """
        Load an answer key from a JSON file.

        Args:
            file_path: Path to the answer key file.

        Returns:
            Validated AnswerKey. The key name defaults to the file stem.

        Raises:
            AnswerKeyError: If the file cannot be read or parsed.
        """
        path = Path(file_path)
        try:
            content = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise AnswerKeyError(f"Could not read file: {e}", source=path) from e

        key = self.parse(content, key_name=path.stem, source=path)
        logger.info("Loaded answer key '%s' with %d questions", key.key_name, key.question_count)
        return key

    def parse(
        self,
        content: str,
        key_name: str | None = None,
        source: str | Path | None = None,
    ) -> AnswerKey:
        """
        Parse extraction output into an AnswerKey.

        Args:
            content: Raw JSON text.
            key_name: Name to use when the content does not carry one.
            source: Where the content came from, for error messages.

        Returns:
            Validated AnswerKey.

        Raises:
            AnswerKeyError: If parsing or validation fails.
        """
        if not content or not content.strip():
            raise AnswerKeyError("Answer key content is empty", source=source)

        json_str = self._extract_json(content, source)
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise AnswerKeyError(f"Invalid JSON: {e}", source=source) from e

        return self.from_data(data, key_name=key_name, source=source)

    def from_data(
        self,
        data: Any,
        key_name: str | None = None,
        source: str | Path | None = None,
    ) -> AnswerKey:
        """Build an AnswerKey from already-decoded JSON data."""
        if not isinstance(data, dict):
            raise AnswerKeyError("Expected a JSON object", source=source)

        raw_questions = data.get("questions")
        if not isinstance(raw_questions, list):
            raise AnswerKeyError("Missing or invalid 'questions' array", source=source)
        if not raw_questions:
            raise AnswerKeyError("Answer key contains no questions", source=source)

        questions = tuple(
            self._parse_question(item, index, source)
            for index, item in enumerate(raw_questions, start=1)
        )

        name = data.get("key_name") or key_name or "Answer Key"
        image_url = data.get("image_url")

        try:
            return AnswerKey(
                key_name=str(name).strip(),
                questions=questions,
                image_url=str(image_url) if image_url else None,
            )
        except ValidationError as e:
            raise AnswerKeyError(_first_error(e), source=source) from e

    def _parse_question(self, item: Any, index: int, source: str | Path | None) -> Question:
        """Normalize one extracted question and validate it."""
        if not isinstance(item, dict):
            raise AnswerKeyError("Question entry must be an object", source=source, index=index)

        fields: dict[str, Any] = {}
        for key, value in item.items():
            target = _FIELD_ALIASES.get(key)
            if target and target not in fields:
                fields[target] = value

        fields.setdefault("question_id", str(index))
        self._apply_mark_defaults(fields, index)

        try:
            return Question(**fields)
        except ValidationError as e:
            raise AnswerKeyError(_first_error(e), source=source, index=index) from e

    def _apply_mark_defaults(self, fields: dict[str, Any], index: int) -> None:
        """Fill in marks the extraction left out: 3/-1 for MCQ and MSQ, 3/0 for NAT."""
        if fields.get("marks") is None:
            fields["marks"] = self._settings.default_marks
            logger.debug("Question %d: using default marks %s", index, fields["marks"])

        if fields.get("negative_marks") is None:
            is_nat = str(fields.get("type", "")).strip().upper() == QuestionType.NAT.value
            fields["negative_marks"] = (
                Decimal(0) if is_nat else self._settings.default_negative_marks
            )
            logger.debug(
                "Question %d: using default negative marks %s", index, fields["negative_marks"]
            )

    def _extract_json(self, content: str, source: str | Path | None) -> str:
        """
        Extract JSON from content, handling common formats.

        Args:
            content: Raw text.
            source: Where the content came from, for error messages.

        Returns:
            Extracted JSON string.
        """
        # Remove markdown code block if present
        json_match = re.search(r"```(?:json)?\s*([\s\S]*?)```", content)
        if json_match:
            return json_match.group(1).strip()

        brace_start = content.find("{")
        if brace_start == -1:
            raise AnswerKeyError("No JSON object found", source=source)

        # Find matching closing brace, skipping braces inside strings
        depth = 0
        in_string = False
        escaped = False
        for i, char in enumerate(content[brace_start:], start=brace_start):
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return content[brace_start : i + 1]

        raise AnswerKeyError("Unclosed JSON object", source=source)


def _first_error(error: ValidationError) -> str:
    """Summarize a pydantic ValidationError by its first failure."""
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def load_answer_key(file_path: Path | str, settings: Settings | None = None) -> AnswerKey:
    """
    Load an answer key file.

    Convenience function that creates a loader and loads in one step.
    """
    return AnswerKeyLoader(settings).load(file_path)
