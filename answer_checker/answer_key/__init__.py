"""
Answer Key Module.

Loading of extracted answer keys and validation of their contents.
"""

from answer_checker.answer_key.loader import AnswerKeyError, AnswerKeyLoader, load_answer_key
from answer_checker.answer_key.validator import AnswerKeyValidationError, AnswerKeyValidator

__all__ = [
    "AnswerKeyError",
    "AnswerKeyLoader",
    "AnswerKeyValidationError",
    "AnswerKeyValidator",
    "load_answer_key",
]
