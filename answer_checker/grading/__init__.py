"""
Grading Engine Module.

Deterministic scoring of submitted answers under MCQ/MSQ/NAT marking rules.
"""

from answer_checker.grading.engine import grade, normalize_answer, split_selections

__all__ = [
    "grade",
    "normalize_answer",
    "split_selections",
]
