"""
Answer Checker - exam-style answer checking against extracted answer keys.

This package grades submitted answers to MCQ, MSQ and NAT questions with
positive, negative and partial marking, and provides a CLI for checking
answers one at a time or as a full response sheet.
"""

__version__ = "1.0.0"
__author__ = "Answer Checker Team"
