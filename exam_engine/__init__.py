"""Exam lifecycle engine: question bank, exam composition, answer recording and scoring."""

__version__ = "1.0.0"
