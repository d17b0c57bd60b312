"""
Correctness derivation for recorded answers.

Internal to answer recording: ``grade_answer`` runs inside the same unit of
work as the insert, so no reader ever sees an ungraded row.
"""
from exam_engine.models.orm import Question, StudentAnswer


def is_correct(submitted: str, correct_answer: str) -> bool:
    # exact comparison, the submitted text is not trimmed
    return submitted == correct_answer


def grade_answer(answer: StudentAnswer, question: Question) -> bool:
    """Set the correctness flag once; an already graded row keeps its flag."""
    if answer.is_correct is None:
        answer.is_correct = is_correct(answer.answer, question.correct_answer)
    return answer.is_correct
