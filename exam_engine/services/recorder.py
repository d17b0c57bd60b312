import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exam_engine.core.database import unit_of_work
from exam_engine.core.errors import (
    DuplicateAnswer, ExamNotFound, QuestionNotInExam, StudentNotFound, ValidationError,
)
from exam_engine.models.orm import Exam, ExamQuestion, Question, StudentAnswer
from exam_engine.services import directory
from exam_engine.services.grader import grade_answer

logger = logging.getLogger(__name__)


@dataclass
class RecordedAnswer:
    student_id: int
    question_id: int
    exam_id: int
    is_correct: bool


def _answer_exists(db: Session, student_id: int, question_id: int, exam_id: int) -> bool:
    key = {"student_id": student_id, "question_id": question_id, "exam_id": exam_id}
    return db.get(StudentAnswer, key) is not None


def _in_exam(db: Session, exam_id: int, question_id: int) -> bool:
    stmt = select(ExamQuestion.question_id).where(
        ExamQuestion.exam_id == exam_id, ExamQuestion.question_id == question_id
    )
    return db.scalar(stmt) is not None


def record_answer(db: Session, student_id: int, question_id: int, exam_id: int, answer: str) -> RecordedAnswer:
    """Store one student's answer to one exam question and grade it.

    Checks run in order and stop at the first failure: student, exam,
    question membership in the exam, then an earlier answer for the same
    triple. The first answer stands; nothing is overwritten.
    """
    if answer is None:
        raise ValidationError("An answer is required", field="answer")
    if not directory.student_exists(db, student_id):
        logger.warning(f"Student {student_id} does not exist")
        raise StudentNotFound(student_id)
    if db.get(Exam, exam_id) is None:
        logger.warning(f"Exam with ID {exam_id} does not exist")
        raise ExamNotFound(exam_id)
    if not _in_exam(db, exam_id, question_id):
        logger.warning(f"Question {question_id} is not part of exam {exam_id}")
        raise QuestionNotInExam(question_id, exam_id)
    if _answer_exists(db, student_id, question_id, exam_id):
        logger.warning(f"Student {student_id} already answered question {question_id} in exam {exam_id}")
        raise DuplicateAnswer(student_id, question_id, exam_id)

    try:
        with unit_of_work(db):
            row = StudentAnswer(student_id=student_id, question_id=question_id, exam_id=exam_id, answer=answer)
            db.add(row)
            db.flush()
            correct = grade_answer(row, db.get(Question, question_id))
    except IntegrityError:
        # a concurrent request changed what the checks above saw
        if _answer_exists(db, student_id, question_id, exam_id):
            logger.warning(f"Student {student_id} already answered question {question_id} in exam {exam_id}")
            raise DuplicateAnswer(student_id, question_id, exam_id)
        if not _in_exam(db, exam_id, question_id):
            # the question left the exam after the membership check
            logger.warning(f"Question {question_id} is no longer part of exam {exam_id}")
            raise QuestionNotInExam(question_id, exam_id)
        raise

    logger.info(
        f"Answer recorded: student={student_id} exam={exam_id} question={question_id} correct={correct}"
    )
    return RecordedAnswer(student_id=student_id, question_id=question_id, exam_id=exam_id, is_correct=correct)
