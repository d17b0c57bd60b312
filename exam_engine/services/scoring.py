import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from sqlalchemy import case, distinct, func, select
from sqlalchemy.orm import Session

from exam_engine.core.database import unit_of_work
from exam_engine.core.errors import ExamNotFound, StudentNotFound
from exam_engine.models.orm import StudentAnswer
from exam_engine.services import directory

logger = logging.getLogger(__name__)


@dataclass
class ExamResults:
    student_id: int
    exam_id: int
    course_id: Optional[int]
    correct: int
    wrong: int
    answered: int
    score_percent: int
    enrollment_updated: bool = False

    @property
    def score_text(self) -> str:
        return format_score(self.score_percent)

    def to_dict(self) -> Dict:
        d = asdict(self)
        d["score_text"] = self.score_text
        return d


def score_percent(correct: int, answered: int) -> int:
    if answered <= 0:
        return 0
    return (correct * 100) // answered


def format_score(percent: int) -> str:
    return f"{percent} %"


def _tally(db: Session, student_id: int, exam_id: int):
    stmt = select(
        func.count(case((StudentAnswer.is_correct.is_(True), 1))),
        func.count(case((StudentAnswer.is_correct.is_(False), 1))),
        func.count(distinct(StudentAnswer.question_id)),
    ).where(StudentAnswer.student_id == student_id, StudentAnswer.exam_id == exam_id)
    correct, wrong, answered = db.execute(stmt).one()
    return int(correct or 0), int(wrong or 0), int(answered or 0)


def compute_results(db: Session, student_id: int, exam_id: int) -> ExamResults:
    """Recount a student's answers for an exam and store the score on the enrollment.

    ``answered`` counts the questions this student actually answered, not the
    size of the exam. Always derived from the stored answers, so repeating
    the call rewrites the same value.
    """
    if not directory.student_exists(db, student_id):
        logger.warning(f"Student {student_id} does not exist")
        raise StudentNotFound(student_id)
    course_id = directory.exam_course_id(db, exam_id)
    if course_id is None:
        logger.warning(f"Exam {exam_id} does not exist")
        raise ExamNotFound(exam_id)

    with unit_of_work(db):
        correct, wrong, answered = _tally(db, student_id, exam_id)
        percent = score_percent(correct, answered)
        updated = directory.set_enrollment_score(db, student_id, course_id, format_score(percent))

    if updated:
        logger.info(f"Score {percent} % written for student {student_id} in course {course_id}")
    else:
        logger.warning(f"Student {student_id} is not enrolled in course {course_id}; score not stored")
    return ExamResults(
        student_id=student_id,
        exam_id=exam_id,
        course_id=course_id,
        correct=correct,
        wrong=wrong,
        answered=answered,
        score_percent=percent,
        enrollment_updated=updated,
    )
