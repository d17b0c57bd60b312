import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from exam_engine.core.config import settings
from exam_engine.core.database import unit_of_work
from exam_engine.core.errors import CourseNotFound
from exam_engine.models.orm import Exam, ExamQuestion, Question, QuestionType
from exam_engine.services import directory

logger = logging.getLogger(__name__)

_system_random = random.SystemRandom()


@dataclass
class ComposedExam:
    exam_id: int
    course_id: int
    question_ids: List[int] = field(default_factory=list)


def sample_ids(candidates: Sequence[int], k: int, rng: Optional[random.Random] = None) -> List[int]:
    """Uniform sample of up to ``k`` ids without replacement.

    Fisher-Yates shuffle of a copy, then the first ``k``; fewer candidates
    than ``k`` means all of them.
    """
    rng = rng or _system_random
    pool = list(candidates)
    for i in range(len(pool) - 1, 0, -1):
        j = rng.randint(0, i)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:max(0, k)]


def _candidate_ids(db: Session, course_id: int, qtype: QuestionType) -> List[int]:
    stmt = (
        select(Question.id)
        .where(Question.course_id == course_id, Question.type == int(qtype))
        .order_by(Question.id)
    )
    return list(db.scalars(stmt))


def compose_exam(db: Session, course_id: int, rng: Optional[random.Random] = None) -> ComposedExam:
    """Create an exam for ``course_id`` with a freshly sampled question set.

    The exam row and all of its question memberships are committed together.
    """
    if not directory.course_exists(db, course_id):
        logger.warning(f"Course {course_id} does not exist; no exam composed")
        raise CourseNotFound(course_id)

    mcq = sample_ids(_candidate_ids(db, course_id, QuestionType.MULTIPLE_CHOICE), settings.EXAM_MCQ_COUNT, rng)
    tf = sample_ids(_candidate_ids(db, course_id, QuestionType.TRUE_FALSE), settings.EXAM_TF_COUNT, rng)
    chosen = mcq + tf

    with unit_of_work(db):
        exam = Exam(course_id=course_id)
        db.add(exam)
        db.flush()
        db.add_all(ExamQuestion(exam_id=exam.id, question_id=qid) for qid in chosen)
        exam_id = exam.id

    logger.info(f"Exam {exam_id} composed for course {course_id}: {len(mcq)} MCQ + {len(tf)} T/F")
    return ComposedExam(exam_id=exam_id, course_id=course_id, question_ids=chosen)
