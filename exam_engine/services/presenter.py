"""
Display-only rendering of an exam.

One row per (question, answer option); the stored correct answer is never
selected, so it cannot leak through this path.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from exam_engine.core.cache import PresentationCache, get_presentation_cache
from exam_engine.core.errors import ExamNotFound
from exam_engine.models.orm import AnswerOption, Course, Exam, ExamQuestion, Question

logger = logging.getLogger(__name__)

ROW_FIELDS = ("exam_id", "course_name", "question_id", "question_text", "question_type", "answer_option")


def _load_rows(db: Session, exam_id: int) -> List[Dict]:
    stmt = (
        select(
            Exam.id,
            Course.name,
            Question.id,
            Question.text,
            Question.type,
            AnswerOption.option_text,
        )
        .join(Course, Course.id == Exam.course_id)
        .join(ExamQuestion, ExamQuestion.exam_id == Exam.id)
        .join(Question, Question.id == ExamQuestion.question_id)
        .join(AnswerOption, AnswerOption.question_id == Question.id)
        .where(Exam.id == exam_id)
        .order_by(Question.type.desc(), Question.id, AnswerOption.option_text)
    )
    return [dict(zip(ROW_FIELDS, r)) for r in db.execute(stmt).all()]


def present_exam(db: Session, exam_id: int, cache: Optional[PresentationCache] = None) -> List[Dict]:
    cache = cache or get_presentation_cache()
    cached = cache.get(exam_id)
    if cached is not None:
        return cached
    if db.get(Exam, exam_id) is None:
        logger.warning(f"Exam {exam_id} does not exist")
        raise ExamNotFound(exam_id)
    rows = _load_rows(db, exam_id)
    cache.set(exam_id, rows)
    return rows


def group_by_question(rows: List[Dict]) -> List[Dict]:
    """Fold presentation rows into one entry per question, keeping row order."""
    grouped: Dict[int, Dict] = {}
    for r in rows:
        q = grouped.get(r["question_id"])
        if q is None:
            q = grouped[r["question_id"]] = {
                "question_id": r["question_id"],
                "question_text": r["question_text"],
                "question_type": r["question_type"],
                "options": [],
            }
        q["options"].append(r["answer_option"])
    return list(grouped.values())
