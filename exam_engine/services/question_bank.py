"""
Question bank: authoring of course questions and their answer options.

Duplicate questions are detected on the canonical text (see
``services.text.canonical_key``) across the whole bank.  The unique
``questions.text_key`` column is the authoritative guard; the lookup done
before inserting only lets us fail early.
"""
import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exam_engine.core.cache import get_presentation_cache
from exam_engine.core.config import settings
from exam_engine.core.database import unit_of_work
from exam_engine.core.errors import (
    CourseNotFound, DuplicateQuestion, QuestionNotFound, ValidationError,
)
from exam_engine.models.orm import (
    AnswerOption, ExamQuestion, Question, QuestionType, StudentAnswer,
)
from exam_engine.services import directory
from exam_engine.services.text import canonical_key, split_options

logger = logging.getLogger(__name__)

OptionsInput = Union[str, Iterable[str], None]


def _coerce_type(value) -> int:
    try:
        return int(QuestionType(int(value)))
    except (TypeError, ValueError):
        raise ValidationError(f"Unsupported question type: {value!r}", field="type")


def _required(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} must not be empty", field=field)
    return value


def _parse_options(raw: OptionsInput) -> List[str]:
    options = split_options(raw, settings.OPTION_DELIMITER)
    if not options:
        raise ValidationError("At least one answer option is required", field="answer_options")
    return options


def find_duplicate(db: Session, text: str, exclude_id: Optional[int] = None) -> Optional[int]:
    stmt = select(Question.id).where(Question.text_key == canonical_key(text))
    if exclude_id is not None:
        stmt = stmt.where(Question.id != exclude_id)
    return db.scalar(stmt)


def exams_containing(db: Session, question_id: int) -> List[int]:
    return list(db.scalars(select(ExamQuestion.exam_id).where(ExamQuestion.question_id == question_id)))


def add_question(
    db: Session,
    type: int,
    text: str,
    correct_answer: str,
    course_name: str,
    answer_options: OptionsInput,
) -> Question:
    qtype = _coerce_type(type)
    text = _required(text, "text")
    correct_answer = _required(correct_answer, "correct_answer")
    course_name = (course_name or "").strip()
    options = _parse_options(answer_options)

    if find_duplicate(db, text) is not None:
        logger.warning(f"Rejected duplicate question: {text!r}")
        raise DuplicateQuestion(text)

    course_id = directory.resolve_course_id(db, course_name)
    if course_id is None:
        logger.warning(f"Course {course_name!r} is not found")
        raise CourseNotFound(course_name)

    try:
        with unit_of_work(db):
            q = Question(type=qtype, text=text, correct_answer=correct_answer, course_id=course_id)
            q.options = [AnswerOption(option_text=o) for o in options]
            db.add(q)
            db.flush()
    except IntegrityError:
        if find_duplicate(db, text) is not None:
            raise DuplicateQuestion(text)
        raise
    logger.info(f"Question {q.id} added to course {course_id} with {len(options)} options")
    return q


def edit_question(
    db: Session,
    question_id: int,
    type: Optional[int] = None,
    text: Optional[str] = None,
    correct_answer: Optional[str] = None,
    course_id: Optional[int] = None,
    answer_options: OptionsInput = None,
) -> Question:
    """Partial update; a supplied option list replaces the stored one."""
    q = db.get(Question, question_id)
    if q is None:
        logger.warning(f"Question {question_id} does not exist")
        raise QuestionNotFound(question_id)

    qtype = _coerce_type(type) if type is not None else None
    text = _required(text, "text") if text is not None else None
    correct_answer = _required(correct_answer, "correct_answer") if correct_answer is not None else None
    options = _parse_options(answer_options) if answer_options is not None else None

    if text is not None and find_duplicate(db, text, exclude_id=question_id) is not None:
        logger.warning(f"Rejected edit of question {question_id}: duplicate text")
        raise DuplicateQuestion(text)
    if course_id is not None and not directory.course_exists(db, course_id):
        raise CourseNotFound(course_id)

    affected = exams_containing(db, question_id)
    try:
        with unit_of_work(db):
            if qtype is not None:
                q.type = qtype
            if text is not None:
                q.text = text
            if correct_answer is not None:
                q.correct_answer = correct_answer
            if course_id is not None:
                q.course_id = course_id
            if options is not None:
                q.options.clear()
                db.flush()
                q.options.extend(AnswerOption(option_text=o) for o in options)
            db.flush()
    except IntegrityError:
        if text is not None and find_duplicate(db, text, exclude_id=question_id) is not None:
            raise DuplicateQuestion(text)
        raise
    get_presentation_cache().invalidate(affected)
    logger.info(f"Question {question_id} edited")
    return q


def remove_question(db: Session, question_id: int) -> None:
    """Delete a question with its options, exam memberships and recorded answers."""
    if db.get(Question, question_id) is None:
        logger.warning(f"Question {question_id} does not exist")
        raise QuestionNotFound(question_id)
    affected = exams_containing(db, question_id)
    with unit_of_work(db):
        db.execute(delete(StudentAnswer).where(StudentAnswer.question_id == question_id))
        db.execute(delete(ExamQuestion).where(ExamQuestion.question_id == question_id))
        db.execute(delete(AnswerOption).where(AnswerOption.question_id == question_id))
        db.execute(delete(Question).where(Question.id == question_id))
    db.expire_all()
    get_presentation_cache().invalidate(affected)
    logger.info(f"Question {question_id} removed (was in {len(affected)} exams)")
