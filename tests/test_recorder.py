import pytest
from sqlalchemy import func, select

from exam_engine.core.database import SessionLocal
from exam_engine.core.errors import (
    DuplicateAnswer, ExamNotFound, QuestionNotInExam, StudentNotFound,
)
from exam_engine.models.orm import Question, QuestionType, StudentAnswer
from exam_engine.services import composer, grader, recorder
from factories import make_course, make_student


@pytest.fixture
def setup(db):
    course = make_course(db, "Databases", mcq=3, tf=2)
    student = make_student(db, course=course)
    exam = composer.compose_exam(db, course.id)
    return course, student, exam


def _stored(db, student_id, question_id, exam_id):
    db.expire_all()
    return db.get(StudentAnswer, {"student_id": student_id, "question_id": question_id, "exam_id": exam_id})


def _tf_questions(db, exam):
    return [q for q in exam.question_ids if db.get(Question, q).type == QuestionType.TRUE_FALSE]


def test_right_and_wrong_answers_are_graded(db, setup):
    _, student, exam = setup
    right_q, wrong_q = _tf_questions(db, exam)

    assert recorder.record_answer(db, student.id, right_q, exam.exam_id, "True").is_correct is True
    assert recorder.record_answer(db, student.id, wrong_q, exam.exam_id, "False").is_correct is False

    assert _stored(db, student.id, right_q, exam.exam_id).is_correct is True
    assert _stored(db, student.id, wrong_q, exam.exam_id).is_correct is False


def test_submitted_answer_is_compared_untrimmed(db, setup):
    _, student, exam = setup
    q = _tf_questions(db, exam)[0]
    rec = recorder.record_answer(db, student.id, q, exam.exam_id, " True ")
    assert rec.is_correct is False
    assert _stored(db, student.id, q, exam.exam_id).answer == " True "


def test_comparison_is_case_sensitive():
    assert grader.is_correct("True", "True")
    assert not grader.is_correct("true", "True")


def test_grade_is_write_once():
    row = StudentAnswer(student_id=1, question_id=1, exam_id=1, answer="B", is_correct=True)
    q = Question(type=1, text="x", correct_answer="A", course_id=1)
    assert grader.grade_answer(row, q) is True
    assert row.is_correct is True


def test_validation_order(db, setup):
    course, student, exam = setup
    q = exam.question_ids[0]
    with pytest.raises(StudentNotFound):
        recorder.record_answer(db, 1500, 99999, 99999, "True")
    with pytest.raises(ExamNotFound):
        recorder.record_answer(db, student.id, 99999, 200, "True")
    with pytest.raises(QuestionNotInExam):
        recorder.record_answer(db, student.id, 99999, exam.exam_id, "True")
    recorder.record_answer(db, student.id, q, exam.exam_id, "A")
    with pytest.raises(DuplicateAnswer):
        recorder.record_answer(db, student.id, q, exam.exam_id, "B")


def test_question_from_same_course_but_other_exam_is_rejected(db):
    course = make_course(db, "Databases", mcq=20, tf=0)
    student = make_student(db, course=course)
    exam = composer.compose_exam(db, course.id)
    outside = next(q for q in db.scalars(select(Question.id)) if q not in exam.question_ids)

    with pytest.raises(QuestionNotInExam):
        recorder.record_answer(db, student.id, outside, exam.exam_id, "A")
    assert db.scalar(select(func.count()).select_from(StudentAnswer)) == 0


def test_first_answer_stands(db, setup):
    _, student, exam = setup
    q = exam.question_ids[0]
    recorder.record_answer(db, student.id, q, exam.exam_id, "A")
    with pytest.raises(DuplicateAnswer):
        recorder.record_answer(db, student.id, q, exam.exam_id, "B")
    row = _stored(db, student.id, q, exam.exam_id)
    assert row.answer == "A"
    assert row.is_correct is True


def test_unique_key_guards_concurrent_submission(db, setup, monkeypatch):
    _, student, exam = setup
    q = exam.question_ids[0]

    # another request records the same triple first
    other = SessionLocal()
    try:
        recorder.record_answer(other, student.id, q, exam.exam_id, "A")
    finally:
        other.close()

    real_exists = recorder._answer_exists
    calls = []

    def stale_precheck(*args):
        calls.append(args)
        return False if len(calls) == 1 else real_exists(*args)

    monkeypatch.setattr(recorder, "_answer_exists", stale_precheck)
    with pytest.raises(DuplicateAnswer):
        recorder.record_answer(db, student.id, q, exam.exam_id, "B")
    assert _stored(db, student.id, q, exam.exam_id).answer == "A"


def test_question_leaving_exam_before_insert_is_not_in_exam(db, setup, monkeypatch):
    course, student, exam = setup
    outside = make_course(db, "Networks", mcq=1, tf=0)
    qid = db.scalar(select(Question.id).where(Question.course_id == outside.id))

    real_in_exam = recorder._in_exam
    calls = []

    def stale_membership(*args):
        calls.append(args)
        return True if len(calls) == 1 else real_in_exam(*args)

    monkeypatch.setattr(recorder, "_in_exam", stale_membership)
    with pytest.raises(QuestionNotInExam):
        recorder.record_answer(db, student.id, qid, exam.exam_id, "A")
    assert db.scalar(select(func.count()).select_from(StudentAnswer)) == 0
