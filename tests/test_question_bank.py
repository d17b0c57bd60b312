import pytest
from sqlalchemy import func, select

from exam_engine.core.errors import (
    CourseNotFound, DuplicateQuestion, QuestionNotFound, ValidationError,
)
from exam_engine.models.orm import AnswerOption, ExamQuestion, Question, StudentAnswer
from exam_engine.services import composer, question_bank, recorder
from factories import make_course, make_student


def _options(db, qid):
    return sorted(db.scalars(select(AnswerOption.option_text).where(AnswerOption.question_id == qid)))


def test_add_question_trims_and_stores_options(db):
    course = make_course(db, "SQL Server", mcq=0, tf=0)
    q = question_bank.add_question(db, 1, "  Which clause filters groups?  ", " HAVING ", " SQLServer ", "WHERE, HAVING,,  ORDER BY ,")
    assert q.text == "Which clause filters groups?"
    assert q.correct_answer == "HAVING"
    assert q.course_id == course.id
    assert _options(db, q.id) == ["HAVING", "ORDER BY", "WHERE"]


def test_add_question_rejects_whitespace_equivalent_duplicate(db):
    make_course(db, "Python", mcq=0, tf=0)
    question_bank.add_question(db, 2, "Lists are mutable", "True", "Python", "True,False")
    with pytest.raises(DuplicateQuestion):
        question_bank.add_question(db, 2, "  Lists  are mutable ", "True", "Python", "True,False")
    assert db.scalar(select(func.count()).select_from(Question)) == 1


def test_duplicate_detection_is_case_sensitive(db):
    make_course(db, "Python", mcq=0, tf=0)
    question_bank.add_question(db, 2, "Lists are mutable", "True", "Python", "True,False")
    question_bank.add_question(db, 2, "LISTS are mutable", "True", "Python", "True,False")
    assert db.scalar(select(func.count()).select_from(Question)) == 2


def test_add_question_unknown_course(db):
    with pytest.raises(CourseNotFound):
        question_bank.add_question(db, 1, "Q?", "A", "Nope", "A,B")
    assert db.scalar(select(func.count()).select_from(Question)) == 0


@pytest.mark.parametrize("qtype", [0, 3, "essay", None])
def test_add_question_rejects_unknown_type(db, qtype):
    make_course(db, "Python", mcq=0, tf=0)
    with pytest.raises(ValidationError):
        question_bank.add_question(db, qtype, "Q?", "A", "Python", "A,B")


def test_add_question_requires_options(db):
    make_course(db, "Python", mcq=0, tf=0)
    with pytest.raises(ValidationError):
        question_bank.add_question(db, 1, "Q?", "A", "Python", " , ,")


def test_edit_question_is_partial(db):
    make_course(db, "Python", mcq=0, tf=0)
    q = question_bank.add_question(db, 1, "Pick a keyword", "def", "Python", "def,var,func")
    question_bank.edit_question(db, q.id, correct_answer=" lambda ")
    db.expire_all()
    q = db.get(Question, q.id)
    assert q.text == "Pick a keyword"
    assert q.correct_answer == "lambda"
    assert _options(db, q.id) == ["def", "func", "var"]


def test_edit_question_replaces_option_set(db):
    make_course(db, "Python", mcq=0, tf=0)
    q = question_bank.add_question(db, 1, "Pick a keyword", "def", "Python", "def,var,func")
    question_bank.edit_question(db, q.id, answer_options="def, lambda")
    assert _options(db, q.id) == ["def", "lambda"]


def test_edit_question_moves_course(db):
    make_course(db, "Python", mcq=0, tf=0)
    other = make_course(db, "Java", mcq=0, tf=0)
    q = question_bank.add_question(db, 1, "Pick a keyword", "def", "Python", "def,var")
    question_bank.edit_question(db, q.id, course_id=other.id)
    assert db.get(Question, q.id).course_id == other.id
    with pytest.raises(CourseNotFound):
        question_bank.edit_question(db, q.id, course_id=9999)


def test_edit_question_errors(db):
    make_course(db, "Python", mcq=0, tf=0)
    a = question_bank.add_question(db, 1, "First", "x", "Python", "x,y")
    question_bank.add_question(db, 1, "Second", "x", "Python", "x,y")
    with pytest.raises(QuestionNotFound):
        question_bank.edit_question(db, 9999, text="Anything")
    with pytest.raises(DuplicateQuestion):
        question_bank.edit_question(db, a.id, text="Sec ond")
    # renaming to its own text is not a duplicate
    question_bank.edit_question(db, a.id, text=" First ")


def test_remove_question_cascades(db):
    course = make_course(db, "Python", mcq=3, tf=0)
    student = make_student(db, course=course)
    exam = composer.compose_exam(db, course.id)
    qid = exam.question_ids[0]
    recorder.record_answer(db, student.id, qid, exam.exam_id, "A")

    question_bank.remove_question(db, qid)

    assert db.get(Question, qid) is None
    assert _options(db, qid) == []
    assert db.scalar(select(func.count()).select_from(ExamQuestion).where(ExamQuestion.question_id == qid)) == 0
    assert db.scalar(select(func.count()).select_from(StudentAnswer).where(StudentAnswer.question_id == qid)) == 0
    with pytest.raises(QuestionNotFound):
        question_bank.remove_question(db, qid)


def _stale_on_first_call(real):
    calls = []

    def lookup(*args, **kwargs):
        calls.append(args)
        return None if len(calls) == 1 else real(*args, **kwargs)
    return lookup


def test_unique_text_key_guards_concurrent_add(db, monkeypatch):
    make_course(db, "Python", mcq=0, tf=0)
    question_bank.add_question(db, 2, "Lists are mutable", "True", "Python", "True,False")
    # the early lookup misses a question another request just committed
    monkeypatch.setattr(question_bank, "find_duplicate", _stale_on_first_call(question_bank.find_duplicate))

    with pytest.raises(DuplicateQuestion):
        question_bank.add_question(db, 2, "Lists  are mutable", "True", "Python", "True,False")
    assert db.scalar(select(func.count()).select_from(Question)) == 1


def test_unique_text_key_guards_concurrent_edit(db, monkeypatch):
    make_course(db, "Python", mcq=0, tf=0)
    a = question_bank.add_question(db, 1, "First", "x", "Python", "x,y")
    question_bank.add_question(db, 1, "Second", "x", "Python", "x,y")
    monkeypatch.setattr(question_bank, "find_duplicate", _stale_on_first_call(question_bank.find_duplicate))

    with pytest.raises(DuplicateQuestion):
        question_bank.edit_question(db, a.id, text="Sec ond")
    db.expire_all()
    assert db.get(Question, a.id).text == "First"


def test_moving_a_question_keeps_it_in_existing_exams(db):
    course = make_course(db, "Python", mcq=1, tf=0)
    other = make_course(db, "Java", mcq=0, tf=0)
    exam = composer.compose_exam(db, course.id)
    qid = exam.question_ids[0]

    question_bank.edit_question(db, qid, course_id=other.id)

    members = db.scalars(select(ExamQuestion.question_id).where(ExamQuestion.exam_id == exam.exam_id))
    assert list(members) == [qid]
    assert db.get(Question, qid).course_id == other.id
