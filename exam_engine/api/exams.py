from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from exam_engine.core.auth import (
    ROLE_ADMIN, ROLE_INSTRUCTOR, ROLE_STUDENT, TokenData, ensure_self_or_staff, require_roles,
)
from exam_engine.core.database import get_db
from exam_engine.services import composer, presenter, recorder, scoring

router = APIRouter()


class ExamCreate(BaseModel):
    course_id: int


class ExamCreated(BaseModel):
    exam_id: int
    course_id: int
    question_ids: List[int]


class PresentedRow(BaseModel):
    exam_id: int
    course_name: str
    question_id: int
    question_text: str
    question_type: int
    answer_option: str


class PresentedQuestion(BaseModel):
    question_id: int
    question_text: str
    question_type: int
    options: List[str]


class ExamView(BaseModel):
    exam_id: int
    rows: List[PresentedRow]
    questions: List[PresentedQuestion]


class AnswerSubmit(BaseModel):
    student_id: int
    question_id: int
    answer: str = Field(max_length=200)


class AnswerRecorded(BaseModel):
    student_id: int
    question_id: int
    exam_id: int
    recorded: bool = True


class ExamResultsOut(BaseModel):
    student_id: int
    exam_id: int
    course_id: int
    correct: int
    wrong: int
    answered: int
    score_percent: int
    score_text: str
    enrollment_updated: bool


@router.post("", response_model=ExamCreated, status_code=201,
             dependencies=[Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN))])
def create_exam(payload: ExamCreate, db: Session = Depends(get_db)):
    composed = composer.compose_exam(db, payload.course_id)
    return ExamCreated(exam_id=composed.exam_id, course_id=composed.course_id, question_ids=composed.question_ids)


@router.get("/{exam_id}", response_model=ExamView,
            dependencies=[Depends(require_roles(ROLE_STUDENT, ROLE_INSTRUCTOR, ROLE_ADMIN))])
def get_exam(exam_id: int, db: Session = Depends(get_db)):
    rows = presenter.present_exam(db, exam_id)
    return ExamView(exam_id=exam_id, rows=rows, questions=presenter.group_by_question(rows))


@router.post("/{exam_id}/answers", response_model=AnswerRecorded, status_code=201)
def submit_answer(exam_id: int, payload: AnswerSubmit,
                  user: TokenData = Depends(require_roles(ROLE_STUDENT, ROLE_ADMIN)),
                  db: Session = Depends(get_db)):
    ensure_self_or_staff(user, payload.student_id)
    rec = recorder.record_answer(db, payload.student_id, payload.question_id, exam_id, payload.answer)
    # correctness stays server-side until results are computed
    return AnswerRecorded(student_id=rec.student_id, question_id=rec.question_id, exam_id=rec.exam_id)


@router.get("/{exam_id}/results/{student_id}", response_model=ExamResultsOut)
def get_results(exam_id: int, student_id: int,
                user: TokenData = Depends(require_roles(ROLE_STUDENT, ROLE_INSTRUCTOR, ROLE_ADMIN)),
                db: Session = Depends(get_db)):
    ensure_self_or_staff(user, student_id)
    return ExamResultsOut(**scoring.compute_results(db, student_id, exam_id).to_dict())
