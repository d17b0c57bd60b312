from typing import List, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from exam_engine.core.auth import ROLE_ADMIN, ROLE_INSTRUCTOR, require_roles
from exam_engine.core.database import get_db
from exam_engine.models.orm import Question
from exam_engine.services import question_bank

router = APIRouter()

authors = require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)


class QuestionCreate(BaseModel):
    type: int = Field(description="1 = multiple choice, 2 = true/false")
    text: str
    correct_answer: str
    course_name: str
    answer_options: Union[str, List[str]]


class QuestionUpdate(BaseModel):
    type: Optional[int] = None
    text: Optional[str] = None
    correct_answer: Optional[str] = None
    course_id: Optional[int] = None
    answer_options: Optional[Union[str, List[str]]] = None


class QuestionOut(BaseModel):
    question_id: int
    type: int
    text: str
    correct_answer: str
    course_id: int
    answer_options: List[str]


def _out(q: Question) -> QuestionOut:
    return QuestionOut(
        question_id=q.id, type=q.type, text=q.text, correct_answer=q.correct_answer,
        course_id=q.course_id, answer_options=sorted(o.option_text for o in q.options),
    )


@router.post("", response_model=QuestionOut, status_code=201, dependencies=[Depends(authors)])
def create_question(payload: QuestionCreate, db: Session = Depends(get_db)):
    q = question_bank.add_question(
        db, payload.type, payload.text, payload.correct_answer, payload.course_name, payload.answer_options
    )
    return _out(q)


@router.patch("/{question_id}", response_model=QuestionOut, dependencies=[Depends(authors)])
def update_question(question_id: int, payload: QuestionUpdate, db: Session = Depends(get_db)):
    q = question_bank.edit_question(db, question_id, **payload.model_dump(exclude_unset=True))
    return _out(q)


@router.delete("/{question_id}", status_code=204, dependencies=[Depends(authors)])
def delete_question(question_id: int, db: Session = Depends(get_db)):
    question_bank.remove_question(db, question_id)
