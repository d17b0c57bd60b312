from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from exam_engine.core.auth import ROLE_ADMIN, require_roles
from exam_engine.core.database import get_db
from exam_engine.services import directory

router = APIRouter(dependencies=[Depends(require_roles(ROLE_ADMIN))])


class CourseIn(BaseModel):
    name: str
    duration: int = Field(gt=0)


class StudentIn(BaseModel):
    full_name: str
    college: str = ""


class EnrollmentIn(BaseModel):
    student_ids: List[int] = Field(min_length=1)
    course_name: str


@router.post("/courses", status_code=201)
def create_course(payload: CourseIn, db: Session = Depends(get_db)):
    c = directory.register_course(db, payload.name, payload.duration)
    return {"course_id": c.id, "name": c.name, "duration": c.duration}


@router.post("/students", status_code=201)
def create_student(payload: StudentIn, db: Session = Depends(get_db)):
    s = directory.register_student(db, payload.full_name, payload.college)
    return {"student_id": s.id, "full_name": s.full_name}


@router.post("/enrollments")
def enroll(payload: EnrollmentIn, db: Session = Depends(get_db)):
    return {"results": directory.enroll_students(db, payload.student_ids, payload.course_name)}
