"""
Read-mostly lookups into the institute directory (courses, students,
enrollments) used by the exam engine, plus the few registration helpers
operators need to seed it.
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exam_engine.core.database import unit_of_work
from exam_engine.core.errors import CourseNotFound, DuplicateCourse, ValidationError
from exam_engine.models.orm import Course, Enrollment, Exam, Student
from exam_engine.services.text import canonical_key

logger = logging.getLogger(__name__)


def resolve_course_id(db: Session, name: str) -> Optional[int]:
    return db.scalar(select(Course.id).where(Course.name_key == canonical_key(name)))


def course_exists(db: Session, course_id: int) -> bool:
    return db.get(Course, course_id) is not None


def student_exists(db: Session, student_id: int) -> bool:
    return db.get(Student, student_id) is not None


def exam_course_id(db: Session, exam_id: int) -> Optional[int]:
    return db.scalar(select(Exam.course_id).where(Exam.id == exam_id))


def get_enrollment(db: Session, student_id: int, course_id: int) -> Optional[Enrollment]:
    return db.get(Enrollment, {"student_id": student_id, "course_id": course_id})


def set_enrollment_score(db: Session, student_id: int, course_id: int, score_text: str) -> bool:
    """Overwrite the score of an existing enrollment. Does not commit.

    Returns False when the student is not enrolled in the course.
    """
    row = get_enrollment(db, student_id, course_id)
    if row is None:
        return False
    row.score = score_text
    return True


def register_course(db: Session, name: str, duration: int) -> Course:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Course name is required", field="name")
    if duration is None or duration <= 0:
        raise ValidationError("Course duration must be positive", field="duration")
    if resolve_course_id(db, name) is not None:
        logger.warning(f"Course {name!r} already exists")
        raise DuplicateCourse(name)
    try:
        with unit_of_work(db):
            course = Course(name=name, duration=duration)
            db.add(course)
            db.flush()
    except IntegrityError:
        raise DuplicateCourse(name)
    logger.info(f"Course {course.id} registered: {name!r}")
    return course


def register_student(db: Session, full_name: str, college: str = "") -> Student:
    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("Student name is required", field="full_name")
    with unit_of_work(db):
        student = Student(full_name=full_name, college=(college or "").strip())
        db.add(student)
        db.flush()
    logger.info(f"Student {student.id} registered")
    return student


def enroll_students(db: Session, student_ids: Iterable[int], course_name: str) -> List[Dict]:
    """Enroll each existing student in the named course.

    Unknown students and existing enrollments are reported, not raised.
    """
    course_id = resolve_course_id(db, course_name)
    if course_id is None:
        logger.warning(f"Course with name {course_name!r} does not exist")
        raise CourseNotFound(course_name)
    report = []
    with unit_of_work(db):
        for sid in dict.fromkeys(student_ids):
            if not student_exists(db, sid):
                report.append({"student_id": sid, "status": "student_not_found"})
            elif get_enrollment(db, sid, course_id) is not None:
                report.append({"student_id": sid, "status": "already_enrolled"})
            else:
                db.add(Enrollment(student_id=sid, course_id=course_id))
                report.append({"student_id": sid, "status": "enrolled"})
    enrolled = sum(1 for r in report if r["status"] == "enrolled")
    logger.info(f"Enrolled {enrolled} of {len(report)} students in course {course_id}")
    return report
