import redis

from exam_engine.core.auth import create_token
from exam_engine.models.orm import (
    AnswerOption, Course, Enrollment, Question, QuestionType, Student,
)


class DictRedis:
    """In-memory stand-in for the handful of redis commands the cache uses."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def delete(self, *keys):
        n = 0
        for k in keys:
            if self.store.pop(k, None) is not None:
                n += 1
        return n


class DownRedis:
    """Client whose every command fails as if the server were unreachable."""

    def get(self, key):
        raise redis.ConnectionError("redis is down")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("redis is down")

    def delete(self, *keys):
        raise redis.ConnectionError("redis is down")


def make_course(db, name="Databases", mcq=15, tf=5, duration=30):
    """Course with ``mcq`` multiple-choice ("A" correct) and ``tf`` true/false ("True" correct) questions."""
    course = Course(name=name, duration=duration)
    db.add(course)
    db.flush()
    for i in range(mcq):
        q = Question(type=int(QuestionType.MULTIPLE_CHOICE), text=f"{name} MCQ {i}?", correct_answer="A", course_id=course.id)
        q.options = [AnswerOption(option_text=o) for o in ("A", "B", "C", "D")]
        db.add(q)
    for i in range(tf):
        q = Question(type=int(QuestionType.TRUE_FALSE), text=f"{name} TF {i}?", correct_answer="True", course_id=course.id)
        q.options = [AnswerOption(option_text=o) for o in ("True", "False")]
        db.add(q)
    db.commit()
    return course


def make_student(db, full_name="Mona Adel", course=None):
    student = Student(full_name=full_name, college="Engineering")
    db.add(student)
    db.flush()
    if course is not None:
        db.add(Enrollment(student_id=student.id, course_id=course.id))
    db.commit()
    return student


def auth(user_id="staff", roles=("admin",)):
    return {"Authorization": f"Bearer {create_token(str(user_id), list(roles))}"}
