import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    BigInteger, Integer, String, Text, Boolean, DateTime, ForeignKey,
    ForeignKeyConstraint, CheckConstraint, Index, func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from exam_engine.services.text import canonical_key


class Base(DeclarativeBase):
    pass


class QuestionType(enum.IntEnum):
    # TrueFalse sorts above MultipleChoice; exam presentation relies on it
    MULTIPLE_CHOICE = 1
    TRUE_FALSE = 2


# ========== Directory (read-mostly collaborators) ==========

class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("duration > 0", name="ck_course_duration"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name_key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = canonical_key(value)
        return value


class Student(Base):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(160), nullable=False)
    college: Mapped[str] = mapped_column(String(100), nullable=False, default="")


class Enrollment(Base):
    __tablename__ = "student_courses"

    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True
    )
    course_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True
    )
    score: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)


# ========== Question bank ==========

class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint("type IN (1, 2)", name="ck_question_type"),
        Index("idx_questions_course_type", "course_id", "type"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    type: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    text_key: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    correct_answer: Mapped[str] = mapped_column(String(200), nullable=False)
    course_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )

    options: Mapped[List["AnswerOption"]] = relationship(
        back_populates="question", cascade="all, delete-orphan", passive_deletes=True
    )

    @validates("text")
    def _sync_text_key(self, key, value):
        self.text_key = canonical_key(value)
        return value


class AnswerOption(Base):
    __tablename__ = "answer_options"

    question_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True
    )
    option_text: Mapped[str] = mapped_column(String(200), primary_key=True)

    question: Mapped["Question"] = relationship(back_populates="options")


# ========== Delivery ==========

class Exam(Base):
    __tablename__ = "exams"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    course_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())


class ExamQuestion(Base):
    __tablename__ = "exam_questions"

    exam_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("exams.id", ondelete="CASCADE"), primary_key=True
    )
    question_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True
    )


class StudentAnswer(Base):
    __tablename__ = "student_answers"
    __table_args__ = (
        # an answer can only reference a question that is part of that exam
        ForeignKeyConstraint(
            ["exam_id", "question_id"],
            ["exam_questions.exam_id", "exam_questions.question_id"],
            ondelete="CASCADE",
        ),
        Index("idx_sa_student_exam", "student_id", "exam_id"),
    )

    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("students.id"), primary_key=True
    )
    question_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    exam_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    answer: Mapped[str] = mapped_column(String(200), nullable=False)
    is_correct: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    answered_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
