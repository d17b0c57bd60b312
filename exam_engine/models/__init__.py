from exam_engine.models.orm import (
    AnswerOption, Base, Course, Enrollment, Exam, ExamQuestion, Question,
    QuestionType, Student, StudentAnswer,
)

__all__ = [
    "AnswerOption", "Base", "Course", "Enrollment", "Exam", "ExamQuestion",
    "Question", "QuestionType", "Student", "StudentAnswer",
]
