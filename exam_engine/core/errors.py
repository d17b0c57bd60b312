"""
Exam engine exceptions.

Services raise these; the HTTP layer turns them into status codes and the CLI
into exit codes.
"""

from typing import Any, Dict, Optional


class ExamEngineError(Exception):
    """Base exception for exam engine errors."""

    code = "EXAM_ENGINE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# ========== Not found ==========

class NotFoundError(ExamEngineError):
    code = "NOT_FOUND"


class CourseNotFound(NotFoundError):
    code = "COURSE_NOT_FOUND"

    def __init__(self, course: Any):
        super().__init__(f"Course {course!r} is not found", details={"course": course})


class StudentNotFound(NotFoundError):
    code = "STUDENT_NOT_FOUND"

    def __init__(self, student_id: int):
        super().__init__(f"Student {student_id} does not exist", details={"student_id": student_id})


class ExamNotFound(NotFoundError):
    code = "EXAM_NOT_FOUND"

    def __init__(self, exam_id: int):
        super().__init__(f"Exam with ID {exam_id} does not exist", details={"exam_id": exam_id})


class QuestionNotFound(NotFoundError):
    code = "QUESTION_NOT_FOUND"

    def __init__(self, question_id: int):
        super().__init__(f"Question {question_id} does not exist", details={"question_id": question_id})


# ========== Duplicates ==========

class DuplicateError(ExamEngineError):
    code = "DUPLICATE"


class DuplicateQuestion(DuplicateError):
    code = "DUPLICATE_QUESTION"

    def __init__(self, text: str):
        super().__init__("The question already exists", details={"text": text})


class DuplicateCourse(DuplicateError):
    code = "DUPLICATE_COURSE"

    def __init__(self, name: str):
        super().__init__(f"Course {name!r} already exists", details={"name": name})


class DuplicateAnswer(DuplicateError):
    code = "DUPLICATE_ANSWER"

    def __init__(self, student_id: int, question_id: int, exam_id: int):
        super().__init__(
            f"Student {student_id} already answered question {question_id} in exam {exam_id}",
            details={"student_id": student_id, "question_id": question_id, "exam_id": exam_id},
        )


# ========== Integrity ==========

class IntegrityViolation(ExamEngineError):
    code = "INTEGRITY_VIOLATION"


class QuestionNotInExam(IntegrityViolation):
    code = "QUESTION_NOT_IN_EXAM"

    def __init__(self, question_id: int, exam_id: int):
        super().__init__(
            f"Question with ID {question_id} does not exist in Exam ID {exam_id}.",
            details={"question_id": question_id, "exam_id": exam_id},
        )


# ========== Validation ==========

class ValidationError(ExamEngineError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message, details=error_details)
