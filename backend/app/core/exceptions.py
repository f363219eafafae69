"""
Domain exceptions raised by the service layer.

Services never raise HTTPException; the application maps every QuizError
subclass onto a response in one exception handler (see app.main). The
status_code attribute is the only HTTP knowledge these classes carry.
"""
from typing import Optional


class QuizError(Exception):
    """Base class for expected, user-facing failures."""

    error_code = "quiz_error"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(QuizError):
    """A test, settings row, question, answer or result does not exist."""

    error_code = "not_found"
    status_code = 404


class InvalidInputError(QuizError):
    """Input passed shape validation but breaks a business precondition."""

    error_code = "invalid_input"
    status_code = 400


class AlreadyPassedError(QuizError):
    """The respondent already holds a passed result for this test."""

    error_code = "already_passed"
    status_code = 409


class TimeExpiredError(QuizError):
    """The attempt's time budget (plus grace) ran out before submission."""

    error_code = "time_expired"
    status_code = 400


class ConflictError(QuizError):
    """A write collided with a uniqueness or foreign key constraint."""

    error_code = "conflict"
    status_code = 409


class InternalError(QuizError):
    """
    Unexpected store failure. The transaction has been rolled back.

    Attributes:
        operation_name: The operation that was running when the store failed
    """

    error_code = "internal_error"
    status_code = 500

    def __init__(self, message: str, operation_name: Optional[str] = None):
        self.operation_name = operation_name
        super().__init__(message)
