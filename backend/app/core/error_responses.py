"""
Standardized error response messages and builders.

All user-facing error text lives in ErrorMessages so services and routers
word the same failure the same way.

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Include relevant IDs in parentheses when helpful for debugging: "(ID: 123)"
- Use "Please try again later." for transient server errors

Usage:
    from app.core.error_responses import ErrorMessages
    from app.core.exceptions import NotFoundError

    raise NotFoundError(ErrorMessages.test_not_found(test_id))
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    ADMIN_TOKEN_INVALID = "Invalid admin token."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_UNAVAILABLE = "Test not found or not active."
    NO_PASSED_RESULT = "No passed result found for this respondent."

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    ALREADY_PASSED = "You have already passed this test."
    CONSTRAINT_VIOLATION = "The change conflicts with existing data."

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    TEST_NOT_STARTED = "Test was not started. Please start the test first."
    TIME_EXPIRED = "Time for this test has expired."
    EMPTY_VERDICT_BATCH = "Verdict batch cannot be empty."
    MIXED_RESULT_BATCH = "All verdicts in a batch must belong to the same result."
    LAST_RESULT_PARAMS_REQUIRED = "Both testId and respondent are required."
    EMPTY_ID_LIST = "At least one id is required."
    NO_CORRECT_OPTION = "A checkbox question needs at least one correct option."

    # ==========================================================================
    # Server Errors (500)
    # ==========================================================================
    INTERNAL_ERROR = "An unexpected error occurred. Please try again later."

    # ==========================================================================
    # Configuration Errors (500)
    # ==========================================================================
    ADMIN_TOKEN_NOT_CONFIGURED = "Admin token not configured on server."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def test_not_found(test_id: str) -> str:
        return f"Test {test_id} not found."

    @staticmethod
    def settings_not_found(test_id: str) -> str:
        """Message when a test exists but has no settings row."""
        return f"Settings for test {test_id} not found."

    @staticmethod
    def question_not_found(question_id: str) -> str:
        return f"Question {question_id} not found."

    @staticmethod
    def result_not_found(result_id: int) -> str:
        return f"Test result {result_id} not found."

    @staticmethod
    def unknown_correct_keys(keys: set) -> str:
        """Message when correct keys name options that were not saved."""
        return f"Correct keys do not match any option: {', '.join(sorted(keys))}."

    @staticmethod
    def answers_not_found(answer_ids: set) -> str:
        """Message when verdicts reference answers that do not exist."""
        ids_str = ", ".join(str(aid) for aid in sorted(answer_ids))
        return f"Answers not found: {ids_str}."

    @staticmethod
    def database_operation_failed(operation: str) -> str:
        """Generic message for database operation failures."""
        return f"Failed to {operation}. Please try again later."


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_unauthorized(detail: str) -> NoReturn:
    """Raise a 401 Unauthorized exception.

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 401 Unauthorized
    """
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
    )


def raise_not_configured(detail: str) -> NoReturn:
    """Raise a 500 error for missing server configuration.

    Args:
        detail: Error message describing what's not configured

    Raises:
        HTTPException: 500 Internal Server Error
    """
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )
