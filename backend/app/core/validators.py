"""
Input sanitization and validation utilities used by the request schemas.
"""
import re


class StringSanitizer:
    """
    String sanitization for free-form user input.

    Values are stored as typed; HTML escaping is left to whoever renders them.
    """

    # Control characters to strip (except newlines, tabs, carriage returns)
    CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

    MAX_NAME_LENGTH = 255
    MAX_ANSWER_LENGTH = 5000

    @classmethod
    def _base_sanitize(cls, value: str) -> str:
        """Strip control characters and surrounding whitespace."""
        value = cls.CONTROL_CHARS_PATTERN.sub("", value)
        return value.strip()

    @classmethod
    def sanitize_name(cls, name: str) -> str:
        """
        Sanitize a respondent or test name.

        Inner whitespace runs collapse to one space so "Ivan  Petrov" and
        "Ivan Petrov" are the same respondent.
        """
        name = cls._base_sanitize(name)
        name = re.sub(r"\s+", " ", name)
        return name[: cls.MAX_NAME_LENGTH]

    @classmethod
    def respondent_key(cls, name: str) -> str:
        """
        Comparison key for respondent names.

        Casefolded in Python rather than lowered in SQL: SQLite's lower()
        only folds ASCII, so "ИВАН" and "иван" would never match there.
        """
        return cls.sanitize_name(name).casefold()

    @classmethod
    def sanitize_answer(cls, answer: str) -> str:
        """Sanitize a submitted answer value, truncating oversized input."""
        answer = cls._base_sanitize(answer)
        if len(answer) > cls.MAX_ANSWER_LENGTH:
            answer = answer[: cls.MAX_ANSWER_LENGTH]
        return answer


class TextValidator:
    """
    Text validation utilities for schema field validation.
    """

    @staticmethod
    def validate_non_empty_text(value: str, field_name: str = "Text") -> str:
        """
        Validate that text is not empty or whitespace-only.

        Args:
            value: Text to validate
            field_name: Name of the field for error messages

        Returns:
            The stripped value if valid

        Raises:
            ValueError: If the text is empty or whitespace-only
        """
        stripped = value.strip()
        if not stripped:
            raise ValueError(f"{field_name} cannot be empty or whitespace-only")
        return stripped
