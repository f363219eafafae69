"""
Tests for centralized error messages.
"""
from app.core.error_responses import ErrorMessages


class TestErrorMessageTemplates:
    def test_unknown_correct_keys_are_sorted(self):
        message = ErrorMessages.unknown_correct_keys({"z", "b"})

        assert message == "Correct keys do not match any option: b, z."

    def test_answers_not_found_lists_ids(self):
        assert ErrorMessages.answers_not_found({12, 3}) == "Answers not found: 3, 12."

    def test_static_messages_are_plain_strings(self):
        constants = {
            name: value
            for name, value in vars(ErrorMessages).items()
            if name.isupper()
        }

        assert constants
        assert all(isinstance(value, str) and value for value in constants.values())
        assert ErrorMessages.NO_CORRECT_OPTION in constants.values()
