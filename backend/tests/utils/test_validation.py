"""
Tests for input sanitization and request schema validation.
"""
import pytest
from pydantic import ValidationError

from app.core.validators import StringSanitizer, TextValidator
from app.schemas.review import Verdict
from app.schemas.submissions import SubmissionRequest


class TestStringSanitizer:
    def test_name_whitespace_collapses(self):
        assert StringSanitizer.sanitize_name("  Ivan \t  Petrov ") == "Ivan Petrov"

    def test_name_control_characters_removed(self):
        assert StringSanitizer.sanitize_name("Ann\x00a\x07") == "Anna"

    def test_name_truncated(self):
        assert len(StringSanitizer.sanitize_name("x" * 400)) == 255

    @pytest.mark.parametrize(
        "a, b",
        [
            ("Ivan Petrov", "  IVAN   petrov"),
            ("Иван Петров", "ИВАН  петров"),
            ("Weiß", "WEISS"),
        ],
    )
    def test_respondent_key_ignores_case_and_spacing(self, a, b):
        assert StringSanitizer.respondent_key(a) == StringSanitizer.respondent_key(b)

    def test_answer_keeps_inner_newlines(self):
        assert StringSanitizer.sanitize_answer(" line one\nline two ") == "line one\nline two"

    def test_answer_truncated(self):
        assert len(StringSanitizer.sanitize_answer("y" * 6000)) == 5000


class TestTextValidator:
    def test_whitespace_only_rejected(self):
        with pytest.raises(ValueError):
            TextValidator.validate_non_empty_text("   ", "Respondent")

    def test_value_is_stripped(self):
        assert TextValidator.validate_non_empty_text(" ok ") == "ok"


class TestSubmissionRequest:
    def test_camel_case_payload(self):
        request = SubmissionRequest.model_validate(
            {
                "respondent": " Kim ",
                "answers": [{"questionId": "q1", "answerIds": [" q1-a ", "q1-b"]}],
            }
        )

        assert request.respondent == "Kim"
        assert request.answers[0].question_id == "q1"
        assert request.answers[0].answer_ids == ["q1-a", "q1-b"]

    def test_missing_answer_ids_default_to_empty(self):
        request = SubmissionRequest.model_validate(
            {"respondent": "Kim", "answers": [{"questionId": "q1"}]}
        )

        assert request.answers[0].answer_ids == []

    def test_blank_respondent_rejected(self):
        with pytest.raises(ValidationError):
            SubmissionRequest.model_validate({"respondent": " \t ", "answers": []})


class TestVerdict:
    def test_strict_boolean(self):
        with pytest.raises(ValidationError):
            Verdict.model_validate({"answerId": 1, "isCorrect": "true"})

    def test_answer_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            Verdict.model_validate({"answerId": 0, "isCorrect": True})
