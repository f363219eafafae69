"""
Tests for submission scoring and result persistence.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core.attempt_context import AttemptContext
from app.core.datetime_utils import utc_now
from app.core.exceptions import (
    AlreadyPassedError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    TimeExpiredError,
)
from app.models import QuestionKind, ResultStatus, ReviewStatus, TestAnswer, TestResult
from app.schemas.submissions import SubmittedAnswer
from app.services.event_hub import NEW_RESULT
from app.services.submission_service import submit_test


def answer(question, *values):
    return SubmittedAnswer(question_id=question.id, answer_ids=list(values))


async def count_results(db_session):
    return (await db_session.execute(select(func.count(TestResult.id)))).scalar_one()


@pytest.fixture
async def quiz(make_test, make_question):
    """A test with one select, one match question; pass mark 2."""
    test = await make_test("Capitals", passing_score=2)
    select_q = await make_question(
        test,
        "Which are in Europe?",
        options={"a": "Paris", "b": "Lima", "c": "Rome"},
        correct=["a", "c"],
    )
    match_q = await make_question(
        test,
        "Match the capitals",
        kind=QuestionKind.MATCH,
        match_prompts=["France", "Italy"],
        match_answers=["Paris", "Rome"],
    )
    return test, select_q, match_q


class TestSubmitTest:
    """Tests for submit_test."""

    async def test_all_correct_passes(self, db_session, quiz, attempt, hub):
        """Two correct answers against a pass mark of 2 pass."""
        test, select_q, match_q = quiz
        attempt.start(test.id)

        response = await submit_test(
            db_session,
            test.id,
            "Alice",
            [answer(select_q, f"{select_q.id}-a", f"{select_q.id}-c"), answer(match_q, "paris", "Rome")],
            attempt,
            hub,
        )

        assert response.status == ResultStatus.COMPLETED
        assert response.score == 2
        assert response.total == 2
        assert response.percentage == 100
        assert response.passed is True
        assert response.test_name == "Capitals"
        assert len(response.protocol_data) == 2

    async def test_one_wrong_fails_pass_mark(self, db_session, quiz, attempt, hub):
        test, select_q, match_q = quiz
        attempt.start(test.id)

        response = await submit_test(
            db_session,
            test.id,
            "Alice",
            [answer(select_q, f"{select_q.id}-a"), answer(match_q, "Paris", "Rome")],
            attempt,
            hub,
        )

        assert response.score == 1
        assert response.percentage == 50
        assert response.passed is False

    async def test_superset_selection_scores_zero(self, db_session, quiz, attempt, hub):
        """Selecting every option of a select question earns nothing."""
        test, select_q, _ = quiz
        attempt.start(test.id)

        response = await submit_test(
            db_session,
            test.id,
            "Alice",
            [answer(select_q, f"{select_q.id}-a", f"{select_q.id}-b", f"{select_q.id}-c")],
            attempt,
            hub,
        )

        assert response.score == 0
        assert response.total == 1

    async def test_question_from_other_test_is_dropped(
        self, db_session, quiz, make_test, make_question, attempt, hub
    ):
        """An answer to another test's question is neither scored nor stored."""
        test, select_q, _ = quiz
        other = await make_test("Other")
        foreign = await make_question(other, options={"a": "x"}, correct=["a"])
        attempt.start(test.id)

        response = await submit_test(
            db_session,
            test.id,
            "Alice",
            [
                answer(select_q, f"{select_q.id}-a", f"{select_q.id}-c"),
                answer(foreign, f"{foreign.id}-a"),
            ],
            attempt,
            hub,
        )

        assert response.total == 1
        assert response.score == 1
        stored = (
            await db_session.execute(
                select(TestAnswer.question_id).where(
                    TestAnswer.result_id == response.result_id
                )
            )
        ).scalars().all()
        assert stored == [select_q.id]

    async def test_duplicate_question_first_answer_wins(
        self, db_session, quiz, attempt, hub
    ):
        test, select_q, _ = quiz
        attempt.start(test.id)

        response = await submit_test(
            db_session,
            test.id,
            "Alice",
            [
                answer(select_q, f"{select_q.id}-b"),
                answer(select_q, f"{select_q.id}-a", f"{select_q.id}-c"),
            ],
            attempt,
            hub,
        )

        assert response.total == 1
        assert response.score == 0

    async def test_text_answer_makes_result_pending(
        self, db_session, quiz, make_question, attempt, hub
    ):
        """A free-text answer defers the whole result to review."""
        test, select_q, _ = quiz
        text_q = await make_question(test, "Why?", kind=QuestionKind.TEXT_INPUT)
        attempt.start(test.id)

        response = await submit_test(
            db_session,
            test.id,
            "Alice",
            [
                answer(select_q, f"{select_q.id}-a", f"{select_q.id}-c"),
                answer(text_q, "Because"),
            ],
            attempt,
            hub,
        )

        assert response.status == ResultStatus.PENDING_REVIEW
        assert response.score is None
        assert response.protocol_data is None

        result = await db_session.get(TestResult, response.result_id)
        assert result.passed is False
        assert result.score == 1  # provisional
        statuses = (
            await db_session.execute(
                select(TestAnswer.review_status)
                .where(TestAnswer.result_id == response.result_id)
                .order_by(TestAnswer.id)
            )
        ).scalars().all()
        assert statuses == [ReviewStatus.AUTO, ReviewStatus.PENDING]

    async def test_empty_submission_completes_with_zero_total(
        self, db_session, quiz, attempt, hub
    ):
        test, _, _ = quiz
        attempt.start(test.id)

        response = await submit_test(db_session, test.id, "Alice", [], attempt, hub)

        assert response.status == ResultStatus.COMPLETED
        assert response.total == 0
        assert response.percentage == 0
        assert response.passed is False

    async def test_marker_cleared_after_success(self, db_session, quiz, attempt, hub):
        test, select_q, _ = quiz
        attempt.start(test.id)

        await submit_test(
            db_session, test.id, "Alice", [answer(select_q)], attempt, hub
        )

        assert attempt.started_at(test.id) is None

    async def test_not_started_is_rejected(self, db_session, quiz, attempt, hub):
        test, select_q, _ = quiz

        with pytest.raises(InvalidInputError):
            await submit_test(
                db_session, test.id, "Alice", [answer(select_q)], attempt, hub
            )
        assert await count_results(db_session) == 0

    async def test_expired_attempt_is_rejected_and_cleared(
        self, db_session, quiz, hub
    ):
        """Past duration plus grace nothing is stored and the marker goes away."""
        test, select_q, _ = quiz
        started = utc_now() - timedelta(minutes=10, seconds=30)
        attempt = AttemptContext({"attempts": {test.id: started.timestamp()}})

        with pytest.raises(TimeExpiredError):
            await submit_test(
                db_session, test.id, "Alice", [answer(select_q)], attempt, hub
            )

        assert attempt.started_at(test.id) is None
        assert await count_results(db_session) == 0

    async def test_within_grace_is_accepted(self, db_session, quiz, hub):
        test, select_q, _ = quiz
        started = utc_now() - timedelta(minutes=10, seconds=2)
        attempt = AttemptContext({"attempts": {test.id: started.timestamp()}})

        response = await submit_test(
            db_session, test.id, "Alice", [answer(select_q)], attempt, hub
        )

        assert response.result_id is not None

    async def test_already_passed_creates_no_row(self, db_session, quiz, attempt, hub):
        """A second attempt after a pass is refused before anything is written."""
        test, select_q, match_q = quiz
        correct = [
            answer(select_q, f"{select_q.id}-a", f"{select_q.id}-c"),
            answer(match_q, "Paris", "Rome"),
        ]
        attempt.start(test.id)
        await submit_test(db_session, test.id, "Alice", correct, attempt, hub)

        attempt.start(test.id)
        with pytest.raises(AlreadyPassedError):
            await submit_test(db_session, test.id, "  alice ", correct, attempt, hub)

        assert await count_results(db_session) == 1
        assert attempt.started_at(test.id) is None

    @pytest.mark.parametrize(
        "first, second",
        [
            ("Иван Петров", "Иван Петров"),
            ("Иван Петров", "иван  ПЕТРОВ"),
            ("Zoë Weiß", "ZOË WEISS"),
        ],
    )
    async def test_already_passed_matches_non_ascii_names(
        self, db_session, quiz, attempt, hub, first, second
    ):
        """Names outside ASCII still match regardless of case and spacing."""
        test, select_q, match_q = quiz
        correct = [
            answer(select_q, f"{select_q.id}-a", f"{select_q.id}-c"),
            answer(match_q, "Paris", "Rome"),
        ]
        attempt.start(test.id)
        await submit_test(db_session, test.id, first, correct, attempt, hub)

        attempt.start(test.id)
        with pytest.raises(AlreadyPassedError):
            await submit_test(db_session, test.id, second, correct, attempt, hub)

        assert await count_results(db_session) == 1

    async def test_failed_attempt_does_not_block_retry(
        self, db_session, quiz, attempt, hub
    ):
        test, select_q, _ = quiz
        attempt.start(test.id)
        await submit_test(db_session, test.id, "Alice", [answer(select_q)], attempt, hub)

        attempt.start(test.id)
        await submit_test(db_session, test.id, "Alice", [answer(select_q)], attempt, hub)

        assert await count_results(db_session) == 2

    async def test_missing_test_is_not_found(self, db_session, attempt, hub):
        attempt.start("missing")

        with pytest.raises(NotFoundError):
            await submit_test(db_session, "missing", "Alice", [], attempt, hub)

    async def test_store_failure_leaves_nothing_behind(
        self, db_session, quiz, attempt, hub
    ):
        """A failing commit rolls back the result and all of its answers."""
        test, select_q, _ = quiz
        test_id, question_id = test.id, select_q.id
        attempt.start(test_id)

        with patch.object(
            db_session,
            "commit",
            side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(InternalError):
                await submit_test(
                    db_session,
                    test_id,
                    "Alice",
                    [SubmittedAnswer(question_id=question_id)],
                    attempt,
                    hub,
                )

        assert await count_results(db_session) == 0
        assert (
            await db_session.execute(select(func.count(TestAnswer.id)))
        ).scalar_one() == 0
        # Marker survives so the respondent can resubmit
        assert attempt.started_at(test_id) is not None

    async def test_new_result_event_published_after_commit(
        self, db_session, quiz, attempt, hub
    ):
        test, select_q, _ = quiz
        attempt.start(test.id)

        async with hub.subscribe() as subscription:
            response = await submit_test(
                db_session, test.id, "Alice", [answer(select_q)], attempt, hub
            )
            event = await subscription.get(timeout=1)

        assert event.name == NEW_RESULT
        assert event.data["id"] == response.result_id
        assert event.data["testId"] == test.id
        assert event.data["testName"] == "Capitals"
        assert event.data["status"] == "completed"

    async def test_no_event_when_rejected(self, db_session, quiz, attempt, hub):
        test, select_q, _ = quiz

        async with hub.subscribe() as subscription:
            with pytest.raises(InvalidInputError):
                await submit_test(
                    db_session, test.id, "Alice", [answer(select_q)], attempt, hub
                )
            assert await subscription.get(timeout=0.05) is None
