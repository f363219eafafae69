"""
Tests for manual review and result finalization.
"""
import pytest
from sqlalchemy import select

from app.core.exceptions import InvalidInputError, NotFoundError
from app.models import QuestionKind, ResultStatus, ReviewStatus, TestAnswer, TestResult
from app.schemas.review import Verdict
from app.schemas.submissions import SubmittedAnswer
from app.services.event_hub import RESULT_REVIEWED
from app.services.protocol_service import AWAITING_REVIEW, REVIEWED_MANUALLY, build_protocol
from app.services.review_service import count_pending, get_pending_reviews, submit_batch
from app.services.submission_service import submit_test


@pytest.fixture
async def pending_result(db_session, make_test, make_question, attempt, hub):
    """
    A pending_review result: one correct select answer and three free-text
    answers. The test's pass mark is 3.
    """
    test = await make_test("Essay", passing_score=3)
    select_q = await make_question(
        test, "Pick a", options={"a": "A", "b": "B"}, correct=["a"]
    )
    text_qs = [
        await make_question(
            test, f"Explain #{i}", kind=QuestionKind.TEXT_INPUT, explanation=f"Hint {i}"
        )
        for i in range(3)
    ]
    attempt.start(test.id)
    response = await submit_test(
        db_session,
        test.id,
        "Bob",
        [SubmittedAnswer(question_id=select_q.id, answer_ids=[f"{select_q.id}-a"])]
        + [
            SubmittedAnswer(question_id=q.id, answer_ids=[f"answer {i}"])
            for i, q in enumerate(text_qs)
        ],
        attempt,
        hub,
    )
    answer_ids = (
        await db_session.execute(
            select(TestAnswer.id)
            .where(
                TestAnswer.result_id == response.result_id,
                TestAnswer.review_status == ReviewStatus.PENDING,
            )
            .order_by(TestAnswer.id)
        )
    ).scalars().all()
    return response.result_id, answer_ids


async def reload_result(db_session, result_id):
    return (
        await db_session.execute(
            select(TestResult)
            .where(TestResult.id == result_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()


class TestGetPendingReviews:
    async def test_lists_pending_text_answers(self, db_session, pending_result):
        result_id, answer_ids = pending_result

        items = await get_pending_reviews(db_session, result_id)

        assert [item.answer_id for item in items] == answer_ids
        assert items[0].user_answer == "answer 0"
        assert items[0].question_text == "Explain #0"
        assert items[0].explanation == "Hint 0"

    async def test_missing_result_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await get_pending_reviews(db_session, 999)


class TestSubmitBatch:
    """Tests for submit_batch."""

    async def test_partial_batch_keeps_result_pending(
        self, db_session, pending_result, hub
    ):
        result_id, answer_ids = pending_result

        response = await submit_batch(
            db_session,
            [Verdict(answer_id=answer_ids[0], is_correct=True)],
            hub,
        )

        assert response.is_finalized is False
        assert await count_pending(db_session, result_id) == 2
        result = await reload_result(db_session, result_id)
        assert result.status == ResultStatus.PENDING_REVIEW
        assert result.passed is False

    async def test_last_verdicts_finalize_and_recompute(
        self, db_session, pending_result, hub
    ):
        """Score becomes the count of correct answers over every answer."""
        result_id, answer_ids = pending_result
        await submit_batch(
            db_session, [Verdict(answer_id=answer_ids[0], is_correct=True)], hub
        )

        async with hub.subscribe() as subscription:
            response = await submit_batch(
                db_session,
                [
                    Verdict(answer_id=answer_ids[1], is_correct=True),
                    Verdict(answer_id=answer_ids[2], is_correct=False),
                ],
                hub,
            )
            event = await subscription.get(timeout=1)

        assert response.is_finalized is True
        result = await reload_result(db_session, result_id)
        assert result.status == ResultStatus.COMPLETED
        assert result.score == 3  # select + two accepted texts
        assert result.total == 4
        assert result.percentage == 75
        assert result.passed is True

        assert event.name == RESULT_REVIEWED
        assert event.data["resultId"] == result_id
        final = event.data["finalResultData"]
        assert final["score"] == 3
        assert final["status"] == "completed"
        assert len(final["protocolData"]) == 4

    async def test_rejected_texts_fail_pass_mark(self, db_session, pending_result, hub):
        result_id, answer_ids = pending_result

        response = await submit_batch(
            db_session,
            [Verdict(answer_id=a, is_correct=False) for a in answer_ids],
            hub,
        )

        assert response.is_finalized is True
        result = await reload_result(db_session, result_id)
        assert result.score == 1
        assert result.passed is False

    async def test_replayed_batch_is_idempotent(self, db_session, pending_result, hub):
        """A second identical batch changes nothing and does not refinalize."""
        result_id, answer_ids = pending_result
        verdicts = [Verdict(answer_id=a, is_correct=True) for a in answer_ids]
        first = await submit_batch(db_session, verdicts, hub)

        async with hub.subscribe() as subscription:
            second = await submit_batch(
                db_session,
                [Verdict(answer_id=a, is_correct=False) for a in answer_ids],
                hub,
            )
            assert await subscription.get(timeout=0.05) is None

        assert first.is_finalized is True
        assert second.is_finalized is False
        result = await reload_result(db_session, result_id)
        assert result.score == 4
        statuses = (
            await db_session.execute(
                select(TestAnswer.review_status)
                .where(TestAnswer.id.in_(answer_ids))
                .execution_options(populate_existing=True)
            )
        ).scalars().all()
        assert set(statuses) == {ReviewStatus.MANUAL_CORRECT}

    async def test_unknown_answer_is_not_found(self, db_session, pending_result, hub):
        result_id, answer_ids = pending_result

        with pytest.raises(NotFoundError):
            await submit_batch(
                db_session,
                [
                    Verdict(answer_id=answer_ids[0], is_correct=True),
                    Verdict(answer_id=99999, is_correct=True),
                ],
                hub,
            )
        assert await count_pending(db_session, result_id) == 3

    async def test_batch_spanning_results_is_rejected(
        self, db_session, make_test, make_question, attempt, hub, pending_result
    ):
        _, answer_ids = pending_result
        test = await make_test("Another")
        text_q = await make_question(test, "Why?", kind=QuestionKind.TEXT_INPUT)
        attempt.start(test.id)
        other = await submit_test(
            db_session,
            test.id,
            "Carol",
            [SubmittedAnswer(question_id=text_q.id, answer_ids=["x"])],
            attempt,
            hub,
        )
        other_answer_id = (
            await db_session.execute(
                select(TestAnswer.id).where(TestAnswer.result_id == other.result_id)
            )
        ).scalar_one()

        with pytest.raises(InvalidInputError):
            await submit_batch(
                db_session,
                [
                    Verdict(answer_id=answer_ids[0], is_correct=True),
                    Verdict(answer_id=other_answer_id, is_correct=True),
                ],
                hub,
            )

    async def test_empty_batch_is_rejected(self, db_session, hub):
        with pytest.raises(InvalidInputError):
            await submit_batch(db_session, [], hub)

    async def test_protocol_marks_review_state(self, db_session, pending_result, hub):
        result_id, answer_ids = pending_result
        await submit_batch(
            db_session, [Verdict(answer_id=answer_ids[0], is_correct=True)], hub
        )

        protocol = await build_protocol(db_session, result_id)

        correct_texts = [entry.correct_answer_text for entry in protocol.protocol[1:]]
        assert correct_texts == [REVIEWED_MANUALLY, AWAITING_REVIEW, AWAITING_REVIEW]
        assert protocol.protocol[1].review_status == ReviewStatus.MANUAL_CORRECT
        assert protocol.protocol[1].is_correct is True
