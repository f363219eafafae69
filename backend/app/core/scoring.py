"""
Answer scoring.

Decides, per submitted answer, whether it is correct, or defers it to manual
review. Scoring is pure: it reads the canonical question definition and the
submitted values and touches no session or store.

Select-kind: the set of submitted option keys must equal the canonical key
set exactly (no partial credit). Keys are only taken from option ids that
belong to the addressed question; anything else is discarded before scoring.

Match-kind: the ordered right-hand values must equal the canonical ordered
list element by element, compared trimmed and case-insensitively.

Free-text: never auto-scored; always pending with a provisional False.
"""
import math
from dataclasses import dataclass
from typing import List, Sequence

from app.models.models import Question, QuestionKind, ReviewStatus
from app.models.types import AnswerPayload, MatchAnswer, SelectAnswer, TextAnswer


@dataclass(frozen=True)
class ScoreOutcome:
    """Result of scoring one answer."""

    is_correct: bool
    review_status: ReviewStatus
    payload: AnswerPayload

    @property
    def counts_toward_score(self) -> bool:
        return self.is_correct and self.review_status == ReviewStatus.AUTO


def _normalize(value: str) -> str:
    return (value or "").strip().lower()


def option_keys_in_scope(question: Question, option_ids: Sequence[str]) -> List[str]:
    """
    Extract option keys from submitted ids that belong to this question.

    An id counts only when it carries the question's "{id}-" prefix and the
    key after it names one of the question's own options. Ids pointing at
    another question or test are dropped here.

    Args:
        question: Question with its options loaded
        option_ids: Raw option ids from the submission

    Returns:
        Distinct in-scope keys, in first-seen order
    """
    prefix = question.option_id_prefix()
    own_keys = {option.key for option in question.options}
    keys: List[str] = []
    for option_id in option_ids:
        if not isinstance(option_id, str) or not option_id.startswith(prefix):
            continue
        key = option_id[len(prefix) :]
        if key in own_keys and key not in keys:
            keys.append(key)
    return keys


def build_payload(question: Question, answer_values: Sequence[str]) -> AnswerPayload:
    """
    Turn the raw answerIds of a submission into the payload for the question's kind.

    Select-kind keeps only ids in the question's scope; match-kind keeps the
    ordered values; free-text takes the first value as the text.
    """
    if question.kind == QuestionKind.TEXT_INPUT:
        text = str(answer_values[0]) if answer_values else ""
        return TextAnswer(text=text)
    if question.kind == QuestionKind.MATCH:
        return MatchAnswer(values=[str(v) for v in answer_values])

    prefix = question.option_id_prefix()
    keys = option_keys_in_scope(question, answer_values)
    return SelectAnswer(option_ids=[f"{prefix}{key}" for key in keys])


def score_answer(question: Question, answer_values: Sequence[str]) -> ScoreOutcome:
    """
    Score one submitted answer against its question's canonical answer.

    Args:
        question: Canonical question (options loaded for select-kind)
        answer_values: Submitted answerIds for this question

    Returns:
        ScoreOutcome with correctness, review status and the payload to persist
    """
    payload = build_payload(question, answer_values)

    if isinstance(payload, TextAnswer):
        return ScoreOutcome(False, ReviewStatus.PENDING, payload)

    if isinstance(payload, MatchAnswer):
        expected = question.match_answers or []
        is_correct = len(expected) == len(payload.values) and all(
            _normalize(want) == _normalize(got)
            for want, got in zip(expected, payload.values)
        )
        return ScoreOutcome(is_correct, ReviewStatus.AUTO, payload)

    submitted_keys = set(option_keys_in_scope(question, payload.option_ids))
    canonical_keys = {str(k) for k in (question.correct_option_keys or [])}
    is_correct = submitted_keys == canonical_keys
    return ScoreOutcome(is_correct, ReviewStatus.AUTO, payload)


def calculate_percentage(score: int, total: int) -> int:
    """
    Percentage of correct answers, rounded half up. 0 when total is 0.

    >>> calculate_percentage(1, 8)
    13
    """
    if total <= 0:
        return 0
    return int(math.floor(score * 100 / total + 0.5))


def is_passed(completed: bool, score: int, passing_score: int) -> bool:
    """A result passes only once completed and at or above the pass mark."""
    return completed and score >= passing_score
