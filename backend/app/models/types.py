"""Answer payload types and their storage column.

A submitted answer is kept as a small tagged union, one variant per question
kind. The union is only turned into JSON text at the storage boundary by
AnswerPayloadType, so the rest of the code never handles raw strings.

Stored form::

    {"kind": "checkbox", "option_ids": ["q1-a", "q1-c"]}
    {"kind": "match", "values": ["Paris", "Rome"]}
    {"kind": "text_input", "text": "free-form answer"}
"""

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from sqlalchemy import Text, TypeDecorator


@dataclass(frozen=True)
class SelectAnswer:
    """Option ids picked for a single/multi-select question."""

    option_ids: List[str] = field(default_factory=list)
    kind: str = "checkbox"

    def display_values(self) -> List[str]:
        return list(self.option_ids)


@dataclass(frozen=True)
class MatchAnswer:
    """Right-hand values in the order the respondent matched them to the prompts."""

    values: List[str] = field(default_factory=list)
    kind: str = "match"

    def display_values(self) -> List[str]:
        return list(self.values)


@dataclass(frozen=True)
class TextAnswer:
    """Free-text answer awaiting (or past) manual review."""

    text: str = ""
    kind: str = "text_input"

    def display_values(self) -> List[str]:
        return [self.text]


AnswerPayload = Union[SelectAnswer, MatchAnswer, TextAnswer]


def payload_to_dict(payload: AnswerPayload) -> dict:
    """Serialize a payload variant to its tagged dict form."""
    if isinstance(payload, SelectAnswer):
        return {"kind": payload.kind, "option_ids": list(payload.option_ids)}
    if isinstance(payload, MatchAnswer):
        return {"kind": payload.kind, "values": list(payload.values)}
    if isinstance(payload, TextAnswer):
        return {"kind": payload.kind, "text": payload.text}
    raise TypeError(f"Unsupported answer payload: {type(payload).__name__}")


def payload_from_dict(data: Any) -> AnswerPayload:
    """
    Rebuild a payload variant from its tagged dict form.

    A bare JSON list (the legacy untagged layout) is read as a select answer.

    Raises:
        ValueError: If the tag is unknown
    """
    if isinstance(data, list):
        return SelectAnswer(option_ids=[str(v) for v in data])

    kind = data.get("kind")
    if kind == "checkbox":
        return SelectAnswer(option_ids=[str(v) for v in data.get("option_ids", [])])
    if kind == "match":
        return MatchAnswer(values=[str(v) for v in data.get("values", [])])
    if kind == "text_input":
        return TextAnswer(text=str(data.get("text", "")))
    raise ValueError(f"Unknown answer payload kind: {kind!r}")


class AnswerPayloadType(TypeDecorator):
    """
    Column type storing an AnswerPayload as JSON text.

    Works unchanged on SQLite and PostgreSQL since both see a TEXT column.

    Usage:
        user_answer = Column(AnswerPayloadType(), nullable=False)
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[AnswerPayload], dialect) -> Any:
        """Convert a payload variant to database format."""
        if value is None:
            return None
        return json.dumps(payload_to_dict(value), ensure_ascii=False)

    def process_result_value(self, value: Any, dialect) -> Optional[AnswerPayload]:
        """Convert database text back to a payload variant."""
        if value is None:
            return None
        if isinstance(value, str):
            value = json.loads(value)
        return payload_from_dict(value)
