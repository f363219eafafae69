"""
Services package for business logic.
"""

from .event_hub import EventHub, event_hub, get_event_hub, stream_events
from .submission_service import submit_test
from .review_service import get_pending_reviews, submit_batch
from .protocol_service import build_protocol

__all__ = [
    "EventHub",
    "event_hub",
    "get_event_hub",
    "stream_events",
    "submit_test",
    "get_pending_reviews",
    "submit_batch",
    "build_protocol",
]
