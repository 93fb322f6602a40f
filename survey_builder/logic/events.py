"""Survey builder domain events.

Events mark account creation, survey conversion, creator saves, submitted
responses and repaired creator records. Each one becomes a log line and an
entry in `EVENT_BUFFER`, which tests drain with `get_buffered_events()`.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List
import logging

logger = logging.getLogger(__name__)

USER_REGISTERED = "user.registered"
SURVEY_CREATED = "survey.created"
SURVEY_SAVED = "survey.saved"
RESPONSE_SUBMITTED = "response.submitted"
CREATOR_DATA_REPAIRED = "creator_data.repaired"


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Log `event_type` with its payload and append it to the buffer."""
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    EVENT_BUFFER.append({"type": event_type, "payload": payload})


# Oldest entries drop once 1000 events are held.
EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=1000)


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Snapshot of the buffered events, emptying the buffer unless `clear` is False."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "USER_REGISTERED",
    "SURVEY_CREATED",
    "SURVEY_SAVED",
    "RESPONSE_SUBMITTED",
    "CREATOR_DATA_REPAIRED",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
]
