"""
backend/clinic_booking/services/events.py

Event emitter: pushes booking events to a Redis queue for the
notification dispatcher (LINE / push delivery lives outside this service).

Queue: events:p2p, one JSON object per event.

Event types:
- booking_created
- booking_cancelled
- booking_status_changed
- booking_called
"""

import json
import time
import logging

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit an event (fire-and-forget).

    Redis failures are logged and swallowed: a lost notification must not
    fail the booking operation that produced it.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(EVENTS_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
