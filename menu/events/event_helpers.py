"""Event helper utilities.

Helpers for publishing persistence failures, on an explicit bus or on the
global one.

Quick import:
    from menu.events.event_helpers import (
        publish_read_failure, publish_write_failure,
        PERSISTENCE_READ_FAILED, PERSISTENCE_WRITE_FAILED
    )

"""
from __future__ import annotations
from typing import Optional
from .Event_Bus import (
    EventBus, GLOBAL_EVENT_BUS,
    PERSISTENCE_READ_FAILED, PERSISTENCE_WRITE_FAILED
)

__all__ = [
    'publish_read_failure', 'publish_write_failure',
    'PERSISTENCE_READ_FAILED', 'PERSISTENCE_WRITE_FAILED'
]


def publish_read_failure(key: str, error: BaseException, bus: Optional[EventBus] = None):
    """Publish a persistence.read_failed event."""
    (bus or GLOBAL_EVENT_BUS).publish(PERSISTENCE_READ_FAILED, {
        'key': key,
        'error': str(error)
    })


def publish_write_failure(key: str, error: BaseException, bus: Optional[EventBus] = None):
    """Publish a persistence.write_failed event."""
    (bus or GLOBAL_EVENT_BUS).publish(PERSISTENCE_WRITE_FAILED, {
        'key': key,
        'error': str(error)
    })
