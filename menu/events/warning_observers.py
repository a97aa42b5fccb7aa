"""Observers for persistence warnings.

This module subscribes to an event bus for:
  - persistence.read_failed
  - persistence.write_failed

and stores a lightweight in-memory ring buffer of recent warnings that the
presentation layer can poll to show a non-blocking notice. The mutation that
triggered a failed write has already succeeded in memory, so these are
warnings, never errors.

Design:
  * Each warning stored with an auto-increment integer id (cursor) so clients
    can request only newer warnings (since=<last_id_seen>).
  * A simple Lock guards the buffer.
  * A MAX_WARNINGS cap prevents unbounded memory growth.
"""
from __future__ import annotations
import logging
from typing import List, Dict, Any
from threading import Lock
from datetime import datetime, timezone

from .Event_Bus import (
    EventBus, GLOBAL_EVENT_BUS, PERSISTENCE_READ_FAILED, PERSISTENCE_WRITE_FAILED
)

logger = logging.getLogger(__name__)

_lock = Lock()
_warnings: List[Dict[str, Any]] = []
_next_id = 1
MAX_WARNINGS = 300  # keep a few hundred recent warnings
_buses: List[EventBus] = []


def _record(event_name: str, payload: Any):  # signature expected by EventBus
    global _next_id
    with _lock:
        warning = {
            'id': _next_id,
            'type': event_name,
            'ts': datetime.now(timezone.utc).isoformat()
        }
        if isinstance(payload, dict):
            for k in ('key', 'error'):
                if k in payload:
                    warning[k] = payload[k]
        _warnings.append(warning)
        _next_id += 1
        # Trim buffer
        if len(_warnings) > MAX_WARNINGS:
            del _warnings[: len(_warnings) - MAX_WARNINGS]
    logger.warning(f"{event_name}: {warning.get('key', '?')} ({warning.get('error', 'unknown error')})")


def start(bus: EventBus = GLOBAL_EVENT_BUS):
    """Idempotent start: subscribe observers once per bus."""
    if any(b is bus for b in _buses):
        return
    bus.subscribe(PERSISTENCE_READ_FAILED, _record)
    bus.subscribe(PERSISTENCE_WRITE_FAILED, _record)
    _buses.append(bus)


def stop(bus: EventBus = GLOBAL_EVENT_BUS):
    for i, b in enumerate(_buses):
        if b is bus:
            bus.unsubscribe(PERSISTENCE_READ_FAILED, _record)
            bus.unsubscribe(PERSISTENCE_WRITE_FAILED, _record)
            del _buses[i]
            return


def get_warnings(since: int | None = None) -> Dict[str, Any]:
    """Return warnings newer than 'since' (exclusive).

    If since is None, returns the last N (up to MAX_WARNINGS) warnings.
    Response includes next_cursor (largest id) so client can poll with since=next_cursor.
    """
    with _lock:
        if since is None:
            data = list(_warnings)
        else:
            data = [w for w in _warnings if w['id'] > since]
        next_cursor = _warnings[-1]['id'] if _warnings else since or 0
    return {'warnings': data, 'next_cursor': next_cursor}


def clear():
    with _lock:
        _warnings.clear()


__all__ = ['start', 'stop', 'get_warnings', 'clear', 'MAX_WARNINGS']
