"""Simple Event Bus / Observer implementation for store change notifications.

Event names used so far:
  menu.changed -> payload {"source": Menu, "reason": str, "count": int}
  cart.changed -> payload {"source": Cart, "reason": str, "count": int}
  batch.progress -> payload {"source": Menu, "batch_id": str, "completed": int, "total": int}
  persistence.read_failed -> payload {"key": str, "error": str}
  persistence.write_failed -> payload {"key": str, "error": str}

Subscribers are callables taking (event_name, payload).
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Callable, Any, Dict, List

logger = logging.getLogger(__name__)

# --- Event name constants (used across modules) ---
MENU_CHANGED = "menu.changed"
CART_CHANGED = "cart.changed"
BATCH_PROGRESS = "batch.progress"
PERSISTENCE_READ_FAILED = "persistence.read_failed"
PERSISTENCE_WRITE_FAILED = "persistence.write_failed"


class EventBus:
	def __init__(self):
		self._subscribers: Dict[str, List[Callable[[str, Any], None]]] = defaultdict(list)

	def subscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		if callback not in self._subscribers[event_name]:
			self._subscribers[event_name].append(callback)

	def unsubscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		try:
			self._subscribers[event_name].remove(callback)
		except (ValueError, KeyError):
			pass

	def publish(self, event_name: str, payload: Any = None):
		for cb in list(self._subscribers.get(event_name, [])):
			try:
				cb(event_name, payload)
			except Exception:
				# subscriber failures are logged, never raised to the publisher
				logger.exception(f"Error delivering {event_name} to {cb}")

	def subscriber_count(self, event_name: str) -> int:
		return len(self._subscribers.get(event_name, []))


# A singleton-like instance (can be imported)
GLOBAL_EVENT_BUS = EventBus()


__all__ = [
	'EventBus', 'GLOBAL_EVENT_BUS',
	'MENU_CHANGED', 'CART_CHANGED', 'BATCH_PROGRESS',
	'PERSISTENCE_READ_FAILED', 'PERSISTENCE_WRITE_FAILED'
]
