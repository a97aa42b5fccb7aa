"""Load-on-start / save-on-change mirror between an in-memory store and key-value storage.

The in-memory store is always the source of truth. Writes are best-effort:
a failure is logged and published as a warning event, the store keeps its
state, and the next change triggers another attempt.
"""
import asyncio
import json
import logging
from typing import Any, List, Optional

from menu.events.Event_Bus import EventBus
from menu.events.event_helpers import publish_read_failure, publish_write_failure
from menu.infra.Storage import KeyValueStorage
from menu.utilities.constants import SCHEMA_VERSION

logger = logging.getLogger(__name__)


class StoreMirror:
    """Subclasses set ``key`` and ``event_name`` and may override ``default_records``.

    The store must provide ``load_items(records)``, ``to_list()`` and publish
    ``event_name`` with ``{"source": store, ...}`` after every mutation.
    """
    key: str = ""
    event_name: str = ""

    def __init__(self, store, storage: KeyValueStorage, bus: Optional[EventBus] = None,
                 key: Optional[str] = None):
        self.store = store
        self.storage = storage
        self.bus = bus if bus is not None else store.bus
        if key is not None:
            self.key = key
        self.loaded = False
        self._dirty = False
        self._task: Optional[asyncio.Task] = None
        self.bus.subscribe(self.event_name, self._on_change)

    def default_records(self) -> List[dict]:
        """Contents for a key that has never been written."""
        return []

    # --- Load -----------------------------------------------------------------
    @staticmethod
    def decode(raw: str) -> List[Any]:
        """Versioned ``{"version": 1, "items": [...]}``; a bare list from older builds is accepted."""
        data = json.loads(raw)
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("items"), list):
            version = data.get("version")
            if version != SCHEMA_VERSION:
                logger.warning(f"Stored schema version {version!r}, expected {SCHEMA_VERSION}; reading anyway")
            return data["items"]
        raise ValueError("Unrecognized stored layout")

    def encode(self) -> str:
        return json.dumps({"version": SCHEMA_VERSION, "items": self.store.to_list()}, ensure_ascii=False)

    async def load(self) -> None:
        """Restore the store from storage, then allow saves.

        A failed read is reported like a failed write and the store starts
        empty; it is still marked loaded so the session keeps persisting.
        """
        try:
            raw = await self.storage.read(self.key)
            records = self.default_records() if raw is None else self.decode(raw)
            self.store.load_items(records)
            logger.info(f"Loaded {len(self.store)} records from '{self.key}'")
        except Exception as e:
            logger.warning(f"Could not load '{self.key}': {e}")
            publish_read_failure(self.key, e, self.bus)
            self.store.load_items([])
        self.loaded = True
        if self._dirty:
            self._schedule()

    # --- Save -----------------------------------------------------------------
    def _on_change(self, event_name: str, payload: Any) -> None:
        if not isinstance(payload, dict) or payload.get("source") is not self.store:
            return
        self._dirty = True
        if self.loaded:
            self._schedule()

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop: stays dirty until flush()
            return
        if self._task is None or self._task.done():
            self._task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        # one writer at a time; each pass writes the newest state
        while self._dirty:
            self._dirty = False
            payload = self.encode()
            try:
                await self.storage.write(self.key, payload)
                logger.debug(f"Saved '{self.key}'")
            except Exception as e:
                logger.warning(f"Could not save '{self.key}': {e}")
                publish_write_failure(self.key, e, self.bus)

    @property
    def pending(self) -> bool:
        return self._dirty or (self._task is not None and not self._task.done())

    async def flush(self) -> None:
        """Wait until every change made so far has been written (or has failed)."""
        while True:
            task = self._task
            if task is not None and not task.done():
                await task
                continue
            if self._dirty and self.loaded:
                self._task = asyncio.get_running_loop().create_task(self._drain())
                continue
            break

    async def close(self) -> None:
        await self.flush()
        self.bus.unsubscribe(self.event_name, self._on_change)

    def __str__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r}, loaded={self.loaded})"

    __repr__ = __str__
