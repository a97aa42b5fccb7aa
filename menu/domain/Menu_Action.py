"""Undo/redo log entries for menu administration.

Every action is a frozen record holding exactly what it needs to be reverted
(pre-mutation snapshots, original positions) and replayed (the applied
changes or the rule that produced them). ``revert`` and ``replay`` mutate the
menu's ordered item list in place.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, ClassVar, Deque, Dict, List, Optional, Tuple

from menu.domain.MenuItem import MenuItem, utc_now
from menu.logic.menu.bulk_edits import (
    AvailabilityMode, DescriptionMode, recategorize, reprice, rewrite_description, set_availability
)
from menu.logic.pricing.price_rules import PriceRule
from menu.utilities.config import UNDO_LIMIT


class ActionType(str, Enum):
    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    BULK_UPDATE = "BULK_UPDATE"
    BULK_DELETE = "BULK_DELETE"
    BULK_PRICE_UPDATE = "BULK_PRICE_UPDATE"
    BULK_CATEGORY_CHANGE = "BULK_CATEGORY_CHANGE"
    BULK_AVAILABILITY_TOGGLE = "BULK_AVAILABILITY_TOGGLE"
    BATCH_OPERATION = "BATCH_OPERATION"


# --- List helpers -----------------------------------------------------------
def _index_by_id(items: List[MenuItem]) -> Dict[str, int]:
    return {item.id: i for i, item in enumerate(items)}


def _remove_ids(items: List[MenuItem], ids) -> None:
    doomed = set(ids)
    items[:] = [item for item in items if item.id not in doomed]


def _insert_positioned(items: List[MenuItem], positioned: Tuple[Tuple[int, MenuItem], ...]) -> None:
    for index, item in sorted(positioned, key=lambda p: p[0]):
        items.insert(min(index, len(items)), item.copy())


def _restore(items: List[MenuItem], snapshots: Tuple[MenuItem, ...]) -> None:
    index = _index_by_id(items)
    for snap in snapshots:
        i = index.get(snap.id)
        if i is not None:
            items[i] = snap.copy()


def _edit(items: List[MenuItem], ids, edit: Callable[[MenuItem], MenuItem]) -> None:
    now = utc_now()
    index = _index_by_id(items)
    for item_id in ids:
        i = index.get(item_id)
        if i is not None:
            edited = edit(items[i])
            edited.updated_at = now
            items[i] = edited


# --- Variants -----------------------------------------------------------------
@dataclass(frozen=True)
class MenuAction(ABC):
    type: ClassVar[ActionType]
    timestamp: datetime = field(default_factory=utc_now, kw_only=True)
    batch_id: Optional[str] = field(default=None, kw_only=True)

    @abstractmethod
    def revert(self, items: List[MenuItem]) -> None:
        """Undo this action's effect."""

    @abstractmethod
    def replay(self, items: List[MenuItem]) -> None:
        """Re-apply this action's forward effect."""


@dataclass(frozen=True)
class AddAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.ADD
    item: MenuItem

    def revert(self, items):
        _remove_ids(items, [self.item.id])

    def replay(self, items):
        items.append(self.item.copy())


@dataclass(frozen=True)
class UpdateAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.UPDATE
    item_id: str
    old_item: MenuItem
    changes: Dict[str, object]

    def revert(self, items):
        _restore(items, (self.old_item,))

    def replay(self, items):
        _edit(items, [self.item_id], lambda item: item.apply(self.changes))


@dataclass(frozen=True)
class DeleteAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.DELETE
    item: MenuItem
    index: int

    def revert(self, items):
        _insert_positioned(items, ((self.index, self.item),))

    def replay(self, items):
        _remove_ids(items, [self.item.id])


@dataclass(frozen=True)
class BulkUpdateAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.BULK_UPDATE
    ids: Tuple[str, ...]
    old_items: Tuple[MenuItem, ...]
    changes: Dict[str, object]

    def revert(self, items):
        _restore(items, self.old_items)

    def replay(self, items):
        _edit(items, self.ids, lambda item: item.apply(self.changes))


@dataclass(frozen=True)
class BulkDescriptionAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.BULK_UPDATE
    ids: Tuple[str, ...]
    old_items: Tuple[MenuItem, ...]
    mode: DescriptionMode
    text: str

    def revert(self, items):
        _restore(items, self.old_items)

    def replay(self, items):
        _edit(items, self.ids, lambda item: rewrite_description(item, self.mode, self.text))


@dataclass(frozen=True)
class ImportAction(MenuAction):
    """Matched records are restored from snapshots; inserted records are removed."""
    type: ClassVar[ActionType] = ActionType.BULK_UPDATE
    old_items: Tuple[MenuItem, ...]
    new_items: Tuple[MenuItem, ...]
    added: Tuple[MenuItem, ...]

    def revert(self, items):
        _remove_ids(items, [item.id for item in self.added])
        _restore(items, self.old_items)

    def replay(self, items):
        _restore(items, self.new_items)
        items.extend(item.copy() for item in self.added)


@dataclass(frozen=True)
class BulkDeleteAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.BULK_DELETE
    removed: Tuple[Tuple[int, MenuItem], ...]

    def revert(self, items):
        _insert_positioned(items, self.removed)

    def replay(self, items):
        _remove_ids(items, [item.id for _, item in self.removed])


@dataclass(frozen=True)
class BulkPriceAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.BULK_PRICE_UPDATE
    ids: Tuple[str, ...]
    old_items: Tuple[MenuItem, ...]
    rule: PriceRule

    def revert(self, items):
        _restore(items, self.old_items)

    def replay(self, items):
        # Recomputed from the rule, not from a result snapshot
        _edit(items, self.ids, lambda item: reprice(item, self.rule))


@dataclass(frozen=True)
class BulkCategoryAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.BULK_CATEGORY_CHANGE
    ids: Tuple[str, ...]
    old_items: Tuple[MenuItem, ...]
    category: str

    def revert(self, items):
        _restore(items, self.old_items)

    def replay(self, items):
        _edit(items, self.ids, lambda item: recategorize(item, self.category))


@dataclass(frozen=True)
class BulkAvailabilityAction(MenuAction):
    type: ClassVar[ActionType] = ActionType.BULK_AVAILABILITY_TOGGLE
    ids: Tuple[str, ...]
    old_items: Tuple[MenuItem, ...]
    mode: AvailabilityMode

    def revert(self, items):
        _restore(items, self.old_items)

    def replay(self, items):
        _edit(items, self.ids, lambda item: set_availability(item, self.mode))


@dataclass(frozen=True)
class BatchAction(MenuAction):
    """One multi-step operation; its steps share ``batch_id`` and are undone in reverse."""
    type: ClassVar[ActionType] = ActionType.BATCH_OPERATION
    steps: Tuple[MenuAction, ...]

    def revert(self, items):
        for step in reversed(self.steps):
            step.revert(items)

    def replay(self, items):
        for step in self.steps:
            step.replay(items)


class ActionLog:
    """Linear undo/redo history keeping the ``limit`` most recent actions."""

    def __init__(self, limit: int = UNDO_LIMIT):
        self.limit = limit
        self._undo: Deque[MenuAction] = deque(maxlen=limit)
        self._redo: Deque[MenuAction] = deque(maxlen=limit)

    @property
    def can_undo(self) -> bool:
        return len(self._undo) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._redo) > 0

    @property
    def undo_stack(self) -> Tuple[MenuAction, ...]:
        return tuple(self._undo)

    @property
    def redo_stack(self) -> Tuple[MenuAction, ...]:
        return tuple(self._redo)

    def record(self, action: MenuAction) -> None:
        self._undo.append(action)  # deque drops the oldest beyond the limit
        self._redo.clear()

    def mark_undone(self) -> MenuAction:
        action = self._undo.pop()
        self._redo.append(action)
        return action

    def mark_redone(self) -> MenuAction:
        action = self._redo.pop()
        self._undo.append(action)
        return action

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
