"""Menu Item Store: the authoritative, ordered collection of menu items.

All mutations run synchronously on the in-memory list, append exactly one
entry to the undo log (clearing redo) and publish ``menu.changed`` on the
event bus. Persistence is someone else's job (see ``infra/Menu_Repository``).
Unknown ids are silent no-ops that return ``None``.
"""
from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from menu.domain.Batch_Operation import (
    AvailabilityToggleOperation, BatchOperation, CategoryChangeOperation, DeleteOperation,
    DescriptionUpdateOperation, PriceUpdateOperation, parse_operation
)
from menu.domain.Ingredient import SelectedIngredient
from menu.domain.MenuItem import MenuItem, utc_now
from menu.domain.Menu_Action import (
    ActionLog, AddAction, BatchAction, BulkAvailabilityAction, BulkCategoryAction, BulkDeleteAction,
    BulkDescriptionAction, BulkPriceAction, BulkUpdateAction, DeleteAction, ImportAction, MenuAction,
    UpdateAction
)
from menu.domain.errors import MenuBusyError, MenuValidationError
from menu.events.Event_Bus import BATCH_PROGRESS, GLOBAL_EVENT_BUS, MENU_CHANGED, EventBus
from menu.logic.menu.bulk_edits import (
    check_availability_mode, check_description_mode, recategorize, reprice, rewrite_description,
    set_availability
)
from menu.logic.menu.filtering import MenuQuery, filter_items
from menu.logic.pricing.price_rules import PriceRule
from menu.utilities.config import BATCH_STEP_DELAY, UNDO_LIMIT
from menu.utilities.constants import ALL_CATEGORIES, COPY_SUFFIX, MERGE_STRATEGIES
from menu.utilities.export_import import MenuExporter, MenuImporter
from menu.utilities.validators import ImportRecord, MenuItemInput, MenuItemUpdate, describe_errors

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Update fields that may legitimately be cleared with an explicit None
_NULLABLE_FIELDS = ("image_url", "spice_level")


@dataclass
class ImportResult:
    success: int = 0
    errors: List[str] = field(default_factory=list)


def _validated(schema, raw: dict) -> BaseModel:
    try:
        return schema.model_validate(raw)
    except ValidationError as e:
        raise MenuValidationError(describe_errors(e)) from e


def _plain_ingredients(raw: dict) -> dict:
    """SelectedIngredient objects (e.g. from a Composition) become plain dicts for validation."""
    if raw.get("ingredients"):
        raw = dict(raw)
        raw["ingredients"] = [s.to_dict() if isinstance(s, SelectedIngredient) else s
                              for s in raw["ingredients"]]
    return raw


class Menu:
    def __init__(self, items: Optional[Iterable] = None, bus: EventBus = GLOBAL_EVENT_BUS,
                 undo_limit: int = UNDO_LIMIT):
        self.bus = bus
        self.history = ActionLog(undo_limit)
        self._items: List[MenuItem] = []
        self._last_id = 0
        self._exporter = MenuExporter()
        self._importer = MenuImporter()
        self._running_batch: Optional[str] = None
        if items:
            self.load_items(items)

    # --- Plumbing -----------------------------------------------------------------
    def _next_id(self) -> str:
        # Millisecond clock, bumped so two calls in the same tick never collide
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        return str(self._last_id)

    def _index_of(self, item_id) -> Optional[int]:
        item_id = str(item_id)
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        return None

    def _targets(self, ids) -> Tuple[str, ...]:
        """Existing ids from ``ids``, deduplicated, in the caller's order."""
        present = {item.id for item in self._items}
        seen: List[str] = []
        for item_id in ids or ():
            item_id = str(item_id)
            if item_id in present and item_id not in seen:
                seen.append(item_id)
        return tuple(seen)

    def _edit_many(self, ids: Tuple[str, ...], edit: Callable[[MenuItem], MenuItem]) -> Tuple[MenuItem, ...]:
        """Apply ``edit`` to every targeted item; returns the pre-edit snapshots."""
        wanted = set(ids)
        now = utc_now()
        snapshots = []
        for i, item in enumerate(self._items):
            if item.id in wanted:
                snapshots.append(item.copy())
                edited = edit(item)
                edited.updated_at = now
                self._items[i] = edited
        return tuple(snapshots)

    def _ensure_idle(self) -> None:
        if self._running_batch is not None:
            raise MenuBusyError(self._running_batch)

    def _changed(self, reason: str) -> None:
        self.bus.publish(MENU_CHANGED, {"source": self, "reason": reason, "count": len(self._items)})

    def _record(self, action: MenuAction) -> None:
        self.history.record(action)
        self._changed(action.type.value)

    @staticmethod
    def _clean_update(changes: dict) -> dict:
        patch = _validated(MenuItemUpdate, _plain_ingredients(changes)).model_dump(exclude_unset=True)
        return {k: v for k, v in patch.items() if v is not None or k in _NULLABLE_FIELDS}

    # --- Reads ----------------------------------------------------------------------
    def get(self, item_id) -> Optional[MenuItem]:
        index = self._index_of(item_id)
        return self._items[index].copy() if index is not None else None

    def get_items(self) -> List[MenuItem]:
        return [item.copy() for item in self._items]

    @property
    def items(self) -> List[MenuItem]:
        return self.get_items()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id) -> bool:
        return self._index_of(item_id) is not None

    # --- CRUD -----------------------------------------------------------------------
    def add(self, data: Optional[dict] = None, **fields) -> MenuItem:
        """Create an item from user input. Popularity and revenue always start at zero."""
        self._ensure_idle()
        payload = _validated(MenuItemInput, _plain_ingredients(dict(data or {}, **fields)))
        now = utc_now()
        item = MenuItem(id=self._next_id(), popularity=0, revenue=0.0, created_at=now, updated_at=now,
                        **payload.model_dump())
        self._items.append(item)
        self._record(AddAction(item.copy()))
        logger.debug(f"Added menu item {item.id} '{item.name}'")
        return item.copy()

    def update(self, item_id, **changes) -> Optional[MenuItem]:
        self._ensure_idle()
        patch = self._clean_update(changes)
        index = self._index_of(item_id)
        if index is None:
            return None
        old = self._items[index]
        if not patch:
            return old.copy()
        updated = old.apply(patch)
        updated.updated_at = utc_now()
        self._items[index] = updated
        self._record(UpdateAction(old.id, old.copy(), patch))
        return updated.copy()

    def delete(self, item_id) -> Optional[MenuItem]:
        self._ensure_idle()
        index = self._index_of(item_id)
        if index is None:
            return None
        removed = self._items.pop(index)
        self._record(DeleteAction(removed.copy(), index))
        logger.debug(f"Deleted menu item {removed.id} '{removed.name}'")
        return removed

    def duplicate(self, item_id) -> Optional[MenuItem]:
        """Clone an item under a fresh id; the copy is undoable like any add."""
        self._ensure_idle()
        index = self._index_of(item_id)
        if index is None:
            return None
        clone = self._items[index].copy()
        now = utc_now()
        clone.id = self._next_id()
        clone.name = f"{clone.name}{COPY_SUFFIX}"
        clone.popularity = 0
        clone.revenue = 0.0
        clone.created_at = now
        clone.updated_at = now
        self._items.append(clone)
        self._record(AddAction(clone.copy()))
        return clone.copy()

    def toggle_availability(self, item_id) -> Optional[MenuItem]:
        self._ensure_idle()
        index = self._index_of(item_id)
        if index is None:
            return None
        return self.update(item_id, available=not self._items[index].available)

    # --- Bulk operations ------------------------------------------------------------
    # Each _bulk_* helper mutates and returns the action it would log (None when
    # nothing matched); public methods record it, batches collect it.
    def _bulk_update(self, ids, patch: dict, batch_id=None) -> Optional[MenuAction]:
        targets = self._targets(ids)
        if not targets or not patch:
            return None
        old = self._edit_many(targets, lambda item: item.apply(patch))
        return BulkUpdateAction(targets, old, patch, batch_id=batch_id)

    def _bulk_delete(self, ids, batch_id=None) -> Optional[MenuAction]:
        wanted = set(self._targets(ids))
        if not wanted:
            return None
        removed = tuple((i, item.copy()) for i, item in enumerate(self._items) if item.id in wanted)
        self._items[:] = [item for item in self._items if item.id not in wanted]
        return BulkDeleteAction(removed, batch_id=batch_id)

    def _bulk_price(self, ids, rule: PriceRule, batch_id=None) -> Optional[MenuAction]:
        targets = self._targets(ids)
        if not targets:
            return None
        old = self._edit_many(targets, lambda item: reprice(item, rule))
        return BulkPriceAction(targets, old, rule, batch_id=batch_id)

    def _bulk_category(self, ids, category: str, batch_id=None) -> Optional[MenuAction]:
        targets = self._targets(ids)
        if not targets:
            return None
        old = self._edit_many(targets, lambda item: recategorize(item, category))
        return BulkCategoryAction(targets, old, category, batch_id=batch_id)

    def _bulk_availability(self, ids, mode, batch_id=None) -> Optional[MenuAction]:
        targets = self._targets(ids)
        if not targets:
            return None
        old = self._edit_many(targets, lambda item: set_availability(item, mode))
        return BulkAvailabilityAction(targets, old, mode, batch_id=batch_id)

    def _bulk_description(self, ids, mode, text: str, batch_id=None) -> Optional[MenuAction]:
        targets = self._targets(ids)
        if not targets:
            return None
        old = self._edit_many(targets, lambda item: rewrite_description(item, mode, text))
        return BulkDescriptionAction(targets, old, mode, text, batch_id=batch_id)

    def _commit(self, action: Optional[MenuAction]) -> int:
        if action is None:
            return 0
        self._record(action)
        if isinstance(action, BulkDeleteAction):
            return len(action.removed)
        return len(action.ids)

    def bulk_update(self, ids, changes: dict) -> int:
        """Merge ``changes`` into every listed item. Returns how many items changed."""
        self._ensure_idle()
        return self._commit(self._bulk_update(ids, self._clean_update(changes)))

    def bulk_delete(self, ids) -> int:
        self._ensure_idle()
        return self._commit(self._bulk_delete(ids))

    def bulk_price_update(self, ids, rule) -> int:
        self._ensure_idle()
        return self._commit(self._bulk_price(ids, self._price_rule(rule)))

    def bulk_category_change(self, ids, category: str) -> int:
        self._ensure_idle()
        return self._commit(self._bulk_category(ids, self._category(category)))

    def bulk_availability_toggle(self, ids, mode="toggle") -> int:
        self._ensure_idle()
        return self._commit(self._bulk_availability(ids, check_availability_mode(mode)))

    def bulk_description_update(self, ids, mode: str, text: str) -> int:
        self._ensure_idle()
        return self._commit(self._bulk_description(ids, check_description_mode(mode), text or ""))

    @staticmethod
    def _price_rule(rule) -> PriceRule:
        if isinstance(rule, PriceRule):
            return rule
        return _validated(PriceRule, rule or {})

    @staticmethod
    def _category(category) -> str:
        if category is None or not str(category).strip():
            raise MenuValidationError("Category must not be empty")
        return str(category).strip()

    # --- Batch ----------------------------------------------------------------------
    def _dispatch(self, op: BatchOperation, batch_id: str) -> Optional[MenuAction]:
        if isinstance(op, PriceUpdateOperation):
            return self._bulk_price(op.item_ids, op.rule, batch_id)
        if isinstance(op, CategoryChangeOperation):
            return self._bulk_category(op.item_ids, op.category, batch_id)
        if isinstance(op, AvailabilityToggleOperation):
            return self._bulk_availability(op.item_ids, op.mode, batch_id)
        if isinstance(op, DescriptionUpdateOperation):
            return self._bulk_description(op.item_ids, op.mode, op.text, batch_id)
        if isinstance(op, DeleteOperation):
            return self._bulk_delete(op.item_ids, batch_id)
        raise TypeError(f"Unhandled batch operation: {op!r}")

    async def execute_batch(self, operations, on_progress: Optional[ProgressCallback] = None
                            ) -> Optional[BatchAction]:
        """Run heterogeneous bulk operations strictly in order as one undoable step.

        Every operation is parsed before the first one runs, so an unknown type
        tag rejects the whole batch untouched. ``on_progress(completed, total)``
        fires after each step. Other mutations of this menu raise MenuBusyError
        until the batch ends. If the batch is interrupted (a failing callback,
        cancellation) the steps already applied are still recorded as one action.
        """
        self._ensure_idle()
        parsed = [parse_operation(op) for op in operations]
        total = len(parsed)
        if not total:
            return None
        batch_id = f"batch_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
        steps: List[MenuAction] = []
        completed = 0
        finished = False
        self._running_batch = batch_id
        try:
            for op in parsed:
                step = self._dispatch(op, batch_id)
                completed += 1
                if step is not None:
                    steps.append(step)
                    self._changed(op.tag)
                if on_progress is not None:
                    on_progress(completed, total)
                self.bus.publish(BATCH_PROGRESS, {"source": self, "batch_id": batch_id,
                                                  "completed": completed, "total": total})
                if completed < total:
                    await asyncio.sleep(BATCH_STEP_DELAY)
            finished = True
        finally:
            self._running_batch = None
            if not finished:
                logger.warning(f"Batch {batch_id} interrupted after {completed} of {total} operations")
            action = BatchAction(tuple(steps), batch_id=batch_id) if steps else None
            if action is not None:
                self._record(action)
        if action is not None:
            logger.info(f"Batch {batch_id} applied {len(steps)} of {total} operations")
        return action

    # --- Undo / redo ----------------------------------------------------------------
    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    @property
    def undo_stack(self) -> Tuple[MenuAction, ...]:
        return self.history.undo_stack

    @property
    def redo_stack(self) -> Tuple[MenuAction, ...]:
        return self.history.redo_stack

    def undo(self) -> Optional[MenuAction]:
        self._ensure_idle()
        if not self.history.can_undo:
            return None
        action = self.history.mark_undone()
        action.revert(self._items)
        self._changed("undo")
        logger.debug(f"Undid {action.type.value}")
        return action

    def redo(self) -> Optional[MenuAction]:
        self._ensure_idle()
        if not self.history.can_redo:
            return None
        action = self.history.mark_redone()
        action.replay(self._items)
        self._changed("redo")
        logger.debug(f"Redid {action.type.value}")
        return action

    # --- Queries --------------------------------------------------------------------
    def filtered(self, query: Optional[MenuQuery] = None, **criteria) -> List[MenuItem]:
        """Search, category filter and sort, e.g. ``filtered(search="taco", sort_by="price")``."""
        query = query or MenuQuery(**criteria)
        return [item.copy() for item in filter_items(self._items, query)]

    def items_by_category(self, category: str) -> List[MenuItem]:
        if category == ALL_CATEGORIES:
            return self.get_items()
        return [item.copy() for item in self._items if item.category == category]

    @property
    def total_items(self) -> int:
        return len(self._items)

    @property
    def available_count(self) -> int:
        return sum(1 for item in self._items if item.available)

    def ingredient_based_items(self) -> List[MenuItem]:
        return [item.copy() for item in self._items if item.ingredient_based and item.ingredients]

    def items_by_allergen(self, allergen: str) -> List[MenuItem]:
        return [item.copy() for item in self._items if allergen in item.allergens]

    def items_by_spice_level(self, min_level: int, max_level: Optional[int] = None) -> List[MenuItem]:
        result = []
        for item in self._items:
            if item.spice_level is None or item.spice_level < min_level:
                continue
            if max_level is not None and item.spice_level > max_level:
                continue
            result.append(item.copy())
        return result

    def items_with_ingredient(self, ingredient_id: str) -> List[MenuItem]:
        return [item.copy() for item in self._items
                if any(s.ingredient_id == ingredient_id for s in item.ingredients)]

    def ingredient_usage(self) -> Dict[str, dict]:
        """ingredient id -> {"count": items using it, "total_quantity": summed quantity}"""
        usage: Dict[str, dict] = {}
        for item in self._items:
            for s in item.ingredients:
                entry = usage.setdefault(s.ingredient_id, {"count": 0, "total_quantity": 0.0})
                entry["count"] += 1
                entry["total_quantity"] += s.quantity
        return usage

    # --- Export / import ------------------------------------------------------------
    def export(self, ids=None, fmt: str = "json") -> str:
        """Serialize the selected items (all of them when ``ids`` is None), in menu order."""
        if ids is None:
            selected = list(self._items)
        else:
            wanted = {str(i) for i in ids}
            selected = [item for item in self._items if item.id in wanted]
        payload = self._exporter.export(selected, fmt)
        logger.info(f"Exported {len(selected)} menu items as {fmt}")
        return payload

    def import_items(self, data: str, fmt: str = "json", merge_strategy: str = "merge") -> ImportResult:
        """Import records, matching existing items by exact name.

        ``merge`` overwrites only the fields a record carries, ``replace``
        overwrites every importable field (absent ones fall back to defaults),
        ``skip`` leaves matches alone. Unmatched records become new items with
        zeroed popularity and revenue. Ids, timestamps and sales figures of
        existing items are never taken from the payload.
        """
        self._ensure_idle()
        if merge_strategy not in MERGE_STRATEGIES:
            raise MenuValidationError(f"Unknown merge strategy: {merge_strategy!r}")
        parsed = self._importer.parse(data, fmt)
        result = ImportResult(errors=list(parsed.errors))
        if parsed.aborted:
            return result

        originals: Dict[str, MenuItem] = {}
        added_ids: List[str] = []
        now = utc_now()
        for _row, record in parsed.records:
            index = next((i for i, item in enumerate(self._items) if item.name == record.name), None)
            if index is None:
                item = self._item_from_record(record, now)
                self._items.append(item)
                added_ids.append(item.id)
                result.success += 1
                continue
            if merge_strategy == "skip":
                continue
            existing = self._items[index]
            if existing.id not in originals and existing.id not in added_ids:
                originals[existing.id] = existing.copy()
            updated = existing.apply(self._record_changes(record, existing, merge_strategy))
            updated.updated_at = now
            self._items[index] = updated
            result.success += 1

        if originals or added_ids:
            current = {item.id: item for item in self._items}
            self._record(ImportAction(
                old_items=tuple(originals.values()),
                new_items=tuple(current[i].copy() for i in originals),
                added=tuple(current[i].copy() for i in added_ids),
            ))
        logger.info(f"Imported {result.success} menu items from {fmt} ({len(result.errors)} errors)")
        return result

    def _item_from_record(self, record: ImportRecord, now) -> MenuItem:
        return MenuItem(
            id=self._next_id(),
            name=record.name,
            price=record.price or 0.0,
            description=record.description or "",
            category=record.category,
            available=record.available if record.available is not None else True,
            image_url=record.image_url,
            popularity=0,
            revenue=0.0,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _record_changes(record: ImportRecord, existing: MenuItem, strategy: str) -> dict:
        if strategy == "merge":
            return record.model_dump(include={"name", "price", "description", "category",
                                              "available", "image_url"}, exclude_none=True)
        return {
            "name": record.name,
            "category": record.category,
            "price": record.price if record.price is not None else existing.price,
            "description": record.description or "",
            "available": record.available if record.available is not None else True,
            "image_url": record.image_url,
        }

    # --- Persistence hooks ----------------------------------------------------------
    def load_items(self, items: Iterable) -> None:
        """Replace the contents and drop the history (used when restoring from storage)."""
        self.history.clear()
        self._items = [MenuItem.from_dict(i) if isinstance(i, dict) else i.copy() for i in items]
        for item in self._items:
            if item.id.isdigit():
                self._last_id = max(self._last_id, int(item.id))

    def to_list(self) -> List[dict]:
        return [item.to_dict() for item in self._items]

    def __str__(self) -> str:
        return f"Menu({len(self._items)} items, {self.available_count} available)"

    __repr__ = __str__
