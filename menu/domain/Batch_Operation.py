"""Closed set of operations accepted by ``Menu.execute_batch``.

Presentation code sends plain dicts ``{"type": "price-update", "itemIds": [...], "data": {...}}``;
``parse_operation`` turns them into typed variants and rejects unknown tags
up front, so a batch never starts with an operation it cannot run.
"""
from dataclasses import dataclass
from typing import Tuple, Union

from pydantic import ValidationError

from menu.domain.errors import MenuValidationError
from menu.logic.menu.bulk_edits import (
    AvailabilityMode, DescriptionMode, check_availability_mode, check_description_mode
)
from menu.logic.pricing.price_rules import PriceRule
from menu.utilities.validators import describe_errors


@dataclass(frozen=True)
class PriceUpdateOperation:
    item_ids: Tuple[str, ...]
    rule: PriceRule
    tag = "price-update"


@dataclass(frozen=True)
class CategoryChangeOperation:
    item_ids: Tuple[str, ...]
    category: str
    tag = "category-change"


@dataclass(frozen=True)
class AvailabilityToggleOperation:
    item_ids: Tuple[str, ...]
    mode: AvailabilityMode
    tag = "availability-toggle"


@dataclass(frozen=True)
class DescriptionUpdateOperation:
    item_ids: Tuple[str, ...]
    mode: DescriptionMode
    text: str
    tag = "description-update"


@dataclass(frozen=True)
class DeleteOperation:
    item_ids: Tuple[str, ...]
    tag = "delete"


BatchOperation = Union[PriceUpdateOperation, CategoryChangeOperation, AvailabilityToggleOperation,
                       DescriptionUpdateOperation, DeleteOperation]


def parse_operation(raw) -> BatchOperation:
    """Build a typed operation from its dict form; typed operations pass through."""
    if isinstance(raw, (PriceUpdateOperation, CategoryChangeOperation, AvailabilityToggleOperation,
                        DescriptionUpdateOperation, DeleteOperation)):
        return raw
    if not isinstance(raw, dict):
        raise MenuValidationError(f"Batch operation must be a mapping, got {type(raw).__name__}")
    tag = raw.get("type")
    ids = tuple(str(i) for i in (raw.get("itemIds", raw.get("item_ids")) or ()))
    data = raw.get("data") or {}

    if tag == "price-update":
        try:
            rule = data if isinstance(data, PriceRule) else PriceRule.model_validate(data)
        except ValidationError as e:
            raise MenuValidationError(f"Invalid price rule: {describe_errors(e)}")
        return PriceUpdateOperation(ids, rule)
    if tag == "category-change":
        category = data.get("newCategory", data.get("category"))
        if not category or not str(category).strip():
            raise MenuValidationError("Category change needs a non-empty newCategory")
        return CategoryChangeOperation(ids, str(category).strip())
    if tag == "availability-toggle":
        return AvailabilityToggleOperation(ids, check_availability_mode(data.get("availability")))
    if tag == "description-update":
        mode = check_description_mode(data.get("updateType", data.get("mode")))
        return DescriptionUpdateOperation(ids, mode, str(data.get("text", "")))
    if tag == "delete":
        return DeleteOperation(ids)
    raise MenuValidationError(f"Unknown batch operation type: {tag!r}")
