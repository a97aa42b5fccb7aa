"""Per-item edit functions shared by forward bulk operations and their redo replay.

Each function takes a MenuItem and returns a new MenuItem; none of them
touch ``updated_at`` (the caller stamps it).
"""
from typing import Literal, Union

from menu.domain.MenuItem import MenuItem
from menu.domain.errors import MenuValidationError
from menu.logic.pricing.price_rules import PriceRule

DescriptionMode = Literal["replace", "append", "prepend"]
AvailabilityMode = Union[bool, Literal["toggle"]]

__all__ = ["reprice", "recategorize", "set_availability", "rewrite_description",
           "check_description_mode", "check_availability_mode",
           "DescriptionMode", "AvailabilityMode"]


def check_description_mode(mode: str) -> str:
    if mode not in ("replace", "append", "prepend"):
        raise MenuValidationError(f"Unknown description update mode: {mode!r}")
    return mode


def check_availability_mode(mode) -> AvailabilityMode:
    if mode is True or mode is False or mode == "toggle":
        return mode
    raise MenuValidationError(f"Availability must be true, false or 'toggle', got {mode!r}")


def reprice(item: MenuItem, rule: PriceRule) -> MenuItem:
    return item.apply({"price": rule.apply(item.price)})


def recategorize(item: MenuItem, category: str) -> MenuItem:
    return item.apply({"category": category})


def set_availability(item: MenuItem, mode: AvailabilityMode) -> MenuItem:
    # "toggle" flips each item on its own, so one call can leave mixed results
    available = (not item.available) if mode == "toggle" else bool(mode)
    return item.apply({"available": available})


def rewrite_description(item: MenuItem, mode: DescriptionMode, text: str) -> MenuItem:
    current = item.description or ""
    if mode == "replace":
        description = text
    elif mode == "append":
        description = current + " " + text
    else:
        description = text + " " + current
    return item.apply({"description": description.strip()})
