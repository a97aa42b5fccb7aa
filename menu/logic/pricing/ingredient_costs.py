"""Ingredient cost management helpers (bulk markup of catalog base costs).

The catalog itself never changes; callers feed the produced updates into
``IngredientCatalog.with_cost_updates`` to obtain a new catalog.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from menu.domain.Ingredient import Ingredient
from menu.domain.errors import MenuValidationError
from menu.utilities.constants import MIN_INGREDIENT_COST

__all__ = ["IngredientCostUpdate", "cost_update", "bulk_markup", "catalog_cost_stats"]


@dataclass(frozen=True)
class IngredientCostUpdate:
    ingredient_id: str
    new_cost: float
    new_availability: Optional[bool] = None


def cost_update(ingredient: Ingredient, new_cost, new_availability: Optional[bool] = None) -> IngredientCostUpdate:
    """Validate a single edited cost (as typed by an admin)."""
    try:
        cost = float(new_cost)
    except (TypeError, ValueError):
        raise MenuValidationError(f"Invalid cost for {ingredient.name}: {new_cost!r}")
    if cost < 0:
        raise MenuValidationError(f"Cost cannot be negative for {ingredient.name}")
    return IngredientCostUpdate(ingredient.id, cost, new_availability)


def bulk_markup(ingredients: Iterable[Ingredient], percent: float,
                pending: Optional[Dict[str, IngredientCostUpdate]] = None) -> List[IngredientCostUpdate]:
    """Apply ``percent`` (negative for a discount) to every ingredient's cost.

    A pending update's cost is used as the starting point when present.
    Results are rounded to cents with a floor of $0.01.
    """
    pending = pending or {}
    updates = []
    for ing in ingredients:
        prior = pending.get(ing.id)
        current = prior.new_cost if prior else ing.base_cost
        new_cost = max(MIN_INGREDIENT_COST, round(current * (1 + percent / 100), 2))
        updates.append(IngredientCostUpdate(ing.id, new_cost, prior.new_availability if prior else None))
    return updates


def catalog_cost_stats(ingredients: Iterable[Ingredient]) -> Dict[str, float]:
    items = list(ingredients)
    total = len(items)
    return {
        "total_ingredients": total,
        "available_ingredients": sum(1 for i in items if i.availability),
        "average_cost": (sum(i.base_cost for i in items) / total) if total else 0.0,
    }
