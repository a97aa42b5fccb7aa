"""Ingredient composition engine: a custom-built item as (ingredient, quantity) selections."""
from typing import Dict, Iterable, List, Optional

from menu.domain.Catalog import IngredientCatalog
from menu.domain.Ingredient import IngredientCategory, PresetCombination, SelectedIngredient
from menu.domain.errors import CompositionCapacityError, UnknownIngredientError
from menu.logic.pricing.suggested import suggested_price
from menu.utilities.config import MAX_INGREDIENTS

# Categories whose names lead an auto-generated item name
_NAME_LEAD_CATEGORIES = (IngredientCategory.PROTEINS, IngredientCategory.BREAKFAST)
_NAME_FOLLOW_CATEGORIES = (IngredientCategory.CHEESES, IngredientCategory.VEGETABLES)


class Composition:
    """Selections keyed by ingredient id, so one ingredient is never listed twice.

    Quantities always lie within the ingredient's [min_quantity, max_quantity].
    Mutators return ``self``; rejected edits raise and leave the selections as they were.
    """

    def __init__(self, catalog: IngredientCatalog, selections: Optional[Iterable[SelectedIngredient]] = None,
                 max_ingredients: int = MAX_INGREDIENTS):
        self.catalog = catalog
        self.max_ingredients = max_ingredients
        self._selections: Dict[str, float] = {}
        for sel in selections or ():
            sel = SelectedIngredient.from_dict(sel)
            self._selections[sel.ingredient_id] = sel.quantity

    def __len__(self) -> int:
        return len(self._selections)

    def __contains__(self, ingredient_id) -> bool:
        return ingredient_id in self._selections

    def selections(self) -> List[SelectedIngredient]:
        return [SelectedIngredient(i, q) for i, q in self._selections.items()]

    def quantity_of(self, ingredient_id: str) -> float:
        return self._selections.get(ingredient_id, 0)

    # --- Derived values ----------------------------------------------------
    def cost(self) -> float:
        return self.catalog.cost(self.selections())

    def suggested_price(self) -> float:
        return suggested_price(self.cost())

    def allergens(self) -> List[str]:
        return self.catalog.allergens(self.selections())

    def spice_level(self) -> int:
        return self.catalog.spice_level(self.selections())

    # --- Editing -------------------------------------------------------------
    def _require(self, ingredient_id: str):
        ingredient = self.catalog.get(ingredient_id)
        if ingredient is None:
            raise UnknownIngredientError(ingredient_id)
        return ingredient

    def set_quantity(self, ingredient_id: str, quantity: float) -> "Composition":
        '''Clamp into the ingredient bounds and insert/replace; quantity <= 0 removes it.'''
        ingredient = self._require(ingredient_id)
        if quantity <= 0:
            self._selections.pop(ingredient_id, None)
            return self
        clamped = ingredient.clamp(quantity)
        if ingredient_id not in self._selections and len(self._selections) >= self.max_ingredients:
            raise CompositionCapacityError(self.max_ingredients)
        self._selections[ingredient_id] = clamped
        return self

    def can_increase(self, ingredient_id: str) -> bool:
        ingredient = self.catalog.get(ingredient_id)
        if ingredient is None:
            return False
        current = self.quantity_of(ingredient_id)
        if current == 0 and len(self._selections) >= self.max_ingredients:
            return False
        return current + ingredient.increment <= ingredient.max_quantity

    def increment(self, ingredient_id: str) -> "Composition":
        ingredient = self._require(ingredient_id)
        new_quantity = self.quantity_of(ingredient_id) + ingredient.increment
        if new_quantity > ingredient.max_quantity:
            return self
        return self.set_quantity(ingredient_id, new_quantity)

    def decrement(self, ingredient_id: str) -> "Composition":
        ingredient = self._require(ingredient_id)
        new_quantity = self.quantity_of(ingredient_id) - ingredient.increment
        if new_quantity < 0:
            return self
        # 0 removes; anything else is clamped back up to the minimum
        return self.set_quantity(ingredient_id, new_quantity)

    def apply_preset(self, preset: PresetCombination) -> "Composition":
        if len(preset.ingredients) > self.max_ingredients:
            raise CompositionCapacityError(self.max_ingredients, len(preset.ingredients))
        self._selections = {s.ingredient_id: s.quantity for s in preset.ingredients}
        return self

    def clear(self) -> "Composition":
        self._selections = {}
        return self

    # --- Item drafting helpers --------------------------------------------
    def _names(self, categories=None) -> List[str]:
        names = []
        for sel in self.selections():
            ing = self.catalog.get(sel.ingredient_id)
            if ing and (categories is None or ing.category in categories):
                names.append(ing.name)
        return names

    def suggest_name(self, category: str = "Tacos") -> str:
        lead = self._names(_NAME_LEAD_CATEGORIES)[:1]
        follow = self._names(_NAME_FOLLOW_CATEGORIES)[:1]
        main = lead + follow
        if not main:
            return ""
        suffix = " Breakfast Taco" if category == "Breakfast" else " Taco"
        return " & ".join(main) + suffix

    def suggest_description(self) -> str:
        names = self._names()
        if not names:
            return ""
        more = f" and {len(names) - 3} more ingredients" if len(names) > 3 else ""
        return f"Fresh {', '.join(names[:3])}{more}"

    def info_line(self) -> str:
        '''"Spice Level: n/5 • Contains: a, b" (empty when neither applies).'''
        parts = []
        level = self.spice_level()
        if level > 0:
            parts.append(f"Spice Level: {level}/5")
        allergens = self.allergens()
        if allergens:
            parts.append(f"Contains: {', '.join(allergens)}")
        return " • ".join(parts)

    def to_item_fields(self) -> dict:
        '''Ingredient sub-record of a MenuItem, allergens and spice level snapshotted now.'''
        level = self.spice_level()
        return {
            "ingredient_based": True,
            "ingredients": self.selections(),
            "allergens": self.allergens(),
            "spice_level": level if level > 0 else None,
        }

    def __str__(self) -> str:
        return f"Composition({len(self)} ingredients, cost ${self.cost():.2f})"

    __repr__ = __str__
