"""Ingredient catalog: read-only reference data plus pure derivations over selections."""
from typing import Dict, Iterable, List, Optional

from menu.domain.Ingredient import Ingredient, IngredientCategory, PresetCombination, SelectedIngredient


class IngredientCatalog:
    def __init__(self, ingredients: Iterable[Ingredient] = (), presets: Iterable[PresetCombination] = ()):
        self._ingredients: Dict[str, Ingredient] = {}
        for ing in ingredients:
            if ing.id in self._ingredients:
                raise ValueError(f"Duplicate ingredient id: {ing.id}")
            self._ingredients[ing.id] = ing
        self._presets: Dict[str, PresetCombination] = {p.id: p for p in presets}

    def __len__(self) -> int:
        return len(self._ingredients)

    def __contains__(self, ingredient_id) -> bool:
        return ingredient_id in self._ingredients

    def __iter__(self):
        return iter(self._ingredients.values())

    # --- Lookups ------------------------------------------------------------
    def get(self, ingredient_id: str) -> Optional[Ingredient]:
        return self._ingredients.get(ingredient_id)

    def all(self) -> List[Ingredient]:
        return list(self._ingredients.values())

    def by_category(self, category) -> List[Ingredient]:
        cat = IngredientCategory(category)
        return [i for i in self._ingredients.values() if i.category == cat]

    def available(self, category=None) -> List[Ingredient]:
        pool = self.all() if category in (None, "all") else self.by_category(category)
        return [i for i in pool if i.availability]

    def popular(self) -> List[Ingredient]:
        return [i for i in self._ingredients.values() if i.popular]

    def by_dietary(self, **flags) -> List[Ingredient]:
        '''Ingredients satisfying every dietary flag passed as True, e.g. by_dietary(vegan=True).'''
        return [i for i in self._ingredients.values() if i.dietary.matches(**flags)]

    def search(self, text: str, category=None) -> List[Ingredient]:
        pool = self.all() if category in (None, "all") else self.by_category(category)
        q = (text or "").strip().lower()
        if q:
            pool = [i for i in pool
                    if q in i.name.lower() or q in (i.description or "").lower()]
        return sorted(pool, key=lambda i: i.name)

    def preset(self, preset_id: str) -> Optional[PresetCombination]:
        return self._presets.get(preset_id)

    def presets(self, popular_only: bool = False) -> List[PresetCombination]:
        return [p for p in self._presets.values() if p.popular or not popular_only]

    # --- Derivations (unknown ids contribute nothing) ----------------------
    def cost(self, selections: Iterable[SelectedIngredient]) -> float:
        total = 0.0
        for sel in selections:
            ing = self._ingredients.get(sel.ingredient_id)
            if ing:
                total += ing.base_cost * sel.quantity
        return total

    def allergens(self, selections: Iterable[SelectedIngredient]) -> List[str]:
        found: Dict[str, None] = {}
        for sel in selections:
            ing = self._ingredients.get(sel.ingredient_id)
            if ing:
                for allergen in ing.allergens:
                    found.setdefault(allergen, None)
        return list(found)

    def spice_level(self, selections: Iterable[SelectedIngredient]) -> int:
        level = 0
        for sel in selections:
            ing = self._ingredients.get(sel.ingredient_id)
            if ing and ing.spice_level:
                level = max(level, ing.spice_level)
        return level

    def with_cost_updates(self, updates) -> "IngredientCatalog":
        '''Returns a new catalog with base costs / availability replaced; self is unchanged.'''
        by_id = {u.ingredient_id: u for u in updates}
        ingredients = []
        for ing in self._ingredients.values():
            upd = by_id.get(ing.id)
            if upd is None:
                ingredients.append(ing)
                continue
            changes = {"base_cost": upd.new_cost}
            if upd.new_availability is not None:
                changes["availability"] = upd.new_availability
            ingredients.append(ing.replace(**changes))
        return IngredientCatalog(ingredients, self._presets.values())

    def __str__(self) -> str:
        return f"IngredientCatalog({len(self._ingredients)} ingredients, {len(self._presets)} presets)"

    __repr__ = __str__
