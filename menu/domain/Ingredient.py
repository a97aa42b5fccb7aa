"""Ingredient domain entities: catalog ingredients, dietary flags, presets, selections."""
from enum import Enum
from typing import List, Optional


class IngredientCategory(str, Enum):
    PROTEINS = "proteins"
    VEGETABLES = "vegetables"
    SAUCES = "sauces"
    CHEESES = "cheeses"
    CARBS = "carbs"
    SEASONINGS = "seasonings"
    BREAKFAST = "breakfast"
    EXTRAS = "extras"


DIETARY_FLAGS = ("vegetarian", "vegan", "gluten_free", "dairy_free", "keto", "low_carb")


class DietaryInfo:
    """Independent dietary booleans; no consistency is enforced between them."""

    __slots__ = DIETARY_FLAGS

    def __init__(self, vegetarian: bool = False, vegan: bool = False, gluten_free: bool = False,
                 dairy_free: bool = False, keto: bool = False, low_carb: bool = False):
        self.vegetarian = vegetarian
        self.vegan = vegan
        self.gluten_free = gluten_free
        self.dairy_free = dairy_free
        self.keto = keto
        self.low_carb = low_carb

    def matches(self, **flags) -> bool:
        '''Only flags requested as True restrict the match.'''
        return all(getattr(self, k) for k, v in flags.items() if v is True)

    @staticmethod
    def from_dict(data):
        d = data if isinstance(data, dict) else {}
        return DietaryInfo(**{k: bool(d.get(k, False)) for k in DIETARY_FLAGS})

    def to_dict(self):
        return {k: getattr(self, k) for k in DIETARY_FLAGS}


class Ingredient:
    def __init__(self, id: str, name: str, category: IngredientCategory, base_cost: float,
                 unit: str = "", default_quantity: float = 1, min_quantity: float = 1,
                 max_quantity: float = 1, increment: float = 1,
                 allergens: Optional[List[str]] = None, dietary: Optional[DietaryInfo] = None,
                 description: str = "", image_url: Optional[str] = None,
                 availability: bool = True, popular: bool = False,
                 spice_level: Optional[int] = None):
        if base_cost < 0:
            raise ValueError(f"base_cost cannot be negative: {base_cost}")
        if not (min_quantity <= default_quantity <= max_quantity):
            raise ValueError(f"Invalid quantity bounds for '{id}': "
                             f"{min_quantity} <= {default_quantity} <= {max_quantity}")
        if spice_level is not None and not (0 <= spice_level <= 5):
            raise ValueError(f"spice_level must be within 0-5: {spice_level}")
        self.id = id
        self.name = name
        self.category = IngredientCategory(category)
        self.base_cost = base_cost
        self.unit = unit
        self.default_quantity = default_quantity
        self.min_quantity = min_quantity
        self.max_quantity = max_quantity
        self.increment = increment
        self.allergens = tuple(allergens or ())
        self.dietary = dietary or DietaryInfo()
        self.description = description
        self.image_url = image_url
        self.availability = availability
        self.popular = popular
        self.spice_level = spice_level

    def clamp(self, quantity: float) -> float:
        return max(self.min_quantity, min(self.max_quantity, quantity))

    def __str__(self) -> str:
        parts = [f"{self.name} - ${self.base_cost:.2f}/{self.unit}"]
        if self.allergens:
            parts.append("Allergens: " + ", ".join(self.allergens))
        if self.spice_level:
            parts.append(f"Spice: {self.spice_level}/5")
        return " - ".join(parts)

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        '''Creates an Ingredient from a dictionary. Ignores unknown keys.'''
        d = dict(data)
        allowed = {"id", "name", "category", "base_cost", "unit", "default_quantity",
                   "min_quantity", "max_quantity", "increment", "allergens", "dietary",
                   "description", "image_url", "availability", "popular", "spice_level"}
        filtered = {k: v for k, v in d.items() if k in allowed}
        filtered["dietary"] = DietaryInfo.from_dict(filtered.get("dietary"))
        return Ingredient(**filtered)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "base_cost": self.base_cost,
            "unit": self.unit,
            "default_quantity": self.default_quantity,
            "min_quantity": self.min_quantity,
            "max_quantity": self.max_quantity,
            "increment": self.increment,
            "allergens": list(self.allergens),
            "dietary": self.dietary.to_dict(),
            "description": self.description,
            "image_url": self.image_url,
            "availability": self.availability,
            "popular": self.popular,
            "spice_level": self.spice_level,
        }

    def replace(self, **changes) -> "Ingredient":
        '''Returns a copy with the given attributes changed; the original is untouched.'''
        d = self.to_dict()
        d.update(changes)
        return Ingredient.from_dict(d)


class SelectedIngredient:
    """One (ingredient_id, quantity) pair of a composition."""

    __slots__ = ("ingredient_id", "quantity")

    def __init__(self, ingredient_id: str, quantity: float):
        self.ingredient_id = ingredient_id
        self.quantity = quantity

    def __eq__(self, other):
        if not isinstance(other, SelectedIngredient):
            return NotImplemented
        return self.ingredient_id == other.ingredient_id and self.quantity == other.quantity

    def __repr__(self) -> str:
        return f"SelectedIngredient({self.ingredient_id!r}, {self.quantity!r})"

    @staticmethod
    def from_dict(data):
        if isinstance(data, SelectedIngredient):
            return SelectedIngredient(data.ingredient_id, data.quantity)
        return SelectedIngredient(str(data["ingredient_id"]), float(data["quantity"]))

    def to_dict(self):
        return {"ingredient_id": self.ingredient_id, "quantity": self.quantity}


class PresetCombination:
    def __init__(self, id: str, name: str, description: str = "", category: str = "",
                 ingredients: Optional[List[SelectedIngredient]] = None,
                 base_price: float = 0.0, popular: bool = False, image_url: Optional[str] = None):
        self.id = id
        self.name = name
        self.description = description
        self.category = category
        self.ingredients = tuple(ingredients or ())
        # Informational only; prices are always derived from ingredient costs
        self.base_price = base_price
        self.popular = popular
        self.image_url = image_url

    def __str__(self) -> str:
        return f"{self.name} ({self.category}) - {len(self.ingredients)} ingredients"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        d = dict(data)
        allowed = {"id", "name", "description", "category", "ingredients",
                   "base_price", "popular", "image_url"}
        filtered = {k: v for k, v in d.items() if k in allowed}
        filtered["ingredients"] = [SelectedIngredient.from_dict(s) for s in filtered.get("ingredients", [])]
        return PresetCombination(**filtered)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "ingredients": [s.to_dict() for s in self.ingredients],
            "base_price": self.base_price,
            "popular": self.popular,
            "image_url": self.image_url,
        }
