"""MenuItem domain entity: a sellable item, traditionally authored or ingredient-built."""
from datetime import datetime, timezone
from typing import List, Optional

from menu.domain.Ingredient import SelectedIngredient

# Fields a caller may change through update / bulk update / import
EDITABLE_FIELDS = ("name", "price", "description", "category", "available", "image_url",
                   "popularity", "revenue", "ingredient_based", "ingredients", "allergens",
                   "spice_level")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


class MenuItem:
    def __init__(self, id: str, name: str, price: float, description: str = "", category: str = "",
                 available: bool = True, image_url: Optional[str] = None, popularity: int = 0,
                 revenue: float = 0.0, created_at: Optional[datetime] = None,
                 updated_at: Optional[datetime] = None, ingredient_based: bool = False,
                 ingredients: Optional[List[SelectedIngredient]] = None,
                 allergens: Optional[List[str]] = None, spice_level: Optional[int] = None):
        self.id = id
        self.name = name
        self.price = price
        self.description = description
        self.category = category
        self.available = available
        self.image_url = image_url
        self.popularity = popularity
        self.revenue = revenue
        self.created_at = created_at
        self.updated_at = updated_at
        self.ingredient_based = ingredient_based
        self.ingredients = [SelectedIngredient.from_dict(s) for s in ingredients] if ingredients else []
        self.allergens = allergens[:] if allergens else []
        self.spice_level = spice_level

    def apply(self, changes: dict) -> "MenuItem":
        '''Returns a copy with ``changes`` merged in; identity and timestamps are kept.'''
        item = self.copy()
        for key, value in changes.items():
            if key not in EDITABLE_FIELDS:
                raise KeyError(f"Field '{key}' cannot be changed")
            if key == "ingredients":
                value = [SelectedIngredient.from_dict(s) for s in value or []]
            elif key == "allergens":
                value = list(value or [])
            setattr(item, key, value)
        return item

    def copy(self) -> "MenuItem":
        return MenuItem.from_dict(self.to_dict())

    def __eq__(self, other):
        if not isinstance(other, MenuItem):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __str__(self) -> str:
        state = "available" if self.available else "unavailable"
        return f"{self.name} - ${self.price:.2f} - {self.category} - {state}"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        '''Creates a MenuItem from its persisted form. Accepts camelCase keys from older exports.'''
        d = dict(data)
        aliases = {"imageUrl": "image_url", "createdAt": "created_at", "updatedAt": "updated_at",
                   "ingredientBased": "ingredient_based", "spiceLevel": "spice_level"}
        for old, new in aliases.items():
            if old in d and new not in d:
                d[new] = d.pop(old)
        if d.get("ingredients"):
            d["ingredients"] = [
                SelectedIngredient(s.get("ingredient_id", s.get("ingredientId")), s["quantity"])
                if isinstance(s, dict) else s
                for s in d["ingredients"]
            ]
        allowed = {"id", "name", "price", "description", "category", "available", "image_url",
                   "popularity", "revenue", "created_at", "updated_at", "ingredient_based",
                   "ingredients", "allergens", "spice_level"}
        filtered = {k: v for k, v in d.items() if k in allowed}
        filtered["id"] = str(filtered.get("id", ""))
        filtered.setdefault("name", "")
        filtered.setdefault("price", 0.0)
        filtered["popularity"] = filtered.get("popularity") or 0
        filtered["revenue"] = filtered.get("revenue") or 0.0
        filtered["created_at"] = _parse_ts(filtered.get("created_at"))
        filtered["updated_at"] = _parse_ts(filtered.get("updated_at"))
        return MenuItem(**filtered)

    def to_dict(self):
        '''JSON-ready dictionary (timestamps as ISO-8601 strings).'''
        d = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "category": self.category,
            "available": self.available,
            "image_url": self.image_url,
            "popularity": self.popularity,
            "revenue": self.revenue,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "ingredient_based": self.ingredient_based,
            "ingredients": [s.to_dict() for s in self.ingredients],
            "allergens": list(self.allergens),
            "spice_level": self.spice_level,
        }
        return d
