"""
Input validation schemas using Pydantic for menu data integrity.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class SelectedIngredientInput(BaseModel):
    """Schema for one ingredient selection of a composed item."""
    ingredient_id: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)


class MenuItemInput(BaseModel):
    """Schema for a new menu item."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    description: str = ""
    category: str = Field(..., min_length=1, max_length=100)
    available: bool = True
    image_url: Optional[str] = None
    ingredient_based: bool = False
    ingredients: List[SelectedIngredientInput] = Field(default_factory=list)
    allergens: List[str] = Field(default_factory=list)
    spice_level: Optional[int] = Field(None, ge=0, le=5)

    @field_validator('name', 'category', 'description')
    @classmethod
    def strip_whitespace(cls, v):
        """Remove leading/trailing whitespace."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('name', 'category')
    @classmethod
    def not_blank(cls, v):
        if not v:
            raise ValueError('must not be empty')
        return v

    @model_validator(mode='after')
    def require_ingredients(self):
        """An ingredient-built item needs at least one ingredient."""
        if self.ingredient_based and not self.ingredients:
            raise ValueError('Please select at least one ingredient')
        return self


class MenuItemUpdate(BaseModel):
    """Schema for a partial update; only supplied fields are validated and applied."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    available: Optional[bool] = None
    image_url: Optional[str] = None
    popularity: Optional[int] = Field(None, ge=0)
    revenue: Optional[float] = Field(None, ge=0)
    ingredient_based: Optional[bool] = None
    ingredients: Optional[List[SelectedIngredientInput]] = None
    allergens: Optional[List[str]] = None
    spice_level: Optional[int] = Field(None, ge=0, le=5)

    @field_validator('name', 'category')
    @classmethod
    def not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError('must not be empty')
        return v.strip() if v is not None else v


class ImportRecord(BaseModel):
    """One imported row; lenient numbers, strict name/category presence."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    price: Optional[float] = None
    description: Optional[str] = None
    category: Optional[str] = None
    available: Optional[bool] = None
    image_url: Optional[str] = None
    popularity: Optional[int] = None
    revenue: Optional[float] = None

    @field_validator('name', 'category', 'description', mode='before')
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('price', 'revenue', mode='before')
    @classmethod
    def lenient_float(cls, v):
        """Non-numeric amounts count as 0."""
        if v is None or v == "":
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return 0.0

    @field_validator('popularity', mode='before')
    @classmethod
    def lenient_int(cls, v):
        if v is None or v == "":
            return None
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return 0

    @field_validator('available', mode='before')
    @classmethod
    def parse_bool(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, str):
            return v.strip().lower() == 'true'
        return bool(v)

    @field_validator('price')
    @classmethod
    def non_negative_price(cls, v):
        if v is not None and v < 0:
            raise ValueError('Price cannot be negative')
        return v

    def has_required(self) -> bool:
        return bool(self.name and self.name.strip()) and bool(self.category and self.category.strip())


def describe_errors(exc: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        msg = err.get("msg", "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)
