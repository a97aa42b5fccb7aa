"""Bulk price rules: absolute set, percentage / fixed increase or decrease, then post-processing."""
from __future__ import annotations

import math
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = ["PriceRule"]


class PriceRule(BaseModel):
    """Exactly one adjustment is honored, in priority order new_price > increase > decrease.

    Post-processing always runs in this order: clamp to ``minimum_price``,
    round to the nearest ``round_to_nearest``, floor at 0, store with 2 decimals.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    new_price: Optional[float] = Field(None, ge=0)
    increase_type: Optional[Literal["percentage", "fixed"]] = None
    increase_value: Optional[float] = None
    decrease_type: Optional[Literal["percentage", "fixed"]] = None
    decrease_value: Optional[float] = None
    minimum_price: Optional[float] = None
    round_to_nearest: Optional[float] = Field(None, gt=0)

    @model_validator(mode="before")
    @classmethod
    def accept_camel_case(cls, data):
        """Batch payloads arrive with the presentation layer's camelCase keys."""
        if isinstance(data, dict):
            mapping = {"newPrice": "new_price", "increaseType": "increase_type",
                       "increaseValue": "increase_value", "decreaseType": "decrease_type",
                       "decreaseValue": "decrease_value", "minimumPrice": "minimum_price",
                       "roundToNearest": "round_to_nearest"}
            data = {mapping.get(k, k): v for k, v in data.items()}
        return data

    def apply(self, price: float) -> float:
        new_price = price
        if self.new_price is not None:
            new_price = self.new_price
        elif self.increase_type and self.increase_value is not None:
            if self.increase_type == "percentage":
                new_price = price * (1 + self.increase_value / 100)
            else:
                new_price = price + self.increase_value
        elif self.decrease_type and self.decrease_value is not None:
            if self.decrease_type == "percentage":
                new_price = price * (1 - self.decrease_value / 100)
            else:
                new_price = price - self.decrease_value

        if self.minimum_price is not None:
            new_price = max(new_price, self.minimum_price)
        if self.round_to_nearest is not None:
            # half-up, so 62.5 steps rounds to 63
            new_price = math.floor(new_price / self.round_to_nearest + 0.5) * self.round_to_nearest
        new_price = max(0.0, new_price)
        return round(new_price, 2)
