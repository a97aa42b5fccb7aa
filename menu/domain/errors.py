"""Error taxonomy for the menu engine."""


class MenuError(Exception):
    """Base class for every error raised by the menu engine."""


class MenuValidationError(MenuError, ValueError):
    """User input was rejected before any state changed."""


class CompositionCapacityError(MenuValidationError):
    """A composition would hold more distinct ingredients than allowed."""

    def __init__(self, limit: int, requested: int | None = None):
        self.limit = limit
        self.requested = requested
        if requested is None:
            msg = f"Maximum {limit} ingredients allowed"
        else:
            msg = f"This preset has {requested} ingredients, but the limit is {limit}"
        super().__init__(msg)


class UnknownIngredientError(MenuValidationError):
    def __init__(self, ingredient_id: str):
        self.ingredient_id = ingredient_id
        super().__init__(f"Unknown ingredient: {ingredient_id}")


class MenuBusyError(MenuValidationError):
    """A batch is still running on this menu; the mutation was refused."""

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch {batch_id} is still running")
