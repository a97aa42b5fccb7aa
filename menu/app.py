"""Composition root: builds the catalog, both stores and their persistence mirrors.

Services are plain objects created once and handed to whoever needs them:

    services = build_services(JsonFileStorage(STORAGE_DIR))
    await services.start()
    services.menu.add(name="Al Pastor Taco", price=3.5, category="Tacos")
    await services.close()
"""
import logging
from dataclasses import dataclass
from typing import Optional

from menu.domain.Cart import Cart
from menu.domain.Catalog import IngredientCatalog
from menu.domain.Composition import Composition
from menu.domain.Menu import Menu
from menu.events import warning_observers
from menu.events.Event_Bus import EventBus
from menu.infra.Cart_Repository import CartRepository
from menu.infra.Catalog_Repository import reading_from_catalog
from menu.infra.Menu_Repository import MenuRepository
from menu.infra.Storage import JsonFileStorage, KeyValueStorage
from menu.utilities.config import LOG_LEVEL, MAX_INGREDIENTS, SEED_SAMPLE_MENU, STORAGE_DIR, UNDO_LIMIT

logger = logging.getLogger(__name__)


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@dataclass
class MenuServices:
    catalog: IngredientCatalog
    menu: Menu
    cart: Cart
    menu_repository: MenuRepository
    cart_repository: CartRepository
    bus: EventBus

    def new_composition(self, selections=None) -> Composition:
        """A fresh draft composition bound to this catalog."""
        return Composition(self.catalog, selections, max_ingredients=MAX_INGREDIENTS)

    async def start(self) -> None:
        """Load both stores; saving begins once each load has finished."""
        await self.menu_repository.load()
        await self.cart_repository.load()
        logger.info(f"Services ready: {self.menu}, {self.cart}")

    async def close(self) -> None:
        await self.menu_repository.close()
        await self.cart_repository.close()
        warning_observers.stop(self.bus)


def build_services(storage: Optional[KeyValueStorage] = None, bus: Optional[EventBus] = None,
                   catalog: Optional[IngredientCatalog] = None,
                   seed_sample_menu: bool = SEED_SAMPLE_MENU) -> MenuServices:
    """Wire everything on one private event bus unless one is given."""
    bus = bus or EventBus()
    storage = storage or JsonFileStorage(STORAGE_DIR)
    catalog = catalog or reading_from_catalog()
    menu = Menu(bus=bus, undo_limit=UNDO_LIMIT)
    cart = Cart(bus=bus)
    warning_observers.start(bus)
    return MenuServices(
        catalog=catalog,
        menu=menu,
        cart=cart,
        menu_repository=MenuRepository(menu, storage, bus=bus, seed=seed_sample_menu),
        cart_repository=CartRepository(cart, storage, bus=bus),
        bus=bus,
    )
