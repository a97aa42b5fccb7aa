"""Cart persistence: mirrors a Cart under CART_STORAGE_KEY. A new session starts empty."""
from menu.events.Event_Bus import CART_CHANGED
from menu.infra.Repository import StoreMirror
from menu.utilities.constants import CART_STORAGE_KEY


class CartRepository(StoreMirror):
    key = CART_STORAGE_KEY
    event_name = CART_CHANGED
