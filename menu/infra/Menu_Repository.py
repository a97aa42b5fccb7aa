"""Menu persistence: mirrors a Menu under MENU_STORAGE_KEY."""
import logging

from menu.domain.Menu import Menu
from menu.events.Event_Bus import MENU_CHANGED
from menu.infra.Catalog_Repository import reading_sample_menu
from menu.infra.Repository import StoreMirror
from menu.utilities.config import SEED_SAMPLE_MENU
from menu.utilities.constants import MENU_STORAGE_KEY

logger = logging.getLogger(__name__)


class MenuRepository(StoreMirror):
    key = MENU_STORAGE_KEY
    event_name = MENU_CHANGED

    def __init__(self, menu: Menu, storage, bus=None, key=None, seed: bool = SEED_SAMPLE_MENU):
        super().__init__(menu, storage, bus=bus, key=key)
        self.seed = seed

    def default_records(self):
        if not self.seed:
            return []
        records = reading_sample_menu()
        logger.info(f"No stored menu under '{self.key}', seeding {len(records)} sample items")
        return records
