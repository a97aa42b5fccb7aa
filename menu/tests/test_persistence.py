import asyncio
import json
import pytest
from menu.app import build_services
from menu.domain.Cart import Cart
from menu.domain.Menu import Menu
from menu.events import warning_observers
from menu.events.Event_Bus import EventBus, PERSISTENCE_READ_FAILED, PERSISTENCE_WRITE_FAILED
from menu.infra.Cart_Repository import CartRepository
from menu.infra.Menu_Repository import MenuRepository
from menu.infra.Storage import JsonFileStorage, KeyValueStorage, MemoryStorage, StorageError
from menu.utilities.constants import CART_STORAGE_KEY, MENU_STORAGE_KEY


class FlakyStorage(MemoryStorage):
    def __init__(self, initial=None, fail_reads=False, fail_writes=False):
        super().__init__(initial)
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.writes = []

    async def read(self, key):
        if self.fail_reads:
            raise StorageError(key, "disk on fire")
        return await super().read(key)

    async def write(self, key, value):
        if self.fail_writes:
            raise StorageError(key, "disk full")
        self.writes.append(key)
        await super().write(key, value)


class SlowStorage(MemoryStorage):
    """Read blocks until released, so saves can be attempted mid-load."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.release = asyncio.Event()
        self.writes = 0

    async def read(self, key):
        await self.release.wait()
        return await super().read(key)

    async def write(self, key, value):
        self.writes += 1
        await super().write(key, value)


def _stored(storage, key):
    return json.loads(storage.data[key])


@pytest.mark.asyncio
async def test_menu_seeds_sample_items_when_nothing_stored():
    menu = Menu(bus=EventBus())
    repo = MenuRepository(menu, MemoryStorage(), seed=True)
    await repo.load()
    assert [i.name for i in menu.get_items()] == ["Al Pastor Taco", "Carne Asada Taco", "Fish Taco"]
    assert not menu.can_undo


@pytest.mark.asyncio
async def test_mutations_are_mirrored_with_schema_version():
    storage = MemoryStorage()
    menu = Menu(bus=EventBus())
    repo = MenuRepository(menu, storage, seed=False)
    await repo.load()
    item = menu.add(name="Horchata", price=2.5, category="Drinks")
    await repo.flush()
    stored = _stored(storage, MENU_STORAGE_KEY)
    assert stored["version"] == 1
    assert [d["id"] for d in stored["items"]] == [item.id]

    menu.update(item.id, price=3.0)
    menu.delete(item.id)
    await repo.flush()
    assert _stored(storage, MENU_STORAGE_KEY)["items"] == []


@pytest.mark.asyncio
async def test_existing_state_is_restored_and_legacy_list_accepted():
    legacy = json.dumps([{"id": "7", "name": "Tamale", "price": 3.0, "category": "Sides"}])
    storage = MemoryStorage({MENU_STORAGE_KEY: legacy})
    menu = Menu(bus=EventBus())
    await MenuRepository(menu, storage, seed=True).load()
    assert [i.id for i in menu.get_items()] == ["7"]


@pytest.mark.asyncio
async def test_no_write_before_load_finishes():
    stored = json.dumps({"version": 1, "items": [{"id": "1", "name": "Flan", "price": 3, "category": "Desserts"}]})
    storage = SlowStorage({MENU_STORAGE_KEY: stored})
    menu = Menu(bus=EventBus())
    repo = MenuRepository(menu, storage, seed=False)
    loading = asyncio.ensure_future(repo.load())
    await asyncio.sleep(0)
    menu.add(name="Early Bird", price=1.0, category="Sides")
    await asyncio.sleep(0)
    assert storage.writes == 0
    assert json.loads(storage.data[MENU_STORAGE_KEY])["items"][0]["name"] == "Flan"

    storage.release.set()
    await loading
    await repo.flush()
    assert [d["name"] for d in _stored(storage, MENU_STORAGE_KEY)["items"]] == ["Flan"]


@pytest.mark.asyncio
async def test_write_failure_keeps_memory_and_raises_warning():
    bus = EventBus()
    failures = []
    bus.subscribe(PERSISTENCE_WRITE_FAILED, lambda name, payload: failures.append(payload))
    warning_observers.clear()
    warning_observers.start(bus)
    try:
        storage = FlakyStorage(fail_writes=True)
        cart = Cart(bus=bus)
        repo = CartRepository(cart, storage)
        await repo.load()
        cart.add({"id": "1", "name": "Al Pastor Taco", "price": 3.5})
        await repo.flush()
        assert len(cart) == 1
        assert failures == [{"key": CART_STORAGE_KEY, "error": f"{CART_STORAGE_KEY}: disk full"}]
        warnings = warning_observers.get_warnings()["warnings"]
        assert warnings[-1]["type"] == PERSISTENCE_WRITE_FAILED

        storage.fail_writes = False
        cart.add({"id": "1", "name": "Al Pastor Taco", "price": 3.5})
        await repo.flush()
        assert _stored(storage, CART_STORAGE_KEY)["items"][0]["quantity"] == 2
    finally:
        warning_observers.stop(bus)


@pytest.mark.asyncio
async def test_read_failure_starts_empty_but_still_saves():
    bus = EventBus()
    failures = []
    bus.subscribe(PERSISTENCE_READ_FAILED, lambda name, payload: failures.append(payload["key"]))
    storage = FlakyStorage(fail_reads=True)
    menu = Menu(bus=bus)
    repo = MenuRepository(menu, storage, seed=True)
    await repo.load()
    assert failures == [MENU_STORAGE_KEY]
    assert len(menu) == 0
    assert repo.loaded
    menu.add(name="Flan", price=3.0, category="Desserts")
    await repo.flush()
    assert storage.writes == [MENU_STORAGE_KEY]


@pytest.mark.asyncio
async def test_corrupt_payload_counts_as_read_failure():
    bus = EventBus()
    failures = []
    bus.subscribe(PERSISTENCE_READ_FAILED, lambda name, payload: failures.append(payload["key"]))
    storage = MemoryStorage({CART_STORAGE_KEY: "{{{"})
    cart = Cart(bus=bus)
    await CartRepository(cart, storage).load()
    assert failures == [CART_STORAGE_KEY]
    assert len(cart) == 0


@pytest.mark.asyncio
async def test_burst_of_changes_ends_with_latest_state():
    storage = MemoryStorage()
    cart = Cart(bus=EventBus())
    repo = CartRepository(cart, storage)
    await repo.load()
    for _ in range(10):
        cart.add({"id": "1", "name": "Al Pastor Taco", "price": 3.5})
    await repo.flush()
    assert not repo.pending
    assert _stored(storage, CART_STORAGE_KEY)["items"][0]["quantity"] == 10


@pytest.mark.asyncio
async def test_repositories_ignore_other_stores_on_shared_bus():
    bus = EventBus()
    storage = MemoryStorage()
    watched, other = Cart(bus=bus), Cart(bus=bus)
    repo = CartRepository(watched, storage)
    await repo.load()
    other.add({"id": "1", "name": "Al Pastor Taco", "price": 3.5})
    await repo.flush()
    assert CART_STORAGE_KEY not in storage.data


@pytest.mark.asyncio
async def test_json_file_storage_round_trip(tmp_path):
    storage = JsonFileStorage(tmp_path / "store")
    assert await storage.read(MENU_STORAGE_KEY) is None
    await storage.write(MENU_STORAGE_KEY, '{"version": 1, "items": []}')
    assert await storage.read(MENU_STORAGE_KEY) == '{"version": 1, "items": []}'
    path = storage.path_for(MENU_STORAGE_KEY)
    assert path.parent == tmp_path / "store"
    assert path.name == "taco_admin_menu.json"
    assert [p.name for p in path.parent.iterdir()] == ["taco_admin_menu.json"]


def test_storage_interface_is_abstract():
    with pytest.raises(TypeError):
        KeyValueStorage()


@pytest.mark.asyncio
async def test_services_start_and_close(tmp_path):
    services = build_services(JsonFileStorage(tmp_path), seed_sample_menu=False)
    await services.start()
    services.menu.add(name="Horchata", price=2.5, category="Drinks")
    services.cart.add(services.menu.get_items()[0])
    composition = services.new_composition().set_quantity("shrimp", 4)
    assert composition.cost() == 9.0
    await services.close()

    restarted = build_services(JsonFileStorage(tmp_path), seed_sample_menu=False)
    await restarted.start()
    assert [i.name for i in restarted.menu.get_items()] == ["Horchata"]
    assert restarted.cart.total_quantity() == 1
    await restarted.close()
