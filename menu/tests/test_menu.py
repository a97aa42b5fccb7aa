import unittest
from menu.domain.Composition import Composition
from menu.domain.Menu import Menu
from menu.domain.errors import MenuValidationError
from menu.events.Event_Bus import EventBus, MENU_CHANGED
from menu.infra.Catalog_Repository import reading_from_catalog


def taco(**overrides):
    data = {"name": "Al Pastor Taco", "price": 3.5, "category": "Tacos",
            "description": "Marinated pork with pineapple"}
    data.update(overrides)
    return data


class TestMenuCrud(unittest.TestCase):

    def setUp(self):
        self.bus = EventBus()
        self.events = []
        self.bus.subscribe(MENU_CHANGED, lambda name, payload: self.events.append(payload))
        self.menu = Menu(bus=self.bus)

    def test_add_assigns_identity_and_zeroes_stats(self):
        item = self.menu.add(taco(popularity=99, revenue=1000))
        self.assertTrue(item.id)
        self.assertEqual(item.popularity, 0)
        self.assertEqual(item.revenue, 0)
        self.assertIsNotNone(item.created_at)
        self.assertEqual(item.created_at, item.updated_at)
        self.assertEqual(self.menu.get(item.id), item)
        self.assertEqual(len(self.menu.undo_stack), 1)

    def test_ids_are_unique_even_within_one_millisecond(self):
        ids = [self.menu.add(taco(name=f"Taco {i}")).id for i in range(50)]
        self.assertEqual(len(set(ids)), 50)
        self.assertEqual(ids, sorted(ids, key=int))

    def test_add_accepts_keyword_fields(self):
        item = self.menu.add(name="Horchata", price=2.5, category="Drinks")
        self.assertEqual(item.name, "Horchata")
        self.assertTrue(item.available)

    def test_validation_errors_leave_state_untouched(self):
        bad_inputs = [
            taco(name=""),
            taco(name="   "),
            taco(category=""),
            {"price": 3.0, "category": "Tacos"},
            taco(price=0),
            taco(price=-1),
            taco(price="abc"),
            taco(ingredient_based=True, ingredients=[]),
        ]
        for data in bad_inputs:
            with self.assertRaises(MenuValidationError, msg=str(data)):
                self.menu.add(data)
        self.assertEqual(len(self.menu), 0)
        self.assertFalse(self.menu.can_undo)
        self.assertEqual(self.events, [])

    def test_ingredient_based_item_from_composition(self):
        comp = Composition(reading_from_catalog())
        comp.set_quantity("shrimp", 4).set_quantity("peppers-jalapeno", 0.5)
        item = self.menu.add(name=comp.suggest_name(), price=comp.suggested_price(), category="Tacos",
                             **comp.to_item_fields())
        self.assertTrue(item.ingredient_based)
        self.assertEqual([s.ingredient_id for s in item.ingredients], ["shrimp", "peppers-jalapeno"])
        self.assertEqual(item.allergens, ["shellfish"])
        self.assertEqual(item.spice_level, 3)
        self.assertEqual(len(self.menu.ingredient_based_items()), 1)

    def test_update_merges_and_refreshes_timestamp(self):
        item = self.menu.add(taco())
        updated = self.menu.update(item.id, price=4.0, description="New")
        self.assertEqual(updated.price, 4.0)
        self.assertEqual(updated.description, "New")
        self.assertEqual(updated.name, "Al Pastor Taco")
        self.assertGreaterEqual(updated.updated_at, item.updated_at)
        self.assertEqual(updated.created_at, item.created_at)
        self.assertEqual(self.menu.undo_stack[-1].type.value, "UPDATE")

    def test_update_rejects_invalid_changes(self):
        item = self.menu.add(taco())
        with self.assertRaises(MenuValidationError):
            self.menu.update(item.id, price=0)
        with self.assertRaises(MenuValidationError):
            self.menu.update(item.id, id="hijack")
        self.assertEqual(self.menu.get(item.id).price, 3.5)

    def test_unknown_id_is_silent_noop(self):
        self.menu.add(taco())
        self.assertIsNone(self.menu.update("missing", price=9.0))
        self.assertIsNone(self.menu.delete("missing"))
        self.assertIsNone(self.menu.duplicate("missing"))
        self.assertIsNone(self.menu.toggle_availability("missing"))
        self.assertEqual(len(self.menu.undo_stack), 1)

    def test_delete(self):
        item = self.menu.add(taco())
        removed = self.menu.delete(item.id)
        self.assertEqual(removed.id, item.id)
        self.assertIsNone(self.menu.get(item.id))
        self.assertEqual(len(self.menu), 0)

    def test_duplicate_is_a_fresh_undoable_item(self):
        item = self.menu.add(taco())
        self.menu.update(item.id, popularity=40, revenue=140.0)
        copy = self.menu.duplicate(item.id)
        self.assertNotEqual(copy.id, item.id)
        self.assertEqual(copy.name, "Al Pastor Taco (Copy)")
        self.assertEqual(copy.popularity, 0)
        self.assertEqual(copy.revenue, 0)
        self.assertEqual(copy.price, 3.5)
        self.assertEqual(len(self.menu), 2)
        self.menu.undo()
        self.assertEqual(len(self.menu), 1)

    def test_toggle_availability(self):
        item = self.menu.add(taco())
        self.assertFalse(self.menu.toggle_availability(item.id).available)
        self.assertTrue(self.menu.toggle_availability(item.id).available)
        self.assertEqual(self.menu.available_count, 1)

    def test_returned_items_are_copies(self):
        item = self.menu.add(taco())
        item.name = "Changed outside"
        self.menu.get(item.id).price = 100
        self.assertEqual(self.menu.get(item.id).name, "Al Pastor Taco")
        self.assertEqual(self.menu.get(item.id).price, 3.5)

    def test_every_mutation_publishes_change(self):
        item = self.menu.add(taco())
        self.menu.update(item.id, price=4.0)
        self.menu.delete(item.id)
        self.menu.undo()
        self.assertEqual([e["reason"] for e in self.events], ["ADD", "UPDATE", "DELETE", "undo"])
        self.assertTrue(all(e["source"] is self.menu for e in self.events))

    def test_load_items_does_not_log(self):
        self.menu.load_items([taco(id="1"), taco(id="2", name="Carne Asada Taco")])
        self.assertEqual(len(self.menu), 2)
        self.assertFalse(self.menu.can_undo)
        self.assertEqual(self.events, [])
        new = self.menu.add(taco(name="Fish Taco"))
        self.assertNotIn(new.id, ("1", "2"))


class TestMenuQueries(unittest.TestCase):

    def setUp(self):
        self.menu = Menu(bus=EventBus())
        self.menu.load_items([
            {"id": "1", "name": "Al Pastor Taco", "price": 3.5, "category": "Tacos", "available": True,
             "ingredient_based": True, "ingredients": [{"ingredient_id": "al-pastor", "quantity": 3}],
             "allergens": [], "spice_level": 2},
            {"id": "2", "name": "Shrimp Taco", "price": 4.5, "category": "Tacos", "available": False,
             "ingredient_based": True,
             "ingredients": [{"ingredient_id": "shrimp", "quantity": 4},
                             {"ingredient_id": "al-pastor", "quantity": 1}],
             "allergens": ["shellfish"], "spice_level": 4},
            {"id": "3", "name": "Horchata", "price": 2.5, "category": "Drinks", "available": True},
        ])

    def test_counts(self):
        self.assertEqual(self.menu.total_items, 3)
        self.assertEqual(self.menu.available_count, 2)

    def test_items_by_category(self):
        self.assertEqual([i.id for i in self.menu.items_by_category("Tacos")], ["1", "2"])
        self.assertEqual(len(self.menu.items_by_category("All")), 3)

    def test_items_by_allergen(self):
        self.assertEqual([i.id for i in self.menu.items_by_allergen("shellfish")], ["2"])

    def test_items_by_spice_level(self):
        self.assertEqual([i.id for i in self.menu.items_by_spice_level(3)], ["2"])
        self.assertEqual([i.id for i in self.menu.items_by_spice_level(1, 3)], ["1"])

    def test_items_with_ingredient(self):
        self.assertEqual([i.id for i in self.menu.items_with_ingredient("al-pastor")], ["1", "2"])

    def test_ingredient_usage(self):
        usage = self.menu.ingredient_usage()
        self.assertEqual(usage["al-pastor"], {"count": 2, "total_quantity": 4.0})
        self.assertEqual(usage["shrimp"]["count"], 1)
