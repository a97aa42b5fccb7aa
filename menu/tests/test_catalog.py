import unittest
from menu.domain.Ingredient import Ingredient, IngredientCategory, SelectedIngredient
from menu.infra.Catalog_Repository import reading_from_catalog
from menu.logic.pricing.ingredient_costs import bulk_markup, catalog_cost_stats, cost_update
from menu.domain.errors import MenuValidationError


class TestIngredientCatalog(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.catalog = reading_from_catalog()

    def test_packaged_data_loads(self):
        self.assertEqual(len(self.catalog), 47)
        self.assertEqual(len(self.catalog.presets()), 8)
        shrimp = self.catalog.get("shrimp")
        self.assertEqual(shrimp.name, "Shrimp")
        self.assertEqual(shrimp.category, IngredientCategory.PROTEINS)
        self.assertEqual(shrimp.allergens, ("shellfish",))

    def test_every_preset_references_known_ingredients(self):
        for preset in self.catalog.presets():
            for sel in preset.ingredients:
                self.assertIn(sel.ingredient_id, self.catalog, f"{preset.id} -> {sel.ingredient_id}")

    def test_by_category(self):
        proteins = self.catalog.by_category("proteins")
        self.assertEqual(len(proteins), 10)
        self.assertTrue(all(i.category == IngredientCategory.PROTEINS for i in proteins))

    def test_search_is_case_insensitive_and_sorted(self):
        found = self.catalog.search("CHEESE")
        self.assertIn("cheese-cheddar", [i.id for i in found])
        names = [i.name for i in found]
        self.assertEqual(names, sorted(names))

    def test_by_dietary_only_true_flags_filter(self):
        vegan = self.catalog.by_dietary(vegan=True)
        self.assertTrue(vegan)
        self.assertTrue(all(i.dietary.vegan for i in vegan))
        self.assertEqual(len(self.catalog.by_dietary(vegan=False)), len(self.catalog))

    def test_popular_presets(self):
        popular = self.catalog.presets(popular_only=True)
        self.assertEqual(len(popular), 6)

    def test_cost_skips_unknown_ingredients(self):
        selections = [SelectedIngredient("shrimp", 4), SelectedIngredient("no-such-thing", 10)]
        self.assertAlmostEqual(self.catalog.cost(selections), 9.0)

    def test_allergens_union(self):
        selections = [SelectedIngredient("shrimp", 4), SelectedIngredient("cheese-cheddar", 1)]
        self.assertEqual(set(self.catalog.allergens(selections)), {"shellfish", "dairy"})

    def test_spice_level_is_max_not_sum(self):
        selections = [SelectedIngredient("peppers-jalapeno", 0.5), SelectedIngredient("salsa-hot", 0.5),
                      SelectedIngredient("salt", 1)]
        self.assertEqual(self.catalog.spice_level(selections), 4)
        self.assertEqual(self.catalog.spice_level([SelectedIngredient("salt", 1)]), 0)

    def test_with_cost_updates_returns_new_catalog(self):
        updates = bulk_markup([self.catalog.get("shrimp")], 10)
        updated = self.catalog.with_cost_updates(updates)
        self.assertAlmostEqual(updated.get("shrimp").base_cost, 2.48)
        self.assertAlmostEqual(self.catalog.get("shrimp").base_cost, 2.25)
        self.assertAlmostEqual(updated.get("bacon").base_cost, 0.75)


class TestIngredientCosts(unittest.TestCase):

    def setUp(self):
        self.cheap = Ingredient("dust", "Dust", "extras", 0.01, min_quantity=1, default_quantity=1, max_quantity=1)
        self.beef = Ingredient("beef", "Beef", "proteins", 2.0, min_quantity=1, default_quantity=1, max_quantity=3)

    def test_bulk_markup_rounds_to_cents_with_floor(self):
        updates = {u.ingredient_id: u for u in bulk_markup([self.cheap, self.beef], -90)}
        self.assertAlmostEqual(updates["beef"].new_cost, 0.2)
        self.assertAlmostEqual(updates["dust"].new_cost, 0.01)

    def test_bulk_markup_starts_from_pending_cost(self):
        pending = {"beef": cost_update(self.beef, 3.0, False)}
        (update,) = bulk_markup([self.beef], 10, pending)
        self.assertAlmostEqual(update.new_cost, 3.3)
        self.assertFalse(update.new_availability)

    def test_cost_update_rejects_bad_input(self):
        with self.assertRaises(MenuValidationError):
            cost_update(self.beef, "abc")
        with self.assertRaises(MenuValidationError):
            cost_update(self.beef, -1)

    def test_catalog_cost_stats(self):
        stats = catalog_cost_stats([self.cheap, self.beef])
        self.assertEqual(stats["total_ingredients"], 2)
        self.assertEqual(stats["available_ingredients"], 2)
        self.assertAlmostEqual(stats["average_cost"], 1.005)

    def test_invalid_bounds_rejected(self):
        with self.assertRaises(ValueError):
            Ingredient("x", "X", "extras", 1.0, min_quantity=2, default_quantity=1, max_quantity=3)
