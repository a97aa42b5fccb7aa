import json
import logging
from pathlib import Path

from menu.domain.Catalog import IngredientCatalog
from menu.domain.Ingredient import Ingredient, PresetCombination
from menu.infra.paths import INGREDIENTS_FILE, PRESETS_FILE, SAMPLE_MENU_FILE

logger = logging.getLogger(__name__)


def _read_json_list(path: Path) -> list:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list in {path}")
    return data


def reading_from_catalog(ingredients_file: Path = INGREDIENTS_FILE,
                         presets_file: Path = PRESETS_FILE) -> IngredientCatalog:
    """Build the ingredient catalog from the packaged JSON data.

    The catalog is build-time data: a missing or corrupt file is a packaging
    error, so failures are logged and re-raised.
    """
    try:
        ingredients = [Ingredient.from_dict(entry) for entry in _read_json_list(ingredients_file)]
        presets = [PresetCombination.from_dict(entry) for entry in _read_json_list(presets_file)]
    except FileNotFoundError:
        logger.error(f"Catalog file not found: {ingredients_file} / {presets_file}")
        raise
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in catalog data: {e}")
        raise
    catalog = IngredientCatalog(ingredients, presets)
    unknown = [(p.id, s.ingredient_id) for p in presets for s in p.ingredients
               if s.ingredient_id not in catalog]
    for preset_id, ingredient_id in unknown:
        logger.warning(f"Preset '{preset_id}' references unknown ingredient '{ingredient_id}'")
    logger.info(f"Loaded {len(catalog)} ingredients and {len(presets)} presets")
    return catalog


def reading_sample_menu(path: Path = SAMPLE_MENU_FILE) -> list:
    """Seed records for a first start; an unreadable file yields an empty menu."""
    try:
        return _read_json_list(path)
    except FileNotFoundError:
        logger.warning(f"Sample menu file not found: {path}. Starting empty.")
        return []
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Invalid sample menu data: {e}")
        return []
