from pathlib import Path

# Centralized paths for packaged data files (single source of truth)
DATA_DIR = (Path(__file__).parent.parent / 'data').resolve()
INGREDIENTS_FILE = DATA_DIR / 'ingredients.json'
PRESETS_FILE = DATA_DIR / 'presets.json'
SAMPLE_MENU_FILE = DATA_DIR / 'sample_menu.json'

__all__ = ['DATA_DIR', 'INGREDIENTS_FILE', 'PRESETS_FILE', 'SAMPLE_MENU_FILE']
