"""Configuration management for the Taco Menu engine."""
import os
from typing import Final
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Pricing policy (not user-configurable)
MARKUP_MULTIPLIER: Final[float] = 2.2
PRICE_STEP: Final[float] = 0.05

# Composition limits
MAX_INGREDIENTS: Final[int] = int(os.getenv('MAX_INGREDIENTS', '20'))

# Undo/redo history depth
UNDO_LIMIT: Final[int] = int(os.getenv('UNDO_LIMIT', '20'))

# Cooperative pause between batch steps (seconds)
BATCH_STEP_DELAY: Final[float] = float(os.getenv('BATCH_STEP_DELAY', '0'))

# Seed the menu with sample items when nothing is stored yet
SEED_SAMPLE_MENU: Final[bool] = os.getenv('SEED_SAMPLE_MENU', 'True').lower() == 'true'

# Logging
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'INFO').upper()

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = BASE_DIR / 'data'
STORAGE_DIR: Final[Path] = Path(os.getenv('MENU_STORAGE_DIR', str(DATA_DIR / 'storage')))
