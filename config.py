"""
Configuration and constants for the sales profit analyzer.

This module provides:
- Row heuristics for point-of-sale sales report exports
- Costing defaults used when an item has no inventory match
- Support for user-configurable settings via environment variables
- Loading overrides from a YAML file
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Sales Report Layout
# =============================================================================

# Fixed column contract of the report export
COL_MARKER = 0
COL_ITEM_NAME = 1
COL_QUANTITY = 2
COL_GROSS_AMOUNT = 3
COL_DISCOUNT = 4
COL_NET_AMOUNT = 5
COL_TAX = 6
COL_TOTAL_SALES = 7

# Column 0 labels of statistic / subtotal rows (exact match after trim)
SKIP_ROW_LABELS: List[str] = [
    "Max",
    "Min",
    "Avg",
    "Total",
    "Sub Total",
    "Round off",
    "Group",
]

# Substrings in column 0 that mark report header rows
SKIP_ROW_SUBSTRINGS_CASELESS: List[str] = ["hotel"]
SKIP_ROW_SUBSTRINGS: List[str] = ["Group Report"]

UNCATEGORIZED: str = "Uncategorized"
UNKNOWN_RESTAURANT: str = "Unknown Restaurant"

# Grids shorter than this cannot hold metadata, a header and one item
MIN_VIABLE_ROWS: int = 5

# Rows echoed back in NoItemsFound diagnostics
DIAGNOSTIC_SAMPLE_ROWS: int = 10

# =============================================================================
# Costing
# =============================================================================

# Assumed margin reported for items with no inventory match
DEFAULT_ASSUMED_MARGIN: float = 45.0

# Items this many points below their target margin are flagged
MARGIN_ISSUE_THRESHOLD: float = 10.0

# Items under this margin are reported as low margin
LOW_MARGIN_PERCENT: float = 40.0

# =============================================================================
# Application Info
# =============================================================================

APP_NAME: str = "Sales Profit Analyzer"
APP_VERSION: str = "1.0.0"

SUPPORTED_EXTENSIONS: List[str] = [".xlsx", ".xls", ".csv"]

MAX_UPLOAD_MB: int = int(os.environ.get("MAX_UPLOAD_MB", "10"))

# =============================================================================
# File Encodings to Try
# =============================================================================

FILE_ENCODINGS: List[str] = [
    "utf-8-sig",      # Excel CSV with BOM
    "utf-8",
    "cp1252",
    "iso-8859-1",
    "utf-16",
]

DEFAULT_INVENTORY_FILE: Path = Path(__file__).parent / "storage" / "default_inventory.yaml"


# =============================================================================
# Flexible Configuration System
# =============================================================================

def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


class Config:
    """
    Flexible configuration manager that supports:
    - Environment variables
    - Custom YAML configuration files
    - Runtime overrides
    """

    _instance: Optional["Config"] = None
    _settings: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_defaults()
            cls._instance._load_custom_config()
        return cls._instance

    def _load_defaults(self) -> None:
        """Load default settings."""
        self._settings = {
            # Costing settings
            "allow_fuzzy_match": _env_flag("ALLOW_FUZZY_MATCH", "true"),
            "default_assumed_margin": float(
                os.environ.get("DEFAULT_ASSUMED_MARGIN", str(DEFAULT_ASSUMED_MARGIN))
            ),
            "inventory_file": os.environ.get("INVENTORY_FILE", str(DEFAULT_INVENTORY_FILE)),

            # Input limits, enforced before parsing
            "min_rows": MIN_VIABLE_ROWS,
            "max_rows": int(os.environ.get("MAX_ROWS", "5000")),
            "max_upload_mb": MAX_UPLOAD_MB,

            # Reporting
            "currency_symbol": os.environ.get("CURRENCY_SYMBOL", "₹"),
            "top_items_limit": int(os.environ.get("TOP_ITEMS_LIMIT", "10")),
        }

    def _load_custom_config(self) -> None:
        """Load custom configuration from YAML file if available."""
        config_paths = [
            Path.cwd() / "config.yaml",
            Path.cwd() / "config.yml",
            Path(__file__).parent / "config.yaml",
            Path.home() / ".salesprofit" / "config.yaml",
        ]

        for config_path in config_paths:
            if config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        custom_config = yaml.safe_load(f) or {}
                    self._settings.update(custom_config)
                    logger.info("Loaded config from %s", config_path)
                    break
                except (OSError, yaml.YAMLError) as e:
                    logger.warning("Could not load config from %s: %s", config_path, e)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self._settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value at runtime."""
        self._settings[key] = value

    @property
    def allow_fuzzy_match(self) -> bool:
        return bool(self._settings.get("allow_fuzzy_match", True))

    @property
    def default_assumed_margin(self) -> float:
        return float(self._settings.get("default_assumed_margin", DEFAULT_ASSUMED_MARGIN))

    @property
    def max_upload_bytes(self) -> int:
        return int(self._settings.get("max_upload_mb", MAX_UPLOAD_MB)) * 1024 * 1024

    def reload(self) -> None:
        """Reload configuration from files."""
        self._load_defaults()
        self._load_custom_config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
