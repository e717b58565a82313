"""
Configuration management for the health sample importer.
Handles loading and saving configuration from JSON file.
"""
import copy
import json
import os
import sys
from pathlib import Path
from typing import Dict, Any, Optional

from health_import.catalog import Catalog, DEFAULT_TYPES
from health_import.generator import SampleGenerator


class Config:
    """Configuration manager for the application"""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to config.json file. If None, uses default location.
        """
        if config_file is None:
            config_file = Path(__file__).parent.parent / "config.json"

        self.config_file = Path(config_file)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file with defaults"""
        default_config = {
            "paths": {
                "export_path": "",
                "store_dir": str(Path.home() / ".health_import_store")
            },
            "generation": {
                "window_days": 90,
                "value_low": 1.0,
                "value_high": 100.0,
                "source_name": "Health Sample Importer"
            },
            "catalog": {
                "types": copy.deepcopy(DEFAULT_TYPES)
            },
            "dashboard": {
                "page_title": "Health Sample Importer",
                "page_icon": "🏥",
                "layout": "centered"
            }
        }

        # Load from file if it exists
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    file_config = json.load(f)
                config = self._deep_merge(default_config, file_config)
            except (OSError, ValueError) as e:
                print(f"[Config] Warning: ignoring unreadable {self.config_file}: {e}", file=sys.__stderr__)
                config = default_config
        else:
            config = default_config

        # Apply environment variable overrides
        if os.getenv("EXPORT_PATH"):
            config["paths"]["export_path"] = os.getenv("EXPORT_PATH")

        if os.getenv("STORE_DIR"):
            config["paths"]["store_dir"] = os.getenv("STORE_DIR")

        if os.getenv("WINDOW_DAYS"):
            try:
                config["generation"]["window_days"] = int(os.getenv("WINDOW_DAYS"))
            except ValueError:
                raise ValueError(f"WINDOW_DAYS must be a whole number of days, got {os.getenv('WINDOW_DAYS')!r}") from None

        return config

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def save(self):
        """Save current configuration to file"""
        with open(self.config_file, 'w') as f:
            json.dump(self._config, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation (e.g., 'paths.store_dir')"""
        keys = key.split('.')
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any):
        """Set a configuration value using dot notation"""
        keys = key.split('.')
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    @property
    def export_path(self) -> str:
        """Get export path"""
        return self.get("paths.export_path", "")

    @property
    def store_dir(self) -> str:
        """Get local sample store directory"""
        return self.get("paths.store_dir", str(Path.home() / ".health_import_store"))

    @property
    def window_days(self) -> int:
        return int(self.get("generation.window_days", 90))

    @property
    def value_range(self) -> tuple:
        """(low, high) bounds for quantity values"""
        return (
            float(self.get("generation.value_low", 1.0)),
            float(self.get("generation.value_high", 100.0)),
        )

    @property
    def source_name(self) -> str:
        return self.get("generation.source_name", "Health Sample Importer")

    @property
    def catalog(self) -> Catalog:
        """Build the importable type catalog from the 'catalog.types' section"""
        return Catalog.from_dict(self.get("catalog.types", {}))

    def make_generator(self, rng=None):
        """Create a SampleGenerator using the generation settings"""
        return SampleGenerator(
            self.catalog,
            rng=rng,
            window_days=self.window_days,
            value_range=self.value_range,
        )

    @property
    def dashboard_title(self) -> str:
        """Get dashboard title"""
        return self.get("dashboard.page_title", "Health Sample Importer")

    @property
    def dashboard_icon(self) -> str:
        """Get dashboard icon"""
        return self.get("dashboard.page_icon", "🏥")

    @property
    def dashboard_layout(self) -> str:
        """Get dashboard layout"""
        return self.get("dashboard.layout", "centered")
