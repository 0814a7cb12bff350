"""
Centralized settings and path configuration for cabinet pricing.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


DATA_DIR_ENV = 'CABINET_PRICING_DATA_DIR'
LOG_LEVEL_ENV = 'CABINET_PRICING_LOG_LEVEL'


def get_package_data_dir() -> Path:
    """Get the data directory shipped with the package."""
    return Path(__file__).resolve().parent.parent / 'data'


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Data location
    data_dir: Path

    # Stores
    rules_json: Path
    presets_json: Path
    catalog_csv: Path

    log_level: str = 'INFO'

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment, falling back to packaged data."""
        env_dir = os.environ.get(DATA_DIR_ENV)
        root = Path(data_dir or env_dir or get_package_data_dir())

        return cls(
            data_dir=root,
            rules_json=root / 'pricing_rules.json',
            presets_json=root / 'preset_values.json',
            catalog_csv=root / 'catalog.csv',
            log_level=os.environ.get(LOG_LEVEL_ENV, 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
