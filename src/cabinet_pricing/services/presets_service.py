"""
Presets Service - shop-wide default values edited from the settings screen.
"""
import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from ..config.settings import get_settings


logger = logging.getLogger(__name__)


class PresetValues(BaseModel):
    """Shop defaults. Percentages are stored as 0-100."""
    default_height: float = Field(30, gt=0)
    default_width: float = Field(24, gt=0)
    default_depth: float = Field(24, gt=0)
    labor_rate: float = Field(65, gt=0)
    material_markup: float = Field(30, ge=0, le=100)
    tax_rate: float = Field(0, ge=0, le=100)
    delivery_fee: float = Field(0, ge=0)
    installation_fee: float = Field(0, ge=0)
    storage_fee: float = Field(25, ge=0)
    minimum_order: float = Field(0, ge=0)
    rush_order_fee: float = Field(0, ge=0, le=100)
    shipping_rate: float = Field(2.5, ge=0)
    import_tax_rate: float = Field(5, ge=0, le=100)
    exchange_rate: float = Field(1, gt=0)


class PresetsService:
    """Reads and writes preset_values.json."""

    def __init__(self, presets_json_path: Path):
        self.presets_json_path = Path(presets_json_path)

    def get_preset_values(self) -> PresetValues:
        """Stored presets, or the defaults when nothing has been saved."""
        if not self.presets_json_path.exists():
            return PresetValues()
        with open(self.presets_json_path, 'r', encoding='utf-8') as f:
            return PresetValues.model_validate(json.load(f))

    def update_preset_values(self, values: Union[PresetValues, dict]) -> PresetValues:
        """Validate and store presets. Raises pydantic.ValidationError."""
        if isinstance(values, PresetValues):
            validated = values
        else:
            merged = self.get_preset_values().model_dump()
            merged.update(values)
            validated = PresetValues.model_validate(merged)

        self.presets_json_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.presets_json_path, 'w', encoding='utf-8') as f:
            json.dump(validated.model_dump(), f, indent=2)

        logger.info("Updated preset values")
        return validated


_default_service: Optional[PresetsService] = None


def get_presets_service() -> PresetsService:
    global _default_service
    path = get_settings().presets_json
    if _default_service is None or _default_service.presets_json_path != path:
        _default_service = PresetsService(path)
    return _default_service
