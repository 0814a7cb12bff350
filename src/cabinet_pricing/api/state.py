"""Shared service instances for the API, exposed as FastAPI dependencies."""
from typing import Optional

from ..catalog.product_catalog import ProductCatalog
from ..engine.pricing_engine import PricingEngine
from ..services.presets_service import PresetsService, get_presets_service
from ..services.rules_service import RulesService, get_rules_service


_engine: Optional[PricingEngine] = None
_catalog: Optional[ProductCatalog] = None


def get_rules() -> RulesService:
    return get_rules_service()


def get_presets() -> PresetsService:
    return get_presets_service()


def get_engine() -> PricingEngine:
    global _engine
    if _engine is None:
        _engine = PricingEngine(get_rules_service())
    return _engine


def get_catalog() -> ProductCatalog:
    global _catalog
    if _catalog is None:
        _catalog = ProductCatalog()
    return _catalog
