"""
Shared test fixtures - temporary rule/preset stores, a small catalog and
an API client wired to them.
"""
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from cabinet_pricing.config.settings import DATA_DIR_ENV, reset_settings
from cabinet_pricing.engine.models import PricingRule
from cabinet_pricing.services.presets_service import PresetsService
from cabinet_pricing.services.rules_service import RulesService


CATALOG_CSV = """id,name,category,unit_cost
BASE-24,Base Cabinet 24in,Base,260
WALL-30,Wall Cabinet 30in,Wall,150
TALL-84,Pantry Tall 84in,Tall,520
FILLER-3,Filler Strip 3in,Accessory,
"""


def make_rule(result, *steps, rule_id="", active=True):
    """Build a PricingRule from (left, operator, right, type) tuples."""
    formula = []
    for left, operator, right, kind in steps:
        formula.append({
            'left_operand': left,
            'operator': operator,
            'right_operand': right,
            'right_operand_type': kind,
        })
    return PricingRule.from_dict({
        'rule_id': rule_id,
        'result': result,
        'formula': formula,
        'active': active,
    })


@pytest.fixture(autouse=True)
def packaged_settings(monkeypatch):
    """Every test starts from the packaged data directory."""
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def rules_service(tmp_path):
    return RulesService(tmp_path / "pricing_rules.json")


@pytest.fixture
def presets_service(tmp_path):
    return PresetsService(tmp_path / "preset_values.json")


@pytest.fixture
def catalog_csv(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text(CATALOG_CSV, encoding="utf-8")
    return path


@pytest.fixture
def markup_rule():
    return make_rule(
        "displayed_price",
        ("base_price", "*", "material_markup", "factor"),
        rule_id="MARKUP",
    )
