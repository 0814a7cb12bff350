"""Engine subpackage - formula evaluation and displayed-price resolution."""
from .pricing_engine import PricingEngine, calculate_displayed_price
from .formula import evaluate_formula
from .models import FormulaStep, PricingRule, PriceResult

__all__ = [
    'PricingEngine', 'calculate_displayed_price', 'evaluate_formula',
    'FormulaStep', 'PricingRule', 'PriceResult',
]
