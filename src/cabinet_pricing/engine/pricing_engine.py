"""
Pricing Engine - turns a unit cost and dimensions into a displayed price.

Resolution order:
1. Load the configured pricing rules (execution order = stored order)
2. Evaluate them against the variable bag
3. Read the first price key present in PRICE_KEYS
4. Fall back to the unadjusted base price
"""
import logging
from typing import Iterable, Optional, Union

from .formula import evaluate_formula
from .models import PricingRule, PriceResult


logger = logging.getLogger(__name__)


# Candidate result keys, tried in order
PRICE_KEYS = ('displayed_price', 'final_price')

RuleList = Iterable[Union[PricingRule, dict]]


def extract_price(values: dict[str, float], base_price: float, keys=PRICE_KEYS) -> tuple[float, str]:
    """
    Pick the final price out of an evaluated variable bag.

    Returns (price, source_key); source_key is "base_price" when no
    candidate key was produced.
    """
    for key in keys:
        if key in values:
            return values[key], key
    return base_price, 'base_price'


def calculate_displayed_price(
    base_price: float,
    width: float,
    height: float,
    depth: float,
    rules: Optional[RuleList] = None,
) -> float:
    """
    Calculate the price shown for a product at the given dimensions.

    Uses the configured pricing rules unless a rule list is passed in.
    """
    logger.debug(
        "Calculating displayed price base_price=%s width=%s height=%s depth=%s",
        base_price, width, height, depth,
    )
    if rules is None:
        from ..services.rules_service import get_pricing_rules
        rules = get_pricing_rules()

    values = evaluate_formula(base_price, width, height, depth, rules)
    price, source = extract_price(values, base_price)

    logger.debug("Final price calculated %s (from %s)", price, source)
    return price


class PricingEngine:
    """
    Pricing engine bound to a rules source.

    The rules source is anything with a ``get_pricing_rules()`` method; the
    engine caches the list until ``reload_data()`` is called.
    """

    def __init__(self, rules_service=None):
        if rules_service is None:
            from ..services.rules_service import get_rules_service
            rules_service = get_rules_service()
        self.rules_service = rules_service
        self.rules: list[PricingRule] = []
        self.reload_data()

    def reload_data(self):
        """Reload pricing rules from the rules source."""
        self.rules = list(self.rules_service.get_pricing_rules())
        logger.info("Loaded %d pricing rules", len(self.rules))

    @property
    def loaded(self) -> bool:
        return bool(self.rules)

    def get_rules(self) -> list[PricingRule]:
        return list(self.rules)

    def calculate_displayed_price(
        self,
        base_price: float,
        width: float,
        height: float,
        depth: float,
        rules: Optional[RuleList] = None,
    ) -> float:
        """Displayed price using the engine's rules (or an explicit list)."""
        return calculate_displayed_price(
            base_price, width, height, depth,
            self.rules if rules is None else rules,
        )

    def calculate(
        self,
        base_price: float,
        width: float,
        height: float,
        depth: float,
        rules: Optional[RuleList] = None,
    ) -> PriceResult:
        """
        Calculate the displayed price with full traceability.

        Returns:
            PriceResult with the evaluated variables, trace and warnings
        """
        rules = self.rules if rules is None else list(rules)
        result = PriceResult(base_price=base_price, displayed_price=base_price, source='base_price')
        result.add_trace("Inputs", f"{width:g} x {height:g} x {depth:g}", f"base ${base_price:.2f}")

        if not rules:
            result.add_trace("Rules", "No pricing rules configured")

        values = evaluate_formula(base_price, width, height, depth, rules, report=result)
        price, source = extract_price(values, base_price)

        result.variables = values
        result.displayed_price = price
        result.source = source
        if source == 'base_price':
            result.add_trace("Price Resolution", "No price rule result, using base price", f"${price:.2f}")
            if rules:
                result.add_warning("No rule produced " + " or ".join(PRICE_KEYS) + "; base price used")
        else:
            result.add_trace("Price Resolution", f"Using {source}", f"${price:.2f}")

        return result
