"""
Formula evaluator - runs pricing rules against a variable bag.

The bag starts with the caller's base price and dimensions, the derived
area/volume and a fixed set of shop constants. Each rule chains its steps
left to right and writes its final value back into the bag, so later rules
can build on earlier ones.

Evaluation never raises on bad configuration:
- unknown variable names read as 0
- division by zero yields 0 for that step
- an unrecognized operator leaves the running result untouched
- a literal that is not a number reads as 0
"""
import logging
import math
from typing import Iterable, Optional, Union

from .models import FormulaStep, PricingRule, PriceResult


logger = logging.getLogger(__name__)


CONSTANTS = {
    'material_markup': 1.3,
    'shipping_rate': 2.5,
    'import_tax_rate': 0.05,
    'storage_fee': 25,
    'exchange_rate': 1,
}

INPUT_KEYS = ('base_price', 'width', 'height', 'depth', 'area', 'volume')

BUILTIN_KEYS = frozenset(INPUT_KEYS) | frozenset(CONSTANTS)


def build_variable_bag(base_price: float, width: float, height: float, depth: float) -> dict[str, float]:
    """Seed the variable bag with inputs, derived measures and constants."""
    values = {
        'base_price': base_price,
        'width': width,
        'height': height,
        'depth': depth,
        'area': width * height,
        'volume': width * height * depth,
    }
    values.update(CONSTANTS)
    return values


def lookup(values: dict[str, float], key: Optional[str]) -> float:
    """Read a bag value; absent or non-finite entries read as 0."""
    if not key:
        return 0
    value = values.get(key)
    if value is None or not math.isfinite(value):
        return 0
    return value


def parse_literal(raw) -> float:
    """Parse a literal right operand. Blank reads as 0, junk reads as 0."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        number = raw
    else:
        text = str(raw or '').strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            logger.warning("Literal operand %r is not a number; using 0", raw)
            return 0
    if not math.isfinite(number):
        logger.warning("Literal operand %r is not finite; using 0", raw)
        return 0
    return number


def apply_operator(left: float, operator: str, right: float) -> Optional[float]:
    """
    Apply one formula operator.

    ``%`` is percentage-of (``left * right / 100``), not modulo.
    Returns None for an unrecognized operator.
    """
    if operator == '+':
        return left + right
    elif operator == '-':
        return left - right
    elif operator == '*':
        return left * right
    elif operator == '/':
        return left / right if right != 0 else 0
    elif operator == '%':
        return left * (right / 100)
    return None


def _as_rule(rule: Union[PricingRule, dict]) -> PricingRule:
    return rule if isinstance(rule, PricingRule) else PricingRule.from_dict(rule)


def _resolve(values: dict[str, float], key: Optional[str], report: Optional[PriceResult]) -> float:
    if report is not None and key and key not in values:
        report.add_warning(f"Variable '{key}' is not defined; using 0")
    return lookup(values, key)


def evaluate_formula(
    base_price: float,
    width: float,
    height: float,
    depth: float,
    rules: Iterable[Union[PricingRule, dict]],
    report: Optional[PriceResult] = None,
) -> dict[str, float]:
    """
    Evaluate pricing rules in order and return the resulting variable bag.

    Args:
        base_price: Unit cost of the product
        width, height, depth: Product dimensions (not validated here)
        rules: Ordered PricingRule objects or their dict form
        report: Optional PriceResult collecting trace steps and warnings

    Returns:
        The variable bag with every rule's result stored under its key
    """
    logger.debug(
        "Starting price calculation base_price=%s width=%s height=%s depth=%s",
        base_price, width, height, depth,
    )
    values = build_variable_bag(base_price, width, height, depth)

    for index, raw_rule in enumerate(rules, start=1):
        rule = _as_rule(raw_rule)
        logger.debug("Processing rule %d -> %s", index, rule.result)

        result = 0
        for step_index, step in enumerate(rule.formula):
            if step_index == 0:
                left_value = _resolve(values, step.left_operand, report)
            else:
                left_value = result

            if step.right_operand_type == 'factor':
                right_value = _resolve(values, step.right_operand, report)
            else:
                right_value = parse_literal(step.right_operand)

            outcome = apply_operator(left_value, step.operator, right_value)
            if outcome is None:
                logger.warning(
                    "Rule %s step %d: unrecognized operator %r; result unchanged",
                    rule.rule_id or rule.result, step_index + 1, step.operator,
                )
                if report is not None:
                    report.add_warning(
                        f"Rule '{rule.rule_id or rule.result}' step {step_index + 1} "
                        f"has unrecognized operator '{step.operator}'"
                    )
            else:
                result = outcome

            logger.debug(
                "Step %d: %s %s %s = %s",
                step_index + 1, left_value, step.operator, right_value, result,
            )
            if report is not None:
                report.add_trace(
                    f"Step {index}.{step_index + 1}",
                    f"{left_value:g} {step.operator} {right_value:g}",
                    f"{result:g}",
                )

        if report is not None and rule.result in BUILTIN_KEYS:
            report.add_warning(f"Rule result '{rule.result}' overrides a built-in variable")

        values[rule.result] = result
        logger.debug("Rule %d final result %s = %s", index, rule.result, result)
        if report is not None:
            report.add_trace(f"Rule {index}", rule.name or rule.result, f"{rule.result} = {result:g}")

    return values
