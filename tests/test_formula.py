"""
Formula evaluator tests - variable bag seeding, step chaining, operator
semantics and the lenient handling of bad configuration.
"""
import math

import pytest

from cabinet_pricing.engine.formula import (
    CONSTANTS,
    apply_operator,
    build_variable_bag,
    evaluate_formula,
    parse_literal,
)
from cabinet_pricing.engine.pricing_engine import calculate_displayed_price

from conftest import make_rule


def test_empty_rules_return_seeded_bag():
    values = evaluate_formula(100, 30, 40, 24, [])
    assert values == {
        'base_price': 100,
        'width': 30,
        'height': 40,
        'depth': 24,
        'area': 1200,
        'volume': 28800,
        'material_markup': 1.3,
        'shipping_rate': 2.5,
        'import_tax_rate': 0.05,
        'storage_fee': 25,
        'exchange_rate': 1,
    }
    assert calculate_displayed_price(100, 30, 40, 24, rules=[]) == 100


def test_bag_constants_are_fresh_per_call():
    values = evaluate_formula(100, 1, 1, 1, [make_rule("storage_fee", ("base_price", "+", "0", "literal"))])
    assert values['storage_fee'] == 100
    assert CONSTANTS['storage_fee'] == 25
    assert build_variable_bag(100, 1, 1, 1)['storage_fee'] == 25


def test_markup_example():
    rule = make_rule("displayed_price", ("base_price", "*", "material_markup", "factor"))
    assert calculate_displayed_price(100, 30, 40, 24, rules=[rule]) == pytest.approx(130)


def test_multi_step_rule_chains_results():
    rule = make_rule(
        "final_price",
        ("base_price", "+", "storage_fee", "factor"),
        (None, "*", "2", "literal"),
    )
    values = evaluate_formula(100, 30, 40, 24, [rule])
    assert values['final_price'] == 250
    assert calculate_displayed_price(100, 30, 40, 24, rules=[rule]) == 250


def test_left_operand_ignored_after_first_step():
    rule = make_rule(
        "total",
        ("base_price", "+", "1", "literal"),
        ("width", "*", "2", "literal"),
    )
    assert evaluate_formula(10, 30, 40, 24, [rule])['total'] == 22


def test_percent_is_percentage_of():
    rule = make_rule("fee", ("base_price", "%", "10", "literal"))
    assert evaluate_formula(200, 1, 1, 1, [rule])['fee'] == pytest.approx(20)


def test_division_by_zero_yields_zero():
    literal = make_rule("a", ("base_price", "/", "0", "literal"))
    factor = make_rule("b", ("base_price", "/", "not_defined", "factor"))
    values = evaluate_formula(100, 30, 40, 24, [literal, factor])
    assert values['a'] == 0
    assert values['b'] == 0
    assert math.isfinite(values['a']) and math.isfinite(values['b'])


def test_divide_then_multiply_recovers_value():
    rules = [
        make_rule("per_width", ("base_price", "/", "width", "factor")),
        make_rule("back", ("per_width", "*", "width", "factor")),
    ]
    values = evaluate_formula(137.5, 7, 40, 24, rules)
    assert values['back'] == pytest.approx(137.5)


def test_undefined_key_behaves_like_zero():
    undefined = [make_rule("out", ("ghost", "+", "5", "literal"))]
    explicit_zero = [
        make_rule("ghost", ("base_price", "*", "0", "literal")),
        make_rule("out", ("ghost", "+", "5", "literal")),
    ]
    assert evaluate_formula(100, 1, 1, 1, undefined)['out'] == 5
    assert evaluate_formula(100, 1, 1, 1, explicit_zero)['out'] == 5


def test_rule_order_matters():
    r1 = make_rule("x", ("base_price", "*", "2", "literal"))
    r2 = make_rule("y", ("base_price", "+", "x", "factor"))

    assert evaluate_formula(100, 1, 1, 1, [r1, r2])['y'] == 300
    assert evaluate_formula(100, 1, 1, 1, [r2, r1])['y'] == 100


def test_rule_may_redefine_inputs():
    rule = make_rule("width", ("width", "*", "2", "literal"))
    values = evaluate_formula(100, 30, 40, 24, [rule])
    assert values['width'] == 60
    assert values['area'] == 1200


def test_unknown_operator_keeps_previous_result():
    chained = make_rule(
        "out",
        ("base_price", "+", "10", "literal"),
        (None, "^", "3", "literal"),
    )
    first = make_rule("first", ("base_price", "^", "3", "literal"))
    values = evaluate_formula(100, 1, 1, 1, [chained, first])
    assert values['out'] == 110
    assert values['first'] == 0


def test_rule_with_no_steps_stores_zero():
    values = evaluate_formula(100, 1, 1, 1, [{'result': 'empty', 'formula': []}])
    assert values['empty'] == 0


def test_accepts_camel_case_dicts():
    rule = {
        'result': 'displayed_price',
        'formula': [
            {'leftOperand': 'base_price', 'operator': '-', 'rightOperand': 'storage_fee', 'rightOperandType': 'factor'},
        ],
    }
    assert calculate_displayed_price(100, 1, 1, 1, rules=[rule]) == 75


def test_numeric_literal_values():
    rule = make_rule("out", ("base_price", "*", " 1.5 ", "literal"))
    assert evaluate_formula(10, 1, 1, 1, [rule])['out'] == 15


@pytest.mark.parametrize("raw, expected", [
    ("12.5", 12.5),
    ("", 0),
    ("abc", 0),
    ("inf", 0),
    (7, 7),
])
def test_parse_literal(raw, expected):
    assert parse_literal(raw) == expected


@pytest.mark.parametrize("operator, expected", [
    ("+", 12),
    ("-", 8),
    ("*", 20),
    ("/", 5),
    ("%", 0.2),
])
def test_apply_operator(operator, expected):
    assert apply_operator(10, operator, 2) == pytest.approx(expected)


def test_apply_operator_unknown_returns_none():
    assert apply_operator(10, "mod", 2) is None


def test_price_fallback_chain():
    final_only = [make_rule("final_price", ("base_price", "*", "3", "literal"))]
    both = final_only + [make_rule("displayed_price", ("base_price", "*", "2", "literal"))]
    neither = [make_rule("something_else", ("base_price", "*", "5", "literal"))]

    assert calculate_displayed_price(100, 1, 1, 1, rules=final_only) == 300
    assert calculate_displayed_price(100, 1, 1, 1, rules=both) == 200
    assert calculate_displayed_price(100, 1, 1, 1, rules=neither) == 100


def test_zero_displayed_price_is_still_used():
    rules = [
        make_rule("final_price", ("base_price", "*", "3", "literal")),
        make_rule("displayed_price", ("base_price", "*", "0", "literal")),
    ]
    assert calculate_displayed_price(100, 1, 1, 1, rules=rules) == 0


def test_negative_dimensions_compute_without_validation():
    values = evaluate_formula(100, -2, 3, 4, [])
    assert values['area'] == -6
    assert values['volume'] == -24
