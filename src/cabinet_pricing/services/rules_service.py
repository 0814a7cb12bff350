"""
Rules Service - CRUD operations for pricing rules.
Handles reading/writing pricing_rules.json. List order is execution order.
"""
import json
import logging
import math
import re
from pathlib import Path
from datetime import datetime
from typing import Optional
from dataclasses import dataclass, field

from ..config.settings import get_settings
from ..engine.formula import BUILTIN_KEYS, parse_literal
from ..engine.models import OPERAND_TYPES, OPERATORS, FormulaStep, PricingRule


logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of rule validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _is_number(raw: str) -> bool:
    try:
        return math.isfinite(float(str(raw).strip()))
    except ValueError:
        return False


class RulesService:
    """Service for managing pricing rules."""

    def __init__(self, rules_json_path: Path):
        self.rules_json_path = Path(rules_json_path)

    def list_rules(self, include_inactive: bool = True) -> list[PricingRule]:
        """List all rules in execution order."""
        if not self.rules_json_path.exists():
            return []

        with open(self.rules_json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        rules = []
        for row in data.get('rules', []):
            rule = PricingRule.from_dict(row)
            if include_inactive or rule.active:
                rules.append(rule)
        return rules

    def get_pricing_rules(self) -> list[PricingRule]:
        """Active rules in the order the evaluator should run them."""
        return self.list_rules(include_inactive=False)

    def get_rule(self, rule_id: str) -> Optional[PricingRule]:
        """Get a single rule by ID."""
        for rule in self.list_rules():
            if rule.rule_id == rule_id:
                return rule
        return None

    def create_rule(self, rule: PricingRule, position: Optional[int] = None) -> PricingRule:
        """Create a new rule, appended unless a position is given."""
        if not rule.rule_id:
            rule.rule_id = self._generate_rule_id(rule)
        if not rule.name:
            rule.name = rule.result

        if self.get_rule(rule.rule_id):
            raise ValueError(f"Rule with ID '{rule.rule_id}' already exists")

        rules = self.list_rules()
        if position is None:
            rules.append(rule)
        else:
            rules.insert(max(0, min(position, len(rules))), rule)
        self._write_rules(rules)

        logger.info("Created pricing rule %s (%s)", rule.rule_id, rule.result)
        return rule

    def update_rule(self, rule_id: str, updates: dict) -> PricingRule:
        """Update an existing rule."""
        rules = self.list_rules()

        for i, rule in enumerate(rules):
            if rule.rule_id == rule_id:
                merged = rule.to_dict()
                merged.update(updates)
                merged['rule_id'] = rule_id
                rules[i] = PricingRule.from_dict(merged)
                break
        else:
            raise ValueError(f"Rule with ID '{rule_id}' not found")

        self._write_rules(rules)
        logger.info("Updated pricing rule %s", rule_id)
        return rules[i]

    def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule."""
        rules = self.list_rules()
        original_count = len(rules)
        rules = [r for r in rules if r.rule_id != rule_id]

        if len(rules) == original_count:
            raise ValueError(f"Rule with ID '{rule_id}' not found")

        self._write_rules(rules)
        logger.info("Deleted pricing rule %s", rule_id)
        return True

    def move_rule(self, rule_id: str, position: int) -> list[PricingRule]:
        """Move a rule to a new position in the execution order."""
        rules = self.list_rules()
        index = next((i for i, r in enumerate(rules) if r.rule_id == rule_id), None)
        if index is None:
            raise ValueError(f"Rule with ID '{rule_id}' not found")

        rule = rules.pop(index)
        position = max(0, min(position, len(rules)))
        rules.insert(position, rule)
        self._write_rules(rules)

        logger.info("Moved pricing rule %s to position %d", rule_id, position)
        return rules

    def validate_rule(self, rule: PricingRule, position: Optional[int] = None) -> ValidationResult:
        """
        Validate a rule before saving.

        Errors block saving. Warnings flag configurations the evaluator
        tolerates but that are probably mistakes, such as references to
        variables that will read as 0 at this point in the execution order.
        """
        result = ValidationResult(valid=True)

        if not rule.result:
            result.errors.append("Result key is required")
        elif not re.fullmatch(r'[A-Za-z_][A-Za-z0-9_]*', rule.result):
            result.errors.append(f"Result key '{rule.result}' must be a plain identifier")

        if not rule.formula:
            result.errors.append("Formula must have at least one step")

        for n, step in enumerate(rule.formula, start=1):
            result.errors.extend(self._validate_step(step, n))

        result.valid = not result.errors
        if result.valid:
            result.warnings.extend(self._check_references(rule, position))

        return result

    def _validate_step(self, step: FormulaStep, n: int) -> list[str]:
        errors = []
        if n == 1 and not step.left_operand:
            errors.append(f"Step {n}: left operand is required on the first step")
        if step.operator not in OPERATORS:
            errors.append(f"Step {n}: invalid operator '{step.operator}', must be one of: {' '.join(OPERATORS)}")
        if step.right_operand_type not in OPERAND_TYPES:
            errors.append(f"Step {n}: right operand type must be 'literal' or 'factor'")
        elif step.right_operand_type == 'factor' and not step.right_operand.strip():
            errors.append(f"Step {n}: right operand variable is required")
        elif step.right_operand_type == 'literal' and not _is_number(step.right_operand):
            errors.append(f"Step {n}: right operand must be a number")
        return errors

    def _check_references(self, rule: PricingRule, position: Optional[int]) -> list[str]:
        """Warn about names that are not defined when this rule runs."""
        warnings = []
        # Positions index the full stored list, inactive rules included
        ordered = self.list_rules()
        others = [r for r in ordered if r.rule_id != rule.rule_id]
        if position is None:
            # Stored rules keep their slot, new rules run last
            ids = [r.rule_id for r in ordered]
            position = ids.index(rule.rule_id) if rule.rule_id in ids else len(others)
        position = max(0, min(position, len(others)))
        known = set(BUILTIN_KEYS) | {r.result for r in others[:position] if r.active}

        for n, step in enumerate(rule.formula, start=1):
            names = []
            if n == 1 and step.left_operand:
                names.append(step.left_operand)
            if step.right_operand_type == 'factor':
                names.append(step.right_operand)
            for name in names:
                if name not in known:
                    warnings.append(f"Step {n}: '{name}' is not defined before this rule and will read as 0")
            if step.operator == '/' and step.right_operand_type == 'literal' and parse_literal(step.right_operand) == 0:
                warnings.append(f"Step {n}: division by zero always yields 0")

        if rule.result in BUILTIN_KEYS:
            warnings.append(f"Result '{rule.result}' overrides a built-in variable")
        return warnings

    def _generate_rule_id(self, rule: PricingRule) -> str:
        """Generate a unique rule ID from the result key."""
        base = re.sub(r'[^A-Za-z0-9]+', '-', rule.result or 'rule').strip('-').upper() or 'RULE'

        existing_ids = {r.rule_id for r in self.list_rules()}
        candidate = base
        counter = 1
        while candidate in existing_ids:
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    def _write_rules(self, rules: list[PricingRule]):
        """Write rules back to JSON."""
        output = {
            "updated_at": datetime.now().isoformat(),
            "total_rules": len(rules),
            "active_rules": sum(1 for r in rules if r.active),
            "rules": [rule.to_dict() for rule in rules],
        }
        self.rules_json_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.rules_json_path, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2)

    def get_stats(self) -> dict:
        """Get statistics about rules."""
        rules = self.list_rules()
        active = [r for r in rules if r.active]
        by_result = {}
        for r in rules:
            by_result[r.result] = by_result.get(r.result, 0) + 1

        return {
            'total': len(rules),
            'active': len(active),
            'inactive': len(rules) - len(active),
            'steps': sum(len(r.formula) for r in rules),
            'by_result': by_result,
        }


_default_service: Optional[RulesService] = None


def get_rules_service() -> RulesService:
    """Get the rules service for the configured rules file."""
    global _default_service
    path = get_settings().rules_json
    if _default_service is None or _default_service.rules_json_path != path:
        _default_service = RulesService(path)
    return _default_service


def get_pricing_rules() -> list[PricingRule]:
    """The currently configured pricing rules, in execution order."""
    return get_rules_service().get_pricing_rules()
