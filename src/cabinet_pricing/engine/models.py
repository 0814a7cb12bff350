"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
Pricing rules are authored in the settings screens and stored as JSON, so
every model can be built from a plain dict and turned back into one.
"""
from dataclasses import dataclass, field
from typing import Optional


OPERATORS = ('+', '-', '*', '/', '%')
OPERAND_TYPES = ('literal', 'factor')


def _pick(data: dict, snake: str, camel: str, default=None):
    """Read a key in snake_case, falling back to the camelCase spelling."""
    if snake in data:
        return data[snake]
    return data.get(camel, default)


@dataclass(frozen=True)
class FormulaStep:
    """One binary arithmetic operation inside a pricing rule."""
    operator: str
    right_operand: str
    right_operand_type: str = 'literal'  # "literal" or "factor"
    left_operand: Optional[str] = None  # only read on the first step of a rule

    @classmethod
    def from_dict(cls, data: dict) -> 'FormulaStep':
        """Create a step from snake_case or camelCase keys."""
        right = _pick(data, 'right_operand', 'rightOperand', '')
        return cls(
            operator=str(data.get('operator', '')).strip(),
            right_operand='' if right is None else str(right),
            right_operand_type=_pick(data, 'right_operand_type', 'rightOperandType', 'literal') or 'literal',
            left_operand=_pick(data, 'left_operand', 'leftOperand') or None,
        )

    def to_dict(self) -> dict:
        return {
            'left_operand': self.left_operand,
            'operator': self.operator,
            'right_operand': self.right_operand,
            'right_operand_type': self.right_operand_type,
        }

    def describe(self) -> str:
        """Short human-readable form, e.g. ``base_price * material_markup``."""
        left = self.left_operand or '(previous)'
        return f"{left} {self.operator} {self.right_operand}"


@dataclass
class PricingRule:
    """
    A named computation: ordered formula steps whose final value is stored
    back into the variable bag under ``result``.
    """
    result: str
    formula: list[FormulaStep] = field(default_factory=list)
    rule_id: str = ""
    name: str = ""
    active: bool = True
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingRule':
        """Create a rule from a stored or posted dict."""
        return cls(
            result=str(data.get('result') or '').strip(),
            formula=[
                step if isinstance(step, FormulaStep) else FormulaStep.from_dict(step)
                for step in data.get('formula') or []
            ],
            rule_id=_pick(data, 'rule_id', 'id', '') or '',
            name=data.get('name') or '',
            active=bool(data.get('active', True)),
            notes=data.get('notes') or None,
        )

    def to_dict(self) -> dict:
        return {
            'rule_id': self.rule_id,
            'name': self.name,
            'active': self.active,
            'result': self.result,
            'formula': [step.to_dict() for step in self.formula],
            'notes': self.notes,
        }


@dataclass
class TraceStep:
    """A single step in the price evaluation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PriceResult:
    """Complete result of a displayed-price calculation."""
    base_price: float
    displayed_price: float
    source: str  # key the price was read from, or "base_price"
    variables: dict[str, float] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning, ignoring duplicates."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)
