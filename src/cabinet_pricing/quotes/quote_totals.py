"""
Quote totals - item, space and quote level money calculations.

The models double as boundary validation: dimensions must be positive
here, before anything reaches the pricing engine.
"""
import logging
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


class CabinetItem(BaseModel):
    """A single cabinet line on a quote."""
    id: Optional[str] = None
    product_id: Optional[str] = None
    material_id: Optional[str] = None
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    depth: float = Field(gt=0)
    quantity: int = Field(1, ge=1)
    price: float = Field(0, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    total_price: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class Space(BaseModel):
    """A room or area grouping items on a quote."""
    name: str = Field(min_length=1)
    items: list[CabinetItem] = Field(default_factory=list)
    dimensions: Optional[str] = None
    notes: Optional[str] = None


class Quote(BaseModel):
    """The parts of a quote that affect its totals."""
    project_name: Optional[str] = None
    client_name: Optional[str] = None
    spaces: list[Space] = Field(min_length=1)
    status: Literal['draft', 'pending', 'approved', 'rejected'] = 'draft'
    adjustment_type: Optional[Literal['discount', 'surcharge']] = None
    adjustment_percentage: Optional[float] = Field(None, ge=0, le=100)


@dataclass
class QuoteTotals:
    subtotal: float
    adjusted_subtotal: float
    tax: float
    total: float


def calculate_item_total(item: CabinetItem) -> float:
    """Quantity times unit price (or the quoted price when unset)."""
    unit_price = item.unit_price or item.price or 0
    return item.quantity * unit_price


def calculate_subtotal(spaces: list[Space]) -> float:
    """Sum of every item's total price (or price) across spaces."""
    return sum(
        (item.total_price or item.price or 0)
        for space in spaces
        for item in space.items
    )


def apply_adjustment(subtotal: float, adjustment_type: Optional[str], percentage: Optional[float]) -> float:
    """Apply a percentage discount or surcharge."""
    if not adjustment_type or not percentage:
        return subtotal
    if adjustment_type == 'discount':
        return subtotal * (1 - percentage / 100)
    if adjustment_type == 'surcharge':
        return subtotal * (1 + percentage / 100)
    raise ValueError(f"Unknown adjustment type '{adjustment_type}'")


def calculate_totals(quote: Quote, tax_rate_percent: float = 0) -> QuoteTotals:
    """Subtotal, adjusted subtotal, tax and grand total for a quote."""
    subtotal = calculate_subtotal(quote.spaces)
    adjusted = apply_adjustment(subtotal, quote.adjustment_type, quote.adjustment_percentage)
    tax = adjusted * (tax_rate_percent / 100)

    totals = QuoteTotals(
        subtotal=subtotal,
        adjusted_subtotal=adjusted,
        tax=tax,
        total=adjusted + tax,
    )
    logger.debug("Quote totals %s", totals)
    return totals
