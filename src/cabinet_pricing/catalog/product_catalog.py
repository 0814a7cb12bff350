"""
Product Catalog - cabinet products and their unit costs.

The catalog supplies the base price for the pricing engine; the displayed
price of a product depends on the dimensions it is quoted at.
"""
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import get_settings
from ..engine.pricing_engine import calculate_displayed_price


logger = logging.getLogger(__name__)


CATALOG_COLUMNS = ['id', 'name', 'category', 'unit_cost']


class ProductCatalog:
    """Catalog table indexed by product id."""

    def __init__(self, catalog_csv: Optional[Path] = None):
        catalog_csv = Path(catalog_csv or get_settings().catalog_csv)
        if not catalog_csv.exists():
            raise FileNotFoundError(f"Catalog not found at {catalog_csv}.")

        df = pd.read_csv(catalog_csv, dtype={'id': str, 'name': str, 'category': str})
        missing = [c for c in CATALOG_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Catalog {catalog_csv} is missing columns: {missing}")

        df['id'] = df['id'].str.strip()
        df = df.dropna(subset=['id']).drop_duplicates('id')
        df['unit_cost'] = pd.to_numeric(df['unit_cost'], errors='coerce')
        self.catalog = df.set_index('id')

        logger.info("Loaded %d catalog products from %s", len(self.catalog), catalog_csv)

    def __len__(self):
        return len(self.catalog)

    def get_product(self, product_id: str) -> Optional[dict]:
        """Product record as a dict, or None if unknown."""
        product_id = str(product_id).strip()
        if product_id not in self.catalog.index:
            return None
        row = self.catalog.loc[product_id]
        return {
            'id': product_id,
            'name': row['name'],
            'category': row['category'] if pd.notna(row['category']) else None,
            'unit_cost': float(row['unit_cost']) if pd.notna(row['unit_cost']) else None,
        }

    def search(self, text: Optional[str] = None, category: Optional[str] = None, limit: int = 100) -> pd.DataFrame:
        """Filter products by name/id text and category."""
        df = self.catalog
        if text:
            mask = (
                df.index.str.contains(text, case=False, na=False, regex=False) |
                df['name'].str.contains(text, case=False, na=False, regex=False)
            )
            df = df[mask]
        if category:
            df = df[df['category'].str.lower() == category.lower()]
        return df.head(limit)

    def price_product(self, product_id: str, width: float, height: float, depth: float, rules=None) -> float:
        """Displayed price of a product; 0 when it is unknown or has no unit cost."""
        product = self.get_product(product_id)
        if not product or not product['unit_cost']:
            logger.debug("No unit cost for product %s", product_id)
            return 0.0
        return calculate_displayed_price(product['unit_cost'], width, height, depth, rules)

    def price_sheet(self, width: float, height: float, depth: float, rules=None) -> pd.DataFrame:
        """Every product priced at the same dimensions."""
        if rules is None:
            from ..services.rules_service import get_pricing_rules
            rules = get_pricing_rules()
        rules = list(rules)

        sheet = self.catalog.copy()
        sheet['displayed_price'] = [
            calculate_displayed_price(cost, width, height, depth, rules) if pd.notna(cost) and cost else 0.0
            for cost in sheet['unit_cost']
        ]
        return sheet
