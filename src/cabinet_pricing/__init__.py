"""
Cabinet Pricing Package

Quoting support for a cabinet shop.
Derives displayed prices from catalog unit costs and product dimensions
by running an ordered list of configurable pricing rules.
"""

__version__ = "1.0.0"
