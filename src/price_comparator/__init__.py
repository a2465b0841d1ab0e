"""
Price Comparator – grocery catalog with per-supermarket prices.

This package keeps a personal product catalog, its price history, and the
receipt/barcode import pipeline that feeds it (parse, match, stage, commit).
"""

__all__ = [
    "config",
    "logging",
    "paths",
]
