"""Inventory stock management service.

Tracks on-hand quantity per product, applies signed adjustments with a floor
at zero and keeps an append-only ledger of every requested change.
"""

__version__ = "1.0.0"
