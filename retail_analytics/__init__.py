"""
Retail Analytics Pipeline

Batch analytics over a store chain's products, stores, inventory and sales.
"""

__version__ = "1.0.0"
