"""
optimarket - per-store order fulfillment for an optical-products marketplace.
"""

__version__ = "1.0.0"
