"""
Orders Module Manifest — Checkout & per-store fulfillment.

Defines complete module configuration:
- Services: OrderService, StoreOrderWorkflow
- Controllers: SellerStoreOrderController, BuyerOrderController
- Fault domain: STORE_ORDERS
"""

from aquilia import AppManifest
from aquilia.manifest import (
    FaultHandlingConfig,
    FeatureConfig,
)


manifest = AppManifest(
    # ── Identity ──────────────────────────────────────────────────────
    name="orders",
    version="1.0.0",
    description="Checkout and per-store order fulfillment workflow",
    tags=["orders", "checkout", "fulfillment"],

    # ── Services ──────────────────────────────────────────────────────
    services=[
        "optimarket.modules.orders.services:OrderService",
        "optimarket.modules.orders.workflow:StoreOrderWorkflow",
    ],

    # ── Controllers ───────────────────────────────────────────────────
    controllers=[
        "optimarket.modules.orders.controllers:SellerStoreOrderController",
        "optimarket.modules.orders.controllers:BuyerOrderController",
    ],

    # ── Routing ───────────────────────────────────────────────────────
    route_prefix="/",
    base_path="optimarket.modules.orders",

    # ── Faults ────────────────────────────────────────────────────────
    faults=FaultHandlingConfig(
        default_domain="STORE_ORDERS",
        strategy="propagate",
        handlers=[],
    ),

    # ── Features ──────────────────────────────────────────────────────
    features=[
        FeatureConfig(name="delivery_code_confirmation", enabled=True),
        FeatureConfig(name="escrow", enabled=True),
    ],

    # ── Dependencies ──────────────────────────────────────────────────
    depends_on=["wallet", "notifications"],
)


__all__ = ["manifest"]
