"""
Wallet Module Manifest — Balances, payments & escrow.

Defines complete module configuration:
- Services: WalletService, EscrowService, WalletPaymentCollaborator
- Fault domain: PAYMENTS
"""

from aquilia import AppManifest
from aquilia.manifest import (
    FaultHandlingConfig,
    FeatureConfig,
)


manifest = AppManifest(
    # ── Identity ──────────────────────────────────────────────────────
    name="wallet",
    version="1.0.0",
    description="Buyer wallet, seller earnings and store order escrow",
    tags=["wallet", "payments", "escrow"],

    # ── Services ──────────────────────────────────────────────────────
    services=[
        "optimarket.modules.wallet.services:WalletService",
        "optimarket.modules.wallet.services:EscrowService",
        "optimarket.modules.wallet.payments:WalletPaymentCollaborator",
    ],

    # ── Routing ───────────────────────────────────────────────────────
    route_prefix="/wallet",
    base_path="optimarket.modules.wallet",

    # ── Faults ────────────────────────────────────────────────────────
    faults=FaultHandlingConfig(
        default_domain="PAYMENTS",
        strategy="propagate",
        handlers=[],
    ),

    # ── Features ──────────────────────────────────────────────────────
    features=[
        FeatureConfig(name="wallet_payments", enabled=True),
        FeatureConfig(name="card_payments", enabled=False),
    ],
)


__all__ = ["manifest"]
