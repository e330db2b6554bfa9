"""
Notifications Module Manifest — Store order event mails.
"""

from aquilia import AppManifest
from aquilia.manifest import FaultHandlingConfig


manifest = AppManifest(
    # ── Identity ──────────────────────────────────────────────────────
    name="notifications",
    version="1.0.0",
    description="Mail notifications for store order transitions",
    tags=["notifications", "mail"],

    # ── Services ──────────────────────────────────────────────────────
    services=[
        "optimarket.modules.notifications.services:StoreOrderNotifier",
    ],

    base_path="optimarket.modules.notifications",

    # ── Faults ────────────────────────────────────────────────────────
    faults=FaultHandlingConfig(
        default_domain="NOTIFICATIONS",
        strategy="propagate",
        handlers=[],
    ),
)


__all__ = ["manifest"]
