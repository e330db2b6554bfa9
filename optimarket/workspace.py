"""
OptiMarket - Workspace Configuration
=====================================
Marketplace order fulfillment built on the Aquilia framework.
"""

from aquilia import Workspace, Module, Integration

from optimarket.settings import get_settings

settings = get_settings()

workspace = (
    Workspace(
        name="optimarket",
        version="1.0.0",
        description="Per-store order fulfillment for an optical-products marketplace",
    )
    .database(url=settings.database_url, auto_create=True)

    # ---- Modules ---------------------------------------------------------

    .module(Module("wallet", version="1.0.0", description="Wallet balances, payments and escrow")
        .route_prefix("/wallet")
        .tags("wallet", "payments")
        .register_services(
            "optimarket.modules.wallet.services:WalletService",
            "optimarket.modules.wallet.services:EscrowService",
            "optimarket.modules.wallet.payments:WalletPaymentCollaborator",
        ))

    .module(Module("notifications", version="1.0.0", description="Store order event mails")
        .tags("notifications", "mail")
        .register_services(
            "optimarket.modules.notifications.services:StoreOrderNotifier"
        ))

    .module(Module("orders", version="1.0.0", description="Checkout and per-store fulfillment")
        .route_prefix("/")
        .tags("orders", "fulfillment")
        .depends_on("wallet", "notifications")
        .register_controllers(
            "optimarket.modules.orders.controllers:SellerStoreOrderController",
            "optimarket.modules.orders.controllers:BuyerOrderController",
        )
        .register_services(
            "optimarket.modules.orders.services:OrderService",
            "optimarket.modules.orders.workflow:StoreOrderWorkflow",
        ))

    # --- Integrations ---
    .integrate(Integration.di(auto_wire=True))
    .integrate(Integration.routing(strict_matching=True))
    .integrate(Integration.database(url=settings.database_url, auto_connect=True))
    .integrate(Integration.mail(default_from=settings.mail_from, console_backend=True))
    .integrate(Integration.fault_handling(default_strategy="propagate"))
)
