"""
Orders Module — Checkout and per-store fulfillment.

Components:
- Models: Order, StoreOrder, OrderItem, OrderEvent, Store
- Workflow: StoreOrderWorkflow (accept, reject, pay, dispatch, deliver, cancel)
- Services: OrderService (checkout, queries, payment info, deletion)
- Controllers: SellerStoreOrderController, BuyerOrderController
- Faults: Store order error handling
"""

from .models import (
    Order, StoreOrder, OrderItem, OrderEvent, Store, StoreOrderStatus, PaymentStatus,
)
from .workflow import StoreOrderWorkflow, VALID_TRANSITIONS
from .services import OrderService
from .controllers import SellerStoreOrderController, BuyerOrderController
from .faults import (
    OrderNotFoundFault,
    StoreOrderNotFoundFault,
    InvalidTransitionFault,
    InvalidDeliveryCodeFault,
    DeliveryCodeUnavailableFault,
    OrderNumberUnavailableFault,
    InvalidOrderDataFault,
    PaymentFailedFault,
)

__all__ = [
    "Order", "StoreOrder", "OrderItem", "OrderEvent", "Store",
    "StoreOrderStatus", "PaymentStatus",
    "StoreOrderWorkflow", "VALID_TRANSITIONS",
    "OrderService",
    "SellerStoreOrderController", "BuyerOrderController",
    "OrderNotFoundFault", "StoreOrderNotFoundFault", "InvalidTransitionFault",
    "InvalidDeliveryCodeFault", "DeliveryCodeUnavailableFault", "OrderNumberUnavailableFault",
    "InvalidOrderDataFault", "PaymentFailedFault",
]
