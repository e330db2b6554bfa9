"""
Orders Module — Fault Definitions
"""

from aquilia.faults import (
    Fault,
    FaultDomain,
    Severity,
)

from ..wallet.faults import PaymentFailedFault


STORE_ORDERS_DOMAIN = FaultDomain(
    name="store_orders",
    description="Order checkout and per-store fulfillment fault domain",
)


class OrderNotFoundFault(Fault):
    domain = STORE_ORDERS_DOMAIN
    severity = Severity.WARN
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id=""):
        msg = f"Order '{order_id}' does not exist." if order_id else "Order not found"
        super().__init__(code=self.code, message=msg, domain=self.domain,
                         severity=self.severity, public=True)


class StoreOrderNotFoundFault(Fault):
    """Raised for missing rows and for rows the caller may not act on."""
    domain = STORE_ORDERS_DOMAIN
    severity = Severity.WARN
    code = "STORE_ORDER_NOT_FOUND"

    def __init__(self, store_order_id=""):
        msg = (f"Store order '{store_order_id}' does not exist."
               if store_order_id else "Store order not found")
        super().__init__(code=self.code, message=msg, domain=self.domain,
                         severity=self.severity, public=True)


class InvalidTransitionFault(Fault):
    domain = STORE_ORDERS_DOMAIN
    severity = Severity.ERROR
    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str = "", to_status: str = ""):
        if from_status and to_status:
            msg = f"Cannot transition store order from '{from_status}' to '{to_status}'."
        else:
            msg = "Invalid store order status transition"
        super().__init__(code=self.code, message=msg, domain=self.domain,
                         severity=self.severity, public=True,
                         metadata={"from_status": str(from_status), "to_status": str(to_status)})
        self.from_status = from_status
        self.to_status = to_status


class InvalidDeliveryCodeFault(Fault):
    domain = STORE_ORDERS_DOMAIN
    severity = Severity.WARN
    code = "INVALID_DELIVERY_CODE"

    def __init__(self):
        super().__init__(code=self.code, message="Invalid delivery code",
                         domain=self.domain, severity=self.severity, public=True)


class DeliveryCodeUnavailableFault(Fault):
    domain = STORE_ORDERS_DOMAIN
    severity = Severity.ERROR
    code = "DELIVERY_CODE_UNAVAILABLE"

    def __init__(self):
        super().__init__(code=self.code,
                         message="Could not allocate a delivery code, please retry",
                         domain=self.domain, severity=self.severity,
                         retryable=True, public=True)


class OrderNumberUnavailableFault(Fault):
    domain = STORE_ORDERS_DOMAIN
    severity = Severity.ERROR
    code = "ORDER_NUMBER_UNAVAILABLE"

    def __init__(self):
        super().__init__(code=self.code,
                         message="Could not allocate an order number, please retry",
                         domain=self.domain, severity=self.severity,
                         retryable=True, public=True)


class InvalidOrderDataFault(Fault):
    domain = STORE_ORDERS_DOMAIN
    severity = Severity.WARN
    code = "INVALID_ORDER_DATA"

    def __init__(self, reason: str = ""):
        msg = reason or "Invalid order data"
        super().__init__(code=self.code, message=msg, domain=self.domain,
                         severity=self.severity, public=True)


__all__ = [
    "STORE_ORDERS_DOMAIN",
    "OrderNotFoundFault",
    "StoreOrderNotFoundFault",
    "InvalidTransitionFault",
    "InvalidDeliveryCodeFault",
    "DeliveryCodeUnavailableFault",
    "OrderNumberUnavailableFault",
    "InvalidOrderDataFault",
    "PaymentFailedFault",
]
