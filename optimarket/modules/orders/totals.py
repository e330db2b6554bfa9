"""
Orders Module — Aggregate totals

Order aggregates are derived from the live (not rejected, not cancelled)
store orders and written inside the caller's transaction.
"""

from decimal import Decimal, InvalidOperation
from datetime import datetime, timezone

from .models import Order, StoreOrder, StoreOrderStatus, PaymentStatus
from .faults import OrderNotFoundFault, InvalidOrderDataFault


CENT = Decimal("0.01")
ZERO = Decimal("0.00")

CLOSED_STATUSES = frozenset({StoreOrderStatus.REJECTED, StoreOrderStatus.CANCELLED})
SETTLED_STATUSES = frozenset({
    StoreOrderStatus.PAID,
    StoreOrderStatus.OUT_FOR_DELIVERY,
    StoreOrderStatus.DELIVERED,
})


def money(value) -> Decimal:
    """Two-place ``Decimal`` for any stored or user-supplied amount."""
    if value is None:
        return ZERO
    try:
        amount = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidOrderDataFault(f"Invalid amount '{value}'")
    if not amount.is_finite():
        raise InvalidOrderDataFault(f"Invalid amount '{value}'")
    return amount


def is_live(store_order: StoreOrder) -> bool:
    return StoreOrderStatus(store_order.status) not in CLOSED_STATUSES


def payment_status_for(store_orders) -> str:
    live = [so for so in store_orders if is_live(so)]
    settled = [so for so in live if StoreOrderStatus(so.status) in SETTLED_STATUSES]
    if live and len(settled) == len(live):
        return PaymentStatus.PAID
    if settled:
        return PaymentStatus.PARTIALLY_PAID
    return PaymentStatus.UNPAID


async def recompute_order_totals(order_id: int) -> Order:
    """Recompute and persist the aggregates of one order."""
    order = await Order.objects.filter(id=order_id).first()
    if order is None:
        raise OrderNotFoundFault(order_id)

    store_orders = await StoreOrder.objects.filter(order_id=order_id).all()
    live = [so for so in store_orders if is_live(so)]

    items_total = sum((money(so.subtotal) for so in live), ZERO)
    shipping_total = sum((money(so.delivery_fee) for so in live), ZERO)
    store_totals = sum((money(so.total) for so in live), ZERO)
    grand_total = store_totals + money(order.platform_fee) - money(order.discount_total)
    if grand_total < ZERO:
        grand_total = ZERO

    await Order.objects.filter(id=order_id).update(
        items_total=items_total,
        shipping_total=shipping_total,
        grand_total=grand_total,
        payment_status=payment_status_for(store_orders),
        updated_at=datetime.now(timezone.utc),
    )
    await order.refresh()
    return order
