"""
Orders Module — Services

Checkout, order queries, payment info and deletion. Status transitions
live in ``workflow.StoreOrderWorkflow``.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from aquilia.di import service
from aquilia.models import atomic

from ...settings import Settings, get_settings
from ..wallet.models import Escrow
from .models import (
    Order,
    StoreOrder,
    OrderItem,
    OrderEvent,
    Store,
    StoreOrderStatus,
    PaymentStatus,
)
from .faults import (
    OrderNotFoundFault,
    StoreOrderNotFoundFault,
    InvalidOrderDataFault,
    OrderNumberUnavailableFault,
)
from .contracts import OrderLineContract
from .totals import money, ZERO


logger = logging.getLogger("optimarket.orders.services")

ORDER_NO_ATTEMPTS = 10


@service(scope="app")
class OrderService:
    """
    Order lifecycle outside the per-store workflow.

    Integrates:
    - Aquilia ORM (transactions via atomic())
    - Aquilia Faults (structured order errors)
    - Aquilia DI (service injection)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # ── Checkout ─────────────────────────────────────────────

    async def place_order(
        self,
        buyer_id: int,
        items: list,
        buyer_email: Optional[str] = None,
        shipping_address: Optional[dict] = None,
    ) -> Order:
        """
        Create an order with one pending store order per store.

        ``items`` is a list of dicts with ``store_id``, ``product_id``,
        ``product_name``, ``quantity``, ``unit_price`` and optionally
        ``sku`` and ``image``.
        """
        if not items:
            raise InvalidOrderDataFault("Cannot place an order with no items")

        groups = self._group_by_store(items)
        store_ids = list(groups)
        known = await Store.objects.filter(id__in=store_ids).all()
        missing = set(store_ids) - {store.id for store in known}
        if missing:
            raise InvalidOrderDataFault(f"Unknown store {sorted(missing)[0]}")

        platform_fee = money(self.settings.platform_fee)

        async with atomic():
            order_no = await self._new_order_no()
            items_total = sum(
                (line["line_total"] for lines in groups.values() for line in lines), ZERO,
            )
            order = await Order.create(
                order_no=order_no,
                buyer_id=buyer_id,
                buyer_email=buyer_email,
                payment_status=PaymentStatus.UNPAID,
                items_total=items_total,
                shipping_total=ZERO,
                platform_fee=platform_fee,
                discount_total=ZERO,
                grand_total=items_total + platform_fee,
                shipping_address=shipping_address or {},
            )

            for store_id, lines in groups.items():
                subtotal = sum((line["line_total"] for line in lines), ZERO)
                store_order = await StoreOrder.create(
                    order_id=order.id,
                    store_id=store_id,
                    status=StoreOrderStatus.PENDING,
                    subtotal=subtotal,
                    delivery_fee=ZERO,
                    total=subtotal,
                )
                for line in lines:
                    await OrderItem.create(store_order_id=store_order.id, **line)

            await OrderEvent.create(
                order_id=order.id,
                event_type="order_created",
                to_status=StoreOrderStatus.PENDING,
                actor_id=str(buyer_id),
                actor_type="buyer",
                details={"stores": len(groups), "grand_total": str(order.grand_total)},
            )

        logger.info("Placed order %s for buyer %s across %d store(s)", order_no, buyer_id, len(groups))
        return order

    def _group_by_store(self, items: list) -> dict:
        groups = {}
        for position, raw in enumerate(items):
            contract = OrderLineContract(data=raw)
            if not contract.is_sealed():
                fields = ", ".join(sorted(contract.errors)) or "item"
                raise InvalidOrderDataFault(f"Invalid order item {position}: {fields}")
            line = contract.validated_data
            quantity = line.get("quantity", 1)
            unit_price = line["unit_price"]

            groups.setdefault(line["store_id"], []).append({
                "product_id": line["product_id"],
                "product_name": line["product_name"],
                "sku": line.get("sku") or None,
                "image": line.get("image") or None,
                "quantity": quantity,
                "unit_price": unit_price,
                "line_total": money(unit_price * quantity),
            })
        return groups

    async def _new_order_no(self) -> str:
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        for _ in range(ORDER_NO_ATTEMPTS):
            candidate = f"{self.settings.order_prefix}-{today}-{secrets.randbelow(10 ** 6):06d}"
            if not await Order.objects.filter(order_no=candidate).exists():
                return candidate
        logger.error("No free order number after %s attempts", ORDER_NO_ATTEMPTS)
        raise OrderNumberUnavailableFault()

    # ── Queries ──────────────────────────────────────────────

    async def get_order(self, order_id: int, buyer_id: Optional[int] = None) -> Order:
        qs = Order.objects.filter(id=order_id)
        if buyer_id is not None:
            qs = qs.filter(buyer_id=buyer_id)
        order = await qs.first()
        if order is None:
            raise OrderNotFoundFault(order_id)
        return order

    async def list_orders(self, buyer_id: int) -> list:
        return await Order.objects.filter(buyer_id=buyer_id).order_by("-id").all()

    async def get_store_order(self, store_order_id: int) -> StoreOrder:
        store_order = await StoreOrder.objects.filter(id=store_order_id).first()
        if store_order is None:
            raise StoreOrderNotFoundFault(store_order_id)
        return store_order

    async def get_store_order_for_store(self, store_order_id: int, store_id: int) -> StoreOrder:
        store_order = await StoreOrder.objects.filter(id=store_order_id, store_id=store_id).first()
        if store_order is None:
            raise StoreOrderNotFoundFault(store_order_id)
        return store_order

    async def get_store_order_for_buyer(self, store_order_id: int, buyer_id: int) -> StoreOrder:
        store_order = await StoreOrder.objects.filter(id=store_order_id).first()
        if store_order is None:
            raise StoreOrderNotFoundFault(store_order_id)
        if not await Order.objects.filter(id=store_order.order_id, buyer_id=buyer_id).exists():
            raise StoreOrderNotFoundFault(store_order_id)
        return store_order

    async def list_store_orders(self, store_id: int, status: Optional[str] = None) -> list:
        qs = StoreOrder.objects.filter(store_id=store_id)
        if status:
            try:
                status = StoreOrderStatus(status)
            except ValueError:
                raise InvalidOrderDataFault(f"Unknown status '{status}'")
            qs = qs.filter(status=status)
        return await qs.order_by("-id").all()

    async def store_orders_of(self, order_id: int) -> list:
        return await StoreOrder.objects.filter(order_id=order_id).order_by("id").all()

    async def order_items(self, store_order_id: int) -> list:
        return await OrderItem.objects.filter(store_order_id=store_order_id).order_by("id").all()

    async def order_events(self, order_id: int) -> list:
        return await OrderEvent.objects.filter(order_id=order_id).order_by("id").all()

    async def payment_info(self, order_id: int, buyer_id: int) -> dict:
        """Accepted store orders still awaiting payment, and the amount due."""
        order = await self.get_order(order_id, buyer_id=buyer_id)
        unpaid = await StoreOrder.objects.filter(
            order_id=order.id, status=StoreOrderStatus.ACCEPTED,
        ).order_by("id").all()
        return {
            "order": order,
            "unpaid_store_orders": unpaid,
            "total_due": sum((money(so.total) for so in unpaid), ZERO),
        }

    # ── Deletion ─────────────────────────────────────────────

    async def delete_order(self, order_id: int) -> None:
        """Delete an order together with everything it owns."""
        order = await self.get_order(order_id)
        async with atomic():
            store_order_ids = [
                so.id for so in await StoreOrder.objects.filter(order_id=order.id).all()
            ]
            if store_order_ids:
                await OrderItem.objects.filter(store_order_id__in=store_order_ids).delete()
                await Escrow.objects.filter(store_order_id__in=store_order_ids).delete()
            await OrderEvent.objects.filter(order_id=order.id).delete()
            await StoreOrder.objects.filter(order_id=order.id).delete()
            await Order.objects.filter(id=order.id).delete()
        logger.info("Deleted order %s with %d store order(s)", order.order_no, len(store_order_ids))
