"""
Orders Module — Store order workflow

The per-store fulfillment state machine:

    pending ──accept──▶ accepted ──pay──▶ paid ──ship──▶ out_for_delivery ──deliver──▶ delivered
       │                   │
       ├──reject──▶ rejected
       └───────────────────┴──cancel──▶ cancelled

Every transition runs in one ``transaction()`` block: the guard is checked
against a fresh read, and the status write is a conditional UPDATE on the
expected from-status, so of two racing transitions exactly one commits.
Notifications are queued as commit hooks and go out only after the
outermost transaction commits.
"""

import hmac
import logging
import secrets
from datetime import date, datetime, timezone
from typing import Optional

from aquilia.di import service, Inject

from ...transactions import transaction
from .models import Order, StoreOrder, StoreOrderStatus, Store, OrderEvent
from .faults import (
    StoreOrderNotFoundFault,
    InvalidTransitionFault,
    InvalidDeliveryCodeFault,
    DeliveryCodeUnavailableFault,
    InvalidOrderDataFault,
)
from .totals import money, recompute_order_totals, ZERO

from ..wallet.payments import WalletPaymentCollaborator, PAYMENT_METHODS
from ..wallet.services import EscrowService
from ..notifications.services import StoreOrderNotifier


logger = logging.getLogger("optimarket.orders.workflow")


# ── Valid store order status transitions ─────────────────────
VALID_TRANSITIONS = {
    StoreOrderStatus.PENDING: {
        StoreOrderStatus.ACCEPTED,
        StoreOrderStatus.REJECTED,
        StoreOrderStatus.CANCELLED,
    },
    StoreOrderStatus.ACCEPTED: {StoreOrderStatus.PAID, StoreOrderStatus.CANCELLED},
    StoreOrderStatus.PAID: {StoreOrderStatus.OUT_FOR_DELIVERY},
    StoreOrderStatus.OUT_FOR_DELIVERY: {StoreOrderStatus.DELIVERED},
    StoreOrderStatus.DELIVERED: set(),
    StoreOrderStatus.REJECTED: set(),
    StoreOrderStatus.CANCELLED: set(),
}

# statuses in which a delivery code is outstanding
ACTIVE_CODE_STATUSES = (StoreOrderStatus.PAID, StoreOrderStatus.OUT_FOR_DELIVERY)

DELIVERY_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 20


def can_transition(current, target) -> bool:
    try:
        current = StoreOrderStatus(current)
    except ValueError:
        return False
    return target in VALID_TRANSITIONS[current]


def generate_delivery_code() -> str:
    """Random zero-padded numeric code, e.g. ``"004271"``."""
    return f"{secrets.randbelow(10 ** DELIVERY_CODE_LENGTH):0{DELIVERY_CODE_LENGTH}d}"


def delivery_code_matches(otp, delivery_code: Optional[str]) -> bool:
    """Exact comparison; no trimming or case folding."""
    if not delivery_code or not isinstance(otp, str):
        return False
    return hmac.compare_digest(otp.encode("utf-8"), delivery_code.encode("utf-8"))


def _parse_date(value) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidOrderDataFault(f"Invalid estimated delivery date '{value}'")


def _clean_text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@service(scope="app")
class StoreOrderWorkflow:
    """
    Transition operations for a single store order.

    Seller operations are scoped by ``store_id`` and buyer operations by
    ``buyer_id``; a store order outside the caller's scope is reported as
    not found.
    """

    def __init__(
        self,
        payments: WalletPaymentCollaborator = Inject(WalletPaymentCollaborator),
        escrow: EscrowService = Inject(EscrowService),
        notifier: StoreOrderNotifier = Inject(StoreOrderNotifier),
    ):
        self.payments = payments
        self.escrow = escrow
        self.notifier = notifier

    # ── Seller transitions ───────────────────────────────────

    async def accept_order(
        self,
        store_order_id: int,
        store_id: int,
        delivery_fee,
        estimated_delivery_date=None,
        delivery_method: Optional[str] = None,
        delivery_notes: Optional[str] = None,
    ) -> StoreOrder:
        fee = money(delivery_fee)
        if fee < ZERO:
            raise InvalidOrderDataFault("Delivery fee must be zero or greater")
        estimated = _parse_date(estimated_delivery_date)

        async with transaction() as txn:
            store_order = await self._for_store(store_order_id, store_id)
            previous = store_order.status
            total = money(store_order.subtotal) + fee
            await self._apply(
                store_order, StoreOrderStatus.ACCEPTED,
                delivery_fee=fee,
                total=total,
                estimated_delivery_date=estimated,
                delivery_method=_clean_text(delivery_method),
                delivery_notes=_clean_text(delivery_notes),
                accepted_at=datetime.now(timezone.utc),
            )
            await recompute_order_totals(store_order.order_id)
            await self._log_event(
                store_order, "store_order_accepted", previous, StoreOrderStatus.ACCEPTED,
                actor_id=store_id, actor_type="store",
                details={"delivery_fee": str(fee), "total": str(total)},
            )
            self._notify_on_commit(txn, store_order_id, (self._notify_buyer, "order.accepted", {}))

        return await self._reload(store_order_id)

    async def reject_order(self, store_order_id: int, store_id: int, reason) -> StoreOrder:
        reason = _clean_text(reason)
        if not reason:
            raise InvalidOrderDataFault("A rejection reason is required")

        async with transaction() as txn:
            store_order = await self._for_store(store_order_id, store_id)
            previous = store_order.status
            await self._apply(
                store_order, StoreOrderStatus.REJECTED,
                rejection_reason=reason,
                rejected_at=datetime.now(timezone.utc),
            )
            await recompute_order_totals(store_order.order_id)
            await self._log_event(
                store_order, "store_order_rejected", previous, StoreOrderStatus.REJECTED,
                actor_id=store_id, actor_type="store", details={"reason": reason},
            )
            self._notify_on_commit(
                txn, store_order_id, (self._notify_buyer, "order.rejected", {"reason": reason}),
            )

        return await self._reload(store_order_id)

    async def mark_out_for_delivery(self, store_order_id: int, store_id: int) -> StoreOrder:
        async with transaction() as txn:
            store_order = await self._for_store(store_order_id, store_id)
            previous = store_order.status
            await self._apply(
                store_order, StoreOrderStatus.OUT_FOR_DELIVERY,
                out_for_delivery_at=datetime.now(timezone.utc),
            )
            await self._log_event(
                store_order, "store_order_out_for_delivery", previous,
                StoreOrderStatus.OUT_FOR_DELIVERY, actor_id=store_id, actor_type="store",
            )
            self._notify_on_commit(
                txn, store_order_id, (self._notify_buyer, "order.out_for_delivery", {}),
            )

        return await self._reload(store_order_id)

    async def mark_delivered(self, store_order_id: int, store_id: int, otp) -> StoreOrder:
        async with transaction() as txn:
            store_order = await self._for_store(store_order_id, store_id)
            previous = store_order.status
            self._guard(store_order, StoreOrderStatus.DELIVERED)
            if not delivery_code_matches(otp, store_order.delivery_code):
                logger.warning("Delivery code mismatch for store order %s", store_order.id)
                raise InvalidDeliveryCodeFault()

            await self._apply(
                store_order, StoreOrderStatus.DELIVERED,
                delivered_at=datetime.now(timezone.utc),
            )
            store = await Store.objects.filter(id=store_order.store_id).first()
            if store is None:
                raise StoreOrderNotFoundFault(store_order_id)
            await self.escrow.release(store_order.id, store.owner_id)
            await self._log_event(
                store_order, "store_order_delivered", previous, StoreOrderStatus.DELIVERED,
                actor_id=store_id, actor_type="store",
            )
            self._notify_on_commit(
                txn, store_order_id,
                (self._notify_buyer, "order.delivered", {}),
                (self._notify_store, "order.delivered", {}),
            )

        return await self._reload(store_order_id)

    # ── Buyer transitions ────────────────────────────────────

    async def pay_store_order(self, store_order_id: int, buyer_id: int, method: str) -> StoreOrder:
        if method not in PAYMENT_METHODS:
            raise InvalidOrderDataFault(
                f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}"
            )

        async with transaction() as txn:
            store_order = await self._for_buyer(store_order_id, buyer_id)
            previous = store_order.status
            self._guard(store_order, StoreOrderStatus.PAID)

            code = await self._unique_delivery_code()
            total = money(store_order.total)
            await self._apply(
                store_order, StoreOrderStatus.PAID,
                delivery_code=code,
                payment_method=method,
                paid_at=datetime.now(timezone.utc),
            )
            await self.escrow.hold(
                store_order.id, buyer_id, store_order.store_id,
                total, money(store_order.delivery_fee),
            )
            await recompute_order_totals(store_order.order_id)
            await self._log_event(
                store_order, "store_order_paid", previous, StoreOrderStatus.PAID,
                actor_id=buyer_id, actor_type="buyer",
                details={"method": method, "amount": str(total)},
            )

            # charged last: an earlier failure never reaches the payment collaborator
            receipt = await self.payments.charge(
                buyer_id, total, method, reference=f"store_order:{store_order.id}",
            )
            await StoreOrder.objects.filter(id=store_order.id).update(
                payment_reference=receipt.reference,
            )
            self._notify_on_commit(
                txn, store_order_id,
                (self._notify_store, "order.paid", {}),
                (self._notify_buyer, "order.delivery_code", {}),
            )

        return await self._reload(store_order_id)

    async def cancel_store_order(
        self, store_order_id: int, buyer_id: int, reason: Optional[str] = None,
    ) -> StoreOrder:
        reason = _clean_text(reason)

        async with transaction() as txn:
            store_order = await self._for_buyer(store_order_id, buyer_id)
            previous = store_order.status
            await self._apply(
                store_order, StoreOrderStatus.CANCELLED,
                cancellation_reason=reason,
                cancelled_at=datetime.now(timezone.utc),
            )
            await recompute_order_totals(store_order.order_id)
            await self._log_event(
                store_order, "store_order_cancelled", previous, StoreOrderStatus.CANCELLED,
                actor_id=buyer_id, actor_type="buyer",
                details={"reason": reason} if reason else {},
            )
            self._notify_on_commit(
                txn, store_order_id, (self._notify_store, "order.cancelled", {"reason": reason}),
            )

        return await self._reload(store_order_id)

    # ── Internals ────────────────────────────────────────────

    async def _for_store(self, store_order_id: int, store_id: int) -> StoreOrder:
        store_order = await StoreOrder.objects.filter(id=store_order_id, store_id=store_id).first()
        if store_order is None:
            raise StoreOrderNotFoundFault(store_order_id)
        return store_order

    async def _for_buyer(self, store_order_id: int, buyer_id: int) -> StoreOrder:
        store_order = await StoreOrder.objects.filter(id=store_order_id).first()
        if store_order is None:
            raise StoreOrderNotFoundFault(store_order_id)
        owned = await Order.objects.filter(id=store_order.order_id, buyer_id=buyer_id).exists()
        if not owned:
            raise StoreOrderNotFoundFault(store_order_id)
        return store_order

    async def _reload(self, store_order_id: int) -> StoreOrder:
        store_order = await StoreOrder.objects.filter(id=store_order_id).first()
        if store_order is None:
            raise StoreOrderNotFoundFault(store_order_id)
        return store_order

    def _guard(self, store_order: StoreOrder, target: StoreOrderStatus) -> None:
        if not can_transition(store_order.status, target):
            logger.warning(
                "Rejected transition of store order %s from %s to %s",
                store_order.id, store_order.status, target.value,
            )
            raise InvalidTransitionFault(store_order.status, target.value)

    async def _apply(self, store_order: StoreOrder, target: StoreOrderStatus, **changes) -> None:
        """Guarded compare-and-set of the status plus the transition's fields."""
        self._guard(store_order, target)
        current = StoreOrderStatus(store_order.status)

        updated = await StoreOrder.objects.filter(id=store_order.id, status=current).update(
            status=target,
            updated_at=datetime.now(timezone.utc),
            **changes,
        )
        if not updated:
            latest = await StoreOrder.objects.filter(id=store_order.id).first()
            observed = latest.status if latest is not None else current.value
            logger.warning(
                "Store order %s changed concurrently (now %s), %s lost",
                store_order.id, observed, target.value,
            )
            raise InvalidTransitionFault(observed, target.value)

        logger.info(
            "Store order %s: %s -> %s", store_order.id, current.value, target.value,
        )

    async def _unique_delivery_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_delivery_code()
            taken = await StoreOrder.objects.filter(
                delivery_code=code, status__in=list(ACTIVE_CODE_STATUSES),
            ).exists()
            if not taken:
                return code
        logger.error("No free delivery code after %s attempts", MAX_CODE_ATTEMPTS)
        raise DeliveryCodeUnavailableFault()

    async def _log_event(
        self,
        store_order: StoreOrder,
        event_type: str,
        from_status,
        to_status,
        actor_id=None,
        actor_type: str = "system",
        details: dict = None,
    ) -> None:
        await OrderEvent.create(
            order_id=store_order.order_id,
            store_order_id=store_order.id,
            event_type=event_type,
            from_status=str(from_status) if from_status is not None else None,
            to_status=str(to_status) if to_status is not None else None,
            actor_id=str(actor_id) if actor_id is not None else None,
            actor_type=actor_type,
            details=details or {},
        )

    async def _payload(self, store_order: StoreOrder, **extra) -> dict:
        order = await Order.objects.filter(id=store_order.order_id).first()
        store = await Store.objects.filter(id=store_order.store_id).first()
        payload = {
            "order_no": order.order_no if order else "",
            "grand_total": str(money(order.grand_total)) if order else "",
            "buyer_email": order.buyer_email if order else None,
            "store_name": store.name if store else "The store",
            "store_email": store.email if store else None,
            "store_order_id": store_order.id,
            "status": str(store_order.status),
            "subtotal": str(money(store_order.subtotal)),
            "delivery_fee": str(money(store_order.delivery_fee)),
            "total": str(money(store_order.total)),
            "estimated_delivery_date": (
                str(store_order.estimated_delivery_date)
                if store_order.estimated_delivery_date else None
            ),
            "delivery_method": store_order.delivery_method,
            "delivery_notes": store_order.delivery_notes,
            "payment_method": store_order.payment_method,
        }
        payload.update(extra)
        return payload

    def _notify_on_commit(self, txn, store_order_id: int, *notices) -> None:
        """
        Queue ``(notify, event, extra)`` notices to run once the transaction
        commits. Nothing is sent if it rolls back.
        """
        async def send():
            try:
                store_order = await self._reload(store_order_id)
            except Exception:
                logger.exception("Could not load store order %s for notification", store_order_id)
                return
            for notify, event, extra in notices:
                await notify(store_order, event, **extra)

        txn.on_commit(send)

    async def _notify_buyer(self, store_order: StoreOrder, event: str, **extra) -> None:
        try:
            payload = await self._payload(store_order, **extra)
            if event == "order.delivery_code":
                payload["delivery_code"] = store_order.delivery_code
            await self.notifier.notify(payload["buyer_email"], event, payload)
        except Exception:
            logger.exception("Buyer notification %s failed for store order %s", event, store_order.id)

    async def _notify_store(self, store_order: StoreOrder, event: str, **extra) -> None:
        try:
            payload = await self._payload(store_order, **extra)
            await self.notifier.notify(payload["store_email"], event, payload)
        except Exception:
            logger.exception("Store notification %s failed for store order %s", event, store_order.id)
