"""
Wallet Module — Services

Shopping-balance debits, seller earnings and escrow holds. Every method
expects to run inside the caller's ``atomic()`` block when it is part of
a larger state change; on its own each write is a single statement.
"""

import logging
from decimal import Decimal, InvalidOperation
from datetime import datetime, timezone
from typing import Optional

from aquilia.di import service, Inject

from .models import (
    Wallet,
    WalletTransaction,
    Escrow,
    EscrowStatus,
    TransactionType,
)
from .faults import (
    PaymentFailedFault,
    InvalidAmountFault,
    EscrowNotFoundFault,
    WalletConflictFault,
)


logger = logging.getLogger("optimarket.wallet.services")

CENT = Decimal("0.01")
MAX_BALANCE_RETRIES = 5


def to_amount(value) -> Decimal:
    """Coerce a user-supplied amount to a two-place ``Decimal``."""
    try:
        amount = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountFault(value)
    if not amount.is_finite():
        raise InvalidAmountFault(value)
    return amount


@service(scope="app")
class WalletService:
    """
    Buyer and seller balances.

    Every balance write is a conditional UPDATE against the balance that
    was just read, retried a few times when another writer got there
    first. Two concurrent payments can never overdraw the same wallet.
    """

    async def get_or_create_wallet(self, user_id: int) -> Wallet:
        wallet = await Wallet.objects.filter(user_id=user_id).first()
        if wallet is None:
            wallet = await Wallet.create(user_id=user_id)
        return wallet

    async def balance(self, user_id: int) -> Decimal:
        wallet = await self.get_or_create_wallet(user_id)
        return to_amount(wallet.shopping_balance)

    async def credit_shopping(
        self, user_id: int, amount, reference: Optional[str] = None,
        description: str = "Wallet top-up",
    ) -> WalletTransaction:
        amount = to_amount(amount)
        if amount <= 0:
            raise InvalidAmountFault(amount)

        new_balance = await self._adjust(user_id, "shopping_balance", amount)
        return await self._record(
            user_id, TransactionType.TOP_UP, amount, new_balance, reference, description,
        )

    async def debit_shopping(
        self, user_id: int, amount, reference: Optional[str] = None,
        description: str = "Order payment",
    ) -> WalletTransaction:
        amount = to_amount(amount)
        if amount < 0:
            raise InvalidAmountFault(amount)

        new_balance = await self._adjust(user_id, "shopping_balance", -amount)
        return await self._record(
            user_id, TransactionType.ORDER_PAYMENT, -amount, new_balance, reference, description,
        )

    async def credit_earnings(
        self, user_id: int, amount, reference: Optional[str] = None,
        description: str = "Order earning",
    ) -> WalletTransaction:
        amount = to_amount(amount)
        if amount < 0:
            raise InvalidAmountFault(amount)

        new_balance = await self._adjust(user_id, "earnings_balance", amount)
        return await self._record(
            user_id, TransactionType.ORDER_EARNING, amount, new_balance, reference, description,
        )

    async def ledger(self, user_id: int) -> list:
        return await WalletTransaction.objects.filter(user_id=user_id).order_by("-id").all()

    async def _adjust(self, user_id: int, column: str, delta: Decimal) -> Decimal:
        for _ in range(MAX_BALANCE_RETRIES):
            wallet = await self.get_or_create_wallet(user_id)
            current = to_amount(getattr(wallet, column))
            new_balance = current + delta
            if new_balance < 0:
                logger.warning("Insufficient wallet balance for user %s (needs %s)", user_id, -delta)
                raise PaymentFailedFault("Insufficient wallet balance")

            updated = await Wallet.objects.filter(id=wallet.id, **{column: current}).update(**{
                column: new_balance,
                "updated_at": datetime.now(timezone.utc),
            })
            if updated:
                return new_balance

        raise WalletConflictFault(user_id)

    async def _record(
        self, user_id: int, kind: str, amount: Decimal, balance_after: Decimal,
        reference: Optional[str], description: str,
    ) -> WalletTransaction:
        return await WalletTransaction.create(
            user_id=user_id,
            kind=kind,
            amount=amount,
            balance_after=balance_after,
            reference=reference,
            description=description,
        )


@service(scope="app")
class EscrowService:
    """Holds store order payments until delivery, then pays the seller."""

    def __init__(self, wallet: WalletService = Inject(WalletService)):
        self.wallet = wallet

    async def hold(
        self,
        store_order_id: int,
        buyer_id: int,
        store_id: int,
        amount,
        shipping_fee=0,
    ) -> Escrow:
        return await Escrow.create(
            store_order_id=store_order_id,
            buyer_id=buyer_id,
            store_id=store_id,
            amount=to_amount(amount),
            shipping_fee=to_amount(shipping_fee),
            status=EscrowStatus.HELD,
        )

    async def release(self, store_order_id: int, payee_id: int) -> Escrow:
        escrow = await Escrow.objects.filter(
            store_order_id=store_order_id, status=EscrowStatus.HELD,
        ).first()
        if escrow is None:
            raise EscrowNotFoundFault(store_order_id)

        now = datetime.now(timezone.utc)
        updated = await Escrow.objects.filter(
            id=escrow.id, status=EscrowStatus.HELD,
        ).update(status=EscrowStatus.RELEASED, released_to=payee_id, released_at=now)
        if not updated:
            raise EscrowNotFoundFault(store_order_id)

        await self.wallet.credit_earnings(
            payee_id,
            escrow.amount,
            reference=f"store_order:{store_order_id}",
            description=f"Earnings for store order {store_order_id}",
        )
        logger.info("Released escrow for store order %s to user %s", store_order_id, payee_id)
        await escrow.refresh()
        return escrow

    async def get_for_store_order(self, store_order_id: int) -> Optional[Escrow]:
        return await Escrow.objects.filter(store_order_id=store_order_id).first()
