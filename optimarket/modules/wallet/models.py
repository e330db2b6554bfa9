"""
Wallet Module — Models

Buyer shopping balance, seller earnings, the wallet ledger and the
escrow rows that hold a store order's payment until delivery.
"""

from aquilia.models import (
    Model,
    CharField,
    IntegerField,
    DecimalField,
    DateTimeField,
    Index,
)
from aquilia.models.enums import TextChoices


class TransactionType(TextChoices):
    TOP_UP = "top_up", "Top Up"
    ORDER_PAYMENT = "order_payment", "Order Payment"
    ORDER_EARNING = "order_earning", "Order Earning"


class EscrowStatus(TextChoices):
    HELD = "held", "Held"
    RELEASED = "released", "Released"


class Wallet(Model):
    """One wallet per user: spendable shopping balance and seller earnings."""
    table = "wallets"

    user_id = IntegerField(unique=True)
    shopping_balance = DecimalField(max_digits=12, decimal_places=2, default=0)
    earnings_balance = DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = DateTimeField(auto_now_add=True)
    updated_at = DateTimeField(auto_now=True)


class WalletTransaction(Model):
    """Append-only wallet ledger. Debits carry a negative amount."""
    table = "wallet_transactions"

    user_id = IntegerField(db_index=True)
    kind = CharField(max_length=20)
    amount = DecimalField(max_digits=12, decimal_places=2)
    balance_after = DecimalField(max_digits=12, decimal_places=2)
    reference = CharField(max_length=64, null=True, blank=True)
    description = CharField(max_length=255, null=True, blank=True)
    created_at = DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [Index(fields=["user_id", "-created_at"])]


class Escrow(Model):
    """Payment for a store order, held until the buyer confirms delivery."""
    table = "escrows"

    store_order_id = IntegerField(unique=True)
    buyer_id = IntegerField(db_index=True)
    store_id = IntegerField(db_index=True)
    amount = DecimalField(max_digits=12, decimal_places=2)
    shipping_fee = DecimalField(max_digits=12, decimal_places=2, default=0)
    status = CharField(max_length=20, default=EscrowStatus.HELD)
    released_to = IntegerField(null=True)
    released_at = DateTimeField(null=True)
    created_at = DateTimeField(auto_now_add=True)
