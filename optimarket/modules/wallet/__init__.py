"""
Wallet Module — Balances, payments and escrow.

Components:
- Models: Wallet, WalletTransaction, Escrow
- Services: WalletService, EscrowService
- Payments: WalletPaymentCollaborator (wallet debit, pluggable card hook)
- Faults: payment fault domain
"""

from .models import Wallet, WalletTransaction, Escrow, EscrowStatus, TransactionType
from .services import WalletService, EscrowService
from .payments import WalletPaymentCollaborator, PaymentReceipt, PAYMENT_METHODS
from .faults import (
    PaymentFailedFault,
    InvalidAmountFault,
    EscrowNotFoundFault,
    WalletConflictFault,
)

__all__ = [
    "Wallet", "WalletTransaction", "Escrow", "EscrowStatus", "TransactionType",
    "WalletService", "EscrowService",
    "WalletPaymentCollaborator", "PaymentReceipt", "PAYMENT_METHODS",
    "PaymentFailedFault", "InvalidAmountFault", "EscrowNotFoundFault", "WalletConflictFault",
]
