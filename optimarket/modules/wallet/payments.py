"""
Wallet Module — Payment collaborator

Charges a buyer for a store order. ``wallet`` payments debit the buyer's
shopping balance; ``card`` payments are handed to an optional processor
callable configured by the application.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from aquilia.di import service, Inject

from .services import WalletService, to_amount
from .faults import PaymentFailedFault


logger = logging.getLogger("optimarket.wallet.payments")

PAYMENT_METHODS = ("card", "wallet")

CardProcessor = Callable[[int, Decimal, str], Awaitable[str]]


@dataclass(frozen=True)
class PaymentReceipt:
    method: str
    amount: Decimal
    reference: str


@service(scope="app")
class WalletPaymentCollaborator:
    """Debits the payer through the wallet, or through a card processor."""

    def __init__(
        self,
        wallet: WalletService = Inject(WalletService),
        card_processor: Optional[CardProcessor] = None,
    ):
        self.wallet = wallet
        self.card_processor = card_processor

    async def charge(self, payer_id: int, amount, method: str, reference: str) -> PaymentReceipt:
        amount = to_amount(amount)

        if method == "wallet":
            await self.wallet.debit_shopping(
                payer_id, amount, reference=reference,
                description=f"Payment for {reference}",
            )
            logger.info("Charged %s to wallet of user %s (%s)", amount, payer_id, reference)
            return PaymentReceipt(method=method, amount=amount, reference=reference)

        if method == "card":
            if self.card_processor is None:
                raise PaymentFailedFault("Card payments are not available")
            # the processor raises PaymentFailedFault on decline
            card_reference = await self.card_processor(payer_id, amount, reference)
            logger.info("Charged %s to card of user %s (%s)", amount, payer_id, card_reference)
            return PaymentReceipt(method=method, amount=amount, reference=card_reference or reference)

        raise PaymentFailedFault(f"Unsupported payment method '{method}'")
