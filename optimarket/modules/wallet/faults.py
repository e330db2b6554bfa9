"""
Wallet Module — Fault Definitions
"""

from aquilia.faults import (
    Fault,
    FaultDomain,
    Severity,
)


PAYMENTS_DOMAIN = FaultDomain(
    name="payments",
    description="Wallet, payment and escrow fault domain",
)


class PaymentFailedFault(Fault):
    domain = PAYMENTS_DOMAIN
    severity = Severity.ERROR
    code = "PAYMENT_FAILED"

    def __init__(self, reason: str = ""):
        msg = f"Payment failed: {reason}" if reason else "Payment processing failed"
        super().__init__(code=self.code, message=msg, domain=self.domain,
                         severity=self.severity, public=True)


class InvalidAmountFault(Fault):
    domain = PAYMENTS_DOMAIN
    severity = Severity.WARN
    code = "INVALID_AMOUNT"

    def __init__(self, amount=None):
        msg = f"Invalid amount '{amount}'." if amount is not None else "Invalid amount"
        super().__init__(code=self.code, message=msg, domain=self.domain,
                         severity=self.severity, public=True)


class EscrowNotFoundFault(Fault):
    domain = PAYMENTS_DOMAIN
    severity = Severity.ERROR
    code = "ESCROW_NOT_FOUND"

    def __init__(self, store_order_id: int = 0):
        msg = (f"No held escrow for store order {store_order_id}."
               if store_order_id else "Escrow not found")
        super().__init__(code=self.code, message=msg, domain=self.domain,
                         severity=self.severity, public=True)


class WalletConflictFault(Fault):
    domain = PAYMENTS_DOMAIN
    severity = Severity.WARN
    code = "WALLET_CONFLICT"

    def __init__(self, user_id: int = 0):
        super().__init__(code=self.code,
                         message="Wallet balance changed concurrently, please retry",
                         domain=self.domain, severity=self.severity,
                         retryable=True, public=True,
                         metadata={"user_id": user_id})
