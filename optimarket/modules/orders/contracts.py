"""
Orders Module — Contracts

Inbound request bodies and outbound representations of orders.

Integrates:
- Aquilia Contracts (facet casting, sealing, model molding, projections)

Money is molded as a two-place string. The delivery code is part of the
``buyer`` projection of a store order only; sellers never see it.
"""

from aquilia.contracts import (
    CastFault,
    ChoiceFacet,
    Contract,
    DateFacet,
    DecimalFacet,
    DictFacet,
    IntFacet,
    NestedContractFacet,
    TextFacet,
)

from ..wallet.payments import PAYMENT_METHODS
from .models import Order, StoreOrder, OrderItem, OrderEvent
from .totals import CENT, money


class MoneyFacet(DecimalFacet):
    """Finite amount quantized to cents on the way in, ``"0.00"`` on the way out."""

    def cast(self, value):
        amount = super().cast(value)
        if not amount.is_finite():
            raise CastFault(self.name or "<unbound>", "Invalid amount")
        return amount.quantize(CENT)

    def mold(self, value):
        if value is None:
            return None
        return str(money(value))


# ── Representations ──────────────────────────────────────────


class OrderItemContract(Contract):
    unit_price = MoneyFacet(read_only=True)
    line_total = MoneyFacet(read_only=True)

    class Spec:
        model = OrderItem
        fields = "__all__"
        exclude = ["created_at"]


class StoreOrderContract(Contract):
    subtotal = MoneyFacet(read_only=True)
    delivery_fee = MoneyFacet(read_only=True)
    total = MoneyFacet(read_only=True)

    class Spec:
        model = StoreOrder
        fields = "__all__"
        projections = {
            "seller": ["-delivery_code"],
            "buyer": "__all__",
        }
        default_projection = "seller"


class OrderContract(Contract):
    items_total = MoneyFacet(read_only=True)
    shipping_total = MoneyFacet(read_only=True)
    platform_fee = MoneyFacet(read_only=True)
    discount_total = MoneyFacet(read_only=True)
    grand_total = MoneyFacet(read_only=True)

    class Spec:
        model = Order
        fields = "__all__"


class OrderEventContract(Contract):
    class Spec:
        model = OrderEvent
        fields = "__all__"


def store_order_view(store_order, projection: str = "seller", items=None) -> dict:
    data = StoreOrderContract(instance=store_order, projection=projection).data
    if items is not None:
        data["items"] = OrderItemContract(instance=items, many=True).data
    return data


# ── Request bodies ───────────────────────────────────────────


class OrderLineContract(Contract):
    """One cart line; lines are grouped into store orders by ``store_id``."""
    store_id = IntFacet()
    product_id = IntFacet()
    product_name = TextFacet(min_length=1, max_length=255)
    sku = TextFacet(max_length=64, required=False, allow_null=True, allow_blank=True)
    image = TextFacet(max_length=500, required=False, allow_null=True, allow_blank=True)
    quantity = IntFacet(min_value=1, default=1)
    unit_price = MoneyFacet(min_value=0)


class CheckoutContract(Contract):
    items = NestedContractFacet(OrderLineContract, many=True)
    shipping_address = DictFacet(required=False, allow_null=True)


class AcceptContract(Contract):
    delivery_fee = MoneyFacet(min_value=0)
    estimated_delivery_date = DateFacet(required=False, allow_null=True)
    delivery_method = TextFacet(max_length=100, required=False, allow_null=True, allow_blank=True)
    delivery_notes = TextFacet(required=False, allow_null=True, allow_blank=True)


class RejectContract(Contract):
    reason = TextFacet(min_length=1)


class DeliveredContract(Contract):
    # any string goes through; a wrong code is the workflow's to report
    delivery_code = TextFacet(allow_blank=True)

    class Spec:
        strict = True


class PayContract(Contract):
    method = ChoiceFacet(choices=list(PAYMENT_METHODS))


class CancelContract(Contract):
    reason = TextFacet(required=False, allow_null=True, allow_blank=True)
