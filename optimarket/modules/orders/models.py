"""
Orders Module — Models

An Order is a buyer's checkout; it owns one StoreOrder per store, and each
StoreOrder owns its OrderItems. Related rows are referenced by integer id
and removed explicitly by ``OrderService.delete_order``.
"""

from aquilia.models import (
    Model,
    CharField,
    TextField,
    IntegerField,
    DecimalField,
    DateField,
    DateTimeField,
    JSONField,
    Index,
)
from aquilia.models.enums import TextChoices


class StoreOrderStatus(TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    PAID = "paid", "Paid"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for Delivery"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(TextChoices):
    UNPAID = "unpaid", "Unpaid"
    PARTIALLY_PAID = "partially_paid", "Partially Paid"
    PAID = "paid", "Paid"


class Store(Model):
    """A seller storefront. Orders only reference it by id."""
    table = "stores"

    owner_id = IntegerField(db_index=True)
    name = CharField(max_length=150)
    email = CharField(max_length=255, null=True, blank=True)
    created_at = DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class Order(Model):
    """
    Buyer checkout spanning one or more stores.

    ``grand_total`` is the sum of the live store order totals plus the
    platform fee, less any discount. It is recomputed whenever a store
    order is accepted, rejected or cancelled.
    """
    table = "orders"

    order_no = CharField(max_length=32, unique=True)
    buyer_id = IntegerField(db_index=True)
    buyer_email = CharField(max_length=255, null=True, blank=True)
    payment_status = CharField(max_length=20, default=PaymentStatus.UNPAID)
    items_total = DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_total = DecimalField(max_digits=12, decimal_places=2, default=0)
    platform_fee = DecimalField(max_digits=12, decimal_places=2, default=0)
    discount_total = DecimalField(max_digits=12, decimal_places=2, default=0)
    grand_total = DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_address = JSONField(default=dict)
    created_at = DateTimeField(auto_now_add=True)
    updated_at = DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            Index(fields=["buyer_id", "-created_at"]),
        ]

    def __str__(self):
        return f"Order {self.order_no}"


class StoreOrder(Model):
    """One store's share of an Order and its fulfillment status."""
    table = "store_orders"

    order_id = IntegerField(db_index=True)
    store_id = IntegerField(db_index=True)
    status = CharField(max_length=20, default=StoreOrderStatus.PENDING)
    subtotal = DecimalField(max_digits=12, decimal_places=2, default=0)
    delivery_fee = DecimalField(max_digits=12, decimal_places=2, default=0)
    total = DecimalField(max_digits=12, decimal_places=2, default=0)
    delivery_code = CharField(max_length=6, null=True, blank=True)
    estimated_delivery_date = DateField(null=True)
    delivery_method = CharField(max_length=100, null=True, blank=True)
    delivery_notes = TextField(null=True, blank=True)
    rejection_reason = TextField(null=True, blank=True)
    cancellation_reason = TextField(null=True, blank=True)
    payment_method = CharField(max_length=20, null=True, blank=True)
    payment_reference = CharField(max_length=64, null=True, blank=True)
    accepted_at = DateTimeField(null=True)
    rejected_at = DateTimeField(null=True)
    paid_at = DateTimeField(null=True)
    out_for_delivery_at = DateTimeField(null=True)
    delivered_at = DateTimeField(null=True)
    cancelled_at = DateTimeField(null=True)
    created_at = DateTimeField(auto_now_add=True)
    updated_at = DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            Index(fields=["store_id", "status"]),
            Index(fields=["delivery_code"]),
        ]

    def __str__(self):
        return f"StoreOrder #{self.id} ({self.status})"


class OrderItem(Model):
    """A product line, with the product details copied at checkout."""
    table = "order_items"

    store_order_id = IntegerField(db_index=True)
    product_id = IntegerField()
    product_name = CharField(max_length=255)
    sku = CharField(max_length=64, null=True, blank=True)
    image = CharField(max_length=500, null=True, blank=True)
    quantity = IntegerField(default=1)
    unit_price = DecimalField(max_digits=10, decimal_places=2)
    line_total = DecimalField(max_digits=12, decimal_places=2)
    created_at = DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]


class OrderEvent(Model):
    """Audit trail for order and store order transitions."""
    table = "order_events"

    order_id = IntegerField(db_index=True)
    store_order_id = IntegerField(null=True)
    event_type = CharField(max_length=50)
    from_status = CharField(max_length=20, null=True, blank=True)
    to_status = CharField(max_length=20, null=True, blank=True)
    actor_id = CharField(max_length=255, null=True, blank=True)
    actor_type = CharField(max_length=20, default="system")
    details = JSONField(default=dict)
    created_at = DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [Index(fields=["order_id", "-created_at"])]
