"""
Mail templates for store order events, keyed by event name.

Each entry is a ``(subject, body)`` pair of Jinja2 sources rendered with
the notification payload.
"""

SIGNATURE = "\n\n-- {{ site_name }}"

ORDER_EVENT_TEMPLATES = {
    "order.accepted": (
        "Order {{ order_no }} accepted by {{ store_name }}",
        "Good news! {{ store_name }} accepted your order {{ order_no }}.\n\n"
        "Delivery fee: {{ delivery_fee }}\n"
        "Amount due: {{ total }}\n"
        "{% if estimated_delivery_date %}Estimated delivery: {{ estimated_delivery_date }}\n{% endif %}"
        "{% if delivery_method %}Delivery method: {{ delivery_method }}\n{% endif %}"
        "{% if delivery_notes %}Notes: {{ delivery_notes }}\n{% endif %}"
        "\nPlease complete payment to start delivery." + SIGNATURE,
    ),
    "order.rejected": (
        "Order {{ order_no }} rejected by {{ store_name }}",
        "Unfortunately {{ store_name }} could not fulfil its part of order {{ order_no }}.\n\n"
        "Reason: {{ reason }}\n"
        "Your order total is now {{ grand_total }}." + SIGNATURE,
    ),
    "order.paid": (
        "Payment received for order {{ order_no }}",
        "The buyer paid {{ total }} for order {{ order_no }} via {{ payment_method }}.\n\n"
        "Please prepare the items for delivery." + SIGNATURE,
    ),
    "order.delivery_code": (
        "Your delivery code for order {{ order_no }}",
        "Thank you for your payment of {{ total }}.\n\n"
        "Your delivery code is {{ delivery_code }}. Share it with the courier "
        "only when you receive your items." + SIGNATURE,
    ),
    "order.out_for_delivery": (
        "Order {{ order_no }} is out for delivery",
        "{{ store_name }} has dispatched your order {{ order_no }}.\n\n"
        "Have your delivery code ready." + SIGNATURE,
    ),
    "order.delivered": (
        "Order {{ order_no }} delivered",
        "Order {{ order_no }} from {{ store_name }} has been delivered." + SIGNATURE,
    ),
    "order.cancelled": (
        "Order {{ order_no }} cancelled by the buyer",
        "The buyer cancelled their order {{ order_no }}."
        "{% if reason %}\n\nReason: {{ reason }}{% endif %}" + SIGNATURE,
    ),
}
