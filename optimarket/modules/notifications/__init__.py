"""
Notifications Module — Store order event mails.

Components:
- Services: StoreOrderNotifier (Jinja2-rendered mails via Aquilia Mail)
- Templates: ORDER_EVENT_TEMPLATES
"""

from .services import StoreOrderNotifier
from .templates import ORDER_EVENT_TEMPLATES

__all__ = ["StoreOrderNotifier", "ORDER_EVENT_TEMPLATES"]
