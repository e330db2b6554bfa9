"""
Notifications Module — Services

Mail notifications for store order transitions. Delivery is
fire-and-forget: a failure is logged and never reaches the caller.
"""

import logging
from typing import Optional

from jinja2 import Environment, DictLoader, StrictUndefined

from aquilia.di import service, Inject
from aquilia.mail import EmailMessage
from aquilia.mail.service import MailService

from ...settings import Settings, get_settings
from .templates import ORDER_EVENT_TEMPLATES


logger = logging.getLogger("optimarket.notifications.services")


def _build_environment() -> Environment:
    sources = {}
    for event, (subject, body) in ORDER_EVENT_TEMPLATES.items():
        sources[f"{event}.subject"] = subject
        sources[f"{event}.body"] = body
    return Environment(
        loader=DictLoader(sources),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=False,
    )


@service(scope="app")
class StoreOrderNotifier:
    """
    Sends store order event mails through Aquilia MailService.

    Templates are Jinja2 sources keyed by event name; a missing template,
    a render error or a transport error are all logged and swallowed.
    """

    def __init__(
        self,
        mail: MailService = Inject(MailService),
        settings: Optional[Settings] = None,
    ):
        self.mail = mail
        self.settings = settings or get_settings()
        self.env = _build_environment()

    def render(self, event: str, payload: dict) -> tuple:
        context = {"site_name": "OptiMarket", **payload}
        subject = self.env.get_template(f"{event}.subject").render(**context)
        body = self.env.get_template(f"{event}.body").render(**context)
        return subject.strip(), body

    async def notify(self, recipient: Optional[str], event: str, payload: dict) -> bool:
        """Render and send one event mail. Returns False when it was not sent."""
        if not recipient:
            logger.debug("No recipient for %s, skipping", event)
            return False
        try:
            subject, body = self.render(event, payload)
            message = EmailMessage(
                subject=subject,
                body=body,
                from_email=self.settings.mail_from,
                to=[recipient],
            )
            await self.mail.send_message(message)
        except Exception:
            logger.exception("Failed to send %s notification to %s", event, recipient)
            return False
        logger.info("Sent %s notification to %s", event, recipient)
        return True
