"""
Shared test fixtures for the optimarket test suite.

Every test gets a fresh in-memory SQLite database with all tables created,
and services wired by hand with recording collaborators.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
import pytest_asyncio

from aquilia.db.engine import configure_database
from aquilia.models.base import ModelRegistry

from optimarket.settings import Settings
from optimarket.modules.orders.models import (
    Store,
    Order,
    StoreOrder,
    OrderItem,
    OrderEvent,
)
from optimarket.modules.orders.services import OrderService
from optimarket.modules.orders.workflow import StoreOrderWorkflow
from optimarket.modules.wallet.models import Wallet, WalletTransaction, Escrow
from optimarket.modules.wallet.services import WalletService, EscrowService
from optimarket.modules.wallet.payments import WalletPaymentCollaborator
from optimarket.modules.notifications.services import StoreOrderNotifier


ALL_MODELS = (
    Store, Order, StoreOrder, OrderItem, OrderEvent,
    Wallet, WalletTransaction, Escrow,
)

BUYER_ID = 42
BUYER_EMAIL = "buyer@example.com"
SELLER_ID = 900


# ============================================================================
# Collaborator doubles
# ============================================================================


class RecordingMailer:
    """Stands in for MailService; keeps every message it is given."""

    def __init__(self):
        self.outbox = []

    async def send_message(self, message):
        self.outbox.append(message)
        return f"msg-{len(self.outbox)}"

    def subjects(self):
        return [m.subject for m in self.outbox]


class FailingMailer:
    async def send_message(self, message):
        raise ConnectionError("mail transport unavailable")


class ExplodingNotifier:
    """A notifier that raises from notify()."""

    def __init__(self):
        self.calls = 0

    async def notify(self, recipient, event, payload):
        self.calls += 1
        raise RuntimeError("notifier exploded")


# ============================================================================
# Database
# ============================================================================


@pytest_asyncio.fixture
async def db():
    database = configure_database("sqlite:///:memory:", alias="default")
    await database.connect()

    for model in ALL_MODELS:
        ModelRegistry.register(model)
        model._reverse_fk_cache = None

    originals = {}
    for model in ALL_MODELS:
        originals[model] = model._db
        model._db = database
        await database.execute(model.generate_create_table_sql())

    yield database

    for model, original in originals.items():
        model._db = original
    await database.disconnect()


# ============================================================================
# Services
# ============================================================================


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite:///:memory:",
        mail_from="orders@optimarket.test",
        platform_fee=Decimal("5.00"),
        order_prefix="COL",
    )


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def notifier(mailer, settings):
    return StoreOrderNotifier(mail=mailer, settings=settings)


@pytest.fixture
def wallet_service():
    return WalletService()


@pytest.fixture
def escrow_service(wallet_service):
    return EscrowService(wallet=wallet_service)


@pytest.fixture
def payments(wallet_service):
    return WalletPaymentCollaborator(wallet=wallet_service)


@pytest.fixture
def workflow(payments, escrow_service, notifier):
    return StoreOrderWorkflow(payments=payments, escrow=escrow_service, notifier=notifier)


@pytest.fixture
def order_service(settings):
    return OrderService(settings=settings)


# ============================================================================
# Data helpers
# ============================================================================


@pytest_asyncio.fixture
async def store(db):
    return await Store.create(owner_id=SELLER_ID, name="Clear Vision Optics", email="seller@clearvision.example")


@pytest_asyncio.fixture
async def other_store(db):
    return await Store.create(owner_id=901, name="Lens Loft", email="hello@lensloft.example")


@pytest_asyncio.fixture
async def funded_buyer(db, wallet_service):
    await wallet_service.credit_shopping(BUYER_ID, "500.00", reference="seed")
    return BUYER_ID


def line(store_id, unit_price="100.00", quantity=1, product_id=1, name="Aviator Frames"):
    return {
        "store_id": store_id,
        "product_id": product_id,
        "product_name": name,
        "sku": f"SKU-{product_id}",
        "quantity": quantity,
        "unit_price": unit_price,
    }


@pytest_asyncio.fixture
async def pending_order(order_service, store):
    """A single-store order with a pending store order of subtotal 100.00."""
    order = await order_service.place_order(
        buyer_id=BUYER_ID, items=[line(store.id)], buyer_email=BUYER_EMAIL,
    )
    store_order = (await order_service.store_orders_of(order.id))[0]
    return SimpleNamespace(order=order, store_order=store_order, store=store)
