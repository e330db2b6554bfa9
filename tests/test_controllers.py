"""
Seller and buyer controllers, driven with a lightweight request context.
"""

import json
from decimal import Decimal
from types import SimpleNamespace

import pytest

from aquilia.contracts import SealFault

from optimarket.modules.orders.controllers import (
    SellerStoreOrderController,
    BuyerOrderController,
)
from optimarket.modules.orders.faults import (
    InvalidOrderDataFault,
    InvalidDeliveryCodeFault,
    InvalidTransitionFault,
    StoreOrderNotFoundFault,
)
from optimarket.modules.orders.services import OrderService
from optimarket.modules.orders.workflow import StoreOrderWorkflow

from .conftest import BUYER_ID, line


class FakeRequest:
    def __init__(self, body=None, query=None):
        self._raw = b"" if body is None else json.dumps(body).encode("utf-8")
        self.query_params = query or {}

    async def body(self):
        return self._raw

    async def json(self):
        return json.loads(self._raw) if self._raw else None


class FakeContainer:
    def __init__(self, **services):
        self.services = services

    async def resolve_async(self, cls):
        return self.services[cls]


@pytest.fixture
def container(order_service, workflow):
    return _container(order_service, workflow)


def _container(order_service, workflow):
    container = FakeContainer()
    container.services = {OrderService: order_service, StoreOrderWorkflow: workflow}
    return container


def seller_ctx(container, store_id, body=None, query=None):
    identity = SimpleNamespace(id="900", attributes={"store_id": store_id})
    return SimpleNamespace(identity=identity, request=FakeRequest(body, query), container=container)


def buyer_ctx(container, buyer_id=BUYER_ID, body=None):
    identity = SimpleNamespace(id=str(buyer_id), attributes={"email": "buyer@example.com"})
    return SimpleNamespace(identity=identity, request=FakeRequest(body), container=container)


def payload(response):
    return json.loads(response.body())


class TestSellerController:

    @pytest.mark.asyncio
    async def test_requires_identity(self, container):
        ctx = SimpleNamespace(identity=None, request=FakeRequest(), container=container)
        response = await SellerStoreOrderController().list_store_orders(ctx)
        assert response.status == 401

    @pytest.mark.asyncio
    async def test_requires_store_account(self, container):
        ctx = seller_ctx(container, None)
        response = await SellerStoreOrderController().list_store_orders(ctx)
        assert response.status == 403

    @pytest.mark.asyncio
    async def test_accept_returns_totals_without_code(self, container, pending_order):
        so = pending_order.store_order
        ctx = seller_ctx(container, pending_order.store.id, body={
            "delivery_fee": "10.00",
            "estimated_delivery_date": "2026-11-02",
            "delivery_method": "Courier",
        })
        response = await SellerStoreOrderController().accept(ctx, so.id)

        data = payload(response)
        assert response.status == 200
        assert data["status"] == "accepted"
        assert data["total"] == "110.00"
        assert data["delivery_fee"] == "10.00"
        assert data["estimated_delivery_date"] == "2026-11-02"
        assert "delivery_code" not in data
        assert [item["line_total"] for item in data["items"]] == ["100.00"]

    @pytest.mark.asyncio
    async def test_accept_requires_fee(self, container, pending_order):
        ctx = seller_ctx(container, pending_order.store.id, body={})
        with pytest.raises(SealFault):
            await SellerStoreOrderController().accept(ctx, pending_order.store_order.id)

    @pytest.mark.asyncio
    async def test_body_must_be_object(self, container, pending_order):
        ctx = seller_ctx(container, pending_order.store.id, body=["10.00"])
        with pytest.raises(SealFault):
            await SellerStoreOrderController().accept(ctx, pending_order.store_order.id)

    @pytest.mark.asyncio
    async def test_reject(self, container, pending_order):
        ctx = seller_ctx(container, pending_order.store.id, body={"reason": "out of stock"})
        response = await SellerStoreOrderController().reject(ctx, pending_order.store_order.id)
        assert payload(response)["status"] == "rejected"
        assert payload(response)["rejection_reason"] == "out of stock"

    @pytest.mark.asyncio
    async def test_foreign_store_is_not_found(self, container, pending_order, other_store):
        ctx = seller_ctx(container, other_store.id)
        with pytest.raises(StoreOrderNotFoundFault):
            await SellerStoreOrderController().get_store_order(ctx, pending_order.store_order.id)

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, container, pending_order, workflow):
        store_id = pending_order.store.id
        ctx = seller_ctx(container, store_id, query={"status": "pending"})
        data = payload(await SellerStoreOrderController().list_store_orders(ctx))
        assert data["total"] == 1

        await workflow.accept_order(pending_order.store_order.id, store_id, "10.00")
        data = payload(await SellerStoreOrderController().list_store_orders(ctx))
        assert data["total"] == 0

    @pytest.mark.asyncio
    async def test_delivery_flow(self, container, pending_order, workflow, funded_buyer):
        so = pending_order.store_order
        store_id = pending_order.store.id
        controller = SellerStoreOrderController()

        await workflow.accept_order(so.id, store_id, "10.00")
        paid = await workflow.pay_store_order(so.id, BUYER_ID, "wallet")
        await controller.out_for_delivery(seller_ctx(container, store_id), so.id)

        with pytest.raises(SealFault):
            await controller.delivered(seller_ctx(container, store_id, body={}), so.id)
        with pytest.raises(SealFault):
            await controller.delivered(seller_ctx(container, store_id, body={"delivery_code": 123456}), so.id)

        # a short code is a wrong code, not malformed input
        with pytest.raises(InvalidDeliveryCodeFault):
            await controller.delivered(seller_ctx(container, store_id, body={"delivery_code": "12345"}), so.id)

        wrong = "000000" if paid.delivery_code != "000000" else "111111"
        with pytest.raises(InvalidDeliveryCodeFault):
            await controller.delivered(seller_ctx(container, store_id, body={"delivery_code": wrong}), so.id)

        response = await controller.delivered(
            seller_ctx(container, store_id, body={"delivery_code": paid.delivery_code}), so.id,
        )
        assert payload(response)["status"] == "delivered"

    @pytest.mark.asyncio
    async def test_delivered_in_wrong_state_reports_transition(self, container, pending_order, workflow):
        so = pending_order.store_order
        store_id = pending_order.store.id
        await workflow.accept_order(so.id, store_id, "10.00")

        with pytest.raises(InvalidTransitionFault):
            await SellerStoreOrderController().delivered(
                seller_ctx(container, store_id, body={"delivery_code": "12345"}), so.id,
            )

    @pytest.mark.asyncio
    async def test_seller_never_sees_delivery_code(self, container, pending_order, workflow, funded_buyer):
        so = pending_order.store_order
        store_id = pending_order.store.id
        await workflow.accept_order(so.id, store_id, "10.00")
        await workflow.pay_store_order(so.id, BUYER_ID, "wallet")

        controller = SellerStoreOrderController()
        detail = payload(await controller.get_store_order(seller_ctx(container, store_id), so.id))
        listing = payload(await controller.list_store_orders(seller_ctx(container, store_id)))

        assert detail["status"] == "paid"
        assert "delivery_code" not in detail
        assert all("delivery_code" not in item for item in listing["items"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("store_id", ["abc", "12x"])
    async def test_non_numeric_store_is_forbidden(self, container, store_id):
        response = await SellerStoreOrderController().list_store_orders(seller_ctx(container, store_id))
        assert response.status == 403


class TestBuyerController:

    @pytest.mark.asyncio
    async def test_checkout(self, container, store, other_store):
        ctx = buyer_ctx(container, body={
            "items": [line(store.id, "100.00"), line(other_store.id, "20.00", product_id=2)],
            "shipping_address": {"city": "Porto"},
        })
        response = await BuyerOrderController().checkout(ctx)

        data = payload(response)
        assert response.status == 201
        assert data["grand_total"] == "125.00"
        assert data["buyer_email"] == "buyer@example.com"
        assert len(data["store_orders"]) == 2
        assert all(so["status"] == "pending" for so in data["store_orders"])

    @pytest.mark.asyncio
    async def test_checkout_requires_items(self, container, db):
        ctx = buyer_ctx(container, body={"items": "everything"})
        with pytest.raises(SealFault):
            await BuyerOrderController().checkout(ctx)

    @pytest.mark.asyncio
    async def test_pay_shows_code_to_buyer(self, container, pending_order, workflow, funded_buyer):
        so = pending_order.store_order
        await workflow.accept_order(so.id, pending_order.store.id, "10.00")

        response = await BuyerOrderController().pay(buyer_ctx(container, body={"method": "wallet"}), so.id)
        data = payload(response)
        assert data["status"] == "paid"
        assert len(data["delivery_code"]) == 6

    @pytest.mark.asyncio
    async def test_pay_without_method(self, container, pending_order, workflow):
        so = pending_order.store_order
        await workflow.accept_order(so.id, pending_order.store.id, "10.00")
        with pytest.raises(SealFault):
            await BuyerOrderController().pay(buyer_ctx(container, body={}), so.id)
        with pytest.raises(SealFault):
            await BuyerOrderController().pay(buyer_ctx(container, body={"method": "cash"}), so.id)

    @pytest.mark.asyncio
    async def test_checkout_with_empty_cart(self, container, db):
        ctx = buyer_ctx(container, body={"items": []})
        with pytest.raises(InvalidOrderDataFault):
            await BuyerOrderController().checkout(ctx)

    @pytest.mark.asyncio
    async def test_checkout_rejects_bad_line(self, container, store):
        ctx = buyer_ctx(container, body={"items": [line(store.id, "-1.00")]})
        with pytest.raises(SealFault):
            await BuyerOrderController().checkout(ctx)

    @pytest.mark.asyncio
    async def test_non_numeric_buyer_is_forbidden(self, container, db):
        ctx = buyer_ctx(container, buyer_id="guest-7")
        response = await BuyerOrderController().list_orders(ctx)
        assert response.status == 403

    @pytest.mark.asyncio
    async def test_buyer_sees_delivery_code_in_order_detail(self, container, pending_order, workflow, funded_buyer):
        so = pending_order.store_order
        await workflow.accept_order(so.id, pending_order.store.id, "10.00")
        paid = await workflow.pay_store_order(so.id, BUYER_ID, "wallet")

        data = payload(await BuyerOrderController().get_order(buyer_ctx(container), pending_order.order.id))
        assert data["store_orders"][0]["delivery_code"] == paid.delivery_code
        assert data["store_orders"][0]["total"] == "110.00"

    @pytest.mark.asyncio
    async def test_cancel_without_body(self, container, pending_order):
        response = await BuyerOrderController().cancel(buyer_ctx(container), pending_order.store_order.id)
        assert payload(response)["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_payment_info(self, container, pending_order, workflow):
        await workflow.accept_order(pending_order.store_order.id, pending_order.store.id, "10.00")
        response = await BuyerOrderController().payment_info(buyer_ctx(container), pending_order.order.id)
        data = payload(response)
        assert data["total_due"] == "110.00"
        assert len(data["unpaid_store_orders"]) == 1

    @pytest.mark.asyncio
    async def test_order_detail_includes_events(self, container, pending_order):
        response = await BuyerOrderController().get_order(buyer_ctx(container), pending_order.order.id)
        data = payload(response)
        assert data["order_no"] == pending_order.order.order_no
        assert [e["event_type"] for e in data["events"]] == ["order_created"]
        assert Decimal(data["grand_total"]) == Decimal("105.00")

    @pytest.mark.asyncio
    async def test_list_orders(self, container, pending_order):
        data = payload(await BuyerOrderController().list_orders(buyer_ctx(container)))
        assert data["total"] == 1
        data = payload(await BuyerOrderController().list_orders(buyer_ctx(container, buyer_id=7)))
        assert data["total"] == 0
