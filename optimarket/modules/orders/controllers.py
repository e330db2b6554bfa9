"""
Orders Module — Controllers

Seller fulfillment endpoints and buyer checkout/payment endpoints.

Integrates:
- Aquilia Controller/Response/RequestCtx
- Aquilia Contracts (request bodies sealed before any service call)
- Aquilia Faults (raised by the services, rendered by the fault engine)
"""

from aquilia.controller import Controller, RequestCtx
from aquilia.controller.decorators import GET, POST
from aquilia.response import Response

from .services import OrderService
from .workflow import StoreOrderWorkflow
from .contracts import (
    OrderContract,
    OrderEventContract,
    StoreOrderContract,
    CheckoutContract,
    AcceptContract,
    RejectContract,
    DeliveredContract,
    PayContract,
    CancelContract,
    store_order_view,
)


async def _sealed(ctx: RequestCtx, contract_cls):
    """Body validated through ``contract_cls``; an empty body reads as ``{}``."""
    raw = await ctx.request.body()
    data = await ctx.request.json() if raw and raw.strip() else {}
    contract = contract_cls(data=data)
    contract.is_sealed(raise_fault=True)
    return contract.validated_data


def _numeric_id(value):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SellerStoreOrderController(Controller):
    """
    Store order fulfillment for sellers.
    Every route is scoped to the store on the caller's identity.
    """
    prefix = "/seller/store-orders"
    tags = ["Seller Orders"]

    async def _context(self, ctx: RequestCtx):
        if not ctx.identity:
            return None, Response.json({"error": "Unauthorized"}, status=401)
        store_id = _numeric_id((ctx.identity.attributes or {}).get("store_id"))
        if store_id is None:
            return None, Response.json({"error": "A store account is required"}, status=403)
        return store_id, None

    async def _detail(self, ctx: RequestCtx, store_order) -> dict:
        order_service = await ctx.container.resolve_async(OrderService)
        items = await order_service.order_items(store_order.id)
        return store_order_view(store_order, items=items)

    @GET("/")
    async def list_store_orders(self, ctx: RequestCtx) -> Response:
        """List this store's orders, optionally filtered by ?status."""
        store_id, denied = await self._context(ctx)
        if denied:
            return denied

        order_service = await ctx.container.resolve_async(OrderService)
        store_orders = await order_service.list_store_orders(
            store_id, status=ctx.request.query_params.get("status"),
        )
        return Response.json({
            "items": StoreOrderContract(instance=store_orders, many=True).data,
            "total": len(store_orders),
        })

    @GET("/{store_order_id:int}")
    async def get_store_order(self, ctx: RequestCtx, store_order_id: int) -> Response:
        store_id, denied = await self._context(ctx)
        if denied:
            return denied

        order_service = await ctx.container.resolve_async(OrderService)
        store_order = await order_service.get_store_order_for_store(store_order_id, store_id)
        return Response.json(await self._detail(ctx, store_order))

    @POST("/{store_order_id:int}/accept")
    async def accept(self, ctx: RequestCtx, store_order_id: int) -> Response:
        """Accept a pending order and set the delivery fee."""
        store_id, denied = await self._context(ctx)
        if denied:
            return denied

        data = await _sealed(ctx, AcceptContract)
        workflow = await ctx.container.resolve_async(StoreOrderWorkflow)
        store_order = await workflow.accept_order(
            store_order_id,
            store_id,
            delivery_fee=data["delivery_fee"],
            estimated_delivery_date=data.get("estimated_delivery_date"),
            delivery_method=data.get("delivery_method"),
            delivery_notes=data.get("delivery_notes"),
        )
        return Response.json(await self._detail(ctx, store_order))

    @POST("/{store_order_id:int}/reject")
    async def reject(self, ctx: RequestCtx, store_order_id: int) -> Response:
        store_id, denied = await self._context(ctx)
        if denied:
            return denied

        data = await _sealed(ctx, RejectContract)
        workflow = await ctx.container.resolve_async(StoreOrderWorkflow)
        store_order = await workflow.reject_order(store_order_id, store_id, data["reason"])
        return Response.json(await self._detail(ctx, store_order))

    @POST("/{store_order_id:int}/out-for-delivery")
    async def out_for_delivery(self, ctx: RequestCtx, store_order_id: int) -> Response:
        store_id, denied = await self._context(ctx)
        if denied:
            return denied

        workflow = await ctx.container.resolve_async(StoreOrderWorkflow)
        store_order = await workflow.mark_out_for_delivery(store_order_id, store_id)
        return Response.json(await self._detail(ctx, store_order))

    @POST("/{store_order_id:int}/delivered")
    async def delivered(self, ctx: RequestCtx, store_order_id: int) -> Response:
        """Confirm delivery with the code the buyer hands to the courier."""
        store_id, denied = await self._context(ctx)
        if denied:
            return denied

        data = await _sealed(ctx, DeliveredContract)
        workflow = await ctx.container.resolve_async(StoreOrderWorkflow)
        store_order = await workflow.mark_delivered(store_order_id, store_id, data["delivery_code"])
        return Response.json(await self._detail(ctx, store_order))


class BuyerOrderController(Controller):
    """
    Checkout, order history and per-store payment for buyers.
    """
    prefix = "/buyer/orders"
    tags = ["Buyer Orders"]

    async def _buyer(self, ctx: RequestCtx):
        if not ctx.identity:
            return None, Response.json({"error": "Unauthorized"}, status=401)
        buyer_id = _numeric_id(ctx.identity.id)
        if buyer_id is None:
            return None, Response.json({"error": "A buyer account is required"}, status=403)
        return buyer_id, None

    async def _order_detail(self, order_service: OrderService, order) -> dict:
        store_orders = []
        for store_order in await order_service.store_orders_of(order.id):
            items = await order_service.order_items(store_order.id)
            store_orders.append(store_order_view(store_order, projection="buyer", items=items))
        data = OrderContract(instance=order).data
        data["store_orders"] = store_orders
        return data

    @POST("/")
    async def checkout(self, ctx: RequestCtx) -> Response:
        """Create an order; items are split into one store order per store."""
        buyer_id, denied = await self._buyer(ctx)
        if denied:
            return denied

        data = await _sealed(ctx, CheckoutContract)
        shipping_address = data.get("shipping_address")

        order_service = await ctx.container.resolve_async(OrderService)
        order = await order_service.place_order(
            buyer_id=buyer_id,
            items=[dict(item) for item in data["items"]],
            buyer_email=(ctx.identity.attributes or {}).get("email"),
            shipping_address=dict(shipping_address) if shipping_address else None,
        )
        return Response.json(await self._order_detail(order_service, order), status=201)

    @GET("/")
    async def list_orders(self, ctx: RequestCtx) -> Response:
        buyer_id, denied = await self._buyer(ctx)
        if denied:
            return denied

        order_service = await ctx.container.resolve_async(OrderService)
        orders = await order_service.list_orders(buyer_id)
        return Response.json({
            "items": OrderContract(instance=orders, many=True).data,
            "total": len(orders),
        })

    @GET("/{order_id:int}")
    async def get_order(self, ctx: RequestCtx, order_id: int) -> Response:
        buyer_id, denied = await self._buyer(ctx)
        if denied:
            return denied

        order_service = await ctx.container.resolve_async(OrderService)
        order = await order_service.get_order(order_id, buyer_id=buyer_id)
        detail = await self._order_detail(order_service, order)
        events = await order_service.order_events(order.id)
        detail["events"] = OrderEventContract(instance=events, many=True).data
        return Response.json(detail)

    @GET("/{order_id:int}/payment-info")
    async def payment_info(self, ctx: RequestCtx, order_id: int) -> Response:
        """Store orders awaiting payment and the total due."""
        buyer_id, denied = await self._buyer(ctx)
        if denied:
            return denied

        order_service = await ctx.container.resolve_async(OrderService)
        info = await order_service.payment_info(order_id, buyer_id)
        return Response.json({
            "order_id": info["order"].id,
            "order_no": info["order"].order_no,
            "unpaid_store_orders": StoreOrderContract(
                instance=info["unpaid_store_orders"], many=True, projection="buyer",
            ).data,
            "total_due": str(info["total_due"]),
        })

    @POST("/store-orders/{store_order_id:int}/pay")
    async def pay(self, ctx: RequestCtx, store_order_id: int) -> Response:
        """Pay an accepted store order with the wallet or a card."""
        buyer_id, denied = await self._buyer(ctx)
        if denied:
            return denied

        data = await _sealed(ctx, PayContract)
        workflow = await ctx.container.resolve_async(StoreOrderWorkflow)
        store_order = await workflow.pay_store_order(store_order_id, buyer_id, data["method"])
        return Response.json(store_order_view(store_order, projection="buyer"))

    @POST("/store-orders/{store_order_id:int}/cancel")
    async def cancel(self, ctx: RequestCtx, store_order_id: int) -> Response:
        buyer_id, denied = await self._buyer(ctx)
        if denied:
            return denied

        data = await _sealed(ctx, CancelContract)
        workflow = await ctx.container.resolve_async(StoreOrderWorkflow)
        store_order = await workflow.cancel_store_order(
            store_order_id, buyer_id, reason=data.get("reason"),
        )
        return Response.json(store_order_view(store_order, projection="buyer"))
