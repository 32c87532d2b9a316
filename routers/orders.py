from fastapi import APIRouter, Request, status
from starlette.concurrency import run_in_threadpool
from utils.deps import user_dependency, db_dependency, gateway_dependency
from schemas.order_schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    OrderMessageResponse,
    OrderResponse,
    UpdateOrderStatusRequest,
    WebhookAck,
)
from services.order_service import OrderService
from core.exceptions import OrderNotFound
from middleware.rate_limiter import limiter
from utils.logger import get_logger, sanitize_log_data

# Setup logger
logger = get_logger(__name__)


router = APIRouter(
    prefix="/orders",
    tags=["orders"]
)

SIGNATURE_HEADER = "stripe-signature"


def _to_response(orders) -> list[OrderResponse]:
    return [OrderResponse.model_validate(order) for order in orders]


@router.get("", response_model=list[OrderResponse], status_code=status.HTTP_200_OK)
def get_my_orders(user: user_dependency, db: db_dependency):
    """
    Caller's active orders. Just-delivered orders stay listed for a few
    seconds, archived ones never are.
    """
    return _to_response(OrderService.list_my_orders(db, user.get("user_id")))


@router.get("/archived", response_model=list[OrderResponse], status_code=status.HTTP_200_OK)
def get_archived_orders(user: user_dependency, db: db_dependency):
    return _to_response(OrderService.list_archived_orders(db, user.get("user_id")))


@router.get("/restaurant", response_model=list[OrderResponse], status_code=status.HTTP_200_OK)
def get_my_restaurant_orders(user: user_dependency, db: db_dependency):
    """
    Active orders of every restaurant the caller owns.
    """
    return _to_response(OrderService.list_restaurant_orders(db, user.get("user_id")))


@router.post("/checkout", response_model=CheckoutSessionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def create_checkout_session(request: Request, body: CheckoutSessionRequest,
    user: user_dependency, db: db_dependency, gateway: gateway_dependency):
    """
    Create a ``placed`` order and return the payment page URL the client
    should redirect to.
    """
    url = OrderService.create_checkout_session(db, gateway, user.get("user_id"), body)
    return {"url": url}


@router.post("/checkout/webhook", response_model=WebhookAck, status_code=status.HTTP_200_OK)
async def payment_webhook(request: Request, db: db_dependency, gateway: gateway_dependency):
    """
    Payment provider callback (public, signature-verified).

    The body is read raw: the signature covers the exact bytes sent.
    Anything structurally valid is acknowledged, even when the order is
    unknown, so the provider does not keep retrying it.
    """
    payload = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    try:
        result = await run_in_threadpool(OrderService.reconcile_payment, db, gateway, payload, signature)
    except OrderNotFound as e:
        logger.warning(
            "Webhook references unknown order",
            extra=sanitize_log_data({**e.context, "signature": signature or ""})
        )
        return WebhookAck(handled=False, reason="order_not_found")

    return WebhookAck(handled=result.handled, reason=result.reason)


@router.patch("/{order_id}/status", response_model=OrderMessageResponse, status_code=status.HTTP_200_OK)
def update_order_status(order_id: str, body: UpdateOrderStatusRequest, user: user_dependency, db: db_dependency):
    """
    Restaurant owner moves an order forward through fulfillment.
    """
    order = OrderService.set_status(db, order_id, user.get("user_id"), body.status)
    return {"message": "Order status updated", "order": OrderResponse.model_validate(order)}


@router.put("/archive-delivered", status_code=status.HTTP_200_OK)
def archive_delivered_orders(user: user_dependency, db: db_dependency):
    archived = OrderService.archive_delivered_orders(db, user.get("user_id"))
    return {"message": "Delivered orders archived", "archived": archived}


@router.api_route("/{order_id}/archive", methods=["PUT", "PATCH"], response_model=OrderMessageResponse,
                  status_code=status.HTTP_200_OK)
def archive_order(order_id: str, user: user_dependency, db: db_dependency):
    order = OrderService.archive_order(db, order_id, user.get("user_id"))
    return {"message": "Order archived successfully", "order": OrderResponse.model_validate(order)}


@router.delete("/{order_id}", response_model=OrderMessageResponse, status_code=status.HTTP_200_OK)
def delete_order(order_id: str, user: user_dependency, db: db_dependency):
    OrderService.delete_order(db, order_id, user.get("user_id"))
    return {"message": "Order deleted successfully"}
