import uuid
from dataclasses import dataclass
from datetime import datetime
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from core.config import settings
from core.exceptions import (
    InvalidStatusTransition,
    OrderNotFound,
    OrderStatusConflict,
    StorageError,
    Unauthorized,
)
from models.orders import Order, ORDER_STATUSES
from schemas.order_schemas import CheckoutSessionRequest
from services.checkout_builder import build_checkout
from services.order_store import OrderStore
from services.payment_gateway import CHECKOUT_COMPLETED, StripePaymentGateway
from services.restaurant_service import RestaurantService
from services.retirement import RETIREMENT_POLICY, RetirementPolicy
from utils.clock import seconds_ago, utcnow
from utils.logger import get_logger

logger = get_logger(__name__)

STATUS_RANK = {status: rank for rank, status in enumerate(ORDER_STATUSES)}

# Statuses a restaurant may set by hand. "paid" only comes from the webhook.
MANUAL_STATUSES = ("inProgress", "outForDelivery", "delivered")


@dataclass(frozen=True)
class ReconcileResult:
    handled: bool
    reason: str | None = None
    order_id: str | None = None


def _commit(db: Session, action: str, **context):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Failed to {action}: {str(e)}",
            extra={**context, "error_type": type(e).__name__},
            exc_info=True
        )
        raise StorageError(**context) from e


class OrderService:

    @staticmethod
    def create_checkout_session(db: Session, gateway: StripePaymentGateway, user_id: str,
                                request: CheckoutSessionRequest) -> str:
        """
        Price the cart, open a payment session and persist a ``placed`` order.

        Flow:
        1. Resolve restaurant (404 if missing)
        2. Build line items from the current menu (404 on unknown item)
        3. Create the payment session under a fresh order id
        4. Persist the order only once the session exists

        A failure in step 4 leaves an orphaned session behind. Its webhook
        will later miss the order lookup, which is logged there.
        """
        restaurant = RestaurantService.get_restaurant(db, request.restaurant_id)

        quote = build_checkout(request.cart_items, restaurant.menu_items, restaurant.delivery_price)

        order_id = uuid.uuid4().hex
        url = gateway.create_session(
            quote.line_items,
            order_id=order_id,
            restaurant_id=restaurant.id,
            delivery_fee=quote.delivery_fee,
        )

        try:
            OrderStore.add_placed_order(
                db,
                order_id=order_id,
                user_id=user_id,
                restaurant_id=restaurant.id,
                quote=quote,
                delivery_details=request.delivery_details,
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                "Order persist failed after payment session was created",
                extra={
                    "order_id": order_id,
                    "restaurant_id": restaurant.id,
                    "user_id": user_id,
                    "error_type": type(e).__name__,
                },
                exc_info=True
            )
            raise StorageError(order_id=order_id) from e

        logger.info(
            "Checkout session created",
            extra={
                "order_id": order_id,
                "restaurant_id": restaurant.id,
                "user_id": user_id,
                "expected_total": quote.total_amount,
            }
        )
        return url

    @staticmethod
    def reconcile_payment(db: Session, gateway: StripePaymentGateway, raw_payload: bytes,
                          signature: str | None, now: datetime | None = None) -> ReconcileResult:
        """
        Apply a payment webhook to its order.

        Safe to replay: an event id seen before is skipped, and only a
        ``placed`` order can become ``paid``, so the amount is written once.

        Raises:
            InvalidSignature: the delivery is not from the provider
            OrderNotFound: the referenced order does not exist
        """
        event = gateway.verify_and_parse_webhook(raw_payload, signature)

        if event.kind != CHECKOUT_COMPLETED:
            logger.debug("Ignoring webhook event", extra={"event_id": event.event_id, "kind": event.kind})
            return ReconcileResult(handled=False, reason="ignored_event_type")

        if not event.order_id:
            logger.warning("Checkout event without order id", extra={"event_id": event.event_id})
            return ReconcileResult(handled=False, reason="missing_order_id")

        if OrderStore.is_event_processed(db, event.event_id):
            logger.info(
                "Duplicate webhook event skipped",
                extra={"event_id": event.event_id, "order_id": event.order_id}
            )
            return ReconcileResult(handled=False, reason="duplicate_event", order_id=event.order_id)

        if event.amount_total is None:
            logger.warning(
                "Checkout event without amount",
                extra={"event_id": event.event_id, "order_id": event.order_id}
            )
            return ReconcileResult(handled=False, reason="missing_amount", order_id=event.order_id)

        order = OrderStore.get(db, event.order_id)
        if not order:
            raise OrderNotFound(order_id=event.order_id, event_id=event.event_id)

        paid = OrderStore.mark_paid(db, order.id, event.amount_total, now=now)
        OrderStore.record_event(db, event.event_id, event.kind, order.id)

        try:
            db.commit()
        except IntegrityError:
            # The same event was delivered twice concurrently and the other delivery won
            db.rollback()
            return ReconcileResult(handled=False, reason="duplicate_event", order_id=order.id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                "Failed to record payment",
                extra={"order_id": order.id, "event_id": event.event_id, "error_type": type(e).__name__},
                exc_info=True
            )
            raise StorageError(order_id=order.id) from e

        if not paid:
            logger.info(
                "Order already past payment, event recorded only",
                extra={"order_id": order.id, "event_id": event.event_id}
            )
            return ReconcileResult(handled=False, reason="already_paid", order_id=order.id)

        logger.info(
            "Order paid",
            extra={"order_id": order.id, "event_id": event.event_id, "total_amount": event.amount_total}
        )
        return ReconcileResult(handled=True, order_id=order.id)

    @staticmethod
    def set_status(db: Session, order_id: str, requester_user_id: str, new_status: str,
                   now: datetime | None = None, policy: RetirementPolicy = RETIREMENT_POLICY) -> Order:
        """
        Move an order forward through fulfillment on behalf of the restaurant owner.

        Writing the current status again is a no-op. Moving backwards, to
        ``placed``/``paid``, or before payment is rejected.
        """
        order = OrderStore.get(db, order_id)
        if not order:
            raise OrderNotFound(order_id=order_id)

        owner_id = OrderStore.get_restaurant_owner_id(db, order)
        if not owner_id or owner_id != requester_user_id:
            logger.warning(
                "Status change by non-owner rejected",
                extra={"order_id": order_id, "user_id": requester_user_id}
            )
            raise Unauthorized()

        if new_status not in MANUAL_STATUSES:
            raise InvalidStatusTransition(f"Status '{new_status}' cannot be set manually")

        if order.archived:
            raise InvalidStatusTransition("Archived orders cannot be changed")

        current = order.status
        if current == new_status:
            return order

        if STATUS_RANK[current] < STATUS_RANK["paid"]:
            raise InvalidStatusTransition("Order has not been paid")

        if STATUS_RANK[new_status] < STATUS_RANK[current]:
            raise InvalidStatusTransition(f"Cannot move order from {current} to {new_status}")

        now = now or utcnow()
        if not OrderStore.compare_and_set_status(db, order_id, current, new_status, now=now):
            db.rollback()
            raise OrderStatusConflict(order_id=order_id)

        if new_status == "delivered":
            OrderStore.schedule_retirement(db, order_id, policy.action, policy.due_at(now))

        _commit(db, "update order status", order_id=order_id)

        logger.info(
            "Order status updated",
            extra={"order_id": order_id, "from_status": current, "to_status": new_status}
        )
        return OrderStore.get(db, order_id)

    @staticmethod
    def list_my_orders(db: Session, user_id: str, now: datetime | None = None) -> list[Order]:
        """
        Caller's active orders. Delivered orders stay visible only for a
        short window so the order-status page can show the final state.
        """
        visible_since = seconds_ago(settings.DELIVERED_DISPLAY_SECONDS, now)
        return [
            order for order in OrderStore.list_by_user(db, user_id)
            if order.status != "delivered" or order.updated_at > visible_since
        ]

    @staticmethod
    def list_archived_orders(db: Session, user_id: str) -> list[Order]:
        return OrderStore.list_by_user(db, user_id, archived=True)

    @staticmethod
    def list_restaurant_orders(db: Session, user_id: str) -> list[Order]:
        restaurant_ids = RestaurantService.get_owned_restaurant_ids(db, user_id)
        return OrderStore.list_by_restaurants(db, restaurant_ids)

    @staticmethod
    def _get_for_owner(db: Session, order_id: str, requester_user_id: str) -> Order:
        """The customer who placed the order or the restaurant owner."""
        order = OrderStore.get(db, order_id)
        if not order:
            raise OrderNotFound(order_id=order_id)

        if requester_user_id not in (order.user_id, OrderStore.get_restaurant_owner_id(db, order)):
            logger.warning(
                "Order access by non-owner rejected",
                extra={"order_id": order_id, "user_id": requester_user_id}
            )
            raise Unauthorized()
        return order

    @staticmethod
    def archive_order(db: Session, order_id: str, requester_user_id: str) -> Order:
        order = OrderService._get_for_owner(db, order_id, requester_user_id)

        if order.archived:
            return order

        if order.status != "delivered":
            raise InvalidStatusTransition("Only delivered orders can be archived")

        if not OrderStore.archive(db, order_id):
            db.rollback()
            raise OrderStatusConflict(order_id=order_id)
        OrderStore.cancel_retirement(db, order_id)
        _commit(db, "archive order", order_id=order_id)

        logger.info("Order archived manually", extra={"order_id": order_id, "user_id": requester_user_id})
        return OrderStore.get(db, order_id)

    @staticmethod
    def delete_order(db: Session, order_id: str, requester_user_id: str) -> None:
        order = OrderService._get_for_owner(db, order_id, requester_user_id)

        if order.status != "delivered":
            raise InvalidStatusTransition("Only delivered orders can be deleted")

        OrderStore.delete(db, order)
        _commit(db, "delete order", order_id=order_id)

        logger.info("Order deleted manually", extra={"order_id": order_id, "user_id": requester_user_id})

    @staticmethod
    def archive_delivered_orders(db: Session, user_id: str) -> int:
        """Archive every delivered order of the caller right away."""
        archived = 0
        for order in OrderStore.list_by_user(db, user_id):
            if order.status == "delivered" and OrderStore.archive(db, order.id):
                OrderStore.cancel_retirement(db, order.id)
                archived += 1

        _commit(db, "archive delivered orders", user_id=user_id)

        logger.info("Delivered orders archived", extra={"user_id": user_id, "count": archived})
        return archived
