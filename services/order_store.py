"""
Persistence for orders. No business rules live here: callers decide
what may change, the store only reads and writes rows.

Status writes are conditional (compare-and-set on the current status)
so two writers racing on the same order cannot silently overwrite each
other; the caller learns it lost through a False return.
"""

from datetime import datetime
from sqlalchemy.orm import Session, selectinload
from models.orders import Order
from models.order_items import OrderItem
from models.scheduled_tasks import ScheduledTask
from models.webhook_events import ProcessedWebhookEvent
from models.restaurants import Restaurant
from services.checkout_builder import CheckoutQuote
from utils.clock import utcnow


def _with_references(query):
    return query.options(
        selectinload(Order.items),
        selectinload(Order.restaurant),
        selectinload(Order.user),
    )


class OrderStore:

    @staticmethod
    def add_placed_order(db: Session, order_id: str, user_id: str, restaurant_id: str,
                         quote: CheckoutQuote, delivery_details, now: datetime | None = None) -> Order:
        now = now or utcnow()
        order = Order(
            id=order_id,
            user_id=user_id,
            restaurant_id=restaurant_id,
            status="placed",
            archived=False,
            delivery_email=delivery_details.email,
            delivery_name=delivery_details.name,
            delivery_address_line1=delivery_details.address_line1,
            delivery_city=delivery_details.city,
            created_at=now,
            updated_at=now,
        )
        order.items = [
            OrderItem(
                menu_item_id=item.menu_item_id,
                name=item.name,
                quantity=item.quantity,
                position=position,
            )
            for position, item in enumerate(quote.line_items)
        ]
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    @staticmethod
    def get(db: Session, order_id: str) -> Order | None:
        return _with_references(db.query(Order)).filter(Order.id == order_id).one_or_none()

    @staticmethod
    def list_by_user(db: Session, user_id: str, archived: bool = False) -> list[Order]:
        return (
            _with_references(db.query(Order))
            .filter(Order.user_id == user_id, Order.archived == archived)
            .order_by(Order.created_at.desc())
            .all()
        )

    @staticmethod
    def list_by_restaurants(db: Session, restaurant_ids: list[str], archived: bool = False) -> list[Order]:
        if not restaurant_ids:
            return []
        return (
            _with_references(db.query(Order))
            .filter(Order.restaurant_id.in_(restaurant_ids), Order.archived == archived)
            .order_by(Order.created_at.desc())
            .all()
        )

    @staticmethod
    def get_restaurant_owner_id(db: Session, order: Order) -> str | None:
        row = db.query(Restaurant.user_id).filter(Restaurant.id == order.restaurant_id).one_or_none()
        return row.user_id if row else None

    @staticmethod
    def mark_paid(db: Session, order_id: str, amount_total: int, now: datetime | None = None) -> bool:
        """placed -> paid. False when the order is no longer ``placed``."""
        updated = (
            db.query(Order)
            .filter(Order.id == order_id, Order.status == "placed", Order.archived == False)  # noqa: E712
            .update(
                {"status": "paid", "total_amount": amount_total, "updated_at": now or utcnow()},
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def compare_and_set_status(db: Session, order_id: str, expected: str, new_status: str,
                               now: datetime | None = None) -> bool:
        updated = (
            db.query(Order)
            .filter(Order.id == order_id, Order.status == expected, Order.archived == False)  # noqa: E712
            .update(
                {"status": new_status, "updated_at": now or utcnow()},
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def archive(db: Session, order_id: str) -> bool:
        """Only delivered, non-archived orders can be archived."""
        updated = (
            db.query(Order)
            .filter(Order.id == order_id, Order.status == "delivered", Order.archived == False)  # noqa: E712
            .update({"archived": True}, synchronize_session=False)
        )
        return updated == 1

    @staticmethod
    def delete(db: Session, order: Order) -> None:
        OrderStore.cancel_retirement(db, order.id)
        db.delete(order)

    @staticmethod
    def list_delivered_before(db: Session, cutoff: datetime) -> list[Order]:
        return (
            db.query(Order)
            .filter(Order.status == "delivered", Order.archived == False, Order.updated_at <= cutoff)  # noqa: E712
            .all()
        )

    # Deferred retirement tasks

    @staticmethod
    def schedule_retirement(db: Session, order_id: str, action: str, due_at: datetime) -> ScheduledTask:
        task = db.query(ScheduledTask).filter(ScheduledTask.order_id == order_id).one_or_none()
        if task:
            task.action = action
            task.due_at = due_at
        else:
            task = ScheduledTask(order_id=order_id, action=action, due_at=due_at)
            db.add(task)
        return task

    @staticmethod
    def cancel_retirement(db: Session, order_id: str) -> bool:
        deleted = (
            db.query(ScheduledTask)
            .filter(ScheduledTask.order_id == order_id)
            .delete(synchronize_session=False)
        )
        return deleted > 0

    @staticmethod
    def due_retirements(db: Session, now: datetime) -> list[ScheduledTask]:
        return (
            db.query(ScheduledTask)
            .filter(ScheduledTask.due_at <= now)
            .order_by(ScheduledTask.due_at)
            .all()
        )

    # Webhook idempotency

    @staticmethod
    def is_event_processed(db: Session, event_id: str) -> bool:
        return db.query(ProcessedWebhookEvent).filter(ProcessedWebhookEvent.event_id == event_id).first() is not None

    @staticmethod
    def record_event(db: Session, event_id: str, kind: str, order_id: str | None) -> None:
        db.add(ProcessedWebhookEvent(event_id=event_id, kind=kind, order_id=order_id))
