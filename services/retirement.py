"""
What happens to a delivered order once it has been delivered long enough.

The policy is a single pair of settings so that arming a task at delivery
time and the periodic sweep can never disagree on action or window.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal
from sqlalchemy.orm import Session
from core.config import Settings, settings
from models.orders import Order
from services.order_store import OrderStore
from utils.logger import get_logger

logger = get_logger(__name__)

RetirementAction = Literal["archive", "delete"]


@dataclass(frozen=True)
class RetirementPolicy:
    action: RetirementAction
    retention: timedelta

    @classmethod
    def from_settings(cls, config: Settings) -> "RetirementPolicy":
        return cls(
            action=config.ORDER_RETIREMENT_ACTION,
            retention=timedelta(seconds=config.ORDER_RETENTION_SECONDS),
        )

    def due_at(self, delivered_at: datetime) -> datetime:
        return delivered_at + self.retention

    def cutoff(self, now: datetime) -> datetime:
        """Orders delivered at or before this instant are due."""
        return now - self.retention


RETIREMENT_POLICY = RetirementPolicy.from_settings(settings)


def is_retirable(order: Order | None) -> bool:
    return order is not None and order.status == "delivered" and not order.archived


def retire_order(db: Session, order: Order, policy: RetirementPolicy) -> bool:
    """
    Apply the policy action to one order. Caller commits.

    Returns False when the order is no longer eligible (already archived,
    or its status is not ``delivered``).
    """
    if not is_retirable(order):
        return False

    if policy.action == "delete":
        OrderStore.delete(db, order)
        logger.info("Order permanently deleted", extra={"order_id": order.id})
        return True

    retired = OrderStore.archive(db, order.id)
    OrderStore.cancel_retirement(db, order.id)
    if retired:
        logger.info("Order archived", extra={"order_id": order.id})
    return retired
