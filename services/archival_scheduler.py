"""
Recurring sweep that retires delivered orders.

Each sweep is a plain query over the database, so nothing is lost when
the process restarts: pending retirement tasks and overdue delivered
orders are simply picked up by the next tick after startup.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable
from sqlalchemy.orm import Session
from services.order_store import OrderStore
from services.retirement import RETIREMENT_POLICY, RetirementPolicy, is_retirable, retire_order
from utils.clock import utcnow
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SweepResult:
    retired: list[str] = field(default_factory=list)
    dropped_tasks: list[str] = field(default_factory=list)


def sweep(db: Session, policy: RetirementPolicy = RETIREMENT_POLICY, now: datetime | None = None) -> SweepResult:
    """
    Run one retirement pass.

    1. Due tasks: re-read the order and act only if it is still delivered
       and not archived. Stale tasks are dropped.
    2. Backstop: delivered orders whose last status change is older than
       the retention window, with or without a task.
    """
    now = now or utcnow()
    result = SweepResult()

    due_order_ids = [task.order_id for task in OrderStore.due_retirements(db, now)]

    for order_id in due_order_ids:
        order = OrderStore.get(db, order_id)
        if not is_retirable(order):
            OrderStore.cancel_retirement(db, order_id)
            db.commit()
            result.dropped_tasks.append(order_id)
            continue

        # Any later status write restarts the window
        if order.updated_at > policy.cutoff(now):
            continue

        if retire_order(db, order, policy):
            result.retired.append(order_id)
        db.commit()

    overdue_ids = [order.id for order in OrderStore.list_delivered_before(db, policy.cutoff(now))]
    for order_id in overdue_ids:
        if retire_order(db, OrderStore.get(db, order_id), policy):
            result.retired.append(order_id)
        db.commit()

    db.commit()
    return result


class ArchivalScheduler:
    """
    Runs ``sweep`` every ``interval_seconds`` on the event loop.

    Sweeps run in a worker thread with their own session. A failed sweep
    is logged and retried on the next tick; it never stops the loop.
    """

    def __init__(self, session_factory: Callable[[], Session], policy: RetirementPolicy = RETIREMENT_POLICY,
                 interval_seconds: float = 60):
        self.session_factory = session_factory
        self.policy = policy
        self.interval_seconds = interval_seconds
        self._sweep_in_progress = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self, now: datetime | None = None) -> SweepResult:
        db = self.session_factory()
        try:
            return sweep(db, self.policy, now)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def tick(self, now: datetime | None = None) -> SweepResult | None:
        """
        One guarded sweep. Returns None when skipped or failed.
        """
        if self._sweep_in_progress:
            logger.warning("Archival sweep still running, tick skipped")
            return None

        self._sweep_in_progress = True
        try:
            result = await asyncio.to_thread(self.run_once, now)
        except Exception as e:
            logger.error(
                f"Archival sweep failed: {str(e)}",
                extra={"error_type": type(e).__name__},
                exc_info=True
            )
            return None
        finally:
            self._sweep_in_progress = False

        if result.retired or result.dropped_tasks:
            logger.info(
                "Archival sweep finished",
                extra={
                    "action": self.policy.action,
                    "retired": len(result.retired),
                    "dropped_tasks": len(result.dropped_tasks),
                }
            )
        return result

    async def _run_forever(self):
        while True:
            await self.tick()
            await asyncio.sleep(self.interval_seconds)

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run_forever(), name="archival-scheduler")
        logger.info(
            "Archival scheduler started",
            extra={
                "interval_seconds": self.interval_seconds,
                "action": self.policy.action,
                "retention_seconds": self.policy.retention.total_seconds(),
            }
        )

    async def stop(self):
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Archival scheduler stopped")
