from datetime import datetime, timedelta
from types import SimpleNamespace
from core.config import Settings
from services.retirement import RetirementPolicy, is_retirable


def test_policy_reads_single_pair_of_settings():
    config = Settings(ORDER_RETIREMENT_ACTION="delete", ORDER_RETENTION_SECONDS=30)

    policy = RetirementPolicy.from_settings(config)

    assert policy.action == "delete"
    assert policy.retention == timedelta(seconds=30)


def test_due_at_and_cutoff_are_symmetric():
    policy = RetirementPolicy(action="archive", retention=timedelta(minutes=5))
    delivered_at = datetime(2026, 10, 19, 12, 0, 0)

    due = policy.due_at(delivered_at)

    assert due == datetime(2026, 10, 19, 12, 5, 0)
    assert policy.cutoff(due) == delivered_at


def test_only_delivered_unarchived_orders_are_retirable():
    assert is_retirable(SimpleNamespace(status="delivered", archived=False))
    assert not is_retirable(SimpleNamespace(status="delivered", archived=True))
    assert not is_retirable(SimpleNamespace(status="outForDelivery", archived=False))
    assert not is_retirable(None)
