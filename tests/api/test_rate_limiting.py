import pytest
from middleware.rate_limiter import limiter, get_user_id
from core.config import settings
from tests.helpers import auth_headers
from starlette.requests import Request


def test_rate_limiter_disabled_in_testing():
    """Verify rate limiter is disabled during tests."""

    assert settings.ENV == "testing"
    assert limiter.enabled is False


def _request(headers: dict) -> Request:
    return Request({
        "type": "http",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.1", 1234),
    })


def test_rate_limit_key_is_token_subject(customer):
    assert get_user_id(_request(auth_headers(customer))) == customer.auth_sub


def test_rate_limit_key_falls_back_to_ip():
    assert get_user_id(_request({"Authorization": "Bearer garbage"})) == "10.0.0.1"
    assert get_user_id(_request({})) == "10.0.0.1"


async def test_can_make_multiple_checkouts_in_tests(client, customer, restaurant, delivery_details):
    """Verify rate limiting doesn't interfere with tests."""
    # Checkout is normally limited to 10/minute
    for i in range(12):
        response = await client.post("/orders/checkout", json={
            "cartItems": [{"menuItemId": "B", "quantity": "1"}],
            "deliveryDetails": delivery_details,
            "restaurantId": restaurant.id,
        }, headers=auth_headers(customer))
        assert response.status_code == 201


@pytest.fixture
def enabled_limiter(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield limiter
    limiter.reset()


async def test_checkout_limited_per_minute_when_enabled(enabled_limiter, client, customer, stranger,
                                                        restaurant, delivery_details):
    body = {
        "cartItems": [{"menuItemId": "B", "quantity": "1"}],
        "deliveryDetails": delivery_details,
        "restaurantId": restaurant.id,
    }

    for _ in range(10):
        response = await client.post("/orders/checkout", json=body, headers=auth_headers(customer))
        assert response.status_code == 201

    blocked = await client.post("/orders/checkout", json=body, headers=auth_headers(customer))
    assert blocked.status_code == 429

    # Keyed per user, so another caller is unaffected
    other = await client.post("/orders/checkout", json=body, headers=auth_headers(stranger))
    assert other.status_code == 201
