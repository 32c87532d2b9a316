import hashlib
import hmac
import json
import time
from jose import jwt
from core.config import settings
from core.exceptions import SessionCreationFailed
from models import User
from services.payment_gateway import StripePaymentGateway


class FakePaymentGateway(StripePaymentGateway):
    """
    Records sessions instead of calling Stripe. Webhook verification is
    inherited unchanged, so tests sign payloads with the real scheme.
    """

    def __init__(self):
        super().__init__(
            api_key=settings.STRIPE_API_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            frontend_url=settings.FRONTEND_URL,
            currency=settings.PAYMENT_CURRENCY,
        )
        self.sessions = []
        self.fail = False

    def create_session(self, line_items, order_id, restaurant_id, delivery_fee):
        if self.fail:
            raise SessionCreationFailed(order_id=order_id)
        amount_total = sum(item.unit_amount * item.quantity for item in line_items) + delivery_fee
        self.sessions.append({
            "order_id": order_id,
            "restaurant_id": restaurant_id,
            "line_items": list(line_items),
            "delivery_fee": delivery_fee,
            "amount_total": amount_total,
        })
        return f"https://checkout.stripe.test/pay/{order_id}"


def sign_payload(payload: bytes, secret: str | None = None, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header value for ``payload``."""
    secret = secret or settings.STRIPE_WEBHOOK_SECRET
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_completed_payload(order_id: str | None, amount_total: int | None, event_id: str = "evt_test_1",
                               event_type: str = "checkout.session.completed") -> bytes:
    metadata = {"restaurant_id": "R1"}
    if order_id is not None:
        metadata["order_id"] = order_id
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": "cs_test_1",
                "amount_total": amount_total,
                "metadata": metadata,
            }
        },
    }).encode("utf-8")


def auth_headers(user: User) -> dict:
    token = jwt.encode(
        {"sub": user.auth_sub, "email": user.email, "name": user.name},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return {"Authorization": f"Bearer {token}"}
