"""
Boundary to the payment provider (Stripe).

One instance is created at startup with its credentials and handed to
the routes through a dependency. Nothing else in the codebase imports
stripe.
"""

from dataclasses import dataclass
from typing import Sequence
import stripe
from core.config import Settings
from core.exceptions import InvalidSignature, SessionCreationFailed
from services.checkout_builder import LineItem
from utils.logger import get_logger

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class PaymentEvent:
    event_id: str
    kind: str
    order_id: str | None
    amount_total: int | None


class StripePaymentGateway:

    def __init__(self, api_key: str, webhook_secret: str, frontend_url: str, currency: str = "mxn"):
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self.frontend_url = frontend_url.rstrip("/")
        self.currency = currency

    @classmethod
    def from_settings(cls, settings: Settings) -> "StripePaymentGateway":
        return cls(
            api_key=settings.STRIPE_API_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            frontend_url=settings.FRONTEND_URL,
            currency=settings.PAYMENT_CURRENCY,
        )

    def _line_item_params(self, line_items: Sequence[LineItem]) -> list[dict]:
        return [
            {
                "price_data": {
                    "currency": self.currency,
                    "unit_amount": item.unit_amount,
                    "product_data": {"name": item.name},
                },
                "quantity": item.quantity,
            }
            for item in line_items
        ]

    def create_session(self, line_items: Sequence[LineItem], order_id: str, restaurant_id: str, delivery_fee: int) -> str:
        """
        Create a hosted checkout session and return its URL.

        The delivery fee is charged as a fixed-amount shipping option, so
        the provider's ``amount_total`` is items plus delivery.

        Raises:
            SessionCreationFailed: provider error or a session without URL
        """
        try:
            session = stripe.checkout.Session.create(
                api_key=self._api_key,
                line_items=self._line_item_params(line_items),
                shipping_options=[
                    {
                        "shipping_rate_data": {
                            "display_name": "Delivery",
                            "type": "fixed_amount",
                            "fixed_amount": {
                                "amount": delivery_fee,
                                "currency": self.currency,
                            },
                        },
                    },
                ],
                mode="payment",
                metadata={
                    "order_id": order_id,
                    "restaurant_id": restaurant_id,
                },
                success_url=f"{self.frontend_url}/order-status?success=true",
                cancel_url=f"{self.frontend_url}/detail/{restaurant_id}?cancelled=true",
            )
        except stripe.StripeError as e:
            logger.error(
                f"Stripe session creation failed: {str(e)}",
                extra={
                    "order_id": order_id,
                    "restaurant_id": restaurant_id,
                    "error_type": type(e).__name__,
                },
                exc_info=True
            )
            raise SessionCreationFailed(order_id=order_id) from e

        url = getattr(session, "url", None)
        if not url:
            logger.error("Stripe session created without URL", extra={"order_id": order_id})
            raise SessionCreationFailed(order_id=order_id)

        return url

    def verify_and_parse_webhook(self, raw_payload: bytes, signature: str | None) -> PaymentEvent:
        """
        Verify a webhook delivery and extract what the order core needs.

        ``raw_payload`` must be the request body exactly as received; the
        signature is computed over those bytes.

        Raises:
            InvalidSignature: missing/bad signature or unparseable payload
        """
        if not signature:
            raise InvalidSignature("Missing webhook signature")

        try:
            event = stripe.Webhook.construct_event(raw_payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise InvalidSignature(f"Webhook error: {str(e)}") from e
        except ValueError as e:
            raise InvalidSignature("Webhook error: invalid payload") from e

        return self.event_from_payload(event)

    @staticmethod
    def event_from_payload(event) -> PaymentEvent:
        """
        Map a provider event onto a PaymentEvent.

        Works for plain dicts and for ``stripe.StripeObject``, which only
        supports ``[]`` and ``in`` (it is not a dict on current releases).
        """
        data_object = event["data"]["object"]
        metadata = _field(data_object, "metadata")
        amount_total = _field(data_object, "amount_total")

        return PaymentEvent(
            event_id=event["id"],
            kind=event["type"],
            order_id=_field(metadata, "order_id"),
            amount_total=int(amount_total) if amount_total is not None else None,
        )


def _field(obj, key: str):
    if obj is None or key not in obj:
        return None
    return obj[key]
