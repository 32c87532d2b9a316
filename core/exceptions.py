"""
Domain errors raised by the order services.

Each error carries the HTTP status it maps to. The exception handler
registered in main.py turns them into JSON responses, so services never
build HTTP responses themselves.
"""

from starlette import status


class OrderServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Something went wrong"

    def __init__(self, detail: str | None = None, **context):
        self.detail = detail or self.detail
        self.context = context
        super().__init__(self.detail)


# 4xx: recovered at the controller boundary and returned to the client

class ValidationError(OrderServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"


class ItemNotFound(ValidationError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Menu item not found"


class InvalidStatusTransition(ValidationError):
    detail = "Invalid status transition"


class OrderStatusConflict(ValidationError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Order was modified concurrently, please retry"


class AuthorizationError(OrderServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Unauthorized"


class Unauthorized(AuthorizationError):
    pass


class NotFoundError(OrderServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class OrderNotFound(NotFoundError):
    detail = "Order not found"


class RestaurantNotFound(NotFoundError):
    detail = "Restaurant not found"


# Gateway and storage failures: logged with context, surfaced generically

class GatewayError(OrderServiceError):
    detail = "Payment provider error"


class InvalidSignature(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Webhook signature verification failed"


class SessionCreationFailed(GatewayError):
    detail = "Error creating payment session"


class StorageError(OrderServiceError):
    detail = "Storage error"
