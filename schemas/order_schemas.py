from datetime import datetime
from typing import Literal
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire format is camelCase; Python code uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CartItem(CamelModel):
    menu_item_id: str
    name: str | None = None
    # Clients send quantities as strings ("2"); lax mode parses them
    quantity: int = Field(gt=0)

    @field_validator('menu_item_id')
    @classmethod
    def validate_menu_item_id(cls, value):
        if not value or not value.strip():
            raise ValueError('Menu item id cannot be empty')
        return value.strip()


class DeliveryDetails(CamelModel):
    email: EmailStr
    name: str = Field(min_length=1)
    address_line1: str = Field(min_length=1)
    city: str = Field(min_length=1)


class CheckoutSessionRequest(CamelModel):
    cart_items: list[CartItem] = Field(min_length=1)
    delivery_details: DeliveryDetails
    restaurant_id: str


class CheckoutSessionResponse(BaseModel):
    url: str


FulfillmentStatus = Literal["placed", "paid", "inProgress", "outForDelivery", "delivered"]


class UpdateOrderStatusRequest(CamelModel):
    status: FulfillmentStatus


class OrderItemResponse(CamelModel):
    menu_item_id: str
    name: str
    quantity: int


class RestaurantSummary(CamelModel):
    id: str
    name: str
    city: str | None = None
    delivery_price: int
    user_id: str


class UserSummary(CamelModel):
    id: str
    email: str
    name: str


class OrderResponse(CamelModel):
    id: str
    status: FulfillmentStatus
    archived: bool
    total_amount: int | None = None
    # ORM rows expose "items"; re-validated responses carry "cartItems"
    cart_items: list[OrderItemResponse] = Field(
        validation_alias=AliasChoices("items", "cartItems"),
        serialization_alias="cartItems",
    )
    delivery_details: DeliveryDetails
    restaurant: RestaurantSummary
    user: UserSummary
    created_at: datetime
    updated_at: datetime


class OrderMessageResponse(BaseModel):
    message: str
    order: OrderResponse | None = None


class WebhookAck(BaseModel):
    received: bool = True
    handled: bool
    reason: str | None = None
