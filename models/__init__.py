from models.users import User
from models.restaurants import Restaurant
from models.menu_items import MenuItem
from models.orders import Order, ORDER_STATUSES
from models.order_items import OrderItem
from models.scheduled_tasks import ScheduledTask
from models.webhook_events import ProcessedWebhookEvent

__all__ = ["User", "Restaurant", "MenuItem", "Order", "ORDER_STATUSES", "OrderItem", "ScheduledTask", "ProcessedWebhookEvent"]
