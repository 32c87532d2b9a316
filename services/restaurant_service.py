from sqlalchemy.orm import Session
from models.restaurants import Restaurant
from core.exceptions import RestaurantNotFound


class RestaurantService:
    """Read-only view of restaurants and menus used by the order core."""

    @staticmethod
    def get_restaurant(db: Session, restaurant_id: str) -> Restaurant:
        restaurant = db.query(Restaurant).filter(Restaurant.id == restaurant_id).one_or_none()
        if not restaurant:
            raise RestaurantNotFound(restaurant_id=restaurant_id)
        return restaurant

    @staticmethod
    def get_owned_restaurant_ids(db: Session, user_id: str) -> list[str]:
        rows = db.query(Restaurant.id).filter(Restaurant.user_id == user_id).all()
        return [row.id for row in rows]
