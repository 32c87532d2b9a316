from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models.users import User
from utils.logger import get_logger

logger = get_logger(__name__)


class IdentityService:

    @staticmethod
    def resolve_user(db: Session, sub: str, email: str | None = None, name: str | None = None) -> User:
        """
        Map a validated token subject to an internal user, creating the
        user on first sight.
        """
        user = db.query(User).filter(User.auth_sub == sub).one_or_none()
        if user:
            return user

        user = User(
            auth_sub=sub,
            email=email or "missing-email@example.com",
            name=name or "Unnamed User",
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Two first requests of the same user raced; the other one won
            db.rollback()
            return db.query(User).filter(User.auth_sub == sub).one()

        db.refresh(user)
        logger.info("User auto-provisioned", extra={"user_id": user.id})
        return user
