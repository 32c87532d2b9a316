from core.database import SessionLocal
from typing import Annotated
from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from starlette import status
from core.config import settings
from services.identity_service import IdentityService
from services.payment_gateway import StripePaymentGateway
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


# Tokens are issued by the identity provider; this service only validates them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_current_user(token: Annotated[str, Depends(oauth2_scheme)], db: db_dependency):
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Could not validate credentials.")

    sub: str = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Could not validate credentials.")

    user = IdentityService.resolve_user(
        db,
        sub=sub,
        email=payload.get("email"),
        name=payload.get("name") or payload.get("nickname"),
    )

    return {"user_id": user.id, "sub": sub, "email": user.email}


user_dependency = Annotated[dict, Depends(get_current_user)]


def get_payment_gateway(request: Request) -> StripePaymentGateway:
    """The gateway is built once at startup and kept on app.state."""
    return request.app.state.payment_gateway


gateway_dependency = Annotated[StripePaymentGateway, Depends(get_payment_gateway)]
