from typing import Literal
from pydantic_settings import BaseSettings
from pydantic import ConfigDict

class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env")

    ENV: str = "development"

    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    STRIPE_API_KEY: str
    STRIPE_WEBHOOK_SECRET: str
    FRONTEND_URL: str = "http://localhost:5174"
    PAYMENT_CURRENCY: str = "mxn"
    # Retirement of delivered orders: one action, one window
    ORDER_RETIREMENT_ACTION: Literal["archive", "delete"] = "archive"
    ORDER_RETENTION_SECONDS: int = 86400
    DELIVERED_DISPLAY_SECONDS: int = 7
    ARCHIVAL_SWEEP_INTERVAL_SECONDS: int = 60
    ARCHIVAL_SCHEDULER_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    CORS_ORIGINS: list[str] = ["http://localhost:5174"]


settings = Settings()
