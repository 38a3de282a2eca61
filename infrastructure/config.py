"""Application configuration read from the environment (and an optional .env)"""
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from domain.enums import OverpaymentPolicy

load_dotenv()


class Settings(BaseModel):
    """Runtime settings"""
    room_capacity: int = Field(ge=1, default=4)
    overpayment_policy: OverpaymentPolicy = OverpaymentPolicy.FLAG
    currency: str = "USD"
    reporting_window_days: int = Field(ge=1, default=30)
    max_stay_nights: int = Field(ge=1, default=365)
    max_range_days: int = Field(ge=1, default=366)

    # Auth
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    staff_username: str = "admin"
    staff_password: str = "admin123"

    log_level: str = "INFO"

    class Config:
        frozen = True


@lru_cache()
def get_settings() -> Settings:
    """Build settings once from environment variables"""
    env = {
        "room_capacity": os.getenv("ROOM_CAPACITY"),
        "overpayment_policy": os.getenv("OVERPAYMENT_POLICY"),
        "currency": os.getenv("CURRENCY"),
        "reporting_window_days": os.getenv("REPORTING_WINDOW_DAYS"),
        "max_stay_nights": os.getenv("MAX_STAY_NIGHTS"),
        "max_range_days": os.getenv("MAX_RANGE_DAYS"),
        "secret_key": os.getenv("SECRET_KEY"),
        "algorithm": os.getenv("ALGORITHM"),
        "access_token_expire_minutes": os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES"),
        "staff_username": os.getenv("STAFF_USERNAME"),
        "staff_password": os.getenv("STAFF_PASSWORD"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    return Settings(**{key: value for key, value in env.items() if value})
