"""API Dependencies - Staff authentication"""
from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from domain.auth import StaffUser, StaffUserInDB
from infrastructure.config import get_settings
from infrastructure.security import decode_access_token, get_password_hash, verify_password

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

STAFF_USER_ID = UUID("123e4567-e89b-12d3-a456-426614174000")


@lru_cache()
def get_staff_account() -> StaffUserInDB:
    """Front desk account from configuration, hashed on first use"""
    settings = get_settings()
    return StaffUserInDB(
        user_id=STAFF_USER_ID,
        username=settings.staff_username,
        full_name="Front Desk",
        hashed_password=get_password_hash(settings.staff_password)
    )


def authenticate_staff(username: str, password: str) -> Optional[StaffUserInDB]:
    account = get_staff_account()
    if username != account.username or not verify_password(password, account.hashed_password):
        return None
    return account


async def get_current_staff(token: str = Depends(oauth2_scheme)) -> StaffUser:
    account = get_staff_account()
    if decode_access_token(token) != account.username:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return account
