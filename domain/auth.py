"""Domain Entities - Staff accounts"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional


class StaffUser(BaseModel):
    """Guest house staff member allowed into the admin endpoints"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    full_name: Optional[str] = None


class StaffUserInDB(StaffUser):
    hashed_password: str
