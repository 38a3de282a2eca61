"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date
from typing import Optional

from domain.ledger import count_nights


class DateRange(BaseModel):
    """Value Object for a half-open stay interval [check_in, check_out)"""
    check_in: date
    check_out: date

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return count_nights(self.check_in, self.check_out)

    def contains(self, day: date) -> bool:
        """Check if a night falls inside the stay"""
        return self.check_in <= day < self.check_out

    class Config:
        frozen = True


class GuestDetails(BaseModel):
    """Value Object for the guest's contact details"""
    guest_name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    phone: str = Field(min_length=10, max_length=20)
    guests_count: int = Field(ge=1, le=4)
    special_requests: Optional[str] = Field(default=None, max_length=500)

    class Config:
        frozen = True
