from datetime import date
from typing import ClassVar, Literal, Optional

from pydantic import Field

from utils.validation import MAX_MONEY, MAX_RATE, PartialUpdate, RequestModel

Frequency = Literal["weekly", "biweekly", "monthly"]


class GroupCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    location: str = Field(min_length=1, max_length=255)
    registration_number: Optional[str] = None
    meeting_frequency: Frequency = "monthly"
    max_members: int = Field(default=30, ge=1)
    saving_per_share: float = Field(ge=0, le=MAX_MONEY)
    cycle_months: int = Field(default=12, ge=1)
    interest_rate: float = Field(default=2.0, ge=0, le=MAX_RATE)
    welfare_amount: float = Field(default=0, ge=0, le=MAX_MONEY)
    main_activity: Optional[str] = None
    other_activities: Optional[str] = None
    registration_date: Optional[date] = None
    has_running_business: bool = False
    business_name: Optional[str] = None
    business_location: Optional[str] = None
    current_input: Optional[str] = None
    is_active: bool = True


class GroupUpdate(PartialUpdate):
    not_null: ClassVar[tuple] = (
        "name", "location", "meeting_frequency", "max_members", "saving_per_share", "cycle_months",
        "interest_rate", "welfare_amount", "registration_date", "has_running_business", "is_active",
    )

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    registration_number: Optional[str] = None
    meeting_frequency: Optional[Frequency] = None
    max_members: Optional[int] = Field(default=None, ge=1)
    saving_per_share: Optional[float] = Field(default=None, ge=0, le=MAX_MONEY)
    cycle_months: Optional[int] = Field(default=None, ge=1)
    interest_rate: Optional[float] = Field(default=None, ge=0, le=MAX_RATE)
    welfare_amount: Optional[float] = Field(default=None, ge=0, le=MAX_MONEY)
    main_activity: Optional[str] = None
    other_activities: Optional[str] = None
    registration_date: Optional[date] = None
    has_running_business: Optional[bool] = None
    business_name: Optional[str] = None
    business_location: Optional[str] = None
    current_input: Optional[str] = None
    is_active: Optional[bool] = None
