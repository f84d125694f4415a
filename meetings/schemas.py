from datetime import datetime
from typing import ClassVar, List, Literal, Optional

from pydantic import Field

from utils.validation import MAX_MONEY, PartialUpdate, RequestModel

MeetingStatus = Literal["scheduled", "completed", "cancelled"]


class MeetingCreate(RequestModel):
    group_id: int
    date: datetime
    location: Optional[str] = None
    agenda: Optional[str] = None
    minutes: Optional[str] = None
    status: MeetingStatus = "scheduled"


class MeetingUpdate(PartialUpdate):
    not_null: ClassVar[tuple] = ("date", "status")

    date: Optional[datetime] = None
    location: Optional[str] = None
    agenda: Optional[str] = None
    minutes: Optional[str] = None
    attendees: Optional[List[int]] = None
    status: Optional[MeetingStatus] = None


class AttendanceRecord(RequestModel):
    member_id: int
    is_present: bool = True
    shares_purchased: int = Field(default=0, ge=0)
    welfare_payment: float = Field(default=0, ge=0, le=MAX_MONEY)
    loan_payment: float = Field(default=0, ge=0, le=MAX_MONEY)
    notes: Optional[str] = None


class AttendanceSheet(RequestModel):
    records: List[AttendanceRecord] = Field(min_length=1)
