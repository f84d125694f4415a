from datetime import date
from typing import ClassVar, Literal, Optional

from pydantic import Field

from users.schemas import MemberPin
from utils.validation import MAX_MONEY, PartialUpdate, RequestModel

GroupRole = Literal["member", "secretary", "finance", "chairman"]
Gender = Literal["M", "F"]


class MemberCreate(RequestModel):
    group_id: int
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    gender: Gender
    group_role: GroupRole = "member"
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    join_date: Optional[date] = None
    is_active: bool = True
    next_of_kin: Optional[str] = None
    pin: MemberPin

    # opening balances when a group moves onto the system mid-cycle
    savings_balance: float = Field(default=0, ge=0, le=MAX_MONEY)
    welfare_balance: float = Field(default=0, ge=0, le=MAX_MONEY)
    current_loan: float = Field(default=0, ge=0, le=MAX_MONEY)


class MemberUpdate(PartialUpdate):
    not_null: ClassVar[tuple] = ("first_name", "last_name", "gender", "group_role", "join_date", "is_active", "pin")

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    gender: Optional[Gender] = None
    group_role: Optional[GroupRole] = None
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    join_date: Optional[date] = None
    is_active: Optional[bool] = None
    next_of_kin: Optional[str] = None
    pin: Optional[MemberPin] = None


class SharesUpdate(RequestModel):
    shares: int = Field(ge=0)
