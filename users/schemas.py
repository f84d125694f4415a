from typing import Annotated, ClassVar, List, Literal, Optional

from pydantic import Field, model_validator

from utils.validation import PartialUpdate, RequestModel

StaffPin = Annotated[str, Field(pattern=r"^\d{6}$")]
MemberPin = Annotated[str, Field(pattern=r"^\d{4,6}$")]
StaffRole = Literal["admin", "field_monitor", "field_attendant"]


class LoginRequest(RequestModel):
    phone_or_user_id: str = Field(min_length=1)
    pin: StaffPin


class BarcodeLogin(RequestModel):
    barcode_data: str = Field(min_length=1)


class StaffLogin(RequestModel):
    user_id: Optional[str] = None
    phone: Optional[str] = None
    pin: str = Field(min_length=1)

    @model_validator(mode="after")
    def identifier_given(self):
        if not self.user_id and not self.phone:
            raise ValueError("Either User ID or phone number is required, along with PIN")
        return self


class MemberLogin(RequestModel):
    phone: str = Field(min_length=1)
    pin: str = Field(min_length=1)


class UserCreate(RequestModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=3, max_length=20)
    email: Optional[str] = None
    pin: StaffPin
    role: StaffRole = "field_attendant"
    location: Optional[str] = None
    user_id: Optional[str] = Field(default=None, pattern=r"^TD\d{6}$")
    assigned_groups: Optional[List[int]] = None
    profile_image_url: Optional[str] = None


class UserUpdate(PartialUpdate):
    not_null: ClassVar[tuple] = ("first_name", "last_name", "phone", "pin", "role", "is_active")

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, min_length=3, max_length=20)
    email: Optional[str] = None
    pin: Optional[StaffPin] = None
    role: Optional[StaffRole] = None
    location: Optional[str] = None
    is_active: Optional[bool] = None
    assigned_groups: Optional[List[int]] = None
    profile_image_url: Optional[str] = None
