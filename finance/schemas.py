from datetime import datetime
from typing import ClassVar, Literal, Optional

from pydantic import Field

from utils.validation import MAX_MONEY, MAX_RATE, MAX_TERM_MONTHS, PartialUpdate, RequestModel

TransactionType = Literal["deposit", "withdrawal", "loan_payment", "loan_disbursement", "welfare_payment"]
LoanStatus = Literal["pending", "approved", "active", "completed", "defaulted"]


class TransactionCreate(RequestModel):
    group_id: int
    member_id: int
    type: TransactionType
    amount: float = Field(gt=0, le=MAX_MONEY)
    description: Optional[str] = None
    transaction_date: Optional[datetime] = None


class SubmitSavings(RequestModel):
    group_id: int
    member_id: int
    savings_amount: float = Field(default=0, ge=0, le=MAX_MONEY)
    welfare_amount: float = Field(default=0, ge=0, le=MAX_MONEY)
    submitted_by: str = Field(min_length=1)


class LoanPayment(RequestModel):
    group_id: int
    member_id: int
    amount: float = Field(gt=0, le=MAX_MONEY)
    processed_by: str = Field(min_length=1)


class LoanCreate(RequestModel):
    group_id: int
    member_id: int
    amount: float = Field(gt=0, le=MAX_MONEY)
    interest_rate: Optional[float] = Field(default=None, ge=0, le=MAX_RATE)
    term_months: Optional[int] = Field(default=None, ge=1, le=MAX_TERM_MONTHS)
    purpose: Optional[str] = None
    status: LoanStatus = "pending"


class LoanUpdate(PartialUpdate):
    not_null: ClassVar[tuple] = ("amount", "interest_rate", "term_months", "status")

    amount: Optional[float] = Field(default=None, gt=0, le=MAX_MONEY)
    interest_rate: Optional[float] = Field(default=None, ge=0, le=MAX_RATE)
    term_months: Optional[int] = Field(default=None, ge=1, le=MAX_TERM_MONTHS)
    purpose: Optional[str] = None
    status: Optional[LoanStatus] = None


class LoanCalculation(RequestModel):
    amount: float = Field(gt=0, le=MAX_MONEY)
    interest_rate: float = Field(ge=0, le=MAX_RATE)      # % per month, or % per year for "amortized"
    term_months: int = Field(ge=1, le=MAX_TERM_MONTHS)
    method: Literal["flat", "compound", "amortized"] = "flat"


class CashboxCreate(RequestModel):
    group_id: int
    amount: float = Field(gt=0, le=MAX_MONEY)
    transaction_type: Literal["deposit", "withdrawal"]
    description: Optional[str] = None
