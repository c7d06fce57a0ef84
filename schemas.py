from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from models import ExpenseType, PaymentMode

REMARKS_MAX_LENGTH = 500


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ORMModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _strip_or_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# ===== USERS =====
class SignupIn(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)
    branch: str = Field(..., min_length=1, max_length=100)

    @field_validator("full_name", "username", "branch", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class LoginIn(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value


class UserPublic(CamelModel):
    """What login and signup hand back: never the password hash."""

    id: int
    email: str
    username: str
    full_name: str


class UserProfile(ORMModel):
    id: int = Field(..., serialization_alias="_id")
    full_name: str
    username: str
    email: str
    branch: str
    created_at: datetime
    updated_at: datetime


class SessionUser(BaseModel):
    id: int
    iat: Optional[int] = None
    exp: Optional[int] = None


class AuthOut(BaseModel):
    message: str
    user: UserPublic


class ProfileOut(BaseModel):
    user: UserProfile


class SessionOut(BaseModel):
    message: str
    user: SessionUser


class MessageOut(BaseModel):
    message: str


# ===== EXPENSES =====
class ExpenseIn(CamelModel):
    """Fields accepted by both add and update; update replaces all of them."""

    date: Optional[datetime] = None
    branch: str = Field(..., min_length=1, max_length=100)
    expense_type: ExpenseType
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    mode_of_payment: PaymentMode
    payment_to: Optional[str] = None
    vehicle_number: Optional[str] = None
    remarks: Optional[str] = Field(None, max_length=REMARKS_MAX_LENGTH)

    @field_validator("date")
    @classmethod
    def naive_utc(cls, value):
        # stored naive, in UTC
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @field_validator("branch", mode="before")
    @classmethod
    def strip_branch(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("payment_to", "remarks", mode="before")
    @classmethod
    def strip_optional(cls, value):
        return _strip_or_none(value)

    @field_validator("vehicle_number", mode="before")
    @classmethod
    def normalize_vehicle_number(cls, value):
        value = _strip_or_none(value)
        return value.upper() if isinstance(value, str) else value


class ExpenseOut(ORMModel):
    id: int = Field(..., serialization_alias="_id")
    user_id: int
    date: datetime
    branch: str
    expense_type: ExpenseType
    amount: float
    mode_of_payment: PaymentMode
    payment_to: Optional[str] = None
    vehicle_number: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExpenseMessageOut(BaseModel):
    message: str
    expense: ExpenseOut


class ExpenseListOut(BaseModel):
    expenses: List[ExpenseOut]


# ===== REPORTS =====
class ReportFilters(CamelModel):
    branch: Optional[str] = None
    expense_type: Optional[ExpenseType] = None
    mode_of_payment: Optional[PaymentMode] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @field_validator("branch", mode="before")
    @classmethod
    def strip_branch(cls, value):
        return _strip_or_none(value)


class PeriodTotalsOut(CamelModel):
    total_today: float
    total_this_week: float
    total_this_month: float
    all_time_total: float
    change_today: float
    change_this_week: float
    change_this_month: float


class TypeTotal(CamelModel):
    expense_type: ExpenseType
    total: float


class DailyTotal(CamelModel):
    date: date
    total: float


class ReportOut(CamelModel):
    total_amount: float
    total_transactions: int
    average_expense: float
    highest_expense: float
    by_type: List[TypeTotal]
    daily_totals: List[DailyTotal]
    available: Dict[str, List[str]]
