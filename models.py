import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from database import Base


class ExpenseType(str, enum.Enum):
    LOGISTIC_COST = "Logistic Cost"
    STAFF_WELFARE = "Staff Welfare"
    LABOUR = "Labour"
    TRANSPORTATION = "Transportation"
    MISCELLANEOUS = "Miscellaneous"


class PaymentMode(str, enum.Enum):
    CASH = "Cash"
    ONLINE = "Online"
    UPI = "UPI"
    CHEQUE = "Cheque"
    CARD = "Card"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(150), unique=True, index=True, nullable=False)
    # NULL for accounts provisioned through an external identity provider
    hashed_password = Column(String(255), nullable=True)
    branch = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    expenses = relationship("Expense", back_populates="user", cascade="all, delete-orphan")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    branch = Column(String(100), nullable=False, index=True)
    expense_type = Column(
        Enum(ExpenseType, values_callable=_enum_values, native_enum=False, length=32),
        nullable=False,
        index=True,
    )
    amount = Column(Float, nullable=False)
    mode_of_payment = Column(
        Enum(PaymentMode, values_callable=_enum_values, native_enum=False, length=16),
        nullable=False,
        index=True,
    )
    payment_to = Column(Text, nullable=True)
    vehicle_number = Column(Text, nullable=True)
    remarks = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="expenses")
