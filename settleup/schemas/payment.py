from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Literal
from pydantic import BaseModel, ConfigDict, Field


class PaymentMethod(str, Enum):
    UPI = "upi"
    CASH = "cash"
    MANUAL = "manual"


class PaymentStatus(str, Enum):
    CREATED = "created"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class CombinedPaymentCreate(BaseModel):
    payee_id: int
    expense_ids: List[int] = Field(min_length=1)
    method: PaymentMethod = PaymentMethod.UPI
    note: str = ""


class PaymentProof(BaseModel):
    transaction_id: str = Field(min_length=1)
    screenshot_url: str | None = None


class PaymentDecision(BaseModel):
    action: Literal["confirm", "reject"]


class MoneyRequestCreate(BaseModel):
    to_user_id: int
    group_id: int | None = None
    note: str | None = None


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    payer_id: int
    payee_id: int
    group_id: int | None = None
    amount: Decimal
    currency: str
    method: PaymentMethod
    status: PaymentStatus
    related_expenses: List[int]
    transaction_id: str | None = None
    screenshot_url: str | None = None
    note: str
    created_at: datetime | None = None
    confirmed_at: datetime | None = None


class PaymentIntentOut(BaseModel):
    """What an external renderer needs to build a payment intent or QR code."""

    payment: PaymentOut
    payee_name: str
    payment_address: str | None = None
