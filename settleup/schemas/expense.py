from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Largest value a Numeric(12, 2) money column holds
MAX_AMOUNT = Decimal("9999999999.99")


class SplitType(str, Enum):
    NONE = "none"
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


class SplitStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class Participant(BaseModel):
    """One participant of a split, after boundary normalization."""

    user_id: int
    percentage: Decimal | None = Field(default=None, max_digits=7, decimal_places=4)
    amount: Decimal | None = Field(default=None, le=MAX_AMOUNT)


class ComputedShare(BaseModel):
    user_id: int
    percentage: Decimal | None = None
    amount: Decimal | None = None
    final_share: Decimal


class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT)
    currency: str | None = Field(default=None, pattern=r"^[A-Za-z]{3}$")
    group_id: int | None = None
    split_type: SplitType = SplitType.NONE
    splits: List[Participant] = Field(default_factory=list)
    category: str = "other"
    notes: str = ""

    @field_validator("splits", mode="before")
    @classmethod
    def normalize_participants(cls, value):
        # Clients send either a bare user id or an object keyed by user/user_id
        if value is None:
            return []
        normalized = []
        for item in value:
            if isinstance(item, (int, str)):
                normalized.append({"user_id": item})
            elif isinstance(item, dict) and "user_id" not in item and "user" in item:
                item = dict(item)
                item["user_id"] = item.pop("user")
                normalized.append(item)
            else:
                normalized.append(item)
        return normalized


class SplitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    percentage: Decimal | None = None
    amount: Decimal | None = None
    final_share: Decimal
    status: SplitStatus


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount: Decimal
    currency: str
    paid_by: int
    group_id: int | None = None
    split_type: SplitType
    category: str
    notes: str
    created_at: datetime | None = None
    splits: List[SplitOut]
