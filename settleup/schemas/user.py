from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field

class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    username: str = Field(min_length=3, max_length=32)
    email: EmailStr
    payment_address: str | None = None

class UserUpdate(BaseModel):
    name: str | None = None
    payment_address: str | None = None

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    username: str
    email: EmailStr
    payment_address: str | None = None
    created_at: datetime | None = None

class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    username: str
