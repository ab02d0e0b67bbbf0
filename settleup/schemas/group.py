from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict, Field

class GroupCreate(BaseModel):
    name: str = Field(min_length=1)
    members: List[int] = Field(default_factory=list)

class GroupMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    group_id: int
    user_id: int

class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_by: int
    created_at: datetime | None = None
    members: List[GroupMemberOut] = Field(default_factory=list)
