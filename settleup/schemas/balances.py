from decimal import Decimal
from typing import Dict, List
from pydantic import BaseModel

class TransferOut(BaseModel):
    from_id: int
    from_name: str | None = None
    to_id: int
    to_name: str | None = None
    amount: Decimal

class SettlementOut(BaseModel):
    scope: str
    net: Dict[int, Decimal]
    settlements: List[TransferOut]

class UserSettlementOut(BaseModel):
    scope: str
    user_id: int
    net_balance: Decimal
    settlements: List[TransferOut]
