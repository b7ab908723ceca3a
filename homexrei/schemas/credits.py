from datetime import datetime

from pydantic import BaseModel, field_serializer


class CreditBalance(BaseModel):
    user_id: str
    credits: float


class CreditLedgerItem(BaseModel):
    id: str
    operation: str
    amount: float
    balance_after: float
    reference: str
    reason: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("amount", "balance_after")
    def _round(self, value: float) -> float:
        return round(float(value), 2)
