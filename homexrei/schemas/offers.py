from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class OfferCreate(BaseModel):
    buyer_name: str = Field(..., min_length=1)
    buyer_phone: str | None = None
    offer_amount: float = Field(..., gt=0)
    earnest_money_deposit: float = Field(0, ge=0)
    down_payment_percent: float = Field(0, ge=0, le=100)
    financing_type: str = "cash"
    closing_date: date | None = None
    expiration_date: date | None = None
    inspection_contingency: bool = False
    inspection_period_days: int | None = Field(None, ge=0)
    appraisal_contingency: bool = False
    financing_contingency: bool = False
    contingencies: list[str] = []
    additional_terms: str | None = None


class OfferRespond(BaseModel):
    status: Literal["accepted", "rejected", "countered"]
    message: str | None = None


class OfferResponse(BaseModel):
    id: str
    deal_id: str
    buyer_email: str
    seller_email: str
    offer_amount: float
    financing_type: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
