from datetime import datetime

from pydantic import BaseModel, Field


class LeadChargeResponse(BaseModel):
    id: str
    provider_email: str
    project_title: str | None = None
    property_address: str | None = None
    lead_amount: float
    status: str
    payment_date: datetime | None = None
    payment_method: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LeadChargeSummary(BaseModel):
    pending_count: int
    pending_total: float
    paid_count: int
    paid_total: float
    disputed_count: int


class ProviderContactRequest(BaseModel):
    provider_email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    provider_name: str | None = None
    project_title: str = Field(..., min_length=1)
    property_address: str | None = None
    message: str | None = None
