from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator


class BookingCreate(BaseModel):
    check_in: date
    check_out: date
    guests: int = Field(1, ge=1)
    guest_name: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def check_range(self) -> "BookingCreate":
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class BookingResponse(BaseModel):
    id: str
    deal_id: str
    guest_email: str
    host_email: str
    check_in: date
    check_out: date
    guests: int
    nights: int
    total_price: float
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
