from pydantic import BaseModel, Field


class CheckoutSessionRequest(BaseModel):
    amount: int | None = Field(None, description="Amount in cents")
    invoice_ids: list[str] | None = Field(None, alias="invoiceIds")

    model_config = {"populate_by_name": True}


class CheckoutSessionResponse(BaseModel):
    url: str
    session_id: str


class PaymentIntentRequest(BaseModel):
    amount: int | None = Field(None, description="Amount in cents")


class PaymentIntentResponse(BaseModel):
    client_secret: str


class VerifyPaymentRequest(BaseModel):
    session_id: str | None = Field(None, alias="sessionId")

    model_config = {"populate_by_name": True}


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str | None = Field(None, alias="paymentIntentId")

    model_config = {"populate_by_name": True}


class ReconciliationResponse(BaseModel):
    success: bool
    payment_type: str
    credits_added: float = 0
    new_balance: float | None = None
    invoices_paid: int = 0
    invoice_ids: list[str] | None = None
    message: str
    already_processed: bool = False
