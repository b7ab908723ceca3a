"""
Stripe payments: checkout creation, client-side verification, webhooks.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from homexrei.db.session import get_db
from homexrei.models.user import User
from homexrei.schemas.payments import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    ConfirmPaymentRequest,
    PaymentIntentRequest,
    PaymentIntentResponse,
    ReconciliationResponse,
    VerifyPaymentRequest,
)
from homexrei.services.auth.jwt import get_current_user
from homexrei.services.payments.provider import StripeGateway
from homexrei.services.payments.service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


def get_gateway() -> StripeGateway:
    return StripeGateway()


def get_payment_service(db: Session = Depends(get_db), gateway: StripeGateway = Depends(get_gateway)) -> PaymentService:
    return PaymentService(db, gateway)


@router.post("/checkout-session", response_model=CheckoutSessionResponse)
def create_checkout_session(
    body: CheckoutSessionRequest,
    request: Request,
    user: User = Depends(get_current_user),
    svc: PaymentService = Depends(get_payment_service),
):
    """Hosted checkout for credits, or for lead invoices when invoiceIds is given. Amount in cents."""
    return svc.create_checkout_session(
        user,
        body.amount,
        invoice_ids=body.invoice_ids,
        origin=request.headers.get("origin"),
    )


@router.post("/payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    body: PaymentIntentRequest,
    user: User = Depends(get_current_user),
    svc: PaymentService = Depends(get_payment_service),
):
    return svc.create_payment_intent(user, body.amount)


@router.post("/verify", response_model=ReconciliationResponse, response_model_exclude_none=True)
def verify_payment(
    body: VerifyPaymentRequest,
    user: User = Depends(get_current_user),
    svc: PaymentService = Depends(get_payment_service),
):
    """Apply a paid checkout session. Unpaid sessions answer 200 with success=false."""
    return svc.verify_checkout_session(user, body.session_id)


@router.post("/confirm", response_model=ReconciliationResponse, response_model_exclude_none=True)
def confirm_payment(
    body: ConfirmPaymentRequest,
    user: User = Depends(get_current_user),
    svc: PaymentService = Depends(get_payment_service),
):
    return svc.confirm_payment_intent(user, body.payment_intent_id)


@router.post("/webhook")
async def stripe_webhook(request: Request, svc: PaymentService = Depends(get_payment_service)) -> dict:
    payload = await request.body()
    return svc.handle_webhook(payload, request.headers.get("stripe-signature"))
