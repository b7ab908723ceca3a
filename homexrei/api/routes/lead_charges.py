from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from homexrei.db.session import get_db
from homexrei.models.user import User
from homexrei.schemas.lead_charges import LeadChargeResponse, LeadChargeSummary, ProviderContactRequest
from homexrei.services.auth.jwt import get_current_user
from homexrei.services.lead_charges.service import LeadChargeService

router = APIRouter(prefix="/lead-charges", tags=["lead-charges"])


@router.get("", response_model=list[LeadChargeResponse])
def list_lead_charges(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Invoices billed to the current provider, newest first."""
    return LeadChargeService(db).list_for_provider(user.email)


@router.get("/summary", response_model=LeadChargeSummary)
def lead_charge_summary(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return LeadChargeService(db).summary(user.email)


@router.post("/contact", response_model=LeadChargeResponse, status_code=201)
def contact_provider(
    data: ProviderContactRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Send a project request to a provider; the provider is billed for the lead."""
    return LeadChargeService(db).contact_provider(user, data)


@router.post("/{charge_id}/dispute", response_model=LeadChargeResponse)
def dispute_lead_charge(charge_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return LeadChargeService(db).dispute(user, charge_id)
