from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from homexrei.db.session import get_db
from homexrei.models.user import User
from homexrei.schemas.offers import OfferRespond, OfferResponse
from homexrei.services.auth.jwt import get_current_user
from homexrei.services.offers.service import OfferService

router = APIRouter(prefix="/offers", tags=["offers"])


@router.post("/{offer_id}/respond", response_model=OfferResponse)
def respond_to_offer(
    offer_id: str,
    body: OfferRespond,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return OfferService(db).respond(user, offer_id, body.status, body.message)
