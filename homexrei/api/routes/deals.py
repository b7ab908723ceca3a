from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from homexrei.core.errors import ConflictError, NotFoundError
from homexrei.db.session import get_db
from homexrei.models.deal import Deal
from homexrei.models.user import User
from homexrei.schemas.bookings import BookingCreate, BookingResponse
from homexrei.schemas.offers import OfferCreate, OfferResponse
from homexrei.schemas.video import VideoGenerationResponse
from homexrei.services.auth.jwt import get_current_user
from homexrei.services.bookings.service import BookingService
from homexrei.services.financing import FinancingBreakdown, breakdown_for_deal
from homexrei.services.offers.service import OfferService
from homexrei.services.video.client import VideoGenerationClient
from homexrei.services.video.service import VideoGenerationService

router = APIRouter(prefix="/deals", tags=["deals"])


def get_video_client() -> VideoGenerationClient:
    return VideoGenerationClient()


@router.get("/{deal_id}/financing", response_model=FinancingBreakdown)
def get_financing(deal_id: str, db: Session = Depends(get_db)):
    """Monthly cost breakdown of a listing's owner-financing terms."""
    deal = db.query(Deal).filter(Deal.id == deal_id).one_or_none()
    if not deal:
        raise NotFoundError("Deal not found")
    breakdown = breakdown_for_deal(deal)
    if breakdown is None:
        raise ConflictError("Owner financing is not available for this deal")
    return breakdown


@router.post("/{deal_id}/video", response_model=VideoGenerationResponse)
def generate_video(
    deal_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: VideoGenerationClient = Depends(get_video_client),
):
    """Generate a listing video for 1 credit, charged only when the video is ready."""
    return VideoGenerationService(db, client).generate_deal_video(user, deal_id)


@router.post("/{deal_id}/offers", response_model=OfferResponse, status_code=201)
def create_offer(
    deal_id: str,
    body: OfferCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return OfferService(db).create_offer(user, deal_id, body)


@router.post("/{deal_id}/bookings", response_model=BookingResponse, status_code=201)
def create_booking(
    deal_id: str,
    body: BookingCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BookingService(db).create_booking(user, deal_id, body)
