"""
Video generation for listings and insights.

Deal videos cost credits: the balance is checked up front but only debited
after the endpoint returned a video URL, so a failed generation costs
nothing and leaves the listing untouched. Insight videos are free.
"""
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session as DBSession

from homexrei.core.config import settings
from homexrei.core.errors import AuthorizationError, NotFoundError, UpstreamServiceError, ValidationError
from homexrei.models.deal import Deal
from homexrei.models.insight import Insight
from homexrei.models.user import User
from homexrei.services.credits.service import CreditLedgerService
from homexrei.services.video.client import VideoGenerationClient, VideoRequest, VideoResult
from homexrei.utils.metrics import video_generations_total

logger = logging.getLogger(__name__)


class VideoGenerationService:
    def __init__(self, db: DBSession, client: VideoGenerationClient | None = None):
        self.db = db
        self.client = client or VideoGenerationClient()
        self.ledger = CreditLedgerService(db)
        self.cost = settings.video_cost_credits

    def generate_deal_video(self, user: User, deal_id: str | None) -> dict[str, Any]:
        self.ledger.ensure_sufficient(user.id, self.cost)

        if not deal_id:
            raise ValidationError("dealId is required")
        deal = self.db.query(Deal).filter(Deal.id == deal_id).one_or_none()
        if not deal:
            raise NotFoundError("Deal not found")
        if deal.user_email != user.email and not user.is_admin:
            raise AuthorizationError("Unauthorized - not deal owner")
        if not deal.photo_urls:
            raise ValidationError("Deal must have at least one photo to generate video")

        request = VideoRequest(
            description=deal.description or deal.title,
            photos=list(deal.photo_urls),
            price=_price_str(deal.price),
            bedrooms=deal.bedrooms,
            bathrooms=deal.bathrooms,
            square_footage=deal.sqft,
        )
        # One debit per generation, even if the endpoint hands back a key it used before
        generation_id = uuid4().hex
        result = self._generate("deal", request, deal_id=deal.id)

        try:
            new_balance = self.ledger.debit(
                user.id,
                self.cost,
                reference=f"video:deal:{deal.id}:{generation_id}",
                reason="deal_video",
            )
            deal.video_url = result.video_url
            deal.video_generated_date = datetime.now(timezone.utc)
            self.db.add(deal)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "deal_video_generated",
            extra={"deal_id": deal.id, "user_id": user.id, "new_balance": str(new_balance)},
        )
        return {
            "success": True,
            "video_url": result.video_url,
            "video_key": result.video_key,
            "credits_remaining": float(new_balance),
            "message": "Video generated successfully!",
        }

    def generate_insight_video(self, user: User, insight_id: str | None) -> dict[str, Any]:
        if not insight_id:
            raise ValidationError("insightId is required")
        insight = self.db.query(Insight).filter(Insight.id == insight_id).one_or_none()
        if not insight:
            raise NotFoundError("Insight not found")
        if insight.created_by != user.email and not user.is_admin:
            raise AuthorizationError("Unauthorized - not insight owner")
        if not insight.photo_urls:
            raise ValidationError("Insight must have at least one photo to generate video")

        request = VideoRequest(description=insight.content or insight.title or "", photos=list(insight.photo_urls))
        result = self._generate("insight", request, insight_id=insight.id)

        try:
            insight.video_url = result.video_url
            insight.video_generated_date = datetime.now(timezone.utc)
            self.db.add(insight)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("insight_video_generated", extra={"insight_id": insight.id, "user_id": user.id})
        return {
            "success": True,
            "video_url": result.video_url,
            "video_key": result.video_key,
            "message": "Video generated successfully!",
        }

    def _generate(self, kind: str, request: VideoRequest, **log_extra: str) -> VideoResult:
        try:
            result = self.client.generate(request)
        except UpstreamServiceError as e:
            video_generations_total.labels(kind=kind, status="failed").inc()
            logger.error("video_generation_failed", extra={**log_extra, "error": e.message})
            raise
        video_generations_total.labels(kind=kind, status="success").inc()
        return result


def _price_str(price) -> str:
    value = float(price)
    return str(int(value)) if value.is_integer() else str(value)
