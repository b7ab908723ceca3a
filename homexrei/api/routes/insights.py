from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from homexrei.api.routes.deals import get_video_client
from homexrei.db.session import get_db
from homexrei.models.user import User
from homexrei.schemas.video import VideoGenerationResponse
from homexrei.services.auth.jwt import get_current_user
from homexrei.services.video.client import VideoGenerationClient
from homexrei.services.video.service import VideoGenerationService

router = APIRouter(prefix="/insights", tags=["insights"])


@router.post("/{insight_id}/video", response_model=VideoGenerationResponse)
def generate_insight_video(
    insight_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: VideoGenerationClient = Depends(get_video_client),
):
    return VideoGenerationService(db, client).generate_insight_video(user, insight_id)
