from pydantic import BaseModel


class VideoGenerationResponse(BaseModel):
    success: bool
    video_url: str
    video_key: str | None = None
    credits_remaining: float | None = None
    message: str
