"""
HTTP client for the property video-generation endpoint (AWS Lambda URL).
One POST per video, no retries; repeated failures open the circuit breaker.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
import pybreaker
import redis

from homexrei.core.config import settings
from homexrei.core.errors import UpstreamServiceError
from homexrei.services.circuit_breaker import get_circuit_breaker
from homexrei.utils.metrics import video_generation_duration_seconds

logger = logging.getLogger(__name__)

VIDEO_BREAKER = "video_generation"


@dataclass
class VideoRequest:
    """Payload for the endpoint; photos are capped at video_max_photos."""
    description: str
    photos: list[str]
    price: str | None = None
    bedrooms: int | float | None = None
    bathrooms: int | float | None = None
    square_footage: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"description": self.description}
        if self.price is not None:
            payload["price"] = self.price
            payload["bedrooms"] = self.bedrooms or 0
            payload["bathrooms"] = self.bathrooms or 0
            payload["squareFootage"] = self.square_footage or 0
        payload["photos"] = self.photos[: settings.video_max_photos]
        return payload


@dataclass
class VideoResult:
    video_url: str
    video_key: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class VideoGenerationClient:
    def __init__(
        self,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        use_breaker: bool = True,
    ) -> None:
        self.api_url = api_url or settings.video_api_url
        self.timeout = timeout if timeout is not None else settings.video_api_timeout
        self.transport = transport
        self.use_breaker = use_breaker

    def generate(self, request: VideoRequest) -> VideoResult:
        payload = request.to_payload()
        logger.info("video_generation_requested", extra={"amount": len(payload["photos"])})
        try:
            if self.use_breaker:
                data = get_circuit_breaker(VIDEO_BREAKER).call(self._post, payload)
            else:
                data = self._post(payload)
        except pybreaker.CircuitBreakerError:
            raise UpstreamServiceError("Video generation temporarily unavailable, please retry later")
        except redis.RedisError as e:
            logger.error("circuit_breaker_storage_error", extra={"error": str(e)})
            raise UpstreamServiceError("Video generation temporarily unavailable, please retry later", details=str(e))
        return self._parse(data)

    def _post(self, payload: dict[str, Any]) -> Any:
        try:
            with video_generation_duration_seconds.time():
                with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                    response = client.post(self.api_url, json=payload)
        except httpx.HTTPError as e:
            logger.error("video_api_transport_error", extra={"error": str(e)})
            raise UpstreamServiceError("Video generation failed", details=str(e))

        if response.is_error:
            logger.error(
                "video_api_error",
                extra={"status_code": response.status_code, "error": response.text[:500]},
            )
            raise UpstreamServiceError(
                f"Video generation failed: {response.reason_phrase}",
                details=response.text,
            )
        try:
            return response.json()
        except ValueError:
            raise UpstreamServiceError("Video generation failed", details=response.text)

    @staticmethod
    def _parse(data: Any) -> VideoResult:
        # Lambda URLs may wrap the result as {"statusCode": ..., "body": "<json>"}
        if isinstance(data, dict) and isinstance(data.get("body"), str):
            try:
                data = json.loads(data["body"])
            except ValueError:
                raise UpstreamServiceError("Video generation failed", details=data)

        if not isinstance(data, dict) or not data.get("success") or not data.get("videoUrl"):
            raise UpstreamServiceError("Video generation failed", details=data)
        return VideoResult(video_url=data["videoUrl"], video_key=data.get("videoKey"), raw=data)
