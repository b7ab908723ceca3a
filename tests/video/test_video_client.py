"""Tests for VideoGenerationClient against an httpx.MockTransport."""
import json

import httpx
import pytest

from homexrei.core.errors import UpstreamServiceError
from homexrei.services.video.client import VideoGenerationClient, VideoRequest


def _client(handler):
    return VideoGenerationClient(
        api_url="https://video.example.com/",
        transport=httpx.MockTransport(handler),
        use_breaker=False,
    )


def _request(**kwargs):
    fields = dict(
        description="Updated ranch home",
        photos=[f"https://cdn.example.com/{i}.jpg" for i in range(3)],
        price="450000",
        bedrooms=3,
        bathrooms=2.0,
        square_footage=1800,
    )
    fields.update(kwargs)
    return VideoRequest(**fields)


class TestPayload:
    def test_listing_payload(self):
        payload = _request().to_payload()
        assert payload["price"] == "450000"
        assert payload["squareFootage"] == 1800
        assert len(payload["photos"]) == 3

    def test_insight_payload_has_no_listing_fields(self):
        payload = VideoRequest(description="Market update", photos=["a.jpg"]).to_payload()
        assert set(payload) == {"description", "photos"}

    def test_photos_capped(self):
        photos = [f"{i}.jpg" for i in range(25)]
        assert len(_request(photos=photos).to_payload()["photos"]) == 10


class TestGenerate:
    def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "videoUrl": "https://cdn.example.com/v.mp4", "videoKey": "v/1"})

        result = _client(handler).generate(_request())

        assert result.video_url == "https://cdn.example.com/v.mp4"
        assert result.video_key == "v/1"
        assert seen["body"]["description"] == "Updated ranch home"

    def test_lambda_wrapped_body(self):
        body = json.dumps({"success": True, "videoUrl": "https://cdn.example.com/v.mp4"})

        def handler(request):
            return httpx.Response(200, json={"statusCode": 200, "body": body})

        assert _client(handler).generate(_request()).video_url == "https://cdn.example.com/v.mp4"

    def test_http_error(self):
        def handler(request):
            return httpx.Response(502, text="upstream timeout")

        with pytest.raises(UpstreamServiceError) as exc:
            _client(handler).generate(_request())
        assert exc.value.message == "Video generation failed: Bad Gateway"
        assert exc.value.details == "upstream timeout"

    def test_no_video_url(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "error": "render failed"})

        with pytest.raises(UpstreamServiceError):
            _client(handler).generate(_request())

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamServiceError):
            _client(handler).generate(_request())
