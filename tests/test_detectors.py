# SPDX-License-Identifier: Apache-2.0
"""Tests for field detectors."""

from __future__ import annotations

import asyncio
import base64
import os
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from pdf_form_filler.core.models import PageGeometry, PixelBox, RasterImage
from pdf_form_filler.detectors import (
    FALLBACK_FIELDS,
    AuthenticationError,
    DetectorError,
    FallbackDetector,
    FieldDetector,
    NoFieldsDetectedError,
    UpstreamError,
    fallback_fields,
    get_huggingface_detector,
)
from pdf_form_filler.detectors.huggingface import is_valid_credential

TOKEN = "hf_abc123XYZ"


def make_image(fmt: str = "jpeg") -> RasterImage:
    return RasterImage(
        data=b"\xff\xd8image-bytes",
        width=1224,
        height=1584,
        format=fmt,
        scale=2.0,
        page=PageGeometry(612, 792),
    )


def mock_session_for(
    status: int = 200, json_data: Any = None, text: str = ""
) -> MagicMock:
    """Session whose post() yields a response with the given status/body."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=json_data)
    mock_response.text = AsyncMock(return_value=text)

    mock_session = MagicMock()
    mock_session.post = MagicMock(return_value=AsyncMock())
    mock_session.post.return_value.__aenter__ = AsyncMock(return_value=mock_response)
    mock_session.post.return_value.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestFieldDetectorProtocol:
    """Test FieldDetector protocol."""

    def test_fallback_detector_implements_protocol(self) -> None:
        assert isinstance(FallbackDetector(), FieldDetector)

    def test_huggingface_detector_implements_protocol(self) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        assert isinstance(HuggingFaceDetector(), FieldDetector)
        assert HuggingFaceDetector().name == "huggingface"


class TestExceptions:
    """Test exception hierarchy."""

    def test_hierarchy(self) -> None:
        assert issubclass(AuthenticationError, DetectorError)
        assert issubclass(UpstreamError, DetectorError)
        assert issubclass(NoFieldsDetectedError, DetectorError)

    def test_upstream_status(self) -> None:
        assert UpstreamError("boom", status=503).status == 503
        assert UpstreamError("boom").status is None


class TestFallbackFields:
    """Tests for the fixed fallback layout."""

    def test_five_fields(self) -> None:
        fields = fallback_fields()
        assert [f.raw_label for f in fields] == [
            "first_name",
            "last_name",
            "phone",
            "address",
            "signature",
        ]
        assert fields[0].bbox == PixelBox(100, 150, 200, 170)
        assert fields[4].bbox == PixelBox(100, 400, 250, 450)
        assert all(f.confidence == 0.9 for f in fields)

    def test_fresh_copies(self) -> None:
        assert fallback_fields() is not fallback_fields()
        assert len(FALLBACK_FIELDS) == 5

    @pytest.mark.asyncio
    async def test_fallback_detector(self) -> None:
        result = await FallbackDetector().detect(make_image())
        assert result.was_fallback is True
        assert len(result.fields) == 5


class TestCredential:
    """Tests for credential validation."""

    @pytest.mark.parametrize("token", ["hf_abc", "hf_A1b2C3"])
    def test_valid(self, token: str) -> None:
        assert is_valid_credential(token)

    @pytest.mark.parametrize("token", [None, "", "hf_", "abc", "hf_abc-def", " hf_abc"])
    def test_invalid(self, token: str | None) -> None:
        assert not is_valid_credential(token)


class TestHuggingFaceDetectorUnit:
    """Unit tests for HuggingFaceDetector (mocked)."""

    def test_default_model_url(self) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector()
        assert detector.model_url.endswith("naver-clova-ix/donut-base-finetuned-cord-v2")

    def test_invalid_payload_mode(self) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        with pytest.raises(ValueError, match="payload"):
            HuggingFaceDetector(payload="multipart")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credential", [None, "", "sk-123", "hf_bad token"])
    async def test_bad_credential_fails_before_network(
        self, credential: str | None
    ) -> None:
        """No request is made for an absent or malformed credential."""
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector()
        mock_session = mock_session_for(json_data=[])
        detector._session = mock_session

        with pytest.raises(AuthenticationError):
            await detector.detect(make_image(), credential)
        mock_session.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_binary_payload(self) -> None:
        """Raw image bytes with Bearer and Accept headers."""
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector()
        detector._session = mock_session_for(
            json_data=[{"word": "first_name", "bbox": [1, 2, 3, 4]}]
        )

        result = await detector.detect(make_image(), TOKEN)

        assert result.was_fallback is False
        assert [f.raw_label for f in result.fields] == ["first_name"]
        _, kwargs = detector._session.post.call_args
        assert kwargs["data"] == make_image().data
        assert kwargs["headers"]["Authorization"] == f"Bearer {TOKEN}"
        assert kwargs["headers"]["Accept"] == "application/json"
        assert kwargs["headers"]["Content-Type"] == "image/jpeg"

    @pytest.mark.asyncio
    async def test_json_payload(self) -> None:
        """Base64 image wrapped in {"inputs": ...}."""
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector(payload="json")
        detector._session = mock_session_for(json_data={"phone": {"bbox": [1, 2, 3, 4]}})

        result = await detector.detect(make_image("png"), TOKEN)

        assert [f.raw_label for f in result.fields] == ["phone"]
        _, kwargs = detector._session.post.call_args
        assert kwargs["json"] == {
            "inputs": base64.b64encode(make_image().data).decode("ascii")
        }
        assert "data" not in kwargs

    @pytest.mark.asyncio
    async def test_empty_response_uses_fallback(self) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector()
        detector._session = mock_session_for(json_data=[{"word": "x"}])

        result = await detector.detect(make_image(), TOKEN)

        assert result.was_fallback is True
        assert len(result.fields) == 5

    @pytest.mark.asyncio
    async def test_empty_response_without_fallback(self) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector(use_fallback=False)
        detector._session = mock_session_for(json_data={})

        with pytest.raises(NoFieldsDetectedError):
            await detector.detect(make_image(), TOKEN)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 429, 500, 503])
    async def test_non_2xx_raises_upstream_error(self, status: int) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector()
        detector._session = mock_session_for(status=status, text="error body")

        with pytest.raises(UpstreamError) as exc_info:
            await detector.detect(make_image(), TOKEN)
        assert exc_info.value.status == status

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector()
        mock_session = MagicMock()
        mock_session.post = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        detector._session = mock_session

        with pytest.raises(UpstreamError) as exc_info:
            await detector.detect(make_image(), TOKEN)
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector(timeout=1.0)
        mock_session = MagicMock()
        mock_session.post = MagicMock(side_effect=asyncio.TimeoutError())
        detector._session = mock_session

        with pytest.raises(UpstreamError, match="timed out"):
            await detector.detect(make_image(), TOKEN)

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        HuggingFaceDetector = get_huggingface_detector()
        detector = HuggingFaceDetector()
        mock_session = MagicMock()
        mock_session.close = AsyncMock()
        detector._session = mock_session

        await detector.close()

        mock_session.close.assert_awaited_once()
        assert detector._session is None


@pytest.mark.skipif(
    os.environ.get("RUN_INTEGRATION") != "1" or not os.environ.get("HF_TOKEN"),
    reason="Set RUN_INTEGRATION=1 and HF_TOKEN to run integration tests",
)
class TestHuggingFaceDetectorIntegration:
    """Integration tests against the Hugging Face Inference API."""

    @pytest.mark.asyncio
    async def test_detect_real_page(self, letter_pdf: bytes) -> None:
        from pdf_form_filler.core.rasterizer import Rasterizer

        image = Rasterizer().rasterize(letter_pdf)
        HuggingFaceDetector = get_huggingface_detector()
        async with HuggingFaceDetector() as detector:
            try:
                result = await detector.detect(image, os.environ["HF_TOKEN"])
            except UpstreamError as e:
                pytest.skip(f"Inference API unavailable: {e}")
        assert result.fields
