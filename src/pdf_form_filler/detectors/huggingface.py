# SPDX-License-Identifier: Apache-2.0
"""Hugging Face Inference API field detector."""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from typing import TYPE_CHECKING, Any, Optional

from pdf_form_filler.core.models import DetectionResult, RasterImage
from pdf_form_filler.detectors.base import (
    AuthenticationError,
    UpstreamError,
    finalize_detection,
)
from pdf_form_filler.detectors.responses import decode_detection_response

if TYPE_CHECKING:
    import aiohttp

logger = logging.getLogger(__name__)

CREDENTIAL_PATTERN = re.compile(r"^hf_[A-Za-z0-9]+$")

PAYLOAD_MODES = ("binary", "json")


def is_valid_credential(credential: Optional[str]) -> bool:
    """Whether ``credential`` looks like a Hugging Face access token."""
    return bool(credential) and CREDENTIAL_PATTERN.fullmatch(credential or "") is not None


class HuggingFaceDetector:
    """Field detector backed by a document-understanding model.

    Posts the page image to the Hugging Face Inference API and decodes the
    labeled boxes it returns. No retries are attempted.

    Attributes:
        name: Detector identifier ("huggingface").
    """

    DEFAULT_MODEL_URL = (
        "https://api-inference.huggingface.co/models/"
        "naver-clova-ix/donut-base-finetuned-cord-v2"
    )
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        model_url: str | None = None,
        payload: str = "binary",
        timeout: float = DEFAULT_TIMEOUT,
        use_fallback: bool = True,
    ) -> None:
        """Initialize HuggingFaceDetector.

        Args:
            model_url: Inference endpoint (default: Donut fine-tuned on CORD).
            payload: "binary" posts raw image bytes; "json" posts
                ``{"inputs": <base64 image>}``.
            timeout: Total request timeout in seconds.
            use_fallback: Substitute the fallback field set when the
                response contains no usable fields.

        Raises:
            ValueError: If payload mode or timeout is invalid.
        """
        if payload not in PAYLOAD_MODES:
            raise ValueError(
                f"Unsupported payload mode: {payload!r} (expected one of {PAYLOAD_MODES})"
            )
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        import aiohttp as _aiohttp

        self._aiohttp = _aiohttp
        self._model_url = model_url or self.DEFAULT_MODEL_URL
        self._payload = payload
        self._timeout = timeout
        self._use_fallback = use_fallback
        self._session: aiohttp.ClientSession | None = None

    @property
    def name(self) -> str:
        """Return detector name."""
        return "huggingface"

    @property
    def model_url(self) -> str:
        return self._model_url

    async def __aenter__(self) -> HuggingFaceDetector:
        """Enter async context manager."""
        if self._session is None:
            self._session = self._new_session()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager."""
        await self.close()

    def _new_session(self) -> aiohttp.ClientSession:
        return self._aiohttp.ClientSession(
            timeout=self._aiohttp.ClientTimeout(total=self._timeout)
        )

    async def detect(
        self,
        image: RasterImage,
        credential: Optional[str] = None,
    ) -> DetectionResult:
        """Detect labeled fields on ``image``.

        Raises:
            AuthenticationError: Credential absent or malformed (no request is made).
            UpstreamError: Non-2xx status, network failure or timeout.
            NoFieldsDetectedError: Nothing usable and fallback disabled.
        """
        if not is_valid_credential(credential):
            raise AuthenticationError(
                "A Hugging Face access token (hf_...) is required for field detection"
            )

        payload = await self._post(image, credential or "")
        fields = decode_detection_response(payload)
        return finalize_detection(fields, self._use_fallback, self.name)

    async def _post(self, image: RasterImage, credential: str) -> Any:
        if self._session is not None:
            return await self._request(self._session, image, credential)
        # One-shot session outside of "async with detector"
        async with self._new_session() as session:
            return await self._request(session, image, credential)

    async def _request(
        self, session: aiohttp.ClientSession, image: RasterImage, credential: str
    ) -> Any:
        headers = {
            "Authorization": f"Bearer {credential}",
            "Accept": "application/json",
        }
        kwargs: dict[str, Any]
        if self._payload == "json":
            kwargs = {"json": {"inputs": base64.b64encode(image.data).decode("ascii")}}
        else:
            headers["Content-Type"] = image.content_type
            kwargs = {"data": image.data}

        logger.debug(
            "POST %s (%s payload, %d image bytes)",
            self._model_url,
            self._payload,
            len(image.data),
        )
        try:
            async with session.post(self._model_url, headers=headers, **kwargs) as response:
                if 200 <= response.status < 300:
                    try:
                        data = await response.json(content_type=None)
                    except ValueError as e:
                        raise UpstreamError(
                            f"Detection service returned invalid JSON: {e}",
                            status=response.status,
                        ) from e
                    return data
                elif response.status in (401, 403):
                    raise UpstreamError(
                        f"Detection service rejected the credential (status {response.status})",
                        status=response.status,
                    )
                elif response.status == 503:
                    raise UpstreamError(
                        "Detection model is unavailable or still loading (status 503)",
                        status=response.status,
                    )
                else:
                    error_text = await response.text()
                    raise UpstreamError(
                        f"Detection service error (status {response.status}): "
                        f"{error_text[:200]}",
                        status=response.status,
                    )
        except asyncio.TimeoutError as e:
            raise UpstreamError(
                f"Detection request timed out after {self._timeout:g}s"
            ) from e
        except self._aiohttp.ClientError as e:
            raise UpstreamError(f"Detection request failed: {e}") from e

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
