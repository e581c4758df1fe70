"""
Image generation via the OpenAI images API.

The API key is read per call so the service can start without one;
requests fail with ImageGenerationError until it is configured.
"""

import logging

import httpx

from maigewan.core.config import settings

logger = logging.getLogger(__name__)


class ImageGenerationError(Exception):
    """Raised when no image URL can be produced."""


def _get_api_key() -> str:
    if not settings.OPENAI_API_KEY:
        raise ImageGenerationError("OPENAI_API_KEY is not configured")
    return settings.OPENAI_API_KEY


def _error_message(response: httpx.Response) -> str:
    """Pull the API's own error message out of a failed response."""
    try:
        error = response.json().get("error") or {}
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    except ValueError:
        pass
    return f"OpenAI API error: {response.status_code}"


async def generate_image(
    prompt: str,
    size: str = "1024x1024",
    quality: str = "standard",
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    Generate a single image and return its URL.

    Raises:
        ImageGenerationError: If the key is missing, the API rejects the
            request, or it returns no image
        httpx.HTTPError: If the API cannot be reached
    """
    api_key = _get_api_key()

    async with httpx.AsyncClient(timeout=120.0, transport=transport) as client:
        response = await client.post(
            f"{settings.OPENAI_BASE_URL}/images/generations",
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "model": settings.OPENAI_IMAGE_MODEL,
                "prompt": prompt,
                "size": size,
                "quality": quality,
                "n": 1,
            },
        )
        if response.is_error:
            raise ImageGenerationError(_error_message(response))
        data = response.json().get("data") or []

    url = data[0].get("url") if data else None
    if not url:
        raise ImageGenerationError("No image returned from OpenAI")

    return url
