import logging

import httpx
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from maigewan.schemas.image_gen import ImageGenRequest, ImageGenResponse
from maigewan.services.image_gen import ImageGenerationError, generate_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["image-gen"])


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": message})


@router.post("/image-gen", response_model=ImageGenResponse)
async def image_gen(body: ImageGenRequest):
    """Generate one image for a prompt and return its URL."""
    try:
        url = await generate_image(body.prompt, size=body.size, quality=body.quality)
    except (ImageGenerationError, httpx.HTTPError) as e:
        logger.error(f"Image generation error: {e}")
        return _error(str(e) or "Unexpected error")
    except Exception as e:
        logger.exception(f"Unexpected image generation failure: {e}")
        return _error("Unexpected error")

    return ImageGenResponse(data=url)
