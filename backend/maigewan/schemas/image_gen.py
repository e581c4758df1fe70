from typing import Literal

from pydantic import BaseModel


class ImageGenRequest(BaseModel):
    prompt: str
    size: str = "1024x1024"
    quality: str = "standard"


class ImageGenResponse(BaseModel):
    type: Literal["image"] = "image"
    data: str
