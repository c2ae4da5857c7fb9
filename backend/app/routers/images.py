# images router - one-off image generation outside any board

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.models.board import GenerateImageRequest, GenerateImageResponse
from app.services.image_service import generate_image_url
from app.services.llm_service import ImageGenerator, get_image_generator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/images", tags=["images"])


@router.post("/generate", response_model=GenerateImageResponse)
async def generate_image(
    body: GenerateImageRequest,
    image_generator: ImageGenerator = Depends(get_image_generator),
):
    try:
        image_url, enhanced = await generate_image_url(image_generator, body.prompt, body.style)
    except Exception as e:
        logger.error(f"Image generation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate image",
        )

    return GenerateImageResponse(imageUrl=image_url, prompt=enhanced)
