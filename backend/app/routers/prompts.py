# prompts router - prescribed question catalog for the journaling flow

import logging

from fastapi import APIRouter

from app.models.prompt import PromptCatalogResponse
from app.services.prompt_catalog import PRESCRIBED_PROMPTS, PROMPT_CATEGORIES, QUESTION_BATCH_SIZE

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/prompts", tags=["prompts"])


@router.get("", response_model=PromptCatalogResponse)
async def get_catalog():
    """prescribed prompts in flow order plus category metadata"""
    return PromptCatalogResponse(
        prompts=PRESCRIBED_PROMPTS,
        categories=PROMPT_CATEGORIES,
        batchSize=QUESTION_BATCH_SIZE,
    )
