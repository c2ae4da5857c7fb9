# profile router - compile a structured profile from journal answers

import logging

from fastapi import APIRouter, Depends

from app.models.profile import CompileProfileRequest, CompileProfileResponse
from app.services.llm_service import TextGenerator, get_text_generator
from app.services.profile_service import compile_profile

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/profile", tags=["profile"])


@router.post("/compile", response_model=CompileProfileResponse)
async def compile(
    body: CompileProfileRequest,
    text_generator: TextGenerator = Depends(get_text_generator),
):
    profile = await compile_profile(text_generator, body.responses)
    return CompileProfileResponse(profile=profile)
