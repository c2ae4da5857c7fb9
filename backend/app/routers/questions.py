# questions router - stateless follow-up question generation

import logging

from fastapi import APIRouter, Depends

from app.models.question import GenerateQuestionsRequest, GenerateQuestionsResponse
from app.services.llm_service import TextGenerator, get_text_generator
from app.services.question_service import generate_questions

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/questions", tags=["questions"])


@router.post("/generate", response_model=GenerateQuestionsResponse)
async def generate(
    body: GenerateQuestionsRequest,
    text_generator: TextGenerator = Depends(get_text_generator),
):
    """always returns exactly batchSize questions (fallbacks fill any gap)"""
    questions = await generate_questions(
        text_generator,
        body.conversation_history,
        body.batch_number,
        body.batch_size,
    )
    return GenerateQuestionsResponse(questions=questions)
