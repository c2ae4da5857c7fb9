# question service - dynamic follow-up question batches
# asks the text model for a batch grounded in the conversation so far,
# falls back to hand-authored batches when the call fails or the output is unusable

import logging
from typing import Sequence

from pydantic import ValidationError

from app.config import settings
from app.models.prompt import Prompt
from app.models.question import GeneratedQuestion, HistoryEntry
from app.services.json_extract import JSONExtractionError, extract_first_json_object
from app.services.llm_service import TextGenerator
from app.services.prompt_catalog import create_dynamic_prompt

logger = logging.getLogger(__name__)

YEAR = settings.VISION_YEAR


def _q(question: str, subtext: str, category: str, technique: str) -> GeneratedQuestion:
    return GeneratedQuestion(
        question=question,
        subtext=subtext,
        category=category,
        psychologyTechnique=technique,
    )


# keyed by batch number: batch 1, batch 2, batch 3 and beyond
FALLBACK_BATCHES: list[list[GeneratedQuestion]] = [
    [
        _q("When you're at your best, what values are you living by?",
           "Think of a moment when you felt truly aligned with yourself.",
           "values", "Self-determination"),
        _q("What brings you pure, uncomplicated joy?",
           "The small things, the big things. What makes you come alive?",
           "life-areas", "Positive psychology"),
        _q("What's the inner obstacle that usually holds you back?",
           "Fear, perfectionism, self-doubt. Name it without judgment.",
           "obstacles", "Mental contrasting"),
        _q("If nothing could stop you, what would you create or achieve this year?",
           "Dream boldly for a moment.",
           "identity", "Future self visualization"),
    ],
    [
        _q("When that obstacle shows up, what will you do instead?",
           "Create an 'if-then' plan for when things get hard.",
           "obstacles", "Implementation intentions"),
        _q("Who are the people that support your growth?",
           "Think about who you want to spend more time with this year.",
           "life-areas", "Social support"),
        _q(f"What does your ideal morning look like in {YEAR}?",
           "Paint a vivid picture of how your day begins.",
           "identity", "Future self visualization"),
        _q("What will keep you going when motivation fades?",
           "Think about your deeper 'why'.",
           "values", "Intrinsic motivation"),
    ],
    [
        _q("What's the smallest action you could take this week toward your vision?",
           "Not the big goal. The tiniest step you could actually do tomorrow.",
           "closing", "Minimum viable action"),
        _q("What do you want to remember when things get hard?",
           "A mantra, a truth, a reason to keep going.",
           "closing", "Self-compassion anchor"),
        _q("What are you already grateful for that supports this vision?",
           "Sometimes what we need is already present in our lives.",
           "values", "Gratitude practice"),
        _q("What are you ready to let go of to make room for growth?",
           "Sometimes progress requires releasing something first.",
           "obstacles", "Mental contrasting"),
    ],
]

_BATCH_FOCUS = [
    """- VALUES: What matters most? What won't they compromise on?
- LIFE AREAS: Specific aspects of career, health, relationships, creativity, joy
- OBSTACLES: Inner blocks, fears, patterns to break
- IDENTITY: Deeper exploration of who they're becoming""",
    """- OBSTACLES: What gets in their way? What patterns need to change?
- RELATIONSHIPS: How do connections with others fit into their vision?
- DAILY LIFE: What would their ideal day look like?
- RESILIENCE: What will keep them going when things get hard?""",
    """- CLOSING: Small actionable steps they can take
- COMMITMENT: What they're willing to do differently
- REMINDER: What they want to remember
- GRATITUDE: What they already have that supports their vision""",
]


def _batch_index(batch_number: int) -> int:
    return min(max(batch_number, 1) - 1, len(FALLBACK_BATCHES) - 1)


def get_fallback_questions(batch_number: int) -> list[GeneratedQuestion]:
    return [q.model_copy() for q in FALLBACK_BATCHES[_batch_index(batch_number)]]


def format_conversation(history: Sequence[HistoryEntry]) -> str:
    return "\n\n".join(
        f"Q{i}: {entry.question}\nA{i}: {entry.answer}"
        for i, entry in enumerate(history, 1)
    )


def build_question_instruction(history: Sequence[HistoryEntry], batch_number: int, batch_size: int) -> str:
    conversation = format_conversation(history) or "This is the beginning of the conversation."
    total = len(history)
    focus = _BATCH_FOCUS[_batch_index(batch_number)]

    return f"""You are a thoughtful, empathetic guide helping someone create their vision for {YEAR}. Generate a batch of {batch_size} deeply personal questions that will help them clarify their dreams, values, and intentions.

CONVERSATION SO FAR:
{conversation}

BATCH NUMBER: {batch_number} (generating questions {total + 1} to {total + batch_size})

YOUR TASK: Generate exactly {batch_size} questions that form a cohesive set, building on what they've shared.

GUIDELINES FOR THE BATCH:
1. Each question should build on previous answers - reference their specific words and themes
2. The batch should feel like a natural progression, not random questions
3. Mix exploration (going deeper into themes) with discovery (finding new aspects)
4. Include at least one question about potential obstacles or challenges
5. Include at least one actionable/forward-looking question

QUESTION TYPES TO INCLUDE IN THIS BATCH:
{focus}

PSYCHOLOGY TECHNIQUES TO WEAVE IN:
- Future self visualization
- Mental contrasting (pair dreams with realistic obstacles)
- Implementation intentions (if-then planning)
- Identity-based goals (who they're becoming)
- Self-compassion (gentle, non-judgmental framing)

RESPOND WITH JSON:
{{
  "questions": [
    {{
      "question": "Your thoughtful question",
      "subtext": "Brief context (1 sentence, can be empty)",
      "category": "values | identity | life-areas | obstacles | closing",
      "psychologyTechnique": "optional technique name"
    }}
  ]
}}

Make each question feel connected to the previous one, creating a natural flow. Questions should be warm and conversational, not clinical."""


def parse_questions(text: str) -> list[GeneratedQuestion]:
    """pull the questions array out of model text. raises JSONExtractionError"""
    data = extract_first_json_object(text)
    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        raise JSONExtractionError("model output has no questions array")

    questions = []
    for item in raw_questions:
        if not isinstance(item, dict):
            continue
        technique = item.get("psychologyTechnique")
        try:
            questions.append(GeneratedQuestion.model_validate({
                "question": str(item.get("question") or "").strip(),
                "subtext": str(item.get("subtext") or ""),
                "category": str(item.get("category") or "dynamic").strip(),
                "psychologyTechnique": technique if isinstance(technique, str) and technique else None,
            }))
        except ValidationError:
            logger.debug(f"Dropping malformed question item: {item}")
    return questions


def fit_batch(questions: list[GeneratedQuestion], batch_number: int, batch_size: int) -> list[GeneratedQuestion]:
    """pad by cycling the fallback batch, or truncate, to exactly batch_size"""
    fitted = list(questions[:batch_size])
    fallbacks = get_fallback_questions(batch_number)
    while len(fitted) < batch_size:
        fitted.append(fallbacks[len(fitted) % len(fallbacks)].model_copy())
    return fitted


async def generate_questions(
    text_generator: TextGenerator,
    history: Sequence[HistoryEntry],
    batch_number: int,
    batch_size: int,
) -> list[GeneratedQuestion]:
    """request a batch of follow-up questions; always returns exactly batch_size"""
    system_instruction = build_question_instruction(history, batch_number, batch_size)
    user_prompt = (
        f"Based on their reflections so far, generate {batch_size} perfect follow-up "
        f"questions that will deepen their vision for {YEAR}."
    )

    try:
        text = await text_generator.generate(system_instruction, user_prompt)
        questions = parse_questions(text)
        logger.info(f"Batch {batch_number}: model returned {len(questions)} questions")
    except JSONExtractionError as e:
        logger.warning(f"Batch {batch_number}: unusable model output, using fallback questions: {e}")
        questions = get_fallback_questions(batch_number)
    except Exception as e:
        logger.error(f"Batch {batch_number}: question generation failed, using fallback questions: {e}")
        questions = get_fallback_questions(batch_number)

    return fit_batch(questions, batch_number, batch_size)


def materialize_prompts(questions: Sequence[GeneratedQuestion]) -> list[Prompt]:
    """turn generated questions into dynamic prompts with fresh ids"""
    return [
        create_dynamic_prompt(
            question=q.question,
            subtext=q.subtext,
            category=q.category,
            psychology_technique=q.psychology_technique,
        )
        for q in questions
    ]
