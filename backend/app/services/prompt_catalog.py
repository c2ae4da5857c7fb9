# prompt catalog - prescribed questions, phase categories, progress helpers
# pure data + pure functions, no io

import uuid
from typing import Iterable, Optional

from app.config import settings
from app.models.journal import ResponseEntry
from app.models.prompt import Prompt, PromptCategory

YEAR = settings.VISION_YEAR

# batch size for dynamically generated questions
QUESTION_BATCH_SIZE = settings.QUESTION_BATCH_SIZE

DYNAMIC_CATEGORY = "dynamic"

# declaration order here is the phase order used when grouping responses
PROMPT_CATEGORIES: list[PromptCategory] = [
    PromptCategory(id="welcome", label="Begin", icon="✨"),
    PromptCategory(id="year", label="Year Vision", icon="🌅"),
    PromptCategory(id="values", label="Values", icon="💎"),
    PromptCategory(id="identity", label="Identity", icon="🌱"),
    PromptCategory(id="life-areas", label="Life Areas", icon="🌍"),
    PromptCategory(id="obstacles", label="Obstacles", icon="🌊"),
    PromptCategory(id="closing", label="Commit", icon="🔥"),
    PromptCategory(id=DYNAMIC_CATEGORY, label="Exploring", icon="💭"),
]

CATEGORY_IDS: list[str] = [c.id for c in PROMPT_CATEGORIES]

# phase 1: always asked first, in this order
PRESCRIBED_PROMPTS: list[Prompt] = [
    Prompt(
        id="welcome-breath",
        category="welcome",
        question="Take a deep breath. Close your eyes for a moment.",
        subtext="When you're ready, let's begin this journey together. There are no wrong answers, only your truth.",
        placeholder="Press continue when you're centered...",
        isInterlude=True,
    ),
    Prompt(
        id="year-feeling",
        category="year",
        question=f"Imagine it's December 31st, {YEAR}. You're looking back on an incredible year. How do you feel?",
        subtext="Don't think too hard. What's the first feeling that comes to mind?",
        placeholder="I feel...",
        psychologyTechnique="Future self visualization",
    ),
    Prompt(
        id="year-word",
        category="year",
        question=f"If you had to capture your vision for {YEAR} in a single word or phrase, what would it be?",
        subtext="This word will anchor your vision board.",
        placeholder=f"My word for {YEAR} is...",
        psychologyTechnique="Intention setting",
    ),
    Prompt(
        id="core-transformation",
        category="life-areas",
        question="What's the one area of your life you most want to transform this year?",
        subtext="It could be career, health, relationships, creativity, finances, personal growth. Whatever calls to you strongest.",
        placeholder="The area I most want to transform is...",
        psychologyTechnique="Goal clarity",
    ),
    Prompt(
        id="identity-becoming",
        category="identity",
        question="Who are you becoming?",
        subtext="Not who you think you should be, but who you genuinely want to grow into.",
        placeholder="I am becoming someone who...",
        psychologyTechnique="Identity-based goals",
    ),
]

INTERLUDE_IDS: frozenset[str] = frozenset(p.id for p in PRESCRIBED_PROMPTS if p.is_interlude)
REQUIRED_PRESCRIBED_IDS: list[str] = [p.id for p in PRESCRIBED_PROMPTS if not p.is_interlude]


def create_dynamic_prompt(
    question: str,
    subtext: str = "",
    category: Optional[str] = None,
    psychology_technique: Optional[str] = None,
) -> Prompt:
    """wrap a generated question as a prompt with a fresh unique id"""
    if category not in CATEGORY_IDS or category == "welcome":
        category = DYNAMIC_CATEGORY
    return Prompt(
        id=f"dynamic-{uuid.uuid4().hex[:12]}",
        category=category,
        question=question,
        subtext=subtext or None,
        placeholder="Share your thoughts...",
        psychologyTechnique=psychology_technique or None,
        isDynamic=True,
    )


def get_prompt_by_id(prompts: Iterable[Prompt], prompt_id: str) -> Optional[Prompt]:
    return next((p for p in prompts if p.id == prompt_id), None)


def get_progress(current_index: int, total_questions: int) -> float:
    if total_questions <= 0:
        return 0.0
    return (current_index + 1) / total_questions * 100


def is_interlude(prompt_id: str) -> bool:
    return prompt_id in INTERLUDE_IDS


def _has_answer(response: ResponseEntry) -> bool:
    return len(response.answer.strip()) > 0


def get_answered_count(responses: Iterable[ResponseEntry]) -> int:
    """number of non-empty answers, interludes never counted"""
    return sum(1 for r in responses if _has_answer(r) and not is_interlude(r.prompt_id))


def is_prescribed_phase_complete(responses: Iterable[ResponseEntry]) -> bool:
    """true iff every non-interlude prescribed prompt has a non-empty answer"""
    answered = {r.prompt_id for r in responses if _has_answer(r)}
    return all(pid in answered for pid in REQUIRED_PRESCRIBED_IDS)


def category_for_prompt(prompt_id: str, default: Optional[str] = None) -> Optional[str]:
    prompt = get_prompt_by_id(PRESCRIBED_PROMPTS, prompt_id)
    return prompt.category if prompt else default
