# profile service - compile journal responses into a structured user profile
#
# pipeline:
#   1. group answered responses by phase, in phase declaration order
#   2. ask the text model for one json object matching the profile schema
#   3. on unusable output or a failed call, build a heuristic profile locally
#   4. validate: coerce types, fill every missing field with a fixed default

import logging
import re
from collections import Counter
from typing import Any, Optional, Sequence

from app.config import settings
from app.models.profile import ConversationEntry, LifeArea, ObstacleItem, UserProfile
from app.services.json_extract import JSONExtractionError, extract_first_json_object
from app.services.llm_service import TextGenerator
from app.services.prompt_catalog import CATEGORY_IDS, PROMPT_CATEGORIES

logger = logging.getLogger(__name__)

YEAR = settings.VISION_YEAR

# defaults applied by validate_profile
DEFAULT_YEAR_WORD = "Growth"
DEFAULT_YEAR_FEELING = "Fulfilled"
DEFAULT_CORE_VALUES = ["growth", "authenticity"]
DEFAULT_EMOTIONAL_GOALS = ["peace", "joy"]
DEFAULT_KEY_THEMES = ["transformation", "growth"]
DEFAULT_MANTRA = "I am becoming who I'm meant to be"
DEFAULT_DAILY_VISION = "A calm, intentional day aligned with what matters most"
DEFAULT_SUMMARY = "A personal vision focused on growth and transformation."

# heuristic profile caps
YEAR_WORD_CHARS = 50
FEELING_CHARS = 100
STATEMENT_CHARS = 200
KEYWORD_LIMIT = 10

STOP_WORDS = frozenset("""
the a an and or but in on at to for of with by is are was were be been being
have has had do does did will would could should may might must i me my myself
we our you your it its this that these those what which who when where why how
all each every both few more most other some such no not only same so than too
very just can now want feel like really also much many one two three year time
way day life things thing make get go see know think take come into about out up
""".split())

_WORD_SPLIT = re.compile(r"\W+")


def _answered(responses: Sequence[ConversationEntry]) -> list[ConversationEntry]:
    return [r for r in responses if r.answer.strip()]


def build_profile_context(responses: Sequence[ConversationEntry]) -> str:
    """render answered responses grouped by phase, phases in declaration order"""
    groups: dict[str, list[ConversationEntry]] = {}
    for entry in _answered(responses):
        key = entry.category if entry.category in CATEGORY_IDS else "general"
        groups.setdefault(key, []).append(entry)

    labels = {c.id: c.label for c in PROMPT_CATEGORIES}
    order = CATEGORY_IDS + ["general"]

    sections = []
    for key in order:
        entries = groups.get(key)
        if not entries:
            continue
        label = labels.get(key, "General").upper()
        pairs = "\n\n".join(f"Q: {e.question}\nA: {e.answer}" for e in entries)
        sections.append(f"## {label} [{key}]\n{pairs}")

    return "\n\n".join(sections)


def build_profile_instruction(context: str) -> str:
    return f"""You are an expert at synthesizing personal reflections into comprehensive profiles. Your task is to analyze a series of journal responses and extract a detailed profile that can be used to generate a personalized vision board.

JOURNAL RESPONSES:
{context or "No responses were provided."}

ANALYZE THESE RESPONSES AND EXTRACT:

1. YEAR WORD: What single word or short phrase captures their vision? Look for explicitly stated words or synthesize from themes.
2. YEAR FEELING: How do they want to feel at year end? What emotional state are they seeking?
3. CORE VALUES (3-5): What matters most to them? What won't they compromise on? Look for repeated themes.
4. IDENTITY STATEMENTS: "I am becoming someone who..." statements. How do they see their future self?
5. LIFE AREAS: What specific areas do they want to improve (career, health, relationships, creativity, finances, growth, joy)? For each, note their aspiration and current state if mentioned.
6. OBSTACLES: What fears, blocks, or patterns did they identify? Include any strategies they mentioned.
7. ACTION ITEMS: What specific actions or small steps did they mention wanting to take?
8. EMOTIONAL GOALS: Beyond achievements, what emotional experiences are they seeking?
9. KEY THEMES: What words, metaphors, or images keep appearing? (These are great for visual imagery)
10. PERSONAL MANTRA: What phrase would remind them of their why? Can be extracted or synthesized.
11. RELATIONSHIPS: Who are the important people? What role do connections play in their vision?
12. DAILY VISION: What does their ideal day look like? Morning routines, daily rhythms?
13. GRATITUDES: What do they already appreciate that supports their vision?
14. SUMMARY: A 2-3 sentence narrative summary of their overall vision for the year.

RESPOND WITH JSON:
{{
  "yearWord": "string - their core word or theme",
  "yearFeeling": "string - how they want to feel",
  "coreValues": ["array of 3-5 values"],
  "identityStatements": ["array of identity statements"],
  "lifeAreas": [
    {{ "area": "name", "aspiration": "what they want", "currentState": "where they are now if mentioned" }}
  ],
  "obstacles": [
    {{ "obstacle": "the challenge", "strategy": "how they plan to address it if mentioned" }}
  ],
  "actionItems": ["specific actions they want to take"],
  "emotionalGoals": ["emotional states they're seeking"],
  "keyThemes": ["recurring themes, metaphors, imagery"],
  "personalMantra": "their reminder phrase",
  "relationships": ["key relationships and their role"],
  "dailyVision": "description of their ideal day",
  "gratitudes": ["things they're grateful for"],
  "summary": "2-3 sentence summary"
}}

Be comprehensive but accurate - only include what's actually present or clearly implied in their responses. Don't invent details they didn't share."""


def extract_keywords(text: str, limit: int = KEYWORD_LIMIT) -> list[str]:
    """term-frequency keywords: lowercase, drop stop words and short words, top n"""
    words = [
        w for w in _WORD_SPLIT.split(text.lower())
        if len(w) > 3 and w not in STOP_WORDS
    ]
    # most_common keeps first-seen order for ties
    return [word for word, _ in Counter(words).most_common(limit)]


def build_heuristic_profile(responses: Sequence[ConversationEntry]) -> dict:
    """deterministic profile built straight from the raw answers"""
    answers = _answered(responses)
    all_text = " ".join(r.answer for r in answers)

    def by_category(category: str) -> list[str]:
        return [r.answer[:STATEMENT_CHARS] for r in answers if r.category == category]

    year_word = next((r.answer[:YEAR_WORD_CHARS] for r in answers if r.prompt_id == "year-word"), "Growth")
    year_feeling = next(
        (r.answer[:FEELING_CHARS] for r in answers if r.category == "year" and r.prompt_id != "year-word"),
        "Fulfilled and proud",
    )

    return {
        "yearWord": year_word,
        "yearFeeling": year_feeling,
        "coreValues": ["growth", "authenticity", "connection"],
        "identityStatements": by_category("identity"),
        "lifeAreas": [{"area": "personal growth", "aspiration": a} for a in by_category("life-areas")],
        "obstacles": [{"obstacle": o} for o in by_category("obstacles")],
        "actionItems": by_category("closing"),
        "emotionalGoals": ["peace", "joy", "fulfillment"],
        "keyThemes": extract_keywords(all_text),
        "personalMantra": DEFAULT_MANTRA,
        "relationships": [],
        "dailyVision": "",
        "gratitudes": [],
        "summary": (
            f"This person is focused on personal transformation in {YEAR}, "
            f"with {len(answers)} reflections guiding their vision."
        ),
    }


# coercion helpers: model output is untrusted, any field may have the wrong type

def _as_str(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _as_str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [s for s in (_as_str(v) for v in value) if s]


def _as_life_areas(value: Any) -> list[LifeArea]:
    areas = []
    for item in value if isinstance(value, list) else []:
        if isinstance(item, str) and item.strip():
            areas.append(LifeArea(area="personal growth", aspiration=item.strip()))
        elif isinstance(item, dict):
            area = _as_str(item.get("area"))
            aspiration = _as_str(item.get("aspiration"))
            if not (area or aspiration):
                continue
            areas.append(LifeArea(
                area=area or "personal growth",
                aspiration=aspiration or area,
                currentState=_as_str(item.get("currentState")) or None,
            ))
    return areas


def _as_obstacles(value: Any) -> list[ObstacleItem]:
    obstacles = []
    for item in value if isinstance(value, list) else []:
        if isinstance(item, str) and item.strip():
            obstacles.append(ObstacleItem(obstacle=item.strip()))
        elif isinstance(item, dict):
            obstacle = _as_str(item.get("obstacle"))
            if obstacle:
                obstacles.append(ObstacleItem(obstacle=obstacle, strategy=_as_str(item.get("strategy")) or None))
    return obstacles


def validate_profile(raw: Optional[dict]) -> UserProfile:
    """coerce and default every field; never returns a partial profile"""
    raw = raw if isinstance(raw, dict) else {}

    return UserProfile(
        yearWord=_as_str(raw.get("yearWord")) or DEFAULT_YEAR_WORD,
        yearFeeling=_as_str(raw.get("yearFeeling")) or DEFAULT_YEAR_FEELING,
        coreValues=_as_str_list(raw.get("coreValues")) or list(DEFAULT_CORE_VALUES),
        identityStatements=_as_str_list(raw.get("identityStatements")),
        lifeAreas=_as_life_areas(raw.get("lifeAreas")),
        obstacles=_as_obstacles(raw.get("obstacles")),
        actionItems=_as_str_list(raw.get("actionItems")),
        emotionalGoals=_as_str_list(raw.get("emotionalGoals")) or list(DEFAULT_EMOTIONAL_GOALS),
        keyThemes=_as_str_list(raw.get("keyThemes")) or list(DEFAULT_KEY_THEMES),
        personalMantra=_as_str(raw.get("personalMantra")) or DEFAULT_MANTRA,
        relationships=_as_str_list(raw.get("relationships")),
        dailyVision=_as_str(raw.get("dailyVision")) or DEFAULT_DAILY_VISION,
        gratitudes=_as_str_list(raw.get("gratitudes")),
        summary=_as_str(raw.get("summary")) or DEFAULT_SUMMARY,
    )


async def compile_profile(
    text_generator: TextGenerator,
    responses: Sequence[ConversationEntry],
) -> UserProfile:
    """synthesize a full profile from responses. generation failures fall back locally"""
    context = build_profile_context(responses)
    system_instruction = build_profile_instruction(context)
    user_prompt = "Analyze the journal responses and create a comprehensive user profile for vision board generation."

    try:
        text = await text_generator.generate(system_instruction, user_prompt)
        raw = extract_first_json_object(text)
        logger.info("Profile compiled from model output")
    except JSONExtractionError as e:
        logger.warning(f"Unusable profile output, building heuristic profile: {e}")
        raw = build_heuristic_profile(responses)
    except Exception as e:
        logger.error(f"Profile generation failed, building heuristic profile: {e}")
        raw = build_heuristic_profile(responses)

    return validate_profile(raw)
