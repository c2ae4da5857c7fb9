# board service - turn a profile (or raw responses) into vision board elements
#
# generation pipeline:
#   1. build context: compiled profile sections, else raw q/a pairs
#   2. ask the text model for exactly image_count themes
#   3. unusable output or failed call -> fixed fallback theme list
#   4. normalize count (pad by cycling padding themes, truncate)
#   5. normalize style (invalid/missing -> cycle the style enum by index)
#   6. normalize grid size by position (large, medium, small)
#   7. shuffle everything but the first theme
#   8. materialize pending board elements

import logging
import random
import uuid
from typing import Any, Optional, Sequence, get_args

from pydantic import ValidationError

from app.config import settings
from app.models.board import BoardElement, ElementData, ImageStyle, Theme
from app.models.profile import ConversationEntry, UserProfile
from app.services.json_extract import JSONExtractionError, extract_first_json_object
from app.services.llm_service import TextGenerator

logger = logging.getLogger(__name__)

YEAR = settings.VISION_YEAR

STYLES: list[str] = list(get_args(ImageStyle))

BASE_IMAGE_COUNT = 10


class BoardGenerationError(RuntimeError):
    """board generation failed in a way no fallback covers"""


def _theme(title: str, image_prompt: str, affirmation: str, style: str, grid_size: str) -> Theme:
    return Theme(title=title, imagePrompt=image_prompt, affirmation=affirmation, style=style, gridSize=grid_size)


# used whole when the model output is unusable
FALLBACK_THEMES: list[Theme] = [
    _theme("New Beginnings",
           "Majestic sunrise breaking through morning mist over a calm mountain lake, golden light rays streaming through pine trees, reflection on still water, sense of possibility",
           "Every sunrise brings new possibilities", "landscape", "large"),
    _theme("Inner Peace",
           "Zen garden with perfectly raked sand patterns, single smooth stone, cherry blossom petals floating down, soft morning light, tranquil atmosphere",
           "I am calm, centered, and at peace", "minimalist", "medium"),
    _theme("Growth",
           "Tiny seedling pushing through rich dark soil, morning dewdrops on delicate leaves, soft golden backlight, extreme macro detail showing life force",
           "I grow stronger each day", "macro", "small"),
    _theme("Creative Flow",
           "Artist's workspace with vibrant paint splashes on wooden table, scattered brushes in mason jars, half-finished canvas, golden afternoon light through dusty window",
           "My creativity flows freely", "photography", "medium"),
    _theme("Connection",
           "Two steaming coffee cups on rustic wooden table by rain-streaked window, cozy blanket draped on chair, warm candlelight, intimate atmosphere",
           "I am surrounded by love", "cinematic", "large"),
    _theme("Adventure",
           "Winding mountain path disappearing into misty peaks, wildflowers along trail edge, dramatic clouds, sense of journey and discovery",
           "Life is an adventure I embrace", "landscape", "small"),
    _theme("Vitality",
           "Fresh green smoothie in glass jar surrounded by vibrant fruits and vegetables, morning kitchen light, dewdrops on produce, health and energy",
           "My body is strong and energized", "photography", "medium"),
    _theme("Abundance",
           "Overflowing harvest basket with colorful fresh produce, golden wheat field in background, warm sunset light, sense of plenty and gratitude",
           "Abundance flows into my life", "impressionist", "small"),
    _theme("Dreams",
           "Open journal with handwritten goals on wooden desk, golden pen, soft window light, cup of tea, dreamy bokeh background",
           "I am creating my dream life", "dreamy", "small"),
    _theme("Clarity",
           "Crystal clear mountain stream flowing over smooth stones, light refracting through water, forest reflected on surface, pure and serene",
           "My mind is clear and focused", "watercolor", "medium"),
    _theme("Courage",
           "Single lit candle flame in darkness, warm glow illuminating surroundings, sense of hope and bravery, intimate and powerful",
           "I have the courage to grow", "cinematic", "small"),
    _theme("Gratitude",
           "Golden wheat field at sunset, warm light painting the grain, gentle breeze visible in movement, expansive sky, thankfulness",
           "I am grateful for this moment", "vintage", "small"),
]

# cycled by position to pad short model results
PADDING_THEMES: list[Theme] = [
    _theme("Possibility",
           "Vast starry night sky, milky way stretching across darkness, silhouette of mountains, sense of infinite possibility",
           "Anything is possible", "landscape", "small"),
    _theme("Balance",
           "Smooth stones stacked in perfect balance on beach, calm ocean in background, zen meditation concept",
           "I find balance in all things", "minimalist", "small"),
    _theme("Joy",
           "Field of wildflowers in full bloom, butterflies dancing, golden sunlight, pure happiness and freedom",
           "Joy fills my days", "impressionist", "small"),
    _theme("Focus",
           "Single leaf with perfect detail, morning dew drops, soft blurred background, clarity and intention",
           "I am focused and intentional", "macro", "small"),
    _theme("Serenity",
           "Misty forest path at dawn, light filtering through ancient trees, moss-covered stones, peaceful solitude",
           "Peace flows through me", "dreamy", "small"),
]


def get_fallback_themes(profile: Optional[UserProfile] = None) -> list[Theme]:
    """fixed default theme list; the lead theme carries the year word when known"""
    themes = [t.model_copy() for t in FALLBACK_THEMES]
    if profile and profile.year_word:
        word = profile.year_word
        themes[0] = _theme(
            word.title(),
            f"Majestic sunrise breaking over a calm mountain lake, the word '{word}' traced in golden light across the morning mist, reflection on still water, sense of possibility",
            f"{YEAR} is my year of {word}",
            "landscape",
            "large",
        )
    return themes


def compute_image_count(responses: Sequence[ConversationEntry]) -> int:
    """10 images by default, more for deeper journals"""
    answered = [r for r in responses if r.answer.strip()]
    total_answers = len(answered)
    total_words = sum(len(r.answer.split()) for r in answered)

    if total_answers >= 10 and total_words > 200:
        return 15
    if total_answers >= 7 and total_words > 100:
        return 13
    if total_answers >= 4:
        return 12
    return BASE_IMAGE_COUNT


def _section(label: str, lines: list[str]) -> Optional[str]:
    lines = [line for line in lines if line]
    if not lines:
        return None
    return f"{label}:\n" + "\n".join(lines)


def format_profile_context(profile: UserProfile) -> str:
    """labeled profile sections, empty sections omitted"""
    year_lines = []
    if profile.year_word:
        year_lines.append(f"Word of the year: {profile.year_word}")
    if profile.year_feeling:
        year_lines.append(f"Desired feeling: {profile.year_feeling}")

    sections = [
        _section("YEAR THEME", year_lines),
        _section("CORE VALUES", [", ".join(profile.core_values)] if profile.core_values else []),
        _section("IDENTITY STATEMENTS", [f"- {s}" for s in profile.identity_statements]),
        _section("LIFE AREAS", [
            f"- {a.area}: {a.aspiration}" + (f" (currently: {a.current_state})" if a.current_state else "")
            for a in profile.life_areas
        ]),
        _section("OBSTACLES", [
            f"- {o.obstacle}" + (f" -> strategy: {o.strategy}" if o.strategy else "")
            for o in profile.obstacles
        ]),
        _section("EMOTIONAL GOALS", [", ".join(profile.emotional_goals)] if profile.emotional_goals else []),
        _section("KEY THEMES AND IMAGERY", [", ".join(profile.key_themes)] if profile.key_themes else []),
        _section("PERSONAL MANTRA", [profile.personal_mantra]),
        _section("DAILY VISION", [profile.daily_vision]),
        _section("RELATIONSHIPS", [f"- {r}" for r in profile.relationships]),
        _section("ACTION ITEMS", [f"- {a}" for a in profile.action_items]),
        _section("GRATITUDES", [f"- {g}" for g in profile.gratitudes]),
        _section("SUMMARY", [profile.summary]),
    ]
    return "\n\n".join(s for s in sections if s)


def format_responses_context(responses: Sequence[ConversationEntry]) -> str:
    return "\n\n".join(
        f"Q: {r.question}\nA: {r.answer}" for r in responses if r.answer.strip()
    )


def build_board_context(profile: Optional[UserProfile], responses: Sequence[ConversationEntry]) -> str:
    if profile is not None:
        return format_profile_context(profile)
    return format_responses_context(responses)


def build_board_instruction(image_count: int) -> str:
    large_count, medium_count = grid_distribution(image_count)
    return f"""You are an expert vision board designer creating deeply personalized, evocative imagery. Your goal is to transform journal reflections into powerful visual metaphors.

CRITICAL RULES FOR IMAGE PROMPTS:
1. NEVER include people, human figures, faces, or body parts (no hands, eyes, silhouettes of people)
2. Focus on: scenes, objects, nature, textures, atmospheres, symbolic items
3. Convey emotions through environment, lighting, and composition
4. Use metaphors: "achievement" = mountain peak, trophy, sunrise; "peace" = still water, zen garden, soft clouds
5. Be SPECIFIC and DETAILED in descriptions

Return a JSON object:
{{
  "themes": [
    {{
      "title": "Short theme name (2-3 words)",
      "imagePrompt": "Detailed scene description WITHOUT any people - focus on objects, nature, atmosphere",
      "affirmation": "Personal affirmation using their words/themes",
      "style": "one of: {', '.join(STYLES)}",
      "gridSize": "small | medium | large",
      "personalConnection": "one sentence tying the image to their reflections"
    }}
  ]
}}

STYLE GUIDELINES (vary these across the board for visual interest):
- photography: Real-world scenes, professional quality
- watercolor: Soft, flowing, artistic, emotional
- abstract: Bold shapes, conceptual, modern art
- oilpainting: Rich textures, classical, museum-quality
- minimalist: Clean, simple, zen, negative space
- impressionist: Soft focus, dappled light, dreamy
- cinematic: Dramatic lighting, film-like, widescreen feel
- macro: Extreme close-ups, intricate details, textures
- landscape: Epic vistas, nature, panoramic
- symbolic: Meaningful objects, metaphorical imagery
- dreamy: Ethereal, soft glow, magical atmosphere
- vintage: Nostalgic, film grain, muted tones

GRID SIZE DISTRIBUTION for {image_count} images:
- {large_count} "large" (most important themes, year word, primary goals) - put the year word theme FIRST
- {medium_count} "medium" (significant supporting themes)
- Remaining "small" (complementary imagery)

Generate EXACTLY {image_count} themes with VARIED styles (use at least 6 different styles).
Extract specific details from the journal and translate them into vivid scene descriptions."""


def build_board_prompt(context: str, image_count: int) -> str:
    if context:
        return (
            f"Create a deeply personalized vision board with {image_count} images based on these journal reflections. "
            f"Remember: NO people in any image prompts - only scenes, objects, nature, and atmosphere:\n\n{context}"
        )
    return (
        f"Create a beautiful, inspiring vision board with {image_count} images for someone beginning their {YEAR} journey. "
        "Themes: new beginnings, self-discovery, growth, peace, creativity, connection, adventure, health, abundance, dreams. "
        "Remember: NO people in any image prompts - only scenes, objects, nature, and atmosphere."
    )


def _coerce_theme(item: Any) -> Optional[Theme]:
    if not isinstance(item, dict):
        return None
    title = item.get("title")
    image_prompt = item.get("imagePrompt")
    if not isinstance(image_prompt, str) or not image_prompt.strip():
        return None
    connection = item.get("personalConnection")
    try:
        return Theme(
            title=title.strip() if isinstance(title, str) and title.strip() else "Vision",
            imagePrompt=image_prompt.strip(),
            affirmation=item.get("affirmation") if isinstance(item.get("affirmation"), str) else "",
            style=item.get("style") if isinstance(item.get("style"), str) else "",
            gridSize=item.get("gridSize") if isinstance(item.get("gridSize"), str) else "small",
            personalConnection=connection if isinstance(connection, str) and connection else None,
        )
    except ValidationError:
        return None


def parse_themes(text: str) -> list[Theme]:
    """pull the themes array out of model text. raises JSONExtractionError"""
    data = extract_first_json_object(text)
    raw_themes = data.get("themes")
    if not isinstance(raw_themes, list):
        raise JSONExtractionError("model output has no themes array")
    return [t for t in (_coerce_theme(item) for item in raw_themes) if t is not None]


def grid_distribution(image_count: int) -> tuple[int, int]:
    """(large_count, medium_count) for a board of image_count tiles"""
    large_count = min(3, int(image_count * 0.2))
    medium_count = min(5, int(image_count * 0.35))
    return large_count, medium_count


def normalize_count(themes: Sequence[Theme], image_count: int) -> list[Theme]:
    normalized = [t.model_copy() for t in themes[:image_count]]
    while len(normalized) < image_count:
        normalized.append(PADDING_THEMES[len(normalized) % len(PADDING_THEMES)].model_copy())
    return normalized


def normalize_styles(themes: Sequence[Theme]) -> list[Theme]:
    return [
        t if t.style in STYLES else t.model_copy(update={"style": STYLES[i % len(STYLES)]})
        for i, t in enumerate(themes)
    ]


def normalize_grid_sizes(themes: Sequence[Theme]) -> list[Theme]:
    """assign sizes by position, overwriting whatever the model proposed"""
    large_count, medium_count = grid_distribution(len(themes))
    normalized = []
    for i, t in enumerate(themes):
        if i < large_count:
            size = "large"
        elif i < large_count + medium_count:
            size = "medium"
        else:
            size = "small"
        normalized.append(t.model_copy(update={"grid_size": size}))
    return normalized


def normalize_themes(themes: Sequence[Theme], image_count: int) -> list[Theme]:
    """pure function of position and declared values; idempotent"""
    return normalize_grid_sizes(normalize_styles(normalize_count(themes, image_count)))


def shuffle_themes(themes: Sequence[Theme], rng: random.Random) -> list[Theme]:
    """keep the lead theme in place, fisher-yates the rest"""
    if len(themes) <= 1:
        return list(themes)
    rest = list(themes[1:])
    rng.shuffle(rest)
    return [themes[0], *rest]


def themes_to_elements(themes: Sequence[Theme]) -> list[BoardElement]:
    return [
        BoardElement(
            id=str(uuid.uuid4()),
            layer=index,
            data=ElementData(
                src="",
                prompt=theme.image_prompt,
                isGenerated=True,
                style=theme.style,
                title=theme.title,
                affirmation=theme.affirmation,
                gridSize=theme.grid_size,
                personalConnection=theme.personal_connection,
                status="pending",
            ),
        )
        for index, theme in enumerate(themes)
    ]


def make_rng() -> random.Random:
    return random.Random(settings.BOARD_SHUFFLE_SEED)


async def _request_themes(
    text_generator: TextGenerator,
    context: str,
    image_count: int,
    profile: Optional[UserProfile],
) -> list[Theme]:
    try:
        text = await text_generator.generate(
            build_board_instruction(image_count),
            build_board_prompt(context, image_count),
        )
        themes = parse_themes(text)
        logger.info(f"Model returned {len(themes)} usable themes")
        return themes
    except JSONExtractionError as e:
        logger.warning(f"Unusable board output, using fallback themes: {e}")
    except Exception as e:
        logger.error(f"Board theme generation failed, using fallback themes: {e}")
    return get_fallback_themes(profile)


async def generate_board(
    text_generator: TextGenerator,
    responses: Sequence[ConversationEntry],
    profile: Optional[UserProfile] = None,
    image_count: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> tuple[list[BoardElement], list[Theme]]:
    """full theme pipeline. returns (elements, themes) in display order.

    raises BoardGenerationError for anything the fallbacks do not absorb.
    """
    try:
        count = image_count or compute_image_count(responses)
        context = build_board_context(profile, responses)
        logger.info(f"Generating {count} board themes (profile={'yes' if profile else 'no'})")

        themes = await _request_themes(text_generator, context, count, profile)
        themes = normalize_themes(themes, count)
        themes = shuffle_themes(themes, rng or make_rng())
        elements = themes_to_elements(themes)
    except Exception as e:
        logger.error(f"Board generation failed: {e}")
        raise BoardGenerationError("Failed to generate board") from e

    logger.info(f"Generated {len(elements)} elements, styles: {', '.join(sorted({t.style for t in themes}))}")
    return elements, themes
