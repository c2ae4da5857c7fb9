# image service - render board tiles through the image generation collaborator
# each completion patches only its own element by id; failures leave the tile pending

import asyncio
import logging

from app.config import settings
from app.models.board import Board, BoardElement
from app.services.db import BoardRepository
from app.services.llm_service import ImageGenerator, to_data_url

logger = logging.getLogger(__name__)

STYLE_ENHANCERS: dict[str, str] = {
    "photography": "professional photography, shallow depth of field, soft natural lighting, high quality DSLR",
    "watercolor": "watercolor painting, soft washes, delicate brushstrokes, artistic, flowing colors, paper texture",
    "abstract": "abstract art, bold shapes, modern art, conceptual, expressive, non-representational",
    "oilpainting": "oil painting, rich textures, classical art style, visible brushstrokes, museum quality",
    "minimalist": "minimalist, clean lines, simple composition, lots of negative space, zen aesthetic",
    "impressionist": "impressionist painting style, soft focus, dappled light, Monet-inspired, dreamy",
    "cinematic": "cinematic shot, dramatic lighting, film grain, movie still, widescreen composition",
    "macro": "macro photography, extreme close-up, intricate details, shallow depth of field, high magnification",
    "landscape": "epic landscape photography, golden hour, panoramic, majestic, national geographic style",
    "symbolic": "symbolic imagery, metaphorical, meaningful objects, artistic composition, thoughtful",
    "dreamy": "dreamy aesthetic, soft focus, ethereal glow, pastel tones, magical atmosphere",
    "vintage": "vintage photography, film grain, muted colors, nostalgic, retro aesthetic",
}

NO_PEOPLE_INSTRUCTION = (
    "Important: NO people, NO faces, NO human figures. "
    "Focus on scenes, objects, nature, and atmosphere."
)


class ElementBusyError(RuntimeError):
    """a render for this element is already in flight"""


def build_image_prompt(prompt: str, style: str) -> str:
    enhancer = STYLE_ENHANCERS.get(style) or STYLE_ENHANCERS["photography"]
    return f"{prompt}. Style: {enhancer}. {NO_PEOPLE_INSTRUCTION}"


async def generate_image_url(image_generator: ImageGenerator, prompt: str, style: str) -> tuple[str, str]:
    """one image as a data url. returns (data_url, enhanced_prompt); raises on failure"""
    enhanced = build_image_prompt(prompt, style)
    image = await image_generator.generate(enhanced, settings.IMAGE_SIZE)
    return to_data_url(image), enhanced


class ImageRenderer:
    """tracks in-flight element ids so one element never renders twice at once.

    distinct elements render concurrently; nothing is queued or cancelled.
    """

    def __init__(self, image_generator: ImageGenerator):
        self.image_generator = image_generator
        self.in_flight: set[str] = set()

    def is_rendering(self, element_id: str) -> bool:
        return element_id in self.in_flight

    async def render_element(self, repo: BoardRepository, board_id: str, element: BoardElement) -> bool:
        """generate one tile. True when the element was completed"""
        if element.id in self.in_flight:
            raise ElementBusyError(f"Element {element.id} is already rendering")

        self.in_flight.add(element.id)
        try:
            data_url, _ = await generate_image_url(self.image_generator, element.data.prompt, element.data.style)
        except Exception as e:
            # left pending; the user retries via regenerate
            logger.error(f"Image generation failed for element {element.id}: {e}")
            return False
        finally:
            self.in_flight.discard(element.id)

        patched = await repo.update_element_data(board_id, element.id, {"src": data_url, "status": "complete"})
        if not patched:
            logger.warning(f"Element {element.id} vanished from board {board_id} before its image landed")
            return False
        logger.info(f"Element {element.id} rendered")
        return True

    async def render_pending(self, repo: BoardRepository, board: Board) -> int:
        """start every pending element not already in flight; returns completed count"""
        pending = [
            el for el in board.canvas.elements
            if el.data.status == "pending" and el.id not in self.in_flight
        ]
        logger.info(f"Board {board.id}: rendering {len(pending)} pending elements")
        if not pending:
            return 0

        results = await asyncio.gather(
            *(self.render_element(repo, board.id, el) for el in pending),
            return_exceptions=True,
        )
        return sum(1 for r in results if r is True)


_renderer: ImageRenderer | None = None


def get_image_renderer(image_generator: ImageGenerator) -> ImageRenderer:
    global _renderer
    if _renderer is None or _renderer.image_generator is not image_generator:
        _renderer = ImageRenderer(image_generator)
    return _renderer
