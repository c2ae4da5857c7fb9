# llm service - text and image generation collaborators
# text: langchain + gemini chat model, free text out (callers parse defensively)
# image: google-genai gemini image model, returns raw bytes + media type
#
# both are exposed behind small classes so routers/services depend on the
# interface and tests can swap in fakes via dependency overrides

import base64
import logging
from dataclasses import dataclass
from typing import Optional

from google import genai
from google.genai import types
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from app.config import settings

logger = logging.getLogger(__name__)


class ImageGenerationError(RuntimeError):
    """provider call failed or returned no image"""


@dataclass
class GeneratedImage:
    media_type: str
    data: bytes


def to_data_url(image: GeneratedImage) -> str:
    """wrap binary image data as a data url for storage/display"""
    encoded = base64.b64encode(image.data).decode("ascii")
    return f"data:{image.media_type};base64,{encoded}"


def get_llm() -> ChatGoogleGenerativeAI:
    """create a gemini llm instance for structured text generation"""
    return ChatGoogleGenerativeAI(
        model=settings.GEMINI_MODEL,
        google_api_key=settings.GEMINI_API_KEY,
        temperature=settings.TEXT_TEMPERATURE,
        max_output_tokens=settings.TEXT_MAX_OUTPUT_TOKENS,
    )


# system + user text are passed as variables so braces in them are never templated
GENERATION_PROMPT = ChatPromptTemplate.from_messages([
    ("system", "{system_instruction}"),
    ("human", "{user_prompt}"),
])


class TextGenerator:
    """generate(system_instruction, user_prompt) -> raw text, no structure guaranteed"""

    def __init__(self, llm: Optional[ChatGoogleGenerativeAI] = None):
        self._llm = llm
        self._chain = None

    def _get_chain(self):
        if self._chain is None:
            llm = self._llm or get_llm()
            self._chain = GENERATION_PROMPT | llm | StrOutputParser()
        return self._chain

    async def generate(self, system_instruction: str, user_prompt: str) -> str:
        chain = self._get_chain()
        text = await chain.ainvoke({
            "system_instruction": system_instruction,
            "user_prompt": user_prompt,
        })
        logger.info(f"Text generation returned {len(text)} chars")
        return text


# "1024x1024" style sizes map onto gemini aspect ratios
_ASPECT_RATIOS = {
    "1024x1024": "1:1",
    "1792x1024": "16:9",
    "1024x1792": "9:16",
    "1536x1024": "3:2",
    "1024x1536": "2:3",
}


class ImageGenerator:
    """generate(prompt, size) -> GeneratedImage, raises ImageGenerationError"""

    def __init__(self, client: Optional[genai.Client] = None, model: Optional[str] = None):
        self._client = client
        self._model = model or settings.GEMINI_IMAGE_MODEL

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not settings.GEMINI_API_KEY:
                raise ImageGenerationError("GEMINI_API_KEY is not set")
            self._client = genai.Client(api_key=settings.GEMINI_API_KEY)
        return self._client

    async def generate(self, prompt: str, size: str = "1024x1024") -> GeneratedImage:
        client = self._get_client()
        config = types.GenerateContentConfig(
            response_modalities=["IMAGE"],
            image_config=types.ImageConfig(aspect_ratio=_ASPECT_RATIOS.get(size, "1:1")),
        )

        try:
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            raise ImageGenerationError(f"Gemini image request failed: {e}") from e

        if not response.candidates:
            raise ImageGenerationError("No candidates returned from Gemini")

        candidate = response.candidates[0]
        parts = candidate.content.parts if candidate.content and candidate.content.parts else []

        for part in parts:
            if part.inline_data and part.inline_data.mime_type and part.inline_data.mime_type.startswith("image/"):
                data = part.inline_data.data
                if isinstance(data, str):
                    data = base64.b64decode(data)
                return GeneratedImage(media_type=part.inline_data.mime_type, data=data)

        raise ImageGenerationError("No image data found in Gemini response")


# singletons (clients are created lazily on first call)
_text_generator: Optional[TextGenerator] = None
_image_generator: Optional[ImageGenerator] = None


def get_text_generator() -> TextGenerator:
    """dependency injection for the text generation collaborator"""
    global _text_generator
    if _text_generator is None:
        _text_generator = TextGenerator()
    return _text_generator


def get_image_generator() -> ImageGenerator:
    """dependency injection for the image generation collaborator"""
    global _image_generator
    if _image_generator is None:
        _image_generator = ImageGenerator()
    return _image_generator
