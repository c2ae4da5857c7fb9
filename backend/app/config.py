# backend configuration
# loads env vars for mongodb, gemini text + image models, journaling flow knobs

import os
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent.parent / ".env")


class Settings(BaseSettings):
    # mongodb (journals + boards collections)
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "vision_board_db")

    # gemini text generation (questions, profile, board themes)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    TEXT_TEMPERATURE: float = 0.7
    TEXT_MAX_OUTPUT_TOKENS: int = 8192

    # gemini image generation (board tiles)
    GEMINI_IMAGE_MODEL: str = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image")
    IMAGE_SIZE: str = "1024x1024"

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # journaling flow
    VISION_YEAR: int = 2026
    QUESTION_BATCH_SIZE: int = 4

    # boards
    MAX_BOARD_VERSIONS: int = 10
    # fixed seed makes the tile shuffle reproducible; None = fresh entropy per board
    BOARD_SHUFFLE_SEED: Optional[int] = None

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
