# vision board backend api
# fastapi app with async mongodb, gemini text + image generation

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.services.db import db
from app.routers import journals, flow, prompts, questions, profile, boards, images

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """startup: connect to mongodb. shutdown: close connection."""
    logger.info("Starting vision board backend...")
    await db.connect()
    logger.info("Vision board backend ready")
    yield
    logger.info("Shutting down vision board backend...")
    await db.close()


app = FastAPI(
    title="Vision Board API",
    description="Backend API for guided year-vision journaling - adaptive questions, profile synthesis, vision board generation",
    version="0.1.0",
    lifespan=lifespan,
)

# cors - allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# register routers
app.include_router(journals.router)
app.include_router(flow.router)
app.include_router(prompts.router)
app.include_router(questions.router)
app.include_router(profile.router)
app.include_router(boards.router)
app.include_router(images.router)


@app.get("/health")
async def health_check():
    """basic health check endpoint"""
    return {"status": "ok", "service": "vision-board-api"}
