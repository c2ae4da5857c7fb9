# fastapi dependency injection
# provides repositories, generation collaborators, the tile renderer and flow sessions

import logging
from fastapi import Depends

from app.services.db import BoardRepository, Database, JournalRepository, get_db
from app.services.flow_service import FlowService, SessionStore, get_session_store
from app.services.image_service import ImageRenderer, get_image_renderer
from app.services.llm_service import ImageGenerator, TextGenerator, get_image_generator, get_text_generator

logger = logging.getLogger(__name__)


async def get_journal_repo(db: Database = Depends(get_db)) -> JournalRepository:
    return JournalRepository(db.journals)


async def get_board_repo(db: Database = Depends(get_db)) -> BoardRepository:
    return BoardRepository(db.boards)


async def get_renderer(image_generator: ImageGenerator = Depends(get_image_generator)) -> ImageRenderer:
    """one renderer per image generator so in-flight tracking is shared across requests"""
    return get_image_renderer(image_generator)


async def get_flow_service(
    sessions: SessionStore = Depends(get_session_store),
    journals: JournalRepository = Depends(get_journal_repo),
    boards: BoardRepository = Depends(get_board_repo),
    text_generator: TextGenerator = Depends(get_text_generator),
) -> FlowService:
    return FlowService(sessions, journals, boards, text_generator)
