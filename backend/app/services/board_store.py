# board store - board records, element edits, version snapshots

import logging
import uuid
from typing import Optional

from app.config import settings
from app.models.board import (
    Background,
    Board,
    BoardElement,
    BoardVersion,
    CanvasState,
    ElementCreate,
    ElementData,
)
from app.services.db import BoardRepository, utc_now

logger = logging.getLogger(__name__)


def doc_to_board(doc: dict) -> Board:
    return Board.model_validate(doc)


async def create_board(repo: BoardRepository, journal_id: str, title: str) -> Board:
    """new empty board; journal_id is "" for a blank board"""
    now = utc_now()
    board = Board(
        id=str(uuid.uuid4()),
        journalId=journal_id,
        title=title,
        createdAt=now,
        updatedAt=now,
        canvas=CanvasState(),
        versions=[],
    )
    await repo.add(board.model_dump())
    logger.info(f"Board created: {board.id} (journal={journal_id or 'none'})")
    return board


async def get_board(repo: BoardRepository, board_id: str) -> Optional[Board]:
    doc = await repo.get(board_id)
    return doc_to_board(doc) if doc else None


async def list_boards(repo: BoardRepository, limit: int = 50) -> list[Board]:
    return [doc_to_board(doc) for doc in await repo.list_recent(limit)]


async def set_elements(repo: BoardRepository, board: Board, elements: list[BoardElement]) -> Board:
    """replace the whole element list; only used when a board is (re)generated"""
    await repo.update(board.id, {"canvas.elements": [el.model_dump() for el in elements]})
    canvas = board.canvas.model_copy(update={"elements": elements})
    return board.model_copy(update={"canvas": canvas})


async def update_background(repo: BoardRepository, board: Board, background: Background) -> Board:
    await repo.update(board.id, {"canvas.background": background.model_dump()})
    return await get_board(repo, board.id)


def find_element(board: Board, element_id: str) -> Optional[BoardElement]:
    return next((el for el in board.canvas.elements if el.id == element_id), None)


async def add_element(repo: BoardRepository, board: Board, body: ElementCreate) -> tuple[Board, BoardElement]:
    element = BoardElement(
        id=str(uuid.uuid4()),
        layer=len(board.canvas.elements),
        data=ElementData(
            src="",
            prompt=body.prompt,
            isGenerated=True,
            style=body.style,
            title=body.title,
            affirmation=body.affirmation,
            gridSize=body.grid_size,
            status="pending",
        ),
    )
    await repo.push_element(board.id, element.model_dump())
    return await get_board(repo, board.id), element


async def update_element(repo: BoardRepository, board: Board, element_id: str, updates: dict) -> Board:
    """merge updates into one element's data payload; siblings are never rewritten"""
    if updates:
        await repo.update_element_data(board.id, element_id, updates)
    return await get_board(repo, board.id)


async def delete_element(repo: BoardRepository, board: Board, element_id: str) -> Board:
    await repo.pull_element(board.id, element_id)
    return await get_board(repo, board.id)


async def add_version(repo: BoardRepository, board: Board, description: Optional[str] = None) -> Board:
    """snapshot the current canvas; only the newest MAX_BOARD_VERSIONS are kept"""
    version = BoardVersion(
        id=str(uuid.uuid4()),
        snapshot=board.canvas.model_copy(deep=True),
        createdAt=utc_now(),
        description=description,
    )
    versions = [*board.versions, version][-settings.MAX_BOARD_VERSIONS:]
    await repo.update(board.id, {"versions": [v.model_dump() for v in versions]})
    logger.info(f"Board {board.id}: version snapshot added ({len(versions)} kept)")
    return board.model_copy(update={"versions": versions})
