# boards router - theme generation, board records and tile editing
# tiles render in background tasks; each completion patches only its own element

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status, Query, Response

from app.models.board import (
    Background,
    Board,
    BoardCreate,
    BoardElement,
    ElementCreate,
    ElementUpdate,
    GenerateBoardRequest,
    GenerateBoardResponse,
    RegenerateRequest,
    VersionCreate,
)
from app.services import board_store, journal_service
from app.services.board_service import BoardGenerationError, generate_board
from app.services.db import BoardRepository, JournalRepository
from app.services.image_service import ElementBusyError, ImageRenderer
from app.services.llm_service import TextGenerator, get_text_generator
from app.dependencies import get_board_repo, get_journal_repo, get_renderer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/boards", tags=["boards"])


async def _get_or_404(repo: BoardRepository, board_id: str) -> Board:
    board = await board_store.get_board(repo, board_id)
    if board is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Board not found",
        )
    return board


def _element_or_404(board: Board, element_id: str) -> BoardElement:
    element = board_store.find_element(board, element_id)
    if element is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Element not found",
        )
    return element


async def _render(renderer: ImageRenderer, repo: BoardRepository, board_id: str, element: BoardElement):
    """background task wrapper; a duplicate render is dropped, not raised"""
    try:
        await renderer.render_element(repo, board_id, element)
    except ElementBusyError as e:
        logger.warning(str(e))


@router.post("/generate", response_model=GenerateBoardResponse)
async def generate(
    body: GenerateBoardRequest,
    journals: JournalRepository = Depends(get_journal_repo),
    text_generator: TextGenerator = Depends(get_text_generator),
):
    """themes + pending elements from answers and/or a profile.
    with a journalId and no inline answers, the journal's own answers are used."""
    responses = body.responses
    profile = body.profile

    if body.journal_id and not responses:
        journal = await journal_service.get_journal(journals, body.journal_id)
        if journal is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Journal not found",
            )
        responses = journal_service.to_conversation(journal.responses)
        profile = profile or journal.profile

    try:
        elements, themes = await generate_board(text_generator, responses, profile, body.image_count)
    except BoardGenerationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate vision board",
        )

    return GenerateBoardResponse(elements=elements, themes=themes)


@router.post("", response_model=Board, status_code=status.HTTP_201_CREATED)
async def create_board(
    body: BoardCreate,
    repo: BoardRepository = Depends(get_board_repo),
):
    """blank board, or an empty board for a journal"""
    return await board_store.create_board(repo, body.journal_id, body.title)


@router.get("", response_model=list[Board])
async def list_boards(
    limit: int = Query(50, ge=1, le=200),
    repo: BoardRepository = Depends(get_board_repo),
):
    return await board_store.list_boards(repo, limit)


@router.get("/{board_id}", response_model=Board)
async def get_board(
    board_id: str,
    repo: BoardRepository = Depends(get_board_repo),
):
    return await _get_or_404(repo, board_id)


@router.patch("/{board_id}/background", response_model=Board)
async def update_background(
    board_id: str,
    body: Background,
    repo: BoardRepository = Depends(get_board_repo),
):
    board = await _get_or_404(repo, board_id)
    return await board_store.update_background(repo, board, body)


@router.post("/{board_id}/elements", response_model=BoardElement, status_code=status.HTTP_201_CREATED)
async def add_element(
    board_id: str,
    body: ElementCreate,
    background_tasks: BackgroundTasks,
    repo: BoardRepository = Depends(get_board_repo),
    renderer: ImageRenderer = Depends(get_renderer),
):
    """append a pending tile and start rendering it"""
    board = await _get_or_404(repo, board_id)
    board, element = await board_store.add_element(repo, board, body)
    background_tasks.add_task(_render, renderer, repo, board.id, element)
    logger.info(f"Board {board.id}: element {element.id} added")
    return element


@router.patch("/{board_id}/elements/{element_id}", response_model=BoardElement)
async def update_element(
    board_id: str,
    element_id: str,
    body: ElementUpdate,
    repo: BoardRepository = Depends(get_board_repo),
):
    """edit text fields of a tile; the image is untouched"""
    board = await _get_or_404(repo, board_id)
    _element_or_404(board, element_id)

    updates = body.model_dump(exclude_none=True)
    board = await board_store.update_element(repo, board, element_id, updates)
    return board_store.find_element(board, element_id)


@router.delete("/{board_id}/elements/{element_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_element(
    board_id: str,
    element_id: str,
    repo: BoardRepository = Depends(get_board_repo),
):
    board = await _get_or_404(repo, board_id)
    _element_or_404(board, element_id)
    await board_store.delete_element(repo, board, element_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{board_id}/elements/{element_id}/regenerate", response_model=BoardElement)
async def regenerate_element(
    board_id: str,
    element_id: str,
    background_tasks: BackgroundTasks,
    body: RegenerateRequest = RegenerateRequest(),
    repo: BoardRepository = Depends(get_board_repo),
    renderer: ImageRenderer = Depends(get_renderer),
):
    """put a tile back to pending (optionally with a new prompt/style) and re-render it"""
    board = await _get_or_404(repo, board_id)
    _element_or_404(board, element_id)

    if renderer.is_rendering(element_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Element is already being generated",
        )

    updates = {"status": "pending", **body.model_dump(exclude_none=True)}
    board = await board_store.update_element(repo, board, element_id, updates)
    element = board_store.find_element(board, element_id)
    background_tasks.add_task(_render, renderer, repo, board.id, element)
    return element


@router.post("/{board_id}/render")
async def render_pending(
    board_id: str,
    background_tasks: BackgroundTasks,
    repo: BoardRepository = Depends(get_board_repo),
    renderer: ImageRenderer = Depends(get_renderer),
):
    """start rendering every pending tile not already in flight"""
    board = await _get_or_404(repo, board_id)
    pending = [
        el.id for el in board.canvas.elements
        if el.data.status == "pending" and not renderer.is_rendering(el.id)
    ]
    if pending:
        background_tasks.add_task(renderer.render_pending, repo, board)
    return {"boardId": board.id, "pending": pending}


@router.post("/{board_id}/versions", response_model=Board, status_code=status.HTTP_201_CREATED)
async def add_version(
    board_id: str,
    body: VersionCreate = VersionCreate(),
    repo: BoardRepository = Depends(get_board_repo),
):
    """snapshot the canvas, e.g. right before an export"""
    board = await _get_or_404(repo, board_id)
    return await board_store.add_version(repo, board, body.description)
