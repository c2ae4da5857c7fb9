# flow router - step a journal through prescribed and dynamic questions
# every move saves the on-screen answer first, then applies one state transition

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from app.models.flow import AnswerSubmit, FlowStart, FlowView
from app.services.flow_machine import InvalidTransitionError
from app.services.flow_service import FlowService, JournalNotFoundError, SessionNotFoundError
from app.services import board_store
from app.services.db import BoardRepository
from app.services.image_service import ImageRenderer
from app.dependencies import get_board_repo, get_flow_service, get_renderer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/journals/{journal_id}/flow", tags=["flow"])


async def _run(call):
    """map flow errors onto http status codes"""
    try:
        return await call
    except (JournalNotFoundError, SessionNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransitionError as e:
        logger.warning(f"Rejected flow event: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/start", response_model=FlowView)
async def start_flow(
    journal_id: str,
    body: FlowStart = FlowStart(),
    flow: FlowService = Depends(get_flow_service),
):
    """open (or reopen) the session on the first unanswered required question"""
    return await _run(flow.start(journal_id, edit=body.edit))


@router.get("", response_model=FlowView)
async def get_flow(
    journal_id: str,
    flow: FlowService = Depends(get_flow_service),
):
    return await _run(flow.view(journal_id))


@router.post("/next", response_model=FlowView)
async def next_prompt(
    journal_id: str,
    body: AnswerSubmit,
    flow: FlowService = Depends(get_flow_service),
):
    return await _run(flow.next(journal_id, body.answer))


@router.post("/back", response_model=FlowView)
async def previous_prompt(
    journal_id: str,
    body: AnswerSubmit = AnswerSubmit(),
    flow: FlowService = Depends(get_flow_service),
):
    return await _run(flow.back(journal_id, body.answer))


@router.post("/continue", response_model=FlowView)
async def continue_exploring(
    journal_id: str,
    flow: FlowService = Depends(get_flow_service),
):
    """request another batch of follow-up questions"""
    return await _run(flow.continue_exploring(journal_id))


@router.post("/finish", response_model=FlowView)
async def finish_flow(
    journal_id: str,
    background_tasks: BackgroundTasks,
    flow: FlowService = Depends(get_flow_service),
    boards: BoardRepository = Depends(get_board_repo),
    renderer: ImageRenderer = Depends(get_renderer),
):
    """compile the profile, build the board, then render its tiles in the background"""
    view = await _run(flow.finish(journal_id))
    board = await board_store.get_board(boards, view.board_id)
    if board is not None:
        background_tasks.add_task(renderer.render_pending, boards, board)
    return view
