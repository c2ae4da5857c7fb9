# journals router - create, list and update journaling sessions
# answers are upserted per prompt; the flow router drives navigation

import logging

from fastapi import APIRouter, Depends, HTTPException, status, Query

from app.models.journal import Journal, JournalCreate, ProfileUpdate, ResponseSave
from app.services import journal_service
from app.services.db import JournalRepository
from app.services.prompt_catalog import category_for_prompt
from app.dependencies import get_journal_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/journals", tags=["journals"])


async def _get_or_404(repo: JournalRepository, journal_id: str) -> Journal:
    journal = await journal_service.get_journal(repo, journal_id)
    if journal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Journal not found",
        )
    return journal


@router.post("", response_model=Journal, status_code=status.HTTP_201_CREATED)
async def create_journal(
    body: JournalCreate,
    repo: JournalRepository = Depends(get_journal_repo),
):
    """start a new journal; title defaults to 'My <year> Vision - <Mon D>'"""
    return await journal_service.create_journal(repo, body.title)


@router.get("", response_model=list[Journal])
async def list_journals(
    limit: int = Query(50, ge=1, le=200),
    repo: JournalRepository = Depends(get_journal_repo),
):
    """most recently updated first"""
    return await journal_service.list_journals(repo, limit)


@router.get("/{journal_id}", response_model=Journal)
async def get_journal(
    journal_id: str,
    repo: JournalRepository = Depends(get_journal_repo),
):
    return await _get_or_404(repo, journal_id)


@router.put("/{journal_id}/responses", response_model=Journal)
async def save_response(
    journal_id: str,
    body: ResponseSave,
    repo: JournalRepository = Depends(get_journal_repo),
):
    """save or overwrite the answer to one prompt"""
    journal = await _get_or_404(repo, journal_id)
    return await journal_service.save_response(
        repo,
        journal,
        prompt_id=body.prompt_id,
        question=body.question,
        answer=body.answer,
        category=body.category or category_for_prompt(body.prompt_id),
    )


@router.patch("/{journal_id}/profile", response_model=Journal)
async def update_profile(
    journal_id: str,
    body: ProfileUpdate,
    repo: JournalRepository = Depends(get_journal_repo),
):
    journal = await _get_or_404(repo, journal_id)
    return await journal_service.update_profile(repo, journal, body.profile)


@router.post("/{journal_id}/complete", response_model=Journal)
async def complete_journal(
    journal_id: str,
    repo: JournalRepository = Depends(get_journal_repo),
):
    journal = await _get_or_404(repo, journal_id)
    return await journal_service.mark_complete(repo, journal)
