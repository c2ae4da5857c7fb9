# journal service - journal records and their response log
# each write is one independent repository call (no cross-entity transactions)

import logging
import uuid
from datetime import datetime
from typing import Optional, Sequence

from app.config import settings
from app.models.journal import Journal, ResponseEntry
from app.models.profile import ConversationEntry, UserProfile
from app.services.db import JournalRepository, utc_now

logger = logging.getLogger(__name__)


def default_title(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"My {settings.VISION_YEAR} Vision - {now.strftime('%b')} {now.day}"


def doc_to_journal(doc: dict) -> Journal:
    return Journal.model_validate(doc)


def upsert_response(responses: Sequence[ResponseEntry], entry: ResponseEntry) -> list[ResponseEntry]:
    """replace the entry for the same prompt in place, otherwise append"""
    updated = list(responses)
    for i, existing in enumerate(updated):
        if existing.prompt_id == entry.prompt_id:
            updated[i] = entry
            return updated
    updated.append(entry)
    return updated


def to_conversation(responses: Sequence[ResponseEntry]) -> list[ConversationEntry]:
    """answered responses in answer order, as generation input"""
    return [
        ConversationEntry(question=r.question, answer=r.answer, category=r.category, promptId=r.prompt_id)
        for r in responses
        if r.answer.strip()
    ]


async def create_journal(repo: JournalRepository, title: Optional[str] = None) -> Journal:
    now = utc_now()
    journal = Journal(
        id=str(uuid.uuid4()),
        title=title or default_title(),
        createdAt=now,
        updatedAt=now,
        responses=[],
        isComplete=False,
    )
    await repo.add(journal.model_dump())
    logger.info(f"Journal created: {journal.id}")
    return journal


async def get_journal(repo: JournalRepository, journal_id: str) -> Optional[Journal]:
    doc = await repo.get(journal_id)
    return doc_to_journal(doc) if doc else None


async def list_journals(repo: JournalRepository, limit: int = 50) -> list[Journal]:
    return [doc_to_journal(doc) for doc in await repo.list_recent(limit)]


async def save_response(
    repo: JournalRepository,
    journal: Journal,
    prompt_id: str,
    question: str,
    answer: str,
    category: Optional[str] = None,
) -> Journal:
    entry = ResponseEntry(
        promptId=prompt_id,
        question=question,
        answer=answer.strip(),
        timestamp=utc_now(),
        category=category,
    )
    responses = upsert_response(journal.responses, entry)
    await repo.update(journal.id, {"responses": [r.model_dump() for r in responses]})
    return journal.model_copy(update={"responses": responses})


async def update_profile(repo: JournalRepository, journal: Journal, profile: UserProfile) -> Journal:
    await repo.update(journal.id, {"profile": profile.model_dump()})
    return journal.model_copy(update={"profile": profile})


async def mark_complete(repo: JournalRepository, journal: Journal) -> Journal:
    await repo.update(journal.id, {"is_complete": True})
    logger.info(f"Journal marked complete: {journal.id}")
    return journal.model_copy(update={"is_complete": True})


async def link_board(repo: JournalRepository, journal: Journal, board_id: str) -> Journal:
    await repo.update(journal.id, {"board_id": board_id})
    return journal.model_copy(update={"board_id": board_id})
