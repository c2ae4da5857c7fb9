# flow service - drives one journaling session through the phase state machine
#
# a session lives in memory (single local user, one session per journal).
# dynamic prompts exist only inside the session; their answers persist on the
# journal. every external failure is absorbed here or below, so the machine
# itself never enters an error state.

import logging
import random
from typing import Optional

from app.models.flow import FlowView
from app.models.journal import Journal
from app.models.question import HistoryEntry
from app.services import board_store, journal_service
from app.services.board_service import BoardGenerationError, generate_board
from app.services.db import BoardRepository, JournalRepository
from app.services.flow_machine import (
    Advance,
    Back,
    BatchFailed,
    BatchReady,
    ContinueExploring,
    Finish,
    FlowPhase,
    FlowState,
    InvalidTransitionError,
    initial_state,
    transition,
)
from app.services.llm_service import TextGenerator
from app.services.profile_service import compile_profile
from app.services.prompt_catalog import (
    QUESTION_BATCH_SIZE,
    get_answered_count,
    get_progress,
    is_prescribed_phase_complete,
)
from app.services.question_service import generate_questions, materialize_prompts

logger = logging.getLogger(__name__)


class JournalNotFoundError(LookupError):
    pass


class SessionNotFoundError(LookupError):
    pass


class SessionStore:
    """in-memory flow states keyed by journal id"""

    def __init__(self):
        self._states: dict[str, FlowState] = {}

    def get(self, journal_id: str) -> FlowState:
        try:
            return self._states[journal_id]
        except KeyError:
            raise SessionNotFoundError(f"No active flow session for journal {journal_id}") from None

    def put(self, journal_id: str, state: FlowState) -> None:
        self._states[journal_id] = state


# singleton instance
sessions = SessionStore()


def get_session_store() -> SessionStore:
    return sessions


def build_view(journal: Journal, state: FlowState) -> FlowView:
    prompt = state.current_prompt
    current_answer = ""
    if prompt is not None:
        existing = next((r for r in journal.responses if r.prompt_id == prompt.id), None)
        current_answer = existing.answer if existing else ""

    return FlowView(
        journalId=journal.id,
        phase=state.phase.value,
        prompts=state.prompts,
        currentIndex=state.current_index,
        currentPrompt=prompt,
        currentAnswer=current_answer,
        batchNumber=state.batch_number,
        dynamicBatchStart=state.dynamic_batch_start,
        progress=round(get_progress(state.current_index, len(state.prompts)), 1),
        answeredCount=get_answered_count(journal.responses),
        prescribedComplete=is_prescribed_phase_complete(journal.responses),
        editMode=state.edit_mode,
        boardId=state.board_id or journal.board_id,
    )


class FlowService:

    def __init__(
        self,
        sessions: SessionStore,
        journals: JournalRepository,
        boards: BoardRepository,
        text_generator: TextGenerator,
        batch_size: int = QUESTION_BATCH_SIZE,
        rng: Optional[random.Random] = None,
    ):
        self.sessions = sessions
        self.journals = journals
        self.boards = boards
        self.text_generator = text_generator
        self.batch_size = batch_size
        self.rng = rng

    async def _load(self, journal_id: str) -> Journal:
        journal = await journal_service.get_journal(self.journals, journal_id)
        if journal is None:
            raise JournalNotFoundError(f"Journal {journal_id} not found")
        return journal

    async def _save_current(self, journal: Journal, state: FlowState, answer: str) -> Journal:
        """save the answer for the prompt on screen before navigating away"""
        prompt = state.current_prompt
        if prompt is None or prompt.is_interlude:
            return journal

        previously_answered = any(r.prompt_id == prompt.id for r in journal.responses)
        if not answer.strip() and not previously_answered:
            return journal

        return await journal_service.save_response(
            self.journals,
            journal,
            prompt_id=prompt.id,
            question=prompt.question,
            answer=answer,
            category=prompt.category,
        )

    async def start(self, journal_id: str, edit: bool = False) -> FlowView:
        journal = await self._load(journal_id)
        edit_mode = edit and bool(journal.board_id)
        state = initial_state(journal.responses, edit_mode=edit_mode, board_id=journal.board_id if edit_mode else None)
        self.sessions.put(journal_id, state)
        logger.info(f"Flow session started for journal {journal_id} (edit={edit_mode}, index={state.current_index})")
        return build_view(journal, state)

    async def view(self, journal_id: str) -> FlowView:
        state = self.sessions.get(journal_id)
        journal = await self._load(journal_id)
        return build_view(journal, state)

    async def next(self, journal_id: str, answer: str) -> FlowView:
        state = self.sessions.get(journal_id)
        if state.phase not in (FlowPhase.PRESCRIBED, FlowPhase.DYNAMIC):
            raise InvalidTransitionError(state.phase, Advance())

        journal = await self._load(journal_id)
        journal = await self._save_current(journal, state, answer)

        state = transition(state, Advance(prescribed_complete=is_prescribed_phase_complete(journal.responses)))
        self.sessions.put(journal_id, state)
        return build_view(journal, state)

    async def back(self, journal_id: str, answer: str = "") -> FlowView:
        state = self.sessions.get(journal_id)
        if state.phase not in (FlowPhase.PRESCRIBED, FlowPhase.DYNAMIC, FlowPhase.TRANSITION):
            raise InvalidTransitionError(state.phase, Back())

        journal = await self._load(journal_id)
        journal = await self._save_current(journal, state, answer)

        state = transition(state, Back())
        self.sessions.put(journal_id, state)
        return build_view(journal, state)

    async def continue_exploring(self, journal_id: str) -> FlowView:
        state = transition(self.sessions.get(journal_id), ContinueExploring())
        # stored before the await so a second request sees `generating` and is rejected
        self.sessions.put(journal_id, state)

        batch_number = state.batch_number + 1
        try:
            journal = await self._load(journal_id)
            history = [
                HistoryEntry(question=c.question, answer=c.answer)
                for c in journal_service.to_conversation(journal.responses)
            ]
            questions = await generate_questions(self.text_generator, history, batch_number, self.batch_size)
            event = BatchReady(prompts=tuple(materialize_prompts(questions)))
        except Exception as e:
            logger.error(f"Batch {batch_number} for journal {journal_id} failed: {e}")
            event = BatchFailed(reason=str(e))

        state = transition(state, event)
        self.sessions.put(journal_id, state)

        if isinstance(event, BatchFailed):
            # journal lookup may be what failed; reload for the view and let that propagate
            journal = await self._load(journal_id)
        logger.info(f"Journal {journal_id}: batch {batch_number} -> phase {state.phase.value}")
        return build_view(journal, state)

    async def finish(self, journal_id: str) -> FlowView:
        """compile the profile, then create (or regenerate) the board"""
        state = self.sessions.get(journal_id)
        if state.phase != FlowPhase.TRANSITION:
            raise InvalidTransitionError(state.phase, Finish())

        journal = await self._load(journal_id)
        conversation = journal_service.to_conversation(journal.responses)

        profile = await compile_profile(self.text_generator, conversation)
        journal = await journal_service.update_profile(self.journals, journal, profile)
        journal = await journal_service.mark_complete(self.journals, journal)

        board = None
        if state.edit_mode and journal.board_id:
            board = await board_store.get_board(self.boards, journal.board_id)
            if board is not None:
                board = await board_store.add_version(self.boards, board, "Before regeneration")
        if board is None:
            board = await board_store.create_board(self.boards, journal.id, journal.title)
            journal = await journal_service.link_board(self.journals, journal, board.id)

        try:
            elements, _ = await generate_board(self.text_generator, conversation, profile, rng=self.rng)
        except BoardGenerationError:
            # board stays empty; the user can retry from the board page
            elements = []
        await board_store.set_elements(self.boards, board, elements)

        state = transition(state, Finish(board_id=board.id))
        self.sessions.put(journal_id, state)
        logger.info(f"Journal {journal_id} finished -> board {board.id} with {len(elements)} elements")
        return build_view(journal, state)
