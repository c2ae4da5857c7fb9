# flow machine - journaling phase state machine
#
#   prescribed -> transition -> (generating -> dynamic -> transition)* -> complete
#
# transition(state, event) is pure: it returns a new FlowState or raises
# InvalidTransitionError. saving answers and calling generators happens in
# flow_service, which feeds the outcomes back in as events.

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from app.models.journal import ResponseEntry
from app.models.prompt import Prompt
from app.services.prompt_catalog import PRESCRIBED_PROMPTS, REQUIRED_PRESCRIBED_IDS


class FlowPhase(str, Enum):
    PRESCRIBED = "prescribed"
    TRANSITION = "transition"
    GENERATING = "generating"
    DYNAMIC = "dynamic"
    COMPLETE = "complete"


class FlowState(BaseModel):
    phase: FlowPhase
    prompts: list[Prompt]
    current_index: int = Field(0, alias="currentIndex")
    batch_number: int = Field(0, alias="batchNumber")
    dynamic_batch_start: Optional[int] = Field(None, alias="dynamicBatchStart")
    prescribed_count: int = Field(..., alias="prescribedCount")
    edit_mode: bool = Field(False, alias="editMode")
    board_id: Optional[str] = Field(None, alias="boardId")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def current_prompt(self) -> Optional[Prompt]:
        if self.phase in (FlowPhase.PRESCRIBED, FlowPhase.DYNAMIC):
            return self.prompts[self.current_index]
        return None


# events

@dataclass(frozen=True)
class Advance:
    """user moved forward; prescribed_complete reflects responses after the save"""
    prescribed_complete: bool = False


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class ContinueExploring:
    pass


@dataclass(frozen=True)
class BatchReady:
    prompts: tuple[Prompt, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BatchFailed:
    reason: str = ""


@dataclass(frozen=True)
class Finish:
    board_id: Optional[str] = None


class InvalidTransitionError(Exception):
    def __init__(self, phase: FlowPhase, event: object):
        self.phase = phase
        self.event = event
        super().__init__(f"Cannot apply {type(event).__name__} in phase '{phase.value}'")


def initial_state(
    responses: Sequence[ResponseEntry],
    edit_mode: bool = False,
    board_id: Optional[str] = None,
) -> FlowState:
    """open a session on the first unanswered required prescribed prompt"""
    prompts = [p.model_copy() for p in PRESCRIBED_PROMPTS]
    answered = {r.prompt_id for r in responses if r.answer.strip()}

    if edit_mode or not answered:
        index = 0
    else:
        missing = [pid for pid in REQUIRED_PRESCRIBED_IDS if pid not in answered]
        target = missing[0] if missing else REQUIRED_PRESCRIBED_IDS[-1]
        index = next(i for i, p in enumerate(prompts) if p.id == target)

    return FlowState(
        phase=FlowPhase.PRESCRIBED,
        prompts=prompts,
        currentIndex=index,
        prescribedCount=len(prompts),
        editMode=edit_mode,
        boardId=board_id,
    )


def _with(state: FlowState, **changes) -> FlowState:
    return state.model_copy(update=changes)


def _advance(state: FlowState, event: Advance) -> FlowState:
    last_index = len(state.prompts) - 1

    if state.phase == FlowPhase.PRESCRIBED:
        last_prescribed = state.prescribed_count - 1
        if state.current_index < last_prescribed:
            return _with(state, current_index=state.current_index + 1)
        if not event.prescribed_complete:
            # end of the prescribed list but required answers missing: stay put
            return state
        if state.current_index < last_index:
            # walked back from an earlier batch; continue into it
            return _with(state, phase=FlowPhase.DYNAMIC, current_index=state.current_index + 1)
        return _with(state, phase=FlowPhase.TRANSITION)

    # dynamic
    if state.current_index < last_index:
        return _with(state, current_index=state.current_index + 1)
    return _with(state, phase=FlowPhase.TRANSITION)


def _back(state: FlowState) -> FlowState:
    if state.phase == FlowPhase.TRANSITION:
        if state.batch_number > 0:
            return _with(state, phase=FlowPhase.DYNAMIC, current_index=len(state.prompts) - 1)
        return _with(state, phase=FlowPhase.PRESCRIBED, current_index=state.prescribed_count - 1)

    if state.current_index == 0:
        return state

    index = state.current_index - 1
    phase = FlowPhase.PRESCRIBED if index < state.prescribed_count else FlowPhase.DYNAMIC
    return _with(state, phase=phase, current_index=index)


def _batch_ready(state: FlowState, event: BatchReady) -> FlowState:
    if not event.prompts:
        return _with(state, phase=FlowPhase.TRANSITION)
    start = len(state.prompts)
    return _with(
        state,
        phase=FlowPhase.DYNAMIC,
        prompts=[*state.prompts, *event.prompts],
        current_index=start,
        batch_number=state.batch_number + 1,
        dynamic_batch_start=start,
    )


def transition(state: FlowState, event: object) -> FlowState:
    """apply one event; raises InvalidTransitionError for illegal combinations"""
    phase = state.phase

    if isinstance(event, Advance) and phase in (FlowPhase.PRESCRIBED, FlowPhase.DYNAMIC):
        return _advance(state, event)

    if isinstance(event, Back) and phase in (FlowPhase.PRESCRIBED, FlowPhase.DYNAMIC, FlowPhase.TRANSITION):
        return _back(state)

    if isinstance(event, ContinueExploring) and phase == FlowPhase.TRANSITION:
        return _with(state, phase=FlowPhase.GENERATING)

    if isinstance(event, BatchReady) and phase == FlowPhase.GENERATING:
        return _batch_ready(state, event)

    if isinstance(event, BatchFailed) and phase == FlowPhase.GENERATING:
        return _with(state, phase=FlowPhase.TRANSITION)

    if isinstance(event, Finish) and phase == FlowPhase.TRANSITION:
        return _with(state, phase=FlowPhase.COMPLETE, board_id=event.board_id or state.board_id)

    raise InvalidTransitionError(phase, event)
