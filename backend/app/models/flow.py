# flow models - what the question-flow ui renders for a journaling session

from typing import Optional
from pydantic import BaseModel, Field

from app.models.prompt import Prompt


class FlowStart(BaseModel):
    """edit=true re-enters a completed journal to regenerate its existing board"""
    edit: bool = False


class AnswerSubmit(BaseModel):
    answer: str = ""


class FlowView(BaseModel):
    journal_id: str = Field(..., alias="journalId")
    phase: str
    prompts: list[Prompt]
    current_index: int = Field(..., alias="currentIndex")
    current_prompt: Optional[Prompt] = Field(None, alias="currentPrompt")
    current_answer: str = Field("", alias="currentAnswer")
    batch_number: int = Field(0, alias="batchNumber")
    dynamic_batch_start: Optional[int] = Field(None, alias="dynamicBatchStart")
    progress: float = 0.0
    answered_count: int = Field(0, alias="answeredCount")
    prescribed_complete: bool = Field(False, alias="prescribedComplete")
    edit_mode: bool = Field(False, alias="editMode")
    board_id: Optional[str] = Field(None, alias="boardId")

    model_config = {"populate_by_name": True}
