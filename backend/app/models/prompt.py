# prompt models - prescribed and dynamic journaling questions
# mirrors frontend lib/journal/prompts.ts JournalPrompt

from typing import Optional
from pydantic import BaseModel, Field


class Prompt(BaseModel):
    """a single question in the journaling flow (prescribed or generated)"""
    id: str
    category: str = Field(..., description="phase tag: welcome | year | values | identity | life-areas | obstacles | closing | dynamic")
    question: str
    subtext: Optional[str] = None
    placeholder: Optional[str] = None
    psychology_technique: Optional[str] = Field(None, alias="psychologyTechnique")
    is_interlude: bool = Field(False, alias="isInterlude", description="informational only, no answer expected")
    is_dynamic: bool = Field(False, alias="isDynamic")

    model_config = {"populate_by_name": True}


class PromptCategory(BaseModel):
    id: str
    label: str
    icon: str


class PromptCatalogResponse(BaseModel):
    """prescribed prompts plus category metadata for the question flow ui"""
    prompts: list[Prompt]
    categories: list[PromptCategory]
    batch_size: int = Field(..., alias="batchSize")

    model_config = {"populate_by_name": True}
