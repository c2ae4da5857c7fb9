# question generation models - dynamic follow-up batches

from typing import Optional
from pydantic import BaseModel, Field


class HistoryEntry(BaseModel):
    question: str
    answer: str


class GeneratedQuestion(BaseModel):
    """one follow-up question as returned by the model (or a fallback batch)"""
    question: str = Field(..., min_length=1)
    subtext: str = ""
    category: str = "dynamic"
    psychology_technique: Optional[str] = Field(None, alias="psychologyTechnique")

    model_config = {"populate_by_name": True}


class GenerateQuestionsRequest(BaseModel):
    conversation_history: list[HistoryEntry] = Field(default_factory=list, alias="conversationHistory")
    batch_number: int = Field(1, alias="batchNumber", ge=1)
    batch_size: int = Field(4, alias="batchSize", ge=1, le=12)

    model_config = {"populate_by_name": True}


class GenerateQuestionsResponse(BaseModel):
    success: bool = True
    questions: list[GeneratedQuestion]
