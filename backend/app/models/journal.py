# journal models - reflection sessions and their question/answer log
# mirrors frontend lib/storage/db.ts Journal, JournalResponse

from typing import Optional
from pydantic import BaseModel, Field

from app.models.profile import UserProfile


class ResponseEntry(BaseModel):
    """one saved answer. prompt_id is unique within a journal's responses"""
    prompt_id: str = Field(..., alias="promptId")
    question: str
    answer: str
    timestamp: str
    category: Optional[str] = None

    model_config = {"populate_by_name": True}


class Journal(BaseModel):
    """full journal record as stored in the journals collection"""
    id: str
    title: str
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    responses: list[ResponseEntry] = Field(default_factory=list)
    profile: Optional[UserProfile] = None
    board_id: Optional[str] = Field(None, alias="boardId")
    is_complete: bool = Field(False, alias="isComplete")

    model_config = {"populate_by_name": True}


class JournalCreate(BaseModel):
    """payload for starting a new journal; title defaults to a dated one"""
    title: Optional[str] = Field(None, max_length=200)


class ResponseSave(BaseModel):
    """payload for saving (or overwriting) the answer to one prompt"""
    prompt_id: str = Field(..., alias="promptId", min_length=1)
    question: str
    answer: str = ""
    category: Optional[str] = None

    model_config = {"populate_by_name": True}


class ProfileUpdate(BaseModel):
    profile: UserProfile
