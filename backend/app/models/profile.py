# profile models - structured synthesis of a journaling conversation
# every field has a deterministic default so downstream code never sees gaps

from typing import Optional
from pydantic import BaseModel, Field


class LifeArea(BaseModel):
    area: str
    aspiration: str
    current_state: Optional[str] = Field(None, alias="currentState")

    model_config = {"populate_by_name": True}


class ObstacleItem(BaseModel):
    obstacle: str
    strategy: Optional[str] = None


class UserProfile(BaseModel):
    """compiled profile used to drive board theme generation"""
    year_word: str = Field(..., alias="yearWord")
    year_feeling: str = Field(..., alias="yearFeeling")
    core_values: list[str] = Field(default_factory=list, alias="coreValues")
    identity_statements: list[str] = Field(default_factory=list, alias="identityStatements")
    life_areas: list[LifeArea] = Field(default_factory=list, alias="lifeAreas")
    obstacles: list[ObstacleItem] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list, alias="actionItems")
    emotional_goals: list[str] = Field(default_factory=list, alias="emotionalGoals")
    key_themes: list[str] = Field(default_factory=list, alias="keyThemes")
    personal_mantra: str = Field(..., alias="personalMantra")
    relationships: list[str] = Field(default_factory=list)
    daily_vision: str = Field(..., alias="dailyVision")
    gratitudes: list[str] = Field(default_factory=list)
    summary: str

    model_config = {"populate_by_name": True}


class ConversationEntry(BaseModel):
    """one answered question, optionally tagged with its phase"""
    question: str
    answer: str
    category: Optional[str] = None
    prompt_id: Optional[str] = Field(None, alias="promptId")

    model_config = {"populate_by_name": True}


class CompileProfileRequest(BaseModel):
    responses: list[ConversationEntry] = Field(default_factory=list)


class CompileProfileResponse(BaseModel):
    success: bool = True
    profile: UserProfile
