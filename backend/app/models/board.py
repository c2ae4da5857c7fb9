# board models - vision board canvas, image tiles, generation themes
# mirrors frontend lib/storage/db.ts Board, CanvasState, CanvasElement, ImageData

from typing import Literal, Optional
from pydantic import BaseModel, Field

from app.models.profile import UserProfile, ConversationEntry

GridSize = Literal["small", "medium", "large"]
ElementStatus = Literal["pending", "complete", "error"]
ImageStyle = Literal[
    "photography",
    "watercolor",
    "abstract",
    "oilpainting",
    "minimalist",
    "impressionist",
    "cinematic",
    "macro",
    "landscape",
    "symbolic",
    "dreamy",
    "vintage",
]


class Theme(BaseModel):
    """generation-time visual concept, before it becomes a board element"""
    title: str
    image_prompt: str = Field(..., alias="imagePrompt")
    affirmation: str = ""
    style: str = ""
    grid_size: str = Field("small", alias="gridSize")
    personal_connection: Optional[str] = Field(None, alias="personalConnection")

    model_config = {"populate_by_name": True}


class Position(BaseModel):
    x: float = 0
    y: float = 0


class Size(BaseModel):
    width: float = 350
    height: float = 280


class ElementData(BaseModel):
    src: str = ""
    prompt: str = ""
    is_generated: bool = Field(True, alias="isGenerated")
    style: str = "photography"
    title: str = ""
    affirmation: str = ""
    grid_size: GridSize = Field("small", alias="gridSize")
    personal_connection: Optional[str] = Field(None, alias="personalConnection")
    status: ElementStatus = "pending"

    model_config = {"populate_by_name": True}


class BoardElement(BaseModel):
    """one tile on the board. geometry is presentation-only"""
    id: str
    type: Literal["image"] = "image"
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)
    rotation: float = 0
    layer: int = 0
    locked: bool = False
    data: ElementData


class Background(BaseModel):
    type: Literal["color", "gradient", "texture", "image"] = "color"
    value: str = "#0D0D0D"
    secondary_value: Optional[str] = Field(None, alias="secondaryValue")
    direction: Optional[float] = None

    model_config = {"populate_by_name": True}


class Viewport(BaseModel):
    x: float = 0
    y: float = 0
    zoom: float = 1


class CanvasState(BaseModel):
    background: Background = Field(default_factory=Background)
    elements: list[BoardElement] = Field(default_factory=list)
    viewport: Viewport = Field(default_factory=Viewport)


class BoardVersion(BaseModel):
    """immutable snapshot of the canvas taken at export time"""
    id: str
    snapshot: CanvasState
    created_at: str = Field(..., alias="createdAt")
    description: Optional[str] = None

    model_config = {"populate_by_name": True}


class Board(BaseModel):
    id: str
    journal_id: str = Field("", alias="journalId", description="empty for blank boards")
    title: str
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    canvas: CanvasState = Field(default_factory=CanvasState)
    versions: list[BoardVersion] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


# request / response payloads

class BoardCreate(BaseModel):
    title: str = Field("My Vision Board", min_length=1, max_length=200)
    journal_id: str = Field("", alias="journalId")

    model_config = {"populate_by_name": True}


class GenerateBoardRequest(BaseModel):
    journal_id: Optional[str] = Field(None, alias="journalId")
    responses: list[ConversationEntry] = Field(default_factory=list)
    profile: Optional[UserProfile] = None
    image_count: Optional[int] = Field(None, alias="imageCount", ge=1, le=30)

    model_config = {"populate_by_name": True}


class GenerateBoardResponse(BaseModel):
    success: bool = True
    elements: list[BoardElement]
    themes: list[Theme]


class ElementCreate(BaseModel):
    """manual tile added from the board editor"""
    prompt: str = Field(..., min_length=1)
    title: str = ""
    affirmation: str = ""
    grid_size: GridSize = Field("small", alias="gridSize")
    style: ImageStyle = "photography"

    model_config = {"populate_by_name": True}


class ElementUpdate(BaseModel):
    """partial edit of a tile's data payload"""
    prompt: Optional[str] = None
    title: Optional[str] = None
    affirmation: Optional[str] = None
    grid_size: Optional[GridSize] = Field(None, alias="gridSize")
    style: Optional[ImageStyle] = None

    model_config = {"populate_by_name": True}


class RegenerateRequest(BaseModel):
    prompt: Optional[str] = None
    style: Optional[ImageStyle] = None


class VersionCreate(BaseModel):
    description: Optional[str] = "Export snapshot"


class GenerateImageRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    style: str = "photography"


class GenerateImageResponse(BaseModel):
    success: bool = True
    image_url: str = Field(..., alias="imageUrl")
    prompt: str

    model_config = {"populate_by_name": True}
