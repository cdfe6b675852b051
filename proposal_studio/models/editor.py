"""Editor-mode models for placed graphic assets."""

from typing import Optional, Tuple
from pydantic import BaseModel, Field

from proposal_studio.models.enums import AssetZone, EditorMode

Z_INDEX_MIN = 0
Z_INDEX_MAX = 100


class PlacedAsset(BaseModel):
    """A graphic asset positioned inside a zone."""
    id: str
    asset_id: str = Field(..., alias="assetId")
    url: Optional[str] = None
    zone: AssetZone = AssetZone.SECTION
    section_index: Optional[int] = Field(None, alias="sectionIndex", ge=0)
    x: float = Field(0, description="Left offset, percent of the zone")
    y: float = Field(0, description="Top offset, percent of the zone")
    width: float = Field(120, gt=0, description="Pixels")
    height: float = Field(120, gt=0, description="Pixels")
    rotation: float = 0
    opacity: float = Field(1.0, ge=0, le=1)
    z_index: int = Field(1, alias="zIndex", ge=Z_INDEX_MIN, le=Z_INDEX_MAX)

    class Config:
        populate_by_name = True
        frozen = True


Placement = Tuple[PlacedAsset, ...]


class EditorState(BaseModel):
    """Immutable editor state; reducers return a new instance."""
    mode: EditorMode = EditorMode.PREVIEW
    selected_asset_id: Optional[str] = None
    placed_assets: Placement = ()
    past: Tuple[Placement, ...] = ()
    future: Tuple[Placement, ...] = ()
    is_dirty: bool = False

    class Config:
        frozen = True

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)
