"""
Editor reducers for placed assets.

Every function takes an EditorState and returns a new one. Mutating
actions push the previous placement set onto `past` and clear `future`,
so undo and redo swap whole snapshots.
"""

import logging
from typing import Optional, List, Dict, Any

from proposal_studio.models import (
    AssetZone,
    EditorMode,
    EditorState,
    PlacedAsset,
    Z_INDEX_MAX,
    Z_INDEX_MIN,
)

logger = logging.getLogger(__name__)

REORDER_DIRECTIONS = ("up", "down", "top", "bottom")


def _commit(state: EditorState, placed_assets, **changes) -> EditorState:
    """Record the current placement as history and install the new one."""
    return state.model_copy(update={
        "placed_assets": tuple(placed_assets),
        "past": state.past + (state.placed_assets,),
        "future": (),
        "is_dirty": True,
        **changes,
    })


def _find(state: EditorState, asset_id: str) -> Optional[PlacedAsset]:
    return next((asset for asset in state.placed_assets if asset.id == asset_id), None)


def add_asset(state: EditorState, asset: PlacedAsset) -> EditorState:
    """Place a new asset and select it."""
    if _find(state, asset.id) is not None:
        raise ValueError(f"Asset already placed: {asset.id}")
    if asset.zone == AssetZone.SECTION and asset.section_index is None:
        raise ValueError("Assets in a section zone need a section index")
    return _commit(state, state.placed_assets + (asset,), selected_asset_id=asset.id)


def update_asset(state: EditorState, asset_id: str, updates: Dict[str, Any]) -> EditorState:
    """Move, resize, rotate or restyle an asset."""
    current = _find(state, asset_id)
    if current is None:
        logger.warning(f"Ignoring update for unknown asset {asset_id}")
        return state

    values = current.model_dump()
    values.update({key: value for key, value in updates.items() if key != "id"})
    if "z_index" in values:
        values["z_index"] = min(max(int(values["z_index"]), Z_INDEX_MIN), Z_INDEX_MAX)
    replacement = PlacedAsset.model_validate(values)

    return _commit(state, (replacement if asset.id == asset_id else asset for asset in state.placed_assets))


def remove_asset(state: EditorState, asset_id: str) -> EditorState:
    if _find(state, asset_id) is None:
        logger.warning(f"Ignoring removal of unknown asset {asset_id}")
        return state

    selected = None if state.selected_asset_id == asset_id else state.selected_asset_id
    return _commit(
        state,
        (asset for asset in state.placed_assets if asset.id != asset_id),
        selected_asset_id=selected,
    )


def reorder_asset(state: EditorState, asset_id: str, direction: str) -> EditorState:
    """Change stacking order; z-index stays within 0..100."""
    if direction not in REORDER_DIRECTIONS:
        raise ValueError(f"Unknown reorder direction: {direction}")

    current = _find(state, asset_id)
    if current is None:
        return state

    if direction == "up":
        z_index = current.z_index + 1
    elif direction == "down":
        z_index = current.z_index - 1
    elif direction == "top":
        z_index = max(asset.z_index for asset in state.placed_assets) + 1
    else:
        z_index = min(asset.z_index for asset in state.placed_assets) - 1
    z_index = min(max(z_index, Z_INDEX_MIN), Z_INDEX_MAX)

    if z_index == current.z_index:
        return state
    return update_asset(state, asset_id, {"z_index": z_index})


def _selection_in(state: EditorState, placed_assets) -> Optional[str]:
    """The current selection if it is still placed, otherwise None."""
    if any(asset.id == state.selected_asset_id for asset in placed_assets):
        return state.selected_asset_id
    return None


def undo(state: EditorState) -> EditorState:
    if not state.past:
        return state
    previous = state.past[-1]
    return state.model_copy(update={
        "placed_assets": previous,
        "past": state.past[:-1],
        "future": (state.placed_assets,) + state.future,
        "selected_asset_id": _selection_in(state, previous),
        "is_dirty": True,
    })


def redo(state: EditorState) -> EditorState:
    if not state.future:
        return state
    following = state.future[0]
    return state.model_copy(update={
        "placed_assets": following,
        "past": state.past + (state.placed_assets,),
        "future": state.future[1:],
        "selected_asset_id": _selection_in(state, following),
        "is_dirty": True,
    })


def select_asset(state: EditorState, asset_id: Optional[str]) -> EditorState:
    if asset_id is not None and _find(state, asset_id) is None:
        return state
    return state.model_copy(update={"selected_asset_id": asset_id})


def set_mode(state: EditorState, mode: EditorMode) -> EditorState:
    """Switch between preview and edit; leaving edit clears the selection."""
    mode = EditorMode(mode)
    selected = state.selected_asset_id if mode == EditorMode.EDIT else None
    return state.model_copy(update={"mode": mode, "selected_asset_id": selected})


def mark_saved(state: EditorState) -> EditorState:
    return state.model_copy(update={"is_dirty": False})


def assets_in_zone(
    state: EditorState,
    zone: AssetZone,
    section_index: Optional[int] = None
) -> List[PlacedAsset]:
    """Assets of one zone, bottom of the stack first."""
    zone = AssetZone(zone)
    matches = [
        asset for asset in state.placed_assets
        if asset.zone == zone and (zone != AssetZone.SECTION or asset.section_index == section_index)
    ]
    return sorted(matches, key=lambda asset: asset.z_index)
