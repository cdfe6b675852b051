"""Tests for the editor reducers."""

import pytest

from proposal_studio.models import AssetZone, EditorMode, EditorState, PlacedAsset
from proposal_studio.services.editor import (
    add_asset,
    assets_in_zone,
    mark_saved,
    redo,
    remove_asset,
    reorder_asset,
    select_asset,
    set_mode,
    undo,
    update_asset,
)


def _asset(asset_id: str, z_index: int = 1, zone: str = "section", section_index=0) -> PlacedAsset:
    return PlacedAsset(id=asset_id, assetId="logo", url="https://cdn.test/logo.png",
                       zone=zone, sectionIndex=section_index, zIndex=z_index)


@pytest.fixture
def state() -> EditorState:
    return EditorState(mode=EditorMode.EDIT)


class TestPlacement:
    """Tests for adding, updating and removing assets."""

    def test_add_selects_and_records_history(self, state):
        """Test a new asset is selected and undoable."""
        result = add_asset(state, _asset("a1"))

        assert [a.id for a in result.placed_assets] == ["a1"]
        assert result.selected_asset_id == "a1"
        assert result.is_dirty
        assert result.can_undo
        assert not state.placed_assets

    def test_add_duplicate_rejected(self, state):
        """Test asset ids are unique."""
        placed = add_asset(state, _asset("a1"))

        with pytest.raises(ValueError):
            add_asset(placed, _asset("a1"))

    def test_section_zone_needs_index(self, state):
        """Test section assets must name their section."""
        with pytest.raises(ValueError):
            add_asset(state, _asset("a1", section_index=None))

    def test_update_moves_asset(self, state):
        """Test position updates replace the asset."""
        placed = add_asset(state, _asset("a1"))

        moved = update_asset(placed, "a1", {"x": 50, "y": 25})

        assert moved.placed_assets[0].x == 50
        assert moved.placed_assets[0].y == 25
        assert placed.placed_assets[0].x == 0

    def test_update_clamps_z_index(self, state):
        """Test z-index updates stay within range."""
        placed = add_asset(state, _asset("a1"))

        assert update_asset(placed, "a1", {"z_index": 500}).placed_assets[0].z_index == 100

    def test_update_unknown_is_noop(self, state):
        """Test unknown ids leave the state alone."""
        assert update_asset(state, "missing", {"x": 1}) is state

    def test_remove_clears_selection(self, state):
        """Test removing the selected asset deselects it."""
        placed = add_asset(state, _asset("a1"))

        removed = remove_asset(placed, "a1")

        assert removed.placed_assets == ()
        assert removed.selected_asset_id is None


class TestHistory:
    """Tests for undo and redo."""

    def test_undo_redo_round(self, state):
        """Test undo restores and redo reapplies a snapshot."""
        placed = add_asset(state, _asset("a1"))
        moved = update_asset(placed, "a1", {"x": 40})

        undone = undo(moved)
        assert undone.placed_assets[0].x == 0
        assert undone.can_redo

        redone = redo(undone)
        assert redone.placed_assets[0].x == 40
        assert not redone.can_redo

    def test_new_action_clears_future(self, state):
        """Test redo history is dropped after a new change."""
        placed = add_asset(state, _asset("a1"))
        undone = undo(placed)

        changed = add_asset(undone, _asset("a2"))

        assert not changed.can_redo

    def test_undo_clears_selection_of_removed_asset(self, state):
        """Test undoing a placement deselects the asset it removes."""
        placed = add_asset(add_asset(state, _asset("a1")), _asset("a2"))

        undone = undo(placed)

        assert [a.id for a in undone.placed_assets] == ["a1"]
        assert undone.selected_asset_id is None
        assert update_asset(undone, "a1", {"x": 5}).placed_assets[0].x == 5

    def test_undo_keeps_selection_still_placed(self, state):
        """Test the selection survives when its asset is in the snapshot."""
        moved = update_asset(add_asset(state, _asset("a1")), "a1", {"x": 40})

        assert undo(moved).selected_asset_id == "a1"

    def test_redo_clears_selection_of_removed_asset(self, state):
        """Test redoing a removal deselects the removed asset."""
        removed = remove_asset(add_asset(state, _asset("a1")), "a1")
        restored = select_asset(undo(removed), "a1")
        assert restored.selected_asset_id == "a1"

        redone = redo(restored)

        assert redone.placed_assets == ()
        assert redone.selected_asset_id is None

    def test_undo_without_history(self, state):
        """Test undo and redo on a fresh state."""
        assert undo(state) is state
        assert redo(state) is state


class TestStacking:
    """Tests for reorder_asset."""

    def test_up_and_down(self, state):
        """Test single steps."""
        placed = add_asset(state, _asset("a1", z_index=5))

        assert reorder_asset(placed, "a1", "up").placed_assets[0].z_index == 6
        assert reorder_asset(placed, "a1", "down").placed_assets[0].z_index == 4

    def test_top_and_bottom(self, state):
        """Test moving past the other assets."""
        placed = add_asset(add_asset(state, _asset("a1", z_index=3)), _asset("a2", z_index=9))

        top = reorder_asset(placed, "a1", "top")
        bottom = reorder_asset(placed, "a2", "bottom")

        assert top.placed_assets[0].z_index == 10
        assert bottom.placed_assets[1].z_index == 2

    def test_clamped_at_limits(self, state):
        """Test z-index never leaves 0..100."""
        placed = add_asset(state, _asset("a1", z_index=100))

        assert reorder_asset(placed, "a1", "up") is placed

    def test_unknown_direction(self, state):
        """Test invalid directions."""
        with pytest.raises(ValueError):
            reorder_asset(state, "a1", "sideways")


class TestModeAndSelection:
    """Tests for selection, mode and dirty tracking."""

    def test_leaving_edit_clears_selection(self, state):
        """Test preview mode has no selection."""
        placed = add_asset(state, _asset("a1"))

        previewing = set_mode(placed, EditorMode.PREVIEW)

        assert previewing.mode == EditorMode.PREVIEW
        assert previewing.selected_asset_id is None

    def test_select_unknown_ignored(self, state):
        """Test selecting a missing asset."""
        assert select_asset(state, "missing") is state

    def test_mark_saved(self, state):
        """Test saving clears the dirty flag."""
        placed = add_asset(state, _asset("a1"))

        assert not mark_saved(placed).is_dirty


class TestZones:
    """Tests for assets_in_zone."""

    def test_filters_and_sorts(self, state):
        """Test zone and section filtering, lowest z-index first."""
        current = state
        for asset in (
            _asset("s0-high", z_index=8),
            _asset("s0-low", z_index=2),
            _asset("s1", section_index=1),
            _asset("head", zone="header", section_index=None),
        ):
            current = add_asset(current, asset)

        assert [a.id for a in assets_in_zone(current, AssetZone.SECTION, 0)] == ["s0-low", "s0-high"]
        assert [a.id for a in assets_in_zone(current, "header")] == ["head"]
