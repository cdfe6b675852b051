"""Services package - Editor reducers and proposal generation."""

from proposal_studio.services.editor import (
    add_asset,
    update_asset,
    remove_asset,
    reorder_asset,
    undo,
    redo,
    select_asset,
    set_mode,
    mark_saved,
    assets_in_zone,
)
from proposal_studio.services.proposal_generator import (
    ProposalGenerator,
    ProposalNotFoundError,
    SectionNotFoundError,
    GenerationError,
    proposal_generator,
)

__all__ = [
    "add_asset",
    "update_asset",
    "remove_asset",
    "reorder_asset",
    "undo",
    "redo",
    "select_asset",
    "set_mode",
    "mark_saved",
    "assets_in_zone",
    "ProposalGenerator",
    "ProposalNotFoundError",
    "SectionNotFoundError",
    "GenerationError",
    "proposal_generator",
]
