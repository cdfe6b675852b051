"""Models package - All Pydantic models organized by domain."""

from proposal_studio.models.enums import (
    ProposalStatus,
    SectionType,
    STRUCTURAL_SECTION_TYPES,
    VisualizationType,
    ChartType,
    CalloutCategory,
    TableType,
    PreviewMode,
    AssetZone,
    EditorMode,
)
from proposal_studio.models.visualization import (
    MermaidVisualization,
    ChartVisualization,
    TableStyling,
    TableVisualization,
    CalloutVisualization,
    Visualization,
    classify_callout,
    normalize_visualization,
    normalize_visualizations,
    dump_visualization,
)
from proposal_studio.models.design import (
    ColorPalette,
    FontPairing,
    CoverZone,
    CoverLayout,
    ProposalDesign,
    css_variables,
)
from proposal_studio.models.proposal import (
    ProposalSection,
    ProposalRecord,
    PreviewDocument,
    GenerationProgress,
    sections_from_generated_content,
)
from proposal_studio.models.editor import PlacedAsset, EditorState, Z_INDEX_MIN, Z_INDEX_MAX

__all__ = [
    # Enums
    "ProposalStatus",
    "SectionType",
    "STRUCTURAL_SECTION_TYPES",
    "VisualizationType",
    "ChartType",
    "CalloutCategory",
    "TableType",
    "PreviewMode",
    "AssetZone",
    "EditorMode",
    # Visualization models
    "MermaidVisualization",
    "ChartVisualization",
    "TableStyling",
    "TableVisualization",
    "CalloutVisualization",
    "Visualization",
    "classify_callout",
    "normalize_visualization",
    "normalize_visualizations",
    "dump_visualization",
    # Design models
    "ColorPalette",
    "FontPairing",
    "CoverZone",
    "CoverLayout",
    "ProposalDesign",
    "css_variables",
    # Proposal models
    "ProposalSection",
    "ProposalRecord",
    "PreviewDocument",
    "GenerationProgress",
    "sections_from_generated_content",
    # Editor models
    "PlacedAsset",
    "EditorState",
    "Z_INDEX_MIN",
    "Z_INDEX_MAX",
]
