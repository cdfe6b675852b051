"""Enumeration types for proposals and their rendering."""

from enum import Enum


class ProposalStatus(str, Enum):
    """Lifecycle of a proposal row."""
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    GENERATED = "generated"
    REVIEWED = "reviewed"
    SENT = "sent"


class SectionType(str, Enum):
    """Section kinds with a dedicated renderer. Anything else is a text section."""
    COVER_PAGE = "cover_page"
    TABLE_OF_CONTENTS = "table_of_contents"
    THANK_YOU = "thank_you"
    BACK_COVER = "back_cover"
    EXECUTIVE_SUMMARY = "executive_summary"
    TEXT = "text"
    CHART = "chart"
    DIAGRAM = "diagram"
    TABLE = "table"


# Sections rendered as document furniture rather than listed in the contents page
STRUCTURAL_SECTION_TYPES = {
    SectionType.COVER_PAGE.value,
    SectionType.TABLE_OF_CONTENTS.value,
    SectionType.THANK_YOU.value,
    SectionType.BACK_COVER.value,
}


class VisualizationType(str, Enum):
    """Tags of the visualization union."""
    MERMAID = "mermaid"
    CHART = "chart"
    TABLE = "table"
    CALLOUT = "callout"


class ChartType(str, Enum):
    """Logical chart types understood by the chart renderer."""
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    DOUGHNUT = "doughnut"
    RADAR = "radar"
    POLAR_AREA = "polarArea"
    MATRIX = "matrix"
    SANKEY = "sankey"
    TREEMAP = "treemap"
    BULLET = "bullet"
    GAUGE = "gauge"
    WATERFALL = "waterfall"
    SCATTER = "scatter"
    BUBBLE = "bubble"


class CalloutCategory(str, Enum):
    """Semantic category of a callout box."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    RISK = "risk"
    TIP = "tip"
    INSIGHT = "insight"
    COST = "cost"
    RECOMMENDATION = "recommendation"
    BENEFIT = "benefit"
    NOTE = "note"


class TableType(str, Enum):
    """Hint describing what an extracted table holds."""
    BUDGET = "budget"
    COMPARISON = "comparison"
    SUMMARY = "summary"
    TIMELINE = "timeline"


class PreviewMode(str, Enum):
    """Section display strategy of the preview."""
    TAB = "tab"
    A4 = "a4"


class AssetZone(str, Enum):
    """Placement region for editor assets."""
    COVER = "cover"
    HEADER = "header"
    FOOTER = "footer"
    SECTION = "section"


class EditorMode(str, Enum):
    """Whether the preview accepts asset placement."""
    PREVIEW = "preview"
    EDIT = "edit"
