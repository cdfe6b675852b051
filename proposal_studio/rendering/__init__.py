"""Rendering package - parsing, formatting and HTML renderers for proposal content."""

from proposal_studio.rendering.parser import VisualizationParser, ParseResult
from proposal_studio.rendering.formatter import ContentFormatter, replace_placeholders, protect_emojis
from proposal_studio.rendering.diagrams import DiagramRenderer, DiagramResult, sanitize_diagram, normalize_svg
from proposal_studio.rendering.charts import ChartRenderer, build_chart_config
from proposal_studio.rendering.chart_selector import recommend_chart_type, validate_data_for_chart_type
from proposal_studio.rendering.tables import TableRenderer
from proposal_studio.rendering.callouts import CalloutRenderer
from proposal_studio.rendering.preview import (
    ProposalPreview,
    PreviewState,
    toggle_mode,
    navigate,
    select_tab,
    sort_sections,
)

__all__ = [
    "VisualizationParser",
    "ParseResult",
    "ContentFormatter",
    "replace_placeholders",
    "protect_emojis",
    "DiagramRenderer",
    "DiagramResult",
    "sanitize_diagram",
    "normalize_svg",
    "ChartRenderer",
    "build_chart_config",
    "recommend_chart_type",
    "validate_data_for_chart_type",
    "TableRenderer",
    "CalloutRenderer",
    "ProposalPreview",
    "PreviewState",
    "toggle_mode",
    "navigate",
    "select_tab",
    "sort_sections",
]
