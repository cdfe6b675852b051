"""Visualization models and the nested/flat shape reconciliation."""

import logging
import re
from typing import Optional, List, Dict, Any, Union, Literal, Annotated
from pydantic import BaseModel, Field, AliasChoices, TypeAdapter, ValidationError

from proposal_studio.models.enums import CalloutCategory, ChartType, VisualizationType

logger = logging.getLogger(__name__)


# ===========================================
# Callout Classification
# ===========================================
# Checked in order; the first group with a matching marker wins.

CALLOUT_MARKERS = [
    (CalloutCategory.INSIGHT, ("💡", "insight")),
    (CalloutCategory.RISK, ("⚠️", "⚠", "risk")),
    (CalloutCategory.SUCCESS, ("✅", "success")),
    (CalloutCategory.COST, ("💰", "cost")),
    (CalloutCategory.RECOMMENDATION, ("🎯", "recommendation")),
    (CalloutCategory.BENEFIT, ("benefit",)),
    (CalloutCategory.WARNING, ("warning", "caution")),
    (CalloutCategory.TIP, ("tip",)),
    (CalloutCategory.INFO, ("info",)),
]


def classify_callout(title: str) -> Optional[CalloutCategory]:
    """
    Infer a callout category from its title.

    Args:
        title: Callout title, possibly carrying an emoji marker

    Returns:
        Matching category, or None when nothing in the title is recognised
    """
    lowered = (title or "").lower()
    for category, markers in CALLOUT_MARKERS:
        for marker in markers:
            if marker.isalpha():
                # word markers match at a word start so "multiple" is not a tip
                if re.search(r"\b" + marker, lowered):
                    return category
            elif marker in lowered:
                return category
    return None


# ===========================================
# Visualization Variants
# ===========================================

class MermaidVisualization(BaseModel):
    """Diagram source rendered through Mermaid."""
    type: Literal["mermaid"] = "mermaid"
    code: str = Field(..., min_length=1, description="Mermaid diagram source")
    caption: Optional[str] = None


class ChartVisualization(BaseModel):
    """Chart described by a logical type plus Chart.js style data."""
    type: Literal["chart"] = "chart"
    chart_type: ChartType = Field(..., alias="chartType")
    data: Dict[str, Any] = Field(..., description="labels/datasets or type specific data")
    options: Dict[str, Any] = Field(default_factory=dict)
    title: Optional[str] = None
    caption: Optional[str] = None

    class Config:
        populate_by_name = True


class TableStyling(BaseModel):
    """Theme overrides for a rendered table."""
    header_bg: Optional[str] = Field(None, alias="headerBg")
    header_text: Optional[str] = Field(None, alias="headerText")
    alternating_rows: bool = Field(
        True,
        validation_alias=AliasChoices("alternatingRows", "alternateRows", "alternating_rows"),
        serialization_alias="alternatingRows",
    )
    borders: bool = True
    border_color: Optional[str] = Field(None, alias="borderColor")

    class Config:
        populate_by_name = True


class TableVisualization(BaseModel):
    """Tabular data with header row."""
    type: Literal["table"] = "table"
    headers: List[str] = Field(..., min_length=1)
    rows: List[List[Any]] = Field(default_factory=list)
    table_type: Optional[str] = Field(None, alias="tableType")
    styling: Optional[TableStyling] = None
    title: Optional[str] = None
    caption: Optional[str] = None

    class Config:
        populate_by_name = True


class CalloutVisualization(BaseModel):
    """Highlighted box with a semantic category."""
    type: Literal["callout"] = "callout"
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    callout_type: CalloutCategory = Field(CalloutCategory.INFO, alias="calloutType")
    caption: Optional[str] = None

    class Config:
        populate_by_name = True


Visualization = Annotated[
    Union[MermaidVisualization, ChartVisualization, TableVisualization, CalloutVisualization],
    Field(discriminator="type"),
]

_visualization_adapter = TypeAdapter(Visualization)


# ===========================================
# Normalization
# ===========================================

def _pick(raw: Dict[str, Any], nested: Dict[str, Any], *keys: str) -> Any:
    """Return the first present value, nested payload before top level."""
    for source in (nested, raw):
        for key in keys:
            value = source.get(key)
            if value is not None and value != "":
                return value
    return None


def normalize_visualization(raw: Any) -> Optional[Visualization]:
    """
    Map any recognised visualization shape onto the canonical union.

    Accepts both the nested encoding ({"type": "mermaid", "data": {"code": ...}})
    and the flat one ({"type": "mermaid", "code": ...}).

    Args:
        raw: Visualization record as extracted from text or stored on a section

    Returns:
        Typed visualization, or None when the record cannot be resolved
    """
    if not isinstance(raw, dict):
        return None

    viz_type = str(raw.get("type") or "").lower()
    nested = raw.get("data") if isinstance(raw.get("data"), dict) else {}
    caption = _pick(raw, nested, "caption")

    candidate: Dict[str, Any]
    if viz_type == VisualizationType.MERMAID.value:
        candidate = {
            "type": viz_type,
            "code": _pick(raw, nested, "code", "mermaidCode"),
            "caption": caption,
        }

    elif viz_type == VisualizationType.CHART.value:
        chart_data = nested.get("chartData") or raw.get("chartData") or raw.get("data")
        candidate = {
            "type": viz_type,
            "chartType": _pick(raw, nested, "chartType"),
            "data": chart_data,
            "options": _pick(raw, nested, "options") or {},
            "title": _pick(raw, nested, "title"),
            "caption": caption,
        }

    elif viz_type == VisualizationType.TABLE.value:
        candidate = {
            "type": viz_type,
            "headers": _pick(raw, nested, "headers"),
            "rows": _pick(raw, nested, "rows"),
            "tableType": _pick(raw, nested, "tableType"),
            "styling": _pick(raw, nested, "styling"),
            "title": _pick(raw, nested, "title"),
            "caption": caption,
        }
        if candidate["rows"] is None:
            return None

    elif viz_type == VisualizationType.CALLOUT.value:
        title = _pick(raw, nested, "title")
        explicit = _pick(raw, nested, "calloutType")
        category = None
        if explicit in CalloutCategory._value2member_map_:
            category = CalloutCategory(explicit)
        if category is None:
            category = classify_callout(title or "") or CalloutCategory.INFO
        candidate = {
            "type": viz_type,
            "title": title,
            "content": _pick(raw, nested, "content", "body", "text"),
            "calloutType": category,
            "caption": caption,
        }

    else:
        logger.debug(f"Dropping visualization with unknown type: {raw.get('type')!r}")
        return None

    try:
        return _visualization_adapter.validate_python(candidate)
    except ValidationError as e:
        logger.warning(f"Dropping invalid {viz_type} visualization: {e.error_count()} error(s)")
        return None


def normalize_visualizations(records: List[Any]) -> List[Visualization]:
    """Normalize a list of records, dropping any that cannot be resolved."""
    result = []
    for record in records or []:
        visualization = normalize_visualization(record)
        if visualization is not None:
            result.append(visualization)
    return result


def dump_visualization(visualization: Visualization) -> Dict[str, Any]:
    """Serialize a visualization in its flat, camelCase storage shape."""
    return visualization.model_dump(by_alias=True, exclude_none=True, mode="json")
