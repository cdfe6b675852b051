"""Rule-based chart type recommendation and data-shape validation."""

import logging
import re
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

from proposal_studio.models import ChartType

logger = logging.getLogger(__name__)

TIME_KEY = re.compile(r"date|time|period|month|year", re.IGNORECASE)


class DataRange(BaseModel):
    min: float = 0
    max: float = 0
    spread: float = 0


class DataCharacteristics(BaseModel):
    """Observed shape of a list of data records."""
    data_points: int
    has_categories: bool = False
    has_time_series: bool = False
    has_multiple_series: bool = False
    has_hierarchical_data: bool = False
    has_flow_data: bool = False
    has_xy_relationship: bool = False
    has_size_data: bool = False
    shows_progress: bool = False
    shows_cumulative_change: bool = False
    shows_distribution: bool = False
    shows_correlation: bool = False
    data_range: DataRange = Field(default_factory=DataRange)


class ChartAlternative(BaseModel):
    type: ChartType
    confidence: int = Field(..., ge=0, le=100)
    reasoning: str


class ChartRecommendation(ChartAlternative):
    """Best chart type for the data plus ranked alternatives."""
    configuration: Dict[str, Any] = Field(default_factory=dict)
    alternatives: List[ChartAlternative] = Field(default_factory=list)


class ChartValidation(BaseModel):
    valid: bool
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


CHART_DESCRIPTIONS = {
    ChartType.BAR: "Bar chart comparing values across categories",
    ChartType.LINE: "Line chart showing trends over time",
    ChartType.PIE: "Pie chart displaying proportions of a whole",
    ChartType.DOUGHNUT: "Doughnut chart showing composition with central space",
    ChartType.RADAR: "Radar chart comparing multiple variables across categories",
    ChartType.POLAR_AREA: "Polar area chart emphasizing magnitude differences",
    ChartType.MATRIX: "Heatmap matrix showing intensity across two dimensions",
    ChartType.SANKEY: "Sankey diagram illustrating flows between nodes",
    ChartType.TREEMAP: "Treemap showing hierarchical data with nested rectangles",
    ChartType.BULLET: "Bullet chart comparing actual against target performance",
    ChartType.GAUGE: "Gauge displaying a single percentage or progress metric",
    ChartType.WATERFALL: "Waterfall chart showing the cumulative effect of sequential changes",
    ChartType.SCATTER: "Scatter plot revealing relationships between two variables",
    ChartType.BUBBLE: "Bubble chart showing three dimensions of data (X, Y, size)",
}

CHART_USE_CASES = {
    ChartType.BAR: ["Sales comparison", "Market share", "Survey results", "Year-over-year comparison"],
    ChartType.LINE: ["Revenue trends", "User growth", "Stock prices", "Temperature changes"],
    ChartType.PIE: ["Budget allocation", "Market segments", "Vote distribution", "Resource usage"],
    ChartType.DOUGHNUT: ["Portfolio composition", "Traffic sources", "Project status", "Category breakdown"],
    ChartType.RADAR: ["Product comparison", "Skill assessment", "Feature analysis", "Performance metrics"],
    ChartType.POLAR_AREA: ["Seasonal patterns", "Resource allocation", "Risk assessment"],
    ChartType.MATRIX: ["Correlation analysis", "Engagement heatmap", "Activity patterns"],
    ChartType.SANKEY: ["Energy flows", "User journeys", "Budget allocation flow", "Supply chain"],
    ChartType.TREEMAP: ["Portfolio hierarchy", "Organization structure", "Market map"],
    ChartType.BULLET: ["KPI tracking", "Goal progress", "Performance vs target", "Quarterly metrics"],
    ChartType.GAUGE: ["Progress percentage", "Completion rate", "Score", "Satisfaction level"],
    ChartType.WATERFALL: ["Financial analysis", "Inventory changes", "Profit breakdown", "Value bridge"],
    ChartType.SCATTER: ["Customer segmentation", "Price vs quality", "Risk vs return"],
    ChartType.BUBBLE: ["Market positioning", "Portfolio analysis", "Multi-factor comparison"],
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def analyze_data_characteristics(data: List[Dict[str, Any]]) -> DataCharacteristics:
    """
    Describe a list of data records.

    Args:
        data: Records such as [{"month": "Jan", "revenue": 10}, ...]

    Returns:
        DataCharacteristics used by the recommendation rules
    """
    records = [record for record in data or [] if isinstance(record, dict)]
    numeric_values = [v for record in records for v in record.values() if _is_number(v)]
    numeric_columns = [k for k, v in records[0].items() if _is_number(v)] if records else []

    has_xy = any("x" in record and "y" in record for record in records)
    has_multiple_series = len(numeric_columns) > 1

    low = min(numeric_values) if numeric_values else 0
    high = max(numeric_values) if numeric_values else 0

    return DataCharacteristics(
        data_points=len(records),
        has_categories=any(isinstance(v, str) for record in records for v in record.values()),
        has_time_series=any(TIME_KEY.search(str(key)) for record in records for key in record),
        has_multiple_series=has_multiple_series,
        has_hierarchical_data=any(isinstance(v, (dict, list)) for record in records for v in record.values()),
        has_flow_data=any({"from", "to", "flow"} <= set(record) for record in records),
        has_xy_relationship=has_xy,
        has_size_data=any("r" in record or "size" in record for record in records),
        shows_progress=any("target" in record or "goal" in record for record in records),
        shows_cumulative_change=any("change" in record or "delta" in record for record in records),
        shows_distribution=len(numeric_values) > 20,
        shows_correlation=has_xy or (has_multiple_series and len(records) > 10),
        data_range=DataRange(min=low, max=high, spread=high - low),
    )


def _apply_rules(
    chars: DataCharacteristics,
    purpose: Optional[str]
) -> List[ChartRecommendation]:
    candidates: List[ChartRecommendation] = []

    def add(chart_type: ChartType, confidence: int, reasoning: str, configuration: Optional[Dict[str, Any]] = None):
        candidates.append(ChartRecommendation(
            type=chart_type,
            confidence=confidence,
            reasoning=reasoning,
            configuration=configuration or {},
        ))

    if chars.has_flow_data:
        add(ChartType.SANKEY, 95, "Data contains from/to flow relationships, best shown as a Sankey diagram.")
    if chars.has_hierarchical_data:
        add(ChartType.TREEMAP, 90, "Nested data detected; a treemap shows hierarchy and relative size.")
    if chars.has_xy_relationship and chars.has_size_data:
        add(ChartType.BUBBLE, 92, "X, Y and size dimensions detected; a bubble chart shows all three.")
    if chars.has_xy_relationship and not chars.has_size_data:
        add(ChartType.SCATTER, 88, "X-Y coordinate data shows correlation best as a scatter plot.")
    if chars.shows_progress:
        add(ChartType.BULLET, 87, "Targets detected; a bullet chart compares actual against target.",
            {"indexAxis": "y"})
    if chars.data_points == 1 and chars.data_range.max <= 100:
        add(ChartType.GAUGE, 90, "A single percentage value reads clearly on a gauge.",
            {"circumference": 180, "rotation": 270})
    if chars.shows_cumulative_change:
        add(ChartType.WATERFALL, 85, "Sequential changes detected; a waterfall shows how they accumulate.")
    if chars.has_categories and chars.has_multiple_series and chars.data_points > 10:
        add(ChartType.MATRIX, 82, "Many categorical rows with several series; a heatmap reveals patterns.")
    if chars.has_time_series and purpose == "trend":
        add(ChartType.LINE, 90, "Time series with a trend purpose; a line chart shows change over time.",
            {"elements": {"line": {"tension": 0.4}}})
    if chars.has_categories and purpose == "comparison":
        add(ChartType.BAR, 85, "Categorical data for comparison; bars make differences easy to see.")
    if chars.data_points <= 7 and purpose == "composition":
        add(ChartType.DOUGHNUT, 80, "Few parts of a whole; a doughnut shows proportions.", {"cutout": "60%"})
        add(ChartType.PIE, 75, "Alternative to the doughnut for parts of a whole.")
    if chars.has_categories and 5 <= chars.data_points <= 10 and chars.has_multiple_series:
        add(ChartType.RADAR, 70, "Several series across a handful of categories compare well as profiles.")

    if not candidates:
        add(ChartType.BAR, 60, "General purpose choice; a bar chart works for most data.")
    return candidates


def recommend_chart_type(
    data: List[Dict[str, Any]],
    purpose: Optional[str] = None,
    emphasis: Optional[str] = None
) -> ChartRecommendation:
    """
    Pick a chart type for the data.

    Args:
        data: Data records
        purpose: comparison, trend, composition, relationship or distribution
        emphasis: accuracy, trend, parts or correlation (informational)

    Returns:
        Highest-confidence recommendation with up to three alternatives
    """
    chars = analyze_data_characteristics(data)
    ranked = sorted(_apply_rules(chars, purpose), key=lambda r: r.confidence, reverse=True)
    best, rest = ranked[0], ranked[1:]

    logger.debug(f"Chart recommendation: {best.type.value} ({best.confidence}) purpose={purpose} emphasis={emphasis}")
    return best.model_copy(update={
        "alternatives": [
            ChartAlternative(type=r.type, confidence=r.confidence, reasoning=r.reasoning)
            for r in rest[:3]
        ]
    })


def validate_data_for_chart_type(data: List[Dict[str, Any]], chart_type: ChartType) -> ChartValidation:
    """Check that the data has the fields the chart type needs."""
    chart_type = ChartType(chart_type)
    chars = analyze_data_characteristics(data)
    issues: List[str] = []
    suggestions: List[str] = []

    if chart_type == ChartType.SANKEY and not chars.has_flow_data:
        issues.append("Sankey requires flow data with from, to and flow properties")
        suggestions.append("Add from, to and flow fields to each record")
    elif chart_type == ChartType.TREEMAP and not chars.has_hierarchical_data:
        issues.append("Treemap requires hierarchical or nested data")
        suggestions.append("Organize records with parent-child relationships")
    elif chart_type == ChartType.BUBBLE and not (chars.has_xy_relationship and chars.has_size_data):
        issues.append("Bubble chart requires x, y and r (size) properties")
        suggestions.append("Add x, y and r fields to represent three dimensions")
    elif chart_type == ChartType.SCATTER and not chars.has_xy_relationship:
        issues.append("Scatter plot requires x and y coordinate properties")
        suggestions.append("Add x and y fields to show relationships")
    elif chart_type == ChartType.GAUGE:
        if chars.data_points > 1:
            issues.append("Gauge works best with a single percentage value")
            suggestions.append("Use one data point representing 0-100%")
        if chars.data_range.max > 100:
            issues.append("Gauge values must not exceed 100")
            suggestions.append("Express the value as a percentage of its maximum")
    elif chart_type == ChartType.MATRIX and chars.data_points < 4:
        issues.append("Heatmap matrix needs enough data points to show patterns")
        suggestions.append("Provide at least a 4x4 grid of values")
    elif chart_type == ChartType.BULLET and not chars.shows_progress:
        issues.append("Bullet chart requires a target or goal for each value")
        suggestions.append("Add a target field to each record")

    return ChartValidation(valid=not issues, issues=issues, suggestions=suggestions)


def get_chart_description(chart_type: ChartType) -> str:
    return CHART_DESCRIPTIONS.get(ChartType(chart_type), "Chart visualization")


def get_chart_use_cases(chart_type: ChartType) -> List[str]:
    return list(CHART_USE_CASES.get(ChartType(chart_type), []))
