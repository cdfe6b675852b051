"""
Mermaid diagram sanitization and rendering.

Generated diagram sources often carry code fences, prose dates in Gantt
charts, or emoji that break the mindmap grammar. `sanitize_diagram` repairs
those before the source is sent to Kroki, and `normalize_svg` makes the
returned markup legible inside the preview.
"""

import json
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional, Dict, Tuple

from dateutil import parser as date_parser
from jinja2 import Template
from markupsafe import Markup

from proposal_studio.integrations.kroki import KrokiClient, DiagramRenderError, kroki_client

logger = logging.getLogger(__name__)


SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)

MAX_PREVIEW_WIDTH = 1200
MAX_PREVIEW_HEIGHT = 800
TEXT_COLOR = "#111827"
LABEL_FILL = "#ffffff"
LABEL_STROKE = "#d1d5db"
MIN_FONT_SIZE = 14

_MONTHS = "January|February|March|April|May|June|July|August|September|October|November|December"
MONTH_FIRST_DATE = re.compile(rf"\b(?:{_MONTHS})\s+\d{{1,2}},?\s*\d{{4}}\b", re.IGNORECASE)
DAY_FIRST_DATE = re.compile(rf"\b\d{{1,2}}\s+(?:{_MONTHS})\s+\d{{4}}\b", re.IGNORECASE)
FENCE_START = re.compile(r"^```(?:mermaid)?[ \t]*\n?")
FENCE_END = re.compile(r"\n?```$")

GANTT_DIRECTIVES = (
    "title", "dateformat", "axisformat", "tickinterval", "excludes", "includes",
    "todaymarker", "weekday", "inclusiveenddates", "topaxis", "displaymode",
    "acctitle", "accdescr", "%%",
)
DEFAULT_DATE_FORMAT = "    dateFormat YYYY-MM-DD"
DEFAULT_SECTION = "    section Tasks"
STUB_TASK_TIMING = "2024-01-01, 1d"

# Mindmaps treat [ ] as node shapes, so replacements are plain words
MINDMAP_REPLACEMENTS = [
    ("✅", "DONE:"),
    ("❌", "NOT:"),
    ("📋", "NOTE:"),
    ("⚠️", "WARN:"),
    ("⚠", "WARN:"),
    ("🔴", ""),
    ("🟢", ""),
    ("⚡", ""),
    ("💡", ""),
    ("🎯", ""),
]

# Passed to Mermaid so labels come out dark on white before any post-processing
MERMAID_INIT = {
    "theme": "base",
    "flowchart": {"htmlLabels": False},
    "themeVariables": {
        "fontSize": "16px",
        "primaryTextColor": "#000000",
        "secondaryTextColor": "#000000",
        "tertiaryTextColor": "#000000",
        "textColor": "#000000",
        "nodeTextColor": "#000000",
        "titleColor": "#000000",
        "primaryColor": "#ffffff",
        "primaryBorderColor": LABEL_STROKE,
        "lineColor": "#4b5563",
        "secondaryColor": "#f3f4f6",
        "tertiaryColor": "#e5e7eb",
        "edgeLabelBackground": "#ffffff",
        "clusterBkg": "#f9fafb",
        "clusterBorder": LABEL_STROKE,
        "noteBkgColor": "#fef3c7",
        "noteTextColor": "#000000",
    },
}

DIAGRAM_TEMPLATE = Template("""
<figure class="diagram-container" style="margin: 1.5rem 0; text-align: center; overflow-x: auto;">
  {{ svg }}
  {% if caption %}<figcaption style="margin-top: 0.5rem; font-size: 0.875rem; color: #6b7280; font-style: italic;">{{ caption }}</figcaption>{% endif %}
</figure>
""", autoescape=True)

ERROR_TEMPLATE = Template("""
<div class="diagram-error" style="margin: 1.5rem 0; padding: 1rem; border: 1px solid #fecaca; background: #fef2f2; border-radius: 0.5rem;">
  <p style="font-weight: 600; color: #b91c1c; margin: 0 0 0.25rem 0;">Failed to render diagram</p>
  <p style="color: #dc2626; font-size: 0.875rem; margin: 0 0 0.5rem 0;">{{ message }}</p>
  <details>
    <summary style="cursor: pointer; font-size: 0.875rem; color: #6b7280;">Show code</summary>
    <pre style="white-space: pre-wrap; font-size: 0.75rem; background: #fff; padding: 0.5rem; overflow-x: auto;">{{ source }}</pre>
  </details>
</div>
""", autoescape=True)


# ===========================================
# Sanitization
# ===========================================

def _diagram_kind(code: str) -> str:
    """First keyword of the diagram, skipping directives and comments."""
    for line in code.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("%%"):
            continue
        return stripped.split()[0].lower()
    return ""


def _to_iso_date(match: "re.Match") -> str:
    text = match.group(0)
    try:
        return date_parser.parse(text).strftime("%Y-%m-%d")
    except (ValueError, OverflowError):
        return text


def normalize_gantt_dates(code: str) -> str:
    """Rewrite "January 15, 2026" and "15 January 2026" as 2026-01-15."""
    code = MONTH_FIRST_DATE.sub(_to_iso_date, code)
    return DAY_FIRST_DATE.sub(_to_iso_date, code)


def repair_gantt(code: str) -> str:
    """
    Make a Gantt source acceptable to Mermaid.

    Injects a dateFormat directive right after `gantt` when none exists,
    puts tasks declared before any section under a default section, and
    gives tasks without a colon a stub start and duration.
    """
    lines = code.split("\n")
    has_date_format = any(line.strip().lower().startswith("dateformat") for line in lines)
    seen_header = False
    in_section = False
    repaired = []

    for line in lines:
        stripped = line.strip()
        lowered = stripped.lower()

        if not seen_header and lowered.startswith("gantt"):
            seen_header = True
            repaired.append(line)
            if not has_date_format:
                repaired.append(DEFAULT_DATE_FORMAT)
            continue

        if not seen_header or not stripped or lowered.startswith(GANTT_DIRECTIVES):
            repaired.append(line)
            continue

        if lowered.startswith("section"):
            in_section = True
            repaired.append(line)
            continue

        if not in_section:
            repaired.append(DEFAULT_SECTION)
            in_section = True

        if ":" in stripped:
            repaired.append(line)
        else:
            repaired.append(f"    {stripped} : {STUB_TASK_TIMING}")

    return "\n".join(repaired)


def strip_mindmap_emoji(code: str) -> str:
    for emoji, replacement in MINDMAP_REPLACEMENTS:
        code = code.replace(emoji, replacement)
    return code


def sanitize_diagram(source: Optional[str]) -> str:
    """
    Clean a generated Mermaid source.

    Args:
        source: Diagram source as written by the model

    Returns:
        Source ready for rendering
    """
    code = (source or "").strip()
    code = FENCE_START.sub("", code)
    code = FENCE_END.sub("", code).strip()

    kind = _diagram_kind(code)
    if kind == "gantt":
        code = normalize_gantt_dates(code)
        code = repair_gantt(code)
    elif kind == "mindmap":
        code = strip_mindmap_emoji(code)

    return re.sub(r"\n{3,}", "\n\n", code)


def with_theme(code: str) -> str:
    """Prefix the source with the Mermaid init directive."""
    if code.lstrip().startswith("%%{init"):
        return code
    return f"%%{{init: {json.dumps(MERMAID_INIT)}}}%%\n{code}"


# ===========================================
# SVG Normalization
# ===========================================

def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _parse_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    match = re.match(r"^\s*([\d.]+)\s*(px)?\s*$", value)
    return float(match.group(1)) if match else None


def _dimensions(root: ET.Element) -> Tuple[Optional[float], Optional[float]]:
    view_box = root.get("viewBox")
    if view_box:
        parts = re.split(r"[\s,]+", view_box.strip())
        if len(parts) == 4:
            try:
                return float(parts[2]), float(parts[3])
            except ValueError:
                pass
    return _parse_length(root.get("width")), _parse_length(root.get("height"))


def _merge_style(element: ET.Element, updates: Dict[str, str]) -> None:
    declarations = {}
    for declaration in (element.get("style") or "").split(";"):
        if ":" in declaration:
            key, value = declaration.split(":", 1)
            declarations[key.strip()] = value.strip()
    declarations.update(updates)
    element.set("style", "; ".join(f"{key}: {value}" for key, value in declarations.items()))


def _font_size(element: ET.Element) -> Optional[float]:
    for declaration in (element.get("style") or "").split(";"):
        if declaration.strip().startswith("font-size"):
            return _parse_length(declaration.split(":", 1)[-1])
    return _parse_length(element.get("font-size"))


def normalize_svg(
    svg: str,
    max_width: int = MAX_PREVIEW_WIDTH,
    max_height: int = MAX_PREVIEW_HEIGHT
) -> str:
    """
    Style-normalize rendered diagram markup for the preview.

    Scales the diagram down to fit max_width x max_height (never up),
    forces text to a dark color with a minimum weight and size, and gives
    label containers a white fill with a light border.

    Args:
        svg: Raw SVG markup from the renderer
        max_width: Widest allowed output in pixels
        max_height: Tallest allowed output in pixels

    Returns:
        Normalized SVG markup, or the input unchanged if it is not valid XML
    """
    try:
        root = ET.fromstring(svg)
    except ET.ParseError as e:
        logger.warning(f"Leaving diagram markup unnormalized: {e}")
        return svg

    width, height = _dimensions(root)
    if width and height:
        scale = min(max_width / width, max_height / height, 1.0)
        if not root.get("viewBox"):
            root.set("viewBox", f"0 0 {width:g} {height:g}")
        root.set("width", f"{width * scale:g}")
        root.set("height", f"{height * scale:g}")
    _merge_style(root, {"max-width": "100%", "height": "auto"})

    for element in root.iter():
        tag = _local_name(element.tag)
        classes = set((element.get("class") or "").split())

        if tag in ("text", "tspan"):
            element.set("fill", TEXT_COLOR)
            updates = {"fill": TEXT_COLOR, "font-weight": "600"}
            size = _font_size(element)
            if size is not None and size < MIN_FONT_SIZE:
                updates["font-size"] = f"{MIN_FONT_SIZE}px"
            _merge_style(element, updates)
            if classes & {"nodeLabel", "edgeLabel", "label"}:
                element.set("text-anchor", "middle")

        elif tag in ("div", "span", "p"):
            _merge_style(element, {
                "color": TEXT_COLOR,
                "font-weight": "600",
                "text-align": "center",
            })

        if classes & {"label-container", "labelBox"}:
            element.set("fill", LABEL_FILL)
            element.set("stroke", LABEL_STROKE)
            _merge_style(element, {"fill": LABEL_FILL, "stroke": LABEL_STROKE})

    return ET.tostring(root, encoding="unicode")


# ===========================================
# Renderer
# ===========================================

@dataclass
class DiagramResult:
    """Outcome of one diagram render: SVG markup or an error message."""
    source: str
    sanitized: str
    svg: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.svg is not None


class DiagramRenderer:
    """Sanitizes, renders through Kroki and normalizes Mermaid diagrams."""

    def __init__(self, client: Optional[KrokiClient] = None):
        self.client = client or kroki_client

    async def render(self, source: str) -> DiagramResult:
        """
        Render a diagram source.

        Render failures are returned as a result with `error` set; they
        are never raised.
        """
        sanitized = sanitize_diagram(source)
        if not sanitized:
            return DiagramResult(source=source or "", sanitized="", error="Diagram source is empty")

        try:
            svg = await self.client.render_svg(with_theme(sanitized))
        except DiagramRenderError as e:
            logger.error(f"Diagram render failed: {e}")
            return DiagramResult(source=source, sanitized=sanitized, error=str(e))

        return DiagramResult(source=source, sanitized=sanitized, svg=normalize_svg(svg))

    @staticmethod
    def render_html(result: DiagramResult, caption: Optional[str] = None) -> Markup:
        """Diagram figure, or the collapsible error panel with the source."""
        if not result.ok:
            return Markup(ERROR_TEMPLATE.render(
                message=result.error or "Unknown error",
                source=result.sanitized or result.source,
            ))
        return Markup(DIAGRAM_TEMPLATE.render(svg=Markup(result.svg), caption=caption))
