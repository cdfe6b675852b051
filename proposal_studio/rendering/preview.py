"""
Proposal preview.

Renders a stored proposal as one HTML document, either every section as
an A4 page (print layout) or one section at a time behind a tab bar.
Navigation state lives in PreviewState and changes only through the pure
transition functions below.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Optional, List, Dict, Any

from jinja2 import Template
from markupsafe import Markup

from proposal_studio.models import (
    AssetZone,
    CalloutVisualization,
    ChartVisualization,
    CoverLayout,
    EditorState,
    MermaidVisualization,
    PlacedAsset,
    PreviewDocument,
    PreviewMode,
    ProposalSection,
    SectionType,
    STRUCTURAL_SECTION_TYPES,
    TableVisualization,
    css_variables,
    normalize_visualization,
)
from proposal_studio.rendering.callouts import CalloutRenderer
from proposal_studio.rendering.charts import CHART_PLUGINS_JS, CHART_SCRIPTS, ChartRenderer
from proposal_studio.rendering.diagrams import DiagramRenderer
from proposal_studio.rendering.formatter import ContentFormatter
from proposal_studio.rendering.parser import VisualizationParser
from proposal_studio.rendering.tables import TableRenderer
from proposal_studio.services.editor import assets_in_zone

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "No proposal content to preview"
NAVIGATION_KEYS = {"ArrowRight": 1, "ArrowLeft": -1}


# ===========================================
# Navigation state
# ===========================================

@dataclass(frozen=True)
class PreviewState:
    """Presentation mode and the section shown in tab mode."""
    mode: PreviewMode = PreviewMode.A4
    active_index: int = 0


def toggle_mode(state: PreviewState) -> PreviewState:
    mode = PreviewMode.A4 if state.mode == PreviewMode.TAB else PreviewMode.TAB
    return replace(state, mode=mode)


def navigate(state: PreviewState, key: str, section_count: int) -> PreviewState:
    """
    Move between tabs with the arrow keys.

    Wraps from the last section to the first and back. Only tab mode
    reacts; other keys leave the state unchanged.
    """
    step = NAVIGATION_KEYS.get(key)
    if state.mode != PreviewMode.TAB or step is None or section_count <= 0:
        return state
    return replace(state, active_index=(state.active_index + step) % section_count)


def select_tab(state: PreviewState, index: int, section_count: Optional[int] = None) -> PreviewState:
    if section_count is not None:
        if section_count <= 0:
            return replace(state, active_index=0)
        index = min(max(index, 0), section_count - 1)
    return replace(state, active_index=max(index, 0))


def sort_sections(sections: List[ProposalSection]) -> List[ProposalSection]:
    """Ascending order; ties keep their stored sequence."""
    return sorted(sections, key=lambda section: section.order)


# ===========================================
# Templates
# ===========================================

PAGE_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{{ title }}</title>
  <link rel="stylesheet" href="{{ font_url }}" />
  {% for src in scripts %}<script src="{{ src }}"></script>
  {% endfor %}
  {% if plugins %}<script>{{ plugins }}</script>{% endif %}
  <style>
    @page { size: A4; margin: 0; }
    body { margin: 0; background: #e5e7eb; font-family: var(--font-family); font-weight: var(--body-weight); color: var(--text-color); }
    :root { {{ root_style }} }
    .a4-page { position: relative; box-sizing: border-box; width: 210mm; min-height: 297mm; margin: 0 auto 1.5rem auto; padding: 20mm; background: var(--background-color); box-shadow: 0 1px 3px rgba(0,0,0,0.15); }
    .a4-page + .a4-page { page-break-before: always; break-before: page; }
    .page-break { page-break-after: always; break-after: page; }
    h1, h2, h3, h4 { font-family: var(--heading-font); font-weight: var(--heading-weight); }
    .emoji-protect { font-family: 'Apple Color Emoji', 'Segoe UI Emoji', 'Noto Color Emoji', sans-serif; }
    .tab-bar { display: flex; gap: 0.25rem; overflow-x: auto; padding: 0.75rem; background: var(--surface-color); border-bottom: 1px solid #e5e7eb; }
    .tab-bar a { padding: 0.5rem 1rem; border-radius: 0.375rem; text-decoration: none; color: var(--text-color); white-space: nowrap; font-size: 0.875rem; }
    .tab-bar a.active { background: var(--primary-color); color: #ffffff; }
    .page-header, .page-footer { position: relative; display: flex; justify-content: space-between; font-size: 0.75rem; color: #6b7280; }
    .page-header { margin-bottom: 1.5rem; padding-bottom: 0.5rem; border-bottom: 1px solid #e5e7eb; }
    .page-footer { margin-top: 2rem; padding-top: 0.5rem; border-top: 1px solid #e5e7eb; }
    .asset-drop-zone { position: relative; outline: 2px dashed transparent; }
    .editing .asset-drop-zone { outline-color: #93c5fd; min-height: 2rem; }
    .placed-asset { position: absolute; pointer-events: none; }
    .editing .placed-asset { pointer-events: auto; cursor: move; }
    .visualization-error { margin: 1rem 0; padding: 0.75rem 1rem; border: 1px solid #fecaca; background: #fef2f2; color: #991b1b; border-radius: 0.5rem; font-size: 0.875rem; }
    .empty-preview { padding: 4rem; text-align: center; color: #6b7280; }
    @media print { body { background: none; } .tab-bar { display: none; } .a4-page { margin: 0; box-shadow: none; } }
  </style>
</head>
<body>
  <div class="proposal-root{% if editable %} editing{% endif %}" data-mode="{{ mode }}">
    {% if tabs %}
    <nav class="tab-bar" data-prev="{{ prev_index }}" data-next="{{ next_index }}">
      {% for tab in tabs %}<a href="?mode=tab&tab={{ loop.index0 }}{% if editable %}&edit=true{% endif %}" class="{% if tab.active %}active{% endif %}" data-index="{{ loop.index0 }}">{{ tab.label }}</a>{% endfor %}
    </nav>
    <script>
      document.addEventListener('keydown', function (event) {
        var bar = document.querySelector('.tab-bar');
        var target = event.key === 'ArrowRight' ? bar.dataset.next : event.key === 'ArrowLeft' ? bar.dataset.prev : null;
        if (target !== null) {
          window.location.search = '?mode=tab&tab=' + target{% if editable %} + '&edit=true'{% endif %};
        }
      });
    </script>
    {% endif %}
    {% if pages %}
      {% for page in pages %}{{ page }}{% endfor %}
    {% else %}
    <div class="a4-page empty-preview">{{ empty_message }}</div>
    {% endif %}
  </div>
</body>
</html>
""", autoescape=True)

SECTION_PAGE_TEMPLATE = Template("""
<section class="a4-page section-{{ section_type }}" id="section-{{ section_id }}" data-section-index="{{ index }}">
  {% if header %}{{ header }}{% endif %}
  {% if editable %}<div class="asset-drop-zone" data-zone="section" data-section-index="{{ index }}">{% endif %}
  {{ assets }}
  {{ body }}
  {% if editable %}</div>{% endif %}
  {% if footer %}{{ footer }}{% endif %}
</section>
""", autoescape=True)

HEADER_TEMPLATE = Template("""
<header class="page-header{% if editable %} asset-drop-zone{% endif %}"{% if editable %} data-zone="header"{% endif %}>
  {{ assets }}
  <span>{% if logo %}<img src="{{ logo }}" alt="" style="height: 1.5rem; vertical-align: middle; margin-right: 0.5rem;" />{% endif %}{{ text }}</span>
  <span>{{ right }}</span>
</header>
""", autoescape=True)

FOOTER_TEMPLATE = Template("""
<footer class="page-footer{% if editable %} asset-drop-zone{% endif %}"{% if editable %} data-zone="footer"{% endif %}>
  {{ assets }}
  <span>{{ text }}{% for item in contact %} &middot; {{ item }}{% endfor %}</span>
  {% if page_label %}<span class="page-number">{{ page_label }}</span>{% endif %}
</footer>
""", autoescape=True)

COVER_TEMPLATE = Template("""
<div class="cover-page{% if editable %} asset-drop-zone{% endif %}"{% if editable %} data-zone="cover"{% endif %} style="position: relative; width: 100%; min-height: 257mm; background: {{ background }}; color: {{ color }}; border-radius: 0.5rem; overflow: hidden;">
  {{ assets }}
  {% for zone in zones %}
  <div class="cover-zone cover-{{ zone.name }}" style="position: absolute; left: {{ zone.box.x }}%; top: {{ zone.box.y }}%; width: {{ zone.box.width }}%; height: {{ zone.box.height }}%; display: flex; flex-direction: column; justify-content: {{ zone.justify }}; text-align: {{ zone.box.alignment }}; align-items: {{ zone.align }};">
    {{ zone.content }}
  </div>
  {% endfor %}
</div>
""", autoescape=True)

TOC_TEMPLATE = Template("""
<div class="table-of-contents">
  <h1 style="color: var(--primary-color); margin-bottom: 2rem;">{{ title }}</h1>
  <ol style="list-style: none; padding: 0; margin: 0;">
    {% for entry in entries %}
    <li style="display: flex; gap: 1rem; padding: 0.75rem 0; border-bottom: 1px solid #e5e7eb;">
      <span style="color: var(--primary-color); font-weight: 700; min-width: 2rem;">{{ "%02d"|format(loop.index) }}</span>
      <a href="#section-{{ entry.id }}" style="color: var(--text-color); text-decoration: none;">{{ entry.title }}</a>
    </li>
    {% endfor %}
  </ol>
</div>
""", autoescape=True)

CLOSING_TEMPLATE = Template("""
<div class="closing-page closing-{{ kind }}" style="min-height: 230mm; display: flex; flex-direction: column; align-items: center; justify-content: center; text-align: center; background-color: {{ background }};{% if image %} background-image: url('{{ image }}'); background-size: cover;{% endif %} border-radius: 0.5rem; padding: 2rem;">
  {% if logo %}<img src="{{ logo }}" alt="" style="max-height: 5rem; margin-bottom: 2rem;" />{% endif %}
  {% if heading %}<h1 style="color: var(--primary-color); font-size: 2.5rem; margin: 0 0 1rem 0;">{{ heading }}</h1>{% endif %}
  {% if message %}<p style="font-size: 1.125rem; max-width: 36rem; color: var(--text-color);">{{ message }}</p>{% endif %}
  {% if contact %}<div style="margin-top: 2rem; font-size: 0.9rem; color: #4b5563;">{% for item in contact %}<p style="margin: 0.25rem 0;">{{ item }}</p>{% endfor %}</div>{% endif %}
  {% if links %}<div style="margin-top: 1.5rem; display: flex; gap: 1.5rem;">{% for link in links %}<a href="{{ link }}" style="color: var(--primary-color);">{{ link }}</a>{% endfor %}</div>{% endif %}
</div>
""", autoescape=True)

ASSET_TEMPLATE = Template(
    '<img class="placed-asset{% if selected %} selected{% endif %}" data-asset-id="{{ asset.id }}" src="{{ asset.url }}" alt="" '
    'style="left: {{ asset.x }}%; top: {{ asset.y }}%; width: {{ asset.width }}px; height: {{ asset.height }}px; '
    'transform: rotate({{ asset.rotation }}deg); opacity: {{ asset.opacity }}; z-index: {{ asset.z_index }};" />',
    autoescape=True,
)

VISUALIZATION_ERROR_TEMPLATE = Template(
    '<div class="visualization-error">Failed to render {{ kind }}: {{ message }}</div>',
    autoescape=True,
)

SECTION_TITLE_TEMPLATE = Template(
    '<h2 class="section-title" style="font-size: 2rem; font-weight: 700; color: var(--primary-color); '
    'margin: 0 0 1.5rem 0; padding-bottom: 0.5rem; border-bottom: 3px solid var(--primary-color);">{{ title }}</h2>',
    autoescape=True,
)

VERTICAL_JUSTIFY = {"top": "flex-start", "middle": "center", "bottom": "flex-end"}
HORIZONTAL_ALIGN = {"left": "flex-start", "center": "center", "right": "flex-end"}


def _enabled(config: Any) -> bool:
    return isinstance(config, dict) and bool(config.get("enabled"))


CSS_UNSAFE = re.compile(r"[<>{};]")


def _css_declarations(variables: Dict[str, str]) -> Markup:
    """Custom property declarations; values cannot close the rule or the style tag."""
    return Markup(" ".join(f"{name}: {CSS_UNSAFE.sub('', value)};" for name, value in variables.items()))


def _font_url(document: PreviewDocument, variables: Dict[str, str]) -> str:
    fonts = document.design.fonts if document.design else None
    if fonts and fonts.source_url:
        return fonts.source_url

    families = []
    for variable in ("--heading-font", "--font-family"):
        family = variables[variable].split(",")[0].strip("'\" ")
        if family and family not in families:
            families.append(family)
    query = "&".join(f"family={family.replace(' ', '+')}:wght@400;600;700" for family in families)
    return f"https://fonts.googleapis.com/css2?{query}&display=swap"


class ProposalPreview:
    """
    Server-side proposal preview.

    Sections are rendered in ascending order. Structural section types get
    dedicated layouts; every other section is treated as text, with its
    embedded visualizations extracted and rendered after the prose.
    """

    def __init__(
        self,
        document: PreviewDocument,
        diagram_renderer: Optional[DiagramRenderer] = None,
        chart_renderer: Optional[ChartRenderer] = None,
        table_renderer: Optional[TableRenderer] = None,
        callout_renderer: Optional[CalloutRenderer] = None,
        parser: Optional[VisualizationParser] = None,
    ):
        self.document = document
        self.diagram_renderer = diagram_renderer or DiagramRenderer()
        self.chart_renderer = chart_renderer or ChartRenderer()
        self.table_renderer = table_renderer or TableRenderer()
        self.callout_renderer = callout_renderer or CalloutRenderer()
        self.parser = parser or VisualizationParser()
        self.formatter = ContentFormatter(document.placeholders())

    @property
    def branding(self) -> Dict[str, Any]:
        return self.document.branding or {}

    def visible_sections(self) -> List[ProposalSection]:
        """Sorted sections, minus closing pages that branding disables."""
        visible = []
        for section in sort_sections(self.document.sections):
            if section.type == SectionType.THANK_YOU.value and not _enabled(self.branding.get("thankYouSlide")):
                continue
            if section.type == SectionType.BACK_COVER.value and not _enabled(self.branding.get("backCover")):
                continue
            visible.append(section)
        return visible

    async def render(
        self,
        state: Optional[PreviewState] = None,
        editor_state: Optional[EditorState] = None,
        editable: bool = False,
        static: bool = False,
    ) -> str:
        """
        Render the complete preview document.

        Args:
            state: Mode and active tab; defaults to A4 mode
            editor_state: Placed assets to overlay on their zones
            editable: Wrap zones in drop targets for asset placement
            static: Script-free output (charts become tables) for PDF export

        Returns:
            HTML document as a string
        """
        state = state or PreviewState()
        editor_state = editor_state or EditorState()
        sections = self.visible_sections()
        total = len(sections)

        if state.mode == PreviewMode.TAB and total:
            state = select_tab(state, state.active_index, total)
            shown = [(state.active_index, sections[state.active_index])]
        else:
            shown = list(enumerate(sections))

        pages = []
        for index, section in shown:
            body = await self.render_section(section, index, sections, editor_state, editable, static)
            pages.append(self._page(section, index, total, body, state, editor_state, editable))

        tabs = []
        if state.mode == PreviewMode.TAB and total:
            tabs = [
                {"label": section.title or section.type.replace("_", " ").title(), "active": i == state.active_index}
                for i, section in enumerate(sections)
            ]

        variables = css_variables(self.branding, self.document.design)
        logger.debug(f"Rendering preview '{self.document.title}': {len(pages)} page(s), mode={state.mode.value}")

        return PAGE_TEMPLATE.render(
            title=self.document.title,
            font_url=_font_url(self.document, variables),
            scripts=[] if static else CHART_SCRIPTS,
            plugins=None if static else Markup(CHART_PLUGINS_JS),
            root_style=_css_declarations(variables),
            editable=editable,
            mode=state.mode.value,
            tabs=tabs,
            prev_index=navigate(state, "ArrowLeft", total).active_index,
            next_index=navigate(state, "ArrowRight", total).active_index,
            pages=pages,
            empty_message=EMPTY_MESSAGE,
        )

    # ===========================================
    # Page chrome
    # ===========================================

    def _page(
        self,
        section: ProposalSection,
        index: int,
        total: int,
        body: Markup,
        state: PreviewState,
        editor_state: EditorState,
        editable: bool,
    ) -> Markup:
        structural = section.type in STRUCTURAL_SECTION_TYPES
        header = footer = None
        if not structural:
            header = self._header(editor_state, editable)
            footer = self._footer(index, total, state, editor_state, editable)

        return Markup(SECTION_PAGE_TEMPLATE.render(
            section_type=section.type,
            section_id=section.id,
            index=index,
            header=header,
            footer=footer,
            assets=self._assets(editor_state, AssetZone.SECTION, index),
            body=body,
            editable=editable,
        ))

    def _header(self, editor_state: EditorState, editable: bool) -> Optional[Markup]:
        config = self.branding.get("header")
        if isinstance(config, dict) and config.get("enabled") is False:
            return None
        config = config if isinstance(config, dict) else {}
        logo = self.branding.get("logoUrl") if config.get("showLogo", True) else None
        return Markup(HEADER_TEMPLATE.render(
            text=config.get("text") or self.document.company_name,
            right=self.document.client_company,
            logo=logo,
            assets=self._assets(editor_state, AssetZone.HEADER),
            editable=editable,
        ))

    def _footer(
        self,
        index: int,
        total: int,
        state: PreviewState,
        editor_state: EditorState,
        editable: bool,
    ) -> Optional[Markup]:
        config = self.branding.get("footer")
        if isinstance(config, dict) and config.get("enabled") is False:
            return None
        config = config if isinstance(config, dict) else {}

        page_label = None
        if state.mode == PreviewMode.TAB and config.get("showPageNumbers", True):
            page_label = f"Page {index + 1} of {total}"

        return Markup(FOOTER_TEMPLATE.render(
            text=config.get("text") or self.document.title,
            contact=[config[key] for key in ("email", "phone", "website") if config.get(key)],
            page_label=page_label,
            assets=self._assets(editor_state, AssetZone.FOOTER),
            editable=editable,
        ))

    @staticmethod
    def _assets(editor_state: EditorState, zone: AssetZone, section_index: Optional[int] = None) -> Markup:
        placed: List[PlacedAsset] = assets_in_zone(editor_state, zone, section_index)
        return Markup("".join(
            ASSET_TEMPLATE.render(asset=asset, selected=asset.id == editor_state.selected_asset_id)
            for asset in placed
        ))

    # ===========================================
    # Section dispatch
    # ===========================================

    async def render_section(
        self,
        section: ProposalSection,
        index: int,
        sections: List[ProposalSection],
        editor_state: EditorState,
        editable: bool = False,
        static: bool = False,
    ) -> Markup:
        """Render one section body according to its type."""
        if section.type == SectionType.COVER_PAGE.value:
            return self.render_cover(section, editor_state, editable)
        if section.type == SectionType.TABLE_OF_CONTENTS.value:
            return self.render_table_of_contents(section, sections)
        if section.type == SectionType.THANK_YOU.value:
            return self.render_thank_you(section)
        if section.type == SectionType.BACK_COVER.value:
            return self.render_back_cover()
        if section.type in (SectionType.CHART.value, SectionType.DIAGRAM.value, SectionType.TABLE.value):
            return await self.render_data_section(section, index, static)
        return await self.render_text_section(section, index, static)

    def render_cover(self, section: ProposalSection, editor_state: EditorState, editable: bool = False) -> Markup:
        layout = self.document.design.cover_zones if self.document.design else CoverLayout()
        document = self.document
        subtitle = section.content or (f"Prepared for {document.client_company}" if document.client_company else "")

        contents = {
            "logo": self._image(self.branding.get("logoUrl"), "4rem"),
            "title": Markup(
                '<h1 style="font-size: 2.75rem; line-height: 1.15; margin: 0; color: inherit;">{}</h1>'
            ).format(section.title or document.title),
            "subtitle": Markup('<div style="font-size: 1.25rem; opacity: 0.9;">{}</div>').format(
                self.formatter.format(subtitle) if subtitle else ""
            ),
            "client_logo": self._image(self.branding.get("clientLogoUrl"), "3rem"),
            "date": Markup('<p style="font-size: 0.95rem; margin: 0; opacity: 0.8;">{}</p>').format(document.date),
        }

        zones = []
        for name, content in contents.items():
            box = getattr(layout, name)
            zones.append({
                "name": name.replace("_", "-"),
                "box": box,
                "justify": VERTICAL_JUSTIFY[box.vertical_align],
                "align": HORIZONTAL_ALIGN[box.alignment],
                "content": content,
            })

        cover = self.branding.get("coverPage") if isinstance(self.branding.get("coverPage"), dict) else {}
        return Markup(COVER_TEMPLATE.render(
            zones=zones,
            background=cover.get("backgroundColor")
            or "linear-gradient(135deg, var(--primary-color), var(--secondary-color))",
            color=cover.get("textColor") or "#ffffff",
            assets=self._assets(editor_state, AssetZone.COVER),
            editable=editable,
        ))

    @staticmethod
    def _image(url: Optional[str], height: str) -> Markup:
        if not url:
            return Markup("")
        return Markup('<img src="{}" alt="" style="max-height: {}; max-width: 100%;" />').format(url, height)

    def render_table_of_contents(self, section: ProposalSection, sections: List[ProposalSection]) -> Markup:
        entries = [
            {"id": entry.id, "title": self.formatter.format_title(entry.title)}
            for entry in sections
            if entry.type not in STRUCTURAL_SECTION_TYPES and entry.title
        ]
        return Markup(TOC_TEMPLATE.render(title=section.title or "Table of Contents", entries=entries))

    def render_thank_you(self, section: ProposalSection) -> Markup:
        slide = self.branding.get("thankYouSlide") or {}
        contact = slide.get("contactInfo") if isinstance(slide.get("contactInfo"), dict) else {}
        return Markup(CLOSING_TEMPLATE.render(
            kind="thank-you",
            background=slide.get("backgroundColor") or "var(--surface-color)",
            image=slide.get("backgroundImage"),
            logo=self.branding.get("logoUrl") if slide.get("showLogo", True) else None,
            heading=slide.get("title") or section.title or "Thank You",
            message=slide.get("message") or section.content,
            contact=[value for value in contact.values() if value],
        ))

    def render_back_cover(self) -> Markup:
        cover = self.branding.get("backCover") or {}
        social = cover.get("socialMedia") if isinstance(cover.get("socialMedia"), dict) else {}
        return Markup(CLOSING_TEMPLATE.render(
            kind="back-cover",
            background=cover.get("backgroundColor") or "#f9fafb",
            image=cover.get("backgroundImage"),
            logo=self.branding.get("logoUrl"),
            heading=self.document.company_name,
            message=cover.get("tagline"),
            contact=[],
            links=[social[key] for key in ("website", "linkedin", "twitter") if social.get(key)],
        ))

    async def render_data_section(self, section: ProposalSection, index: int, static: bool = False) -> Markup:
        """Chart, diagram and table sections carry their payload in `data`."""
        data = section.data
        raw: Optional[Dict[str, Any]] = None

        if section.type == SectionType.CHART.value and isinstance(data.get("chartConfig"), dict):
            config = data["chartConfig"]
            raw = {
                "type": "chart",
                "chartType": config.get("chartType") or config.get("type"),
                "data": config.get("data"),
                "options": config.get("options") or {},
                "title": config.get("title"),
            }
        elif section.type == SectionType.DIAGRAM.value and (data.get("mermaidCode") or data.get("code")):
            raw = {"type": "mermaid", "code": data.get("mermaidCode") or data.get("code"), "caption": data.get("caption")}
        elif section.type == SectionType.TABLE.value and isinstance(data.get("tableData"), dict):
            raw = {"type": "table", **data["tableData"]}

        parts = [SECTION_TITLE_TEMPLATE.render(title=self.formatter.format_title(section.title))] if section.title else []
        if section.content:
            parts.append(self.formatter.format(section.content))
        if raw is not None:
            visualization = normalize_visualization(raw)
            if visualization is not None:
                parts.append(await self.render_visualization(visualization, f"chart-{index}-0", static))
            else:
                parts.append(VISUALIZATION_ERROR_TEMPLATE.render(kind=section.type, message="invalid data"))
        return Markup("").join(Markup(part) for part in parts)

    async def render_text_section(self, section: ProposalSection, index: int, static: bool = False) -> Markup:
        """
        Prose first, then the visualizations.

        Visualizations extracted from the text come before the ones
        supplied in `data.visualizations`, each in its original order.
        """
        parsed = self.parser.parse(section.content)
        records = parsed.visualizations + section.visualizations

        parts = [SECTION_TITLE_TEMPLATE.render(title=self.formatter.format_title(section.title))] if section.title else []
        parts.append(self.formatter.format(parsed.cleaned_text))

        for position, record in enumerate(records):
            visualization = normalize_visualization(record)
            if visualization is None:
                continue
            parts.append(await self.render_visualization(visualization, f"chart-{index}-{position}", static))

        return Markup("").join(Markup(part) for part in parts)

    async def render_visualization(self, visualization: Any, chart_id: str, static: bool = False) -> Markup:
        """Render one visualization; a failure becomes an inline error."""
        try:
            if isinstance(visualization, MermaidVisualization):
                result = await self.diagram_renderer.render(visualization.code)
                return self.diagram_renderer.render_html(result, visualization.caption)
            if isinstance(visualization, ChartVisualization):
                if static:
                    return self.chart_renderer.render_static(visualization)
                return self.chart_renderer.render_html(visualization, chart_id)
            if isinstance(visualization, TableVisualization):
                return self.table_renderer.render_html(visualization)
            if isinstance(visualization, CalloutVisualization):
                return self.callout_renderer.render_html(visualization)
        except Exception as e:
            logger.error(f"Error rendering {visualization.type} visualization: {e}")
            return Markup(VISUALIZATION_ERROR_TEMPLATE.render(kind=visualization.type, message=str(e)))

        logger.warning(f"No renderer for visualization {type(visualization).__name__}")
        return Markup("")
