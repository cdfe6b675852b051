"""Themed HTML rendering of table visualizations."""

from typing import Any, List

from jinja2 import Template
from markupsafe import Markup

from proposal_studio.models import TableVisualization, TableStyling

DEFAULT_HEADER_BG = "var(--primary-color, #3b82f6)"
DEFAULT_HEADER_TEXT = "#ffffff"
DEFAULT_BORDER_COLOR = "#e5e7eb"

TABLE_TEMPLATE = Template("""
<figure class="table-figure" style="margin: 1.5rem 0; overflow-x: auto;">
  {% if title %}<h4 style="color: var(--primary-color); font-family: var(--heading-font); margin-bottom: 0.5rem;">{{ title }}</h4>{% endif %}
  <table class="proposal-table{% if table_type %} table-{{ table_type }}{% endif %}" style="width: 100%; border-collapse: collapse; font-size: 0.9rem;">
    <thead>
      <tr style="background-color: {{ header_bg }}; color: {{ header_text }};">
        {% for header in headers %}<th style="padding: 0.75rem 1rem; text-align: left; font-weight: 600;{% if borders %} border: 1px solid {{ border_color }};{% endif %}">{{ header }}</th>{% endfor %}
      </tr>
    </thead>
    <tbody>
      {% for row in rows %}
        {% if row.separator %}
      <tr class="separator-row"><td colspan="{{ headers|length }}" style="padding: 0; border-top: 2px solid {{ border_color }};"></td></tr>
        {% else %}
      <tr style="background-color: {{ row.background }};{% if row.total %} font-weight: 700; border-top: 2px solid {{ border_color }};{% endif %}">
        {% for cell in row.cells %}<td style="padding: 0.75rem 1rem;{% if borders %} border: 1px solid {{ border_color }};{% endif %}">{{ cell }}</td>{% endfor %}
      </tr>
        {% endif %}
      {% endfor %}
    </tbody>
  </table>
  {% if caption %}<figcaption style="margin-top: 0.5rem; font-size: 0.875rem; color: #6b7280; font-style: italic; text-align: center;">{{ caption }}</figcaption>{% endif %}
</figure>
""", autoescape=True)


def _cell_text(cell: Any) -> str:
    return "" if cell is None else str(cell)


def is_separator_row(row: List[Any]) -> bool:
    return bool(row) and all(_cell_text(cell).strip() == "---" for cell in row)


def is_total_row(row: List[Any]) -> bool:
    return bool(row) and _cell_text(row[0]).replace("*", "").strip().upper() == "TOTAL"


class TableRenderer:
    """Renders a header row, striped body rows and an optional caption."""

    def render_html(self, table: TableVisualization) -> Markup:
        styling = table.styling or TableStyling()
        width = len(table.headers)

        rows = []
        striped_index = 0
        for row in table.rows:
            if is_separator_row(row):
                rows.append({"separator": True})
                continue

            cells = [_cell_text(cell).replace("**", "") for cell in row[:width]]
            cells += [""] * (width - len(cells))
            background = "#ffffff"
            if styling.alternating_rows and striped_index % 2 == 1:
                background = "#f9fafb"
            rows.append({
                "separator": False,
                "cells": cells,
                "total": is_total_row(row),
                "background": background,
            })
            striped_index += 1

        return Markup(TABLE_TEMPLATE.render(
            title=table.title,
            caption=table.caption,
            table_type=table.table_type,
            headers=[header.replace("**", "") for header in table.headers],
            rows=rows,
            header_bg=styling.header_bg or DEFAULT_HEADER_BG,
            header_text=styling.header_text or DEFAULT_HEADER_TEXT,
            border_color=styling.border_color or DEFAULT_BORDER_COLOR,
            borders=styling.borders,
        ))

