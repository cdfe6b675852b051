"""Markdown-subset to HTML conversion for cleaned section prose."""

import logging
import re
from typing import Optional, Dict, List

from markupsafe import Markup, escape

logger = logging.getLogger(__name__)


EMOJI_PATTERN = re.compile(
    "(["
    "\U0001F000-\U0001F9FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "\u2300-\u23FF"
    "\u2B50"
    "]+[\uFE0E\uFE0F]?)"
)
LEADING_EMOJI = re.compile(r"^" + EMOJI_PATTERN.pattern + r"\s*")
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([a-zA-Z_][\w.]*)\s*\}\}")
BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*")
STRONG_PATTERN = re.compile(r"<strong>(.+?)</strong>")
NUMBERED_ITEM = re.compile(r"^\d+\.\s")
RULE_LINES = {"---", "***", "___"}

EMOJI_SPAN = (
    '<span class="emoji-protect" style="all: revert; font-family: \'Apple Color Emoji\', '
    '\'Segoe UI Emoji\', \'Noto Color Emoji\', sans-serif; display: inline-block; '
    'margin: 0 0.2em;">{emoji}</span>'
)
PAGE_BREAK = (
    '<div class="page-break" style="page-break-after: always; break-after: page; '
    'margin: 2rem 0; border-bottom: 2px dashed #e5e7eb;"></div>'
)
HORIZONTAL_RULE = '<hr class="section-rule" style="border-top: 2px solid var(--primary-color); opacity: 0.3;" />'

# level -> (brand color variable, font size)
HEADING_STYLES = {
    1: ("--primary-color", "2rem"),
    2: ("--primary-color", "1.6rem"),
    3: ("--secondary-color", "1.3rem"),
    4: ("--secondary-color", "1.1rem"),
}


def replace_placeholders(text: str, values: Optional[Dict[str, str]] = None) -> str:
    """Substitute {{key}} tokens; unknown keys become an empty string."""
    values = values or {}
    return PLACEHOLDER_PATTERN.sub(lambda match: str(values.get(match.group(1)) or ""), text)


def protect_emojis(text: str) -> str:
    """Wrap emoji runs so heading and accent colors never apply to them."""
    return EMOJI_PATTERN.sub(lambda match: EMOJI_SPAN.format(emoji=match.group(1)), text)


class ContentFormatter:
    """
    Converts cleaned section prose into HTML.

    Supported: headings (# to ####), bullet and numbered lists, **bold**,
    horizontal rules, page-break markers, bold flex rows and paragraphs.
    Input is escaped first, so raw HTML in section text shows as text.
    """

    def __init__(self, placeholders: Optional[Dict[str, str]] = None):
        self.placeholders = placeholders or {}

    def format(self, text: Optional[str]) -> Markup:
        """
        Render cleaned prose.

        Args:
            text: Section text with visualizations already extracted

        Returns:
            HTML markup
        """
        if not text:
            return Markup("")

        content = replace_placeholders(text, self.placeholders)
        content = str(escape(content))
        content = protect_emojis(content)
        content = BOLD_PATTERN.sub(r"<strong>\1</strong>", content)

        html: List[str] = []
        list_tag: Optional[str] = None

        def close_list():
            nonlocal list_tag
            if list_tag:
                html.append(f"</{list_tag}>")
                list_tag = None

        def open_list(tag: str):
            nonlocal list_tag
            if list_tag != tag:
                close_list()
                html.append(f'<{tag} class="content-list" style="padding-left: 1.5rem; margin: 1rem 0;">')
                list_tag = tag

        for line in content.split("\n"):
            trimmed = line.strip()

            if not trimmed or trimmed.startswith("```"):
                close_list()
                continue

            bold_sections = STRONG_PATTERN.findall(trimmed)
            if len(bold_sections) >= 2 and len(STRONG_PATTERN.sub("", trimmed).strip()) < 10:
                close_list()
                html.append(self._flex_row(bold_sections))
                continue

            if "PAGE_BREAK" in trimmed:
                close_list()
                html.append(PAGE_BREAK)
                continue

            if trimmed in RULE_LINES:
                close_list()
                html.append(HORIZONTAL_RULE)
                continue

            level = self._heading_level(trimmed)
            if level:
                close_list()
                html.append(self._heading(level, trimmed[level + 1:]))
                continue

            if trimmed.startswith(("- ", "* ")):
                open_list("ul")
                html.append(f"<li>{trimmed[2:]}</li>")
                continue

            if NUMBERED_ITEM.match(trimmed):
                open_list("ol")
                html.append(f"<li>{NUMBERED_ITEM.sub('', trimmed, count=1)}</li>")
                continue

            close_list()
            html.append(
                f'<p style="text-align: justify; line-height: 1.7; margin-bottom: 1rem;">{trimmed}</p>'
            )

        close_list()
        return Markup("".join(html))

    def format_title(self, title: str) -> Markup:
        """Section title with a leading emoji kept out of the brand color."""
        replaced = str(escape(replace_placeholders(title or "", self.placeholders)))
        match = LEADING_EMOJI.match(replaced)
        if not match:
            return Markup(replaced)

        emoji = match.group(1)
        rest = replaced[match.end():]
        return Markup(
            f'{EMOJI_SPAN.format(emoji=emoji)}'
            f'<span style="color: var(--primary-color);">{rest}</span>'
        )

    @staticmethod
    def _heading_level(trimmed: str) -> int:
        for level in (4, 3, 2, 1):
            if trimmed.startswith("#" * level + " "):
                return level
        return 0

    @staticmethod
    def _heading(level: int, text: str) -> str:
        color, size = HEADING_STYLES[level]
        border = ""
        if level <= 2:
            border = f" border-bottom: {4 if level == 1 else 2}px solid var(--primary-color);"
        return (
            f'<h{level} style="color: var({color}); font-family: var(--heading-font); '
            f'font-size: {size}; overflow-wrap: break-word;{border}">{text}</h{level}>'
        )

    @staticmethod
    def _flex_row(sections: List[str]) -> str:
        cells = "".join(
            f'<div style="flex: 1; text-align: center; font-weight: 700; color: var(--primary-color);">{section}</div>'
            for section in sections
        )
        return (
            '<div class="bold-row" style="display: flex; gap: 1.5rem; margin: 1rem 0; '
            f'border-bottom: 2px solid var(--primary-color);">{cells}</div>'
        )
