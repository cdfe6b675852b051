"""
Extraction of visualization blocks and tables from generated section text.

Section text produced by the section writer is markdown with embedded JSON
objects (charts, diagrams, tables, callouts) and tables written either with
pipes or as space-aligned bold headers. The parser pulls those out so the
remaining prose can go through the formatter.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple

from proposal_studio.models import CalloutCategory, TableType, classify_callout

logger = logging.getLogger(__name__)


LAYOUT_COMMENT_PREFIXES = ("<!-- LAYOUT:", "<!-- VISUAL FLOW:", "<!-- DENSITY:")
LAYOUT_MARKER = "📐 Layout:"
STATUS_EMOJI = re.compile("[⚠✅❌🔴🟢⚡💡🎯✓]")
CELL_SPLIT = re.compile(r"\s{2,}|\t+")
PIPE_SEPARATOR = re.compile(r"^\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?$")
CALLOUT_START = re.compile(r"^>\s*\*\*([^*]+?)\*\*\s*:?\s*(.*)$")

# Styling attached to pseudo-tables, which carry no styling of their own
PSEUDO_TABLE_STYLING = {
    "headerBg": "#3b82f6",
    "alternateRows": True,
    "borderColor": "#e5e7eb",
}


@dataclass
class ParseResult:
    """Prose left after extraction plus the raw records found, in text order."""
    cleaned_text: str
    visualizations: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class _Line:
    text: str
    index: int
    # lines of a pushed-back JSON block are never re-read as tables
    protected: bool = False


def _load_record(text: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON block, returning it only when it is a typed object."""
    payload = re.sub(r",\s*$", "", text.strip())
    try:
        record = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning(f"Keeping unparseable JSON block as text: {e.msg} at line {e.lineno}")
        return None

    if isinstance(record, dict) and "type" in record:
        return record
    return None


def _is_single_line_object(stripped: str) -> bool:
    return stripped.startswith("{\"") and stripped.rstrip(",").endswith("}")


def _is_layout_noise(stripped: str) -> bool:
    return LAYOUT_MARKER in stripped or stripped.startswith(LAYOUT_COMMENT_PREFIXES)


def _is_pseudo_header(stripped: str) -> bool:
    """Bold-heavy status rows that failed table detection."""
    return (
        stripped.count("**") >= 4
        and not stripped.startswith("|")
        and STATUS_EMOJI.search(stripped) is not None
    )


def _split_space_cells(line: str) -> List[str]:
    cells = (cell.replace("**", "").strip() for cell in CELL_SPLIT.split(line.strip()))
    return [cell for cell in cells if cell]


def _split_pipe_cells(line: str) -> List[str]:
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in stripped.split("|")]


def _fit_row(cells: List[str], width: int) -> List[str]:
    if len(cells) < width:
        return cells + [""] * (width - len(cells))
    return cells[:width]


class VisualizationParser:
    """
    Line-oriented extractor for section text.

    Works in two passes over the lines. The first collects embedded JSON
    objects and drops layout commentary. The second, over what is left,
    detects tables (and, when enabled, blockquote callouts) and drops
    pseudo-header noise rows, and is repeated until it removes nothing.
    Extracted records keep the order in which they appear in the source
    text, and parsing the cleaned text again finds nothing more.
    """

    def __init__(self, extract_callouts: bool = False):
        self.extract_callouts = extract_callouts

    def parse(self, raw_text: Optional[str]) -> ParseResult:
        """
        Split raw section text into prose and visualization records.

        Args:
            raw_text: Section content as written by the section writer

        Returns:
            ParseResult with cleaned prose and raw visualization dicts
        """
        if not raw_text:
            return ParseResult(cleaned_text="")

        lines = raw_text.split("\n")
        kept, found = self._extract_json_blocks(lines)

        # Removing a table or a noise row joins its neighbours, which can
        # form a new table. Repeat until nothing changes so the cleaned
        # text parses to itself.
        while True:
            remaining, tables = self._extract_tables(kept)
            found.extend(tables)
            if len(remaining) == len(kept):
                break
            kept = remaining

        found.sort(key=lambda item: item[0])

        return ParseResult(
            cleaned_text="\n".join(entry.text for entry in kept),
            visualizations=[record for _, record in found],
        )

    # ===========================================
    # Pass 1: JSON blocks and layout noise
    # ===========================================

    def _extract_json_blocks(
        self,
        lines: List[str]
    ) -> Tuple[List[_Line], List[Tuple[int, Dict[str, Any]]]]:
        kept: List[_Line] = []
        found: List[Tuple[int, Dict[str, Any]]] = []
        block_start: Optional[int] = None
        depth = 0

        for index, line in enumerate(lines):
            stripped = line.strip()

            if block_start is not None:
                depth += line.count("{") - line.count("}")
                if depth <= 0:
                    block = lines[block_start:index + 1]
                    record = _load_record("\n".join(block))
                    if record is not None:
                        found.append((block_start, record))
                    else:
                        kept.extend(
                            _Line(text, block_start + offset, protected=True)
                            for offset, text in enumerate(block)
                        )
                    block_start = None
                continue

            if stripped == "{":
                block_start, depth = index, 1
                continue

            if _is_single_line_object(stripped):
                record = _load_record(stripped)
                if record is not None:
                    found.append((index, record))
                else:
                    kept.append(_Line(line, index, protected=True))
                continue

            if _is_layout_noise(stripped):
                continue

            kept.append(_Line(line, index))

        if block_start is not None:
            logger.warning(f"Unclosed JSON block starting at line {block_start + 1}; keeping it as text")
            kept.extend(
                _Line(text, block_start + offset, protected=True)
                for offset, text in enumerate(lines[block_start:])
            )

        return kept, found

    # ===========================================
    # Pass 2: tables, callouts and pseudo-headers
    # ===========================================

    def _extract_tables(
        self,
        lines: List[_Line]
    ) -> Tuple[List[_Line], List[Tuple[int, Dict[str, Any]]]]:
        cleaned: List[_Line] = []
        found: List[Tuple[int, Dict[str, Any]]] = []
        i = 0

        while i < len(lines):
            entry = lines[i]
            if entry.protected:
                cleaned.append(entry)
                i += 1
                continue

            match = self._match_space_table(lines, i) or self._match_pipe_table(lines, i)
            if match is None and self.extract_callouts:
                match = self._match_callout(lines, i)

            if match is not None:
                record, i = match
                found.append((entry.index, record))
                continue

            if _is_pseudo_header(entry.text.strip()):
                logger.debug(f"Dropping pseudo-header row at line {entry.index + 1}")
                i += 1
                continue

            cleaned.append(entry)
            i += 1

        return cleaned, found

    def _match_space_table(
        self,
        lines: List[_Line],
        start: int
    ) -> Optional[Tuple[Dict[str, Any], int]]:
        header_line = lines[start].text
        if "|" in header_line or header_line.count("**") < 4:
            return None

        headers = _split_space_cells(header_line)
        if len(headers) < 2:
            return None

        rows = []
        i = start + 1
        while i < len(lines):
            entry = lines[i]
            stripped = entry.text.strip()
            if entry.protected or not stripped or stripped.startswith(("#", "---")):
                break

            cells = _split_space_cells(entry.text)
            if len(cells) < 2 or abs(len(cells) - len(headers)) > 1:
                break

            rows.append(_fit_row(cells, len(headers)))
            i += 1

        if not rows:
            return None

        return {
            "type": "table",
            "headers": headers,
            "rows": rows,
            "tableType": TableType.BUDGET.value,
            "styling": dict(PSEUDO_TABLE_STYLING),
        }, i

    def _match_pipe_table(
        self,
        lines: List[_Line],
        start: int
    ) -> Optional[Tuple[Dict[str, Any], int]]:
        if "|" not in lines[start].text or start + 1 >= len(lines):
            return None

        separator = lines[start + 1]
        separator_text = separator.text.strip()
        if separator.protected or "|" not in separator_text or not PIPE_SEPARATOR.match(separator_text):
            return None

        headers = _split_pipe_cells(lines[start].text)
        if not any(headers):
            return None

        rows = []
        i = start + 2
        while i < len(lines) and not lines[i].protected and "|" in lines[i].text:
            rows.append(_split_pipe_cells(lines[i].text))
            i += 1

        return {
            "type": "table",
            "headers": headers,
            "rows": rows,
            "tableType": TableType.COMPARISON.value,
        }, i

    def _match_callout(
        self,
        lines: List[_Line],
        start: int
    ) -> Optional[Tuple[Dict[str, Any], int]]:
        match = CALLOUT_START.match(lines[start].text.strip())
        if not match:
            return None

        title = match.group(1).strip().rstrip(":").strip()
        body = [match.group(2).strip()] if match.group(2).strip() else []

        i = start + 1
        while i < len(lines) and not lines[i].protected and lines[i].text.strip().startswith(">"):
            body.append(lines[i].text.strip()[1:].strip())
            i += 1

        content = "\n".join(body).strip()
        if not title or not content:
            return None

        category = classify_callout(title) or CalloutCategory.NOTE
        return {
            "type": "callout",
            "title": title,
            "content": content,
            "calloutType": category.value,
        }, i
