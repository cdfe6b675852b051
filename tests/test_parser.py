"""Tests for extraction of visualizations and tables from section text."""

import pytest

from proposal_studio.rendering.parser import VisualizationParser, PSEUDO_TABLE_STYLING


@pytest.fixture
def parser() -> VisualizationParser:
    return VisualizationParser()


class TestPipeTables:
    """Tests for markdown pipe tables."""

    def test_pipe_table_extracted(self, parser):
        """Test header, separator and rows become a comparison table."""
        text = "Intro\n| Item | Cost |\n|------|------|\n| Design | $5,000 |\nOutro"

        result = parser.parse(text)

        assert result.cleaned_text == "Intro\nOutro"
        assert result.visualizations == [{
            "type": "table",
            "headers": ["Item", "Cost"],
            "rows": [["Design", "$5,000"]],
            "tableType": "comparison",
        }]

    def test_aligned_separator_accepted(self, parser):
        """Test colon alignment markers in the separator row."""
        text = "| A | B |\n|:---|---:|\n| 1 | 2 |"

        result = parser.parse(text)

        assert len(result.visualizations) == 1
        assert result.visualizations[0]["rows"] == [["1", "2"]]

    def test_pipe_line_without_separator_kept(self, parser):
        """Test a lone line with pipes is prose, not a table."""
        text = "Choose A | B depending on budget\nNext line"

        result = parser.parse(text)

        assert result.visualizations == []
        assert result.cleaned_text == text


class TestPseudoTables:
    """Tests for space-aligned tables with bold headers."""

    def test_pseudo_table_extracted(self, parser):
        """Test bold header row followed by aligned rows."""
        text = "**Item**    **Cost**\nDesign    $5,000\nDevelopment    $20,000\n\nAfter"

        result = parser.parse(text)

        assert result.cleaned_text == "\nAfter"
        table = result.visualizations[0]
        assert table["headers"] == ["Item", "Cost"]
        assert table["rows"] == [["Design", "$5,000"], ["Development", "$20,000"]]
        assert table["tableType"] == "budget"
        assert table["styling"] == PSEUDO_TABLE_STYLING

    def test_row_with_missing_cell_padded(self, parser):
        """Test a row one cell short is padded to the header width."""
        text = "**Phase**    **Weeks**    **Owner**\nDiscovery    2"

        result = parser.parse(text)

        assert result.visualizations[0]["rows"] == [["Discovery", "2", ""]]

    def test_mismatched_row_ends_detection(self, parser):
        """Test a header whose next row differs by more than one column stays text."""
        text = "**A**    **B**\none    two    three    four"

        result = parser.parse(text)

        assert result.visualizations == []
        assert result.cleaned_text == text


class TestJsonBlocks:
    """Tests for embedded JSON visualization objects."""

    def test_multiline_block_extracted(self, parser):
        """Test a block opened by a lone brace is removed from the prose."""
        text = (
            "Text before\n"
            "{\n"
            '  "type": "chart",\n'
            '  "chartType": "bar",\n'
            '  "data": {"labels": ["A"], "datasets": [{"data": [1]}]}\n'
            "}\n"
            "Text after"
        )

        result = parser.parse(text)

        assert result.cleaned_text == "Text before\nText after"
        assert result.visualizations[0]["chartType"] == "bar"
        assert result.visualizations[0]["data"]["labels"] == ["A"]

    def test_single_line_object_extracted(self, parser):
        """Test one-line objects, including a trailing comma."""
        text = 'Intro\n{"type": "mermaid", "code": "graph TD"},\nEnd'

        result = parser.parse(text)

        assert result.cleaned_text == "Intro\nEnd"
        assert result.visualizations == [{"type": "mermaid", "code": "graph TD"}]

    def test_invalid_json_kept_verbatim(self, parser):
        """Test a block that does not parse stays in the text."""
        text = '{\n  "type": "chart",\n  broken\n}'

        result = parser.parse(text)

        assert result.visualizations == []
        assert result.cleaned_text == text

    def test_object_without_type_kept(self, parser):
        """Test JSON without a type key is not a visualization."""
        text = '{"name": "not a chart"}'

        result = parser.parse(text)

        assert result.visualizations == []
        assert result.cleaned_text == text

    def test_unclosed_block_kept(self, parser):
        """Test a block that never closes is pushed back as text."""
        text = 'Before\n{\n  "type": "chart"'

        result = parser.parse(text)

        assert result.visualizations == []
        assert result.cleaned_text == text

    def test_records_keep_source_order(self, parser):
        """Test tables and JSON blocks come back in text order."""
        text = (
            "| A | B |\n|---|---|\n| 1 | 2 |\n"
            '{"type": "callout", "title": "Note", "content": "Later"}'
        )

        result = parser.parse(text)

        assert [v["type"] for v in result.visualizations] == ["table", "callout"]


class TestNoiseRemoval:
    """Tests for layout commentary and pseudo-header rows."""

    def test_layout_lines_dropped(self, parser):
        """Test layout markers and layout comments are removed."""
        text = "📐 Layout: two columns\n<!-- LAYOUT: grid -->\nReal content"

        result = parser.parse(text)

        assert result.cleaned_text == "Real content"

    def test_pseudo_header_dropped(self, parser):
        """Test bold status rows with emoji are removed."""
        text = "**Status** ✅ **Done**\nKeep me"

        result = parser.parse(text)

        assert result.cleaned_text == "Keep me"

    def test_empty_input(self, parser):
        """Test empty and None input."""
        assert parser.parse("").cleaned_text == ""
        assert parser.parse(None).visualizations == []


class TestBlockquoteCallouts:
    """Tests for markdown callouts, which are opt-in."""

    TEXT = "> **💡 Key Insight:** Automation saves time.\n> It also reduces errors.\nAfter"

    def test_callout_extracted_when_enabled(self):
        """Test a bold-titled blockquote becomes a callout record."""
        result = VisualizationParser(extract_callouts=True).parse(self.TEXT)

        assert result.cleaned_text == "After"
        assert result.visualizations == [{
            "type": "callout",
            "title": "💡 Key Insight",
            "content": "Automation saves time.\nIt also reduces errors.",
            "calloutType": "insight",
        }]

    def test_unrecognised_title_is_note(self):
        """Test markdown callouts without a known marker default to note."""
        result = VisualizationParser(extract_callouts=True).parse("> **Remember** to sign")

        assert result.visualizations[0]["calloutType"] == "note"

    def test_blockquote_left_alone_by_default(self, parser):
        """Test callouts stay in the prose unless extraction is enabled."""
        result = parser.parse(self.TEXT)

        assert result.visualizations == []
        assert result.cleaned_text == self.TEXT


REPARSE_CORPUS = [
    "Intro paragraph.\n{\n  \"type\": \"chart\",\n  \"chartType\": \"bar\",\n  \"data\": {\"labels\": [\"A\"]}\n}\nOutro paragraph.",
    "Before\n{\n  \"name\": \"no type\"\n}\nAfter",
    "Before\n{\n  \"type\": \"chart\",\n  broken\n}\nAfter",
    "Text\n{\n  \"type\": \"table\"",
    '{"config": true}\n| A | B |\n|---|---|\n| 1 | 2 |',
    "| A | B |\n**X** ✅ **Y** **Z**\n|---|---|\n| 1 | 2 |",
    "**Item**    **Cost**\n**Now** ✅ **Soon** **Later**\nDesign    $5,000",
    "**Item**    **Cost**\n| x | y |\n|---|---|\n| 1 | 2 |\nDesign    $5,000",
    "**Item**    **Cost**    **Qty**\nDesign    $5,000    1\nBuild    $9,000    2\n"
    "a    b    c    d    e    f\n**Name**    **Role**\nAda    Lead",
    "📐 Layout: two columns\n| A | B |\n<!-- LAYOUT: grid -->\n|---|---|\n| 1 | 2 |",
    "# Heading\n- bullet\n**Status** ✅ **Done** **Next** 🎯\n1. step\n---PAGE_BREAK---",
    '{"type": "callout", "title": "Tip", "content": "Start small"}\nplain {"type" text',
]


class TestIdempotence:
    """Tests that cleaned text parses to itself."""

    @pytest.mark.parametrize("text", REPARSE_CORPUS)
    @pytest.mark.parametrize("extract_callouts", [False, True])
    def test_reparse_finds_nothing(self, text, extract_callouts):
        """Test a second parse yields no records and the same text."""
        parser = VisualizationParser(extract_callouts=extract_callouts)

        first = parser.parse(text)
        second = parser.parse(first.cleaned_text)

        assert second.visualizations == []
        assert second.cleaned_text == first.cleaned_text

    def test_blockquote_callouts_reparse(self):
        """Test extracted callouts leave text that parses to itself."""
        parser = VisualizationParser(extract_callouts=True)
        text = "> **Note:** one\n| A | B |\n> **Tip:** two\n|---|---|\n| 1 | 2 |"

        first = parser.parse(text)

        assert parser.parse(first.cleaned_text).cleaned_text == first.cleaned_text

    def test_table_split_by_status_row_found_first_time(self, parser):
        """Test a pipe table interrupted by a status row is still extracted."""
        result = parser.parse("| A | B |\n**X** ✅ **Y** **Z**\n|---|---|\n| 1 | 2 |")

        assert result.cleaned_text == ""
        assert result.visualizations == [{
            "type": "table",
            "headers": ["A", "B"],
            "rows": [["1", "2"]],
            "tableType": "comparison",
        }]

    def test_pseudo_table_split_by_status_row_found_first_time(self, parser):
        """Test a space-aligned table interrupted by a status row is still extracted."""
        result = parser.parse("**Item**    **Cost**\n**Now** ✅ **Soon** **Later**\nDesign    $5,000")

        assert result.cleaned_text == ""
        assert result.visualizations[0]["headers"] == ["Item", "Cost"]
        assert result.visualizations[0]["rows"] == [["Design", "$5,000"]]

    def test_untyped_json_lines_survive_reparse(self, parser):
        """Test pushed-back JSON lines stay verbatim across parses."""
        block = "{\n  \"name\": \"no type\"\n}"

        first = parser.parse(f"Before\n{block}\nAfter")
        second = parser.parse(first.cleaned_text)

        assert block in first.cleaned_text
        assert second.cleaned_text == f"Before\n{block}\nAfter"
