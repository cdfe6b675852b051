"""Tests for the table and callout renderers."""

from proposal_studio.models import (
    CalloutCategory,
    CalloutVisualization,
    TableStyling,
    TableVisualization,
    normalize_visualization,
)
from proposal_studio.rendering.callouts import CALLOUT_STYLES, CalloutRenderer, default_title
from proposal_studio.rendering.tables import TableRenderer, is_separator_row, is_total_row


class TestTableRenderer:
    """Tests for TableRenderer."""

    def test_separator_and_total_rows(self):
        """Test separator rows become rules and TOTAL rows are bold."""
        table = TableVisualization(
            headers=["Item", "Cost"],
            rows=[["Design", "$5,000"], ["---", "---"], ["**TOTAL**", "$5,000"]],
        )

        html = TableRenderer().render_html(table)

        assert 'class="separator-row"' in html
        assert "font-weight: 700" in html
        assert ">TOTAL<" in html
        assert "**" not in html

    def test_alternating_rows(self):
        """Test every second body row is shaded."""
        table = TableVisualization(headers=["A"], rows=[["1"], ["2"], ["3"]])

        html = TableRenderer().render_html(table)

        assert html.count("#f9fafb") == 1

    def test_alternating_rows_disabled(self):
        """Test striping can be switched off."""
        table = TableVisualization(
            headers=["A"],
            rows=[["1"], ["2"]],
            styling=TableStyling(alternatingRows=False),
        )

        assert "#f9fafb" not in TableRenderer().render_html(table)

    def test_short_rows_padded(self):
        """Test rows narrower than the header get empty cells."""
        table = TableVisualization(headers=["A", "B", "C"], rows=[["only"]])

        html = TableRenderer().render_html(table)

        assert html.count("<td") == 3

    def test_cells_escaped(self):
        """Test cell and header text is escaped."""
        table = TableVisualization(headers=["<b>x</b>"], rows=[["<script>"]])

        html = TableRenderer().render_html(table)

        assert "&lt;b&gt;" in html
        assert "<script>" not in html

    def test_custom_header_colors(self):
        """Test styling overrides the header background."""
        table = TableVisualization(headers=["A"], rows=[], styling=TableStyling(headerBg="#000000"))

        assert "background-color: #000000" in TableRenderer().render_html(table)

    def test_parser_styling_alias(self):
        """Test the alternateRows spelling produced for pseudo-tables."""
        table = normalize_visualization({
            "type": "table",
            "headers": ["A"],
            "rows": [["1"]],
            "styling": {"headerBg": "#3b82f6", "alternateRows": False},
        })

        assert table.styling.alternating_rows is False

    def test_row_helpers(self):
        """Test separator and total detection."""
        assert is_separator_row(["---", " --- "])
        assert not is_separator_row([])
        assert is_total_row(["**Total**", "1"])
        assert not is_total_row(["Subtotal", "1"])


class TestCalloutRenderer:
    """Tests for CalloutRenderer."""

    def test_category_styling(self):
        """Test the category's class and accent color."""
        callout = CalloutVisualization(title="Watch out", content="Be careful", calloutType="warning")

        html = CalloutRenderer().render_html(callout)

        assert "callout-warning" in html
        assert CALLOUT_STYLES[CalloutCategory.WARNING]["accent"] in html
        assert "Watch out" in html

    def test_body_is_markdown(self):
        """Test markdown emphasis in the body."""
        callout = CalloutVisualization(title="Tip", content="Be **careful**", calloutType="tip")

        assert "<strong>careful</strong>" in CalloutRenderer().render_html(callout)

    def test_body_html_escaped(self):
        """Test raw HTML in the body is not rendered."""
        callout = CalloutVisualization(title="Note", content="<script>alert(1)</script>")

        html = CalloutRenderer().render_html(callout)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_every_category_styled(self):
        """Test all categories have a style."""
        assert set(CALLOUT_STYLES) == set(CalloutCategory)

    def test_default_title(self):
        """Test the fallback title is the category name."""
        assert default_title(CalloutCategory.TIP) == "Tip"
