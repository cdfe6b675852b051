"""Tests for Chart.js configuration building and chart rendering."""

import pytest

from proposal_studio.models import ChartType, ChartVisualization
from proposal_studio.rendering.charts import (
    NEGATIVE,
    PALETTE,
    POSITIVE,
    ChartRenderer,
    build_chart_config,
    deep_merge,
    gauge_color,
    prepare_chart_data,
)


class TestDataPreparation:
    """Tests for prepare_chart_data."""

    def test_gauge_from_value(self):
        """Test a gauge splits into value and remaining track."""
        data = prepare_chart_data(ChartType.GAUGE, {"value": 75})
        dataset = data["datasets"][0]

        assert dataset["data"] == [75.0, 25.0]
        assert dataset["gaugeValue"] == 75
        assert dataset["renderAs"] == "gauge"
        assert dataset["backgroundColor"][0] == "#84CC16"

    def test_gauge_relative_to_max(self):
        """Test values are expressed as a percentage of max."""
        data = prepare_chart_data(ChartType.GAUGE, {"value": 30, "max": 60})

        assert data["datasets"][0]["gaugeValue"] == 50

    def test_gauge_clamped(self):
        """Test values above the maximum clamp to 100 percent."""
        data = prepare_chart_data(ChartType.GAUGE, {"value": 250})

        assert data["datasets"][0]["data"] == [100, 0]

    @pytest.mark.parametrize("percentage,color", [
        (85, "#10B981"),
        (65, "#84CC16"),
        (45, "#F59E0B"),
        (25, "#F97316"),
        (5, "#EF4444"),
    ])
    def test_gauge_color_bands(self, percentage, color):
        """Test the five gauge color bands."""
        assert gauge_color(percentage) == color

    def test_waterfall_running_total(self):
        """Test floating bars start where the previous change ended."""
        data = prepare_chart_data(ChartType.WATERFALL, {
            "labels": ["Start", "Gain", "Loss"],
            "datasets": [{"data": [100, 50, -30]}],
        })
        dataset = data["datasets"][0]

        assert dataset["data"] == [[0, 100], [100, 150], [150, 120]]
        assert dataset["backgroundColor"] == [POSITIVE, POSITIVE, NEGATIVE]
        assert dataset["renderAs"] == "waterfall"

    def test_bullet_targets(self):
        """Test bullet data keeps targets beside the actual values."""
        data = prepare_chart_data(ChartType.BULLET, {
            "labels": ["Q1", "Q2"],
            "datasets": [{"data": [70, 90], "targets": [80, 85]}],
        })

        assert data["datasets"][0]["data"] == [70.0, 90.0]
        assert data["datasets"][0]["targets"] == [80.0, 85.0]

    def test_sankey_flows(self):
        """Test nodes are ordered by first appearance."""
        data = prepare_chart_data(ChartType.SANKEY, {"flows": [
            {"from": "Budget", "to": "Design", "flow": 20},
            {"from": "Budget", "to": "Build", "flow": 80},
        ]})
        dataset = data["datasets"][0]

        assert dataset["priority"] == {"Budget": 0, "Design": 1, "Build": 2}
        assert dataset["data"][1] == {"from": "Budget", "to": "Build", "flow": 80.0}

    def test_matrix_cells(self):
        """Test one cell per x/y pair, shaded against the maximum."""
        data = prepare_chart_data(ChartType.MATRIX, {
            "xLabels": ["Mon", "Tue"],
            "yLabels": ["AM", "PM"],
            "values": [[1, 2], [3, 4]],
        })
        dataset = data["datasets"][0]

        assert len(dataset["data"]) == 4
        assert dataset["data"][-1] == {"x": "Tue", "y": "PM", "v": 4.0}
        assert dataset["backgroundColor"][-1] == "rgba(59, 130, 246, 1.000)"

    def test_pie_gets_per_slice_colors(self):
        """Test pie datasets get one color per data point."""
        data = prepare_chart_data(ChartType.PIE, {"labels": ["A", "B", "C"], "datasets": [{"data": [1, 2, 3]}]})

        assert data["datasets"][0]["backgroundColor"] == PALETTE[:3]

    def test_existing_colors_kept(self):
        """Test explicit colors are not overwritten."""
        data = prepare_chart_data(ChartType.BAR, {"datasets": [{"data": [1], "backgroundColor": "#000"}]})

        assert data["datasets"][0]["backgroundColor"] == "#000"

    def test_input_not_mutated(self):
        """Test the caller's data is left alone."""
        original = {"labels": ["A"], "datasets": [{"data": [1]}]}

        prepare_chart_data(ChartType.BAR, original)

        assert "backgroundColor" not in original["datasets"][0]


class TestChartConfig:
    """Tests for build_chart_config."""

    @pytest.mark.parametrize("chart_type,expected", [
        (ChartType.GAUGE, "doughnut"),
        (ChartType.BULLET, "bar"),
        (ChartType.WATERFALL, "bar"),
        (ChartType.SANKEY, "sankey"),
        (ChartType.MATRIX, "matrix"),
        (ChartType.TREEMAP, "treemap"),
        (ChartType.POLAR_AREA, "polarArea"),
        (ChartType.LINE, "line"),
    ])
    def test_controller_type(self, chart_type, expected):
        """Test each logical type maps to its Chart.js controller."""
        assert build_chart_config(chart_type, {})["type"] == expected

    def test_gauge_is_half_doughnut(self):
        """Test gauge options draw a half circle."""
        options = build_chart_config(ChartType.GAUGE, {"value": 10})["options"]

        assert options["circumference"] == 180
        assert options["rotation"] == 270

    def test_bullet_is_horizontal(self):
        """Test bullet charts use a horizontal bar base."""
        assert build_chart_config(ChartType.BULLET, {})["options"]["indexAxis"] == "y"

    def test_options_merged_over_defaults(self):
        """Test caller options override without dropping defaults."""
        config = build_chart_config(ChartType.BAR, {}, {"plugins": {"title": {"display": True}}})

        assert config["options"]["plugins"]["title"]["display"] is True
        assert config["options"]["plugins"]["legend"]["display"] is True

    def test_deep_merge_copies(self):
        """Test deep_merge leaves both inputs untouched."""
        target = {"a": {"b": 1}}
        source = {"a": {"c": 2}}

        merged = deep_merge(target, source)

        assert merged == {"a": {"b": 1, "c": 2}}
        assert target == {"a": {"b": 1}}


class TestChartRenderer:
    """Tests for ChartRenderer."""

    @pytest.fixture
    def chart(self) -> ChartVisualization:
        return ChartVisualization(
            chartType="bar",
            data={"labels": ["Q1", "Q2"], "datasets": [{"label": "Revenue", "data": [10, 20]}]},
            title="Quarterly Revenue",
        )

    def test_render_html(self, chart):
        """Test a canvas plus the render call with the given id."""
        html = ChartRenderer().render_html(chart, "chart-1-0")

        assert '<canvas id="chart-1-0">' in html
        assert 'renderProposalChart("chart-1-0"' in html
        assert "Quarterly Revenue" in html

    def test_render_html_generates_id(self, chart):
        """Test an id is generated when none is given."""
        html = ChartRenderer().render_html(chart)

        assert '<canvas id="chart-' in html

    def test_render_static_is_table(self, chart):
        """Test the static rendering has no script and shows the data."""
        html = ChartRenderer().render_static(chart)

        assert "<script" not in html
        assert "<canvas" not in html
        assert "Revenue" in html
        assert "Q2" in html
        assert ">20<" in html

    def test_render_static_gauge(self):
        """Test gauges become a single score row."""
        gauge = ChartVisualization(chartType="gauge", data={"value": 75})

        html = ChartRenderer().render_static(gauge)

        assert "75%" in html
