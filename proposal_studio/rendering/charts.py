"""
Chart.js configuration building for the fourteen logical chart types.

Native Chart.js types pass through with default colors. Matrix, sankey and
treemap use their Chart.js controller plugins. Bullet, gauge and waterfall
are drawn on a bar or doughnut base and finished by the draw hooks in
CHART_PLUGINS_JS, which find their datasets through the `renderAs` key.
"""

import copy
import logging
import uuid
from typing import Optional, List, Dict, Any

from jinja2 import Template
from markupsafe import Markup

from proposal_studio.models import ChartType, ChartVisualization

logger = logging.getLogger(__name__)


PALETTE = [
    "#3B82F6", "#10B981", "#F59E0B", "#EF4444",
    "#8B5CF6", "#EC4899", "#06B6D4", "#84CC16",
]
GAUGE_TRACK = "#E5E7EB"
POSITIVE = "#10B981"
NEGATIVE = "#EF4444"

LEGENDLESS_TYPES = {ChartType.GAUGE, ChartType.BULLET, ChartType.MATRIX}

CHART_SCRIPTS = [
    "https://cdn.jsdelivr.net/npm/chart.js@4.4.1/dist/chart.umd.min.js",
    "https://cdn.jsdelivr.net/npm/chartjs-chart-matrix@2.0.1/dist/chartjs-chart-matrix.min.js",
    "https://cdn.jsdelivr.net/npm/chartjs-chart-sankey@0.12.0/dist/chartjs-chart-sankey.min.js",
    "https://cdn.jsdelivr.net/npm/chartjs-chart-treemap@2.3.0/dist/chartjs-chart-treemap.min.js",
]

CHART_PLUGINS_JS = """
(function () {
  const bulletChart = {
    id: 'bulletChart',
    afterDatasetsDraw(chart) {
      const { ctx } = chart;
      chart.data.datasets.forEach((dataset, i) => {
        if (dataset.renderAs !== 'bullet') return;
        chart.getDatasetMeta(i).data.forEach((bar, index) => {
          const target = dataset.targets ? dataset.targets[index] : undefined;
          if (target === undefined) return;
          const x = chart.scales.x.getPixelForValue(target);
          const { y } = bar.getProps(['y'], true);
          ctx.save();
          ctx.strokeStyle = dataset.targetColor || '#000';
          ctx.lineWidth = 3;
          ctx.beginPath();
          ctx.moveTo(x, y - 10);
          ctx.lineTo(x, y + 10);
          ctx.stroke();
          ctx.restore();
        });
      });
    },
  };

  const gaugeChart = {
    id: 'gaugeChart',
    afterDatasetsDraw(chart) {
      const dataset = chart.data.datasets[0];
      if (!dataset || dataset.renderAs !== 'gauge') return;
      const { ctx, chartArea } = chart;
      ctx.save();
      ctx.font = 'bold 48px sans-serif';
      ctx.fillStyle = '#333';
      ctx.textAlign = 'center';
      ctx.textBaseline = 'middle';
      ctx.fillText(dataset.gaugeValue + '%', (chartArea.left + chartArea.right) / 2,
        (chartArea.top + chartArea.bottom) / 2);
      ctx.restore();
    },
  };

  const waterfallChart = {
    id: 'waterfallChart',
    afterDatasetsDraw(chart) {
      const { ctx } = chart;
      chart.data.datasets.forEach((dataset, i) => {
        if (dataset.renderAs !== 'waterfall') return;
        const bars = chart.getDatasetMeta(i).data;
        bars.forEach((bar, index) => {
          if (index >= bars.length - 1) return;
          const { x, y, width } = bar.getProps(['x', 'y', 'width'], true);
          const next = bars[index + 1].getProps(['x'], true);
          ctx.save();
          ctx.strokeStyle = '#999';
          ctx.setLineDash([5, 5]);
          ctx.lineWidth = 2;
          ctx.beginPath();
          ctx.moveTo(x + width / 2, y);
          ctx.lineTo(next.x - width / 2, y);
          ctx.stroke();
          ctx.restore();
        });
      });
    },
  };

  Chart.register(bulletChart, gaugeChart, waterfallChart);

  window.__proposalCharts = window.__proposalCharts || {};
  window.renderProposalChart = function (id, config) {
    const canvas = document.getElementById(id);
    if (!canvas) return;
    if (window.__proposalCharts[id]) {
      window.__proposalCharts[id].destroy();
    }
    if (config.type === 'matrix') {
      const dataset = config.data.datasets[0];
      const columns = dataset.xCount || 1;
      const rows = dataset.yCount || 1;
      dataset.width = ({ chart }) => ((chart.chartArea || {}).width / columns) - 1;
      dataset.height = ({ chart }) => ((chart.chartArea || {}).height / rows) - 1;
    }
    window.__proposalCharts[id] = new Chart(canvas.getContext('2d'), config);
  };
})();
"""

CHART_TEMPLATE = Template("""
<figure class="chart-figure" style="margin: 1.5rem 0;">
  {% if title %}<h4 style="text-align: center; color: var(--primary-color); font-family: var(--heading-font);">{{ title }}</h4>{% endif %}
  <div class="chart-container" style="position: relative; height: {{ height }}px; width: 100%;">
    <canvas id="{{ chart_id }}"></canvas>
  </div>
  <script>renderProposalChart({{ chart_id|tojson }}, {{ config|tojson }});</script>
  {% if caption %}<figcaption style="text-align: center; font-size: 0.875rem; color: #6b7280; font-style: italic;">{{ caption }}</figcaption>{% endif %}
</figure>
""", autoescape=True)

STATIC_CHART_TEMPLATE = Template("""
<figure class="chart-figure chart-static" style="margin: 1.5rem 0;">
  {% if title %}<h4 style="text-align: center; color: var(--primary-color);">{{ title }}</h4>{% endif %}
  <table style="width: 100%; border-collapse: collapse; font-size: 0.875rem;">
    <thead>
      <tr style="background: var(--primary-color, #3b82f6); color: #fff;">
        <th style="padding: 0.5rem; text-align: left;">{{ label_header }}</th>
        {% for series in series_names %}<th style="padding: 0.5rem; text-align: right;">{{ series }}</th>{% endfor %}
      </tr>
    </thead>
    <tbody>
      {% for row in rows %}
      <tr style="background: {{ loop.cycle('#ffffff', '#f9fafb') }};">
        {% for cell in row %}<td style="padding: 0.5rem; border-bottom: 1px solid #e5e7eb;{% if not loop.first %} text-align: right;{% endif %}">{{ cell }}</td>{% endfor %}
      </tr>
      {% endfor %}
    </tbody>
  </table>
  {% if caption %}<figcaption style="text-align: center; font-size: 0.875rem; color: #6b7280; font-style: italic;">{{ caption }}</figcaption>{% endif %}
</figure>
""", autoescape=True)


# ===========================================
# Helpers
# ===========================================

def deep_merge(target: Dict[str, Any], source: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Recursively merge source into a copy of target; source wins."""
    output = copy.deepcopy(target)
    for key, value in (source or {}).items():
        if isinstance(value, dict) and isinstance(output.get(key), dict):
            output[key] = deep_merge(output[key], value)
        else:
            output[key] = copy.deepcopy(value)
    return output


def color_for_node(node: str) -> str:
    """Stable palette color for a sankey node name."""
    return PALETTE[sum(ord(char) for char in node) % len(PALETTE)]


def gauge_color(percentage: float) -> str:
    if percentage >= 80:
        return "#10B981"
    if percentage >= 60:
        return "#84CC16"
    if percentage >= 40:
        return "#F59E0B"
    if percentage >= 20:
        return "#F97316"
    return "#EF4444"


def _number(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# ===========================================
# Data Factories
# ===========================================

def create_matrix_data(x_labels: List[str], y_labels: List[str], values: List[List[float]]) -> Dict[str, Any]:
    """Heatmap cells, shaded by value relative to the maximum."""
    cells = []
    for y_index, y_label in enumerate(y_labels):
        row = values[y_index] if y_index < len(values) else []
        for x_index, x_label in enumerate(x_labels):
            cells.append({"x": x_label, "y": y_label, "v": _number(row[x_index] if x_index < len(row) else 0)})

    peak = max((cell["v"] for cell in cells), default=0) or 1
    return {
        "datasets": [{
            "label": "Matrix",
            "data": cells,
            "backgroundColor": [f"rgba(59, 130, 246, {max(cell['v'], 0) / peak:.3f})" for cell in cells],
            "borderWidth": 1,
            "borderColor": "#fff",
            "xCount": len(x_labels),
            "yCount": len(y_labels),
        }],
    }


def create_sankey_data(flows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Flow links; node colors are fixed per node name."""
    nodes = []
    for flow in flows:
        for name in (flow.get("from"), flow.get("to")):
            if name is not None and name not in nodes:
                nodes.append(name)
    return {
        "datasets": [{
            "label": "Flow",
            "data": [{"from": f["from"], "to": f["to"], "flow": _number(f.get("flow"))} for f in flows],
            "priority": {name: index for index, name in enumerate(nodes)},
            "colorFrom": color_for_node(str(nodes[0])) if nodes else PALETTE[0],
            "colorTo": color_for_node(str(nodes[-1])) if nodes else PALETTE[1],
            "colorMode": "gradient",
            "borderWidth": 1,
        }],
    }


def create_treemap_data(tree: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "datasets": [{
            "label": "Treemap",
            "tree": tree,
            "key": "value",
            "groups": ["name"],
            "spacing": 1,
            "borderWidth": 2,
            "borderColor": "#fff",
            "backgroundColor": [
                item.get("color") or PALETTE[index % len(PALETTE)]
                for index, item in enumerate(tree)
            ],
        }],
    }


def create_bullet_data(categories: List[str], values: List[float], targets: List[float]) -> Dict[str, Any]:
    return {
        "labels": categories,
        "datasets": [{
            "label": "Actual",
            "data": [_number(value) for value in values],
            "targets": [_number(target) for target in targets],
            "targetColor": "#000",
            "backgroundColor": "#3B82F6",
            "renderAs": "bullet",
        }],
    }


def create_gauge_data(value: float, maximum: float = 100) -> Dict[str, Any]:
    """Half-doughnut split into the value and the remaining track."""
    percentage = (_number(value) / maximum * 100) if maximum else 0
    percentage = min(max(percentage, 0), 100)
    return {
        "labels": ["Value", "Remaining"],
        "datasets": [{
            "data": [percentage, 100 - percentage],
            "backgroundColor": [gauge_color(percentage), GAUGE_TRACK],
            "borderWidth": 0,
            "gaugeValue": round(percentage),
            "gaugeMax": 100,
            "renderAs": "gauge",
        }],
    }


def create_waterfall_data(categories: List[str], values: List[float]) -> Dict[str, Any]:
    """Floating bars from the running total, green up and red down."""
    floating = []
    running = 0.0
    for value in values:
        value = _number(value)
        floating.append([running, running + value])
        running += value
    return {
        "labels": categories,
        "datasets": [{
            "label": "Changes",
            "data": floating,
            "changes": [_number(value) for value in values],
            "backgroundColor": [POSITIVE if _number(value) >= 0 else NEGATIVE for value in values],
            "renderAs": "waterfall",
        }],
    }


def create_scatter_data(points: List[Dict[str, Any]], label: str = "Dataset") -> Dict[str, Any]:
    return {
        "datasets": [{
            "label": label,
            "data": points,
            "backgroundColor": "#3B82F6",
            "borderColor": "#1E40AF",
            "borderWidth": 1,
        }],
    }


def create_bubble_data(points: List[Dict[str, Any]], label: str = "Dataset") -> Dict[str, Any]:
    return {
        "datasets": [{
            "label": label,
            "data": points,
            "backgroundColor": "rgba(59, 130, 246, 0.6)",
            "borderColor": "#1E40AF",
            "borderWidth": 1,
        }],
    }


def _first_series(data: Dict[str, Any]) -> List[Any]:
    datasets = data.get("datasets") or []
    if datasets and isinstance(datasets[0], dict):
        return list(datasets[0].get("data") or [])
    return list(data.get("values") or [])


def prepare_chart_data(chart_type: ChartType, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shape loosely structured chart data for its Chart.js controller.

    Accepts either Chart.js style {labels, datasets} or the compact shapes
    the section writer is asked for ({value, max} for gauges, {flows} for
    sankey, {xLabels, yLabels, values} for matrix, and so on).
    """
    data = copy.deepcopy(data or {})
    labels = data.get("labels") or []

    if chart_type == ChartType.GAUGE:
        if "value" in data:
            return create_gauge_data(data["value"], _number(data.get("max"), 100) or 100)
        series = _first_series(data)
        return create_gauge_data(series[0] if series else 0)

    if chart_type == ChartType.WATERFALL:
        return create_waterfall_data(labels, _first_series(data))

    if chart_type == ChartType.BULLET:
        datasets = data.get("datasets") or []
        if datasets and isinstance(datasets[0], dict) and "targets" in datasets[0]:
            return create_bullet_data(labels, datasets[0].get("data") or [], datasets[0]["targets"])
        return create_bullet_data(labels, data.get("values") or _first_series(data), data.get("targets") or [])

    if chart_type == ChartType.MATRIX and "values" in data:
        return create_matrix_data(data.get("xLabels") or [], data.get("yLabels") or [], data["values"])

    if chart_type == ChartType.SANKEY and "flows" in data:
        return create_sankey_data(data["flows"])

    if chart_type == ChartType.TREEMAP and "tree" in data:
        return create_treemap_data(data["tree"])

    if chart_type == ChartType.SCATTER and "points" in data:
        return create_scatter_data(data["points"], data.get("label", "Dataset"))

    if chart_type == ChartType.BUBBLE and "points" in data:
        return create_bubble_data(data["points"], data.get("label", "Dataset"))

    per_point = chart_type in (ChartType.PIE, ChartType.DOUGHNUT, ChartType.POLAR_AREA)
    for index, dataset in enumerate(data.get("datasets") or []):
        if not isinstance(dataset, dict) or "backgroundColor" in dataset:
            continue
        if per_point:
            count = len(dataset.get("data") or [])
            dataset["backgroundColor"] = [PALETTE[i % len(PALETTE)] for i in range(count)]
        else:
            dataset["backgroundColor"] = PALETTE[index % len(PALETTE)]
            dataset.setdefault("borderColor", PALETTE[index % len(PALETTE)])
    return data


# ===========================================
# Configuration
# ===========================================

def _base_options(chart_type: ChartType) -> Dict[str, Any]:
    return {
        "responsive": True,
        "maintainAspectRatio": False,
        "plugins": {
            "legend": {"display": chart_type not in LEGENDLESS_TYPES, "position": "top"},
            "title": {"display": False},
            "tooltip": {"enabled": True},
        },
    }


def _type_config(chart_type: ChartType) -> Dict[str, Any]:
    base = _base_options(chart_type)
    xy_scales = {"x": {"type": "linear", "position": "bottom"}, "y": {"type": "linear"}}

    if chart_type == ChartType.MATRIX:
        return {"type": "matrix", "options": deep_merge(base, {
            "scales": {
                "x": {"type": "category", "grid": {"display": False}},
                "y": {"type": "category", "offset": True, "grid": {"display": False}},
            },
        })}
    if chart_type == ChartType.SANKEY:
        return {"type": "sankey", "options": base}
    if chart_type == ChartType.TREEMAP:
        return {"type": "treemap", "options": deep_merge(base, {"plugins": {"legend": {"display": False}}})}
    if chart_type == ChartType.BULLET:
        return {"type": "bar", "options": deep_merge(base, {
            "indexAxis": "y",
            "scales": {"x": {"beginAtZero": True}},
        })}
    if chart_type == ChartType.GAUGE:
        return {"type": "doughnut", "options": deep_merge(base, {
            "circumference": 180,
            "rotation": 270,
            "cutout": "80%",
            "plugins": {"tooltip": {"enabled": False}},
        })}
    if chart_type == ChartType.WATERFALL:
        return {"type": "bar", "options": deep_merge(base, {
            "plugins": {"legend": {"display": False}},
            "scales": {"y": {"beginAtZero": False}},
        })}
    if chart_type in (ChartType.SCATTER, ChartType.BUBBLE):
        return {"type": chart_type.value, "options": deep_merge(base, {"scales": xy_scales})}
    return {"type": chart_type.value, "options": base}


def build_chart_config(
    chart_type: ChartType,
    data: Dict[str, Any],
    options: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build a complete Chart.js configuration.

    Args:
        chart_type: Logical chart type
        data: Chart data in any shape accepted by prepare_chart_data
        options: Chart.js options merged over the type defaults

    Returns:
        Config dict with type, data and options
    """
    chart_type = ChartType(chart_type)
    config = _type_config(chart_type)
    return {
        "type": config["type"],
        "data": prepare_chart_data(chart_type, data),
        "options": deep_merge(config["options"], options),
    }


class ChartRenderer:
    """Renders chart visualizations as canvas + script, or as a data table."""

    def __init__(self, height: int = 400):
        self.height = height

    def render_html(self, chart: ChartVisualization, chart_id: Optional[str] = None) -> Markup:
        """Canvas bound to a fresh Chart.js instance."""
        config = build_chart_config(chart.chart_type, chart.data, chart.options)
        return Markup(CHART_TEMPLATE.render(
            chart_id=chart_id or f"chart-{uuid.uuid4().hex[:10]}",
            config=config,
            height=self.height,
            title=chart.title,
            caption=chart.caption,
        ))

    def render_static(self, chart: ChartVisualization) -> Markup:
        """Data table used where scripts do not run (PDF export)."""
        label_header, series_names, rows = self._tabulate(chart)
        return Markup(STATIC_CHART_TEMPLATE.render(
            title=chart.title,
            caption=chart.caption,
            label_header=label_header,
            series_names=series_names,
            rows=rows,
        ))

    @staticmethod
    def _tabulate(chart: ChartVisualization):
        data = chart.data or {}

        if chart.chart_type == ChartType.GAUGE:
            gauge = prepare_chart_data(ChartType.GAUGE, data)["datasets"][0]
            return "Metric", ["Value"], [["Score", f"{gauge['gaugeValue']}%"]]

        if chart.chart_type == ChartType.SANKEY and data.get("flows"):
            return "From", ["To", "Flow"], [[f.get("from"), f.get("to"), f.get("flow")] for f in data["flows"]]

        if chart.chart_type == ChartType.TREEMAP and data.get("tree"):
            return "Name", ["Value"], [[item.get("name"), item.get("value")] for item in data["tree"]]

        labels = list(data.get("labels") or [])
        datasets = [d for d in data.get("datasets") or [] if isinstance(d, dict)]
        if not datasets and "values" in data:
            datasets = [{"label": "Value", "data": data["values"]}]

        series_names = [d.get("label") or f"Series {i + 1}" for i, d in enumerate(datasets)]
        length = max([len(labels)] + [len(d.get("data") or []) for d in datasets]) if (labels or datasets) else 0
        rows = []
        for index in range(length):
            row = [labels[index] if index < len(labels) else index + 1]
            for dataset in datasets:
                values = dataset.get("data") or []
                value = values[index] if index < len(values) else ""
                if isinstance(value, dict):
                    value = ", ".join(f"{k}={v}" for k, v in value.items())
                row.append(value)
            rows.append(row)
        return "Label", series_names, rows
