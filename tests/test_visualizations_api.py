"""Tests for the visualization API endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from proposal_studio.intelligence.providers import ProviderError
from proposal_studio.rendering.diagrams import DiagramRenderer


FLOWS = [
    {"from": "Budget", "to": "Design", "flow": 40},
    {"from": "Budget", "to": "Build", "flow": 60},
]


class TestChartEndpoints:
    """Tests for chart recommendation and validation."""

    def test_recommend_sankey(self, client: TestClient):
        """Test flow data recommends a Sankey with its description."""
        response = client.post("/api/visualizations/chart/recommend", json={"data": FLOWS})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["recommendation"]["type"] == "sankey"
        assert data["recommendation"]["confidence"] == 95
        assert "Sankey" in data["description"]
        assert "User journeys" in data["useCases"]

    def test_recommend_fallback(self, client: TestClient):
        """Test plain data falls back to a bar chart."""
        response = client.post(
            "/api/visualizations/chart/recommend",
            json={"data": [{"name": "A", "value": 150}, {"name": "B", "value": 300}]},
        )

        assert response.json()["recommendation"]["type"] == "bar"

    def test_validate_gauge(self, client: TestClient):
        """Test several points are invalid for a gauge."""
        response = client.post(
            "/api/visualizations/chart/validate",
            json={"data": [{"v": 10}, {"v": 20}], "chartType": "gauge"},
        )

        data = response.json()
        assert data["success"] is True
        assert data["valid"] is False
        assert data["issues"] == ["Gauge works best with a single percentage value"]
        assert data["suggestions"]

    def test_validate_sankey(self, client: TestClient):
        """Test flow data is valid for a Sankey."""
        response = client.post(
            "/api/visualizations/chart/validate",
            json={"data": FLOWS, "chartType": "sankey"},
        )

        assert response.json()["valid"] is True

    def test_validate_unknown_chart_type(self, client: TestClient):
        """Test unknown chart types fail request validation."""
        response = client.post(
            "/api/visualizations/chart/validate",
            json={"data": FLOWS, "chartType": "pyramid"},
        )

        assert response.status_code == 422


class TestDiagramEndpoints:
    """Tests for diagram rendering and generation."""

    def test_render(self, client: TestClient, mock_kroki):
        """Test fenced source is sanitized and rendered."""
        with patch("proposal_studio.api.visualizations.diagram_renderer", DiagramRenderer(mock_kroki)):
            response = client.post(
                "/api/visualizations/diagram/render",
                json={"code": "```mermaid\ngraph TD\nA-->B\n```"},
            )

        data = response.json()
        assert data["success"] is True
        assert data["sanitized"] == "graph TD\nA-->B"
        assert data["svg"].startswith("<svg")
        assert data["error"] is None

    def test_render_empty(self, client: TestClient, mock_kroki):
        """Test empty source is reported without calling the renderer."""
        with patch("proposal_studio.api.visualizations.diagram_renderer", DiagramRenderer(mock_kroki)):
            response = client.post("/api/visualizations/diagram/render", json={"code": "   "})

        data = response.json()
        assert response.status_code == 200
        assert data["success"] is False
        assert data["error"] == "Diagram source is empty"
        mock_kroki.render_svg.assert_not_called()

    def test_generate(self, client: TestClient):
        """Test diagram source comes back with the provider name."""
        provider = MagicMock()
        provider.name = "gemini"
        provider.generate_diagram = AsyncMock(return_value="graph TD\nA-->B")

        with patch("proposal_studio.api.visualizations.create_ai_provider", return_value=provider) as factory:
            response = client.post(
                "/api/visualizations/diagram/generate",
                json={"description": "login flow", "provider": "gemini"},
            )

        assert response.json() == {"success": True, "code": "graph TD\nA-->B", "provider": "gemini"}
        factory.assert_called_once_with("gemini")
        provider.generate_diagram.assert_awaited_once_with("login flow")

    def test_generate_unknown_provider(self, client: TestClient):
        """Test unknown provider names are a 400 error."""
        with patch("proposal_studio.api.visualizations.create_ai_provider",
                   side_effect=ValueError("Unknown AI provider: llama")):
            response = client.post(
                "/api/visualizations/diagram/generate",
                json={"description": "login flow", "provider": "llama"},
            )

        assert response.status_code == 400
        assert response.json() == {"error": "Unknown AI provider: llama"}

    def test_generate_provider_failure(self, client: TestClient):
        """Test provider errors are a 502 error."""
        provider = MagicMock()
        provider.generate_diagram = AsyncMock(side_effect=ProviderError("quota exceeded"))

        with patch("proposal_studio.api.visualizations.create_ai_provider", return_value=provider):
            response = client.post("/api/visualizations/diagram/generate", json={"description": "flow"})

        assert response.status_code == 502
        assert "quota exceeded" in response.json()["error"]
