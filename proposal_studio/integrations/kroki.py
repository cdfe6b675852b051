"""Kroki integration for rendering Mermaid diagrams to SVG."""

import logging
import httpx

from proposal_studio.core.config import get_settings

logger = logging.getLogger(__name__)


class DiagramRenderError(Exception):
    """Raised when the diagram service rejects or fails to render a source."""


class KrokiClient:
    """
    Client for a Kroki server.

    Kroki runs the diagram libraries server-side, so Mermaid sources can be
    turned into SVG without a browser.
    """

    def __init__(self):
        """Initialize client with settings."""
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    async def render_svg(self, source: str, diagram_type: str = "mermaid") -> str:
        """
        Render a diagram source to SVG.

        Args:
            source: Diagram source text
            diagram_type: Kroki diagram type

        Returns:
            SVG markup

        Raises:
            DiagramRenderError: If Kroki is unreachable or rejects the source
        """
        url = f"{self.settings.KROKI_URL.rstrip('/')}/{diagram_type}/svg"

        try:
            async with httpx.AsyncClient(timeout=self.settings.DIAGRAM_RENDER_TIMEOUT) as client:
                response = await client.post(
                    url,
                    content=source.encode("utf-8"),
                    headers={"Content-Type": "text/plain"}
                )
        except httpx.TimeoutException as e:
            logger.error(f"Kroki timeout rendering {diagram_type}")
            raise DiagramRenderError("Diagram rendering timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Kroki request failed: {e}")
            raise DiagramRenderError(f"Diagram service unavailable: {e}") from e

        if response.status_code != 200:
            message = response.text.strip() or f"HTTP {response.status_code}"
            logger.error(f"Kroki API error: {response.status_code} - {message[:200]}")
            raise DiagramRenderError(message)

        return response.text


# Singleton instance
kroki_client = KrokiClient()
