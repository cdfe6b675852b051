"""PDF export of rendered proposal previews."""

import logging
from typing import Optional

from proposal_studio.core.config import get_settings

logger = logging.getLogger(__name__)


class PDFExportError(Exception):
    """Raised when WeasyPrint cannot produce a document."""


class PDFGenerator:
    """
    Service for turning preview HTML into PDF bytes.

    Uses WeasyPrint; the HTML is expected to be the script-free A4
    rendering, since charts are not drawn without JavaScript.
    """

    def __init__(self):
        """Initialize generator."""
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def html_to_pdf(self, html: str, base_url: Optional[str] = None) -> bytes:
        """
        Convert an HTML document to PDF.

        Args:
            html: Complete HTML document
            base_url: Base for resolving relative asset URLs

        Returns:
            PDF file contents

        Raises:
            PDFExportError: If rendering fails
        """
        from weasyprint import HTML

        try:
            document = HTML(string=html, base_url=base_url).write_pdf()
        except Exception as e:
            logger.error(f"Failed to generate PDF: {e}")
            raise PDFExportError(str(e)) from e

        logger.info(f"Generated PDF ({len(document)} bytes)")
        return document

    @staticmethod
    def filename_for(title: str) -> str:
        """Download name derived from the proposal title."""
        safe_name = "".join(c if c.isalnum() else "_" for c in title or "proposal").strip("_")
        return f"{safe_name or 'proposal'}.pdf"


# Singleton instance
pdf_generator = PDFGenerator()
