"""Integrations package - External service clients."""

from proposal_studio.integrations.kroki import KrokiClient, DiagramRenderError, kroki_client
from proposal_studio.integrations.pdf import PDFGenerator, PDFExportError, pdf_generator

__all__ = [
    "KrokiClient",
    "DiagramRenderError",
    "kroki_client",
    "PDFGenerator",
    "PDFExportError",
    "pdf_generator",
]
