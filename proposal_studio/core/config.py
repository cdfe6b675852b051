"""Configuration management for Proposal Studio."""

from functools import lru_cache
from typing import Dict, Any
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ===========================================
    # Supabase Configuration
    # ===========================================
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase service key")
    PROPOSALS_TABLE: str = Field(default="proposals", description="Table holding proposal rows")

    # ===========================================
    # AI Provider Configuration
    # ===========================================
    AI_PROVIDER: str = Field(default="openai", description="Default provider: openai, gemini or grok")

    OPENAI_API_KEY: str = Field(default="", description="OpenAI API key")
    OPENAI_MODEL: str = Field(default="gpt-4o", description="OpenAI text model")
    OPENAI_EMBEDDING_MODEL: str = Field(default="text-embedding-3-small", description="OpenAI embedding model")
    OPENAI_BASE_URL: str = Field(default="https://api.openai.com/v1", description="OpenAI REST endpoint")

    GOOGLE_API_KEY: str = Field(default="", description="Google AI Studio key for Gemini")
    GEMINI_MODEL: str = Field(default="gemini-1.5-pro", description="Gemini text model")
    GEMINI_EMBEDDING_MODEL: str = Field(default="text-embedding-004", description="Gemini embedding model")
    GEMINI_BASE_URL: str = Field(default="https://generativelanguage.googleapis.com/v1beta", description="Gemini REST endpoint")

    XAI_API_KEY: str = Field(default="", description="xAI key for Grok")
    GROK_MODEL: str = Field(default="grok-2-latest", description="Grok text model")
    XAI_BASE_URL: str = Field(default="https://api.x.ai/v1", description="xAI OpenAI-compatible endpoint")

    AI_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature for section writing")
    AI_MAX_TOKENS: int = Field(default=4000, description="Token ceiling per section")

    # ===========================================
    # Diagram Rendering
    # ===========================================
    KROKI_URL: str = Field(default="https://kroki.io", description="Kroki server used to render Mermaid")
    DIAGRAM_RENDER_TIMEOUT: float = Field(default=30.0, description="Seconds before a diagram render is abandoned")

    # ===========================================
    # Branding Defaults
    # ===========================================
    COMPANY_NAME: str = Field(default="Proposal Studio", description="Name used for {{company.name}}")
    DEFAULT_PRIMARY_COLOR: str = "#3b82f6"
    DEFAULT_SECONDARY_COLOR: str = "#10b981"
    DEFAULT_ACCENT_COLOR: str = "#FFB347"
    DEFAULT_SUCCESS_COLOR: str = "#10b981"
    DEFAULT_WARNING_COLOR: str = "#f59e0b"
    DEFAULT_ERROR_COLOR: str = "#ef4444"
    DEFAULT_BACKGROUND_COLOR: str = "#ffffff"
    DEFAULT_SURFACE_COLOR: str = "#f9fafb"
    DEFAULT_TEXT_COLOR: str = "#111827"
    DEFAULT_HEADING_FONT: str = "Poppins"
    DEFAULT_BODY_FONT: str = "Inter"

    # ===========================================
    # Server Configuration
    # ===========================================
    DEBUG: bool = Field(default=True, description="Debug mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def default_branding() -> Dict[str, Any]:
    """
    Branding applied to proposals that were generated without one.

    Returns:
        Branding dict with the default palette, fonts and layout
    """
    settings = get_settings()
    return {
        "primaryColor": settings.DEFAULT_PRIMARY_COLOR,
        "secondaryColor": settings.DEFAULT_SECONDARY_COLOR,
        "accentColor": settings.DEFAULT_ACCENT_COLOR,
        "successColor": settings.DEFAULT_SUCCESS_COLOR,
        "warningColor": settings.DEFAULT_WARNING_COLOR,
        "errorColor": settings.DEFAULT_ERROR_COLOR,
        "backgroundColor": settings.DEFAULT_BACKGROUND_COLOR,
        "surfaceColor": settings.DEFAULT_SURFACE_COLOR,
        "textColor": settings.DEFAULT_TEXT_COLOR,
        "fontFamily": settings.DEFAULT_BODY_FONT,
        "headingFont": settings.DEFAULT_HEADING_FONT,
        "layout": "centered",
    }
