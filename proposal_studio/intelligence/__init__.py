"""Intelligence module - LLM providers and AI agents."""

from proposal_studio.intelligence.providers import (
    AIProvider,
    OpenAIProvider,
    GeminiProvider,
    GrokProvider,
    ProviderError,
    create_ai_provider,
)
from proposal_studio.intelligence.agents import SectionWriterAgentFactory, DEFAULT_SECTION_PLAN

__all__ = [
    "AIProvider",
    "OpenAIProvider",
    "GeminiProvider",
    "GrokProvider",
    "ProviderError",
    "create_ai_provider",
    "SectionWriterAgentFactory",
    "DEFAULT_SECTION_PLAN",
]
