"""Agent factories for CrewAI agents."""

from proposal_studio.intelligence.agents.section_writer import (
    SectionWriterAgentFactory,
    DEFAULT_SECTION_PLAN,
    option_instructions,
)

__all__ = [
    "SectionWriterAgentFactory",
    "DEFAULT_SECTION_PLAN",
    "option_instructions",
]
