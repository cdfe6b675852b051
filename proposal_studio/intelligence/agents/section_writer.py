"""Section Writer Agent for drafting one proposal section at a time."""

import json
import logging
from typing import Optional, List, Dict, Any
from crewai import Agent, Task, LLM

logger = logging.getLogger(__name__)

# Used when the proposal's extracted data carries no sectionPlan
DEFAULT_SECTION_PLAN: List[Dict[str, Any]] = [
    {"id": "cover", "title": "Cover", "type": "cover_page"},
    {"id": "contents", "title": "Table of Contents", "type": "table_of_contents"},
    {
        "id": "executive-summary",
        "title": "Executive Summary",
        "type": "executive_summary",
        "contentType": "paragraphs",
        "description": "Open with the client's situation, introduce the approach and the headline benefits.",
    },
    {
        "id": "understanding",
        "title": "Understanding Your Needs",
        "type": "text",
        "contentType": "mixed",
        "description": "Reflect the client's challenges and goals back to them with industry context.",
    },
    {
        "id": "solution",
        "title": "Proposed Solution",
        "type": "text",
        "contentType": "mixed",
        "description": "Describe the solution and its architecture. Include a Mermaid diagram of the main flow.",
    },
    {
        "id": "timeline",
        "title": "Implementation Timeline",
        "type": "text",
        "contentType": "mixed",
        "description": "Phases, milestones and durations. Include a Mermaid gantt chart.",
    },
    {
        "id": "investment",
        "title": "Investment",
        "type": "text",
        "contentType": "table",
        "description": "Cost breakdown as a table ending in a TOTAL row, plus a chart of the allocation.",
    },
    {
        "id": "risks",
        "title": "Risk Management",
        "type": "text",
        "contentType": "mixed",
        "description": "Key risks with likelihood, impact and mitigation. Use risk callouts.",
    },
    {
        "id": "why-us",
        "title": "Why Choose Us",
        "type": "text",
        "contentType": "bullets",
        "description": "Credentials, relevant experience and differentiators.",
    },
    {
        "id": "next-steps",
        "title": "Next Steps",
        "type": "text",
        "contentType": "bullets",
        "description": "A clear call to action with the immediate next steps.",
    },
    {"id": "thank-you", "title": "Thank You", "type": "thank_you"},
]

VISUALIZATION_INSTRUCTIONS = """
**Visual elements:**
Put each visualization on its own single line as a JSON object, for example:
{"type": "chart", "chartType": "bar", "data": {"labels": ["Q1", "Q2"], "datasets": [{"label": "Revenue", "data": [10, 20]}]}, "caption": "Revenue by quarter"}
{"type": "mermaid", "code": "flowchart LR\\n  A[Discovery] --> B[Build]", "caption": "Delivery flow"}
{"type": "table", "headers": ["Item", "Cost"], "rows": [["Design", "$10,000"], ["TOTAL", "$10,000"]]}
{"type": "callout", "calloutType": "insight", "title": "Key Insight", "content": "One or two sentences."}

Supported chartType values: bar, line, pie, doughnut, radar, polarArea, matrix,
sankey, treemap, bullet, gauge, waterfall, scatter, bubble.
Markdown tables with a | --- | separator row and callouts written as
> **Title:** text are also accepted.
Insert ---PAGE_BREAK--- on its own line where a printed A4 page should end.
Never write "N/A", "TBD" or bracketed placeholders; infer realistic values instead.
"""

OPTION_INSTRUCTIONS = {
    "includeImages": "IMPORTANT: Include relevant images in this section using markdown image syntax.",
    "includeCharts": "IMPORTANT: Include relevant charts and data visualizations as JSON objects in this section.",
    "includeDiagrams": "IMPORTANT: Include relevant diagrams (flowcharts, process diagrams) as Mermaid JSON objects in this section.",
}


def option_instructions(options: Optional[Dict[str, Any]]) -> str:
    """Extra prompt lines for the regenerate options that are switched on."""
    return "\n\n".join(text for key, text in OPTION_INSTRUCTIONS.items() if (options or {}).get(key))


class SectionWriterAgentFactory:
    """Factory for creating the Section Writer Agent."""

    @staticmethod
    def create(llm: Optional[LLM] = None) -> Agent:
        """Create a Section Writer Agent, optionally bound to a provider's LLM."""
        return Agent(
            role="Senior Business Proposal Writer",
            goal="""Write persuasive, executive-level proposal sections that
            combine clear prose with tables, charts, diagrams and callouts.""",
            backstory="""You have written winning proposals for enterprise clients
            for twenty years.

            Your writing principles:
            - Lead with the client's goals and pain points
            - Quantify value wherever possible
            - Use visuals where they explain faster than prose
            - Keep each printed page balanced, never overfilled

            You write in markdown: headings, short paragraphs, bullet lists
            and **bold** emphasis.""",
            llm=llm,
            verbose=False,
            allow_delegation=False,
        )

    @staticmethod
    def create_section_task(
        agent: Agent,
        section: Dict[str, Any],
        extracted_data: Optional[Dict[str, Any]] = None,
        proposal_context: Optional[Dict[str, Any]] = None,
        extra_instructions: str = ""
    ) -> Task:
        """Create the task that drafts one section."""
        context = proposal_context or {}
        facts = json.dumps(extracted_data or {}, indent=2, default=str)[:6000]

        description = f"""
        Write the "{section.get('title', 'Untitled')}" section of a business proposal.

        **Proposal:**
        - Project: {context.get('project_title') or 'Not specified'}
        - Client: {context.get('client_name') or 'Not specified'} ({context.get('client_company') or 'Not specified'})
        - Budget: {context.get('budget') or 'Not specified'}
        - Timeline: {context.get('timeline') or 'Not specified'}
        - Scope: {context.get('scope') or 'Not specified'}

        **Collected requirements:**
        {facts}

        **Section brief:**
        - Type: {section.get('type') or 'text'}
        - Preferred format: {section.get('contentType') or 'paragraphs'}
        - Instructions: {section.get('description') or 'Cover the topic thoroughly.'}

        {VISUALIZATION_INSTRUCTIONS}

        {extra_instructions}

        **Output:**
        Only the section body in markdown with the embedded visualization lines.
        Do not repeat the section title as a heading.
        """

        return Task(
            description=description,
            expected_output="Markdown section body with one-line JSON visualization objects",
            agent=agent,
        )
