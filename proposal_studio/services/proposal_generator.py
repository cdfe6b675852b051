"""
Proposal generation service.

Walks the section plan, has the section writer crew draft each section,
extracts visualizations from the draft and saves after every section so
an interrupted run resumes where it stopped.
"""

import asyncio
import inspect
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Callable

from crewai import Crew, Process

from proposal_studio.core.config import default_branding, get_settings
from proposal_studio.core.database import proposal_store, ProposalStore
from proposal_studio.intelligence.agents.section_writer import (
    DEFAULT_SECTION_PLAN,
    SectionWriterAgentFactory,
    option_instructions,
)
from proposal_studio.intelligence.providers import create_ai_provider
from proposal_studio.models import (
    GenerationProgress,
    ProposalRecord,
    ProposalStatus,
    STRUCTURAL_SECTION_TYPES,
    dump_visualization,
    normalize_visualizations,
)
from proposal_studio.rendering.parser import VisualizationParser

logger = logging.getLogger(__name__)

ERROR_PLACEHOLDER = "[Error generating this section. Please edit manually.]"

ProgressCallback = Callable[[GenerationProgress], Any]


class ProposalNotFoundError(LookupError):
    """No proposal row with the requested id."""


class SectionNotFoundError(LookupError):
    """The section id is neither planned nor stored for the proposal."""


class GenerationError(Exception):
    """The section writer failed to produce content."""


def _now() -> str:
    return datetime.utcnow().isoformat()


def _percentage(completed: int, total: int) -> int:
    return round(completed / total * 100) if total else 100


def _stored_sections(generated_content: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Stored sections keyed by id; list-shaped content is converted."""
    stored = (generated_content or {}).get("sections") or {}
    if isinstance(stored, dict):
        return {str(key): dict(value) for key, value in stored.items() if isinstance(value, dict)}
    if isinstance(stored, list):
        return {
            str(value["id"]): {k: v for k, v in value.items() if k != "id"}
            for value in stored
            if isinstance(value, dict) and value.get("id")
        }
    return {}


class ProposalGenerator:
    """
    Generates proposal sections with the configured AI provider.

    Sections are written one after another; there is no fan-out. A
    section that fails gets an error placeholder and generation moves on.
    """

    def __init__(self, store: Optional[ProposalStore] = None):
        self.store = store or proposal_store
        self.parser = VisualizationParser(extract_callouts=True)

    # ===========================================
    # Planning
    # ===========================================

    @staticmethod
    def section_plan(record: ProposalRecord) -> List[Dict[str, Any]]:
        """The proposal's own plan from extracted data, else the default one."""
        plan = (record.extracted_data or {}).get("sectionPlan")
        if isinstance(plan, list):
            valid = [item for item in plan if isinstance(item, dict) and item.get("id") and item.get("title")]
            if valid:
                return valid
            logger.warning(f"Ignoring sectionPlan without usable entries on proposal {record.id}")
        return [dict(item) for item in DEFAULT_SECTION_PLAN]

    @staticmethod
    def proposal_context(record: ProposalRecord) -> Dict[str, Any]:
        return {
            "project_title": record.project_title,
            "client_name": record.client_name,
            "client_company": record.client_company,
            "budget": record.budget,
            "timeline": record.timeline,
            "scope": record.scope,
        }

    # ===========================================
    # Section writing
    # ===========================================

    def _write_section(
        self,
        section: Dict[str, Any],
        record: ProposalRecord,
        extra_instructions: str = ""
    ) -> str:
        """Run the section writer crew (blocking; call through a thread)."""
        provider = create_ai_provider()
        agent = SectionWriterAgentFactory.create(provider.build_llm())
        task = SectionWriterAgentFactory.create_section_task(
            agent,
            section,
            record.extracted_data,
            self.proposal_context(record),
            extra_instructions,
        )

        crew = Crew(
            agents=[agent],
            tasks=[task],
            process=Process.sequential,
            verbose=False
        )
        result = crew.kickoff()

        output = getattr(task.output, "raw", None) if task.output else None
        return str(output or result or "")

    def build_section_entry(
        self,
        section: Dict[str, Any],
        raw_text: str,
        order: int
    ) -> Dict[str, Any]:
        """Stored form of a drafted section, visualizations pulled out."""
        parsed = self.parser.parse(raw_text)
        visualizations = [dump_visualization(v) for v in normalize_visualizations(parsed.visualizations)]

        entry = {
            "title": section.get("title", ""),
            "content": parsed.cleaned_text.strip(),
            "type": section.get("type") or "text",
            "contentType": section.get("contentType") or "paragraphs",
            "order": order,
            "generatedAt": _now(),
        }
        if visualizations:
            entry["visualizations"] = visualizations
        logger.info(f"Section '{entry['title']}': {len(entry['content'])} chars, {len(visualizations)} visualization(s)")
        return entry

    @staticmethod
    def _structural_entry(section: Dict[str, Any], order: int) -> Dict[str, Any]:
        return {
            "title": section.get("title", ""),
            "content": section.get("content", ""),
            "type": section["type"],
            "order": order,
            "generatedAt": _now(),
        }

    @staticmethod
    def _error_entry(section: Dict[str, Any], order: int, error: Exception) -> Dict[str, Any]:
        return {
            "title": section.get("title", ""),
            "content": ERROR_PLACEHOLDER,
            "type": section.get("type") or "text",
            "order": order,
            "error": True,
            "errorMessage": str(error),
        }

    # ===========================================
    # Generation
    # ===========================================

    async def generate_proposal(
        self,
        proposal_id: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> Dict[str, Any]:
        """
        Generate every missing section of a proposal.

        Args:
            proposal_id: Proposal to generate
            on_progress: Called (or awaited) before each section and once at the end

        Returns:
            {"success": True, "generatedContent": {...}}

        Raises:
            ProposalNotFoundError: If the proposal does not exist
        """
        record = await self.store.get_proposal(proposal_id)
        if record is None:
            raise ProposalNotFoundError(f"Proposal not found: {proposal_id}")

        plan = self.section_plan(record)
        total = len(plan)

        existing = record.generated_content or {}
        sections = _stored_sections(existing)
        generated_content = {
            **existing,
            "sections": sections,
            "metadata": existing.get("metadata") or {
                "generatedAt": _now(),
                "provider": get_settings().AI_PROVIDER,
            },
        }

        completed = sum(1 for item in plan if str(item["id"]) in sections)
        if completed:
            logger.info(f"Resuming generation of {proposal_id}: {completed}/{total} sections already done")

        await self.store.update_proposal(proposal_id, {
            "status": ProposalStatus.IN_PROGRESS.value,
            "generated_content": generated_content,
        })

        for order, item in enumerate(plan, start=1):
            section_id = str(item["id"])
            if section_id in sections:
                logger.info(f"Skipping already generated section: {item['title']}")
                continue

            await self._report(on_progress, GenerationProgress(
                total_sections=total,
                completed_sections=completed,
                current_section=item["title"],
                percentage=_percentage(completed, total),
            ))

            try:
                if item.get("type") in STRUCTURAL_SECTION_TYPES:
                    entry = self._structural_entry(item, order)
                else:
                    logger.info(f"Generating section: {item['title']}")
                    raw_text = await asyncio.to_thread(self._write_section, item, record)
                    entry = self.build_section_entry(item, raw_text, order)
            except Exception as e:
                logger.error(f"Error generating section {item['title']}: {e}")
                entry = self._error_entry(item, order, e)

            sections[section_id] = entry
            completed += 1

            saved = await self.store.update_proposal(proposal_id, {"generated_content": generated_content})
            if saved is None:
                logger.warning(f"Could not save section {section_id} of {proposal_id}")

        final_updates: Dict[str, Any] = {"status": ProposalStatus.GENERATED.value}
        if not record.branding:
            final_updates["branding"] = default_branding()
        await self.store.update_proposal(proposal_id, final_updates)

        await self._report(on_progress, GenerationProgress(
            total_sections=total,
            completed_sections=completed,
            current_section=None,
            percentage=100,
        ))

        logger.info(f"Proposal {proposal_id} generated: {completed}/{total} sections")
        return {"success": True, "generatedContent": generated_content}

    async def regenerate_section(
        self,
        proposal_id: str,
        section_id: str,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Redraft one section.

        Args:
            proposal_id: Proposal owning the section
            section_id: Planned or stored section id
            options: includeImages / includeCharts / includeDiagrams flags

        Returns:
            {"success": True, "content": str, "section": {...}}

        Raises:
            ProposalNotFoundError: If the proposal does not exist
            SectionNotFoundError: If the section is unknown
            GenerationError: If the section writer fails
        """
        record = await self.store.get_proposal(proposal_id)
        if record is None:
            raise ProposalNotFoundError(f"Proposal not found: {proposal_id}")

        sections = _stored_sections(record.generated_content)
        plan = self.section_plan(record)
        planned = next((item for item in plan if str(item["id"]) == section_id), None)
        stored = sections.get(section_id)

        if planned is None and stored is None:
            raise SectionNotFoundError(f"Section not found: {section_id}")

        section = dict(planned or {"id": section_id, **stored})
        order = (stored or {}).get("order")
        if not isinstance(order, int):
            order = next((i for i, item in enumerate(plan, start=1) if str(item["id"]) == section_id), len(sections) + 1)

        logger.info(f"Regenerating section {section_id} of {proposal_id} with options {options or {}}")
        try:
            raw_text = await asyncio.to_thread(
                self._write_section, section, record, option_instructions(options)
            )
        except Exception as e:
            logger.error(f"Failed to regenerate section {section_id}: {e}")
            raise GenerationError(str(e)) from e

        entry = self.build_section_entry(section, raw_text, order)
        sections[section_id] = entry
        generated_content = {**(record.generated_content or {}), "sections": sections}

        await self.store.update_proposal(proposal_id, {"generated_content": generated_content})
        return {"success": True, "content": entry["content"], "section": {"id": section_id, **entry}}

    @staticmethod
    async def _report(callback: Optional[ProgressCallback], progress: GenerationProgress) -> None:
        if callback is None:
            return
        result = callback(progress)
        if inspect.isawaitable(result):
            await result


# Singleton instance
proposal_generator = ProposalGenerator()
