"""Proposal records, sections and generation progress."""

import logging
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field, ValidationError

from proposal_studio.core.config import get_settings
from proposal_studio.models.design import ProposalDesign
from proposal_studio.models.enums import ProposalStatus

logger = logging.getLogger(__name__)


class ProposalSection(BaseModel):
    """One page or unit of a proposal document."""
    id: str = Field(..., description="Unique within the proposal")
    type: str = Field("text", description="Section type; unknown types render as text")
    title: str = ""
    content: str = Field("", description="Raw text, may embed JSON blocks and tables")
    data: Dict[str, Any] = Field(default_factory=dict, description="Structured payload")
    order: int = 0
    edited: bool = False
    edited_at: Optional[str] = Field(None, alias="editedAt")
    error: bool = False

    class Config:
        populate_by_name = True

    @property
    def visualizations(self) -> List[Any]:
        """Visualization records supplied alongside the text."""
        supplied = self.data.get("visualizations")
        return supplied if isinstance(supplied, list) else []


def sections_from_generated_content(generated_content: Optional[Dict[str, Any]]) -> List[ProposalSection]:
    """
    Build the section list from the stored generated_content column.

    Sections are stored keyed by id; a section without an explicit order
    takes its 1-based position.

    Args:
        generated_content: {"sections": {id: {...}} or [...], "metadata": {...}}

    Returns:
        Sections in storage order (sorting by order is the renderer's job)
    """
    stored = (generated_content or {}).get("sections") or {}
    if isinstance(stored, dict):
        items = [{"id": key, **value} for key, value in stored.items() if isinstance(value, dict)]
    elif isinstance(stored, list):
        items = [value for value in stored if isinstance(value, dict)]
    else:
        items = []

    sections = []
    for position, item in enumerate(items, start=1):
        data = dict(item.get("data") or {})
        if item.get("visualizations") and "visualizations" not in data:
            data["visualizations"] = item["visualizations"]
        try:
            sections.append(ProposalSection(
                id=str(item.get("id") or f"section-{position}"),
                type=item.get("type") or item.get("contentType") or "text",
                title=item.get("title") or "",
                content=item.get("content") or "",
                data=data,
                order=item.get("order") if isinstance(item.get("order"), int) else position,
                edited=bool(item.get("edited")),
                editedAt=item.get("editedAt"),
                error=bool(item.get("error")),
            ))
        except ValidationError as e:
            logger.warning(f"Skipping malformed stored section {item.get('id')}: {e}")
    return sections


class ProposalRecord(BaseModel):
    """Row of the proposals table."""
    id: str
    template_id: Optional[str] = None
    client_name: Optional[str] = None
    client_company: Optional[str] = None
    project_title: Optional[str] = None
    project_type: Optional[str] = None
    scope: Optional[str] = None
    objectives: Optional[Any] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None
    technologies: Optional[Any] = None
    extracted_data: Optional[Dict[str, Any]] = None
    generated_content: Optional[Dict[str, Any]] = None
    placeholders: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None
    design_metadata: Optional[Dict[str, Any]] = None
    status: ProposalStatus = ProposalStatus.DRAFT
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class PreviewDocument(BaseModel):
    """Everything the preview needs to render one proposal."""
    title: str = "Untitled Proposal"
    client_name: str = ""
    client_company: str = ""
    company_name: str = ""
    date: str = ""
    project_description: str = ""
    budget: str = ""
    timeline: str = ""
    sections: List[ProposalSection] = Field(default_factory=list)
    branding: Dict[str, Any] = Field(default_factory=dict)
    design: Optional[ProposalDesign] = None
    extra_placeholders: Dict[str, str] = Field(default_factory=dict)

    def placeholders(self) -> Dict[str, str]:
        """Values substituted for {{...}} tokens in section text."""
        values = {
            "client.name": self.client_name,
            "client.company": self.client_company,
            "company.name": self.company_name,
            "date": self.date,
            "project.name": self.title,
            "project.description": self.project_description,
            "budget": self.budget,
            "timeline": self.timeline,
        }
        values.update(self.extra_placeholders)
        return values

    @classmethod
    def from_record(cls, record: ProposalRecord) -> "PreviewDocument":
        """Build the renderable view of a stored proposal."""
        branding = record.branding or {}
        design = None
        if record.design_metadata:
            try:
                design = ProposalDesign(**record.design_metadata)
            except ValidationError as e:
                logger.warning(f"Ignoring invalid design for proposal {record.id}: {e.error_count()} error(s)")

        when = record.created_at or datetime.utcnow()
        return cls(
            title=record.project_title or "Untitled Proposal",
            client_name=record.client_name or "",
            client_company=record.client_company or "",
            company_name=branding.get("companyName") or get_settings().COMPANY_NAME,
            date=f"{when:%B} {when.day}, {when.year}",
            project_description=record.scope or "",
            budget=record.budget or "",
            timeline=record.timeline or "",
            sections=sections_from_generated_content(record.generated_content),
            branding=branding,
            design=design,
            extra_placeholders={
                str(key): "" if value is None else str(value)
                for key, value in (record.placeholders or {}).items()
            },
        )


class GenerationProgress(BaseModel):
    """Progress reported while sections are generated."""
    total_sections: int = Field(..., alias="totalSections")
    completed_sections: int = Field(0, alias="completedSections")
    current_section: Optional[str] = Field(None, alias="currentSection")
    percentage: int = 0

    class Config:
        populate_by_name = True
