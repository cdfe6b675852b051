"""Proposal API Routes - CRUD, branding, design, generation, preview and export."""

import asyncio
import json
import logging
from datetime import datetime
from typing import Optional, Dict, Any, Set

from fastapi import APIRouter, Body, Query
from fastapi.responses import HTMLResponse, Response, StreamingResponse
from pydantic import BaseModel, Field, ValidationError

from proposal_studio.api.errors import ApiError
from proposal_studio.core.database import proposal_store
from proposal_studio.integrations.pdf import pdf_generator, PDFExportError
from proposal_studio.models import (
    PreviewDocument,
    PreviewMode,
    ProposalDesign,
    ProposalRecord,
    ProposalStatus,
)
from proposal_studio.rendering.preview import ProposalPreview, PreviewState
from proposal_studio.services.proposal_generator import (
    GenerationError,
    ProposalNotFoundError,
    SectionNotFoundError,
    proposal_generator,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proposals", tags=["proposals"])

# Generation tasks outlive a disconnected event stream
_background_tasks: Set[asyncio.Task] = set()


class ProposalCreateRequest(BaseModel):
    """Columns accepted when creating a proposal."""
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
    placeholders: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None


class BrandingSectionUpdate(BaseModel):
    """Partial branding update of one sub-object (header, footer, ...)."""
    section: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class DesignUpdate(BaseModel):
    design: Optional[Dict[str, Any]] = None


class SectionUpdate(BaseModel):
    content: Optional[str] = None


class RegenerateOptions(BaseModel):
    """Prompt options for regenerating a section."""
    include_images: bool = Field(False, alias="includeImages")
    include_charts: bool = Field(False, alias="includeCharts")
    include_diagrams: bool = Field(False, alias="includeDiagrams")

    class Config:
        populate_by_name = True


# ===========================================
# Helpers
# ===========================================

def _serialize(record: ProposalRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json")


async def _get_or_404(proposal_id: str) -> ProposalRecord:
    record = await proposal_store.get_proposal(proposal_id)
    if record is None:
        raise ApiError(404, "Proposal not found")
    return record


async def _update_or_500(proposal_id: str, updates: Dict[str, Any]) -> ProposalRecord:
    record = await proposal_store.update_proposal(proposal_id, updates)
    if record is None:
        raise ApiError(500, "Failed to update proposal")
    return record


def _validate_design(design: Dict[str, Any]) -> None:
    try:
        ProposalDesign(**design)
    except ValidationError as e:
        raise ApiError(400, f"Invalid design configuration: {e.error_count()} error(s)")


def _sse(event: Dict[str, Any]) -> str:
    return f"data: {json.dumps(event)}\n\n"


# ===========================================
# Proposals
# ===========================================

@router.get("", summary="List proposals")
async def list_proposals(limit: int = Query(100, ge=1, le=500)) -> Dict[str, Any]:
    proposals = await proposal_store.list_proposals(limit)
    return {"success": True, "proposals": [_serialize(record) for record in proposals]}


@router.post("", status_code=201, summary="Create proposal")
async def create_proposal(payload: ProposalCreateRequest) -> Dict[str, Any]:
    record = await proposal_store.create_proposal(payload.model_dump(exclude_none=True))
    if record is None:
        raise ApiError(500, "Failed to create proposal")
    return {"success": True, "proposal": _serialize(record)}


@router.get("/{proposal_id}", summary="Get proposal")
async def get_proposal(proposal_id: str) -> Dict[str, Any]:
    record = await _get_or_404(proposal_id)
    return {"success": True, "proposal": _serialize(record)}


@router.patch("/{proposal_id}", summary="Partially update proposal")
async def patch_proposal(proposal_id: str, payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """
    Update title and status; branding and design are merged into the
    stored objects rather than replaced.
    """
    record = await _get_or_404(proposal_id)
    updates: Dict[str, Any] = {}

    if payload.get("title") is not None:
        updates["project_title"] = payload["title"]
    if payload.get("status") is not None:
        try:
            updates["status"] = ProposalStatus(payload["status"]).value
        except ValueError:
            raise ApiError(400, f"Invalid status: {payload['status']}")
    if isinstance(payload.get("branding"), dict):
        updates["branding"] = {**(record.branding or {}), **payload["branding"]}
    if isinstance(payload.get("design"), dict):
        design = {**(record.design_metadata or {}), **payload["design"]}
        _validate_design(design)
        updates["design_metadata"] = design

    if not updates:
        return {"success": True, "proposal": _serialize(record)}

    updated = await _update_or_500(proposal_id, updates)
    return {"success": True, "proposal": _serialize(updated)}


@router.delete("/{proposal_id}", summary="Delete proposal")
async def delete_proposal(proposal_id: str) -> Dict[str, Any]:
    await _get_or_404(proposal_id)
    if not await proposal_store.delete_proposal(proposal_id):
        raise ApiError(500, "Failed to delete proposal")
    return {"success": True, "message": "Proposal deleted successfully"}


# ===========================================
# Branding
# ===========================================

@router.get("/{proposal_id}/branding", summary="Get branding")
async def get_branding(proposal_id: str) -> Dict[str, Any]:
    record = await _get_or_404(proposal_id)
    return {"success": True, "branding": record.branding or {}}


@router.put("/{proposal_id}/branding", summary="Merge branding")
async def put_branding(proposal_id: str, payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    record = await _get_or_404(proposal_id)
    branding = {**(record.branding or {}), **payload}
    await _update_or_500(proposal_id, {"branding": branding})
    return {"success": True, "branding": branding}


@router.patch("/{proposal_id}/branding", summary="Merge one branding sub-object")
async def patch_branding(proposal_id: str, payload: BrandingSectionUpdate) -> Dict[str, Any]:
    if not payload.section or not payload.data:
        raise ApiError(400, "Section and data are required")

    record = await _get_or_404(proposal_id)
    current = record.branding or {}
    existing = current.get(payload.section) if isinstance(current.get(payload.section), dict) else {}
    branding = {**current, payload.section: {**existing, **payload.data}}

    await _update_or_500(proposal_id, {"branding": branding})
    return {"success": True, "branding": branding}


@router.delete("/{proposal_id}/branding", summary="Clear branding")
async def delete_branding(proposal_id: str) -> Dict[str, Any]:
    await _get_or_404(proposal_id)
    await _update_or_500(proposal_id, {"branding": None})
    return {"success": True, "message": "Branding cleared"}


# ===========================================
# Design
# ===========================================

@router.get("/{proposal_id}/design", summary="Get design configuration")
async def get_design(proposal_id: str) -> Dict[str, Any]:
    record = await _get_or_404(proposal_id)
    return {"success": True, "design": record.design_metadata}


@router.put("/{proposal_id}/design", summary="Save design configuration")
async def put_design(proposal_id: str, payload: DesignUpdate) -> Dict[str, Any]:
    if not payload.design:
        raise ApiError(400, "Design configuration required")
    _validate_design(payload.design)

    await _get_or_404(proposal_id)
    await _update_or_500(proposal_id, {"design_metadata": payload.design})
    return {"success": True, "design": payload.design}


@router.delete("/{proposal_id}/design", summary="Reset design to defaults")
async def delete_design(proposal_id: str) -> Dict[str, Any]:
    await _get_or_404(proposal_id)
    await _update_or_500(proposal_id, {"design_metadata": None})
    return {"success": True, "message": "Design reset to defaults"}


# ===========================================
# Sections
# ===========================================

@router.put("/{proposal_id}/sections/{section_id}", summary="Edit section content")
async def update_section(proposal_id: str, section_id: str, payload: SectionUpdate) -> Dict[str, Any]:
    if not payload.content:
        raise ApiError(400, "Content is required")

    record = await _get_or_404(proposal_id)
    generated_content = dict(record.generated_content or {"sections": {}})
    sections = generated_content.get("sections")

    if isinstance(sections, list):
        section = next((s for s in sections if isinstance(s, dict) and s.get("id") == section_id), None)
    elif isinstance(sections, dict):
        section = sections.get(section_id)
    else:
        section = None

    if not isinstance(section, dict):
        raise ApiError(404, "Section not found")

    section["content"] = payload.content
    section["edited"] = True
    section["editedAt"] = datetime.utcnow().isoformat()

    await _update_or_500(proposal_id, {"generated_content": generated_content})
    return {"success": True, "section": section}


@router.post("/{proposal_id}/sections/{section_id}/regenerate", summary="Regenerate one section")
async def regenerate_section(
    proposal_id: str,
    section_id: str,
    options: Optional[RegenerateOptions] = Body(None)
) -> Dict[str, Any]:
    flags = (options or RegenerateOptions()).model_dump(by_alias=True)
    try:
        return await proposal_generator.regenerate_section(proposal_id, section_id, flags)
    except ProposalNotFoundError:
        raise ApiError(404, "Proposal not found")
    except SectionNotFoundError:
        raise ApiError(404, "Section not found")
    except GenerationError as e:
        raise ApiError(502, f"Section generation failed: {e}")


# ===========================================
# Generation
# ===========================================

async def _generation_events(proposal_id: str):
    """Server-sent events: connected, progress..., then complete or error."""
    queue: asyncio.Queue = asyncio.Queue()

    async def on_progress(progress) -> None:
        await queue.put({"type": "progress", **progress.model_dump(by_alias=True)})

    async def run() -> None:
        try:
            await proposal_generator.generate_proposal(proposal_id, on_progress)
            await queue.put({"type": "complete", "message": "Proposal generation completed successfully!"})
        except Exception as e:
            logger.error(f"Streaming generation of {proposal_id} failed: {e}")
            await queue.put({"type": "error", "message": str(e) or "Generation failed"})

    yield _sse({"type": "connected", "message": "Starting proposal generation..."})

    task = asyncio.create_task(run())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    while True:
        event = await queue.get()
        yield _sse(event)
        if event["type"] in ("complete", "error"):
            break


async def _generate(proposal_id: str) -> Dict[str, Any]:
    try:
        return await proposal_generator.generate_proposal(proposal_id)
    except ProposalNotFoundError:
        raise ApiError(404, "Proposal not found")


@router.get("/{proposal_id}/generate", summary="Generate proposal (optionally streamed)")
async def generate_proposal(proposal_id: str, stream: bool = False):
    if stream:
        return StreamingResponse(
            _generation_events(proposal_id),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )
    return await _generate(proposal_id)


@router.post("/{proposal_id}/generate", summary="Generate proposal")
async def generate_proposal_post(proposal_id: str) -> Dict[str, Any]:
    return await _generate(proposal_id)


# ===========================================
# Preview and export
# ===========================================

@router.get("/{proposal_id}/preview", response_class=HTMLResponse, summary="Rendered preview")
async def preview_proposal(
    proposal_id: str,
    mode: PreviewMode = PreviewMode.A4,
    tab: int = Query(0, ge=0),
    edit: bool = False
) -> HTMLResponse:
    record = await _get_or_404(proposal_id)
    preview = ProposalPreview(PreviewDocument.from_record(record))
    html = await preview.render(PreviewState(mode=mode, active_index=tab), editable=edit)
    return HTMLResponse(html)


@router.get("/{proposal_id}/export/pdf", summary="Export as PDF")
async def export_pdf(proposal_id: str) -> Response:
    record = await _get_or_404(proposal_id)
    document = PreviewDocument.from_record(record)
    html = await ProposalPreview(document).render(PreviewState(mode=PreviewMode.A4), static=True)

    try:
        pdf = await asyncio.to_thread(pdf_generator.html_to_pdf, html)
    except PDFExportError as e:
        raise ApiError(500, f"PDF export failed: {e}")

    filename = pdf_generator.filename_for(document.title)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
