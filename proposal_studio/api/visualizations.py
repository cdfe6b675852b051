"""Visualization API Routes - chart recommendation, validation and diagrams."""

import logging
from typing import Optional, Dict, Any, List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from proposal_studio.api.errors import ApiError
from proposal_studio.intelligence.providers import ProviderError, create_ai_provider
from proposal_studio.models import ChartType
from proposal_studio.rendering.chart_selector import (
    get_chart_description,
    get_chart_use_cases,
    recommend_chart_type,
    validate_data_for_chart_type,
)
from proposal_studio.rendering.diagrams import DiagramRenderer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/visualizations", tags=["visualizations"])

diagram_renderer = DiagramRenderer()


class ChartRecommendRequest(BaseModel):
    data: List[Dict[str, Any]]
    purpose: Optional[str] = None
    emphasis: Optional[str] = None


class ChartValidateRequest(BaseModel):
    data: List[Dict[str, Any]]
    chart_type: ChartType = Field(..., alias="chartType")

    class Config:
        populate_by_name = True


class DiagramRenderRequest(BaseModel):
    code: str


class DiagramGenerateRequest(BaseModel):
    description: str = Field(..., min_length=1)
    provider: Optional[str] = None


@router.post("/chart/recommend", summary="Recommend a chart type")
async def recommend_chart(payload: ChartRecommendRequest) -> Dict[str, Any]:
    recommendation = recommend_chart_type(payload.data, payload.purpose, payload.emphasis)
    return {
        "success": True,
        "recommendation": recommendation.model_dump(mode="json"),
        "description": get_chart_description(recommendation.type),
        "useCases": get_chart_use_cases(recommendation.type),
    }


@router.post("/chart/validate", summary="Check data against a chart type")
async def validate_chart(payload: ChartValidateRequest) -> Dict[str, Any]:
    validation = validate_data_for_chart_type(payload.data, payload.chart_type)
    return {"success": True, **validation.model_dump()}


@router.post("/diagram/render", summary="Render Mermaid source to SVG")
async def render_diagram(payload: DiagramRenderRequest) -> Dict[str, Any]:
    """Render failures come back in the body, not as an HTTP error."""
    result = await diagram_renderer.render(payload.code)
    return {
        "success": result.ok,
        "svg": result.svg,
        "sanitized": result.sanitized,
        "error": result.error,
    }


@router.post("/diagram/generate", summary="Generate Mermaid source with AI")
async def generate_diagram(payload: DiagramGenerateRequest) -> Dict[str, Any]:
    try:
        provider = create_ai_provider(payload.provider)
    except ValueError as e:
        raise ApiError(400, str(e))

    try:
        code = await provider.generate_diagram(payload.description)
    except ProviderError as e:
        raise ApiError(502, f"Diagram generation failed: {e}")

    logger.info(f"Generated diagram with {provider.name} ({len(code)} chars)")
    return {"success": True, "code": code, "provider": provider.name}
