"""API package - HTTP routes."""

from proposal_studio.api.errors import ApiError, api_error_handler
from proposal_studio.api.proposals import router as proposals_router
from proposal_studio.api.visualizations import router as visualizations_router

__all__ = [
    "ApiError",
    "api_error_handler",
    "proposals_router",
    "visualizations_router",
]
