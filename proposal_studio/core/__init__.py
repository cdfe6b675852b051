"""Core module - Configuration and database."""

from proposal_studio.core.config import get_settings, Settings, default_branding
from proposal_studio.core.database import ProposalStore, proposal_store

__all__ = [
    "get_settings",
    "Settings",
    "default_branding",
    "ProposalStore",
    "proposal_store",
]
