"""Supabase persistence for proposals."""

import logging
from typing import Optional, Dict, Any, List
from datetime import datetime
from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions

from proposal_studio.core.config import get_settings

logger = logging.getLogger(__name__)


class ProposalStore:
    """
    Service for Supabase operations on the proposals table.

    Uses the sync Supabase client behind an async interface so routes
    and the generator await it like any other I/O. Every write replaces
    the columns it names; concurrent writers to one row are last-write-wins.
    """

    def __init__(self):
        """Initialize without connecting."""
        self._client: Optional[Client] = None

    @property
    def table_name(self) -> str:
        return get_settings().PROPOSALS_TABLE

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            settings = get_settings()
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                raise ValueError("Supabase credentials not configured")

            self._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_KEY,
                options=ClientOptions(
                    postgrest_client_timeout=30,
                    storage_client_timeout=30
                )
            )
            logger.info("Supabase client initialized")
        return self._client

    # ===========================================
    # Create Operations
    # ===========================================

    async def create_proposal(self, data: Dict[str, Any]) -> Optional["ProposalRecord"]:
        """Insert a new proposal row."""
        try:
            from proposal_studio.models import ProposalRecord

            now = datetime.utcnow().isoformat()
            row = {**data, "created_at": now, "updated_at": now}
            row.setdefault("status", "draft")

            response = self.client.table(self.table_name).insert(row).execute()

            if response.data:
                record = ProposalRecord(**response.data[0])
                logger.info(f"Created proposal: {record.id}")
                return record

            logger.error("Insert returned no data")
            return None

        except Exception as e:
            logger.error(f"Failed to create proposal: {e}")
            return None

    # ===========================================
    # Read Operations
    # ===========================================

    async def get_proposal(self, proposal_id: str) -> Optional["ProposalRecord"]:
        """Fetch proposal by ID."""
        try:
            from proposal_studio.models import ProposalRecord

            response = (
                self.client.table(self.table_name)
                .select("*")
                .eq("id", proposal_id)
                .limit(1)
                .execute()
            )

            if response.data:
                return ProposalRecord(**response.data[0])

            logger.warning(f"Proposal not found: {proposal_id}")
            return None

        except Exception as e:
            logger.error(f"Failed to get proposal {proposal_id}: {e}")
            return None

    async def list_proposals(self, limit: int = 100) -> List["ProposalRecord"]:
        """Fetch proposals, newest first."""
        try:
            from proposal_studio.models import ProposalRecord

            response = (
                self.client.table(self.table_name)
                .select("*")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )

            if response.data:
                return [ProposalRecord(**record) for record in response.data]
            return []

        except Exception as e:
            logger.error(f"Failed to list proposals: {e}")
            return []

    # ===========================================
    # Update Operations
    # ===========================================

    async def update_proposal(
        self,
        proposal_id: str,
        updates: Dict[str, Any]
    ) -> Optional["ProposalRecord"]:
        """Update proposal columns and return the stored row."""
        try:
            from proposal_studio.models import ProposalRecord

            updates = {**updates, "updated_at": datetime.utcnow().isoformat()}

            response = (
                self.client.table(self.table_name)
                .update(updates)
                .eq("id", proposal_id)
                .execute()
            )

            if response.data:
                logger.info(f"Updated proposal {proposal_id}: {list(updates.keys())}")
                return ProposalRecord(**response.data[0])

            logger.warning(f"Update returned no data for {proposal_id}")
            return None

        except Exception as e:
            logger.error(f"Failed to update proposal {proposal_id}: {e}")
            return None

    async def update_status(self, proposal_id: str, status: str) -> bool:
        """Update proposal status."""
        return await self.update_proposal(proposal_id, {"status": status}) is not None

    # ===========================================
    # Delete Operations
    # ===========================================

    async def delete_proposal(self, proposal_id: str) -> bool:
        """Delete a proposal row."""
        try:
            response = (
                self.client.table(self.table_name)
                .delete()
                .eq("id", proposal_id)
                .execute()
            )

            if response.data:
                logger.info(f"Deleted proposal {proposal_id}")
                return True

            logger.warning(f"Delete matched no rows for {proposal_id}")
            return False

        except Exception as e:
            logger.error(f"Failed to delete proposal {proposal_id}: {e}")
            return False

    # ===========================================
    # Health Check
    # ===========================================

    async def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            self.client.table(self.table_name).select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


# Forward reference imports
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from proposal_studio.models import ProposalRecord

# Singleton instance
proposal_store = ProposalStore()
