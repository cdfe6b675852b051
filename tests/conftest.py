"""Pytest fixtures and configuration for Proposal Studio tests."""

import os
import pytest
from typing import Dict, Any, Generator
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("AI_PROVIDER", "openai")
os.environ.setdefault("KROKI_URL", "https://kroki.test")
os.environ.setdefault("DEBUG", "true")


# ===========================================
# Sample Data Fixtures
# ===========================================

@pytest.fixture
def sample_sections() -> Dict[str, Dict[str, Any]]:
    """Stored sections keyed by id, deliberately out of order."""
    return {
        "executive-summary": {
            "title": "Executive Summary",
            "content": "# Overview\n\nWe will modernize **{{client.company}}** operations.\n\n- Faster onboarding\n- Lower costs",
            "type": "text",
            "order": 2,
        },
        "cover": {
            "title": "Platform Modernization",
            "content": "",
            "type": "cover_page",
            "order": 0,
        },
        "investment": {
            "title": "Investment",
            "content": (
                "Our pricing is below.\n"
                "| Item | Cost |\n"
                "|------|------|\n"
                "| Design | $5,000 |\n"
                "| **TOTAL** | $5,000 |"
            ),
            "type": "text",
            "order": 3,
        },
        "contents": {
            "title": "Table of Contents",
            "content": "",
            "type": "table_of_contents",
            "order": 1,
        },
    }


@pytest.fixture
def sample_generated_content(sample_sections) -> Dict[str, Any]:
    """generated_content column with metadata."""
    return {
        "sections": sample_sections,
        "metadata": {"generatedAt": "2026-01-15T10:00:00", "provider": "openai"},
    }


@pytest.fixture
def sample_proposal_record(sample_generated_content) -> Dict[str, Any]:
    """A proposals table row as Supabase returns it."""
    return {
        "id": "prop_test_123",
        "client_name": "Jane Doe",
        "client_company": "Acme Corp",
        "project_title": "Platform Modernization",
        "project_type": "web_app",
        "scope": "Replace the legacy order system",
        "budget": "$50,000",
        "timeline": "3 months",
        "extracted_data": {"industry": "Retail"},
        "generated_content": sample_generated_content,
        "placeholders": {"account.manager": "Sam"},
        "branding": {
            "primaryColor": "#112233",
            "companyName": "Studio Co",
            "footer": {"text": "Confidential", "email": "hello@studio.test"},
        },
        "design_metadata": None,
        "status": "generated",
        "created_at": "2026-01-15T10:00:00",
        "updated_at": "2026-01-15T10:00:00",
    }


@pytest.fixture
def sample_record(sample_proposal_record):
    """The sample row as a ProposalRecord."""
    from proposal_studio.models import ProposalRecord
    return ProposalRecord(**sample_proposal_record)


# ===========================================
# Mock Service Fixtures
# ===========================================

@pytest.fixture
def mock_store() -> MagicMock:
    """ProposalStore double with async methods."""
    store = MagicMock()
    store.create_proposal = AsyncMock(return_value=None)
    store.get_proposal = AsyncMock(return_value=None)
    store.list_proposals = AsyncMock(return_value=[])
    store.update_proposal = AsyncMock(return_value=None)
    store.update_status = AsyncMock(return_value=True)
    store.delete_proposal = AsyncMock(return_value=True)
    store.health_check = AsyncMock(return_value=True)
    return store


@pytest.fixture
def mock_kroki() -> MagicMock:
    """Kroki client double returning a small SVG."""
    client = MagicMock()
    client.render_svg = AsyncMock(
        return_value='<svg xmlns="http://www.w3.org/2000/svg" width="200" height="100"><text font-size="10">A</text></svg>'
    )
    return client


@pytest.fixture
def client(mock_store) -> Generator[TestClient, None, None]:
    """Test client with the proposal store mocked."""
    from proposal_studio.main import app
    with patch("proposal_studio.api.proposals.proposal_store", mock_store), \
            patch("proposal_studio.main.proposal_store", mock_store):
        with TestClient(app) as test_client:
            yield test_client


# ===========================================
# Pytest Configuration
# ===========================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
