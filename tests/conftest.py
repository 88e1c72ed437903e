"""Shared pytest fixtures for the travel knowledge API tests."""

from unittest.mock import AsyncMock

import pytest

from config import Settings
from db.neo4j import GraphClient
from db.results import GraphResult
from db.travel_graph import TravelGraphRepository
from models.schemas import DestinationInsights, UserTravelContext
from services.llm import LLMClient
from tests.mocks import MockLLMProvider, MockNeo4jDriver, MockNeo4jSession

# ============================================================================
# Settings
# ============================================================================


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        groq_api_key="test-groq-key",
        neo4j_uri="bolt://localhost:7687",
        neo4j_username="neo4j",
        neo4j_password="test-password",
        max_prompt_tokens=24000,
    )


# ============================================================================
# Neo4j Fixtures
# ============================================================================


@pytest.fixture
def mock_neo4j_session():
    """Recording Neo4j session; see tests/mocks/neo4j_mock.py.

    Example:
        async def test_upsert(graph_client, mock_neo4j_session):
            mock_neo4j_session.set_default_response(single_value={"user_id": "u1"})
            result = await graph_client.run_single("RETURN 1", {}, "lookup")
    """
    return MockNeo4jSession()


@pytest.fixture
def mock_neo4j_driver(mock_neo4j_session):
    return MockNeo4jDriver(mock_neo4j_session)


@pytest.fixture
def graph_client(mock_neo4j_driver):
    """GraphClient wired to the mock driver instead of a live server."""
    client = GraphClient(uri="bolt://localhost:7687", username="neo4j", password="pw")
    client._driver = mock_neo4j_driver
    return client


@pytest.fixture
def disabled_graph_client():
    """GraphClient with no credentials, as when Neo4j is not configured."""
    client = GraphClient()
    client.connect()
    return client


@pytest.fixture
def repository(graph_client):
    return TravelGraphRepository(graph_client)


@pytest.fixture
def mock_repository():
    """TravelGraphRepository stand-in whose writes all succeed."""
    repo = AsyncMock(spec=TravelGraphRepository)
    for name in (
        "add_destination_interest",
        "add_activity_interest",
        "add_constraint",
        "add_budget_indicators",
        "set_travel_style",
        "add_group_dynamics",
        "add_preferences",
        "add_seasonal_preferences",
        "add_accommodation_preferences",
    ):
        getattr(repo, name).return_value = GraphResult.success(name, {"ok": True})
    return repo


# ============================================================================
# LLM Fixtures
# ============================================================================


@pytest.fixture
def mock_llm_provider():
    return MockLLMProvider()


@pytest.fixture
def llm_client(mock_llm_provider, test_settings):
    """Real LLMClient on top of the scripted provider."""
    return LLMClient(provider=mock_llm_provider, settings=test_settings)


# ============================================================================
# Sample Data
# ============================================================================


@pytest.fixture
def sample_insights_payload():
    """A well-formed nine-field extraction reply."""
    return {
        "destinations": ["Paris"],
        "activities": ["hiking"],
        "preferences": [],
        "constraints": [],
        "budget_indicators": [],
        "travel_style": "adventure",
        "group_dynamics": [],
        "seasonal_preferences": [],
        "accommodation_preferences": [],
    }


@pytest.fixture
def sample_user_context():
    return UserTravelContext(
        user={"id": "user-1", "firstName": "Ada"},
        travel_styles=["adventure"],
        interests=["museums", "food tours"],
        deal_breakers=["red-eye flights"],
        budget_ranges=["Mid-range"],
        visited_destinations=["Lisbon"],
        stayed_hotels=["Hotel Lisboa"],
    )


@pytest.fixture
def sample_destination_insights():
    return DestinationInsights(
        destination={"name": "Paris"},
        total_trips=3,
        popular_places=["Louvre", "Eiffel Tower"],
        popular_hotels=["Hotel Lutetia"],
        common_interests=["museums"],
        common_activities=["hiking"],
        average_duration=4.5,
    )
