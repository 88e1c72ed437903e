"""HTTP client fixtures: the app with its lifespan objects replaced."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import app
from routers.deps import (
    get_extractor,
    get_graph_client,
    get_llm,
    get_recommender,
    get_repository,
)


@pytest_asyncio.fixture
async def api_client():
    """AsyncClient against the app; lifespan does not run under ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def override():
    """Point route dependencies at test doubles.

    Example:
        override(llm=llm_client, repository=repository)
    """
    providers = {
        "graph_client": get_graph_client,
        "repository": get_repository,
        "llm": get_llm,
        "extractor": get_extractor,
        "recommender": get_recommender,
    }

    def _provide(value):
        return lambda: value

    def _override(**dependencies):
        for name, value in dependencies.items():
            app.dependency_overrides[providers[name]] = _provide(value)

    yield _override
    app.dependency_overrides.clear()
