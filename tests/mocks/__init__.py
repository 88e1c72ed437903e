"""Mock implementations for testing."""

from .llm_mock import MockLLMProvider
from .neo4j_mock import MockNeo4jDriver, MockNeo4jResult, MockNeo4jSession

__all__ = [
    "MockLLMProvider",
    "MockNeo4jDriver",
    "MockNeo4jResult",
    "MockNeo4jSession",
]
