"""Neo4j driver handle with per-operation sessions.

GraphClient is created once in the application lifespan, handed to whatever
needs graph access, and closed at shutdown. Each operation gets its own
session, which is always released before the operation returns.

When any credential is missing the client stays disabled: every operation
returns a `disabled` GraphResult instead of raising.
"""

from typing import Any, Awaitable, Callable, Optional, TypeVar

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession
from neo4j.exceptions import DriverError, Neo4jError

from config import Settings
from db.results import GraphResult
from utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Errors converted to a `failed` result instead of propagating
GRAPH_OPERATION_ERRORS = (
    Neo4jError,
    DriverError,
    OSError,
    ValueError,
    TypeError,
)

SessionOperation = Callable[[AsyncSession], Awaitable[Optional[T]]]


class GraphClient:
    """Process-wide Neo4j driver with scoped session helpers."""

    def __init__(
        self,
        uri: str = "",
        username: str = "",
        password: str = "",
        database: str = "",
        max_pool_size: int = 50,
        acquisition_timeout: float = 60.0,
    ):
        self.uri = uri
        self.username = username
        self._password = password
        self.database = database or None
        self.max_pool_size = max_pool_size
        self.acquisition_timeout = acquisition_timeout
        self._driver: AsyncDriver | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "GraphClient":
        return cls(
            uri=settings.neo4j_uri,
            username=settings.neo4j_username,
            password=settings.get_neo4j_password(),
            database=settings.neo4j_database,
            max_pool_size=settings.neo4j_pool_max_size,
            acquisition_timeout=settings.neo4j_connection_acquisition_timeout,
        )

    @property
    def enabled(self) -> bool:
        return self._driver is not None

    @property
    def configured(self) -> bool:
        return bool(self.uri and self.username and self._password)

    def connect(self) -> bool:
        """Create the driver. Returns False (and stays disabled) when not configured."""
        if not self.configured:
            logger.warning("Neo4j credentials not configured. Knowledge graph features disabled.")
            return False

        logger.info(
            f"Initializing Neo4j driver: max_pool_size={self.max_pool_size}, "
            f"acquisition_timeout={self.acquisition_timeout}s"
        )
        try:
            self._driver = AsyncGraphDatabase.driver(
                self.uri,
                auth=(self.username, self._password),
                max_connection_pool_size=self.max_pool_size,
                connection_acquisition_timeout=self.acquisition_timeout,
            )
        except (ValueError, DriverError) as e:
            logger.error(f"Failed to create Neo4j driver: {type(e).__name__}: {e}")
            self._driver = None
            return False

        logger.info("Neo4j driver created")
        return True

    async def verify_connectivity(self) -> bool:
        """Check that the server is reachable."""
        if self._driver is None:
            return False
        try:
            await self._driver.verify_connectivity()
            return True
        except GRAPH_OPERATION_ERRORS as e:
            logger.error(f"Neo4j connectivity check failed: {type(e).__name__}: {e}")
            return False

    async def close(self):
        """Close the driver and its connection pool."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("Neo4j driver closed")

    def session(self) -> AsyncSession:
        """Open a new session. Callers own closing it."""
        if self._driver is None:
            raise RuntimeError("Neo4j driver is not initialized")
        return self._driver.session(database=self.database)

    async def with_session(
        self,
        operation: SessionOperation[T],
        operation_name: str,
    ) -> GraphResult[T]:
        """Run one operation in its own session.

        The session is closed whether the operation returns a value, returns
        None, or raises. Returning None maps to an `empty` result; graph
        errors map to `failed` and are logged, never raised.
        """
        if self._driver is None:
            return GraphResult.disabled(operation_name)

        session: AsyncSession | None = None
        try:
            session = self.session()
            value = await operation(session)
        except GRAPH_OPERATION_ERRORS as e:
            logger.error(
                f"Graph operation {operation_name} failed: {type(e).__name__}: {e}",
                extra={"graph_operation": operation_name},
            )
            return GraphResult.failure(operation_name, e)
        finally:
            if session is not None:
                await session.close()

        if value is None:
            return GraphResult.empty(operation_name)
        return GraphResult.success(operation_name, value)

    async def run_single(
        self,
        query: str,
        parameters: dict[str, Any],
        operation_name: str,
    ) -> GraphResult[dict[str, Any]]:
        """Run one query and return its single record as a dict."""

        async def _query(session: AsyncSession) -> dict[str, Any] | None:
            result = await session.run(query, parameters)
            record = await result.single()
            return dict(record) if record is not None else None

        return await self.with_session(_query, operation_name)
