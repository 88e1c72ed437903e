"""Persist extracted insights as independent graph upserts.

Each write runs in its own session; a failed write is logged and counted
and the remaining writes still run. There is no transaction across the batch.
"""

from typing import Awaitable, Callable

from config import Settings, get_settings
from db.results import GraphResult, GraphStatus
from db.travel_graph import TravelGraphRepository
from models.schemas import ExtractedInsights, PersistenceReport
from utils.logging import get_logger

logger = get_logger(__name__)


def _non_blank(items: list[str]) -> list[str]:
    return [item for item in items if isinstance(item, str) and item.strip()]


class GraphWriter:
    """Maps an insights object onto repository upserts."""

    def __init__(
        self,
        repository: TravelGraphRepository,
        settings: Settings | None = None,
    ):
        self.repository = repository
        self.settings = settings or get_settings()

    async def persist(
        self,
        insights: ExtractedInsights,
        user_id: str,
        group_id: str | None = None,
    ) -> PersistenceReport:
        report = PersistenceReport()
        repo = self.repository

        async def run(write: Callable[[], Awaitable[GraphResult]]) -> None:
            result = await write()
            report.attempted += 1
            if result.status is GraphStatus.OK:
                report.succeeded += 1
            elif result.status is GraphStatus.EMPTY:
                report.empty += 1
            elif result.status is GraphStatus.DISABLED:
                report.disabled += 1
            else:
                report.failed += 1
                report.failed_operations.append(result.operation)

        def kept(items: list[str]) -> list[str]:
            values = _non_blank(items)
            report.skipped_items += len(items) - len(values)
            return values

        for destination in kept(insights.destinations):
            await run(lambda d=destination: repo.add_destination_interest(user_id, d))

        for activity in kept(insights.activities):
            await run(lambda a=activity: repo.add_activity_interest(user_id, a))

        for constraint in kept(insights.constraints):
            await run(lambda c=constraint: repo.add_constraint(user_id, c))

        budget_indicators = kept(insights.budget_indicators)
        if budget_indicators:
            await run(lambda: repo.add_budget_indicators(user_id, budget_indicators))

        if insights.travel_style.strip():
            await run(lambda: repo.set_travel_style(user_id, insights.travel_style))

        if group_id:
            group_dynamics = kept(insights.group_dynamics)
            if group_dynamics:
                await run(lambda: repo.add_group_dynamics(group_id, group_dynamics))

        if self.settings.persist_extended_preferences:
            extended = (
                (insights.preferences, repo.add_preferences),
                (insights.seasonal_preferences, repo.add_seasonal_preferences),
                (insights.accommodation_preferences, repo.add_accommodation_preferences),
            )
            for items, write in extended:
                values = kept(items)
                if values:
                    await run(lambda w=write, v=values: w(user_id, v))

        log = logger.warning if report.failed else logger.info
        log(
            f"Persisted insights for user {user_id}: "
            f"{report.succeeded}/{report.attempted} succeeded, {report.failed} failed",
            extra={"persistence_report": report.model_dump()},
        )
        return report
