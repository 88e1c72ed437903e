"""Round trips against a live Neo4j.

Skipped unless NEO4J_URI (plus NEO4J_USERNAME / NEO4J_PASSWORD) is set.
Every test works on uniquely named nodes and deletes them afterwards.
"""

import os
from uuid import uuid4

import pytest
import pytest_asyncio

from config import Settings
from db.neo4j import GraphClient
from db.results import GraphStatus
from db.travel_graph import TravelGraphRepository
from models.schemas import (
    ExtractedInsights,
    Itinerary,
    ItineraryDay,
    ItineraryPlace,
    TravelPreferences,
    TripDetails,
    UserProfile,
)
from services.graph_writer import GraphWriter

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.getenv("NEO4J_URI"), reason="NEO4J_URI not set"),
]


@pytest_asyncio.fixture
async def live_client():
    client = GraphClient.from_settings(Settings())
    client.connect()
    yield client
    await client.close()


@pytest.fixture
def suffix():
    return uuid4().hex[:12]


@pytest_asyncio.fixture
async def live_repo(live_client, suffix):
    repo = TravelGraphRepository(live_client)
    yield repo

    async def _cleanup(session):
        result = await session.run(
            "MATCH (n) WHERE any(v IN [n.id, n.groupId, n.name, n.description, n.type, n.range] "
            "WHERE v IS NOT NULL AND v CONTAINS $suffix) DETACH DELETE n",
            {"suffix": suffix},
        )
        await result.consume()
        return True

    await live_client.with_session(_cleanup, "cleanup")


async def count(client: GraphClient, query: str, **params) -> int:
    async def _count(session):
        result = await session.run(query, params)
        record = await result.single()
        return record["c"]

    return (await client.with_session(_count, "count")).value


class TestIdempotence:
    @pytest.mark.asyncio
    async def test_repeated_upsert_creates_one_node_and_edge(self, live_client, live_repo, suffix):
        user_id = f"user-{suffix}"
        destination = f"O'Hare \"Gate\" {{B}} {suffix}"

        first = await live_repo.add_destination_interest(user_id, destination)
        second = await live_repo.add_destination_interest(user_id, destination)

        assert first.ok and second.ok
        assert await count(
            live_client, "MATCH (d:Destination {name: $name}) RETURN count(d) AS c", name=destination
        ) == 1
        assert await count(
            live_client,
            "MATCH (:User {id: $id})-[r:INTERESTED_IN_DESTINATION]->(:Destination) RETURN count(r) AS c",
            id=user_id,
        ) == 1


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_insights_visible_in_travel_context(self, live_repo, suffix):
        user_id = f"user-{suffix}"
        writer = GraphWriter(live_repo, Settings(_env_file=None, persist_extended_preferences=True))
        insights = ExtractedInsights(
            destinations=[f"Paris {suffix}"],
            activities=[f"hiking {suffix}"],
            travel_style=f"adventure {suffix}",
            seasonal_preferences=[f"spring {suffix}"],
        )

        report = await writer.persist(insights, user_id)
        context = await live_repo.get_user_travel_context(user_id)

        assert report.failed == 0
        assert context.ok
        assert context.value.destination_interests == [f"Paris {suffix}"]
        assert context.value.activities == [f"hiking {suffix}"]
        assert context.value.travel_styles == [f"adventure {suffix}"]
        assert context.value.seasonal_preferences == [f"spring {suffix}"]

    @pytest.mark.asyncio
    async def test_destination_insights_average(self, live_repo, suffix):
        destination = f"Lisbon {suffix}"
        for index, days in enumerate((3, 5)):
            group_id = f"group-{index}-{suffix}"
            user_id = f"user-{index}-{suffix}"
            await live_repo.upsert_user(user_id, UserProfile(first_name="Test"))
            await live_repo.upsert_trip(
                group_id, TripDetails(destination="LIS", destination_display=destination, trip_duration_days=days)
            )
            linked = await live_repo.link_user_to_trip(user_id, group_id)
            assert linked.ok

        insights = await live_repo.get_destination_insights(destination)

        assert insights.value.total_trips == 2
        assert insights.value.average_duration == 4

    @pytest.mark.asyncio
    async def test_unknown_user_is_empty(self, live_repo, suffix):
        result = await live_repo.get_user_travel_context(f"missing-{suffix}")
        assert result.status is GraphStatus.EMPTY


class TestProfileSyncEdges:
    @pytest.mark.asyncio
    async def test_deal_breaker_written_without_interests(self, live_client, live_repo, suffix):
        user_id = f"user-{suffix}"
        preferences = TravelPreferences(
            travel_style_preferences=f"Slow {suffix}",
            flight_preference=f"Economy {suffix}",
            budget_and_spending=f"Mid {suffix}",
            interests_and_activities=" , ",
            deal_breakers_and_strong_preferences=f"no hostels {suffix}",
        )

        result = await live_repo.upsert_travel_preferences(user_id, preferences)

        assert result.status is GraphStatus.OK
        assert result.value["interests"] == 0
        assert await count(
            live_client,
            "MATCH (:User {id: $id})-[r:AVOIDS]->(:DealBreaker) RETURN count(r) AS c",
            id=user_id,
        ) == 1

    @pytest.mark.asyncio
    async def test_blank_itinerary_destination_creates_no_destination(
        self, live_client, live_repo, suffix
    ):
        group_id = f"group-{suffix}"
        await live_repo.upsert_trip(
            group_id, TripDetails(destination="LIS", destination_display=f"Lisbon {suffix}")
        )
        itinerary = Itinerary(
            destination="",
            itinerary=[ItineraryDay(day=1, places=[ItineraryPlace(name=f"Alfama {suffix}")])],
        )

        result = await live_repo.add_itinerary(group_id, itinerary)

        assert result.value["places"] == [f"Alfama {suffix}"]
        assert await count(
            live_client, "MATCH (d:Destination {name: ''}) RETURN count(d) AS c"
        ) == 0
