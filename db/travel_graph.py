"""Cypher queries for the travel knowledge graph.

Every write is a MERGE keyed on a natural key, so repeating a call is a
no-op. Keys are passed as query parameters, never interpolated into Cypher.
Each public method runs in its own session via GraphClient.with_session and
returns a GraphResult.
"""

import json
from datetime import UTC, datetime
from typing import Any, Iterable

from neo4j import AsyncSession

from db.neo4j import GraphClient
from db.results import GraphResult
from models.schemas import (
    DestinationInsights,
    Itinerary,
    TravelPreferences,
    TripDetails,
    UserProfile,
    UserTravelContext,
)
from utils.logging import get_logger

logger = get_logger(__name__)

# Label -> natural key property, one uniqueness constraint each
NODE_KEYS: dict[str, str] = {
    "User": "id",
    "Trip": "groupId",
    "Destination": "name",
    "Place": "name",
    "Hotel": "name",
    "Activity": "name",
    "TravelStyle": "name",
    "FlightPreference": "type",
    "BudgetRange": "range",
    "Interest": "name",
    "DealBreaker": "description",
    "Constraint": "description",
    "BudgetIndicator": "description",
    "GroupDynamic": "description",
    "Preference": "description",
    "SeasonalPreference": "description",
    "AccommodationPreference": "description",
}


def normalize_key(value: str) -> str:
    """Trim and collapse internal whitespace. Case is preserved."""
    return " ".join(value.split())


def _distinct(values: Iterable[Any]) -> list[str]:
    """Drop nulls and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(v for v in values if v is not None))


def _properties(node: Any) -> dict[str, Any]:
    """Plain dict of a node's properties (driver nodes and dicts both work)."""
    if node is None:
        return {}
    return dict(node)


def _now() -> str:
    return datetime.now(UTC).isoformat()


# ---------------------------------------------------------------------------
# Cypher
# ---------------------------------------------------------------------------

UPSERT_USER = """
MERGE (u:User {id: $user_id})
SET u.firstName = $first_name,
    u.lastName = $last_name,
    u.email = $email,
    u.country = $country,
    u.state = $state,
    u.updatedAt = $updated_at
RETURN u.id AS user_id
"""

UPSERT_TRAVEL_PREFERENCES = """
MERGE (u:User {id: $user_id})
MERGE (ts:TravelStyle {name: $travel_style})
MERGE (u)-[:PREFERS_TRAVEL_STYLE]->(ts)
MERGE (fp:FlightPreference {type: $flight_preference})
MERGE (u)-[:PREFERS_FLIGHT]->(fp)
MERGE (bp:BudgetRange {range: $budget})
MERGE (u)-[:HAS_BUDGET]->(bp)
FOREACH (interest IN $interests |
    MERGE (i:Interest {name: interest})
    MERGE (u)-[:INTERESTED_IN]->(i))
RETURN u.id AS user_id, size($interests) AS interests
"""

ADD_DEAL_BREAKER = """
MERGE (u:User {id: $user_id})
MERGE (db:DealBreaker {description: $deal_breaker})
MERGE (u)-[:AVOIDS]->(db)
RETURN u.id AS user_id, db.description AS deal_breaker
"""

UPSERT_TRIP = """
MERGE (t:Trip {groupId: $group_id})
SET t.destination = $destination,
    t.destinationDisplay = $destination_display,
    t.departureDate = $departure_date,
    t.returnDate = $return_date,
    t.duration = $duration,
    t.budgetRange = $budget_range,
    t.createdAt = coalesce(t.createdAt, $created_at)
MERGE (d:Destination {name: $destination_display})
MERGE (t)-[:TRAVELS_TO]->(d)
RETURN t.groupId AS group_id, d.name AS destination
"""

LINK_USER_TO_TRIP = """
MATCH (u:User {id: $user_id})
MATCH (t:Trip {groupId: $group_id})
MERGE (u)-[:PARTICIPATED_IN]->(t)
RETURN u.id AS user_id, t.groupId AS group_id
"""

_MERGE_ITINERARY_PLACE = """
MATCH (t:Trip {groupId: $group_id})
MERGE (p:Place {name: $place_name})
SET p.type = $type,
    p.description = $description,
    p.duration = $duration
MERGE (t)-[:INCLUDES_PLACE]->(p)
"""

ADD_ITINERARY_PLACE = _MERGE_ITINERARY_PLACE + """MERGE (d:Destination {name: $destination})
MERGE (p)-[:LOCATED_IN]->(d)
RETURN p.name AS place
"""

# Itineraries without a destination only attach places to the trip
ADD_UNLOCATED_ITINERARY_PLACE = _MERGE_ITINERARY_PLACE + "RETURN p.name AS place\n"

ADD_ITINERARY_HOTEL = """
MATCH (t:Trip {groupId: $group_id})
MERGE (h:Hotel {name: $hotel_name})
SET h.rating = $rating,
    h.price = $price,
    h.amenities = $amenities
MERGE (t)-[:STAYED_AT]->(h)
RETURN h.name AS hotel
"""

ADD_DESTINATION_INTEREST = """
MERGE (u:User {id: $user_id})
MERGE (d:Destination {name: $destination})
MERGE (u)-[:INTERESTED_IN_DESTINATION]->(d)
RETURN u.id AS user_id, d.name AS destination
"""

ADD_ACTIVITY_INTEREST = """
MERGE (u:User {id: $user_id})
MERGE (a:Activity {name: $activity})
MERGE (u)-[:ENJOYS_ACTIVITY]->(a)
RETURN u.id AS user_id, a.name AS activity
"""

ADD_CONSTRAINT = """
MERGE (u:User {id: $user_id})
MERGE (c:Constraint {description: $constraint})
MERGE (u)-[:HAS_CONSTRAINT]->(c)
RETURN u.id AS user_id, c.description AS constraint
"""

SET_TRAVEL_STYLE = """
MERGE (u:User {id: $user_id})
MERGE (ts:TravelStyle {name: $travel_style})
MERGE (u)-[:PREFERS_TRAVEL_STYLE]->(ts)
RETURN u.id AS user_id, ts.name AS travel_style
"""

# Label and relationship come from the fixed table below, never from input
_USER_DESCRIPTION_LIST = """
MERGE (u:User {{id: $user_id}})
WITH u
UNWIND $items AS item
MERGE (n:{label} {{description: item}})
MERGE (u)-[:{relationship}]->(n)
RETURN u.id AS user_id, count(n) AS linked
"""

USER_DESCRIPTION_LISTS: dict[str, tuple[str, str]] = {
    "budget_indicators": ("BudgetIndicator", "HAS_BUDGET_INDICATOR"),
    "preferences": ("Preference", "HAS_PREFERENCE"),
    "seasonal_preferences": ("SeasonalPreference", "PREFERS_SEASON"),
    "accommodation_preferences": ("AccommodationPreference", "PREFERS_ACCOMMODATION"),
}

ADD_GROUP_DYNAMICS = """
MERGE (t:Trip {groupId: $group_id})
WITH t
UNWIND $items AS item
MERGE (gd:GroupDynamic {description: item})
MERGE (t)-[:HAS_GROUP_DYNAMIC]->(gd)
RETURN t.groupId AS group_id, count(gd) AS linked
"""

# Pattern comprehensions keep each collection independent, so one large
# collection does not multiply the rows seen by the others.
GET_USER_TRAVEL_CONTEXT = """
MATCH (u:User {id: $user_id})
RETURN u,
       [(u)-[:PREFERS_TRAVEL_STYLE]->(ts:TravelStyle) | ts.name] AS travel_styles,
       [(u)-[:PREFERS_FLIGHT]->(fp:FlightPreference) | fp.type] AS flight_preferences,
       [(u)-[:HAS_BUDGET]->(bp:BudgetRange) | bp.range] AS budget_ranges,
       [(u)-[:INTERESTED_IN]->(i:Interest) | i.name] AS interests,
       [(u)-[:AVOIDS]->(db:DealBreaker) | db.description] AS deal_breakers,
       [(u)-[:ENJOYS_ACTIVITY]->(a:Activity) | a.name] AS activities,
       [(u)-[:HAS_CONSTRAINT]->(c:Constraint) | c.description] AS constraints,
       [(u)-[:HAS_BUDGET_INDICATOR]->(bi:BudgetIndicator) | bi.description] AS budget_indicators,
       [(u)-[:INTERESTED_IN_DESTINATION]->(di:Destination) | di.name] AS destination_interests,
       [(u)-[:HAS_PREFERENCE]->(pr:Preference) | pr.description] AS preferences,
       [(u)-[:PREFERS_SEASON]->(sp:SeasonalPreference) | sp.description] AS seasonal_preferences,
       [(u)-[:PREFERS_ACCOMMODATION]->(ap:AccommodationPreference) | ap.description] AS accommodation_preferences,
       [(u)-[:PARTICIPATED_IN]->(:Trip)-[:TRAVELS_TO]->(d:Destination) | d.name] AS visited_destinations,
       [(u)-[:PARTICIPATED_IN]->(:Trip)-[:INCLUDES_PLACE]->(p:Place) | p.name] AS visited_places,
       [(u)-[:PARTICIPATED_IN]->(:Trip)-[:STAYED_AT]->(h:Hotel) | h.name] AS stayed_hotels
"""

GET_DESTINATION_INSIGHTS = """
MATCH (d:Destination {name: $destination})
OPTIONAL MATCH (d)<-[:TRAVELS_TO]-(t:Trip)
WITH d, collect(DISTINCT t) AS trips
OPTIONAL MATCH (d)<-[:TRAVELS_TO]-(:Trip)-[:INCLUDES_PLACE]->(p:Place)-[:LOCATED_IN]->(d)
WITH d, trips, collect(DISTINCT p.name) AS popular_places
OPTIONAL MATCH (d)<-[:TRAVELS_TO]-(:Trip)-[:STAYED_AT]->(h:Hotel)
WITH d, trips, popular_places, collect(DISTINCT h.name) AS popular_hotels
OPTIONAL MATCH (d)<-[:TRAVELS_TO]-(:Trip)<-[:PARTICIPATED_IN]-(u:User)
WITH d, trips, popular_places, popular_hotels, collect(DISTINCT u) AS visitors
RETURN d,
       size(trips) AS total_trips,
       [trip IN trips | trip.duration] AS durations,
       popular_places,
       popular_hotels,
       reduce(acc = [], v IN visitors |
              acc + [(v)-[:INTERESTED_IN]->(i:Interest) | i.name]) AS common_interests,
       reduce(acc = [], v IN visitors |
              acc + [(v)-[:ENJOYS_ACTIVITY]->(a:Activity) | a.name]) AS common_activities
"""


class TravelGraphRepository:
    """Upserts and reads for users, trips, destinations and preferences."""

    def __init__(self, client: GraphClient, normalize_keys: bool = False):
        self.client = client
        self.normalize_keys = normalize_keys

    @property
    def enabled(self) -> bool:
        return self.client.enabled

    def _key(self, value: str) -> str:
        return normalize_key(value) if self.normalize_keys else value

    async def ensure_schema(self) -> int:
        """Create a uniqueness constraint per natural key. Returns how many succeeded."""
        created = 0
        for label, key in NODE_KEYS.items():
            name = f"{label.lower()}_{key.lower()}_unique"
            query = (
                f"CREATE CONSTRAINT {name} IF NOT EXISTS "
                f"FOR (n:{label}) REQUIRE n.{key} IS UNIQUE"
            )

            async def _create(session: AsyncSession, query: str = query) -> bool:
                result = await session.run(query)
                await result.consume()
                return True

            result = await self.client.with_session(_create, f"ensure_constraint({name})")
            if result.ok:
                created += 1
            elif result.failed:
                logger.warning(f"Constraint {name} skipped: {result.error}")
        if self.enabled:
            logger.info(f"Graph schema ready: {created}/{len(NODE_KEYS)} constraints")
        return created

    # -----------------------------------------------------------------------
    # Profile and trip sync
    # -----------------------------------------------------------------------

    async def upsert_user(self, user_id: str, profile: UserProfile) -> GraphResult[dict]:
        return await self.client.run_single(
            UPSERT_USER,
            {
                "user_id": user_id,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "email": profile.email,
                "country": profile.country,
                "state": profile.state,
                "updated_at": _now(),
            },
            "upsert_user",
        )

    async def upsert_travel_preferences(
        self, user_id: str, preferences: TravelPreferences
    ) -> GraphResult[dict]:
        """Write questionnaire answers; the deal breaker goes in the same session."""
        interests = [
            self._key(part.strip())
            for part in preferences.interests_and_activities.split(",")
            if part.strip()
        ]
        params = {
            "user_id": user_id,
            "travel_style": self._key(preferences.travel_style_preferences or "Unknown"),
            "flight_preference": self._key(preferences.flight_preference or "Economy"),
            "budget": self._key(preferences.budget_and_spending or "Unknown"),
            "interests": interests,
        }
        deal_breaker = preferences.deal_breakers_and_strong_preferences

        async def _write(session: AsyncSession) -> dict | None:
            result = await session.run(UPSERT_TRAVEL_PREFERENCES, params)
            record = await result.single()
            written = dict(record) if record is not None else {}
            if deal_breaker:
                result = await session.run(
                    ADD_DEAL_BREAKER,
                    {"user_id": user_id, "deal_breaker": self._key(deal_breaker)},
                )
                await result.consume()
                written["deal_breaker"] = deal_breaker
            return written or None

        return await self.client.with_session(_write, "upsert_travel_preferences")

    async def upsert_trip(self, group_id: str, trip: TripDetails) -> GraphResult[dict]:
        return await self.client.run_single(
            UPSERT_TRIP,
            {
                "group_id": group_id,
                "destination": trip.destination,
                "destination_display": self._key(trip.destination_display),
                "departure_date": trip.departure_date,
                "return_date": trip.return_date,
                "duration": trip.trip_duration_days,
                "budget_range": trip.budget_range,
                "created_at": _now(),
            },
            "upsert_trip",
        )

    async def link_user_to_trip(self, user_id: str, group_id: str) -> GraphResult[dict]:
        """Empty when either the user or the trip does not exist yet."""
        return await self.client.run_single(
            LINK_USER_TO_TRIP,
            {"user_id": user_id, "group_id": group_id},
            "link_user_to_trip",
        )

    async def add_itinerary(self, group_id: str, itinerary: Itinerary) -> GraphResult[dict]:
        """Attach itinerary places and hotels to an existing trip."""
        destination = self._key(itinerary.destination.strip())
        place_query = ADD_ITINERARY_PLACE if destination else ADD_UNLOCATED_ITINERARY_PLACE

        async def _write(session: AsyncSession) -> dict | None:
            places: list[str] = []
            hotels: list[str] = []
            for day in itinerary.itinerary:
                for place in day.places:
                    result = await session.run(
                        place_query,
                        {
                            "group_id": group_id,
                            "place_name": self._key(place.name),
                            "type": place.type or "Unknown",
                            "description": place.description,
                            "duration": place.duration,
                            "destination": destination,
                        },
                    )
                    record = await result.single()
                    if record is not None:
                        places.append(record["place"])
            for hotel in itinerary.hotels:
                result = await session.run(
                    ADD_ITINERARY_HOTEL,
                    {
                        "group_id": group_id,
                        "hotel_name": self._key(hotel.name),
                        "rating": hotel.rating,
                        "price": hotel.price,
                        "amenities": json.dumps(hotel.amenities),
                    },
                )
                record = await result.single()
                if record is not None:
                    hotels.append(record["hotel"])
            if not places and not hotels:
                return None
            return {"group_id": group_id, "places": places, "hotels": hotels}

        return await self.client.with_session(_write, "add_itinerary")

    # -----------------------------------------------------------------------
    # Transcript insights
    # -----------------------------------------------------------------------

    async def add_destination_interest(self, user_id: str, destination: str) -> GraphResult[dict]:
        return await self.client.run_single(
            ADD_DESTINATION_INTEREST,
            {"user_id": user_id, "destination": self._key(destination)},
            "add_destination_interest",
        )

    async def add_activity_interest(self, user_id: str, activity: str) -> GraphResult[dict]:
        return await self.client.run_single(
            ADD_ACTIVITY_INTEREST,
            {"user_id": user_id, "activity": self._key(activity)},
            "add_activity_interest",
        )

    async def add_constraint(self, user_id: str, constraint: str) -> GraphResult[dict]:
        return await self.client.run_single(
            ADD_CONSTRAINT,
            {"user_id": user_id, "constraint": self._key(constraint)},
            "add_constraint",
        )

    async def set_travel_style(self, user_id: str, travel_style: str) -> GraphResult[dict]:
        return await self.client.run_single(
            SET_TRAVEL_STYLE,
            {"user_id": user_id, "travel_style": self._key(travel_style)},
            "set_travel_style",
        )

    async def _add_user_descriptions(
        self, kind: str, user_id: str, items: list[str]
    ) -> GraphResult[dict]:
        label, relationship = USER_DESCRIPTION_LISTS[kind]
        query = _USER_DESCRIPTION_LIST.format(label=label, relationship=relationship)
        return await self.client.run_single(
            query,
            {"user_id": user_id, "items": [self._key(item) for item in items]},
            f"add_{kind}",
        )

    async def add_budget_indicators(self, user_id: str, indicators: list[str]) -> GraphResult[dict]:
        return await self._add_user_descriptions("budget_indicators", user_id, indicators)

    async def add_preferences(self, user_id: str, preferences: list[str]) -> GraphResult[dict]:
        return await self._add_user_descriptions("preferences", user_id, preferences)

    async def add_seasonal_preferences(
        self, user_id: str, preferences: list[str]
    ) -> GraphResult[dict]:
        return await self._add_user_descriptions("seasonal_preferences", user_id, preferences)

    async def add_accommodation_preferences(
        self, user_id: str, preferences: list[str]
    ) -> GraphResult[dict]:
        return await self._add_user_descriptions("accommodation_preferences", user_id, preferences)

    async def add_group_dynamics(self, group_id: str, dynamics: list[str]) -> GraphResult[dict]:
        return await self.client.run_single(
            ADD_GROUP_DYNAMICS,
            {"group_id": group_id, "items": [self._key(d) for d in dynamics]},
            "add_group_dynamics",
        )

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def get_user_travel_context(self, user_id: str) -> GraphResult[UserTravelContext]:
        """Everything known about a user. Empty when the User node does not exist."""

        async def _read(session: AsyncSession) -> UserTravelContext | None:
            result = await session.run(GET_USER_TRAVEL_CONTEXT, {"user_id": user_id})
            record = await result.single()
            if record is None:
                return None
            return UserTravelContext(
                user=_properties(record["u"]),
                travel_styles=_distinct(record["travel_styles"]),
                flight_preferences=_distinct(record["flight_preferences"]),
                budget_ranges=_distinct(record["budget_ranges"]),
                interests=_distinct(record["interests"]),
                deal_breakers=_distinct(record["deal_breakers"]),
                activities=_distinct(record["activities"]),
                constraints=_distinct(record["constraints"]),
                budget_indicators=_distinct(record["budget_indicators"]),
                destination_interests=_distinct(record["destination_interests"]),
                preferences=_distinct(record["preferences"]),
                seasonal_preferences=_distinct(record["seasonal_preferences"]),
                accommodation_preferences=_distinct(record["accommodation_preferences"]),
                visited_destinations=_distinct(record["visited_destinations"]),
                visited_places=_distinct(record["visited_places"]),
                stayed_hotels=_distinct(record["stayed_hotels"]),
            )

        return await self.client.with_session(_read, "get_user_travel_context")

    async def get_destination_insights(self, destination: str) -> GraphResult[DestinationInsights]:
        """Aggregates across all trips to a destination. Empty when it does not exist."""
        name = self._key(destination)

        async def _read(session: AsyncSession) -> DestinationInsights | None:
            result = await session.run(GET_DESTINATION_INSIGHTS, {"destination": name})
            record = await result.single()
            if record is None:
                return None
            durations = [d for d in record["durations"] if isinstance(d, (int, float))]
            average = sum(durations) / len(durations) if durations else None
            return DestinationInsights(
                destination=_properties(record["d"]),
                total_trips=record["total_trips"],
                popular_places=_distinct(record["popular_places"]),
                popular_hotels=_distinct(record["popular_hotels"]),
                common_interests=_distinct(record["common_interests"]),
                common_activities=_distinct(record["common_activities"]),
                average_duration=average,
            )

        return await self.client.with_session(_read, "get_destination_insights")
