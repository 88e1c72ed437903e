"""Pydantic schemas for requests, graph payloads, and pipeline results.

API-facing models use camelCase aliases (userId, groupId, ...) and accept
snake_case names as well. ExtractedInsights keeps the snake_case keys the
extraction prompt asks the model to produce.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(BaseModel):
    """Envelope returned by the knowledge endpoints."""

    success: bool = True
    data: Any = None


# ---------------------------------------------------------------------------
# Chat proxy
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(..., min_length=1)


class ChatResponse(BaseModel):
    reply: str


# ---------------------------------------------------------------------------
# Insight extraction
# ---------------------------------------------------------------------------

INSIGHT_LIST_FIELDS = (
    "destinations",
    "activities",
    "preferences",
    "constraints",
    "budget_indicators",
    "group_dynamics",
    "seasonal_preferences",
    "accommodation_preferences",
)


class ExtractedInsights(BaseModel):
    """The fixed nine-field structure extracted from a transcript."""

    model_config = ConfigDict(extra="ignore")

    destinations: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    preferences: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    budget_indicators: list[str] = Field(default_factory=list)
    travel_style: str = ""
    group_dynamics: list[str] = Field(default_factory=list)
    seasonal_preferences: list[str] = Field(default_factory=list)
    accommodation_preferences: list[str] = Field(default_factory=list)

    @field_validator(*INSIGHT_LIST_FIELDS, mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> Any:
        """null becomes [], a bare string becomes a one-element list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return v

    @field_validator("travel_style", mode="before")
    @classmethod
    def coerce_travel_style(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v


class TranscriptRequest(CamelModel):
    """Body of POST /api/knowledge-insights.

    Fields are optional so the route can answer 400 with its own message.
    """

    user_id: Optional[str] = None
    transcript: Optional[str] = None
    group_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Profile / trip sync payloads
# ---------------------------------------------------------------------------


class UserProfile(CamelModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    country: str = ""
    state: str = ""


class TravelPreferences(CamelModel):
    """Structured questionnaire answers collected during onboarding."""

    travel_style_preferences: str = "Unknown"
    flight_preference: str = "Economy"
    budget_and_spending: str = "Unknown"
    # Comma-separated free text, e.g. "museums, food tours, hiking"
    interests_and_activities: str = ""
    deal_breakers_and_strong_preferences: str = ""


class TripDetails(CamelModel):
    destination: str = ""  # airport / city code
    destination_display: str = ""
    departure_date: str = ""
    return_date: str = ""
    trip_duration_days: int = 0
    budget_range: str = ""


class ItineraryPlace(CamelModel):
    name: str
    type: str = "Unknown"
    description: str = ""
    duration: str = ""


class ItineraryDay(CamelModel):
    day: Optional[int] = None
    places: list[ItineraryPlace] = Field(default_factory=list)


class HotelStay(CamelModel):
    name: str
    rating: float = 0
    price: str = ""
    amenities: list[str] = Field(default_factory=list)


class Itinerary(CamelModel):
    destination: str = ""  # display name of the Destination node
    itinerary: list[ItineraryDay] = Field(default_factory=list)
    hotels: list[HotelStay] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Graph read models
# ---------------------------------------------------------------------------


class UserTravelContext(CamelModel):
    """A user's accumulated preferences and trip history."""

    user: dict[str, Any] = Field(default_factory=dict)
    travel_styles: list[str] = Field(default_factory=list)
    flight_preferences: list[str] = Field(default_factory=list)
    budget_ranges: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    deal_breakers: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    budget_indicators: list[str] = Field(default_factory=list)
    destination_interests: list[str] = Field(default_factory=list)
    preferences: list[str] = Field(default_factory=list)
    seasonal_preferences: list[str] = Field(default_factory=list)
    accommodation_preferences: list[str] = Field(default_factory=list)
    visited_destinations: list[str] = Field(default_factory=list)
    visited_places: list[str] = Field(default_factory=list)
    stayed_hotels: list[str] = Field(default_factory=list)


class DestinationInsights(CamelModel):
    """Aggregates across every trip to one destination."""

    destination: dict[str, Any] = Field(default_factory=dict)
    total_trips: int = 0
    popular_places: list[str] = Field(default_factory=list)
    popular_hotels: list[str] = Field(default_factory=list)
    common_interests: list[str] = Field(default_factory=list)
    common_activities: list[str] = Field(default_factory=list)
    average_duration: Optional[float] = None


class Recommendation(CamelModel):
    """Model output together with the graph data used to prompt it."""

    recommendations: str
    user_context: UserTravelContext
    destination_insights: Optional[DestinationInsights] = None


# ---------------------------------------------------------------------------
# Write results
# ---------------------------------------------------------------------------


class PersistenceReport(CamelModel):
    """Outcome of persisting one insights object."""

    attempted: int = 0
    succeeded: int = 0
    empty: int = 0
    failed: int = 0
    disabled: int = 0
    skipped_items: int = 0
    failed_operations: list[str] = Field(default_factory=list)


class GraphWriteResult(CamelModel):
    """Body returned by the profile/trip sync endpoints."""

    status: str
    operation: str
    record: Optional[dict[str, Any]] = None
    error: Optional[str] = None
