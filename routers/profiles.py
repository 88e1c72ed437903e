"""Profile and trip sync endpoints.

Each call is one graph operation. The response carries the GraphResult
status so callers can tell "nothing matched" (empty) from a failed write.
"""

from fastapi import APIRouter, Depends

from db.results import GraphResult
from db.travel_graph import TravelGraphRepository
from models.schemas import (
    ApiResponse,
    GraphWriteResult,
    Itinerary,
    TravelPreferences,
    TripDetails,
    UserProfile,
)
from routers.deps import get_repository
from utils.logging import get_logger, set_request_context

logger = get_logger(__name__)

router = APIRouter()


def _respond(result: GraphResult[dict]) -> ApiResponse:
    body = GraphWriteResult(
        status=result.status.value,
        operation=result.operation,
        record=result.value,
        error=result.error,
    )
    return ApiResponse(success=not result.failed, data=body.model_dump(by_alias=True))


@router.put("/users/{user_id}", response_model=ApiResponse)
async def upsert_user(
    user_id: str,
    profile: UserProfile,
    repository: TravelGraphRepository = Depends(get_repository),
):
    set_request_context(user_id=user_id)
    return _respond(await repository.upsert_user(user_id, profile))


@router.put("/users/{user_id}/preferences", response_model=ApiResponse)
async def upsert_travel_preferences(
    user_id: str,
    preferences: TravelPreferences,
    repository: TravelGraphRepository = Depends(get_repository),
):
    set_request_context(user_id=user_id)
    return _respond(await repository.upsert_travel_preferences(user_id, preferences))


@router.put("/trips/{group_id}", response_model=ApiResponse)
async def upsert_trip(
    group_id: str,
    trip: TripDetails,
    repository: TravelGraphRepository = Depends(get_repository),
):
    return _respond(await repository.upsert_trip(group_id, trip))


@router.put("/trips/{group_id}/participants/{user_id}", response_model=ApiResponse)
async def link_user_to_trip(
    group_id: str,
    user_id: str,
    repository: TravelGraphRepository = Depends(get_repository),
):
    """Empty when the user or the trip has not been synced yet."""
    set_request_context(user_id=user_id)
    return _respond(await repository.link_user_to_trip(user_id, group_id))


@router.post("/trips/{group_id}/itinerary", response_model=ApiResponse)
async def add_itinerary(
    group_id: str,
    itinerary: Itinerary,
    repository: TravelGraphRepository = Depends(get_repository),
):
    return _respond(await repository.add_itinerary(group_id, itinerary))
