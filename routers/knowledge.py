"""Knowledge insight endpoints: transcript processing and graph-backed reads."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from db.travel_graph import TravelGraphRepository
from models.schemas import ApiResponse, TranscriptRequest
from routers.deps import get_extractor, get_recommender, get_repository
from services.extractor import InsightExtractor
from services.recommender import RecommendationGenerator
from utils.logging import get_logger, set_request_context

logger = get_logger(__name__)

router = APIRouter()

ACTIONS = ("recommendations", "travel-context", "destination-insights")


@router.get("", response_model=ApiResponse)
async def get_knowledge_insights(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    action: Optional[str] = Query(default=None),
    destination: Optional[str] = Query(default=None),
    repository: TravelGraphRepository = Depends(get_repository),
    recommender: RecommendationGenerator = Depends(get_recommender),
):
    """Read recommendations, a user's travel context, or destination statistics.

    `data` is null when the graph has nothing for the request (unknown user,
    unknown destination, graph disabled or unreachable).
    """
    if not user_id:
        raise HTTPException(status_code=400, detail="User ID is required")
    set_request_context(user_id=user_id)

    if action == "recommendations":
        recommendation = await recommender.recommend(user_id, destination or None)
        data = recommendation.model_dump(by_alias=True) if recommendation else None
        return ApiResponse(data=data)

    if action == "travel-context":
        result = await repository.get_user_travel_context(user_id)
        data = result.value.model_dump(by_alias=True) if result.ok else None
        return ApiResponse(data=data)

    if action == "destination-insights":
        if not destination:
            raise HTTPException(status_code=400, detail="Destination is required for insights")
        result = await repository.get_destination_insights(destination)
        data = result.value.model_dump(by_alias=True) if result.ok else None
        return ApiResponse(data=data)

    raise HTTPException(status_code=400, detail="Invalid action parameter")


@router.post("", response_model=ApiResponse)
async def process_transcript(
    body: TranscriptRequest,
    extractor: InsightExtractor = Depends(get_extractor),
):
    """Extract insights from a transcript and write them to the graph.

    `data` is null when the model reply could not be parsed.
    """
    if not body.user_id or not body.transcript:
        raise HTTPException(status_code=400, detail="User ID and transcript are required")
    set_request_context(user_id=body.user_id)

    insights = await extractor.extract(body.transcript, body.user_id, body.group_id or None)
    return ApiResponse(data=insights.model_dump() if insights else None)
