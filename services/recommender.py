"""Personalized recommendations from a user's graph context."""

from config import Settings, get_settings
from db.results import GraphStatus
from db.travel_graph import TravelGraphRepository
from models.schemas import Recommendation
from services.llm import LLMClient
from services.prompts import build_recommendation_prompt
from utils.logging import get_logger

logger = get_logger(__name__)


class RecommendationGenerator:
    def __init__(
        self,
        llm: LLMClient,
        repository: TravelGraphRepository,
        settings: Settings | None = None,
    ):
        self.llm = llm
        self.repository = repository
        self.settings = settings or get_settings()

    async def recommend(
        self,
        user_id: str,
        destination: str | None = None,
    ) -> Recommendation | None:
        """Return recommendations, or None when the user's context cannot be read.

        The model is only called once a user context is available.
        """
        context_result = await self.repository.get_user_travel_context(user_id)
        if not context_result.ok:
            if context_result.status is GraphStatus.EMPTY:
                logger.info(f"No graph profile for user {user_id}; skipping recommendations")
            elif context_result.status is GraphStatus.DISABLED:
                logger.info("Knowledge graph disabled; skipping recommendations")
            else:
                logger.warning(
                    f"Could not read travel context for user {user_id}: {context_result.error}"
                )
            return None
        context = context_result.value

        insights = None
        if destination:
            insights_result = await self.repository.get_destination_insights(destination)
            if insights_result.ok:
                insights = insights_result.value
            else:
                logger.info(
                    f"No destination insights for {destination} ({insights_result.status.value})"
                )

        prompt = build_recommendation_prompt(context, destination, insights)
        text = await self.llm.generate(
            prompt,
            temperature=self.settings.recommendation_temperature,
        )

        return Recommendation(
            recommendations=text,
            user_context=context,
            destination_insights=insights,
        )
