"""Prompt templates for insight extraction and recommendations."""

from models.schemas import DestinationInsights, UserTravelContext

INSIGHT_EXTRACTION_PROMPT = """You are an AI assistant specialized in extracting travel-related insights from conversation transcripts.
Analyze the following conversation transcript and extract structured travel information.

TRANSCRIPT:
{transcript}

Please extract and return the following information in JSON format:
{{
  "destinations": ["array of destinations mentioned or shown interest in"],
  "activities": ["array of activities, attractions, or experiences mentioned"],
  "preferences": ["array of specific travel preferences mentioned"],
  "constraints": ["array of limitations, budget constraints, or deal-breakers"],
  "budget_indicators": ["array of budget-related mentions or spending preferences"],
  "travel_style": "single travel style classification (luxury, budget, adventure, relaxation, cultural, etc.)",
  "group_dynamics": ["array of group-related preferences or mentions"],
  "seasonal_preferences": ["array of seasonal or timing preferences"],
  "accommodation_preferences": ["array of hotel, resort, or accommodation preferences"]
}}

Focus on extracting meaningful insights that can help with future travel planning.
Return only the JSON object, no additional text."""

TRUNCATION_MARKER = "[... earlier conversation truncated ...]\n"

RECOMMENDATION_PROMPT = """Based on the following user travel profile and destination data, provide personalized travel recommendations:

USER PROFILE:
- Travel Styles: {travel_styles}
- Interests: {interests}
- Deal Breakers: {deal_breakers}
- Budget Ranges: {budget_ranges}
- Previously Visited: {visited_destinations}
- Preferred Hotels: {stayed_hotels}
{destination_section}
Provide specific, personalized recommendations for:
1. Destinations (if not specified)
2. Activities and attractions
3. Accommodation types
4. Budget considerations
5. Trip duration
6. Best travel times

Return recommendations in a structured format."""

DESTINATION_SECTION = """
DESTINATION INSIGHTS for {destination}:
- Total trips by other users: {total_trips}
- Popular places: {popular_places}
- Popular hotels: {popular_hotels}
- Common interests of visitors: {common_interests}
- Average trip duration: {average_duration}
"""


def _join(values: list[str]) -> str:
    return ", ".join(values)


def build_extraction_prompt(transcript: str) -> str:
    return INSIGHT_EXTRACTION_PROMPT.format(transcript=transcript)


def build_recommendation_prompt(
    context: UserTravelContext,
    destination: str | None = None,
    insights: DestinationInsights | None = None,
) -> str:
    """Render the recommendation prompt; the destination block is left out without insights."""
    destination_section = ""
    if destination and insights is not None:
        if insights.average_duration is None:
            average = "unknown"
        else:
            average = f"{insights.average_duration:g} days"
        destination_section = DESTINATION_SECTION.format(
            destination=destination,
            total_trips=insights.total_trips,
            popular_places=_join(insights.popular_places),
            popular_hotels=_join(insights.popular_hotels),
            common_interests=_join(insights.common_interests),
            average_duration=average,
        )

    return RECOMMENDATION_PROMPT.format(
        travel_styles=_join(context.travel_styles),
        interests=_join(context.interests),
        deal_breakers=_join(context.deal_breakers),
        budget_ranges=_join(context.budget_ranges),
        visited_destinations=_join(context.visited_destinations),
        stayed_hotels=_join(context.stayed_hotels),
        destination_section=destination_section,
    )
