# Models
from models.schemas import (
    DestinationInsights,
    ExtractedInsights,
    PersistenceReport,
    Recommendation,
    UserTravelContext,
)

__all__ = [
    "DestinationInsights",
    "ExtractedInsights",
    "PersistenceReport",
    "Recommendation",
    "UserTravelContext",
]
