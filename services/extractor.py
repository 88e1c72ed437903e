"""Travel insight extraction from conversation transcripts."""

from pydantic import ValidationError

from config import Settings, get_settings
from models.schemas import ExtractedInsights
from services.graph_writer import GraphWriter
from services.llm import LLMClient
from services.prompts import TRUNCATION_MARKER, build_extraction_prompt
from utils.json_extraction import extract_json_object
from utils.logging import get_logger

logger = get_logger(__name__)


def truncate_transcript(transcript: str, max_chars: int) -> str:
    """Keep the most recent part of the transcript that fits in max_chars."""
    if len(transcript) <= max_chars:
        return transcript
    keep = max(0, max_chars - len(TRUNCATION_MARKER))
    tail = transcript[len(transcript) - keep :] if keep else ""
    return TRUNCATION_MARKER + tail


def parse_insights(response: str) -> ExtractedInsights | None:
    """Coerce a model reply into ExtractedInsights, or None if it cannot be."""
    data = extract_json_object(response, context="insight_extraction")
    if data is None:
        return None
    try:
        return ExtractedInsights.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Extracted insights do not match the expected shape: {e.error_count()} errors")
        return None


class InsightExtractor:
    """Turns a transcript into ExtractedInsights and persists them.

    Parse failures yield None with nothing written. LLMServiceError from the
    model call is not caught here.
    """

    def __init__(
        self,
        llm: LLMClient,
        writer: GraphWriter,
        settings: Settings | None = None,
    ):
        self.llm = llm
        self.writer = writer
        self.settings = settings or get_settings()

    def _prepare_transcript(self, transcript: str) -> str:
        max_chars = self.llm.prompt_budget_chars(build_extraction_prompt(""))
        prepared = truncate_transcript(transcript, max_chars)
        if prepared is not transcript:
            logger.warning(
                f"Transcript truncated from {len(transcript)} to {len(prepared)} characters",
                extra={"transcript_chars": len(transcript), "kept_chars": len(prepared)},
            )
        return prepared

    async def extract(
        self,
        transcript: str,
        user_id: str,
        group_id: str | None = None,
    ) -> ExtractedInsights | None:
        logger.info(
            "Extracting travel insights from transcript",
            extra={"transcript_chars": len(transcript), "group_id": group_id},
        )
        prompt = build_extraction_prompt(self._prepare_transcript(transcript))

        response = await self.llm.generate(
            prompt,
            temperature=self.settings.extraction_temperature,
        )

        insights = parse_insights(response)
        if insights is None:
            logger.warning("Insight extraction produced no usable JSON; nothing persisted")
            return None

        await self.writer.persist(insights, user_id, group_id)
        return insights
