"""Chat proxy: forwards a conversation to the model and returns its reply."""

from fastapi import APIRouter, Depends

from models.schemas import ChatRequest, ChatResponse
from routers.deps import get_llm
from services.llm import LLMClient
from utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    llm: LLMClient = Depends(get_llm),
):
    """Send the conversation to the model.

    Model failures surface as 502 and oversized conversations as 413 through
    the application exception handlers.
    """
    messages = [message.model_dump() for message in body.messages]
    logger.debug(f"Chat request with {len(messages)} messages")
    reply = await llm.chat(messages)
    return ChatResponse(reply=reply)
