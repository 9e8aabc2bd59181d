"""Study assistant chat endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status

from eduportal.core import chat
from eduportal.llm.client import LLMClient, LLMError, Message
from eduportal.web.dependencies import get_current_user, get_llm_client
from eduportal.web.schemas import ChatRequest, ChatResponse

router = APIRouter(prefix="/api/chat", tags=["chat"], dependencies=[Depends(get_current_user)])


@router.post("", response_model=ChatResponse)
def send_message(
    body: ChatRequest, client: LLMClient | None = Depends(get_llm_client)
) -> ChatResponse:
    history = [Message(role=m.role, content=m.content) for m in body.history]
    try:
        text = chat.reply(history, body.message, client=client)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except LLMError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="O assistente não está disponível no momento. Tente novamente.",
        ) from e
    return ChatResponse(reply=text)
