"""Study assistant chat."""

from __future__ import annotations

from eduportal.llm.client import LLMClient, Message
from eduportal.prompts.registry import get_prompt

MAX_HISTORY = 20


def reply(history: list[Message], message: str, client: LLMClient | None = None) -> str:
    """Answer a new message given the previous turns.

    Raises:
        ValueError: Empty message
        LLMError: AI failure
    """
    if not message.strip():
        raise ValueError("A mensagem não pode estar vazia.")
    if client is None:
        client = LLMClient()

    messages = [Message(role="system", content=get_prompt("tutor/chat"))]
    messages.extend(m for m in history[-MAX_HISTORY:] if m.role in ("user", "assistant"))
    messages.append(Message(role="user", content=message.strip()))
    return client.chat(messages, temperature=0.7).content.strip()
