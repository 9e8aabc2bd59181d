"""AI generation of learning paths."""

from __future__ import annotations

from typing import Any

import structlog

from eduportal.db import learning_paths_repository
from eduportal.db.learning_paths_repository import LearningPathRecord, PathStep
from eduportal.llm.client import LLMClient, LLMError
from eduportal.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

FALLBACK_MESSAGE = (
    "A IA não conseguiu gerar uma trilha de aprendizagem com base na sua solicitação. "
    "Tente ser mais específico."
)


class LearningPathError(Exception):
    pass


def _parse_path(data: Any) -> dict[str, Any]:
    """Validate AI output; steps are renumbered 1..n in the order returned."""
    if not isinstance(data, dict) or not str(data.get("title") or "").strip():
        raise LearningPathError(FALLBACK_MESSAGE)

    raw_steps = data.get("steps") or []
    if not isinstance(raw_steps, list):
        raise LearningPathError(FALLBACK_MESSAGE)

    steps = [
        PathStep(
            step=i,
            title=str(s.get("title") or "").strip(),
            description=str(s.get("description") or "").strip(),
        )
        for i, s in enumerate((s for s in raw_steps if isinstance(s, dict)), start=1)
    ]
    return {
        "title": str(data["title"]).strip(),
        "description": str(data.get("description") or ""),
        "duration": str(data.get("duration") or ""),
        "target_audience": str(data.get("targetAudience") or data.get("target_audience") or ""),
        "steps": steps,
    }


def generate_learning_path(
    request: str,
    student_id: str | None = None,
    client: LLMClient | None = None,
) -> LearningPathRecord:
    """Generate a learning path from a free-text request and store it.

    Args:
        request: What the admin asked for
        student_id: Optional student the path is assigned to
        client: Optional pre-configured LLM client (for testing)

    Returns:
        The stored LearningPathRecord

    Raises:
        ValueError: Empty request
        LearningPathError: The AI call failed or returned an unusable shape
    """
    if not request.strip():
        raise ValueError("Descreva a trilha de aprendizagem desejada.")

    if client is None:
        client = LLMClient(pro=True)

    try:
        data = client.simple_json(
            system_prompt=get_prompt("study/learning_path"),
            user_message=request.strip(),
            temperature=0.7,
        )
    except LLMError as e:
        logger.error("learning_path.generation_failed", error=str(e))
        raise LearningPathError(str(e)) from e

    fields = _parse_path(data)
    path = learning_paths_repository.insert_learning_path(student_id=student_id, **fields)
    logger.info("learning_path.generated", id=path.id, steps=len(path.steps))
    return path
