"""Pure text helpers for the sequential question-import pipeline.

The exam layout this handles: numbered questions ("12)" or "12."), then a
line reading "Gabarito" that opens the answer-key section.
"""

from __future__ import annotations

import re
import time
from typing import Any

from eduportal.db.questions_repository import Choice, Question

ANSWER_KEY_SEPARATOR = re.compile(r"\n\s*Gabarito\s*\n", re.IGNORECASE)
QUESTION_START = re.compile(r"(?=\n\s*\d+\s*[.)])")
CHUNK_JOINER = "\n\n---\n\n"


def split_answer_key(text: str) -> tuple[str, str]:
    """Split a document into (questions_text, answers_text).

    The answers part starts at the "Gabarito" line and is empty when the
    document has none.
    """
    match = ANSWER_KEY_SEPARATOR.search(text)
    if not match:
        return text, ""
    return text[: match.start()], text[match.start():]


def split_question_blocks(text: str, min_chars: int = 20) -> list[str]:
    """Split before every numbered line, dropping short fragments."""
    return [block for block in QUESTION_START.split(text) if len(block.strip()) > min_chars]


def chunk_blocks(blocks: list[str], size: int = 20) -> list[str]:
    """Group blocks into fixed-size chunks of text."""
    if size < 1:
        raise ValueError("size must be positive")
    return [CHUNK_JOINER.join(blocks[i : i + size]) for i in range(0, len(blocks), size)]


def chunk_progress(index: int, total: int) -> int:
    """Percentage shown after finishing chunk `index` (0-based)."""
    return 5 + round((index + 1) / total * 85)


def _coerce_id(value: Any) -> int | None:
    try:
        return int(str(value).strip().rstrip(").").strip())
    except (TypeError, ValueError):
        return None


def parse_raw_question(raw: dict[str, Any]) -> dict[str, Any] | None:
    """Normalize one AI-returned question; None when it has no statement."""
    statement = str(raw.get("statement") or raw.get("enunciado") or "").strip()
    if not statement:
        return None
    choices = []
    for c in raw.get("choices") or raw.get("alternativas") or []:
        if not isinstance(c, dict):
            continue
        letter = str(c.get("letter") or c.get("letra") or "").strip().upper()
        text = str(c.get("text") or c.get("texto") or "").strip()
        if letter:
            choices.append({"letter": letter, "text": text})
    return {
        "id": _coerce_id(raw.get("id")),
        "statement": statement,
        "choices": choices,
        "correct": str(raw.get("correct") or raw.get("correta") or "").strip().upper(),
        "resolution": str(raw.get("resolution") or raw.get("resolucao") or ""),
        "hint": str(raw.get("hint") or raw.get("dica") or ""),
    }


def normalize_answer_key(data: Any) -> dict[str, dict[str, str]]:
    """Coerce AI output into {id: {"correct": letter, "comment": text}}.

    Accepts bare letters as values too.
    """
    if not isinstance(data, dict):
        return {}
    result = {}
    for key, value in data.items():
        qid = _coerce_id(key)
        if qid is None:
            continue
        if isinstance(value, dict):
            correct = value.get("correct") or value.get("correta") or ""
            comment = value.get("comment") or value.get("comentario") or ""
        else:
            correct, comment = value or "", ""
        result[str(qid)] = {"correct": str(correct).strip().upper(), "comment": str(comment)}
    return result


def merge_answer_key(
    raw_questions: list[dict[str, Any]],
    answer_key: dict[str, dict[str, str]],
    now_ms: int | None = None,
) -> list[Question]:
    """Attach answer-key letters and comments to extracted questions.

    The comment goes to the hint; resolution stays empty. Questions
    without an id get a millisecond timestamp plus their position.
    """
    base = now_ms if now_ms is not None else int(time.time() * 1000)
    merged = []
    for i, raw in enumerate(raw_questions):
        info = answer_key.get(str(raw["id"])) if raw.get("id") is not None else None
        merged.append(
            Question(
                id=raw["id"] if raw.get("id") is not None else base + i,
                statement=raw["statement"],
                choices=[Choice(**c) for c in raw.get("choices", [])],
                correct=info["correct"] if info else "",
                resolution="",
                hint=info["comment"] if info else "",
            )
        )
    return merged


def assign_generated_ids(
    raw_questions: list[dict[str, Any]], now_ms: int | None = None
) -> list[Question]:
    """Build questions for the detailed pattern, ids from the clock."""
    base = now_ms if now_ms is not None else int(time.time() * 1000)
    return [
        Question(
            id=base + i,
            statement=raw["statement"],
            choices=[Choice(**c) for c in raw.get("choices", [])],
            correct=raw.get("correct", ""),
            resolution=raw.get("resolution", ""),
            hint=raw.get("hint", ""),
        )
        for i, raw in enumerate(raw_questions)
    ]
