"""Question-import pipeline.

Two document patterns are supported:

- ``sequential`` (default): numbered questions followed by a "Gabarito"
  section. The question part is split into blocks, blocks are grouped into
  chunks, each chunk goes to the AI separately, then the answer key is
  extracted and merged by question id.
- ``detailed``: one AI call over the whole text returning statement,
  choices, correct letter, resolution and hint for every question.

A chunk that fails yields zero questions; the run continues.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

import structlog

from eduportal.config.app_config import ExtractionConfig, load_app_config
from eduportal.core.question_parser import (
    assign_generated_ids,
    chunk_blocks,
    chunk_progress,
    merge_answer_key,
    normalize_answer_key,
    parse_raw_question,
    split_answer_key,
    split_question_blocks,
)
from eduportal.db.questions_repository import Question
from eduportal.llm.client import LLMClient, LLMError, LLMTruncatedError, with_retry
from eduportal.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

Pattern = Literal["sequential", "detailed"]
PATTERNS: tuple[str, ...] = ("sequential", "detailed")

# (processed, total, status)
ProgressCallback = Callable[[int, int, str], None]

MAX_TOKENS_HINT = (
    "Ocorreu um erro de 'MAX_TOKENS' mesmo com o processamento em blocos. "
    "O arquivo pode ter um formato inesperado ou ser excessivamente grande. "
    "Tente um arquivo menor."
)


class QuestionExtractionError(Exception):
    """The import could not produce a question list."""

    pass


@dataclass
class ExtractionReport:
    """Outcome of one import run."""

    questions: list[Question]
    pattern: str
    chunks: int = 0
    failed_chunks: int = 0
    answer_key_size: int = 0
    warnings: list[str] = field(default_factory=list)


def _noop_progress(processed: int, total: int, status: str) -> None:
    return None


def _retrying(client: LLMClient, sleep: Callable[[float], None]):
    ai_config = load_app_config().ai

    def call(fn):
        return with_retry(
            fn,
            retries=ai_config.max_retries,
            delay=ai_config.retry_delay_seconds,
            sleep=sleep,
        )

    return call


def _questions_from_payload(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get("questions", [])
    if not isinstance(payload, list):
        return []
    parsed = (parse_raw_question(item) for item in payload if isinstance(item, dict))
    return [q for q in parsed if q is not None]


def extract_questions_from_chunk(
    chunk: str,
    client: LLMClient,
    sleep: Callable[[float], None] = time.sleep,
) -> list[dict[str, Any]] | None:
    """Ask the AI for the questions of one chunk.

    Returns None on any AI failure (logged); an empty list means the AI
    answered but found no questions.
    """
    try:
        payload = _retrying(client, sleep)(
            lambda: client.simple_json(
                system_prompt=get_prompt("extraction/chunk_questions"),
                user_message=chunk,
                temperature=0.1,
            )
        )
    except LLMError as e:
        logger.error("question_extractor.chunk_failed", error=str(e), chars=len(chunk))
        return None
    return _questions_from_payload(payload)


def extract_answer_key(
    answers_text: str,
    client: LLMClient,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, dict[str, str]]:
    """Ask the AI for {id: {correct, comment}}; {} when absent or failed."""
    if not answers_text.strip():
        return {}
    try:
        payload = _retrying(client, sleep)(
            lambda: client.simple_json(
                system_prompt=get_prompt("extraction/answer_key"),
                user_message=answers_text,
                temperature=0.1,
            )
        )
    except LLMError as e:
        logger.error("question_extractor.answer_key_failed", error=str(e))
        return {}
    return normalize_answer_key(payload)


def extract_sequential(
    text: str,
    client: LLMClient,
    config: ExtractionConfig | None = None,
    on_progress: ProgressCallback = _noop_progress,
    sleep: Callable[[float], None] = time.sleep,
) -> ExtractionReport:
    """Run the chunked pipeline over a document's text."""
    config = config or load_app_config().extraction

    on_progress(0, 100, "Extraindo texto do documento...")
    questions_text, answers_text = split_answer_key(text)
    blocks = split_question_blocks(questions_text, min_chars=config.min_block_chars)
    chunks = chunk_blocks(blocks, size=config.chunk_size)
    logger.info(
        "question_extractor.split",
        blocks=len(blocks),
        chunks=len(chunks),
        has_answer_key=bool(answers_text),
    )

    raw_questions: list[dict[str, Any]] = []
    failed = 0
    for i, chunk in enumerate(chunks):
        on_progress(
            chunk_progress(i, len(chunks)), 100, f"Analisando questões... ({i + 1}/{len(chunks)})"
        )
        found = extract_questions_from_chunk(chunk, client, sleep=sleep)
        if found is None:
            failed += 1
            continue
        raw_questions.extend(found)

    on_progress(95, 100, "Analisando gabarito...")
    answer_key = extract_answer_key(answers_text, client, sleep=sleep)

    on_progress(98, 100, "Combinando resultados...")
    questions = merge_answer_key(raw_questions, answer_key)

    on_progress(100, 100, f"{len(questions)} questões extraídas!")

    report = ExtractionReport(
        questions=questions,
        pattern="sequential",
        chunks=len(chunks),
        failed_chunks=failed,
        answer_key_size=len(answer_key),
    )
    if failed:
        report.warnings.append(f"{failed} bloco(s) não puderam ser processados")
    if answers_text and not answer_key:
        report.warnings.append("Gabarito não pôde ser analisado")
    return report


def extract_detailed(
    text: str,
    client: LLMClient,
    on_progress: ProgressCallback = _noop_progress,
    sleep: Callable[[float], None] = time.sleep,
) -> ExtractionReport:
    """Single-call extraction with answers, resolution and hint included.

    Raises:
        QuestionExtractionError: If the AI reply is unusable
    """
    on_progress(0, 1, "Processando arquivo...")
    try:
        payload = _retrying(client, sleep)(
            lambda: client.simple_json(
                system_prompt=get_prompt("extraction/detailed_questions"),
                user_message=text,
                temperature=0.1,
            )
        )
    except LLMTruncatedError as e:
        raise QuestionExtractionError(MAX_TOKENS_HINT) from e
    except LLMError as e:
        raise QuestionExtractionError(str(e)) from e

    if isinstance(payload, dict) and not isinstance(payload.get("questions"), list):
        raise QuestionExtractionError("A resposta da IA não foi uma lista de questões.")

    questions = assign_generated_ids(_questions_from_payload(payload))
    on_progress(1, 1, "Concluído!")
    return ExtractionReport(questions=questions, pattern="detailed")


def extract_questions(
    text: str,
    pattern: str = "sequential",
    client: LLMClient | None = None,
    on_progress: ProgressCallback = _noop_progress,
    sleep: Callable[[float], None] = time.sleep,
) -> ExtractionReport:
    """Extract questions from document text.

    Args:
        text: Full document text
        pattern: "sequential" or "detailed"
        client: Optional pre-configured LLM client (for testing)
        on_progress: Called with (processed, total, status)
        sleep: Sleep used between retries

    Returns:
        ExtractionReport with the questions found

    Raises:
        QuestionExtractionError: Unknown pattern or unusable AI output
    """
    if pattern not in PATTERNS:
        raise QuestionExtractionError(f"Padrão de processamento desconhecido: {pattern}")

    if client is None:
        client = LLMClient(pro=pattern == "detailed")

    logger.info("question_extractor.start", pattern=pattern, chars=len(text))
    if pattern == "detailed":
        report = extract_detailed(text, client, on_progress=on_progress, sleep=sleep)
    else:
        report = extract_sequential(text, client, on_progress=on_progress, sleep=sleep)

    logger.info(
        "question_extractor.done",
        pattern=pattern,
        questions=len(report.questions),
        failed_chunks=report.failed_chunks,
    )
    return report
