"""Subject practice sessions.

A session serves the subject's questions the student has not answered yet,
in random order. Correct answers earn XP; progress is kept per
student+subject until the student restarts.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

import structlog

from eduportal.config.app_config import load_app_config
from eduportal.db import practice_repository, questions_repository
from eduportal.db.practice_repository import PracticeProgress
from eduportal.db.questions_repository import Question
from eduportal.llm.client import LLMClient, LLMError
from eduportal.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

HINT_FAILURE_MESSAGE = "Desculpe, não foi possível gerar uma dica agora."


class PracticeError(Exception):
    pass


class AlreadyAnsweredError(PracticeError):
    def __init__(self, question_id: int):
        self.question_id = question_id
        super().__init__("Esta questão já foi respondida.")


class HintLimitError(PracticeError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Limite de {limit} dicas por questão atingido.")


@dataclass
class PracticeSession:
    subject_id: str
    questions: list[Question]
    total: int
    answered: int
    correct: int

    @property
    def completed(self) -> bool:
        return self.total > 0 and not self.questions


@dataclass
class AnswerOutcome:
    question_id: int
    correct: bool
    correct_letter: str
    xp_gained: int
    resolution: str = ""
    progress: PracticeProgress | None = None


@dataclass
class HintResult:
    hint: str
    generated: bool
    hints_used: int = 0


def start_session(
    student_id: str, subject_id: str, rng: random.Random | None = None
) -> PracticeSession:
    """Unanswered questions of a subject, shuffled."""
    questions = questions_repository.list_subject_questions(subject_id)
    progress = practice_repository.get_progress(student_id, subject_id)
    answered = set(progress.answered_ids) if progress else set()

    remaining = [q for q in questions if q.id not in answered]
    (rng or random).shuffle(remaining)

    logger.debug(
        "practice.started",
        student_id=student_id,
        subject_id=subject_id,
        remaining=len(remaining),
    )
    return PracticeSession(
        subject_id=subject_id,
        questions=remaining,
        total=len(questions),
        answered=len(answered),
        correct=len(progress.correct_ids) if progress else 0,
    )


def _append_unique(ids: list[int], question_id: int) -> list[int]:
    return ids if question_id in ids else [*ids, question_id]


def answer_question(
    student_id: str, subject_id: str, question_id: int, letter: str
) -> AnswerOutcome:
    """Grade one answer, award XP and record progress.

    Raises:
        AlreadyAnsweredError: The question was answered before in this subject
        PracticeError: Unknown question or question outside the subject
    """
    question = questions_repository.get_question(question_id)
    if question is None or question.subject_id != subject_id:
        raise PracticeError("Questão não encontrada neste assunto.")

    progress = practice_repository.get_progress(student_id, subject_id) or PracticeProgress(
        student_id=student_id, subject_id=subject_id
    )
    if question_id in progress.answered_ids:
        raise AlreadyAnsweredError(question_id)

    is_correct = bool(question.correct) and letter.strip().upper() == question.correct
    gamification = load_app_config().gamification

    xp_gained = 0
    if is_correct:
        practice_repository.increment_xp(student_id, gamification.xp_per_correct)
        xp_gained = gamification.xp_per_correct

    progress.answered_ids = _append_unique(progress.answered_ids, question_id)
    if is_correct:
        progress.correct_ids = _append_unique(progress.correct_ids, question_id)
    practice_repository.save_progress(progress)
    practice_repository.record_activity(student_id, answered=1, correct=int(is_correct))

    logger.info(
        "practice.answered",
        student_id=student_id,
        question_id=question_id,
        correct=is_correct,
    )
    return AnswerOutcome(
        question_id=question_id,
        correct=is_correct,
        correct_letter=question.correct,
        xp_gained=xp_gained,
        resolution=question.resolution or question.hint,
        progress=progress,
    )


def _format_question(question: Question) -> str:
    lines = [question.statement, ""]
    lines.extend(f"{c.letter}) {c.text}" for c in question.choices)
    return "\n".join(lines)


def request_hint(
    student_id: str,
    subject_id: str,
    question_id: int,
    previous_hints: list[str] | None = None,
    client: LLMClient | None = None,
) -> HintResult:
    """Generate a hint for the current question.

    The per-question limit is counted in the stored progress; previous_hints
    only feeds the prompt. An AI failure returns the apology text instead of
    raising and is not counted.

    Raises:
        HintLimitError: The question already received the maximum hints
        PracticeError: Unknown question
    """
    question = questions_repository.get_question(question_id)
    if question is None or question.subject_id != subject_id:
        raise PracticeError("Questão não encontrada neste assunto.")

    progress = practice_repository.get_progress(student_id, subject_id) or PracticeProgress(
        student_id=student_id, subject_id=subject_id
    )
    used = progress.hint_counts.get(question_id, 0)
    limit = load_app_config().gamification.max_hints_per_question
    if used >= limit:
        raise HintLimitError(limit)

    previous_hints = previous_hints or []
    try:
        if client is None:
            client = LLMClient()
        hint = client.simple_chat(
            system_prompt=get_prompt(
                "tutor/hint",
                previous_hints="\n".join(f"- {h}" for h in previous_hints) or "(nenhuma)",
            ),
            user_message=_format_question(question),
            temperature=0.7,
            max_tokens=300,
        ).strip()
    except LLMError as e:
        logger.warning("practice.hint_failed", question_id=question_id, error=str(e))
        return HintResult(hint=HINT_FAILURE_MESSAGE, generated=False, hints_used=used)

    progress.hint_counts[question_id] = used + 1
    progress.hinted_ids = _append_unique(progress.hinted_ids, question_id)
    practice_repository.save_progress(progress)
    practice_repository.record_activity(student_id, hints=1)

    return HintResult(hint=hint, generated=True, hints_used=used + 1)


def restart(student_id: str, subject_id: str) -> bool:
    """Forget all progress on a subject."""
    deleted = practice_repository.delete_progress(student_id, subject_id)
    logger.info("practice.restarted", student_id=student_id, subject_id=subject_id)
    return deleted
