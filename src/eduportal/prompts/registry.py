"""Prompt Registry - Load prompts from external files.

Prompts live as Markdown files under the project's prompts/ directory and
support {variable} substitution.

Usage:
    from eduportal.prompts.registry import get_prompt

    prompt = get_prompt("study/flashcards", topic="Crase", count=10)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

# Default prompts directory (relative to project root)
PROMPTS_DIR = Path(__file__).parent.parent.parent.parent / "prompts"


def _get_prompt_uncached(key: str) -> str:
    """Load raw prompt from file.

    Raises:
        FileNotFoundError: If prompt file doesn't exist
    """
    file_path = PROMPTS_DIR / f"{key}.md"
    if not file_path.exists():
        raise FileNotFoundError(f"Prompt not found: {key} (looked at {file_path})")
    return file_path.read_text(encoding="utf-8")


@lru_cache(maxsize=32)
def _get_cached_prompt(key: str) -> str:
    return _get_prompt_uncached(key)


def get_prompt(key: str, use_cache: bool = True, **variables: object) -> str:
    """Load prompt and substitute {name} placeholders.

    Args:
        key: Path-like key, e.g. "extraction/chunk_questions"
        use_cache: Whether to use the cached file contents
        **variables: Values for the placeholders

    Returns:
        Prompt text

    Raises:
        FileNotFoundError: If prompt file doesn't exist
    """
    content = _get_cached_prompt(key) if use_cache else _get_prompt_uncached(key)
    for var_name, var_value in variables.items():
        content = content.replace(f"{{{var_name}}}", str(var_value))
    return content


def list_prompts() -> list[str]:
    """All available prompt keys, sorted."""
    if not PROMPTS_DIR.exists():
        logger.warning("prompts.dir_not_found", path=str(PROMPTS_DIR))
        return []
    return sorted(
        path.relative_to(PROMPTS_DIR).with_suffix("").as_posix()
        for path in PROMPTS_DIR.rglob("*.md")
    )


def clear_cache() -> None:
    """Clear the prompt cache."""
    _get_cached_prompt.cache_clear()
