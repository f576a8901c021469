"""
Prompt construction shared by every insight type
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import tiktoken

from journal_insights.core.config import settings
from journal_insights.models.domain import JournalEntry
from .policy import InsightTypePolicy
from .windows import Window

logger = logging.getLogger(__name__)

NO_ENTRIES_TEXT = "No specific entries provided for context."
UNAVAILABLE_TEXT = "Not available"

JSON_ONLY_RULES = (
    "Do not include any introductory text, apologies, explanations, code block markers "
    "(like ```json), or markdown formatting outside the JSON structure itself. Ensure all "
    "string values within the JSON are properly escaped. If the provided context is empty "
    "or insufficient, provide default empty values within the JSON structure (e.g., empty "
    "strings and arrays)."
)


@lru_cache(maxsize=1)
def _cl100k_encoding():
    # cl100k_base approximates Claude's tokenizer closely enough for budgeting
    return tiktoken.get_encoding("cl100k_base")


def tiktoken_counter(text: str) -> int:
    return len(_cl100k_encoding().encode(text))


@dataclass(frozen=True)
class GenerationContext:
    """Everything one run sends to the backend; owned by that run only"""
    policy: InsightTypePolicy
    now: datetime
    window: Window
    context_window: Optional[Window] = None
    dependencies: Dict[str, Optional[str]] = field(default_factory=dict)
    system_prompt: str = ""

    @property
    def entries(self) -> List[JournalEntry]:
        return self.window.entries


class PromptBuilder:
    """Formats entries and dependency payloads into prompt sections.

    The entry context is kept under ``max_context_tokens - reserved_tokens``;
    when the window is larger, the oldest entries are dropped first. The newest
    entry is kept even when it alone exceeds the budget.
    """

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        max_context_tokens: Optional[int] = None,
        reserved_tokens: Optional[int] = None,
        token_counter: Optional[Callable[[str], int]] = None,
    ):
        self.tz = tz
        self.max_context_tokens = (
            settings.MAX_CONTEXT_TOKENS if max_context_tokens is None else max_context_tokens
        )
        self.reserved_tokens = settings.RESERVED_TOKENS if reserved_tokens is None else reserved_tokens
        self.token_counter = token_counter or tiktoken_counter

    @property
    def token_budget(self) -> int:
        return max(self.max_context_tokens - self.reserved_tokens, 0)

    def format_entry(self, entry: JournalEntry, text_limit: Optional[int], include_time: bool = False) -> str:
        local = entry.date.astimezone(self.tz)
        stamp = local.strftime("%Y-%m-%d %H:%M" if include_time else "%Y-%m-%d")
        text = entry.text
        if text_limit is not None and len(text) > text_limit:
            text = text[:text_limit] + "..."
        return f"Date: {stamp}, Mood: {entry.mood.display_name}\n{text}"

    def entries_context(
        self,
        entries: Sequence[JournalEntry],
        text_limit: Optional[int],
        chronological: bool = False,
        include_time: bool = False,
    ) -> str:
        """Join entry summaries; ``entries`` must be newest first"""
        kept: List[str] = []
        total_tokens = 0
        for entry in entries:
            line = self.format_entry(entry, text_limit, include_time)
            tokens = self.token_counter(line)
            if total_tokens + tokens > self.token_budget:
                if not kept:
                    # The newest entry is always sent
                    logger.warning(
                        "Newest entry alone exceeds the prompt budget (%d > %d tokens), keeping it",
                        tokens, self.token_budget,
                    )
                    kept.append(line)
                dropped = len(entries) - len(kept)
                if dropped:
                    logger.info("Prompt budget reached, dropping %d older entries", dropped)
                break
            kept.append(line)
            total_tokens += tokens
        if chronological:
            kept.reverse()
        return "\n\n".join(kept)

    @staticmethod
    def dependency_context(payload: Optional[str]) -> str:
        return payload if payload else UNAVAILABLE_TEXT


def render_json_prompt(
    intro: str,
    sections: Sequence[Tuple[str, str]],
    task: str,
    shape: Dict[str, Any],
    extra_rules: str = "",
) -> str:
    """Assemble a system prompt that demands one JSON object of ``shape``"""
    parts = [intro]
    for title, body in sections:
        parts.append(f"{title}:\n```\n{body or NO_ENTRIES_TEXT}\n```")
    parts.append(task)
    parts.append(
        "You MUST respond ONLY with a single, valid JSON object matching this exact structure:\n"
        + json.dumps(shape, indent=2)
    )
    rules = f"{extra_rules} {JSON_ONLY_RULES}" if extra_rules else JSON_ONLY_RULES
    parts.append(rules)
    return "\n\n".join(parts)
