"""
Generation backend: system prompt + user message in, text or a decoded model out
"""
import logging
from typing import Optional, Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError, UnexpectedModelBehavior, UserError
from pydantic_ai.models import Model

from journal_insights.insights.errors import BackendMalformed, BackendRefused, BackendTransport
from .factory import AgentFactory

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

REFUSAL_MARKERS = ("content filter", "content_filter", "refus")


class GenerationBackend(Protocol):
    async def generate_text(self, system_prompt: str, user_message: str) -> str:
        ...

    async def generate_structured(self, system_prompt: str, user_message: str, result_schema: Type[M]) -> M:
        ...


def strip_json_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper the model may add despite instructions"""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


class PydanticAIBackend:
    """GenerationBackend running a pydantic-ai agent per request.

    Calls are not retried here; a failed call surfaces as a backend error and
    the next scheduled trigger retries it.
    """

    def __init__(self, model: Optional[Model] = None):
        self.model = model

    async def generate_text(self, system_prompt: str, user_message: str) -> str:
        try:
            agent = AgentFactory.get_insight_agent(system_prompt, model=self.model)
            result = await agent.run(user_message)
        except ModelHTTPError as e:
            raise BackendTransport(f"HTTP {e.status_code} from {e.model_name}") from e
        except UnexpectedModelBehavior as e:
            if any(marker in str(e).lower() for marker in REFUSAL_MARKERS):
                raise BackendRefused(str(e)) from e
            raise BackendMalformed(str(e)) from e
        except (AgentRunError, UserError, httpx.HTTPError, OSError) as e:
            raise BackendTransport(str(e)) from e

        text = (result.output or "").strip()
        if not text:
            logger.warning("Received empty text content from model, treating as refusal")
            raise BackendRefused("Received empty text content from model")
        return text

    async def generate_structured(self, system_prompt: str, user_message: str, result_schema: Type[M]) -> M:
        text = await self.generate_text(system_prompt, user_message)
        cleaned = strip_json_fences(text)
        try:
            return result_schema.model_validate_json(cleaned)
        except ValidationError as e:
            logger.warning("Failed to decode %s from model output: %s", result_schema.__name__, cleaned[:300])
            raise BackendMalformed(f"Output did not match {result_schema.__name__}: {e}") from e
