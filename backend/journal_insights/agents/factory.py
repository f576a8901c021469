import logging
import os
from typing import Optional

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel

from journal_insights.core.config import settings, get_anthropic_api_key

logger = logging.getLogger(__name__)


class AgentFactory:
    """Factory for the agents used by insight generation"""

    _model: Optional[Model] = None

    @classmethod
    def get_model(cls) -> Model:
        """Anthropic model shared by every insight agent (created on first use)"""
        if cls._model is None:
            api_key = get_anthropic_api_key()
            if api_key:
                os.environ["ANTHROPIC_API_KEY"] = api_key
            else:
                logger.error("No Anthropic API key found")
            cls._model = AnthropicModel(settings.ANTHROPIC_INSIGHTS_MODEL)
            logger.info("AnthropicModel initialized: %s", settings.ANTHROPIC_INSIGHTS_MODEL)
        return cls._model

    @classmethod
    def get_insight_agent(cls, system_prompt: str, model: Optional[Model] = None) -> Agent:
        """Create a plain-text agent carrying one insight system prompt"""
        return Agent(model=model or cls.get_model(), system_prompt=system_prompt)
