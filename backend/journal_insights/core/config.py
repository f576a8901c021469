from pydantic_settings import BaseSettings
from typing import List
import logging
import os
import boto3
from functools import lru_cache

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_anthropic_api_key() -> str:
    """Get Anthropic API key from environment or SSM Parameter Store (cached)"""
    # Environment first (local development and Lambda)
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if api_key:
        return api_key

    param_name = os.getenv("ANTHROPIC_API_KEY_PARAM")
    if param_name:
        try:
            ssm = boto3.client('ssm', config=boto3.session.Config(
                retries={'max_attempts': 2, 'mode': 'standard'},
                read_timeout=10,
                connect_timeout=5
            ))
            response = ssm.get_parameter(Name=param_name, WithDecryption=True)
            return response['Parameter']['Value']
        except Exception as e:
            logger.error("Failed to load API key from SSM: %s", e)
            return ""

    return ""


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = ""

    # Anthropic model used for every insight type
    ANTHROPIC_INSIGHTS_MODEL: str = "claude-sonnet-4-20250514"

    # Calendar used for activity windows and fixed prior weeks
    INSIGHTS_TIMEZONE: str = "UTC"

    # Prompt budget (tokens, cl100k_base approximation)
    MAX_CONTEXT_TOKENS: int = 150000
    RESERVED_TOKENS: int = 10000

    # Logging / debug
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Application
    APP_NAME: str = "Journal Insights Engine"
    VERSION: str = "1.0.0"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
