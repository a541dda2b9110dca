"""
AI configuration for the Beta Car Hire support assistant.

Kept apart from the main configuration so the API can start (and serve the
fleet and bookings) even when no model credentials are present.
"""

import logging
from typing import Dict, Any, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class SimpleAIConfig(BaseSettings):
    """Generative model settings."""

    model_config = SettingsConfigDict(extra="ignore", protected_namespaces=())

    # Credentials
    api_key: Optional[str] = Field(default=None, validation_alias="GEMINI_API_KEY")
    use_vertexai: bool = Field(default=False, validation_alias="GOOGLE_GENAI_USE_VERTEXAI")
    project_id: Optional[str] = Field(default=None, validation_alias="GOOGLE_CLOUD_PROJECT")
    location: str = Field(default="us-central1", validation_alias="GOOGLE_CLOUD_LOCATION")

    # Model settings
    model_name: str = Field(default="gemini-1.5-flash", validation_alias="AI_MODEL")
    max_tokens: int = Field(default=400, validation_alias="AI_MAX_TOKENS")
    temperature: float = Field(default=0.1, validation_alias="AI_TEMPERATURE")

    # Number of stored chats replayed to the model as conversation history
    history_window: int = Field(default=5, validation_alias="AI_HISTORY_WINDOW")

    # Retry settings
    max_retries: int = Field(default=3, validation_alias="AI_MAX_RETRIES")
    retry_delay: float = Field(default=1.0, validation_alias="AI_RETRY_DELAY")


class SimpleConfig:
    """Main simplified configuration class."""

    def __init__(self):
        """Initialize configuration."""
        try:
            self.ai = SimpleAIConfig()
            logger.info("AI configuration loaded successfully")
        except Exception as e:
            logger.error(f"AI configuration loading failed: {e}")
            raise

    @property
    def has_credentials(self) -> bool:
        if self.ai.use_vertexai:
            return bool(self.ai.project_id)
        return bool(self.ai.api_key)

    def generation_config(self) -> Dict[str, Any]:
        """Generation parameters passed with every model call."""
        return {
            "temperature": self.ai.temperature,
            "max_output_tokens": self.ai.max_tokens,
            "candidate_count": 1,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (credentials excluded)."""
        return {
            "model_name": self.ai.model_name,
            "use_vertexai": self.ai.use_vertexai,
            "max_tokens": self.ai.max_tokens,
            "temperature": self.ai.temperature,
            "history_window": self.ai.history_window,
            "retry": {
                "max_retries": self.ai.max_retries,
                "retry_delay": self.ai.retry_delay
            }
        }


# Global configuration instance
simple_config = SimpleConfig()


def get_simple_config() -> SimpleConfig:
    """Get the global simplified configuration instance."""
    return simple_config
