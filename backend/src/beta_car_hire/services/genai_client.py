"""
GenAI client initialization module.
This module handles the initialization of the Google GenAI client once at startup.
"""
import logging
from typing import Optional

from google import genai

from beta_car_hire.core.simple_config import get_simple_config

logger = logging.getLogger(__name__)

# Global client instance
_genai_client = None


def initialize_genai_client(client: Optional[object] = None):
    """
    Initialize the GenAI client with proper configuration.

    Uses an API key unless GOOGLE_GENAI_USE_VERTEXAI is set, in which case the
    client talks to Vertex AI with application default credentials.
    A ready-made client may be passed in instead (used by tests).
    """
    global _genai_client

    if client is not None:
        _genai_client = client
        logger.info("GenAI client installed")
        return _genai_client

    ai = get_simple_config().ai
    try:
        if ai.use_vertexai:
            if not ai.project_id:
                raise ValueError("GOOGLE_CLOUD_PROJECT environment variable is required for Vertex AI")
            _genai_client = genai.Client(
                vertexai=True,
                project=ai.project_id,
                location=ai.location
            )
            logger.info(f"GenAI client initialized for Vertex AI project {ai.project_id} in {ai.location}")
        else:
            if not ai.api_key:
                raise ValueError("GEMINI_API_KEY environment variable is required")
            _genai_client = genai.Client(api_key=ai.api_key)
            logger.info("GenAI client initialized with API key")

    except Exception as e:
        logger.error(f"Failed to initialize GenAI client: {str(e)}")
        raise

    return _genai_client


def get_genai_client():
    """
    Get the initialized GenAI client.
    """
    if _genai_client is None:
        raise RuntimeError("GenAI client not initialized. Call initialize_genai_client() first.")

    return _genai_client


def is_client_initialized() -> bool:
    """
    Check if the GenAI client has been initialized.
    """
    return _genai_client is not None


def reset_genai_client():
    """Forget the current client."""
    global _genai_client
    _genai_client = None
