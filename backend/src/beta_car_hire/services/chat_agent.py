"""
Support assistant backed by a Gemini model.

The agent classifies the intent of customer messages and writes replies in
the voice of the Beta Car Hire support agent. Model calls are retried with
tenacity; callers receive canned text or a keyword classification when the
model stays unavailable.
"""

import logging
import time
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session
from tenacity import Retrying, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from beta_car_hire.core.constants import (
    CHAT_PROMPT, FALLBACK_REPLY, INTENT_PROMPT, INTENTS, SENDER_ASSISTANT,
)
from beta_car_hire.core.simple_config import SimpleConfig, get_simple_config
from beta_car_hire.schemas import IntentResult
from beta_car_hire.services.chat_service import ChatService
from beta_car_hire.services.genai_client import get_genai_client
from beta_car_hire.services.query_classifier import get_query_classifier
from beta_car_hire.services.response_processor import extract_json_payload

logger = logging.getLogger(__name__)


class ModelResponseError(RuntimeError):
    """The model returned nothing usable."""


class ChatAgent:
    """Intent classification and reply generation for the support chat."""

    def __init__(self, client=None, settings: Optional[SimpleConfig] = None):
        self._client = client
        self.settings = settings or get_simple_config()

    @property
    def client(self):
        if self._client is not None:
            return self._client
        return get_genai_client()

    def _retrying(self) -> Retrying:
        ai = self.settings.ai
        return Retrying(
            stop=stop_after_attempt(max(1, ai.max_retries)),
            wait=wait_exponential(multiplier=ai.retry_delay, max=10),
            reraise=True,
            # No client or an empty answer will not change on a retry
            retry=retry_if_not_exception_type((RuntimeError, ModelResponseError)),
        )

    def _call_model(self, prompt: str) -> str:
        response = self.client.models.generate_content(
            model=self.settings.ai.model_name,
            contents=[{"role": "user", "parts": [{"text": prompt}]}],
            config=self.settings.generation_config(),
        )
        return self._extract_text(response)

    @staticmethod
    def _extract_text(response) -> str:
        text = getattr(response, "text", None)
        if not text:
            candidates = getattr(response, "candidates", None) or []
            if candidates:
                candidate = candidates[0]
                content = getattr(candidate, "content", None)
                parts = getattr(content, "parts", None) or []
                text = "".join(getattr(part, "text", "") or "" for part in parts)
                finish_reason = getattr(candidate, "finish_reason", "UNKNOWN")
                logger.debug(f"Response finish reason: {finish_reason}")

        if not text or not text.strip():
            raise ModelResponseError("Model returned an empty response")
        return text.strip()

    def generate(self, prompt: str) -> str:
        """
        Send a prompt to the model, retrying transient failures.

        Raises:
            Exception: The last error once retries are exhausted
        """
        start = time.time()
        text = self._retrying()(self._call_model, prompt)
        logger.info(f"Model response generated in {time.time() - start:.3f}s")
        return text

    def classify_intent(self, message: str, user_id: Optional[str] = None) -> IntentResult:
        """
        Classify a customer message.

        Falls back to the keyword classifier when the model fails or answers
        with something that is not a valid classification, and to
        ``general_chat`` when no keyword rule matches either.
        """
        prompt = INTENT_PROMPT.format(
            message=message,
            user_id=user_id or "anonymous",
            intents=", ".join(INTENTS),
        )
        try:
            raw = self.generate(prompt)
            payload = extract_json_payload(raw)
            if not isinstance(payload, dict):
                raise ModelResponseError("Intent response is not a JSON object")
            result = IntentResult.model_validate(payload)
            logger.info(f"Intent classified as {result.intent} ({result.confidence:.2f})")
            return result

        except (ValidationError, ModelResponseError) as e:
            logger.warning(f"Unusable intent classification, using keyword rules: {e}")
        except Exception as e:
            logger.error(f"Intent classification failed, using keyword rules: {e}")

        fallback = get_query_classifier().classify_query(message)
        if fallback is not None:
            return fallback
        return IntentResult(intent="general_chat", confidence=0.5, requires_tools=[])

    def process_message(self, db: Session, session_id: str, user_id: str, message: str) -> str:
        """Write a reply to ``message`` using the recent chat history of the session."""
        try:
            history = ChatService(db).recent_history(session_id, self.settings.ai.history_window)
            history_text = "\n".join(
                f"{'Assistant' if chat.sender == SENDER_ASSISTANT else 'User'}: {chat.message}"
                for chat in history
            ) or "No previous conversation."

            prompt = CHAT_PROMPT.format(history=history_text, user_id=user_id, message=message)
            return self.generate(prompt)

        except Exception as e:
            logger.error(f"Error processing message for session {session_id}: {e}", exc_info=True)
            return FALLBACK_REPLY


# Global agent instance
_chat_agent: Optional[ChatAgent] = None


def get_chat_agent() -> ChatAgent:
    """Get the global chat agent instance."""
    global _chat_agent
    if _chat_agent is None:
        _chat_agent = ChatAgent()
    return _chat_agent
