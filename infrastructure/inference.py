# ============================================================================
# GEMINI INFERENCE BACKEND
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - Inference collaborator
# PURPOSE: Send a video inline with the task descriptor to a Gemini model
# CREATED: 19 OCT 2026
# ============================================================================
"""
Gemini Inference Backend

Uses the google-generativeai SDK. The artifact bytes are sent inline with
the fixed prompt to the model named by the tier; the response text and
usage counters come back as an InferenceResponse.

SDK errors (google.api_core exceptions) propagate unchanged: they carry an
HTTP `code`, which the retry policy maps (429/5xx retryable, 4xx fatal,
quota and permission messages fatal).

Environment:
    GEMINI_API_KEY  (GOOGLE_API_KEY accepted as fallback)
"""

import logging
import os
from typing import Optional

import google.generativeai as genai

from core.config import InferenceTier
from core.errors import CollaboratorNotConfiguredError, InferenceBlockedError
from core.models import TokenUsage
from worker.contracts import InferenceBackend, InferenceResponse

logger = logging.getLogger(__name__)


def get_gemini_api_key() -> Optional[str]:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")


class GeminiInferenceBackend(InferenceBackend):
    """
    Inference collaborator backed by Google Gemini.

    Args:
        api_key: Gemini API key (defaults to GEMINI_API_KEY)
        temperature: Sampling temperature for descriptions
    """

    def __init__(self, api_key: Optional[str] = None, temperature: float = 0.2):
        self.api_key = api_key or get_gemini_api_key()
        self.temperature = temperature

        if self.api_key:
            genai.configure(api_key=self.api_key)
        else:
            logger.warning("Gemini API key not configured")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def infer(
        self,
        data: bytes,
        mime_type: str,
        prompt: str,
        tier: InferenceTier,
        timeout_seconds: Optional[float] = None,
    ) -> InferenceResponse:
        if not self.api_key:
            raise CollaboratorNotConfiguredError("Gemini is not configured", stage="infer")

        model = genai.GenerativeModel(
            model_name=tier.model,
            generation_config=genai.GenerationConfig(
                temperature=self.temperature,
                response_mime_type="application/json",
            ),
        )

        request_options = {"timeout": timeout_seconds} if timeout_seconds else None
        logger.info(f"Calling {tier.model} with {len(data)} bytes ({mime_type})")

        response = await model.generate_content_async(
            [prompt, {"mime_type": mime_type, "data": data}],
            request_options=request_options,
        )

        try:
            text = response.text
        except ValueError as e:
            # No candidate text: safety block or empty response
            feedback = getattr(response, "prompt_feedback", None)
            raise InferenceBlockedError(
                f"{tier.model} returned no text: {feedback or e}", stage="infer"
            ) from e

        if not text or not text.strip():
            raise InferenceBlockedError(f"{tier.model} returned an empty response", stage="infer")

        usage = TokenUsage.from_metadata(getattr(response, "usage_metadata", None))
        logger.debug(
            f"{tier.model} usage: prompt={usage.prompt_tokens}, "
            f"candidates={usage.candidates_tokens}, total={usage.total_tokens}"
        )
        return InferenceResponse(text=text, usage=usage, model=tier.model)


__all__ = ["GeminiInferenceBackend", "get_gemini_api_key"]
