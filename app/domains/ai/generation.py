"""Career counselor reply generation backed by Google Gemini.

``GenerationClient.generate`` is total: whatever happens upstream, the caller
receives text. Overloaded responses (HTTP 503) are retried a fixed number of
times with a fixed delay; when retries run out, or on any other failure, the
client logs the problem and returns ``FALLBACK_RESPONSE``.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Mapping
from functools import partial
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import HarmBlockThreshold, HarmCategory
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from app.core.config import settings
from app.exceptions.ai import (
    AIConfigurationError,
    AIContentFilterError,
    AIServiceError,
    AIServiceUnavailableError,
    AITimeoutError,
)


logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "Sorry, the service is temporarily unavailable. Please try again shortly."

USER_LABEL = "User"
COUNSELOR_LABEL = "Career Counselor"

SYSTEM_PROMPT = """You are a professional career counselor. Provide helpful, actionable career advice. Be supportive, practical, and focus on concrete steps the user can take.

Format your responses with:
- Clear paragraphs separated by double line breaks
- Use bullet points (•) for lists when appropriate
- Keep responses under 300 words and conversational
- Make your advice specific and actionable

"""

_EXTRA_BLANK_LINES = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")
_NUMBERED_MARKER = re.compile(r"^([ \t]*)\d+\.[ \t]+", re.MULTILINE)


def _role_and_content(turn: Any) -> tuple[str, str]:
    if isinstance(turn, Mapping):
        role, content = turn["role"], turn["content"]
    else:
        role, content = turn.role, turn.content
    return getattr(role, "value", role), content


def build_prompt(history: Iterable[Any]) -> str:
    """Compose the single prompt sent to the model.

    Args:
        history: Ordered turns, as ``{role, content}`` mappings or objects
            exposing ``role`` and ``content``.

    Returns:
        System instruction, one labelled line per turn and a trailing cue
        for the counselor's next reply.
    """
    lines = []
    for turn in history:
        role, content = _role_and_content(turn)
        label = USER_LABEL if role == "user" else COUNSELOR_LABEL
        lines.append(f"{label}: {content}")

    return SYSTEM_PROMPT + "\n".join(lines) + f"\n{COUNSELOR_LABEL}:"


def format_response(text: str) -> str:
    """Normalize model output for consistent rendering."""
    formatted = text.strip()
    formatted = _EXTRA_BLANK_LINES.sub("\n\n", formatted)
    formatted = _NUMBERED_MARKER.sub(r"\1• ", formatted)
    return formatted


def is_overloaded(error: Exception) -> bool:
    """Whether an upstream error means the model is overloaded or temporarily unavailable."""
    if isinstance(error, google_exceptions.ServiceUnavailable):
        return True
    code = getattr(error, "code", None)
    if code is None:
        code = getattr(error, "status_code", None)
    return code == 503


class GenerationClient:
    """Stateless request/response wrapper around the Gemini text generation API."""

    def __init__(
        self,
        model: Any | None = None,
        model_name: str | None = None,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
        timeout: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            model: Object exposing ``generate_content(prompt)``. Built from
                settings when omitted and an API key is configured.
            model_name: Model identifier recorded on assistant turns.
            max_attempts: Total attempts when the model is overloaded.
            retry_delay: Seconds to wait between overloaded attempts.
            timeout: Per-attempt timeout in seconds.
            sleep: Awaitable used for the retry wait.
        """
        self.model_name = model_name or settings.gemini_model
        self.max_attempts = max_attempts or settings.ai_max_retry_attempts
        self.retry_delay = settings.ai_retry_delay_seconds if retry_delay is None else retry_delay
        self.timeout = timeout or settings.ai_request_timeout
        self._sleep = sleep
        self.model = model

        if self.model is None and settings.gemini_api_key:
            try:
                self.model = self._initialize_client()
            except AIConfigurationError as e:
                logger.error(f"Generation client unavailable: {e.message}")

    @property
    def is_configured(self) -> bool:
        return self.model is not None

    def _initialize_client(self):
        """Initialize Google Gemini client."""
        try:
            genai.configure(api_key=settings.gemini_api_key)

            model = genai.GenerativeModel(
                model_name=self.model_name,
                safety_settings={
                    HarmCategory.HARM_CATEGORY_HARASSMENT: (HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
                    HarmCategory.HARM_CATEGORY_HATE_SPEECH: (HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
                    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: (HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
                    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: (HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
                },
                generation_config=genai.types.GenerationConfig(
                    candidate_count=1,
                    max_output_tokens=settings.gemini_max_tokens,
                    temperature=settings.ai_temperature,
                ),
            )
            logger.info(f"Gemini client initialized with model: {self.model_name}")
            return model

        except Exception as e:
            raise AIConfigurationError(f"Failed to initialize AI service: {str(e)}") from e

    async def generate(self, history: Iterable[Any]) -> str:
        """Generate the counselor's next reply for an ordered conversation.

        Never raises for upstream problems; returns ``FALLBACK_RESPONSE`` instead.
        """
        try:
            if not self.model:
                raise AIConfigurationError("Gemini API key not configured")

            prompt = build_prompt(history)
            text = await self._generate_content_with_retry(prompt)
            return format_response(text)

        except AIServiceUnavailableError:
            logger.error(f"Model still overloaded after {self.max_attempts} attempts, returning fallback reply")
            return FALLBACK_RESPONSE
        except AIServiceError as e:
            logger.error(f"Generation degraded to fallback reply: {e.message}")
            return FALLBACK_RESPONSE
        except Exception as e:
            logger.error(f"Unexpected generation error, returning fallback reply: {str(e)}")
            return FALLBACK_RESPONSE

    async def _generate_content_with_retry(self, prompt: str) -> str:
        """Call the model, retrying overloaded attempts with a fixed delay."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(AIServiceUnavailableError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_delay),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )
        return await retrying(self._generate_content_async, prompt)

    async def _generate_content_async(self, prompt: str) -> str:
        """Make one Gemini call off the event loop."""
        loop = asyncio.get_running_loop()
        try:
            response = await asyncio.wait_for(
                loop.run_in_executor(None, partial(self.model.generate_content, prompt)),
                timeout=self.timeout,
            )
        except TimeoutError:
            raise AITimeoutError("AI request timed out") from None
        except Exception as e:
            if is_overloaded(e):
                logger.warning(f"Gemini model overloaded: {str(e)}")
                raise AIServiceUnavailableError(f"Model overloaded: {str(e)}") from e
            raise AIServiceError(f"AI generation failed: {str(e)}") from e

        if not response or not getattr(response, "candidates", None):
            if hasattr(response, "prompt_feedback"):
                logger.error(f"Prompt feedback: {response.prompt_feedback}")
            raise AIContentFilterError()

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate has no text parts
            raise AIContentFilterError() from e

        if not text or not text.strip():
            raise AIServiceError("Empty response from AI service")

        return text
