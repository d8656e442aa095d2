"""
LLM Service: centralized interface for all generative-model calls.

Routes calls to the configured provider (OpenAI Responses API or Google Gemini).
Every study artifact (guides, flashcards, quizzes, unit concepts) goes through
`generate_structured()`, which returns parsed JSON or the caller's fallback.
"""

import base64
import binascii
import json
import re
import time
from typing import Any, Dict, List, Optional, Sequence
from openai import OpenAI, OpenAIError, RateLimitError, APITimeoutError, APIConnectionError
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
import logging

logger = logging.getLogger(__name__)

_DATA_URL_PATTERN = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,(.*)$", re.DOTALL)


def safe_parse_json(raw: Optional[str]) -> Optional[Any]:
    """
    Parse JSON out of model text that may be wrapped in code fences or prose.

    Tries, in order: the trimmed text, the text with a leading/trailing code
    fence removed, the outermost {...} slice, then the outermost [...] slice.

    Returns:
        Parsed JSON value, or None if nothing parses
    """
    if not raw:
        return None
    trimmed = raw.strip()

    parsed = _try_parse(trimmed)
    if parsed is not None:
        return parsed

    without_fence = re.sub(r"^```json\s*", "", trimmed, flags=re.IGNORECASE)
    without_fence = re.sub(r"^```\s*", "", without_fence)
    without_fence = re.sub(r"```$", "", without_fence).strip()

    parsed = _try_parse(without_fence)
    if parsed is not None:
        return parsed

    first_brace = without_fence.find("{")
    last_brace = without_fence.rfind("}")
    if first_brace != -1 and first_brace < last_brace:
        return _try_parse(without_fence[first_brace:last_brace + 1])

    first_bracket = without_fence.find("[")
    last_bracket = without_fence.rfind("]")
    if first_bracket != -1 and first_bracket < last_bracket:
        return _try_parse(without_fence[first_bracket:last_bracket + 1])

    return None


def _try_parse(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None


class LLMService:
    """
    Service for making LLM API calls with retry logic and error handling.

    Transport failures surface as LLMServiceError once retries are exhausted;
    unparseable output is not an error and resolves to the caller's fallback.
    """

    def __init__(
        self,
        api_key: str,
        *,
        provider: str = "openai",
        model_id: str = "gpt-5-mini",
        gemini_api_key: Optional[str] = None,
        max_retries: int = 2,
        initial_retry_delay: float = 1.0,
        timeout: int = 60,
    ):
        self.client = OpenAI(api_key=api_key)
        self.max_retries = max(1, max_retries)
        self.initial_retry_delay = initial_retry_delay
        self.timeout = timeout
        self.provider = provider
        self.model_id = model_id

        if gemini_api_key:
            self.gemini_client = genai.Client(api_key=gemini_api_key)
            self.has_gemini = True
        else:
            self.has_gemini = False

    # ─── Primary entry points ──────────────────────────────────────────

    def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        image_urls: Optional[Sequence[str]] = None,
        max_output_tokens: Optional[int] = None,
        reasoning_effort: Optional[str] = None,
        json_output: bool = False,
    ) -> str:
        """Run one generation and return the trimmed output text."""
        if self.provider == "google":
            text = self._call_gemini(
                system_prompt, user_prompt, image_urls or [], max_output_tokens, json_output
            )
        else:
            text = self._call_responses_api(
                system_prompt, user_prompt, image_urls or [], max_output_tokens, reasoning_effort
            )
        return (text or "").strip()

    def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        fallback: Any,
        *,
        image_urls: Optional[Sequence[str]] = None,
        max_output_tokens: Optional[int] = None,
        reasoning_effort: Optional[str] = None,
    ) -> Any:
        """
        Run one generation and parse its output as JSON.

        Returns:
            The parsed JSON value, or `fallback` when the output is not JSON

        Raises:
            LLMServiceError: if the provider could not be reached
        """
        text = self.generate_text(
            system_prompt,
            user_prompt,
            image_urls=image_urls,
            max_output_tokens=max_output_tokens,
            reasoning_effort=reasoning_effort,
            json_output=True,
        )
        parsed = safe_parse_json(text)
        if parsed is None:
            logger.warning(json.dumps({
                "step": "LLM_PARSE",
                "status": "fallback",
                "model": self.model_id,
                "output_preview": text[:200],
            }))
            return fallback
        return parsed

    # ─── OpenAI Responses API ─────────────────────────────────────────

    def _call_responses_api(
        self,
        system_prompt: str,
        user_prompt: str,
        image_urls: Sequence[str],
        max_output_tokens: Optional[int],
        reasoning_effort: Optional[str],
    ) -> str:
        """Call the OpenAI Responses API with a system and a user message."""
        logger.info(json.dumps({
            "step": "LLM_CALL",
            "status": "starting",
            "model": self.model_id,
            "params": {
                "reasoning_effort": reasoning_effort,
                "max_output_tokens": max_output_tokens,
                "images": len(image_urls),
            }
        }))

        user_content: List[Dict[str, Any]] = [{"type": "input_text", "text": user_prompt}]
        for url in image_urls:
            user_content.append({"type": "input_image", "image_url": url, "detail": "auto"})

        def _api_call():
            kwargs = {
                "model": self.model_id,
                "input": [
                    {"role": "system", "content": [{"type": "input_text", "text": system_prompt}]},
                    {"role": "user", "content": user_content},
                ],
                "timeout": self.timeout,
            }
            if max_output_tokens:
                kwargs["max_output_tokens"] = max_output_tokens
            if reasoning_effort:
                kwargs["reasoning"] = {"effort": reasoning_effort}

            result = self.client.responses.create(**kwargs)
            return result.output_text

        return self._execute_with_retry(_api_call, self.model_id)

    # ─── Gemini ───────────────────────────────────────────────────────

    def _call_gemini(
        self,
        system_prompt: str,
        user_prompt: str,
        image_urls: Sequence[str],
        max_output_tokens: Optional[int],
        json_output: bool = False,
    ) -> str:
        """Call Google Gemini. Returns raw text."""
        if not self.has_gemini:
            raise LLMServiceError("Gemini API key not configured")

        logger.info(json.dumps({
            "step": "LLM_CALL",
            "status": "starting",
            "model": self.model_id,
            "params": {"max_output_tokens": max_output_tokens, "images": len(image_urls)}
        }))

        contents: List[Any] = [user_prompt]
        for url in image_urls:
            match = _DATA_URL_PATTERN.match(url)
            if not match:
                continue
            try:
                data = base64.b64decode(match.group(2), validate=True)
            except binascii.Error as e:
                raise LLMServiceError(f"Malformed image data URL: {e}") from e
            contents.append(types.Part.from_bytes(data=data, mime_type=match.group(1)))

        def _api_call():
            config = {"system_instruction": system_prompt}
            if json_output:
                config["response_mime_type"] = "application/json"
            if max_output_tokens:
                config["max_output_tokens"] = max_output_tokens
            response = self.gemini_client.models.generate_content(
                model=self.model_id, contents=contents, config=config
            )
            return response.text

        return self._execute_with_retry(_api_call, f"Gemini-{self.model_id}")

    # ─── Helpers ──────────────────────────────────────────────────────

    def _execute_with_retry(self, api_call_fn, model_name: str) -> Any:
        """Execute API call with exponential backoff retry logic."""
        last_error = None
        delay = self.initial_retry_delay
        start_time = time.time()

        for attempt in range(self.max_retries):
            try:
                result = api_call_fn()
                duration_ms = int((time.time() - start_time) * 1000)

                logger.info(json.dumps({
                    "step": "LLM_CALL",
                    "status": "complete",
                    "model": model_name,
                    "output": {"response_length": len(str(result)) if result else 0},
                    "duration_ms": duration_ms,
                    "attempts": attempt + 1
                }))
                return result

            except (RateLimitError, APITimeoutError, APIConnectionError, genai_errors.ServerError) as e:
                last_error = e
                if attempt + 1 < self.max_retries:
                    logger.warning(
                        f"{model_name} transient error (attempt {attempt + 1}/{self.max_retries}). "
                        f"Retrying in {delay}s..."
                    )
                    time.sleep(delay)
                    delay *= 2

            except OpenAIError as e:
                logger.error(f"{model_name} API error: {str(e)}")
                raise LLMServiceError(f"{model_name} API error: {str(e)}") from e

            except genai_errors.APIError as e:
                logger.error(f"{model_name} API error: {str(e)}")
                raise LLMServiceError(f"{model_name} API error: {str(e)}") from e

        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(json.dumps({
            "step": "LLM_CALL",
            "status": "failed",
            "model": model_name,
            "error": str(last_error),
            "duration_ms": duration_ms,
            "attempts": self.max_retries
        }))
        raise LLMServiceError(
            f"{model_name} failed after {self.max_retries} attempts. Last error: {str(last_error)}"
        ) from last_error


class LLMServiceError(Exception):
    """Custom exception for LLM service errors"""
    pass


_llm_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """FastAPI dependency: build the LLM service from settings once per process."""
    global _llm_service
    if _llm_service is None:
        from config import get_settings

        settings = get_settings()
        _llm_service = LLMService(
            api_key=settings.openai_api_key,
            provider=settings.llm_provider,
            model_id=settings.llm_model,
            gemini_api_key=settings.gemini_api_key or None,
            max_retries=settings.llm_max_retries,
            timeout=settings.llm_timeout_seconds,
        )
    return _llm_service
