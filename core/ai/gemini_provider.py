import datetime
import random
import time
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from core.ai.base import AIProvider, extract_json
from core.errors import MalformedResponseError, ServiceError
from core.logger import get_logger, log_ai_interaction

logger = get_logger("ai.gemini")

class GeminiProvider(AIProvider):
    """Low-level Gemini API client (Cloud AI)."""

    MAX_RETRIES: int = 5
    MAX_LOGICAL_RETRIES: int = 3
    _cooldown_until: Optional[datetime.datetime] = None
    _adaptive_delay: float = 0.0

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash") -> None:
        self.api_key: str = api_key
        self.model_name: str = model_name
        self.client: Optional[genai.Client] = None

        if not self.api_key:
            logger.warning("Missing API key. Gemini Provider will be inactive.")
        else:
            try:
                self.client = genai.Client(api_key=self.api_key)
            except Exception as e:
                logger.error(f"Failed to initialize Gemini Client: {e}")
                self.client = None

    def is_ready(self) -> bool:
        return self.client is not None

    def list_models(self) -> List[str]:
        if not self.client:
            return []
        models = []
        try:
            for m in self.client.models.list():
                if hasattr(m, "supported_actions") and "generateContent" in m.supported_actions:
                    name = m.name
                    if name.startswith("models/"):
                        name = name[7:]
                    models.append(name)
        except Exception as e:
            logger.error(f"Error listing models: {e}")
        return sorted(models)

    def generate_json(self, prompt: str, stage_label: str = "AI REQUEST",
                      response_schema: Optional[Dict[str, Any]] = None) -> Any:
        """
        Requests a JSON answer. Unparsable answers are retried with the parse
        error appended to the prompt; backend failures raise immediately.
        """
        if not self.client:
            raise ServiceError("Gemini client inactive", details="missing or invalid API key")

        working_prompt = prompt
        last_error: Optional[MalformedResponseError] = None
        for attempt in range(1, self.MAX_LOGICAL_RETRIES + 1):
            txt = self._generate_text(working_prompt, stage_label, response_schema)
            try:
                res_json = extract_json(txt)
            except MalformedResponseError as e:
                last_error = e
                logger.info(f"Logical Retry {attempt}/{self.MAX_LOGICAL_RETRIES} for {stage_label} due to: {e}")
                working_prompt = prompt + f"\n\n### PREVIOUS ATTEMPT FAILED WITH ERROR:\n{e}\n\nPLEASE FIX THE JSON STRUCTURE!"
                time.sleep(1)
                continue

            log_ai_interaction(working_prompt, txt, res_json)
            return res_json

        raise last_error or MalformedResponseError("No parsable answer")

    def _generate_text(self, prompt: str, stage_label: str,
                       response_schema: Optional[Dict[str, Any]]) -> str:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=response_schema,
            temperature=0.1,
        )
        response = self._execute_generate(prompt, config)
        if not response or not response.candidates:
            raise ServiceError("No response from Gemini API", details=stage_label)

        if response.candidates[0].finish_reason == "MAX_TOKENS":
            logger.warning(f"Response for {stage_label} was TRUNCATED!")

        try:
            return response.text or ""
        except Exception as e:
            raise MalformedResponseError("Response text inaccessible", details=str(e)) from e

    def _execute_generate(self, contents: Any, config: Any) -> Any:
        if GeminiProvider._adaptive_delay > 0:
            time.sleep(GeminiProvider._adaptive_delay)

        last_error: Optional[Exception] = None
        for attempt in range(self.MAX_RETRIES):
            self._wait_for_cooldown()
            try:
                response = self.client.models.generate_content(
                    model=self.model_name,
                    contents=contents,
                    config=config
                )
                if GeminiProvider._adaptive_delay > 0:
                    GeminiProvider._adaptive_delay *= 0.5
                    if GeminiProvider._adaptive_delay < 0.2:
                        GeminiProvider._adaptive_delay = 0.0
                return response
            except Exception as e:
                last_error = e
                if self._is_rate_limit_error(e):
                    self._handle_rate_limit(attempt)
                    continue
                logger.warning(f"Attempt {attempt + 1} failed: {e}")
                if self._is_auth_error(e):
                    break
                time.sleep(1)

        logger.error(f"Gemini request failed after retries: {last_error}")
        raise ServiceError("Failed to communicate with the analysis service", details=str(last_error))

    def _is_rate_limit_error(self, e: Exception) -> bool:
        return getattr(e, "code", None) == 429 or "RESOURCE_EXHAUSTED" in str(e)

    def _is_auth_error(self, e: Exception) -> bool:
        return getattr(e, "code", None) in (400, 401, 403) or "API_KEY_INVALID" in str(e)

    def _handle_rate_limit(self, attempt: int) -> None:
        new_delay = max(2.0, GeminiProvider._adaptive_delay * 2.0)
        GeminiProvider._adaptive_delay = min(256.0, new_delay)
        delay = max(2 * (2 ** attempt) + random.uniform(0, 1), GeminiProvider._adaptive_delay)
        logger.info(f"Rate Limit Hit. Backing off for {delay:.1f}s")
        GeminiProvider._cooldown_until = datetime.datetime.now() + datetime.timedelta(seconds=delay)

    def _wait_for_cooldown(self) -> None:
        if GeminiProvider._cooldown_until and GeminiProvider._cooldown_until > datetime.datetime.now():
            wait_time = (GeminiProvider._cooldown_until - datetime.datetime.now()).total_seconds()
            if wait_time > 0:
                time.sleep(wait_time)
        GeminiProvider._cooldown_until = None

    @classmethod
    def get_adaptive_delay(cls) -> float:
        return GeminiProvider._adaptive_delay
