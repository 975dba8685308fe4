from typing import Any, Dict, List, Optional

import requests

from core.ai.base import AIProvider, extract_json
from core.ai.prompts import to_json_schema
from core.errors import MalformedResponseError, ServiceError
from core.logger import get_logger, log_ai_interaction

logger = get_logger("ai.ollama")

class OllamaProvider(AIProvider):
    """Client for local Ollama API (Sovereign AI)."""

    TIMEOUT: int = 120

    def __init__(self, url: str, model_name: str = "llama3") -> None:
        self.url = url.rstrip("/")
        self.model_name = model_name
        self._delay = 0.0

    def list_models(self) -> List[str]:
        """Fetches models from local Ollama instance."""
        try:
            resp = requests.get(f"{self.url}/api/tags", timeout=5)
            if resp.status_code == 200:
                data = resp.json()
                return [m["name"] for m in data.get("models", [])]
        except requests.RequestException as e:
            logger.error(f"Failed to list Ollama models at {self.url}: {e}")
        return []

    def generate_json(self, prompt: str, stage_label: str = "AI REQUEST",
                      response_schema: Optional[Dict[str, Any]] = None) -> Any:
        """
        Calls Ollama with JSON output forcing. A response schema, when given,
        is passed as structured-output format.
        """
        logger.info(f"Ollama Request [{stage_label}] using {self.model_name}")

        payload = {
            "model": self.model_name,
            "prompt": prompt,
            "format": to_json_schema(response_schema) if response_schema else "json",
            "stream": False,
            "options": {
                "temperature": 0.1,
                "seed": 42
            }
        }

        try:
            resp = requests.post(f"{self.url}/api/generate", json=payload, timeout=self.TIMEOUT)
        except requests.RequestException as e:
            logger.error(f"Ollama connection failed: {e}")
            raise ServiceError("Ollama connection failed", details=str(e)) from e

        if resp.status_code != 200:
            logger.error(f"Ollama error {resp.status_code}: {resp.text}")
            raise ServiceError(f"Ollama returned HTTP {resp.status_code}", details=resp.text[:200])

        try:
            response_text = resp.json().get("response", "")
        except ValueError as e:
            raise MalformedResponseError("Ollama answer is not JSON", details=str(e)) from e
        res_json = extract_json(response_text)
        log_ai_interaction(prompt, response_text, res_json)
        return res_json

    def get_adaptive_delay(self) -> float:
        return self._delay
