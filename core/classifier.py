"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/classifier.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Classification service client. Sends document text to the
                configured AI provider and validates the structured answer
                (title, summary, keywords, DDC path, ontological report).
------------------------------------------------------------------------------
"""

from typing import Optional

from pydantic import ValidationError

from core.ai.base import AIProvider
from core.ai.gemini_provider import GeminiProvider
from core.ai.ollama_provider import OllamaProvider
from core.ai.prompts import CLASSIFICATION_SCHEMA, build_classification_prompt
from core.config import AppConfig
from core.errors import MalformedResponseError, MissingFieldError, ServiceError
from core.logger import get_logger
from core.models.record import ClassificationResponse

logger = get_logger("ai.classifier")


def create_provider(config: AppConfig) -> AIProvider:
    """Instantiates the AI backend selected in the configuration."""
    if config.get_ai_provider() == "ollama":
        return OllamaProvider(url=config.get_ollama_url(), model_name=config.get_ollama_model())
    return GeminiProvider(api_key=config.get_api_key(), model_name=config.get_gemini_model())


class DocumentClassifier:
    """
    Turns raw document text into a validated ClassificationResponse.
    """

    def __init__(self, provider: AIProvider) -> None:
        self.provider = provider

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None) -> "DocumentClassifier":
        return cls(create_provider(config or AppConfig()))

    def is_ready(self) -> bool:
        return self.provider.is_ready()

    def classify(self, text: str) -> ClassificationResponse:
        """
        Classifies one document.

        Args:
            text: The full plain-text content.

        Returns:
            The validated classification.

        Raises:
            ServiceError: Backend unavailable, credential missing or empty input.
            MalformedResponseError: The answer is not a JSON object.
            MissingFieldError: Required fields are absent or invalid.
        """
        if not text or not text.strip():
            raise ServiceError("Text content is required.")
        if not self.provider.is_ready():
            raise ServiceError("Please configure your AI API key before processing a file.")

        prompt = build_classification_prompt(text)
        data = self.provider.generate_json(prompt, stage_label="CLASSIFICATION", response_schema=CLASSIFICATION_SCHEMA)

        if not isinstance(data, dict):
            raise MalformedResponseError("AI response is not a JSON object", details=type(data).__name__)

        try:
            result = ClassificationResponse.model_validate(data)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors()})
            logger.warning(f"Incomplete AI response, invalid fields: {fields}")
            raise MissingFieldError("AI response is missing required fields.", details=", ".join(fields)) from e

        logger.info(f"Classified '{result.title}' as DDC {result.ddc.number}")
        return result
