import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

from core.errors import MalformedResponseError

_FENCE = re.compile(r"^```(?:json)?\s*|```\s*$", re.MULTILINE)


class AIProvider(ABC):
    """Abstract base class for all AI backends (Gemini, Ollama)."""

    @abstractmethod
    def list_models(self) -> List[str]:
        """Returns available models."""

    @abstractmethod
    def generate_json(self, prompt: str, stage_label: str = "AI REQUEST",
                      response_schema: Optional[Dict[str, Any]] = None) -> Any:
        """
        Executes a structured JSON request.
        Raises ServiceError when the backend fails and MalformedResponseError
        when no JSON object can be recovered from the answer.
        """

    @abstractmethod
    def get_adaptive_delay(self) -> float:
        """Returns current rate-limit delay."""

    def is_ready(self) -> bool:
        """Whether the provider has what it needs (credentials, client) to send requests."""
        return True


def _repair(s: str) -> str:
    """Heuristic JSON repair for common AI mistakes."""
    s = re.sub(r',\s*([\]}])', r'\1', s)  # Remove trailing commas
    s = re.sub(r'}\s*\n\s*"', r'},\n"', s)  # Missing commas between objects
    s = re.sub(r'\]\s*\n\s*"', r'],\n"', s)  # Missing commas between arrays and items
    return s


def _candidates(txt: str, start: int) -> Iterator[str]:
    # 1. Up to the last closing brace
    end = txt.rfind('}')
    if end > start:
        yield txt[start:end + 1]

    # 2. Balanced braces
    depth = 0
    balanced = None
    for idx, char in enumerate(txt[start:]):
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                balanced = txt[start:start + idx + 1]
                break
    current = balanced or txt[start:]
    if balanced:
        yield balanced

    # 3. Heuristic repair
    current = _repair(current)
    yield current

    # 4. Truncated answer: close open braces
    open_braces = current.count('{') - current.count('}')
    if open_braces > 0:
        yield current + ("}" * open_braces)


def extract_json(text: Optional[str]) -> Any:
    """
    Recovers the JSON object from a model answer.
    Strips markdown fences, then tries progressively more tolerant parses.

    Raises:
        MalformedResponseError: if no attempt yields a JSON object.
    """
    if not text:
        raise MalformedResponseError("Empty response from AI backend")

    txt = _FENCE.sub("", text.replace("\x00", "")).strip()
    start = txt.find('{')
    if start == -1:
        raise MalformedResponseError("No JSON object found in AI response", details="missing '{'")

    for candidate in _candidates(txt, start):
        try:
            result = json.loads(candidate, strict=False)
        except json.JSONDecodeError:
            continue
        if isinstance(result, dict):
            return result

    raise MalformedResponseError("JSON syntax error after repair attempts")
