"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/ai/__init__.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Package for AI-related components: provider backends, prompt
                templates and JSON recovery of model answers.
------------------------------------------------------------------------------
"""

from .base import AIProvider, extract_json
from .gemini_provider import GeminiProvider
from .ollama_provider import OllamaProvider
