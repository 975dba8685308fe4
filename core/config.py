"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/config.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Manages application configuration using QSettings. Standardizes
                paths for configuration and data across different platforms
                (XDG standards on Linux).
------------------------------------------------------------------------------
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from PyQt6.QtCore import QSettings, QStandardPaths


class AppConfig:
    """
    Persistent DeweyFlux settings (AI backend, library placement, logging)
    stored via QSettings, one scope per profile.
    """

    KEY_AI_PROVIDER: str = "ai_provider"  # "gemini" or "ollama"
    KEY_API_KEY: str = "api_key"
    KEY_GEMINI_MODEL: str = "gemini_model"
    KEY_OLLAMA_URL: str = "ollama_url"
    KEY_OLLAMA_MODEL: str = "ollama_model"
    KEY_PLACEMENT: str = "placement_strategy"  # "digits" or "path"
    KEY_BASELINE: str = "baseline_source"
    KEY_LIBRARY_FILE: str = "library_file"
    KEY_LOG_LEVEL: str = "log_level"
    KEY_LOG_COMPONENTS: str = "log_components"

    DEFAULT_PROVIDER: str = "gemini"
    DEFAULT_MODEL: str = "gemini-2.5-flash"
    DEFAULT_PLACEMENT: str = "digits"
    PLACEMENT_CHOICES: tuple = ("digits", "path")
    PROVIDER_CHOICES: tuple = ("gemini", "ollama")

    APP_ID: str = "deweyflux"
    _active_profile: Optional[str] = None

    def __init__(self, profile: Optional[str] = None) -> None:
        """
        Args:
            profile: Optional profile name (e.g. 'dev', 'test'). Each profile
                     gets its own settings scope and data directory
                     (deweyflux-<profile>). Omitted, the last profile
                     selected in this process is reused.
        """
        if profile is None:
            profile = AppConfig._active_profile
        else:
            AppConfig._active_profile = profile

        self.profile = profile
        self.active_id = f"{self.APP_ID}-{profile}" if profile else self.APP_ID
        self.settings = QSettings(self.active_id, self.active_id)

    def get_data_dir(self) -> Path:
        """Flat per-profile data directory, e.g. ~/.local/share/deweyflux-dev/."""
        base = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericDataLocation)
        data_dir = Path(base) / self.active_id
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def _get_setting(self, group: str, key: str, default: Any = None) -> Any:
        """Reads '<group>/<key>' (or a top-level key when group is empty)."""
        full_key = f"{group}/{key}" if group else key
        return self.settings.value(full_key, default)

    def _set_setting(self, group: str, key: str, value: Any) -> None:
        """Writes '<group>/<key>'. Strings are stored stripped."""
        if isinstance(value, str):
            value = value.strip()
        full_key = f"{group}/{key}" if group else key
        self.settings.setValue(full_key, value)

    # --- AI ---

    def get_ai_provider(self) -> str:
        """Retrieves the active AI provider ('gemini' or 'ollama')."""
        val = str(self._get_setting("AI", self.KEY_AI_PROVIDER, self.DEFAULT_PROVIDER))
        return val if val in self.PROVIDER_CHOICES else self.DEFAULT_PROVIDER

    def set_ai_provider(self, provider: str) -> None:
        """Saves the active AI provider."""
        if provider not in self.PROVIDER_CHOICES:
            raise ValueError(f"Unknown AI provider: {provider}")
        self._set_setting("AI", self.KEY_AI_PROVIDER, provider)

    def get_api_key(self) -> str:
        """
        Retrieves the Gemini API key, falling back to environment variables.

        Returns:
            The API key string.
        """
        env_key = os.environ.get("GEMINI_API_KEY", "")
        val = self._get_setting("AI", self.KEY_API_KEY)
        if val is None or str(val).strip() == "":
            return env_key
        return str(val)

    def set_api_key(self, key: str) -> None:
        """Saves the Gemini API key."""
        self._set_setting("AI", self.KEY_API_KEY, key)

    def get_gemini_model(self) -> str:
        """Retrieves the configured Gemini model name."""
        return str(self._get_setting("AI", self.KEY_GEMINI_MODEL, self.DEFAULT_MODEL))

    def set_gemini_model(self, model: str) -> None:
        """Saves the Gemini model name."""
        self._set_setting("AI", self.KEY_GEMINI_MODEL, model)

    def get_ollama_url(self) -> str:
        """Retrieves the Ollama API URL."""
        return str(self._get_setting("AI", self.KEY_OLLAMA_URL, "http://localhost:11434"))

    def set_ollama_url(self, url: str) -> None:
        """Saves the Ollama API URL."""
        self._set_setting("AI", self.KEY_OLLAMA_URL, url)

    def get_ollama_model(self) -> str:
        """Retrieves the Ollama model name."""
        return str(self._get_setting("AI", self.KEY_OLLAMA_MODEL, "llama3"))

    def set_ollama_model(self, model: str) -> None:
        """Saves the Ollama model name."""
        self._set_setting("AI", self.KEY_OLLAMA_MODEL, model)

    # --- Library ---

    def get_placement_strategy(self) -> str:
        """
        Retrieves the placement strategy used to shelve records.

        Returns:
            'digits' (code-digit prefixes) or 'path' (classification path).
        """
        val = str(self._get_setting("Library", self.KEY_PLACEMENT, self.DEFAULT_PLACEMENT))
        return val if val in self.PLACEMENT_CHOICES else self.DEFAULT_PLACEMENT

    def set_placement_strategy(self, strategy: str) -> None:
        """Saves the placement strategy."""
        if strategy not in self.PLACEMENT_CHOICES:
            raise ValueError(f"Unknown placement strategy: {strategy}")
        self._set_setting("Library", self.KEY_PLACEMENT, strategy)

    def get_baseline_source(self) -> str:
        """
        Retrieves the baseline library location (file path or http(s) URL).
        An empty string disables baseline loading.
        """
        return str(self._get_setting("Library", self.KEY_BASELINE, ""))

    def set_baseline_source(self, source: str) -> None:
        """Saves the baseline library location."""
        self._set_setting("Library", self.KEY_BASELINE, source)

    def get_library_file(self) -> Path:
        """Returns the path of the locally persisted library document."""
        val = str(self._get_setting("Library", self.KEY_LIBRARY_FILE, ""))
        if val:
            return Path(val)
        return self.get_data_dir() / "library.json"

    def set_library_file(self, path: str) -> None:
        """Saves a custom location for the library document."""
        self._set_setting("Library", self.KEY_LIBRARY_FILE, path)

    # --- Logging ---

    def get_log_level(self) -> str:
        """Retrieves the global log level."""
        return str(self._get_setting("Logging", self.KEY_LOG_LEVEL, "WARNING"))

    def set_log_level(self, level: str) -> None:
        """Saves the global log level."""
        self._set_setting("Logging", self.KEY_LOG_LEVEL, level.upper())

    def get_log_components(self) -> dict:
        """Retrieves a dictionary of component-specific log levels."""
        raw = str(self._get_setting("Logging", self.KEY_LOG_COMPONENTS, "{}"))
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def set_log_components(self, components: dict) -> None:
        """Saves a dictionary of component-specific log levels."""
        self._set_setting("Logging", self.KEY_LOG_COMPONENTS, json.dumps(components))

    def get_log_file_path(self) -> Path:
        """Returns the absolute path to the log file."""
        return self.get_data_dir() / "app.log"
