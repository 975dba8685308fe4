"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/logger.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Centralized logging for DeweyFlux. Console output goes to
                stderr so command results on stdout stay parsable. Supports
                an optional log file, per-component levels and raw AI
                interaction dumps for debugging classification requests.
------------------------------------------------------------------------------
"""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

APP_LOGGER_NAME = "deweyflux"

DEFAULT_FORMAT = "%(asctime)s [%(levelname).4s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Raw AI dumps are cut to keep log files readable with long source documents
MAX_DUMP_CHARS = 4000


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    component_levels: Optional[Dict[str, str]] = None
) -> logging.Logger:
    """
    (Re)configures the 'deweyflux' logger tree.

    Args:
        level: Default level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional file receiving the same records as the console.
        component_levels: Mapping of component names (e.g. 'ai.gemini') to levels.

    Returns:
        The application root logger.
    """
    root = logging.getLogger(APP_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    formatter = logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    handlers: list = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(path), encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for component, cmp_level in (component_levels or {}).items():
        set_component_level(component, cmp_level)
    return root


def get_logger(name: str) -> logging.Logger:
    """Returns the component logger 'deweyflux.<name>'."""
    if name == APP_LOGGER_NAME or name.startswith(APP_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


def set_component_level(component: str, level: str) -> None:
    """Overrides the level of one component. Unknown level names are ignored."""
    numeric_level = getattr(logging, level.upper(), None)
    if isinstance(numeric_level, int):
        get_logger(component).setLevel(numeric_level)


def _clip(text: str) -> str:
    if len(text) <= MAX_DUMP_CHARS:
        return text
    return f"{text[:MAX_DUMP_CHARS]}... [{len(text) - MAX_DUMP_CHARS} chars omitted]"


def log_ai_interaction(prompt: str, response: str, payload: Optional[dict] = None) -> None:
    """
    Dumps one AI round trip on 'deweyflux.ai.raw' at DEBUG level.
    Enable with component level {"ai.raw": "DEBUG"}.
    """
    logger = get_logger("ai.raw")
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(f"=== AI PROMPT ===\n{_clip(prompt)}")
    logger.debug(f"=== AI RESPONSE ===\n{_clip(response or '')}")
    if payload:
        logger.debug(f"=== AI PAYLOAD (EXTRACTED) ===\n{json.dumps(payload, indent=2, ensure_ascii=False)}")
