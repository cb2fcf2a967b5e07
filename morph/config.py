"""Morph Configuration — project-level .morphrc.yml support.

Loads configuration from .morphrc.yml (or .morphrc.yaml, .morphrc.json,
morph.config.yml, morph.config.json), searching upward from the working
directory. Command-line flags override whatever the file says.

Example .morphrc.yml:
    validate_ghosts: true
    verify_ensures: false
    check_before_run: true
    log_level: INFO
    format: json
    recursion_limit: 20000
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class MorphConfig:
    """Project-level Morph configuration."""
    # Runtime validation of Ghost-annotated bindings and parameters
    validate_ghosts: bool = True
    # Check solve-block ensures with z3 during `morph check` / `morph run`
    verify_ensures: bool = False
    # Type check before interpreting in `morph run`
    check_before_run: bool = True
    log_level: str = "WARNING"
    # Output: "text" or "json"
    format: str = "text"
    recursion_limit: int = 10000


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".morphrc.yml",
    ".morphrc.yaml",
    ".morphrc.json",
    "morph.config.yml",
    "morph.config.json",
]


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> MorphConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    A missing or unparsable file yields the defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return MorphConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        logger.warning("Cannot read config %s: %s", path, e)
        return MorphConfig()

    try:
        if path.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning("Ignoring malformed config %s: %s", path, e)
        return MorphConfig()

    if not isinstance(data, dict):
        return MorphConfig()

    logger.debug("Loaded config from %s", path)
    return _dict_to_config(data)


def _dict_to_config(data: dict[str, Any]) -> MorphConfig:
    """Convert a parsed dict to MorphConfig. Unknown keys are ignored."""
    config = MorphConfig()

    if "validate_ghosts" in data:
        config.validate_ghosts = bool(data["validate_ghosts"])
    if "verify_ensures" in data:
        config.verify_ensures = bool(data["verify_ensures"])
    if "check_before_run" in data:
        config.check_before_run = bool(data["check_before_run"])
    if "log_level" in data:
        config.log_level = str(data["log_level"]).upper()
    if data.get("format") in ("text", "json"):
        config.format = data["format"]
    if "recursion_limit" in data:
        try:
            config.recursion_limit = int(data["recursion_limit"])
        except (TypeError, ValueError):
            logger.warning("Ignoring non-integer recursion_limit %r", data["recursion_limit"])

    return config
