import codecs
import logging
import os
import re
from pathlib import Path
from typing import Any, TypedDict

import yaml

from respond.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Default config file name
DEFAULT_CONFIG_FILE = "respond.config.yaml"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


class JsonSettings(TypedDict, total=False):
    ensure_ascii: bool
    sort_keys: bool


class ResponseSettings(TypedDict, total=False):
    encoding: str
    chunk_size: int
    json: JsonSettings


DEFAULT_SETTINGS: ResponseSettings = {
    "encoding": "utf-8",
    "chunk_size": 64 * 1024,
    "json": {"ensure_ascii": True, "sort_keys": False},
}

_active_settings: ResponseSettings = {
    **DEFAULT_SETTINGS,
    "json": dict(DEFAULT_SETTINGS["json"]),
}


def load_raw_config(config_path: str | Path) -> dict[str, Any]:
    """
    Load a configuration file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Dictionary containing the configuration.

    Raises:
        ConfigError: If the configuration file is missing or could not be loaded.
    """
    config_path_obj = Path(config_path)
    if not config_path_obj.exists():
        raise ConfigError(f"Configuration file {config_path} does not exist", str(config_path))

    try:
        with open(config_path_obj) as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(
            f"Error loading configuration from {config_path}: {str(e)}", str(config_path)
        ) from e

    if config is None:  # Empty file
        config = {}

    if not isinstance(config, dict):
        raise ConfigError(
            f"Invalid configuration format in {config_path}. Expected a dictionary.",
            str(config_path),
        )

    return _substitute_env_vars(config)


def _substitute_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Substitute ``${VAR_NAME}`` references with environment variable values."""

    def replace_env_var(match: re.Match) -> str:
        env_var = match.group(1)
        env_value = os.getenv(env_var)
        if env_value is None:
            raise ConfigError(f"Required environment variable '{env_var}' is not set")
        return env_value

    def substitute_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ENV_PATTERN.sub(replace_env_var, value)
        elif isinstance(value, dict):
            return {k: substitute_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [substitute_value(item) for item in value]
        return value

    return substitute_value(config)


def validate_response_settings(raw: dict[str, Any]) -> ResponseSettings:
    """Build ``ResponseSettings`` from the ``response`` section of a config file.

    Missing keys fall back to ``DEFAULT_SETTINGS``; unknown keys are ignored.

    Raises:
        ConfigError: If a known key has a value of the wrong type or an
            unknown text encoding is named.
    """
    if not isinstance(raw, dict):
        raise ConfigError("The 'response' section must be a mapping")

    encoding = raw.get("encoding", DEFAULT_SETTINGS["encoding"])
    if not isinstance(encoding, str):
        raise ConfigError(f"response.encoding must be a string, got {encoding!r}")
    try:
        encoding = codecs.lookup(encoding).name
    except LookupError as e:
        raise ConfigError(f"Unknown text encoding '{encoding}'") from e

    chunk_size = raw.get("chunk_size", DEFAULT_SETTINGS["chunk_size"])
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise ConfigError(f"response.chunk_size must be a positive integer, got {chunk_size!r}")

    json_raw = raw.get("json", {})
    if not isinstance(json_raw, dict):
        raise ConfigError("response.json must be a mapping")

    json_settings: JsonSettings = dict(DEFAULT_SETTINGS["json"])
    for key in ("ensure_ascii", "sort_keys"):
        if key in json_raw:
            if not isinstance(json_raw[key], bool):
                raise ConfigError(f"response.json.{key} must be a boolean, got {json_raw[key]!r}")
            json_settings[key] = json_raw[key]

    return {"encoding": encoding, "chunk_size": chunk_size, "json": json_settings}


def load_config(config_path: str | Path = DEFAULT_CONFIG_FILE) -> ResponseSettings:
    """Load and validate response settings from a YAML file.

    Only the ``response`` section is read:

    ```yaml
    response:
      encoding: utf-8
      chunk_size: 65536
      json:
        ensure_ascii: true
        sort_keys: false
    ```
    """
    config = load_raw_config(config_path)
    settings = validate_response_settings(config.get("response") or {})
    logger.debug(f"Loaded response settings from {config_path}: {settings}")
    return settings


def configure(settings: ResponseSettings | None = None, **overrides: Any) -> ResponseSettings:
    """Replace the process-wide response settings.

    Passing nothing resets to ``DEFAULT_SETTINGS``. Keyword overrides are
    validated the same way a config file is.
    """
    global _active_settings

    raw: dict[str, Any] = {**(settings or {}), **overrides}
    _active_settings = validate_response_settings(raw)
    return _active_settings


def get_settings() -> ResponseSettings:
    """Return the active response settings."""
    return _active_settings
