# ABOUTME: Loads metadata provider settings from a JSON file plus environment overrides.
# ABOUTME: Produces the {provider: ProviderConfig} mapping the registry is configured with.

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from bookshelf.metadata.registry import DEFAULT_SETTINGS, ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".bookshelf" / "providers.json"

# Environment variable -> (provider, settings key).
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "BOOKSHELF_HARDCOVER_API_KEY": ("hardcover", "apiKey"),
    "BOOKSHELF_COMICVINE_API_KEY": ("comicvine", "apiKey"),
    "BOOKSHELF_AMAZON_DOMAIN": ("amazon", "domain"),
}


class ConfigError(Exception):
    """The provider settings file exists but cannot be used."""


def _read_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object of provider settings")
    return data


def load_provider_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, ProviderConfig]:
    """Resolve provider settings: defaults, then the JSON file, then the environment.

    A missing file simply means defaults. Entries for unknown providers are
    ignored with a warning.

    Raises:
        ConfigError: If the file is not valid JSON or not a JSON object.
    """
    config_path = path or DEFAULT_CONFIG_PATH
    env = os.environ if environ is None else environ
    settings = dict(DEFAULT_SETTINGS)

    if config_path.exists():
        for name, raw in _read_file(config_path).items():
            if name not in settings:
                logger.warning("Ignoring settings for unknown provider %r in %s", name, config_path)
                continue
            if not isinstance(raw, dict):
                raise ConfigError(f"Settings for {name!r} in {config_path} must be an object")
            settings[name] = settings[name].merged(raw)
    else:
        logger.debug("No provider settings at %s; using defaults", config_path)

    for variable, (provider, key) in ENV_OVERRIDES.items():
        value = env.get(variable)
        if value:
            settings[provider] = settings[provider].merged({key: value})

    return settings
