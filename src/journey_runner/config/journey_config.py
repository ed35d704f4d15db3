"""Journey configuration loading.

Configuration is merged in this order (later overrides earlier):
1. Built-in defaults (DEFAULT_CONFIG)
2. Each config file, in command-line order (JSON or YAML)
3. Environment variables (JOURNEY_RUNNER_*)
4. Command-line options

The merged raw mapping is then built once into an immutable JourneyConfig:
start and final URLs are resolved against the base URL, page and exit path
patterns are compiled and the base host is allowed.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Union
from urllib.parse import urljoin, urlsplit

import yaml
from pydantic import ValidationError

from journey_runner.journey.errors import ConfigurationError
from journey_runner.journey.page_resolver import deep_merge, normalize_page_keys
from journey_runner.models.journey_models import (
    DEFAULT_NAVIGATE_SELECTORS,
    ExitPath,
    JourneyConfig,
    PageConfig,
    PageRule,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "JOURNEY_RUNNER_"

FILE_URL_PREFIX = "file://"

DEFAULT_CONFIG: Dict[str, Any] = {
    "url": "http://localhost",
    "start": "/",
    "final": "/",
    "axe": False,
    "lastPagePause": 3000,
    "exitPaths": [],
    "allowedHosts": [],
    "browser": {"headless": False},
    "driver": "playwright",
    "defaults": {
        "viewport": {"width": 1024, "height": 1000},
        "maxRetries": 0,
        "navigateTimeout": 30000,
        "waitFor": "load",
        "fields": {'input[type="radio"]': "selected"},
        "navigate": list(DEFAULT_NAVIGATE_SELECTORS),
        "errorPages": [],
        "axe": {"run": True, "stopOnFail": False, "simple": True, "ignore": {}},
    },
    "pages": {},
}

# Environment variable suffix -> config key path
ENV_KEYS = {
    "URL": ("url",),
    "HEADLESS": ("browser", "headless"),
    "SLOWMO": ("browser", "slowMo"),
    "AXE": ("axe",),
    "REPORT": ("reportFilename",),
    "DRIVER": ("driver",),
}


def _resolve_file_urls(value: Any, base_path: Path) -> Any:
    """Replace ``file://`` strings with paths relative to the config file."""
    if isinstance(value, str) and value.startswith(FILE_URL_PREFIX):
        return str(base_path / value[len(FILE_URL_PREFIX) :])
    if isinstance(value, dict):
        return {key: _resolve_file_urls(item, base_path) for key, item in value.items()}
    if isinstance(value, list):
        return [_resolve_file_urls(item, base_path) for item in value]
    return value


def read_config_file(filename: Union[str, Path]) -> Dict[str, Any]:
    """Read one JSON or YAML config file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    path = Path(filename).resolve()
    logger.debug(f"Loading config file {path}")
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error reading config file: {path}:\n{e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Error reading config file: {path}:\nnot a mapping")
    return _resolve_file_urls(data, path.parent)


def load_config(filenames: Sequence[Union[str, Path]]) -> Dict[str, Any]:
    """Load and deep merge config files in order.

    Args:
        filenames: Config file paths; later files override earlier ones

    Returns:
        Raw merged configuration with ``basePath`` set to the directory of
        the last file

    Raises:
        ConfigurationError: If any file cannot be read or parsed
    """
    config: Dict[str, Any] = {}
    base_path = None
    for filename in filenames:
        config = deep_merge(config, read_config_file(filename))
        base_path = str(Path(filename).resolve().parent)
    if base_path is not None:
        config["basePath"] = base_path
    return config


def _convert_env_value(value: str) -> Any:
    if value.lower() in ("true", "1", "yes"):
        return True
    if value.lower() in ("false", "0", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        return value


def _get_env_overrides() -> Dict[str, Any]:
    """
    Get configuration overrides from environment variables.

    Environment variables are prefixed with JOURNEY_RUNNER_.
    Boolean values: "true", "1", "yes" are True; "false", "0", "no" are
    False. Integer values are converted automatically.

    Returns:
        Nested dictionary of overrides
    """
    overrides: Dict[str, Any] = {}

    for suffix, keys in ENV_KEYS.items():
        value = os.environ.get(ENV_PREFIX + suffix)
        if value is None:
            continue

        # URL-like options stay strings
        converted: Any = value if suffix in ("URL", "REPORT", "DRIVER") else _convert_env_value(value)
        target = overrides
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = converted

    return overrides


def apply_env_overrides(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge JOURNEY_RUNNER_* environment overrides over a raw config."""
    overrides = _get_env_overrides()
    if overrides:
        logger.debug(f"Applying environment overrides: {sorted(overrides)}")
    return deep_merge(raw, overrides)


def _compile(pattern: str, what: str) -> "re.Pattern[str]":
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid {what} pattern {pattern!r}: {e}") from e


def _build_pages(raw_pages: Any, base_url: str, defaults: Dict[str, Any]) -> List[PageRule]:
    if isinstance(raw_pages, Mapping):
        items = list(raw_pages.items())
    elif isinstance(raw_pages, list):
        items = [(page.get("path"), page) for page in raw_pages]
    else:
        raise ConfigurationError("pages must be a mapping of path pattern to page config")

    rules = []
    for pattern, overrides in items:
        if not isinstance(pattern, str):
            raise ConfigurationError(f"Page entry needs a path pattern: {overrides!r}")
        overrides = normalize_page_keys(
            {k: v for k, v in (overrides or {}).items() if k != "path"}
        )

        # validate once so resolving a page never fails mid-journey
        PageConfig.model_validate(deep_merge({"url": base_url}, defaults, overrides))
        rules.append(PageRule(pattern=_compile(pattern, "page"), overrides=overrides))
    return rules


def _build_exit_paths(raw_exit_paths: Sequence[Any], base_url: str) -> List[ExitPath]:
    """Build exit paths from URL strings or ``{host, pathPattern}`` mappings.

    String entries are resolved against the base URL and match that exact
    URL; without a query string their path also acts as a pattern.
    Mappings accept ``path`` as a synonym for ``pathPattern``.
    """
    exit_paths = []
    for entry in raw_exit_paths:
        if isinstance(entry, str):
            url = urljoin(base_url, entry)
            parts = urlsplit(url)
            pattern = None if parts.query else _compile(parts.path, "exit path")
            exit_paths.append(ExitPath(host=parts.netloc, pattern=pattern, url=url))
            continue

        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"Invalid exit path: {entry!r}")
        path = entry.get("pathPattern", entry.get("path"))
        url = urljoin(base_url, entry["url"]) if entry.get("url") else None
        if path is None and url is None:
            raise ConfigurationError(f"Invalid exit path: {entry!r}")
        host = entry.get("host") or urlsplit(url or base_url).netloc
        pattern = _compile(path, "exit path") if path is not None else None
        exit_paths.append(ExitPath(host=host, pattern=pattern, url=url))
    return exit_paths


def build_journey_config(raw: Mapping[str, Any]) -> JourneyConfig:
    """Build the immutable journey configuration from a raw mapping.

    Args:
        raw: Raw configuration, merged over DEFAULT_CONFIG

    Returns:
        Validated journey configuration

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    merged = deep_merge(DEFAULT_CONFIG, raw)

    try:
        base_url = str(merged["url"])
        if not urlsplit(base_url).netloc:
            raise ConfigurationError(f"Base URL must be absolute: {base_url}")

        defaults = normalize_page_keys(merged.get("defaults") or {})
        PageConfig.model_validate(deep_merge({"url": base_url}, defaults))

        merged.update(
            {
                "url": base_url,
                "start": urljoin(base_url, str(merged["start"])),
                "final": urljoin(base_url, str(merged["final"])),
                "defaults": defaults,
                "pages": _build_pages(merged.get("pages") or {}, base_url, defaults),
                "exitPaths": _build_exit_paths(merged.get("exitPaths") or [], base_url),
                "allowedHosts": list(merged.get("allowedHosts") or []),
                "values": {str(k): str(v) for k, v in (merged.get("values") or {}).items()},
            }
        )
        config = JourneyConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid journey configuration:\n{e}") from e

    logger.debug(
        f"Journey {config.start} -> {config.final} with {len(config.pages)} page rules"
    )
    return config
