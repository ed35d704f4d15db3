"""Page configuration resolution.

The effective configuration of a visited page is always the deep merge of
the journey defaults and the overrides of the first page-table entry whose
pattern matches the URL path, plus the page URL itself.
"""

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlsplit

from pydantic.alias_generators import to_camel

from journey_runner.models.journey_models import PageConfig, PageRule

logger = logging.getLogger(__name__)

# Nested page config mappings whose keys are option names, not data
_OPTION_MAPPINGS = ("axe", "viewport")


def deep_merge(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge mappings left to right into a new dict.

    Later layers win key by key. Nested mappings merge recursively; lists
    and scalars replace the earlier value wholesale, and an explicit None
    replaces rather than deletes. Inputs are never mutated.
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                merged[key] = deep_merge(current, value)
            else:
                merged[key] = copy.deepcopy(value)
    return merged


def normalize_page_keys(page: Mapping[str, Any]) -> Dict[str, Any]:
    """Rewrite page option keys to their camelCase config spelling.

    Lets ``max_retries`` and ``maxRetries`` override each other during the
    merge. Field selectors, collect names and axe ignore rule ids are data
    and are left untouched.
    """
    normalized: Dict[str, Any] = {}
    for key, value in page.items():
        name = to_camel(key)
        if name in _OPTION_MAPPINGS and isinstance(value, Mapping):
            value = {
                to_camel(option) if option not in ("ignore", "options") else option: item
                for option, item in value.items()
            }
        normalized[name] = value
    return normalized


def find_page_rule(path: str, pages: Sequence[PageRule]) -> Optional[PageRule]:
    """Return the first rule whose pattern fully matches the path."""
    for rule in pages:
        if rule.matches(path):
            return rule
    return None


def resolve_page_config(
    url: str, pages: List[PageRule], defaults: Mapping[str, Any]
) -> PageConfig:
    """Resolve the effective configuration for a page URL.

    Args:
        url: Absolute URL of the current page
        pages: Ordered page table
        defaults: Raw page defaults

    Returns:
        Validated page configuration
    """
    path = urlsplit(url).path or "/"
    rule = find_page_rule(path, pages)
    if rule is None:
        logger.debug(f"No page config matches {path}, using defaults")
        overrides: Mapping[str, Any] = {}
    else:
        logger.debug(f"Page config {rule.pattern.pattern} matches {path}")
        overrides = rule.overrides

    return PageConfig.model_validate(deep_merge({"url": url}, defaults, overrides))
