"""Journey lifecycle engine, page resolution and form filling."""

from journey_runner.journey.errors import (
    AccessibilityError,
    ConfigurationError,
    ErrorPageError,
    ExitPageError,
    FormFillError,
    HostNotAllowedError,
    JourneyError,
    MaxTriesError,
    NavigationError,
)
from journey_runner.journey.form import FormFiller
from journey_runner.journey.lifecycle import JourneyLifecycle
from journey_runner.journey.page_resolver import deep_merge, resolve_page_config

__all__ = [
    "AccessibilityError",
    "ConfigurationError",
    "ErrorPageError",
    "ExitPageError",
    "FormFillError",
    "HostNotAllowedError",
    "JourneyError",
    "MaxTriesError",
    "NavigationError",
    "FormFiller",
    "JourneyLifecycle",
    "deep_merge",
    "resolve_page_config",
]
