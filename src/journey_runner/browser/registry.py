"""Browser driver registry.

Maps driver names used in journey config and on the command line to
driver classes.
"""

import logging
from typing import Dict, Optional, Type

from journey_runner.browser.base import BrowserDriver
from journey_runner.browser.playwright_driver import PlaywrightDriver
from journey_runner.browser.selenium_driver import SeleniumDriver
from journey_runner.journey.errors import ConfigurationError
from journey_runner.models.journey_models import BrowserConfig

logger = logging.getLogger(__name__)

DRIVERS: Dict[str, Type[BrowserDriver]] = {
    "playwright": PlaywrightDriver,
    "selenium": SeleniumDriver,
    "webdriver": SeleniumDriver,
}


def register_driver(name: str, driver_class: Type[BrowserDriver]) -> None:
    """Register a driver class under a name."""
    DRIVERS[name.lower()] = driver_class


def get_driver(name: str, config: Optional[BrowserConfig] = None) -> BrowserDriver:
    """Create a driver instance by name.

    Args:
        name: Registered driver name
        config: Browser options passed to the driver

    Returns:
        Uncreated driver instance

    Raises:
        ConfigurationError: If no driver is registered under the name
    """
    driver_class = DRIVERS.get(name.lower())
    if driver_class is None:
        raise ConfigurationError(
            f"Unknown driver '{name}', expected one of: {', '.join(sorted(DRIVERS))}"
        )
    logger.debug(f"Using {driver_class.__name__}")
    return driver_class(config)
