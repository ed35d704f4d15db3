"""Browser driver backends for journey runs."""

from journey_runner.browser.base import BrowserDriver, DriverError
from journey_runner.browser.registry import get_driver, register_driver

__all__ = ["BrowserDriver", "DriverError", "get_driver", "register_driver"]
