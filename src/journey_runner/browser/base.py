"""Browser driver capability interface.

This module defines the abstract interface the journey lifecycle engine
and form filler consume. Each browser automation backend (Playwright,
Selenium) implements it as an adapter; the engine never talks to a backend
directly.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from journey_runner.models.journey_models import BrowserConfig, Viewport, WaitStrategy


class DriverError(RuntimeError):
    """Raised when a browser driver operation fails."""

    pass


class BrowserDriver(ABC):
    """Abstract base class for browser automation backends.

    Every operation is a coroutine and a suspension point; callers issue
    them strictly one after another.
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        """Initialize driver with browser configuration.

        Args:
            config: Browser options (headless, slow motion, request blocking)
        """
        self.config = config or BrowserConfig()

    @abstractmethod
    async def create(self) -> None:
        """Launch the browser session.

        Raises:
            DriverError: If the browser fails to launch
        """
        pass

    @abstractmethod
    async def destroy(self) -> None:
        """Close the browser session and release all resources."""
        pass

    @abstractmethod
    async def set_viewport(self, viewport: Viewport) -> None:
        """Resize the browser viewport."""
        pass

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Navigate to a URL and wait for it to load.

        Raises:
            DriverError: If navigation fails
        """
        pass

    @abstractmethod
    async def current_url(self) -> str:
        """Return the URL currently shown in the browser."""
        pass

    @abstractmethod
    async def element_exists(self, selector: str) -> bool:
        """Return True if at least one element matches the selector."""
        pass

    @abstractmethod
    async def read_value(self, selector: str) -> str:
        """Read an element's value, or its visible text if it has no value.

        Raises:
            DriverError: If the element cannot be found or read
        """
        pass

    @abstractmethod
    async def get_input_type(self, selector: str) -> str:
        """Return the live DOM input type of an element.

        Inputs report their ``type`` attribute; select boxes report
        ``select-one`` or ``select-multiple``; text areas report
        ``textarea``.

        Raises:
            DriverError: If the element cannot be found
        """
        pass

    @abstractmethod
    async def set_value(
        self,
        selector: str,
        value: Union[str, bool],
        is_select: bool = False,
        attribute: str = "value",
    ) -> None:
        """Set an element's value.

        Booleans click the element, select boxes choose the option whose
        ``attribute`` equals the value, file inputs upload the named file
        and everything else is typed.

        Raises:
            DriverError: If the value cannot be set
        """
        pass

    @abstractmethod
    async def click(self, selector: str) -> None:
        """Click the first element matching the selector.

        Raises:
            DriverError: If the element is missing or not clickable
        """
        pass

    @abstractmethod
    async def wait_for(
        self, strategy: Union[int, str, WaitStrategy] = WaitStrategy.LOAD, timeout: int = 30000
    ) -> None:
        """Wait for navigation to complete.

        Args:
            strategy: ``load``, ``idle`` or a literal delay in milliseconds
            timeout: Navigation timeout in milliseconds

        Raises:
            DriverError: If the wait times out
        """
        pass

    @abstractmethod
    async def capture_html(self, path: str) -> None:
        """Write the current page HTML to a file."""
        pass

    @abstractmethod
    async def capture_screenshot(self, path: str) -> None:
        """Write a full-page screenshot to a file."""
        pass

    @abstractmethod
    async def run_accessibility_audit(
        self, options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Run axe-core against the current page.

        Args:
            options: Options passed to ``axe.run()``

        Returns:
            Raw axe results with at least ``url`` and ``violations`` keys

        Raises:
            DriverError: If axe cannot be loaded or fails to run
        """
        pass

    @staticmethod
    def wait_delay_ms(strategy: Union[int, str, WaitStrategy]) -> Optional[int]:
        """Return the literal delay of a wait strategy, or None if named."""
        if isinstance(strategy, WaitStrategy):
            return None
        if isinstance(strategy, int):
            return strategy
        if isinstance(strategy, str) and strategy.isdigit():
            return int(strategy)
        return None
