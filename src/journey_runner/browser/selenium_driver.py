"""Selenium WebDriver browser driver.

Selenium's API is blocking, so every WebDriver call is run in a worker
thread with ``asyncio.to_thread`` to keep the journey engine's event loop
free. Calls are still issued strictly one after another.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support.ui import Select, WebDriverWait

from journey_runner.browser.axe import (
    AXE_INJECT_SCRIPT,
    AXE_LOADED_SCRIPT,
    AXE_MAX_POLL_MS,
    AXE_RUN_ASYNC_SCRIPT,
    normalize_results,
    wait_for_axe,
)
from journey_runner.browser.base import BrowserDriver, DriverError
from journey_runner.models.journey_models import BrowserConfig, Viewport, WaitStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")

READ_VALUE_SCRIPT = (
    "return arguments[0].value !== undefined ? arguments[0].value : arguments[0].innerText;"
)
INPUT_TYPE_SCRIPT = "return arguments[0].type || arguments[0].tagName.toLowerCase();"
PAGE_SIZE_SCRIPT = """
var html = document.getElementsByTagName('html')[0];
return { width: html.offsetWidth, height: html.offsetHeight };
"""

# Content setting value that blocks a resource type
BLOCK_SETTING = 2


class SeleniumDriver(BrowserDriver):
    """Drive a local or remote WebDriver session.

    A remote session is used when ``server`` is configured; otherwise a
    local Chrome or Firefox is started.
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        super().__init__(config)
        self._driver: Optional[webdriver.Remote] = None

    @property
    def driver(self) -> webdriver.Remote:
        if self._driver is None:
            raise DriverError("Browser not created")
        return self._driver

    async def _call(self, func: Callable[..., T], *args: Any) -> T:
        result = await asyncio.to_thread(func, *args)
        if self.config.slow_mo:
            await asyncio.sleep(self.config.slow_mo / 1000)
        return result

    def build_options(self) -> Any:
        """Build browser options from the browser configuration."""
        if self.config.browser_type == "firefox":
            options = webdriver.FirefoxOptions()
            if self.config.headless:
                options.add_argument("-headless")
            if self.config.disable_images:
                options.set_preference("permissions.default.image", BLOCK_SETTING)
            if self.config.disable_javascript:
                options.set_preference("javascript.enabled", False)
        else:
            options = webdriver.ChromeOptions()
            if self.config.headless:
                options.add_argument("--headless=new")
            prefs: Dict[str, int] = {}
            if self.config.disable_images:
                prefs["profile.managed_default_content_settings.images"] = BLOCK_SETTING
            if self.config.disable_javascript:
                prefs["profile.managed_default_content_settings.javascript"] = BLOCK_SETTING
            if prefs:
                options.add_experimental_option("prefs", prefs)

        for name, value in self.config.capabilities.items():
            options.set_capability(name, value)
        return options

    def _start(self) -> webdriver.Remote:
        options = self.build_options()
        if self.config.server:
            return webdriver.Remote(command_executor=self.config.server, options=options)
        if self.config.browser_type == "firefox":
            return webdriver.Firefox(options=options)
        return webdriver.Chrome(options=options)

    async def create(self) -> None:
        """Start the WebDriver session.

        Raises:
            DriverError: If the session cannot be started
        """
        if self.config.disable_css or self.config.disable_analytics:
            logger.warning("Request blocking for CSS and analytics is not supported by selenium")
        try:
            self._driver = await asyncio.to_thread(self._start)
            if self.config.viewport:
                await self.set_viewport(self.config.viewport)
            logger.info(
                f"Started selenium {self.config.browser_type} session "
                f"(headless={self.config.headless})"
            )
        except DriverError:
            raise
        except Exception as e:
            logger.error(f"Failed to start selenium session: {e}")
            raise DriverError(f"Browser launch failed: {e}")

    async def destroy(self) -> None:
        if self._driver is None:
            return
        try:
            await asyncio.to_thread(self._driver.quit)
            logger.info("Selenium session closed")
        except WebDriverException as e:
            logger.error(f"Error during selenium cleanup: {e}")
        finally:
            self._driver = None

    async def _find(self, selector: str) -> WebElement:
        try:
            elements = await asyncio.to_thread(
                self.driver.find_elements, By.CSS_SELECTOR, selector
            )
        except WebDriverException as e:
            raise DriverError(f"Element lookup failed: {e}")
        if not elements:
            raise DriverError(f"Element not found: {selector}")
        return elements[0]

    async def set_viewport(self, viewport: Viewport) -> None:
        try:
            await self._call(self.driver.set_window_size, viewport.width, viewport.height)
        except WebDriverException as e:
            raise DriverError(f"Set viewport failed: {e}")

    async def navigate(self, url: str) -> None:
        try:
            await self._call(self.driver.get, url)
            logger.debug(f"Navigated to {url}")
        except WebDriverException as e:
            logger.error(f"Navigation to {url} failed: {e}")
            raise DriverError(f"Navigation failed: {e}")
        await self.wait_for(WaitStrategy.LOAD)

    async def current_url(self) -> str:
        return await asyncio.to_thread(lambda: self.driver.current_url)

    async def element_exists(self, selector: str) -> bool:
        try:
            elements = await asyncio.to_thread(
                self.driver.find_elements, By.CSS_SELECTOR, selector
            )
        except WebDriverException as e:
            raise DriverError(f"Element lookup failed: {e}")
        return bool(elements)

    async def read_value(self, selector: str) -> str:
        element = await self._find(selector)
        try:
            value = await asyncio.to_thread(
                self.driver.execute_script, READ_VALUE_SCRIPT, element
            )
        except WebDriverException as e:
            raise DriverError(f"Read value of {selector} failed: {e}")
        return "" if value is None else str(value)

    async def get_input_type(self, selector: str) -> str:
        element = await self._find(selector)
        try:
            input_type = await asyncio.to_thread(
                self.driver.execute_script, INPUT_TYPE_SCRIPT, element
            )
        except WebDriverException as e:
            raise DriverError(f"Input type lookup of {selector} failed: {e}")
        return str(input_type).lower()

    async def set_value(
        self,
        selector: str,
        value: Union[str, bool],
        is_select: bool = False,
        attribute: str = "value",
    ) -> None:
        element = await self._find(selector)
        try:
            if isinstance(value, bool):
                await self._call(element.click)
            elif is_select:
                await self._call(self._select_option, element, value, attribute)
            elif await self.get_input_type(selector) == "file":
                await self._call(element.send_keys, os.path.abspath(value))
            else:
                await self._call(element.clear)
                await self._call(element.send_keys, value)
            logger.debug(f"Set {selector} to {value!r}")
        except WebDriverException as e:
            logger.error(f"Set value of {selector} failed: {e}")
            raise DriverError(f"Set value failed: {e}")

    @staticmethod
    def _select_option(element: WebElement, value: str, attribute: str) -> None:
        select = Select(element)
        if attribute == "value":
            select.select_by_value(value)
        elif attribute == "label":
            select.select_by_visible_text(value)
        else:
            option = element.find_element(By.CSS_SELECTOR, f'option[{attribute}="{value}"]')
            option.click()

    async def click(self, selector: str) -> None:
        element = await self._find(selector)
        try:
            await self._call(element.click)
            logger.debug(f"Clicked element: {selector}")
        except WebDriverException as e:
            logger.error(f"Click on {selector} failed: {e}")
            raise DriverError(f"Click failed: {e}")

    async def wait_for(
        self, strategy: Union[int, str, WaitStrategy] = WaitStrategy.LOAD, timeout: int = 30000
    ) -> None:
        delay = self.wait_delay_ms(strategy)
        if delay is not None:
            logger.debug(f"Waiting {delay}ms")
            await asyncio.sleep(delay / 1000)
            return

        # WebDriver has no network idle signal, both strategies wait for load
        logger.debug("Waiting for page load")
        try:
            await asyncio.to_thread(
                WebDriverWait(self.driver, timeout / 1000).until,
                lambda d: d.execute_script("return document.readyState") == "complete",
            )
        except WebDriverException as e:
            raise DriverError(f"Wait failed: {e}")

    async def capture_html(self, path: str) -> None:
        logger.debug(f"Writing page HTML to {path}")
        try:
            html = await asyncio.to_thread(lambda: self.driver.page_source)
            Path(path).write_text(html, encoding="utf-8")
        except (WebDriverException, OSError) as e:
            raise DriverError(f"HTML capture failed: {e}")

    async def capture_screenshot(self, path: str) -> None:
        """Capture the whole page by resizing the window to the page size."""
        logger.debug(f"Capturing screenshot to {path}")
        try:
            size = await asyncio.to_thread(self.driver.execute_script, PAGE_SIZE_SCRIPT)
            original = await asyncio.to_thread(self.driver.get_window_size)
            await asyncio.to_thread(self.driver.set_window_size, size["width"], size["height"])
            await asyncio.to_thread(self.driver.save_screenshot, path)
            await asyncio.to_thread(
                self.driver.set_window_size, original["width"], original["height"]
            )
        except WebDriverException as e:
            raise DriverError(f"Screenshot failed: {e}")

    async def run_accessibility_audit(
        self, options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            await asyncio.to_thread(self.driver.switch_to.default_content)
            await asyncio.to_thread(self.driver.execute_script, AXE_INJECT_SCRIPT)

            async def is_loaded() -> bool:
                return bool(
                    await asyncio.to_thread(
                        self.driver.execute_script, f"return {AXE_LOADED_SCRIPT};"
                    )
                )

            await wait_for_axe(is_loaded)
            await asyncio.to_thread(self.driver.set_script_timeout, AXE_MAX_POLL_MS / 1000)
            results = await asyncio.to_thread(
                self.driver.execute_async_script, AXE_RUN_ASYNC_SCRIPT, options or {}
            )
            page_url = await self.current_url()
        except WebDriverException as e:
            logger.error(f"Accessibility audit failed: {e}")
            raise DriverError(f"Accessibility audit failed: {e}")
        return normalize_results(results, page_url)
