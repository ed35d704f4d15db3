"""Playwright browser driver.

This module provides the PlaywrightDriver class, the default browser
backend. It owns one browser, one isolated context and one page for the
lifetime of a journey run.

CRITICAL: Always call destroy() to ensure proper resource cleanup.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Route,
    async_playwright,
)

from journey_runner.browser.axe import (
    AXE_CORE_CDN,
    AXE_LOADED_SCRIPT,
    AXE_RUN_FUNCTION,
    normalize_results,
    wait_for_axe,
)
from journey_runner.browser.base import BrowserDriver, DriverError
from journey_runner.models.journey_models import BrowserConfig, Viewport, WaitStrategy

logger = logging.getLogger(__name__)

IMAGE_URL = re.compile(r"\.(png|jpg|svg)(\?|$)")
CSS_URL = re.compile(r"\.css(\?|$)")
ANALYTICS_URL = re.compile(r"/collect(\?|$)")

LOAD_STATES = {
    WaitStrategy.LOAD: "load",
    WaitStrategy.IDLE: "networkidle",
}


class PlaywrightDriver(BrowserDriver):
    """Drive a single Playwright page.

    PATTERN: One browser, one context, one page. Request blocking is done
    with a context-wide route so it survives navigations.
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        super().__init__(config)
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise DriverError("Browser not created")
        return self._page

    async def create(self) -> None:
        """Launch the browser and open the journey page.

        Raises:
            DriverError: If the browser fails to launch
        """
        try:
            self.playwright = await async_playwright().start()
            launcher = getattr(self.playwright, self.config.browser_type, None)
            if launcher is None:
                raise DriverError(f"Unknown browser type: {self.config.browser_type}")
            self.browser = await launcher.launch(
                headless=self.config.headless, slow_mo=self.config.slow_mo
            )

            context_options: Dict[str, Any] = {"bypass_csp": True}
            if self.config.viewport:
                context_options["viewport"] = self.config.viewport.model_dump()
            if self.config.disable_javascript:
                context_options["java_script_enabled"] = False
            self.context = await self.browser.new_context(**context_options)

            if self._blocking_enabled():
                await self.context.route("**/*", self._handle_route)

            self._page = await self.context.new_page()
            logger.info(
                f"Launched {self.config.browser_type} browser "
                f"(headless={self.config.headless})"
            )
        except DriverError:
            raise
        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            raise DriverError(f"Browser launch failed: {e}")

    def _blocking_enabled(self) -> bool:
        return (
            self.config.disable_images
            or self.config.disable_css
            or self.config.disable_analytics
        )

    def should_block(self, url: str) -> bool:
        """Return True if a request URL is blocked by the browser options."""
        if self.config.disable_images and IMAGE_URL.search(url):
            return True
        if self.config.disable_css and CSS_URL.search(url):
            return True
        if self.config.disable_analytics and ANALYTICS_URL.search(url):
            return True
        return False

    async def _handle_route(self, route: Route) -> None:
        if self.should_block(route.request.url):
            await route.abort()
        else:
            await route.continue_()

    async def destroy(self) -> None:
        """Close page, context and browser, then stop Playwright."""
        try:
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
            if self.playwright:
                await self.playwright.stop()
            logger.info("Browser closed")
        except Exception as e:
            logger.error(f"Error during browser cleanup: {e}")
        finally:
            self._page = None
            self.context = None
            self.browser = None
            self.playwright = None

    async def set_viewport(self, viewport: Viewport) -> None:
        try:
            await self.page.set_viewport_size(viewport.model_dump())
        except Exception as e:
            raise DriverError(f"Set viewport failed: {e}")

    async def navigate(self, url: str) -> None:
        """Navigate page to URL and wait for the load event.

        Raises:
            DriverError: If navigation fails
        """
        try:
            await self.page.goto(url, wait_until="load")
            logger.debug(f"Navigated to {url}")
        except Exception as e:
            logger.error(f"Navigation to {url} failed: {e}")
            raise DriverError(f"Navigation failed: {e}")

    async def current_url(self) -> str:
        return self.page.url

    async def element_exists(self, selector: str) -> bool:
        try:
            element = await self.page.query_selector(selector)
        except Exception as e:
            raise DriverError(f"Element lookup failed: {e}")
        if element is None:
            return False
        await element.dispose()
        return True

    async def read_value(self, selector: str) -> str:
        try:
            value = await self.page.eval_on_selector(
                selector,
                "el => el.value !== undefined ? el.value : el.innerText",
            )
        except Exception as e:
            raise DriverError(f"Read value of {selector} failed: {e}")
        return "" if value is None else str(value)

    async def get_input_type(self, selector: str) -> str:
        try:
            input_type = await self.page.eval_on_selector(
                selector, "el => el.type || el.tagName.toLowerCase()"
            )
        except Exception as e:
            raise DriverError(f"Input type lookup of {selector} failed: {e}")
        return str(input_type).lower()

    async def set_value(
        self,
        selector: str,
        value: Union[str, bool],
        is_select: bool = False,
        attribute: str = "value",
    ) -> None:
        """Set an element's value.

        Raises:
            DriverError: If the value cannot be set
        """
        try:
            if isinstance(value, bool):
                await self.page.click(selector)
            elif is_select:
                await self._select_option(selector, value, attribute)
            elif await self.get_input_type(selector) == "file":
                await self.page.set_input_files(selector, value)
            else:
                await self.page.fill(selector, value)
            logger.debug(f"Set {selector} to {value!r}")
        except DriverError:
            raise
        except Exception as e:
            logger.error(f"Set value of {selector} failed: {e}")
            raise DriverError(f"Set value failed: {e}")

    async def _select_option(self, selector: str, value: str, attribute: str) -> None:
        if attribute == "value":
            await self.page.select_option(selector, value=value)
        elif attribute == "label":
            await self.page.select_option(selector, label=value)
        else:
            option_value = await self.page.eval_on_selector(
                selector,
                """(el, [attribute, value]) => {
                    const option = Array.from(el.options)
                        .find(o => o.getAttribute(attribute) === value);
                    return option ? option.value : null;
                }""",
                [attribute, value],
            )
            if option_value is None:
                raise DriverError(f"No option with {attribute}={value!r} in {selector}")
            await self.page.select_option(selector, value=option_value)

    async def click(self, selector: str) -> None:
        """Click an element.

        Raises:
            DriverError: If click fails
        """
        try:
            await self.page.click(selector, timeout=5000)
            logger.debug(f"Clicked element: {selector}")
        except Exception as e:
            logger.error(f"Click on {selector} failed: {e}")
            raise DriverError(f"Click failed: {e}")

    async def wait_for(
        self, strategy: Union[int, str, WaitStrategy] = WaitStrategy.LOAD, timeout: int = 30000
    ) -> None:
        delay = self.wait_delay_ms(strategy)
        try:
            if delay is not None:
                logger.debug(f"Waiting {delay}ms")
                await self.page.wait_for_timeout(delay)
                return
            state = LOAD_STATES[WaitStrategy(strategy)]
            logger.debug(f"Waiting for {state}")
            await self.page.wait_for_load_state(state, timeout=timeout)
        except Exception as e:
            raise DriverError(f"Wait failed: {e}")

    async def capture_html(self, path: str) -> None:
        logger.debug(f"Writing page HTML to {path}")
        try:
            html = await self.page.content()
            Path(path).write_text(html, encoding="utf-8")
        except Exception as e:
            raise DriverError(f"HTML capture failed: {e}")

    async def capture_screenshot(self, path: str) -> None:
        logger.debug(f"Capturing screenshot to {path}")
        try:
            await self.page.screenshot(path=path, full_page=True)
        except Exception as e:
            raise DriverError(f"Screenshot failed: {e}")

    async def run_accessibility_audit(
        self, options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Inject axe-core into the page and run an audit.

        Raises:
            DriverError: If axe cannot be loaded or fails to run
        """
        try:
            logger.debug(f"Injecting axe-core library from {AXE_CORE_CDN}")
            await self.page.add_script_tag(url=AXE_CORE_CDN)
            await wait_for_axe(lambda: self.page.evaluate(AXE_LOADED_SCRIPT))
            results = await self.page.evaluate(AXE_RUN_FUNCTION, options or {})
        except DriverError:
            raise
        except Exception as e:
            logger.error(f"Accessibility audit failed: {e}")
            raise DriverError(f"Accessibility audit failed: {e}")
        return normalize_results(results, self.page.url)
