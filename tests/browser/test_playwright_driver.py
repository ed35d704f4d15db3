"""Tests for PlaywrightDriver.

Playwright objects are replaced with mocks; no browser is launched.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from playwright.async_api import Browser, BrowserContext, Page

from journey_runner.browser.axe import AXE_CORE_CDN, AXE_LOADED_SCRIPT
from journey_runner.browser.base import DriverError
from journey_runner.browser.playwright_driver import PlaywrightDriver
from journey_runner.models.journey_models import BrowserConfig, Viewport, WaitStrategy


@pytest.fixture
def mock_page():
    """Create a mock Page instance."""
    page = AsyncMock(spec=Page)
    page.url = "http://a.test/form"
    page.goto = AsyncMock()
    page.click = AsyncMock()
    page.fill = AsyncMock()
    page.eval_on_selector = AsyncMock()
    page.evaluate = AsyncMock()
    return page


@pytest.fixture
def mock_context(mock_page):
    """Create a mock BrowserContext instance."""
    context = AsyncMock(spec=BrowserContext)
    context.new_page = AsyncMock(return_value=mock_page)
    return context


@pytest.fixture
def mock_browser(mock_context):
    """Create a mock Browser instance."""
    browser = AsyncMock(spec=Browser)
    browser.new_context = AsyncMock(return_value=mock_context)
    return browser


@pytest.fixture
def mock_playwright(mock_browser):
    """Create a mock Playwright instance."""
    playwright = AsyncMock()
    playwright.chromium = AsyncMock()
    playwright.chromium.launch = AsyncMock(return_value=mock_browser)
    return playwright


@pytest.fixture
def driver(mock_page):
    """Create a driver with a mocked page already open."""
    driver = PlaywrightDriver(BrowserConfig(headless=True))
    driver._page = mock_page
    return driver


class TestCreate:
    """Tests for browser launch."""

    @pytest.mark.asyncio
    async def test_create(self, mock_playwright, mock_browser, mock_context, mock_page):
        with patch("journey_runner.browser.playwright_driver.async_playwright") as mock_async_pw:
            mock_async_pw.return_value.start = AsyncMock(return_value=mock_playwright)
            driver = PlaywrightDriver(BrowserConfig(headless=True, slowMo=25))

            await driver.create()

        mock_playwright.chromium.launch.assert_called_once_with(headless=True, slow_mo=25)
        mock_browser.new_context.assert_called_once_with(bypass_csp=True)
        mock_context.route.assert_not_called()
        assert driver.page is mock_page

    @pytest.mark.asyncio
    async def test_create_with_options(self, mock_playwright, mock_browser, mock_context):
        config = BrowserConfig(
            viewport=Viewport(width=800, height=600),
            disableJavascript=True,
            disableImages=True,
        )
        with patch("journey_runner.browser.playwright_driver.async_playwright") as mock_async_pw:
            mock_async_pw.return_value.start = AsyncMock(return_value=mock_playwright)
            driver = PlaywrightDriver(config)

            await driver.create()

        mock_browser.new_context.assert_called_once_with(
            bypass_csp=True,
            viewport={"width": 800, "height": 600},
            java_script_enabled=False,
        )
        mock_context.route.assert_called_once()
        assert mock_context.route.call_args.args[0] == "**/*"

    @pytest.mark.asyncio
    async def test_create_failure(self):
        with patch("journey_runner.browser.playwright_driver.async_playwright") as mock_async_pw:
            mock_async_pw.return_value.start = AsyncMock(side_effect=Exception("no browser"))
            driver = PlaywrightDriver()

            with pytest.raises(DriverError, match="Browser launch failed"):
                await driver.create()

    @pytest.mark.asyncio
    async def test_unknown_browser_type(self):
        with patch("journey_runner.browser.playwright_driver.async_playwright") as mock_async_pw:
            mock_async_pw.return_value.start = AsyncMock(return_value=MagicMock(spec=[]))
            driver = PlaywrightDriver(BrowserConfig(browserType="netscape"))

            with pytest.raises(DriverError, match="Unknown browser type"):
                await driver.create()

    def test_page_before_create(self):
        with pytest.raises(DriverError, match="not created"):
            PlaywrightDriver().page

    @pytest.mark.asyncio
    async def test_destroy(self, driver, mock_context, mock_browser, mock_playwright):
        driver.context = mock_context
        driver.browser = mock_browser
        driver.playwright = mock_playwright

        await driver.destroy()

        mock_context.close.assert_called_once()
        mock_browser.close.assert_called_once()
        mock_playwright.stop.assert_called_once()
        assert driver.browser is None


class TestRequestBlocking:
    """Tests for request blocking."""

    def test_should_block(self):
        driver = PlaywrightDriver(
            BrowserConfig(disableImages=True, disableCSS=True, disableAnalytics=True)
        )

        assert driver.should_block("http://a.test/logo.png")
        assert driver.should_block("http://a.test/logo.svg?v=2")
        assert driver.should_block("http://a.test/main.css")
        assert driver.should_block("http://analytics.test/collect?v=1")
        assert not driver.should_block("http://a.test/app.js")

    def test_nothing_blocked_by_default(self):
        assert not PlaywrightDriver().should_block("http://a.test/logo.png")

    @pytest.mark.asyncio
    async def test_route_handler(self):
        driver = PlaywrightDriver(BrowserConfig(disableImages=True))
        blocked = MagicMock()
        blocked.request.url = "http://a.test/logo.png"
        blocked.abort = AsyncMock()
        allowed = MagicMock()
        allowed.request.url = "http://a.test/page"
        allowed.continue_ = AsyncMock()

        await driver._handle_route(blocked)
        await driver._handle_route(allowed)

        blocked.abort.assert_called_once()
        allowed.continue_.assert_called_once()


class TestPageOperations:
    """Tests for page operations."""

    @pytest.mark.asyncio
    async def test_navigate(self, driver, mock_page):
        await driver.navigate("http://a.test/start")
        mock_page.goto.assert_called_once_with("http://a.test/start", wait_until="load")

    @pytest.mark.asyncio
    async def test_navigate_failure(self, driver, mock_page):
        mock_page.goto.side_effect = Exception("net::ERR_NAME_NOT_RESOLVED")
        with pytest.raises(DriverError, match="Navigation failed"):
            await driver.navigate("http://nowhere.test")

    @pytest.mark.asyncio
    async def test_current_url(self, driver):
        assert await driver.current_url() == "http://a.test/form"

    @pytest.mark.asyncio
    async def test_element_exists(self, driver, mock_page):
        element = AsyncMock()
        mock_page.query_selector = AsyncMock(side_effect=[element, None])

        assert await driver.element_exists("#here") is True
        assert await driver.element_exists("#gone") is False
        element.dispose.assert_called_once()

    @pytest.mark.asyncio
    async def test_read_value(self, driver, mock_page):
        mock_page.eval_on_selector.return_value = 42
        assert await driver.read_value("#age") == "42"

    @pytest.mark.asyncio
    async def test_read_value_missing(self, driver, mock_page):
        mock_page.eval_on_selector.side_effect = Exception("no element")
        with pytest.raises(DriverError):
            await driver.read_value("#age")

    @pytest.mark.asyncio
    async def test_get_input_type(self, driver, mock_page):
        mock_page.eval_on_selector.return_value = "Select-One"
        assert await driver.get_input_type("#country") == "select-one"

    @pytest.mark.asyncio
    async def test_click_failure(self, driver, mock_page):
        mock_page.click.side_effect = Exception("Timeout")
        with pytest.raises(DriverError, match="Click failed"):
            await driver.click("#next")

    @pytest.mark.asyncio
    async def test_set_viewport(self, driver, mock_page):
        await driver.set_viewport(Viewport(width=320, height=640))
        mock_page.set_viewport_size.assert_called_once_with({"width": 320, "height": 640})


class TestSetValue:
    """Tests for set_value."""

    @pytest.mark.asyncio
    async def test_bool_clicks(self, driver, mock_page):
        await driver.set_value("#agree", True)
        mock_page.click.assert_called_once_with("#agree")

    @pytest.mark.asyncio
    async def test_select_by_value(self, driver, mock_page):
        await driver.set_value("#country", "FR", is_select=True)
        mock_page.select_option.assert_called_once_with("#country", value="FR")

    @pytest.mark.asyncio
    async def test_select_by_label(self, driver, mock_page):
        await driver.set_value("#country", "France", is_select=True, attribute="label")
        mock_page.select_option.assert_called_once_with("#country", label="France")

    @pytest.mark.asyncio
    async def test_select_by_other_attribute(self, driver, mock_page):
        mock_page.eval_on_selector.return_value = "FR"
        await driver.set_value("#country", "fr-FR", is_select=True, attribute="data-locale")
        mock_page.select_option.assert_called_once_with("#country", value="FR")

    @pytest.mark.asyncio
    async def test_select_missing_option(self, driver, mock_page):
        mock_page.eval_on_selector.return_value = None
        with pytest.raises(DriverError, match="No option"):
            await driver.set_value("#country", "xx", is_select=True, attribute="data-locale")

    @pytest.mark.asyncio
    async def test_file_upload(self, driver, mock_page):
        mock_page.eval_on_selector.return_value = "file"
        await driver.set_value("#photo", "/tmp/photo.png")
        mock_page.set_input_files.assert_called_once_with("#photo", "/tmp/photo.png")

    @pytest.mark.asyncio
    async def test_text_filled(self, driver, mock_page):
        mock_page.eval_on_selector.return_value = "text"
        await driver.set_value("#name", "Alice")
        mock_page.fill.assert_called_once_with("#name", "Alice")

    @pytest.mark.asyncio
    async def test_failure_wrapped(self, driver, mock_page):
        mock_page.eval_on_selector.return_value = "text"
        mock_page.fill.side_effect = Exception("not editable")
        with pytest.raises(DriverError, match="Set value failed"):
            await driver.set_value("#name", "Alice")


class TestWaitAndCapture:
    """Tests for waits and page capture."""

    @pytest.mark.asyncio
    async def test_wait_delay(self, driver, mock_page):
        await driver.wait_for(500)
        mock_page.wait_for_timeout.assert_called_once_with(500)

    @pytest.mark.asyncio
    async def test_wait_idle(self, driver, mock_page):
        await driver.wait_for(WaitStrategy.IDLE, 10000)
        mock_page.wait_for_load_state.assert_called_once_with("networkidle", timeout=10000)

    @pytest.mark.asyncio
    async def test_wait_timeout(self, driver, mock_page):
        mock_page.wait_for_load_state.side_effect = Exception("Timeout 30000ms exceeded")
        with pytest.raises(DriverError, match="Wait failed"):
            await driver.wait_for("load")

    @pytest.mark.asyncio
    async def test_capture_html(self, driver, mock_page, tmp_path):
        mock_page.content.return_value = "<html>hi</html>"
        path = tmp_path / "page.html"

        await driver.capture_html(str(path))

        assert path.read_text() == "<html>hi</html>"

    @pytest.mark.asyncio
    async def test_capture_screenshot(self, driver, mock_page):
        await driver.capture_screenshot("/tmp/page.png")
        mock_page.screenshot.assert_called_once_with(path="/tmp/page.png", full_page=True)


class TestAccessibilityAudit:
    """Tests for the axe audit."""

    @pytest.mark.asyncio
    async def test_audit(self, driver, mock_page):
        violations = [{"id": "label", "nodes": []}]

        async def evaluate(script, *args):
            if script == AXE_LOADED_SCRIPT:
                return True
            return {"violations": violations}

        mock_page.evaluate.side_effect = evaluate

        results = await driver.run_accessibility_audit({"runOnly": ["wcag2a"]})

        mock_page.add_script_tag.assert_called_once_with(url=AXE_CORE_CDN)
        assert results == {"url": "http://a.test/form", "violations": violations}
        assert mock_page.evaluate.call_args.args[1] == {"runOnly": ["wcag2a"]}

    @pytest.mark.asyncio
    async def test_audit_error_result(self, driver, mock_page):
        async def evaluate(script, *args):
            if script == AXE_LOADED_SCRIPT:
                return True
            return {"error": "axe exploded"}

        mock_page.evaluate.side_effect = evaluate

        with pytest.raises(DriverError, match="axe exploded"):
            await driver.run_accessibility_audit()

    @pytest.mark.asyncio
    async def test_injection_failure(self, driver, mock_page):
        mock_page.add_script_tag.side_effect = Exception("CSP blocked")
        with pytest.raises(DriverError, match="Accessibility audit failed"):
            await driver.run_accessibility_audit()
