"""Shared fixtures for journey runner tests.

FakeDriver is an in-memory BrowserDriver that plays a scripted website:
every page is a mapping of selectors to elements, links to follow when an
element is clicked and the axe violations reported for the page.
"""

from typing import Any, Dict, List, Optional, Union

import pytest

from journey_runner.browser.base import BrowserDriver, DriverError
from journey_runner.config.journey_config import build_journey_config
from journey_runner.journey.page_resolver import deep_merge
from journey_runner.models.journey_models import Viewport, WaitStrategy


class FakeDriver(BrowserDriver):
    """Scripted in-memory browser.

    A site maps absolute URLs to pages::

        {
            "http://a.test/form": {
                "elements": {"#name": {"type": "text"}},
                "links": {"#submit": "http://a.test/done"},
                "violations": [],
            }
        }

    Link targets may also be a list of URLs, followed in turn on each
    click, which scripts a page that keeps coming back.
    """

    def __init__(self, site: Dict[str, Dict[str, Any]], **kwargs: Any):
        super().__init__(**kwargs)
        self.site = site
        self.url = "about:blank"
        self.calls: List[tuple] = []
        self.values: Dict[str, Any] = {}
        self.clicks: List[str] = []
        self.captures: List[str] = []
        self.created = False
        self.destroyed = False
        self._link_visits: Dict[tuple, int] = {}

    @property
    def page(self) -> Dict[str, Any]:
        return self.site.get(self.url, {})

    def _element(self, selector: str) -> Dict[str, Any]:
        elements = self.page.get("elements", {})
        if selector not in elements:
            raise DriverError(f"Element not found: {selector}")
        return elements[selector]

    async def create(self) -> None:
        self.created = True

    async def destroy(self) -> None:
        self.destroyed = True

    async def set_viewport(self, viewport: Viewport) -> None:
        self.calls.append(("set_viewport", viewport.width, viewport.height))

    async def navigate(self, url: str) -> None:
        self.calls.append(("navigate", url))
        self.url = url

    async def current_url(self) -> str:
        return self.url

    async def element_exists(self, selector: str) -> bool:
        return selector in self.page.get("elements", {})

    async def read_value(self, selector: str) -> str:
        element = self._element(selector)
        return str(element.get("value", element.get("text", "")))

    async def get_input_type(self, selector: str) -> str:
        return self._element(selector).get("type", "text")

    async def set_value(
        self,
        selector: str,
        value: Union[str, bool],
        is_select: bool = False,
        attribute: str = "value",
    ) -> None:
        element = self._element(selector)
        if element.get("fail"):
            raise DriverError(f"Set value failed: {selector}")
        self.calls.append(("set_value", selector, value, is_select, attribute))
        self.values[selector] = value

    async def click(self, selector: str) -> None:
        element = self._element(selector)
        self.calls.append(("click", selector))
        self.clicks.append(selector)

        target = self.page.get("links", {}).get(selector)
        if isinstance(target, list):
            key = (self.url, selector)
            visit = self._link_visits.get(key, 0)
            self._link_visits[key] = visit + 1
            target = target[min(visit, len(target) - 1)]
        if target:
            self.url = target

        if element.get("click_error"):
            raise DriverError(f"Click failed: {selector}")

    async def wait_for(
        self, strategy: Union[int, str, WaitStrategy] = WaitStrategy.LOAD, timeout: int = 30000
    ) -> None:
        self.calls.append(("wait_for", strategy, timeout))

    async def capture_html(self, path: str) -> None:
        self.captures.append(path)

    async def capture_screenshot(self, path: str) -> None:
        self.captures.append(path)

    async def run_accessibility_audit(
        self, options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        self.calls.append(("axe", options))
        return {"url": self.url, "violations": self.page.get("violations", [])}


BASE_CONFIG = {
    "url": "http://a.test",
    "browser": {"headless": True},
    "lastPagePause": 0,
    "defaults": {"viewport": None},
}


@pytest.fixture
def make_driver():
    """Factory for FakeDriver instances over a scripted site."""

    def _make(site: Dict[str, Dict[str, Any]]) -> FakeDriver:
        return FakeDriver(site)

    return _make


@pytest.fixture
def make_config():
    """Factory building a JourneyConfig for the http://a.test site."""

    def _make(**raw: Any):
        return build_journey_config(deep_merge(BASE_CONFIG, raw))

    return _make


@pytest.fixture
def form_site() -> Dict[str, Dict[str, Any]]:
    """Two page site: a name form that submits to a confirmation page."""
    return {
        "http://a.test/form": {
            "elements": {
                "#name": {"type": "text"},
                "#ref": {"type": "text", "value": "REF-123"},
                'button[type="submit"]': {"type": "submit"},
            },
            "links": {'button[type="submit"]': "http://a.test/confirm"},
        },
        "http://a.test/confirm": {
            "elements": {"h1": {"type": "", "text": "Done"}},
        },
    }
