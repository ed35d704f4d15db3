"""Journey lifecycle engine.

The JourneyLifecycle walks a multi-page web journey: starting from the
configured start URL it processes every page the browser lands on until it
reaches the final URL or hits a terminal error. For each page it runs the
guards, collects values, audits accessibility, fills the form and
navigates, recording everything in a RunReport.

PATTERN: The engine only talks to the BrowserDriver interface and issues
driver calls strictly one after another.
"""

import logging
import re
import time
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlsplit

from journey_runner.browser.base import BrowserDriver, DriverError
from journey_runner.journey.accessibility import evaluate_audit
from journey_runner.journey.errors import (
    AccessibilityError,
    ErrorPageError,
    ExitPageError,
    HostNotAllowedError,
    MaxTriesError,
)
from journey_runner.journey.form import FormFiller
from journey_runner.journey.page_resolver import resolve_page_config
from journey_runner.models.journey_models import JourneyConfig, PageConfig, Viewport
from journey_runner.models.report_models import (
    CollectResult,
    LifecycleState,
    OperationStatus,
    ReportEntry,
    RunReport,
)

logger = logging.getLogger(__name__)

CAPTURE_UNSAFE = re.compile(r"[/:?$\\]")


class JourneyLifecycle:
    """Drive one journey run against a browser driver.

    An instance owns the visit history, collected values and accumulated
    errors of a single run.
    """

    def __init__(self, config: JourneyConfig, driver: BrowserDriver):
        """Initialize the lifecycle engine.

        Args:
            config: Journey configuration
            driver: Created browser driver
        """
        self.config = config
        self.driver = driver
        self._reset()

    def _reset(self) -> None:
        self.state = LifecycleState.START
        self.history: List[str] = []
        self.report: List[ReportEntry] = []
        self.values: Dict[str, str] = dict(self.config.values)
        self.errors: List[Exception] = []
        self._last_timestamp: Optional[float] = None
        self._viewport: Optional[Viewport] = None

    def to_report(self) -> RunReport:
        """Snapshot the run as a RunReport."""
        return RunReport(
            report=list(self.report),
            values=dict(self.values),
            errors=list(self.errors),
            state=self.state,
        )

    def find_page_config(self, url: str) -> PageConfig:
        return resolve_page_config(url, self.config.pages, self.config.defaults)

    async def capture(self, url: str) -> None:
        """Capture page HTML and a screenshot under the report prefix."""
        if not self.config.report_prefix:
            return

        filename = self.config.report_prefix + CAPTURE_UNSAFE.sub("-", urlsplit(url).path)
        await self.driver.capture_html(f"{filename}.html")
        await self.driver.capture_screenshot(f"{filename}.png")

    def check_allowed_host(self, page: PageConfig) -> None:
        host = urlsplit(page.url).netloc
        if host not in self.config.allowed_hosts:
            raise HostNotAllowedError(f"Host not allowed: {page.url}")

    async def check_error_page(self, page: PageConfig) -> None:
        for selector in page.error_pages:
            if await self.driver.element_exists(selector):
                raise ErrorPageError(f"Error element {selector} found at {page.url}")

    def is_final_page(self, page: PageConfig) -> bool:
        is_final = page.url == self.config.final
        logger.debug(f"Final page check for {page.url}: {is_final}")
        return is_final

    def check_exit_page(self, page: PageConfig) -> None:
        for exit_path in self.config.exit_paths:
            if exit_path.matches(page.url):
                raise ExitPageError(f"Exit page found at {page.url}")

    def check_max_tries(self, page: PageConfig) -> None:
        if page.page_polling:
            return

        tries = self.history.count(page.url)
        logger.debug(f"Visited {page.url} {tries} times of {page.max_retries} retries")
        if tries > page.max_retries:
            raise MaxTriesError(f"Max tries reached at {page.url}")

    async def collect_values(self, page: PageConfig, entry: ReportEntry) -> None:
        """Read the page's collect selectors into the collected values.

        Each key is collected independently; a key that cannot be read is
        recorded as a failure and does not stop the others.
        """
        if not page.collect:
            return

        collected: Dict[str, str] = {}
        failures: List[CollectResult] = []
        for name, selector in page.collect.items():
            try:
                collected[name] = await self.driver.read_value(selector)
                logger.debug(f"Collected {name}={collected[name]!r}")
            except DriverError as e:
                logger.warning(f"Unable to collect {name} from {selector}: {e}")
                failures.append(
                    CollectResult(
                        name=name,
                        selector=selector,
                        status=OperationStatus.FAILED,
                        reason=str(e),
                    )
                )

        entry.collect = collected
        if failures:
            entry.collect_failures = failures
        self.values.update(collected)

    async def audit_accessibility(self, page: PageConfig, entry: ReportEntry) -> None:
        """Run axe on the page and record the findings that survive filtering.

        Raises:
            AccessibilityError: If findings remain and the page stops on fail
        """
        logger.debug(f"Running axe on {page.url}")
        results = await self.driver.run_accessibility_audit(page.axe.options)
        findings = evaluate_audit(results, page.axe)
        if not findings:
            return

        logger.error(f"Axe analysis errors on {page.url}:")
        for finding in findings:
            logger.error(f"  {finding.describe()}")
        entry.axe = findings

        if page.axe.screenshot:
            await self.capture(page.url)

        error = AccessibilityError(
            f"Axe analysis failed for page {results.get('url', page.url)}", findings
        )
        if page.axe.stop_on_fail:
            raise error
        self.errors.append(error)

    async def apply_viewport(self, viewport: Optional[Viewport]) -> None:
        if viewport is None or viewport == self._viewport:
            return
        await self.driver.set_viewport(viewport)
        self._viewport = viewport

    async def process_page(self, url: str) -> bool:
        """Process the page the browser is currently on.

        Returns:
            False when the final page is reached, True to continue

        Raises:
            JourneyError: On a terminal journey failure
            DriverError: If a driver call fails
        """
        now = time.monotonic()
        elapsed = 0 if self._last_timestamp is None else round((now - self._last_timestamp) * 1000)
        self._last_timestamp = now

        logger.info(f"{elapsed}ms\t{url}")
        entry = ReportEntry(time=elapsed, url=url)
        self.report.append(entry)

        page = self.find_page_config(url)

        self.check_allowed_host(page)
        await self.check_error_page(page)

        await self.collect_values(page, entry)

        if page.screenshot:
            await self.capture(url)

        if self.config.axe and page.axe.run:
            await self.audit_accessibility(page, entry)

        if self.is_final_page(page):
            logger.debug("Final page reached")
            return False

        self.check_exit_page(page)
        self.check_max_tries(page)

        self.history.append(url)

        if page.literal_navigation:
            next_url = urljoin(self.config.url, page.navigate)
            logger.debug(f"Navigating directly to {next_url}")
            await self.driver.navigate(next_url)
            return True

        await self.apply_viewport(page.viewport)

        form = FormFiller(self.driver, strict=page.strict_fields)
        entry.field_results = await form.fill(page.field_map, self.values)

        await form.navigate(page.navigate)
        await self.driver.wait_for(page.wait_for, page.navigate_timeout)

        return True

    async def run(self) -> RunReport:
        """Run the journey to completion.

        Never raises on journey or driver failures; they are recorded in
        the returned report with the errored state.

        Returns:
            Run report
        """
        self._reset()
        page_url = self.config.start
        logger.debug(f"Starting journey at {page_url}")

        try:
            await self.apply_viewport(self.config.browser.viewport)
            await self.driver.navigate(self.config.start)
            self.state = LifecycleState.PROCESSING_PAGE

            page_url = await self.driver.current_url()
            while await self.process_page(page_url):
                page_url = await self.driver.current_url()

            self.state = LifecycleState.FINISHED
            logger.info(f"Journey finished at {page_url}")
        except Exception as e:
            logger.error(f"Journey failed at {page_url}: {e}")
            self.errors.append(e)
            self.state = LifecycleState.ERRORED
            try:
                await self.capture(page_url)
            except Exception as capture_error:
                logger.error(f"Unable to capture failed page {page_url}: {capture_error}")

        return self.to_report()
