"""Journey runner.

Creates the browser driver, runs the journey lifecycle engine and persists
the run report. The driver is always destroyed, after the report has been
written.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from journey_runner.browser.base import BrowserDriver
from journey_runner.browser.registry import get_driver
from journey_runner.journey.lifecycle import JourneyLifecycle
from journey_runner.models.journey_models import JourneyConfig
from journey_runner.models.report_models import RunReport

logger = logging.getLogger(__name__)


async def write_report(filename: str, driver: BrowserDriver, report: RunReport) -> None:
    """Persist a run report next to a capture of the last page.

    Writes ``{filename}-{success|error}.json`` and a full-page screenshot;
    errored runs also get the page HTML. Capture failures are logged so they
    never hide the report itself.
    """
    outcome = "error" if report.failed else "success"
    json_path = Path(f"{filename}-{outcome}.json")
    json_path.write_text(report.to_json(), encoding="utf-8")
    logger.info(f"Report written to {json_path}")

    try:
        if report.failed:
            await driver.capture_html(f"{filename}-{outcome}.html")
        await driver.capture_screenshot(f"{filename}-{outcome}.png")
    except Exception as e:
        logger.error(f"Unable to capture last page for report: {e}")


async def run_journey(
    config: JourneyConfig, driver: Optional[BrowserDriver] = None
) -> RunReport:
    """Run a journey end to end.

    Args:
        config: Journey configuration
        driver: Driver to use instead of the configured backend

    Returns:
        Run report

    Raises:
        DriverError: If the browser cannot be started
    """
    if config.report_filename:
        Path(config.report_filename).parent.mkdir(parents=True, exist_ok=True)

    driver = driver or get_driver(config.driver, config.browser)

    try:
        await driver.create()

        lifecycle = JourneyLifecycle(config, driver)
        report = await lifecycle.run()

        if report.failed:
            error = lifecycle.errors[-1]
            if config.verbose:
                logger.error(f"Journey failed: {error!r}", exc_info=error)
            else:
                logger.error(f"Journey failed: {error}")

        if config.report_filename:
            await write_report(config.report_filename, driver, report)

        # if not in headless mode, pause on last screen
        if not config.browser.headless and config.last_page_pause > 0:
            await asyncio.sleep(config.last_page_pause / 1000)
    finally:
        await driver.destroy()

    return report
