"""axe-core injection and result handling shared by the driver backends.

The axe-core library is loaded from a CDN into the page under test. Drivers
inject the script tag, then poll for ``window.axe`` every 100 ms for up to
10 seconds before failing closed.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

from journey_runner.browser.base import DriverError

logger = logging.getLogger(__name__)

# Axe-core CDN URL
AXE_CORE_CDN = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.7.2/axe.min.js"

AXE_POLL_INTERVAL_MS = 100
AXE_MAX_POLL_MS = 10000

AXE_LOADED_SCRIPT = "typeof window.axe !== 'undefined'"

# Playwright evaluates this as a function of the axe options
AXE_RUN_FUNCTION = """
(options) => window.axe.run(document, options || {})
    .then(results => JSON.parse(JSON.stringify(results)))
"""

# Selenium injects with execute_script and runs with execute_async_script
AXE_INJECT_SCRIPT = f"""
var script = document.createElement('script');
script.setAttribute('crossorigin', 'anonymous');
script.setAttribute('src', '{AXE_CORE_CDN}');
document.head.appendChild(script);
"""

AXE_RUN_ASYNC_SCRIPT = """
var options = arguments[0];
var callback = arguments[arguments.length - 1];
try {
    window.axe.run(document, options || {})
        .then(function (results) { callback(JSON.parse(JSON.stringify(results))); })
        .catch(function (e) { callback({ error: 'Error running axe: ' + e.message }); });
} catch (e) {
    callback({ error: 'Error running axe: ' + e.message });
}
"""


async def wait_for_axe(
    is_loaded: Callable[[], Awaitable[bool]],
    interval_ms: int = AXE_POLL_INTERVAL_MS,
    max_wait_ms: int = AXE_MAX_POLL_MS,
) -> None:
    """Poll until axe-core is available in the page.

    Args:
        is_loaded: Coroutine function reporting whether ``window.axe`` exists
        interval_ms: Poll interval in milliseconds
        max_wait_ms: Maximum time to wait in milliseconds

    Raises:
        DriverError: If axe does not load in time
    """
    waited = 0
    while True:
        if await is_loaded():
            logger.debug(f"axe-core available after {waited}ms")
            return
        if waited >= max_wait_ms:
            raise DriverError("Timeout waiting for axe")
        await asyncio.sleep(interval_ms / 1000)
        waited += interval_ms


def normalize_results(results: Any, page_url: str) -> Dict[str, Any]:
    """Validate raw axe output and guarantee ``url`` and ``violations`` keys.

    Raises:
        DriverError: If axe reported an error or returned nothing
    """
    if not isinstance(results, dict):
        raise DriverError(f"Unable to run axe: unexpected result {results!r}")
    if results.get("error"):
        raise DriverError(f"Unable to run axe: {results['error']}")

    normalized = dict(results)
    normalized.setdefault("url", page_url)
    normalized["violations"] = list(results.get("violations") or [])
    return normalized
