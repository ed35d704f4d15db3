"""Main CLI application entry point."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
from dotenv import load_dotenv

from journey_runner.browser.registry import DRIVERS
from journey_runner.config.journey_config import (
    apply_env_overrides,
    build_journey_config,
    load_config,
)
from journey_runner.journey.errors import ConfigurationError
from journey_runner.journey.page_resolver import deep_merge
from journey_runner.runner import run_journey

logger = logging.getLogger(__name__)


def cli_overrides(
    raw: Dict[str, Any],
    url: Optional[str] = None,
    headless: Optional[bool] = None,
    slowmo: Optional[int] = None,
    report: Optional[str] = None,
    axe: Optional[bool] = None,
    driver: Optional[str] = None,
    verbose: bool = False,
) -> Dict[str, Any]:
    """Apply command-line options over a raw config.

    The report path is resolved relative to the directory of the last
    config file.
    """
    overrides: Dict[str, Any] = {}
    if url is not None:
        overrides["url"] = url
    if headless is not None:
        overrides.setdefault("browser", {})["headless"] = headless
    if slowmo is not None:
        overrides.setdefault("browser", {})["slowMo"] = slowmo
    if axe is not None:
        overrides["axe"] = axe
    if driver is not None:
        overrides["driver"] = driver
    if report:
        base_path = Path(raw.get("basePath") or Path.cwd())
        overrides["reportFilename"] = str((base_path / report).resolve())
    if verbose:
        overrides["verbose"] = True
    return deep_merge(raw, overrides)


@click.command()
@click.argument("config_files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("-u", "--url", help="Base URL to run against")
@click.option(
    "-h", "--headless/--no-headless",
    default=None,
    help="Run in headless mode",
)
@click.option("-s", "--slowmo", type=int, help="Slow motion delay in ms")
@click.option("-r", "--report", help="Report filename")
@click.option(
    "-a", "--axe/--no-axe",
    default=None,
    help="Run axe report on each page",
)
@click.option(
    "-d", "--driver",
    type=click.Choice(sorted(DRIVERS)),
    help="Browser driver backend",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Verbose errors and debug logging",
)
def main(
    config_files: Tuple[str, ...],
    url: Optional[str],
    headless: Optional[bool],
    slowmo: Optional[int],
    report: Optional[str],
    axe: Optional[bool],
    driver: Optional[str],
    verbose: bool,
) -> None:
    """
    Journey runner - drive a browser through a multi-page web journey.

    Run a journey:
        journey-runner journey.json

    Layer config files and run headless with an axe audit:
        journey-runner base.yaml local.yaml --headless --axe
    """
    # Configure logging
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for noisy in ("asyncio", "urllib3", "selenium"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    load_dotenv(Path.cwd() / ".env")

    try:
        raw = apply_env_overrides(load_config(config_files))
        raw = cli_overrides(
            raw,
            url=url,
            headless=headless,
            slowmo=slowmo,
            report=report,
            axe=axe,
            driver=driver,
            verbose=verbose,
        )
        config = build_journey_config(raw)
        run_report = asyncio.run(run_journey(config))
    except KeyboardInterrupt:
        sys.exit(130)
    except ConfigurationError as e:
        click.echo(f"CLI: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        if verbose:
            logger.exception("CLI error")
        else:
            click.echo(f"CLI: {e}", err=True)
        sys.exit(1)

    if run_report.failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
