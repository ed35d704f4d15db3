"""Journey configuration models.

This module defines the Pydantic models describing a journey: the global
journey configuration loaded once before a run, the ordered page table with
its compiled path patterns, exit paths, browser options, and the resolved
per-page configuration produced for every processed page.

Config files use camelCase keys (``maxRetries``, ``waitFor``); every model
accepts both the camelCase alias and the snake_case attribute name.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


DEFAULT_NAVIGATE_SELECTORS = [
    'button[type="submit"]',
    'input[type="submit"]',
    "a.button",
    "button",
]


class WaitStrategy(str, Enum):
    """Named navigation wait strategies."""

    LOAD = "load"
    IDLE = "idle"


class _ConfigModel(BaseModel):
    """Base model accepting camelCase aliases from config files."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Viewport(_ConfigModel):
    """Browser viewport size."""

    width: int = Field(default=1024, description="Viewport width")
    height: int = Field(default=1000, description="Viewport height")


class AxeIgnore(_ConfigModel):
    """Regular expressions pruning the nodes of one axe rule.

    A node is dropped when any configured expression matches it. A
    violation whose nodes are all dropped is ignored entirely.
    """

    html: Optional[str] = Field(default=None, description="Regex on node markup")
    summary: Optional[str] = Field(
        default=None, description="Regex on node failure summary"
    )
    target: Optional[str] = Field(
        default=None, description="Regex on comma-joined node target selectors"
    )


class AxeConfig(_ConfigModel):
    """Per-page accessibility audit configuration."""

    run: bool = Field(default=True, description="Run the audit on this page")
    stop_on_fail: bool = Field(
        default=False, description="Escalate findings to a terminal error"
    )
    simple: bool = Field(default=True, description="Flatten to one finding per node")
    screenshot: bool = Field(
        default=False, description="Capture the page when findings remain"
    )
    options: Dict[str, Any] = Field(
        default_factory=dict, description="Options passed to axe.run()"
    )
    ignore: Dict[str, AxeIgnore] = Field(
        default_factory=dict, description="Ignore table keyed by rule id"
    )


class PageConfig(_ConfigModel):
    """Effective configuration for one visited page.

    Always the deep merge of the journey defaults and the first matching
    page-table overrides, plus the page URL.
    """

    url: str = Field(description="Page URL this configuration was resolved for")
    field_map: Dict[str, Any] = Field(
        default_factory=dict, alias="fields", description="Selector to value map"
    )
    navigate: Union[bool, str, List[Union[bool, str]]] = Field(
        default_factory=lambda: list(DEFAULT_NAVIGATE_SELECTORS),
        description="Literal URL, False, or candidate navigation selectors",
    )
    wait_for: Union[int, WaitStrategy] = Field(
        default=WaitStrategy.LOAD, description="load, idle or a delay in ms"
    )
    navigate_timeout: int = Field(default=30000, description="Navigation timeout (ms)")
    max_retries: int = Field(default=0, ge=0, description="Allowed revisits of this URL")
    page_polling: bool = Field(default=False, description="Exempt from retry limit")
    axe: AxeConfig = Field(default_factory=AxeConfig, description="Audit settings")
    collect: Optional[Dict[str, str]] = Field(
        default=None, description="Value name to selector map"
    )
    screenshot: bool = Field(default=False, description="Capture page on visit")
    error_pages: List[str] = Field(
        default_factory=list, description="Selectors marking an error page"
    )
    strict_fields: bool = Field(
        default=False, description="Fail the page on the first field error"
    )
    viewport: Optional[Viewport] = Field(default=None, description="Viewport size")

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    @field_validator("wait_for", mode="before")
    @classmethod
    def _normalize_wait_for(cls, value: Any) -> Any:
        # "navigate" is accepted as a synonym for "load"
        if value == "navigate":
            return WaitStrategy.LOAD
        return value

    @property
    def literal_navigation(self) -> bool:
        """True when ``navigate`` names a URL rather than selectors."""
        return isinstance(self.navigate, str)


class PageRule(BaseModel):
    """A compiled page-table entry: path pattern plus raw overrides."""

    pattern: re.Pattern = Field(description="Compiled path pattern")
    overrides: Dict[str, Any] = Field(
        default_factory=dict, description="Raw page overrides"
    )

    def matches(self, path: str) -> bool:
        return self.pattern.fullmatch(path) is not None


class ExitPath(BaseModel):
    """A page outside the journey.

    Matches the exact URL, or any path matching the pattern on the same host.
    """

    host: str = Field(description="Host (with port) the pattern applies to")
    pattern: Optional[re.Pattern] = Field(default=None, description="Compiled path pattern")
    url: Optional[str] = Field(default=None, description="Exact absolute URL")

    def matches(self, url: str) -> bool:
        if self.url is not None and url == self.url:
            return True
        if self.pattern is None:
            return False
        parts = urlsplit(url)
        return parts.netloc == self.host and self.pattern.fullmatch(parts.path) is not None


class BrowserConfig(_ConfigModel):
    """Options passed to the browser driver backend."""

    headless: bool = Field(default=False, description="Run without a visible window")
    slow_mo: int = Field(default=0, ge=0, description="Delay between operations (ms)")
    browser_type: str = Field(default="chromium", description="Browser engine")
    viewport: Optional[Viewport] = Field(default=None, description="Initial viewport")
    disable_images: bool = Field(default=False, description="Block image requests")
    disable_css: bool = Field(
        default=False, alias="disableCSS", description="Block stylesheet requests"
    )
    disable_analytics: bool = Field(default=False, description="Block /collect beacons")
    disable_javascript: bool = Field(default=False, description="Disable JavaScript")
    server: Optional[str] = Field(default=None, description="Remote WebDriver URL")
    capabilities: Dict[str, Any] = Field(
        default_factory=dict, description="WebDriver capabilities"
    )

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class JourneyConfig(_ConfigModel):
    """Journey configuration, immutable once built.

    ``start`` and ``final`` are absolute URLs resolved against ``url``; the
    page table and exit paths hold compiled patterns.
    """

    url: str = Field(description="Base URL")
    start: str = Field(description="Absolute start URL")
    final: str = Field(description="Absolute final URL")
    axe: bool = Field(default=False, description="Global accessibility audit switch")
    last_page_pause: int = Field(
        default=3000, description="Pause on the last screen when not headless (ms)"
    )
    allowed_hosts: List[str] = Field(default_factory=list, description="Allowed hosts")
    exit_paths: List[ExitPath] = Field(default_factory=list, description="Exit paths")
    pages: List[PageRule] = Field(default_factory=list, description="Ordered page table")
    defaults: Dict[str, Any] = Field(
        default_factory=dict, description="Raw page defaults"
    )
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    driver: str = Field(default="playwright", description="Driver backend name")
    values: Dict[str, str] = Field(
        default_factory=dict, description="Initial collected values"
    )
    report_filename: Optional[str] = Field(
        default=None, description="Run report path prefix"
    )
    report_prefix: Optional[str] = Field(
        default=None, description="Per-page capture path prefix"
    )
    verbose: bool = Field(default=False, description="Verbose error output")
    base_path: Optional[str] = Field(
        default=None, description="Directory of the last loaded config file"
    )

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    @model_validator(mode="after")
    def _allow_base_host(self) -> "JourneyConfig":
        host = self.base_host
        if host and host not in self.allowed_hosts:
            self.allowed_hosts.append(host)
        return self

    @property
    def base_host(self) -> str:
        return urlsplit(self.url).netloc
