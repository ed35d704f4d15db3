"""Form filling and navigation against a browser driver.

The FormFiller applies a page's field map to the live form and then
triggers navigation. Field keys are CSS selectors; the value type decides
the final target selector and the live DOM input type decides how the
value is applied.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from journey_runner.browser.base import BrowserDriver, DriverError
from journey_runner.journey.errors import FormFillError, NavigationError
from journey_runner.models.report_models import FieldResult, OperationStatus

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{\s*([^\s}]+)\s*\}\}")

TEXT_INPUT_TYPES = frozenset(
    {
        "text",
        "email",
        "tel",
        "number",
        "password",
        "search",
        "url",
        "date",
        "textarea",
    }
)
CLICK_INPUT_TYPES = frozenset({"radio", "checkbox"})


def css_string(value: Any) -> str:
    """Quote a value for use inside a CSS attribute selector."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def substitute_placeholders(value: str, context: Mapping[str, Any]) -> str:
    """Replace ``{{ name }}`` placeholders with collected values.

    Unknown names are left verbatim and logged.
    """

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in context:
            logger.warning(f"No collected value for placeholder {match.group(0)}")
            return match.group(0)
        return str(context[name])

    return PLACEHOLDER.sub(replace, value)


class FormFiller:
    """Fill form fields and navigate away from a page."""

    def __init__(self, driver: BrowserDriver, strict: bool = False):
        """Initialize the form filler.

        Args:
            driver: Browser driver for the current page
            strict: Raise FormFillError on the first failed field
        """
        self.driver = driver
        self.strict = strict

    @staticmethod
    def resolve_target(selector: str, value: Any) -> Tuple[str, Any, Optional[str]]:
        """Work out the element to act on for a field value.

        Returns:
            Tuple of target selector, value to apply and select attribute.
            The attribute is only set for attribute-matched select values.
        """
        if isinstance(value, bool):
            return f"{selector}-{'true' if value else 'false'}", value, None
        if isinstance(value, (list, tuple)):
            if not value:
                raise ValueError("Empty list value")
            return f"{selector}[value={css_string(value[0])}]", True, None
        if isinstance(value, Mapping):
            if "value" not in value:
                raise ValueError("Mapping value needs a 'value' key")
            return selector, str(value["value"]), str(value.get("attribute", "value"))
        return selector, str(value), None

    async def fill_field(
        self, selector: str, value: Any, context: Mapping[str, Any]
    ) -> FieldResult:
        """Fill a single field.

        Raises:
            DriverError: If the driver cannot act on the element
            ValueError: If the value shape is not supported
        """
        if isinstance(value, str):
            value = substitute_placeholders(value, context)

        target, applied, attribute = self.resolve_target(selector, value)

        if attribute is not None:
            input_type = await self.driver.get_input_type(target)
            if input_type.startswith("select"):
                await self.driver.set_value(
                    target, applied, is_select=True, attribute=attribute
                )
            else:
                target = f"{selector}[{attribute}={css_string(applied)}]"
                await self.driver.click(target)
            return FieldResult(selector=target, value=applied, status=OperationStatus.SET)

        input_type = await self.driver.get_input_type(target)
        logger.debug(f"Filling {target} ({input_type}) with {applied!r}")

        if input_type in CLICK_INPUT_TYPES or isinstance(applied, bool):
            await self.driver.click(target)
        elif input_type in TEXT_INPUT_TYPES or input_type == "file":
            await self.driver.set_value(target, applied)
        elif input_type == "select-one":
            await self.driver.set_value(target, applied, is_select=True)
        elif input_type == "select-multiple":
            logger.debug(f"Select multiple not supported: {target}")
            return FieldResult(
                selector=target,
                value=applied,
                status=OperationStatus.SKIPPED,
                reason="select-multiple not supported",
            )
        else:
            logger.debug(f"Input type not supported: {target} ({input_type})")
            return FieldResult(
                selector=target,
                value=applied,
                status=OperationStatus.SKIPPED,
                reason=f"unsupported input type {input_type}",
            )

        return FieldResult(selector=target, value=applied, status=OperationStatus.SET)

    async def fill(
        self, field_map: Mapping[str, Any], context: Optional[Mapping[str, Any]] = None
    ) -> List[FieldResult]:
        """Fill every field of the field map in order.

        Args:
            field_map: Selector to value mapping
            context: Collected values for placeholder substitution

        Returns:
            One result per field

        Raises:
            FormFillError: If strict and a field fails
        """
        context = context or {}
        results: List[FieldResult] = []

        for selector, value in field_map.items():
            if value is None:
                results.append(
                    FieldResult(
                        selector=selector,
                        status=OperationStatus.SKIPPED,
                        reason="no value",
                    )
                )
                continue

            try:
                results.append(await self.fill_field(selector, value, context))
            except (DriverError, ValueError) as e:
                if self.strict:
                    raise FormFillError(f"Unable to set {selector}: {e}") from e
                logger.warning(f"Unable to set form value {selector}={value!r}: {e}")
                results.append(
                    FieldResult(
                        selector=selector,
                        value=value,
                        status=OperationStatus.FAILED,
                        reason=str(e),
                    )
                )

        return results

    async def navigate(self, selectors: Union[bool, str, Sequence[Union[bool, str]]]) -> None:
        """Click the first navigation element that exists.

        Args:
            selectors: A selector, a list of selectors, or False for no click

        Raises:
            NavigationError: If no selector matches an element
        """
        if isinstance(selectors, (str, bool)):
            selectors = [selectors]

        found: Optional[str] = None
        for selector in selectors:
            if selector is False:
                logger.debug("No navigation click")
                return
            if not selector or selector is True:
                continue
            logger.debug(f"Looking for navigation selector {selector}")
            if await self.driver.element_exists(selector):
                found = selector
                break

        if found is None:
            raise NavigationError("No navigation selector found")

        logger.debug(f"Navigating by clicking {found}")
        try:
            await self.driver.click(found)
        except DriverError as e:
            # the click may already have started the navigation
            logger.warning(f"Navigation click error on {found}: {e}")
