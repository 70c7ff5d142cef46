"""
Selector resolution shared by both engines.

A selector string is mapped to a `Locator` by ordered rules (first match wins):

1. ``//…`` or ``(//…``  -> XPATH
2. ``#id``              -> ID (value without the ``#``)
3. ``.class``           -> CLASS_NAME (value without the ``.``)
4. ``name=value``       -> ATTRIBUTE_EQUALS, rendered as ``[name="value"]``
5. anything else        -> CSS_SELECTOR, verbatim

Only the attribute value is quoted; callers must not pass unescaped quotes.
"""
# @file purpose: Pure selector -> locator resolution.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidSelectorError


class LocatorStrategy(str, Enum):
    XPATH = "xpath"
    ID = "id"
    CLASS_NAME = "class_name"
    ATTRIBUTE_EQUALS = "attribute_equals"
    CSS_SELECTOR = "css_selector"


@dataclass(frozen=True)
class Locator:
    """Resolved (strategy, value) pair. Build it with `resolve()`."""

    strategy: LocatorStrategy
    value: str


def resolve(selector: str) -> Locator:
    if not selector or not selector.strip():
        raise InvalidSelectorError("selector must be a non-empty string", selector=selector)

    if selector.startswith(("//", "(//")):
        return Locator(LocatorStrategy.XPATH, selector)

    if selector.startswith("#"):
        return Locator(LocatorStrategy.ID, _remainder(selector))

    if selector.startswith("."):
        return Locator(LocatorStrategy.CLASS_NAME, _remainder(selector))

    if "=" in selector:
        name, value = selector.split("=", 1)
        if not name:
            raise InvalidSelectorError("attribute selector has no attribute name", selector=selector)
        return Locator(LocatorStrategy.ATTRIBUTE_EQUALS, f'[{name}="{value}"]')

    return Locator(LocatorStrategy.CSS_SELECTOR, selector)


def _remainder(selector: str) -> str:
    value = selector[1:]
    if not value:
        raise InvalidSelectorError("selector prefix without a value", selector=selector)
    return value
