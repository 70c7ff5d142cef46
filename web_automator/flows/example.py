"""
Example automation flow, one per engine.

Steps: start -> navigate -> title/url -> heading (best effort) -> scroll ->
screenshot (best effort) -> output directories -> quit.

Required steps abort the flow on failure; best-effort steps are downgraded to
a warning and the flow continues. Each step yields a StepOutcome for the CLI
to render.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.errors import AutomatorError
from ..core.settings import (
    ConfigManager,
    playwright_options_from_config,
    selenium_options_from_config,
)
from ..io.playwright_driver import PlaywrightDriver
from ..io.selenium_driver import SeleniumDriver

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://example.com"
HEADING_SELECTOR = "h1"
SCREENSHOT_NAME = "example-page.png"
SCROLL_BOTTOM = "window.scrollTo(0, document.body.scrollHeight);"
SCROLL_TOP = "window.scrollTo(0, 0);"


@dataclass
class StepOutcome:
    """UI-friendly outcome used by the CLI."""

    index: int
    name: str
    ok: bool
    detail: str = "-"
    required: bool = True


class _Steps:
    def __init__(self, engine: str) -> None:
        self.engine = engine
        self.outcomes: list[StepOutcome] = []

    def ok(self, name: str, detail: Any = "-", *, required: bool = True) -> None:
        self.outcomes.append(
            StepOutcome(len(self.outcomes) + 1, name, True, str(detail), required)
        )

    def fail(self, name: str, error: Exception, *, required: bool = True) -> None:
        if required:
            logger.error("[%s] %s failed: %s", self.engine, name, error)
        else:
            logger.warning("[%s] %s skipped: %s", self.engine, name, error)
        self.outcomes.append(
            StepOutcome(len(self.outcomes) + 1, name, False, str(error), required)
        )


def flow_failed(outcomes: list[StepOutcome]) -> bool:
    return any(not o.ok and o.required for o in outcomes)


def _target(cfg: ConfigManager, url: Optional[str]) -> str:
    return url or cfg.get_str("automation.defaultUrl", DEFAULT_URL)


def run_selenium_example(
    cfg: ConfigManager,
    url: Optional[str] = None,
    *,
    driver_factory: Optional[Callable[..., SeleniumDriver]] = None,
) -> list[StepOutcome]:
    """Blocking flow on SeleniumDriver."""
    steps = _Steps("selenium")
    target = _target(cfg, url)
    include_ts = cfg.get_bool("output.screenshots.includeTimestamp", True)
    try:
        options = selenium_options_from_config(cfg)
    except AutomatorError as e:
        steps.fail("configure", e)
        return steps.outcomes
    steps.ok("configure", f"{options.browser.value} (headless: {options.headless})")

    driver = (driver_factory or SeleniumDriver)(options)
    try:
        with driver:
            steps.ok("start")
            nav = driver.navigate(target)
            steps.ok("navigate", nav.url)
            steps.ok("title", driver.get_title())
            steps.ok("current_url", driver.get_current_url())

            try:
                steps.ok("heading", driver.get_text(HEADING_SELECTOR), required=False)
            except AutomatorError as e:
                steps.fail("heading", e, required=False)

            driver.execute_script(SCROLL_BOTTOM)
            driver.pause(500)
            driver.execute_script(SCROLL_TOP)
            steps.ok("scroll")

            try:
                path = driver.screenshot(SCREENSHOT_NAME, include_ts)
                steps.ok("screenshot", path, required=False)
            except AutomatorError as e:
                steps.fail("screenshot", e, required=False)

            dirs = driver.output_directories()
            steps.ok("directories", dirs.base)
            steps.ok("page_source", f"{len(driver.get_page_source())} chars")
    except AutomatorError as e:
        steps.fail(e.operation or "flow", e)
    steps.ok("quit", driver.state.value)
    return steps.outcomes


async def run_playwright_example(
    cfg: ConfigManager,
    url: Optional[str] = None,
    *,
    driver_factory: Optional[Callable[..., PlaywrightDriver]] = None,
) -> list[StepOutcome]:
    """Suspending flow on PlaywrightDriver."""
    steps = _Steps("playwright")
    target = _target(cfg, url)
    include_ts = cfg.get_bool("output.screenshots.includeTimestamp", True)
    try:
        options = playwright_options_from_config(cfg)
    except AutomatorError as e:
        steps.fail("configure", e)
        return steps.outcomes
    steps.ok("configure", f"{options.browser.value} (headless: {options.headless})")

    driver = (driver_factory or PlaywrightDriver)(options)
    try:
        async with driver:
            steps.ok("start")
            nav = await driver.navigate(target)
            steps.ok("navigate", f"{nav.url} ({nav.status})")
            steps.ok("title", await driver.get_title())
            steps.ok("current_url", driver.get_current_url())

            try:
                steps.ok("heading", await driver.get_text(HEADING_SELECTOR), required=False)
            except AutomatorError as e:
                steps.fail("heading", e, required=False)

            await driver.execute_script(SCROLL_BOTTOM)
            await driver.pause(500)
            await driver.execute_script(SCROLL_TOP)
            steps.ok("scroll")

            try:
                path = await driver.screenshot(SCREENSHOT_NAME, include_ts)
                steps.ok("screenshot", path, required=False)
            except AutomatorError as e:
                steps.fail("screenshot", e, required=False)

            dirs = driver.output_directories()
            steps.ok("directories", dirs.base)
            if options.record_video:
                steps.ok("video", await driver.video_path(), required=False)
            steps.ok("page_source", f"{len(await driver.get_page_source())} chars")
    except AutomatorError as e:
        steps.fail(e.operation or "flow", e)
    steps.ok("quit", driver.state.value)
    return steps.outcomes
