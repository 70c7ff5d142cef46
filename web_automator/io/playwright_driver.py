"""
Playwright-based AsyncDriver implementation (the suspending engine).

Conforms to io/driver.py's AsyncDriver Protocol:
- start() / quit()  (also `async with PlaywrightDriver(...)`)
- navigate(url) -> NavigationResult, go_back / go_forward / refresh
- click / fill / clear / get_text / get_attribute / find_elements
- wait_for_present / wait_for_visible / wait_for_interactable
- screenshot / execute_script / get_page_source / get_title / get_current_url

Extra (Playwright only):
- video_path() when options.record_video is set
- page / context / browser accessors

One driver owns exactly one playwright -> browser -> context -> page chain.
Calls on one driver must not overlap: every method awaits the page, and two
concurrent callers on the same page are not supported.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PwError,
    Locator as PwLocator,
    Page,
    Playwright,
    Route,
    TimeoutError as PwTimeoutError,
    async_playwright,
)

from ..core.errors import (
    CaptureError,
    ElementNotFoundError,
    InteractionError,
    InvalidSelectorError,
    NavigationError,
    ScriptExecutionError,
    StartupError,
    UnsupportedFeatureError,
)
from ..core.options import PlaywrightOptions
from ..core.result import NavigationResult
from ..core.selectors import Locator, LocatorStrategy
from ..core.waits import Deadline, WaitKind, async_wait_until
from .driver import DriverBase

logger = logging.getLogger(__name__)

# WebDriver-style script convention: `script` is a function body that can use
# `arguments[i]` and `return`.
_SCRIPT_WRAPPER = "(args) => (function() {{ {body}\n}}).apply(null, args)"


def native_selector(locator: Locator) -> str:
    """Render a resolved locator as a Playwright selector."""
    if locator.strategy is LocatorStrategy.XPATH:
        return f"xpath={locator.value}"
    if locator.strategy is LocatorStrategy.ID:
        return f'[id="{locator.value}"]'
    if locator.strategy is LocatorStrategy.CLASS_NAME:
        return f".{locator.value}"
    return locator.value


async def _block_images(route: Route) -> None:
    if route.request.resource_type == "image":
        await route.abort()
    else:
        await route.continue_()


def _budget(deadline: Deadline) -> int:
    # Playwright treats timeout=0 as "no timeout"
    return max(1, deadline.remaining_ms())


class PlaywrightDriver(DriverBase):
    """
    A concrete AsyncDriver based on Playwright.
    - `options.browser` picks chromium / firefox / webkit.
    - Timeouts, viewport, user agent, content filters, downloads and video
      are applied before the first page exists.
    """

    engine = "playwright"

    def __init__(self, options: Optional[PlaywrightOptions] = None, **kwargs: Any) -> None:
        super().__init__(options or PlaywrightOptions(**kwargs))
        self._options: PlaywrightOptions
        self._pw: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> "PlaywrightDriver":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.quit()

    # ---------------- lifecycle ----------------

    async def start(self) -> None:
        """Launch Playwright, the browser, one context and one page."""
        if not self._lifecycle.should_start():
            return
        o = self._options
        logger.info("Starting %s browser (headless: %s)", o.browser.value, o.headless)
        try:
            self._pw = await async_playwright().start()
            browser_type = getattr(self._pw, o.browser.value)
            self._browser = await browser_type.launch(
                headless=o.headless,
                slow_mo=o.slow_mo_ms,
                downloads_path=str(self._paths.downloads_dir()),
            )
            self._context = await self._browser.new_context(**self._context_kwargs())
            self._context.set_default_timeout(o.timeout_ms)
            self._context.set_default_navigation_timeout(o.navigation_timeout_ms)
            if o.disable_images:
                await self._context.route("**/*", _block_images)
            self._page = await self._context.new_page()
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to start browser driver: %s", e)
            await self._release()
            raise StartupError(f"driver startup failed: {e}", operation="start", cause=e) from e

        self._lifecycle.mark_started()
        if o.record_video:
            logger.info("Video recording enabled: %s", self._paths.directories().videos)
        logger.info("Browser driver started successfully")

    async def quit(self) -> None:
        """Close page, context, browser and stop Playwright (in that order)."""
        if not self._lifecycle.should_quit():
            return
        await self._release()
        self._lifecycle.mark_quit()
        logger.info("Browser driver quit successfully")

    def _context_kwargs(self) -> dict[str, Any]:
        o = self._options
        viewport = {"width": o.window_width, "height": o.window_height}
        kwargs: dict[str, Any] = {
            "viewport": viewport,
            "ignore_https_errors": o.accept_insecure_certs,
            "accept_downloads": True,
            "java_script_enabled": not o.disable_javascript,
        }
        if o.user_agent:
            kwargs["user_agent"] = o.user_agent
        if o.record_video:
            kwargs["record_video_dir"] = str(self._paths.videos_dir())
            kwargs["record_video_size"] = viewport
        return kwargs

    async def _release(self) -> None:
        steps = (
            ("page", self._page, "close"),
            ("context", self._context, "close"),
            ("browser", self._browser, "close"),
            ("playwright", self._pw, "stop"),
        )
        for name, handle, method in steps:
            if handle is None:
                continue
            try:
                await getattr(handle, method)()
                logger.debug("Closed Playwright %s", name)
            except Exception as e:  # noqa: BLE001
                logger.warning("Cleanup warning (%s): %s", name, e)
        self._page = None
        self._context = None
        self._browser = None
        self._pw = None

    # ---------------- native handles ----------------

    @property
    def page(self) -> Page:
        return self._require("page")

    @property
    def context(self) -> BrowserContext:
        self._require("context")
        assert self._context is not None
        return self._context

    @property
    def browser(self) -> Browser:
        self._require("browser")
        assert self._browser is not None
        return self._browser

    # ---------------- navigation ----------------

    async def navigate(self, url: str) -> NavigationResult:
        page = self._require("navigate")
        logger.info("Navigating to: %s", url)
        try:
            response = await page.goto(
                url, wait_until="domcontentloaded", timeout=self._options.navigation_timeout_ms
            )
            title = await page.title()
        except PwError as e:
            logger.error("Navigation failed: %s", e)
            raise NavigationError(
                f"failed to navigate: {e}", operation="navigate", url=url, cause=e
            ) from e

        result = NavigationResult(
            url=page.url,
            title=title,
            success=bool(response.ok) if response is not None else False,
            status=response.status if response is not None else None,
        )
        if result.success:
            logger.info("Navigation completed successfully (status %s)", result.status)
        else:
            logger.warning("Navigation to %s finished with status %s", url, result.status)
        return result

    async def go_back(self) -> None:
        await self._history("go_back")
        logger.info("Navigated back")

    async def go_forward(self) -> None:
        await self._history("go_forward")
        logger.info("Navigated forward")

    async def refresh(self) -> None:
        await self._history("reload", operation="refresh")
        logger.info("Page refreshed")

    async def _history(self, method: str, *, operation: Optional[str] = None) -> None:
        op = operation or method
        page = self._require(op)
        try:
            await getattr(page, method)()
        except PwError as e:
            logger.error("%s failed: %s", op, e)
            raise NavigationError(f"failed to {op}: {e}", operation=op, url=page.url, cause=e) from e

    # ---------------- locate & waits ----------------

    async def _locate(
        self, operation: str, selector: str, deadline: Deadline
    ) -> PwLocator:
        page = self._require(operation)
        loc = page.locator(native_selector(self._locator(selector))).first
        try:
            await loc.wait_for(state="attached", timeout=_budget(deadline))
        except PwTimeoutError as e:
            logger.error("Element not found: %s", selector)
            raise ElementNotFoundError(
                f"element not found within {deadline.timeout_ms}ms",
                kind=WaitKind.PRESENT.value,
                timeout_ms=deadline.timeout_ms,
                selector=selector,
                operation=operation,
                cause=e,
            ) from e
        except PwError as e:
            logger.error("Element lookup failed: %s", selector)
            raise InvalidSelectorError(
                f"element lookup failed: {e}", operation=operation, selector=selector, cause=e
            ) from e
        return loc

    async def _wait(
        self, operation: str, selector: str, timeout_ms: Optional[int], kind: WaitKind
    ) -> tuple[PwLocator, Deadline]:
        deadline = Deadline(self._timeout(timeout_ms))
        loc = await self._locate(operation, selector, deadline)
        if kind is WaitKind.VISIBLE:
            await async_wait_until(
                loc.is_visible,
                deadline,
                kind=kind,
                selector=selector,
                ignored=(PwError,),
                operation=operation,
            )
        elif kind is WaitKind.INTERACTABLE:

            async def interactable() -> bool:
                return await loc.is_visible() and await loc.is_enabled()

            await async_wait_until(
                interactable,
                deadline,
                kind=kind,
                selector=selector,
                ignored=(PwError,),
                operation=operation,
            )
        return loc, deadline

    async def wait_for_present(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        await self._wait("wait_for_present", selector, timeout_ms, WaitKind.PRESENT)

    async def wait_for_visible(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        await self._wait("wait_for_visible", selector, timeout_ms, WaitKind.VISIBLE)

    async def wait_for_interactable(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        await self._wait("wait_for_interactable", selector, timeout_ms, WaitKind.INTERACTABLE)

    async def find_elements(self, selector: str) -> list[PwLocator]:
        page = self._require("find_elements")
        try:
            return await page.locator(native_selector(self._locator(selector))).all()
        except PwError as e:
            logger.error("Elements lookup failed: %s", selector)
            raise InvalidSelectorError(
                f"elements lookup failed: {e}", operation="find_elements", selector=selector, cause=e
            ) from e

    async def pause(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000)

    # ---------------- interactions ----------------

    async def click(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        loc, deadline = await self._wait("click", selector, timeout_ms, WaitKind.INTERACTABLE)
        try:
            await loc.click(timeout=_budget(deadline))
        except PwError as e:
            logger.error("Click failed: %s", selector)
            raise InteractionError(
                f"failed to click: {e}", operation="click", selector=selector, cause=e
            ) from e
        logger.info("Clicked element: %s", selector)

    async def fill(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> None:
        loc, deadline = await self._wait("fill", selector, timeout_ms, WaitKind.INTERACTABLE)
        try:
            await loc.fill(text, timeout=_budget(deadline))
        except PwError as e:
            logger.error("Fill failed: %s", selector)
            raise InteractionError(
                f"failed to fill: {e}", operation="fill", selector=selector, cause=e
            ) from e
        logger.info("Filled element: %s", selector)

    async def clear(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        loc, deadline = await self._wait("clear", selector, timeout_ms, WaitKind.INTERACTABLE)
        try:
            await loc.clear(timeout=_budget(deadline))
        except PwError as e:
            logger.error("Clear failed: %s", selector)
            raise InteractionError(
                f"failed to clear: {e}", operation="clear", selector=selector, cause=e
            ) from e
        logger.info("Cleared element: %s", selector)

    async def get_text(self, selector: str, timeout_ms: Optional[int] = None) -> str:
        loc, deadline = await self._wait("get_text", selector, timeout_ms, WaitKind.PRESENT)
        try:
            text = await loc.inner_text(timeout=_budget(deadline))
        except PwError as e:
            logger.error("Get text failed: %s", selector)
            raise InteractionError(
                f"failed to get text: {e}", operation="get_text", selector=selector, cause=e
            ) from e
        return (text or "").strip()

    async def get_attribute(
        self, selector: str, name: str, timeout_ms: Optional[int] = None
    ) -> Optional[str]:
        loc, deadline = await self._wait("get_attribute", selector, timeout_ms, WaitKind.PRESENT)
        try:
            return await loc.get_attribute(name, timeout=_budget(deadline))
        except PwError as e:
            logger.error("Get attribute %r failed: %s", name, selector)
            raise InteractionError(
                f"failed to get attribute {name!r}: {e}",
                operation="get_attribute",
                selector=selector,
                cause=e,
            ) from e

    # ---------------- capture & page info ----------------

    async def screenshot(
        self, filename: Optional[str] = None, include_timestamp: bool = True
    ) -> Optional[Path]:
        """Full-page PNG under {output}/screenshots; None when no filename is given."""
        page = self._require("screenshot")
        if filename is None:
            return None
        path = self._paths.screenshot_path(filename, include_timestamp)
        try:
            await page.screenshot(path=str(path), full_page=True)
        except PwError as e:
            logger.error("Screenshot failed: %s", e)
            raise CaptureError(
                f"failed to take screenshot: {e}",
                operation="screenshot",
                details={"path": str(path)},
                cause=e,
            ) from e
        logger.info("Screenshot saved: %s", path)
        return path

    async def video_path(self) -> Path:
        """Where the session video is written (finalized when the context closes)."""
        page = self._require("video_path")
        if not self._options.record_video or page.video is None:
            raise UnsupportedFeatureError(
                "video recording not enabled; set record_video and restart the driver",
                operation="video_path",
            )
        try:
            return Path(await page.video.path())
        except PwError as e:
            raise CaptureError(f"failed to get video path: {e}", operation="video_path", cause=e) from e

    async def execute_script(self, script: str, *args: Any) -> Any:
        page = self._require("execute_script")
        try:
            return await page.evaluate(_SCRIPT_WRAPPER.format(body=script), list(args))
        except PwError as e:
            logger.error("Execute script failed: %s", e)
            raise ScriptExecutionError(
                f"failed to execute script: {e}", operation="execute_script", script=script, cause=e
            ) from e

    async def get_page_source(self) -> str:
        page = self._require("get_page_source")
        try:
            return await page.content()
        except PwError as e:
            logger.error("Get page source failed: %s", e)
            raise NavigationError(
                f"failed to get page source: {e}", operation="get_page_source", url=page.url, cause=e
            ) from e

    async def get_title(self) -> str:
        page = self._require("get_title")
        try:
            title = await page.title()
        except PwError as e:
            logger.error("Get title failed: %s", e)
            raise NavigationError(
                f"failed to get page title: {e}", operation="get_title", url=page.url, cause=e
            ) from e
        logger.info("Page title: %s", title)
        return title

    def get_current_url(self) -> str:
        return self._require("get_current_url").url

    # ---------------- internals ----------------

    def _require(self, operation: str) -> Page:
        self._lifecycle.require_started(operation)
        assert self._page is not None
        return self._page
