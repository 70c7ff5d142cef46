"""
Selenium-based BlockingDriver implementation (the blocking engine).

Conforms to io/driver.py's BlockingDriver Protocol. Every call runs to
completion on the calling thread; the only sleeping it does on its own is
polling inside waits and the explicit pause().

Supports chrome / firefox / edge. Video recording is not available on this
engine and is rejected when SeleniumOptions are built.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchElementException,
    StaleElementReferenceException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from ..core.errors import (
    CaptureError,
    ElementNotFoundError,
    InteractionError,
    InvalidSelectorError,
    NavigationError,
    ScriptExecutionError,
    StartupError,
)
from ..core.options import SeleniumBrowser, SeleniumOptions
from ..core.result import NavigationResult
from ..core.selectors import Locator, LocatorStrategy
from ..core.waits import DEFAULT_POLL_INTERVAL_MS, Deadline, WaitKind, wait_until
from .driver import DriverBase

logger = logging.getLogger(__name__)

_NOT_YET = (NoSuchElementException, StaleElementReferenceException)

_BY = {
    LocatorStrategy.XPATH: By.XPATH,
    LocatorStrategy.ID: By.ID,
    LocatorStrategy.CLASS_NAME: By.CLASS_NAME,
    LocatorStrategy.ATTRIBUTE_EQUALS: By.CSS_SELECTOR,
    LocatorStrategy.CSS_SELECTOR: By.CSS_SELECTOR,
}


def native_by(locator: Locator) -> tuple[str, str]:
    """Render a resolved locator as a Selenium (By, value) pair."""
    return _BY[locator.strategy], locator.value


class SeleniumDriver(DriverBase):
    """
    A concrete BlockingDriver based on Selenium WebDriver.
    - `options.browser` picks chrome / firefox / edge.
    - Use as `with SeleniumDriver(...) as d:` to guarantee quit().
    """

    engine = "selenium"

    def __init__(self, options: Optional[SeleniumOptions] = None, **kwargs: Any) -> None:
        super().__init__(options or SeleniumOptions(**kwargs))
        self._options: SeleniumOptions
        self._driver: Optional[WebDriver] = None

    def __enter__(self) -> "SeleniumDriver":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.quit()

    # ---------------- lifecycle ----------------

    def start(self) -> None:
        """Create the WebDriver session and apply timeouts."""
        if not self._lifecycle.should_start():
            return
        o = self._options
        logger.info("Starting %s browser (headless: %s)", o.browser.value, o.headless)
        try:
            self._driver = self._create_webdriver()
            self._driver.implicitly_wait(o.implicit_wait_ms / 1000)
            self._driver.set_page_load_timeout(o.timeout_ms / 1000)
            self._driver.set_script_timeout(o.timeout_ms / 1000)
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to start browser driver: %s", e)
            self._release()
            raise StartupError(f"driver startup failed: {e}", operation="start", cause=e) from e

        self._lifecycle.mark_started()
        logger.info("Browser driver started successfully")

    def quit(self) -> None:
        """Quit the WebDriver session (closes every window and the driver process)."""
        if not self._lifecycle.should_quit():
            return
        self._release()
        self._lifecycle.mark_quit()
        logger.info("Browser driver quit successfully")

    def _release(self) -> None:
        if self._driver is None:
            return
        try:
            self._driver.quit()
            logger.debug("Closed Selenium WebDriver")
        except Exception as e:  # noqa: BLE001
            logger.warning("Cleanup warning (webdriver): %s", e)
        finally:
            self._driver = None

    def _create_webdriver(self) -> WebDriver:
        browser = self._options.browser
        downloads = str(self._paths.downloads_dir())
        if browser is SeleniumBrowser.FIREFOX:
            return webdriver.Firefox(options=self._firefox_options(downloads))
        if browser is SeleniumBrowser.EDGE:
            return webdriver.Edge(options=self._chromium_options(webdriver.EdgeOptions(), downloads))
        return webdriver.Chrome(options=self._chromium_options(webdriver.ChromeOptions(), downloads))

    def _chromium_options(self, opts: Any, downloads: str) -> Any:
        o = self._options
        if o.headless:
            opts.add_argument("--headless=new")
        opts.add_argument(f"--window-size={o.window_width},{o.window_height}")
        for arg in ("--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu"):
            opts.add_argument(arg)
        if o.user_agent:
            opts.add_argument(f"--user-agent={o.user_agent}")
        if o.disable_images:
            opts.add_argument("--blink-settings=imagesEnabled=false")
        prefs: dict[str, Any] = {
            "download.default_directory": downloads,
            "download.prompt_for_download": False,
            "download.directory_upgrade": True,
            "safebrowsing.enabled": True,
        }
        if o.disable_javascript:
            prefs["profile.managed_default_content_settings.javascript"] = 2
        opts.add_experimental_option("prefs", prefs)
        opts.accept_insecure_certs = o.accept_insecure_certs
        logger.info("Download directory set to: %s", downloads)
        return opts

    def _firefox_options(self, downloads: str) -> webdriver.FirefoxOptions:
        o = self._options
        opts = webdriver.FirefoxOptions()
        if o.headless:
            opts.add_argument("--headless")
        opts.add_argument(f"--width={o.window_width}")
        opts.add_argument(f"--height={o.window_height}")
        if o.user_agent:
            opts.set_preference("general.useragent.override", o.user_agent)
        if o.disable_images:
            opts.set_preference("permissions.default.image", 2)
        if o.disable_javascript:
            opts.set_preference("javascript.enabled", False)
        opts.set_preference("browser.download.dir", downloads)
        opts.set_preference("browser.download.folderList", 2)
        opts.set_preference("browser.download.useDownloadDir", True)
        opts.set_preference(
            "browser.helperApps.neverAsk.saveToDisk",
            "application/pdf,application/zip,text/csv,application/xml,application/octet-stream",
        )
        opts.accept_insecure_certs = o.accept_insecure_certs
        logger.info("Download directory set to: %s", downloads)
        return opts

    # ---------------- native handles ----------------

    @property
    def webdriver(self) -> WebDriver:
        return self._require("webdriver")

    # ---------------- navigation ----------------

    def navigate(self, url: str) -> NavigationResult:
        driver = self._require("navigate")
        logger.info("Navigating to: %s", url)
        try:
            driver.get(url)
            result = NavigationResult(url=driver.current_url, title=driver.title, success=True)
        except WebDriverException as e:
            logger.error("Navigation failed: %s", e.msg or e)
            raise NavigationError(
                f"failed to navigate: {e.msg or e}", operation="navigate", url=url, cause=e
            ) from e
        logger.info("Navigation completed successfully")
        return result

    def go_back(self) -> None:
        self._history("back", operation="go_back")
        logger.info("Navigated back")

    def go_forward(self) -> None:
        self._history("forward", operation="go_forward")
        logger.info("Navigated forward")

    def refresh(self) -> None:
        self._history("refresh", operation="refresh")
        logger.info("Page refreshed")

    def _history(self, method: str, *, operation: str) -> None:
        driver = self._require(operation)
        try:
            getattr(driver, method)()
        except WebDriverException as e:
            logger.error("%s failed: %s", operation, e.msg or e)
            raise NavigationError(
                f"failed to {operation}: {e.msg or e}", operation=operation, cause=e
            ) from e

    # ---------------- locate & waits ----------------

    @contextmanager
    def _explicit_wait(self, driver: WebDriver) -> Iterator[None]:
        """Suspend the implicit wait so explicit budgets are not stretched by it."""
        implicit = self._options.implicit_wait_ms
        if implicit:
            driver.implicitly_wait(0)
        try:
            yield
        finally:
            if implicit:
                driver.implicitly_wait(implicit / 1000)

    def _locate(self, operation: str, selector: str, deadline: Deadline) -> WebElement:
        driver = self._require(operation)
        by = native_by(self._locator(selector))
        try:
            return WebDriverWait(
                driver, deadline.remaining_s(), poll_frequency=DEFAULT_POLL_INTERVAL_MS / 1000
            ).until(EC.presence_of_element_located(by))
        except TimeoutException as e:
            logger.error("Element not found: %s", selector)
            raise ElementNotFoundError(
                f"element not found within {deadline.timeout_ms}ms",
                kind=WaitKind.PRESENT.value,
                timeout_ms=deadline.timeout_ms,
                selector=selector,
                operation=operation,
                cause=e,
            ) from e
        except WebDriverException as e:
            logger.error("Element lookup failed: %s", selector)
            raise InvalidSelectorError(
                f"element lookup failed: {e.msg or e}", operation=operation, selector=selector, cause=e
            ) from e

    def _wait(
        self, operation: str, selector: str, timeout_ms: Optional[int], kind: WaitKind
    ) -> WebElement:
        driver = self._require(operation)
        deadline = Deadline(self._timeout(timeout_ms))
        with self._explicit_wait(driver):
            element = self._locate(operation, selector, deadline)
            if kind is WaitKind.PRESENT:
                return element
            by = native_by(self._locator(selector))
            found: list[WebElement] = [element]

            def ready() -> bool:
                try:
                    el = found[0]
                    ok = el.is_displayed()
                except StaleElementReferenceException:
                    el = driver.find_element(*by)
                    found[0] = el
                    ok = el.is_displayed()
                if kind is WaitKind.INTERACTABLE:
                    ok = ok and el.is_enabled()
                return ok

            wait_until(
                ready,
                deadline,
                kind=kind,
                selector=selector,
                ignored=_NOT_YET,
                operation=operation,
            )
            return found[0]

    def wait_for_present(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        self._wait("wait_for_present", selector, timeout_ms, WaitKind.PRESENT)

    def wait_for_visible(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        self._wait("wait_for_visible", selector, timeout_ms, WaitKind.VISIBLE)

    def wait_for_interactable(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        self._wait("wait_for_interactable", selector, timeout_ms, WaitKind.INTERACTABLE)

    def find_elements(self, selector: str) -> list[WebElement]:
        driver = self._require("find_elements")
        try:
            with self._explicit_wait(driver):
                return driver.find_elements(*native_by(self._locator(selector)))
        except WebDriverException as e:
            logger.error("Elements lookup failed: %s", selector)
            raise InvalidSelectorError(
                f"elements lookup failed: {e.msg or e}",
                operation="find_elements",
                selector=selector,
                cause=e,
            ) from e

    def pause(self, ms: int) -> None:
        time.sleep(ms / 1000)

    # ---------------- interactions ----------------

    def click(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        element = self._wait("click", selector, timeout_ms, WaitKind.INTERACTABLE)
        try:
            element.click()
        except WebDriverException as e:
            logger.error("Click failed: %s", selector)
            raise InteractionError(
                f"failed to click: {e.msg or e}", operation="click", selector=selector, cause=e
            ) from e
        logger.info("Clicked element: %s", selector)

    def fill(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> None:
        element = self._wait("fill", selector, timeout_ms, WaitKind.INTERACTABLE)
        try:
            element.clear()
            element.send_keys(text)
        except WebDriverException as e:
            logger.error("Fill failed: %s", selector)
            raise InteractionError(
                f"failed to fill: {e.msg or e}", operation="fill", selector=selector, cause=e
            ) from e
        logger.info("Filled element: %s", selector)

    def clear(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        element = self._wait("clear", selector, timeout_ms, WaitKind.INTERACTABLE)
        try:
            element.clear()
        except WebDriverException as e:
            logger.error("Clear failed: %s", selector)
            raise InteractionError(
                f"failed to clear: {e.msg or e}", operation="clear", selector=selector, cause=e
            ) from e
        logger.info("Cleared element: %s", selector)

    def get_text(self, selector: str, timeout_ms: Optional[int] = None) -> str:
        element = self._wait("get_text", selector, timeout_ms, WaitKind.PRESENT)
        try:
            text = element.text
        except WebDriverException as e:
            logger.error("Get text failed: %s", selector)
            raise InteractionError(
                f"failed to get text: {e.msg or e}", operation="get_text", selector=selector, cause=e
            ) from e
        return (text or "").strip()

    def get_attribute(
        self, selector: str, name: str, timeout_ms: Optional[int] = None
    ) -> Optional[str]:
        element = self._wait("get_attribute", selector, timeout_ms, WaitKind.PRESENT)
        try:
            return element.get_dom_attribute(name)
        except WebDriverException as e:
            logger.error("Get attribute %r failed: %s", name, selector)
            raise InteractionError(
                f"failed to get attribute {name!r}: {e.msg or e}",
                operation="get_attribute",
                selector=selector,
                cause=e,
            ) from e

    # ---------------- capture & page info ----------------

    def screenshot(
        self, filename: Optional[str] = None, include_timestamp: bool = True
    ) -> Optional[Path]:
        """Viewport PNG under {output}/screenshots; None when no filename is given."""
        driver = self._require("screenshot")
        if filename is None:
            return None
        path = self._paths.screenshot_path(filename, include_timestamp)
        try:
            saved = driver.save_screenshot(str(path))
        except WebDriverException as e:
            logger.error("Screenshot failed: %s", e.msg or e)
            raise CaptureError(
                f"failed to take screenshot: {e.msg or e}",
                operation="screenshot",
                details={"path": str(path)},
                cause=e,
            ) from e
        if not saved:
            raise CaptureError(
                "failed to write screenshot file", operation="screenshot", details={"path": str(path)}
            )
        logger.info("Screenshot saved: %s", path)
        return path

    def execute_script(self, script: str, *args: Any) -> Any:
        driver = self._require("execute_script")
        try:
            return driver.execute_script(script, *args)
        except WebDriverException as e:
            logger.error("Execute script failed: %s", e.msg or e)
            raise ScriptExecutionError(
                f"failed to execute script: {e.msg or e}",
                operation="execute_script",
                script=script,
                cause=e,
            ) from e

    def get_page_source(self) -> str:
        return self._read("page_source", operation="get_page_source")

    def get_title(self) -> str:
        title = self._read("title", operation="get_title")
        logger.info("Page title: %s", title)
        return title

    def get_current_url(self) -> str:
        return self._read("current_url", operation="get_current_url")

    def _read(self, prop: str, *, operation: str) -> str:
        driver = self._require(operation)
        try:
            return getattr(driver, prop)
        except WebDriverException as e:
            logger.error("%s failed: %s", operation, e.msg or e)
            raise NavigationError(
                f"failed to read {prop}: {e.msg or e}", operation=operation, cause=e
            ) from e

    # ---------------- internals ----------------

    def _require(self, operation: str) -> WebDriver:
        self._lifecycle.require_started(operation)
        assert self._driver is not None
        return self._driver
