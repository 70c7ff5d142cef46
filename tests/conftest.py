"""In-memory stand-ins for the native engines, so driver tests run without browsers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import pytest
from playwright.async_api import Error as PwError, TimeoutError as PwTimeoutError
from selenium.common.exceptions import (
    InvalidSelectorException,
    NoSuchElementException,
    WebDriverException,
)

import web_automator.io.playwright_driver as pw_module
from web_automator.core.logs import close_logging
from web_automator.io.selenium_driver import SeleniumDriver


@dataclass
class FakeElement:
    text: str = ""
    visible: bool = True
    enabled: bool = True
    attrs: dict[str, str] = field(default_factory=dict)
    value: str = ""
    clicks: int = 0
    fail_on: set[str] = field(default_factory=set)


# ---------------- playwright ----------------


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str) -> None:
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    @property
    def element(self) -> Optional[FakeElement]:
        return self.page.elements.get(self.selector)

    def _check(self, op: str) -> FakeElement:
        el = self.element
        if el is None:
            raise PwTimeoutError(f"Timeout: {self.selector}")
        if op in el.fail_on:
            raise PwError(f"{op} failed")
        return el

    async def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        self.page.calls.append(("wait_for", self.selector, state))
        if self.selector.startswith("!!"):
            raise PwError("Unexpected token")
        self._check("wait_for")

    async def is_visible(self) -> bool:
        el = self.element
        return bool(el and el.visible)

    async def is_enabled(self) -> bool:
        el = self.element
        return bool(el and el.enabled)

    async def click(self, timeout: Optional[float] = None) -> None:
        self._check("click").clicks += 1

    async def fill(self, text: str, timeout: Optional[float] = None) -> None:
        self._check("fill").value = text

    async def clear(self, timeout: Optional[float] = None) -> None:
        self._check("clear").value = ""

    async def inner_text(self, timeout: Optional[float] = None) -> str:
        return self._check("inner_text").text

    async def get_attribute(self, name: str, timeout: Optional[float] = None) -> Optional[str]:
        return self._check("get_attribute").attrs.get(name)

    async def all(self) -> list["FakeLocator"]:
        if self.selector.startswith("!!"):
            raise PwError("Unexpected token")
        return [self] if self.element is not None else []


@dataclass
class FakeResponse:
    ok: bool = True
    status: int = 200


class FakePage:
    def __init__(self) -> None:
        self.url = "about:blank"
        self.page_title = ""
        self.html = "<html></html>"
        self.response: Optional[FakeResponse] = FakeResponse()
        self.elements: dict[str, FakeElement] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.video = None
        self.closed = False
        self.fail_on: set[str] = set()
        self.released: list[str] = []

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail_on:
            raise PwError(f"{op} failed")

    async def goto(self, url: str, **kwargs: Any) -> Optional[FakeResponse]:
        self.calls.append(("goto", url, kwargs))
        self._maybe_fail("goto")
        self.url = url
        return self.response

    async def title(self) -> str:
        self._maybe_fail("title")
        return self.page_title

    async def go_back(self) -> None:
        self.calls.append(("go_back",))
        self._maybe_fail("go_back")

    async def go_forward(self) -> None:
        self.calls.append(("go_forward",))

    async def reload(self) -> None:
        self.calls.append(("reload",))

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        self._maybe_fail("screenshot")
        self.calls.append(("screenshot", path, full_page))
        Path(path).write_bytes(b"\x89PNG")
        return b"\x89PNG"

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", expression, arg))
        self._maybe_fail("evaluate")
        return arg

    async def content(self) -> str:
        return self.html

    async def close(self) -> None:
        self._maybe_fail("close")
        self.closed = True
        self.released.append("page")


class FakeContext:
    def __init__(self, page: FakePage, kwargs: dict[str, Any]) -> None:
        self.page = page
        self.kwargs = kwargs
        self.default_timeout: Optional[float] = None
        self.navigation_timeout: Optional[float] = None
        self.routes: list[str] = []
        self.closed = False

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout: float) -> None:
        self.navigation_timeout = timeout

    async def route(self, pattern: str, handler: Any) -> None:
        self.routes.append(pattern)

    async def new_page(self) -> FakePage:
        self.page._maybe_fail("new_page")
        return self.page

    async def close(self) -> None:
        self.closed = True
        self.page.released.append("context")


class FakeBrowser:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.contexts: list[FakeContext] = []
        self.closed = False

    async def new_context(self, **kwargs: Any) -> FakeContext:
        ctx = FakeContext(self.page, kwargs)
        self.contexts.append(ctx)
        return ctx

    async def close(self) -> None:
        self.closed = True
        self.page.released.append("browser")


class FakeBrowserType:
    def __init__(self, name: str, page: FakePage) -> None:
        self.name = name
        self.page = page
        self.launches: list[dict[str, Any]] = []
        self.browser: Optional[FakeBrowser] = None
        self.fail = False

    async def launch(self, **kwargs: Any) -> FakeBrowser:
        self.launches.append(kwargs)
        if self.fail:
            raise PwError("Executable doesn't exist")
        self.browser = FakeBrowser(self.page)
        return self.browser


class FakePlaywright:
    def __init__(self) -> None:
        self.page = FakePage()
        self.chromium = FakeBrowserType("chromium", self.page)
        self.firefox = FakeBrowserType("firefox", self.page)
        self.webkit = FakeBrowserType("webkit", self.page)
        self.stopped = False

    async def stop(self) -> None:
        self.stopped = True
        self.page.released.append("playwright")


class _Starter:
    def __init__(self, pw: FakePlaywright) -> None:
        self.pw = pw

    async def start(self) -> FakePlaywright:
        return self.pw


@pytest.fixture()
def fake_pw(monkeypatch: pytest.MonkeyPatch) -> FakePlaywright:
    pw = FakePlaywright()
    monkeypatch.setattr(pw_module, "async_playwright", lambda: _Starter(pw))
    return pw


# ---------------- selenium ----------------


class FakeWebElement:
    def __init__(self, el: FakeElement) -> None:
        self.el = el

    def _maybe_fail(self, op: str) -> None:
        if op in self.el.fail_on:
            raise WebDriverException(f"{op} failed")

    def is_displayed(self) -> bool:
        return self.el.visible

    def is_enabled(self) -> bool:
        return self.el.enabled

    def click(self) -> None:
        self._maybe_fail("click")
        self.el.clicks += 1

    def clear(self) -> None:
        self._maybe_fail("clear")
        self.el.value = ""

    def send_keys(self, text: str) -> None:
        self.el.value += text

    @property
    def text(self) -> str:
        self._maybe_fail("text")
        return self.el.text

    def get_dom_attribute(self, name: str) -> Optional[str]:
        return self.el.attrs.get(name)


class FakeWebDriver:
    def __init__(self) -> None:
        self.elements: dict[tuple[str, str], FakeElement] = {}
        self.current_url = "about:blank"
        self.title = ""
        self.page_source = "<html></html>"
        self.implicit_waits: list[float] = []
        self.page_load_timeout: Optional[float] = None
        self.script_timeout: Optional[float] = None
        self.calls: list[tuple[Any, ...]] = []
        self.fail_on: set[str] = set()
        self.screenshot_ok = True
        self.quit_calls = 0

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail_on:
            raise WebDriverException(f"{op} failed")

    def implicitly_wait(self, seconds: float) -> None:
        self.implicit_waits.append(seconds)

    def set_page_load_timeout(self, seconds: float) -> None:
        self.page_load_timeout = seconds

    def set_script_timeout(self, seconds: float) -> None:
        self.script_timeout = seconds

    def find_element(self, by: str, value: str) -> FakeWebElement:
        if value.startswith("!!"):
            raise InvalidSelectorException("invalid selector")
        el = self.elements.get((by, value))
        if el is None:
            raise NoSuchElementException(f"no such element: {value}")
        return FakeWebElement(el)

    def find_elements(self, by: str, value: str) -> list[FakeWebElement]:
        if value.startswith("!!"):
            raise InvalidSelectorException("invalid selector")
        el = self.elements.get((by, value))
        return [FakeWebElement(el)] if el is not None else []

    def get(self, url: str) -> None:
        self.calls.append(("get", url))
        self._maybe_fail("get")
        self.current_url = url

    def back(self) -> None:
        self.calls.append(("back",))
        self._maybe_fail("back")

    def forward(self) -> None:
        self.calls.append(("forward",))

    def refresh(self) -> None:
        self.calls.append(("refresh",))

    def save_screenshot(self, filename: str) -> bool:
        self._maybe_fail("save_screenshot")
        if self.screenshot_ok:
            Path(filename).write_bytes(b"\x89PNG")
        return self.screenshot_ok

    def execute_script(self, script: str, *args: Any) -> Any:
        self.calls.append(("execute_script", script, args))
        self._maybe_fail("execute_script")
        return list(args)

    def quit(self) -> None:
        self.quit_calls += 1
        self._maybe_fail("quit")


@pytest.fixture()
def fake_webdriver(monkeypatch: pytest.MonkeyPatch) -> FakeWebDriver:
    wd = FakeWebDriver()
    monkeypatch.setattr(SeleniumDriver, "_create_webdriver", lambda self: wd)
    return wd


# ---------------- misc ----------------


@pytest.fixture()
def output_dirs(tmp_path: Path) -> dict[str, str]:
    return {"output_path": str(tmp_path / "out"), "downloads_path": str(tmp_path / "dl")}


@pytest.fixture(autouse=True)
def _reset_logging() -> Any:
    yield
    close_logging()


@pytest.fixture()
def element() -> type[FakeElement]:
    return FakeElement
