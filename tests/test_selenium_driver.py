from pathlib import Path
from typing import Any

import pytest
from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By

from web_automator.core.errors import (
    CaptureError,
    ElementNotFoundError,
    InteractionError,
    InvalidSelectorError,
    NavigationError,
    NotStartedError,
    ScriptExecutionError,
    StartupError,
    WaitTimeoutError,
)
from web_automator.core.lifecycle import SessionState
from web_automator.core.selectors import resolve
from web_automator.io.selenium_driver import SeleniumDriver, native_by


def make(output_dirs: dict[str, str], **kwargs: Any) -> SeleniumDriver:
    return SeleniumDriver(**output_dirs, **kwargs)


@pytest.mark.parametrize(
    "selector, by",
    [
        ("//h1", (By.XPATH, "//h1")),
        ("#go", (By.ID, "go")),
        (".item", (By.CLASS_NAME, "item")),
        ("name=q", (By.CSS_SELECTOR, '[name="q"]')),
        ("ul > li", (By.CSS_SELECTOR, "ul > li")),
    ],
)
def test_native_by(selector: str, by: tuple[str, str]) -> None:
    assert native_by(resolve(selector)) == by


def test_start_applies_timeouts(fake_webdriver: Any, output_dirs: dict[str, str]) -> None:
    d = make(output_dirs, timeout_ms=12_000, implicit_wait_ms=500)
    d.start()
    assert d.is_started
    assert fake_webdriver.implicit_waits == [0.5]
    assert fake_webdriver.page_load_timeout == 12.0
    assert fake_webdriver.script_timeout == 12.0
    d.start()
    d.quit()
    assert fake_webdriver.quit_calls == 1
    assert fake_webdriver.calls == []
    assert d.state is SessionState.QUIT
    with pytest.raises(StartupError):
        d.start()


def test_startup_failure(monkeypatch: pytest.MonkeyPatch, output_dirs: dict[str, str]) -> None:
    def boom(self: SeleniumDriver) -> Any:
        raise WebDriverException("chromedriver not found")

    monkeypatch.setattr(SeleniumDriver, "_create_webdriver", boom)
    d = make(output_dirs)
    with pytest.raises(StartupError) as ei:
        d.start()
    assert isinstance(ei.value.cause, WebDriverException)
    assert not d.is_started


def test_quit_failure_is_a_warning(fake_webdriver: Any, output_dirs: dict[str, str]) -> None:
    fake_webdriver.fail_on.add("quit")
    with make(output_dirs) as d:
        pass
    assert d.state is SessionState.QUIT
    assert fake_webdriver.quit_calls == 1


@pytest.mark.parametrize(
    "call",
    [
        lambda d: d.navigate("https://example.com"),
        lambda d: d.go_forward(),
        lambda d: d.click("#go"),
        lambda d: d.clear("#q"),
        lambda d: d.get_text("h1"),
        lambda d: d.wait_for_present("#go"),
        lambda d: d.find_elements(".item"),
        lambda d: d.screenshot("x.png"),
        lambda d: d.execute_script("return 1;"),
        lambda d: d.get_page_source(),
        lambda d: d.get_current_url(),
        lambda d: d.webdriver,
    ],
)
def test_operations_require_start(call: Any, output_dirs: dict[str, str]) -> None:
    with pytest.raises(NotStartedError):
        call(make(output_dirs))


def test_navigate(fake_webdriver: Any, output_dirs: dict[str, str]) -> None:
    fake_webdriver.title = "Example Domain"
    with make(output_dirs) as d:
        result = d.navigate("https://example.com/")
        assert result.success is True
        assert result.status is None
        assert result.title == "Example Domain"
        assert d.get_current_url() == "https://example.com/"
        d.go_forward()
        d.refresh()
        fake_webdriver.fail_on.update({"get", "back"})
        with pytest.raises(NavigationError) as ei:
            d.navigate("https://nowhere.invalid")
        assert ei.value.url == "https://nowhere.invalid"
        with pytest.raises(NavigationError):
            d.go_back()
    assert ("refresh",) in fake_webdriver.calls


def test_interactions(fake_webdriver: Any, output_dirs: dict[str, str], element: Any) -> None:
    go = element(text="Go", attrs={"data-role": "submit"})
    q = element(value="old")
    fake_webdriver.elements.update(
        {
            (By.ID, "go"): go,
            (By.CSS_SELECTOR, '[name="q"]'): q,
            (By.CSS_SELECTOR, "h1"): element(text="  Smoke Heading  "),
        }
    )
    with make(output_dirs) as d:
        d.click("#go")
        assert go.clicks == 1
        d.fill("name=q", "hello")
        assert q.value == "hello"
        d.clear("name=q")
        assert q.value == ""
        assert d.get_text("h1") == "Smoke Heading"
        assert d.get_attribute("#go", "data-role") == "submit"
        assert d.get_attribute("#go", "href") is None


def test_missing_element(fake_webdriver: Any, output_dirs: dict[str, str]) -> None:
    with make(output_dirs) as d:
        with pytest.raises(ElementNotFoundError) as ei:
            d.click("#absent", timeout_ms=150)
        assert isinstance(ei.value, WaitTimeoutError)
        assert ei.value.kind == "present"
        assert ei.value.operation == "click"


def test_click_waits_for_interactable(fake_webdriver: Any, output_dirs: dict[str, str], element: Any) -> None:
    locked = element(enabled=False)
    fake_webdriver.elements[(By.ID, "locked")] = locked
    with make(output_dirs) as d:
        with pytest.raises(WaitTimeoutError) as ei:
            d.click("#locked", timeout_ms=150)
        assert ei.value.kind == "interactable"
        assert locked.clicks == 0
        assert d.get_text("#locked", timeout_ms=150) == ""


def test_wait_for_visible(fake_webdriver: Any, output_dirs: dict[str, str], element: Any) -> None:
    fake_webdriver.elements[(By.ID, "hidden")] = element(visible=False)
    with make(output_dirs, implicit_wait_ms=1000) as d:
        with pytest.raises(WaitTimeoutError) as ei:
            d.wait_for_visible("#hidden", timeout_ms=120)
        assert ei.value.kind == "visible"
    # implicit wait suspended during the explicit wait, then restored
    assert fake_webdriver.implicit_waits == [1.0, 0, 1.0]


def test_native_failures_are_translated(fake_webdriver: Any, output_dirs: dict[str, str], element: Any) -> None:
    fake_webdriver.elements[(By.ID, "go")] = element(fail_on={"click", "text"})
    with make(output_dirs) as d:
        with pytest.raises(InteractionError):
            d.click("#go")
        with pytest.raises(InteractionError):
            d.get_text("#go")
        with pytest.raises(InvalidSelectorError):
            d.click("!!bad")


def test_find_elements(fake_webdriver: Any, output_dirs: dict[str, str], element: Any) -> None:
    fake_webdriver.elements[(By.CLASS_NAME, "item")] = element()
    with make(output_dirs) as d:
        assert len(d.find_elements(".item")) == 1
        assert d.find_elements(".nothing") == []
        with pytest.raises(InvalidSelectorError):
            d.find_elements("!!bad")


def test_screenshot(fake_webdriver: Any, output_dirs: dict[str, str]) -> None:
    with make(output_dirs) as d:
        assert d.screenshot() is None
        path = d.screenshot("page.png", include_timestamp=False)
        assert path == Path(output_dirs["output_path"]) / "screenshots" / "page.png"
        assert path.exists()

        fake_webdriver.screenshot_ok = False
        with pytest.raises(CaptureError):
            d.screenshot("page.png")


def test_execute_script(fake_webdriver: Any, output_dirs: dict[str, str]) -> None:
    with make(output_dirs) as d:
        assert d.execute_script("return arguments;", 1, "a") == [1, "a"]
        fake_webdriver.fail_on.add("execute_script")
        with pytest.raises(ScriptExecutionError):
            d.execute_script("return nope;")


def test_page_info(fake_webdriver: Any, output_dirs: dict[str, str]) -> None:
    fake_webdriver.page_source = "<html>x</html>"
    fake_webdriver.title = "X"
    with make(output_dirs) as d:
        assert d.get_page_source() == "<html>x</html>"
        assert d.get_title() == "X"
        assert d.webdriver is fake_webdriver
        assert d.output_directories().downloads == Path(output_dirs["downloads_path"])


def test_chromium_arguments(output_dirs: dict[str, str]) -> None:
    d = make(output_dirs, user_agent="UA/2", disable_images=True, disable_javascript=True)
    opts = d._chromium_options(webdriver.ChromeOptions(), "/tmp/dl")
    assert "--headless=new" in opts.arguments
    assert "--window-size=1920,1080" in opts.arguments
    assert "--user-agent=UA/2" in opts.arguments
    assert "--blink-settings=imagesEnabled=false" in opts.arguments
    prefs = opts.experimental_options["prefs"]
    assert prefs["download.default_directory"] == "/tmp/dl"
    assert prefs["profile.managed_default_content_settings.javascript"] == 2


def test_firefox_preferences(output_dirs: dict[str, str]) -> None:
    d = make(output_dirs, browser="firefox", headless=False, disable_images=True)
    opts = d._firefox_options("/tmp/dl")
    assert "--headless" not in opts.arguments
    assert "--width=1920" in opts.arguments
    assert opts.preferences["permissions.default.image"] == 2
    assert opts.preferences["browser.download.dir"] == "/tmp/dl"
