"""
Session configuration for the two engines.

Each engine has its own closed browser enumeration; a family that belongs to
the other engine (or to none) is rejected when the options are built, with
UnsupportedBrowserError. Features one engine cannot provide are rejected the
same way with UnsupportedFeatureError instead of being silently ignored.
"""
# @file purpose: Engine-specific, immutable session options (Pydantic v2).

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import UnsupportedBrowserError, UnsupportedFeatureError


class SeleniumBrowser(str, Enum):
    CHROME = "chrome"
    FIREFOX = "firefox"
    EDGE = "edge"


class PlaywrightBrowser(str, Enum):
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


def _parse_family(value: Any, family: type[Enum], engine: str) -> Enum:
    if isinstance(value, family):
        return value
    name = str(value).strip().lower()
    try:
        return family(name)
    except ValueError:
        supported = ", ".join(m.value for m in family)
        raise UnsupportedBrowserError(
            f"unsupported browser for {engine}: {value!r} (supported: {supported})",
            operation="configure",
            details={"engine": engine, "browser": value},
        ) from None


class DriverOptions(BaseModel):
    """Settings shared by both engines."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    headless: bool = True
    window_width: int = Field(default=1920, gt=0)
    window_height: int = Field(default=1080, gt=0)
    timeout_ms: int = Field(default=30_000, gt=0, le=600_000)
    user_agent: Optional[str] = None
    disable_images: bool = False
    disable_javascript: bool = False
    accept_insecure_certs: bool = True
    output_path: str = "./output"
    downloads_path: str = "./downloads"

    @field_validator("user_agent")
    @classmethod
    def _blank_user_agent(cls, v: Optional[str]) -> Optional[str]:
        return v if v and v.strip() else None


class SeleniumOptions(DriverOptions):
    """Options of the blocking (Selenium WebDriver) engine."""

    browser: SeleniumBrowser = SeleniumBrowser.CHROME
    implicit_wait_ms: int = Field(default=0, ge=0, le=600_000)
    record_video: bool = False

    @field_validator("browser", mode="before")
    @classmethod
    def _check_browser(cls, v: Any) -> SeleniumBrowser:
        return _parse_family(v, SeleniumBrowser, "selenium")  # type: ignore[return-value]

    @field_validator("record_video")
    @classmethod
    def _no_video(cls, v: bool) -> bool:
        if v:
            raise UnsupportedFeatureError(
                "video recording is not supported by the selenium engine; use playwright",
                operation="configure",
                details={"engine": "selenium", "feature": "record_video"},
            )
        return v


class PlaywrightOptions(DriverOptions):
    """Options of the suspending (Playwright async) engine."""

    browser: PlaywrightBrowser = PlaywrightBrowser.CHROMIUM
    navigation_timeout_ms: int = Field(default=30_000, gt=0, le=600_000)
    slow_mo_ms: int = Field(default=0, ge=0)
    record_video: bool = False

    @field_validator("browser", mode="before")
    @classmethod
    def _check_browser(cls, v: Any) -> PlaywrightBrowser:
        return _parse_family(v, PlaywrightBrowser, "playwright")  # type: ignore[return-value]
