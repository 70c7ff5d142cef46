"""
Centralized configuration:
- Settings: process-level knobs from environment variables / .env (WA_ prefix)
- ConfigManager: typed lookups into a JSON configuration document
- *_options_from_config: build validated engine options from that document
"""
# @file purpose: Centralized settings using Pydantic Settings plus JSON config.

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, TypeVar

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .options import DriverOptions, PlaywrightOptions, SeleniumOptions

logger = logging.getLogger(__name__)

_MISSING = object()
_O = TypeVar("_O", bound=DriverOptions)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="WA_", env_file=".env", extra="ignore")

    config_path: str = "config/settings.json"
    headless: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"


settings = Settings()


class ConfigManager:
    """
    Read-only view over a nested JSON document.

    Keys are dotted (``playwright.browser``) or colon separated
    (``playwright:browser``). Typed getters fall back to the caller's default
    when a key is absent or its value does not parse as the requested type.
    """

    def __init__(self, data: Mapping[str, Any], *, source: str | None = None) -> None:
        self._data = dict(data)
        self.source = source

    @classmethod
    def from_file(cls, path: str | Path) -> "ConfigManager":
        p = Path(path)
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"configuration file not found: {p}", operation="load_config", cause=e
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"configuration file unreadable: {p}", operation="load_config", cause=e
            ) from e
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"configuration root must be an object: {p}", operation="load_config"
            )
        logger.info("Configuration loaded from: %s", p)
        return cls(raw, source=str(p))

    # ---------------- lookups ----------------

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.replace(":", ".").split("."):
            if not isinstance(node, Mapping) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def get_str(self, key: str, default: str = "") -> str:
        value = self._lookup(key)
        if value is _MISSING or value is None or isinstance(value, (dict, list)):
            return default
        return str(value)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._lookup(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "false"):
                return lowered == "true"
        return default

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        value = self._lookup(key)
        if isinstance(value, bool):
            return default
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return default
        return default

    def section(self, key: str) -> "ConfigManager":
        value = self._lookup(key)
        return ConfigManager(value if isinstance(value, Mapping) else {}, source=self.source)

    def as_flat_dict(self) -> dict[str, str]:
        """All scalar values keyed by their dotted path."""
        out: dict[str, str] = {}

        def walk(node: Mapping[str, Any], prefix: str) -> None:
            for k, v in node.items():
                path = f"{prefix}.{k}" if prefix else str(k)
                if isinstance(v, Mapping):
                    walk(v, path)
                elif v is not None:
                    out[path] = str(v)

        walk(self._data, "")
        return out


def load_config(path: str | Path | None = None) -> ConfigManager:
    """Load the JSON configuration; defaults to Settings.config_path."""
    return ConfigManager.from_file(path or settings.config_path)


def _common_options(cfg: ConfigManager, engine: ConfigManager, *, headless: bool) -> dict[str, Any]:
    return {
        "headless": engine.get_bool("headless", headless),
        "window_width": engine.get_int("windowSize.width", 1920),
        "window_height": engine.get_int("windowSize.height", 1080),
        "timeout_ms": engine.get_int("timeout", 30_000),
        "user_agent": engine.get_str("userAgent", "") or None,
        "disable_images": engine.get_bool("disableImages", False),
        "disable_javascript": engine.get_bool("disableJavaScript", False),
        "accept_insecure_certs": engine.get_bool("acceptInsecureCerts", True),
        "output_path": cfg.get_str("output.baseFolder", "./output"),
        "downloads_path": cfg.get_str("output.downloads.folder", "./downloads"),
    }


def _build(model: type[_O], engine: str, data: dict[str, Any]) -> _O:
    try:
        return model(**data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(
            f"invalid {engine} configuration: {fields}",
            operation="configure",
            details={"engine": engine, "errors": e.errors(include_url=False)},
            cause=e,
        ) from e


def selenium_options_from_config(cfg: ConfigManager, **overrides: Any) -> SeleniumOptions:
    engine = cfg.section("selenium")
    data = _common_options(cfg, engine, headless=settings.headless)
    data["browser"] = engine.get_str("browser", "chrome")
    data["implicit_wait_ms"] = engine.get_int("implicitWait", 0)
    if engine.get_bool("recordVideo", False):
        data["record_video"] = True
    data.update(overrides)
    return _build(SeleniumOptions, "selenium", data)


def playwright_options_from_config(cfg: ConfigManager, **overrides: Any) -> PlaywrightOptions:
    engine = cfg.section("playwright")
    data = _common_options(cfg, engine, headless=settings.headless)
    data["browser"] = engine.get_str("browser", "chromium")
    data["navigation_timeout_ms"] = engine.get_int("navigationTimeout", 30_000)
    data["slow_mo_ms"] = engine.get_int("slowMo", 0)
    data["record_video"] = engine.get_bool("recordVideo", False)
    data.update(overrides)
    return _build(PlaywrightOptions, "playwright", data)
