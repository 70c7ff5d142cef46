"""
Project-wide exception types: one taxonomy shared by both engines.
- AutomatorError: base class, carries operation/selector/url/script context
- StartupError / NotStartedError: lifecycle misuse or native allocation failure
- NavigationError / InteractionError / ScriptExecutionError: operation failures
- WaitTimeoutError / ElementNotFoundError: readiness predicate did not hold in time
- DirectoryError / CaptureError: artifact directory or file could not be produced
- UnsupportedBrowserError / UnsupportedFeatureError: capability negotiation
- InvalidSelectorError / ConfigurationError: bad caller input
"""
# @file purpose: Define error taxonomy for web-automator.

from __future__ import annotations

import traceback
from typing import Any


class AutomatorError(Exception):
    """
    Base class for all custom errors in web-automator.
    Wraps a native failure with the context a caller needs to decide what to do
    (selector, url, script); the native exception itself is kept in `cause`
    for diagnostics only.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        selector: str | None = None,
        url: str | None = None,
        script: str | None = None,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.operation: str | None = operation
        self.selector: str | None = selector
        self.url: str | None = url
        self.script: str | None = script
        self.details: dict[str, Any] = details or {}
        self.cause: BaseException | None = cause

    @property
    def diagnostics(self) -> str:
        """Formatted native traceback, for logging only."""
        if self.cause is None:
            return ""
        return "".join(
            traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__)
        )

    def __str__(self) -> str:
        head = f"[{self.operation}] {self.message}" if self.operation else self.message
        parts = [head]
        if self.selector:
            parts.append(f"selector={self.selector}")
        if self.url:
            parts.append(f"url={self.url}")
        if self.script:
            parts.append(f"script={self.script[:80]!r}")
        if self.details:
            kv = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            parts.append(f"details={{ {kv} }}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " | ".join(parts)


class StartupError(AutomatorError):
    """Native browser session could not be allocated."""


class NotStartedError(AutomatorError):
    """Operation attempted before start() or after quit()."""


class NavigationError(AutomatorError):
    """Navigation failed or returned a non-success status."""


class WaitTimeoutError(AutomatorError):
    """
    A readiness predicate did not hold within its timeout budget.
    `kind` is the predicate ("present", "visible", "interactable").
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        timeout_ms: int,
        selector: str | None = None,
        operation: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            operation=operation,
            selector=selector,
            details={"kind": kind, "timeout_ms": timeout_ms},
            cause=cause,
        )
        self.kind: str = kind
        self.timeout_ms: int = timeout_ms


class ElementNotFoundError(WaitTimeoutError):
    """The locate step itself did not succeed within the timeout budget."""


class InteractionError(AutomatorError):
    """click/fill/clear failed after the element was located."""


class ScriptExecutionError(AutomatorError):
    """JavaScript evaluation failed in the page."""


class DirectoryError(AutomatorError):
    """An output directory could not be created."""


class UnsupportedBrowserError(AutomatorError):
    """Browser family not recognized by the selected engine."""


class UnsupportedFeatureError(AutomatorError):
    """A feature was requested from an engine that does not provide it."""


class InvalidSelectorError(AutomatorError):
    """Selector string cannot be resolved to a locator."""


class ConfigurationError(AutomatorError):
    """Configuration source is missing, unreadable or holds out-of-range values."""


class CaptureError(AutomatorError):
    """Screenshot or video artifact could not be produced."""
