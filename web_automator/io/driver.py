"""
Browser driver contract (abstraction).

Two Protocols describe the same operation set under two execution
disciplines:

- `BlockingDriver`: every call runs to completion on the caller's thread
  (implemented by `SeleniumDriver`).
- `AsyncDriver`: every call is a coroutine that suspends at each native
  round trip (implemented by `PlaywrightDriver`).

`DriverBase` holds what both implementations share: the lifecycle state
machine, the output paths, selector resolution and timeout defaults.

Notes:
- Selectors use one grammar for both engines (see core/selectors.py).
- `timeout_ms=None` means "use the session default" (options.timeout_ms).
- Native failures never escape: they are re-raised as core/errors.py types.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol

from ..core.lifecycle import Lifecycle, SessionState
from ..core.options import DriverOptions
from ..core.paths import OutputDirectories, OutputPaths
from ..core.result import NavigationResult
from ..core.selectors import Locator, resolve


class BlockingDriver(Protocol):
    # -------- lifecycle --------
    @property
    def is_started(self) -> bool: ...
    def start(self) -> None: ...
    def quit(self) -> None: ...

    # -------- navigation --------
    def navigate(self, url: str) -> NavigationResult: ...
    def go_back(self) -> None: ...
    def go_forward(self) -> None: ...
    def refresh(self) -> None: ...

    # -------- locate & interact --------
    def find_elements(self, selector: str) -> list[Any]: ...
    def click(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    def fill(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> None: ...
    def clear(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    def get_text(self, selector: str, timeout_ms: Optional[int] = None) -> str: ...
    def get_attribute(
        self, selector: str, name: str, timeout_ms: Optional[int] = None
    ) -> Optional[str]: ...

    # -------- waits --------
    def wait_for_present(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    def wait_for_visible(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    def wait_for_interactable(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    def pause(self, ms: int) -> None: ...

    # -------- capture & page info --------
    def screenshot(
        self, filename: Optional[str] = None, include_timestamp: bool = True
    ) -> Optional[Path]: ...
    def execute_script(self, script: str, *args: Any) -> Any: ...
    def get_page_source(self) -> str: ...
    def get_title(self) -> str: ...
    def get_current_url(self) -> str: ...


class AsyncDriver(Protocol):
    # -------- lifecycle --------
    @property
    def is_started(self) -> bool: ...
    async def start(self) -> None: ...
    async def quit(self) -> None: ...

    # -------- navigation --------
    async def navigate(self, url: str) -> NavigationResult: ...
    async def go_back(self) -> None: ...
    async def go_forward(self) -> None: ...
    async def refresh(self) -> None: ...

    # -------- locate & interact --------
    async def find_elements(self, selector: str) -> list[Any]: ...
    async def click(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    async def fill(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> None: ...
    async def clear(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    async def get_text(self, selector: str, timeout_ms: Optional[int] = None) -> str: ...
    async def get_attribute(
        self, selector: str, name: str, timeout_ms: Optional[int] = None
    ) -> Optional[str]: ...

    # -------- waits --------
    async def wait_for_present(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    async def wait_for_visible(self, selector: str, timeout_ms: Optional[int] = None) -> None: ...
    async def wait_for_interactable(
        self, selector: str, timeout_ms: Optional[int] = None
    ) -> None: ...
    async def pause(self, ms: int) -> None: ...

    # -------- capture & page info --------
    async def screenshot(
        self, filename: Optional[str] = None, include_timestamp: bool = True
    ) -> Optional[Path]: ...
    async def execute_script(self, script: str, *args: Any) -> Any: ...
    async def get_page_source(self) -> str: ...
    async def get_title(self) -> str: ...
    def get_current_url(self) -> str: ...


class DriverBase:
    """Engine-independent state shared by both adapters."""

    engine: str = ""

    def __init__(self, options: DriverOptions) -> None:
        self._options = options
        self._lifecycle = Lifecycle(f"{self.engine} driver")
        self._paths = OutputPaths(options.output_path, options.downloads_path)

    @property
    def options(self) -> DriverOptions:
        return self._options

    @property
    def state(self) -> SessionState:
        return self._lifecycle.state

    @property
    def is_started(self) -> bool:
        return self._lifecycle.is_started

    def output_directories(self) -> OutputDirectories:
        return self._paths.directories()

    # ---------------- internals ----------------

    def _timeout(self, timeout_ms: Optional[int]) -> int:
        return timeout_ms if timeout_ms is not None else self._options.timeout_ms

    @staticmethod
    def _locator(selector: str) -> Locator:
        return resolve(selector)
