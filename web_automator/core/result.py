"""
Structured navigation outcome returned by both engines.
"""
# @file purpose: Define NavigationResult model for navigation outputs.

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .errors import NavigationError


class NavigationResult(BaseModel):
    """
    Outcome of one navigation call:
    - url: resolved URL after redirects
    - title: document title
    - success: whether the engine reported a successful load
    - status: HTTP status (suspending engine only; None elsewhere)
    """

    url: str = ""
    title: str = ""
    success: bool = False
    status: Optional[int] = None

    def raise_for_status(self) -> "NavigationResult":
        if not self.success:
            raise NavigationError(
                f"navigation failed with status: {self.status}",
                operation="navigate",
                url=self.url,
                details={"status": self.status},
            )
        return self
