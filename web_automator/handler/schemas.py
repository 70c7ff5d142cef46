"""
Request/response models for the extraction handler.

Field names are snake_case in Python and camelCase on the wire
(`model_dump(by_alias=True)`), matching what serverless callers send.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractDirectives(_Wire):
    """What to read from the page once it has loaded."""

    heading: bool = False
    heading_selector: str = "h1"


class ExtractionRequest(_Wire):
    """Incoming event; `url=None` means use the configured default."""

    url: Optional[str] = None
    extract: ExtractDirectives = Field(default_factory=ExtractDirectives)


class ErrorInfo(_Wire):
    message: str
    type: str
    code: str = "AUTOMATION_ERROR"


class ResponseBody(_Wire):
    status: str = "success"
    request_id: str = ""
    timestamp: str = ""
    data: Optional[Dict[str, Any]] = None
    error: Optional[ErrorInfo] = None
    execution_time: float = 0.0


class ExtractionResponse(_Wire):
    status_code: int = 200
    headers: Dict[str, str] = Field(default_factory=dict)
    body: ResponseBody = Field(default_factory=ResponseBody)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
