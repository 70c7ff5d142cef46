"""
Serverless-style extraction handler.

One request = one short-lived headless Playwright session:
start -> navigate -> extract -> quit, wrapped in a JSON envelope.
The session is always quit, whatever happened before.
"""
# @file purpose: Request/response boundary around the suspending driver.

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from ..core.options import PlaywrightOptions
from ..core.settings import ConfigManager
from ..io.driver import AsyncDriver
from ..io.playwright_driver import PlaywrightDriver
from .schemas import (
    ErrorInfo,
    ExtractDirectives,
    ExtractionRequest,
    ExtractionResponse,
    ResponseBody,
)

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://example.com"
HANDLER_TIMEOUT_MS = 25_000
TMP_OUTPUT = "/tmp/automation-output"
TMP_DOWNLOADS = "/tmp/automation-downloads"

DriverFactory = Callable[[PlaywrightOptions], AsyncDriver]


def build_options(config: ConfigManager) -> PlaywrightOptions:
    """Fixed headless profile for the handler; only browser and UA are configurable."""
    return PlaywrightOptions(
        browser=config.get_str("playwright.browser", "chromium"),
        headless=True,
        window_width=1920,
        window_height=1080,
        timeout_ms=HANDLER_TIMEOUT_MS,
        navigation_timeout_ms=HANDLER_TIMEOUT_MS,
        user_agent=config.get_str("playwright.userAgent", "") or None,
        output_path=TMP_OUTPUT,
        downloads_path=TMP_DOWNLOADS,
    )


async def extract_page_data(driver: AsyncDriver, directives: ExtractDirectives) -> dict[str, Any]:
    data: dict[str, Any] = {
        "pageTitle": await driver.get_title(),
        "currentUrl": driver.get_current_url(),
    }
    if directives.heading:
        data["mainHeading"] = await driver.get_text(directives.heading_selector)
    return data


async def handle(
    event: Union[ExtractionRequest, Mapping[str, Any], None],
    *,
    request_id: Optional[str] = None,
    config: Optional[ConfigManager] = None,
    driver_factory: Optional[DriverFactory] = None,
) -> ExtractionResponse:
    """
    Run one extraction request.
    Never raises: failures become statusCode 500 with an error object.
    """
    started = time.monotonic()
    request_id = request_id or str(uuid.uuid4())
    config = config or ConfigManager({})
    factory: DriverFactory = driver_factory or PlaywrightDriver

    response = ExtractionResponse(
        status_code=200,
        headers={"Content-Type": "application/json", "X-Request-ID": request_id},
        body=ResponseBody(
            request_id=request_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
        ),
    )
    logger.info("Handler invoked (request: %s)", request_id)

    driver: Optional[AsyncDriver] = None
    try:
        request = (
            event
            if isinstance(event, ExtractionRequest)
            else ExtractionRequest.model_validate(event or {})
        )
        target_url = request.url or config.get_str("automation.defaultUrl", DEFAULT_URL)
        logger.info("Target URL: %s", target_url)

        options = build_options(config)
        driver = factory(options)
        await driver.start()

        nav = await driver.navigate(target_url)
        nav.raise_for_status()

        extracted = await extract_page_data(driver, request.extract)
        response.body.data = {
            "url": target_url,
            "pageTitle": nav.title,
            "currentUrl": nav.url,
            "extractedData": extracted,
            "pageMetadata": {
                "loadTime": f"{(time.monotonic() - started) * 1000:.0f}ms",
                "userAgent": options.user_agent,
            },
        }
        logger.info("Extraction completed successfully")
    except Exception as e:  # noqa: BLE001
        logger.error("Extraction failed: %s", e)
        response.status_code = 500
        response.body.status = "error"
        response.body.error = ErrorInfo(message=str(e), type=type(e).__name__)
    finally:
        if driver is not None and driver.is_started:
            try:
                await driver.quit()
            except Exception as e:  # noqa: BLE001
                logger.warning("Cleanup warning: %s", e)
        response.body.execution_time = (time.monotonic() - started) * 1000
        logger.info("Request completed in %.0fms", response.body.execution_time)

    return response
