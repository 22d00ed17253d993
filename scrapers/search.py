"""
Search navigation and product-response capture.

A search is a race between two branches started before navigation: a response
listener waiting for the product JSON, and a timer. Whichever finishes first
wins and the other is cancelled, so at most one payload is captured per search.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote
from playwright.async_api import Error as PlaywrightError

from .config import ScraperConfig
from .extractor import extract_products
from .models import SearchResult
from .probes import find_first_selector

logger = logging.getLogger(__name__)

CAPTURED_RESOURCE_TYPES = ("xhr", "fetch")

HAS_CONTENT_JS = """() => {
    const hasImgs = document.querySelectorAll('img').length > 3;
    const hasPrices = document.body && document.body.innerText.includes('₹');
    return hasImgs || hasPrices;
}"""


@dataclass
class CapturedResponse:
    payload: Optional[Dict[str, Any]] = None
    url: Optional[str] = None
    request_headers: Optional[Dict[str, str]] = None
    response_headers: Optional[Dict[str, str]] = None
    timed_out: bool = False


def is_product_payload(body: Any, url: str, empty_search_marker: str = "empty_search") -> bool:
    if empty_search_marker in url or not isinstance(body, dict):
        return False
    response = body.get("response")
    snippets = response.get("snippets") if isinstance(response, dict) else None
    if not isinstance(snippets, list):
        return False
    return any(
        isinstance(s, dict) and isinstance(s.get("data"), dict) and s["data"].get("identity")
        for s in snippets
    )


class ResponseInterceptor:
    """Captures the first product-bearing XHR/fetch response, or times out."""

    def __init__(self, page, timeout: int, empty_search_marker: str = "empty_search"):
        self.page = page
        self.timeout = timeout
        self.empty_search_marker = empty_search_marker
        self._capture: Optional[asyncio.Future] = None
        self._timer: Optional[asyncio.Future] = None
        self._listening = False
        self._handler = self._on_response

    def arm(self):
        self._capture = asyncio.get_running_loop().create_future()
        self._timer = asyncio.ensure_future(asyncio.sleep(self.timeout / 1000))
        self._timer.add_done_callback(self._on_timeout)
        self.page.on("response", self._handler)
        self._listening = True

    def _stop_listening(self):
        if self._listening:
            self.page.remove_listener("response", self._handler)
            self._listening = False

    def _on_timeout(self, timer):
        if timer.cancelled():
            return
        self._stop_listening()
        if not self._capture.done():
            self._capture.set_result(CapturedResponse(timed_out=True))

    def disarm(self):
        self._stop_listening()
        if self._timer and not self._timer.done():
            self._timer.cancel()
        if self._capture and not self._capture.done():
            self._capture.cancel()

    async def _on_response(self, response):
        if self._capture is None or self._capture.done():
            return
        if response.request.resource_type not in CAPTURED_RESOURCE_TYPES:
            return
        try:
            body = await response.json()
        except (PlaywrightError, ValueError):
            return
        if self._capture.done() or not is_product_payload(body, response.url, self.empty_search_marker):
            return

        logger.info(f"Captured product JSON from: {response.url}")
        self._stop_listening()
        self._timer.cancel()
        self._capture.set_result(CapturedResponse(
            payload=body,
            url=response.url,
            request_headers=dict(response.request.headers),
            response_headers=dict(response.headers),
        ))

    async def result(self) -> CapturedResponse:
        """Whichever branch settled first; the other is already cancelled."""
        captured = await self._capture
        self.disarm()
        return captured


async def navigate_to_search(page, term: str, config: ScraperConfig) -> bool:
    url = config.search_url.format(query=quote(term, safe="!~*'()"))
    logger.info(f"Going to: {url}")
    try:
        await page.goto(url, timeout=config.navigation_timeout, wait_until="domcontentloaded")
    except PlaywrightError as e:
        logger.error(f"Error navigating to search URL for '{term}': {e}")
        return False
    await page.wait_for_timeout(config.navigation_settle)
    return True


async def ensure_content_loaded(page, config: ScraperConfig) -> bool:
    """Best-effort wait until results (or an explicit empty state) are on screen."""
    try:
        if await page.query_selector(config.loading_selector):
            await page.wait_for_selector(config.loading_selector, state="hidden", timeout=config.loader_timeout)
            await page.wait_for_timeout(config.loader_settle)
    except PlaywrightError:
        logger.debug("Loading indicator did not disappear in time")

    card = await find_first_selector(page, config.product_card_selectors, config.card_probe_timeout)
    if card:
        logger.debug(f"Found content with selector: {card}")
        return True

    try:
        if await page.query_selector(config.no_results_selector):
            logger.info("Found 'no results' indicator")
            return True

        logger.info("No product card selectors matched, waiting extra time...")
        await page.wait_for_timeout(config.content_fallback_wait)
        return bool(await page.evaluate(HAS_CONTENT_JS))
    except PlaywrightError as e:
        logger.warning(f"Could not check page content: {e}")
        return False


async def navigate_and_extract(page, term: str, config: ScraperConfig) -> SearchResult:
    result: SearchResult = {
        "products": [],
        "source_url": None,
        "request_headers": None,
        "response_headers": None,
    }

    interceptor = ResponseInterceptor(page, config.response_timeout, config.empty_search_marker)
    interceptor.arm()
    try:
        if not await navigate_to_search(page, term, config):
            return result
        await ensure_content_loaded(page, config)
        captured = await interceptor.result()
    finally:
        interceptor.disarm()

    if captured.timed_out:
        logger.warning(f"No product response for '{term}' within {config.response_timeout}ms, treating as no results")
        return result

    result["products"] = extract_products(captured.payload)
    result["source_url"] = captured.url
    result["request_headers"] = captured.request_headers
    result["response_headers"] = captured.response_headers
    return result
