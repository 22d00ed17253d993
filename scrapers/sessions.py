"""
Per-client browser sessions for interactive use.

Each connected client owns its own scraper, page and location state. Nothing
is shared between clients; the transport layer only hands in a client id and
a decoded message and sends back the returned event.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from playwright.async_api import Error as PlaywrightError

from .blinkit import BlinkitScraper
from .config import ScraperConfig

logger = logging.getLogger(__name__)

SERVICES = ("blinkit",)


@dataclass
class ClientSession:
    scraper: BlinkitScraper
    location_set: bool = False

    @property
    def page(self):
        return self.scraper.page


def error_event(error: str, svc: Optional[str] = None) -> Dict[str, Any]:
    return {"type": "error", "error": error, "svc": svc}


class SessionRegistry:
    def __init__(self, headless=True, config: Optional[ScraperConfig] = None,
                 scraper_factory: Callable[..., BlinkitScraper] = BlinkitScraper):
        self.headless = headless
        self.config = config or ScraperConfig()
        self.scraper_factory = scraper_factory
        self._sessions: Dict[str, Dict[str, ClientSession]] = {}

    def __contains__(self, client_id: str) -> bool:
        return bool(self._sessions.get(client_id))

    def get(self, client_id: str, svc: str) -> Optional[ClientSession]:
        return self._sessions.get(client_id, {}).get(svc)

    async def _get_or_create(self, client_id: str, svc: str) -> ClientSession:
        session = self.get(client_id, svc)
        if session:
            return session
        scraper = self.scraper_factory(headless=self.headless, config=self.config)
        try:
            await scraper.start()
        except PlaywrightError:
            await scraper.stop()
            raise
        session = ClientSession(scraper=scraper)
        self._sessions.setdefault(client_id, {})[svc] = session
        logger.info(f"Opened {svc} browser for client {client_id}")
        return session

    async def handle(self, client_id: str, message: Dict[str, Any]) -> Dict[str, Any]:
        svc = message.get("service")
        if svc and svc not in SERVICES:
            return error_event("Invalid service specified", svc)

        msg_type = message.get("type")
        if msg_type == "set-location":
            return await self.set_location(client_id, svc or SERVICES[0], message.get("location"))
        if msg_type == "search":
            return await self.search(client_id, svc or SERVICES[0], message.get("query"))
        if msg_type == "close-browser":
            return await self.close_browser(client_id, svc)
        return error_event(f"Unknown message type: {msg_type}")

    async def set_location(self, client_id: str, svc: str, location: Optional[str]) -> Dict[str, Any]:
        if not location:
            return error_event("No location provided", svc)
        try:
            session = await self._get_or_create(client_id, svc)
            title = await session.scraper.set_location(session.page, location)
        except PlaywrightError as e:
            logger.error(f"Error setting location for {svc} ({client_id}): {e}")
            return error_event(f"Failed to set location: {e}", svc)

        if not title:
            session.location_set = False
            return error_event(f"Failed to set location: could not verify {location}", svc)
        session.location_set = True
        return {"type": "location-set", "svc": svc, "loc": location}

    async def search(self, client_id: str, svc: str, query: Optional[str]) -> Dict[str, Any]:
        if not query:
            return error_event("No search term provided", svc)
        session = self.get(client_id, svc)
        if not session or not session.location_set:
            return error_event(f"Location not set for {svc}. Set location first.", svc)

        try:
            result = await session.scraper.search(session.page, query)
        except PlaywrightError as e:
            logger.error(f"Error searching {svc} ({client_id}): {e}")
            return error_event(f"Search failed: {e}", svc)
        return {"type": "search-results", "svc": svc, "q": query, "products": result["products"]}

    async def close_browser(self, client_id: str, svc: Optional[str] = None) -> Dict[str, Any]:
        if svc:
            session = self._sessions.get(client_id, {}).pop(svc, None)
            if session:
                await session.scraper.stop()
                logger.info(f"Closed {svc} browser for client {client_id}")
        else:
            await self.disconnect(client_id)
        return {"type": "browser-closed", "svc": svc or "all"}

    async def disconnect(self, client_id: str):
        for svc, session in self._sessions.pop(client_id, {}).items():
            await session.scraper.stop()
            logger.info(f"Closed {svc} browser for client {client_id}")

    async def close_all(self):
        """Force-close every tracked browser, e.g. on process shutdown."""
        for client_id in list(self._sessions):
            await self.disconnect(client_id)
