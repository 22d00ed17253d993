import logging
from typing import Optional
from .base import BaseScraper
from .config import ScraperConfig
from .location import set_location, LocationError
from .models import SearchResult, ProbeResult
from .search import navigate_and_extract

logger = logging.getLogger(__name__)

class BlinkitScraper(BaseScraper):
    def __init__(self, headless=True, config: Optional[ScraperConfig] = None):
        super().__init__(headless, config)
        self.base_url = self.config.base_url
        self.service = self.config.service

    async def set_location(self, page, location: str) -> Optional[str]:
        return await set_location(page, location, self.config)

    async def search(self, page, term: str) -> SearchResult:
        logger.info(f"Searching {self.service} for '{term}'")
        return await navigate_and_extract(page, term, self.config)

    async def cookie_header(self, page) -> str:
        cookies = await page.context.cookies()
        return "; ".join(f"{c['name']}={c['value']}" for c in cookies)

    async def probe(self, pincode: str, term: str) -> ProbeResult:
        """
        Set location and run one search on the default page, returning what a
        plain HTTP client would need to replay the product request.
        """
        title = await self.set_location(self.page, pincode)
        if not title:
            raise LocationError(f"Failed to set location {pincode}")

        result = await self.search(self.page, term)
        return {
            "location_title": title,
            "source_url": result["source_url"],
            "request_headers": result["request_headers"],
            "response_headers": result["response_headers"],
            "cookie_header": await self.cookie_header(self.page),
            "sample_products": result["products"][:5],
        }
