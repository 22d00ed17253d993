import logging
from typing import Optional
from playwright.async_api import async_playwright, Error as PlaywrightError

from .config import ScraperConfig

logger = logging.getLogger(__name__)

class BaseScraper:
    """
    Owns one browser for its lifetime. Pages are opened per use (one per
    pincode in a batch) and the browser is closed once by stop().
    """

    def __init__(self, headless=True, config: Optional[ScraperConfig] = None):
        self.headless = headless
        self.config = config or ScraperConfig()
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

    async def launch(self):
        """Start Playwright and the browser. Launch errors propagate to the caller."""
        logger.info(f"Launching browser (headless={self.headless})")
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(
            headless=self.headless,
            args=["--disable-blink-features=AutomationControlled", "--no-sandbox"],
        )
        self.context = await self.browser.new_context(
            user_agent=self.config.user_agent,
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
        )

    async def start(self):
        """Launch and open a default page, for single-page use."""
        await self.launch()
        self.page = await self.new_page()

    async def new_page(self):
        page = await self.context.new_page()
        await page.route("**/*", self._handle_route)
        return page

    async def _handle_route(self, route):
        if route.request.resource_type in self.config.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def close_page(self, page):
        if page is None:
            return
        try:
            await page.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing page: {e}")

    async def stop(self):
        """Close the browser and Playwright. Safe to call more than once."""
        browser, playwright = self.browser, self.playwright
        self.browser = self.context = self.page = self.playwright = None
        if browser:
            try:
                await browser.close()
            except PlaywrightError as e:
                logger.warning(f"Error closing browser: {e}")
        if playwright:
            try:
                await playwright.stop()
            except PlaywrightError as e:
                logger.warning(f"Error stopping Playwright: {e}")
