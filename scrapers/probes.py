import logging
import re
from typing import List, Optional
from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

# Header text shown before a location is chosen ("Select location", "Enter pincode")
PLACEHOLDER_LABEL = re.compile(r"select|enter", re.IGNORECASE)


async def find_first_selector(page, selectors: List[str], timeout: int, state: str = "attached") -> Optional[str]:
    """Return the first selector that shows up within `timeout` ms, or None."""
    for selector in selectors:
        try:
            await page.wait_for_selector(selector, timeout=timeout, state=state)
            return selector
        except PlaywrightError:
            logger.debug(f"Selector not found: {selector}")
    return None


async def first_text_from_selectors(page, selectors: List[str], timeout: int) -> str:
    """Text of the first matching selector that isn't empty or a placeholder label."""
    for selector in selectors:
        try:
            await page.wait_for_selector(selector, timeout=timeout)
            text = (await page.text_content(selector) or "").strip()
        except PlaywrightError:
            logger.debug(f"No text from selector: {selector}")
            continue
        if text and not PLACEHOLDER_LABEL.search(text):
            return text
    return ""
