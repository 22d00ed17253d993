"""
Delivery location setter.

One attempt walks the picker: open it, type the location, pick the first
suggestion (Enter as a last resort), wait for the panel to close, then read
back the header label. The label is only trusted if it passes verification;
otherwise the whole attempt is retried from a fresh load of the home page.
"""
import logging
import re
from typing import Optional
from playwright.async_api import Error as PlaywrightError

from .config import ScraperConfig
from .probes import find_first_selector, first_text_from_selectors, PLACEHOLDER_LABEL

logger = logging.getLogger(__name__)

PINCODE_PATTERN = re.compile(r"^\d{6}$")

PANEL_CLOSED_JS = "selectors => selectors.every(s => !document.querySelector(s))"


class LocationError(Exception):
    """Raised by callers that need a location and could not get one."""


def is_location_verified(location_text: str, title: str) -> bool:
    if not title or PLACEHOLDER_LABEL.search(title):
        return False
    wanted = location_text.strip()
    if PINCODE_PATTERN.match(wanted):
        return wanted in title
    return True


async def read_location_title(page, config: ScraperConfig) -> str:
    title = await first_text_from_selectors(page, config.location_label_selectors, config.label_probe_timeout)
    if title:
        logger.info(f"Location title found: '{title}'")
    else:
        logger.warning("No location label found in header")
    return title


async def _open_home(page, config: ScraperConfig):
    await page.goto(config.base_url, timeout=config.home_timeout, wait_until="domcontentloaded")


async def _attempt_location(page, location_text: str, config: ScraperConfig) -> str:
    if not page.url.startswith(config.base_url):
        await _open_home(page, config)

    # 1. Open the picker. On a first visit it is usually already open.
    trigger = await find_first_selector(
        page, config.location_trigger_selectors, config.trigger_probe_timeout, state="visible"
    )
    if trigger:
        try:
            await page.click(trigger, timeout=config.trigger_probe_timeout)
        except PlaywrightError as e:
            logger.debug(f"Trigger click failed ({trigger}): {e}")

    # 2. Type the location
    input_selector = await find_first_selector(
        page, config.location_input_selectors, config.input_probe_timeout, state="visible"
    )
    if not input_selector:
        logger.warning("Location input not found")
        return ""

    logger.info(f"Typing location '{location_text}' into {input_selector}")
    await page.fill(input_selector, "")
    await page.type(input_selector, location_text, delay=10)
    await page.wait_for_timeout(config.type_settle)

    # 3. Pick a suggestion
    suggestion = await find_first_selector(
        page, config.location_suggestion_selectors, config.suggestion_probe_timeout
    )
    picked = False
    if suggestion:
        try:
            await page.click(suggestion)
            picked = True
        except PlaywrightError as e:
            logger.warning(f"Clicking suggestion {suggestion} failed: {e}")
    if not picked:
        logger.info("No suggestion clicked, pressing Enter")
        await page.keyboard.press("Enter")

    await page.wait_for_timeout(config.suggestion_settle)
    try:
        await page.wait_for_function(
            PANEL_CLOSED_JS, arg=config.location_panel_selectors, timeout=config.panel_close_timeout
        )
    except PlaywrightError:
        logger.debug("Suggestion panel still visible, continuing")

    # 4. Read back and verify
    title = await read_location_title(page, config)
    if is_location_verified(location_text, title):
        return title
    logger.warning(f"Location label '{title}' does not confirm '{location_text}'")
    return ""


async def set_location(page, location_text: str, config: ScraperConfig) -> Optional[str]:
    """
    Set and verify the delivery location. Returns the confirmed location title,
    or None once every attempt has failed.
    """
    logger.info(f"Setting location to {location_text}")
    for attempt in range(1, config.location_attempts + 1):
        try:
            if attempt > 1:
                logger.info(f"Reloading home page for location attempt {attempt}/{config.location_attempts}")
                await _open_home(page, config)
            title = await _attempt_location(page, location_text, config)
        except PlaywrightError as e:
            logger.error(f"Location attempt {attempt} for {location_text} failed: {e}")
            continue

        if title:
            logger.info(f"Location successfully set to: {title}")
            return title

    logger.error(f"Could not verify location {location_text} after {config.location_attempts} attempts")
    return None
