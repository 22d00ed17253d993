"""
Scraper configuration.

Selector lists are ordered fallbacks: the first selector that matches wins, so
markup drift on the site is absorbed by editing the list (or a JSON override
file) instead of the code. All waits are in milliseconds, like Playwright's.
"""
import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SCRAPER_CONFIG"


@dataclass(frozen=True)
class ScraperConfig:
    base_url: str = "https://blinkit.com/"
    search_url: str = "https://blinkit.com/s/?q={query}"
    service: str = "blinkit"
    output_dir: str = field(default_factory=lambda: os.getenv("OUTPUT_DIR", "./output"))

    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    )
    viewport_width: int = 1280
    viewport_height: int = 800
    blocked_resource_types: List[str] = field(default_factory=lambda: ["media", "font"])

    # Location picker
    location_trigger_selectors: List[str] = field(default_factory=lambda: [
        "div[class*='LocationBar__Container']",
        "div[class*='LocationBar__']",
        "text=Delivery in",
    ])
    location_input_selectors: List[str] = field(default_factory=lambda: [
        '[name="select-locality"]',
        '[placeholder*="Search"]',
        'input[type="text"]',
    ])
    location_suggestion_selectors: List[str] = field(default_factory=lambda: [
        ".LocationSearchList__LocationListContainer-sc-93rfr7-0:nth-child(1)",
        '[class*="LocationSearchList"]',
        '[class*="LocationList"]',
        '[class*="LocationSearch"]',
    ])
    location_panel_selectors: List[str] = field(default_factory=lambda: [
        '[class*="LocationSearchList"]',
        '[class*="LocationList"]',
    ])
    location_label_selectors: List[str] = field(default_factory=lambda: [
        '[class^="LocationBar__Subtitle-"]',
        '[class*="LocationBar__Subtitle"]',
        '[data-testid="header-location"]',
        '[data-testid*="location"]',
        '[class*="LocationBar"] [class*="Subtitle"]',
    ])
    location_attempts: int = 2

    # Search results page
    loading_selector: str = '.LoadingIcon, .spinner, [class*="loading"], [class*="Loading"]'
    product_card_selectors: List[str] = field(default_factory=lambda: [
        'div[role="button"][id]',
        'div[id][data-pf="reset"]',
        '.ProductCard__Wrapper',
        '[data-testid*="product"]',
        'div.tw-flex-col[id]',
        'div[class*="product"]',
    ])
    no_results_selector: str = '.EmptySearchResults, [class*="empty"], [class*="no-results"]'
    empty_search_marker: str = "empty_search"

    # Timeouts and settle delays (ms)
    home_timeout: int = 300000
    navigation_timeout: int = 50000
    response_timeout: int = 30000
    trigger_probe_timeout: int = 5000
    input_probe_timeout: int = 20000
    suggestion_probe_timeout: int = 10000
    label_probe_timeout: int = 8000
    panel_close_timeout: int = 8000
    loader_timeout: int = 10000
    card_probe_timeout: int = 3000
    type_settle: int = 3000
    suggestion_settle: int = 3000
    navigation_settle: int = 2000
    loader_settle: int = 1000
    content_fallback_wait: int = 5000


def load_config(path: Optional[str] = None) -> ScraperConfig:
    """
    Build a config from defaults plus an optional JSON override file.

    The file is taken from ``path`` or the SCRAPER_CONFIG environment variable.
    Unknown keys raise ValueError so typos don't silently fall back to defaults.
    """
    path = path or os.getenv(CONFIG_ENV_VAR)
    config = ScraperConfig()
    if not path:
        return config

    logger.info(f"Loading scraper config overrides from {path}")
    with open(Path(path), encoding="utf-8") as f:
        overrides = json.load(f)

    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    known = {f.name for f in fields(ScraperConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")

    return replace(config, **overrides)
