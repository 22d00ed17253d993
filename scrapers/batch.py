"""
Batch search: every pincode x every (term, quantity) query, into one CSV.

The run is strictly sequential on one browser: one page per pincode, one
search in flight at a time, so only one response listener is ever active.
"""
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Union

from .blinkit import BlinkitScraper
from .config import ScraperConfig
from .csv_writer import write_csv
from .filters import filter_products
from .models import BatchResult, OutputRow, Product, ProbeResult

logger = logging.getLogger(__name__)


class BatchInputError(ValueError):
    pass


def parse_comma_list(value: Union[str, List, None]) -> List[str]:
    """Accept a list or a comma-separated string; trims and drops empty entries."""
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    elif isinstance(value, str):
        items = value.split(",")
    else:
        return []
    return [v.strip() for v in items if v.strip()]


def validate_batch_input(pincodes, search_terms, quantities):
    if not isinstance(pincodes, list) or not pincodes:
        raise BatchInputError("pincodes must be a non-empty list")
    if not isinstance(search_terms, list) or not search_terms:
        raise BatchInputError("search_terms must be a non-empty list")
    if not isinstance(quantities, list):
        raise BatchInputError("quantities must be a list")


def expand_search_terms(search_terms: List[str], quantities: List[str]) -> List[str]:
    """Quantities modify terms: "onions" x ["1kg", "2kg"] -> "onions 1kg", "onions 2kg"."""
    if not quantities:
        return list(search_terms)
    return [f"{term} {qty}".strip() for term in search_terms for qty in quantities]


def to_row(product: Product, pincode: str, term: str, service: str) -> OutputRow:
    return {"pincode": pincode, "search_term": term, "service": service, **product}


async def _search_pincode(scraper, pincode: str, terms: List[str]) -> List[OutputRow]:
    rows: List[OutputRow] = []
    page = await scraper.new_page()
    try:
        title = await scraper.set_location(page, pincode)
        if not title:
            logger.error(f"Skipping pincode {pincode}: location could not be set")
            return rows

        for term in terms:
            try:
                result = await scraper.search(page, term)
                kept = filter_products(result["products"], term)
            except Exception:
                logger.exception(f"Search failed for '{term}' at {pincode}")
                continue
            rows.extend(to_row(p, pincode, term, scraper.service) for p in kept)
            logger.info(f"[{pincode}] '{term}': {len(kept)} rows")
    finally:
        await scraper.close_page(page)
    return rows


async def run_batch(
    pincodes: List[str],
    search_terms: List[str],
    quantities: Optional[List[str]] = None,
    output_dir: Optional[str] = None,
    headless: bool = True,
    config: Optional[ScraperConfig] = None,
    scraper_factory: Callable[..., BlinkitScraper] = BlinkitScraper,
) -> BatchResult:
    quantities = [] if quantities is None else quantities
    validate_batch_input(pincodes, search_terms, quantities)

    config = config or ScraperConfig()
    terms = expand_search_terms(search_terms, quantities)
    logger.info(f"Batch: {len(pincodes)} pincodes x {len(terms)} queries")

    rows: List[OutputRow] = []
    scraper = scraper_factory(headless=headless, config=config)
    try:
        await scraper.launch()
        for pincode in pincodes:
            rows.extend(await _search_pincode(scraper, pincode, terms))
    finally:
        await scraper.stop()

    filename = f"{config.service}-search-{int(time.time() * 1000)}.csv"
    path = write_csv(rows, Path(output_dir or config.output_dir) / filename)

    return {
        "file": str(path),
        "filename": filename,
        "row_count": len(rows),
        "items": rows,
        "pincodes": pincodes,
        "search_terms": search_terms,
        "quantities": quantities or None,
        "expanded_search_terms": terms,
    }


async def probe_search(
    pincode: str,
    search_term: str,
    headless: bool = True,
    config: Optional[ScraperConfig] = None,
    scraper_factory: Callable[..., BlinkitScraper] = BlinkitScraper,
) -> ProbeResult:
    if not pincode or not search_term:
        raise BatchInputError("pincode and search_term are required")

    scraper = scraper_factory(headless=headless, config=config or ScraperConfig())
    try:
        await scraper.start()
        return await scraper.probe(pincode, search_term)
    finally:
        await scraper.stop()
