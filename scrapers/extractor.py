"""
Product extraction from Blinkit's search API payload.

The payload is ``{"response": {"snippets": [...]}}`` where each snippet is one
UI widget. Product widgets carry ``data.identity`` and ``data.name``; headers,
containers and sponsored placements are skipped.
"""
import logging
import math
import re
from typing import Any, List, Optional

from .models import Product

logger = logging.getLogger(__name__)

MAX_AD_SCAN_DEPTH = 4

HEADER_WIDGET_TYPE = "image_text_vr_type_header"
CONTAINER_IDENTITY = "product_container"

NAME_FALLBACK = "Product Name Not Available"
PRICE_FALLBACK = "Price Not Available"

AD_FLAG_KEYS = ("is_ad", "is_sponsored", "sponsored", "advertisement")
AD_TEXT_FIELDS = ("badge", "ad_badge", "label", "sponsored_tag", "promo_label")
AD_WORD = re.compile(r"\b(ad|ads|advertisement|sponsored|sponsor|advert)\b", re.IGNORECASE)
AD_KEY_PATTERNS = [re.compile(p) for p in (
    r"^ad$", r"^ads$", r"^ad_", r"_ad$",
    r"^sponsored$", r"^sponsored_", r"_sponsored$",
    r"^advertisement$", r"^advert$",
)]
# Keys that often hold ad-looking names for unrelated reasons
AD_SCAN_EXCLUDED_KEYS = ("address", "badge", "label")
AD_VALUE = re.compile(r"(^|[^a-z])ad([^a-z]|$)|sponsor|advert", re.IGNORECASE)

AMOUNT = re.compile(r"₹\s*(\d[\d,]*(?:\.\d+)?)")


def _text(obj: Any) -> Optional[str]:
    """`obj["text"]` when obj is a dict with a non-empty string text."""
    if isinstance(obj, dict) and isinstance(obj.get("text"), str) and obj["text"]:
        return obj["text"]
    return None


def _is_set(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (dict, list)):
        return len(value) > 0
    return False


def has_ad_signal(value: Any, depth: int = 0) -> bool:
    """
    Depth-bounded scan of a JSON tree for ad/sponsor keys holding a set value.

    Keys mentioning address/badge/label are only flagged when their own string
    value reads like an ad, so e.g. ``address_line`` never triggers.
    """
    if depth > MAX_AD_SCAN_DEPTH or not isinstance(value, (dict, list)):
        return False

    items = value.items() if isinstance(value, dict) else enumerate(value)
    for key, child in items:
        key_str = str(key).lower()
        if any(word in key_str for word in AD_SCAN_EXCLUDED_KEYS):
            if isinstance(child, str) and AD_VALUE.search(child):
                return True
            continue

        if any(p.search(key_str) for p in AD_KEY_PATTERNS) and _is_set(child):
            return True
        if has_ad_signal(child, depth + 1):
            return True
    return False


def is_sponsored_snippet(snippet: dict) -> bool:
    raw = snippet.get("data") or {}
    if not isinstance(raw, dict):
        raw = {}

    widget_type = str(snippet.get("widget_type") or "").lower()
    if "ad" in widget_type or "sponsor" in widget_type:
        return True

    if any(raw.get(key) is True for key in AD_FLAG_KEYS):
        return True

    texts = [_text(raw.get(name)) for name in AD_TEXT_FIELDS]
    badges = raw.get("badges")
    if isinstance(badges, list):
        texts.extend(_text(b) for b in badges)
    if any(t and AD_WORD.search(t) for t in texts):
        return True

    return has_ad_signal(snippet)


def parse_amount(text: Optional[str]) -> Optional[float]:
    if not text:
        return None
    m = AMOUNT.search(text)
    if not m:
        return None
    return float(m.group(1).replace(",", ""))


def compute_savings(price: Optional[str], original_price: Optional[str]) -> Optional[str]:
    current = parse_amount(price)
    original = parse_amount(original_price)
    if current is None or original is None or original <= current:
        return None
    return f"₹{math.floor(original - current + 0.5)}"


def _is_product_snippet(snippet: dict) -> bool:
    raw = snippet.get("data")
    if not isinstance(raw, dict) or snippet.get("widget_type") == HEADER_WIDGET_TYPE:
        return False
    identity = raw.get("identity")
    if not raw.get("name") or not isinstance(identity, dict):
        return False
    return identity.get("id") != CONTAINER_IDENTITY


def _product_from_snippet(raw: dict, idx: int) -> Product:
    price = _text(raw.get("normal_price"))
    if not price:
        number = raw.get("price")
        if isinstance(number, (int, float)) and not isinstance(number, bool):
            price = f"₹{number:.2f}"
        else:
            price = PRICE_FALLBACK

    original_price = _text(raw.get("mrp"))

    discount = _text((raw.get("offer_tag") or {}).get("title"))
    if discount:
        discount = discount.replace("\n", " ")

    if "is_sold_out" in raw:
        available = not raw["is_sold_out"]
    elif "inventory" in raw:
        available = (raw["inventory"] or 0) > 0
    else:
        available = True

    return {
        "id": str(raw["identity"].get("id") or f"product_{idx}"),
        "name": _text(raw.get("name")) or NAME_FALLBACK,
        "price": price,
        "original_price": original_price,
        "savings": compute_savings(price, original_price),
        "quantity": _text(raw.get("variant")) or "N/A",
        "delivery_time": _text((raw.get("eta_tag") or {}).get("title")) or "N/A",
        "discount": discount,
        "image_url": (raw.get("image") or {}).get("url") or "",
        "available": bool(available),
    }


def extract_products(payload: Any) -> List[Product]:
    """Turn a captured search payload into product records, skipping ads and non-products."""
    products: List[Product] = []

    response = payload.get("response") if isinstance(payload, dict) else None
    snippets = response.get("snippets") if isinstance(response, dict) else None
    if not isinstance(snippets, list):
        logger.error("Invalid payload: expected a 'response.snippets' list")
        return products

    for idx, snippet in enumerate(snippets):
        if not isinstance(snippet, dict):
            continue
        if is_sponsored_snippet(snippet):
            logger.debug(f"Skipping sponsored snippet at index {idx}")
            continue
        if not _is_product_snippet(snippet):
            logger.debug(f"Skipping non-product snippet at index {idx}")
            continue
        try:
            products.append(_product_from_snippet(snippet["data"], idx))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping snippet {idx}: {e}")

    logger.info(f"Extracted {len(products)} products from {len(snippets)} snippets")
    return products
