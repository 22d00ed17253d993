"""
Filters applied to extracted products before they become output rows.

Each filter is an independent keep/drop predicate. They run in a fixed order
only so the logged drop reason is stable.
"""
import logging
import re
from typing import Callable, List, Optional, Tuple

from .models import NormalizedQuantity, Product

logger = logging.getLogger(__name__)

QUANTITY_TOLERANCE = 0.1

WEIGHT_UNITS = {"kg", "g", "mg"}
VOLUME_UNITS = {"l", "ml"}
COUNT_UNITS = {"pc", "pack"}

UNIT_ALIASES = {
    "gm": "g", "gms": "g", "gram": "g", "grams": "g",
    "kilogram": "kg", "kilograms": "kg", "kgs": "kg",
    "lt": "l", "ltr": "l", "liter": "l", "litre": "l", "liters": "l", "litres": "l",
    "pcs": "pc", "piece": "pc", "pieces": "pc",
    "packs": "pack",
}

QUANTITY_TOKEN = re.compile(r"\b(\d+(?:\.\d+)?)\s*([a-zA-Z]+)\b")
MULTIPACK = re.compile(r"(\d+)\s*x\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]+)", re.IGNORECASE)

TOKEN_SPLIT = re.compile(r"[\s,\-]+")
NUMBER = re.compile(r"^\d+(\.\d+)?$")
UNIT_SUFFIXED = re.compile(
    r"^\d+(\.\d+)?(kg|g|gm|gram|grams|kilogram|kilograms|mg|l|lt|ltr|liter|litre|liters|litres"
    r"|ml|pc|pcs|piece|pieces|pack|packs)$"
)
FILLER_WORDS = {
    "kg", "g", "gm", "gram", "grams", "kilogram", "kilograms", "mg",
    "l", "ml", "ltr", "litre", "liter", "pc", "pcs", "piece", "pieces",
    "pack", "packet", "combo", "x", "of", "and", "with", "fresh",
}

TOMATO_TERM = re.compile(r"\btomato(es)?\b", re.IGNORECASE)
PROCESSED_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    r"sun[-\s]?dried",
    r"dried\s+(tomato|fruit|vegetable)",
    r"\bin\s+oil",
    r"\bin\s+brine",
    r"pickle",
    r"preserved",
    r"canned",
    r"jarred",
    r"frozen\s+(and\s+)?dried",
    r"dehydrated",
)]


# ── Quantities ────────────────────────────────────────────────────────────────

def unit_category(unit: str) -> str:
    u = UNIT_ALIASES.get(unit.lower(), unit.lower())
    if u in WEIGHT_UNITS:
        return "weight"
    if u in VOLUME_UNITS:
        return "volume"
    if u in COUNT_UNITS:
        return "count"
    return "unknown"


def normalize_quantity(value: float, unit: str) -> NormalizedQuantity:
    """Express value+unit in grams, millilitres or pieces."""
    u = UNIT_ALIASES.get(unit.lower(), unit.lower())
    category = unit_category(u)
    if category == "weight":
        if u == "kg":
            value = value * 1000
        elif u == "mg":
            value = value / 1000
        return {"value": value, "unit": "g", "category": category}
    if category == "volume":
        factor = 1000 if u == "l" else 1
        return {"value": value * factor, "unit": "ml", "category": category}
    if category == "count":
        return {"value": value, "unit": "pc", "category": category}
    return {"value": value, "unit": u, "category": "unknown"}


def parse_requested_quantity(term: str) -> Optional[NormalizedQuantity]:
    """Quantity asked for in a search term, e.g. "tomato 1kg" -> 1000 g."""
    m = QUANTITY_TOKEN.search(term or "")
    if not m:
        return None
    return normalize_quantity(float(m.group(1)), m.group(2))


def parse_product_quantity(text: Optional[str]) -> Optional[NormalizedQuantity]:
    """Pack size from a product quantity label, handling "2 x 500 g" multipacks."""
    if not text or text.strip().upper() == "N/A":
        return None
    s = text.strip().lower()

    m = MULTIPACK.search(s)
    if m:
        single = normalize_quantity(float(m.group(2)), m.group(3))
        single["value"] *= float(m.group(1))
        return single

    m = QUANTITY_TOKEN.search(s)
    if not m:
        return None
    return normalize_quantity(float(m.group(1)), m.group(2))


def matches_quantity(product_quantity: Optional[str], requested: Optional[NormalizedQuantity]) -> bool:
    """Within ±10% of the requested amount. Unknown sizes are kept."""
    if not requested:
        return True
    actual = parse_product_quantity(product_quantity)
    if not actual:
        return True
    if actual["category"] != requested["category"]:
        return False
    # rounded so 1.1 kg still counts as exactly 10% over 1 kg
    diff = round(abs(actual["value"] - requested["value"]), 9)
    return diff <= round(requested["value"] * QUANTITY_TOLERANCE, 9)


# ── Term tokens ───────────────────────────────────────────────────────────────

def singularize(token: str) -> str:
    t = token.lower()
    if len(t) > 4 and t.endswith("ies"):
        return t[:-3] + "y"
    if len(t) > 4 and t.endswith("es"):
        return t[:-2]
    if len(t) > 3 and t.endswith("s") and not t.endswith("ss"):
        return t[:-1]
    return t


def _split(text: str) -> List[str]:
    return [t for t in TOKEN_SPLIT.split((text or "").lower()) if t]


def core_tokens(term: str) -> List[str]:
    """Meaningful words of a search term: no units, fillers or numbers, singular."""
    tokens = []
    for t in _split(term):
        if t in FILLER_WORDS or NUMBER.match(t) or UNIT_SUFFIXED.match(t):
            continue
        tokens.append(singularize(t))
    return tokens


def matches_search_term(product_name: str, term: str) -> bool:
    wanted = core_tokens(term)
    if not wanted:
        return True
    have = {singularize(t) for t in _split(product_name)}
    return all(t in have for t in wanted)


# ── Processed food ────────────────────────────────────────────────────────────

def is_tomato_search(term: str) -> bool:
    return bool(TOMATO_TERM.search(term or ""))


def is_processed_product(name: str) -> bool:
    return any(p.search(name or "") for p in PROCESSED_PATTERNS)


# ── Pipeline ──────────────────────────────────────────────────────────────────

Predicate = Callable[[Product], bool]


def _has_delivery_time(product: Product) -> bool:
    eta = str(product.get("delivery_time") or "").strip()
    return bool(eta) and eta.lower() != "n/a"


def build_filters(term: str) -> List[Tuple[str, Predicate]]:
    """(reason, keep-predicate) pairs for one search term."""
    requested = parse_requested_quantity(term)
    filters: List[Tuple[str, Predicate]] = []

    if is_tomato_search(term):
        filters.append(("processed product", lambda p: not is_processed_product(p["name"])))
    filters.append(("out of stock", lambda p: p.get("available") is not False))
    filters.append(("no delivery time", _has_delivery_time))
    if requested:
        filters.append((
            f"quantity mismatch (wanted {requested['value']:g}{requested['unit']})",
            lambda p: matches_quantity(p.get("quantity"), requested),
        ))
    filters.append((f"term mismatch for '{term}'", lambda p: matches_search_term(p["name"], term)))
    return filters


def filter_products(products: List[Product], term: str) -> List[Product]:
    filters = build_filters(term)
    kept = []
    for product in products:
        reason = next((r for r, keep in filters if not keep(product)), None)
        if reason:
            logger.debug(f"Filtering out {product.get('name')} ({product.get('quantity')}): {reason}")
            continue
        kept.append(product)
    logger.info(f"{len(kept)}/{len(products)} products kept for '{term}'")
    return kept
