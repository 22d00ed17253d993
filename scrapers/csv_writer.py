import logging
from pathlib import Path
from typing import List
import pandas as pd

from .models import OutputRow

logger = logging.getLogger(__name__)

# (row key, CSV header)
CSV_COLUMNS = [
    ("pincode", "pincode"),
    ("search_term", "searchTerm"),
    ("service", "service"),
    ("id", "id"),
    ("name", "name"),
    ("price", "price"),
    ("original_price", "originalPrice"),
    ("savings", "savings"),
    ("quantity", "quantity"),
    ("delivery_time", "deliveryTime"),
    ("discount", "discount"),
    ("image_url", "imageUrl"),
    ("available", "available"),
]


def _format_bool(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def write_csv(rows: List[OutputRow], path) -> Path:
    """
    Write rows as UTF-8 CSV. Fields with commas, quotes or newlines are quoted
    with inner quotes doubled; missing values become empty fields.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    keys = [key for key, _ in CSV_COLUMNS]
    df = pd.DataFrame(list(rows), columns=keys, dtype=object)
    df["available"] = df["available"].map(_format_bool)
    df = df.rename(columns=dict(CSV_COLUMNS))

    df.to_csv(path, index=False, encoding="utf-8", lineterminator="\n")
    logger.info(f"Saved {len(df)} rows to {path}")
    return path
