from typing import TypedDict, Optional, List, Dict

class Product(TypedDict):
    id: str
    name: str
    price: str
    original_price: Optional[str]
    savings: Optional[str]
    quantity: str
    delivery_time: str
    discount: Optional[str]
    image_url: str
    available: bool

class OutputRow(Product):
    pincode: str
    search_term: str
    service: str

class NormalizedQuantity(TypedDict):
    value: float
    unit: str # canonical: "g", "ml", "pc" or the raw unit when unknown
    category: str # "weight", "volume", "count", "unknown"

class SearchResult(TypedDict):
    products: List[Product]
    source_url: Optional[str]
    request_headers: Optional[Dict[str, str]]
    response_headers: Optional[Dict[str, str]]

class BatchResult(TypedDict):
    file: str
    filename: str
    row_count: int
    items: List[OutputRow]
    pincodes: List[str]
    search_terms: List[str]
    quantities: Optional[List[str]] # None when no quantities were given
    expanded_search_terms: List[str]

class ProbeResult(TypedDict):
    location_title: str
    source_url: Optional[str]
    request_headers: Optional[Dict[str, str]]
    response_headers: Optional[Dict[str, str]]
    cookie_header: str
    sample_products: List[Product]
