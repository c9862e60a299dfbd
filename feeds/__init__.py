"""
Price Feed Package

Everything between the remote price list and the token catalog:
- price_client.py: async HTTP client fetching the raw price list
- normalizer.py: turns raw price records into a deduplicated, sorted catalog
"""

from .normalizer import normalize, parse_price_records, build_icon_url
from .price_client import PriceAPIClient

__all__ = ["normalize", "parse_price_records", "build_icon_url", "PriceAPIClient"]
