"""
Price Normalizer

Converts the raw price list into the token catalog.

Rules:
    1. Records whose price is missing, non-finite or <= 0 are not tradable
       and are dropped.
    2. Records are grouped by currency; the one with the latest date wins.
       On equal dates the first record in input order is kept.
    3. Each survivor becomes a Token with an icon URL derived from its symbol.
    4. The catalog is sorted by symbol, case-insensitively.

normalize() is pure: same input, same catalog, no I/O.
"""

import math
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

from pydantic import ValidationError

from core.config import settings
from core.logging import get_logger
from core.schemas import PriceRecord, Token

logger = get_logger(__name__)

# Characters encodeURIComponent leaves untouched besides [A-Za-z0-9_.~-]
_URI_COMPONENT_SAFE = "!*'()"


def build_icon_url(symbol: str, base_url: Optional[str] = None) -> str:
    """
    Derive the icon URL of a token.

    The symbol is percent-encoded as a single path segment; no request is
    made to check the icon exists.

    Example:
        >>> build_icon_url("ETH", "https://icons.example/tokens")
        'https://icons.example/tokens/ETH.svg'
        >>> build_icon_url("STEVIE/USD", "https://icons.example/tokens")
        'https://icons.example/tokens/STEVIE%2FUSD.svg'
    """
    base = (base_url or settings.token_icon_base_url).rstrip("/")
    return f"{base}/{quote(symbol, safe=_URI_COMPONENT_SAFE)}.svg"


def _is_tradable(record: PriceRecord) -> bool:
    return record.price is not None and math.isfinite(record.price) and record.price > 0


def normalize(records: Iterable[PriceRecord], icon_base_url: Optional[str] = None) -> Tuple[Token, ...]:
    """
    Build the catalog from raw price records.

    Args:
        records: Raw price records, in feed order
        icon_base_url: Icon base URL (defaults to settings.token_icon_base_url)

    Returns:
        Tuple of Tokens, one per symbol, sorted by symbol (case-insensitive)

    Example:
        >>> catalog = normalize([
        ...     PriceRecord(currency="ETH", date="2024-01-01", price=2000),
        ...     PriceRecord(currency="ETH", date="2024-01-02", price=2100),
        ...     PriceRecord(currency="BTC", date="2024-01-01", price=40000),
        ... ])
        >>> [(t.symbol, t.price) for t in catalog]
        [('BTC', 40000.0), ('ETH', 2100.0)]
    """
    latest: Dict[str, PriceRecord] = {}

    for record in records:
        if not _is_tradable(record):
            continue
        current = latest.get(record.currency)
        # Strictly newer replaces: equal dates keep the first occurrence
        if current is None or record.date > current.date:
            latest[record.currency] = record

    tokens = [
        Token(
            symbol=record.currency,
            price=record.price,
            observed_at=record.date,
            icon_url=build_icon_url(record.currency, icon_base_url),
        )
        for record in latest.values()
    ]
    tokens.sort(key=lambda token: (token.symbol.casefold(), token.symbol))
    return tuple(tokens)


def parse_price_records(payload: List[Any]) -> List[PriceRecord]:
    """
    Validate a decoded price list item by item.

    Malformed items (not an object, missing currency, unparseable date,
    non-numeric price) are dropped instead of failing the whole payload.

    Args:
        payload: Decoded JSON array from the price endpoint

    Returns:
        List of PriceRecord in payload order
    """
    records: List[PriceRecord] = []
    dropped = 0

    for item in payload:
        if not isinstance(item, dict):
            dropped += 1
            continue
        try:
            records.append(PriceRecord.model_validate(item))
        except ValidationError as e:
            dropped += 1
            logger.debug(f"Dropped malformed price record {item!r}: {e.error_count()} error(s)")

    if dropped:
        logger.debug(f"Dropped {dropped} malformed price record(s) out of {len(payload)}")
    return records
