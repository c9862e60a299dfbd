"""
Normalized Data Schemas

This module defines Pydantic models for the price feed and the swap quote.

Key Principle:
    Raw price records from the remote feed are normalized into a catalog of
    Tokens; everything downstream (quotes, swap receipts, API responses)
    works only with these standardized schemas.

Models:
    - PriceRecord: One raw entry of the remote price list
    - Token: One tradable entry of the catalog (unique per symbol)
    - FeedState: Immutable snapshot of the price feed lifecycle
    - FeedSnapshot: FeedState plus the derived refresh countdown (API view)
    - QuoteResult: Conversion outcome for a token pair and input amount
    - SwapReceipt: Confirmation of an executed swap
    - SwapRequest: Swap submission payload (API input)

Snapshots (Token, FeedState, QuoteResult, SwapReceipt) are frozen: a new
object is produced on every change instead of mutating an existing one.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, ConfigDict

from core.utils.time import parse_timestamp


# ============================================
# Enumerations
# ============================================

class FeedStatus(str, Enum):
    """Lifecycle status of the price feed."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class InvalidReason(str, Enum):
    """Why a quote cannot be submitted."""

    FEED_NOT_READY = "feed-not-ready"
    UNRESOLVED_TOKEN = "unresolved-token"
    SAME_TOKEN = "same-token"
    NON_POSITIVE_AMOUNT = "non-positive-amount"
    EXCEEDS_BALANCE = "exceeds-balance"


class SubmitState(str, Enum):
    """Swap submission state machine: idle -> submitting -> idle | failed."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    FAILED = "failed"


# ============================================
# Price Record Schema (external input)
# ============================================

class PriceRecord(BaseModel):
    """
    Raw Price Record

    One entry of the remote price list. Several records may share a currency
    (historical entries), so records are not unique.

    Attributes:
        currency: Token symbol as reported by the feed (e.g., "ETH")
        date: Observation time in UTC
        price: USD price; None when absent (such records are not tradable)

    Example:
        >>> PriceRecord.model_validate(
        ...     {"currency": "ETH", "date": "2023-08-29T07:10:52.000Z", "price": 1645.93}
        ... )
    """

    currency: str = Field(
        ...,
        min_length=1,
        description="Token symbol",
        examples=["ETH", "BTC", "USDC"]
    )

    date: datetime = Field(
        ...,
        description="Observation timestamp in UTC"
    )

    price: Optional[float] = Field(
        None,
        description="USD price (non-positive or missing prices are discarded)"
    )

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Strip surrounding whitespace; symbol case is preserved"""
        v = v.strip()
        if not v:
            raise ValueError("currency cannot be blank")
        return v

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> datetime:
        """Accept ISO-8601 strings and epoch seconds/milliseconds"""
        return parse_timestamp(v)


# ============================================
# Token Schema (catalog entry)
# ============================================

class Token(BaseModel):
    """
    Catalog Token

    Exactly one Token exists per distinct symbol in a catalog; its price and
    timestamp come from the most recently dated valid PriceRecord.

    Attributes:
        symbol: Unique token symbol
        price: USD price, strictly positive
        observed_at: Timestamp of the record the price was taken from
        icon_url: Icon location derived from the symbol (not validated)

    Example:
        >>> Token(
        ...     symbol="ETH",
        ...     price=1645.93,
        ...     observed_at=datetime(2023, 8, 29, 7, 10, 52, tzinfo=timezone.utc),
        ...     icon_url="https://raw.githubusercontent.com/Switcheo/token-icons/main/tokens/ETH.svg"
        ... )
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1, description="Unique token symbol")
    price: float = Field(..., gt=0, description="USD price")
    observed_at: datetime = Field(..., description="Time of the price observation (UTC)")
    icon_url: str = Field(..., description="Derived icon URL")


# ============================================
# Feed State Schema
# ============================================

class FeedState(BaseModel):
    """
    Price Feed State

    Immutable snapshot owned by the FeedController. Consumers receive it
    read-only; every transition creates a new snapshot, and a catalog once
    published is never changed in place.

    Lifecycle:
        idle -> loading -> ready
        ready -> ready (background refresh, no flicker)
        * -> error (catalog and last_updated of the last success are kept)

    Attributes:
        status: Current lifecycle status
        catalog: Tokens sorted by symbol (case-insensitive)
        last_updated: Completion time of the last successful fetch
        error: Human-readable message of the last failure
    """

    model_config = ConfigDict(frozen=True)

    status: FeedStatus = Field(default=FeedStatus.IDLE)
    catalog: Tuple[Token, ...] = Field(default=())
    last_updated: Optional[datetime] = Field(default=None)
    error: Optional[str] = Field(default=None)

    @property
    def is_ready(self) -> bool:
        return self.status == FeedStatus.READY

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(token.symbol for token in self.catalog)


class FeedSnapshot(BaseModel):
    """FeedState as exposed over HTTP, with the derived refresh countdown."""

    status: FeedStatus
    tokens: Tuple[Token, ...]
    last_updated: Optional[datetime] = None
    error_message: Optional[str] = None
    is_stale: bool = False
    refresh_in_seconds: int = Field(..., ge=0, description="Seconds until the next scheduled refresh")


# ============================================
# Quote Schema
# ============================================

class QuoteResult(BaseModel):
    """
    Swap Quote

    Derived purely from (catalog, pair, amount, balance, feed status).
    Validation failures are reported here rather than raised.

    Attributes:
        from_symbol: Requested source symbol (may be unresolved)
        to_symbol: Requested target symbol (may be unresolved)
        input_amount: Amount of the source token
        rate: Units of target per unit of source; 0 when undefined
        output_amount: input_amount * rate when both are positive, else 0
        notional_value: USD value of the input; 0 when the source is unresolved
        is_valid: True when the swap may be submitted
        invalid_reason: First failed precondition when is_valid is False

    Example:
        >>> QuoteResult(
        ...     from_symbol="ETH", to_symbol="BTC", input_amount=1.0,
        ...     rate=0.0525, output_amount=0.0525, notional_value=2100.0,
        ...     is_valid=True
        ... )
    """

    model_config = ConfigDict(frozen=True)

    from_symbol: Optional[str] = None
    to_symbol: Optional[str] = None
    input_amount: float = 0.0
    rate: float = Field(0.0, ge=0)
    output_amount: float = Field(0.0, ge=0)
    notional_value: float = Field(0.0, ge=0)
    is_valid: bool = False
    invalid_reason: Optional[InvalidReason] = None


# ============================================
# Swap Schemas
# ============================================

class SwapRequest(BaseModel):
    """Swap submission payload."""

    from_symbol: str = Field(..., min_length=1)
    to_symbol: str = Field(..., min_length=1)
    amount: float = Field(..., description="Amount of the source token")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: float) -> float:
        """Reject NaN/infinity; range checks are part of the quote"""
        if not math.isfinite(v):
            raise ValueError("amount must be a finite number")
        return v


class SwapReceipt(BaseModel):
    """
    Swap Confirmation

    Produced by a SwapExecutor once a swap has been executed.
    """

    model_config = ConfigDict(frozen=True)

    from_symbol: str
    to_symbol: str
    input_amount: float
    output_amount: float
    rate: float
    message: str = Field(..., description="Human-readable confirmation")
    executed_at: datetime
