"""
Swap Quote Engine

Pure computation of a conversion quote between two catalog tokens.

    rate          = from.price / to.price          (0 when undefined)
    output_amount = input_amount * rate            (0 unless both positive)

Products that overflow to infinity are reported as 0.

A quote is invalid (is_valid False) when, checked in this order:
    1. the feed is not ready                -> feed-not-ready
    2. either token is unset or unknown     -> unresolved-token
    3. both sides are the same token        -> same-token
    4. the amount is <= 0 or not finite     -> non-positive-amount
    5. the amount is above the balance      -> exceeds-balance

Invalid quotes are still computed (rate and output are filled in whenever
the tokens resolve), so a form can keep showing an estimate while the
submit button is disabled.
"""

import math
from typing import List, Optional, Sequence

from core.providers import BalanceProvider
from core.schemas import FeedState, FeedStatus, InvalidReason, QuoteResult, Token


def _finite_or_zero(value: float) -> float:
    # Products of extreme prices and amounts overflow to inf
    return value if math.isfinite(value) else 0.0


def find_token(catalog: Sequence[Token], symbol: Optional[str]) -> Optional[Token]:
    """Exact symbol lookup; None when the symbol is unset or not in the catalog."""
    if not symbol:
        return None
    for token in catalog:
        if token.symbol == symbol:
            return token
    return None


def compute_quote(
    catalog: Sequence[Token],
    from_symbol: Optional[str],
    to_symbol: Optional[str],
    input_amount: float,
    available_balance: float,
    feed_status: FeedStatus = FeedStatus.READY,
) -> QuoteResult:
    """
    Compute the quote for swapping input_amount of from_symbol into to_symbol.

    Args:
        catalog: Current token catalog
        from_symbol: Symbol being paid
        to_symbol: Symbol being received
        input_amount: Amount of from_symbol
        available_balance: Balance of from_symbol available to the user
        feed_status: Status of the feed the catalog comes from

    Returns:
        QuoteResult: Rate, output and validity

    Example:
        >>> quote = compute_quote(catalog, "ETH", "BTC", 1, available_balance=50)
        >>> quote.rate, quote.output_amount, quote.is_valid
        (0.0525, 0.0525, True)
    """
    from_token = find_token(catalog, from_symbol)
    to_token = find_token(catalog, to_symbol)

    amount_ok = math.isfinite(input_amount) and input_amount > 0

    rate = 0.0
    if from_token and to_token and to_token.price != 0:
        rate = _finite_or_zero(from_token.price / to_token.price)

    output_amount = _finite_or_zero(input_amount * rate) if amount_ok and rate > 0 else 0.0
    notional_value = _finite_or_zero(input_amount * from_token.price) if amount_ok and from_token else 0.0

    invalid_reason: Optional[InvalidReason] = None
    if feed_status != FeedStatus.READY:
        invalid_reason = InvalidReason.FEED_NOT_READY
    elif from_token is None or to_token is None:
        invalid_reason = InvalidReason.UNRESOLVED_TOKEN
    elif from_token.symbol == to_token.symbol:
        invalid_reason = InvalidReason.SAME_TOKEN
    elif not amount_ok:
        invalid_reason = InvalidReason.NON_POSITIVE_AMOUNT
    elif input_amount > available_balance:
        invalid_reason = InvalidReason.EXCEEDS_BALANCE

    return QuoteResult(
        from_symbol=from_symbol,
        to_symbol=to_symbol,
        input_amount=input_amount if math.isfinite(input_amount) else 0.0,
        rate=rate,
        output_amount=output_amount,
        notional_value=notional_value,
        is_valid=invalid_reason is None,
        invalid_reason=invalid_reason,
    )


def quote_for_state(
    state: FeedState,
    from_symbol: Optional[str],
    to_symbol: Optional[str],
    input_amount: float,
    balances: BalanceProvider,
) -> QuoteResult:
    """Quote against a feed snapshot, taking the balance from a provider."""
    return compute_quote(
        state.catalog,
        from_symbol,
        to_symbol,
        input_amount,
        balances.balance_of(from_symbol),
        feed_status=state.status,
    )


def _utf16_code_units(text: str) -> List[int]:
    """Characters outside the BMP count as two units (a surrogate pair)."""
    encoded = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(encoded[i:i + 2], "little") for i in range(0, len(encoded), 2)]


class DeterministicBalanceProvider(BalanceProvider):
    """
    Demo wallet: a stable pseudo-balance per symbol.

    seed    = sum(unit * (index + 1)) over the UTF-16 code units of symbol
    balance = 10 + seed % 240      -> always within [10, 249]

    Stands in for a real wallet backend; nothing else depends on how the
    number is produced.

    Example:
        >>> DeterministicBalanceProvider().balance_of("ETH")
        223.0
    """

    MINIMUM = 10
    SPREAD = 240

    def balance_of(self, symbol: Optional[str]) -> float:
        if not symbol:
            return 0.0
        seed = sum(unit * (index + 1) for index, unit in enumerate(_utf16_code_units(symbol)))
        return round(float(self.MINIMUM + seed % self.SPREAD), 2)
