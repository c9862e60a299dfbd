"""
Headless Swap Form

The state behind a swap form, without any rendering: which pair is
selected, what amount was typed, and what the form should display. A
presentation layer (the terminal form in scripts/swap_cli.py, a web page,
...) forwards user intents here and renders view().

Behaviour:
    - Once the catalog arrives, an unset side defaults to the first token
      (from) and the second token (to), or the first token for both when the
      catalog has a single entry.
    - Typed amounts are sanitized: empty clears, garbage is ignored,
      negatives become 0, at most 6 fraction digits are kept.
    - When the source token changes (selection, switch, refreshed catalog),
      an empty amount is pre-filled with min(balance, cap) and an amount
      above the balance is lowered to the balance.
    - switch() swaps the pair and carries the quoted output over as the
      new amount.
"""

import math
from typing import Optional, Tuple

from pydantic import BaseModel

from core.config import settings
from core.errors import TransportError
from core.logging import get_logger
from core.providers import BalanceProvider
from core.schemas import FeedState, FeedStatus, QuoteResult, SubmitState, SwapReceipt, Token
from core.utils.format import format_fiat, format_input_value, format_token
from services.feed_controller import FeedController
from services.quote_engine import DeterministicBalanceProvider, find_token, quote_for_state
from services.swap_submitter import SwapSubmitter


class SwapFormView(BaseModel):
    """Everything a presentation layer needs to draw the form."""

    status: FeedStatus
    tokens: Tuple[str, ...]
    from_symbol: Optional[str] = None
    to_symbol: Optional[str] = None
    amount: str
    balance: float
    balance_label: str
    helper_label: str
    receive_amount: str
    receive_helper_label: str
    rate_label: str
    notional_label: str
    last_update_label: str
    refresh_in_seconds: int
    exceeds_balance: bool
    quote: QuoteResult
    swap_label: str
    can_submit: bool
    submit_state: SubmitState
    manual_refreshing: bool
    error_message: Optional[str] = None
    confirmation: Optional[str] = None


class SwapForm:
    """
    Form session bound to a feed controller.

    Example:
        >>> form = SwapForm(controller)
        >>> form.set_amount("1.5")
        >>> form.select_to("BTC")
        >>> form.view().rate_label
        '1 ETH ≈ 0.0525 BTC'
        >>> receipt = await form.submit()
    """

    def __init__(
        self,
        controller: FeedController,
        balances: Optional[BalanceProvider] = None,
        submitter: Optional[SwapSubmitter] = None,
        default_amount_cap: Optional[float] = None,
    ) -> None:
        self._controller = controller
        self._balances = balances if balances is not None else DeterministicBalanceProvider()
        self._submitter = submitter if submitter is not None else SwapSubmitter()
        self._amount_cap = settings.default_amount_cap if default_amount_cap is None else default_amount_cap
        self._logger = get_logger(__name__)

        self.from_symbol: Optional[str] = None
        self.to_symbol: Optional[str] = None
        self.amount_text = "0"
        self.manual_refreshing = False
        self.confirmation: Optional[str] = None

        self._catalog: Tuple[Token, ...] = ()
        self._unsubscribe = controller.subscribe(self._on_feed_state)
        self._on_feed_state(controller.get_state())

    def close(self) -> None:
        """Stop following the feed."""
        self._unsubscribe()

    # ============================================
    # Derived Values
    # ============================================

    @property
    def state(self) -> FeedState:
        return self._controller.get_state()

    @property
    def amount(self) -> float:
        try:
            value = float(self.amount_text)
        except ValueError:
            return 0.0
        return value if math.isfinite(value) else 0.0

    @property
    def from_token(self) -> Optional[Token]:
        return find_token(self.state.catalog, self.from_symbol)

    @property
    def to_token(self) -> Optional[Token]:
        return find_token(self.state.catalog, self.to_symbol)

    @property
    def balance(self) -> float:
        return self._balances.balance_of(self.from_symbol) if self.from_token else 0.0

    @property
    def exceeds_balance(self) -> bool:
        balance = self.balance
        return balance > 0 and self.amount > balance

    def quote(self) -> QuoteResult:
        return quote_for_state(self.state, self.from_symbol, self.to_symbol, self.amount, self._balances)

    # ============================================
    # Feed Updates
    # ============================================

    def _on_feed_state(self, state: FeedState) -> None:
        if state.catalog is self._catalog:
            return
        self._catalog = state.catalog
        if not state.catalog:
            return

        if not self.from_symbol or not self.to_symbol:
            first = state.catalog[0]
            second = state.catalog[1] if len(state.catalog) > 1 else first
            self.from_symbol = first.symbol
            self.to_symbol = second.symbol

        # Prices changed under the selected source token
        self._fit_amount_to_balance()

    def _fit_amount_to_balance(self) -> None:
        if not self.from_token:
            return
        balance = self._balances.balance_of(self.from_symbol)
        current = self.amount
        if current == 0 and balance:
            self.amount_text = format_input_value(min(balance, self._amount_cap))
        elif current > balance:
            self.amount_text = format_input_value(balance)

    def _resolve_symbol(self, symbol: str) -> str:
        """Prefer the catalog spelling of a symbol typed in another case."""
        symbol = symbol.strip()
        if find_token(self.state.catalog, symbol):
            return symbol
        folded = symbol.casefold()
        for token in self.state.catalog:
            if token.symbol.casefold() == folded:
                return token.symbol
        return symbol

    # ============================================
    # User Intents
    # ============================================

    def set_amount(self, text: str) -> bool:
        """
        Apply a typed amount.

        Returns:
            False when the input was ignored (not a finite number)
        """
        text = text.strip()
        if text == "":
            self.amount_text = ""
            return True
        try:
            value = float(text)
        except ValueError:
            return False
        if not math.isfinite(value):
            return False
        self.amount_text = format_input_value(max(value, 0.0))
        return True

    def select_from(self, symbol: str) -> None:
        self.from_symbol = self._resolve_symbol(symbol)
        self._fit_amount_to_balance()

    def select_to(self, symbol: str) -> None:
        self.to_symbol = self._resolve_symbol(symbol)

    def switch(self) -> bool:
        """Swap the pair; the quoted output becomes the new amount."""
        if not self.from_token or not self.to_token:
            return False
        output = self.quote().output_amount
        self.from_symbol, self.to_symbol = self.to_symbol, self.from_symbol
        if output:
            self.amount_text = format_input_value(output)
        self._fit_amount_to_balance()
        return True

    def use_max(self) -> None:
        if not self.from_token:
            return
        self.amount_text = format_input_value(self.balance)

    async def refresh(self) -> bool:
        """
        Manual price refresh. Failures are logged and left to the feed state.

        Returns:
            True if the refresh succeeded
        """
        self.manual_refreshing = True
        try:
            await self._controller.refresh()
            return True
        except TransportError as e:
            self._logger.warning(f"Manual refresh failed: {e.message}")
            return False
        finally:
            self.manual_refreshing = False

    async def submit(self) -> Optional[SwapReceipt]:
        """
        Submit the current quote.

        Returns:
            SwapReceipt on success, None when the form cannot be submitted

        Raises:
            SwapSubmissionError: If the swap execution failed
        """
        self.confirmation = None
        receipt = await self._submitter.submit(self.quote())
        if receipt is not None:
            self.confirmation = receipt.message
        return receipt

    # ============================================
    # Presentation
    # ============================================

    def _swap_label(self, status: FeedStatus) -> str:
        if self._submitter.is_submitting:
            return "Submitting…"
        if status == FeedStatus.LOADING:
            return "Fetching markets…"
        if status == FeedStatus.ERROR:
            return "Retry soon"
        return "Swap now"

    def view(self) -> SwapFormView:
        state = self.state
        from_token = self.from_token
        to_token = self.to_token
        quote = self.quote()
        amount = self.amount
        balance = self.balance
        exceeds = self.exceeds_balance

        if exceeds:
            helper = "Exceeds available balance"
        elif from_token and amount:
            helper = f"≈ {format_fiat(amount * from_token.price, 2)}"
        else:
            helper = "Waiting for price"

        output = quote.output_amount
        if output and to_token:
            receive_helper = f"≈ {format_fiat(output * to_token.price, 2)}"
        else:
            receive_helper = "Waiting for price"

        if from_token and to_token:
            rate_label = f"1 {from_token.symbol} ≈ {format_token(quote.rate, 6)} {to_token.symbol}"
        else:
            rate_label = "--"

        last_updated = state.last_updated
        return SwapFormView(
            status=state.status,
            tokens=tuple(token.symbol for token in state.catalog),
            from_symbol=self.from_symbol,
            to_symbol=self.to_symbol,
            amount=self.amount_text,
            balance=balance,
            balance_label=(
                f"Balance: {balance:.2f} {from_token.symbol}" if from_token else "Balance: --"
            ),
            helper_label=helper,
            receive_amount=format_input_value(output) if output else "",
            receive_helper_label=receive_helper,
            rate_label=rate_label,
            notional_label=format_fiat(quote.notional_value, 2) if from_token and amount else "--",
            last_update_label=last_updated.strftime("%H:%M:%S") if last_updated else "--",
            refresh_in_seconds=self._controller.seconds_until_refresh(),
            exceeds_balance=exceeds,
            quote=quote,
            swap_label=self._swap_label(state.status),
            can_submit=self._submitter.can_submit(quote),
            submit_state=self._submitter.state,
            manual_refreshing=self.manual_refreshing,
            error_message=state.error,
            confirmation=self.confirmation,
        )
