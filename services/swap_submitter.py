"""
Swap Submission

State machine guarding swap execution:

    idle ──submit(valid quote)──> submitting ──ok──> idle
                                      │
                                      └──executor raised──> failed

"failed" is terminal for that attempt; the next valid submit() leaves it.
A submit() with an invalid quote, or while another submission is running,
does nothing and returns None.

SimulatedSwapExecutor stands in for a real chain/router: it waits a fixed
delay and always succeeds.
"""

import asyncio
from typing import Optional

from core.config import settings
from core.errors import SwapSubmissionError
from core.logging import get_logger
from core.providers import SwapExecutor
from core.schemas import QuoteResult, SubmitState, SwapReceipt
from core.utils.format import format_token
from core.utils.time import current_utc_datetime


def confirmation_message(quote: QuoteResult) -> str:
    """
    Example:
        >>> confirmation_message(quote)   # 1 ETH -> 0.0525 BTC
        'Swapped 1 ETH → 0.0525 BTC'
    """
    return (
        f"Swapped {format_token(quote.input_amount, 4)} {quote.from_symbol} → "
        f"{format_token(quote.output_amount, 4)} {quote.to_symbol}"
    )


class SimulatedSwapExecutor(SwapExecutor):
    """Pretends to execute a swap: sleeps delay_ms, then confirms."""

    def __init__(self, delay_ms: Optional[int] = None) -> None:
        self.delay_ms = settings.swap_submit_delay_ms if delay_ms is None else delay_ms

    async def execute(self, quote: QuoteResult) -> SwapReceipt:
        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000.0)
        return SwapReceipt(
            from_symbol=quote.from_symbol,
            to_symbol=quote.to_symbol,
            input_amount=quote.input_amount,
            output_amount=quote.output_amount,
            rate=quote.rate,
            message=confirmation_message(quote),
            executed_at=current_utc_datetime(),
        )


class SwapSubmitter:
    """
    Runs swap submissions one at a time through a SwapExecutor.

    Attributes:
        state: Current SubmitState
        last_receipt: Receipt of the last successful swap
        last_error: Message of the last failed swap

    Example:
        >>> submitter = SwapSubmitter(SimulatedSwapExecutor(delay_ms=0))
        >>> receipt = await submitter.submit(quote)
        >>> receipt.message
        'Swapped 1 ETH → 0.0525 BTC'
    """

    def __init__(self, executor: Optional[SwapExecutor] = None) -> None:
        self._executor = executor if executor is not None else SimulatedSwapExecutor()
        self._logger = get_logger(__name__)
        self.state = SubmitState.IDLE
        self.last_receipt: Optional[SwapReceipt] = None
        self.last_error: Optional[str] = None

    @property
    def is_submitting(self) -> bool:
        return self.state == SubmitState.SUBMITTING

    def can_submit(self, quote: QuoteResult) -> bool:
        return quote.is_valid and not self.is_submitting

    async def submit(self, quote: QuoteResult) -> Optional[SwapReceipt]:
        """
        Execute a swap for a valid quote.

        Returns:
            SwapReceipt on success, None when the quote is invalid or a
            submission is already running

        Raises:
            SwapSubmissionError: If the executor failed (state becomes "failed")
        """
        if not quote.is_valid:
            reason = quote.invalid_reason.value if quote.invalid_reason else "invalid"
            self._logger.warning(f"Swap rejected: quote is not valid ({reason})")
            return None
        if self.is_submitting:
            self._logger.warning("Swap rejected: another submission is in progress")
            return None

        self.state = SubmitState.SUBMITTING
        self.last_error = None
        self._logger.info(
            f"Submitting swap: {quote.input_amount:g} {quote.from_symbol} -> {quote.to_symbol}"
        )

        try:
            receipt = await self._executor.execute(quote)
        except asyncio.CancelledError:
            self.state = SubmitState.IDLE
            raise
        except Exception as e:
            self.state = SubmitState.FAILED
            self.last_error = str(e) or e.__class__.__name__
            self._logger.error(f"Swap execution failed: {self.last_error}")
            raise SwapSubmissionError(self.last_error) from e

        self.state = SubmitState.IDLE
        self.last_receipt = receipt
        self._logger.info(receipt.message)
        return receipt
