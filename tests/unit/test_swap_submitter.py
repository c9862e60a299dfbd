"""
Unit Tests for Swap Submission

These tests verify that the SwapSubmitter:
- Executes valid quotes and returns a receipt
- Refuses invalid quotes and concurrent submissions
- Moves to "failed" when the executor raises
- Returns to "idle" when a submission is cancelled

Run with:
    pytest tests/unit/test_swap_submitter.py -v
"""

import asyncio
from datetime import datetime, timezone

import pytest

from core.errors import SwapSubmissionError
from core.providers import SwapExecutor
from core.schemas import InvalidReason, QuoteResult, SubmitState, Token
from services.quote_engine import compute_quote
from services.swap_submitter import SimulatedSwapExecutor, SwapSubmitter, confirmation_message


VALID = QuoteResult(
    from_symbol="ETH", to_symbol="BTC", input_amount=1.0,
    rate=0.0525, output_amount=0.0525, notional_value=2100.0, is_valid=True,
)
INVALID = QuoteResult(
    from_symbol="ETH", to_symbol="BTC", input_amount=100.0,
    rate=0.0525, output_amount=5.25, notional_value=210000.0,
    is_valid=False, invalid_reason=InvalidReason.EXCEEDS_BALANCE,
)


class FailingExecutor(SwapExecutor):
    async def execute(self, quote):
        raise RuntimeError("router unavailable")


class GatedExecutor(SwapExecutor):
    """Blocks until released, then delegates to the simulated executor"""

    def __init__(self):
        self.gate = asyncio.Event()
        self.started = asyncio.Event()
        self.calls = 0

    async def execute(self, quote):
        self.calls += 1
        self.started.set()
        await self.gate.wait()
        return await SimulatedSwapExecutor(delay_ms=0).execute(quote)


class TestConfirmationMessage:
    """Tests for confirmation_message"""

    def test_message_uses_four_fraction_digits(self):
        assert confirmation_message(VALID) == "Swapped 1 ETH → 0.0525 BTC"

    def test_message_rounds_and_groups(self):
        quote = VALID.model_copy(update={"input_amount": 1234.56789, "output_amount": 64.8148142})
        assert confirmation_message(quote) == "Swapped 1,234.5679 ETH → 64.8148 BTC"


class TestSimulatedSwapExecutor:
    """Tests for SimulatedSwapExecutor"""

    @pytest.mark.asyncio
    async def test_receipt_mirrors_quote(self):
        receipt = await SimulatedSwapExecutor(delay_ms=0).execute(VALID)

        assert receipt.from_symbol == "ETH"
        assert receipt.to_symbol == "BTC"
        assert receipt.output_amount == 0.0525
        assert receipt.message == "Swapped 1 ETH → 0.0525 BTC"
        assert receipt.executed_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_waits_for_delay(self, monkeypatch):
        delays = []

        async def fake_sleep(delay):
            delays.append(delay)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)

        await SimulatedSwapExecutor(delay_ms=1300).execute(VALID)

        assert delays == [1.3]


class TestSwapSubmitter:
    """Tests for the submission state machine"""

    @pytest.mark.asyncio
    async def test_valid_quote_is_executed(self):
        submitter = SwapSubmitter(SimulatedSwapExecutor(delay_ms=0))

        receipt = await submitter.submit(VALID)

        assert receipt.message == "Swapped 1 ETH → 0.0525 BTC"
        assert submitter.state == SubmitState.IDLE
        assert submitter.last_receipt is receipt

    @pytest.mark.asyncio
    async def test_invalid_quote_is_refused(self):
        executor = GatedExecutor()
        submitter = SwapSubmitter(executor)

        assert submitter.can_submit(INVALID) is False
        assert await submitter.submit(INVALID) is None
        assert executor.calls == 0
        assert submitter.state == SubmitState.IDLE

    @pytest.mark.asyncio
    async def test_second_submit_while_running_is_refused(self):
        executor = GatedExecutor()
        submitter = SwapSubmitter(executor)

        first = asyncio.create_task(submitter.submit(VALID))
        await executor.started.wait()

        assert submitter.is_submitting is True
        assert submitter.can_submit(VALID) is False
        assert await submitter.submit(VALID) is None

        executor.gate.set()
        receipt = await first

        assert receipt is not None
        assert executor.calls == 1
        assert submitter.state == SubmitState.IDLE

    @pytest.mark.asyncio
    async def test_executor_failure_sets_failed(self):
        submitter = SwapSubmitter(FailingExecutor())

        with pytest.raises(SwapSubmissionError, match="router unavailable"):
            await submitter.submit(VALID)

        assert submitter.state == SubmitState.FAILED
        assert submitter.last_error == "router unavailable"
        assert submitter.can_submit(VALID) is True

    @pytest.mark.asyncio
    async def test_failed_state_is_left_by_next_submit(self):
        submitter = SwapSubmitter(FailingExecutor())
        with pytest.raises(SwapSubmissionError):
            await submitter.submit(VALID)

        submitter._executor = SimulatedSwapExecutor(delay_ms=0)
        receipt = await submitter.submit(VALID)

        assert receipt is not None
        assert submitter.state == SubmitState.IDLE
        assert submitter.last_error is None

    @pytest.mark.asyncio
    async def test_cancelled_submission_returns_to_idle(self):
        executor = GatedExecutor()
        submitter = SwapSubmitter(executor)

        task = asyncio.create_task(submitter.submit(VALID))
        await executor.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert submitter.state == SubmitState.IDLE
        assert submitter.last_receipt is None

    @pytest.mark.asyncio
    async def test_huge_output_is_confirmed(self):
        """A valid quote into a near-worthless token still executes"""
        observed = datetime(2024, 1, 2, tzinfo=timezone.utc)
        catalog = (
            Token(symbol="BTC", price=40000, observed_at=observed, icon_url="https://icons.test/BTC.svg"),
            Token(symbol="DUST", price=1e-20, observed_at=observed, icon_url="https://icons.test/DUST.svg"),
        )
        quote = compute_quote(catalog, "BTC", "DUST", 1, available_balance=50)
        assert quote.is_valid is True
        assert quote.output_amount > 1e24

        submitter = SwapSubmitter(SimulatedSwapExecutor(delay_ms=0))
        receipt = await submitter.submit(quote)

        assert submitter.state == SubmitState.IDLE
        assert receipt.message.startswith("Swapped 1 BTC → ")
        assert receipt.message.endswith(" DUST")
