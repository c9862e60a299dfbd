"""
Unit Tests for the Headless Swap Form

These tests verify that the SwapForm:
- Defaults the pair once the catalog arrives
- Pre-fills and clamps the amount from the balance
- Sanitizes typed amounts
- Switches the pair carrying the quoted output over
- Produces the labels a presentation layer renders
- Submits through the SwapSubmitter

Run with:
    pytest tests/unit/test_swap_form.py -v
"""

import asyncio
from datetime import datetime, timezone

import pytest

from core.errors import TransportError
from core.providers import BalanceProvider
from core.schemas import FeedStatus, InvalidReason, PriceRecord, SubmitState
from services.event_bus import EventBus
from services.feed_controller import FeedController
from services.swap_form import SwapForm
from services.swap_submitter import SimulatedSwapExecutor, SwapSubmitter


T0 = datetime(2024, 1, 2, 9, 30, 5, tzinfo=timezone.utc)

FEED = [
    PriceRecord(currency="ETH", date="2024-01-02", price=2100),
    PriceRecord(currency="BTC", date="2024-01-02", price=40000),
    PriceRecord(currency="USDC", date="2024-01-02", price=1),
]


class ScriptedClient:
    def __init__(self, responses):
        self.responses = list(responses)

    async def open(self):
        pass

    async def close(self):
        pass

    async def get_prices(self):
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return list(response)


class FixedBalances(BalanceProvider):
    def __init__(self, balances):
        self.balances = balances

    def balance_of(self, symbol):
        return self.balances.get(symbol, 0.0) if symbol else 0.0


BALANCES = {"BTC": 205.0, "ETH": 223.0, "USDC": 13.0}


def make_controller(responses=(FEED,)):
    return FeedController(
        client=ScriptedClient(responses),
        bus=EventBus(),
        interval_ms=60000,
        auto_refresh=False,
        clock=lambda: T0,
        icon_base_url="https://icons.test",
    )


def make_form(controller, balances=None, cap=100.0):
    return SwapForm(
        controller,
        balances=FixedBalances(balances or BALANCES),
        submitter=SwapSubmitter(SimulatedSwapExecutor(delay_ms=0)),
        default_amount_cap=cap,
    )


@pytest.fixture
def loaded_form():
    """Form bound to a controller that already fetched FEED"""
    controller = make_controller()
    form = make_form(controller)
    asyncio.run(controller.refresh())
    return form


# ============================================
# Tests for Defaults
# ============================================

class TestDefaults:
    """Tests for the initial selection"""

    def test_pair_defaults_to_first_two_tokens(self, loaded_form):
        assert loaded_form.from_symbol == "BTC"
        assert loaded_form.to_symbol == "ETH"

    def test_amount_prefilled_with_capped_balance(self, loaded_form):
        """BTC balance 205, cap 100 -> 100"""
        assert loaded_form.amount_text == "100"

    def test_amount_prefilled_with_balance_below_cap(self):
        controller = make_controller()
        form = make_form(controller, balances={"BTC": 42.5, "ETH": 1.0})
        asyncio.run(controller.refresh())

        assert form.amount_text == "42.5"

    def test_single_token_catalog_selects_it_twice(self):
        controller = make_controller([[FEED[0]]])
        form = make_form(controller)
        asyncio.run(controller.refresh())

        assert form.from_symbol == form.to_symbol == "ETH"
        assert form.quote().invalid_reason == InvalidReason.SAME_TOKEN

    def test_no_selection_before_catalog(self):
        form = make_form(make_controller())
        view = form.view()

        assert form.from_symbol is None
        assert view.tokens == ()
        assert view.rate_label == "--"
        assert view.balance_label == "Balance: --"
        assert view.last_update_label == "--"
        assert view.can_submit is False

    def test_existing_selection_survives_refresh(self, loaded_form):
        loaded_form.select_from("USDC")
        loaded_form.select_to("BTC")

        asyncio.run(loaded_form._controller.refresh())

        assert (loaded_form.from_symbol, loaded_form.to_symbol) == ("USDC", "BTC")


# ============================================
# Tests for Amount Input
# ============================================

class TestAmountInput:
    """Tests for set_amount, use_max and balance clamping"""

    def test_valid_amount(self, loaded_form):
        assert loaded_form.set_amount(" 1.5 ") is True
        assert loaded_form.amount_text == "1.5"

    def test_amount_is_limited_to_six_fraction_digits(self, loaded_form):
        loaded_form.set_amount("1.23456789")
        assert loaded_form.amount_text == "1.234568"

    def test_negative_amount_becomes_zero(self, loaded_form):
        loaded_form.set_amount("-5")
        assert loaded_form.amount_text == "0"

    def test_empty_amount_clears(self, loaded_form):
        loaded_form.set_amount("")
        assert loaded_form.amount_text == ""
        assert loaded_form.amount == 0.0

    @pytest.mark.parametrize("text", ["abc", "1.2.3", "nan", "inf"])
    def test_garbage_is_ignored(self, loaded_form, text):
        loaded_form.set_amount("2")

        assert loaded_form.set_amount(text) is False
        assert loaded_form.amount_text == "2"

    def test_use_max(self, loaded_form):
        loaded_form.use_max()
        assert loaded_form.amount_text == "205"

    def test_new_source_clamps_amount_to_balance(self, loaded_form):
        """USDC balance 13 < typed 50"""
        loaded_form.set_amount("50")
        loaded_form.select_from("USDC")

        assert loaded_form.amount_text == "13"

    def test_select_is_case_insensitive(self, loaded_form):
        loaded_form.select_from("usdc")
        loaded_form.select_to("eth")

        assert loaded_form.from_symbol == "USDC"
        assert loaded_form.to_symbol == "ETH"


# ============================================
# Tests for Switch
# ============================================

class TestSwitch:
    """Tests for switch()"""

    def test_switch_carries_output_over(self, loaded_form):
        loaded_form.select_from("ETH")
        loaded_form.select_to("BTC")
        loaded_form.set_amount("2")

        assert loaded_form.switch() is True

        assert (loaded_form.from_symbol, loaded_form.to_symbol) == ("BTC", "ETH")
        assert loaded_form.amount_text == "0.105"

    def test_switch_clamps_to_new_balance(self, loaded_form):
        """1 ETH -> 2100 USDC, above the USDC balance of 13"""
        loaded_form.select_from("ETH")
        loaded_form.select_to("USDC")
        loaded_form.set_amount("1")

        loaded_form.switch()

        assert loaded_form.from_symbol == "USDC"
        assert loaded_form.amount_text == "13"

    def test_switch_requires_both_tokens(self):
        form = make_form(make_controller())
        assert form.switch() is False


# ============================================
# Tests for the View
# ============================================

class TestView:
    """Tests for view()"""

    def test_labels_for_valid_quote(self, loaded_form):
        loaded_form.select_from("ETH")
        loaded_form.select_to("BTC")
        loaded_form.set_amount("1")

        view = loaded_form.view()

        assert view.status == FeedStatus.READY
        assert view.tokens == ("BTC", "ETH", "USDC")
        assert view.rate_label == "1 ETH ≈ 0.0525 BTC"
        assert view.balance_label == "Balance: 223.00 ETH"
        assert view.helper_label == "≈ $2,100"
        assert view.receive_amount == "0.0525"
        assert view.receive_helper_label == "≈ $2,100"
        assert view.notional_label == "$2,100"
        assert view.last_update_label == "09:30:05"
        assert view.swap_label == "Swap now"
        assert view.can_submit is True
        assert view.exceeds_balance is False

    def test_exceeding_balance(self, loaded_form):
        loaded_form.set_amount("1000")

        view = loaded_form.view()

        assert view.exceeds_balance is True
        assert view.helper_label == "Exceeds available balance"
        assert view.quote.invalid_reason == InvalidReason.EXCEEDS_BALANCE
        assert view.can_submit is False

    def test_zero_amount_waits_for_price(self, loaded_form):
        loaded_form.set_amount("0")

        view = loaded_form.view()

        assert view.helper_label == "Waiting for price"
        assert view.receive_amount == ""
        assert view.notional_label == "--"

    def test_error_state_keeps_catalog_and_disables_submit(self):
        controller = make_controller([FEED, TransportError()])
        form = make_form(controller)
        asyncio.run(controller.refresh())

        assert asyncio.run(form.refresh()) is False

        view = form.view()
        assert view.status == FeedStatus.ERROR
        assert view.tokens == ("BTC", "ETH", "USDC")
        assert view.error_message == "Unable to retrieve live prices."
        assert view.swap_label == "Retry soon"
        assert view.can_submit is False
        assert view.manual_refreshing is False


# ============================================
# Tests for Submission
# ============================================

class TestSubmit:
    """Tests for submit()"""

    @pytest.mark.asyncio
    async def test_submit_sets_confirmation(self):
        controller = make_controller()
        form = make_form(controller)
        await controller.refresh()
        form.select_from("ETH")
        form.select_to("BTC")
        form.set_amount("1")

        receipt = await form.submit()

        assert receipt.message == "Swapped 1 ETH → 0.0525 BTC"
        view = form.view()
        assert view.confirmation == "Swapped 1 ETH → 0.0525 BTC"
        assert view.submit_state == SubmitState.IDLE

    @pytest.mark.asyncio
    async def test_invalid_form_is_not_submitted(self):
        controller = make_controller()
        form = make_form(controller)
        await controller.refresh()
        form.set_amount("0")

        assert await form.submit() is None
        assert form.view().confirmation is None

    @pytest.mark.asyncio
    async def test_manual_refresh_succeeds(self):
        controller = make_controller()
        form = make_form(controller)

        assert await form.refresh() is True
        assert form.view().status == FeedStatus.READY

    @pytest.mark.asyncio
    async def test_close_stops_following_feed(self):
        controller = make_controller()
        form = make_form(controller)
        form.close()

        await controller.refresh()

        assert form.from_symbol is None
