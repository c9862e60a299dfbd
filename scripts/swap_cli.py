#!/usr/bin/env python3
"""
Terminal swap form.

Fetches live prices, then either prints a single quote (--once) or runs an
interactive prompt that drives the headless swap form.

Commands (interactive mode):
  amount <value>   set the amount to pay
  from <SYMBOL>    choose the token to pay
  to <SYMBOL>      choose the token to receive
  switch           swap the pair (the quoted output becomes the amount)
  max              pay the whole balance
  refresh          refresh prices now
  tokens           list the catalog
  swap             submit the swap (simulated)
  quit             exit

Usage examples:
  python scripts/swap_cli.py --once --from ETH --to USDC --amount 1.5
  python scripts/swap_cli.py --interval-ms 30000
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.errors import SwapSubmissionError  # noqa: E402
from core.utils.format import format_fiat  # noqa: E402
from services.feed_controller import FeedController  # noqa: E402
from services.swap_form import SwapForm  # noqa: E402


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Quote and simulate token swaps against live prices.")
    p.add_argument("--from", dest="from_symbol", help="Token to pay (default: first token)")
    p.add_argument("--to", dest="to_symbol", help="Token to receive (default: second token)")
    p.add_argument("--amount", help="Amount to pay (default: pre-filled from balance)")
    p.add_argument("--once", action="store_true", help="Print one quote and exit")
    p.add_argument("--interval-ms", type=int, default=None, help="Refresh interval in milliseconds")
    p.add_argument("--no-auto-refresh", action="store_true", help="Only refresh on demand")
    return p.parse_args()


def render(form: SwapForm) -> None:
    view = form.view()
    print(f"\n[{view.status.value}] {len(view.tokens)} tokens | last update {view.last_update_label} "
          f"| refresh in {view.refresh_in_seconds}s")
    if view.error_message:
        print(f"  ! {view.error_message}")
    print(f"  You pay:     {view.amount or '0'} {view.from_symbol or '--'}   ({view.helper_label})")
    print(f"               {view.balance_label}")
    print(f"  You receive: {view.receive_amount or '0'} {view.to_symbol or '--'}   ({view.receive_helper_label})")
    print(f"  Rate:        {view.rate_label}")
    print(f"  Notional:    {view.notional_label}")
    if view.quote.invalid_reason:
        print(f"  Cannot swap: {view.quote.invalid_reason.value}")
    print(f"  [{view.swap_label}]" + ("" if view.can_submit else " (disabled)"))
    if view.confirmation:
        print(f"  ✓ {view.confirmation}")


def print_tokens(form: SwapForm) -> None:
    for token in form.state.catalog:
        print(f"  {token.symbol:<12} {format_fiat(token.price, 6):>18}  {token.observed_at:%Y-%m-%d %H:%M:%S}")


async def handle(form: SwapForm, command: str, argument: str) -> bool:
    """Apply one command. Returns False when the prompt should exit."""
    if command in ("quit", "exit", "q"):
        return False
    if command == "amount":
        if not form.set_amount(argument):
            print(f"  Ignored amount: {argument!r}")
    elif command == "from" and argument:
        form.select_from(argument)
    elif command == "to" and argument:
        form.select_to(argument)
    elif command == "switch":
        if not form.switch():
            print("  Select both tokens first")
    elif command == "max":
        form.use_max()
    elif command == "refresh":
        ok = await form.refresh()
        print("  Prices refreshed" if ok else "  Refresh failed")
    elif command == "tokens":
        print_tokens(form)
        return True
    elif command == "swap":
        print("  Submitting…")
        try:
            receipt = await form.submit()
        except SwapSubmissionError as e:
            print(f"  Swap failed: {e}")
        else:
            if receipt is None:
                print("  Swap not allowed")
    elif command:
        print(f"  Unknown command: {command}")
    render(form)
    return True


async def main() -> None:
    args = parse_args()
    controller = FeedController()
    await controller.start(
        interval_ms=args.interval_ms,
        auto_refresh=False if (args.once or args.no_auto_refresh) else None,
    )
    form = SwapForm(controller)
    try:
        if args.from_symbol:
            form.select_from(args.from_symbol)
        if args.to_symbol:
            form.select_to(args.to_symbol)
        if args.amount is not None and not form.set_amount(args.amount):
            print(f"Ignored amount: {args.amount!r}")

        render(form)
        if args.once:
            return

        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, input, "\n> ")
            command, _, argument = line.strip().partition(" ")
            if not await handle(form, command.lower(), argument.strip()):
                break
    finally:
        form.close()
        await controller.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, EOFError):
        print("\n[Info] Interrupted. Bye.")
        sys.exit(0)
