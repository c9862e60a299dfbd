#!/usr/bin/env python3
"""
WebSocket client for /ws/feed: prints every feed state the server publishes.

Usage examples:
  python scripts/watch_feed.py
  python scripts/watch_feed.py --host 127.0.0.1 --port 8000 --duration 600 --show-tokens
"""

import asyncio
import argparse
import json
import sys
from typing import Optional

import websockets


def describe(state: dict, show_tokens: bool) -> str:
    tokens = state.get("catalog") or []
    line = f"status={state.get('status')} tokens={len(tokens)} last_updated={state.get('last_updated')}"
    if state.get("error"):
        line += f" error={state['error']!r}"
    if show_tokens and tokens:
        line += "\n  " + ", ".join(f"{t['symbol']}={t['price']:.6g}" for t in tokens)
    return line


async def stream_loop(url: str, show_tokens: bool, duration: Optional[int] = None) -> None:
    """
    Connect to the feed stream and print incoming states.
    Reconnects on error with exponential backoff.
    """
    attempt = 0
    end_time = (asyncio.get_running_loop().time() + duration) if duration else None

    while True:
        if end_time is not None and asyncio.get_running_loop().time() >= end_time:
            print("[FEED] Duration reached; stopping.")
            return

        try:
            async with websockets.connect(url) as ws:
                attempt = 0
                print(f"[FEED] Connected: {url}")
                while True:
                    msg = await asyncio.wait_for(ws.recv(), timeout=300)
                    try:
                        print(f"[FEED] {describe(json.loads(msg), show_tokens)}")
                    except (ValueError, TypeError, KeyError):
                        print(f"[FEED] {msg}")
        except asyncio.TimeoutError:
            print("[FEED] No messages for 300s; reconnecting...")
        except (OSError, websockets.exceptions.WebSocketException) as e:
            attempt += 1
            backoff = min(2 ** (attempt - 1), 30)
            print(f"[FEED] Disconnected/error ({e}); reconnecting in {backoff}s...")
            await asyncio.sleep(backoff)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Print live feed states from the Swap Feed API")
    parser.add_argument("--host", default="localhost", help="Server host (default: localhost)")
    parser.add_argument("--port", type=int, default=8000, help="Server port (default: 8000)")
    parser.add_argument("--duration", type=int, default=0, help="Seconds to run (0 = run indefinitely)")
    parser.add_argument("--show-tokens", action="store_true", help="Print every token price")
    args = parser.parse_args()

    url = f"ws://{args.host}:{args.port}/ws/feed"
    duration = args.duration if args.duration and args.duration > 0 else None
    await stream_loop(url, args.show_tokens, duration)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n[Info] Interrupted. Bye.")
        sys.exit(0)
