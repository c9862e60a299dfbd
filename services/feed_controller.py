"""
Price Feed Controller

Owns the FeedState and drives its lifecycle:
- initial fetch on start()
- fixed-interval polling while auto refresh is enabled
- manual refresh() on demand
- stop() cancels polling and disarms in-flight fetches

Everything runs on the asyncio event loop. State only changes between the
two suspension points (the polling sleep and the HTTP await), so no locks
are needed. Each fetch captures the controller generation when it starts;
stop() bumps the generation, and a fetch whose generation is outdated when
its response arrives publishes nothing.

Failed fetches keep the previous catalog visible ("stale") and are retried
at the next tick or on the next manual refresh.
"""

import asyncio
import contextlib
import math
from datetime import datetime
from typing import Any, Callable, List, Optional

from core.config import settings
from core.errors import TransportError, PRICES_UNREACHABLE_MESSAGE
from core.logging import get_logger, log_feed_transition
from core.schemas import FeedSnapshot, FeedState, FeedStatus
from core.utils.time import current_utc_datetime
from feeds.normalizer import normalize
from feeds.price_client import PriceAPIClient
from services.event_bus import EventBus, FEED_STATE_TOPIC, bus as default_bus


FeedListener = Callable[[FeedState], Any]


class FeedController:
    """
    Live price feed with polling, manual refresh and cancellation.

    Attributes:
        interval_ms: Polling interval in milliseconds
        auto_refresh: Whether start() schedules polling

    Example:
        >>> controller = FeedController()
        >>> await controller.start()
        >>> state = controller.get_state()
        >>> print(state.status, len(state.catalog))
        >>> await controller.refresh()   # manual refresh, raises TransportError on failure
        >>> await controller.stop()
    """

    def __init__(
        self,
        client: Optional[PriceAPIClient] = None,
        bus: Optional[EventBus] = None,
        interval_ms: Optional[int] = None,
        auto_refresh: Optional[bool] = None,
        clock: Callable[[], datetime] = current_utc_datetime,
        icon_base_url: Optional[str] = None,
    ) -> None:
        self._client = client if client is not None else PriceAPIClient()
        self._bus = bus if bus is not None else default_bus
        self.interval_ms = interval_ms if interval_ms is not None else settings.refresh_interval_ms
        self.auto_refresh = auto_refresh if auto_refresh is not None else settings.auto_refresh
        self._clock = clock
        self._icon_base_url = icon_base_url
        self._logger = get_logger(__name__)

        self._state = FeedState()
        self._listeners: List[FeedListener] = []
        self._generation = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None

    # ============================================
    # Read-only Accessors
    # ============================================

    def get_state(self) -> FeedState:
        """Current immutable snapshot."""
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_stale(self) -> bool:
        """True when the last fetch failed but an older catalog is still shown."""
        return self._state.status == FeedStatus.ERROR and self._state.last_updated is not None

    def seconds_until_refresh(self, now: Optional[datetime] = None) -> int:
        """
        Countdown to the next scheduled refresh, in whole seconds.

        Derived from last_updated on every call, never stored. Returns the
        full interval before the first successful fetch and never goes below 1.
        """
        interval_s = self.interval_ms / 1000.0
        last_updated = self._state.last_updated
        if last_updated is None:
            return math.ceil(interval_s)
        now = now or self._clock()
        remaining = (last_updated - now).total_seconds() + interval_s
        return max(1, math.ceil(remaining))

    def snapshot(self, now: Optional[datetime] = None) -> FeedSnapshot:
        """FeedState plus the derived countdown, for the HTTP layer."""
        state = self._state
        return FeedSnapshot(
            status=state.status,
            tokens=state.catalog,
            last_updated=state.last_updated,
            error_message=state.error,
            is_stale=self.is_stale,
            refresh_in_seconds=self.seconds_until_refresh(now),
        )

    # ============================================
    # Observation
    # ============================================

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        """
        Register a listener called synchronously with every published state.

        Listeners see each published FeedState exactly once, in publish order.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _publish(self, state: FeedState) -> None:
        previous = self._state
        self._state = state
        log_feed_transition(
            previous.status.value,
            state.status.value,
            state.error or f"{len(state.catalog)} tokens"
        )

        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self._logger.error(f"Feed listener {listener!r} failed: {e}")

        await self._bus.publish(FEED_STATE_TOPIC, state.model_dump(mode="json"))

    # ============================================
    # Lifecycle
    # ============================================

    async def start(self, interval_ms: Optional[int] = None, auto_refresh: Optional[bool] = None) -> None:
        """
        Start the feed: fetch once immediately, then poll if auto refresh is on.

        The initial fetch is awaited; a failure is recorded in the state
        (status "error") instead of being raised.
        """
        if self._running:
            return
        if interval_ms is not None:
            self.interval_ms = interval_ms
        if auto_refresh is not None:
            self.auto_refresh = auto_refresh
        if self.interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {self.interval_ms}")

        self._running = True
        self._logger.info(
            f"Starting price feed (interval={self.interval_ms}ms, auto_refresh={self.auto_refresh})"
        )

        with contextlib.suppress(TransportError):
            await self.refresh()

        if self.auto_refresh and self._running:
            self._task = asyncio.create_task(self._poll(), name="price_feed_poll")

    async def stop(self) -> None:
        """
        Stop polling and ignore every fetch still in flight.

        Also valid without a prior start(): manual refreshes in flight are
        disarmed all the same.
        """
        self._logger.info("Stopping price feed...")
        self._running = False
        self._generation += 1

        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        await self._client.close()

    # ============================================
    # Fetch Cycle
    # ============================================

    async def refresh(self) -> FeedState:
        """
        Run one fetch cycle out-of-band of the polling timer.

        Returns:
            FeedState: The state after the cycle

        Raises:
            TransportError: If the price list could not be fetched; the
                failure is already reflected in the state
        """
        generation = self._generation

        starting = self._state.model_copy(update={
            "status": FeedStatus.READY if self._state.status == FeedStatus.READY else FeedStatus.LOADING,
            "error": None,
        })
        if starting != self._state:
            await self._publish(starting)

        try:
            await self._client.open()
            records = await self._client.get_prices()
            catalog = normalize(records, self._icon_base_url)
        except TransportError as e:
            if not await self._record_failure(generation, e):
                return self._state
            raise
        except Exception as e:
            self._logger.error(f"Unexpected price fetch failure: {e!r}")
            error = TransportError(PRICES_UNREACHABLE_MESSAGE)
            if not await self._record_failure(generation, error):
                return self._state
            raise error from e

        if generation != self._generation:
            self._logger.debug("Ignoring price list that arrived after stop()")
            return self._state

        await self._publish(FeedState(
            status=FeedStatus.READY,
            catalog=catalog,
            last_updated=self._clock(),
            error=None,
        ))
        return self._state

    async def _record_failure(self, generation: int, error: TransportError) -> bool:
        """Publish the error state; False when the fetch was disarmed by stop()."""
        if generation != self._generation:
            self._logger.debug("Ignoring failed fetch that completed after stop()")
            return False
        await self._publish(self._state.model_copy(update={
            "status": FeedStatus.ERROR,
            "error": error.message,
        }))
        return True

    async def _poll(self) -> None:
        """Repeat refresh() every interval, scheduled against fixed deadlines."""
        loop = asyncio.get_running_loop()
        interval_s = self.interval_ms / 1000.0
        next_run = loop.time() + interval_s

        while self._running:
            await asyncio.sleep(max(0.0, next_run - loop.time()))
            if not self._running:
                break
            try:
                await self.refresh()
            except TransportError as e:
                self._logger.warning(f"Scheduled price refresh failed: {e.message}")
            except Exception as e:
                self._logger.error(f"Price feed poll cycle error: {e!r}")

            next_run += interval_s
            now = loop.time()
            if next_run < now:
                # Fetch overran one or more ticks: skip them rather than burst
                missed = math.ceil((now - next_run) / interval_s)
                next_run += missed * interval_s


# Singleton controller instance (created on demand)
_feed_controller: Optional[FeedController] = None


def get_feed_controller() -> FeedController:
    global _feed_controller
    if _feed_controller is None:
        _feed_controller = FeedController()
    return _feed_controller
