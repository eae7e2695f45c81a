"""Payment window countdown"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ticket_gateway.config import settings
from ticket_gateway.domain.models import TimeLeft
from ticket_gateway.utils.date_utils import ensure_utc, utcnow

TickCallback = Callable[[TimeLeft], None]
ExpireCallback = Callable[[], None]


def time_left(created_at: datetime, now: datetime | None = None, window_seconds: int | None = None) -> TimeLeft:
    """
    Remaining time of the payment window opened at created_at.

    Derived from created_at alone so it can be recomputed at any time
    without stored countdown state. Client clock skew is not compensated.

    Example:
        created 119 minutes ago, 2h window → TimeLeft(0, 1, 0, False)
    """
    window = timedelta(seconds=window_seconds if window_seconds is not None else settings.payment_window_seconds)
    now = ensure_utc(now or utcnow())
    remaining = ensure_utc(created_at) + window - now

    if remaining <= timedelta(0):
        return TimeLeft(hours=0, minutes=0, seconds=0, is_expired=True)

    total_seconds = int(remaining.total_seconds())
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return TimeLeft(hours=hours, minutes=minutes, seconds=seconds, is_expired=False)


def format_time_left(left: TimeLeft) -> str:
    """Render as HH:MM:SS"""
    return f"{left.hours:02d}:{left.minutes:02d}:{left.seconds:02d}"


class PaymentWindowTimer:
    """
    Cancellable once-per-second countdown running on the asyncio event loop.

    on_tick receives the remaining time while the window is open; on_expire
    fires exactly once when it closes, after which the timer stops. No
    callback runs after cancel().
    """

    def __init__(
        self,
        created_at: datetime,
        on_tick: Optional[TickCallback] = None,
        on_expire: Optional[ExpireCallback] = None,
        window_seconds: int | None = None,
        tick_seconds: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.created_at = created_at
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.window_seconds = window_seconds if window_seconds is not None else settings.payment_window_seconds
        self.tick_seconds = tick_seconds if tick_seconds is not None else settings.timer_tick_seconds
        self.clock = clock

        self._task: Optional[asyncio.Task] = None
        self._cancelled = False
        self._expired = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self._expired

    def remaining(self) -> TimeLeft:
        return time_left(self.created_at, self.clock(), self.window_seconds)

    def start(self) -> asyncio.Task:
        """Schedule the countdown on the running loop; calling twice reuses the task"""
        if self._cancelled:
            raise RuntimeError("Timer was cancelled and cannot be restarted")
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        while not self._cancelled:
            left = self.remaining()
            if left.is_expired:
                self._fire_expire()
                return

            if self.on_tick is not None:
                try:
                    self.on_tick(left)
                except Exception:
                    logging.exception("Payment window tick callback failed")

            await asyncio.sleep(self.tick_seconds)

    def _fire_expire(self) -> None:
        if self._expired or self._cancelled:
            return
        self._expired = True
        logging.info("Payment window expired", extra={"created_at": self.created_at.isoformat()})
        if self.on_expire is not None:
            self.on_expire()
