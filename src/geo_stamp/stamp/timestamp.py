"""
Timestamp Formatter
===================

Renders the stamp timestamp as `DD/MM/YYYY hh:mm:ss AM|PM GMT ±hh:mm`.

Offset Convention:
    Offsets are given in platform minutes, where a POSITIVE value means
    the local zone is BEHIND UTC. The GMT suffix shows the negated
    value, so offset=-300 (UTC+5) renders `GMT +05:00`.

The ClockTicker keeps a display string fresh once per second while the
session is idle; captures read a fresh value at the capture instant.
"""

import asyncio
import logging
from datetime import datetime, time
from typing import Callable, Optional, Tuple


logger = logging.getLogger(__name__)

MAX_OFFSET_MINUTES = 24 * 60


def _pad(n: int) -> str:
    return f"{n:02d}"


def format_offset(offset_minutes: int) -> str:
    """
    Format a platform offset as `±hh:mm`.

    Args:
        offset_minutes: Minutes local time is behind UTC

    Returns:
        Signed offset string, sign negated relative to the input

    Raises:
        ValueError: If the offset is a full day or more
    """
    if abs(offset_minutes) >= MAX_OFFSET_MINUTES:
        raise ValueError(f"offset out of range: {offset_minutes}")
    total = -offset_minutes
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total), 60)
    return f"{sign}{_pad(hours)}:{_pad(minutes)}"


def to_12_hour(t: time) -> str:
    """Render a wall-clock time as `hh:mm:ss AM|PM` (midnight and noon as 12)."""
    suffix = "PM" if t.hour >= 12 else "AM"
    hour = t.hour % 12 or 12
    return f"{_pad(hour)}:{_pad(t.minute)}:{_pad(t.second)} {suffix}"


def local_offset_minutes(moment: datetime) -> int:
    """
    Platform-convention offset of `moment` (positive = behind UTC).

    Naive datetimes are interpreted in the system local zone.
    """
    aware = moment if moment.tzinfo is not None else moment.astimezone()
    delta = aware.utcoffset()
    if delta is None:
        return 0
    return -int(delta.total_seconds() // 60)


def format_timestamp(moment: datetime, offset_minutes: Optional[int] = None) -> str:
    """
    Format the stamp timestamp.

    Args:
        moment: Local wall-clock instant
        offset_minutes: Platform offset; derived from `moment` when None

    Returns:
        e.g. `05/03/2024 09:07:02 PM GMT +05:30`
    """
    if offset_minutes is None:
        offset_minutes = local_offset_minutes(moment)
    date = f"{_pad(moment.day)}/{_pad(moment.month)}/{moment.year}"
    return f"{date} {to_12_hour(moment.time())} GMT {format_offset(offset_minutes)}"


def _system_now() -> datetime:
    return datetime.now().astimezone()


class ClockTicker:
    """
    Once-per-second timestamp refresher.

    Attributes:
        interval: Seconds between refreshes
        current: Most recent formatted timestamp

    Example:
        ticker = ClockTicker()
        await ticker.start()
        ...
        captured_at, text = ticker.freeze()
        await ticker.stop()
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _system_now,
        interval: float = 1.0,
        on_tick: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.interval = interval
        self._clock = clock
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task] = None
        self.current: str = format_timestamp(clock())
        self.tick_count: int = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def freeze(self) -> Tuple[datetime, str]:
        """Read the clock now and return the instant with its formatted text."""
        moment = self._clock()
        return moment, format_timestamp(moment)

    async def start(self) -> None:
        """Start refreshing in the background. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="clock_ticker")

    async def stop(self) -> None:
        """Stop the ticker and wait for its task to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug(f"Clock ticker stopped after {self.tick_count} ticks")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.current = format_timestamp(self._clock())
            self.tick_count += 1
            if self._on_tick is not None:
                self._on_tick(self.current)
