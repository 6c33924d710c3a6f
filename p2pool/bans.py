"""Time-limited IP bans."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from p2pool.common import RawIP


class BanList:
    """Thread-safe set of banned addresses, each with its own expiry time.

    Localhost addresses are never banned.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._bans: dict[RawIP, float] = {}

    def ban(self, ip: RawIP, seconds: int) -> None:
        """Ban ``ip`` for ``seconds`` from now, replacing any earlier ban."""
        if ip.is_localhost():
            return
        expiry = self._clock() + seconds
        with self._lock:
            self._bans[ip] = expiry

    def is_banned(self, ip: RawIP) -> bool:
        """True while the ban on ``ip`` lasts; an expired ban is forgotten."""
        if ip.is_localhost():
            return False
        now = self._clock()
        with self._lock:
            expiry = self._bans.get(ip)
            if expiry is None:
                return False
            if now < expiry:
                return True
            del self._bans[ip]
            return False

    def active_bans(self) -> list[tuple[RawIP, int]]:
        """Bans still in force with their whole seconds left, ordered by address."""
        now = self._clock()
        with self._lock:
            entries = sorted(self._bans.items())
        return [(ip, int(expiry - now)) for ip, expiry in entries if now < expiry]

    def __len__(self) -> int:
        with self._lock:
            return len(self._bans)