from __future__ import annotations
import asyncio
from datetime import datetime
from typing import Callable

from .constants import DEFAULT_SWEEP_INTERVAL_S
from .errors import StoreUnavailable
from .logger import get_logger
from .storage.provider import TrustStoreProvider
from .utils import utcnow

log = get_logger("TLSTrust.Sweeper")


class ExpirySweeper:
    """Physically removes trust decisions whose expiry has passed."""

    def __init__(self, store: TrustStoreProvider, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def sweep(self) -> int:
        try:
            removed = self.store.delete_expired(self.clock())
        except StoreUnavailable as e:
            log.warning(f"[sweep] failed to clean up expired certificate validations: {e}")
            return 0
        if removed:
            log.info(f"[sweep] removed {removed} expired certificate validation(s)")
        return removed

    async def run_periodically(self, interval: float = DEFAULT_SWEEP_INTERVAL_S) -> None:
        """Sweep every `interval` seconds until cancelled."""
        loop = asyncio.get_running_loop()
        while True:
            await asyncio.sleep(interval)
            await loop.run_in_executor(None, self.sweep)
