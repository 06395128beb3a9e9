"""
tlstrust_core.handler
---------------------
Entry point wired to the rendering engine's "load failed with TLS errors"
signal. One handler per browser view; the trust store behind it is shared.

`on_tls_failure` returns True when the failure is being handled here (an
exception will be applied, or the user is being asked) and False when the
engine should show its default error page (fail closed, or a stored
rejection).
"""

from __future__ import annotations
import asyncio
import os
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, FrozenSet, Optional, Set

from .applicator import ExceptionApplicator, on_loop_thread
from .consent import ConsentCoordinator, Outcome
from .constants import (
    ENV_MATCH_FINGERPRINT, ENV_PROCEED_ONCE_TTL_HOURS, ENV_SWEEP_ON_START, PROCEED_ONCE_TTL,
)
from .engine.engine_base import BaseBrowserView, BaseConsentSurface
from .errors import InvalidFailureContext
from .fingerprint import PendingFailure, extract_failure
from .logger import get_logger
from .lookup import DecisionCache
from .storage import TrustStoreProvider, load_storage_provider
from .storage.models import LookupResult
from .sweeper import ExpirySweeper
from .utils import env_flag, utcnow

log = get_logger("TLSTrust.Handler")


class TLSFailureHandler:
    def __init__(
        self,
        view: BaseBrowserView,
        surface: BaseConsentSurface,
        store: TrustStoreProvider,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], datetime] = utcnow,
        match_fingerprint: bool = False,
        proceed_once_ttl: timedelta = PROCEED_ONCE_TTL,
    ):
        self.loop = loop or asyncio.get_running_loop()
        self.cache = DecisionCache(store, clock=clock, match_fingerprint=match_fingerprint)
        self.coordinator = ConsentCoordinator(surface, self.cache, proceed_once_ttl)
        self.applicator = ExceptionApplicator(view, self.loop)

        # hosts granted an exception during this view's lifetime
        self._exceptions: Set[str] = set()
        self._lock = threading.Lock()
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    @property
    def granted_hosts(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._exceptions)

    def on_tls_failure(self, failing_uri: str, certificate: Any, error_flags: int) -> bool:
        log.info(f"[tls] load failed with TLS errors for: {failing_uri}, errors: {int(error_flags)}")
        if self._closed:
            return False

        try:
            pending = extract_failure(failing_uri, certificate, error_flags)
        except InvalidFailureContext as e:
            log.warning(f"[tls] failed to extract hostname, failing closed: {e}")
            return False

        host = pending.hostname
        with self._lock:
            granted = host in self._exceptions
        if granted:
            log.info(f"[tls] exception already granted for {host} in this session, allowing")
            return self._allow(pending)

        cached = self.cache.lookup(host, pending.certificate_fingerprint)
        if cached is LookupResult.ACCEPTED:
            log.info(f"[tls] certificate previously accepted for {host}, allowing")
            return self._allow(pending)
        if cached is LookupResult.REJECTED:
            log.info(f"[tls] certificate previously rejected for {host}, blocking")
            return False

        return self._submit(pending)

    def close(self) -> None:
        """Discard outstanding failures. Call on the UI loop when the view is destroyed."""
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        with self._lock:
            self._exceptions.clear()
        log.info("[tls] handler closed")

    def _submit(self, pending: PendingFailure) -> bool:
        if on_loop_thread(self.loop):
            self._start(pending)
            return True
        try:
            self.loop.call_soon_threadsafe(self._start, pending)
        except RuntimeError as e:
            log.error(f"[tls] UI loop unavailable, failing closed for {pending.hostname}: {e}")
            return False
        return True

    def _start(self, pending: PendingFailure) -> None:
        if self._closed:
            log.info(f"[tls] view closed, dropping failure for {pending.hostname}")
            return
        task = self.loop.create_task(self._consent(pending))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _consent(self, pending: PendingFailure) -> None:
        outcome = await self.coordinator.resolve(pending)
        if self._closed:
            log.info(f"[tls] view closed while resolving {pending.hostname}, discarding")
            return
        if outcome is Outcome.ALLOW:
            self._allow(pending)
        else:
            log.info(f"[tls] load of {pending.failing_uri} abandoned")

    def _allow(self, pending: PendingFailure) -> bool:
        if not self.applicator.apply(pending.hostname, pending.certificate, pending.failing_uri):
            return False
        with self._lock:
            self._exceptions.add(pending.hostname)
        return True


def handler_factory(
    view: BaseBrowserView,
    surface: BaseConsentSurface,
    config: dict | None = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    store: Optional[TrustStoreProvider] = None,
) -> TLSFailureHandler:
    """
    Build a handler for one browser view.

    config keys (env fallback):
      provider / sqlite_path          -> see load_storage_provider
      proceed_once_ttl_hours          -> TLSTRUST_PROCEED_ONCE_TTL_HOURS (24)
      match_fingerprint               -> TLSTRUST_MATCH_FINGERPRINT (off)
      sweep_on_start                  -> TLSTRUST_SWEEP_ON_START (on)
    """
    config = config or {}
    store = store or load_storage_provider(config)

    ttl_hours = config.get("proceed_once_ttl_hours")
    if ttl_hours is None:
        ttl_hours = os.getenv(ENV_PROCEED_ONCE_TTL_HOURS)
    ttl = timedelta(hours=float(ttl_hours)) if ttl_hours not in (None, "") else PROCEED_ONCE_TTL

    match_fingerprint = config.get("match_fingerprint")
    if match_fingerprint is None:
        match_fingerprint = env_flag(os.getenv(ENV_MATCH_FINGERPRINT), False)

    sweep_on_start = config.get("sweep_on_start")
    if sweep_on_start is None:
        sweep_on_start = env_flag(os.getenv(ENV_SWEEP_ON_START), True)
    if sweep_on_start:
        ExpirySweeper(store).sweep()

    return TLSFailureHandler(
        view,
        surface,
        store,
        loop=loop,
        match_fingerprint=bool(match_fingerprint),
        proceed_once_ttl=ttl,
    )
