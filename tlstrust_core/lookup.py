"""
tlstrust_core.lookup
--------------------
Decision cache over a TrustStoreProvider.

Reads never raise: an unreachable store degrades to UNKNOWN so the caller
falls through to asking the user. Writes are best-effort and report success
as a bool.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Callable, Optional

from .errors import StoreUnavailable
from .logger import get_logger
from .storage.models import Decision, LookupResult, TrustDecision
from .storage.provider import TrustStoreProvider
from .utils import utcnow

log = get_logger("TLSTrust.Lookup")


class DecisionCache:
    def __init__(
        self,
        store: TrustStoreProvider,
        clock: Callable[[], datetime] = utcnow,
        match_fingerprint: bool = False,
    ):
        self.store = store
        self.clock = clock
        # Hostname-only matching trusts whatever certificate the host presents
        # next; fingerprint matching re-prompts when the certificate changes.
        self.match_fingerprint = match_fingerprint

    def lookup(self, hostname: str, fingerprint: str = "") -> LookupResult:
        try:
            rec = self.store.get_decision(hostname, self.clock())
        except StoreUnavailable as e:
            log.warning(f"[lookup] store unavailable for {hostname}, treating as unknown: {e}")
            return LookupResult.UNKNOWN

        if rec is None:
            return LookupResult.UNKNOWN

        if self.match_fingerprint and fingerprint and rec.certificate_fingerprint \
                and rec.certificate_fingerprint != fingerprint:
            log.info(f"[lookup] stored decision for {hostname} is for a different certificate")
            return LookupResult.UNKNOWN

        return LookupResult(rec.decision.value)

    def record(
        self,
        hostname: str,
        decision: Decision,
        ttl: Optional[timedelta] = None,
        fingerprint: str = "",
    ) -> bool:
        now = self.clock()
        rec = TrustDecision(
            hostname=hostname,
            decision=decision,
            certificate_fingerprint=fingerprint,
            created_at=now,
            expires_at=now + ttl if ttl is not None else None,
        )
        try:
            self.store.upsert_decision(rec)
        except StoreUnavailable as e:
            log.error(f"[lookup] failed to store {decision.value} for {hostname}: {e}")
            return False
        log.info(
            f"[lookup] stored {decision.value} for {hostname} "
            f"(expires {rec.expires_at.isoformat() if rec.expires_at else 'never'})"
        )
        return True

    def forget(self, hostname: str) -> bool:
        try:
            removed = self.store.delete_decision(hostname)
        except StoreUnavailable as e:
            log.error(f"[lookup] failed to forget {hostname}: {e}")
            return False
        if removed:
            log.info(f"[lookup] forgot decision for {hostname}")
        return removed
