# tlstrust_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from tlstrust_core.utils import from_ts, to_ts, utcnow


class Decision(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class LookupResult(str, Enum):
    UNKNOWN = "unknown"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class TrustDecision:
    """
    Storage-level representation of a user's trust decision for one host.

    This is intentionally storage-agnostic and can be used by any provider
    (SQLite, memory, ...). `expires_at=None` means the decision is permanent.
    """
    hostname: str
    decision: Decision
    certificate_fingerprint: str = ""
    created_at: datetime = field(default_factory=utcnow)
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utcnow())

    def to_row(self) -> tuple:
        return (
            self.hostname,
            self.certificate_fingerprint,
            self.decision.value,
            to_ts(self.created_at),
            to_ts(self.expires_at),
        )

    @classmethod
    def from_row(cls, row) -> "TrustDecision":
        hostname, cert_hash, user_decision, created_at, expires_at = row
        return cls(
            hostname=hostname,
            decision=Decision(user_decision),
            certificate_fingerprint=cert_hash or "",
            created_at=from_ts(created_at) or utcnow(),
            expires_at=from_ts(expires_at),
        )
