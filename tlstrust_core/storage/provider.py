# tlstrust_core/storage/provider.py
from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from tlstrust_core.storage.models import TrustDecision


class TrustStoreProvider(ABC):
    """
    Contract for trust-store backends.

    Providers raise StoreUnavailable when the backend cannot be reached;
    the policy layer decides how to degrade.
    """

    @abstractmethod
    def upsert_decision(self, rec: TrustDecision) -> None:
        """Write `rec`, superseding any prior record for the same hostname."""

    @abstractmethod
    def get_decision(self, hostname: str, now: datetime) -> Optional[TrustDecision]:
        """Return the active (non-expired at `now`) record for `hostname`."""

    @abstractmethod
    def list_decisions(self) -> List[TrustDecision]:
        """All stored records, expired ones included."""

    @abstractmethod
    def delete_decision(self, hostname: str) -> bool: ...

    @abstractmethod
    def delete_expired(self, now: datetime) -> int: ...

    @abstractmethod
    def purge(self) -> int: ...
