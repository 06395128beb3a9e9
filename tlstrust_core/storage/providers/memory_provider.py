import threading
from datetime import datetime
from typing import Dict, List, Optional

from tlstrust_core.storage.models import TrustDecision
from tlstrust_core.storage.provider import TrustStoreProvider


class InMemoryStorage(TrustStoreProvider):
    def __init__(self):
        self.decisions: Dict[str, TrustDecision] = {}
        self._lock = threading.Lock()

    def upsert_decision(self, rec: TrustDecision):
        with self._lock:
            self.decisions[rec.hostname] = rec

    def get_decision(self, hostname: str, now: datetime) -> Optional[TrustDecision]:
        with self._lock:
            rec = self.decisions.get(hostname)
        if rec is None or rec.is_expired(now):
            return None
        return rec

    def list_decisions(self) -> List[TrustDecision]:
        with self._lock:
            return sorted(self.decisions.values(), key=lambda r: r.hostname)

    def delete_decision(self, hostname: str) -> bool:
        with self._lock:
            return self.decisions.pop(hostname, None) is not None

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [h for h, rec in self.decisions.items() if rec.is_expired(now)]
            for h in expired:
                del self.decisions[h]
        return len(expired)

    def purge(self) -> int:
        with self._lock:
            n = len(self.decisions)
            self.decisions.clear()
        return n
