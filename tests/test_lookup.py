from datetime import timedelta

from tlstrust_core.errors import StoreUnavailable
from tlstrust_core.lookup import DecisionCache
from tlstrust_core.storage import Decision, InMemoryStorage, LookupResult
from tlstrust_core.sweeper import ExpirySweeper


class UnavailableStorage(InMemoryStorage):
    def get_decision(self, hostname, now):
        raise StoreUnavailable("store offline")

    def upsert_decision(self, rec):
        raise StoreUnavailable("store offline")

    def delete_decision(self, hostname):
        raise StoreUnavailable("store offline")


def test_unknown_without_record(store, clock):
    cache = DecisionCache(store, clock=clock)
    for host in ("example.com", "a.b.c.example", "127.0.0.1"):
        assert cache.lookup(host) is LookupResult.UNKNOWN


def test_accepted_and_rejected_hits(store, clock):
    cache = DecisionCache(store, clock=clock)
    assert cache.record("good.example", Decision.ACCEPTED)
    assert cache.record("bad.example", Decision.REJECTED, ttl=timedelta(days=7))

    assert cache.lookup("good.example") is LookupResult.ACCEPTED
    assert cache.lookup("bad.example") is LookupResult.REJECTED


def test_expired_record_is_unknown_then_swept(store, clock):
    cache = DecisionCache(store, clock=clock)
    cache.record("example.com", Decision.ACCEPTED, ttl=timedelta(hours=24))
    assert cache.lookup("example.com") is LookupResult.ACCEPTED

    clock.now += timedelta(hours=24, seconds=1)
    assert cache.lookup("example.com") is LookupResult.UNKNOWN

    assert ExpirySweeper(store, clock=clock).sweep() == 1
    assert store.list_decisions() == []


def test_expired_rejection_is_unknown_not_rejected(store, clock):
    cache = DecisionCache(store, clock=clock)
    cache.record("example.com", Decision.REJECTED, ttl=timedelta(minutes=5))
    clock.now += timedelta(minutes=6)
    assert cache.lookup("example.com") is LookupResult.UNKNOWN


def test_record_sets_created_and_expiry_from_clock(store, clock):
    cache = DecisionCache(store, clock=clock)
    cache.record("example.com", Decision.ACCEPTED, ttl=timedelta(hours=24), fingerprint="f1")

    rec = store.get_decision("example.com", clock.now)
    assert rec.created_at == clock.now
    assert rec.expires_at == clock.now + timedelta(hours=24)
    assert rec.certificate_fingerprint == "f1"


def test_store_unavailable_degrades(clock, caplog):
    cache = DecisionCache(UnavailableStorage(), clock=clock)

    assert cache.lookup("example.com") is LookupResult.UNKNOWN
    assert cache.record("example.com", Decision.ACCEPTED) is False
    assert cache.forget("example.com") is False
    assert "store unavailable" in caplog.text


def test_hostname_only_ignores_certificate_change(store, clock):
    cache = DecisionCache(store, clock=clock)
    cache.record("example.com", Decision.ACCEPTED, fingerprint="old")
    assert cache.lookup("example.com", fingerprint="new") is LookupResult.ACCEPTED


def test_fingerprint_matching_mode(store, clock):
    cache = DecisionCache(store, clock=clock, match_fingerprint=True)
    cache.record("example.com", Decision.ACCEPTED, fingerprint="old")

    assert cache.lookup("example.com", fingerprint="old") is LookupResult.ACCEPTED
    assert cache.lookup("example.com", fingerprint="new") is LookupResult.UNKNOWN
    # unreadable certificate on either side falls back to hostname
    assert cache.lookup("example.com", fingerprint="") is LookupResult.ACCEPTED

    cache.record("blank.example", Decision.ACCEPTED, fingerprint="")
    assert cache.lookup("blank.example", fingerprint="any") is LookupResult.ACCEPTED


def test_forget(store, clock):
    cache = DecisionCache(store, clock=clock)
    cache.record("example.com", Decision.ACCEPTED)
    assert cache.forget("example.com") is True
    assert cache.forget("example.com") is False
    assert cache.lookup("example.com") is LookupResult.UNKNOWN
