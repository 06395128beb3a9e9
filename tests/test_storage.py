import os
import sqlite3
from datetime import timedelta

import pytest

from tlstrust_core.errors import StoreUnavailable
from tlstrust_core.storage import (
    Decision, InMemoryStorage, SQLiteStorage, TrustDecision, load_storage_provider,
)
from tlstrust_core.sweeper import ExpirySweeper


def test_storage_roundtrip(store, clock):
    rec = TrustDecision(
        hostname="example.com",
        decision=Decision.ACCEPTED,
        certificate_fingerprint="ab" * 32,
        created_at=clock.now,
    )
    store.upsert_decision(rec)

    got = store.get_decision("example.com", clock.now)
    assert got is not None
    assert got.decision is Decision.ACCEPTED
    assert got.certificate_fingerprint == "ab" * 32
    assert got.created_at == clock.now
    assert got.expires_at is None
    assert store.get_decision("other.example", clock.now) is None


def test_new_write_supersedes_previous_for_same_host(store, clock):
    store.upsert_decision(TrustDecision("example.com", Decision.ACCEPTED,
                                        expires_at=clock.now + timedelta(hours=24)))
    store.upsert_decision(TrustDecision("example.com", Decision.ACCEPTED))

    assert len(store.list_decisions()) == 1
    assert store.get_decision("example.com", clock.now).expires_at is None

    store.upsert_decision(TrustDecision("example.com", Decision.REJECTED))
    assert store.get_decision("example.com", clock.now).decision is Decision.REJECTED


def test_expired_record_is_not_returned(store, clock):
    store.upsert_decision(TrustDecision("old.example", Decision.ACCEPTED,
                                        expires_at=clock.now - timedelta(seconds=1)))
    store.upsert_decision(TrustDecision("edge.example", Decision.ACCEPTED, expires_at=clock.now))

    assert store.get_decision("old.example", clock.now) is None
    assert store.get_decision("edge.example", clock.now) is None
    # still physically present until swept
    assert {r.hostname for r in store.list_decisions()} == {"old.example", "edge.example"}


def test_sweep_removes_only_expired_and_is_idempotent(store, clock):
    store.upsert_decision(TrustDecision("expired.example", Decision.ACCEPTED,
                                        expires_at=clock.now - timedelta(hours=1)))
    store.upsert_decision(TrustDecision("temp.example", Decision.ACCEPTED,
                                        expires_at=clock.now + timedelta(hours=1)))
    store.upsert_decision(TrustDecision("forever.example", Decision.ACCEPTED))
    store.upsert_decision(TrustDecision("blocked.example", Decision.REJECTED))

    sweeper = ExpirySweeper(store, clock=clock)
    assert sweeper.sweep() == 1
    assert sweeper.sweep() == 0
    assert [r.hostname for r in store.list_decisions()] == [
        "blocked.example", "forever.example", "temp.example",
    ]


def test_sweep_on_empty_store(store, clock):
    assert ExpirySweeper(store, clock=clock).sweep() == 0


def test_delete_and_purge(store):
    store.upsert_decision(TrustDecision("a.example", Decision.ACCEPTED))
    store.upsert_decision(TrustDecision("b.example", Decision.REJECTED))

    assert store.delete_decision("a.example") is True
    assert store.delete_decision("a.example") is False
    assert store.purge() == 1
    assert store.list_decisions() == []


def test_schema_exists(sqlite_store, clock):
    sqlite_store.get_decision("example.com", clock.now)

    db = sqlite3.connect(sqlite_store.path)
    try:
        cols = [row[1] for row in db.execute("PRAGMA table_info(certificate_validations)")]
    finally:
        db.close()

    for col in ("hostname", "certificate_hash", "user_decision", "created_at", "expires_at"):
        assert col in cols


def test_separate_instances_share_the_file(tmp_path, clock):
    path = str(tmp_path / "nested" / "shared.db")
    SQLiteStorage(path).upsert_decision(TrustDecision("example.com", Decision.ACCEPTED))
    assert SQLiteStorage(path).get_decision("example.com", clock.now) is not None


def test_sqlite_errors_become_store_unavailable(sqlite_store, clock, monkeypatch):
    def broken_connect(*args, **kwargs):
        raise sqlite3.OperationalError("unable to open database file")

    monkeypatch.setattr(sqlite3, "connect", broken_connect)
    with pytest.raises(StoreUnavailable) as exc:
        sqlite_store.get_decision("example.com", clock.now)
    assert isinstance(exc.value.__cause__, sqlite3.OperationalError)
    assert exc.value.path == sqlite_store.path


def test_sweeper_tolerates_unavailable_store(clock):
    class Down(InMemoryStorage):
        def delete_expired(self, now):
            raise StoreUnavailable("down")

    assert ExpirySweeper(Down(), clock=clock).sweep() == 0


def test_load_storage_provider_modes(monkeypatch, tmp_path):
    monkeypatch.delenv("TLSTRUST_STORAGE_PROVIDER", raising=False)
    monkeypatch.setenv("TLSTRUST_DB_PATH", str(tmp_path / "env.db"))
    s = load_storage_provider()
    assert isinstance(s, SQLiteStorage)
    assert s.path == str(tmp_path / "env.db")

    s = load_storage_provider({"sqlite_path": str(tmp_path / "cfg.db")})
    assert s.path == str(tmp_path / "cfg.db")

    monkeypatch.setenv("TLSTRUST_STORAGE_PROVIDER", "memory")
    assert isinstance(load_storage_provider(), InMemoryStorage)

    with pytest.raises(ValueError):
        load_storage_provider({"provider": "firestore"})


@pytest.mark.asyncio
async def test_periodic_sweep_runs_until_cancelled(clock, wait_until):
    import asyncio

    store = InMemoryStorage()
    store.upsert_decision(TrustDecision("expired.example", Decision.ACCEPTED,
                                        expires_at=clock.now - timedelta(minutes=1)))
    task = asyncio.create_task(ExpirySweeper(store, clock=clock).run_periodically(0.01))

    await wait_until(lambda: store.list_decisions() == [])
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


def test_undecodable_row_raises_store_unavailable(sqlite_store, clock):
    sqlite_store.list_decisions()
    db = sqlite3.connect(sqlite_store.path)
    try:
        db.execute(
            "INSERT INTO certificate_validations VALUES(?,?,?,?,?)",
            ("example.com", "", "accepted", "01/01/2026", None),
        )
        db.commit()
    finally:
        db.close()

    with pytest.raises(StoreUnavailable) as exc:
        sqlite_store.get_decision("example.com", clock.now)
    assert isinstance(exc.value.__cause__, ValueError)
    with pytest.raises(StoreUnavailable):
        sqlite_store.list_decisions()


def test_schema_recreated_after_file_removed(sqlite_store, clock):
    sqlite_store.upsert_decision(TrustDecision("example.com", Decision.ACCEPTED))
    os.remove(sqlite_store.path)

    assert sqlite_store.get_decision("example.com", clock.now) is None
    sqlite_store.upsert_decision(TrustDecision("example.com", Decision.REJECTED))
    assert sqlite_store.get_decision("example.com", clock.now).decision is Decision.REJECTED
