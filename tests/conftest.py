import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from tlstrust_core.storage import InMemoryStorage, SQLiteStorage

FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def _make_cert(common_name="example.com", issuer_cn=None,
               not_before=None, not_after=None):
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn or common_name)])
    not_before = not_before or FIXED_NOW - timedelta(days=1)
    not_after = not_after or FIXED_NOW + timedelta(days=30)
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )


@pytest.fixture
def make_cert():
    return _make_cert


@pytest.fixture
def cert_pem(make_cert):
    return make_cert().public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def clock():
    """Mutable clock: call it for 'now', set .now to move time."""
    class Clock:
        now = FIXED_NOW

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def sqlite_store(tmp_path):
    return SQLiteStorage(str(tmp_path / "tlstrust.db"))


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path):
    if request.param == "sqlite":
        return SQLiteStorage(str(tmp_path / "tlstrust.db"))
    return InMemoryStorage()


@pytest.fixture
def wait_until():
    async def _wait(predicate, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not reached before timeout")
            await asyncio.sleep(0.005)
    return _wait
