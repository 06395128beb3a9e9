"""
tlstrust_core.fingerprint
-------------------------
Derives the identity of a TLS failure: the hostname the decision applies to
and, when the certificate can be parsed, a SHA-256 fingerprint over its
subject, issuer and validity window.

Pure functions only; nothing here touches the store or the engine.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlsplit

from cryptography import x509

from .errors import InvalidFailureContext
from .tls_flags import TLSErrorFlags, normalize_flags
from .utils import sha256, utcnow


@dataclass
class CertificateInfo:
    subject: str
    issuer: str
    not_before: datetime
    not_after: datetime

    @property
    def is_expired(self) -> bool:
        return utcnow() > self.not_after

    def canonical(self) -> str:
        return (
            f"subject={self.subject},issuer={self.issuer},"
            f"notBefore={self.not_before.isoformat()},notAfter={self.not_after.isoformat()}"
        )


@dataclass
class PendingFailure:
    """One in-flight TLS failure. Never persisted."""
    failing_uri: str
    hostname: str
    error_flags: TLSErrorFlags
    certificate: Any = field(default=None, repr=False)
    certificate_fingerprint: str = ""


def extract_hostname(uri: str) -> str:
    """
    Strip scheme, userinfo, path and port from an absolute URI.

    Falls back to plain string splitting when structured parsing rejects the
    input (e.g. a malformed IPv6 literal). Raises InvalidFailureContext when
    no host can be found at all.
    """
    if not uri or not isinstance(uri, str):
        raise InvalidFailureContext(str(uri), "empty uri")

    try:
        host = urlsplit(uri).hostname
    except ValueError:
        host = _split_hostname(uri)

    if not host:
        raise InvalidFailureContext(uri)
    return host.lower()


def _split_hostname(uri: str) -> Optional[str]:
    if "://" not in uri:
        return None
    rest = uri.split("://", 1)[1]
    authority = rest.split("/", 1)[0].split("@")[-1]
    if authority.startswith("["):
        return authority[1:].split("]", 1)[0] or None
    return authority.split(":", 1)[0] or None


def _load_certificate(certificate: Any) -> Optional[x509.Certificate]:
    if isinstance(certificate, x509.Certificate):
        return certificate
    if isinstance(certificate, str):
        certificate = certificate.encode("ascii", errors="ignore")
    if isinstance(certificate, (bytes, bytearray)):
        data = bytes(certificate)
        try:
            if b"-----BEGIN CERTIFICATE-----" in data:
                return x509.load_pem_x509_certificate(data)
            return x509.load_der_x509_certificate(data)
        except ValueError:
            return None
    return None


def read_certificate_info(certificate: Any) -> Optional[CertificateInfo]:
    """Read identifying fields, or None when the material is not parseable."""
    cert = _load_certificate(certificate)
    if cert is None:
        return None
    return CertificateInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
    )


def certificate_fingerprint(certificate: Any) -> str:
    info = read_certificate_info(certificate)
    if info is None:
        return ""
    return sha256(info.canonical().encode("utf-8"))


def extract_failure(failing_uri: str, certificate: Any, error_flags: int) -> PendingFailure:
    hostname = extract_hostname(failing_uri)
    return PendingFailure(
        failing_uri=failing_uri,
        hostname=hostname,
        error_flags=normalize_flags(error_flags),
        certificate=certificate,
        certificate_fingerprint=certificate_fingerprint(certificate),
    )
