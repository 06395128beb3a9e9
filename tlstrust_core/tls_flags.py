"""
tlstrust_core.tls_flags
-----------------------
Bitset of TLS validation failure reasons, using the GIO certificate flag
values reported by the rendering engine, and their human-readable form.
"""

from __future__ import annotations
from enum import IntFlag
from typing import List, Union


class TLSErrorFlags(IntFlag):
    UNKNOWN_CA = 1 << 0
    BAD_IDENTITY = 1 << 1
    NOT_ACTIVATED = 1 << 2
    EXPIRED = 1 << 3
    REVOKED = 1 << 4
    INSECURE = 1 << 5
    GENERIC_ERROR = 1 << 6


# Enumeration order is display order
ERROR_MESSAGES = (
    (TLSErrorFlags.UNKNOWN_CA, "The certificate authority is not trusted"),
    (TLSErrorFlags.BAD_IDENTITY, "The certificate does not match the site identity"),
    (TLSErrorFlags.NOT_ACTIVATED, "The certificate is not yet valid"),
    (TLSErrorFlags.EXPIRED, "The certificate has expired"),
    (TLSErrorFlags.REVOKED, "The certificate has been revoked"),
    (TLSErrorFlags.INSECURE, "The certificate uses an insecure algorithm"),
    (TLSErrorFlags.GENERIC_ERROR, "A generic error occurred validating the certificate"),
)

UNKNOWN_ERROR_MESSAGE = "Unknown certificate error"
BULLET = "• "


def describe_errors(flags: Union[int, TLSErrorFlags]) -> List[str]:
    """Return one bullet line per set flag, or a single 'unknown' bullet."""
    value = int(flags)
    lines = [BULLET + msg for flag, msg in ERROR_MESSAGES if value & flag]
    if not lines:
        lines.append(BULLET + UNKNOWN_ERROR_MESSAGE)
    return lines


_KNOWN_BITS = 0
for _flag, _ in ERROR_MESSAGES:
    _KNOWN_BITS |= int(_flag)


def normalize_flags(flags: Union[int, TLSErrorFlags]) -> TLSErrorFlags:
    """Drop bits this module does not know about."""
    return TLSErrorFlags(int(flags) & _KNOWN_BITS)
