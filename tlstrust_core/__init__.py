"""
TLS Trust Core Package
======================
Certificate trust-decision engine for an embedded browser view.

Provides:
- Failure context extraction (hostname + certificate fingerprint)
- Persistent, expiring trust store (SQLite default)
- Three-way user consent coordination over asyncio
- Exception application and expiry sweeping
"""
