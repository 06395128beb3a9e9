"""
tlstrust_core.consent
---------------------
Drives the three-way user consent for a TLS failure with no cached decision.

Per PendingFailure the flow is:

    start --(cached accepted)--> ALLOW
    start --(cached rejected)--> DENY
    start --(miss)--> awaiting user
        Go Back        -> DENY   (nothing stored)
        Proceed Once   -> ALLOW  (accepted, expires after the proceed-once TTL)
        Always Accept  -> ALLOW  (accepted, no expiry)

The coordinator runs on the UI event loop and suspends on the prompt future
instead of blocking. At most one prompt is outstanding per hostname; later
failures for that hostname join the outstanding prompt and share its outcome.
"""

from __future__ import annotations
import asyncio
import functools
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, IntEnum
from typing import Dict, List

from .constants import (
    DIALOG_CANCEL_OPTION, DIALOG_DEFAULT_OPTION, DIALOG_DETAIL, DIALOG_OPTIONS,
    DIALOG_TITLE, PROCEED_ONCE_TTL,
)
from .engine.engine_base import BaseConsentSurface
from .errors import PromptFailed
from .fingerprint import PendingFailure
from .logger import get_logger
from .lookup import DecisionCache
from .storage.models import Decision, LookupResult
from .tls_flags import describe_errors

log = get_logger("TLSTrust.Consent")


class ConsentChoice(IntEnum):
    GO_BACK = 0
    PROCEED_ONCE = 1
    ALWAYS_ACCEPT = 2


class Outcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass
class ConsentPrompt:
    hostname: str
    title: str
    detail_lines: List[str]
    options: List[str] = field(default_factory=lambda: list(DIALOG_OPTIONS))
    default_option: int = DIALOG_DEFAULT_OPTION
    cancel_option: int = DIALOG_CANCEL_OPTION

    @property
    def detail(self) -> str:
        return DIALOG_DETAIL.format(hostname=self.hostname, errors="\n".join(self.detail_lines))

    @classmethod
    def for_failure(cls, pending: PendingFailure) -> "ConsentPrompt":
        return cls(
            hostname=pending.hostname,
            title=DIALOG_TITLE.format(hostname=pending.hostname),
            detail_lines=describe_errors(pending.error_flags),
        )


class ConsentCoordinator:
    def __init__(
        self,
        surface: BaseConsentSurface,
        cache: DecisionCache,
        proceed_once_ttl: timedelta = PROCEED_ONCE_TTL,
    ):
        self.surface = surface
        self.cache = cache
        self.proceed_once_ttl = proceed_once_ttl
        self._outstanding: Dict[str, asyncio.Future] = {}

    def is_outstanding(self, hostname: str) -> bool:
        return hostname in self._outstanding

    async def resolve(self, pending: PendingFailure) -> Outcome:
        host = pending.hostname

        cached = self.cache.lookup(host, pending.certificate_fingerprint)
        if cached is LookupResult.ACCEPTED:
            return Outcome.ALLOW
        if cached is LookupResult.REJECTED:
            return Outcome.DENY

        shared = self._outstanding.get(host)
        if shared is not None:
            log.info(f"[consent] prompt already open for {host}, waiting on it")
            return await asyncio.shield(shared)

        shared = asyncio.get_running_loop().create_future()
        self._outstanding[host] = shared
        try:
            outcome = await self._prompt(pending)
        except asyncio.CancelledError:
            shared.cancel()
            raise
        except Exception:
            log.exception(f"[consent] unexpected failure resolving {host}, denying")
            outcome = Outcome.DENY
        finally:
            if self._outstanding.get(host) is shared:
                del self._outstanding[host]

        if not shared.done():
            shared.set_result(outcome)
        return outcome

    async def _prompt(self, pending: PendingFailure) -> Outcome:
        host = pending.hostname
        prompt = ConsentPrompt.for_failure(pending)
        log.info(f"[consent] no stored decision for {host}, asking user")

        try:
            choice = await self._ask(prompt)
        except PromptFailed as e:
            log.error(f"[consent] prompt failed for {host}: {e}")
            return Outcome.DENY

        log.info(f"[consent] user chose {choice.name} for {host}")
        if choice is ConsentChoice.GO_BACK:
            return Outcome.DENY

        ttl = self.proceed_once_ttl if choice is ConsentChoice.PROCEED_ONCE else None
        write = functools.partial(
            self.cache.record, host, Decision.ACCEPTED, ttl, pending.certificate_fingerprint,
        )
        # Best-effort; a failed write never changes the user's outcome
        await asyncio.get_running_loop().run_in_executor(None, write)
        return Outcome.ALLOW

    async def _ask(self, prompt: ConsentPrompt) -> ConsentChoice:
        try:
            index = await self.surface.present_choice(
                prompt.title,
                prompt.detail_lines,
                prompt.options,
                prompt.default_option,
                prompt.cancel_option,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise PromptFailed(f"consent surface error: {e}") from e

        try:
            return ConsentChoice(index)
        except (TypeError, ValueError):
            raise PromptFailed(f"unexpected choice {index!r}") from None
