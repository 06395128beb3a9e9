# tlstrust_core/engine/engine_local.py
from __future__ import annotations
import asyncio
from collections import deque
from typing import Any, Deque, Iterable, List, Optional, Sequence, Tuple, Union

from tlstrust_core.constants import DIALOG_TITLE
from tlstrust_core.engine.engine_base import BaseBrowserView, BaseConsentSurface
from tlstrust_core.logger import get_logger

log = get_logger("TLSTrust.Engine.Local")

Answer = Union[int, BaseException]


class LocalBrowserView(BaseBrowserView):
    """Loop-back view that records what the engine would have been told."""
    name = "local"

    def __init__(self):
        self.calls: List[Tuple[str, ...]] = []
        self.allowed: List[Tuple[str, Any]] = []
        self.reloaded: List[str] = []

    def allow_certificate_for_host(self, certificate: Any, hostname: str) -> None:
        log.info(f"LOCAL ALLOW {hostname}")
        self.calls.append(("allow", hostname))
        self.allowed.append((hostname, certificate))

    def reload(self, uri: str) -> None:
        log.info(f"LOCAL RELOAD {uri}")
        self.calls.append(("reload", uri))
        self.reloaded.append(uri)


class LocalConsentSurface(BaseConsentSurface):
    """
    Loop-back consent surface.

    Answers queued up front are returned immediately in order; once the queue
    is empty prompts stay outstanding until `respond()` resolves them.
    """
    name = "local"

    def __init__(self, answers: Optional[Iterable[Answer]] = None):
        self.prompts: List[dict] = []
        self._answers: Deque[Answer] = deque(answers or [])
        self._waiting: List[Tuple[str, asyncio.Future]] = []

    def present_choice(
        self,
        title: str,
        detail_lines: Sequence[str],
        options: Sequence[str],
        default_option: int,
        cancel_option: int,
    ) -> asyncio.Future:
        fut = asyncio.get_running_loop().create_future()
        self.prompts.append({
            "title": title,
            "detail_lines": list(detail_lines),
            "options": list(options),
            "default_option": default_option,
            "cancel_option": cancel_option,
        })
        log.info(f"LOCAL PROMPT {title}")

        if self._answers:
            _settle(fut, self._answers.popleft())
        else:
            self._waiting.append((title, fut))
        return fut

    @property
    def outstanding(self) -> int:
        return sum(1 for _, fut in self._waiting if not fut.done())

    def respond(self, answer: Answer, hostname: Optional[str] = None) -> bool:
        """Resolve the oldest outstanding prompt (for `hostname`, if given)."""
        title = DIALOG_TITLE.format(hostname=hostname) if hostname else None
        for i, (t, fut) in enumerate(self._waiting):
            if fut.done():
                continue
            if title is not None and t != title:
                continue
            del self._waiting[i]
            _settle(fut, answer)
            return True
        return False


def _settle(fut: asyncio.Future, answer: Answer) -> None:
    if isinstance(answer, BaseException):
        fut.set_exception(answer)
    else:
        fut.set_result(answer)
