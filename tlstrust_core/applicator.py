from __future__ import annotations
import asyncio
from typing import Any

from .engine.engine_base import BaseBrowserView
from .logger import get_logger

log = get_logger("TLSTrust.Applicator")


def on_loop_thread(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


class ExceptionApplicator:
    """
    Tells the network layer to trust a certificate for a host, then re-issues
    the failed load. Network-session mutation and navigation always run as a
    separate callback on the UI event loop, never inside the engine's failure
    signal, whichever thread `apply` is called from.
    """

    def __init__(self, view: BaseBrowserView, loop: asyncio.AbstractEventLoop):
        self.view = view
        self.loop = loop

    def apply(self, hostname: str, certificate: Any, uri: str) -> bool:
        """Schedule the exception; False when the UI loop is already gone."""
        try:
            self.loop.call_soon_threadsafe(self._apply_now, hostname, certificate, uri)
        except RuntimeError as e:
            log.error(f"[tls] cannot schedule certificate exception for {hostname}: {e}")
            return False
        return True

    def _apply_now(self, hostname: str, certificate: Any, uri: str) -> None:
        try:
            self.view.allow_certificate_for_host(certificate, hostname)
            log.info(f"[tls] certificate exception added for host: {hostname}")
            self.view.reload(uri)
            log.info(f"[tls] reloading {uri} with certificate exception")
        except Exception:
            log.exception(f"[tls] failed to apply certificate exception for {hostname}")
