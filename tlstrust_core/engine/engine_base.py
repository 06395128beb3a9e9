from __future__ import annotations
from typing import Any, Awaitable, Sequence


class BaseBrowserView:
    """
    Contract for the rendering engine's browser view.

    Both methods are only ever called on the UI event loop.
    `allow_certificate_for_host` must precede `reload` so the retried load
    does not hit the same failure.
    """
    name: str = "base"

    def allow_certificate_for_host(self, certificate: Any, hostname: str) -> None:
        raise NotImplementedError

    def reload(self, uri: str) -> None:
        raise NotImplementedError


class BaseConsentSurface:
    """
    Contract for the surface that asks the user (e.g. a native alert dialog).

    `present_choice` is called on the UI event loop and returns an awaitable
    that resolves to the index of the chosen option. Raising, or resolving
    with an exception, means the prompt failed.
    """
    name: str = "base"

    def present_choice(
        self,
        title: str,
        detail_lines: Sequence[str],
        options: Sequence[str],
        default_option: int,
        cancel_option: int,
    ) -> Awaitable[int]:
        raise NotImplementedError
