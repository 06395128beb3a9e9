# tlstrust_core/engine/__init__.py
from tlstrust_core.engine.engine_base import BaseBrowserView, BaseConsentSurface
from tlstrust_core.engine.engine_local import LocalBrowserView, LocalConsentSurface

__all__ = [
    "BaseBrowserView",
    "BaseConsentSurface",
    "LocalBrowserView",
    "LocalConsentSurface",
]
