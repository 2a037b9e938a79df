"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    ``Secure`` session cookies are only emitted correctly when Flask sees the
    original scheme, so deployments behind a TLS-terminating proxy keep this
    on. ``USE_PROXYFIX`` (default ``True``) toggles it and ``PROXYFIX_HOPS``
    (default 1) sets how many ``X-Forwarded-*`` hops are trusted.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXYFIX_HOPS", 1))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops)
