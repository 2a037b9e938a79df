"""
fancy_todo.services._shared.ports
=================================

Collection of *ports* (hexagonal interfaces) that define the contracts for
token management, identity persistence and third-party identity verification.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`, the abstraction for JWT creation and decoding.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, the per-identity refresh-token allowlist.

- :mod:`identity_store`:
    Defines :class:`~.IdentityStore`, the persistence contract for users,
    social links, todos and the allowlist rows.

- :mod:`identity_verifier`:
    Defines :class:`~.IdentityVerifier`, verification of third-party ID tokens.

Design Notes
------------
Concrete adapters (SQL, Redis, flask-jwt-extended, Google) live under
``fancy_todo.infra``; the in-memory/stub implementations beside each port
back the unit tests.
"""

from __future__ import annotations

from .identity_store import IdentityStore, InMemoryIdentityStore
from .identity_verifier import (
    IdentityVerificationError,
    IdentityVerifier,
    StubIdentityVerifier,
    VerifiedIdentity,
)
from .refresh_token_store import InMemoryRefreshTokenStore, RefreshTokenStore
from .token_provider import InvalidTokenError, StubTokenProvider, TokenProvider

__all__ = [
    "TokenProvider",
    "InvalidTokenError",
    "StubTokenProvider",
    "RefreshTokenStore",
    "InMemoryRefreshTokenStore",
    "IdentityStore",
    "InMemoryIdentityStore",
    "IdentityVerifier",
    "IdentityVerificationError",
    "VerifiedIdentity",
    "StubIdentityVerifier",
]
