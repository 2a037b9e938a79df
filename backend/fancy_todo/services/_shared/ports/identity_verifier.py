from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class IdentityVerificationError(Exception):
    """Raised when a third-party ID token cannot be verified."""


@dataclass(frozen=True, slots=True)
class VerifiedIdentity:
    """
    Claims extracted from a verified third-party ID token.

    :ivar subject: Provider-stable account id (``sub``).
    :ivar email: Account email, lower-cased.
    :ivar given_name: First name, may be empty.
    :ivar family_name: Last name, may be empty.
    :ivar picture: Profile image URL, if any.
    """

    subject: str
    email: str
    given_name: str = ""
    family_name: str = ""
    picture: str | None = None


class IdentityVerifier(Protocol):
    """Port verifying a third-party ID token against its issuer."""

    #: Provider name recorded on social links (e.g. ``"google"``).
    provider: str

    def verify(self, id_token: str) -> VerifiedIdentity:
        """Return the verified identity or raise :class:`IdentityVerificationError`."""
        ...


class StubIdentityVerifier(IdentityVerifier):
    """Verifier backed by a fixed ``token -> identity`` mapping, for tests."""

    provider = "google"

    def __init__(self, identities: dict[str, VerifiedIdentity] | None = None) -> None:
        self.identities = dict(identities or {})
        self.calls: list[str] = []

    def verify(self, id_token: str) -> VerifiedIdentity:
        self.calls.append(id_token)
        try:
            return self.identities[id_token]
        except KeyError as exc:
            raise IdentityVerificationError("Unknown ID token.") from exc
