# fancy_todo/services/tokens/service.py
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any

from fancy_todo.services._shared.errors import AuthorizationError, RefreshTokenError
from fancy_todo.services._shared.ports.identity_store import IdentityStore
from fancy_todo.services._shared.ports.refresh_token_store import RefreshTokenStore
from fancy_todo.services._shared.ports.token_provider import InvalidTokenError, TokenProvider
from fancy_todo.services.identity.dto import NewUser, UserRecord
from fancy_todo.services.tokens.dto import TokenConfig, TokenPair, TokenPurpose

log = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

STALE_REFRESH_MESSAGE = "Refresh token is no longer valid, please sign in again!"


def identity_claims(user: UserRecord | NewUser) -> dict[str, Any]:
    """Claims embedded in both tokens of a pair; ``sub`` is the username."""
    return {
        "sub": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
    }


class TokenService:
    """
    Issue, rotate and revoke access/refresh token pairs.

    Access tokens are stateless. A refresh token is honoured only while it
    sits in its owner's allowlist. Sign-in appends to it and sign-up seeds
    it with the first token. Rotation swaps the presented token for the new
    one; sign-out removes exactly the presented token.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        allowlist: RefreshTokenStore,
        users: IdentityStore,
        token_cfg: TokenConfig | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for signing/decoding JWTs.
        :param allowlist: Per-identity refresh-token allowlist.
        :param users: Identity store, consulted when rotating.
        :param token_cfg: Access/Refresh expiry configuration.
        """
        self.tokens = token_provider
        self.allowlist = allowlist
        self.users = users
        self.cfg = token_cfg or TokenConfig()

    # ------------------------------------------------------------------ #
    # Minting
    # ------------------------------------------------------------------ #

    def _mint(self, claims: Mapping[str, Any]) -> TokenPair:
        extra = dict(claims)
        identity = str(extra.pop("sub"))
        access = self.tokens.create_access_token(
            identity=identity,
            additional_claims=extra,
            expires_delta=self.cfg.access_expires,
        )
        refresh = self.tokens.create_refresh_token(
            identity=identity,
            additional_claims=extra,
            expires_delta=self.cfg.refresh_expires,
        )
        return TokenPair(access_token=access, refresh_token=refresh)

    def issue(self, claims: Mapping[str, Any], purpose: TokenPurpose) -> TokenPair:
        """
        Mint a token pair for ``claims["sub"]``.

        Both purposes sign the same claims the same way. ``SIGN_IN`` adds the
        refresh token to the allowlist next to the sessions already open on
        other devices; a ``SIGN_UP`` pair belongs to a user that does not
        exist yet and is persisted by :meth:`open_first_session`.

        :param claims: Output of :func:`identity_claims`.
        :param purpose: :class:`TokenPurpose` of the pair.
        :returns: The new token pair.
        """
        pair = self._mint(claims)
        if purpose is TokenPurpose.SIGN_IN:
            self.allowlist.append(str(claims["sub"]), pair.refresh_token)
        return pair

    def open_first_session(
        self,
        new: NewUser,
        create_user: Callable[[NewUser], UserRecord],
    ) -> tuple[UserRecord, TokenPair]:
        """
        Create ``new`` with a fresh pair whose refresh token is its only
        allowlist entry.

        When the allowlist lives in the identity store the token is inserted
        with the user in one transaction. Otherwise the allowlist is seeded
        right after, and the user is deleted again if that write fails, so a
        retried sign-up starts from a clean slate.

        :param new: User to create; its claims sign the pair.
        :param create_user: Persists ``new`` (e.g. with a social link).
        :raises AlreadyExistsError: From ``create_user``.
        """
        pair = self.issue(identity_claims(new), TokenPurpose.SIGN_UP)
        if self.allowlist.stored_with_identity:
            user = create_user(replace(new, refresh_tokens=(pair.refresh_token,)))
            return user, pair

        user = create_user(new)
        try:
            self.allowlist.reset(user.username, [pair.refresh_token])
        except Exception:
            log.error("auth.sign_up_rolled_back", extra={"username": user.username}, exc_info=True)
            self.users.delete_user(user.username)
            raise
        return user, pair

    def create_api_key(self, username: str, email: str) -> str:
        """Opaque, non-expiring key identifying the account to API clients."""
        return self.tokens.create_api_key(identity=username, claims={"email": email})

    # ------------------------------------------------------------------ #
    # Rotation
    # ------------------------------------------------------------------ #

    def rotate(self, presented: str | None) -> TokenPair:
        """
        Exchange an allowlisted refresh token for a brand-new pair.

        The allowlist swap is a single atomic store operation, so of two
        concurrent rotations of the same token only one succeeds.

        :param presented: Refresh token read from the transport.
        :raises RefreshTokenError: Missing, invalid, expired or non-refresh
            token; vanished identity; token not (or no longer) allowlisted.
        """
        if not presented:
            raise RefreshTokenError("Refresh token is required!")

        try:
            claims = self.tokens.decode(presented)
        except InvalidTokenError as exc:
            log.warning("auth.refresh_rejected", extra={"reason": "invalid_token"})
            raise RefreshTokenError() from exc

        if claims.get("type") != REFRESH_TOKEN_TYPE:
            log.warning("auth.refresh_rejected", extra={"reason": "wrong_type"})
            raise RefreshTokenError("Wrong token type: refresh token required.")

        username = str(claims.get("sub") or "")
        user = self.users.find_user_by_username(username) if username else None
        if user is None:
            log.warning(
                "auth.refresh_rejected", extra={"username": username, "reason": "unknown_user"}
            )
            raise RefreshTokenError()

        pair = self._mint(identity_claims(user))
        if not self.allowlist.swap(username, presented, pair.refresh_token):
            log.warning(
                "auth.refresh_rejected", extra={"username": username, "reason": "not_allowlisted"}
            )
            raise RefreshTokenError(STALE_REFRESH_MESSAGE)
        return pair

    # ------------------------------------------------------------------ #
    # Revocation & decoding
    # ------------------------------------------------------------------ #

    def revoke(self, username: str, refresh_token: str) -> bool:
        """
        Remove exactly ``refresh_token`` from the allowlist. Idempotent.

        :returns: ``True`` if the token was listed.
        """
        return self.allowlist.remove(username, refresh_token)

    def identity_of(self, token: str, *, allow_expired: bool = False) -> str | None:
        """Subject of ``token``, or ``None`` when it cannot be decoded."""
        try:
            claims = self.tokens.decode(token, allow_expired=allow_expired)
        except InvalidTokenError:
            return None
        sub = claims.get("sub")
        return str(sub) if sub else None

    def verify_access(self, token: str | None) -> dict[str, Any]:
        """
        Decoded claims of a valid access token.

        :raises AuthorizationError: Missing, invalid, expired or non-access token.
        """
        if not token:
            raise AuthorizationError("You are unauthenticated!")
        try:
            claims = self.tokens.decode(token)
        except InvalidTokenError as exc:
            raise AuthorizationError("You are unauthenticated!") from exc
        if claims.get("type") != ACCESS_TOKEN_TYPE or not claims.get("sub"):
            raise AuthorizationError("You are unauthenticated!")
        return claims
