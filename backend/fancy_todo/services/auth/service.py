# fancy_todo/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fancy_todo.services._shared.errors import (
    AlreadyExistsError,
    AuthorizationError,
    BadRequestError,
    NotFoundError,
    RefreshTokenError,
    ValidationError,
)
from fancy_todo.services._shared.ports.identity_store import IdentityStore
from fancy_todo.services._shared.ports.identity_verifier import (
    IdentityVerificationError,
    IdentityVerifier,
)
from fancy_todo.services.auth.dto import AuthResult, RefreshResult, SyncResult
from fancy_todo.services.auth.validators import validate_sign_in, validate_sign_up
from fancy_todo.services.identity.dto import NewSocial, NewUser
from fancy_todo.services.tokens.dto import TokenPurpose
from fancy_todo.services.tokens.service import TokenService, identity_claims

log = logging.getLogger(__name__)

SIGN_UP_FAILED = "Failed to sign up, please correct user information!"
SIGN_IN_FAILED = "Failed to sign in, please correct user information!"
USER_NOT_FOUND = "User not found, please sign up first!"


class AuthService:
    """
    Authentication lifecycle service (sign-up / sign-in / refresh / sign-out / sync).

    The service only decides outcomes: it never touches cookies or HTTP.
    Failures are raised as :mod:`fancy_todo.services._shared.errors` types
    and translated at the API boundary.
    """

    def __init__(
        self,
        *,
        store: IdentityStore,
        tokens: TokenService,
        verifier: IdentityVerifier | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param store: Identity persistence.
        :param tokens: Token pair issuing/rotation.
        :param verifier: Third-party ID token verifier; ``None`` disables
            social sign-in.
        """
        self.store = store
        self.tokens = tokens
        self.verifier = verifier

    # ------------------------------------------------------------------ #
    # Sign-up
    # ------------------------------------------------------------------ #

    def sign_up(self, data: Mapping[str, Any]) -> AuthResult:
        """
        Create a local account and open its first session.

        :raises ValidationError: One entry per invalid field.
        :raises AlreadyExistsError: Username (checked first) or email taken.
        """
        errors = validate_sign_up(data)
        if errors:
            raise ValidationError.from_field_errors(SIGN_UP_FAILED, errors)

        username = str(data["username"]).strip()
        email = str(data["email"]).strip().lower()

        existing = self.store.find_user_by_username_or_email(username, email)
        if existing is not None:
            taken = existing.username == username or (
                self.store.find_user_by_username(username) is not None
            )
            raise AlreadyExistsError("username" if taken else "email")

        new = NewUser(
            username=username,
            email=email,
            first_name=str(data["firstName"]).strip(),
            last_name=str(data.get("lastName") or "").strip(),
            password=str(data["password"]),
            api_key=self.tokens.create_api_key(username, email),
            is_username_set=True,
            verified=False,
        )
        user, pair = self.tokens.open_first_session(new, self.store.create_user)
        log.info("auth.sign_up", extra={"username": user.username, "provider": "local"})
        return AuthResult(user=user, tokens=pair, created=True, message="Successfully signed up!")

    # ------------------------------------------------------------------ #
    # Sign-in (local)
    # ------------------------------------------------------------------ #

    def sign_in(self, data: Mapping[str, Any]) -> AuthResult:
        """
        Authenticate a username-or-email and password pair.

        :raises NotFoundError: No account matches the identifier.
        :raises BadRequestError: Generic credential mismatch, also for
            accounts that never set a password.
        """
        errors = validate_sign_in(data)
        if errors:
            raise ValidationError.from_field_errors(SIGN_IN_FAILED, errors)

        identifier = str(data["userIdentifier"]).strip()
        user = self.store.find_user_by_username_or_email(identifier)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)

        if not user.verify_password(str(data["password"])):
            log.warning(
                "auth.sign_in_failed", extra={"username": user.username, "reason": "bad_password"}
            )
            raise BadRequestError()

        pair = self.tokens.issue(identity_claims(user), TokenPurpose.SIGN_IN)
        log.info("auth.sign_in", extra={"username": user.username, "provider": "local"})
        return AuthResult(user=user, tokens=pair, created=False, message="Successfully signed in!")

    # ------------------------------------------------------------------ #
    # Sign-in (OAuth)
    # ------------------------------------------------------------------ #

    def social_sign_in(self, id_token: str | None) -> AuthResult:
        """
        Sign in (or up) with a third-party ID token.

        Unknown email: a password-less user named after the provider subject
        is created together with its social link (201). Known email: the
        missing link is added if needed and a session opens (200).

        :raises AuthorizationError: Verification failed, or the provider
            account is already linked to another user.
        """
        if self.verifier is None:
            raise BadRequestError("Social sign-in is not available!")
        if not id_token:
            raise ValidationError.from_field_errors(
                SIGN_IN_FAILED, {"googleIdToken": "Google ID token is required!"}
            )

        try:
            identity = self.verifier.verify(id_token)
        except IdentityVerificationError as exc:
            log.warning(
                "auth.social_rejected",
                extra={"provider": self.verifier.provider, "reason": str(exc)},
            )
            raise AuthorizationError("Failed to verify your account, please try again!") from exc

        provider = self.verifier.provider
        link = NewSocial(provider=provider, provider_id=identity.subject)
        social = self.store.find_social_by_provider_and_subject(provider, identity.subject)
        user = self.store.find_user_by_email(identity.email)

        if user is None:
            if social is not None:
                # The provider account belongs to a user whose email changed.
                raise AuthorizationError()
            email = identity.email.strip().lower()
            new = NewUser(
                username=identity.subject,
                email=email,
                first_name=identity.given_name,
                last_name=identity.family_name,
                password=None,
                api_key=self.tokens.create_api_key(identity.subject, email),
                is_username_set=True,
                verified=False,
                profile_image_url=identity.picture,
            )
            user, pair = self.tokens.open_first_session(
                new, lambda n: self.store.create_user(n, social=link)
            )
            log.info("auth.sign_up", extra={"username": user.username, "provider": provider})
            return AuthResult(
                user=user, tokens=pair, created=True, message="Successfully signed up!"
            )

        if social is None:
            self.store.create_social(user.id, link)
        elif social.user_id != user.id:
            raise AuthorizationError()

        pair = self.tokens.issue(identity_claims(user), TokenPurpose.SIGN_IN)
        log.info("auth.sign_in", extra={"username": user.username, "provider": provider})
        return AuthResult(user=user, tokens=pair, created=False, message="Successfully signed in!")

    # ------------------------------------------------------------------ #
    # Refresh / sign-out
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str | None) -> RefreshResult:
        """
        Rotate ``refresh_token``.

        :raises AuthorizationError: Any :class:`RefreshTokenError`.
        """
        try:
            pair = self.tokens.rotate(refresh_token)
        except RefreshTokenError as exc:
            raise AuthorizationError(exc.message) from exc
        return RefreshResult(tokens=pair)

    def sign_out(self, refresh_token: str | None) -> bool:
        """
        Revoke ``refresh_token`` if one was presented. Never fails.

        Expired tokens still identify their owner. A token that cannot be
        decoded at all revokes nothing.

        :returns: ``True`` if a listed token was removed.
        """
        if not refresh_token:
            return False

        username = self.tokens.identity_of(refresh_token, allow_expired=True)
        if username is None:
            log.warning("auth.sign_out", extra={"reason": "undecodable_token"})
            return False

        revoked = self.tokens.revoke(username, refresh_token)
        log.info("auth.sign_out", extra={"username": username})
        return revoked

    # ------------------------------------------------------------------ #
    # Sync
    # ------------------------------------------------------------------ #

    def sync(self, username: str | None) -> SyncResult:
        """
        Profile and incomplete todos of the authenticated ``username``.

        :raises AuthorizationError: The identity no longer exists.
        """
        user = self.store.find_user_by_username(username) if username else None
        if user is None:
            raise AuthorizationError()
        todos = self.store.find_incomplete_todos_by_username(user.username)
        return SyncResult(user=user, todos=todos)
