# tests/unit/services/test_token_service.py
from __future__ import annotations

from datetime import timedelta

import pytest
from fancy_todo.infra.sql.sql_refresh_token_store import SQLRefreshTokenStore
from fancy_todo.services._shared.errors import AuthorizationError, RefreshTokenError
from fancy_todo.services._shared.ports.identity_store import InMemoryIdentityStore
from fancy_todo.services._shared.ports.refresh_token_store import InMemoryRefreshTokenStore
from fancy_todo.services._shared.ports.token_provider import StubTokenProvider
from fancy_todo.services.identity.dto import NewUser
from fancy_todo.services.tokens.dto import TokenConfig, TokenPurpose
from fancy_todo.services.tokens.service import (
    STALE_REFRESH_MESSAGE,
    TokenService,
    identity_claims,
)
from freezegun import freeze_time


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def users() -> InMemoryIdentityStore:
    store = InMemoryIdentityStore()
    store.create_user(
        NewUser(username="johndoe", email="john@doe.com", first_name="John", password="johndoe")
    )
    return store


@pytest.fixture()
def allowlist() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture()
def service(users, allowlist) -> TokenService:
    """TokenService wired to in-memory doubles with short lifetimes."""
    return TokenService(
        token_provider=StubTokenProvider(),
        allowlist=allowlist,
        users=users,
        token_cfg=TokenConfig(
            access_expires=timedelta(minutes=15), refresh_expires=timedelta(days=7)
        ),
    )


@pytest.fixture()
def claims(users):
    return identity_claims(users.find_user_by_username("johndoe"))


# -------------------------------- Tests ----------------------------------- #
def test_identity_claims_use_username_as_subject(claims):
    assert claims == {
        "sub": "johndoe",
        "email": "john@doe.com",
        "first_name": "John",
        "last_name": "",
    }


def test_issue_sign_in_appends_to_allowlist(service, allowlist, claims):
    first = service.issue(claims, TokenPurpose.SIGN_IN)
    second = service.issue(claims, TokenPurpose.SIGN_IN)

    assert first.refresh_token != second.refresh_token
    assert allowlist.list_for_user("johndoe") == [first.refresh_token, second.refresh_token]


def test_issue_sign_up_leaves_allowlist_to_the_caller(service, allowlist, claims):
    service.issue(claims, TokenPurpose.SIGN_UP)

    assert allowlist.list_for_user("johndoe") == []


class UnreachableAllowlist(InMemoryRefreshTokenStore):
    """Allowlist whose backend goes away on the first write."""

    def reset(self, username, tokens):
        raise ConnectionError("allowlist backend unreachable")


JANE = NewUser(username="janedoe", email="jane@doe.com", first_name="Jane", password="janedoe")


def test_open_first_session_seeds_a_separate_allowlist(service, users, allowlist):
    user, pair = service.open_first_session(JANE, users.create_user)

    assert user.username == "janedoe"
    assert allowlist.list_for_user("janedoe") == [pair.refresh_token]
    assert service.tokens.decode(pair.refresh_token)["email"] == "jane@doe.com"


def test_open_first_session_writes_token_with_the_user(users):
    service = TokenService(
        token_provider=StubTokenProvider(),
        allowlist=SQLRefreshTokenStore(store=users),
        users=users,
    )
    calls = []

    def create(new):
        calls.append(new.refresh_tokens)
        return users.create_user(new)

    _, pair = service.open_first_session(JANE, create)

    assert calls == [(pair.refresh_token,)]
    assert users.list_user_refresh_tokens("janedoe") == [pair.refresh_token]


def test_open_first_session_removes_user_when_allowlist_write_fails(users):
    service = TokenService(
        token_provider=StubTokenProvider(), allowlist=UnreachableAllowlist(), users=users
    )

    with pytest.raises(ConnectionError):
        service.open_first_session(JANE, users.create_user)

    assert users.find_user_by_username("janedoe") is None
    # same sign-up can be retried once the backend is back
    service.allowlist = InMemoryRefreshTokenStore()
    user, pair = service.open_first_session(JANE, users.create_user)
    assert service.allowlist.list_for_user(user.username) == [pair.refresh_token]


def test_both_tokens_carry_identity_claims(service, claims):
    pair = service.issue(claims, TokenPurpose.SIGN_IN)

    access = service.tokens.decode(pair.access_token)
    refresh = service.tokens.decode(pair.refresh_token)
    assert access["type"] == "access" and refresh["type"] == "refresh"
    for decoded in (access, refresh):
        assert decoded["sub"] == "johndoe"
        assert decoded["email"] == "john@doe.com"


def test_rotate_swaps_presented_token(service, allowlist, claims):
    other = service.issue(claims, TokenPurpose.SIGN_IN)
    pair = service.issue(claims, TokenPurpose.SIGN_IN)

    rotated = service.rotate(pair.refresh_token)

    tokens = allowlist.list_for_user("johndoe")
    assert pair.refresh_token not in tokens
    assert rotated.refresh_token in tokens
    assert other.refresh_token in tokens  # other sessions untouched


def test_rotated_token_cannot_be_replayed(service, claims):
    pair = service.issue(claims, TokenPurpose.SIGN_IN)
    service.rotate(pair.refresh_token)

    with pytest.raises(RefreshTokenError) as exc:
        service.rotate(pair.refresh_token)
    assert exc.value.message == STALE_REFRESH_MESSAGE


def test_rotate_requires_a_token(service):
    with pytest.raises(RefreshTokenError, match="Refresh token is required!"):
        service.rotate(None)


def test_rotate_rejects_access_token(service, claims):
    pair = service.issue(claims, TokenPurpose.SIGN_IN)
    with pytest.raises(RefreshTokenError, match="refresh token required"):
        service.rotate(pair.access_token)


def test_rotate_rejects_forged_token(service):
    with pytest.raises(RefreshTokenError):
        service.rotate("refresh.johndoe.999")


def test_rotate_rejects_expired_token(service, claims):
    with freeze_time("2030-01-01 00:00:00"):
        pair = service.issue(claims, TokenPurpose.SIGN_IN)
    with freeze_time("2030-01-09 00:00:00"), pytest.raises(RefreshTokenError):
        service.rotate(pair.refresh_token)


def test_rotate_rejects_vanished_identity(service, allowlist):
    ghost = {"sub": "ghost", "email": "ghost@example.com", "first_name": "", "last_name": ""}
    pair = service.issue(ghost, TokenPurpose.SIGN_IN)

    with pytest.raises(RefreshTokenError):
        service.rotate(pair.refresh_token)
    assert allowlist.contains("ghost", pair.refresh_token)


def test_revoke_removes_only_that_token(service, allowlist, claims):
    keep = service.issue(claims, TokenPurpose.SIGN_IN)
    drop = service.issue(claims, TokenPurpose.SIGN_IN)

    assert service.revoke("johndoe", drop.refresh_token) is True
    assert service.revoke("johndoe", drop.refresh_token) is False
    assert allowlist.list_for_user("johndoe") == [keep.refresh_token]


def test_identity_of_accepts_expired_when_asked(service, claims):
    with freeze_time("2030-01-01 00:00:00"):
        pair = service.issue(claims, TokenPurpose.SIGN_IN)
    with freeze_time("2030-02-01 00:00:00"):
        assert service.identity_of(pair.refresh_token) is None
        assert service.identity_of(pair.refresh_token, allow_expired=True) == "johndoe"


def test_identity_of_unknown_token_is_none(service):
    assert service.identity_of("garbage", allow_expired=True) is None


def test_verify_access(service, claims):
    pair = service.issue(claims, TokenPurpose.SIGN_IN)

    assert service.verify_access(pair.access_token)["sub"] == "johndoe"
    for bad in (None, "", pair.refresh_token, "access.johndoe.404"):
        with pytest.raises(AuthorizationError, match="unauthenticated"):
            service.verify_access(bad)


def test_access_token_expires(service, claims):
    with freeze_time("2030-01-01 00:00:00"):
        pair = service.issue(claims, TokenPurpose.SIGN_IN)
    with freeze_time("2030-01-01 00:16:00"), pytest.raises(AuthorizationError):
        service.verify_access(pair.access_token)
