# tests/unit/services/test_authorization_guard.py
from __future__ import annotations

import pytest
from fancy_todo.services._shared.errors import AuthorizationError
from fancy_todo.services._shared.ports.identity_store import InMemoryIdentityStore
from fancy_todo.services.authorization.guard import (
    NOT_AUTHORIZED_TO_DO,
    AccessRequest,
    AuthorizationGuard,
)
from fancy_todo.services.identity.dto import NewUser
from tests.helpers.utils import not_raises


@pytest.fixture()
def store() -> InMemoryIdentityStore:
    store = InMemoryIdentityStore()
    for name in ("johndoe", "janedoe"):
        store.create_user(NewUser(username=name, email=f"{name}@example.com", first_name=name))
    return store


@pytest.fixture()
def guard(store) -> AuthorizationGuard:
    return AuthorizationGuard(store)


class Recorder:
    """Continuation that records whether it ran."""

    def __init__(self) -> None:
        self.called = 0

    def __call__(self) -> str:
        self.called += 1
        return "proceeded"


def _req(identity="johndoe", **params) -> AccessRequest:
    return AccessRequest(path_params=params, identity=identity)


class TestAuthorizeUser:
    def test_existing_user_proceeds(self, guard):
        proceed = Recorder()
        assert guard.authorize_user(_req(username="johndoe"), proceed) == "proceeded"
        assert proceed.called == 1

    @pytest.mark.parametrize("params", [{"username": "ghost"}, {}])
    def test_missing_user_is_denied(self, guard, params):
        proceed = Recorder()
        with pytest.raises(AuthorizationError, match="You are unauthorized!"):
            guard.authorize_user(_req(**params), proceed)
        assert proceed.called == 0


class TestAuthorizeActor:
    def test_owner_proceeds(self, guard):
        with not_raises(AuthorizationError):
            guard.authorize_actor(_req(username="johndoe"), Recorder())

    @pytest.mark.parametrize("identity", ["janedoe", None])
    def test_other_or_anonymous_is_denied(self, guard, identity):
        proceed = Recorder()
        with pytest.raises(AuthorizationError, match=NOT_AUTHORIZED_TO_DO):
            guard.authorize_actor(_req(identity, username="johndoe"), proceed)
        assert proceed.called == 0


class TestAuthorizeTodo:
    def test_owned_todo_proceeds(self, guard, store):
        todo = store.add_todo("johndoe", "Write tests")
        proceed = Recorder()
        guard.authorize_todo(_req(username="johndoe", todo_id=str(todo.id)), proceed)
        assert proceed.called == 1

    def test_foreign_todo_is_denied(self, guard, store):
        todo = store.add_todo("janedoe", "Not yours")
        with pytest.raises(AuthorizationError, match=NOT_AUTHORIZED_TO_DO):
            guard.authorize_todo(_req(username="johndoe", todo_id=todo.id), Recorder())

    @pytest.mark.parametrize("todo_id", ["9999", "abc", "-1", None, True])
    def test_missing_or_malformed_id_is_denied(self, guard, todo_id):
        with pytest.raises(AuthorizationError, match=NOT_AUTHORIZED_TO_DO):
            guard.authorize_todo(_req(username="johndoe", todo_id=todo_id), Recorder())


class TestChain:
    def test_runs_gates_in_order_then_proceeds(self, guard, store):
        todo = store.add_todo("johndoe", "Chained")
        proceed = Recorder()
        gates = [guard.authorize_user, guard.authorize_actor, guard.authorize_todo]

        result = guard.chain(_req(username="johndoe", todo_id=todo.id), gates, proceed)

        assert result == "proceeded"
        assert proceed.called == 1

    def test_first_failing_gate_stops_the_chain(self, guard, store):
        todo = store.add_todo("johndoe", "Chained")
        proceed = Recorder()
        gates = [guard.authorize_user, guard.authorize_actor, guard.authorize_todo]

        with pytest.raises(AuthorizationError, match=NOT_AUTHORIZED_TO_DO):
            guard.chain(_req("janedoe", username="johndoe", todo_id=todo.id), gates, proceed)
        assert proceed.called == 0

    def test_no_gates_just_proceeds(self, guard):
        assert guard.chain(_req(), [], Recorder()) == "proceeded"
