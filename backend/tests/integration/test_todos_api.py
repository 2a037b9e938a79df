"""Todo routes behind authentication and ownership gates."""

from __future__ import annotations

import pytest
from fancy_todo.api.transport import CSRF_COOKIE
from tests.factories.todo import TodoFactory

API = "/api/v1"


def _sign_up(client, username, **extra):
    payload = {
        "firstName": username.capitalize(),
        "username": username,
        "email": f"{username}@example.com",
        "password": username,
        **extra,
    }
    resp = client.post(f"{API}/auth/signup", json=payload)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["tokens"]


def _bearer(tokens):
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


@pytest.fixture()
def john(client):
    return _sign_up(client, "johndoe")


@pytest.fixture()
def jane(app):
    return _sign_up(app.test_client(), "janedoe")


def test_johndoe_scenario(app, client):
    signed_up = client.post(
        f"{API}/auth/signup",
        json={
            "firstName": "John",
            "lastName": "Doe",
            "username": "johndoe",
            "email": "john@doe.com",
            "password": "johndoe",
        },
    )
    assert signed_up.status_code == 201
    assert signed_up.get_json()["user"]["isPasswordSet"] is True

    missing = client.post(
        f"{API}/auth/signin", json={"userIdentifier": "doejohn", "password": "doejohn"}
    )
    assert missing.status_code == 404
    assert missing.get_json()["message"] == "User not found, please sign up first!"

    wrong = client.post(
        f"{API}/auth/signin", json={"userIdentifier": "johndoe", "password": "wrong"}
    )
    assert wrong.status_code == 400
    assert wrong.get_json()["message"] == "Wrong username or password!"

    created = client.post(
        f"{API}/johndoe/todos",
        json={"name": "Create Client using Vue.js", "dueDate": "2030-01-01T10:00:00+00:00"},
    )
    assert created.status_code == 201
    body = created.get_json()
    assert body["message"] == "Successfully created todo!"
    assert body["todo"]["name"] == "Create Client using Vue.js"
    todo_id = body["todo"]["id"]

    other = _sign_up(app.test_client(), "janedoe")
    hijack = app.test_client().put(
        f"{API}/johndoe/todos/{todo_id}", json={"name": "Install MySQL"}, headers=_bearer(other)
    )
    assert hijack.status_code == 401

    updated = client.put(f"{API}/johndoe/todos/{todo_id}", json={"name": "Install MySQL"})
    assert updated.status_code == 200
    assert updated.get_json()["todo"]["name"] == "Install MySQL"
    assert updated.get_json()["message"] == "Successfully updated todo!"


def test_list_and_filter(client, john):
    TodoFactory(username="johndoe", name="done", completed=True)
    TodoFactory(username="johndoe", name="pending")

    everything = client.get(f"{API}/johndoe/todos").get_json()["todos"]
    pending = client.get(f"{API}/johndoe/todos?completed=false").get_json()["todos"]

    assert sorted(t["name"] for t in everything) == ["done", "pending"]
    assert [t["name"] for t in pending] == ["pending"]


def test_sync_lists_only_incomplete_todos(client, john):
    TodoFactory(username="johndoe", name="done", completed=True)
    TodoFactory(username="johndoe", name="pending")

    body = client.get(f"{API}/users/sync").get_json()

    assert [t["name"] for t in body["todos"]] == ["pending"]


def test_patch_and_delete(client, john):
    todo = TodoFactory(username="johndoe", name="Install MongoDB")

    patched = client.patch(f"{API}/johndoe/todos/{todo.id}", json={"completed": True})
    assert patched.status_code == 200
    assert patched.get_json()["todo"]["completed"] is True

    deleted = client.delete(f"{API}/johndoe/todos/{todo.id}")
    assert deleted.status_code == 200
    assert deleted.get_json()["message"] == "Successfully deleted todo!"

    again = client.delete(f"{API}/johndoe/todos/{todo.id}")
    assert again.status_code == 401


def test_create_requires_name(client, john):
    resp = client.post(f"{API}/johndoe/todos", json={"description": "no name"})
    assert resp.status_code == 400
    assert resp.get_json()["messages"][0]["name"] == "name"


@pytest.mark.parametrize("method", ["put", "patch", "delete"])
def test_foreign_todo_under_own_path_is_denied(client, john, jane, method):
    foreign = TodoFactory(username="janedoe")

    resp = getattr(client, method)(f"{API}/johndoe/todos/{foreign.id}", json={"name": "x"})

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "You are not authorized to do this!"


def test_unknown_or_malformed_todo_id_is_denied_not_404(client, john):
    assert client.put(f"{API}/johndoe/todos/9999", json={"name": "x"}).status_code == 401
    assert client.put(f"{API}/johndoe/todos/abc", json={"name": "x"}).status_code == 401


def test_unknown_path_user_is_denied(client, john):
    resp = client.get(f"{API}/ghost/todos")
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "You are unauthorized!"


def test_other_users_collection_is_denied(client, john, jane):
    resp = client.post(f"{API}/janedoe/todos", json={"name": "spam"})
    assert resp.status_code == 401


def test_unauthenticated_requests_are_rejected(app, john):
    resp = app.test_client().get(f"{API}/johndoe/todos")
    assert resp.status_code == 401


# ---------------------------------- CSRF ---------------------------------- #
@pytest.fixture()
def csrf_on(app, monkeypatch):
    monkeypatch.setitem(app.config, "WTF_CSRF_ENABLED", True)


def test_cookie_session_needs_csrf_header_on_writes(client, csrf_on):
    tokens = _sign_up(client, "johndoe")

    blocked = client.post(f"{API}/johndoe/todos", json={"name": "no header"})
    assert blocked.status_code == 401

    allowed = client.post(
        f"{API}/johndoe/todos",
        json={"name": "with header"},
        headers={"X-XSRF-TOKEN": tokens["csrfToken"]},
    )
    assert allowed.status_code == 201
    assert client.get_cookie(CSRF_COOKIE).value == tokens["csrfToken"]


def test_cookie_session_reads_skip_csrf(client, csrf_on):
    _sign_up(client, "johndoe")
    assert client.get(f"{API}/johndoe/todos").status_code == 200


def test_bearer_clients_skip_csrf(app, client, csrf_on):
    tokens = _sign_up(client, "johndoe")

    resp = app.test_client().post(
        f"{API}/johndoe/todos", json={"name": "api client"}, headers=_bearer(tokens)
    )

    assert resp.status_code == 201
