# tests/unit/services/test_validators.py
from __future__ import annotations

import pytest
from fancy_todo.services.auth.validators import (
    EMAIL_MESSAGE,
    FIRST_NAME_MESSAGE,
    PASSWORD_MESSAGE,
    PASSWORD_REQUIRED_MESSAGE,
    USER_IDENTIFIER_MESSAGE,
    USERNAME_MESSAGE,
    validate_sign_in,
    validate_sign_up,
)


def _sign_up(**overrides):
    data = {
        "firstName": "John",
        "lastName": "Doe",
        "username": "johndoe",
        "email": "john@doe.com",
        "password": "johndoe",
    }
    data.update(overrides)
    return data


def test_valid_sign_up_has_no_errors():
    assert validate_sign_up(_sign_up()) == {}


def test_last_name_is_optional():
    data = _sign_up()
    del data["lastName"]
    assert validate_sign_up(data) == {}


def test_every_failing_field_is_reported_in_order():
    errors = validate_sign_up({"username": "a", "email": "nope", "password": "123"})
    assert list(errors) == ["firstName", "username", "email", "password"]
    assert errors == {
        "firstName": FIRST_NAME_MESSAGE,
        "username": USERNAME_MESSAGE,
        "email": EMAIL_MESSAGE,
        "password": PASSWORD_MESSAGE,
    }


@pytest.mark.parametrize("username", ["ab", "x" * 31, "john doe", "john-doe", ""])
def test_rejects_bad_usernames(username):
    assert validate_sign_up(_sign_up(username=username)) == {"username": USERNAME_MESSAGE}


@pytest.mark.parametrize("username", ["abc", "john.doe", "john_doe_99"])
def test_accepts_good_usernames(username):
    assert validate_sign_up(_sign_up(username=username)) == {}


def test_password_length_bounds():
    assert validate_sign_up(_sign_up(password="x" * 5)) == {"password": PASSWORD_MESSAGE}
    assert validate_sign_up(_sign_up(password="x" * 6)) == {}
    assert validate_sign_up(_sign_up(password="x" * 129)) == {"password": PASSWORD_MESSAGE}


def test_none_values_do_not_raise():
    errors = validate_sign_up(_sign_up(firstName=None, email=None))
    assert errors == {"firstName": FIRST_NAME_MESSAGE, "email": EMAIL_MESSAGE}


def test_none_payload_is_all_missing():
    assert set(validate_sign_up(None)) == {"firstName", "username", "email", "password"}


def test_sign_in_requires_identifier_and_password():
    assert validate_sign_in({}) == {
        "userIdentifier": USER_IDENTIFIER_MESSAGE,
        "password": PASSWORD_REQUIRED_MESSAGE,
    }


def test_sign_in_accepts_short_password():
    # Length is a sign-up rule; sign-in only reports a mismatch later.
    assert validate_sign_in({"userIdentifier": "johndoe", "password": "wrong"}) == {}


@pytest.mark.parametrize("first_name", ["   ", "\t\n"])
def test_blank_first_name_is_rejected(first_name):
    assert validate_sign_up(_sign_up(firstName=first_name)) == {"firstName": FIRST_NAME_MESSAGE}


def test_first_name_may_be_padded():
    assert validate_sign_up(_sign_up(firstName="  John ")) == {}


def test_blank_user_identifier_is_rejected():
    errors = validate_sign_in({"userIdentifier": "   ", "password": "johndoe"})
    assert errors == {"userIdentifier": USER_IDENTIFIER_MESSAGE}
