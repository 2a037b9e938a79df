# fancy_todo/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum


class TokenPurpose(str, Enum):
    """Why a token pair is being minted."""

    SIGN_UP = "signUp"
    SIGN_IN = "signIn"


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Access and refresh tokens issued together.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
