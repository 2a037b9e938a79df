"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from typing import Any

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
redis_client: redis.Redis | None = None

# Keys under ``app.extensions`` holding the auth collaborators
TOKEN_PROVIDER_KEY = "fancy_todo.token_provider"
REFRESH_STORE_KEY = "fancy_todo.refresh_store"
IDENTITY_VERIFIER_KEY = "fancy_todo.identity_verifier"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT, Redis and auth collaborators.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`fancy_todo.models` package to ensure SQLAlchemy metadata is
        ready for migrations.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from fancy_todo import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    _init_redis(app)
    _init_auth_components(app)


def _init_redis(app: Flask) -> None:
    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    redis_client = redis.Redis.from_url(redis_url)
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client


def _init_auth_components(app: Flask) -> None:
    """Build the token provider, refresh-token allowlist and Google verifier.

    Each collaborator is stored in ``app.extensions`` so request handlers
    (and tests) resolve them from the application instead of module globals.
    """
    from fancy_todo.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
    from fancy_todo.infra.oauth.google_verifier import GoogleIdentityVerifier

    app.extensions[TOKEN_PROVIDER_KEY] = JWTTokenProvider()
    app.extensions[REFRESH_STORE_KEY] = _build_refresh_store(app)

    client_id = app.config.get("GOOGLE_OAUTH_WEB_CLIENT_ID")
    app.extensions[IDENTITY_VERIFIER_KEY] = (
        GoogleIdentityVerifier(
            client_id=client_id,
            timeout=float(app.config.get("GOOGLE_OAUTH_TIMEOUT", 5)),
        )
        if client_id
        else None
    )


def _build_refresh_store(app: Flask) -> Any:
    backend = str(app.config.get("REFRESH_TOKEN_BACKEND", "sql")).lower()
    if backend == "redis":
        from fancy_todo.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore

        if redis_client is None:
            raise RuntimeError("REFRESH_TOKEN_BACKEND=redis requires REDIS_URL.")
        ttl = app.config["JWT_REFRESH_TOKEN_EXPIRES"]
        return RedisRefreshTokenStore(r=redis_client, ttl_seconds=int(ttl.total_seconds()))
    if backend != "sql":
        raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND {backend!r}.")

    from fancy_todo.infra.sql.identity_store import SQLIdentityStore
    from fancy_todo.infra.sql.sql_refresh_token_store import SQLRefreshTokenStore

    return SQLRefreshTokenStore(store=SQLIdentityStore())


def get_component(key: str) -> Any:
    """Return an auth collaborator registered on the current application."""
    try:
        return current_app.extensions[key]
    except KeyError as exc:
        raise RuntimeError(f"Component {key!r} is not initialized. Call init_app() first.") from exc
