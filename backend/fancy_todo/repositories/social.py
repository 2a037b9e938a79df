"""Social identity repository."""

from __future__ import annotations

from typing import cast

from sqlalchemy import delete, select

from fancy_todo.models.social import Social
from fancy_todo.repositories.base import BaseRepository


class SocialRepository(BaseRepository[Social]):
    """Persistence-only repository for :class:`Social` links."""

    model = Social

    def _filterable_fields(self):
        return {
            "provider": Social.provider,
            "provider_id": Social.provider_id,
            "user_id": Social.user_id,
        }

    def get_by_provider_subject(self, provider: str, provider_id: str) -> Social | None:
        """Fetch the link for ``(provider, provider_id)`` if any."""
        stmt = select(Social).where(
            Social.provider == provider,
            Social.provider_id == provider_id,
        )
        return cast(Social | None, self.session.execute(stmt).scalars().first())

    def delete_for_user(self, user_id: int) -> int:
        """Delete every link of the user."""
        stmt = delete(Social).where(Social.user_id == user_id)
        result = self.session.execute(stmt.execution_options(synchronize_session=False))
        self.session.expire_all()
        return int(result.rowcount or 0)
