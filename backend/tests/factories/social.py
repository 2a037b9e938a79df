"""Factory Boy definition for :class:`fancy_todo.models.social.Social`."""

from __future__ import annotations

import factory
from fancy_todo.models.social import Social
from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class SocialFactory(BaseFactory):
    class Meta:
        model = Social

    id = None
    provider = "google"
    provider_id = factory.Sequence(lambda n: f"google-sub-{n}")
    user = factory.SubFactory(UserFactory, password="")
