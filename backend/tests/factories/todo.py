"""Factory Boy definition for :class:`fancy_todo.models.todo.Todo`."""

from __future__ import annotations

import factory
from fancy_todo.models.todo import Todo
from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class TodoFactory(BaseFactory):
    """Persisted todo; owned by a fresh user unless ``username`` is given."""

    class Meta:
        model = Todo

    id = None
    username = factory.LazyFunction(lambda: UserFactory().username)
    name = factory.Faker("sentence", nb_words=3)
    description = None
    due_date = None
    completed = False
