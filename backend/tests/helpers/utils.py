"""Small assertion helpers shared by the test modules."""

from __future__ import annotations

from contextlib import contextmanager


@contextmanager
def not_raises(exception: type[BaseException]):
    """Fail the test, instead of erroring, when ``exception`` escapes the block."""
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Unexpectedly raised {exception.__name__}: {exc}") from exc
