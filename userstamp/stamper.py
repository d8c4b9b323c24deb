from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import inspect as sa_inspect

from .errors import UserstampError

_state = threading.local()


def stamper_identity(stamper: Any) -> Any:
    """
    Reduce a stamper to the value stored in a stamp column.

    Mapped instances become their primary key; anything else (an id) is
    returned unchanged.
    """
    insp = sa_inspect(stamper, raiseerr=False)
    if insp is None or not getattr(insp, "is_instance", False):
        return stamper

    identity = insp.identity
    if identity is None:
        raise UserstampError(
            f"{type(stamper).__name__} instance has no primary key yet; "
            "flush it before using it as a stamper"
        )
    return identity[0] if len(identity) == 1 else identity


def _stampers() -> dict[str, Any]:
    stampers = getattr(_state, "stampers", None)
    if stampers is None:
        stampers = _state.stampers = {}
    return stampers


class StamperMixin:
    """
    Class-level access to the entity currently credited with changes.

    Mix into the stamper model (usually User). Stampable models look up the
    current stamper through get_stamper(). Storage is per thread and per class.

    Usage:
        class User(Base, StamperMixin):
            ...

        User.set_stamper(current_user)
        ...
        User.reset_stamper()

        with User.stamper_as(admin):
            session.commit()
    """

    @classmethod
    def _stamper_key(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    @classmethod
    def set_stamper(cls, stamper: Any) -> None:
        """Set the current stamper from a mapped instance or a primary key value."""
        if stamper is None:
            cls.reset_stamper()
            return
        _stampers()[cls._stamper_key()] = stamper_identity(stamper)

    @classmethod
    def get_stamper(cls) -> Any:
        """Return the current stamper's primary key, or None."""
        return _stampers().get(cls._stamper_key())

    @classmethod
    def reset_stamper(cls) -> None:
        _stampers().pop(cls._stamper_key(), None)

    @classmethod
    @contextmanager
    def stamper_as(cls, stamper: Any) -> Iterator[Any]:
        """Temporarily switch the current stamper; the previous one is restored on exit."""
        previous = cls.get_stamper()
        cls.set_stamper(stamper)
        try:
            yield cls.get_stamper()
        finally:
            if previous is None:
                cls.reset_stamper()
            else:
                _stampers()[cls._stamper_key()] = previous
