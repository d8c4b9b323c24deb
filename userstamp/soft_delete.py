from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

SoftDeleteCallback = Callable[[Any], None]

_before_soft_delete: dict[type, list[SoftDeleteCallback]] = {}


def listen_before_soft_delete(cls: type, fn: SoftDeleteCallback) -> None:
    """Register fn to run before instances of cls (or its subclasses) are soft-deleted."""
    _before_soft_delete.setdefault(cls, []).append(fn)


def _callbacks_for(cls: type) -> list[SoftDeleteCallback]:
    callbacks: list[SoftDeleteCallback] = []
    for klass in reversed(cls.__mro__):
        callbacks.extend(_before_soft_delete.get(klass, ()))
    return callbacks


class SoftDeleteMixin:
    """
    Soft delete support: rows are flagged instead of removed.

    Stampable models that include this mixin also get a deleter stamp.
    """
    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def soft_delete(self) -> None:
        if self.is_deleted:
            return
        for callback in _callbacks_for(type(self)):
            callback(self)
        self.is_deleted = True
        self.deleted_at = datetime.now(timezone.utc)

    def restore(self) -> None:
        self.is_deleted = False
        self.deleted_at = None
