from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from userstamp import SoftDeleteMixin, StamperMixin, UserstampConfig, stampable

DEFAULT_NAMING = UserstampConfig(compatibility_mode=False)
LEGACY_NAMING = UserstampConfig(compatibility_mode=True)


class Base(DeclarativeBase):
    pass


class User(StamperMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(64))


class Person(StamperMixin, Base):
    __tablename__ = "people"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(64))


@stampable(config=DEFAULT_NAMING)
class Post(Base):
    """Stamped from the before_flush hook (the default)."""
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    creator_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updater_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


@stampable(use_before_validation_hooks=False, config=DEFAULT_NAMING)
class Comment(Base):
    """Stamped from mapper before_insert / before_update."""
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    body: Mapped[str] = mapped_column(String(255))
    creator_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updater_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


@stampable(
    creator_attribute="create_user",
    updater_attribute="update_user",
    config=DEFAULT_NAMING,
)
class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    label: Mapped[str] = mapped_column(String(64))
    create_user: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    update_user: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


@stampable(stamper_class_name="person", config=LEGACY_NAMING)
class Document(SoftDeleteMixin, Base):
    """Legacy column names, soft-deletable, stamped by Person."""
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    deleted_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class Unstamped(Base):
    __tablename__ = "unstamped"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
