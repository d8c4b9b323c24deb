from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import event
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper, Session, foreign, object_session, relationship, remote

from .config import StampableConfig, StampHooks, UserstampConfig, get_config
from .errors import ConfigurationError, NotStampableError
from .metrics import NO_STAMPER, STAMPED, SUPPRESSED, observe_stamp
from .soft_delete import SoftDeleteMixin, listen_before_soft_delete
from .stamper import stamper_identity

logger = logging.getLogger(__name__)

_SETTINGS_ATTR = "__userstamp__"

ROLES = ("creator", "updater", "deleter")


def stampable(
    cls: Optional[type] = None,
    /,
    *,
    stamper_class_name: str | type = "user",
    creator_attribute: Optional[str] = None,
    updater_attribute: Optional[str] = None,
    deleter_attribute: Optional[str] = None,
    use_before_validation_hooks: bool = True,
    config: Optional[UserstampConfig] = None,
) -> Any:
    """
    Enable userstamping on a mapped class.

    Usable as a bare decorator, a decorator factory, or a plain call:

        @stampable
        class Post(Base):
            ...

        @stampable(stamper_class_name="person", creator_attribute="create_user")
        class Post(Base):
            ...

        stampable(Post)

    Attribute names default to the configured column naming scheme. A role is
    only wired when the class actually has its attribute; the deleter role also
    requires SoftDeleteMixin.

    With use_before_validation_hooks (the default), stamps are applied from a
    Session.before_flush listener, before any mapper-level work happens.
    Otherwise the mapper's before_insert / before_update events are used.

    Raises:
        NotStampableError: If cls is not a mapped class
        ConfigurationError: If cls was already made stampable
    """

    def decorate(target: type) -> type:
        _make_stampable(
            target,
            StampableConfig.from_options(
                config or get_config(),
                stamper_class_name=stamper_class_name,
                creator_attribute=creator_attribute,
                updater_attribute=updater_attribute,
                deleter_attribute=deleter_attribute,
                use_before_validation_hooks=use_before_validation_hooks,
            ),
        )
        return target

    if cls is None:
        return decorate
    return decorate(cls)


def _make_stampable(cls: type, settings: StampableConfig) -> None:
    mapper = sa_inspect(cls, raiseerr=False)
    if not isinstance(mapper, Mapper):
        raise NotStampableError(f"{cls.__name__} is not a mapped class")
    if _SETTINGS_ATTR in cls.__dict__:
        raise ConfigurationError(f"{cls.__name__} is already stampable")

    settings.hooks = StampHooks(
        creator=hasattr(cls, settings.creator_attribute),
        updater=hasattr(cls, settings.updater_attribute),
        deleter=issubclass(cls, SoftDeleteMixin) and hasattr(cls, settings.deleter_attribute),
        on_validation=settings.use_before_validation_hooks,
    )
    setattr(cls, _SETTINGS_ATTR, settings)

    if any(getattr(settings.hooks, role) for role in ROLES):
        if mapper.configured:
            _declare_stamper_relationships(mapper, cls)
        else:
            event.listen(cls, "before_mapper_configured", _declare_stamper_relationships)

    if not settings.hooks.on_validation:
        event.listen(cls, "before_insert", _stamp_before_insert, propagate=True)
        event.listen(cls, "before_update", _stamp_before_update, propagate=True)

    if settings.hooks.deleter:
        listen_before_soft_delete(cls, set_deleter_attribute)

    logger.debug("Userstamping enabled for %s: %r", cls.__name__, settings)


def _declare_stamper_relationships(mapper: Mapper, cls: type) -> None:
    # Runs at mapper configuration. An unknown stamper class only costs the
    # relationships; the stamp columns and the rest of the registry stay usable.
    settings = get_stampable_config(cls)
    stamper_class = resolve_stamper_class(cls)
    if stamper_class is None:
        logger.debug(
            "Stamper class %r for %s could not be resolved; no stamper relationships declared",
            settings.stamper_class_name,
            cls.__name__,
        )
        return

    primary_key = sa_inspect(stamper_class).primary_key[0]
    for role in ROLES:
        if not getattr(settings.hooks, role) or hasattr(cls, role):
            continue
        column = getattr(cls, settings.attribute_for(role))
        mapper.add_property(
            role,
            relationship(
                stamper_class,
                primaryjoin=foreign(column) == remote(primary_key),
                lazy="select",
            ),
        )


def get_stampable_config(cls: type) -> StampableConfig:
    """
    Return the userstamp settings of cls.

    Raises:
        NotStampableError: If cls was never made stampable
    """
    settings = getattr(cls, _SETTINGS_ATTR, None)
    if not isinstance(settings, StampableConfig):
        raise NotStampableError(f"{cls.__name__} is not stampable")
    return settings


def is_stampable(cls: type) -> bool:
    return isinstance(getattr(cls, _SETTINGS_ATTR, None), StampableConfig)


def _camelize(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


def resolve_stamper_class(cls: type) -> Optional[type]:
    """
    Find the stamper class configured for cls among the classes mapped in the
    same registry. Returns None when no such class exists.
    """
    name = get_stampable_config(cls).stamper_class_name
    if isinstance(name, type):
        return name

    class_name = _camelize(name)
    for mapper in sa_inspect(cls).registry.mappers:
        if mapper.class_.__name__ == class_name:
            return mapper.class_
    return None


def current_stamper(cls: type) -> Any:
    """
    Return the identity of the current stamper for cls, or None.

    Never raises: an unresolvable stamper class, a stamper class without
    get_stamper(), an accessor that fails, or no current stamper all mean
    "nothing to stamp this time".
    """
    try:
        stamper_class = resolve_stamper_class(cls)
        if stamper_class is None:
            logger.debug(
                "Stamper class %r for %s could not be resolved",
                get_stampable_config(cls).stamper_class_name,
                cls.__name__,
            )
            return None

        stamper = stamper_class.get_stamper()
        if stamper is None:
            logger.debug("No current %s stamper for %s", stamper_class.__name__, cls.__name__)
            return None
        return stamper_identity(stamper)
    except Exception:
        logger.debug("Stamper lookup for %s failed", cls.__name__, exc_info=True)
        return None


def _stamp(instance: Any, role: str) -> bool:
    cls = type(instance)
    if not is_stampable(cls):
        return False

    settings = get_stampable_config(cls)
    if not getattr(settings.hooks, role):
        return False
    if not settings.record_userstamp:
        observe_stamp(cls.__name__, role, SUPPRESSED)
        return False

    stamper = current_stamper(cls)
    if stamper is None:
        observe_stamp(cls.__name__, role, NO_STAMPER)
        return False

    setattr(instance, settings.attribute_for(role), stamper)
    observe_stamp(cls.__name__, role, STAMPED)
    return True


def set_creator_attribute(instance: Any) -> bool:
    """Write the current stamper into the creator attribute. Returns True if written."""
    return _stamp(instance, "creator")


def set_updater_attribute(instance: Any) -> bool:
    """Write the current stamper into the updater attribute. Returns True if written."""
    return _stamp(instance, "updater")


def set_deleter_attribute(instance: Any) -> bool:
    """
    Write the current stamper into the deleter attribute and flush it.

    Soft deletion only flags the row, so the stamp is flushed right away
    rather than waiting for whatever flush follows the delete.
    """
    if not _stamp(instance, "deleter"):
        return False

    session = object_session(instance)
    if session is not None:
        session.flush()
    return True


@contextmanager
def without_stamps(cls: type) -> Iterator[type]:
    """
    Temporarily turn stamping off for cls:

        with without_stamps(Post):
            post = session.get(Post, post_id)
            post.title = "imported"
            session.commit()

    The previous flag is restored on exit, including when the block raises.
    Not thread-safe: the flag is shared by every thread using cls.
    """
    settings = get_stampable_config(cls)
    original = settings.record_userstamp
    settings.record_userstamp = False
    try:
        yield cls
    finally:
        settings.record_userstamp = original


def _stamp_before_insert(mapper: Mapper, connection: Any, target: Any) -> None:
    set_creator_attribute(target)
    set_updater_attribute(target)


def _stamp_before_update(mapper: Mapper, connection: Any, target: Any) -> None:
    # before_update fires for every dirty instance, including ones with no net changes
    session = object_session(target)
    if session is not None and not session.is_modified(target, include_collections=False):
        return
    set_updater_attribute(target)


def _uses_validation_hooks(instance: Any) -> bool:
    cls = type(instance)
    return is_stampable(cls) and get_stampable_config(cls).hooks.on_validation


@event.listens_for(Session, "before_flush")
def _stamp_before_flush(session: Session, flush_context: Any, instances: Any) -> None:
    for instance in list(session.new):
        if _uses_validation_hooks(instance):
            set_creator_attribute(instance)
            set_updater_attribute(instance)

    for instance in list(session.dirty):
        if not _uses_validation_hooks(instance):
            continue
        if not session.is_modified(instance, include_collections=False):
            continue
        set_updater_attribute(instance)

