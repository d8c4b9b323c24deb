from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .errors import ConfigurationError

COMPATIBILITY_MODE_ENV = "USERSTAMP_COMPATIBILITY_MODE"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class UserstampConfig:
    """
    Process-wide userstamp settings.

    compatibility_mode selects the legacy column naming scheme:
    - off: creator_id / updater_id / deleter_id
    - on:  created_by / updated_by / deleted_by
    """
    compatibility_mode: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "UserstampConfig":
        env = os.environ if environ is None else environ
        raw = env.get(COMPATIBILITY_MODE_ENV, "")
        return cls(compatibility_mode=raw.strip().lower() in _TRUTHY)

    @property
    def creator_column(self) -> str:
        return "created_by" if self.compatibility_mode else "creator_id"

    @property
    def updater_column(self) -> str:
        return "updated_by" if self.compatibility_mode else "updater_id"

    @property
    def deleter_column(self) -> str:
        return "deleted_by" if self.compatibility_mode else "deleter_id"

    def column_names(self, include_deleter: bool = False) -> tuple[str, ...]:
        names = (self.creator_column, self.updater_column)
        if include_deleter:
            names += (self.deleter_column,)
        return names


@dataclass(frozen=True)
class StampHooks:
    """Which stamping roles are wired for a class, resolved once at registration."""
    creator: bool
    updater: bool
    deleter: bool
    on_validation: bool


@dataclass
class StampableConfig:
    """
    Per-class userstamp settings.

    record_userstamp is the only field expected to change after registration
    (see without_stamps()).
    """
    creator_attribute: str
    updater_attribute: str
    deleter_attribute: str
    stamper_class_name: str | type = "user"
    use_before_validation_hooks: bool = True
    record_userstamp: bool = True
    hooks: StampHooks = field(
        default_factory=lambda: StampHooks(
            creator=False, updater=False, deleter=False, on_validation=True
        )
    )

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        for name in ("creator_attribute", "updater_attribute", "deleter_attribute"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")
        if isinstance(self.stamper_class_name, str) and not self.stamper_class_name:
            raise ValueError("stamper_class_name cannot be empty")

    @classmethod
    def from_options(
        cls,
        config: UserstampConfig,
        *,
        stamper_class_name: str | type = "user",
        creator_attribute: Optional[str] = None,
        updater_attribute: Optional[str] = None,
        deleter_attribute: Optional[str] = None,
        use_before_validation_hooks: bool = True,
    ) -> "StampableConfig":
        return cls(
            creator_attribute=creator_attribute or config.creator_column,
            updater_attribute=updater_attribute or config.updater_column,
            deleter_attribute=deleter_attribute or config.deleter_column,
            stamper_class_name=stamper_class_name,
            use_before_validation_hooks=use_before_validation_hooks,
        )

    def attribute_for(self, role: str) -> str:
        return getattr(self, f"{role}_attribute")


_config: UserstampConfig | None = None


def configure(config: UserstampConfig) -> UserstampConfig:
    """
    Set the process-wide configuration. Call once, at startup.

    The value is sealed by the first read (get_config(), is_compatibility_mode(),
    or any stampable/migration helper using the defaults). Reconfiguring with an
    equal value is a no-op; a different value raises ConfigurationError.
    """
    global _config
    if _config is not None and _config != config:
        raise ConfigurationError(
            f"userstamp is already configured with {_config!r}; "
            "compatibility mode cannot change after first use"
        )
    _config = config
    return config


def get_config() -> UserstampConfig:
    global _config
    if _config is None:
        _config = UserstampConfig.from_env()
    return _config


def is_compatibility_mode() -> bool:
    return get_config().compatibility_mode
