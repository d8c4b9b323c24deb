from .config import (
    StampableConfig,
    UserstampConfig,
    configure,
    get_config,
    is_compatibility_mode,
)
from .errors import ConfigurationError, NotStampableError, UserstampError
from .migration import (
    add_userstamp_columns,
    declare_userstamp_columns,
    remove_userstamp_columns,
)
from .soft_delete import SoftDeleteMixin
from .stampable import (
    current_stamper,
    get_stampable_config,
    set_creator_attribute,
    set_deleter_attribute,
    set_updater_attribute,
    stampable,
    without_stamps,
)
from .stamper import StamperMixin

__all__ = [
    "UserstampConfig",
    "StampableConfig",
    "configure",
    "get_config",
    "is_compatibility_mode",
    "UserstampError",
    "ConfigurationError",
    "NotStampableError",
    "declare_userstamp_columns",
    "add_userstamp_columns",
    "remove_userstamp_columns",
    "SoftDeleteMixin",
    "StamperMixin",
    "stampable",
    "get_stampable_config",
    "current_stamper",
    "set_creator_attribute",
    "set_updater_attribute",
    "set_deleter_attribute",
    "without_stamps",
]
