class UserstampError(Exception):
    """Base exception for userstamp errors."""


class ConfigurationError(UserstampError):
    """Invalid or conflicting userstamp configuration."""


class NotStampableError(UserstampError):
    """The class has not been configured for userstamping."""
