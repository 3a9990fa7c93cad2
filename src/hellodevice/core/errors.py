"""
Exception hierarchy for HelloDevice.

Setup errors (config, connection, version, subscription) are fatal.
Fetch and spawn errors are local to a single event or notification.
"""


class HelloDeviceError(Exception):
    """Base exception for all HelloDevice errors."""
    pass


class ConfigError(HelloDeviceError):
    """Configuration-related error."""
    pass


class ConfigMissingError(ConfigError):
    """Raised when the config file or its command entry is absent."""
    pass


class ConfigMalformedError(ConfigError):
    """Raised when the config file cannot be parsed."""
    pass


class SessionError(HelloDeviceError):
    """Base exception for display session errors."""
    pass


class ConnectionFailedError(SessionError):
    """Raised when the X display cannot be opened."""
    pass


class VersionNegotiationError(SessionError):
    """Raised when the server does not support XInput 2."""
    pass


class SubscriptionError(SessionError):
    """Raised when selecting hierarchy events fails."""
    pass


class EventFetchError(SessionError):
    """Raised when a single event cannot be fetched or decoded."""
    pass


class DisplayConnectionLostError(SessionError):
    """Raised when the server closes the connection."""
    pass


class DeviceIdOutOfRangeError(HelloDeviceError):
    """Raised when a device id does not fit the name cache."""
    pass


class HandlerSpawnError(HelloDeviceError):
    """Raised when the handler program cannot be launched."""
    pass
