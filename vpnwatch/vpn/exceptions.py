"""Custom exceptions for VPN session monitoring."""


class VPNError(Exception):
    """Base exception for VPN-related errors."""
    pass


class ConfigurationError(VPNError):
    """Raised when there's an issue with VPN or monitor configuration"""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a config script has no remote directive to choose from"""
    pass


class UnsupportedPlatformError(VPNError):
    """Raised when no status decoder exists for a platform"""
    pass


class NotInitializedError(VPNError):
    """Raised when the monitor is used before initialize() completed"""
    pass


class TransportError(VPNError):
    """Raised when the native side rejects a control command"""
    pass


class FeedClosedError(VPNError):
    """Raised when the stage event feed ends while a monitor listens to it"""
    pass
