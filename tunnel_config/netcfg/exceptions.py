"""Custom exceptions for tunnel network configuration."""


class TunnelConfigError(Exception):
    """Base exception for tunnel configuration errors."""
    pass


class ConfigurationError(TunnelConfigError):
    """Raised for an unknown lifecycle event or a malformed config file"""
    pass


class CommandError(TunnelConfigError):
    """Raised when a configuration command cannot be started"""
    pass
