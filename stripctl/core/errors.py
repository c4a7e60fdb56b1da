"""Domain-specific errors for stripctl."""

from __future__ import annotations

from typing import Any


class StripctlError(Exception):
    """Base error for stripctl."""


class FieldError(StripctlError):
    """Base for errors tied to one field of a document."""

    def __init__(self, message: str, *, field: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class MissingFieldError(FieldError):
    """Raised when a required key is absent."""


class WrongTypeError(FieldError):
    """Raised when a key is present but holds the wrong shape."""


class ValueRangeError(FieldError):
    """Raised when a numeric value falls outside the protocol's range."""


class UnknownDeviceError(StripctlError):
    """Raised when a command references a device id not in the registry."""

    def __init__(self, device_id: str) -> None:
        super().__init__(f"Unknown device '{device_id}'")
        self.device_id = device_id


class InvalidModeError(StripctlError):
    """Raised when a command's mode is not one of the supported effects."""

    def __init__(self, mode: Any, allowed: tuple[str, ...]) -> None:
        super().__init__(f"Invalid mode {mode!r}. Allowed: {', '.join(allowed)}")
        self.mode = mode


class CommandFormatError(StripctlError):
    """Raised when a command message cannot be decoded."""


class ConfigError(StripctlError):
    """Raised when the device configuration document is invalid."""


class ConfigLoadError(ConfigError):
    """Raised when reading the configuration source fails."""


class ConfigMissingFieldError(ConfigError, MissingFieldError):
    """Raised when the configuration or an address map lacks a key."""


class ConfigWrongTypeError(ConfigError, WrongTypeError):
    """Raised when a configuration value has the wrong type."""


class ConfigValueRangeError(ConfigError, ValueRangeError):
    """Raised when a configuration value is out of range."""


class UnknownMmapIdError(ConfigError, FieldError):
    """Raised when a device references a memory-map block that does not exist."""


class UnknownRegisterError(ConfigError, FieldError):
    """Raised when a memory-map block names a register the compiler does not know."""
