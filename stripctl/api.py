"""Stable public API for building tooling on top of stripctl.

This module is the supported integration surface for third-party callers such
as bus dispatchers. Avoid importing from private/internal modules unless
intentionally depending on non-stable internals.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from stripctl.core.errors import (
    CommandFormatError,
    ConfigError,
    ConfigLoadError,
    ConfigMissingFieldError,
    ConfigValueRangeError,
    ConfigWrongTypeError,
    InvalidModeError,
    MissingFieldError,
    StripctlError,
    UnknownDeviceError,
    UnknownMmapIdError,
    UnknownRegisterError,
    ValueRangeError,
    WrongTypeError,
)
from stripctl.core.model import (
    CompiledBatch,
    Device,
    Instruction,
    Mode,
    Register,
)
from stripctl.core.registry import DeviceRegistry, load_registry, load_registry_file
from stripctl.core.service import CommandResult, StripService

__all__ = [
    "StripctlError",
    "CommandFormatError",
    "ConfigError",
    "ConfigLoadError",
    "ConfigMissingFieldError",
    "ConfigValueRangeError",
    "ConfigWrongTypeError",
    "InvalidModeError",
    "MissingFieldError",
    "UnknownDeviceError",
    "UnknownMmapIdError",
    "UnknownRegisterError",
    "ValueRangeError",
    "WrongTypeError",
    "CompiledBatch",
    "CommandResult",
    "Device",
    "DeviceRegistry",
    "Instruction",
    "Mode",
    "Register",
    "load_registry",
    "load_registry_file",
    "Client",
]


class Client:
    """Public client for compiling lighting commands.

    A `Client` wraps registry loading and command compilation behind a stable
    API. Compilation is pure, so one instance may be shared across threads.
    """

    def __init__(
        self,
        registry: DeviceRegistry | None = None,
        *,
        config_path: str | Path | None = None,
    ) -> None:
        self._service = StripService(registry, config_path=config_path)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> Client:
        return cls(load_registry(document))

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def devices(self) -> list[Device]:
        return self._service.list_devices()

    def device(self, device_id: str) -> Device:
        return self._service.device(device_id)

    def registers(self, device_id: str) -> dict[Register, int]:
        return self._service.register_addresses(device_id)

    def compile(self, command: Mapping[str, Any]) -> CompiledBatch:
        return self._service.compile(command)

    def compile_batch(
        self,
        commands: Iterable[Mapping[str, Any]],
        *,
        isolate: bool = False,
    ) -> list[CompiledBatch] | list[CommandResult]:
        """Compile commands in input order.

        By default the first failing command raises and nothing is returned.
        With ``isolate=True`` every command yields a `CommandResult` instead.
        """
        if isolate:
            return self._service.compile_batch_isolated(commands)
        return self._service.compile_batch(commands)
