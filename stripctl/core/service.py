"""Service layer used by the API, the CLI, and message dispatchers."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from stripctl.core.compiler import compile_command
from stripctl.core.errors import CommandFormatError, StripctlError
from stripctl.core.model import CompiledBatch, Device, Register
from stripctl.core.registry import DeviceRegistry, load_registry_file

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one command compiled in isolation."""

    id: str | None
    batch: CompiledBatch | None = None
    error: StripctlError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.batch is not None:
            return self.batch.to_dict()
        return {"id": self.id, "error": str(self.error)}


def _command_id(document: Any) -> str | None:
    if isinstance(document, Mapping) and isinstance(document.get("id"), str):
        return document["id"]
    return None


def decode_part(part: str | bytes) -> Any:
    """Decode one message part holding a single JSON command document."""
    if isinstance(part, bytes):
        try:
            part = part.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CommandFormatError(f"Command part is not valid UTF-8: {exc}") from exc
    try:
        return json.loads(part)
    except json.JSONDecodeError as exc:
        raise CommandFormatError(f"Command part is not valid JSON: {exc}") from exc


class StripService:
    def __init__(self, registry: DeviceRegistry | None = None, *, config_path: str | Path | None = None) -> None:
        self.registry = registry if registry is not None else load_registry_file(config_path)
        self.load_warnings = self.registry.warnings

    def list_devices(self) -> list[Device]:
        return list(self.registry)

    def device(self, device_id: str) -> Device:
        return self.registry.get(device_id)

    def register_addresses(self, device_id: str) -> dict[Register, int]:
        device = self.registry.get(device_id)
        return {register: device.address(register) for register in Register if register in device.address_map}

    def compile(self, command: Mapping[str, Any]) -> CompiledBatch:
        return compile_command(self.registry, command)

    def compile_batch(self, commands: Iterable[Mapping[str, Any]]) -> list[CompiledBatch]:
        """Compile commands in order; the first failure aborts the whole batch."""
        return [self.compile(command) for command in commands]

    def compile_batch_isolated(self, commands: Iterable[Mapping[str, Any]]) -> list[CommandResult]:
        """Compile every command independently, keeping failures next to successes."""
        results: list[CommandResult] = []
        for command in commands:
            command_id = _command_id(command)
            try:
                batch = self.compile(command)
            except StripctlError as exc:
                LOGGER.warning("Command %s failed: %s", command_id, exc)
                results.append(CommandResult(id=command_id, error=exc))
                continue
            results.append(CommandResult(id=command_id, batch=batch))
        return results

    def handle_message(self, parts: Sequence[str | bytes]) -> str:
        """Compile a multi-part message of JSON commands into one JSON reply."""
        output: list[dict[str, Any]] = []
        for part in parts:
            command = decode_part(part)
            LOGGER.info("input %s", json.dumps(command))
            output.append(self.compile(command).to_dict())

        reply = json.dumps(output)
        LOGGER.info("output %s", reply)
        return reply
