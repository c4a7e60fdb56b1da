"""Compilation of lighting commands into ordered bus write instructions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from itertools import cycle, islice
from typing import Any

from stripctl.core.commands import parse_command, require_str
from stripctl.core.encoder import encode
from stripctl.core.errors import WrongTypeError
from stripctl.core.model import (
    Command,
    CompiledBatch,
    Device,
    FireCommand,
    Instruction,
    NoiseCommand,
    OffCommand,
    Register,
    SolidRgbCommand,
    TorchCommand,
)
from stripctl.core.protocol import FLAG_UPDATED, FX_FIRE, FX_NOISE, FX_NONE, FX_STATIC, FX_TORCH
from stripctl.core.registry import DeviceRegistry

LOGGER = logging.getLogger(__name__)


def to_grb(rgb: tuple[int, int, int]) -> tuple[int, int, int]:
    """Swap the first two channels; WS2812B strips take GRB order."""
    red, green, blue = rgb
    return green, red, blue


def fill_pattern(color: tuple[int, ...], length: int) -> tuple[int, ...]:
    return tuple(islice(cycle(color), length))


class _Writer:
    """Collects instructions for one device in emission order."""

    def __init__(self, device: Device) -> None:
        self.device = device
        self.instructions: list[Instruction] = []

    def write(self, register: Register, value: int | tuple[int, ...], comment: str | None = None) -> None:
        address = self.device.address(register)
        self.instructions.extend(encode(self.device, address, value, comment or register.value))

    def flags(self, effect: int) -> None:
        self.write(Register.FLAGS, effect | FLAG_UPDATED)


def _compile_mode(writer: _Writer, command: Command) -> None:
    if isinstance(command, OffCommand):
        writer.flags(FX_NONE)
    elif isinstance(command, SolidRgbCommand):
        pattern = fill_pattern(to_grb(command.rgb), writer.device.strip_size * 3)
        writer.write(Register.RGB, pattern)
        writer.flags(FX_STATIC)
    elif isinstance(command, FireCommand):
        writer.flags(FX_FIRE)
    elif isinstance(command, TorchCommand):
        writer.write(Register.TORCH_SPARK_THRESHOLD, command.spark_threshold)
        writer.write(Register.TORCH_ADJ_H, command.adj_h)
        writer.write(Register.TORCH_ADJ_V, command.adj_v)
        writer.write(Register.TORCH_PASSIVE_RETENTION, command.passive_retention)
        writer.write(Register.TORCH_SPARK_TRANSFER, command.spark_transfer)
        writer.write(Register.TORCH_SPARK_RETENTION, command.spark_retention)
        writer.write(Register.TORCH_COLOR_COEFF, to_grb(command.color_coeff), "RGB coeff")
        writer.flags(FX_TORCH)
    elif isinstance(command, NoiseCommand):
        writer.write(Register.NOISE_SPEED_STEP, command.speed_step)
        writer.write(Register.NOISE_SCALE, command.scale)
        writer.flags(FX_NOISE)
    else:
        raise TypeError(f"Unhandled command variant {type(command).__name__}")


def compile_for_device(device: Device, command: Command) -> CompiledBatch:
    """Emit brightness, palette, the mode's parameters, and finally the flags write."""
    writer = _Writer(device)
    writer.write(Register.BRIGHTNESS, command.brightness)
    writer.write(Register.PALETTE_ID, command.palette_id)
    _compile_mode(writer, command)
    return CompiledBatch(id=device.id, service=device.service, instructions=tuple(writer.instructions))


def compile_command(registry: DeviceRegistry, document: Mapping[str, Any]) -> CompiledBatch:
    """Compile one command document against the registry.

    The device is resolved before any mode field is read, so an unknown id
    fails with ``UnknownDeviceError`` regardless of the rest of the document.
    """
    if not isinstance(document, Mapping):
        raise WrongTypeError(
            f"Command must be a JSON object, got {type(document).__name__}",
            value=document,
        )
    device = registry.get(require_str(document, "id"))
    command = parse_command(document)
    batch = compile_for_device(device, command)
    LOGGER.debug(
        "Compiled %s for %s into %d instruction(s)",
        command.mode.value,
        device.id,
        len(batch.instructions),
    )
    return batch
