"""Core data models used across registry, compiler, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from stripctl.core.protocol import SERVICE_PREFIX

if TYPE_CHECKING:
    from stripctl.core.address_map import AddressMap


class Register(str, Enum):
    FLAGS = "flags"
    BRIGHTNESS = "brightness"
    PALETTE_ID = "palette_id"
    RGB = "rgb"
    TORCH_SPARK_THRESHOLD = "torch_spark_threshold"
    TORCH_ADJ_H = "torch_adj_h"
    TORCH_ADJ_V = "torch_adj_v"
    TORCH_PASSIVE_RETENTION = "torch_passive_retention"
    TORCH_SPARK_TRANSFER = "torch_spark_transfer"
    TORCH_SPARK_RETENTION = "torch_spark_retention"
    TORCH_COLOR_COEFF = "torch_color_coeff"
    NOISE_SPEED_STEP = "noise_speed_step"
    NOISE_SCALE = "noise_scale"


class Mode(str, Enum):
    OFF = "off"
    SOLID_RGB = "solid_rgb"
    FX_FIRE = "fx_fire"
    FX_TORCH = "fx_torch"
    FX_NOISE = "fx_noise"


@dataclass(frozen=True)
class Device:
    id: str
    location: str
    slave: int
    mmap_id: str
    strip_size: int
    address_map: AddressMap

    @property
    def service(self) -> str:
        return SERVICE_PREFIX + self.location

    def address(self, register: Register, offset: int = 0) -> int:
        return self.address_map.resolve(register, offset)


@dataclass(frozen=True)
class Instruction:
    device: str
    slave: int
    fcode: int
    address: int
    value: tuple[int, ...]
    comment: str

    @property
    def count(self) -> int:
        return len(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "device": self.device,
            "slave": self.slave,
            "fcode": self.fcode,
            "addr": self.address,
            "count": self.count,
            "value": list(self.value),
            "comment": self.comment,
        }


@dataclass(frozen=True)
class CompiledBatch:
    id: str
    service: str
    instructions: tuple[Instruction, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "service": self.service,
            "payload": [instruction.to_dict() for instruction in self.instructions],
        }


@dataclass(frozen=True)
class Command:
    """Fields shared by every mode."""

    mode: ClassVar[Mode]

    id: str
    brightness: int
    palette_id: int


@dataclass(frozen=True)
class OffCommand(Command):
    mode: ClassVar[Mode] = Mode.OFF


@dataclass(frozen=True)
class SolidRgbCommand(Command):
    mode: ClassVar[Mode] = Mode.SOLID_RGB

    rgb: tuple[int, int, int]


@dataclass(frozen=True)
class FireCommand(Command):
    mode: ClassVar[Mode] = Mode.FX_FIRE


@dataclass(frozen=True)
class TorchCommand(Command):
    mode: ClassVar[Mode] = Mode.FX_TORCH

    spark_threshold: int
    adj_h: int
    adj_v: int
    passive_retention: int
    spark_transfer: int
    spark_retention: int
    color_coeff: tuple[int, int, int]


@dataclass(frozen=True)
class NoiseCommand(Command):
    mode: ClassVar[Mode] = Mode.FX_NOISE

    speed_step: int
    scale: int
