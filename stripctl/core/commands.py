"""Parsing of command documents into typed per-mode commands."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from stripctl.core.errors import InvalidModeError, MissingFieldError, ValueRangeError, WrongTypeError
from stripctl.core.model import (
    Command,
    FireCommand,
    Mode,
    NoiseCommand,
    OffCommand,
    SolidRgbCommand,
    TorchCommand,
)
from stripctl.core.protocol import is_byte

RGB_KEYS = ("RGB", "rgb")

# Command fields each mode reads beyond id, mode, brightness and palette_id.
MODE_FIELDS: dict[Mode, tuple[str, ...]] = {
    Mode.OFF: (),
    Mode.SOLID_RGB: ("RGB",),
    Mode.FX_FIRE: (),
    Mode.FX_TORCH: (
        "torch_spark_threshold",
        "torch_adj_h",
        "torch_adj_v",
        "torch_passive_retention",
        "torch_spark_transfer",
        "torch_spark_retention",
        "torch_color_coeff",
    ),
    Mode.FX_NOISE: ("noise_speed_step", "noise_scale"),
}


def _dump(document: Mapping[str, Any]) -> str:
    return json.dumps(document, sort_keys=True, default=str)


def _require(document: Mapping[str, Any], field: str) -> Any:
    if field not in document:
        raise MissingFieldError(
            f"Missing required field '{field}': {_dump(document)}",
            field=field,
            value=document,
        )
    return document[field]


def require_str(document: Mapping[str, Any], field: str) -> str:
    value = _require(document, field)
    if not isinstance(value, str):
        raise WrongTypeError(
            f"Field '{field}' must be a string, got {value!r}",
            field=field,
            value=value,
        )
    return value


def require_u8(document: Mapping[str, Any], field: str) -> int:
    value = _require(document, field)
    if isinstance(value, bool) or not isinstance(value, int):
        raise WrongTypeError(
            f"Field '{field}' must be an integer, got {value!r}",
            field=field,
            value=value,
        )
    if not is_byte(value):
        raise ValueRangeError(
            f"Field '{field}' value {value} is outside 0..255",
            field=field,
            value=value,
        )
    return value


def require_triple(document: Mapping[str, Any], field: str) -> tuple[int, int, int]:
    value = _require(document, field)
    if not isinstance(value, list | tuple):
        raise WrongTypeError(
            f"Field '{field}' must be an array of 3 integers, got {value!r}",
            field=field,
            value=value,
        )
    if len(value) != 3:
        raise ValueRangeError(
            f"Field '{field}' must have exactly 3 elements, got {len(value)}",
            field=field,
            value=value,
        )
    checked = tuple(require_u8({field: item}, field) for item in value)
    return checked[0], checked[1], checked[2]


def _require_rgb(document: Mapping[str, Any]) -> tuple[int, int, int]:
    for key in RGB_KEYS:
        if key in document:
            return require_triple(document, key)
    raise MissingFieldError(
        f"Missing required field 'RGB': {_dump(document)}",
        field="RGB",
        value=document,
    )


def parse_mode(document: Mapping[str, Any]) -> Mode:
    raw = require_str(document, "mode")
    try:
        return Mode(raw)
    except ValueError:
        raise InvalidModeError(raw, tuple(mode.value for mode in Mode)) from None


def _off(document: Mapping[str, Any], common: dict[str, Any]) -> Command:
    return OffCommand(**common)


def _solid_rgb(document: Mapping[str, Any], common: dict[str, Any]) -> Command:
    return SolidRgbCommand(**common, rgb=_require_rgb(document))


def _fire(document: Mapping[str, Any], common: dict[str, Any]) -> Command:
    return FireCommand(**common)


def _torch(document: Mapping[str, Any], common: dict[str, Any]) -> Command:
    return TorchCommand(
        **common,
        spark_threshold=require_u8(document, "torch_spark_threshold"),
        adj_h=require_u8(document, "torch_adj_h"),
        adj_v=require_u8(document, "torch_adj_v"),
        passive_retention=require_u8(document, "torch_passive_retention"),
        spark_transfer=require_u8(document, "torch_spark_transfer"),
        spark_retention=require_u8(document, "torch_spark_retention"),
        color_coeff=require_triple(document, "torch_color_coeff"),
    )


def _noise(document: Mapping[str, Any], common: dict[str, Any]) -> Command:
    return NoiseCommand(
        **common,
        speed_step=require_u8(document, "noise_speed_step"),
        scale=require_u8(document, "noise_scale"),
    )


_PARSERS: dict[Mode, Callable[[Mapping[str, Any], dict[str, Any]], Command]] = {
    Mode.OFF: _off,
    Mode.SOLID_RGB: _solid_rgb,
    Mode.FX_FIRE: _fire,
    Mode.FX_TORCH: _torch,
    Mode.FX_NOISE: _noise,
}


def parse_command(document: Any) -> Command:
    """Validate a command document and return the variant for its mode.

    Validation stops at the first violation. Fields the selected mode does not
    use are ignored.
    """
    if not isinstance(document, Mapping):
        raise WrongTypeError(
            f"Command must be a JSON object, got {type(document).__name__}",
            value=document,
        )

    device_id = require_str(document, "id")
    mode = parse_mode(document)
    common = {
        "id": device_id,
        "brightness": require_u8(document, "brightness"),
        "palette_id": require_u8(document, "palette_id"),
    }
    return _PARSERS[mode](document, common)
