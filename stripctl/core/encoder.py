"""Encoding of register values into bus write instructions."""

from __future__ import annotations

from collections.abc import Sequence

from stripctl.core.errors import ValueRangeError, WrongTypeError
from stripctl.core.model import Device, Instruction
from stripctl.core.protocol import FCODE_WRITE_BYTES, MAX_CHUNK_BYTES, is_address, is_byte


def _check_byte(value: object, *, comment: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise WrongTypeError(f"{comment} value {value!r} is not an integer", field=comment, value=value)
    if not is_byte(value):
        raise ValueRangeError(f"{comment} value {value} is outside 0..255", field=comment, value=value)
    return value


def to_byte_seq(value: int | Sequence[int], *, comment: str) -> tuple[int, ...]:
    """Range-check a scalar or a sequence, failing on the first bad element."""
    if isinstance(value, Sequence):
        return tuple(_check_byte(item, comment=comment) for item in value)
    return (_check_byte(value, comment=comment),)


def chunk_bounds(length: int) -> list[tuple[int, int]]:
    return [(start, min(start + MAX_CHUNK_BYTES, length)) for start in range(0, length, MAX_CHUNK_BYTES)]


def encode(
    device: Device,
    address: int,
    value: int | Sequence[int],
    comment: str,
) -> tuple[Instruction, ...]:
    """Build the write instructions carrying ``value`` starting at ``address``.

    A scalar becomes a single one-byte write. A sequence is split into
    consecutive chunks of at most ``MAX_CHUNK_BYTES`` bytes; each chunk is
    written at ``address`` plus its byte offset within the sequence.
    """
    byte_seq = to_byte_seq(value, comment=comment)
    if not byte_seq:
        raise ValueRangeError(f"{comment} value must not be empty", field=comment, value=list(byte_seq))

    instructions: list[Instruction] = []
    for start, end in chunk_bounds(len(byte_seq)):
        chunk_address = address + start
        if not is_address(chunk_address):
            raise ValueRangeError(
                f"{comment} chunk at offset {start} ({chunk_address:#x}) does not fit 16 bits",
                field=comment,
                value=start,
            )
        instructions.append(
            Instruction(
                device=device.location,
                slave=device.slave,
                fcode=FCODE_WRITE_BYTES,
                address=chunk_address,
                value=byte_seq[start:end],
                comment=comment,
            )
        )
    return tuple(instructions)
