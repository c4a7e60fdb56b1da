"""Per-device register address maps."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from stripctl.core.errors import (
    ConfigMissingFieldError,
    ConfigValueRangeError,
    ConfigWrongTypeError,
    UnknownRegisterError,
    ValueRangeError,
)
from stripctl.core.model import Register
from stripctl.core.protocol import COMMAND_REGION_BASE, is_address

_REGISTER_NAMES = {register.value: register for register in Register}


@dataclass(frozen=True)
class AddressMap:
    """Closed mapping of known registers to offsets inside the command region."""

    mmap_id: str
    offsets: Mapping[Register, int] = field(hash=False)

    @classmethod
    def from_mapping(cls, mmap_id: str, block: Mapping[str, Any]) -> AddressMap:
        offsets: dict[Register, int] = {}
        for name, offset in block.items():
            register = _REGISTER_NAMES.get(name)
            if register is None:
                known = ", ".join(sorted(_REGISTER_NAMES))
                raise UnknownRegisterError(
                    f"Memory map '{mmap_id}' names unknown register '{name}'. Known: {known}",
                    field=name,
                    value=offset,
                )
            if isinstance(offset, bool) or not isinstance(offset, int):
                raise ConfigWrongTypeError(
                    f"Memory map '{mmap_id}' register '{name}' must be an integer offset, got {offset!r}",
                    field=name,
                    value=offset,
                )
            if offset < 0:
                raise ConfigValueRangeError(
                    f"Memory map '{mmap_id}' register '{name}' has negative offset {offset}",
                    field=name,
                    value=offset,
                )
            offsets[register] = offset
        return cls(mmap_id=mmap_id, offsets=MappingProxyType(offsets))

    def __contains__(self, register: object) -> bool:
        return register in self.offsets

    def __iter__(self) -> Iterator[Register]:
        return iter(self.offsets)

    def resolve(self, register: Register, offset: int = 0) -> int:
        """Return the bus address of ``register`` advanced by ``offset`` bytes."""
        base = self.offsets.get(register)
        if base is None:
            raise ConfigMissingFieldError(
                f"Register '{register.value}' is not mapped in memory map '{self.mmap_id}'",
                field=register.value,
                value={r.value: o for r, o in self.offsets.items()},
            )
        address = COMMAND_REGION_BASE + base + offset
        if offset < 0 or not is_address(address):
            raise ValueRangeError(
                f"Address of '{register.value}' + {offset} ({address:#x}) does not fit 16 bits",
                field=register.value,
                value=offset,
            )
        return address
