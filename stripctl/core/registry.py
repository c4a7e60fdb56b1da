"""Device registry loading and validation for YAML/JSON configuration documents."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator, Mapping
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from stripctl.core.address_map import AddressMap
from stripctl.core.errors import (
    ConfigError,
    ConfigLoadError,
    ConfigMissingFieldError,
    ConfigValueRangeError,
    ConfigWrongTypeError,
    UnknownDeviceError,
    UnknownMmapIdError,
)
from stripctl.core.model import Device, Register

CONFIG_ENV_VAR = "STRIPCTL_CONFIG"
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[Any, Any]:
    mapping: dict[Any, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigError(f"Duplicate key '{key}' in configuration document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


class DeviceRegistry:
    """Ordered, read-only collection of devices keyed by exact id."""

    def __init__(self, devices: tuple[Device, ...], warnings: tuple[str, ...] = ()) -> None:
        self._devices = devices
        self._by_id = {device.id: device for device in devices}
        self.warnings = warnings

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices)

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._by_id

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(device.id for device in self._devices)

    def get(self, device_id: str) -> Device:
        device = self._by_id.get(device_id)
        if device is None:
            raise UnknownDeviceError(device_id)
        return device


def _load_schema_validator() -> Any:
    schema_text = resources.files("stripctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _dump(fragment: Any) -> str:
    return json.dumps(fragment, sort_keys=True, default=str)


def _schema_error(exc: ValidationError) -> ConfigError:
    path = ".".join(str(p) for p in exc.absolute_path)
    where = f" at '{path}'" if path else ""
    field = str(exc.absolute_path[-1]) if exc.absolute_path else None

    if exc.validator == "required":
        missing = next((name for name in exc.validator_value if name not in exc.instance), None)
        return ConfigMissingFieldError(
            f"Missing required field '{missing}'{where}: {_dump(exc.instance)}",
            field=missing,
            value=exc.instance,
        )
    if exc.validator == "type":
        return ConfigWrongTypeError(
            f"Field{where} must be of type {exc.validator_value}, got {_dump(exc.instance)}",
            field=field,
            value=exc.instance,
        )
    if exc.validator in ("minimum", "maximum"):
        return ConfigValueRangeError(
            f"Field{where} is out of range: {exc.message}",
            field=field,
            value=exc.instance,
        )
    return ConfigError(f"Invalid configuration{where}: {exc.message}")


def _strict_int(entry: Mapping[str, Any], field: str) -> int:
    # JSON Schema "integer" admits 2.0; floats are rejected here as in address maps.
    value = entry[field]
    if not isinstance(value, int):
        raise ConfigWrongTypeError(
            f"Device '{entry['id']}' field '{field}' must be an integer, got {value!r}",
            field=field,
            value=value,
        )
    return value


def _missing_registers(address_map: AddressMap) -> tuple[str, ...]:
    return tuple(register.value for register in Register if register not in address_map)


def load_registry(document: Mapping[str, Any]) -> DeviceRegistry:
    """Validate a configuration document and build the device registry."""
    if not isinstance(document, Mapping):
        raise ConfigWrongTypeError(
            "Configuration document must contain a mapping at root",
            value=document,
        )

    validator = _load_schema_validator()
    try:
        validator.validate(document)
    except ValidationError as exc:
        raise _schema_error(exc) from exc

    address_maps = {
        str(mmap_id): AddressMap.from_mapping(str(mmap_id), block)
        for mmap_id, block in document["mmap"].items()
    }

    devices: list[Device] = []
    warnings: list[str] = []
    seen: set[str] = set()

    for entry in document["device"]:
        device_id = entry["id"]
        if device_id in seen:
            raise ConfigError(f"Duplicate device id '{device_id}': {_dump(entry)}")
        seen.add(device_id)

        address_map = address_maps.get(entry["mmap_id"])
        if address_map is None:
            known = ", ".join(sorted(address_maps)) or "<none>"
            raise UnknownMmapIdError(
                f"Device '{device_id}' references unknown mmap_id '{entry['mmap_id']}'. Known: {known}",
                field="mmap_id",
                value=entry["mmap_id"],
            )

        missing = _missing_registers(address_map)
        if missing:
            warning = (
                f"Device '{device_id}' memory map '{address_map.mmap_id}' does not map "
                f"{', '.join(missing)}; modes writing them will fail to compile"
            )
            LOGGER.warning(warning)
            warnings.append(warning)

        devices.append(
            Device(
                id=device_id,
                location=entry["location"],
                slave=_strict_int(entry, "slave"),
                mmap_id=address_map.mmap_id,
                strip_size=_strict_int(entry, "strip_size"),
                address_map=address_map,
            )
        )

    LOGGER.info("Loaded %d device(s) from %d memory map(s)", len(devices), len(address_maps))
    return DeviceRegistry(tuple(devices), tuple(warnings))


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "stripctl/devices.yaml"


def read_config(path: Path) -> Any:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read configuration file {path}: {exc}") from exc

    try:
        return yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML/JSON in {path}: {exc}") from exc


def load_registry_file(path: str | Path | None = None) -> DeviceRegistry:
    """Load the registry from ``path``, or from the default configuration location."""
    config_path = Path(path) if path is not None else default_config_path()
    LOGGER.debug("Loading device configuration from %s", config_path)
    return load_registry(read_config(config_path))
