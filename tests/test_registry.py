from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from stripctl.core.errors import (
    ConfigError,
    ConfigLoadError,
    ConfigMissingFieldError,
    ConfigValueRangeError,
    ConfigWrongTypeError,
    UnknownDeviceError,
    UnknownMmapIdError,
    UnknownRegisterError,
)
from stripctl.core.model import Register
from stripctl.core.registry import DeviceRegistry, default_config_path, load_registry, load_registry_file


def _write_config(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_load_keeps_device_order_and_fields(registry: DeviceRegistry) -> None:
    assert registry.ids == ("A", "B", "C")
    assert len(registry) == 3

    device = registry.get("A")
    assert device.location == "rs485-0"
    assert device.slave == 128
    assert device.strip_size == 2
    assert device.mmap_id == "ws2812"
    assert device.service == "modbus_master_/rs485-0"
    assert device.address(Register.RGB) == 0x1002


def test_devices_sharing_a_map_share_offsets(registry: DeviceRegistry) -> None:
    assert registry.get("A").address(Register.FLAGS) == registry.get("B").address(Register.FLAGS)


def test_lookup_is_exact_match(registry: DeviceRegistry) -> None:
    assert "A" in registry
    assert "a" not in registry
    with pytest.raises(UnknownDeviceError) as exc:
        registry.get("a")
    assert exc.value.device_id == "a"


@pytest.mark.parametrize("field", ["id", "location", "slave", "mmap_id", "strip_size"])
def test_missing_device_field_rejected(config_document: dict[str, Any], field: str) -> None:
    del config_document["device"][1][field]

    with pytest.raises(ConfigMissingFieldError) as exc:
        load_registry(config_document)
    assert exc.value.field == field


@pytest.mark.parametrize("section", ["device", "mmap"])
def test_missing_top_level_section_rejected(config_document: dict[str, Any], section: str) -> None:
    del config_document[section]

    with pytest.raises(ConfigMissingFieldError) as exc:
        load_registry(config_document)
    assert exc.value.field == section


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("id", 5),
        ("location", ["rs485-0"]),
        ("slave", "128"),
        ("slave", True),
        ("mmap_id", 1),
        ("strip_size", "2"),
    ],
)
def test_wrong_field_type_rejected(config_document: dict[str, Any], field: str, value: object) -> None:
    config_document["device"][0][field] = value

    with pytest.raises(ConfigWrongTypeError) as exc:
        load_registry(config_document)
    assert exc.value.field == field


def test_device_section_must_be_array(config_document: dict[str, Any]) -> None:
    config_document["device"] = {"A": {}}
    with pytest.raises(ConfigWrongTypeError):
        load_registry(config_document)


@pytest.mark.parametrize(("field", "value"), [("slave", 256), ("slave", -1), ("strip_size", 0)])
def test_out_of_range_device_field_rejected(config_document: dict[str, Any], field: str, value: int) -> None:
    config_document["device"][0][field] = value

    with pytest.raises(ConfigValueRangeError):
        load_registry(config_document)


def test_negative_register_offset_rejected(config_document: dict[str, Any]) -> None:
    config_document["mmap"]["minimal"]["flags"] = -2
    with pytest.raises(ConfigValueRangeError):
        load_registry(config_document)


def test_unknown_mmap_id_rejected(config_document: dict[str, Any]) -> None:
    config_document["device"][0]["mmap_id"] = "sk6812"

    with pytest.raises(UnknownMmapIdError) as exc:
        load_registry(config_document)
    assert exc.value.value == "sk6812"
    assert "ws2812" in str(exc.value)


def test_unknown_register_rejected(config_document: dict[str, Any]) -> None:
    config_document["mmap"]["minimal"]["fps"] = 4
    with pytest.raises(UnknownRegisterError):
        load_registry(config_document)


def test_duplicate_device_id_rejected(config_document: dict[str, Any]) -> None:
    config_document["device"][1]["id"] = "A"
    with pytest.raises(ConfigError) as exc:
        load_registry(config_document)
    assert "Duplicate device id 'A'" in str(exc.value)


def test_non_mapping_document_rejected() -> None:
    with pytest.raises(ConfigWrongTypeError):
        load_registry([])  # type: ignore[arg-type]


def test_partial_memory_map_produces_warning(registry: DeviceRegistry) -> None:
    assert len(registry.warnings) == 1
    assert "Device 'C'" in registry.warnings[0]
    assert "rgb" in registry.warnings[0]


def test_load_yaml_file(tmp_path: Path) -> None:
    path = tmp_path / "devices.yaml"
    _write_config(
        path,
        """
device:
  - id: porch
    location: rs485-0
    slave: 0x10
    mmap_id: short
    strip_size: 30
mmap:
  short:
    brightness: 0
    palette_id: 1
    flags: 2
    rgb: 0x10
""",
    )

    registry = load_registry_file(path)
    device = registry.get("porch")
    assert device.slave == 16
    assert device.address(Register.RGB) == 0x1010


def test_load_json_file(tmp_path: Path, config_document: dict[str, Any]) -> None:
    path = tmp_path / "devices.json"
    _write_config(path, json.dumps(config_document))

    registry = load_registry_file(path)
    assert registry.ids == ("A", "B", "C")


def test_duplicate_yaml_keys_rejected(tmp_path: Path) -> None:
    path = tmp_path / "dup.yaml"
    _write_config(
        path,
        """
device: []
mmap:
  short:
    flags: 2
    flags: 3
""",
    )

    with pytest.raises(ConfigError):
        load_registry_file(path)


def test_invalid_yaml_rejected(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    _write_config(path, "device: [\n")

    with pytest.raises(ConfigLoadError):
        load_registry_file(path)


def test_missing_file_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError):
        load_registry_file(tmp_path / "absent.yaml")


def test_default_config_path_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STRIPCTL_CONFIG", str(tmp_path / "custom.yaml"))
    assert default_config_path() == tmp_path / "custom.yaml"


def test_default_config_path_uses_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("STRIPCTL_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    assert default_config_path() == tmp_path / "cfg" / "stripctl" / "devices.yaml"


def test_load_registry_file_uses_default_location(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, config_document: dict[str, Any]
) -> None:
    monkeypatch.delenv("STRIPCTL_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    _write_config(tmp_path / "cfg" / "stripctl" / "devices.yaml", json.dumps(config_document))

    registry = load_registry_file()
    assert "B" in registry


def test_yaml_on_off_stay_strings(tmp_path: Path) -> None:
    path = tmp_path / "devices.yaml"
    _write_config(
        path,
        """
device:
  - {id: on, location: off, slave: 1, mmap_id: m, strip_size: 1}
  - {id: yes, location: bus0, slave: 2, mmap_id: m, strip_size: 1}
mmap:
  m:
    flags: 0
""",
    )

    registry = load_registry_file(path)
    assert registry.ids == ("on", "yes")
    assert registry.get("on").location == "off"


@pytest.mark.parametrize(("field", "value"), [("slave", 128.0), ("strip_size", 2.0)])
def test_integral_float_device_field_rejected(config_document: dict[str, Any], field: str, value: float) -> None:
    config_document["device"][0][field] = value

    with pytest.raises(ConfigWrongTypeError) as exc:
        load_registry(config_document)
    assert exc.value.field == field


def test_integral_float_register_offset_rejected(config_document: dict[str, Any]) -> None:
    config_document["mmap"]["minimal"]["flags"] = 2.0
    with pytest.raises(ConfigWrongTypeError):
        load_registry(config_document)


def test_devices_are_hashable(registry: DeviceRegistry, config_document: dict[str, Any]) -> None:
    again = load_registry(config_document)
    assert hash(registry.get("A")) == hash(again.get("A"))
    assert len({registry.get("A"), again.get("A"), registry.get("B")}) == 2
