from __future__ import annotations

import copy
from typing import Any

import pytest

from stripctl.core.registry import DeviceRegistry, load_registry

WS2812_MMAP = {
    "brightness": 0,
    "palette_id": 1,
    "rgb": 2,
    "flags": 3,
    "torch_spark_threshold": 4,
    "torch_adj_h": 5,
    "torch_adj_v": 6,
    "torch_passive_retention": 7,
    "torch_spark_transfer": 8,
    "torch_spark_retention": 9,
    "torch_color_coeff": 10,
    "noise_speed_step": 13,
    "noise_scale": 14,
}

CONFIG: dict[str, Any] = {
    "device": [
        {"id": "A", "location": "rs485-0", "slave": 128, "mmap_id": "ws2812", "strip_size": 2},
        {"id": "B", "location": "rs485-1", "slave": 7, "mmap_id": "ws2812", "strip_size": 100},
        {"id": "C", "location": "rs485-1", "slave": 8, "mmap_id": "minimal", "strip_size": 10},
    ],
    "mmap": {
        "ws2812": WS2812_MMAP,
        "minimal": {"brightness": 0, "palette_id": 1, "flags": 2},
    },
}


@pytest.fixture
def config_document() -> dict[str, Any]:
    return copy.deepcopy(CONFIG)


@pytest.fixture
def registry(config_document: dict[str, Any]) -> DeviceRegistry:
    return load_registry(config_document)
