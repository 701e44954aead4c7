from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

import numpy as np

from huds.common import (
    COL_NORMAL_GREEN,
    COL_WARNING_RED,
    ColorScheme,
    RenderConfig,
    TileKind,
    parse_hex_color,
)

WEBSOCKET_DEFAULT_MAX = 100.0
WEBSOCKET_TITLE = "WebSocket"


def _to_float_or_none(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip() == "":
        return None
    try:
        out = float(value)
    except Exception:
        return None
    if math.isnan(out):
        return None
    return out


def _to_int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except Exception:
        try:
            return int(float(value))
        except Exception:
            return None


def _to_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return bool(default)
    raw = str(value).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return bool(default)


def _f32(value: float) -> float:
    # Samples are stored as float32; limits must match for equality checks.
    return float(np.float32(value))


def _norm_key(raw: Any) -> str:
    return str(raw or "").strip().lower().replace("_", "").replace("-", "")


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in data:
            return data[k]
    return None


class DataSource(str, Enum):
    LM_SENSORS = "lmsensors"
    WEBSOCKET = "websocket"

    @classmethod
    def parse(cls, raw: Any) -> "DataSource":
        key = _norm_key(raw)
        for src in cls:
            if src.value == key:
                return src
        return cls.LM_SENSORS


class MetricType(str, Enum):
    CPU_TEMP = "cputemp"
    CPU_PACKAGE_TEMP = "cpupackagetemp"
    CPU_LOAD = "cpuload"
    GPU_TEMP = "gputemp"
    GPU_LOAD = "gpuload"
    MOTHERBOARD_TEMP = "motherboardtemp"
    NVME_TEMP = "nvmetemp"
    CPU_FAN = "cpufan"
    SYSTEM_FAN = "systemfan"
    CPU_VOLTAGE = "cpuvoltage"
    DISK_WRITE = "diskwrite"
    DISK_READ = "diskread"
    RAM_USAGE = "ramusage"
    RAM_TEMP = "ramtemp"
    NET_DOWNLOAD = "netdownload"
    NET_UPLOAD = "netupload"

    @classmethod
    def parse(cls, raw: Any) -> "MetricType":
        key = _norm_key(raw)
        for m in cls:
            if m.value == key:
                return m
        return cls.CPU_TEMP

    @property
    def default_max(self) -> float:
        return _DEFAULT_MAX[self]

    @property
    def default_threshold(self) -> float | None:
        return _DEFAULT_THRESHOLD.get(self)

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAME[self]

    @property
    def value_suffix(self) -> str:
        return _VALUE_SUFFIX[self]


_TEMPS = (
    MetricType.CPU_TEMP,
    MetricType.CPU_PACKAGE_TEMP,
    MetricType.GPU_TEMP,
    MetricType.MOTHERBOARD_TEMP,
    MetricType.NVME_TEMP,
    MetricType.RAM_TEMP,
)
_LOADS = (MetricType.CPU_LOAD, MetricType.GPU_LOAD, MetricType.RAM_USAGE)
_FANS = (MetricType.CPU_FAN, MetricType.SYSTEM_FAN)
_DISKS = (MetricType.DISK_WRITE, MetricType.DISK_READ)
_NETS = (MetricType.NET_DOWNLOAD, MetricType.NET_UPLOAD)

_DEFAULT_MAX: dict[MetricType, float] = {
    **{m: 120.0 for m in _TEMPS},
    **{m: 100.0 for m in _LOADS},
    **{m: 3000.0 for m in _FANS},
    MetricType.CPU_VOLTAGE: 2.0,
    **{m: 500.0 for m in _DISKS},  # MB/s
    **{m: 125.0 for m in _NETS},  # MB/s, 1 Gbps link
}

_DEFAULT_THRESHOLD: dict[MetricType, float] = {
    MetricType.CPU_TEMP: 80.0,
    MetricType.CPU_PACKAGE_TEMP: 80.0,
    **{m: 80.0 for m in _LOADS},
    MetricType.GPU_TEMP: 85.0,
    MetricType.MOTHERBOARD_TEMP: 60.0,
    MetricType.NVME_TEMP: 70.0,
    MetricType.RAM_TEMP: 85.0,
}

_DISPLAY_NAME: dict[MetricType, str] = {
    MetricType.CPU_TEMP: "CPU Temp",
    MetricType.CPU_PACKAGE_TEMP: "CPU Package",
    MetricType.CPU_LOAD: "CPU Load",
    MetricType.GPU_TEMP: "GPU Temp",
    MetricType.GPU_LOAD: "GPU Load",
    MetricType.MOTHERBOARD_TEMP: "Motherboard",
    MetricType.NVME_TEMP: "NVMe Temp",
    MetricType.CPU_FAN: "CPU Fan",
    MetricType.SYSTEM_FAN: "System Fan",
    MetricType.CPU_VOLTAGE: "CPU Voltage",
    MetricType.DISK_WRITE: "Disk Write",
    MetricType.DISK_READ: "Disk Read",
    MetricType.RAM_USAGE: "RAM Usage",
    MetricType.RAM_TEMP: "RAM Temp",
    MetricType.NET_DOWNLOAD: "Net Down",
    MetricType.NET_UPLOAD: "Net Up",
}

_VALUE_SUFFIX: dict[MetricType, str] = {
    **{m: "°C" for m in _TEMPS},
    **{m: "%" for m in _LOADS},
    **{m: " RPM" for m in _FANS},
    MetricType.CPU_VOLTAGE: "V",
    **{m: " MB/s" for m in _DISKS},
    **{m: " MB/s" for m in _NETS},
}


@dataclass
class TileSettings:
    data_source: DataSource = DataSource.LM_SENSORS
    metric_type: MetricType = MetricType.CPU_TEMP
    fan_number: int | None = None
    visualization: TileKind = TileKind.GRAPH
    show_value_text: bool = False
    threshold: float | None = None
    normal_color: str = ""
    warning_color: str = ""
    min_value: float | None = None
    max_value: float | None = None
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataSource": self.data_source.value,
            "metricType": self.metric_type.value,
            "fanNumber": self.fan_number,
            "visualizationType": self.visualization.value,
            "showValueText": bool(self.show_value_text),
            "threshold": self.threshold,
            "normalColor": str(self.normal_color),
            "warningColor": str(self.warning_color),
            "minValue": self.min_value,
            "maxValue": self.max_value,
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "TileSettings":
        data = d if isinstance(d, dict) else {}
        title = _pick(data, "title")
        return cls(
            data_source=DataSource.parse(_pick(data, "dataSource", "data_source")),
            metric_type=MetricType.parse(_pick(data, "metricType", "metric_type")),
            fan_number=_to_int_or_none(_pick(data, "fanNumber", "fan_number")),
            visualization=TileKind.parse(_pick(data, "visualizationType", "visualization_type")),
            show_value_text=_to_bool(_pick(data, "showValueText", "show_value_text"), False),
            threshold=_to_float_or_none(_pick(data, "threshold")),
            normal_color=str(_pick(data, "normalColor", "normal_color") or ""),
            warning_color=str(_pick(data, "warningColor", "warning_color") or ""),
            min_value=_to_float_or_none(_pick(data, "minValue", "min_value")),
            max_value=_to_float_or_none(_pick(data, "maxValue", "max_value")),
            title=str(title) if title is not None else None,
        )

    def resolved_max(self) -> float:
        if self.max_value is not None:
            return float(self.max_value)
        if self.data_source == DataSource.WEBSOCKET:
            return WEBSOCKET_DEFAULT_MAX
        return self.metric_type.default_max

    def resolved_min(self) -> float:
        return float(self.min_value) if self.min_value is not None else 0.0

    def resolved_threshold(self) -> float | None:
        if self.threshold is not None:
            return float(self.threshold)
        if self.data_source == DataSource.WEBSOCKET:
            return None
        return self.metric_type.default_threshold

    def color_scheme(self) -> ColorScheme:
        return ColorScheme(
            normal_color=parse_hex_color(self.normal_color) or COL_NORMAL_GREEN,
            warning_color=parse_hex_color(self.warning_color) or COL_WARNING_RED,
        )

    def resolved_title(self) -> str:
        if self.title is not None:
            return str(self.title)
        if self.data_source == DataSource.WEBSOCKET:
            return WEBSOCKET_TITLE
        if self.metric_type == MetricType.SYSTEM_FAN:
            return f"Fan {self.fan_number if self.fan_number is not None else 1}"
        return self.metric_type.display_name

    def value_suffix(self) -> str:
        if self.data_source == DataSource.WEBSOCKET:
            return ""
        return self.metric_type.value_suffix

    def value_text(self, value: float) -> str:
        return f"{float(value):.1f}{self.value_suffix()}"

    def to_render_config(self, samples: Iterable[float]) -> RenderConfig:
        threshold = self.resolved_threshold()
        return RenderConfig(
            samples=tuple(_f32(v) for v in samples),
            min_value=_f32(self.resolved_min()),
            max_value=_f32(self.resolved_max()),
            threshold=_f32(threshold) if threshold is not None else None,
            color_scheme=self.color_scheme(),
            title=self.resolved_title(),
            kind=self.visualization,
        )
