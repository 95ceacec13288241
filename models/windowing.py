# -*- coding: utf-8 -*-
"""
窗宽窗位（Model）。
- WindowSetting：窗位 center / 窗宽 width，窗宽 <= 0 时钳制到最小值
- WINDOW_PRESETS：常用临床预设（CT HU）
- apply_window：把标量栅格线性映射为 8 位灰度，窗外饱和
- auto_window / full_range_window：由体数据估算初始窗
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict

import numpy as np

from config import settings

from .errors import InvalidWindowError, UnknownPresetError
from .nifti_volume import NiftiVolume

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowSetting:
    center: float
    width: float

    def __post_init__(self):
        center = float(self.center)
        width = float(self.width)
        if not (math.isfinite(center) and math.isfinite(width)):
            raise InvalidWindowError(f"窗位/窗宽必须是有限实数：C={center} W={width}")
        if width <= 0:
            logger.warning("窗宽 %s <= 0，钳制为 %s", width, settings.MIN_WINDOW_WIDTH)
            width = settings.MIN_WINDOW_WIDTH
        object.__setattr__(self, "center", center)
        object.__setattr__(self, "width", width)

    @property
    def low(self) -> float:
        return self.center - self.width / 2

    @property
    def high(self) -> float:
        return self.center + self.width / 2


WINDOW_PRESETS: Dict[str, WindowSetting] = {
    "soft_tissue": WindowSetting(50, 350),
    "lung": WindowSetting(-600, 1500),
    "bone": WindowSetting(400, 1500),
    "brain": WindowSetting(40, 80),
    "liver": WindowSetting(60, 160),
    "mediastinum": WindowSetting(50, 350),
    "angiography": WindowSetting(300, 600),
}

DEFAULT_WINDOW = WindowSetting(settings.DEFAULT_WINDOW_CENTER, settings.DEFAULT_WINDOW_WIDTH)


def normalize_preset_name(name: str) -> str:
    return "_".join(str(name).strip().lower().replace("-", " ").split())


def preset(name: str) -> WindowSetting:
    """按名称取预设，"soft-tissue" / "Soft Tissue" / "soft_tissue" 等价。"""
    key = normalize_preset_name(name)
    try:
        return WINDOW_PRESETS[key]
    except KeyError:
        raise UnknownPresetError(f"未知预设：{name!r}") from None


def apply_window(raster: np.ndarray, window: WindowSetting) -> np.ndarray:
    """
    窗宽窗位映射，返回与输入同形状的 uint8 数组。
    value <= low -> 0；value >= high -> 255；其余为 (value - low) / width * 255 四舍五入。
    NaN 映射为 0。逐像素独立，可对不相交的分块并行调用。
    """
    values = np.asarray(raster, dtype=np.float64)
    scaled = (values - window.low) / window.width * 255.0
    out = np.floor(scaled + 0.5)
    np.clip(out, 0, 255, out=out)
    out[np.isnan(out)] = 0
    return out.astype(np.uint8)


def full_range_window(volume: NiftiVolume) -> WindowSetting:
    """覆盖体数据全部取值范围的窗（相当于关闭窗宽窗位、自动拉伸到 0~255）。"""
    stats = volume.statistics
    width = max(stats.max - stats.min, settings.MIN_WINDOW_WIDTH)
    return WindowSetting((stats.max + stats.min) / 2, width)


def auto_window(
    volume: NiftiVolume,
    sample_count: int = settings.AUTO_WINDOW_SAMPLE_COUNT,
    floor: float = settings.AUTO_WINDOW_FLOOR,
    width: float = settings.AUTO_WINDOW_WIDTH,
) -> WindowSetting:
    """
    加载时的初始窗：前 sample_count 个体素中高于 floor 的有限值求均值作为窗位，窗宽固定。
    没有体素高于 floor（例如全是空气/填充值）时退回 full_range_window。
    """
    head = np.asarray(volume.samples[:sample_count], dtype=np.float64)
    selected = head[np.isfinite(head) & (head > floor)]
    if selected.size == 0:
        logger.info("前 %d 个体素均不高于 %s，使用全范围窗", sample_count, floor)
        return full_range_window(volume)
    return WindowSetting(float(selected.mean()), width)
