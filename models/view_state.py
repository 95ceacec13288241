# -*- coding: utf-8 -*-
"""
视图状态与显示帧（Model）。
ViewState 不可变，每次状态迁移整体替换，读取方拿到的总是平面与层号一致的快照。
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .nifti_volume import NiftiVolume
from .slicing import Plane, extract_slice, slice_count
from .windowing import DEFAULT_WINDOW, WindowSetting, apply_window


@dataclass(frozen=True)
class ViewState:
    """
    当前浏览状态。
    - plane / slice_index：一起更新，slice_index 满足 0 <= index < 层数
    - window：当前窗宽窗位
    - zoom：显示缩放，仅透传给显示层
    - playing：电影模式是否在播放
    """

    plane: Plane = Plane.AXIAL
    slice_index: int = 0
    window: WindowSetting = DEFAULT_WINDOW
    zoom: float = 1.0
    playing: bool = False


@dataclass(frozen=True, eq=False)
class SliceFrame:
    """交给显示层的一帧：8 位灰度栅格（行优先）与标注信息。"""

    pixels: np.ndarray  # uint8, (height, width)
    plane: Plane
    slice_index: int
    slice_count: int
    window: WindowSetting
    zoom: float

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def slice_number(self) -> int:
        """1 起始的层号，用于标注。"""
        return self.slice_index + 1

    @property
    def caption(self) -> str:
        return (
            f"{self.plane.label}  {self.slice_number}/{self.slice_count}  "
            f"W:{self.window.width:g} C:{self.window.center:g}"
        )


def render_pixels(volume: NiftiVolume, plane: Plane, index: int, window: WindowSetting) -> np.ndarray:
    """切片提取 + 窗宽窗位，纯函数。"""
    return apply_window(extract_slice(volume, plane, index), window)


def render_frame(
    volume: NiftiVolume, state: ViewState, pixels: Optional[np.ndarray] = None
) -> SliceFrame:
    """
    由体数据与状态快照生成一帧，相同输入得到相同输出。
    pixels 为调用方缓存的、与 (plane, slice_index, window) 对应的栅格，缺省时重新计算。
    """
    if pixels is None:
        pixels = render_pixels(volume, state.plane, state.slice_index, state.window)
    return SliceFrame(
        pixels=pixels,
        plane=state.plane,
        slice_index=state.slice_index,
        slice_count=slice_count(volume, state.plane),
        window=state.window,
        zoom=state.zoom,
    )
