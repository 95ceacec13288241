# -*- coding: utf-8 -*-
"""
Model 层：体数据解码、切片提取、窗宽窗位与视图状态，不依赖 Qt。
- NiftiVolume：解码后的不可变体数据（体素、维度、体素间距）
- decode_nifti：NIfTI-1（可选 gzip）字节流解码
- Plane / extract_slice：三正交平面切片
- WindowSetting / apply_window：窗宽窗位映射与临床预设
- ViewState / SliceFrame：浏览状态快照与显示帧
"""

from .errors import (
    DecodeError,
    DecompressionError,
    FormatError,
    IndexOutOfRangeError,
    InvalidWindowError,
    UnknownPresetError,
    UnsupportedLayoutError,
    VolumeViewerError,
)
from .nifti_decoder import NiftiHeader, decode_nifti, is_gzip_payload
from .nifti_volume import NiftiVolume, VolumeStatistics
from .slicing import Plane, extract_slice, slice_count, slice_shape
from .view_state import SliceFrame, ViewState, render_frame, render_pixels
from .windowing import (
    DEFAULT_WINDOW,
    WINDOW_PRESETS,
    WindowSetting,
    apply_window,
    auto_window,
    full_range_window,
    preset,
)

__all__ = [
    "DecodeError",
    "DecompressionError",
    "FormatError",
    "IndexOutOfRangeError",
    "InvalidWindowError",
    "UnknownPresetError",
    "UnsupportedLayoutError",
    "VolumeViewerError",
    "NiftiHeader",
    "decode_nifti",
    "is_gzip_payload",
    "NiftiVolume",
    "VolumeStatistics",
    "Plane",
    "extract_slice",
    "slice_count",
    "slice_shape",
    "SliceFrame",
    "ViewState",
    "render_frame",
    "render_pixels",
    "DEFAULT_WINDOW",
    "WINDOW_PRESETS",
    "WindowSetting",
    "apply_window",
    "auto_window",
    "full_range_window",
    "preset",
]
