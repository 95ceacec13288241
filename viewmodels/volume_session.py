# -*- coding: utf-8 -*-
"""
体数据浏览会话 ViewModel（MVVM）。
负责：NIfTI 加载/关闭、平面/层号/窗宽窗位/缩放状态、电影模式播放、生成当前显示帧。
View 通过信号接收刷新通知，通过 current_frame() 主动拉取显示数据。
所有状态修改都应在会话所属线程（通常是 GUI 线程）中进行。
"""

import logging
import math
from dataclasses import replace
from typing import Optional, Tuple, Union

import numpy as np
from PySide6.QtCore import QObject, Signal

from config import settings
from models import (
    DecodeError,
    NiftiVolume,
    Plane,
    SliceFrame,
    UnknownPresetError,
    ViewState,
    WindowSetting,
    auto_window,
    decode_nifti,
    full_range_window,
    preset,
    render_frame,
    render_pixels,
    slice_count,
)
from models.nifti_decoder import BytesLike

from .playback_sequencer import PlaybackSequencer

logger = logging.getLogger(__name__)


class VolumeSession(QObject):
    """
    会话 ViewModel。
    - 持有不可变的 NiftiVolume 与 ViewState 快照，提供加载、切换平面/层号、调窗、缩放、播放等命令
    - ViewState 每次整体替换，平面与层号、窗位与窗宽总是成组更新
    - 发出信号：volume_loaded, volume_closed, state_changed, frame_invalidated, status_message
    """

    # 体数据加载完成
    volume_loaded = Signal()
    # 体数据被关闭/清除（包括加载失败）
    volume_closed = Signal()
    # 状态快照变化，参数为新的 ViewState
    state_changed = Signal(object)
    # 当前帧需要重绘
    frame_invalidated = Signal()
    # 状态栏文案
    status_message = Signal(str)

    def __init__(
        self,
        playback_interval_ms: int = settings.DEFAULT_PLAYBACK_INTERVAL_MS,
        parent=None,
    ):
        super().__init__(parent)
        self._volume: Optional[NiftiVolume] = None
        self._state = ViewState()
        self._auto_window: Optional[WindowSetting] = None
        # 最近一次 (plane, index, window) -> 像素
        self._frame_cache: Optional[Tuple[tuple, np.ndarray]] = None
        self._sequencer = PlaybackSequencer(
            self._playback_position,
            self._playback_seek,
            interval_ms=playback_interval_ms,
            parent=self,
        )
        self._sequencer.running_changed.connect(self._on_running_changed)

    @property
    def volume(self) -> Optional[NiftiVolume]:
        """当前体数据，未加载时为 None。"""
        return self._volume

    @property
    def state(self) -> ViewState:
        """当前状态快照（不可变，可跨线程读取）。"""
        return self._state

    @property
    def sequencer(self) -> PlaybackSequencer:
        return self._sequencer

    @property
    def auto_window(self) -> Optional[WindowSetting]:
        """加载时估算的初始窗。"""
        return self._auto_window

    def slice_count(self, plane: Union[Plane, str, None] = None) -> int:
        """指定平面（默认当前平面）的层数，未加载时为 0。"""
        if self._volume is None:
            return 0
        return slice_count(self._volume, self._state.plane if plane is None else plane)

    # ---------- 命令：加载与关闭 ----------

    def load(
        self,
        data: BytesLike,
        filename: Optional[str] = None,
        compressed: Optional[bool] = None,
    ) -> NiftiVolume:
        """
        解码并替换当前体数据，状态重置为：轴状位、中间层、自动窗、缩放 1、未播放。
        解码失败时旧体数据同样被清除，状态回到默认值，然后把解码错误抛给调用方。
        """
        self._sequencer.stop()
        try:
            volume = decode_nifti(data, filename=filename, compressed=compressed)
        except DecodeError as e:
            logger.error("加载 NIfTI 失败：%s", e)
            self._clear()
            self.status_message.emit(f"加载 NIfTI 失败：{e}")
            raise

        # 新状态全部算好后再替换，避免出现体数据与状态不匹配的中间态
        window = auto_window(volume)
        middle = slice_count(volume, Plane.AXIAL) // 2
        state = ViewState(plane=Plane.AXIAL, slice_index=middle, window=window)

        self._release_volume()
        self._volume = volume
        self._auto_window = window
        self._set_state(state)
        nx, ny, nz = volume.dims
        logger.info("已加载体数据 %s：%dx%dx%d", filename or "<bytes>", nx, ny, nz)
        self.status_message.emit(
            f"已加载 {filename or 'NIfTI 数据'}，尺寸 {nx}×{ny}×{nz}，类型 {volume.dtype_name}"
        )
        self.volume_loaded.emit()
        return volume

    def close(self) -> None:
        """停止播放并释放体数据。"""
        self._sequencer.stop()
        if self._volume is None:
            return
        self._clear()
        logger.info("会话已关闭")
        self.status_message.emit("已关闭体数据")

    def _clear(self) -> None:
        had_volume = self._volume is not None
        self._release_volume()
        self._set_state(ViewState())
        if had_volume:
            self.volume_closed.emit()

    def _release_volume(self) -> None:
        if self._volume is not None:
            self._volume.release()
        self._volume = None
        self._auto_window = None
        self._frame_cache = None

    # ---------- 命令：平面与层号 ----------

    def set_plane(self, plane: Union[Plane, str]) -> None:
        """切换平面：停止播放，层号归零。"""
        plane = Plane.coerce(plane)
        self._sequencer.stop()
        self._set_state(replace(self._state, plane=plane, slice_index=0, playing=False))

    def set_slice_index(self, index: int) -> None:
        """设置层号（钳制到 [0, 层数-1]），会先停止播放。"""
        self._sequencer.stop()
        count = self.slice_count()
        if count == 0:
            return
        index = int(np.clip(int(index), 0, count - 1))
        self._set_state(replace(self._state, slice_index=index))

    def next_slice(self) -> None:
        self.set_slice_index(self._state.slice_index + 1)

    def previous_slice(self) -> None:
        self.set_slice_index(self._state.slice_index - 1)

    # ---------- 命令：窗宽窗位 ----------

    def set_window(self, center: float, width: float) -> None:
        """设置窗位/窗宽；窗宽 <= 0 会被钳制到最小窗宽。"""
        self._set_state(replace(self._state, window=WindowSetting(center, width)))

    def apply_preset(self, name: str) -> WindowSetting:
        """应用命名预设；名称未知时保持当前窗并抛出 UnknownPresetError。"""
        try:
            window = preset(name)
        except UnknownPresetError as e:
            logger.warning("%s，保持当前窗", e)
            self.status_message.emit(str(e))
            raise
        self._set_state(replace(self._state, window=window))
        return window

    def use_auto_window(self) -> None:
        if self._auto_window is not None:
            self._set_state(replace(self._state, window=self._auto_window))

    def use_full_range_window(self) -> None:
        if self._volume is not None:
            self._set_state(replace(self._state, window=full_range_window(self._volume)))

    # ---------- 命令：缩放 ----------

    def set_zoom(self, zoom: float) -> None:
        zoom = float(zoom)
        if not math.isfinite(zoom) or zoom <= 0:
            raise ValueError(f"缩放必须为正数：{zoom}")
        self._set_state(replace(self._state, zoom=zoom))

    def zoom_in(self) -> None:
        self.set_zoom(min(self._state.zoom * settings.ZOOM_STEP, settings.ZOOM_MAX))

    def zoom_out(self) -> None:
        self.set_zoom(max(self._state.zoom / settings.ZOOM_STEP, settings.ZOOM_MIN))

    def reset_zoom(self) -> None:
        self.set_zoom(1.0)

    # ---------- 命令：播放 ----------

    def play(self) -> None:
        if self._volume is None:
            return
        self._sequencer.start()

    def stop(self) -> None:
        self._sequencer.stop()

    def toggle_playback(self) -> None:
        if self._sequencer.is_running:
            self.stop()
        else:
            self.play()

    def set_playback_interval(self, interval_ms: int) -> None:
        self._sequencer.set_interval(interval_ms)

    def _playback_position(self) -> Tuple[int, int]:
        state = self._state
        count = 0 if self._volume is None else slice_count(self._volume, state.plane)
        return state.slice_index, count

    def _playback_seek(self, index: int) -> None:
        self._set_state(replace(self._state, slice_index=index))

    def _on_running_changed(self, running: bool) -> None:
        self._set_state(replace(self._state, playing=running))

    # ---------- 供 View 获取展示数据 ----------

    def current_frame(self) -> Optional[SliceFrame]:
        """
        由当前状态快照生成显示帧：切片提取后做窗宽窗位映射。
        未加载数据时返回 None。
        """
        volume = self._volume
        if volume is None:
            return None
        state = self._state
        key = (state.plane, state.slice_index, state.window)
        if self._frame_cache is not None and self._frame_cache[0] == key:
            pixels = self._frame_cache[1]
        else:
            pixels = render_pixels(volume, state.plane, state.slice_index, state.window)
            pixels.flags.writeable = False
            self._frame_cache = (key, pixels)
        return render_frame(volume, state, pixels=pixels)

    def get_volume_info(self) -> dict:
        """返回体数据信息（尺寸、间距、类型、统计量、各平面层数），供信息面板显示。"""
        if self._volume is None:
            return {}
        volume = self._volume
        stats = volume.statistics
        return {
            "dims": volume.dims,
            "spacing": volume.voxel_spacing,
            "data_type": volume.dtype_name,
            "datatype_code": volume.datatype_code,
            "min_value": stats.min,
            "max_value": stats.max,
            "mean_value": stats.mean,
            "slice_counts": {plane.value: slice_count(volume, plane) for plane in Plane},
        }

    def _set_state(self, new_state: ViewState) -> None:
        if new_state == self._state:
            return
        self._state = new_state
        self.state_changed.emit(new_state)
        self.frame_invalidated.emit()
