# -*- coding: utf-8 -*-
"""
切片显示视图（View）。
仅负责把 VolumeSession 的当前帧画出来并把键盘/滚轮输入转成会话命令；
切片、窗宽窗位、播放等逻辑均在 ViewModel 中。
"""

from typing import TYPE_CHECKING, Optional

import numpy as np
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QKeyEvent, QPixmap, QWheelEvent
from PySide6.QtWidgets import QFrame, QLabel, QSizePolicy, QVBoxLayout

from models import WINDOW_PRESETS, Plane, SliceFrame

if TYPE_CHECKING:
    from viewmodels.volume_session import VolumeSession


def frame_to_qimage(frame: SliceFrame) -> QImage:
    """SliceFrame -> 8 位灰度 QImage（深拷贝，不引用帧缓冲区）。"""
    pixels = np.ascontiguousarray(frame.pixels, dtype=np.uint8)
    h, w = pixels.shape
    return QImage(pixels.tobytes(), w, h, w, QImage.Format_Grayscale8).copy()


class SliceView(QFrame):
    """
    单个 2D 切片视图。
    - 标题栏显示平面、1 起始层号/层数与窗宽窗位
    - 图像按会话缩放系数缩放，最近邻插值保持像素感
    - 键盘：←/→ 切层，空格 播放/暂停，1/2/3 切换平面，+/-/0 缩放，P 轮换预设，A 自动窗，F 全范围窗
    - 滚轮：切层
    """

    PLANE_KEYS = {
        Qt.Key_1: Plane.AXIAL,
        Qt.Key_2: Plane.SAGITTAL,
        Qt.Key_3: Plane.CORONAL,
    }

    def __init__(self, session: "VolumeSession", parent=None):
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        self.setFocusPolicy(Qt.StrongFocus)

        self._session = session
        self._preset_names = list(WINDOW_PRESETS)
        self._preset_cursor = -1

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        self._title_label = QLabel()
        self._title_label.setStyleSheet("color: #ffffff; font-weight: bold;")
        layout.addWidget(self._title_label)

        self._image_label = QLabel()
        self._image_label.setAlignment(Qt.AlignCenter)
        self._image_label.setSizePolicy(QSizePolicy.Ignored, QSizePolicy.Ignored)
        layout.addWidget(self._image_label, 1)

        self._session.frame_invalidated.connect(self.refresh_display)
        self._session.volume_loaded.connect(self.refresh_display)
        self._session.volume_closed.connect(self.refresh_display)
        self.refresh_display()

    @property
    def caption(self) -> str:
        return self._title_label.text()

    def refresh_display(self) -> None:
        """从 ViewModel 拉取当前帧并更新 Label。"""
        frame: Optional[SliceFrame] = self._session.current_frame()
        if frame is None:
            self._image_label.clear()
            self._image_label.setText("未加载数据")
            self._title_label.setText("")
            return

        pixmap = QPixmap.fromImage(frame_to_qimage(frame))
        w = max(int(round(frame.width * frame.zoom)), 1)
        h = max(int(round(frame.height * frame.zoom)), 1)
        self._image_label.setPixmap(
            pixmap.scaled(w, h, Qt.IgnoreAspectRatio, Qt.FastTransformation)
        )
        status = "  ▶" if self._session.state.playing else ""
        self._title_label.setText(frame.caption + status)

    def _cycle_preset(self) -> None:
        self._preset_cursor = (self._preset_cursor + 1) % len(self._preset_names)
        self._session.apply_preset(self._preset_names[self._preset_cursor])

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = event.key()
        session = self._session
        if key == Qt.Key_Left:
            session.previous_slice()
        elif key == Qt.Key_Right:
            session.next_slice()
        elif key == Qt.Key_Space:
            session.toggle_playback()
        elif key in self.PLANE_KEYS:
            session.set_plane(self.PLANE_KEYS[key])
        elif key in (Qt.Key_Plus, Qt.Key_Equal):
            session.zoom_in()
        elif key == Qt.Key_Minus:
            session.zoom_out()
        elif key == Qt.Key_0:
            session.reset_zoom()
        elif key == Qt.Key_P:
            self._cycle_preset()
        elif key == Qt.Key_A:
            session.use_auto_window()
        elif key == Qt.Key_F:
            session.use_full_range_window()
        else:
            super().keyPressEvent(event)
            return
        event.accept()

    def wheelEvent(self, event: QWheelEvent) -> None:
        """滚轮：在当前平面上切换层号。"""
        if self._session.volume is None:
            return
        if event.angleDelta().y() > 0:
            self._session.next_slice()
        else:
            self._session.previous_slice()
        event.accept()
