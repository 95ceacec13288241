# -*- coding: utf-8 -*-
"""
电影模式播放器（ViewModel 组件）。
用 QTimer 按固定间隔推进层号，越过最后一层回到 0；状态只有 STOPPED / RUNNING。
层号与层数不缓存，每次 tick 通过 position 回调重新读取，避免平面切换后越界。
"""

import logging
from enum import Enum
from typing import Callable, Tuple

from PySide6.QtCore import QObject, QTimer, Signal

from config import settings

logger = logging.getLogger(__name__)


class PlaybackState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


def next_slice_index(index: int, count: int) -> int:
    """(index + 1) mod count，只向前、到尾回绕。"""
    if count <= 0:
        return 0
    return (int(index) + 1) % count


class PlaybackSequencer(QObject):
    """
    层号推进器。
    - position()：一次性返回 (当前层号, 当前平面层数)
    - seek(index)：写回新的层号（由持有状态的一方执行）
    - stop() 之后不会再有 tick 生效，包括 stop 时已排队的 tick
    """

    # 推进后的新层号
    ticked = Signal(int)
    # 播放状态变化（True=RUNNING）
    running_changed = Signal(bool)

    def __init__(
        self,
        position: Callable[[], Tuple[int, int]],
        seek: Callable[[int], None],
        interval_ms: int = settings.DEFAULT_PLAYBACK_INTERVAL_MS,
        parent=None,
    ):
        super().__init__(parent)
        self._position = position
        self._seek = seek
        self._state = PlaybackState.STOPPED
        self._timer = QTimer(self)
        self._timer.setInterval(self._validate_interval(interval_ms))
        self._timer.timeout.connect(self.tick)

    @staticmethod
    def _validate_interval(interval_ms: int) -> int:
        interval_ms = int(interval_ms)
        if interval_ms <= 0:
            raise ValueError(f"播放间隔必须为正数（毫秒）：{interval_ms}")
        return interval_ms

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is PlaybackState.RUNNING

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def set_interval(self, interval_ms: int) -> None:
        """修改播放间隔；运行中的计时器按新间隔重新计时。"""
        self._timer.setInterval(self._validate_interval(interval_ms))
        if self.is_running:
            self._timer.start()

    def start(self) -> None:
        if self.is_running:
            return
        self._state = PlaybackState.RUNNING
        self._timer.start()
        logger.info("开始播放，间隔 %d ms", self._timer.interval())
        self.running_changed.emit(True)

    def stop(self) -> None:
        if not self.is_running:
            return
        self._state = PlaybackState.STOPPED
        self._timer.stop()
        logger.info("停止播放")
        self.running_changed.emit(False)

    def tick(self) -> None:
        """推进一层。停止状态下忽略（包括已排队的计时器事件）。"""
        if not self.is_running:
            return
        index, count = self._position()
        if count <= 0:
            self.stop()
            return
        new_index = next_slice_index(index, count)
        self._seek(new_index)
        logger.debug("tick -> %d/%d", new_index, count)
        self.ticked.emit(new_index)
