# -*- coding: utf-8 -*-
"""
ViewModel 层：连接 Model 与 View，暴露状态与命令，驱动 UI 更新。
- VolumeSession：体数据会话（加载、平面/层号/窗宽窗位/缩放、当前帧），通过信号通知 View 刷新
- PlaybackSequencer：电影模式层号推进器
"""

from .playback_sequencer import PlaybackSequencer, PlaybackState, next_slice_index
from .volume_session import VolumeSession

__all__ = ["PlaybackSequencer", "PlaybackState", "next_slice_index", "VolumeSession"]
