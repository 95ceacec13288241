# -*- coding: utf-8 -*-
"""
View 层：纯显示与用户输入，通过 ViewModel 获取数据与执行命令。
- SliceView：单个切片视图（轴状位/矢状位/冠状位切换、播放、调窗、缩放）
- frame_to_qimage：显示帧转 QImage
"""

from .slice_view import SliceView, frame_to_qimage

__all__ = ["SliceView", "frame_to_qimage"]
