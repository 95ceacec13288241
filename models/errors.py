# -*- coding: utf-8 -*-
"""
错误类型（Model）。
解码错误对本次加载是致命的；索引、预设、窗宽错误属于调用方错误，由 ViewModel 决定钳制或回退。
"""


class VolumeViewerError(Exception):
    """所有体数据浏览相关错误的基类。"""


class DecodeError(VolumeViewerError):
    """体数据解码失败（本次加载终止，不会产生半初始化的体数据）。"""


class FormatError(DecodeError):
    """魔数缺失/不匹配，或头部、体素数据被截断。"""


class DecompressionError(DecodeError):
    """gzip/DEFLATE 压缩流损坏或不完整。"""


class UnsupportedLayoutError(DecodeError):
    """头部声明了不支持的版本或布局（NIfTI-2、分离式 .hdr/.img）。"""


class IndexOutOfRangeError(VolumeViewerError, IndexError):
    """切片层号超出当前平面的层数范围。"""


class UnknownPresetError(VolumeViewerError, LookupError):
    """未知的窗宽窗位预设名称。"""


class InvalidWindowError(VolumeViewerError, ValueError):
    """窗位或窗宽不是有限实数。"""
