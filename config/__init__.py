# -*- coding: utf-8 -*-
"""
配置层：默认参数常量与日志配置。
- settings：窗宽窗位、播放节奏、缩放范围等默认值
- logging_config：根 logger 初始化
"""

from .logging_config import configure_logging

__all__ = ["configure_logging"]
