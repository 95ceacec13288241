# -*- coding: utf-8 -*-
"""
默认参数（常量）。
ViewModel 与 Model 只从这里读取默认值，不在代码中散落魔法数字。
"""

import os

# 日志级别，可用环境变量覆盖
LOG_LEVEL = os.environ.get("NIFTI_VIEWER_LOG_LEVEL", "INFO")

# 电影模式播放间隔（毫秒）
DEFAULT_PLAYBACK_INTERVAL_MS = 150

# 自动窗：取前 N 个高于下限的体素求均值作为窗位，窗宽固定
AUTO_WINDOW_SAMPLE_COUNT = 100_000
AUTO_WINDOW_FLOOR = -1000.0
AUTO_WINDOW_WIDTH = 800.0

# 窗宽下限（<=0 的窗宽会被钳制到此值）
MIN_WINDOW_WIDTH = 1.0

# 未加载体数据时的默认窗（软组织窗）
DEFAULT_WINDOW_CENTER = 50.0
DEFAULT_WINDOW_WIDTH = 350.0

# 显示缩放
ZOOM_MIN = 0.5
ZOOM_MAX = 3.0
ZOOM_STEP = 1.2
