# -*- coding: utf-8 -*-
"""
日志配置。
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    配置根 logger。
    - log_level：DEBUG / INFO / WARNING / ERROR，未知名称按 INFO 处理
    - log_file：可选日志文件路径（UTF-8）
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # force=True：允许重复调用时覆盖已有配置
    logging.basicConfig(level=level, handlers=handlers, force=True)
