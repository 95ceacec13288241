# -*- coding: utf-8 -*-
"""
NIfTI 切片浏览器入口。
用法：python main.py [scan.nii | scan.nii.gz]
未给出路径时弹出文件选择框。文件读取在这里完成，会话只接收字节。
"""

import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication, QFileDialog, QMessageBox

from config import configure_logging, settings
from models import DecodeError
from viewmodels import VolumeSession
from views import SliceView

logger = logging.getLogger(__name__)


def _ask_for_path() -> str:
    path, _ = QFileDialog.getOpenFileName(
        None, "打开 NIfTI 文件", "", "NIfTI (*.nii *.nii.gz);;所有文件 (*)"
    )
    return path


def main():
    configure_logging(settings.LOG_LEVEL)
    app = QApplication(sys.argv)

    path = sys.argv[1] if len(sys.argv) > 1 else _ask_for_path()
    if not path:
        return 0

    session = VolumeSession()
    view = SliceView(session)
    session.status_message.connect(logger.info)
    app.aboutToQuit.connect(session.close)

    try:
        data = Path(path).read_bytes()
        session.load(data, filename=Path(path).name)
    except (OSError, DecodeError) as e:
        QMessageBox.critical(None, "加载失败", f"无法加载 {path}：\n{e}")
        return 1

    view.setWindowTitle(f"NIfTI 切片浏览 - {Path(path).name}")
    view.resize(640, 680)
    view.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
