# -*- coding: utf-8 -*-
import numpy as np
import pytest
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage
from PySide6.QtTest import QTest

from models import WINDOW_PRESETS, Plane, SliceFrame, WindowSetting
from viewmodels import VolumeSession
from views import SliceView, frame_to_qimage


@pytest.fixture
def session(nifti_bytes, sequential_data):
    s = VolumeSession()
    s.load(nifti_bytes(sequential_data))
    yield s
    s.close()


def test_frame_to_qimage():
    pixels = np.array([[0, 64, 128], [192, 255, 10]], dtype=np.uint8)
    frame = SliceFrame(pixels, Plane.CORONAL, 0, 3, WindowSetting(0, 10), 1.0)

    image = frame_to_qimage(frame)

    assert image.format() == QImage.Format_Grayscale8
    assert (image.width(), image.height()) == (3, 2)
    assert image.pixelColor(1, 0).red() == 64
    assert image.pixelColor(2, 1).red() == 10


def test_caption_follows_session(session):
    view = SliceView(session)
    assert view.caption.startswith("Axial  2/2")

    session.set_plane(Plane.SAGITTAL)
    assert view.caption.startswith("Sagittal  1/4")

    session.close()
    assert view.caption == ""


def test_keyboard_commands(session):
    view = SliceView(session)
    view.show()

    QTest.keyClick(view, Qt.Key_3)
    assert session.state.plane is Plane.CORONAL
    QTest.keyClick(view, Qt.Key_Right)
    assert session.state.slice_index == 1
    QTest.keyClick(view, Qt.Key_Left)
    assert session.state.slice_index == 0
    QTest.keyClick(view, Qt.Key_Plus)
    assert session.state.zoom == pytest.approx(1.2)
    QTest.keyClick(view, Qt.Key_0)
    assert session.state.zoom == 1.0
    QTest.keyClick(view, Qt.Key_P)
    assert session.state.window == WindowSetting(50, 350)
    QTest.keyClick(view, Qt.Key_F)
    assert session.state.window == WindowSetting(15.5, 31)
    QTest.keyClick(view, Qt.Key_Space)
    assert session.state.playing
    QTest.keyClick(view, Qt.Key_Space)
    assert not session.state.playing


def test_preset_key_cycles_through_all_presets(session):
    view = SliceView(session)
    view.show()

    seen = []
    for _ in range(len(WINDOW_PRESETS) + 1):
        QTest.keyClick(view, Qt.Key_P)
        seen.append(session.state.window)

    assert seen[:-1] == list(WINDOW_PRESETS.values())
    assert seen[-1] == seen[0]
