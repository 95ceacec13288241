# -*- coding: utf-8 -*-
import gzip

import numpy as np
import pytest

from models import FormatError, Plane, UnknownPresetError, WindowSetting, render_frame
from viewmodels import VolumeSession


@pytest.fixture
def session():
    s = VolumeSession(playback_interval_ms=10)
    yield s
    s.close()


@pytest.fixture
def ct_bytes(nifti_bytes):
    data = np.arange(6 * 5 * 4, dtype=np.int16).reshape(4, 5, 6) * 10 - 200
    return nifti_bytes(data, spacing=(0.8, 0.8, 2.0))


@pytest.fixture
def loaded(session, ct_bytes):
    session.load(ct_bytes, filename="ct.nii")
    return session


def test_defaults_before_load(session):
    assert session.volume is None
    assert session.current_frame() is None
    assert session.slice_count() == 0
    assert session.get_volume_info() == {}
    session.play()
    assert not session.state.playing


def test_load_resets_view_state(session, ct_bytes):
    loaded_events = []
    session.volume_loaded.connect(lambda: loaded_events.append(True))

    volume = session.load(ct_bytes, filename="ct.nii")

    state = session.state
    assert volume.dims == (6, 5, 4)
    assert state.plane is Plane.AXIAL
    assert state.slice_index == 2
    assert state.window == session.auto_window
    assert state.window.width == 800.0
    assert state.zoom == 1.0
    assert state.playing is False
    assert loaded_events == [True]


def test_load_gzip_with_filename_hint(session, ct_bytes):
    session.load(gzip.compress(ct_bytes), filename="ct.nii.gz")
    assert session.volume.dims == (6, 5, 4)


def test_failed_load_clears_previous_volume(loaded, ct_bytes):
    previous = loaded.volume
    closed, messages = [], []
    loaded.volume_closed.connect(lambda: closed.append(True))
    loaded.status_message.connect(messages.append)
    loaded.set_zoom(2.0)

    with pytest.raises(FormatError):
        loaded.load(b"not a nifti file" * 40)

    assert loaded.volume is None
    assert previous.is_released
    assert loaded.state.zoom == 1.0
    assert loaded.current_frame() is None
    assert closed == [True]
    assert messages


def test_reload_with_infinite_samples_resets_state(session, nifti_bytes):
    session.load(nifti_bytes(np.zeros((40, 4, 4), dtype=np.int16)))
    session.set_slice_index(39)

    data = np.arange(32, dtype=np.float32).reshape(2, 4, 4)
    data[0, 0, 0] = np.inf
    volume = session.load(nifti_bytes(data))

    assert session.volume is volume
    assert session.state.slice_index == 1
    assert np.isfinite(session.state.window.center)
    assert session.current_frame().pixels.shape == (4, 4)


def test_set_plane_resets_index_and_stops_playback(loaded):
    loaded.set_slice_index(3)
    loaded.play()
    assert loaded.state.playing

    loaded.set_plane("coronal")

    assert loaded.state.plane is Plane.CORONAL
    assert loaded.state.slice_index == 0
    assert loaded.state.playing is False
    assert not loaded.sequencer.is_running


def test_set_same_plane_still_resets(loaded):
    loaded.set_slice_index(3)
    loaded.set_plane(Plane.AXIAL)
    assert loaded.state.slice_index == 0


def test_set_slice_index_clamps(loaded):
    loaded.set_slice_index(-5)
    assert loaded.state.slice_index == 0
    loaded.set_slice_index(999)
    assert loaded.state.slice_index == 3
    loaded.set_plane(Plane.SAGITTAL)
    loaded.set_slice_index(999)
    assert loaded.state.slice_index == 5


def test_set_slice_index_stops_playback(loaded):
    loaded.play()
    loaded.set_slice_index(1)
    assert not loaded.state.playing


def test_previous_and_next_are_clamped(loaded):
    loaded.set_slice_index(0)
    loaded.previous_slice()
    assert loaded.state.slice_index == 0
    loaded.set_slice_index(3)
    loaded.next_slice()
    assert loaded.state.slice_index == 3
    loaded.previous_slice()
    assert loaded.state.slice_index == 2


def test_playback_advances_and_wraps(loaded):
    loaded.set_slice_index(3)
    loaded.play()
    loaded.sequencer.tick()
    assert loaded.state.slice_index == 0
    assert loaded.state.playing
    for _ in range(4):
        loaded.sequencer.tick()
    assert loaded.state.slice_index == 0
    loaded.toggle_playback()
    assert not loaded.state.playing


def test_plane_change_cancels_pending_ticks(loaded):
    loaded.play()
    loaded.set_plane(Plane.SAGITTAL)
    loaded.sequencer.tick()
    assert loaded.state.slice_index == 0


def test_window_commands(loaded):
    loaded.set_window(40, 80)
    assert loaded.state.window == WindowSetting(40, 80)

    loaded.set_window(40, -10)
    assert loaded.state.window.width == 1.0

    assert loaded.apply_preset("lung") == WindowSetting(-600, 1500)
    with pytest.raises(UnknownPresetError):
        loaded.apply_preset("nonsense")
    assert loaded.state.window == WindowSetting(-600, 1500)

    loaded.use_full_range_window()
    assert loaded.state.window == WindowSetting(395, 1190)
    loaded.use_auto_window()
    assert loaded.state.window == loaded.auto_window


def test_zoom_commands(loaded):
    loaded.zoom_in()
    assert loaded.state.zoom == pytest.approx(1.2)
    for _ in range(20):
        loaded.zoom_in()
    assert loaded.state.zoom == 3.0
    for _ in range(20):
        loaded.zoom_out()
    assert loaded.state.zoom == 0.5
    loaded.reset_zoom()
    assert loaded.state.zoom == 1.0
    with pytest.raises(ValueError):
        loaded.set_zoom(0)


def test_current_frame(loaded):
    loaded.set_window(-200 + 60, 40)
    frame = loaded.current_frame()

    assert frame.pixels.dtype == np.uint8
    assert (frame.width, frame.height) == (6, 5)
    assert frame.slice_number == 3
    assert frame.slice_count == 4
    assert frame.caption.startswith("Axial  3/4")
    np.testing.assert_array_equal(
        frame.pixels, render_frame(loaded.volume, loaded.state).pixels
    )


def test_current_frame_is_memoized_per_plane_index_window(loaded):
    first = loaded.current_frame()
    loaded.zoom_in()
    second = loaded.current_frame()
    assert second.pixels is first.pixels
    assert second.zoom == pytest.approx(1.2)

    loaded.set_window(0, 100)
    assert loaded.current_frame().pixels is not first.pixels


def test_state_changes_are_signalled(loaded):
    states, invalidations = [], []
    loaded.state_changed.connect(states.append)
    loaded.frame_invalidated.connect(lambda: invalidations.append(True))

    loaded.set_plane(Plane.SAGITTAL)
    loaded.set_plane(Plane.SAGITTAL)

    assert len(states) == 1
    assert states[0].plane is Plane.SAGITTAL
    assert len(invalidations) == 1


def test_volume_info(loaded):
    info = loaded.get_volume_info()
    assert info["dims"] == (6, 5, 4)
    assert info["data_type"] == "int16"
    assert info["min_value"] == -200
    assert info["max_value"] == 990
    assert info["slice_counts"] == {"axial": 4, "sagittal": 6, "coronal": 5}


def test_close_releases_volume(loaded):
    volume = loaded.volume
    loaded.play()
    loaded.close()

    assert loaded.volume is None
    assert volume.is_released
    assert not loaded.state.playing
    assert loaded.current_frame() is None


def test_scenario_volume_frame(session, nifti_bytes, sequential_data):
    session.load(nifti_bytes(sequential_data))
    session.set_window(15.5, 31)
    assert session.state.slice_index == 1

    session.set_slice_index(0)
    pixels = session.current_frame().pixels
    assert pixels[0, 0] == 0
    session.set_slice_index(1)
    assert session.current_frame().pixels[-1, -1] == 255

    session.set_plane(Plane.SAGITTAL)
    session.set_slice_index(1)
    frame = session.current_frame()
    assert (frame.width, frame.height) == (4, 2)
