# -*- coding: utf-8 -*-
import os
import struct

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import numpy as np
import pytest
from PySide6.QtWidgets import QApplication

from models import NiftiVolume

DTYPE_CODES = {
    np.dtype(np.uint8): 2,
    np.dtype(np.int16): 4,
    np.dtype(np.int32): 8,
    np.dtype(np.float32): 16,
    np.dtype(np.float64): 64,
}


def build_nifti(
    data_zyx,
    datatype=None,
    spacing=(1.0, 1.0, 1.0),
    byte_order="<",
    magic=b"n+1\x00",
    vox_offset=352.0,
    dim=None,
    sizeof_hdr=348,
):
    """按 NIfTI-1 字节偏移手工拼出单文件 .nii 字节流。data_zyx 形状为 (nz, ny, nx)。"""
    data = np.asarray(data_zyx)
    nz, ny, nx = data.shape
    if datatype is None:
        datatype = DTYPE_CODES[data.dtype]
    if dim is None:
        dim = (3, nx, ny, nz, 1, 1, 1, 1)
    header = bytearray(348)
    struct.pack_into(byte_order + "i", header, 0, sizeof_hdr)
    struct.pack_into(byte_order + "8h", header, 40, *dim)
    struct.pack_into(byte_order + "h", header, 70, datatype)
    struct.pack_into(byte_order + "h", header, 72, data.dtype.itemsize * 8)
    struct.pack_into(byte_order + "8f", header, 76, 1.0, *spacing, 1.0, 1.0, 1.0, 1.0)
    struct.pack_into(byte_order + "f", header, 108, vox_offset)
    struct.pack_into(byte_order + "f", header, 112, 1.0)
    header[344:348] = magic
    gap = max(int(vox_offset), 352) - 348
    body = data.astype(data.dtype.newbyteorder(byte_order)).tobytes()
    return bytes(header) + b"\x00" * gap + body


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def nifti_bytes():
    return build_nifti


@pytest.fixture
def sequential_data():
    """4x4x2 体，体素值 0..31，X 变化最快。"""
    return np.arange(32, dtype=np.int16).reshape(2, 4, 4)


@pytest.fixture
def sequential_volume(sequential_data):
    return NiftiVolume(sequential_data.ravel(), (4, 4, 2), (1.0, 1.0, 1.0))
