# -*- coding: utf-8 -*-
"""
切片提取（Model）。
在 (Z, Y, X) 只读视图上按平面取二维切片，输出行优先、第一输出轴变化最快的栅格。
平面定义（dims = (nx, ny, nz)，扁平偏移 = x + y*nx + z*nx*ny）：
- axial：宽 nx、高 ny，偏移 = x + y*nx + index*nx*ny，层数 nz
- sagittal：宽 ny、高 nz，偏移 = index + y*nx + z*nx*ny，层数 nx
- coronal：宽 nx、高 nz，偏移 = x + index*nx + z*nx*ny，层数 ny
"""

from enum import Enum
from typing import Tuple, Union

import numpy as np

from .errors import IndexOutOfRangeError
from .nifti_volume import NiftiVolume


class Plane(Enum):
    AXIAL = "axial"
    SAGITTAL = "sagittal"
    CORONAL = "coronal"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def coerce(cls, plane: Union["Plane", str]) -> "Plane":
        """接受 Plane 或名称字符串（大小写不敏感）。"""
        if isinstance(plane, cls):
            return plane
        try:
            return cls(str(plane).strip().lower())
        except ValueError:
            raise ValueError(f"未知平面：{plane!r}") from None


def slice_count(volume: NiftiVolume, plane: Union[Plane, str]) -> int:
    """平面法向轴上的层数。"""
    plane = Plane.coerce(plane)
    nx, ny, nz = volume.dims
    if plane is Plane.AXIAL:
        return nz
    if plane is Plane.SAGITTAL:
        return nx
    return ny


def slice_shape(volume: NiftiVolume, plane: Union[Plane, str]) -> Tuple[int, int]:
    """输出栅格尺寸 (width, height)。"""
    plane = Plane.coerce(plane)
    nx, ny, nz = volume.dims
    if plane is Plane.AXIAL:
        return nx, ny
    if plane is Plane.SAGITTAL:
        return ny, nz
    return nx, nz


def extract_slice(
    volume: NiftiVolume, plane: Union[Plane, str], index: int
) -> np.ndarray:
    """
    取出一层切片，返回形状 (height, width) 的 C 连续数组（仅分配一个切片大小的缓冲区）。
    不修改体数据；index 越界时抛 IndexOutOfRangeError（此处不做钳制）。
    """
    plane = Plane.coerce(plane)
    count = slice_count(volume, plane)
    index = int(index)
    if index < 0 or index >= count:
        raise IndexOutOfRangeError(
            f"{plane.value} 层号 {index} 超出范围 [0, {count - 1}]"
        )

    arr = volume.array  # (Z, Y, X)
    if plane is Plane.AXIAL:
        raster = arr[index, :, :]  # (Y, X)
    elif plane is Plane.SAGITTAL:
        raster = arr[:, :, index]  # (Z, Y)
    else:
        raster = arr[:, index, :]  # (Z, X)
    # 每次调用返回独立的输出缓冲区
    return raster.copy()
