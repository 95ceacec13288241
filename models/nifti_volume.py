# -*- coding: utf-8 -*-
"""
NIfTI 体数据封装（Model）。
由 nifti_decoder 解码生成，创建后不可变；只负责持有体素与几何信息，不包含显示逻辑。
"""

from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from .nifti_decoder import NiftiHeader


@dataclass(frozen=True)
class VolumeStatistics:
    """体素统计量（仅统计有限值），供信息面板与全范围窗使用。"""

    min: float
    max: float
    mean: float


class NiftiVolume:
    """
    NIfTI 体数据。
    - samples 为一维只读数组，长度 nx*ny*nz，X 变化最快，其次 Y，最后 Z
    - array 为同一缓冲区上的 (Z, Y, X) 视图，不复制数据
    - voxel_spacing 为 (x, y, z) 顺序，单位 mm
    """

    def __init__(
        self,
        samples: np.ndarray,
        dims: Tuple[int, int, int],
        voxel_spacing: Tuple[float, float, float],
        header: Optional["NiftiHeader"] = None,
    ):
        nx, ny, nz = (int(d) for d in dims)
        if min(nx, ny, nz) < 1:
            raise ValueError(f"体数据维度必须 >= 1：{dims}")
        samples = np.asarray(samples).reshape(-1)
        if samples.size != nx * ny * nz:
            raise ValueError(
                f"体素数量 {samples.size} 与维度 {nx}x{ny}x{nz} 不一致"
            )
        if samples.flags.writeable:
            # 解码得到的是只读视图；外部传入的可写数组这里复制一份再冻结
            samples = samples.copy()
            samples.flags.writeable = False
        self._samples: Optional[np.ndarray] = samples
        self._dims = (nx, ny, nz)
        self._voxel_spacing = tuple(float(s) for s in voxel_spacing)
        self._header = header

    @property
    def dims(self) -> Tuple[int, int, int]:
        """(nx, ny, nz)。"""
        return self._dims

    @property
    def voxel_spacing(self) -> Tuple[float, float, float]:
        return self._voxel_spacing

    @property
    def header(self) -> Optional["NiftiHeader"]:
        return self._header

    @property
    def datatype_code(self) -> Optional[int]:
        return self._header.datatype if self._header is not None else None

    @property
    def samples(self) -> np.ndarray:
        if self._samples is None:
            raise RuntimeError("体数据已释放")
        return self._samples

    @property
    def array(self) -> np.ndarray:
        """(Z, Y, X) 只读视图，array[z, y, x] == samples[x + y*nx + z*nx*ny]。"""
        nx, ny, nz = self._dims
        return self.samples.reshape(nz, ny, nx)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """(Z, Y, X)，与 array 一致。"""
        nx, ny, nz = self._dims
        return nz, ny, nx

    @property
    def dtype_name(self) -> str:
        return self.samples.dtype.name

    @property
    def is_released(self) -> bool:
        return self._samples is None

    @cached_property
    def statistics(self) -> VolumeStatistics:
        values = self.samples
        if values.dtype.kind == "f":
            values = values[np.isfinite(values)]
        if values.size == 0:
            return VolumeStatistics(0.0, 0.0, 0.0)
        return VolumeStatistics(
            min=float(values.min()),
            max=float(values.max()),
            mean=float(values.mean(dtype=np.float64)),
        )

    def release(self) -> None:
        """释放体素缓冲区（会话关闭或被新体数据替换时调用）。"""
        self._samples = None

    def __repr__(self) -> str:
        state = "released" if self.is_released else self.dtype_name
        return f"NiftiVolume(dims={self._dims}, spacing={self._voxel_spacing}, {state})"
