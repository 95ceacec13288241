# -*- coding: utf-8 -*-
"""
NIfTI-1 解码（Model）。
负责把（可选 gzip 压缩的）字节流解析为 NiftiVolume：
- 校验魔数与头部版本，348 字节头部交给 nibabel 的 Nifti1Header 解析（含字节序判断）
- 按头部 datatype 把体素区重新解释为对应数值类型，未知类型按 float32 宽松解码
- 不涉及文件系统与显示；字节获取由调用方负责
"""

import gzip
import io
import logging
import math
import zlib
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from nibabel.nifti1 import Nifti1Header
from nibabel.spatialimages import HeaderDataError
from nibabel.wrapstruct import WrapStructError

from .errors import DecompressionError, FormatError, UnsupportedLayoutError
from .nifti_volume import NiftiVolume

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

NIFTI1_HEADER_SIZE = 348
NIFTI2_HEADER_SIZE = 540
# 头部之后 4 字节的扩展标志，体素数据最早从 352 开始
MIN_VOX_OFFSET = 352

MAGIC_SINGLE_FILE = b"n+1\x00"
MAGIC_PAIR = b"ni1\x00"
MAGIC_NIFTI2 = b"n+2\x00"
GZIP_MAGIC = b"\x1f\x8b"

# datatype 代码 -> numpy 类型
DATATYPE_UINT8 = 2
DATATYPE_INT16 = 4
DATATYPE_INT32 = 8
DATATYPE_FLOAT32 = 16
DATATYPE_FLOAT64 = 64

SUPPORTED_DATATYPES = {
    DATATYPE_UINT8: np.dtype(np.uint8),
    DATATYPE_INT16: np.dtype(np.int16),
    DATATYPE_INT32: np.dtype(np.int32),
    DATATYPE_FLOAT32: np.dtype(np.float32),
    DATATYPE_FLOAT64: np.dtype(np.float64),
}
FALLBACK_DTYPE = np.dtype(np.float32)


@dataclass(frozen=True)
class NiftiHeader:
    """解码后需要用到的头部字段。"""

    byte_order: str  # "<" 或 ">"
    dim: Tuple[int, ...]
    datatype: int
    bitpix: int
    pixdim: Tuple[float, ...]
    vox_offset: float
    scl_slope: float
    scl_inter: float
    descrip: str
    magic: bytes

    @property
    def ndim(self) -> int:
        return self.dim[0]

    @property
    def dims(self) -> Tuple[int, int, int]:
        """(nx, ny, nz)，超出 dim[0] 的轴按 1 处理。"""
        sizes = [self.dim[i] if i <= self.ndim else 1 for i in (1, 2, 3)]
        return sizes[0], sizes[1], sizes[2]

    @property
    def voxel_spacing(self) -> Tuple[float, float, float]:
        spacing = []
        for i in (1, 2, 3):
            value = abs(self.pixdim[i])
            spacing.append(value if math.isfinite(value) and value > 0 else 1.0)
        return spacing[0], spacing[1], spacing[2]

    @property
    def data_offset(self) -> int:
        offset = self.vox_offset
        if not math.isfinite(offset) or offset < MIN_VOX_OFFSET:
            return MIN_VOX_OFFSET
        return int(offset)


def is_gzip_payload(data: BytesLike) -> bool:
    """探测 gzip 魔数 1f 8b。"""
    return bytes(data[:2]) == GZIP_MAGIC


def _should_decompress(
    data: BytesLike, filename: Optional[str], compressed: Optional[bool]
) -> bool:
    # 显式标志 > 文件扩展名 > 魔数探测
    if compressed is not None:
        return bool(compressed)
    if filename and filename.lower().endswith(".gz"):
        return True
    return is_gzip_payload(data)


def decompress(data: BytesLike) -> bytes:
    """把 gzip 流完整解压到内存（NIfTI 不支持流式解码）。"""
    try:
        return gzip.decompress(bytes(data))
    except (OSError, EOFError, zlib.error) as e:
        raise DecompressionError(f"gzip 数据损坏：{e}") from e


def _read_nifti1_header(data: BytesLike) -> Nifti1Header:
    """用 nibabel 解析前 348 字节，字节序由 nibabel 推断，随后校验 sizeof_hdr。"""
    block = io.BytesIO(bytes(data[:NIFTI1_HEADER_SIZE]))
    try:
        hdr = Nifti1Header.from_fileobj(block, check=False)
    except (HeaderDataError, WrapStructError, ValueError) as e:
        raise FormatError(f"无法解析 NIfTI-1 头部：{e}") from e
    if int(hdr["sizeof_hdr"]) != NIFTI1_HEADER_SIZE:
        raise FormatError("sizeof_hdr 不是 348")
    return hdr


def parse_header(data: BytesLike) -> NiftiHeader:
    """
    解析 NIfTI-1 头部。
    - NIfTI-2（sizeof_hdr=540 或偏移 4 处魔数 n+2）与分离式 ni1 布局抛 UnsupportedLayoutError
    - 长度不足、魔数不匹配、sizeof_hdr 不为 348、dim 非法时抛 FormatError
    """
    if len(data) < 4:
        raise FormatError("数据过短，缺少 NIfTI 头部")
    raw_size = bytes(data[:4])
    if NIFTI2_HEADER_SIZE in (
        int.from_bytes(raw_size, "little", signed=True),
        int.from_bytes(raw_size, "big", signed=True),
    ) or bytes(data[4:8]) == MAGIC_NIFTI2:
        raise UnsupportedLayoutError("不支持 NIfTI-2 头部")
    if len(data) < NIFTI1_HEADER_SIZE:
        raise FormatError(f"头部被截断：{len(data)} < {NIFTI1_HEADER_SIZE} 字节")

    magic = bytes(data[344:348])
    if magic == MAGIC_PAIR:
        raise UnsupportedLayoutError("不支持分离式 .hdr/.img 布局（magic=ni1）")
    if magic != MAGIC_SINGLE_FILE:
        raise FormatError(f"不是有效的 NIfTI-1 文件（magic={magic!r}）")

    hdr = _read_nifti1_header(data)
    dim = tuple(int(d) for d in hdr["dim"])
    if not 1 <= dim[0] <= 7:
        raise FormatError(f"dim[0] 非法：{dim[0]}")
    if any(d < 1 for d in dim[1 : dim[0] + 1]):
        raise FormatError(f"维度必须 >= 1：{dim[1 : dim[0] + 1]}")

    return NiftiHeader(
        byte_order=hdr.endianness,
        dim=dim,
        datatype=int(hdr["datatype"]),
        bitpix=int(hdr["bitpix"]),
        pixdim=tuple(float(p) for p in hdr["pixdim"]),
        vox_offset=float(hdr["vox_offset"]),
        scl_slope=float(hdr["scl_slope"]),
        scl_inter=float(hdr["scl_inter"]),
        descrip=hdr["descrip"].item().split(b"\x00", 1)[0].decode("latin-1"),
        magic=magic,
    )


def sample_dtype(datatype: int) -> np.dtype:
    """datatype 代码对应的体素类型；未知代码按 float32 宽松处理。"""
    dtype = SUPPORTED_DATATYPES.get(datatype)
    if dtype is None:
        logger.warning("未知 datatype=%s，按 float32 解码", datatype)
        return FALLBACK_DTYPE
    return dtype


def decode_nifti(
    data: BytesLike,
    filename: Optional[str] = None,
    compressed: Optional[bool] = None,
) -> NiftiVolume:
    """
    把字节流解码为 NiftiVolume。
    - filename 仅用作压缩提示（以 .gz 结尾即解压），compressed 显式指定时优先
    - bytes 输入且为原生字节序时，体素以只读视图引用缓冲区，不复制整个体数据
    失败时抛出 FormatError / DecompressionError / UnsupportedLayoutError，不返回部分结果。
    """
    payload = decompress(data) if _should_decompress(data, filename, compressed) else data
    if not isinstance(payload, bytes):
        # bytearray / memoryview 可能被调用方改写，体数据必须与其脱钩
        payload = bytes(payload)
    header = parse_header(payload)
    nx, ny, nz = header.dims
    if header.ndim > 3 and any(d > 1 for d in header.dim[4 : header.ndim + 1]):
        logger.warning("检测到 %dD 数据 %s，仅解码第一个 3D 体", header.ndim, header.dim)

    dtype = sample_dtype(header.datatype).newbyteorder(header.byte_order)
    count = nx * ny * nz
    offset = header.data_offset
    needed = offset + count * dtype.itemsize
    if len(payload) >= needed:
        samples = np.frombuffer(payload, dtype=dtype, count=count, offset=offset)
        if not samples.dtype.isnative:
            samples = samples.astype(samples.dtype.newbyteorder("="))
    elif header.datatype in SUPPORTED_DATATYPES:
        raise FormatError(f"体素数据被截断：需要 {needed} 字节，实际 {len(payload)} 字节")
    else:
        # 未知类型：有多少字节读多少个 float32，不足部分补 0
        readable = min(max(len(payload) - offset, 0) // dtype.itemsize, count)
        logger.warning(
            "datatype=%s 的体素区只够 %d/%d 个 float32，其余补 0",
            header.datatype, readable, count,
        )
        samples = np.zeros(count, dtype=FALLBACK_DTYPE)
        if readable:
            samples[:readable] = np.frombuffer(
                payload, dtype=dtype, count=readable, offset=offset
            )
    samples.flags.writeable = False

    logger.info(
        "NIfTI 解码完成：dims=%s spacing=%s dtype=%s",
        (nx, ny, nz), header.voxel_spacing, samples.dtype.name,
    )
    return NiftiVolume(samples, (nx, ny, nz), header.voxel_spacing, header=header)
