"""
Raster pixel data types

The fixed, finite set of primitive pixel types a raster can hold.
"""

from enum import Enum
from typing import Any

import numpy as np


class RasterDataType(str, Enum):
    """
    Supported raster pixel types

    Each member maps onto exactly one numpy dtype.

    Examples:
        >>> RasterDataType.U16.numpy_dtype
        dtype('uint16')
        >>> RasterDataType.from_numpy("float32")
        <RasterDataType.F32: 'F32'>
    """

    U8 = "U8"
    U16 = "U16"
    U32 = "U32"
    I8 = "I8"
    I16 = "I16"
    I32 = "I32"
    F32 = "F32"
    F64 = "F64"

    @property
    def numpy_dtype(self) -> np.dtype:
        return np.dtype(_NUMPY_TYPES[self])

    @classmethod
    def from_numpy(cls, dtype) -> "RasterDataType":
        dtype = np.dtype(dtype)
        for member, name in _NUMPY_TYPES.items():
            if np.dtype(name) == dtype:
                return member
        raise ValueError(f"Unsupported raster dtype: {dtype}")

    @property
    def is_float(self) -> bool:
        return self in (RasterDataType.F32, RasterDataType.F64)

    def is_valid(self, value: Any) -> bool:
        """Check whether ``value`` is representable by this type"""
        if self.is_float:
            info = np.finfo(self.numpy_dtype)
            return bool(np.isnan(value)) or float(info.min) <= float(value) <= float(info.max)
        if float(value) != int(value):
            return False
        info = np.iinfo(self.numpy_dtype)
        return info.min <= int(value) <= info.max

    def __str__(self) -> str:
        return self.value


_NUMPY_TYPES = {
    RasterDataType.U8: "uint8",
    RasterDataType.U16: "uint16",
    RasterDataType.U32: "uint32",
    RasterDataType.I8: "int8",
    RasterDataType.I16: "int16",
    RasterDataType.I32: "int32",
    RasterDataType.F32: "float32",
    RasterDataType.F64: "float64",
}
