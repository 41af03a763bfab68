"""
Query processors

A query processor answers query rectangles with a lazy, finite stream of
results. Raster processors are wrapped in ``TypedRasterQueryProcessor``, a
closed sum over the supported pixel types, so that consumers select their
behavior per pixel type in one place.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Mapping, TypeVar

from geoquery.core.exceptions import InvalidTypeError, UnsupportedDataTypeError
from geoquery.operators.engine import QueryContext, RasterQueryRectangle, VectorQueryRectangle
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.tile import RasterTile2D
from geoquery.vector.collection import FeatureCollection, VectorDataType

T = TypeVar("T")


class RasterQueryProcessor(ABC):
    """
    Produces raster tiles of a single pixel type

    Attributes:
        data_type: Pixel type of every produced tile
        no_data_value: Sentinel used for missing pixels
    """

    data_type: RasterDataType
    no_data_value: float | None = None

    @abstractmethod
    def query(self, query: RasterQueryRectangle, ctx: QueryContext) -> AsyncIterator[RasterTile2D]:
        """
        Stream the tiles covering ``query``

        Implementations are async generators; closing the generator releases
        everything the query holds.
        """
        ...


class VectorQueryProcessor(ABC):
    """Produces feature collections of a single geometry kind"""

    data_type: VectorDataType

    @abstractmethod
    def query(self, query: VectorQueryRectangle, ctx: QueryContext) -> AsyncIterator[FeatureCollection]:
        ...


@dataclass(frozen=True)
class TypedRasterQueryProcessor:
    """
    Raster processor tagged with its pixel type

    Exactly one variant per ``RasterDataType``. Build with one of the
    per-type constructors or ``from_data_type``; select behavior with the
    ``get_*`` accessors or ``dispatch``.

    Examples:
        >>> typed = TypedRasterQueryProcessor.u8(processor)
        >>> typed.get_u8() is processor
        True
        >>> typed.get_u16() is None
        True
        >>> typed.dispatch({RasterDataType.U8: lambda p: "bytes"})
        'bytes'
    """

    data_type: RasterDataType
    processor: RasterQueryProcessor

    def __post_init__(self):
        if not isinstance(self.data_type, RasterDataType):
            raise UnsupportedDataTypeError(self.data_type)
        if self.processor.data_type != self.data_type:
            raise InvalidTypeError(str(self.data_type), str(self.processor.data_type))

    @classmethod
    def from_data_type(cls, data_type: RasterDataType, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType(data_type), processor)

    @classmethod
    def u8(cls, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType.U8, processor)

    @classmethod
    def u16(cls, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType.U16, processor)

    @classmethod
    def u32(cls, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType.U32, processor)

    @classmethod
    def i8(cls, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType.I8, processor)

    @classmethod
    def i16(cls, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType.I16, processor)

    @classmethod
    def i32(cls, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType.I32, processor)

    @classmethod
    def f32(cls, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType.F32, processor)

    @classmethod
    def f64(cls, processor: RasterQueryProcessor) -> "TypedRasterQueryProcessor":
        return cls(RasterDataType.F64, processor)

    def get(self, data_type: RasterDataType) -> RasterQueryProcessor | None:
        return self.processor if self.data_type == data_type else None

    def get_u8(self) -> RasterQueryProcessor | None:
        return self.get(RasterDataType.U8)

    def get_u16(self) -> RasterQueryProcessor | None:
        return self.get(RasterDataType.U16)

    def get_u32(self) -> RasterQueryProcessor | None:
        return self.get(RasterDataType.U32)

    def get_i8(self) -> RasterQueryProcessor | None:
        return self.get(RasterDataType.I8)

    def get_i16(self) -> RasterQueryProcessor | None:
        return self.get(RasterDataType.I16)

    def get_i32(self) -> RasterQueryProcessor | None:
        return self.get(RasterDataType.I32)

    def get_f32(self) -> RasterQueryProcessor | None:
        return self.get(RasterDataType.F32)

    def get_f64(self) -> RasterQueryProcessor | None:
        return self.get(RasterDataType.F64)

    def dispatch(
        self,
        handlers: Mapping[RasterDataType, Callable[[RasterQueryProcessor], T]],
        sink: str = "",
    ) -> T:
        """
        Call the handler registered for this variant

        Args:
            handlers: Handler per supported pixel type
            sink: Name of the consumer, used in the error message

        Raises:
            UnsupportedDataTypeError: If no handler covers this variant
        """
        handler = handlers.get(self.data_type)
        if handler is None:
            raise UnsupportedDataTypeError(self.data_type, sink)
        return handler(self.processor)

    def query(self, query: RasterQueryRectangle, ctx: QueryContext) -> AsyncIterator[RasterTile2D]:
        return self.processor.query(query, ctx)


@dataclass(frozen=True)
class TypedVectorQueryProcessor:
    """Vector processor tagged with its geometry kind"""

    data_type: VectorDataType
    processor: VectorQueryProcessor

    def __post_init__(self):
        if self.processor.data_type != self.data_type:
            raise InvalidTypeError(str(self.data_type), str(self.processor.data_type))

    @classmethod
    def from_data_type(cls, data_type: VectorDataType, processor: VectorQueryProcessor) -> "TypedVectorQueryProcessor":
        return cls(VectorDataType(data_type), processor)

    def get(self, data_type: VectorDataType) -> VectorQueryProcessor | None:
        return self.processor if self.data_type == data_type else None

    def get_data(self) -> VectorQueryProcessor | None:
        return self.get(VectorDataType.DATA)

    def get_multi_point(self) -> VectorQueryProcessor | None:
        return self.get(VectorDataType.MULTI_POINT)

    def get_multi_line_string(self) -> VectorQueryProcessor | None:
        return self.get(VectorDataType.MULTI_LINE_STRING)

    def get_multi_polygon(self) -> VectorQueryProcessor | None:
        return self.get(VectorDataType.MULTI_POLYGON)

    def dispatch(
        self,
        handlers: Mapping[VectorDataType, Callable[[VectorQueryProcessor], T]],
        sink: str = "",
    ) -> T:
        handler = handlers.get(self.data_type)
        if handler is None:
            raise UnsupportedDataTypeError(self.data_type, sink)
        return handler(self.processor)

    def query(self, query: VectorQueryRectangle, ctx: QueryContext) -> AsyncIterator[FeatureCollection]:
        return self.processor.query(query, ctx)
