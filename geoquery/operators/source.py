"""
Source operators

Leaves of the operator graph: in-memory mock sources for rasters and
features, and the dataset-backed raster source that reads files through the
execution context's tile fetcher.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator

import numpy as np
from shapely.geometry import box, mapping, shape

from geoquery.core.exceptions import InvalidOperatorSpecError, InvalidTypeError, MissingSpatialReferenceError
from geoquery.core.primitives import (
    DatasetId,
    SpatialReference,
    TimeInterval,
    dataset_id_from_dict,
    dataset_id_to_dict,
)
from geoquery.grid.grid import Grid
from geoquery.grid.no_data_grid import NoDataGrid
from geoquery.grid.shape import GridIdx, GridShape2D
from geoquery.operators.descriptors import (
    RasterResultDescriptor,
    VectorResultDescriptor,
    raster_descriptor_from_dict,
    raster_descriptor_to_dict,
)
from geoquery.operators.engine import (
    ExecutionContext,
    QueryContext,
    RasterQueryRectangle,
    VectorQueryRectangle,
)
from geoquery.operators.metadata import DatasetLoadingInfo, MetaData
from geoquery.operators.operator import (
    InitializedRasterOperator,
    InitializedVectorOperator,
    RasterOperator,
    VectorOperator,
)
from geoquery.operators.processors import (
    RasterQueryProcessor,
    TypedRasterQueryProcessor,
    TypedVectorQueryProcessor,
    VectorQueryProcessor,
)
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.geo_transform import GeoTransform
from geoquery.raster.tile import RasterTile2D
from geoquery.raster.tiling import TilingSpecification
from geoquery.vector.collection import FeatureCollection, VectorDataType

if TYPE_CHECKING:
    from geoquery.io.base import TileFetcher

logger = logging.getLogger(__name__)


def _time_to_dict(time: TimeInterval) -> dict[str, int]:
    start, end = time.to_millis()
    return {"start": start, "end": end}


def _time_from_dict(data: dict[str, int]) -> TimeInterval:
    return TimeInterval.from_millis(data["start"], data["end"])


def _tile_to_dict(tile: RasterTile2D) -> dict[str, Any]:
    grid = tile.grid_array
    return {
        "time": _time_to_dict(tile.time),
        "tilePosition": list(tile.tile_position),
        "globalGeoTransform": list(tile.global_geo_transform.to_gdal()),
        "shape": list(grid.axis_size()),
        "dataType": str(tile.data_type),
        "noDataValue": grid.no_data_value,
        "data": None if tile.is_empty() else grid.data.tolist(),
    }


def _tile_from_dict(data: dict[str, Any]) -> RasterTile2D:
    shape_ = GridShape2D(data["shape"])
    dtype = RasterDataType(data["dataType"]).numpy_dtype
    if data.get("data") is None:
        grid = NoDataGrid(shape_, data["noDataValue"], dtype=dtype)
    else:
        grid = Grid(shape_, np.asarray(data["data"], dtype=dtype), data.get("noDataValue"))
    return RasterTile2D(
        _time_from_dict(data["time"]),
        GridIdx(data["tilePosition"]),
        GeoTransform.from_gdal(data["globalGeoTransform"]),
        grid,
    )


def _collection_to_dict(collection: FeatureCollection) -> dict[str, Any]:
    return {
        "dataType": str(collection.data_type),
        "geometries": [mapping(g) for g in collection.geometries],
        "timeIntervals": [_time_to_dict(t) for t in collection.time_intervals],
        "columns": {name: values.tolist() for name, values in collection.columns.items()},
    }


def _collection_from_dict(data: dict[str, Any]) -> FeatureCollection:
    return FeatureCollection(
        VectorDataType(data["dataType"]),
        [shape(g) for g in data.get("geometries", [])],
        [_time_from_dict(t) for t in data["timeIntervals"]],
        {name: np.asarray(values) for name, values in data.get("columns", {}).items()},
    )


# -----------------------------------------------------------------------------
# Mock raster source
# -----------------------------------------------------------------------------


@dataclass
class MockRasterSourceParams:
    data: list[RasterTile2D]
    result_descriptor: RasterResultDescriptor

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [_tile_to_dict(t) for t in self.data],
            "resultDescriptor": raster_descriptor_to_dict(self.result_descriptor),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MockRasterSourceParams":
        return cls(
            [_tile_from_dict(t) for t in data.get("data", [])],
            raster_descriptor_from_dict(data["resultDescriptor"]),
        )


class MockRasterSourceProcessor(RasterQueryProcessor):
    """Yields the in-memory tiles that intersect the query"""

    def __init__(self, data: list[RasterTile2D], data_type: RasterDataType, no_data_value: float | None):
        self.data = data
        self.data_type = data_type
        self.no_data_value = no_data_value

    async def query(self, query: RasterQueryRectangle, ctx: QueryContext) -> AsyncIterator[RasterTile2D]:
        for tile in self.data:
            if not tile.time.intersects(query.time_interval):
                continue
            if not tile.spatial_partition().intersects(query.spatial_bounds):
                continue
            yield tile


class InitializedMockRasterSource(InitializedRasterOperator):
    def __init__(self, data: list[RasterTile2D], descriptor: RasterResultDescriptor):
        self.data = data
        self.descriptor = descriptor

    def result_descriptor(self) -> RasterResultDescriptor:
        return self.descriptor

    def query_processor(self) -> TypedRasterQueryProcessor:
        processor = MockRasterSourceProcessor(
            self.data, self.descriptor.data_type, self.descriptor.no_data_value
        )
        return TypedRasterQueryProcessor.from_data_type(self.descriptor.data_type, processor)


class MockRasterSource(RasterOperator):
    """
    Raster source serving a fixed list of tiles

    Examples:
        >>> source = MockRasterSource(MockRasterSourceParams([tile], descriptor))
        >>> initialized = await source.initialize(ExecutionContext())
    """

    TYPE_NAME = "MockRasterSource"
    PARAMS = MockRasterSourceParams
    RASTER_SOURCES = range(0, 1)
    VECTOR_SOURCES = range(0, 1)

    async def _initialize(self, ctx: ExecutionContext) -> InitializedRasterOperator:
        descriptor = self.params.result_descriptor
        for tile in self.params.data:
            if tile.data_type != descriptor.data_type:
                raise InvalidTypeError(str(descriptor.data_type), str(tile.data_type))
        return InitializedMockRasterSource(list(self.params.data), descriptor)


# -----------------------------------------------------------------------------
# Mock feature source
# -----------------------------------------------------------------------------


@dataclass
class MockFeatureSourceParams:
    collections: list[FeatureCollection]
    spatial_reference: SpatialReference | None = SpatialReference.epsg_4326()
    data_type: VectorDataType | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "collections": [_collection_to_dict(c) for c in self.collections],
            "spatialReference": str(self.spatial_reference) if self.spatial_reference else None,
            "dataType": str(self.data_type) if self.data_type else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MockFeatureSourceParams":
        spatial_reference = data.get("spatialReference")
        data_type = data.get("dataType")
        return cls(
            [_collection_from_dict(c) for c in data.get("collections", [])],
            SpatialReference.from_str(spatial_reference) if spatial_reference else None,
            VectorDataType(data_type) if data_type else None,
        )


class MockFeatureSourceProcessor(VectorQueryProcessor):
    """Yields the features of each collection that intersect the query, chunked by ``ctx.chunk_byte_size``"""

    def __init__(self, collections: list[FeatureCollection], data_type: VectorDataType):
        self.collections = collections
        self.data_type = data_type

    async def query(
        self, query: VectorQueryRectangle, ctx: QueryContext
    ) -> AsyncIterator[FeatureCollection]:
        query_box = box(*query.spatial_bounds.bounds)
        for collection in self.collections:
            mask = [t.intersects(query.time_interval) for t in collection.time_intervals]
            if collection.geometries:
                mask = [m and query_box.intersects(g) for m, g in zip(mask, collection.geometries)]
            for chunk in collection.filter(mask).chunks(ctx.chunk_byte_size):
                yield chunk


class InitializedMockFeatureSource(InitializedVectorOperator):
    def __init__(self, collections: list[FeatureCollection], descriptor: VectorResultDescriptor):
        self.collections = collections
        self.descriptor = descriptor

    def result_descriptor(self) -> VectorResultDescriptor:
        return self.descriptor

    def query_processor(self) -> TypedVectorQueryProcessor:
        processor = MockFeatureSourceProcessor(self.collections, self.descriptor.data_type)
        return TypedVectorQueryProcessor.from_data_type(self.descriptor.data_type, processor)


class MockFeatureSource(VectorOperator):
    """
    Vector source serving fixed feature collections

    All collections must share geometry kind and columns; the descriptor is
    derived from the first one unless ``data_type`` is given.
    """

    TYPE_NAME = "MockFeatureSource"
    PARAMS = MockFeatureSourceParams
    RASTER_SOURCES = range(0, 1)
    VECTOR_SOURCES = range(0, 1)

    async def _initialize(self, ctx: ExecutionContext) -> InitializedVectorOperator:
        collections = list(self.params.collections)
        if not collections and self.params.data_type is None:
            raise InvalidOperatorSpecError("MockFeatureSource needs collections or an explicit data type")

        data_type = self.params.data_type or collections[0].data_type
        columns = collections[0].column_types() if collections else {}
        for collection in collections:
            if collection.data_type != data_type:
                raise InvalidTypeError(str(data_type), str(collection.data_type))
            if collection.column_types() != columns:
                raise InvalidOperatorSpecError("All collections must have the same columns")

        descriptor = VectorResultDescriptor(data_type, self.params.spatial_reference, columns)
        return InitializedMockFeatureSource(collections, descriptor)


# -----------------------------------------------------------------------------
# Dataset-backed raster source
# -----------------------------------------------------------------------------


@dataclass
class RasterSourceParams:
    dataset: DatasetId

    def to_dict(self) -> dict[str, Any]:
        return {"dataset": dataset_id_to_dict(self.dataset)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RasterSourceParams":
        return cls(dataset_id_from_dict(data["dataset"]))


class RasterSourceProcessor(RasterQueryProcessor):
    """
    Reads tiles of a dataset

    For every load instruction returned by the dataset's metadata, one tile
    per tile position of the query is fetched. A query without any load
    instruction yields no-data tiles for the query's time interval.
    """

    def __init__(
        self,
        meta_data: MetaData,
        descriptor: RasterResultDescriptor,
        tiling_specification: TilingSpecification,
        tile_fetcher: "TileFetcher",
    ):
        self.meta_data = meta_data
        self.data_type = descriptor.data_type
        self.no_data_value = descriptor.no_data_value
        self.tiling_specification = tiling_specification
        self.tile_fetcher = tile_fetcher

    async def query(self, query: RasterQueryRectangle, ctx: QueryContext) -> AsyncIterator[RasterTile2D]:
        loading_info = await self.meta_data.loading_info(query)
        strategy = self.tiling_specification.strategy(query.spatial_resolution)
        tile_infos = list(strategy.tile_information_iter(query.spatial_bounds))
        logger.debug(
            "Raster source query: %d load instructions, %d tiles each",
            len(loading_info),
            len(tile_infos),
        )

        if not len(loading_info):
            no_data = self.no_data_value if self.no_data_value is not None else 0
            for tile_info in tile_infos:
                empty = NoDataGrid(tile_info.tile_size_in_pixels, no_data, dtype=self.data_type.numpy_dtype)
                yield RasterTile2D.from_tile_info(query.time_interval, tile_info, empty)
            return

        for part in loading_info:
            for tile_info in tile_infos:
                grid = await self.tile_fetcher.fetch(part.params, tile_info, self.data_type)
                yield RasterTile2D.from_tile_info(part.time, tile_info, grid)


class InitializedRasterSource(InitializedRasterOperator):
    def __init__(
        self,
        meta_data: MetaData,
        descriptor: RasterResultDescriptor,
        tiling_specification: TilingSpecification,
        tile_fetcher: "TileFetcher",
    ):
        self.meta_data = meta_data
        self.descriptor = descriptor
        self.tiling_specification = tiling_specification
        self.tile_fetcher = tile_fetcher

    def result_descriptor(self) -> RasterResultDescriptor:
        return self.descriptor

    def query_processor(self) -> TypedRasterQueryProcessor:
        processor = RasterSourceProcessor(
            self.meta_data, self.descriptor, self.tiling_specification, self.tile_fetcher
        )
        return TypedRasterQueryProcessor.from_data_type(self.descriptor.data_type, processor)


class RasterSource(RasterOperator):
    """
    Raster source reading a registered or provider-backed dataset

    Raises on initialize:
        UnknownDatasetIdError: If the context cannot resolve the dataset
        MissingSpatialReferenceError: If the dataset has no CRS
    """

    TYPE_NAME = "RasterSource"
    PARAMS = RasterSourceParams
    RASTER_SOURCES = range(0, 1)
    VECTOR_SOURCES = range(0, 1)

    async def _initialize(self, ctx: ExecutionContext) -> InitializedRasterOperator:
        meta_data = await ctx.meta_data(self.params.dataset, DatasetLoadingInfo)
        descriptor = await meta_data.result_descriptor()
        if descriptor.spatial_reference is None:
            raise MissingSpatialReferenceError(f"Dataset {self.params.dataset} has no spatial reference")
        return InitializedRasterSource(meta_data, descriptor, ctx.tiling_specification, ctx.tile_fetcher)
