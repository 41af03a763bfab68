"""
Raster vector join

Attaches raster values to features: every raster source contributes one
float column holding the value of the raster under each feature.
"""

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator

import numpy as np
import shapely
from numpy.typing import NDArray
from shapely.geometry import MultiLineString, MultiPoint, MultiPolygon
from shapely.geometry.base import BaseGeometry

from geoquery.core.exceptions import (
    InvalidOperatorSpecError,
    InvalidSpatialBoundsError,
    InvalidSpatialReferenceError,
    InvalidTypeError,
)
from geoquery.core.primitives import (
    BoundingBox2D,
    Coordinate2D,
    SpatialPartition2D,
    SpatialResolution,
    TimeInterval,
)
from geoquery.grid.shape import GridIdx
from geoquery.operators.descriptors import VectorResultDescriptor
from geoquery.operators.engine import ExecutionContext, QueryContext, RasterQueryRectangle, VectorQueryRectangle
from geoquery.operators.operator import (
    InitializedRasterOperator,
    InitializedVectorOperator,
    VectorOperator,
)
from geoquery.operators.processors import (
    TypedRasterQueryProcessor,
    TypedVectorQueryProcessor,
    VectorQueryProcessor,
)
from geoquery.raster.geo_transform import GeoTransform
from geoquery.raster.tile import RasterTile2D
from geoquery.vector.collection import FeatureCollection, FeatureDataType, VectorDataType

logger = logging.getLogger(__name__)

MAX_NUMBER_OF_RASTER_INPUTS = 8


class FeatureAggregationMethod(str, Enum):
    """How the values under one feature's coordinates are combined"""

    FIRST = "first"
    MEAN = "mean"


@dataclass
class RasterVectorJoinParams:
    """
    Attributes:
        names: Output column name per raster source, in source order
        feature_aggregation: Combination of the values under one feature
    """

    names: list[str]
    feature_aggregation: FeatureAggregationMethod = FeatureAggregationMethod.FIRST

    def to_dict(self) -> dict[str, Any]:
        return {"names": list(self.names), "feature_aggregation": self.feature_aggregation.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RasterVectorJoinParams":
        return cls(
            names=list(data.get("names", [])),
            feature_aggregation=FeatureAggregationMethod(data.get("feature_aggregation", "first")),
        )


# -----------------------------------------------------------------------------
# Sampling
# -----------------------------------------------------------------------------


def _covering_partition(bbox: BoundingBox2D, resolution: SpatialResolution) -> SpatialPartition2D:
    """Partition around ``bbox`` padded by one pixel, so points on its edge are covered"""
    minx, miny, maxx, maxy = bbox.bounds
    return SpatialPartition2D.from_bounds(
        minx - resolution.x, miny - resolution.y, maxx + resolution.x, maxy + resolution.y
    )


def _polygon_cell_centers(polygon: BaseGeometry, geo_transform: GeoTransform) -> list[Coordinate2D]:
    """Centers of the pixels inside ``polygon``, or a point on it if it covers none"""
    try:
        partition = SpatialPartition2D.from_bounds(*polygon.bounds)
    except InvalidSpatialBoundsError:
        partition = None

    if partition is not None:
        bounds = geo_transform.spatial_to_grid_bounds(partition)
        (min_y, min_x), (max_y, max_x) = bounds.min_index(), bounds.max_index()
        ys, xs = np.mgrid[min_y:max_y + 1, min_x:max_x + 1]
        cx = geo_transform.origin_coordinate.x + (xs.ravel() + 0.5) * geo_transform.x_pixel_size
        cy = geo_transform.origin_coordinate.y + (ys.ravel() + 0.5) * geo_transform.y_pixel_size
        inside = shapely.contains_xy(polygon, cx, cy)
        if inside.any():
            return [Coordinate2D(float(x), float(y)) for x, y in zip(cx[inside], cy[inside])]

    point = polygon.representative_point()
    return [Coordinate2D(point.x, point.y)]


def feature_coordinates(geometry: BaseGeometry, geo_transform: GeoTransform) -> list[Coordinate2D]:
    """
    Coordinates at which a feature samples a raster

    Points sample at each point, lines at their vertices and polygons at the
    centers of the pixels they contain.
    """
    if isinstance(geometry, MultiPoint):
        return [Coordinate2D(p.x, p.y) for p in geometry.geoms]
    if isinstance(geometry, MultiLineString):
        return [Coordinate2D(x, y) for line in geometry.geoms for x, y in line.coords]
    if isinstance(geometry, MultiPolygon):
        return [c for polygon in geometry.geoms for c in _polygon_cell_centers(polygon, geo_transform)]
    raise InvalidTypeError("MultiPoint, MultiLineString or MultiPolygon", geometry.geom_type)


class _TileIndex:
    """Tiles of one raster keyed by time interval and tile position"""

    def __init__(self, tiles: list[RasterTile2D]):
        self.tiles = {(tile.time, tile.tile_position): tile for tile in tiles}
        self.times = sorted({tile.time for tile in tiles}, key=lambda t: (t.start, t.end))
        self.geo_transform = tiles[0].global_geo_transform if tiles else None
        self.tile_size = tiles[0].grid_shape().axis_size() if tiles else None

    def value_at(self, coordinate: Coordinate2D, time: TimeInterval) -> float:
        """Raster value at ``coordinate`` in the earliest tile valid at ``time``, NaN if none"""
        pixel = self.geo_transform.coordinate_to_grid_idx_2d(coordinate)
        sy, sx = self.tile_size
        position = GridIdx((pixel[0] // sy, pixel[1] // sx))
        for tile_time in self.times:
            if not tile_time.intersects(time):
                continue
            tile = self.tiles.get((tile_time, position))
            if tile is None:
                continue
            local = pixel - (position[0] * sy, position[1] * sx)
            value = tile.grid_array.get_at_grid_index_unchecked(local)
            if tile.grid_array.is_no_data(value):
                return np.nan
            return float(value)
        return np.nan


def _aggregate(values: list[float], method: FeatureAggregationMethod) -> float:
    valid = [v for v in values if not np.isnan(v)]
    if not valid:
        return np.nan
    if method == FeatureAggregationMethod.FIRST:
        return valid[0]
    return float(np.mean(valid))


def join_values(
    collection: FeatureCollection,
    tiles: list[RasterTile2D],
    method: FeatureAggregationMethod,
) -> NDArray:
    """One aggregated raster value per feature of ``collection``"""
    values = np.full(len(collection), np.nan, dtype=np.float64)
    if not tiles:
        return values

    index = _TileIndex(tiles)
    for i, (geometry, time) in enumerate(zip(collection.geometries, collection.time_intervals)):
        coordinates = feature_coordinates(geometry, index.geo_transform)
        values[i] = _aggregate([index.value_at(c, time) for c in coordinates], method)
    return values


# -----------------------------------------------------------------------------
# Processor and operator
# -----------------------------------------------------------------------------


async def _collect_tiles(
    processor: TypedRasterQueryProcessor,
    query: RasterQueryRectangle,
    ctx: QueryContext,
) -> list[RasterTile2D]:
    async with aclosing(processor.query(query, ctx)) as stream:
        return [tile async for tile in stream]


class RasterVectorJoinProcessor(VectorQueryProcessor):
    """
    Joins every feature batch of the vector source with the raster sources

    The raster sources are queried concurrently over the batch's bounding box;
    a failing source cancels the others.
    """

    def __init__(
        self,
        source: TypedVectorQueryProcessor,
        raster_processors: list[TypedRasterQueryProcessor],
        names: list[str],
        aggregation: FeatureAggregationMethod,
    ):
        self.source = source
        self.raster_processors = raster_processors
        self.names = names
        self.aggregation = aggregation
        self.data_type = source.data_type

    async def query(
        self, query: VectorQueryRectangle, ctx: QueryContext
    ) -> AsyncIterator[FeatureCollection]:
        async with aclosing(self.source.query(query, ctx)) as collections:
            async for collection in collections:
                yield await self._join(collection, query, ctx)

    async def _join(
        self,
        collection: FeatureCollection,
        query: VectorQueryRectangle,
        ctx: QueryContext,
    ) -> FeatureCollection:
        bbox = collection.bounding_box()
        if bbox is None:
            tile_sets = [[] for _ in self.raster_processors]
        else:
            raster_query = query.raster_query(_covering_partition(bbox, query.spatial_resolution))
            try:
                async with asyncio.TaskGroup() as group:
                    tasks = [
                        group.create_task(_collect_tiles(p, raster_query, ctx))
                        for p in self.raster_processors
                    ]
            except ExceptionGroup as e:
                # siblings are already cancelled; re-raise the first failure unchanged
                raise e.exceptions[0]
            tile_sets = [task.result() for task in tasks]

        logger.debug(
            "Joining %d features with %s",
            len(collection),
            ", ".join(f"{name} ({len(tiles)} tiles)" for name, tiles in zip(self.names, tile_sets)),
        )
        for name, tiles in zip(self.names, tile_sets):
            collection = collection.add_column(name, join_values(collection, tiles, self.aggregation))
        return collection


@dataclass
class InitializedRasterVectorJoin(InitializedVectorOperator):
    vector_source: InitializedVectorOperator
    raster_sources: list[InitializedRasterOperator]
    params: RasterVectorJoinParams
    descriptor: VectorResultDescriptor = field(repr=False)

    def result_descriptor(self) -> VectorResultDescriptor:
        return self.descriptor

    def query_processor(self) -> TypedVectorQueryProcessor:
        processor = RasterVectorJoinProcessor(
            self.vector_source.query_processor(),
            [source.query_processor() for source in self.raster_sources],
            list(self.params.names),
            self.params.feature_aggregation,
        )
        return TypedVectorQueryProcessor.from_data_type(self.descriptor.data_type, processor)


class RasterVectorJoin(VectorOperator):
    """
    Attach raster values to vector features

    One vector source (not DATA) and 1 to 8 raster sources, with one output
    column name per raster source.

    Examples:
        >>> join = RasterVectorJoin(
        ...     RasterVectorJoinParams(names=["ndvi"]),
        ...     raster_sources=[ndvi_source],
        ...     vector_sources=[fields],
        ... )
        >>> initialized = await join.initialize(ctx)
        >>> initialized.result_descriptor().columns["ndvi"]
        <FeatureDataType.FLOAT: 'float'>
    """

    TYPE_NAME = "RasterVectorJoin"
    PARAMS = RasterVectorJoinParams
    RASTER_SOURCES = range(1, MAX_NUMBER_OF_RASTER_INPUTS + 1)
    VECTOR_SOURCES = range(1, 2)

    async def _initialize(self, ctx: ExecutionContext) -> InitializedVectorOperator:
        names = list(self.params.names)
        if len(self.raster_sources) != len(names):
            raise InvalidOperatorSpecError("`raster_sources` must be of equal length as `names`")

        vector_source = await self.vector_sources[0].initialize(ctx)
        descriptor = vector_source.result_descriptor()
        if descriptor.data_type == VectorDataType.DATA:
            raise InvalidTypeError(
                f"{VectorDataType.MULTI_POINT}, {VectorDataType.MULTI_LINE_STRING} "
                f"or {VectorDataType.MULTI_POLYGON}",
                str(VectorDataType.DATA),
            )

        if len(set(names)) != len(names):
            raise InvalidOperatorSpecError("`names` must be unique")
        clashes = [name for name in names if name in descriptor.columns]
        if clashes:
            raise InvalidOperatorSpecError(f"Columns {clashes} already exist in the vector source")

        raster_sources = await self.initialize_raster_sources(ctx)
        for raster in raster_sources:
            raster_reference = raster.result_descriptor().spatial_reference
            if (
                raster_reference is not None
                and descriptor.spatial_reference is not None
                and raster_reference != descriptor.spatial_reference
            ):
                raise InvalidSpatialReferenceError(raster_reference)

        return InitializedRasterVectorJoin(
            vector_source,
            raster_sources,
            self.params,
            descriptor.with_columns({name: FeatureDataType.FLOAT for name in names}),
        )
