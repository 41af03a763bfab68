"""
Reprojection

Moves raster tiles and feature geometries from their source CRS into a
target CRS. The query executor inserts this operator whenever a query asks
for a CRS different from the workflow's.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterator

import numpy as np
from rasterio.enums import Resampling
from rasterio.warp import reproject, transform_bounds, transform_geom
from shapely.geometry import mapping, shape

from geoquery.core.exceptions import InvalidSpatialBoundsError, MissingSpatialReferenceError
from geoquery.core.primitives import (
    BoundingBox2D,
    SpatialPartition2D,
    SpatialReference,
    SpatialResolution,
)
from geoquery.grid.grid import Grid
from geoquery.grid.no_data_grid import GridOrEmpty, NoDataGrid
from geoquery.operators.descriptors import RasterResultDescriptor, VectorResultDescriptor
from geoquery.operators.engine import (
    ExecutionContext,
    QueryContext,
    RasterQueryRectangle,
    VectorQueryRectangle,
)
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
from geoquery.raster.mosaic import mosaic_tiles, tiles_pixel_bounds
from geoquery.raster.tile import RasterTile2D
from geoquery.raster.tiling import TileInformation, TilingSpecification
from geoquery.vector.collection import FeatureCollection

logger = logging.getLogger(__name__)


@dataclass
class ReprojectionParams:
    target_spatial_reference: SpatialReference

    def to_dict(self) -> dict[str, Any]:
        return {"target_spatial_reference": str(self.target_spatial_reference)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReprojectionParams":
        return cls(SpatialReference.from_str(data["target_spatial_reference"]))


def _reproject_bounds(
    bounds: tuple[float, float, float, float],
    source: SpatialReference,
    target: SpatialReference,
) -> tuple[float, float, float, float] | None:
    """Bounds transformed between CRSs, None if they fall outside the target's domain"""
    transformed = transform_bounds(source.to_rasterio(), target.to_rasterio(), *bounds, densify_pts=21)
    if not np.all(np.isfinite(transformed)):
        return None
    return tuple(float(v) for v in transformed)


# -----------------------------------------------------------------------------
# Raster
# -----------------------------------------------------------------------------


class RasterReprojectionProcessor(RasterQueryProcessor):
    """
    Produces target-CRS tiles by warping source tiles

    Each target tile queries the source over the tile's footprint in the
    source CRS, at a resolution giving the same number of pixels, and warps
    every source time step with nearest-neighbour resampling.
    """

    def __init__(
        self,
        source: TypedRasterQueryProcessor,
        source_reference: SpatialReference,
        target_reference: SpatialReference,
        no_data_value: float | None,
        tiling_specification: TilingSpecification,
    ):
        self.source = source
        self.source_reference = source_reference
        self.target_reference = target_reference
        self.data_type = source.data_type
        self.no_data_value = no_data_value
        self.tiling_specification = tiling_specification

    @property
    def _fill_value(self) -> Any:
        return self.no_data_value if self.no_data_value is not None else 0

    async def query(self, query: RasterQueryRectangle, ctx: QueryContext) -> AsyncIterator[RasterTile2D]:
        strategy = self.tiling_specification.strategy(query.spatial_resolution)
        for tile_info in strategy.tile_information_iter(query.spatial_bounds):
            by_time: dict[Any, list[RasterTile2D]] = defaultdict(list)
            for tile in await self._source_tiles(tile_info, query, ctx):
                by_time[tile.time].append(tile)

            if not by_time:
                yield RasterTile2D.from_tile_info(query.time_interval, tile_info, self._empty(tile_info))
                continue

            for time in sorted(by_time, key=lambda t: (t.start, t.end)):
                grid = await asyncio.to_thread(self._warp, by_time[time], tile_info)
                yield RasterTile2D.from_tile_info(time, tile_info, grid)

    async def _source_tiles(
        self,
        tile_info: TileInformation,
        query: RasterQueryRectangle,
        ctx: QueryContext,
    ) -> list[RasterTile2D]:
        bounds = _reproject_bounds(
            tile_info.spatial_partition().bounds, self.target_reference, self.source_reference
        )
        if bounds is None:
            return []
        try:
            partition = SpatialPartition2D.from_bounds(*bounds)
        except InvalidSpatialBoundsError:
            return []

        rows, cols = tile_info.tile_size_in_pixels.axis_size()
        source_query = RasterQueryRectangle(
            partition,
            query.time_interval,
            SpatialResolution(partition.size_x() / cols, partition.size_y() / rows),
            self.source_reference,
        )
        async with aclosing(self.source.query(source_query, ctx)) as stream:
            return [tile async for tile in stream]

    def _empty(self, tile_info: TileInformation) -> NoDataGrid:
        return NoDataGrid(tile_info.tile_size_in_pixels, self._fill_value, dtype=self.data_type.numpy_dtype)

    def _warp(self, tiles: list[RasterTile2D], tile_info: TileInformation) -> GridOrEmpty:
        if all(tile.is_empty() for tile in tiles):
            return self._empty(tile_info)

        dtype = self.data_type.numpy_dtype
        fill = self._fill_value
        pixel_bounds = tiles_pixel_bounds(tiles)
        source = mosaic_tiles(tiles, pixel_bounds, dtype, fill)
        source_transform = tiles[0].global_geo_transform.shifted_to(pixel_bounds.min_index())

        destination = np.full(tile_info.tile_size_in_pixels.axis_size(), fill, dtype=dtype)
        reproject(
            source=source,
            destination=destination,
            src_transform=source_transform.to_affine(),
            src_crs=self.source_reference.to_rasterio(),
            src_nodata=fill,
            dst_transform=tile_info.tile_geo_transform().to_affine(),
            dst_crs=self.target_reference.to_rasterio(),
            dst_nodata=fill,
            resampling=Resampling.nearest,
        )
        return Grid(tile_info.tile_size_in_pixels, destination, self.no_data_value)


class InitializedRasterReprojection(InitializedRasterOperator):
    def __init__(
        self,
        source: InitializedRasterOperator,
        target_reference: SpatialReference,
        tiling_specification: TilingSpecification,
    ):
        self.source = source
        self.source_reference = source.result_descriptor().spatial_reference
        self.target_reference = target_reference
        self.tiling_specification = tiling_specification
        self.descriptor = source.result_descriptor().with_spatial_reference(target_reference)

    def result_descriptor(self) -> RasterResultDescriptor:
        return self.descriptor

    def query_processor(self) -> TypedRasterQueryProcessor:
        processor = RasterReprojectionProcessor(
            self.source.query_processor(),
            self.source_reference,
            self.target_reference,
            self.descriptor.no_data_value,
            self.tiling_specification,
        )
        return TypedRasterQueryProcessor.from_data_type(self.descriptor.data_type, processor)


class RasterReprojection(RasterOperator):
    """Reprojects the tiles of one raster source"""

    TYPE_NAME = "Reprojection"
    PARAMS = ReprojectionParams
    RASTER_SOURCES = range(1, 2)
    VECTOR_SOURCES = range(0, 1)

    async def _initialize(self, ctx: ExecutionContext) -> InitializedRasterOperator:
        source = (await self.initialize_raster_sources(ctx))[0]
        if source.result_descriptor().spatial_reference is None:
            raise MissingSpatialReferenceError("Cannot reproject a raster without spatial reference")
        return InitializedRasterReprojection(
            source, self.params.target_spatial_reference, ctx.tiling_specification
        )


# -----------------------------------------------------------------------------
# Vector
# -----------------------------------------------------------------------------


class VectorReprojectionProcessor(VectorQueryProcessor):
    def __init__(
        self,
        source: TypedVectorQueryProcessor,
        source_reference: SpatialReference,
        target_reference: SpatialReference,
    ):
        self.source = source
        self.source_reference = source_reference
        self.target_reference = target_reference
        self.data_type = source.data_type

    async def query(
        self, query: VectorQueryRectangle, ctx: QueryContext
    ) -> AsyncIterator[FeatureCollection]:
        bounds = _reproject_bounds(query.spatial_bounds.bounds, self.target_reference, self.source_reference)
        if bounds is None:
            return

        source_query = VectorQueryRectangle(
            BoundingBox2D.from_bounds(*bounds),
            query.time_interval,
            query.spatial_resolution,
            self.source_reference,
        )
        source_crs = self.source_reference.to_rasterio()
        target_crs = self.target_reference.to_rasterio()
        async with aclosing(self.source.query(source_query, ctx)) as stream:
            async for collection in stream:
                geometries = [
                    shape(transform_geom(source_crs, target_crs, mapping(g)))
                    for g in collection.geometries
                ]
                yield collection.with_geometries(geometries)


class InitializedVectorReprojection(InitializedVectorOperator):
    def __init__(self, source: InitializedVectorOperator, target_reference: SpatialReference):
        self.source = source
        self.source_reference = source.result_descriptor().spatial_reference
        self.target_reference = target_reference
        self.descriptor = source.result_descriptor().with_spatial_reference(target_reference)

    def result_descriptor(self) -> VectorResultDescriptor:
        return self.descriptor

    def query_processor(self) -> TypedVectorQueryProcessor:
        processor = VectorReprojectionProcessor(
            self.source.query_processor(), self.source_reference, self.target_reference
        )
        return TypedVectorQueryProcessor.from_data_type(self.descriptor.data_type, processor)


class VectorReprojection(VectorOperator):
    """Reprojects the geometries of one vector source"""

    TYPE_NAME = "Reprojection"
    PARAMS = ReprojectionParams
    RASTER_SOURCES = range(0, 1)
    VECTOR_SOURCES = range(1, 2)

    async def _initialize(self, ctx: ExecutionContext) -> InitializedVectorOperator:
        source = (await self.initialize_vector_sources(ctx))[0]
        if source.result_descriptor().spatial_reference is None:
            raise MissingSpatialReferenceError("Cannot reproject features without spatial reference")
        return InitializedVectorReprojection(source, self.params.target_spatial_reference)


def reprojection_from_dict(data: dict[str, Any]) -> RasterReprojection | VectorReprojection:
    """Deserialize a Reprojection, picking the variant from its source kind"""
    if data.get("vector_sources"):
        return VectorReprojection.from_dict(data)
    return RasterReprojection.from_dict(data)
