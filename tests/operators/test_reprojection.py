"""
Tests for raster and vector reprojection
"""

import asyncio

import numpy as np
import pytest

from geoquery.core.exceptions import MissingSpatialReferenceError
from geoquery.core.primitives import (
    BoundingBox2D,
    SpatialPartition2D,
    SpatialReference,
    SpatialResolution,
)
from geoquery.operators.descriptors import RasterResultDescriptor
from geoquery.operators.engine import QueryContext, RasterQueryRectangle, VectorQueryRectangle
from geoquery.operators.processing.reprojection import (
    RasterReprojection,
    ReprojectionParams,
    VectorReprojection,
)
from geoquery.operators.source import (
    MockFeatureSource,
    MockFeatureSourceParams,
    MockRasterSource,
    MockRasterSourceParams,
)
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.mosaic import mosaic_tiles, tiles_pixel_bounds
from geoquery.vector.collection import FeatureCollection

WEB_MERCATOR = SpatialReference.epsg(3857)

# One degree of longitude in EPSG:3857 metres
DEGREE = 6378137.0 * np.pi / 180.0


async def _collect(operator, ctx, query):
    initialized = await operator.initialize(ctx)
    processor = initialized.query_processor()
    return initialized, [item async for item in processor.query(query, QueryContext())]


class TestRasterReprojection:
    """Test warping tiles into another CRS"""

    def test_nearest_neighbour_values(self, mock_raster_source, execution_context, time_0_10):
        operator = RasterReprojection(ReprojectionParams(WEB_MERCATOR), raster_sources=[mock_raster_source])
        query = RasterQueryRectangle(
            SpatialPartition2D.from_bounds(0.0, -4 * DEGREE, 4 * DEGREE, 0.0),
            time_0_10,
            SpatialResolution(DEGREE, DEGREE),
            WEB_MERCATOR,
        )

        initialized, tiles = asyncio.run(_collect(operator, execution_context, query))

        assert initialized.result_descriptor().spatial_reference == WEB_MERCATOR
        assert len(tiles) == 4
        assert all(tile.time == time_0_10 for tile in tiles)
        mosaic = mosaic_tiles(tiles, tiles_pixel_bounds(tiles), np.uint8, 255)
        expected = np.arange(4)[:, None] * 10 + np.arange(4)[None, :]
        np.testing.assert_array_equal(mosaic, expected)

    def test_outside_source_is_no_data(self, mock_raster_source, execution_context, time_0_10):
        operator = RasterReprojection(ReprojectionParams(WEB_MERCATOR), raster_sources=[mock_raster_source])
        query = RasterQueryRectangle(
            SpatialPartition2D.from_bounds(40 * DEGREE, -2 * DEGREE, 42 * DEGREE, 0.0),
            time_0_10,
            SpatialResolution(DEGREE, DEGREE),
            WEB_MERCATOR,
        )

        _, tiles = asyncio.run(_collect(operator, execution_context, query))

        assert len(tiles) == 1
        assert tiles[0].is_empty()
        assert tiles[0].grid_array.no_data_value == 255
        assert tiles[0].time == time_0_10

    def test_missing_spatial_reference(self, tile_factory, execution_context):
        unreferenced = MockRasterSource(
            MockRasterSourceParams([tile_factory((0, 0), [[1, 2], [3, 4]])], RasterResultDescriptor(RasterDataType.U8))
        )
        operator = RasterReprojection(ReprojectionParams(WEB_MERCATOR), raster_sources=[unreferenced])

        with pytest.raises(MissingSpatialReferenceError):
            asyncio.run(operator.initialize(execution_context))


class TestVectorReprojection:
    """Test transforming feature geometries"""

    def test_points(self, execution_context, time_0_10):
        points = FeatureCollection.from_points([(1.0, 0.0)], columns={"id": [7]})
        operator = VectorReprojection(
            ReprojectionParams(WEB_MERCATOR),
            vector_sources=[MockFeatureSource(MockFeatureSourceParams([points]))],
        )
        query = VectorQueryRectangle(
            BoundingBox2D.from_bounds(0.0, -DEGREE, 2 * DEGREE, DEGREE),
            time_0_10,
            SpatialResolution.one(),
            WEB_MERCATOR,
        )

        initialized, collections = asyncio.run(_collect(operator, execution_context, query))

        assert initialized.result_descriptor().spatial_reference == WEB_MERCATOR
        (collection,) = collections
        point = collection.geometries[0].geoms[0]
        assert point.x == pytest.approx(DEGREE)
        assert point.y == pytest.approx(0.0, abs=1e-6)
        assert collection.columns["id"].tolist() == [7]
