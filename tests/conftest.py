"""
GeoQuery Test Configuration

Shared pytest fixtures for all tests.
"""

from datetime import datetime

import numpy as np
import pytest

from geoquery.core.primitives import Coordinate2D, SpatialReference, TimeInterval
from geoquery.grid.grid import Grid
from geoquery.grid.shape import GridIdx, GridShape2D
from geoquery.operators.descriptors import RasterResultDescriptor
from geoquery.operators.engine import ExecutionContext
from geoquery.operators.source import MockRasterSource, MockRasterSourceParams
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.geo_transform import GeoTransform
from geoquery.raster.tile import RasterTile2D
from geoquery.raster.tiling import TilingSpecification


def make_tile(
    position: tuple[int, int],
    values,
    time: TimeInterval | None = None,
    no_data_value=None,
    dtype="uint8",
    origin: tuple[float, float] = (0.0, 0.0),
    pixel_size: float = 1.0,
) -> RasterTile2D:
    """Tile at ``position`` of a global grid anchored at ``origin``"""
    data = np.asarray(values, dtype=dtype)
    return RasterTile2D(
        time or TimeInterval.from_millis(0, 10),
        GridIdx(position),
        GeoTransform(Coordinate2D(*origin), pixel_size, -pixel_size),
        Grid(GridShape2D(data.shape), data, no_data_value),
    )


@pytest.fixture
def time_0_10():
    """Time interval [0 ms, 10 ms)"""
    return TimeInterval.from_millis(0, 10)


@pytest.fixture
def small_tiling():
    """Tiling with 2x2 pixel tiles anchored at (0, 0)"""
    return TilingSpecification(Coordinate2D(0.0, 0.0), GridShape2D((2, 2)))


@pytest.fixture
def execution_context(small_tiling):
    """Execution context using 2x2 pixel tiles"""
    return ExecutionContext(tiling_specification=small_tiling)


@pytest.fixture
def mock_raster_source(time_0_10):
    """
    Mock raster of four 2x2 U8 tiles covering x in [0, 4) and y in (-4, 0]

    Pixel (y, x) of the 4x4 mosaic holds ``10 * y + x``; no-data value 255.
    """
    mosaic = np.arange(4)[:, None] * 10 + np.arange(4)[None, :]
    tiles = [
        make_tile((ty, tx), mosaic[ty * 2:ty * 2 + 2, tx * 2:tx * 2 + 2], time_0_10, no_data_value=255)
        for ty in range(2)
        for tx in range(2)
    ]
    descriptor = RasterResultDescriptor(
        data_type=RasterDataType.U8,
        spatial_reference=SpatialReference.epsg_4326(),
        no_data_value=255,
    )
    return MockRasterSource(MockRasterSourceParams(tiles, descriptor))


@pytest.fixture
def sentinel_instant():
    """Acquisition time of the reference Sentinel-2 item"""
    return datetime.fromisoformat("2021-01-02T10:02:26+00:00")


@pytest.fixture
def tile_factory():
    """Factory building raster tiles, see ``make_tile``"""
    return make_tile
