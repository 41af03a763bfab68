"""
Tests for GeoTIFF encoding of raster queries
"""

import asyncio

import numpy as np
import pytest
from rasterio.io import MemoryFile

from geoquery.core.exceptions import TileLimitExceededError
from geoquery.core.primitives import SpatialPartition2D, SpatialReference, SpatialResolution, TimeInterval
from geoquery.io.geotiff import GEOTIFF_DATA_TYPES, raster_stream_to_geotiff_bytes
from geoquery.operators.descriptors import RasterResultDescriptor
from geoquery.operators.engine import QueryContext, RasterQueryRectangle
from geoquery.operators.source import MockRasterSource, MockRasterSourceParams
from geoquery.raster.data_type import RasterDataType


def _processor(source, ctx):
    initialized = asyncio.run(source.initialize(ctx))
    return initialized.query_processor().processor


def _query(bounds, time=None):
    return RasterQueryRectangle(
        SpatialPartition2D.from_bounds(*bounds),
        time or TimeInterval.from_millis(0, 10),
        SpatialResolution.one(),
        SpatialReference.epsg_4326(),
    )


def _encode(processor, query, no_data_value=255, tile_limit=None):
    return asyncio.run(
        raster_stream_to_geotiff_bytes(
            processor,
            query,
            QueryContext(),
            no_data_value,
            SpatialReference.epsg_4326(),
            tile_limit,
        )
    )


def _read(data: bytes):
    with MemoryFile(data) as memfile:
        with memfile.open() as dataset:
            return (
                dataset.read(),
                dataset.profile,
                [dataset.tags(band) for band in range(1, dataset.count + 1)],
            )


class TestGeoTiff:
    """Test writing query results as GeoTIFF"""

    def test_whole_raster(self, mock_raster_source, execution_context):
        processor = _processor(mock_raster_source, execution_context)

        bands, profile, tags = _read(_encode(processor, _query((0.0, -4.0, 4.0, 0.0))))

        expected = np.arange(4)[:, None] * 10 + np.arange(4)[None, :]
        np.testing.assert_array_equal(bands, [expected])
        assert profile["dtype"] == "uint8"
        assert profile["nodata"] == 255
        assert profile["crs"].to_epsg() == 4326
        assert tuple(profile["transform"])[:6] == (1.0, 0.0, 0.0, 0.0, -1.0, 0.0)
        assert tags[0]["time"] == str(TimeInterval.from_millis(0, 10))

    def test_window(self, mock_raster_source, execution_context):
        processor = _processor(mock_raster_source, execution_context)

        bands, profile, _ = _read(_encode(processor, _query((1.0, -3.0, 3.0, -1.0))))

        np.testing.assert_array_equal(bands, [[[11, 12], [21, 22]]])
        assert profile["transform"].c == 1.0
        assert profile["transform"].f == -1.0

    def test_uncovered_pixels_are_no_data(self, mock_raster_source, execution_context):
        processor = _processor(mock_raster_source, execution_context)

        bands, _, _ = _read(_encode(processor, _query((2.0, -2.0, 6.0, 0.0))))

        np.testing.assert_array_equal(bands[0][:, 2:], [[255, 255], [255, 255]])
        np.testing.assert_array_equal(bands[0][:, :2], [[2, 3], [12, 13]])

    def test_one_band_per_time(self, tile_factory, execution_context):
        early = TimeInterval.from_millis(0, 10)
        late = TimeInterval.from_millis(10, 20)
        source = MockRasterSource(
            MockRasterSourceParams(
                [tile_factory((0, 0), [[2, 2], [2, 2]], late), tile_factory((0, 0), [[1, 1], [1, 1]], early)],
                RasterResultDescriptor(RasterDataType.U8, SpatialReference.epsg_4326(), no_data_value=0),
            )
        )
        processor = _processor(source, execution_context)

        bands, _, tags = _read(_encode(processor, _query((0.0, -2.0, 2.0, 0.0), TimeInterval.from_millis(0, 20)), 0))

        assert bands.shape == (2, 2, 2)
        assert bands[0].tolist() == [[1, 1], [1, 1]]
        assert bands[1].tolist() == [[2, 2], [2, 2]]
        assert [t["time"] for t in tags] == [str(early), str(late)]

    def test_empty_result(self, mock_raster_source, execution_context):
        processor = _processor(mock_raster_source, execution_context)

        bands, profile, _ = _read(_encode(processor, _query((10.0, -2.0, 12.0, 0.0))))

        assert bands.shape == (1, 2, 2)
        assert (bands == 255).all()
        assert profile["transform"].c == 10.0

    def test_tile_limit(self, mock_raster_source, execution_context):
        processor = _processor(mock_raster_source, execution_context)

        with pytest.raises(TileLimitExceededError) as exc_info:
            _encode(processor, _query((0.0, -4.0, 4.0, 0.0)), tile_limit=3)
        assert exc_info.value.limit == 3

    def test_supported_types(self):
        assert RasterDataType.I8 not in GEOTIFF_DATA_TYPES
        assert len(GEOTIFF_DATA_TYPES) == len(RasterDataType) - 1
