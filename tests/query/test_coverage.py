"""
Tests for coverage request parsing, validation and answering
"""

import asyncio
from datetime import datetime, timezone

import numpy as np
import pytest
from rasterio.io import MemoryFile

from geoquery.config.settings import Settings
from geoquery.core.exceptions import (
    BoundingBoxCrsMismatchError,
    GridOriginMismatchError,
    InvalidRequestParameterError,
    TileLimitExceededError,
    UnsupportedDataTypeError,
    UnsupportedVersionError,
)
from geoquery.core.primitives import Coordinate2D, SpatialReference, SpatialResolution, TimeInterval
from geoquery.operators.descriptors import RasterResultDescriptor
from geoquery.operators.engine import ExecutionContext
from geoquery.operators.source import MockRasterSource, MockRasterSourceParams
from geoquery.query.coverage import CoverageBoundingBox, CoverageRequest, get_coverage, parse_time
from geoquery.raster.data_type import RasterDataType


def _params(**overrides):
    params = {
        "version": "1.1.1",
        "identifier": "ndvi",
        "boundingbox": "20,-10,80,50,urn:ogc:def:crs:EPSG::4326",
        "format": "image/tiff",
        "gridbasecrs": "urn:ogc:def:crs:EPSG::4326",
        "gridorigin": "80,-10",
        "gridoffsets": "0.1,0.1",
        "time": "2014-01-01T00:00:00.0Z",
    }
    params.update(overrides)
    return {k: v for k, v in params.items() if v is not None}


def _mock_source_request(**overrides):
    params = {
        "boundingbox": "-4,0,0,4,urn:ogc:def:crs:EPSG::4326",
        "gridorigin": "0,0",
        "gridoffsets": "1,1",
        "time": "1970-01-01T00:00:00.005Z",
    }
    params.update(overrides)
    return CoverageRequest.from_params(_params(**params))


def _read(data: bytes):
    with MemoryFile(data) as memfile:
        with memfile.open() as dataset:
            return dataset.read(), dataset.profile


class TestParsing:
    """Test parsing key-value parameters"""

    def test_request(self):
        request = CoverageRequest.from_params(_params())

        assert request.version == "1.1.1"
        assert request.identifier == "ndvi"
        assert request.gridbasecrs == SpatialReference.epsg_4326()
        assert request.boundingbox == CoverageBoundingBox((20.0, -10.0, 80.0, 50.0), SpatialReference.epsg_4326())
        assert request.time == TimeInterval.new_instant(datetime(2014, 1, 1, tzinfo=timezone.utc))

    def test_keys_are_case_insensitive(self):
        params = {key.upper(): value for key, value in _params().items()}

        assert CoverageRequest.from_params(params) == CoverageRequest.from_params(_params())

    def test_lat_lon_axis_order(self):
        request = CoverageRequest.from_params(_params())

        partition = request.spatial_partition()
        assert partition.upper_left == Coordinate2D(-10.0, 80.0)
        assert partition.lower_right == Coordinate2D(50.0, 20.0)
        assert request.grid_origin() == Coordinate2D(-10.0, 80.0)

    def test_projected_axis_order(self):
        request = CoverageRequest.from_params(_params(
            boundingbox="600000,3300000,700000,3400000",
            gridbasecrs="EPSG:32632",
            gridorigin="600000,3400000",
            gridoffsets="10,-20",
        ))

        partition = request.spatial_partition()
        assert partition.upper_left == Coordinate2D(600_000.0, 3_400_000.0)
        assert partition.lower_right == Coordinate2D(700_000.0, 3_300_000.0)
        assert request.spatial_resolution() == SpatialResolution(10.0, 20.0)
        request.validate()

    def test_optional_parameters(self):
        request = CoverageRequest.from_params(_params(gridorigin=None, gridoffsets=None, time=None, format=None))

        assert request.grid_origin() is None
        assert request.spatial_resolution() is None
        assert request.time is None
        assert request.format == "image/tiff"

    def test_time_interval(self):
        time = parse_time("2014-01-01T00:00:00Z/2014-01-02T00:00:00Z")

        assert time.duration().days == 1

    @pytest.mark.parametrize(
        "overrides, name",
        [
            ({"identifier": None}, "identifier"),
            ({"version": ""}, "version"),
            ({"boundingbox": "20,-10,80"}, "boundingbox"),
            ({"boundingbox": "20,-10,north,50"}, "boundingbox"),
            ({"gridbasecrs": "wgs84"}, "gridbasecrs"),
            ({"gridoffsets": "0.1"}, "gridoffsets"),
            ({"gridorigin": "a,b"}, "gridorigin"),
            ({"time": "yesterday"}, "time"),
        ],
    )
    def test_invalid_parameters(self, overrides, name):
        with pytest.raises(InvalidRequestParameterError) as exc_info:
            CoverageRequest.from_params(_params(**overrides))
        assert exc_info.value.name == name


class TestValidation:
    """Test request validation"""

    def test_valid_request(self):
        CoverageRequest.from_params(_params()).validate()

    def test_version(self):
        with pytest.raises(UnsupportedVersionError):
            CoverageRequest.from_params(_params(version="2.0.1")).validate()

    def test_format(self):
        with pytest.raises(InvalidRequestParameterError):
            CoverageRequest.from_params(_params(format="image/png")).validate()

    def test_grid_origin(self):
        with pytest.raises(GridOriginMismatchError):
            CoverageRequest.from_params(_params(gridorigin="20,-10")).validate()

    def test_bbox_crs(self):
        request = CoverageRequest.from_params(_params(boundingbox="20,-10,80,50,EPSG:3857"))

        with pytest.raises(BoundingBoxCrsMismatchError):
            request.validate()


class TestGetCoverage:
    """Test answering requests with GeoTIFFs"""

    def test_geotiff(self, mock_raster_source, execution_context):
        data = asyncio.run(get_coverage(_mock_source_request(), mock_raster_source, execution_context))

        bands, profile = _read(data)
        expected = np.arange(4)[:, None] * 10 + np.arange(4)[None, :]
        np.testing.assert_array_equal(bands, [expected])
        assert profile["crs"].to_epsg() == 4326
        assert profile["nodata"] == 255

    def test_time_outside_data(self, mock_raster_source, execution_context):
        request = _mock_source_request(time="2014-01-01T00:00:00Z")

        bands, _ = _read(asyncio.run(get_coverage(request, mock_raster_source, execution_context)))

        assert bands.shape == (1, 4, 4)
        assert (bands == 255).all()

    def test_invalid_request_is_rejected(self, mock_raster_source, execution_context):
        request = _mock_source_request(version="1.0.0")

        with pytest.raises(UnsupportedVersionError):
            asyncio.run(get_coverage(request, mock_raster_source, execution_context))

    def test_tile_limit(self, mock_raster_source, execution_context):
        with pytest.raises(TileLimitExceededError):
            asyncio.run(get_coverage(
                _mock_source_request(), mock_raster_source, execution_context, settings=Settings(wcs_tile_limit=2)
            ))

    def test_signed_bytes_are_unsupported(self, tile_factory):
        source = MockRasterSource(
            MockRasterSourceParams(
                [tile_factory((0, 0), [[-1, 2], [3, 4]], dtype="int8")],
                RasterResultDescriptor(RasterDataType.I8, SpatialReference.epsg_4326()),
            )
        )

        with pytest.raises(UnsupportedDataTypeError) as exc_info:
            asyncio.run(get_coverage(_mock_source_request(), source, ExecutionContext()))
        assert "GeoTIFF" in str(exc_info.value)
