"""
Tests for the dataset-backed raster source
"""

import asyncio

import pytest

from geoquery.core.exceptions import MissingSpatialReferenceError, UnknownDatasetIdError
from geoquery.core.primitives import (
    Coordinate2D,
    InternalDatasetId,
    SpatialPartition2D,
    SpatialReference,
    SpatialResolution,
    TimeInterval,
)
from geoquery.grid.grid import Grid
from geoquery.grid.shape import GridIdx
from geoquery.operators.descriptors import RasterResultDescriptor
from geoquery.operators.engine import ExecutionContext, QueryContext, RasterQueryRectangle
from geoquery.operators.metadata import DatasetParameters, LoadingInfoPart, StaticMetaData
from geoquery.operators.source import RasterSource, RasterSourceParams
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.geo_transform import GeoTransform


class _RecordingFetcher:
    """Fills each tile with the band number of its load instruction"""

    def __init__(self):
        self.calls = []

    async def fetch(self, params, tile_info, data_type):
        self.calls.append((params.file_path, tile_info.global_tile_position))
        return Grid.new_filled(
            tile_info.tile_size_in_pixels,
            params.rasterband_channel,
            dtype=data_type.numpy_dtype,
        )


def _part(start_ms, end_ms, band):
    return LoadingInfoPart(
        TimeInterval.from_millis(start_ms, end_ms),
        DatasetParameters(
            file_path=f"/data/{band}.tif",
            rasterband_channel=band,
            geo_transform=GeoTransform(Coordinate2D(0.0, 0.0), 1.0, -1.0),
            width=4,
            height=4,
            no_data_value=0,
        ),
    )


@pytest.fixture
def fetcher():
    return _RecordingFetcher()


@pytest.fixture
def dataset(small_tiling, fetcher):
    """Dataset with two load instructions, [0, 5) and [5, 10) ms"""
    ctx = ExecutionContext(tiling_specification=small_tiling, tile_fetcher=fetcher)
    dataset_id = InternalDatasetId.new()
    descriptor = RasterResultDescriptor(RasterDataType.U16, SpatialReference.epsg(32632), no_data_value=0)
    ctx.add_meta_data(dataset_id, StaticMetaData([_part(0, 5, 1), _part(5, 10, 2)], descriptor))
    return ctx, dataset_id


def _query(start_ms, end_ms):
    return RasterQueryRectangle(
        SpatialPartition2D.from_bounds(0.0, -4.0, 4.0, 0.0),
        TimeInterval.from_millis(start_ms, end_ms),
        SpatialResolution.one(),
        SpatialReference.epsg(32632),
    )


def _tiles(ctx, dataset_id, query):
    async def collect():
        initialized = await RasterSource(RasterSourceParams(dataset_id)).initialize(ctx)
        return [t async for t in initialized.query_processor().query(query, QueryContext())]

    return asyncio.run(collect())


class TestRasterSource:
    """Test tile production from load instructions"""

    def test_one_tile_per_part_and_position(self, dataset, fetcher):
        ctx, dataset_id = dataset

        tiles = _tiles(ctx, dataset_id, _query(0, 10))

        assert len(tiles) == 8
        assert [t.time for t in tiles] == [TimeInterval.from_millis(0, 5)] * 4 + [TimeInterval.from_millis(5, 10)] * 4
        assert [t.tile_position for t in tiles[:4]] == [
            GridIdx((0, 0)), GridIdx((0, 1)), GridIdx((1, 0)), GridIdx((1, 1))
        ]
        assert tiles[0].get_at_grid_index((0, 0)) == 1
        assert tiles[4].get_at_grid_index((0, 0)) == 2
        assert all(t.data_type == RasterDataType.U16 for t in tiles)
        assert fetcher.calls[0] == ("/data/1.tif", GridIdx((0, 0)))

    def test_time_filter(self, dataset):
        ctx, dataset_id = dataset

        tiles = _tiles(ctx, dataset_id, _query(6, 7))

        assert {t.time for t in tiles} == {TimeInterval.from_millis(5, 10)}

    def test_no_load_instructions_yield_no_data(self, dataset, fetcher):
        ctx, dataset_id = dataset

        tiles = _tiles(ctx, dataset_id, _query(20, 30))

        assert len(tiles) == 4
        assert all(t.is_empty() for t in tiles)
        assert all(t.time == TimeInterval.from_millis(20, 30) for t in tiles)
        assert fetcher.calls == []

    def test_unknown_dataset(self, execution_context):
        with pytest.raises(UnknownDatasetIdError):
            asyncio.run(RasterSource(RasterSourceParams(InternalDatasetId.new())).initialize(execution_context))

    def test_missing_spatial_reference(self, execution_context):
        dataset_id = InternalDatasetId.new()
        execution_context.add_meta_data(
            dataset_id, StaticMetaData([], RasterResultDescriptor(RasterDataType.U8))
        )

        with pytest.raises(MissingSpatialReferenceError):
            asyncio.run(RasterSource(RasterSourceParams(dataset_id)).initialize(execution_context))
