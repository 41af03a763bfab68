"""
Tests for spatial and temporal primitives
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from geoquery.core.exceptions import (
    InvalidSpatialBoundsError,
    InvalidSpatialReferenceStringError,
    InvalidSpatialResolutionError,
    InvalidTimeIntervalError,
)
from geoquery.core.primitives import (
    BoundingBox2D,
    Coordinate2D,
    ExternalDatasetId,
    InternalDatasetId,
    SpatialPartition2D,
    SpatialReference,
    SpatialResolution,
    TimeInterval,
    dataset_id_from_dict,
    dataset_id_to_dict,
)


class TestTimeInterval:
    """Test half-open time intervals"""

    def test_rejects_reversed(self):
        with pytest.raises(InvalidTimeIntervalError):
            TimeInterval(datetime(2021, 1, 2), datetime(2021, 1, 1))

    def test_naive_is_utc(self):
        t = TimeInterval.new_instant(datetime(2021, 1, 1))

        assert t.start.tzinfo == timezone.utc
        assert t.is_instant

    def test_millis(self):
        t = TimeInterval.from_millis(1_000, 2_500)

        assert t.to_millis() == (1_000, 2_500)
        assert t.duration() == timedelta(milliseconds=1_500)

    def test_intersects_is_half_open(self):
        a = TimeInterval.from_millis(0, 10)

        assert a.intersects(TimeInterval.from_millis(5, 15))
        assert not a.intersects(TimeInterval.from_millis(10, 20))
        assert a.intersects(TimeInterval.from_millis(0, 0))
        assert not a.intersects(TimeInterval.from_millis(10, 10))

    def test_instant_intersects_itself(self):
        instant = TimeInterval.from_millis(7, 7)

        assert instant.intersects(instant)

    def test_intersection(self):
        a = TimeInterval.from_millis(0, 10)

        assert a.intersection(TimeInterval.from_millis(5, 15)) == TimeInterval.from_millis(5, 10)
        assert a.intersection(TimeInterval.from_millis(20, 30)) is None

    def test_contains(self):
        assert TimeInterval.from_millis(0, 10).contains(TimeInterval.from_millis(2, 3))
        assert not TimeInterval.from_millis(0, 10).contains(TimeInterval.from_millis(5, 11))

    def test_default_covers_everything(self):
        assert TimeInterval.default().contains(TimeInterval.from_millis(0, 10))

    def test_hashable(self):
        assert len({TimeInterval.from_millis(0, 1), TimeInterval.from_millis(0, 1)}) == 1


class TestRectangles:
    """Test bounding boxes and spatial partitions"""

    def test_bounding_box_rejects_unordered(self):
        with pytest.raises(InvalidSpatialBoundsError):
            BoundingBox2D(Coordinate2D(1, 0), Coordinate2D(0, 1))

    def test_bounding_box_may_be_degenerate(self):
        point = BoundingBox2D.from_bounds(1, 1, 1, 1)

        assert point.size_x() == 0
        assert point.contains_coordinate(Coordinate2D(1, 1))

    def test_partition_rejects_degenerate(self):
        with pytest.raises(InvalidSpatialBoundsError):
            SpatialPartition2D(Coordinate2D(0, 0), Coordinate2D(0, -1))

    def test_partition_from_bounds(self):
        partition = SpatialPartition2D.from_bounds(0, -4, 4, 0)

        assert partition.upper_left == Coordinate2D(0, 0)
        assert partition.lower_right == Coordinate2D(4, -4)
        assert partition.bounds == (0, -4, 4, 0)
        assert partition.size_x() == 4
        assert partition.size_y() == 4

    def test_touching_partitions_do_not_intersect(self):
        a = SpatialPartition2D.from_bounds(0, 0, 1, 1)
        b = SpatialPartition2D.from_bounds(1, 0, 2, 1)

        assert not a.intersects(b)
        assert a.intersection(b) is None

    def test_partition_intersection(self):
        a = SpatialPartition2D.from_bounds(0, 0, 2, 2)
        b = SpatialPartition2D.from_bounds(1, 1, 3, 3)

        assert a.intersection(b) == SpatialPartition2D.from_bounds(1, 1, 2, 2)

    def test_partition_to_bounding_box(self):
        box = SpatialPartition2D.from_bounds(0, 1, 2, 3).to_bounding_box()

        assert box.bounds == (0, 1, 2, 3)
        assert box.to_spatial_partition() == SpatialPartition2D.from_bounds(0, 1, 2, 3)


class TestSpatialResolution:
    """Test resolution validation"""

    @pytest.mark.parametrize("x, y", [(0, 1), (1, -1)])
    def test_must_be_positive(self, x, y):
        with pytest.raises(InvalidSpatialResolutionError):
            SpatialResolution(x, y)

    def test_one(self):
        assert SpatialResolution.one() == SpatialResolution(1.0, 1.0)


class TestSpatialReference:
    """Test spatial reference parsing"""

    @pytest.mark.parametrize(
        "text",
        ["EPSG:32632", "epsg:32632", "urn:ogc:def:crs:EPSG::32632", "urn:ogc:def:crs:EPSG:32632"],
    )
    def test_from_str(self, text):
        assert SpatialReference.from_str(text) == SpatialReference.epsg(32632)

    def test_invalid(self):
        with pytest.raises(InvalidSpatialReferenceStringError):
            SpatialReference.from_str("not a crs")

    def test_srs_string(self):
        assert str(SpatialReference.epsg_4326()) == "EPSG:4326"

    def test_area_of_use_projected(self):
        area = SpatialReference.epsg(32632).area_of_use_projected()

        # UTM zone 32N spans 6E..12E, so its area straddles the 500 km false easting
        assert area.lower_left.x < 500_000 < area.upper_right.x

    def test_area_of_use_geographic(self):
        area = SpatialReference.epsg_4326().area_of_use_projected()

        assert area.bounds == (-180.0, -90.0, 180.0, 90.0)


class TestDatasetIds:
    """Test dataset id serialization"""

    def test_external_round_trip(self):
        dataset_id = ExternalDatasetId(uuid.uuid4(), "UTM32N:B01")
        data = dataset_id_to_dict(dataset_id)

        assert data["type"] == "external"
        assert dataset_id_from_dict(data) == dataset_id

    def test_internal_round_trip(self):
        dataset_id = InternalDatasetId.new()

        assert dataset_id_from_dict(dataset_id_to_dict(dataset_id)) == dataset_id
