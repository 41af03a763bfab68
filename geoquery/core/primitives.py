"""
Spatial and temporal primitives

Time intervals, coordinates, rectangles, resolutions, spatial references,
measurements and dataset identifiers shared by all other modules.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Union

from geoquery.core.exceptions import (
    InvalidSpatialBoundsError,
    InvalidSpatialReferenceStringError,
    InvalidSpatialResolutionError,
    InvalidTimeIntervalError,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# -----------------------------------------------------------------------------
# Time
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeInterval:
    """
    Half-open time interval [start, end) in UTC

    An instant is an interval with start == end.

    Examples:
        >>> t = TimeInterval(datetime(2021, 1, 1), datetime(2021, 1, 2))
        >>> t.intersects(TimeInterval.new_instant(datetime(2021, 1, 1, 12)))
        True
    """

    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", _as_utc(self.start))
        object.__setattr__(self, "end", _as_utc(self.end))
        if self.start > self.end:
            raise InvalidTimeIntervalError(self.start, self.end)

    @classmethod
    def new_instant(cls, instant: datetime) -> "TimeInterval":
        return cls(instant, instant)

    @classmethod
    def from_millis(cls, start_ms: int, end_ms: int) -> "TimeInterval":
        return cls(
            _EPOCH + timedelta(milliseconds=start_ms),
            _EPOCH + timedelta(milliseconds=end_ms),
        )

    @classmethod
    def default(cls) -> "TimeInterval":
        """The whole representable time range"""
        return cls(datetime.min.replace(tzinfo=timezone.utc), datetime.max.replace(tzinfo=timezone.utc))

    def to_millis(self) -> tuple[int, int]:
        return (
            (self.start - _EPOCH) // timedelta(milliseconds=1),
            (self.end - _EPOCH) // timedelta(milliseconds=1),
        )

    @property
    def is_instant(self) -> bool:
        return self.start == self.end

    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, other: "TimeInterval") -> bool:
        return self == other or (self.start <= other.start and other.end <= self.end)

    def intersects(self, other: "TimeInterval") -> bool:
        """
        Check whether two intervals share at least one instant

        Instants are treated as zero-length intervals that intersect an
        interval when they lie within its half-open range.
        """
        return (
            self == other
            or self.start <= other.start < self.end
            or other.start <= self.start < other.end
        )

    def intersection(self, other: "TimeInterval") -> "TimeInterval | None":
        if not self.intersects(other):
            return None
        return TimeInterval(max(self.start, other.start), min(self.end, other.end))

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"


# -----------------------------------------------------------------------------
# Space
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Coordinate2D:
    x: float
    y: float

    def __iter__(self):
        yield self.x
        yield self.y


@dataclass(frozen=True)
class BoundingBox2D:
    """
    Axis-aligned rectangle given by its lower-left and upper-right corners

    Used for vector queries. Both corners are inclusive.
    """

    lower_left: Coordinate2D
    upper_right: Coordinate2D

    def __post_init__(self):
        if self.lower_left.x > self.upper_right.x or self.lower_left.y > self.upper_right.y:
            raise InvalidSpatialBoundsError(self.lower_left, self.upper_right)

    @classmethod
    def from_bounds(cls, minx: float, miny: float, maxx: float, maxy: float) -> "BoundingBox2D":
        return cls(Coordinate2D(minx, miny), Coordinate2D(maxx, maxy))

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy)"""
        return (self.lower_left.x, self.lower_left.y, self.upper_right.x, self.upper_right.y)

    def upper_left(self) -> Coordinate2D:
        return Coordinate2D(self.lower_left.x, self.upper_right.y)

    def lower_right(self) -> Coordinate2D:
        return Coordinate2D(self.upper_right.x, self.lower_left.y)

    def size_x(self) -> float:
        return self.upper_right.x - self.lower_left.x

    def size_y(self) -> float:
        return self.upper_right.y - self.lower_left.y

    def contains_coordinate(self, coordinate: Coordinate2D) -> bool:
        return (
            self.lower_left.x <= coordinate.x <= self.upper_right.x
            and self.lower_left.y <= coordinate.y <= self.upper_right.y
        )

    def intersects(self, other: "BoundingBox2D") -> bool:
        return (
            self.lower_left.x <= other.upper_right.x
            and other.lower_left.x <= self.upper_right.x
            and self.lower_left.y <= other.upper_right.y
            and other.lower_left.y <= self.upper_right.y
        )

    def to_spatial_partition(self) -> "SpatialPartition2D":
        return SpatialPartition2D(self.upper_left(), self.lower_right())


@dataclass(frozen=True)
class SpatialPartition2D:
    """
    Axis-aligned rectangle given by its upper-left and lower-right corners

    Used for raster queries. The right and lower edges are exclusive, so two
    partitions that only touch do not intersect.
    """

    upper_left: Coordinate2D
    lower_right: Coordinate2D

    def __post_init__(self):
        if self.upper_left.x >= self.lower_right.x or self.upper_left.y <= self.lower_right.y:
            raise InvalidSpatialBoundsError(self.upper_left, self.lower_right)

    @classmethod
    def new_unchecked(cls, upper_left: Coordinate2D, lower_right: Coordinate2D) -> "SpatialPartition2D":
        partition = object.__new__(cls)
        object.__setattr__(partition, "upper_left", upper_left)
        object.__setattr__(partition, "lower_right", lower_right)
        return partition

    @classmethod
    def from_bounds(cls, minx: float, miny: float, maxx: float, maxy: float) -> "SpatialPartition2D":
        return cls(Coordinate2D(minx, maxy), Coordinate2D(maxx, miny))

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy)"""
        return (self.upper_left.x, self.lower_right.y, self.lower_right.x, self.upper_left.y)

    def lower_left(self) -> Coordinate2D:
        return Coordinate2D(self.upper_left.x, self.lower_right.y)

    def upper_right(self) -> Coordinate2D:
        return Coordinate2D(self.lower_right.x, self.upper_left.y)

    def size_x(self) -> float:
        return self.lower_right.x - self.upper_left.x

    def size_y(self) -> float:
        return self.upper_left.y - self.lower_right.y

    def intersects(self, other: "SpatialPartition2D") -> bool:
        return (
            self.upper_left.x < other.lower_right.x
            and other.upper_left.x < self.lower_right.x
            and self.lower_right.y < other.upper_left.y
            and other.lower_right.y < self.upper_left.y
        )

    def intersection(self, other: "SpatialPartition2D") -> "SpatialPartition2D | None":
        if not self.intersects(other):
            return None
        return SpatialPartition2D(
            Coordinate2D(max(self.upper_left.x, other.upper_left.x), min(self.upper_left.y, other.upper_left.y)),
            Coordinate2D(min(self.lower_right.x, other.lower_right.x), max(self.lower_right.y, other.lower_right.y)),
        )

    def to_bounding_box(self) -> BoundingBox2D:
        return BoundingBox2D(self.lower_left(), self.upper_right())


@dataclass(frozen=True)
class SpatialResolution:
    """Size of one pixel in CRS units per axis"""

    x: float
    y: float

    def __post_init__(self):
        if self.x <= 0 or self.y <= 0:
            raise InvalidSpatialResolutionError(self.x, self.y)

    @classmethod
    def one(cls) -> "SpatialResolution":
        return cls(1.0, 1.0)


# -----------------------------------------------------------------------------
# Spatial references
# -----------------------------------------------------------------------------

_URN_PATTERN = re.compile(r"^urn:ogc:def:crs:(?P<authority>[A-Za-z]+)::?(?P<code>\d+)$")
_SHORT_PATTERN = re.compile(r"^(?P<authority>[A-Za-z]+):(?P<code>\d+)$")


@dataclass(frozen=True)
class SpatialReference:
    """
    Spatial reference identified by authority and code (e.g. EPSG:32632)

    Examples:
        >>> SpatialReference.from_str("urn:ogc:def:crs:EPSG::4326")
        SpatialReference(authority='EPSG', code=4326)
    """

    authority: str
    code: int

    @classmethod
    def epsg(cls, code: int) -> "SpatialReference":
        return cls("EPSG", code)

    @classmethod
    def epsg_4326(cls) -> "SpatialReference":
        return cls("EPSG", 4326)

    @classmethod
    def from_str(cls, value: str) -> "SpatialReference":
        text = value.strip()
        match = _URN_PATTERN.match(text) or _SHORT_PATTERN.match(text)
        if match is None:
            raise InvalidSpatialReferenceStringError(value)
        return cls(match.group("authority").upper(), int(match.group("code")))

    def srs_string(self) -> str:
        return f"{self.authority}:{self.code}"

    def to_rasterio(self):
        """rasterio CRS object for warping and encoding"""
        from rasterio.crs import CRS

        return CRS.from_string(self.srs_string())

    def area_of_use_projected(self) -> BoundingBox2D:
        """
        Area of use of this reference, expressed in its own coordinates

        Raises:
            InvalidSpatialReferenceError: If the CRS has no known area of use
        """
        from pyproj import CRS, Transformer

        from geoquery.core.exceptions import InvalidSpatialReferenceError

        crs = CRS.from_user_input(self.srs_string())
        area = crs.area_of_use
        if area is None:
            raise InvalidSpatialReferenceError(self)

        if crs.is_geographic:
            return BoundingBox2D.from_bounds(area.west, area.south, area.east, area.north)

        transformer = Transformer.from_crs("EPSG:4326", crs, always_xy=True)
        minx, miny, maxx, maxy = transformer.transform_bounds(
            area.west, area.south, area.east, area.north, densify_pts=21
        )
        return BoundingBox2D.from_bounds(minx, miny, maxx, maxy)

    def __str__(self) -> str:
        return self.srs_string()


# -----------------------------------------------------------------------------
# Measurements
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class UnitlessMeasurement:
    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class ContinuousMeasurement:
    measurement: str
    unit: str | None = None

    def __str__(self) -> str:
        if self.unit:
            return f"{self.measurement} in {self.unit}"
        return self.measurement


@dataclass(frozen=True)
class ClassificationMeasurement:
    measurement: str
    classes: dict[int, str] = field(default_factory=dict, hash=False)

    def __str__(self) -> str:
        return self.measurement


Measurement = Union[UnitlessMeasurement, ContinuousMeasurement, ClassificationMeasurement]

UNITLESS = UnitlessMeasurement()


# -----------------------------------------------------------------------------
# Dataset ids
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class InternalDatasetId:
    dataset_id: uuid.UUID

    @classmethod
    def new(cls) -> "InternalDatasetId":
        return cls(uuid.uuid4())

    def __str__(self) -> str:
        return str(self.dataset_id)


@dataclass(frozen=True)
class ExternalDatasetId:
    provider_id: uuid.UUID
    dataset_id: str

    def __str__(self) -> str:
        return f"{self.provider_id}:{self.dataset_id}"


DatasetId = Union[InternalDatasetId, ExternalDatasetId]


def dataset_id_to_dict(dataset_id: DatasetId) -> dict:
    if isinstance(dataset_id, ExternalDatasetId):
        return {
            "type": "external",
            "providerId": str(dataset_id.provider_id),
            "datasetId": dataset_id.dataset_id,
        }
    return {"type": "internal", "datasetId": str(dataset_id.dataset_id)}


def dataset_id_from_dict(data: dict) -> DatasetId:
    if data.get("type") == "external":
        return ExternalDatasetId(uuid.UUID(data["providerId"]), data["datasetId"])
    return InternalDatasetId(uuid.UUID(data["datasetId"]))
