"""
Feature collections

Batches of features (geometry + time interval + attribute columns), the unit
of lazy vector production.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import LineString, MultiLineString, MultiPoint, MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry

from geoquery.core.exceptions import InvalidFeatureCollectionError
from geoquery.core.primitives import BoundingBox2D, TimeInterval


class VectorDataType(str, Enum):
    """Geometry kind of a feature collection; DATA means attributes only"""

    DATA = "Data"
    MULTI_POINT = "MultiPoint"
    MULTI_LINE_STRING = "MultiLineString"
    MULTI_POLYGON = "MultiPolygon"

    def __str__(self) -> str:
        return self.value


class FeatureDataType(str, Enum):
    CATEGORY = "category"
    INT = "int"
    FLOAT = "float"
    TEXT = "text"

    @classmethod
    def from_values(cls, values: NDArray) -> "FeatureDataType":
        kind = np.asarray(values).dtype.kind
        if kind == "f":
            return cls.FLOAT
        if kind in "iu":
            return cls.INT
        if kind == "b":
            return cls.CATEGORY
        return cls.TEXT


# single geometries are promoted to one-part multi geometries
_PROMOTIONS = {
    VectorDataType.MULTI_POINT: (Point, MultiPoint, lambda g: MultiPoint([g])),
    VectorDataType.MULTI_LINE_STRING: (LineString, MultiLineString, lambda g: MultiLineString([g])),
    VectorDataType.MULTI_POLYGON: (Polygon, MultiPolygon, lambda g: MultiPolygon([g])),
}


def _promote(data_type: VectorDataType, geometry: BaseGeometry) -> BaseGeometry:
    single, multi, promote = _PROMOTIONS[data_type]
    if isinstance(geometry, multi):
        return geometry
    if isinstance(geometry, single):
        return promote(geometry)
    raise InvalidFeatureCollectionError(
        f"geometry {geometry.geom_type} does not fit collection type {data_type}"
    )


@dataclass
class FeatureCollection:
    """
    Column-oriented batch of features

    Attributes:
        data_type: Geometry kind shared by all features
        geometries: Shapely multi geometries (empty for DATA collections)
        time_intervals: One validity interval per feature
        columns: Attribute arrays, each with one value per feature

    Examples:
        >>> points = FeatureCollection.from_points(
        ...     [(1.0, 2.0), (3.0, 4.0)],
        ...     columns={"name": np.array(["a", "b"])},
        ... )
        >>> len(points)
        2
    """

    data_type: VectorDataType
    geometries: list[BaseGeometry]
    time_intervals: list[TimeInterval]
    columns: dict[str, NDArray] = field(default_factory=dict)

    def __post_init__(self):
        n = len(self.time_intervals)
        if self.data_type == VectorDataType.DATA:
            if self.geometries:
                raise InvalidFeatureCollectionError("DATA collections carry no geometries")
        else:
            if len(self.geometries) != n:
                raise InvalidFeatureCollectionError(f"expected {n} geometries, found {len(self.geometries)}")
            self.geometries = [_promote(self.data_type, g) for g in self.geometries]
        for name, values in list(self.columns.items()):
            values = np.asarray(values)
            if len(values) != n:
                raise InvalidFeatureCollectionError(
                    f"column {name!r} has {len(values)} values, expected {n}", name
                )
            self.columns[name] = values

    @classmethod
    def from_points(
        cls,
        coordinates: list[tuple[float, float]],
        time_intervals: list[TimeInterval] | None = None,
        columns: dict[str, Any] | None = None,
    ) -> "FeatureCollection":
        times = time_intervals or [TimeInterval.default()] * len(coordinates)
        return cls(
            VectorDataType.MULTI_POINT,
            [Point(x, y) for x, y in coordinates],
            list(times),
            dict(columns or {}),
        )

    @classmethod
    def empty(cls, data_type: VectorDataType, column_names: list[str] | None = None) -> "FeatureCollection":
        columns = {name: np.array([], dtype=float) for name in column_names or []}
        return cls(data_type, [], [], columns)

    def __len__(self) -> int:
        return len(self.time_intervals)

    def column_types(self) -> dict[str, FeatureDataType]:
        return {name: FeatureDataType.from_values(values) for name, values in self.columns.items()}

    def bounding_box(self) -> BoundingBox2D | None:
        """Bounding box of all geometries, or None for empty/DATA collections"""
        if not self.geometries:
            return None
        bounds = np.array([g.bounds for g in self.geometries if not g.is_empty])
        if bounds.size == 0:
            return None
        return BoundingBox2D.from_bounds(
            float(bounds[:, 0].min()),
            float(bounds[:, 1].min()),
            float(bounds[:, 2].max()),
            float(bounds[:, 3].max()),
        )

    def filter(self, mask) -> "FeatureCollection":
        mask = np.asarray(mask, dtype=bool)
        if len(mask) != len(self):
            raise InvalidFeatureCollectionError(f"mask has {len(mask)} entries, expected {len(self)}")
        keep = np.flatnonzero(mask)
        return FeatureCollection(
            self.data_type,
            [self.geometries[i] for i in keep] if self.geometries else [],
            [self.time_intervals[i] for i in keep],
            {name: values[keep] for name, values in self.columns.items()},
        )

    def add_column(self, name: str, values) -> "FeatureCollection":
        if name in self.columns:
            raise InvalidFeatureCollectionError(f"column {name!r} already exists", name)
        columns = dict(self.columns)
        columns[name] = np.asarray(values)
        return FeatureCollection(self.data_type, list(self.geometries), list(self.time_intervals), columns)

    def with_geometries(self, geometries: list[BaseGeometry]) -> "FeatureCollection":
        return FeatureCollection(self.data_type, geometries, list(self.time_intervals), dict(self.columns))

    def byte_size(self) -> int:
        """Approximate size: WKB geometries, column buffers and 16 bytes of time per feature"""
        geometry_bytes = sum(len(g.wkb) for g in self.geometries)
        column_bytes = sum(values.nbytes for values in self.columns.values())
        return geometry_bytes + column_bytes + 16 * len(self)

    def chunks(self, chunk_byte_size: int) -> Iterator["FeatureCollection"]:
        """
        Split into consecutive collections of roughly ``chunk_byte_size`` bytes

        Every chunk holds at least one feature; a collection that fits is
        yielded unchanged.
        """
        n = len(self)
        if n == 0:
            return
        per_feature = max(1, math.ceil(self.byte_size() / n))
        step = max(1, chunk_byte_size // per_feature)
        if step >= n:
            yield self
            return
        for start in range(0, n, step):
            mask = np.zeros(n, dtype=bool)
            mask[start:start + step] = True
            yield self.filter(mask)

    def __repr__(self) -> str:
        return (
            f"<FeatureCollection: {self.data_type}>\n"
            f"  Features: {len(self)}\n"
            f"  Columns: {list(self.columns)}"
        )
