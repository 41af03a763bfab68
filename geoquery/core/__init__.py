"""
GeoQuery Core Module

Spatial/temporal primitives and the exception hierarchy.
"""

from geoquery.core.exceptions import (
    CatalogError,
    EncodingError,
    GeoQueryError,
    GridError,
    OperatorError,
    QueryError,
)
from geoquery.core.primitives import (
    UNITLESS,
    BoundingBox2D,
    ClassificationMeasurement,
    ContinuousMeasurement,
    Coordinate2D,
    ExternalDatasetId,
    InternalDatasetId,
    SpatialPartition2D,
    SpatialReference,
    SpatialResolution,
    TimeInterval,
    UnitlessMeasurement,
)

__all__ = [
    # Primitives
    "BoundingBox2D",
    "ClassificationMeasurement",
    "ContinuousMeasurement",
    "Coordinate2D",
    "ExternalDatasetId",
    "InternalDatasetId",
    "SpatialPartition2D",
    "SpatialReference",
    "SpatialResolution",
    "TimeInterval",
    "UNITLESS",
    "UnitlessMeasurement",
    # Exceptions
    "CatalogError",
    "EncodingError",
    "GeoQueryError",
    "GridError",
    "OperatorError",
    "QueryError",
]
