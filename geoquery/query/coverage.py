"""
Coverage requests

Parses and validates WCS 1.1 GetCoverage key-value parameters and answers
them with a GeoTIFF of a raster workflow.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping

from geoquery.catalog.stac import parse_datetime
from geoquery.config.constants import DEFAULT_COVERAGE_RESOLUTION_DIVISOR
from geoquery.config.settings import Settings
from geoquery.core.exceptions import (
    BoundingBoxCrsMismatchError,
    GeoQueryError,
    GridOriginMismatchError,
    InvalidRequestParameterError,
    UnsupportedVersionError,
)
from geoquery.core.primitives import (
    Coordinate2D,
    SpatialPartition2D,
    SpatialReference,
    SpatialResolution,
    TimeInterval,
)
from geoquery.io.geotiff import GEOTIFF_DATA_TYPES, raster_stream_to_geotiff_bytes
from geoquery.operators.engine import ExecutionContext, QueryContext, RasterQueryRectangle
from geoquery.operators.operator import RasterOperator
from geoquery.query.executor import QueryExecutor

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("1.1.1", "1.1.0")
GEOTIFF_FORMAT = "image/tiff"


def _floats(name: str, value: str, count: int) -> list[float]:
    parts = [p.strip() for p in value.split(",")]
    try:
        numbers = [float(p) for p in parts[:count]]
    except ValueError as e:
        raise InvalidRequestParameterError(name, value) from e
    if len(numbers) != count:
        raise InvalidRequestParameterError(name, value)
    return numbers


def _spatial_reference(name: str, value: str) -> SpatialReference:
    try:
        return SpatialReference.from_str(value)
    except GeoQueryError as e:
        raise InvalidRequestParameterError(name, value) from e


def parse_time(value: str) -> TimeInterval:
    """
    Parse an instant or an ``start/end`` interval

    Examples:
        >>> parse_time("2014-01-01T00:00:00.0Z").is_instant
        True
    """
    try:
        if "/" in value:
            start, end = value.split("/", 1)
            return TimeInterval(parse_datetime(start), parse_datetime(end))
        return TimeInterval.new_instant(parse_datetime(value))
    except (ValueError, GeoQueryError) as e:
        raise InvalidRequestParameterError("time", value) from e


@dataclass(frozen=True)
class CoverageBoundingBox:
    """
    ``boundingbox`` parameter: four numbers in the axis order of its CRS

    Attributes:
        values: Lower corner followed by upper corner
        spatial_reference: CRS given after the numbers, if any
    """

    values: tuple[float, float, float, float]
    spatial_reference: SpatialReference | None = None

    @classmethod
    def parse(cls, value: str) -> "CoverageBoundingBox":
        """
        Examples:
            >>> CoverageBoundingBox.parse("20,-10,80,50,urn:ogc:def:crs:EPSG::4326").spatial_reference
            SpatialReference(authority='EPSG', code=4326)
        """
        parts = [p.strip() for p in value.split(",")]
        if len(parts) not in (4, 5):
            raise InvalidRequestParameterError("boundingbox", value)
        numbers = _floats("boundingbox", ",".join(parts[:4]), 4)
        reference = _spatial_reference("boundingbox", parts[4]) if len(parts) == 5 else None
        return cls(tuple(numbers), reference)


def _swaps_axes(spatial_reference: SpatialReference) -> bool:
    """EPSG:4326 lists latitude before longitude"""
    return spatial_reference == SpatialReference.epsg_4326()


@dataclass(frozen=True)
class CoverageRequest:
    """
    A GetCoverage request

    Coordinates in ``boundingbox``, ``gridorigin`` and ``gridoffsets`` follow
    the axis order of ``gridbasecrs``; for EPSG:4326 that is (lat, lon).

    Examples:
        >>> request = CoverageRequest.from_params({
        ...     "version": "1.1.1",
        ...     "identifier": "ndvi",
        ...     "boundingbox": "20,-10,80,50,urn:ogc:def:crs:EPSG::4326",
        ...     "format": "image/tiff",
        ...     "gridbasecrs": "urn:ogc:def:crs:EPSG::4326",
        ...     "gridorigin": "80,-10",
        ...     "gridoffsets": "0.1,0.1",
        ... })
        >>> request.spatial_partition().upper_left
        Coordinate2D(x=-10.0, y=80.0)
    """

    version: str
    identifier: str
    boundingbox: CoverageBoundingBox
    gridbasecrs: SpatialReference
    format: str = GEOTIFF_FORMAT
    gridorigin: tuple[float, float] | None = None
    gridoffsets: tuple[float, float] | None = None
    time: TimeInterval | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "CoverageRequest":
        """
        Parse key-value request parameters (keys are case-insensitive)

        Raises:
            InvalidRequestParameterError: If a parameter is missing or malformed
        """
        kvp = {key.lower(): value for key, value in params.items()}

        def required(name: str) -> str:
            value = kvp.get(name)
            if value is None or value == "":
                raise InvalidRequestParameterError(name, "")
            return value

        origin = kvp.get("gridorigin")
        offsets = kvp.get("gridoffsets")
        time = kvp.get("time")
        return cls(
            version=required("version"),
            identifier=required("identifier"),
            boundingbox=CoverageBoundingBox.parse(required("boundingbox")),
            gridbasecrs=_spatial_reference("gridbasecrs", required("gridbasecrs")),
            format=kvp.get("format", GEOTIFF_FORMAT),
            gridorigin=tuple(_floats("gridorigin", origin, 2)) if origin else None,
            gridoffsets=tuple(_floats("gridoffsets", offsets, 2)) if offsets else None,
            time=parse_time(time) if time else None,
        )

    def spatial_partition(self) -> SpatialPartition2D:
        a, b, c, d = self.boundingbox.values
        if _swaps_axes(self.gridbasecrs):
            return SpatialPartition2D(Coordinate2D(b, c), Coordinate2D(d, a))
        return SpatialPartition2D(Coordinate2D(a, d), Coordinate2D(c, b))

    def grid_origin(self) -> Coordinate2D | None:
        if self.gridorigin is None:
            return None
        first, second = self.gridorigin
        if _swaps_axes(self.gridbasecrs):
            return Coordinate2D(second, first)
        return Coordinate2D(first, second)

    def spatial_resolution(self) -> SpatialResolution | None:
        if self.gridoffsets is None:
            return None
        first, second = self.gridoffsets
        if _swaps_axes(self.gridbasecrs):
            first, second = second, first
        return SpatialResolution(abs(first), abs(second))

    def validate(self) -> None:
        """
        Raises:
            UnsupportedVersionError: If the version is not 1.1.0 or 1.1.1
            GridOriginMismatchError: If the grid origin is not the upper left corner
            BoundingBoxCrsMismatchError: If the bounding box CRS is not the grid base CRS
            InvalidRequestParameterError: If the format is not GeoTIFF
        """
        if self.version not in SUPPORTED_VERSIONS:
            raise UnsupportedVersionError(self.version)
        if self.format != GEOTIFF_FORMAT:
            raise InvalidRequestParameterError("format", self.format)

        origin = self.grid_origin()
        upper_left = self.spatial_partition().upper_left
        if origin is not None and origin != upper_left:
            raise GridOriginMismatchError(origin, upper_left)

        bbox_reference = self.boundingbox.spatial_reference
        if bbox_reference is not None and bbox_reference != self.gridbasecrs:
            raise BoundingBoxCrsMismatchError(bbox_reference, self.gridbasecrs)


async def get_coverage(
    request: CoverageRequest,
    operator: RasterOperator,
    ctx: ExecutionContext,
    query_ctx: QueryContext | None = None,
    settings: Settings | None = None,
) -> bytes:
    """
    Answer a coverage request with a GeoTIFF of ``operator``

    Without ``gridoffsets`` the resolution gives 256 pixels per axis; without
    ``time`` the current instant is used.

    Args:
        request: Parsed request
        operator: Raster workflow the request's identifier refers to
        ctx: Execution context to initialize the workflow against
        query_ctx: Query context (default: built from ``settings``)
        settings: Provides the tile limit and chunk size (default: ``Settings()``)

    Returns:
        GeoTIFF file bytes

    Raises:
        UnsupportedVersionError, GridOriginMismatchError, BoundingBoxCrsMismatchError:
            If the request is invalid
        UnsupportedDataTypeError: If the workflow produces a pixel type GeoTIFF cannot hold
        TileLimitExceededError: If the request covers too many tiles
    """
    logger.info("Coverage request %s", request)
    request.validate()
    settings = settings or Settings()

    executor = QueryExecutor(ctx, query_ctx or QueryContext(settings.chunk_byte_size))
    initialized = await executor.initialize_raster(operator, request.gridbasecrs)
    descriptor = initialized.result_descriptor()
    processor = initialized.query_processor()

    partition = request.spatial_partition()
    resolution = request.spatial_resolution() or SpatialResolution(
        partition.size_x() / DEFAULT_COVERAGE_RESOLUTION_DIVISOR,
        partition.size_y() / DEFAULT_COVERAGE_RESOLUTION_DIVISOR,
    )
    time = request.time or TimeInterval.new_instant(datetime.now(timezone.utc))
    query = RasterQueryRectangle(partition, time, resolution, request.gridbasecrs)

    def encode(p):
        return raster_stream_to_geotiff_bytes(
            p,
            query,
            executor.query_context,
            descriptor.no_data_value,
            request.gridbasecrs,
            settings.wcs_tile_limit,
        )

    return await processor.dispatch(
        {data_type: encode for data_type in GEOTIFF_DATA_TYPES}, sink="GeoTIFF"
    )
