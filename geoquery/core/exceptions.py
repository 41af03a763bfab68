"""
GeoQuery Exceptions

Exception hierarchy for error handling.

Every exception keeps its structured context (indices, counts, URLs, ...)
as attributes so callers can react programmatically, and renders a precise
message for humans.
"""


class GeoQueryError(Exception):
    """Base exception for GeoQuery"""

    pass


# -----------------------------------------------------------------------------
# Grid errors
# -----------------------------------------------------------------------------


class GridError(GeoQueryError):
    """Grid construction or access failed"""

    pass


class GridIndexOutOfBoundsError(GridError):
    """Grid index lies outside of [min_index, max_index]"""

    def __init__(self, index, min_index, max_index):
        self.index = tuple(index)
        self.min_index = tuple(min_index)
        self.max_index = tuple(max_index)
        super().__init__(
            f"Grid index {self.index} is out of bounds "
            f"[{self.min_index}, {self.max_index}]"
        )


class DimensionMismatchError(GridError):
    """Number of dimensions or elements does not match"""

    def __init__(self, expected, found):
        self.expected = expected
        self.found = found
        super().__init__(f"Dimension mismatch: expected {expected}, found {found}")


class InvalidGridBoundsError(GridError):
    """Bounding box is degenerate (min_index > max_index on some axis)"""

    def __init__(self, min_index, max_index):
        self.min_index = tuple(min_index)
        self.max_index = tuple(max_index)
        super().__init__(f"Invalid grid bounds: min {self.min_index} > max {self.max_index}")


class InvalidDataTypeConversionError(GridError):
    """Conversion would not preserve the value"""

    def __init__(self, from_type, to_type):
        self.from_type = str(from_type)
        self.to_type = str(to_type)
        super().__init__(
            f"Cannot convert {self.from_type} to {self.to_type} without loss of precision"
        )


class NoDataGridConversionError(GridError):
    """Grid contains data cells and cannot become a NoDataGrid"""

    pass


# -----------------------------------------------------------------------------
# Primitive errors
# -----------------------------------------------------------------------------


class InvalidTimeIntervalError(GeoQueryError):
    """Time interval start is after its end"""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Invalid time interval: start {start} must be <= end {end}")


class InvalidSpatialBoundsError(GeoQueryError):
    """Rectangle corners are not ordered"""

    def __init__(self, first, second):
        self.first = first
        self.second = second
        super().__init__(f"Invalid spatial bounds: {first} / {second}")


class InvalidSpatialResolutionError(GeoQueryError):
    """Resolution must be positive"""

    def __init__(self, x, y):
        self.x = x
        self.y = y
        super().__init__(f"Spatial resolution must be positive, got ({x}, {y})")


class InvalidSpatialReferenceStringError(GeoQueryError):
    """String could not be parsed as a spatial reference"""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unable to parse spatial reference: {value!r}")


# -----------------------------------------------------------------------------
# Operator errors
# -----------------------------------------------------------------------------


class OperatorError(GeoQueryError):
    """Operator graph validation or execution failed"""

    pass


class InvalidNumberOfInputsError(OperatorError):
    """Number of raster or vector sources is outside the allowed range"""

    def __init__(self, source_kind: str, expected: range, found: int):
        self.source_kind = source_kind
        self.expected = expected
        self.found = found
        super().__init__(
            f"Invalid number of {source_kind} inputs: expected "
            f"{expected.start}..{expected.stop - 1}, found {found}"
        )


class InvalidOperatorSpecError(OperatorError):
    """Operator parameters do not fit together"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid operator specification: {reason}")


class InvalidTypeError(OperatorError):
    """Upstream result has the wrong type"""

    def __init__(self, expected: str, found: str):
        self.expected = expected
        self.found = found
        super().__init__(f"Invalid type: expected {expected}, found {found}")


class InvalidOperatorTypeError(OperatorError):
    """Serialized operator names an unknown kind"""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"Unknown operator type: {type_name!r}")


class UnknownDatasetIdError(OperatorError):
    """No metadata is registered for a dataset id"""

    def __init__(self, dataset_id):
        self.dataset_id = dataset_id
        super().__init__(f"Unknown dataset id: {dataset_id}")


class UnsupportedDataTypeError(OperatorError):
    """A sink cannot handle the processor's pixel type"""

    def __init__(self, data_type, sink: str = ""):
        self.data_type = data_type
        self.sink = sink
        where = f" by {sink}" if sink else ""
        super().__init__(f"Data type {data_type} is not supported{where}")


class MissingSpatialReferenceError(OperatorError):
    """A descriptor lacks the spatial reference required here"""

    def __init__(self, message: str = "Result descriptor has no spatial reference"):
        super().__init__(message)


class InvalidSpatialReferenceError(OperatorError):
    """A spatial reference is unusable"""

    def __init__(self, spatial_reference=None):
        self.spatial_reference = spatial_reference
        super().__init__(f"Invalid spatial reference: {spatial_reference}")


class LoadingInfoError(OperatorError):
    """Dataset metadata could not produce loading information (see __cause__)"""

    pass


class TileFetchError(OperatorError):
    """Reading a tile from a dataset failed"""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Could not read tile from {file_path}: {reason}")


class InvalidFeatureCollectionError(OperatorError):
    """Geometries, time intervals and columns of a collection do not fit together"""

    def __init__(self, reason: str, column: str | None = None):
        self.reason = reason
        self.column = column
        super().__init__(f"Invalid feature collection: {reason}")


# -----------------------------------------------------------------------------
# Query errors
# -----------------------------------------------------------------------------


class QueryError(GeoQueryError):
    """Query execution failed"""

    pass


class TileLimitExceededError(QueryError):
    """Stream produced more tiles than the consumer allows"""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Query exceeds the tile limit of {limit}")


class UnsupportedVersionError(QueryError):
    """Requested protocol version is not supported"""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Version {version!r} is not supported")


class GridOriginMismatchError(QueryError):
    """Grid origin must equal the bounding box upper left corner"""

    def __init__(self, grid_origin, upper_left):
        self.grid_origin = grid_origin
        self.upper_left = upper_left
        super().__init__(
            f"Grid origin {grid_origin} must equal the bounding box upper left {upper_left}"
        )


class BoundingBoxCrsMismatchError(QueryError):
    """Bounding box CRS must equal the grid base CRS"""

    def __init__(self, bbox_crs, grid_base_crs):
        self.bbox_crs = bbox_crs
        self.grid_base_crs = grid_base_crs
        super().__init__(
            f"Bounding box CRS {bbox_crs} must equal the grid base CRS {grid_base_crs}"
        )


class InvalidRequestParameterError(QueryError):
    """Request parameter could not be parsed"""

    def __init__(self, name: str, value: str):
        self.name = name
        self.value = value
        super().__init__(f"Invalid value for parameter {name!r}: {value!r}")


# -----------------------------------------------------------------------------
# Catalog errors
# -----------------------------------------------------------------------------


class CatalogError(GeoQueryError):
    """Catalog resolution failed"""

    pass


class StacNoSuchBandError(CatalogError):
    """Requested band is not an asset of a STAC feature"""

    def __init__(self, band_name: str):
        self.band_name = band_name
        super().__init__(f"STAC feature has no asset for band {band_name!r}")


class StacInvalidBboxError(CatalogError):
    """STAC asset has no usable projected shape"""

    def __init__(self, message: str = "STAC asset has an invalid or missing proj:shape"):
        super().__init__(message)


class StacInvalidGeoTransformError(CatalogError):
    """STAC asset has no usable projected transform"""

    def __init__(self, message: str = "STAC asset has an invalid or missing proj:transform"):
        super().__init__(message)


class StacJsonResponseError(CatalogError):
    """STAC response body is not a valid feature collection"""

    def __init__(self, url: str, response: str, error: Exception):
        self.url = url
        self.response = response
        self.error = error
        super().__init__(f"Unable to parse STAC response from {url}: {error}")


class StacRequestError(CatalogError):
    """STAC request failed on the network or with an error status"""

    def __init__(self, url: str, response: str | None, reason: str):
        self.url = url
        self.response = response
        self.reason = reason
        super().__init__(f"STAC request to {url} failed: {reason}")


# -----------------------------------------------------------------------------
# Encoding / configuration errors
# -----------------------------------------------------------------------------


class EncodingError(GeoQueryError):
    """Encoding a result failed"""

    pass


class ColorizerError(EncodingError):
    """Colorizer definition is invalid"""

    def __init__(self, details: str):
        self.details = details
        super().__init__(f"Colorizer error: {details}")


class ConfigurationError(GeoQueryError):
    """Configuration value is missing or invalid"""

    pass
