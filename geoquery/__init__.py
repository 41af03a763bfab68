"""
GeoQuery - Evaluate operator graphs over raster and vector geodata

Lazy, tiled query processing with typed operator graphs, implicit
reprojection and time-windowed resolution of STAC catalogs.

Quick Start:
    >>> import asyncio
    >>> import geoquery as gq
    >>>
    >>> ctx = gq.ExecutionContext()
    >>> provider = gq.SentinelS2L2aCogsProviderDefinition.from_file("provider.json").initialize()
    >>> ctx.register_provider(provider)
    >>>
    >>> source = gq.RasterSource(gq.RasterSourceParams(dataset_id))
    >>> tiles = asyncio.run(gq.QueryExecutor(ctx).collect_raster(source, query))
"""

from geoquery.core import (
    UNITLESS,
    BoundingBox2D,
    CatalogError,
    Coordinate2D,
    EncodingError,
    ExternalDatasetId,
    GeoQueryError,
    GridError,
    InternalDatasetId,
    OperatorError,
    QueryError,
    SpatialPartition2D,
    SpatialReference,
    SpatialResolution,
    TimeInterval,
)
from geoquery.grid import Grid, GridShape2D, NoDataGrid
from geoquery.operators import (
    ExecutionContext,
    MockFeatureSource,
    MockFeatureSourceParams,
    MockRasterSource,
    MockRasterSourceParams,
    QueryContext,
    RasterQueryRectangle,
    RasterResultDescriptor,
    RasterSource,
    RasterSourceParams,
    RasterVectorJoin,
    RasterVectorJoinParams,
    TypedRasterQueryProcessor,
    TypedVectorQueryProcessor,
    VectorQueryRectangle,
    VectorResultDescriptor,
    operator_from_dict,
)
from geoquery.raster import RasterDataType, RasterTile2D, TilingSpecification
from geoquery.vector import FeatureCollection, VectorDataType

__version__ = "0.1.0"

__all__ = [
    "BoundingBox2D",
    "CatalogError",
    "Coordinate2D",
    "EncodingError",
    "ExecutionContext",
    "ExternalDatasetId",
    "FeatureCollection",
    "GeoQueryError",
    "Grid",
    "GridError",
    "GridShape2D",
    "InternalDatasetId",
    "MockFeatureSource",
    "MockFeatureSourceParams",
    "MockRasterSource",
    "MockRasterSourceParams",
    "NoDataGrid",
    "OperatorError",
    "QueryContext",
    "QueryError",
    "QueryExecutor",
    "RasterDataType",
    "RasterQueryRectangle",
    "RasterResultDescriptor",
    "RasterSource",
    "RasterSourceParams",
    "RasterTile2D",
    "RasterVectorJoin",
    "RasterVectorJoinParams",
    "SentinelS2L2aCogsProviderDefinition",
    "Settings",
    "SpatialPartition2D",
    "SpatialReference",
    "SpatialResolution",
    "TilingSpecification",
    "TimeInterval",
    "TypedRasterQueryProcessor",
    "TypedVectorQueryProcessor",
    "UNITLESS",
    "VectorDataType",
    "VectorQueryRectangle",
    "VectorResultDescriptor",
    "__version__",
    "get_coverage",
    "operator_from_dict",
    "to_png",
]


# Lazy imports for the catalog, PNG encoder and query front (avoid importing httpx and Pillow at startup)
def __getattr__(name):
    if name == "QueryExecutor":
        from geoquery.query.executor import QueryExecutor

        return QueryExecutor
    elif name == "get_coverage":
        from geoquery.query.coverage import get_coverage

        return get_coverage
    elif name == "SentinelS2L2aCogsProviderDefinition":
        from geoquery.catalog.sentinel import SentinelS2L2aCogsProviderDefinition

        return SentinelS2L2aCogsProviderDefinition
    elif name == "Settings":
        from geoquery.config.settings import Settings

        return Settings
    elif name == "to_png":
        from geoquery.io.png import to_png

        return to_png
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
