"""
GeoQuery Operators Module

Operator graph, result descriptors, execution context and query processors.
"""

from geoquery.operators.descriptors import RasterResultDescriptor, VectorResultDescriptor
from geoquery.operators.engine import (
    ExecutionContext,
    QueryContext,
    RasterQueryRectangle,
    VectorQueryRectangle,
)
from geoquery.operators.metadata import (
    DatasetListing,
    DatasetLoadingInfo,
    DatasetParameters,
    DatasetProvider,
    FileNotFoundHandling,
    LoadingInfoPart,
    MetaData,
    StaticMetaData,
)
from geoquery.operators.operator import (
    InitializedRasterOperator,
    InitializedVectorOperator,
    Operator,
    RasterOperator,
    VectorOperator,
)
from geoquery.operators.processing import (
    FeatureAggregationMethod,
    RasterReprojection,
    RasterVectorJoin,
    RasterVectorJoinParams,
    ReprojectionParams,
    VectorReprojection,
)
from geoquery.operators.processors import (
    RasterQueryProcessor,
    TypedRasterQueryProcessor,
    TypedVectorQueryProcessor,
    VectorQueryProcessor,
)
from geoquery.operators.registry import OPERATORS, operator_from_dict
from geoquery.operators.source import (
    MockFeatureSource,
    MockFeatureSourceParams,
    MockRasterSource,
    MockRasterSourceParams,
    RasterSource,
    RasterSourceParams,
)

__all__ = [
    "DatasetListing",
    "DatasetLoadingInfo",
    "DatasetParameters",
    "DatasetProvider",
    "ExecutionContext",
    "FeatureAggregationMethod",
    "FileNotFoundHandling",
    "InitializedRasterOperator",
    "InitializedVectorOperator",
    "LoadingInfoPart",
    "MetaData",
    "MockFeatureSource",
    "MockFeatureSourceParams",
    "MockRasterSource",
    "MockRasterSourceParams",
    "OPERATORS",
    "Operator",
    "QueryContext",
    "RasterOperator",
    "RasterQueryProcessor",
    "RasterQueryRectangle",
    "RasterResultDescriptor",
    "RasterReprojection",
    "RasterSource",
    "RasterSourceParams",
    "RasterVectorJoin",
    "RasterVectorJoinParams",
    "ReprojectionParams",
    "StaticMetaData",
    "TypedRasterQueryProcessor",
    "TypedVectorQueryProcessor",
    "VectorOperator",
    "VectorQueryProcessor",
    "VectorQueryRectangle",
    "VectorResultDescriptor",
    "VectorReprojection",
    "operator_from_dict",
]
