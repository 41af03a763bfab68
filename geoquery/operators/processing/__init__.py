"""
GeoQuery Processing Operators

Operators that transform the output of other operators.
"""

from geoquery.operators.processing.raster_vector_join import (
    MAX_NUMBER_OF_RASTER_INPUTS,
    FeatureAggregationMethod,
    RasterVectorJoin,
    RasterVectorJoinParams,
)
from geoquery.operators.processing.reprojection import (
    RasterReprojection,
    ReprojectionParams,
    VectorReprojection,
)

__all__ = [
    "FeatureAggregationMethod",
    "MAX_NUMBER_OF_RASTER_INPUTS",
    "RasterReprojection",
    "RasterVectorJoin",
    "RasterVectorJoinParams",
    "ReprojectionParams",
    "VectorReprojection",
]
