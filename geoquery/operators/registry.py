"""
Operator registry

The closed set of operator kinds a serialized workflow may contain, keyed by
their ``"type"`` tag.
"""

from typing import Any, Callable

from geoquery.core.exceptions import (
    InvalidFeatureCollectionError,
    InvalidOperatorSpecError,
    InvalidOperatorTypeError,
)
from geoquery.operators.operator import Operator
from geoquery.operators.processing.raster_vector_join import RasterVectorJoin
from geoquery.operators.processing.reprojection import reprojection_from_dict
from geoquery.operators.source import MockFeatureSource, MockRasterSource, RasterSource

OPERATORS: dict[str, Callable[[dict[str, Any]], Operator]] = {
    "MockRasterSource": MockRasterSource.from_dict,
    "MockFeatureSource": MockFeatureSource.from_dict,
    "RasterSource": RasterSource.from_dict,
    "Reprojection": reprojection_from_dict,
    "RasterVectorJoin": RasterVectorJoin.from_dict,
}


def operator_from_dict(data: dict[str, Any]) -> Operator:
    """
    Deserialize an operator graph

    Raises:
        InvalidOperatorTypeError: If a ``"type"`` tag is not a registered kind
        InvalidOperatorSpecError: If parameters are missing or malformed
    """
    type_name = data.get("type")
    factory = OPERATORS.get(type_name)
    if factory is None:
        raise InvalidOperatorTypeError(str(type_name))
    try:
        return factory(data)
    except (KeyError, TypeError, ValueError, InvalidFeatureCollectionError) as e:
        raise InvalidOperatorSpecError(f"Invalid {type_name} definition: {e}") from e
