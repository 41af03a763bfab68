"""
GeoQuery Vector Module

Feature collections and their geometry / attribute types.
"""

from geoquery.vector.collection import FeatureCollection, FeatureDataType, VectorDataType

__all__ = [
    "FeatureCollection",
    "FeatureDataType",
    "VectorDataType",
]
