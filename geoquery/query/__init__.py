"""
GeoQuery Query Module

Query execution with implicit reprojection, and coverage requests.
"""

from geoquery.query.coverage import CoverageBoundingBox, CoverageRequest, get_coverage, parse_time
from geoquery.query.executor import QueryExecutor

__all__ = [
    "CoverageBoundingBox",
    "CoverageRequest",
    "QueryExecutor",
    "get_coverage",
    "parse_time",
]
