"""
GeoQuery Configuration

Runtime settings and their defaults.
"""

from geoquery.config.settings import Settings

__all__ = ["Settings"]
