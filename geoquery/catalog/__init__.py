"""
GeoQuery Catalog Module

STAC item model and the Sentinel-2 L2A COGs dataset provider.
"""

from geoquery.catalog.sentinel import (
    BANDS,
    ZONES,
    Band,
    SentinelS2L2aCogsDataProvider,
    SentinelS2L2aCogsMetaData,
    SentinelS2L2aCogsProviderDefinition,
    Zone,
)
from geoquery.catalog.stac import StacAsset, StacCollection, StacContext, StacFeature

__all__ = [
    "BANDS",
    "Band",
    "SentinelS2L2aCogsDataProvider",
    "SentinelS2L2aCogsMetaData",
    "SentinelS2L2aCogsProviderDefinition",
    "StacAsset",
    "StacCollection",
    "StacContext",
    "StacFeature",
    "ZONES",
    "Zone",
]
