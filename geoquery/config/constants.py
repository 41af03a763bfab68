"""Defaults for catalog access, queries and encoding."""

DEFAULT_STAC_API_URL = "https://earth-search.aws.element84.com/v0/search"
DEFAULT_STAC_COLLECTION = "sentinel-s2-l2a-cogs"
DEFAULT_STAC_PAGE_LIMIT = 500
DEFAULT_STAC_REQUEST_TIMEOUT = 30.0

# The catalog search starts this many seconds before the query start so that
# the asset valid at the query start is part of the result.
STAC_QUERY_BACKSHIFT_SECONDS = 60
DEFAULT_LAST_ASSET_VALIDITY_SECONDS = 1

DEFAULT_WCS_TILE_LIMIT = 4096
DEFAULT_CHUNK_BYTE_SIZE = 1024 * 1024

# Coverage requests without explicit offsets are answered at this many pixels per axis
DEFAULT_COVERAGE_RESOLUTION_DIVISOR = 256

ENV_PREFIX = "GEOQUERY_"
