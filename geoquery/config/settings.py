"""Settings read from ``GEOQUERY_*`` environment variables."""

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, get_type_hints

from geoquery.config.constants import (
    DEFAULT_CHUNK_BYTE_SIZE,
    DEFAULT_LAST_ASSET_VALIDITY_SECONDS,
    DEFAULT_STAC_API_URL,
    DEFAULT_STAC_PAGE_LIMIT,
    DEFAULT_STAC_REQUEST_TIMEOUT,
    DEFAULT_WCS_TILE_LIMIT,
    ENV_PREFIX,
)
from geoquery.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration

    Attributes:
        stac_api_url: Search endpoint for provider definitions without ``apiUrl``
        stac_page_limit: Features requested per catalog page
        stac_request_timeout: HTTP timeout in seconds
        last_asset_validity_seconds: Validity of the newest asset of a query
        wcs_tile_limit: Maximum number of tiles a coverage request may produce
        chunk_byte_size: Preferred size of the feature batches a query yields

    Examples:
        >>> settings = Settings.from_env({"GEOQUERY_STAC_PAGE_LIMIT": "100"})
        >>> settings.stac_page_limit
        100
    """

    stac_api_url: str = DEFAULT_STAC_API_URL
    stac_page_limit: int = DEFAULT_STAC_PAGE_LIMIT
    stac_request_timeout: float = DEFAULT_STAC_REQUEST_TIMEOUT
    last_asset_validity_seconds: int = DEFAULT_LAST_ASSET_VALIDITY_SECONDS
    wcs_tile_limit: int = DEFAULT_WCS_TILE_LIMIT
    chunk_byte_size: int = DEFAULT_CHUNK_BYTE_SIZE

    def __post_init__(self):
        for name in ("stac_page_limit", "wcs_tile_limit", "chunk_byte_size"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        if self.last_asset_validity_seconds < 0:
            raise ConfigurationError(
                f"last_asset_validity_seconds must not be negative, got {self.last_asset_validity_seconds}"
            )
        if self.stac_request_timeout <= 0:
            raise ConfigurationError(
                f"stac_request_timeout must be positive, got {self.stac_request_timeout}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables

        Every field ``name`` is read from ``GEOQUERY_<NAME>``; unset variables
        keep the default.

        Raises:
            ConfigurationError: If a value cannot be coerced or is out of range
        """
        env = os.environ if environ is None else environ
        hints = get_type_hints(cls)
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            attr_type = hints[f.name]
            try:
                values[f.name] = attr_type(raw.strip()) if attr_type in (int, float) else raw.strip()
            except ValueError as e:
                raise ConfigurationError(
                    f"{ENV_PREFIX}{f.name.upper()}={raw!r} is not a valid {attr_type.__name__}"
                ) from e
        return cls(**values)
