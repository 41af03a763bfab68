"""
Sentinel-2 L2A COGs dataset provider

Resolves raster queries against a STAC API that indexes the Sentinel-2
L2A cloud-optimized GeoTIFFs. Each dataset is one band within one UTM zone;
its load instructions are the catalog items of that zone, ordered by
acquisition time, where each item stays valid until the next one starts.
"""

import json
import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import httpx
from pyproj import Transformer

from geoquery.config.constants import (
    DEFAULT_STAC_COLLECTION,
    STAC_QUERY_BACKSHIFT_SECONDS,
)
from geoquery.config.settings import Settings
from geoquery.core.exceptions import (
    ConfigurationError,
    GeoQueryError,
    LoadingInfoError,
    StacInvalidBboxError,
    StacInvalidGeoTransformError,
    StacJsonResponseError,
    StacNoSuchBandError,
    StacRequestError,
    UnknownDatasetIdError,
)
from geoquery.core.primitives import (
    BoundingBox2D,
    DatasetId,
    ExternalDatasetId,
    SpatialReference,
    TimeInterval,
)
from geoquery.catalog.stac import StacAsset, StacCollection, StacFeature
from geoquery.operators.descriptors import RasterResultDescriptor
from geoquery.operators.engine import RasterQueryRectangle
from geoquery.operators.metadata import (
    DatasetListing,
    DatasetLoadingInfo,
    DatasetParameters,
    FileNotFoundHandling,
    LoadingInfoPart,
)
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.geo_transform import GeoTransform

logger = logging.getLogger(__name__)

PROVIDER_TYPE_NAME = "SentinelS2L2ACogs"


@dataclass(frozen=True)
class Band:
    name: str
    no_data_value: float | None
    data_type: RasterDataType


@dataclass(frozen=True)
class Zone:
    name: str
    epsg: int

    @property
    def spatial_reference(self) -> SpatialReference:
        return SpatialReference.epsg(self.epsg)


BANDS = [
    Band("B01", 0.0, RasterDataType.U16),
    Band("B02", 0.0, RasterDataType.U16),
    Band("B03", 0.0, RasterDataType.U16),
    Band("B04", 0.0, RasterDataType.U16),
    Band("B08", 0.0, RasterDataType.U16),
    Band("SCL", 0.0, RasterDataType.U8),
]

ZONES = [
    Zone("UTM32N", 32632),
    Zone("UTM36S", 32736),
]


@dataclass
class SentinelDataset:
    band: Band
    zone: Zone
    listing: DatasetListing


HttpClientFactory = Callable[[], httpx.AsyncClient]


class SentinelS2L2aCogsMetaData:
    """
    Catalog-backed metadata of one (zone, band) dataset

    Attributes:
        api_url: STAC search endpoint
        zone: UTM zone the dataset covers
        band: Band the dataset reads
        settings: Page size and last-asset validity
    """

    def __init__(
        self,
        api_url: str,
        zone: Zone,
        band: Band,
        settings: Settings | None = None,
        client_factory: HttpClientFactory | None = None,
    ):
        self.api_url = api_url
        self.zone = zone
        self.band = band
        self.settings = settings or Settings()
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=self.settings.stac_request_timeout)
        )

    async def loading_info(self, query: RasterQueryRectangle) -> DatasetLoadingInfo:
        """
        Load instructions of the zone's catalog items valid during the query

        Raises:
            LoadingInfoError: Wrapping the catalog, request or projection error
        """
        logger.debug("loading_info for: %s", query)
        try:
            return await self.create_loading_info(query)
        except GeoQueryError as e:
            raise LoadingInfoError(str(e)) from e

    async def result_descriptor(self) -> RasterResultDescriptor:
        return RasterResultDescriptor(
            data_type=self.band.data_type,
            spatial_reference=self.zone.spatial_reference,
            no_data_value=self.band.no_data_value,
        )

    async def create_loading_info(self, query: RasterQueryRectangle) -> DatasetLoadingInfo:
        request_params = self.request_params(query)
        if request_params is None:
            logger.debug("Query does not overlap zone %s", self.zone.name)
            return DatasetLoadingInfo([])
        logger.debug("queried with: %s", request_params)

        features = await self.load_all_features(request_params)
        logger.debug("number of features returned by STAC: %d", len(features))

        features = [f for f in features if f.proj_epsg == self.zone.epsg]
        features.sort(key=lambda f: f.datetime)
        logger.debug("number of features in current zone: %d", len(features))

        last_validity = timedelta(seconds=self.settings.last_asset_validity_seconds)
        parts = []
        for i, feature in enumerate(features):
            start = feature.datetime
            # valid until the next item starts
            end = features[i + 1].datetime if i + 1 < len(features) else start + last_validity
            time_interval = TimeInterval(start, end)
            if not time_interval.intersects(query.time_interval):
                continue

            asset = feature.assets.get(self.band.name)
            logger.debug(
                "STAC asset time: %s, url: %s",
                time_interval,
                asset.href if asset is not None else "n/a",
            )
            if asset is None:
                raise StacNoSuchBandError(self.band.name)
            parts.append(self.create_loading_info_part(time_interval, asset))

        logger.debug("number of generated loading infos: %d", len(parts))
        return DatasetLoadingInfo(parts)

    def create_loading_info_part(self, time_interval: TimeInterval, asset: StacAsset) -> LoadingInfoPart:
        if asset.proj_shape is None or len(asset.proj_shape) != 2:
            raise StacInvalidBboxError()
        geo_transform = asset.gdal_geotransform()
        if geo_transform is None:
            raise StacInvalidGeoTransformError()
        shape_y, shape_x = asset.proj_shape

        return LoadingInfoPart(
            time=time_interval,
            params=DatasetParameters(
                file_path=f"/vsicurl/{asset.href}",
                rasterband_channel=1,
                geo_transform=GeoTransform.from_gdal(geo_transform),
                width=shape_x,
                height=shape_y,
                file_not_found_handling=FileNotFoundHandling.NO_DATA,
                no_data_value=self.band.no_data_value,
            ),
        )

    def request_params(self, query: RasterQueryRectangle) -> list[tuple[str, str]] | None:
        """
        Search parameters for a query

        The bounding box is the query partition clipped to the zone's area of
        use and reprojected to EPSG:4326; the time range starts one minute
        early so that the item valid at the query start is found.

        Returns:
            Parameter pairs, or None if the query lies outside the zone
        """
        t_start, t_end = self.time_range_request(query.time_interval)

        partition = query.spatial_bounds
        xs = (partition.upper_left.x, partition.lower_right.x)
        ys = (partition.upper_left.y, partition.lower_right.y)
        area_of_use = self.zone.spatial_reference.area_of_use_projected()
        query_box = BoundingBox2D.from_bounds(min(xs), min(ys), max(xs), max(ys))
        if not query_box.intersects(area_of_use):
            return None

        minx = max(query_box.lower_left.x, area_of_use.lower_left.x)
        miny = max(query_box.lower_left.y, area_of_use.lower_left.y)
        maxx = min(query_box.upper_right.x, area_of_use.upper_right.x)
        maxy = min(query_box.upper_right.y, area_of_use.upper_right.y)
        transformer = Transformer.from_crs(
            self.zone.spatial_reference.srs_string(), "EPSG:4326", always_xy=True
        )
        minx, miny, maxx, maxy = transformer.transform_bounds(minx, miny, maxx, maxy, densify_pts=21)

        return [
            ("collections[]", DEFAULT_STAC_COLLECTION),
            # brackets are not standard STAC but required by the search endpoint
            ("bbox", f"[{minx},{miny},{maxx},{maxy}]"),
            ("datetime", f"{t_start.isoformat()}/{t_end.isoformat()}"),
            ("limit", str(self.settings.stac_page_limit)),
        ]

    @staticmethod
    def time_range_request(time: TimeInterval) -> tuple[datetime, datetime]:
        start = time.start
        earliest = datetime.min.replace(tzinfo=timezone.utc) + timedelta(seconds=STAC_QUERY_BACKSHIFT_SECONDS)
        if start >= earliest:
            start = start - timedelta(seconds=STAC_QUERY_BACKSHIFT_SECONDS)
        return start, time.end

    async def load_all_features(self, params: list[tuple[str, str]]) -> list[StacFeature]:
        """Fetch page 1, then the remaining pages one after another"""
        async with self._client_factory() as client:
            collection = await self.load_collection(client, params, 1)
            features = list(collection.features)

            num_pages = math.ceil(collection.context.matched / collection.context.limit)
            for page in range(2, num_pages + 1):
                collection = await self.load_collection(client, params, page)
                features.extend(collection.features)

        return features

    async def load_collection(
        self,
        client: httpx.AsyncClient,
        params: list[tuple[str, str]],
        page: int,
    ) -> StacCollection:
        """
        Fetch one page of search results

        Raises:
            StacRequestError: Transport failure or error status
            StacJsonResponseError: Body is not a valid search response
        """
        try:
            response = await client.get(self.api_url, params=[*params, ("page", str(page))])
        except httpx.HTTPError as e:
            raise StacRequestError(self.api_url, None, str(e)) from e

        text = response.text
        if response.is_error:
            raise StacRequestError(self.api_url, text, f"HTTP {response.status_code}")

        try:
            return StacCollection.from_dict(json.loads(text))
        except (ValueError, KeyError, TypeError) as e:
            raise StacJsonResponseError(self.api_url, text, e) from e


class SentinelS2L2aCogsDataProvider:
    """
    Provider of one dataset per (zone, band) pair

    Examples:
        >>> provider = SentinelS2L2aCogsDataProvider(provider_id, api_url)
        >>> [listing.name for listing in await provider.list()][:1]
        ['Sentinel S2 L2A COGS UTM32N:B01']
    """

    def __init__(
        self,
        id: uuid.UUID,
        api_url: str,
        settings: Settings | None = None,
        client_factory: HttpClientFactory | None = None,
    ):
        self.id = id
        self.api_url = api_url
        self.settings = settings or Settings()
        self._client_factory = client_factory
        self.datasets = self.create_datasets(id)

    @staticmethod
    def create_datasets(provider_id: uuid.UUID) -> dict[DatasetId, SentinelDataset]:
        datasets: dict[DatasetId, SentinelDataset] = {}
        for zone in ZONES:
            for band in BANDS:
                dataset_id = ExternalDatasetId(provider_id, f"{zone.name}:{band.name}")
                listing = DatasetListing(
                    id=dataset_id,
                    name=f"Sentinel S2 L2A COGS {zone.name}:{band.name}",
                    description="",
                    tags=[],
                    source_operator="RasterSource",
                    result_descriptor=RasterResultDescriptor(
                        data_type=band.data_type,
                        spatial_reference=zone.spatial_reference,
                        no_data_value=band.no_data_value,
                    ),
                )
                datasets[dataset_id] = SentinelDataset(band, zone, listing)
        return datasets

    async def list(self) -> list[DatasetListing]:
        return sorted((d.listing for d in self.datasets.values()), key=lambda listing: listing.name)

    async def meta_data(self, dataset_id: DatasetId, kind: type = DatasetLoadingInfo) -> SentinelS2L2aCogsMetaData:
        """
        Raises:
            UnknownDatasetIdError: If the id names no (zone, band) pair
            LoadingInfoError: If ``kind`` is not raster loading info
        """
        if kind is not DatasetLoadingInfo:
            raise LoadingInfoError(f"{PROVIDER_TYPE_NAME} provides no {kind.__name__} metadata")
        dataset = self.datasets.get(dataset_id)
        if dataset is None:
            raise UnknownDatasetIdError(dataset_id)
        return SentinelS2L2aCogsMetaData(
            self.api_url,
            dataset.zone,
            dataset.band,
            settings=self.settings,
            client_factory=self._client_factory,
        )


@dataclass
class SentinelS2L2aCogsProviderDefinition:
    """
    Serialized provider configuration

    Examples:
        >>> definition = SentinelS2L2aCogsProviderDefinition.from_dict({
        ...     "type": "SentinelS2L2ACogs",
        ...     "name": "Element 84 AWS STAC",
        ...     "id": "5779494c-f3a2-48b3-8a2d-5fbba8c5b6c5",
        ...     "apiUrl": "https://earth-search.aws.element84.com/v0/search",
        ... })
        >>> provider = definition.initialize()
    """

    name: str
    id: uuid.UUID
    api_url: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def type_name(self) -> str:
        return PROVIDER_TYPE_NAME

    def to_dict(self) -> dict[str, Any]:
        data = {"type": PROVIDER_TYPE_NAME, "name": self.name, "id": str(self.id)}
        if self.api_url is not None:
            data["apiUrl"] = self.api_url
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SentinelS2L2aCogsProviderDefinition":
        """
        Raises:
            ConfigurationError: If the type tag or a required field is wrong
        """
        if data.get("type", PROVIDER_TYPE_NAME) != PROVIDER_TYPE_NAME:
            raise ConfigurationError(f"Expected provider type {PROVIDER_TYPE_NAME}, got {data.get('type')}")
        try:
            return cls(
                name=data["name"],
                id=uuid.UUID(str(data["id"])),
                api_url=data.get("apiUrl"),
                extra={k: v for k, v in data.items() if k not in ("type", "name", "id", "apiUrl")},
            )
        except (KeyError, ValueError) as e:
            raise ConfigurationError(f"Invalid {PROVIDER_TYPE_NAME} definition: {e}") from e

    @classmethod
    def from_file(cls, path: str | Path) -> "SentinelS2L2aCogsProviderDefinition":
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def initialize(
        self,
        settings: Settings | None = None,
        client_factory: HttpClientFactory | None = None,
    ) -> SentinelS2L2aCogsDataProvider:
        """
        Build the provider; without ``apiUrl`` the definition searches ``settings.stac_api_url``
        """
        settings = settings or Settings()
        api_url = self.api_url or settings.stac_api_url
        logger.info("Initializing %s provider %r (%s) at %s", PROVIDER_TYPE_NAME, self.name, self.id, api_url)
        return SentinelS2L2aCogsDataProvider(self.id, api_url, settings, client_factory)
