"""
Execution engine primitives

Query rectangles, the per-query context and the execution context operators
are initialized against.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from geoquery.config.constants import DEFAULT_CHUNK_BYTE_SIZE
from geoquery.core.exceptions import UnknownDatasetIdError
from geoquery.core.primitives import (
    BoundingBox2D,
    DatasetId,
    ExternalDatasetId,
    SpatialPartition2D,
    SpatialReference,
    SpatialResolution,
    TimeInterval,
)
from geoquery.operators.metadata import DatasetLoadingInfo, DatasetProvider, MetaData
from geoquery.raster.tiling import TilingSpecification

if TYPE_CHECKING:
    from geoquery.io.base import TileFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterQueryRectangle:
    """
    Spatio-temporal extent of a raster query

    Attributes:
        spatial_bounds: Area to produce, in ``spatial_reference`` coordinates
        time_interval: Time span to produce
        spatial_resolution: Pixel size of the produced tiles
        spatial_reference: CRS of the bounds and of the produced tiles
    """

    spatial_bounds: SpatialPartition2D
    time_interval: TimeInterval
    spatial_resolution: SpatialResolution
    spatial_reference: SpatialReference


@dataclass(frozen=True)
class VectorQueryRectangle:
    """
    Spatio-temporal extent of a vector query

    ``spatial_resolution`` is used by operators that sample rasters for
    the features (e.g. the raster vector join).
    """

    spatial_bounds: BoundingBox2D
    time_interval: TimeInterval
    spatial_resolution: SpatialResolution
    spatial_reference: SpatialReference

    def raster_query(self, spatial_bounds: SpatialPartition2D | None = None) -> RasterQueryRectangle:
        """Raster query with the same time, resolution and CRS"""
        return RasterQueryRectangle(
            spatial_bounds if spatial_bounds is not None else self.spatial_bounds.to_spatial_partition(),
            self.time_interval,
            self.spatial_resolution,
            self.spatial_reference,
        )


QueryRectangle = RasterQueryRectangle | VectorQueryRectangle


@dataclass(frozen=True)
class QueryContext:
    """Per-query execution parameters"""

    chunk_byte_size: int = DEFAULT_CHUNK_BYTE_SIZE


class ExecutionContext:
    """
    Context operators are initialized against

    Holds static dataset metadata keyed by ``(dataset_id, loading info
    type)``, registered dataset providers, the global tiling specification
    and the capability used to read tiles from files.

    Examples:
        >>> ctx = ExecutionContext()
        >>> ctx.add_meta_data(dataset_id, StaticMetaData(parts, descriptor))
        >>> meta = await ctx.meta_data(dataset_id)
    """

    def __init__(
        self,
        tiling_specification: TilingSpecification | None = None,
        tile_fetcher: "TileFetcher | None" = None,
    ):
        self.tiling_specification = tiling_specification or TilingSpecification()
        self._tile_fetcher = tile_fetcher
        self._meta_data: dict[tuple[DatasetId, type], MetaData] = {}
        self._providers: dict[uuid.UUID, DatasetProvider] = {}

    @property
    def tile_fetcher(self) -> "TileFetcher":
        if self._tile_fetcher is None:
            from geoquery.io.cog import RasterioTileFetcher

            self._tile_fetcher = RasterioTileFetcher()
        return self._tile_fetcher

    def add_meta_data(
        self,
        dataset_id: DatasetId,
        meta_data: MetaData,
        kind: type = DatasetLoadingInfo,
    ) -> None:
        self._meta_data[(dataset_id, kind)] = meta_data

    def register_provider(self, provider: DatasetProvider) -> None:
        logger.info("Registered dataset provider %s", provider.id)
        self._providers[provider.id] = provider

    def providers(self) -> list[DatasetProvider]:
        return list(self._providers.values())

    async def meta_data(self, dataset_id: DatasetId, kind: type = DatasetLoadingInfo) -> MetaData:
        """
        Metadata of a dataset for a loading info type

        Static registrations win over providers.

        Raises:
            UnknownDatasetIdError: If neither a registration nor a provider knows the id
        """
        meta = self._meta_data.get((dataset_id, kind))
        if meta is not None:
            return meta

        if isinstance(dataset_id, ExternalDatasetId):
            provider = self._providers.get(dataset_id.provider_id)
            if provider is not None:
                return await provider.meta_data(dataset_id, kind)

        raise UnknownDatasetIdError(dataset_id)
