"""
Dataset metadata and loading information

A dataset's metadata turns a query rectangle into load instructions: which
file to read, which band, where it sits in space, and for which time
interval. Metadata comes either from static registrations on the execution
context or from dataset providers such as the Sentinel-2 STAC catalog.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator, Protocol, runtime_checkable

from geoquery.core.primitives import DatasetId, TimeInterval
from geoquery.operators.descriptors import RasterResultDescriptor
from geoquery.raster.geo_transform import GeoTransform

if TYPE_CHECKING:
    from geoquery.operators.engine import RasterQueryRectangle


class FileNotFoundHandling(str, Enum):
    """What a tile fetch does when the referenced file does not exist"""

    NO_DATA = "NoData"
    ERROR = "Error"


@dataclass(frozen=True)
class DatasetParameters:
    """
    Everything needed to read one band of one file

    Attributes:
        file_path: Path or GDAL virtual path (e.g. ``/vsicurl/https://...``)
        rasterband_channel: 1-based band index
        geo_transform: Placement of the file's pixel grid
        width: Number of columns
        height: Number of rows
        file_not_found_handling: Policy for missing files
        no_data_value: Sentinel of missing pixels in the file
    """

    file_path: str
    rasterband_channel: int
    geo_transform: GeoTransform
    width: int
    height: int
    file_not_found_handling: FileNotFoundHandling = FileNotFoundHandling.NO_DATA
    no_data_value: float | None = None


@dataclass(frozen=True)
class LoadingInfoPart:
    """One load instruction: a file valid during ``time``"""

    time: TimeInterval
    params: DatasetParameters


@dataclass
class DatasetLoadingInfo:
    """Load instructions of a raster query, in ascending time order"""

    parts: list[LoadingInfoPart] = field(default_factory=list)

    def __iter__(self) -> Iterator[LoadingInfoPart]:
        return iter(self.parts)

    def __len__(self) -> int:
        return len(self.parts)


@runtime_checkable
class MetaData(Protocol):
    """Metadata of a raster dataset"""

    async def loading_info(self, query: "RasterQueryRectangle") -> DatasetLoadingInfo:
        """
        Resolve load instructions for a query

        Raises:
            LoadingInfoError: If the instructions cannot be determined
        """
        ...

    async def result_descriptor(self) -> RasterResultDescriptor:
        ...


@dataclass
class StaticMetaData:
    """
    Metadata with a fixed list of load instructions

    ``loading_info`` returns the parts whose time interval intersects the
    query's.
    """

    parts: list[LoadingInfoPart]
    descriptor: RasterResultDescriptor

    async def loading_info(self, query: "RasterQueryRectangle") -> DatasetLoadingInfo:
        return DatasetLoadingInfo(
            [part for part in self.parts if part.time.intersects(query.time_interval)]
        )

    async def result_descriptor(self) -> RasterResultDescriptor:
        return self.descriptor


@dataclass(frozen=True)
class DatasetListing:
    """Catalog entry of a dataset offered by a provider"""

    id: DatasetId
    name: str
    description: str
    tags: list[str]
    source_operator: str
    result_descriptor: RasterResultDescriptor

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "sourceOperator": self.source_operator,
            "dataType": str(self.result_descriptor.data_type),
            "spatialReference": str(self.result_descriptor.spatial_reference),
            "noDataValue": self.result_descriptor.no_data_value,
        }


@runtime_checkable
class DatasetProvider(Protocol):
    """External source of datasets, addressed by ``ExternalDatasetId``"""

    id: uuid.UUID

    async def list(self) -> list[DatasetListing]:
        ...

    async def meta_data(self, dataset_id: DatasetId, kind: type) -> MetaData:
        """
        Metadata of one dataset for the requested loading info type

        Raises:
            UnknownDatasetIdError: If the provider does not know the dataset
            LoadingInfoError: If the provider cannot serve ``kind``
        """
        ...
