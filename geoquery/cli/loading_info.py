"""
Loading info CLI command

Resolves a catalog dataset for an area and time into load instructions.
"""

import argparse
import asyncio

from geoquery.catalog.sentinel import SentinelS2L2aCogsProviderDefinition
from geoquery.config.settings import Settings
from geoquery.core.exceptions import GeoQueryError
from geoquery.core.primitives import ExternalDatasetId, SpatialPartition2D, SpatialResolution
from geoquery.operators.engine import RasterQueryRectangle
from geoquery.operators.metadata import DatasetLoadingInfo
from geoquery.query.coverage import parse_time


async def _loading_info(args: argparse.Namespace) -> DatasetLoadingInfo:
    definition = SentinelS2L2aCogsProviderDefinition.from_file(args.provider)
    provider = definition.initialize(Settings.from_env())
    meta = await provider.meta_data(ExternalDatasetId(definition.id, args.dataset))
    descriptor = await meta.result_descriptor()

    minx, miny, maxx, maxy = (float(v) for v in args.bbox.split(","))
    query = RasterQueryRectangle(
        SpatialPartition2D.from_bounds(minx, miny, maxx, maxy),
        parse_time(args.time),
        SpatialResolution(args.resolution, args.resolution),
        descriptor.spatial_reference,
    )
    return await meta.loading_info(query)


def run_loading_info(args: argparse.Namespace) -> int:
    """Run the loading-info command"""
    try:
        info = asyncio.run(_loading_info(args))
    except (OSError, ValueError, GeoQueryError) as e:
        print(f"Error: {e}")
        return 1

    for part in info:
        params = part.params
        gt = params.geo_transform
        print(
            f"{part.time}  {params.file_path}  "
            f"origin=({gt.origin_coordinate.x}, {gt.origin_coordinate.y}) "
            f"pixel=({gt.x_pixel_size}, {gt.y_pixel_size}) size={params.width}x{params.height}"
        )
    print(f"Load instructions: {len(info)}")
    return 0
