"""
Datasets CLI command

Lists the datasets a provider definition exposes.
"""

import argparse
import asyncio

from geoquery.catalog.sentinel import SentinelS2L2aCogsProviderDefinition
from geoquery.config.settings import Settings
from geoquery.core.exceptions import GeoQueryError


def run_datasets(args: argparse.Namespace) -> int:
    """Run the datasets command"""
    try:
        definition = SentinelS2L2aCogsProviderDefinition.from_file(args.provider)
        settings = Settings.from_env()
    except (OSError, ValueError, GeoQueryError) as e:
        print(f"Error: {e}")
        return 1

    provider = definition.initialize(settings)
    listings = asyncio.run(provider.list())

    print(f"Provider: {definition.name} ({definition.id})")
    print()
    for listing in listings:
        descriptor = listing.result_descriptor
        print(f"  {listing.id.dataset_id:14} {descriptor.data_type}  {descriptor.spatial_reference}")
    print()
    print(f"Datasets: {len(listings)}")
    return 0
