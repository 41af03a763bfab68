"""
Query executor - initializes operator graphs and runs queries against them
"""

import logging
from contextlib import aclosing
from typing import AsyncIterator

from geoquery.core.exceptions import MissingSpatialReferenceError
from geoquery.core.primitives import SpatialReference
from geoquery.operators.engine import (
    ExecutionContext,
    QueryContext,
    RasterQueryRectangle,
    VectorQueryRectangle,
)
from geoquery.operators.operator import (
    InitializedRasterOperator,
    InitializedVectorOperator,
    RasterOperator,
    VectorOperator,
)
from geoquery.operators.processing.reprojection import (
    InitializedRasterReprojection,
    InitializedVectorReprojection,
)
from geoquery.operators.processors import TypedRasterQueryProcessor
from geoquery.raster.tile import RasterTile2D
from geoquery.vector.collection import FeatureCollection

logger = logging.getLogger(__name__)


class QueryExecutor:
    """
    Executes queries against operator graphs

    Initializes a workflow against the execution context and, when the
    query asks for a CRS different from the workflow's, wraps the
    initialized workflow in a reprojection stage before producing results.

    Attributes:
        context: Execution context operators are initialized against
        query_context: Per-query parameters passed to processors

    Examples:
        >>> from geoquery.query import QueryExecutor
        >>> from geoquery.operators import ExecutionContext
        >>>
        >>> executor = QueryExecutor(ExecutionContext())
        >>> tiles = await executor.collect_raster(workflow, query)
        >>> len(tiles)
        4
    """

    def __init__(self, context: ExecutionContext, query_context: QueryContext | None = None):
        """
        Initialize QueryExecutor

        Args:
            context: Execution context
            query_context: Query context (default: ``QueryContext()``)
        """
        self.context = context
        self.query_context = query_context or QueryContext()

    async def initialize_raster(
        self,
        operator: RasterOperator,
        spatial_reference: SpatialReference,
    ) -> InitializedRasterOperator:
        """
        Initialize a raster workflow producing results in ``spatial_reference``

        Raises:
            MissingSpatialReferenceError: If the workflow has no CRS
        """
        initialized = await operator.initialize(self.context)
        workflow_reference = initialized.result_descriptor().spatial_reference
        if workflow_reference is None:
            raise MissingSpatialReferenceError()
        if workflow_reference == spatial_reference:
            return initialized

        logger.debug("Reprojecting raster workflow from %s to %s", workflow_reference, spatial_reference)
        return InitializedRasterReprojection(
            initialized, spatial_reference, self.context.tiling_specification
        )

    async def initialize_vector(
        self,
        operator: VectorOperator,
        spatial_reference: SpatialReference,
    ) -> InitializedVectorOperator:
        """
        Initialize a vector workflow producing results in ``spatial_reference``

        Raises:
            MissingSpatialReferenceError: If the workflow has no CRS
        """
        initialized = await operator.initialize(self.context)
        workflow_reference = initialized.result_descriptor().spatial_reference
        if workflow_reference is None:
            raise MissingSpatialReferenceError()
        if workflow_reference == spatial_reference:
            return initialized

        logger.debug("Reprojecting vector workflow from %s to %s", workflow_reference, spatial_reference)
        return InitializedVectorReprojection(initialized, spatial_reference)

    async def raster_processor(
        self,
        operator: RasterOperator,
        query: RasterQueryRectangle,
    ) -> TypedRasterQueryProcessor:
        initialized = await self.initialize_raster(operator, query.spatial_reference)
        return initialized.query_processor()

    async def raster_query(
        self,
        operator: RasterOperator,
        query: RasterQueryRectangle,
    ) -> AsyncIterator[RasterTile2D]:
        """
        Stream the tiles of a raster workflow

        Args:
            operator: Raster workflow
            query: Area, time, resolution and CRS of the result

        Yields:
            Tiles in the query's CRS
        """
        processor = await self.raster_processor(operator, query)
        async with aclosing(processor.query(query, self.query_context)) as tiles:
            async for tile in tiles:
                yield tile

    async def vector_query(
        self,
        operator: VectorOperator,
        query: VectorQueryRectangle,
    ) -> AsyncIterator[FeatureCollection]:
        """
        Stream the feature collections of a vector workflow

        Yields:
            Feature collections with geometries in the query's CRS
        """
        initialized = await self.initialize_vector(operator, query.spatial_reference)
        processor = initialized.query_processor()
        async with aclosing(processor.query(query, self.query_context)) as collections:
            async for collection in collections:
                yield collection

    async def collect_raster(
        self,
        operator: RasterOperator,
        query: RasterQueryRectangle,
    ) -> list[RasterTile2D]:
        async with aclosing(self.raster_query(operator, query)) as tiles:
            return [tile async for tile in tiles]

    async def collect_vector(
        self,
        operator: VectorOperator,
        query: VectorQueryRectangle,
    ) -> list[FeatureCollection]:
        async with aclosing(self.vector_query(operator, query)) as collections:
            return [collection async for collection in collections]
