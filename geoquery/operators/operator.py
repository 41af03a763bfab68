"""
Operator graph

Operators are declarative, serializable nodes of a workflow. Initializing
an operator against an ExecutionContext validates its inputs, initializes
its sources first, and yields an initialized operator that knows its result
descriptor and can build a query processor.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from geoquery.core.exceptions import InvalidNumberOfInputsError
from geoquery.operators.descriptors import RasterResultDescriptor, VectorResultDescriptor
from geoquery.operators.engine import ExecutionContext
from geoquery.operators.processors import TypedRasterQueryProcessor, TypedVectorQueryProcessor


class InitializedRasterOperator(ABC):
    """Raster operator whose inputs have been validated"""

    @abstractmethod
    def result_descriptor(self) -> RasterResultDescriptor:
        ...

    @abstractmethod
    def query_processor(self) -> TypedRasterQueryProcessor:
        ...


class InitializedVectorOperator(ABC):
    """Vector operator whose inputs have been validated"""

    @abstractmethod
    def result_descriptor(self) -> VectorResultDescriptor:
        ...

    @abstractmethod
    def query_processor(self) -> TypedVectorQueryProcessor:
        ...


@dataclass
class Operator(ABC):
    """
    Base of all operator kinds

    Subclasses set ``TYPE_NAME`` (the serialization tag) and the allowed
    number of raster and vector sources. ``params`` is a kind-specific
    dataclass with ``to_dict`` / ``from_dict``.

    Attributes:
        params: Kind-specific parameters
        raster_sources: Raster inputs
        vector_sources: Vector inputs
    """

    TYPE_NAME: ClassVar[str] = ""
    PARAMS: ClassVar[type] = type(None)
    RASTER_SOURCES: ClassVar[range] = range(0, 1)
    VECTOR_SOURCES: ClassVar[range] = range(0, 1)

    params: Any
    raster_sources: list["RasterOperator"] = field(default_factory=list)
    vector_sources: list["VectorOperator"] = field(default_factory=list)

    def check_sources(self) -> None:
        """
        Raises:
            InvalidNumberOfInputsError: If a source count is outside its range
        """
        if len(self.vector_sources) not in self.VECTOR_SOURCES:
            raise InvalidNumberOfInputsError("vector", self.VECTOR_SOURCES, len(self.vector_sources))
        if len(self.raster_sources) not in self.RASTER_SOURCES:
            raise InvalidNumberOfInputsError("raster", self.RASTER_SOURCES, len(self.raster_sources))

    async def initialize_raster_sources(self, ctx: ExecutionContext) -> list[InitializedRasterOperator]:
        return [await source.initialize(ctx) for source in self.raster_sources]

    async def initialize_vector_sources(self, ctx: ExecutionContext) -> list[InitializedVectorOperator]:
        return [await source.initialize(ctx) for source in self.vector_sources]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.TYPE_NAME, "params": self.params.to_dict()}
        if self.raster_sources:
            data["raster_sources"] = [source.to_dict() for source in self.raster_sources]
        if self.vector_sources:
            data["vector_sources"] = [source.to_dict() for source in self.vector_sources]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Operator":
        from geoquery.operators.registry import operator_from_dict

        return cls(
            params=cls.PARAMS.from_dict(data.get("params", {})),
            raster_sources=[operator_from_dict(s) for s in data.get("raster_sources", [])],
            vector_sources=[operator_from_dict(s) for s in data.get("vector_sources", [])],
        )


class RasterOperator(Operator):
    """Operator producing raster tiles"""

    async def initialize(self, ctx: ExecutionContext) -> InitializedRasterOperator:
        self.check_sources()
        return await self._initialize(ctx)

    @abstractmethod
    async def _initialize(self, ctx: ExecutionContext) -> InitializedRasterOperator:
        ...


class VectorOperator(Operator):
    """Operator producing feature collections"""

    async def initialize(self, ctx: ExecutionContext) -> InitializedVectorOperator:
        self.check_sources()
        return await self._initialize(ctx)

    @abstractmethod
    async def _initialize(self, ctx: ExecutionContext) -> InitializedVectorOperator:
        ...
