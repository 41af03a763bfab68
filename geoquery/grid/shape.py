"""
Grid indices, shapes and bounding boxes

Dimension-generic index arithmetic for 1D, 2D and 3D grids. Indices are
ordered slowest axis first (e.g. ``(y, x)`` for 2D, ``(t, y, x)`` for 3D),
matching numpy's row-major layout.
"""

import math
from typing import Iterable, Iterator

from geoquery.core.exceptions import DimensionMismatchError, InvalidGridBoundsError


class GridIdx(tuple):
    """
    Signed multi-index, usable as absolute index or relative offset

    Unlike plain tuples, ``+`` and ``-`` work component-wise.

    Examples:
        >>> GridIdx((1, 2)) + GridIdx((10, -5))
        GridIdx((11, -3))
    """

    def __new__(cls, values: Iterable[int]):
        return super().__new__(cls, (int(v) for v in values))

    @classmethod
    def zeros(cls, ndim: int) -> "GridIdx":
        return cls((0,) * ndim)

    def _check_ndim(self, other) -> None:
        if len(self) != len(other):
            raise DimensionMismatchError(len(self), len(other))

    def __add__(self, other) -> "GridIdx":
        self._check_ndim(other)
        return GridIdx(a + b for a, b in zip(self, other))

    def __radd__(self, other) -> "GridIdx":
        return GridIdx(other) + self

    def __sub__(self, other) -> "GridIdx":
        self._check_ndim(other)
        return GridIdx(a - b for a, b in zip(self, other))

    def __neg__(self) -> "GridIdx":
        return GridIdx(-v for v in self)

    def __repr__(self) -> str:
        return f"GridIdx({tuple(self)!r})"


def as_grid_idx(index) -> GridIdx:
    if isinstance(index, GridIdx):
        return index
    if isinstance(index, int):
        return GridIdx((index,))
    return GridIdx(index)


class _GridBoundsMixin:
    """Shared operations of anything that has a min and max index"""

    NDIM: int | None = None

    def min_index(self) -> GridIdx:
        raise NotImplementedError

    def max_index(self) -> GridIdx:
        raise NotImplementedError

    @property
    def ndim(self) -> int:
        return len(self.min_index())

    def axis_size(self) -> tuple[int, ...]:
        return tuple(hi - lo + 1 for lo, hi in zip(self.min_index(), self.max_index()))

    def number_of_elements(self) -> int:
        return math.prod(self.axis_size())

    def contains(self, index) -> bool:
        idx = as_grid_idx(index)
        if len(idx) != self.ndim:
            return False
        return all(lo <= i <= hi for i, lo, hi in zip(idx, self.min_index(), self.max_index()))

    def linear_index(self, index) -> int:
        """Row-major offset of ``index`` relative to ``min_index``"""
        idx = as_grid_idx(index) - self.min_index()
        linear = 0
        for i, size in zip(idx, self.axis_size()):
            linear = linear * size + i
        return linear

    def grid_index_from_linear(self, linear: int) -> GridIdx:
        values = []
        for size in reversed(self.axis_size()):
            linear, rem = divmod(linear, size)
            values.append(rem)
        return GridIdx(reversed(values)) + self.min_index()

    def iter_indices(self) -> Iterator[GridIdx]:
        for linear in range(self.number_of_elements()):
            yield self.grid_index_from_linear(linear)

    def bounding_box(self) -> "GridBoundingBox":
        return _bounding_box_class(self.ndim)(self.min_index(), self.max_index())

    def shift_by_offset(self, offset) -> "GridBoundingBox":
        offset = as_grid_idx(offset)
        return _bounding_box_class(self.ndim)(self.min_index() + offset, self.max_index() + offset)


class GridShape(_GridBoundsMixin):
    """
    Per-axis extents of a grid anchored at index zero

    Examples:
        >>> shape = GridShape2D((2, 3))
        >>> shape.number_of_elements()
        6
        >>> shape.max_index()
        GridIdx((1, 2))
    """

    def __init__(self, shape_array: Iterable[int]):
        shape_array = tuple(int(s) for s in shape_array)
        if self.NDIM is not None and len(shape_array) != self.NDIM:
            raise DimensionMismatchError(self.NDIM, len(shape_array))
        if not shape_array or any(s <= 0 for s in shape_array):
            raise InvalidGridBoundsError((0,) * len(shape_array), tuple(s - 1 for s in shape_array))
        self.shape_array = shape_array

    def min_index(self) -> GridIdx:
        return GridIdx.zeros(len(self.shape_array))

    def max_index(self) -> GridIdx:
        return GridIdx(s - 1 for s in self.shape_array)

    def axis_size(self) -> tuple[int, ...]:
        return self.shape_array

    def __eq__(self, other) -> bool:
        return isinstance(other, GridShape) and self.shape_array == other.shape_array

    def __hash__(self) -> int:
        return hash(("GridShape", self.shape_array))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.shape_array!r})"


class GridShape1D(GridShape):
    NDIM = 1


class GridShape2D(GridShape):
    NDIM = 2

    @property
    def axis_size_y(self) -> int:
        return self.shape_array[0]

    @property
    def axis_size_x(self) -> int:
        return self.shape_array[1]


class GridShape3D(GridShape):
    NDIM = 3


class GridBoundingBox(_GridBoundsMixin):
    """
    Inclusive index range [min_index, max_index]

    Raises:
        InvalidGridBoundsError: If min_index > max_index on any axis
    """

    def __init__(self, min_index, max_index):
        min_index = as_grid_idx(min_index)
        max_index = as_grid_idx(max_index)
        if len(min_index) != len(max_index):
            raise DimensionMismatchError(len(min_index), len(max_index))
        if self.NDIM is not None and len(min_index) != self.NDIM:
            raise DimensionMismatchError(self.NDIM, len(min_index))
        if any(lo > hi for lo, hi in zip(min_index, max_index)):
            raise InvalidGridBoundsError(min_index, max_index)
        self._min = min_index
        self._max = max_index

    def min_index(self) -> GridIdx:
        return self._min

    def max_index(self) -> GridIdx:
        return self._max

    def intersection(self, other: "GridBoundingBox") -> "GridBoundingBox | None":
        lo = GridIdx(max(a, b) for a, b in zip(self._min, other.min_index()))
        hi = GridIdx(min(a, b) for a, b in zip(self._max, other.max_index()))
        if any(a > b for a, b in zip(lo, hi)):
            return None
        return _bounding_box_class(self.ndim)(lo, hi)

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, GridBoundingBox)
            and self._min == other.min_index()
            and self._max == other.max_index()
        )

    def __hash__(self) -> int:
        return hash(("GridBoundingBox", self._min, self._max))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({tuple(self._min)!r}, {tuple(self._max)!r})"


class GridBoundingBox1D(GridBoundingBox):
    NDIM = 1


class GridBoundingBox2D(GridBoundingBox):
    NDIM = 2


class GridBoundingBox3D(GridBoundingBox):
    NDIM = 3


def _bounding_box_class(ndim: int) -> type[GridBoundingBox]:
    return {1: GridBoundingBox1D, 2: GridBoundingBox2D, 3: GridBoundingBox3D}.get(ndim, GridBoundingBox)


def grid_shape(shape_array: Iterable[int]) -> GridShape:
    """Build the GridShape subclass matching the number of dimensions"""
    shape_array = tuple(shape_array)
    cls = {1: GridShape1D, 2: GridShape2D, 3: GridShape3D}.get(len(shape_array), GridShape)
    return cls(shape_array)


GridBounds = GridShape | GridBoundingBox
